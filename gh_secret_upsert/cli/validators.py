"""Input validation for CLI arguments."""
import re
import sys


def validate_secret_name(name: str) -> None:
    """
    Validate secret name matches GitHub Actions requirements.

    GitHub allows only [a-zA-Z0-9_], names can't start with a digit
    or with the reserved GITHUB_ prefix.

    Args:
        name: Secret name to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        print("\nSecret names must match: [a-zA-Z0-9_]", file=sys.stderr)
        sys.exit(2)

    pattern = r'^[A-Za-z_][A-Za-z0-9_]*$'

    if not re.match(pattern, name) or name.upper().startswith("GITHUB_"):
        print(f"Error: Invalid secret name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_)", file=sys.stderr)
        print("Not allowed: leading digits, the GITHUB_ prefix, hyphens, dots, spaces", file=sys.stderr)
        print("\nExamples of valid names:", file=sys.stderr)
        print("  ✓ MY_SECRET", file=sys.stderr)
        print("  ✓ DATABASE_PASSWORD_123", file=sys.stderr)
        print("\nExamples of invalid names:", file=sys.stderr)
        print("  ✗ api-key (contains hyphen)", file=sys.stderr)
        print("  ✗ 1PASSWORD (starts with a digit)", file=sys.stderr)
        print("  ✗ GITHUB_TOKEN (reserved prefix)", file=sys.stderr)
        sys.exit(2)
