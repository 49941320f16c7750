"""CLI entrypoint for gh-secret-upsert."""
import os
import sys
import argparse
import logging

from .validators import validate_secret_name

VERSION = "0.1.0"

# Configure logging to stderr
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)

OUTPUT_NAME = "secret-existed"


def set_output(name: str, value: str) -> None:
    """Publish an action output via $GITHUB_OUTPUT, or stdout outside of Actions."""
    output_file = os.getenv("GITHUB_OUTPUT")
    if output_file:
        with open(output_file, 'a') as f:
            f.write(f"{name}={value}\n")
    else:
        print(f"{name}={value}")


def report_error(message: str) -> None:
    """Surface an error, as a workflow command when running inside GitHub Actions."""
    if os.getenv("GITHUB_ACTIONS") == "true":
        print(f"::error::{message}")
    else:
        print(f"Error: {message}", file=sys.stderr)


def _configure_log_level(args, settings) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = getattr(logging, settings.log_level, logging.INFO)
    logging.getLogger().setLevel(level)


def _resolve_secret_value(inputs) -> str:
    """Return the plaintext, read from GCP Secret Manager when gcp-secret is set."""
    from gh_secret_upsert.secrets.domains.errors import ConfigurationError

    if inputs.gcp_secret:
        from gh_secret_upsert.secrets.domains.gcp_client import GCPSecretClient

        client = GCPSecretClient()
        project_id = client.get_project_id(inputs.gcp_project)
        return client.fetch_secret(inputs.gcp_secret, project_id)

    if inputs.secret_value is None:
        raise ConfigurationError("missing secret-value (or gcp-secret)")
    return inputs.secret_value


def cmd_version(args):
    """Show version information."""
    print(f"gh-secret-upsert {VERSION}")


def cmd_upsert(args):
    """Create or update a secret in an organization, repository or environment."""
    from gh_secret_upsert.secrets.domains.config_loader import load_action_inputs, load_settings
    from gh_secret_upsert.secrets.domains.github_client import GitHubClient
    from gh_secret_upsert.secrets.domains.scope import resolve_scope
    from gh_secret_upsert.secrets.workflows.secret_operations import upsert_secret

    inputs = load_action_inputs({
        "github-token": args.token,
        "owner": args.owner,
        "repo": args.repo,
        "environment": args.environment,
        "secret-name": args.secret_name,
        "secret-value": args.secret_value,
        "overwrite": None if args.overwrite is None else str(args.overwrite).lower(),
        "gcp-secret": args.gcp_secret,
        "gcp-project": args.gcp_project,
        "config-path": args.config,
    })
    settings = load_settings(inputs.config_path)
    _configure_log_level(args, settings)

    validate_secret_name(inputs.secret_name)

    if inputs.environment and not inputs.repo:
        logger.warning(
            f"Ignoring environment '{inputs.environment}': environments need a repo, "
            f"writing an organization secret instead"
        )
    scope = resolve_scope(inputs.owner, inputs.repo, inputs.environment)
    secret_value = _resolve_secret_value(inputs)

    if not inputs.token:
        logger.warning("No token provided, requests are unauthenticated")

    with GitHubClient(
        token=inputs.token,
        api_url=settings.api_url,
        timeout=settings.timeout,
        user_agent=settings.user_agent,
    ) as client:
        result = upsert_secret(
            client, scope, inputs.secret_name, secret_value, overwrite=inputs.overwrite
        )

    set_output(OUTPUT_NAME, "true" if result.existed else "false")


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (API error, network, sealing, GCP fetch, etc.)
        2 - Usage errors (invalid arguments, missing inputs, invalid secret name, etc.)
    """
    parser = argparse.ArgumentParser(
        prog="secret-upsert",
        description="Create or update an encrypted GitHub Actions secret",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (API error, network, sealing, GCP fetch, etc.)
  2 - Usage error (invalid arguments, missing inputs, invalid secret name, etc.)

Environment variables:
  INPUT_<NAME>          - Action inputs (e.g. INPUT_OWNER, INPUT_SECRET-NAME), flags take precedence
  GITHUB_OUTPUT         - File receiving the secret-existed output
  GITHUB_API_URL        - API base URL (overrides config file)
  SECRET_UPSERT_CONFIG  - Path to YAML settings file
  SECRET_UPSERT_TIMEOUT - Request timeout in seconds
  GCP_PROJECT           - GCP project for --gcp-secret

Configuration:
  Default location: ~/.config/gh-secret-upsert/config.yml (optional)
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # version command
    _version_parser = subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of gh-secret-upsert"
    )

    # upsert command
    upsert_parser = subparsers.add_parser(
        "upsert",
        help="Create or update a secret",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Seal a secret with the scope's public key and write it to GitHub.

Scope:
  --owner only                          - organization secret (visibility: all)
  --owner --repo                        - repository secret
  --owner --repo --environment          - environment secret

Behavior:
  1. Checks whether the secret already exists (404 means absent)
  2. Skips the write if it exists and --overwrite is not set
  3. Otherwise fetches the public key, seals the value and writes it

The output 'secret-existed' reports whether the secret existed before the run.
        """
    )
    upsert_parser.add_argument("--owner", help="Organization or user owning the scope")
    upsert_parser.add_argument("--repo", help="Repository name (omit for an organization secret)")
    upsert_parser.add_argument("--environment", help="Environment name (requires --repo)")
    upsert_parser.add_argument(
        "--secret-name",
        help="Name of the secret (format: [A-Za-z0-9_], no leading digit, no GITHUB_ prefix)"
    )
    upsert_parser.add_argument("--secret-value", help="Plaintext value (may be empty)")
    upsert_parser.add_argument(
        "--gcp-secret",
        help="Read the value from this GCP Secret Manager secret instead of --secret-value"
    )
    upsert_parser.add_argument("--gcp-project", help="GCP project ID for --gcp-secret (default: GCP_PROJECT)")
    upsert_parser.add_argument(
        "--overwrite",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Replace the value of a secret that already exists (default: INPUT_OVERWRITE, else off)"
    )
    upsert_parser.add_argument("--token", help="GitHub token (default: INPUT_GITHUB-TOKEN)")
    upsert_parser.add_argument("--config", help="Path to YAML settings file")
    verbosity = upsert_parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every API request")

    args = parser.parse_args(argv)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    from gh_secret_upsert.secrets.domains.errors import ConfigurationError

    # Route to command handlers
    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "upsert":
            cmd_upsert(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except ConfigurationError as e:
        report_error(str(e))
        sys.exit(2)
    except Exception as e:
        report_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
