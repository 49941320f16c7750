"""Configuration loader for gh-secret-upsert.

Two sources feed a run:
- action inputs, passed by the GitHub Actions runner as INPUT_<NAME> env vars
- optional settings in a YAML file (API URL, timeout, user agent, log level)
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError
from .github_client import DEFAULT_API_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SECRET_UPSERT_CONFIG"
TIMEOUT_ENV_VAR = "SECRET_UPSERT_TIMEOUT"

INPUT_NAMES = [
    "github-token", "token", "owner", "repo", "environment", "secret-name",
    "secret-value", "overwrite", "gcp-secret", "gcp-project", "config-path",
]


def default_config_path() -> Path:
    return Path.home() / ".config" / "gh-secret-upsert" / "config.yml"


@dataclass
class Settings:
    """Transport and logging settings."""
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"


@dataclass
class ActionInputs:
    """Inputs of a single provisioning run."""
    owner: str
    secret_name: str
    secret_value: Optional[str] = None
    repo: str = ""
    environment: str = ""
    token: Optional[str] = None
    overwrite: bool = False
    gcp_secret: Optional[str] = None
    gcp_project: Optional[str] = None
    config_path: Optional[str] = None


def parse_bool(value: Optional[str]) -> bool:
    """Only a case-insensitive 'true' literal is true."""
    return (value or "").strip().lower() == "true"


def get_input(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Read an action input the way the Actions runner passes it.

    The runner exposes input 'secret-name' as INPUT_SECRET-NAME (upper-cased,
    hyphens kept). Surrounding whitespace is trimmed.

    Returns:
        The input value, or None if the runner didn't pass it
    """
    environ = os.environ if environ is None else environ
    key = "INPUT_" + name.replace(" ", "_").upper()
    value = environ.get(key)
    return None if value is None else value.strip()


def read_action_inputs(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect the action inputs present in the environment, keyed by input name."""
    inputs = {}
    for name in INPUT_NAMES:
        value = get_input(name, environ)
        if value is not None:
            inputs[name] = value
    return inputs


def load_action_inputs(
    overrides: Optional[Mapping[str, Optional[str]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ActionInputs:
    """
    Build the run inputs from INPUT_* variables, with overrides taking precedence.

    Args:
        overrides: Values keyed by input name (e.g. from CLI flags); None means unset
        environ: Environment to read from, defaults to os.environ

    Returns:
        ActionInputs; secret_value is None when neither source provided it

    Raises:
        ConfigurationError: If owner or secret-name is missing
    """
    inputs = read_action_inputs(environ)
    for name, value in (overrides or {}).items():
        if value is not None:
            inputs[name] = value

    owner = inputs.get("owner", "")
    if not owner:
        raise ConfigurationError("missing owner")
    secret_name = inputs.get("secret-name", "")
    if not secret_name:
        raise ConfigurationError("missing secret-name")

    return ActionInputs(
        owner=owner,
        secret_name=secret_name,
        secret_value=inputs.get("secret-value"),
        repo=inputs.get("repo", ""),
        environment=inputs.get("environment", ""),
        token=inputs.get("github-token") or inputs.get("token") or None,
        overwrite=parse_bool(inputs.get("overwrite")),
        gcp_secret=inputs.get("gcp-secret") or None,
        gcp_project=inputs.get("gcp-project") or None,
        config_path=inputs.get("config-path") or None,
    )


def _resolve_config_path(explicit_path: Optional[str]) -> Optional[Path]:
    """
    Get settings file path.

    Priority order:
    1. Explicit path (--config flag or config-path input)
    2. SECRET_UPSERT_CONFIG environment variable
    3. Default location: ~/.config/gh-secret-upsert/config.yml, if present

    Returns:
        Path to the settings file, or None when no file is configured

    Raises:
        ConfigurationError: If an explicitly named file doesn't exist
    """
    named = explicit_path or os.getenv(CONFIG_ENV_VAR)
    if named:
        config_path = Path(named).expanduser()
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration file not found at: {config_path}")
        logger.debug(f"Using settings from: {config_path}")
        return config_path

    default_config = default_config_path()
    if default_config.is_file():
        logger.debug(f"Using default settings location: {default_config}")
        return default_config
    return None


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file at {config_path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file at {config_path} must contain a mapping")
    return config


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' section in config must be a mapping")
    return section


def _parse_timeout(value: Any, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid timeout in {source}: {value!r}")
    if timeout <= 0:
        raise ConfigurationError(f"Timeout in {source} must be positive, got {timeout}")
    return timeout


def load_settings(explicit_path: Optional[str] = None) -> Settings:
    """
    Load settings from the optional YAML file and environment overrides.

    YAML format:
        github:
          api_url: https://ghe.example.com/api/v3
          timeout: 30
          user_agent: secrets-action
        logging:
          level: INFO

    Environment overrides (applied after the file):
        GITHUB_API_URL - set by the Actions runner, points at GHES when relevant
        SECRET_UPSERT_TIMEOUT - request timeout in seconds

    Raises:
        ConfigurationError: If the file is missing, invalid, or holds bad values
    """
    settings = Settings()

    config_path = _resolve_config_path(explicit_path)
    if config_path is not None:
        config = _load_yaml(config_path)
        github = _section(config, "github")
        if "api_url" in github:
            settings.api_url = str(github["api_url"])
        if "timeout" in github:
            settings.timeout = _parse_timeout(github["timeout"], str(config_path))
        if "user_agent" in github:
            settings.user_agent = str(github["user_agent"])
        level = _section(config, "logging").get("level")
        if level:
            settings.log_level = str(level).upper()
        logger.debug(f"Settings loaded from {config_path}")

    api_url_env = os.getenv("GITHUB_API_URL")
    if api_url_env:
        settings.api_url = api_url_env

    timeout_env = os.getenv(TIMEOUT_ENV_VAR)
    if timeout_env:
        settings.timeout = _parse_timeout(timeout_env, TIMEOUT_ENV_VAR)

    return settings
