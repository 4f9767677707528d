"""Loading ``config.yaml`` with environment variable placeholders."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.relying_party.runtime.config.config_data import ConfigData

PLACEHOLDER_SECRET = "change-me-in-production"

_PLACEHOLDER = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:-|:\?)(?P<arg>[^}]*))?\}"
)


def substitute_env_vars(text: str) -> str:
    """
    Replace environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    def resolve(match: re.Match) -> str:
        name, op, arg = match.group("name", "op", "arg")
        value = os.getenv(name)
        if op == ":-":
            return arg if value is None else value
        if value is not None:
            return value
        if op == ":?":
            raise ValueError(f"Required environment variable {name}: {arg}")
        raise ValueError(f"Required environment variable {name} not set")

    return _PLACEHOLDER.sub(resolve, text)


def apply_environment_overrides(env_mode: str) -> None:
    """Copy every ``<ENV>_NAME`` variable onto ``NAME`` for the active environment."""
    prefix = f"{env_mode.upper()}_"
    overrides = {
        name[len(prefix):]: value
        for name, value in os.environ.items()
        if name.startswith(prefix)
    }
    if overrides:
        logger.info("Applying {} overrides: {}", env_mode, sorted(overrides))
    os.environ.update(overrides)


def _check_production(config: ConfigData) -> None:
    if config.app.environment != "production":
        return
    if config.app.session_signing_secret in (None, "", PLACEHOLDER_SECRET):
        raise ValueError("app.session_signing_secret must be set in production")


def _fallback_document(env_mode: str) -> dict:
    return {
        "config": {
            "app": {
                "environment": env_mode,
                "session_signing_secret": os.getenv("SESSION_SIGNING_SECRET"),
            }
        }
    }


def _read_document(file_path: Path) -> dict:
    text = substitute_env_vars(file_path.read_text())
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"Error parsing YAML: {file_path} holds no mapping")
    return document


def load_templated_yaml(file_path: Path) -> ConfigData:
    """
    Build the configuration from a YAML file after placeholder substitution.

    A missing file yields the model defaults, with the environment and signing
    secret still taken from ``APP_ENVIRONMENT`` and ``SESSION_SIGNING_SECRET``.

    Raises:
        ValueError: If required environment variables are missing, the
            file does not describe a valid configuration, or production
            has no signing secret
    """
    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration for environment: {}", env_mode)
    apply_environment_overrides(env_mode)

    if file_path.exists():
        document = _read_document(file_path)
    else:
        logger.warning("{} not found, using default configuration", file_path)
        document = _fallback_document(env_mode)

    try:
        config = ConfigData(**(document.get("config") or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    _check_production(config)
    return config
