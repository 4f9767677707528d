"""Per-context application configuration.

The active ``ConfigData`` lives in a ``ContextVar`` so that tests and
concurrent tasks can override it without touching each other.
"""

import os
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src.relying_party.runtime.config.config_data import ConfigData
from src.relying_party.runtime.config.config_template import load_templated_yaml

CONFIG_FILE_ENV = "APP_CONFIG_FILE"


@dataclass
class AppContext:
    """Application-wide state visible to the current context."""

    config: ConfigData


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context",
    default=AppContext(
        config=load_templated_yaml(Path(os.getenv(CONFIG_FILE_ENV, "config.yaml")))
    ),
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Make ``context`` current; the returned token undoes it."""
    return _app_context.set(context)


def _explicit_fields(model: BaseModel) -> dict[str, Any]:
    """Fields that were assigned on ``model``, descending into nested models.

    A nested model assigned as a whole is taken in full.
    """
    explicit: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_fields(value)
            if nested:
                explicit[name] = nested
                continue
        if name in model.model_fields_set:
            explicit[name] = value.model_dump() if isinstance(value, BaseModel) else value
    return explicit


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _merge_configs(base_config: ConfigData, override_config: ConfigData) -> ConfigData:
    return ConfigData.model_validate(
        _deep_merge(base_config.model_dump(), _explicit_fields(override_config))
    )


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily layer ``config_override`` on top of the current config.

    Only fields assigned on the override change; the rest is inherited.

    Example:
        override = ConfigData()
        override.security.rotate_session_on_login = False
        with with_context(override):
            assert get_config().openid.name == "steam"  # inherited
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    context = get_context()
    token = set_context(
        replace(context, config=_merge_configs(context.config, config_override))
    )
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the whole configuration of the current context."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
