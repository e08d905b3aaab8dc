"""Configuration models for the event dispatcher."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError

CONFIG_ENV_VAR = "QUERY_EVENTS_CONFIG"

_BOOL_TAG = "tag:yaml.org,2002:bool"


class _DocumentLoader(yaml.SafeLoader):
    """SafeLoader reading only true/false as booleans, so `op: on` stays a string."""


_DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_DocumentLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


class DispatcherSettings(BaseModel):
    """Behavioural switches for :class:`~query_events.events.EventDispatcher`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    named_dispatch_honors_stop: bool = Field(
        default=True,
        description="If False, stop() only halts structural passes and every named listener runs.",
    )
    isolate_listener_errors: bool = Field(
        default=False,
        description="Catch listener exceptions, log them and keep dispatching.",
    )
    allow_reentrant_emit: bool = Field(
        default=True,
        description="Whether listeners may emit while a pass is running.",
    )
    log_emissions: bool = Field(
        default=False,
        description="Log one structured event record per emit call.",
    )


def build_settings_from_dict(raw: Mapping[str, Any]) -> DispatcherSettings:
    """Utility helper to build :class:`DispatcherSettings` from a plain mapping."""

    try:
        return DispatcherSettings.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid dispatcher settings: {exc}") from exc


def read_document(path: Path) -> Any:
    """Parse a JSON or YAML file based on its suffix."""

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(text)
        if suffix in (".yaml", ".yml"):
            return yaml.load(text, Loader=_DocumentLoader)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to parse {path}: {exc}") from exc
    raise ConfigurationError(f"Unsupported file type: {path.suffix or path.name}")


def load_settings(path: Path | None = None) -> DispatcherSettings:
    """Load settings from ``path`` or return the defaults."""

    if path is None:
        return DispatcherSettings()

    data = read_document(path)
    if data is None:
        return DispatcherSettings()
    # Settings may live at the top level or under a "dispatcher" section
    section = data.get("dispatcher", data) if isinstance(data, Mapping) else data
    if not isinstance(section, Mapping):
        raise ConfigurationError("Settings file must contain a mapping")
    payload: Dict[str, Any] = dict(section)
    return build_settings_from_dict(payload)


__all__ = [
    "CONFIG_ENV_VAR",
    "DispatcherSettings",
    "build_settings_from_dict",
    "load_settings",
    "read_document",
]
