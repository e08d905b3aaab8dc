"""Queryable event dispatcher with replay and duplicate suppression."""

from .config import DispatcherSettings, build_settings_from_dict, load_settings
from .events import DispatchContext, EventDispatcher, ListenerEntry
from .exceptions import (
    ConfigurationError,
    DispatcherError,
    InvalidIdentifierError,
    ListenerError,
    ReentrantEmitError,
)
from .identifiers import Descriptor, Name, to_identifier
from .matching import loose_equals, match_query

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Descriptor",
    "DispatchContext",
    "DispatcherError",
    "DispatcherSettings",
    "EventDispatcher",
    "InvalidIdentifierError",
    "ListenerEntry",
    "ListenerError",
    "Name",
    "ReentrantEmitError",
    "build_settings_from_dict",
    "load_settings",
    "loose_equals",
    "match_query",
    "to_identifier",
]
