"""Custom exceptions raised by query-events."""

from __future__ import annotations

from typing import Any


class DispatcherError(RuntimeError):
    """Base error for all dispatcher related exceptions."""


class ConfigurationError(DispatcherError):
    """Raised when settings or scenario files are invalid or unreadable."""


class InvalidIdentifierError(DispatcherError):
    """Raised when an identifier or query is neither a name nor a mapping."""


class ReentrantEmitError(DispatcherError):
    """Raised when a listener emits while reentrant dispatch is disabled."""


class ListenerError(DispatcherError):
    """Wraps an exception raised by a listener during an isolated pass."""

    def __init__(self, listener: Any, identifier: Any, message: str | None = None) -> None:
        self.listener = listener
        self.identifier = identifier
        name = getattr(listener, "__qualname__", None) or repr(listener)
        super().__init__(message or f"Listener {name} failed for {identifier!r}")
