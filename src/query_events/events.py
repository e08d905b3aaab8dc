"""Queryable event dispatcher with replay of past emissions.

Listeners register against a name (exact match) or a structural pattern
(partial match against an attribute mapping, see :mod:`query_events.matching`).
Every emission is remembered, so :meth:`EventDispatcher.after` can fire for
events that already happened and :meth:`EventDispatcher.emit_once` can drop
duplicates.

Dispatch is synchronous. Each pass walks a snapshot of the registry taken
when the pass starts: listeners registered by a callback wait for the next
emission, and entries used up by a nested ``emit`` are skipped. Exhausted
entries are pruned once the pass is over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, List, Protocol, Set, Tuple

from .config import DispatcherSettings
from .exceptions import ListenerError, ReentrantEmitError
from .identifiers import Descriptor, Identifier, Name, to_identifier, to_identifiers
from .logging import get_logger, log_event
from .matching import match_query
from .telemetry import MetricsCollector

LOGGER = get_logger("dispatcher")

DoneCallback = Callable[[], Any]


class Listener(Protocol):
    """Callable signature for event listeners."""

    def __call__(self, context: "DispatchContext", identifier: Any, data: Any) -> Any:  # pragma: no cover - Protocol
        ...


@dataclass(slots=True)
class ListenerEntry:
    """A registered listener and the number of calls it has left."""

    query: Identifier
    callback: Listener
    remaining: int | None = None

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    def consume(self) -> None:
        if self.remaining:
            self.remaining -= 1


@dataclass(slots=True)
class DispatchContext:
    """Per-emission state handed to every listener of one ``emit`` call."""

    identifier: Any
    data: Any = None
    prevented: bool = False
    invoked: int = 0
    errors: List[ListenerError] = field(default_factory=list)

    def stop(self) -> None:
        """Skip the remaining listeners and the completion callback."""

        self.prevented = True

    @property
    def stopped(self) -> bool:
        return self.prevented


def _without_arguments(callback: Callable[[], Any]) -> Listener:
    @wraps(callback)
    def listener(context: DispatchContext, identifier: Any, data: Any) -> Any:
        return callback()

    return listener


class EventDispatcher:
    """Registers listeners by name or query and dispatches emissions to them."""

    def __init__(
        self,
        settings: DispatcherSettings | None = None,
        telemetry: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings or DispatcherSettings()
        self.telemetry = telemetry or MetricsCollector()
        self._named: Dict[str, List[ListenerEntry]] = {}
        self._structural: List[ListenerEntry] = []
        self._seen_names: Set[str] = set()
        self._history: List[Descriptor] = []
        self._depth = 0

    # Registration -----------------------------------------------------

    def listen(self, query: Any, limit: int | None, callback: Listener) -> None:
        """Register ``callback`` for each query in ``query``.

        ``limit`` is the number of times the callback may fire; ``None`` or a
        value below one means unlimited.
        """

        if not callable(callback):
            raise TypeError("callback must be callable")
        remaining = limit if limit is not None and limit > 0 else None
        identifiers = to_identifiers(query)
        for identifier in identifiers:
            entry = ListenerEntry(query=identifier, callback=callback, remaining=remaining)
            if isinstance(identifier, Name):
                self._named.setdefault(identifier.value, []).append(entry)
            else:
                self._structural.append(entry)
        LOGGER.debug("Registered %d listener(s) limit=%s", len(identifiers), remaining)

    def on(self, query: Any, callback: Listener | None = None) -> Any:
        """Listen every time; usable as a decorator when ``callback`` is omitted."""

        return self._register(query, None, callback)

    def once(self, query: Any, callback: Listener | None = None) -> Any:
        """Listen a single time; usable as a decorator when ``callback`` is omitted."""

        return self._register(query, 1, callback)

    def _register(self, query: Any, limit: int | None, callback: Listener | None) -> Any:
        if callback is None:

            def decorator(function: Listener) -> Listener:
                self.listen(query, limit, function)
                return function

            return decorator
        self.listen(query, limit, callback)
        return None

    def after(self, query: Any, callback: Callable[[], Any]) -> None:
        """Call ``callback`` now if ``query`` already happened, else when it does.

        The callback receives no arguments in either case.
        """

        target = to_identifier(query)
        if self.has_seen(target):
            self.telemetry.increment("after.immediate")
            callback()
            return
        self.telemetry.increment("after.deferred")
        self.on(target, _without_arguments(callback))

    # Emission ---------------------------------------------------------

    def emit(self, identifier: Any, data: Any = None, done: DoneCallback | None = None) -> DispatchContext:
        """Dispatch ``identifier`` to every matching listener.

        ``emit(identifier, done)`` is accepted as a shorthand: a callable
        second argument with no third one is the completion callback.
        """

        if done is None and callable(data):
            done, data = data, None
        event = to_identifier(identifier)
        if self._depth and not self.settings.allow_reentrant_emit:
            raise ReentrantEmitError(f"Cannot emit {event.raw!r} while another emission is running")

        context = DispatchContext(identifier=event.raw, data=data)
        self._depth += 1
        try:
            with self.telemetry.time("emit"):
                if isinstance(event, Name):
                    self._seen_names.add(event.value)
                    self.telemetry.increment("emit.name")
                    entries = self._named.get(event.value)
                    if entries:
                        self._run_pass(
                            entries,
                            context,
                            lambda entry: True,
                            honor_stop=self.settings.named_dispatch_honors_stop,
                        )
                else:
                    self._history.append(event)
                    self.telemetry.increment("emit.descriptor")
                    self._run_pass(
                        self._structural,
                        context,
                        lambda entry: match_query(event, entry.query),
                        honor_stop=True,
                    )
        finally:
            self._depth -= 1

        if self.settings.log_emissions:
            log_event(
                LOGGER,
                "emitted",
                {"identifier": event.raw, "invoked": context.invoked, "stopped": context.prevented},
            )
        if done is not None and not context.prevented:
            done()
        return context

    def emit_once(
        self, identifier: Any, data: Any = None, done: DoneCallback | None = None
    ) -> DispatchContext | None:
        """Emit ``identifier`` unless it (or a matching descriptor) was emitted before."""

        event = to_identifier(identifier)
        if isinstance(event, Name):
            duplicate = event.value in self._seen_names
        else:
            duplicate = any(match_query(event, past) for past in self._history)
        if duplicate:
            self.telemetry.increment("emit_once.suppressed")
            LOGGER.debug("Suppressed duplicate emission of %r", event.raw)
            return None
        return self.emit(event, data, done)

    def _run_pass(
        self,
        entries: List[ListenerEntry],
        context: DispatchContext,
        matches: Callable[[ListenerEntry], bool],
        honor_stop: bool,
    ) -> None:
        exhausted = 0
        try:
            for entry in tuple(entries):
                if honor_stop and context.prevented:
                    break
                # Used up by a nested emission earlier in this pass
                if entry.exhausted:
                    continue
                if not matches(entry):
                    continue
                self._invoke(entry, context)
                entry.consume()
                if entry.exhausted:
                    exhausted += 1
        finally:
            if exhausted:
                before = len(entries)
                entries[:] = [entry for entry in entries if not entry.exhausted]
                pruned = before - len(entries)
                self.telemetry.increment("listener.pruned", pruned)
                LOGGER.debug(
                    "Pruned exhausted listeners",
                    extra={"identifier": context.identifier, "pruned": pruned, "invoked": context.invoked},
                )

    def _invoke(self, entry: ListenerEntry, context: DispatchContext) -> None:
        context.invoked += 1
        self.telemetry.increment("listener.invoked")
        if not self.settings.isolate_listener_errors:
            entry.callback(context, context.identifier, context.data)
            return
        try:
            entry.callback(context, context.identifier, context.data)
        except ReentrantEmitError:
            raise
        except Exception as exc:
            error = ListenerError(entry.callback, context.identifier)
            error.__cause__ = exc
            context.errors.append(error)
            self.telemetry.increment("listener.failed")
            LOGGER.exception("Listener failed", extra={"identifier": context.identifier})

    # Introspection ----------------------------------------------------

    def match_query(self, candidate: Any, pattern: Any) -> bool:
        """Return whether ``candidate`` satisfies ``pattern``."""

        return match_query(candidate, pattern)

    def has_seen(self, query: Any) -> bool:
        """Return whether an emission matching ``query`` already happened."""

        target = to_identifier(query)
        if isinstance(target, Name):
            return target.value in self._seen_names
        return any(match_query(past, target) for past in self._history)

    def listeners(self, query: Any) -> Tuple[Listener, ...]:
        """Return the live callbacks registered for exactly ``query``."""

        target = to_identifier(query)
        if isinstance(target, Name):
            return tuple(entry.callback for entry in self._named.get(target.value, ()))
        return tuple(
            entry.callback
            for entry in self._structural
            if entry.query is target or entry.query.raw == target.raw
        )

    @property
    def seen_names(self) -> frozenset[str]:
        return frozenset(self._seen_names)

    @property
    def history(self) -> Tuple[Any, ...]:
        return tuple(descriptor.raw for descriptor in self._history)


__all__ = ["DispatchContext", "EventDispatcher", "Listener", "ListenerEntry"]
