"""Declarative scenarios that drive a dispatcher from a YAML or JSON script.

A scenario is a mapping with a ``steps`` list. Listener steps (``on``,
``once``, ``listen``, ``after``) take a ``query`` and an optional ``label``;
emission steps (``emit``, ``emit_once``) take an ``identifier`` and optional
``data``::

    steps:
      - {op: on, query: {type: click}, label: clicks}
      - {op: emit, identifier: {type: click, x: 4}, data: first}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .config import read_document
from .events import DispatchContext, EventDispatcher
from .exceptions import ConfigurationError

LISTENER_OPERATIONS = ("on", "once", "listen", "after")
EMIT_OPERATIONS = ("emit", "emit_once")


@dataclass(slots=True)
class Invocation:
    """One recorded listener call."""

    label: str
    identifier: Any
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "identifier": self.identifier, "data": self.data}


@dataclass(slots=True)
class ScenarioStep:
    """A single operation applied to the dispatcher."""

    op: str
    target: Any
    label: str = ""
    limit: int | None = None
    data: Any = None
    stop: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], index: int = 0) -> "ScenarioStep":
        """Deserialize a :class:`ScenarioStep` from ``payload``."""

        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"Step {index} must be a mapping")
        op = payload.get("op")
        if op not in LISTENER_OPERATIONS + EMIT_OPERATIONS:
            raise ConfigurationError(f"Step {index} has an unknown op: {op!r}")

        key = "query" if op in LISTENER_OPERATIONS else "identifier"
        if key not in payload:
            raise ConfigurationError(f"Step {index} ({op}) is missing {key!r}")

        limit = payload.get("limit")
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int)):
            raise ConfigurationError(f"Step {index} limit must be an integer")

        return cls(
            op=str(op),
            target=payload[key],
            label=str(payload.get("label") or f"listener-{index}"),
            limit=limit,
            data=payload.get("data"),
            stop=bool(payload.get("stop", False)),
        )


@dataclass(slots=True)
class Scenario:
    """An ordered list of steps run against one dispatcher."""

    steps: List[ScenarioStep] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Scenario":
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Scenario must be a mapping with a 'steps' list")
        steps = payload.get("steps", [])
        if not isinstance(steps, list):
            raise ConfigurationError("Scenario steps must be a list")
        return cls([ScenarioStep.from_dict(step, index) for index, step in enumerate(steps)])

    @classmethod
    def from_path(cls, path: Path) -> "Scenario":
        """Load a scenario from a JSON or YAML file at ``path``."""

        return cls.from_dict(read_document(path))

    def run(self, dispatcher: EventDispatcher | None = None) -> List[Invocation]:
        """Apply every step and return the listener calls in order."""

        dispatcher = dispatcher if dispatcher is not None else EventDispatcher()
        invocations: List[Invocation] = []
        for step in self.steps:
            _apply(step, dispatcher, invocations)
        return invocations


def _recorder(step: ScenarioStep, invocations: List[Invocation]):
    def listener(context: DispatchContext, identifier: Any, data: Any) -> None:
        invocations.append(Invocation(step.label, identifier, data))
        if step.stop:
            context.stop()

    return listener


def _apply(step: ScenarioStep, dispatcher: EventDispatcher, invocations: List[Invocation]) -> None:
    if step.op == "on":
        dispatcher.on(step.target, _recorder(step, invocations))
    elif step.op == "once":
        dispatcher.once(step.target, _recorder(step, invocations))
    elif step.op == "listen":
        dispatcher.listen(step.target, step.limit, _recorder(step, invocations))
    elif step.op == "after":
        dispatcher.after(
            step.target,
            lambda: invocations.append(Invocation(step.label, step.target)),
        )
    elif step.op == "emit":
        dispatcher.emit(step.target, step.data)
    else:
        dispatcher.emit_once(step.target, step.data)


__all__ = ["Invocation", "Scenario", "ScenarioStep"]
