"""Command line interface for exercising a query-events dispatcher."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import CONFIG_ENV_VAR, DispatcherSettings, load_settings
from .events import EventDispatcher
from .exceptions import DispatcherError
from .matching import match_query
from .scenario import Invocation, Scenario


def resolve_settings(path: Path | None) -> DispatcherSettings:
    """Load settings from ``path``, ``$QUERY_EVENTS_CONFIG`` or the defaults."""

    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else None
    return load_settings(path)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="query-events", description="Queryable event dispatcher tools")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run a YAML or JSON scenario against a fresh dispatcher")
    run_parser.add_argument("scenario", type=Path, help="Path to the scenario file")
    run_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to a dispatcher settings file (default: ${CONFIG_ENV_VAR})",
    )
    run_parser.set_defaults(handler=_run_command)

    match_parser = subparsers.add_parser("match", help="Check whether a candidate satisfies a pattern")
    match_parser.add_argument("candidate", help="JSON string or object emitted")
    match_parser.add_argument("pattern", help="JSON string or object listened for")
    match_parser.set_defaults(handler=_match_command)

    return parser


def _render_invocations(console: Console, invocations: List[Invocation]) -> None:
    table = Table(title="Invocations")
    table.add_column("#", justify="right")
    table.add_column("Listener")
    table.add_column("Identifier")
    table.add_column("Data")
    for number, invocation in enumerate(invocations, start=1):
        table.add_row(
            str(number),
            escape(invocation.label),
            escape(json.dumps(invocation.identifier, default=str)),
            escape(json.dumps(invocation.data, default=str)),
        )
    console.print(table)


def _run_command(arguments: argparse.Namespace, console: Console) -> int:
    settings = resolve_settings(arguments.config)
    scenario = Scenario.from_path(arguments.scenario)
    dispatcher = EventDispatcher(settings)
    invocations = scenario.run(dispatcher)

    _render_invocations(console, invocations)
    names = ", ".join(sorted(dispatcher.seen_names)) or "-"
    console.print(f"seen names: {escape(names)}")
    console.print(f"history: {len(dispatcher.history)} descriptor(s)")
    return 0


def _parse_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # Bare words are treated as names
        return raw


def _match_command(arguments: argparse.Namespace, console: Console) -> int:
    matched = match_query(_parse_json(arguments.candidate), _parse_json(arguments.pattern))
    console.print("match" if matched else "no match")
    return 0 if matched else 1


def main(argv: list[str] | None = None) -> int:
    """CLI entry point used by ``query-events`` and ``python -m query_events.cli``."""

    parser = _build_parser()
    arguments = parser.parse_args(argv)
    handler = getattr(arguments, "handler", None)
    if handler is None:
        parser.error("No command given")

    console = Console()
    try:
        return handler(arguments, console)
    except (DispatcherError, FileNotFoundError) as exc:
        Console(stderr=True).print(f"[bold red]error:[/] {escape(str(exc))}")
        return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    raise SystemExit(main())
