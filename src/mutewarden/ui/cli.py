# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
import threading
from datetime import date
from signal import SIGHUP, SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from mutewarden.app import (
    build_runtime,
    check_entity,
    classify_date,
    explain_entity,
    query_state,
    run_heartbeat,
    set_state,
    trigger_heartbeat,
)
from mutewarden.config import ConfigurationError, configure_logging, load_app_config
from mutewarden.domain.reconciliation import Outcome

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from mutewarden.app import HolidayLookup, Runtime
    from mutewarden.domain.heartbeat import EntityCheck, EntityPreview
    from mutewarden.domain.model import MuteState

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep chat groups muted on schedule")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to the TOML configuration file (defaults to $MUTEWARDEN_CONFIG)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Run the heartbeat loop (SIGHUP reloads the schedule)")
    subparsers.add_parser("tick", help="Run one heartbeat for every entity now")

    check = subparsers.add_parser("check", help="Reconcile one entity now")
    check.add_argument("entity", type=str, help="Entity (group) id")

    explain = subparsers.add_parser("explain", help="Show why an entity should be muted now")
    explain.add_argument("entity", type=str, help="Entity (group) id")

    state = subparsers.add_parser("state", help="Show persisted mute state")
    state.add_argument("entity", type=str, nargs="?", help="Entity (group) id")

    holiday = subparsers.add_parser("holiday", help="Classify a date")
    holiday.add_argument("date", type=str, help="ISO date, e.g. 2025-10-01")
    holiday.add_argument(
        "--method",
        choices=("offline", "online", "hybrid", "both"),
        help="Lookup method (defaults to the configured one)",
    )

    manual = subparsers.add_parser("set", help="Manually mute or unmute an entity")
    manual.add_argument("entity", type=str, help="Entity (group) id")
    manual.add_argument("state", choices=("mute", "unmute"))

    return parser.parse_args(list(argv))


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _format_state(state: MuteState) -> str:
    label = "muted" if state.muted else "unmuted"
    return (
        f"{state.entity_id}: {label} (rule group {state.last_applied_rule_group_id}, "
        f"updated_at_ms={state.updated_at_ms})"
    )


def _format_check(check: EntityCheck) -> str:
    parts = [f"{check.entity_id}: {check.outcome}"]
    if check.classification is not None and not check.classification.is_normal:
        parts.append(f"calendar={check.classification.label or 'special day'}")
    if check.expected is not None:
        parts.append(check.expected.describe())
    if check.result is not None and check.result.backend:
        parts.append(f"via {check.result.backend}")
    if check.error:
        parts.append(f"error: {check.error}")
    return " | ".join(parts)


def _format_preview(preview: EntityPreview) -> str:
    parts = [preview.entity_id]
    if preview.classification is not None and not preview.classification.is_normal:
        parts.append(f"calendar={preview.classification.label or 'special day'}")
    if preview.expected is not None:
        parts.append(f"expected {preview.expected.describe()}")
        if preview.current is None:
            parts.append("no persisted state")
        else:
            parts.append(f"persisted {'muted' if preview.current.muted else 'unmuted'}")
        parts.append("would act" if preview.would_act else "aligned")
    if preview.error:
        parts.append(f"error: {preview.error}")
    return " | ".join(parts)


def _format_lookup(lookup: HolidayLookup) -> str:
    if lookup.error is not None:
        return f"{lookup.source}: error: {lookup.error}"
    classification = lookup.classification
    if classification is None or classification.is_normal:
        return f"{lookup.source}: normal day"
    kind = "holiday" if classification.is_holiday else "compensation workday"
    if classification.is_holiday and classification.is_compensation_workday:
        kind = "holiday and compensation workday"
    label = f" ({classification.label})" if classification.label else ""
    return f"{lookup.source}: {kind}{label}"


def _run_loop(runtime: Runtime) -> None:
    stop = threading.Event()
    reload_requested = threading.Event()

    def stop_handler(signal_received: int, _frame: FrameType | None) -> None:
        log.info("Stopping heartbeat (signal %s)", signal_received)
        stop.set()

    def reload_handler(_signal_received: int, _frame: FrameType | None) -> None:
        log.info("Configuration reload requested")
        reload_requested.set()

    signal(SIGINT, stop_handler)
    signal(SIGTERM, stop_handler)
    signal(SIGHUP, reload_handler)
    run_heartbeat(runtime, stop, reload_requested)


def _dispatch(runtime: Runtime, args: argparse.Namespace) -> int:
    if args.command == "run":
        _run_loop(runtime)
        return 0
    if args.command == "tick":
        report = trigger_heartbeat(runtime)
        for check in report.checks:
            print(_format_check(check))
        return 1 if report.count(Outcome.FAILED) else 0
    if args.command == "check":
        check = check_entity(runtime, args.entity)
        print(_format_check(check))
        return 1 if check.outcome is Outcome.FAILED else 0
    if args.command == "explain":
        preview = explain_entity(runtime, args.entity)
        print(_format_preview(preview))
        return 1 if preview.error else 0
    if args.command == "state":
        states = query_state(runtime, args.entity)
        if not states:
            print("no persisted state")
        for state in states:
            print(_format_state(state))
        return 0
    if args.command == "holiday":
        day = _parse_date(args.date)
        for lookup in classify_date(runtime, day, args.method):
            print(f"{day.isoformat()} {_format_lookup(lookup)}")
        return 0
    if args.command == "set":
        result = set_state(runtime, args.entity, muted=args.state == "mute")
        if result.outcome is Outcome.FAILED:
            print(f"{args.entity}: failed: {result.error}")
            return 1
        print(f"{args.entity}: {args.state}d via {result.backend}")
        return 0
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(verbose=parsed_args.verbose)
        config = load_app_config(parsed_args.config)
        if parsed_args.command == "holiday":
            _parse_date(parsed_args.date)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        runtime = build_runtime(config)
        exit_code = _dispatch(runtime, parsed_args)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
