"""Command-line entry point invoked by each tool's hook configuration.

Usage:
  intentra hook --tool claude --event Stop < event.json
  intentra scan show scan_0123456789ab
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from intentra import config, observability
from intentra.config import AgentConfig
from intentra.errors import ConfigError, InvalidScanIdError, SessionBufferError
from intentra.logging_setup import configure_logging
from intentra.normalizers.registry import SUPPORTED_TOOLS
from intentra.pipeline import process_event
from intentra.scanner.archive import load_scan

logger = logging.getLogger("intentra.cli")


def _load_config() -> AgentConfig:
    try:
        return config.load_config()
    except ConfigError as exc:
        logger.error("%s; using defaults", exc)
        return AgentConfig(debug=config.debug_from_env())


def _run_hook(args: argparse.Namespace) -> int:
    cfg = _load_config()
    configure_logging(cfg.debug)
    observability.initialize()
    try:
        result = process_event(sys.stdin, args.tool, args.event, cfg)
        logger.debug("Hook %s/%s -> %s", args.tool, args.event, result.outcome.value)
    except SessionBufferError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        # Only buffer failures may disturb the host tool.
        logger.exception("Hook %s/%s failed", args.tool, args.event)
        return 0
    finally:
        observability.shutdown()
    return 0


def _run_scan_show(args: argparse.Namespace) -> int:
    try:
        scan = load_scan(args.scan_id)
    except InvalidScanIdError as exc:
        print(f"Invalid scan id: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Scan not found: {args.scan_id}", file=sys.stderr)
        return 1
    print(json.dumps(scan.build_api_payload(scan.device_id), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intentra")
    commands = parser.add_subparsers(dest="command", required=True)

    hook = commands.add_parser("hook", help="Process one hook event from stdin")
    hook.add_argument(
        "--tool",
        default="",
        help=f"Tool that fired the hook ({', '.join(SUPPORTED_TOOLS)}; others use generic handling)",
    )
    hook.add_argument("--event", default="", help="Native hook event name")
    hook.set_defaults(handler=_run_hook)

    scan = commands.add_parser("scan", help="Inspect locally saved scans (debug mode)")
    scan_commands = scan.add_subparsers(dest="scan_command", required=True)
    show = scan_commands.add_parser("show", help="Print a saved scan as its API payload")
    show.add_argument("scan_id")
    show.set_defaults(handler=_run_scan_show)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging(config.debug_from_env())
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
