"""Command-line entry point: analyze a feedback file and print the results."""

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys
from typing import Any

from .batch_processor import BatchProcessor
from .config import resolve_config
from .exceptions import FeedbackBatchError
from .normalize import list_profiles
from .report import generate_report, write_report, write_table_html
from .telemetry import SimpleReporter, TelemetryContext

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Send feedback rows to an analysis endpoint and normalize the answers",
        prog="feedback-batch",
    )
    parser.add_argument("file", type=Path, help="CSV/TXT, XLSX/XLS or JSON feedback file")
    parser.add_argument("--endpoint", dest="endpoint_url", help="Analysis endpoint URL")
    parser.add_argument(
        "--mode",
        choices=("batch", "row"),
        help="Send header + chunks of rows, or one row per call",
    )
    parser.add_argument("--batch-size", type=int, help="Rows per call in batch mode")
    parser.add_argument("--max-rows", type=int, help="Process at most N data rows")
    parser.add_argument(
        "--profile",
        dest="field_profile",
        choices=list_profiles(),
        help="Canonical field set applied to responses",
    )
    parser.add_argument(
        "--payload-key",
        choices=("text", "data"),
        help="JSON body key carrying the text",
    )
    parser.add_argument(
        "--config-profile", help="Profile to load from pyproject.toml or the home file"
    )
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Abort on the first failed call instead of recording a diagnostic item",
    )
    parser.add_argument("--report", type=Path, help="Write the plain-text report here")
    parser.add_argument("--html", type=Path, help="Write an HTML table here")
    parser.add_argument(
        "--json", action="store_true", help="Print records as JSON instead of the report"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--telemetry", action="store_true", help="Print timings to stderr when done"
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    names = ("endpoint_url", "mode", "batch_size", "max_rows", "field_profile", "payload_key")
    overrides = {name: getattr(args, name) for name in names if getattr(args, name) is not None}
    if args.stop_on_error:
        overrides["continue_on_error"] = False
    return overrides


def _print_progress(completed: int, total: int) -> None:
    print(f"[{completed}/{total}] calls complete", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> int:
    """Run the CLI; returns the process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    reporter = SimpleReporter() if args.telemetry else None
    tele = TelemetryContext(reporter, enabled=True) if reporter else None

    try:
        config = resolve_config(_overrides(args), profile=args.config_profile).to_frozen()
        processor = BatchProcessor(
            config, telemetry_context=tele, on_progress=_print_progress
        )
        result = asyncio.run(processor.process_file(args.file))
    except (FeedbackBatchError, ValueError) as e:
        log.debug("Run failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        return 1

    records = result.records
    if args.json:
        print(json.dumps({"summary": result.summary(), "records": records}, indent=2))  # noqa: T201
    else:
        print(generate_report(records), end="")  # noqa: T201

    if args.report:
        write_report(records, args.report)
    if args.html:
        write_table_html(records, args.html)
    if reporter:
        print(reporter.get_report(), file=sys.stderr)  # noqa: T201
    return 0


if __name__ == "__main__":
    sys.exit(main())
