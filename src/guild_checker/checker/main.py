"""CLI entrypoint for the guild checker.

Check if any of the servers you are in is present in the lookup service's
database.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from guild_checker import __version__
from guild_checker.checker.config import CheckerSettings, OutputFormat, RunConfig
from guild_checker.checker.errors import IndexLoadError
from guild_checker.checker.index import load_index
from guild_checker.checker.logging import configure_logging
from guild_checker.checker.report import open_sink, render, report_failures, write_report
from guild_checker.checker.runner import run_checks

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guild-checker",
        description="Check if any of the servers you are in is present in spy.pet's database",
    )
    parser.add_argument("--version", action="version", version=f"guild-checker {__version__}")
    parser.add_argument(
        "-c",
        "--concurrency",
        type=_positive_int,
        default=None,
        help=(
            "Maximum number of concurrent requests (default: 1). "
            "Setting this higher than 1 may get you rate limited"
        ),
    )
    parser.add_argument(
        "-i",
        "--index-path",
        type=Path,
        default=None,
        help="Path to index.json containing server names and IDs (default: index.json)",
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="output_format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.PLAIN.value,
        help="Output format: plain (human readable) or json (complete output)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output to file instead of stdout",
    )
    parser.add_argument(
        "--sort",
        action="store_true",
        help="Sort results by server ID instead of completion order",
    )
    parser.add_argument(
        "--include-absent",
        action="store_true",
        help="In json output, also list servers the api reported as not present",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        help="Per-request timeout in seconds (default: no timeout)",
    )
    return parser


def build_run_config(args: argparse.Namespace, settings: CheckerSettings) -> RunConfig:
    """Merge CLI flags over settings into one immutable run configuration."""

    return RunConfig(
        concurrency=args.concurrency if args.concurrency is not None else settings.concurrency,
        index_path=args.index_path if args.index_path is not None else settings.index_path,
        output_format=OutputFormat(args.output_format),
        output_path=args.output,
        sort_results=args.sort,
        include_absent=args.include_absent,
        api_base_url=settings.api_base_url,
        request_timeout=args.timeout if args.timeout is not None else settings.request_timeout,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = CheckerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    config = build_run_config(args, settings)

    try:
        servers = load_index(config.index_path)
    except IndexLoadError as e:
        logger.error("Couldn't load index", extra={"path": str(config.index_path)})
        print(str(e), file=sys.stderr)
        return 1

    try:
        sink = open_sink(config.output_path)
    except OSError as e:
        logger.error("Couldn't open output", extra={"path": str(config.output_path)})
        print(f"couldn't open {config.output_path}: {e}", file=sys.stderr)
        return 1

    try:
        with sink as out:
            aggregate = asyncio.run(run_checks(servers, config))
            write_report(out, render(aggregate, config.output_format, config.include_absent))
    except OSError:
        logger.exception("Couldn't write to output")
        return 1
    except Exception:
        logger.exception("Run failed")
        return 1

    report_failures(aggregate.failure_count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
