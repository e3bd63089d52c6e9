"""Render the aggregate and write it to a sink."""

from __future__ import annotations

import sys
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path
from typing import IO

from pydantic import TypeAdapter

from guild_checker.checker.aggregator import Aggregate
from guild_checker.checker.config import OutputFormat
from guild_checker.checker.outcomes import Found

NO_MATCH_MESSAGE = "No servers matched, you may not be in the dataset"

_FOUND_LIST = TypeAdapter(list[Found])


def render_plain(aggregate: Aggregate) -> str:
    """One line per compromised server, or the no-match message."""

    lines = [
        f"{found.display_name} (ID: {found.identifier}) is compromised!"
        for found in aggregate.compromised
    ]
    if not lines:
        lines = [NO_MATCH_MESSAGE]
    return "\n".join(lines) + "\n"


def render_json(aggregate: Aggregate, include_absent: bool = False) -> str:
    """Pretty-printed JSON array of found entries.

    Entries whose payload is the absent sentinel are left out unless
    `include_absent` is set.
    """

    entries = aggregate.successes if include_absent else aggregate.compromised
    return _FOUND_LIST.dump_json(list(entries), indent=2).decode("utf-8") + "\n"


def render(
    aggregate: Aggregate,
    output_format: OutputFormat,
    include_absent: bool = False,
) -> str:
    if output_format is OutputFormat.JSON:
        return render_json(aggregate, include_absent=include_absent)
    return render_plain(aggregate)


def open_sink(path: Path | None) -> AbstractContextManager[IO[str]]:
    """Open the report target now, so an unwritable path fails before the run.

    A file target is truncated; `None` means stdout, which is left open.
    """

    if path is None:
        return nullcontext(sys.stdout)
    return path.open("w", encoding="utf-8")


def write_report(sink: IO[str], text: str) -> None:
    sink.write(text)
    sink.flush()


def report_failures(failure_count: int, stream: IO[str] | None = None) -> None:
    """Write the failure count to the diagnostic stream (stderr by default)."""

    print(f"Errors: {failure_count}", file=stream if stream is not None else sys.stderr)
