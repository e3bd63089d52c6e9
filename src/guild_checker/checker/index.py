"""Load the server index.

The index is a JSON object mapping server IDs to display names, e.g.::

    {"1234567890": "My Server", "42": "Acme"}

Any problem with the file is fatal and raised before a run starts.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from guild_checker.checker.errors import IndexLoadError

logger = logging.getLogger(__name__)


def _reject_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    seen: dict[str, Any] = {}
    for key, value in pairs:
        if key in seen:
            raise IndexLoadError(f"duplicate server id in index: {key!r}")
        seen[key] = value
    return seen


def parse_index(raw: str) -> dict[str, str]:
    """Parse index JSON text into an id -> name mapping ordered by id.

    Raises:
        IndexLoadError: If the text is not a JSON object of string -> string
            or contains duplicate keys.
    """

    try:
        data = json.loads(raw, object_pairs_hook=_reject_duplicates)
    except json.JSONDecodeError as e:
        raise IndexLoadError(f"couldn't parse index file: {e}") from e

    if not isinstance(data, dict):
        raise IndexLoadError(
            f"index file must contain a JSON object, got {type(data).__name__}"
        )

    for key, value in data.items():
        if not isinstance(value, str):
            raise IndexLoadError(
                f"server name for id {key!r} must be a string, got {type(value).__name__}"
            )

    # Stable submission order: sort by id.
    return {key: data[key] for key in sorted(data)}


def load_index(path: Path) -> dict[str, str]:
    """Read and parse the index file at `path`."""

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise IndexLoadError(f"couldn't read file {path}: {e}") from e

    servers = parse_index(raw)
    logger.info("Index loaded", extra={"path": str(path), "servers": len(servers)})
    return servers
