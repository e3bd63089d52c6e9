"""Console script entrypoint.

The CLI itself lives in `guild_checker.checker.main`.
"""

from __future__ import annotations

from guild_checker.checker.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
