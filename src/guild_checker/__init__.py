"""Guild Checker.

Checks a list of Discord servers against a remote lookup service:
- configuration loaded from `.env`
- structured logging
- bounded-concurrency lookups with per-request failure isolation
"""

__version__ = "0.1.0"

from guild_checker.checker.config import CheckerSettings

__all__ = ["__version__", "CheckerSettings"]
