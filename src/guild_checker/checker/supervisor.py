"""Supervise one lookup task per server.

Each task runs:

1. acquire a permit from the pool
2. perform the lookup
3. release the permit (before any parsing)
4. classify the response into a `Found` or `Failed` outcome

`TaskSupervisor.drain` yields outcomes in completion order. Every spawned task
yields exactly one outcome; a task that crashes or is cancelled is reported as
`Failed` instead of being dropped.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable

from guild_checker.checker.admission import PermitPool
from guild_checker.checker.errors import LookupTransportError
from guild_checker.checker.lookup import LookupClient
from guild_checker.checker.outcomes import Failed, Found, Outcome, is_absent

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> None:
    raise ValueError(f"invalid JSON constant: {name}")


class TaskSupervisor:
    """Spawns, tracks and drains lookup tasks."""

    def __init__(self, client: LookupClient, pool: PermitPool) -> None:
        self._client = client
        self._pool = pool
        self._tasks: dict[asyncio.Task[Outcome], str] = {}
        self._order: dict[asyncio.Task[Outcome], int] = {}
        self._collected: set[asyncio.Task[Outcome]] = set()
        self._drained = 0

    @property
    def spawned(self) -> int:
        return len(self._tasks)

    @property
    def drained(self) -> int:
        return self._drained

    def spawn(self, identifier: str, display_name: str) -> asyncio.Task[Outcome]:
        """Schedule the lookup for one server. Must be called from a running loop."""
        task = asyncio.create_task(
            self.check(identifier, display_name),
            name=f"check-{identifier}",
        )
        self._order[task] = len(self._tasks)
        self._tasks[task] = identifier
        return task

    def spawn_all(self, servers: Iterable[tuple[str, str]]) -> int:
        count = 0
        for identifier, display_name in servers:
            self.spawn(identifier, display_name)
            count += 1
        logger.debug("Spawned lookup tasks", extra={"count": count})
        return count

    async def drain(self) -> AsyncIterator[Outcome]:
        """Yield one outcome per spawned task as tasks complete."""
        pending = self._uncollected()
        while pending:
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            # Same-step completions come out in submission order.
            for task in sorted(done, key=self._order.__getitem__):
                self._collected.add(task)
                self._drained += 1
                yield self._collect(task)
            # Pick up tasks spawned while draining.
            pending = self._uncollected()

    async def check(self, identifier: str, display_name: str) -> Outcome:
        """Run the full per-server protocol and return its outcome."""
        context = {"identifier": identifier, "display_name": display_name}

        try:
            async with self._pool.slot():
                response = await self._client.fetch(identifier)
        except LookupTransportError as e:
            logger.error("Lookup failed", extra={**context, "error": str(e)})
            return Failed(identifier, reason=str(e))

        if not response.is_success:
            logger.error(
                "Lookup api returned error",
                extra={**context, "status": response.status_code},
            )
            return Failed(identifier, reason=f"lookup api returned status {response.status_code}")

        logger.debug("Got response", extra={**context, "size": len(response.text.encode())})

        try:
            payload = json.loads(response.text, parse_constant=_reject_constant)
        except ValueError as e:
            logger.error("Couldn't parse lookup api response", extra={**context, "error": str(e)})
            return Failed(identifier, reason=f"couldn't parse lookup api response: {e}")

        if is_absent(payload):
            logger.info("Not found", extra=context)
        else:
            logger.info("Found", extra=context)

        return Found(identifier=identifier, display_name=display_name, payload=payload)

    def _uncollected(self) -> set[asyncio.Task[Outcome]]:
        return {task for task in self._tasks if task not in self._collected}

    def _collect(self, task: asyncio.Task[Outcome]) -> Outcome:
        identifier = self._tasks[task]

        if task.cancelled():
            logger.error("Lookup task was cancelled", extra={"identifier": identifier})
            return Failed(identifier, reason="cancelled")

        exc = task.exception()
        if exc is not None:
            logger.error(
                "Lookup task failed",
                extra={"identifier": identifier},
                exc_info=(type(exc), exc, exc.__traceback__),
            )
            return Failed(identifier, reason=f"{type(exc).__name__}: {exc}")

        return task.result()
