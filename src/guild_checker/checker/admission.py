"""Admission control for outbound requests.

A `PermitPool` hands out at most `capacity` permits at a time. A task holds a
permit only for the duration of its network call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from guild_checker.checker.errors import PermitPoolClosed

logger = logging.getLogger(__name__)


class Permit:
    """One unit of admission capacity, released exactly once."""

    __slots__ = ("_pool", "_released")

    def __init__(self, pool: PermitPool) -> None:
        self._pool = pool
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            raise RuntimeError("permit already released")
        self._released = True
        self._pool._return_slot()


class PermitPool:
    """Counting permit pool with fixed capacity.

    Wraps `asyncio.Semaphore` and tracks how many permits are out so the
    admission bound can be observed.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError(f"permit pool capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._closed = False
        self._outstanding = 0
        self._peak = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def outstanding(self) -> int:
        """Permits currently acquired and not yet released."""
        return self._outstanding

    @property
    def peak(self) -> int:
        """Highest number of simultaneously outstanding permits."""
        return self._peak

    @property
    def closed(self) -> bool:
        return self._closed

    async def acquire(self) -> Permit:
        """Wait for a free slot and take ownership of it.

        Raises:
            PermitPoolClosed: If the pool is closed before or while waiting.
        """
        if self._closed:
            raise PermitPoolClosed("couldn't acquire permit: pool is closed")

        await self._semaphore.acquire()
        if self._closed:
            # Pass the wakeup on to the next waiter.
            self._semaphore.release()
            raise PermitPoolClosed("couldn't acquire permit: pool is closed")

        self._outstanding += 1
        self._peak = max(self._peak, self._outstanding)
        return Permit(self)

    def release(self, permit: Permit) -> None:
        if permit._pool is not self:
            raise ValueError("permit belongs to a different pool")
        permit.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[Permit]:
        """Hold a permit for the body of an `async with` block."""
        permit = await self.acquire()
        try:
            yield permit
        finally:
            if not permit.released:
                permit.release()

    def close(self) -> None:
        """Tear the pool down, failing pending and future acquisitions."""
        if self._closed:
            return
        self._closed = True
        # Wake waiters; each one re-releases before raising, so all of them
        # eventually observe the closed flag.
        self._semaphore.release()
        logger.debug("Permit pool closed", extra={"outstanding": self._outstanding})

    def _return_slot(self) -> None:
        self._outstanding -= 1
        self._semaphore.release()
