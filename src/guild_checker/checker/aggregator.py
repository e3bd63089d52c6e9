"""Fold task outcomes into a run-level aggregate.

`successes` keeps completion order, not index order. Callers that need a
stable order sort the frozen aggregate (`Aggregate.sorted_by_identifier`)
after the run.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable
from dataclasses import dataclass, replace

from guild_checker.checker.outcomes import Failed, Found, Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Aggregate:
    """Final result of a run."""

    successes: tuple[Found, ...] = ()
    failure_count: int = 0

    @property
    def total(self) -> int:
        return len(self.successes) + self.failure_count

    @property
    def compromised(self) -> tuple[Found, ...]:
        """Successes whose payload is not the absent sentinel."""
        return tuple(found for found in self.successes if not found.absent)

    def sorted_by_identifier(self) -> Aggregate:
        return replace(
            self,
            successes=tuple(sorted(self.successes, key=lambda found: found.identifier)),
        )


class ResultAggregator:
    """Accumulates outcomes from a single consuming coroutine."""

    def __init__(self) -> None:
        self._successes: list[Found] = []
        self._failure_count = 0
        self._result: Aggregate | None = None

    @property
    def finished(self) -> bool:
        return self._result is not None

    def record(self, outcome: Outcome) -> None:
        if self._result is not None:
            raise RuntimeError("aggregate is already finished")

        if isinstance(outcome, Found):
            self._successes.append(outcome)
        elif isinstance(outcome, Failed):
            self._failure_count += 1
        else:
            raise TypeError(f"unexpected outcome type: {type(outcome).__name__}")

    def finish(self) -> Aggregate:
        if self._result is None:
            self._result = Aggregate(
                successes=tuple(self._successes),
                failure_count=self._failure_count,
            )
            logger.debug(
                "Aggregate finished",
                extra={
                    "successes": len(self._result.successes),
                    "failures": self._result.failure_count,
                },
            )
        return self._result

    async def consume(self, outcomes: AsyncIterable[Outcome]) -> Aggregate:
        """Record every outcome from `outcomes`, then freeze the result."""
        async for outcome in outcomes:
            self.record(outcome)
        return self.finish()
