"""Run a full check: fan out, drain, aggregate."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from guild_checker.checker.admission import PermitPool
from guild_checker.checker.aggregator import Aggregate, ResultAggregator
from guild_checker.checker.config import RunConfig
from guild_checker.checker.lookup import HttpLookupClient, LookupClient
from guild_checker.checker.supervisor import TaskSupervisor

logger = logging.getLogger(__name__)


def build_client(config: RunConfig) -> LookupClient:
    return HttpLookupClient(
        config.api_base_url,
        timeout=config.request_timeout,
        max_connections=config.concurrency,
    )


async def run_checks(
    servers: Mapping[str, str],
    config: RunConfig,
    client: LookupClient | None = None,
) -> Aggregate:
    """Look up every server in `servers` and return the frozen aggregate.

    Args:
        servers: Server ID -> display name.
        config: Run configuration.
        client: Lookup client to use. When omitted, an HTTP client is built
            from `config` and closed at the end of the run.

    Returns:
        The aggregate, sorted by identifier if `config.sort_results` is set.
    """
    started = time.perf_counter()
    pool = PermitPool(config.concurrency)

    owned = client is None
    lookup = build_client(config) if client is None else client
    try:
        supervisor = TaskSupervisor(lookup, pool)
        supervisor.spawn_all(servers.items())
        aggregate = await ResultAggregator().consume(supervisor.drain())
    finally:
        if owned:
            await lookup.aclose()

    logger.info(
        "Processing finished",
        extra={
            "elapsed_seconds": round(time.perf_counter() - started, 3),
            "servers": len(servers),
            "successes": len(aggregate.successes),
            "failures": aggregate.failure_count,
            "peak_in_flight": pool.peak,
        },
    )

    if config.sort_results:
        return aggregate.sorted_by_identifier()
    return aggregate
