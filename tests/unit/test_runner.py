"""End-to-end run tests with a scripted lookup client."""

from __future__ import annotations

import pytest

from guild_checker.checker.config import RunConfig
from guild_checker.checker.report import NO_MATCH_MESSAGE, render_json, render_plain
from guild_checker.checker.runner import run_checks


@pytest.mark.asyncio
async def test_all_absent_reports_no_match(scripted_client, servers, run_config) -> None:
    aggregate = await run_checks(servers, run_config, client=scripted_client())

    assert len(aggregate.successes) == len(servers)
    assert aggregate.failure_count == 0
    assert render_plain(aggregate) == f"{NO_MATCH_MESSAGE}\n"
    assert render_json(aggregate).strip() == "[]"


@pytest.mark.asyncio
async def test_single_match_is_reported(scripted_client, found_response, servers, run_config) -> None:
    servers = {**servers, "42": "Acme"}
    client = scripted_client(responses={"42": found_response({"id": "42"})})

    aggregate = await run_checks(servers, run_config, client=client)

    assert render_plain(aggregate) == "Acme (ID: 42) is compromised!\n"


@pytest.mark.asyncio
@pytest.mark.parametrize("failing", [("0", "1", "2"), ("3", "5", "9"), ("7", "8", "9")])
async def test_partial_failures_are_counted(
    scripted_client, transport_error, servers, failing
) -> None:
    client = scripted_client(
        responses={identifier: transport_error(identifier) for identifier in failing},
        delay=0.001,
    )

    aggregate = await run_checks(servers, RunConfig(concurrency=4), client=client)

    assert aggregate.failure_count == 3
    assert len(aggregate.successes) == 7
    assert aggregate.total == len(servers)
    assert not {f.identifier for f in aggregate.successes} & set(failing)


@pytest.mark.asyncio
async def test_reruns_have_identical_content(scripted_client, found_response, servers) -> None:
    responses = {"1": found_response(True), "4": found_response({"a": 1})}
    config = RunConfig(concurrency=5)

    first = await run_checks(servers, config, client=scripted_client(responses, delay=0.002))
    second = await run_checks(servers, config, client=scripted_client(responses, delay=0.002))

    def as_set(aggregate):
        return {(f.identifier, f.display_name, repr(f.payload)) for f in aggregate.successes}

    assert as_set(first) == as_set(second)
    assert first.failure_count == second.failure_count


@pytest.mark.asyncio
async def test_sort_results_orders_by_identifier(scripted_client, servers) -> None:
    aggregate = await run_checks(
        servers, RunConfig(concurrency=3, sort_results=True), client=scripted_client()
    )

    identifiers = [f.identifier for f in aggregate.successes]
    assert identifiers == sorted(identifiers)


@pytest.mark.asyncio
async def test_caller_owned_client_is_not_closed(scripted_client, servers, run_config) -> None:
    client = scripted_client()
    await run_checks(servers, run_config, client=client)

    assert client.closed is False


@pytest.mark.asyncio
async def test_built_client_is_closed(scripted_client, servers, run_config, monkeypatch) -> None:
    import guild_checker.checker.runner as runner

    client = scripted_client()
    monkeypatch.setattr(runner, "build_client", lambda config: client)

    aggregate = await run_checks(servers, run_config)

    assert client.closed is True
    assert aggregate.total == len(servers)


@pytest.mark.asyncio
async def test_empty_index(scripted_client, run_config) -> None:
    aggregate = await run_checks({}, run_config, client=scripted_client())

    assert aggregate.total == 0
    assert render_plain(aggregate) == f"{NO_MATCH_MESSAGE}\n"
