"""Test configuration and fixtures."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import pytest

from guild_checker.checker.config import RunConfig
from guild_checker.checker.errors import LookupTransportError
from guild_checker.checker.lookup import LookupClient, LookupResponse

ABSENT = LookupResponse(status_code=200, text="false")


class ScriptedLookupClient(LookupClient):
    """Lookup client returning canned responses and recording call intervals."""

    def __init__(
        self,
        responses: dict[str, LookupResponse | BaseException] | None = None,
        default: LookupResponse = ABSENT,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.default = default
        self.delay = delay
        self.calls: list[str] = []
        self.intervals: list[tuple[float, float]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch(self, identifier: str) -> LookupResponse:
        loop = asyncio.get_running_loop()
        start = loop.time()
        self.calls.append(identifier)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
            self.intervals.append((start, loop.time()))

        result = self.responses.get(identifier, self.default)
        if isinstance(result, BaseException):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


def found_response(payload: Any) -> LookupResponse:
    return LookupResponse(status_code=200, text=json.dumps(payload))


def transport_error(identifier: str) -> LookupTransportError:
    return LookupTransportError(identifier, "connection refused")


@pytest.fixture
def scripted_client() -> type[ScriptedLookupClient]:
    """Provide the scripted lookup client class."""
    return ScriptedLookupClient


@pytest.fixture(name="found_response")
def found_response_fixture():
    """Provide a builder for successful JSON responses."""
    return found_response


@pytest.fixture(name="transport_error")
def transport_error_fixture():
    """Provide a builder for transport errors."""
    return transport_error


@pytest.fixture
def servers() -> dict[str, str]:
    """Provide a small index of ten servers."""
    return {str(n): f"Server {n}" for n in range(10)}


@pytest.fixture
def index_file(tmp_path: Path, servers: dict[str, str]) -> Path:
    """Provide an index.json on disk."""
    path = tmp_path / "index.json"
    path.write_text(json.dumps(servers), encoding="utf-8")
    return path


@pytest.fixture
def run_config() -> RunConfig:
    """Provide a test run configuration."""
    return RunConfig(concurrency=2, api_base_url="https://lookup.test")


@pytest.fixture
def restore_root_logger():
    """Undo `configure_logging` changes to the root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
