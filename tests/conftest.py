from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from cloudwatchlogs import LogDestination, LogEvent


class PutCall:
    def __init__(self, token: str | None, events: Sequence[LogEvent]) -> None:
        self.token = token
        self.messages = [e.message for e in events]


class FakeDestination(LogDestination):
    """In-memory destination with failure injection and optional gating.

    Tokens returned by ``put_events`` are ``"t1"``, ``"t2"``, ... counting
    successful calls only.
    """

    def __init__(self, initial_token: str | None = "t0") -> None:
        self.initial_token = initial_token
        self.calls: list[PutCall] = []
        self.delivered: list[str] = []
        self.group_error: Exception | None = None
        self.stream_error: Exception | None = None
        self.put_errors: list[Exception] = []
        self.stream_gate: asyncio.Event | None = None
        self.put_gate: asyncio.Event | None = None
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._successes = 0

    async def ensure_group(self, group_name: str) -> None:
        if self.group_error is not None:
            raise self.group_error

    async def ensure_stream(self, group_name: str, stream_name: str) -> str | None:
        if self.stream_gate is not None:
            await self.stream_gate.wait()
        if self.stream_error is not None:
            raise self.stream_error
        return self.initial_token

    async def put_events(
        self,
        group_name: str,
        stream_name: str,
        sequence_token: str | None,
        events: Sequence[LogEvent],
    ) -> str | None:
        self.calls.append(PutCall(sequence_token, events))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.put_gate is not None:
                await self.put_gate.wait()
            else:
                await asyncio.sleep(0)
            if self.put_errors:
                raise self.put_errors.pop(0)
        finally:
            self.in_flight -= 1
        self._successes += 1
        self.delivered.extend(e.message for e in events)
        return f"t{self._successes}"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def destination() -> FakeDestination:
    return FakeDestination()


@pytest.fixture
def errors() -> list[Any]:
    return []
