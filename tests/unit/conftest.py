"""Shared fakes for unit tests."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest


class FakeClock:
    """Monotonic clock advanced only by FakeClock.sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.delays: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class FakeAuthenticator:
    """Authenticator with a fixed token and a counted in-flight slot."""

    def __init__(self, authenticated: bool = True) -> None:
        self.authenticated = authenticated
        self.authenticate = AsyncMock(
            return_value=SimpleNamespace(access_token="test-token", is_valid=True)
        )
        self.revoke = AsyncMock()
        self.held = 0
        self.max_held = 0

    def is_authenticated(self) -> bool:
        return self.authenticated

    @asynccontextmanager
    async def in_flight(self):
        self.held += 1
        self.max_held = max(self.max_held, self.held)
        try:
            yield
        finally:
            self.held -= 1


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_auth() -> FakeAuthenticator:
    return FakeAuthenticator()
