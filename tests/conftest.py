"""
Shared pytest fixtures for Mend SDK tests.

Provides a fake Mend server and a factory for SDK instances wired to it.
"""

from typing import Any, Callable, List

import pytest
import pytest_asyncio

from mend_sdk import MendSdk
from tests.infrastructure.fake_mend_server import BASE_URL, FakeMendServer


@pytest.fixture
def fake_server() -> FakeMendServer:
    """Fresh fake Mend server with default behavior."""
    return FakeMendServer()


@pytest_asyncio.fixture
async def make_sdk(fake_server):
    """Factory creating MendSdk instances bound to ``fake_server``.

    Every instance created through the factory is closed after the test.
    """
    created: List[MendSdk] = []

    def factory(**options: Any) -> MendSdk:
        settings = {
            "api_endpoint": BASE_URL,
            "email": "test@example.com",
            "password": "password123",
        }
        settings.update(options)
        sdk = MendSdk(transport=fake_server.transport, **settings)
        created.append(sdk)
        return sdk

    yield factory

    for sdk in created:
        await sdk.close()


@pytest.fixture
def frozen_clock() -> Callable[[], float]:
    """Manually advanced clock for token expiry tests."""

    class Clock:
        def __init__(self):
            self.now = 1_700_000_000.0

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now += seconds

    return Clock()
