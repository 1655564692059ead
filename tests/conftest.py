"""Shared test fixtures for scrappey-mcp.

Fixture tiers:
  backend     : FakeScrappey served on a local aiohttp TestServer
  client      : ScrappeyClient pointed at the fake backend
  dispatcher  : Dispatcher over that client with a fresh SessionRegistry
"""
from __future__ import annotations

from typing import AsyncGenerator

import pytest
from aiohttp.test_utils import TestServer

from scrappey_mcp.client import ScrappeyClient
from scrappey_mcp.dispatcher import Dispatcher
from scrappey_mcp.sessions import SessionRegistry
from tests.helpers import API_KEY
from tests.helpers.fake_backend import FakeScrappey


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's real key/URL out of the tests."""
    monkeypatch.delenv("SCRAPPEY_API_KEY", raising=False)
    monkeypatch.delenv("SCRAPPEY_API_URL", raising=False)


@pytest.fixture
async def backend() -> AsyncGenerator[FakeScrappey, None]:
    fake = FakeScrappey()
    async with TestServer(fake.app()) as server:
        fake.url = str(server.make_url("/api/v1"))
        yield fake


@pytest.fixture
async def client(backend: FakeScrappey) -> AsyncGenerator[ScrappeyClient, None]:
    async with ScrappeyClient(API_KEY, backend.url, timeout=5) as c:
        yield c


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def dispatcher(client: ScrappeyClient, registry: SessionRegistry) -> Dispatcher:
    return Dispatcher(client, registry)
