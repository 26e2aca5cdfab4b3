# tests/conftest.py
from __future__ import annotations
import asyncio
import os

import pytest
from fastapi.testclient import TestClient

from matchmaker.apps.api.server import create_app
from matchmaker.apps.bootstrap import build_context
from matchmaker.services.control_protocol import ControlProtocolHandler
from matchmaker.services.eventbus import LocalEventBus
from matchmaker.services.node_registry_mem import InMemoryNodeRegistry
from matchmaker.services.settings import Settings


class FakeClock:
    """Manually advanced clock, in epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------- isolation: no config.yaml / .env / MATCHMAKER_* from the developer machine ----------
@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("MATCHMAKER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> InMemoryNodeRegistry:
    return InMemoryNodeRegistry()


@pytest.fixture
def bus() -> LocalEventBus:
    return LocalEventBus()


@pytest.fixture
def handler(registry, bus, clock) -> ControlProtocolHandler:
    return ControlProtocolHandler(registry, bus, clock=clock)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(log_to_file=False, logs_dir=str(tmp_path / "logs"), host="127.0.0.1", control_port=0)


@pytest.fixture
def broker(settings, clock):
    return build_context(settings, clock=clock, configure_logging=False)


@pytest.fixture
def client(broker):
    return TestClient(create_app(broker))


@pytest.fixture
def cli_app():
    from matchmaker.apps.cli.app import app

    return app


@pytest.fixture
def event_loop():
    """Per-test event loop (works without pytest-asyncio)."""
    loop = asyncio.new_event_loop()
    try:
        yield loop
    finally:
        loop.close()
