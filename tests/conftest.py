"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest

from codelens.controller import CodeLensController
from codelens.events import EventBus

from tests.helpers import FakeHost, FakePrompter, FakeServers, FakeSurface


@pytest.fixture(autouse=True)
def _restore_package_log_level():
    package_logger = logging.getLogger("codelens")
    level = package_logger.level
    yield
    package_logger.setLevel(level)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def host() -> FakeHost:
    fake = FakeHost()
    fake.open("doc", line_count=10)
    return fake


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def servers() -> FakeServers:
    return FakeServers()


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def controller(
    host: FakeHost,
    surface: FakeSurface,
    servers: FakeServers,
    prompter: FakePrompter,
    event_bus: EventBus,
) -> CodeLensController:
    return CodeLensController(host, surface, servers, prompter, event_bus=event_bus)
