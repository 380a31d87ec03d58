"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from pacvcs.config import ProviderConfig
from pacvcs.events import Event
from tests.helpers.fake_provider_api import FakeProviderAPI

APP_NAME = "Pipelines as Code CI"
HEAD_SHA = "6113728f27ae82c7b1a177c8d03f9e96e0adf246"


@pytest.fixture
def fake_api() -> FakeProviderAPI:
    """Provide an empty fake provider API."""
    return FakeProviderAPI()


@pytest.fixture
def make_config() -> typ.Callable[..., ProviderConfig]:
    """Return a factory for adapter configuration with test defaults."""

    def _make(provider: str = "github", **overrides: typ.Any) -> ProviderConfig:
        values: dict[str, typ.Any] = {
            "provider": provider,
            "token": "test-token",
            "application_name": APP_NAME,
        }
        values.update(overrides)
        return ProviderConfig(**values)

    return _make


@pytest.fixture
def event() -> Event:
    """Provide a push event for ``octo/reef`` at a fixed head commit."""
    return Event(
        owner="octo",
        repository="reef",
        sha=HEAD_SHA,
        url="https://github.com/octo/reef",
        base_branch="main",
        head_branch="main",
        default_branch="main",
    )
