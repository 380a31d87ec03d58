"""Shared fixtures and steps for provider adapter BDD scenarios."""

from __future__ import annotations

import pytest
from pytest_bdd import given, parsers

from pacvcs.config import ProviderConfig
from pacvcs.events import Event
from pacvcs.providers import create_provider
from tests.features.steps._provider_context import ProviderScenarioContext
from tests.helpers.fake_provider_api import FakeProviderAPI

_HEAD_SHA = "6113728f27ae82c7b1a177c8d03f9e96e0adf246"


@pytest.fixture
def provider_context() -> ProviderScenarioContext:
    """Provide fresh context for each scenario."""
    return {}


@given(parsers.parse('a {provider} adapter for "{slug}"'))
def adapter_for_repository(
    provider_context: ProviderScenarioContext, provider: str, slug: str
) -> None:
    """Build the named adapter against an empty fake API."""
    fake_api = FakeProviderAPI()
    config = ProviderConfig(provider=provider, token="test-token")
    provider_context["provider"] = provider
    provider_context["fake_api"] = fake_api
    provider_context["adapter"] = create_provider(
        config, http_client=fake_api.client()
    )
    provider_context["event"] = Event.for_slug(
        slug,
        sha=_HEAD_SHA,
        url=f"https://example.test/{slug}",
        base_branch="main",
    )
