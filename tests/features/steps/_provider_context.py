"""Shared context and helpers for provider adapter BDD steps."""

from __future__ import annotations

import asyncio
import typing as typ

if typ.TYPE_CHECKING:
    from pacvcs.events import Event
    from pacvcs.providers import ProviderAdapter
    from tests.helpers.fake_provider_api import FakeProviderAPI


class ProviderScenarioContext(typ.TypedDict, total=False):
    """Mutable context dictionary shared between BDD steps.

    Attributes
    ----------
    provider
        Adapter name under test.
    fake_api
        Fake REST API the adapter talks to.
    adapter
        Adapter built by the factory.
    event
        Event the scenario operates on.
    manifest
        Manifest returned by the When step.
    error
        Error raised by the When step, if any.
    handles
        Status handle observed after each report.
    pull_request_number, fork_default_branch
        Pull request served by the fake API.

    """

    provider: str
    fake_api: FakeProviderAPI
    adapter: ProviderAdapter
    event: Event
    manifest: str
    error: Exception
    handles: list[str | None]
    pull_request_number: int
    fork_default_branch: str


T = typ.TypeVar("T")


def run_async(coro: typ.Coroutine[typ.Any, typ.Any, T]) -> T:
    """Run async coroutines in sync BDD step functions."""
    return asyncio.run(coro)
