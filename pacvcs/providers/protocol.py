"""Contract every provider adapter satisfies."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pacvcs.events import Event, StatusOpts


@typ.runtime_checkable
class ProviderAdapter(typ.Protocol):
    """Provider-neutral access to manifests, refs and status reporting.

    One implementation exists per source-control provider. The orchestrator
    picks one at startup with :func:`pacvcs.providers.create_provider` and
    never inspects which one it got.

    Every method is a single awaited request/response sequence with no
    retries. Cancelling the awaiting task cancels the call; request timeouts
    surface as :class:`~pacvcs.errors.ProviderCancelledError`.

    Examples
    --------
    >>> from pacvcs.providers import GitHubProvider, ProviderAdapter
    >>> isinstance(GitHubProvider(config), ProviderAdapter)
    True

    """

    name: str

    async def get_manifest(self, event: Event, path: str) -> str:
        """Return the YAML files directly under ``path`` at ``event.sha``.

        Returns ``""`` when ``path`` does not exist. Raises
        ``PathNotADirectoryError`` when ``path`` is a file and
        ``ProviderTransportError`` for any other failure.
        """
        ...

    async def get_file(
        self, event: Event, path: str, *, use_base_branch: bool = False
    ) -> str:
        """Return the content of ``path`` at ``event.sha``.

        With ``use_base_branch`` the file is read from ``event.base_branch``,
        which is how configuration that must come from the trusted side of a
        pull request is read. Raises ``PathNotFoundError`` or
        ``PathIsADirectoryError``.
        """
        ...

    async def resolve_pull_request(self, event: Event, number: int) -> Event:
        """Complete ``event`` from pull request ``number`` and return it."""
        ...

    async def resolve_commit(self, event: Event) -> None:
        """Populate ``event.sha_url`` and ``event.sha_title``."""
        ...

    async def report_status(self, event: Event, opts: StatusOpts) -> None:
        """Create or update the status object of ``event``'s run."""
        ...

    async def aclose(self) -> None:
        """Release HTTP resources owned by the adapter."""
        ...


__all__ = ["ProviderAdapter"]
