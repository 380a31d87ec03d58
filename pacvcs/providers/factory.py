"""Factory selecting the provider adapter from configuration."""

from __future__ import annotations

import typing as typ

from pacvcs.config import SUPPORTED_PROVIDERS, ProviderConfig
from pacvcs.errors import ProviderConfigError

if typ.TYPE_CHECKING:
    import httpx

    from pacvcs.providers.protocol import ProviderAdapter


def create_provider(
    config: ProviderConfig | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> ProviderAdapter:
    """Create the adapter named by ``config.provider``.

    The adapter is chosen once at startup; the orchestrator never inspects
    which one it received.

    Parameters
    ----------
    config
        Adapter settings. Read with :meth:`ProviderConfig.from_env` when
        omitted.
    http_client
        Optional shared client. The adapter will not close an injected client.

    Returns
    -------
    ProviderAdapter
        Configured adapter implementation.

    Raises
    ------
    ProviderConfigError
        If the provider name is unknown or the configuration is invalid.

    Examples
    --------
    >>> config = ProviderConfig(provider="gitlab", token="glpat-example")
    >>> create_provider(config).name
    'gitlab'

    """
    if config is None:
        config = ProviderConfig.from_env()

    provider = config.provider.strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ProviderConfigError.invalid_provider(
            config.provider, SUPPORTED_PROVIDERS
        )

    if provider == "github":
        from pacvcs.providers.github import GitHubProvider

        return GitHubProvider(config, http_client=http_client)

    if provider == "gitlab":
        from pacvcs.providers.gitlab import GitLabProvider

        return GitLabProvider(config, http_client=http_client)

    # provider == "bitbucket"
    from pacvcs.providers.bitbucket import BitbucketProvider

    return BitbucketProvider(config, http_client=http_client)


__all__ = ["create_provider"]
