"""Provider adapters for GitHub, GitLab and Bitbucket Cloud.

Public API
----------
ProviderAdapter
    Protocol every adapter implements.
create_provider
    Factory building the configured adapter.
GitHubProvider, GitLabProvider, BitbucketProvider
    Concrete adapters over each provider's REST API.

Examples
--------
>>> from pacvcs.config import ProviderConfig
>>> from pacvcs.providers import create_provider
>>> adapter = create_provider(ProviderConfig(provider="github", token="t"))
>>> manifest = await adapter.get_manifest(event, ".tekton")

"""

from __future__ import annotations

from pacvcs.providers.bitbucket import BitbucketProvider
from pacvcs.providers.factory import create_provider
from pacvcs.providers.github import GitHubProvider
from pacvcs.providers.gitlab import GitLabProvider
from pacvcs.providers.protocol import ProviderAdapter

__all__ = [
    "BitbucketProvider",
    "GitHubProvider",
    "GitLabProvider",
    "ProviderAdapter",
    "create_provider",
]
