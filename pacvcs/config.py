"""Configuration for provider adapters."""

from __future__ import annotations

import dataclasses
import os

from pacvcs.errors import ProviderConfigError

SUPPORTED_PROVIDERS = frozenset({"github", "gitlab", "bitbucket"})

_DEFAULT_APPLICATION_NAME = "Pipelines as Code CI"
_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_USER_AGENT = "pacvcs/0.1"


def normalize_api_url(url: str) -> str:
    """Return ``url`` with a scheme and without a trailing slash.

    Self-hosted instances are often configured as a bare host name; those
    default to HTTPS.

    Examples
    --------
    >>> normalize_api_url("ghe.example.com/")
    'https://ghe.example.com'

    """
    cleaned = url.strip().rstrip("/")
    if "://" not in cleaned:
        cleaned = f"https://{cleaned}"
    return cleaned


@dataclasses.dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Settings used to build one provider adapter.

    Attributes
    ----------
    provider
        Adapter name: ``github``, ``gitlab`` or ``bitbucket``.
    token
        API token sent as a bearer credential.
    api_url
        Base URL of a self-hosted or enterprise API, or ``None`` for the
        provider's public endpoint.
    application_name
        Name shown on status objects and in status summaries.
    timeout_s
        Per-request timeout in seconds.
    user_agent
        ``User-Agent`` header sent with every request.

    """

    provider: str
    token: str
    api_url: str | None = None
    application_name: str = _DEFAULT_APPLICATION_NAME
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT

    @staticmethod
    def _parse_timeout_from_env() -> float:
        raw_timeout = os.environ.get("PACVCS_TIMEOUT_S")
        if raw_timeout is None:
            return _DEFAULT_TIMEOUT_S
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ProviderConfigError.invalid_timeout(raw_timeout) from exc
        if timeout <= 0:
            raise ProviderConfigError.invalid_timeout(raw_timeout)
        return timeout

    @classmethod
    def from_env(cls) -> ProviderConfig:
        """Build configuration from environment variables.

        Reads the following environment variables:

        - ``PACVCS_PROVIDER``: Required adapter name
        - ``PACVCS_TOKEN``: Required API token
        - ``PACVCS_API_URL``: Optional enterprise or self-hosted API URL
        - ``PACVCS_APPLICATION_NAME``: Optional status object name
        - ``PACVCS_TIMEOUT_S``: Optional request timeout (positive float)

        Raises
        ------
        ProviderConfigError
            If a required variable is missing or a value is invalid.

        """
        raw_provider = os.environ.get("PACVCS_PROVIDER")
        if raw_provider is None:
            raise ProviderConfigError.missing_provider()
        provider = raw_provider.strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ProviderConfigError.invalid_provider(raw_provider, SUPPORTED_PROVIDERS)

        raw_token = os.environ.get("PACVCS_TOKEN")
        if raw_token is None:
            raise ProviderConfigError.missing_token()
        token = raw_token.strip()
        if not token:
            raise ProviderConfigError.empty_token()

        raw_api_url = os.environ.get("PACVCS_API_URL", "").strip()
        application_name = os.environ.get(
            "PACVCS_APPLICATION_NAME", _DEFAULT_APPLICATION_NAME
        )

        return cls(
            provider=provider,
            token=token,
            api_url=normalize_api_url(raw_api_url) if raw_api_url else None,
            application_name=application_name,
            timeout_s=cls._parse_timeout_from_env(),
        )


__all__ = ["SUPPORTED_PROVIDERS", "ProviderConfig", "normalize_api_url"]
