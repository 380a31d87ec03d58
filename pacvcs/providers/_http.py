"""HTTP plumbing shared by the provider adapters.

Translates ``httpx`` outcomes into the pacvcs error taxonomy: timeouts become
:class:`~pacvcs.errors.ProviderCancelledError`, connection problems and
non-2xx answers become :class:`~pacvcs.errors.ProviderTransportError`, and a
404 is handed back as ``None`` when the caller asked for it so the adapter can
decide what "absent" means for the operation at hand.
"""

from __future__ import annotations

import json
import typing as typ

import httpx
import msgspec

from pacvcs.errors import (
    ProviderCancelledError,
    ProviderConfigError,
    ProviderResponseShapeError,
    ProviderTransportError,
)

if typ.TYPE_CHECKING:
    from pacvcs.config import ProviderConfig

T = typ.TypeVar("T")

_HTTP_NOT_FOUND = 404
_HTTP_ERROR_STATUS_THRESHOLD = 400
_DETAIL_PREVIEW_LIMIT = 200


def _error_detail(response: httpx.Response) -> str | None:
    """Return the provider's error message, if the body carries one."""
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = response.text.strip()
        return text[:_DETAIL_PREVIEW_LIMIT] or None
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str):
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return None


class ProviderHTTP:
    """Thin async HTTP client bound to one provider API root."""

    def __init__(
        self,
        provider: str,
        base_url: str,
        config: ProviderConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an injected ``http_client`` is not closed."""
        if not config.token.strip():
            raise ProviderConfigError.empty_token()

        self.provider = provider
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        slug: str,
        path: str | None = None,
        params: dict[str, typ.Any] | None = None,
        json_body: dict[str, typ.Any] | None = None,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        """Send a request and return the response.

        ``endpoint`` is relative to the API root unless it is already an
        absolute URL, as pagination links are. Returns ``None`` for a 404 when
        ``allow_not_found`` is set.

        Raises
        ------
        ProviderCancelledError
            If the request timed out.
        ProviderTransportError
            For network failures and any other non-2xx status.

        """
        url = endpoint if "://" in endpoint else f"{self.base_url}{endpoint}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers,
            )
        except httpx.TimeoutException as exc:
            raise ProviderCancelledError.timeout(self.provider, slug=slug) from exc
        except httpx.RequestError as exc:
            raise ProviderTransportError.network_error(
                self.provider, str(exc), slug=slug, path=path
            ) from exc

        if response.status_code == _HTTP_NOT_FOUND and allow_not_found:
            return None
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise ProviderTransportError.http_error(
                self.provider,
                response.status_code,
                slug=slug,
                path=path,
                detail=_error_detail(response),
            )
        return response

    async def get_json(
        self,
        endpoint: str,
        decode_as: type[T],
        *,
        slug: str,
        path: str | None = None,
        params: dict[str, typ.Any] | None = None,
    ) -> T:
        """GET ``endpoint`` and decode the body into ``decode_as``."""
        response = typ.cast(
            "httpx.Response",
            await self.request("GET", endpoint, slug=slug, path=path, params=params),
        )
        return self.decode(response, decode_as, slug=slug)

    def decode(
        self, response: httpx.Response, decode_as: type[T], *, slug: str
    ) -> T:
        """Decode a JSON response body into ``decode_as``.

        Raises
        ------
        ProviderResponseShapeError
            If the body is not JSON or does not match the expected shape.

        """
        try:
            return msgspec.json.decode(response.content, type=decode_as)
        except msgspec.DecodeError as exc:
            what = getattr(decode_as, "__name__", str(decode_as)).lstrip("_")
            raise ProviderResponseShapeError.undecodable(
                self.provider, what, str(exc), slug=slug
            ) from exc


__all__ = ["ProviderHTTP"]
