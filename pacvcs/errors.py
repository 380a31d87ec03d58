"""Error taxonomy shared by every provider adapter."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class ProviderError(Exception):
    """Base class for all provider adapter errors.

    Callers that only need to know "the provider call did not succeed" catch
    this; the subclasses separate absent resources, path-type mismatches,
    transport failures and cancellation.
    """


class PathNotFoundError(ProviderError):
    """Raised when a file or directory does not exist at the requested ref."""

    def __init__(self, message: str, *, path: str) -> None:
        """Initialise with a message and the missing repository path."""
        self.path = path
        super().__init__(message)

    @classmethod
    def for_path(cls, slug: str, path: str, ref: str) -> PathNotFoundError:
        """Return an error for ``path`` missing from ``slug`` at ``ref``."""
        return cls(f"cannot find {path} in {slug} at {ref}", path=path)


class PathNotADirectoryError(ProviderError):
    """Raised when a manifest directory path resolves to a single file."""

    def __init__(self, message: str, *, path: str) -> None:
        """Initialise with a message and the offending path."""
        self.path = path
        super().__init__(message)

    @classmethod
    def for_path(cls, slug: str, path: str) -> PathNotADirectoryError:
        """Return an error for ``path`` being a file inside ``slug``."""
        return cls(
            f"the object {path} in {slug} is a file instead of a directory",
            path=path,
        )


class PathIsADirectoryError(ProviderError):
    """Raised when a file read targets a directory."""

    def __init__(self, message: str, *, path: str) -> None:
        """Initialise with a message and the offending path."""
        self.path = path
        super().__init__(message)

    @classmethod
    def for_path(cls, slug: str, path: str) -> PathIsADirectoryError:
        """Return an error for ``path`` being a directory inside ``slug``."""
        return cls(f"referenced file {path} in {slug} is a directory", path=path)


class ProviderTransportError(ProviderError):
    """Raised when a provider API call fails for any other reason.

    Attributes
    ----------
    provider
        Adapter name (``github``, ``gitlab``, ``bitbucket``).
    status_code
        HTTP status code, when the provider answered at all.
    slug
        ``owner/repository`` the request targeted.
    path
        Repository path involved in the request, if any.

    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        slug: str | None = None,
        path: str | None = None,
    ) -> None:
        """Initialise with a message and request context."""
        self.provider = provider
        self.status_code = status_code
        self.slug = slug
        self.path = path
        super().__init__(message)

    @classmethod
    def http_error(
        cls,
        provider: str,
        status_code: int,
        *,
        slug: str,
        path: str | None = None,
        detail: str | None = None,
    ) -> ProviderTransportError:
        """Return an error for a non-2xx provider response."""
        msg = f"{provider} API HTTP {status_code} for {slug}"
        if path:
            msg = f"{msg} path={path}"
        if detail:
            msg = f"{msg}: {detail}"
        return cls(
            msg, provider=provider, status_code=status_code, slug=slug, path=path
        )

    @classmethod
    def network_error(
        cls, provider: str, detail: str, *, slug: str, path: str | None = None
    ) -> ProviderTransportError:
        """Return an error for DNS, connection or TLS failures."""
        msg = f"{provider} API network error for {slug}: {detail}"
        return cls(msg, provider=provider, slug=slug, path=path)


class ProviderResponseShapeError(ProviderTransportError):
    """Raised when a provider payload cannot be decoded into the expected shape."""

    @classmethod
    def undecodable(
        cls, provider: str, what: str, detail: str, *, slug: str
    ) -> ProviderResponseShapeError:
        """Return an error for a payload that failed validation."""
        return cls(
            f"{provider} returned an unexpected {what} for {slug}: {detail}",
            provider=provider,
            slug=slug,
        )


class ProviderCancelledError(ProviderError):
    """Raised when a provider call gave up before the provider answered.

    Kept apart from :class:`ProviderTransportError` so callers can tell
    "we stopped waiting" from "the provider said no".
    """

    @classmethod
    def timeout(cls, provider: str, *, slug: str) -> ProviderCancelledError:
        """Return an error for a request that exceeded its deadline."""
        return cls(f"{provider} API request for {slug} timed out")


class CheckRunIdentityError(ProviderError):
    """Raised when a run's status handle would be replaced by another one."""

    @classmethod
    def already_bound(cls, current: str, attempted: str) -> CheckRunIdentityError:
        """Return an error for rebinding ``current`` to ``attempted``."""
        return cls(
            f"check run already bound to {current}; refusing to rebind to {attempted}"
        )


class CheckRunStateError(ProviderError):
    """Raised when a status transition would leave the completed state."""

    @classmethod
    def downgrade(cls, check_run_id: str | None, status: str) -> CheckRunStateError:
        """Return an error for moving a completed run back to ``status``."""
        return cls(f"check run {check_run_id} is completed; cannot report {status}")


class ProviderConfigError(ProviderError):
    """Raised when provider configuration is missing or invalid."""

    @classmethod
    def missing_provider(cls) -> ProviderConfigError:
        """Return an error when no provider is configured."""
        return cls("PACVCS_PROVIDER environment variable is required")

    @classmethod
    def invalid_provider(
        cls, name: str, valid: cabc.Iterable[str]
    ) -> ProviderConfigError:
        """Return an error listing the supported provider names."""
        options = ", ".join(f"'{item}'" for item in sorted(valid))
        return cls(f"Invalid provider '{name}'. Valid options are: {options}")

    @classmethod
    def missing_token(cls) -> ProviderConfigError:
        """Return an error when no API token is configured."""
        return cls("PACVCS_TOKEN environment variable is required")

    @classmethod
    def empty_token(cls) -> ProviderConfigError:
        """Return an error when the configured token is blank."""
        return cls("Provider token must be non-empty")

    @classmethod
    def invalid_timeout(cls, value: str) -> ProviderConfigError:
        """Return an error for a non-positive or non-numeric timeout."""
        return cls(f"Invalid timeout '{value}'. Must be a positive number of seconds")

    @classmethod
    def invalid_value(
        cls, field: str, value: str, valid: cabc.Iterable[str]
    ) -> ProviderConfigError:
        """Return an error for an enumerated field holding an unknown value."""
        options = ", ".join(f"'{item}'" for item in valid)
        return cls(f"Invalid {field} '{value}'. Valid options are: {options}")


__all__ = [
    "CheckRunIdentityError",
    "CheckRunStateError",
    "PathIsADirectoryError",
    "PathNotADirectoryError",
    "PathNotFoundError",
    "ProviderCancelledError",
    "ProviderConfigError",
    "ProviderError",
    "ProviderResponseShapeError",
    "ProviderTransportError",
]
