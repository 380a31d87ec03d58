"""Structured log events and error categories for provider calls.

Every adapter owns a :class:`ProviderEventLogger` and emits one event per
completed operation. Lines follow ``[event.type] key=value`` so log
aggregators can parse them without a schema.
"""

from __future__ import annotations

import contextlib
import enum
import typing as typ

from pacvcs.errors import (
    CheckRunIdentityError,
    CheckRunStateError,
    PathIsADirectoryError,
    PathNotADirectoryError,
    PathNotFoundError,
    ProviderCancelledError,
    ProviderConfigError,
    ProviderError,
    ProviderResponseShapeError,
    ProviderTransportError,
)
from pacvcs.logging import get_logger, log_debug, log_error, log_info

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500
_HTTP_RATE_LIMITED = 429


class ProviderEventType(enum.StrEnum):
    """Structured log event types for provider operations."""

    MANIFEST_FETCHED = "provider.manifest.fetched"
    MANIFEST_MISSING = "provider.manifest.missing"
    FILE_FETCHED = "provider.file.fetched"
    PULL_REQUEST_RESOLVED = "provider.pull_request.resolved"
    COMMIT_RESOLVED = "provider.commit.resolved"
    STATUS_CREATED = "provider.status.created"
    STATUS_UPDATED = "provider.status.updated"
    OPERATION_FAILED = "provider.operation.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for routing provider failures."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    NOT_FOUND = "not_found"
    PATH_MISMATCH = "path_mismatch"
    CANCELLED = "cancelled"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    STATE_VIOLATION = "state_violation"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (ProviderResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (PathNotFoundError, ErrorCategory.NOT_FOUND),
    (PathNotADirectoryError, ErrorCategory.PATH_MISMATCH),
    (PathIsADirectoryError, ErrorCategory.PATH_MISMATCH),
    (ProviderCancelledError, ErrorCategory.CANCELLED),
    (ProviderConfigError, ErrorCategory.CONFIGURATION),
    (CheckRunIdentityError, ErrorCategory.STATE_VIOLATION),
    (CheckRunStateError, ErrorCategory.STATE_VIOLATION),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorise ``exc`` so callers can decide whether to retry.

    Transport errors with a 5xx or 429 status, or with no status at all
    (network failures), are transient; other HTTP statuses are client errors.
    """
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    if isinstance(exc, ProviderTransportError):
        status = exc.status_code
        if (
            status is None
            or status == _HTTP_RATE_LIMITED
            or status >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    return ErrorCategory.UNKNOWN


class ProviderEventLogger:
    """Emit structured provider events via femtologging."""

    def __init__(self, provider: str) -> None:
        """Initialise the logger for adapter ``provider``."""
        self._provider = provider

    def log_manifest_fetched(self, slug: str, path: str, ref: str, size: int) -> None:
        """Log a successfully aggregated manifest."""
        log_info(
            logger,
            "[%s] provider=%s repo_slug=%s path=%s ref=%s size=%d",
            ProviderEventType.MANIFEST_FETCHED,
            self._provider,
            slug,
            path,
            ref,
            size,
        )

    def log_manifest_missing(self, slug: str, path: str, ref: str) -> None:
        """Log a manifest directory that does not exist at ``ref``."""
        log_info(
            logger,
            "[%s] provider=%s repo_slug=%s path=%s ref=%s",
            ProviderEventType.MANIFEST_MISSING,
            self._provider,
            slug,
            path,
            ref,
        )

    def log_file_fetched(self, slug: str, path: str, ref: str) -> None:
        """Log a single file read."""
        log_debug(
            logger,
            "[%s] provider=%s repo_slug=%s path=%s ref=%s",
            ProviderEventType.FILE_FETCHED,
            self._provider,
            slug,
            path,
            ref,
        )

    def log_pull_request_resolved(
        self, slug: str, number: int, sha: str, base_branch: str
    ) -> None:
        """Log a resolved pull request."""
        log_info(
            logger,
            "[%s] provider=%s repo_slug=%s number=%d sha=%s base_branch=%s",
            ProviderEventType.PULL_REQUEST_RESOLVED,
            self._provider,
            slug,
            number,
            sha,
            base_branch,
        )

    def log_commit_resolved(self, slug: str, sha: str) -> None:
        """Log resolved commit details."""
        log_debug(
            logger,
            "[%s] provider=%s repo_slug=%s sha=%s",
            ProviderEventType.COMMIT_RESOLVED,
            self._provider,
            slug,
            sha,
        )

    def log_status_written(
        self,
        slug: str,
        sha: str,
        check_run_id: str | None,
        *,
        created: bool,
        status: str,
        conclusion: str,
    ) -> None:
        """Log a created or updated status object."""
        event_type = (
            ProviderEventType.STATUS_CREATED
            if created
            else ProviderEventType.STATUS_UPDATED
        )
        log_info(
            logger,
            "[%s] provider=%s repo_slug=%s sha=%s check_run_id=%s "
            "status=%s conclusion=%s",
            event_type,
            self._provider,
            slug,
            sha,
            check_run_id,
            status,
            conclusion or "none",
        )

    def log_operation_failed(
        self, operation: str, slug: str, error: BaseException
    ) -> None:
        """Log a failed adapter operation with its error category."""
        log_error(
            logger,
            "[%s] provider=%s operation=%s repo_slug=%s error_category=%s "
            "error_type=%s error=%s",
            ProviderEventType.OPERATION_FAILED,
            self._provider,
            operation,
            slug,
            categorize_error(error),
            type(error).__name__,
            error,
            exc_info=error,
        )

    @contextlib.contextmanager
    def failures(self, operation: str, slug: str) -> typ.Iterator[None]:
        """Log any provider error raised inside the block, then re-raise it."""
        try:
            yield
        except ProviderError as exc:
            self.log_operation_failed(operation, slug, exc)
            raise


__all__ = [
    "ErrorCategory",
    "ProviderEventLogger",
    "ProviderEventType",
    "categorize_error",
]
