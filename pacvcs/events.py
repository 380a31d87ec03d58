"""Canonical event and status structures shared by every provider adapter.

An :class:`Event` describes one unit of work against a repository at a
revision. It is created by the orchestrator from an inbound trigger, completed
by the resolver, read by the manifest aggregator and finally used by the
status reporter, which records the provider-side status handle on it.

Each run owns its event exclusively. Hand a :meth:`Event.copy` to any task
that must not share mutations with the run.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import msgspec

from pacvcs.common.slug import parse_repo_slug, repo_slug
from pacvcs.errors import CheckRunIdentityError


class EventType(enum.StrEnum):
    """Kinds of trigger an event can originate from."""

    PUSH = "push"
    PULL_REQUEST = "pull_request"
    INCOMING = "incoming"
    RETEST = "retest"


class RunStatus(enum.StrEnum):
    """Run status values understood by provider status primitives."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Conclusion(enum.StrEnum):
    """Final outcome of a run; ``NONE`` while the run is unfinished."""

    NONE = ""
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"
    NEUTRAL = "neutral"


class CheckRunState(enum.StrEnum):
    """Lifecycle of the provider-side status object bound to one run."""

    UNCREATED = "uncreated"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclasses.dataclass(slots=True)
class Event:
    """Mutable description of one triggered run.

    ``default_branch`` and ``base_branch`` only ever come from the base side
    of a pull request. ``check_run_id`` stays ``None`` until the first status
    report and is bound at most once through :meth:`record_check_run`.
    """

    owner: str
    repository: str
    sha: str = ""
    url: str = ""
    sha_url: str = ""
    sha_title: str = ""
    base_branch: str = ""
    head_branch: str = ""
    default_branch: str = ""
    sender: str = ""
    event_type: EventType = EventType.PUSH
    pull_request_number: int | None = None
    check_run_id: str | None = None
    check_run_state: CheckRunState = CheckRunState.UNCREATED

    @classmethod
    def for_slug(cls, slug: str, **fields: typ.Any) -> Event:
        """Build an event for the ``owner/repository`` named by ``slug``.

        Examples
        --------
        >>> Event.for_slug("group/sub/project", sha="abc123").owner
        'group/sub'

        """
        owner, repository = parse_repo_slug(slug)
        return cls(owner=owner, repository=repository, **fields)

    @property
    def slug(self) -> str:
        """Return ``owner/repository``."""
        return repo_slug(self.owner, self.repository)

    def record_check_run(self, identifier: str) -> None:
        """Bind the provider-side status handle for this run.

        Re-recording the same identifier is a no-op; any other identifier
        raises :class:`~pacvcs.errors.CheckRunIdentityError`.
        """
        if self.check_run_id is None:
            self.check_run_id = identifier
            return
        if self.check_run_id != identifier:
            raise CheckRunIdentityError.already_bound(self.check_run_id, identifier)

    def copy(self) -> Event:
        """Return an independent copy safe to hand to another task."""
        return dataclasses.replace(self)


class PullRequest(msgspec.Struct, kw_only=True, frozen=True):
    """Provider-neutral snapshot of a pull request.

    Built fresh for every resolution; branch targets can change between polls
    so snapshots are never cached.

    Attributes
    ----------
    number
        Pull request number (GitLab ``iid``).
    base_ref
        Branch the pull request targets.
    base_sha
        Tip of the target branch when the snapshot was taken.
    base_default_branch
        Default branch of the base (target) repository.
    base_repo_url
        Web URL of the base repository.
    head_ref
        Source branch, possibly in a fork.
    head_sha
        Commit the pipelines run against.
    head_default_branch
        Default branch of the head repository. Informational only.
    author_login
        Login of the pull request author.
    html_url
        Web URL of the pull request.
    head_commit_url
        Web URL of the head commit in the context of the pull request.

    """

    number: int
    base_ref: str
    base_sha: str
    base_default_branch: str
    base_repo_url: str
    head_ref: str
    head_sha: str
    author_login: str
    html_url: str
    head_commit_url: str
    head_default_branch: str | None = None


class StatusOpts(msgspec.Struct, kw_only=True, frozen=True):
    """Status report requested by the orchestrator for one call."""

    status: RunStatus
    conclusion: Conclusion = Conclusion.NONE
    text: str = ""
    details_url: str = ""

    @classmethod
    def from_raw(
        cls,
        status: str,
        conclusion: str = "",
        *,
        text: str = "",
        details_url: str = "",
    ) -> StatusOpts:
        """Build options from raw strings, rejecting unknown values.

        Raises
        ------
        msgspec.ValidationError
            If ``status`` or ``conclusion`` is outside the fixed vocabulary.

        """
        return msgspec.convert(
            {
                "status": status,
                "conclusion": conclusion,
                "text": text,
                "details_url": details_url,
            },
            type=cls,
        )

    @property
    def is_terminal(self) -> bool:
        """Return whether this report completes the run.

        A conclusion left over on an ``in_progress`` report is stale and does
        not complete anything.
        """
        return (
            self.conclusion != Conclusion.NONE
            and self.status != RunStatus.IN_PROGRESS
        )


__all__ = [
    "CheckRunState",
    "Conclusion",
    "Event",
    "EventType",
    "PullRequest",
    "RunStatus",
    "StatusOpts",
]
