"""Complete canonical events from provider pull request and commit data.

Every adapter fetches its provider's pull request payload, maps it onto a
:class:`~pacvcs.events.PullRequest` snapshot and hands it to
:func:`apply_pull_request`. Keeping the field assignment here means the
base-side rule is enforced once for all providers: a fork controls its head
branch and its own repository settings, so branch targets used for status
reporting and trusted configuration reads must come from the base side.
"""

from __future__ import annotations

import typing as typ

from pacvcs.events import EventType

if typ.TYPE_CHECKING:
    from pacvcs.events import Event, PullRequest


def commit_title(message: str) -> str:
    """Return the first line of a commit message.

    Examples
    --------
    >>> commit_title("Fix the build\\n\\nLonger explanation")
    'Fix the build'

    """
    return message.strip().partition("\n")[0].strip()


def apply_pull_request(event: Event, pull_request: PullRequest) -> Event:
    """Populate ``event`` from a pull request snapshot and return it.

    Branch and repository fields come from the base side; the head side only
    contributes the commit under test and its branch name.
    """
    event.default_branch = pull_request.base_default_branch
    event.base_branch = pull_request.base_ref
    event.url = pull_request.base_repo_url
    event.sha = pull_request.head_sha
    event.sha_url = pull_request.head_commit_url
    event.head_branch = pull_request.head_ref
    event.sender = pull_request.author_login
    event.pull_request_number = pull_request.number
    event.event_type = EventType.PULL_REQUEST
    return event


def apply_commit(event: Event, *, html_url: str, message: str) -> Event:
    """Populate the commit permalink and title on ``event`` and return it."""
    event.sha_url = html_url
    event.sha_title = commit_title(message)
    return event


__all__ = ["apply_commit", "apply_pull_request", "commit_title"]
