"""Bitbucket Cloud adapter backed by the 2.0 REST API.

The ``src`` endpoint serves both directory listings and raw file content, so
every path is first probed with ``format=meta`` to learn whether it names a
file or a directory. Listings are paginated through the ``next`` link.

Status is reported with build statuses keyed by a stable slug of the
application name; the key doubles as the run's handle.
"""

from __future__ import annotations

import re
import typing as typ
import urllib.parse

import msgspec

from pacvcs.errors import PathIsADirectoryError, PathNotFoundError
from pacvcs.events import Conclusion, PullRequest, RunStatus
from pacvcs.manifest import (
    DirectoryEntry,
    DirectoryListing,
    EntryKind,
    aggregate_manifest,
)
from pacvcs.observability import ProviderEventLogger
from pacvcs.resolver import apply_commit, apply_pull_request
from pacvcs.status import StatusUpdate, advance_check_run

from ._http import ProviderHTTP

if typ.TYPE_CHECKING:
    import httpx

    from pacvcs.config import ProviderConfig
    from pacvcs.events import Event, StatusOpts

PUBLIC_API_URL = "https://api.bitbucket.org/2.0"
_PAGE_SIZE = 100
_KEY_LIMIT = 40

_FILE = "commit_file"
_DIRECTORY = "commit_directory"
_ENTRY_KINDS = {_FILE: EntryKind.FILE, _DIRECTORY: EntryKind.DIRECTORY}

_CONCLUSION_STATES = {
    Conclusion.SUCCESS: "SUCCESSFUL",
    Conclusion.FAILURE: "FAILED",
    Conclusion.SKIPPED: "STOPPED",
    Conclusion.NEUTRAL: "STOPPED",
}


class _Meta(msgspec.Struct):
    type: str
    path: str = ""


class _Page(msgspec.Struct):
    values: list[_Meta]
    next: str | None = None


class _Link(msgspec.Struct):
    href: str


class _Links(msgspec.Struct):
    html: _Link


class _Branch(msgspec.Struct):
    name: str


class _CommitRef(msgspec.Struct):
    hash: str


class _RepoRef(msgspec.Struct):
    full_name: str


class _Endpoint(msgspec.Struct):
    branch: _Branch
    commit: _CommitRef
    repository: _RepoRef


class _Account(msgspec.Struct):
    nickname: str = ""
    account_id: str = ""


class _PullRequest(msgspec.Struct):
    id: int
    links: _Links
    author: _Account
    source: _Endpoint
    destination: _Endpoint


class _Repository(msgspec.Struct):
    links: _Links
    mainbranch: _Branch | None = None


class _Commit(msgspec.Struct):
    hash: str
    message: str
    links: _Links


class _BuildStatus(msgspec.Struct):
    key: str


def bitbucket_state(plan: StatusUpdate) -> str:
    """Map a planned status write onto a Bitbucket build status state."""
    if plan.status == RunStatus.COMPLETED:
        return _CONCLUSION_STATES[plan.conclusion]
    return "INPROGRESS"


def build_status_key(app_name: str) -> str:
    """Return the build status key derived from ``app_name``.

    Examples
    --------
    >>> build_status_key("Pipelines as Code CI")
    'pipelines-as-code-ci'

    """
    key = re.sub(r"[^a-z0-9]+", "-", app_name.lower()).strip("-")
    return key[:_KEY_LIMIT] or "pacvcs"


def _quote_path(path: str) -> str:
    return urllib.parse.quote(path.strip("/"), safe="/")


class BitbucketProvider:
    """Bitbucket Cloud implementation of :class:`~pacvcs.providers.ProviderAdapter`."""

    name = "bitbucket"

    def __init__(
        self,
        config: ProviderConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the adapter for ``config``."""
        self._config = config
        self._http = ProviderHTTP(
            self.name,
            (config.api_url or PUBLIC_API_URL).rstrip("/"),
            config,
            http_client=http_client,
        )
        self._events = ProviderEventLogger(self.name)
        self._key = build_status_key(config.application_name)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        await self._http.aclose()

    def _repo_endpoint(self, event: Event, suffix: str) -> str:
        workspace = urllib.parse.quote(event.owner, safe="")
        repo = urllib.parse.quote(event.repository, safe="")
        return f"/repositories/{workspace}/{repo}{suffix}"

    def _src_endpoint(self, event: Event, ref: str, path: str) -> str:
        # branch names may contain "#", "?" or "/"
        quoted_ref = urllib.parse.quote(ref, safe="")
        return self._repo_endpoint(event, f"/src/{quoted_ref}/{_quote_path(path)}")

    async def _meta(self, event: Event, path: str, ref: str) -> _Meta | None:
        response = await self._http.request(
            "GET",
            self._src_endpoint(event, ref, path),
            slug=event.slug,
            path=path,
            params={"format": "meta"},
            allow_not_found=True,
        )
        if response is None:
            return None
        return self._http.decode(response, _Meta, slug=event.slug)

    async def _list(self, event: Event, path: str, ref: str) -> list[_Meta]:
        entries: list[_Meta] = []
        endpoint: str | None = f"{self._src_endpoint(event, ref, path)}/"
        params: dict[str, typ.Any] | None = {"pagelen": _PAGE_SIZE}
        while endpoint:
            response = await self._http.request(
                "GET", endpoint, slug=event.slug, path=path, params=params
            )
            page = self._http.decode(
                typ.cast("httpx.Response", response), _Page, slug=event.slug
            )
            entries.extend(page.values)
            # the next link already carries the query string
            endpoint, params = page.next, None
        return entries

    async def _raw(self, event: Event, path: str, ref: str) -> str:
        response = await self._http.request(
            "GET", self._src_endpoint(event, ref, path), slug=event.slug, path=path
        )
        return typ.cast("httpx.Response", response).text

    async def get_manifest(self, event: Event, path: str) -> str:
        """Return the YAML files directly under ``path`` at ``event.sha``."""
        with self._events.failures("get_manifest", event.slug):
            meta = await self._meta(event, path, event.sha)
            if meta is None:
                self._events.log_manifest_missing(event.slug, path, event.sha)
                listing = DirectoryListing.missing()
            elif meta.type != _DIRECTORY:
                listing = DirectoryListing.file()
            else:
                listing = DirectoryListing.directory(
                    DirectoryEntry(
                        name=item.path.rsplit("/", 1)[-1],
                        path=item.path,
                        kind=_ENTRY_KINDS.get(item.type, EntryKind.OTHER),
                    )
                    for item in await self._list(event, path, event.sha)
                )

            async def fetch(entry: DirectoryEntry) -> str:
                return await self._raw(event, entry.path, event.sha)

            manifest = await aggregate_manifest(
                listing, fetch, slug=event.slug, path=path
            )
            if meta is not None:
                self._events.log_manifest_fetched(
                    event.slug, path, event.sha, len(manifest)
                )
            return manifest

    async def get_file(
        self, event: Event, path: str, *, use_base_branch: bool = False
    ) -> str:
        """Return the content of ``path`` at ``event.sha`` or the base branch."""
        ref = event.base_branch if use_base_branch else event.sha
        with self._events.failures("get_file", event.slug):
            if not ref:
                raise PathNotFoundError.for_path(event.slug, path, ref)
            meta = await self._meta(event, path, ref)
            if meta is None:
                raise PathNotFoundError.for_path(event.slug, path, ref)
            if meta.type == _DIRECTORY:
                raise PathIsADirectoryError.for_path(event.slug, path)
            content = await self._raw(event, path, ref)
            self._events.log_file_fetched(event.slug, path, ref)
            return content

    async def resolve_pull_request(self, event: Event, number: int) -> Event:
        """Complete ``event`` from pull request ``number``."""
        with self._events.failures("resolve_pull_request", event.slug):
            pull = await self._http.get_json(
                self._repo_endpoint(event, f"/pullrequests/{number}"),
                _PullRequest,
                slug=event.slug,
            )
            destination = await self._http.get_json(
                f"/repositories/{pull.destination.repository.full_name}",
                _Repository,
                slug=event.slug,
            )
        base_url = destination.links.html.href
        head_sha = pull.source.commit.hash
        snapshot = PullRequest(
            number=pull.id,
            base_ref=pull.destination.branch.name,
            base_sha=pull.destination.commit.hash,
            base_default_branch=(
                destination.mainbranch.name if destination.mainbranch else ""
            ),
            base_repo_url=base_url,
            head_ref=pull.source.branch.name,
            head_sha=head_sha,
            author_login=pull.author.nickname or pull.author.account_id,
            html_url=pull.links.html.href,
            head_commit_url=f"{base_url}/commits/{head_sha}",
        )
        apply_pull_request(event, snapshot)
        self._events.log_pull_request_resolved(
            event.slug, number, event.sha, event.base_branch
        )
        return event

    async def resolve_commit(self, event: Event) -> None:
        """Populate the commit permalink and title on ``event``."""
        with self._events.failures("resolve_commit", event.slug):
            commit = await self._http.get_json(
                self._repo_endpoint(event, f"/commit/{event.sha}"),
                _Commit,
                slug=event.slug,
            )
        apply_commit(event, html_url=commit.links.html.href, message=commit.message)
        self._events.log_commit_resolved(event.slug, event.sha)

    def _status_payload(self, event: Event, plan: StatusUpdate) -> dict[str, str]:
        # Bitbucket rejects build statuses without a url.
        return {
            "key": self._key,
            "state": bitbucket_state(plan),
            "name": self._config.application_name,
            "description": plan.summary,
            "url": plan.details_url or event.sha_url or event.url,
        }

    async def report_status(self, event: Event, opts: StatusOpts) -> None:
        """Create the run's build status on first use, then update it."""
        statuses = f"/commit/{event.sha}/statuses/build"

        async def create(plan: StatusUpdate) -> str:
            response = await self._http.request(
                "POST",
                self._repo_endpoint(event, statuses),
                slug=event.slug,
                json_body=self._status_payload(event, plan),
            )
            status = self._http.decode(
                typ.cast("httpx.Response", response), _BuildStatus, slug=event.slug
            )
            return status.key

        async def update(check_run_id: str, plan: StatusUpdate) -> None:
            key = urllib.parse.quote(check_run_id, safe="")
            await self._http.request(
                "PUT",
                self._repo_endpoint(event, f"{statuses}/{key}"),
                slug=event.slug,
                json_body=self._status_payload(event, plan),
            )

        with self._events.failures("report_status", event.slug):
            plan = await advance_check_run(
                event,
                opts,
                app_name=self._config.application_name,
                create=create,
                update=update,
            )
        self._events.log_status_written(
            event.slug,
            event.sha,
            event.check_run_id,
            created=plan.create,
            status=plan.status,
            conclusion=plan.conclusion,
        )


__all__ = [
    "PUBLIC_API_URL",
    "BitbucketProvider",
    "bitbucket_state",
    "build_status_key",
]
