"""GitLab adapter backed by the REST v4 API.

Projects are addressed by their URL-encoded ``namespace/project`` path, which
keeps nested groups working. GitLab answers a tree listing of a file path
with an empty list (or a 404 on some versions), so "is this a file?" is
settled with a second request against the files API.

Status is reported with commit statuses. GitLab upserts statuses by name, so
the first response's id is recorded as the run's handle and later reports
post again under the same name. GitLab rejects a post that repeats the
current state, so an update whose state did not change is not sent.
"""

from __future__ import annotations

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
from pacvcs.status import StatusUpdate, advance_check_run, run_key

from ._http import ProviderHTTP

if typ.TYPE_CHECKING:
    import httpx

    from pacvcs.config import ProviderConfig
    from pacvcs.events import Event, StatusOpts
    from pacvcs.status.locks import RunKey

PUBLIC_API_URL = "https://gitlab.com/api/v4"
_API_SUFFIX = "/api/v4"
_PAGE_SIZE = 100
_DESCRIPTION_LIMIT = 255
_STATE_MEMORY = 4096

_ENTRY_KINDS = {"blob": EntryKind.FILE, "tree": EntryKind.DIRECTORY}

_RUNNING_STATES = {RunStatus.QUEUED: "pending", RunStatus.IN_PROGRESS: "running"}
_CONCLUSION_STATES = {
    Conclusion.SUCCESS: "success",
    Conclusion.FAILURE: "failed",
    Conclusion.SKIPPED: "skipped",
    Conclusion.NEUTRAL: "canceled",
}


class _TreeEntry(msgspec.Struct):
    id: str
    name: str
    type: str
    path: str


class _Author(msgspec.Struct):
    username: str


class _DiffRefs(msgspec.Struct):
    base_sha: str | None = None


class _MergeRequest(msgspec.Struct):
    iid: int
    web_url: str
    source_branch: str
    target_branch: str
    sha: str
    author: _Author
    source_project_id: int
    target_project_id: int
    diff_refs: _DiffRefs | None = None


class _Project(msgspec.Struct):
    web_url: str
    default_branch: str | None = None


class _Commit(msgspec.Struct):
    web_url: str
    message: str


class _CommitStatus(msgspec.Struct):
    id: int


def gitlab_api_url(api_url: str | None) -> str:
    """Return the v4 REST root for gitlab.com or a self-managed instance."""
    if api_url is None:
        return PUBLIC_API_URL
    root = api_url.rstrip("/")
    if root.endswith(_API_SUFFIX):
        return root
    return f"{root}{_API_SUFFIX}"


def gitlab_state(plan: StatusUpdate) -> str:
    """Map a planned status write onto a GitLab commit status state."""
    if plan.status == RunStatus.COMPLETED:
        return _CONCLUSION_STATES[plan.conclusion]
    return _RUNNING_STATES[plan.status]


def _encode(value: str) -> str:
    return urllib.parse.quote(value.strip("/"), safe="")


class GitLabProvider:
    """GitLab implementation of :class:`~pacvcs.providers.ProviderAdapter`."""

    name = "gitlab"

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
            gitlab_api_url(config.api_url),
            config,
            http_client=http_client,
        )
        self._events = ProviderEventLogger(self.name)
        # last state posted per run, oldest first
        self._posted_states: dict[RunKey, str] = {}

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        await self._http.aclose()

    def _project_endpoint(self, event: Event, suffix: str) -> str:
        return f"/projects/{_encode(event.slug)}{suffix}"

    async def _tree(self, event: Event, path: str, ref: str) -> list[_TreeEntry]:
        """Return every entry directly under ``path``; ``[]`` when absent."""
        entries: list[_TreeEntry] = []
        page = "1"
        while page:
            response = await self._http.request(
                "GET",
                self._project_endpoint(event, "/repository/tree"),
                slug=event.slug,
                path=path,
                params={
                    "path": path.strip("/"),
                    "ref": ref,
                    "per_page": _PAGE_SIZE,
                    "page": page,
                },
                allow_not_found=True,
            )
            if response is None:
                return []
            entries.extend(
                self._http.decode(response, list[_TreeEntry], slug=event.slug)
            )
            page = response.headers.get("x-next-page", "")
        return entries

    async def _file_exists(self, event: Event, path: str, ref: str) -> bool:
        response = await self._http.request(
            "HEAD",
            self._project_endpoint(event, f"/repository/files/{_encode(path)}"),
            slug=event.slug,
            path=path,
            params={"ref": ref},
            allow_not_found=True,
        )
        return response is not None

    async def _raw_file(self, event: Event, path: str, ref: str) -> str | None:
        response = await self._http.request(
            "GET",
            self._project_endpoint(event, f"/repository/files/{_encode(path)}/raw"),
            slug=event.slug,
            path=path,
            params={"ref": ref},
            allow_not_found=True,
        )
        return None if response is None else response.text

    async def get_manifest(self, event: Event, path: str) -> str:
        """Return the YAML files directly under ``path`` at ``event.sha``."""
        with self._events.failures("get_manifest", event.slug):
            tree = await self._tree(event, path, event.sha)
            if tree:
                listing = DirectoryListing.directory(
                    DirectoryEntry(
                        name=item.name,
                        path=item.path,
                        kind=_ENTRY_KINDS.get(item.type, EntryKind.OTHER),
                        blob_id=item.id,
                    )
                    for item in tree
                )
            elif await self._file_exists(event, path, event.sha):
                listing = DirectoryListing.file()
            else:
                self._events.log_manifest_missing(event.slug, path, event.sha)
                listing = DirectoryListing.missing()

            async def fetch(entry: DirectoryEntry) -> str:
                response = await self._http.request(
                    "GET",
                    self._project_endpoint(
                        event, f"/repository/blobs/{entry.blob_id}/raw"
                    ),
                    slug=event.slug,
                    path=entry.path,
                )
                return typ.cast("httpx.Response", response).text

            manifest = await aggregate_manifest(
                listing, fetch, slug=event.slug, path=path
            )
            if tree:
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
            content = await self._raw_file(event, path, ref)
            if content is None:
                if await self._tree(event, path, ref):
                    raise PathIsADirectoryError.for_path(event.slug, path)
                raise PathNotFoundError.for_path(event.slug, path, ref)
            self._events.log_file_fetched(event.slug, path, ref)
            return content

    async def resolve_pull_request(self, event: Event, number: int) -> Event:
        """Complete ``event`` from merge request ``number`` (the ``iid``)."""
        with self._events.failures("resolve_pull_request", event.slug):
            merge_request = await self._http.get_json(
                self._project_endpoint(event, f"/merge_requests/{number}"),
                _MergeRequest,
                slug=event.slug,
            )
            target = await self._http.get_json(
                f"/projects/{merge_request.target_project_id}",
                _Project,
                slug=event.slug,
            )
        same_project = merge_request.source_project_id == merge_request.target_project_id
        base_sha = (
            merge_request.diff_refs.base_sha if merge_request.diff_refs else None
        )
        snapshot = PullRequest(
            number=merge_request.iid,
            base_ref=merge_request.target_branch,
            base_sha=base_sha or "",
            base_default_branch=target.default_branch or "",
            base_repo_url=target.web_url,
            head_ref=merge_request.source_branch,
            head_sha=merge_request.sha,
            head_default_branch=target.default_branch if same_project else None,
            author_login=merge_request.author.username,
            html_url=merge_request.web_url,
            head_commit_url=(
                f"{merge_request.web_url}/diffs?commit_id={merge_request.sha}"
            ),
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
                self._project_endpoint(event, f"/repository/commits/{event.sha}"),
                _Commit,
                slug=event.slug,
            )
        apply_commit(event, html_url=commit.web_url, message=commit.message)
        self._events.log_commit_resolved(event.slug, event.sha)

    def _status_payload(self, event: Event, plan: StatusUpdate) -> dict[str, str]:
        payload = {
            "state": gitlab_state(plan),
            "name": self._config.application_name,
            "description": plan.summary[:_DESCRIPTION_LIMIT],
        }
        if plan.details_url is not None:
            payload["target_url"] = plan.details_url
        if event.head_branch:
            payload["ref"] = event.head_branch
        return payload

    async def _post_status(self, event: Event, plan: StatusUpdate) -> int:
        response = await self._http.request(
            "POST",
            self._project_endpoint(event, f"/statuses/{event.sha}"),
            slug=event.slug,
            json_body=self._status_payload(event, plan),
        )
        status = self._http.decode(
            typ.cast("httpx.Response", response), _CommitStatus, slug=event.slug
        )
        return status.id

    def _remember_state(self, key: RunKey, state: str) -> None:
        self._posted_states.pop(key, None)
        self._posted_states[key] = state
        if len(self._posted_states) > _STATE_MEMORY:
            del self._posted_states[next(iter(self._posted_states))]

    async def report_status(self, event: Event, opts: StatusOpts) -> None:
        """Post the run's commit status, upserting it by application name."""
        key = run_key(self.name, event)

        async def create(plan: StatusUpdate) -> str:
            status_id = await self._post_status(event, plan)
            self._remember_state(key, gitlab_state(plan))
            return str(status_id)

        async def update(check_run_id: str, plan: StatusUpdate) -> None:
            state = gitlab_state(plan)
            if self._posted_states.get(key) == state:
                return
            await self._post_status(event, plan)
            self._remember_state(key, state)

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


__all__ = ["PUBLIC_API_URL", "GitLabProvider", "gitlab_api_url", "gitlab_state"]
