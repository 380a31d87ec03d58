"""GitHub adapter backed by the REST v3 API.

Manifests are read with the contents API and fetched blob by blob through
the git data API so files above the contents size limit still work. Status is
reported through check runs: one check run per run, created on the first
report and patched afterwards.
"""

from __future__ import annotations

import base64
import binascii
import typing as typ
import urllib.parse

import msgspec

from pacvcs.common.time import isoformat_z
from pacvcs.errors import (
    PathIsADirectoryError,
    PathNotFoundError,
    ProviderResponseShapeError,
)
from pacvcs.events import Conclusion, PullRequest
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

PUBLIC_API_URL = "https://api.github.com"
_ENTERPRISE_API_SUFFIX = "/api/v3"

_ENTRY_KINDS = {"file": EntryKind.FILE, "dir": EntryKind.DIRECTORY}


class _Content(msgspec.Struct):
    type: str
    name: str
    path: str
    sha: str


class _Blob(msgspec.Struct):
    content: str
    encoding: str = "base64"


class _Repo(msgspec.Struct):
    default_branch: str
    html_url: str


class _BaseRef(msgspec.Struct):
    ref: str
    sha: str
    repo: _Repo


class _HeadRef(msgspec.Struct):
    ref: str
    sha: str
    repo: _Repo | None = None


class _User(msgspec.Struct):
    login: str


class _Pull(msgspec.Struct):
    number: int
    html_url: str
    base: _BaseRef
    head: _HeadRef
    user: _User


class _Commit(msgspec.Struct):
    html_url: str
    message: str


class _CheckRun(msgspec.Struct):
    id: int


class _CheckRunList(msgspec.Struct):
    check_runs: list[_CheckRun]


def github_api_url(api_url: str | None) -> str:
    """Return the REST root for the public API or an enterprise host.

    Enterprise hosts serve the API under ``/api/v3``; the suffix is added
    when the configured URL does not already carry it.
    """
    if api_url is None:
        return PUBLIC_API_URL
    root = api_url.rstrip("/")
    if root == PUBLIC_API_URL or root.endswith(_ENTERPRISE_API_SUFFIX):
        return root
    return f"{root}{_ENTERPRISE_API_SUFFIX}"


def _quote_path(path: str) -> str:
    return urllib.parse.quote(path.strip("/"), safe="/")


def _check_run_payload(plan: StatusUpdate, app_name: str) -> dict[str, typ.Any]:
    """Build the create or update body for a check run."""
    payload: dict[str, typ.Any] = {"name": app_name, "status": str(plan.status)}
    if plan.title:
        payload["output"] = {
            "title": plan.title,
            "summary": plan.summary,
            "text": plan.text,
        }
    if plan.details_url is not None:
        payload["details_url"] = plan.details_url
    if plan.started_at is not None:
        payload["started_at"] = isoformat_z(plan.started_at)
    if plan.conclusion != Conclusion.NONE:
        payload["conclusion"] = str(plan.conclusion)
    if plan.completed_at is not None:
        payload["completed_at"] = isoformat_z(plan.completed_at)
    return payload


class GitHubProvider:
    """GitHub implementation of :class:`~pacvcs.providers.ProviderAdapter`."""

    name = "github"

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
            github_api_url(config.api_url),
            config,
            http_client=http_client,
        )
        self._events = ProviderEventLogger(self.name)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        await self._http.aclose()

    def _repo_endpoint(self, event: Event, suffix: str) -> str:
        owner = urllib.parse.quote(event.owner, safe="")
        repo = urllib.parse.quote(event.repository, safe="")
        return f"/repos/{owner}/{repo}{suffix}"

    async def _contents(
        self, event: Event, path: str, ref: str
    ) -> list[_Content] | _Content | None:
        """Return a directory listing, a single file entry or ``None``."""
        response = await self._http.request(
            "GET",
            self._repo_endpoint(event, f"/contents/{_quote_path(path)}"),
            slug=event.slug,
            path=path,
            params={"ref": ref},
            allow_not_found=True,
        )
        if response is None:
            return None
        return self._http.decode(response, list[_Content] | _Content, slug=event.slug)

    async def _blob(self, event: Event, sha: str) -> str:
        blob = await self._http.get_json(
            self._repo_endpoint(event, f"/git/blobs/{sha}"),
            _Blob,
            slug=event.slug,
        )
        try:
            return base64.b64decode(blob.content).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ProviderResponseShapeError.undecodable(
                self.name, "blob", str(exc), slug=event.slug
            ) from exc

    async def get_manifest(self, event: Event, path: str) -> str:
        """Return the YAML files directly under ``path`` at ``event.sha``."""
        with self._events.failures("get_manifest", event.slug):
            found = await self._contents(event, path, event.sha)
            if found is None:
                self._events.log_manifest_missing(event.slug, path, event.sha)
                listing = DirectoryListing.missing()
            elif isinstance(found, _Content):
                listing = DirectoryListing.file()
            else:
                listing = DirectoryListing.directory(
                    DirectoryEntry(
                        name=item.name,
                        path=item.path,
                        kind=_ENTRY_KINDS.get(item.type, EntryKind.OTHER),
                        blob_id=item.sha,
                    )
                    for item in found
                )

            async def fetch(entry: DirectoryEntry) -> str:
                return await self._blob(event, entry.blob_id)

            manifest = await aggregate_manifest(
                listing, fetch, slug=event.slug, path=path
            )
            if found is not None:
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
            found = await self._contents(event, path, ref)
            if found is None:
                raise PathNotFoundError.for_path(event.slug, path, ref)
            if isinstance(found, list):
                raise PathIsADirectoryError.for_path(event.slug, path)
            content = await self._blob(event, found.sha)
            self._events.log_file_fetched(event.slug, path, ref)
            return content

    async def resolve_pull_request(self, event: Event, number: int) -> Event:
        """Complete ``event`` from pull request ``number``."""
        with self._events.failures("resolve_pull_request", event.slug):
            pull = await self._http.get_json(
                self._repo_endpoint(event, f"/pulls/{number}"),
                _Pull,
                slug=event.slug,
            )
        snapshot = PullRequest(
            number=pull.number,
            base_ref=pull.base.ref,
            base_sha=pull.base.sha,
            base_default_branch=pull.base.repo.default_branch,
            base_repo_url=pull.base.repo.html_url,
            head_ref=pull.head.ref,
            head_sha=pull.head.sha,
            head_default_branch=(
                pull.head.repo.default_branch if pull.head.repo is not None else None
            ),
            author_login=pull.user.login,
            html_url=pull.html_url,
            head_commit_url=f"{pull.html_url}/commits/{pull.head.sha}",
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
                self._repo_endpoint(event, f"/git/commits/{event.sha}"),
                _Commit,
                slug=event.slug,
            )
        apply_commit(event, html_url=commit.html_url, message=commit.message)
        self._events.log_commit_resolved(event.slug, event.sha)

    async def _find_check_run(self, event: Event, app_name: str) -> _CheckRun | None:
        """Return the newest check run named ``app_name`` on ``event.sha``."""
        listing = await self._http.get_json(
            self._repo_endpoint(event, f"/commits/{event.sha}/check-runs"),
            _CheckRunList,
            slug=event.slug,
            params={"check_name": app_name, "filter": "latest"},
        )
        return listing.check_runs[0] if listing.check_runs else None

    async def report_status(self, event: Event, opts: StatusOpts) -> None:
        """Create the run's check run on first use, then patch it."""
        app_name = self._config.application_name

        async def create(plan: StatusUpdate) -> str:
            payload = _check_run_payload(plan, app_name)
            payload["head_sha"] = event.sha
            response = await self._http.request(
                "POST",
                self._repo_endpoint(event, "/check-runs"),
                slug=event.slug,
                json_body=payload,
            )
            try:
                check_run = self._http.decode(
                    typ.cast("httpx.Response", response), _CheckRun, slug=event.slug
                )
            except ProviderResponseShapeError:
                # the check run exists; recover its id so it is not created twice
                found = await self._find_check_run(event, app_name)
                if found is None:
                    raise
                check_run = found
            return str(check_run.id)

        async def update(check_run_id: str, plan: StatusUpdate) -> None:
            await self._http.request(
                "PATCH",
                self._repo_endpoint(event, f"/check-runs/{check_run_id}"),
                slug=event.slug,
                json_body=_check_run_payload(plan, app_name),
            )

        with self._events.failures("report_status", event.slug):
            plan = await advance_check_run(
                event, opts, app_name=app_name, create=create, update=update
            )
        self._events.log_status_written(
            event.slug,
            event.sha,
            event.check_run_id,
            created=plan.create,
            status=plan.status,
            conclusion=plan.conclusion,
        )


__all__ = ["PUBLIC_API_URL", "GitHubProvider", "github_api_url"]
