"""Unit tests for the Bitbucket Cloud adapter."""

from __future__ import annotations

import typing as typ

import pytest

from pacvcs.errors import (
    PathIsADirectoryError,
    PathNotADirectoryError,
    PathNotFoundError,
)
from pacvcs.events import CheckRunState, Conclusion, RunStatus, StatusOpts
from pacvcs.providers.bitbucket import BitbucketProvider, build_status_key
from tests.helpers.fake_provider_api import json_body

if typ.TYPE_CHECKING:
    from pacvcs.config import ProviderConfig
    from pacvcs.events import Event
    from tests.helpers.fake_provider_api import FakeProviderAPI

REPO = "/2.0/repositories/octo/reef"


def _src(event: Event, path: str) -> str:
    return f"{REPO}/src/{event.sha}/{path}"


@pytest.fixture
def provider(
    fake_api: FakeProviderAPI, make_config: typ.Callable[..., ProviderConfig]
) -> BitbucketProvider:
    """Provide a Bitbucket adapter wired to the fake API."""
    return BitbucketProvider(make_config("bitbucket"), http_client=fake_api.client())


@pytest.mark.parametrize(
    ("app_name", "expected"),
    [
        ("Pipelines as Code CI", "pipelines-as-code-ci"),
        ("  Reef // CI  ", "reef-ci"),
        ("***", "pacvcs"),
        ("x" * 60, "x" * 40),
    ],
)
def test_build_status_key(app_name: str, expected: str) -> None:
    """Keys are lower-case slugs capped in length."""
    assert build_status_key(app_name) == expected


class TestGetManifest:
    """Tests for BitbucketProvider.get_manifest."""

    @pytest.mark.asyncio
    async def test_follows_pagination(
        self, provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
    ) -> None:
        """Listing pages are followed through the next link."""
        fake_api.add("GET", _src(event, ".tekton"), json_body={"type": "commit_directory"})
        next_link = f"https://api.bitbucket.org{_src(event, '.tekton')}/?page=2"
        fake_api.add(
            "GET",
            f"{_src(event, '.tekton')}/",
            json_body={
                "values": [
                    {"type": "commit_file", "path": ".tekton/a.yml"},
                    {"type": "commit_directory", "path": ".tekton/tasks.yaml"},
                ],
                "next": next_link,
            },
        )
        fake_api.add(
            "GET",
            f"{_src(event, '.tekton')}/",
            json_body={"values": [{"type": "commit_file", "path": ".tekton/b.yaml"}]},
        )
        fake_api.add("GET", _src(event, ".tekton/a.yml"), text="foo: 1")
        fake_api.add("GET", _src(event, ".tekton/b.yaml"), text="---\nbar: 2")

        manifest = await provider.get_manifest(event, ".tekton")

        assert manifest == "---\nfoo: 1\n---\nbar: 2"
        assert fake_api.calls()[0].url.params["format"] == "meta"

    @pytest.mark.asyncio
    async def test_missing_directory_is_empty(
        self, provider: BitbucketProvider, event: Event
    ) -> None:
        """A 404 on the metadata probe yields an empty manifest."""
        assert await provider.get_manifest(event, ".tekton") == ""

    @pytest.mark.asyncio
    async def test_file_path_is_rejected(
        self, provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
    ) -> None:
        """A file answer raises PathNotADirectoryError."""
        fake_api.add("GET", _src(event, ".tekton"), json_body={"type": "commit_file"})

        with pytest.raises(PathNotADirectoryError):
            await provider.get_manifest(event, ".tekton")


class TestGetFile:
    """Tests for BitbucketProvider.get_file."""

    @pytest.mark.asyncio
    async def test_reads_raw_file(
        self, provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
    ) -> None:
        """A file is probed and then read raw."""
        fake_api.add("GET", _src(event, "OWNERS"), json_body={"type": "commit_file"})
        fake_api.add("GET", _src(event, "OWNERS"), text="- diver")

        assert await provider.get_file(event, "OWNERS") == "- diver"

    @pytest.mark.asyncio
    async def test_directory_is_rejected(
        self, provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
    ) -> None:
        """A directory raises PathIsADirectoryError."""
        fake_api.add(
            "GET", _src(event, ".tekton"), json_body={"type": "commit_directory"}
        )

        with pytest.raises(PathIsADirectoryError):
            await provider.get_file(event, ".tekton")

    @pytest.mark.asyncio
    async def test_missing_file(
        self, provider: BitbucketProvider, event: Event
    ) -> None:
        """A missing path raises PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            await provider.get_file(event, "OWNERS")

    @pytest.mark.asyncio
    async def test_base_branch_is_encoded_into_the_path(
        self, provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
    ) -> None:
        """Reads from the base branch quote the whole branch name."""
        event.base_branch = "fix#12/a?b"
        owners = f"{REPO}/src/fix%2312%2Fa%3Fb/OWNERS"
        fake_api.add("GET", owners, json_body={"type": "commit_file"})
        fake_api.add("GET", owners, text="- warden")

        content = await provider.get_file(event, "OWNERS", use_base_branch=True)

        assert content == "- warden"
        assert [request.url.raw_path.decode("ascii") for request in fake_api.calls()] == [
            f"{owners}?format=meta",
            owners,
        ]

    @pytest.mark.asyncio
    async def test_empty_base_branch_is_not_found(
        self, provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
    ) -> None:
        """Without a base branch nothing is requested."""
        event.base_branch = ""

        with pytest.raises(PathNotFoundError):
            await provider.get_file(event, "OWNERS", use_base_branch=True)

        assert fake_api.calls() == []


def _endpoint(full_name: str, branch: str, commit: str) -> dict[str, typ.Any]:
    return {
        "branch": {"name": branch},
        "commit": {"hash": commit},
        "repository": {"full_name": full_name},
    }


@pytest.mark.asyncio
async def test_resolve_pull_request_from_fork(
    provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
) -> None:
    """The destination repository supplies the default branch."""
    fake_api.add(
        "GET",
        f"{REPO}/pullrequests/5",
        json_body={
            "id": 5,
            "links": {"html": {"href": "https://bitbucket.org/octo/reef/pull-requests/5"}},
            "author": {"nickname": "diver", "account_id": "557058:abc"},
            "source": _endpoint("diver/reef", "feature", "h" * 12),
            "destination": _endpoint("octo/reef", "develop", "b" * 12),
        },
    )
    fake_api.add(
        "GET",
        REPO,
        json_body={
            "links": {"html": {"href": "https://bitbucket.org/octo/reef"}},
            "mainbranch": {"name": "main"},
        },
    )

    await provider.resolve_pull_request(event, 5)

    assert event.default_branch == "main"
    assert event.base_branch == "develop"
    assert event.head_branch == "feature"
    assert event.sha == "h" * 12
    assert event.sha_url == f"https://bitbucket.org/octo/reef/commits/{'h' * 12}"
    assert event.sender == "diver"


@pytest.mark.asyncio
async def test_resolve_commit(
    provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
) -> None:
    """The commit permalink and title are filled in."""
    fake_api.add(
        "GET",
        f"{REPO}/commit/{event.sha}",
        json_body={
            "hash": event.sha,
            "message": "Bump tasks\n\nbody",
            "links": {"html": {"href": f"https://bitbucket.org/octo/reef/commits/{event.sha}"}},
        },
    )

    await provider.resolve_commit(event)

    assert event.sha_title == "Bump tasks"
    assert event.sha_url.endswith(event.sha)


@pytest.mark.asyncio
async def test_report_status_creates_then_updates_by_key(
    provider: BitbucketProvider, fake_api: FakeProviderAPI, event: Event
) -> None:
    """The first report posts a build status; the second puts to its key."""
    statuses = f"{REPO}/commit/{event.sha}/statuses/build"
    fake_api.add("POST", statuses, status=201, json_body={"key": "pipelines-as-code-ci"})
    fake_api.add("PUT", f"{statuses}/pipelines-as-code-ci", json_body={"key": "x"})

    await provider.report_status(event, StatusOpts(status=RunStatus.IN_PROGRESS))
    await provider.report_status(
        event, StatusOpts(status=RunStatus.COMPLETED, conclusion=Conclusion.SKIPPED)
    )

    created = json_body(fake_api.calls("POST")[0])
    updated = json_body(fake_api.calls("PUT")[0])
    assert created["key"] == "pipelines-as-code-ci"
    assert created["state"] == "INPROGRESS"
    assert created["url"] == event.url
    assert updated["state"] == "STOPPED"
    assert updated["description"] == "Pipelines as Code CI is skipping this commit."
    assert event.check_run_id == "pipelines-as-code-ci"
    assert event.check_run_state == CheckRunState.COMPLETED
