"""Unit tests for manifest aggregation."""

from __future__ import annotations

import pytest

from pacvcs.errors import PathNotADirectoryError, ProviderTransportError
from pacvcs.manifest import (
    BlobFetcher,
    DirectoryEntry,
    DirectoryListing,
    EntryKind,
    aggregate_manifest,
    is_manifest_entry,
    join_documents,
)


def _entry(name: str, kind: EntryKind = EntryKind.FILE) -> DirectoryEntry:
    return DirectoryEntry(name=name, path=f".tekton/{name}", kind=kind)


def _fetcher(
    contents: dict[str, str], fetched: list[str] | None = None
) -> BlobFetcher:
    async def fetch(entry: DirectoryEntry) -> str:
        if fetched is not None:
            fetched.append(entry.name)
        return contents[entry.name]

    return fetch


class TestIsManifestEntry:
    """Tests for is_manifest_entry."""

    @pytest.mark.parametrize(
        ("entry", "expected"),
        [
            (_entry("pr.yaml"), True),
            (_entry("push.yml"), True),
            (_entry("README.md"), False),
            (_entry("PR.YAML"), False),
            (_entry("nested.yaml", EntryKind.DIRECTORY), False),
            (_entry("link.yaml", EntryKind.OTHER), False),
        ],
    )
    def test_filters_on_kind_and_suffix(
        self, entry: DirectoryEntry, *, expected: bool
    ) -> None:
        """Only files with a lower-case YAML suffix are manifests."""
        assert is_manifest_entry(entry) is expected


class TestJoinDocuments:
    """Tests for join_documents."""

    def test_empty(self) -> None:
        """No bodies yield an empty stream."""
        assert join_documents([]) == ""

    def test_single_body_with_separator_is_unchanged(self) -> None:
        """A lone body already starting with a separator is returned as is."""
        assert join_documents(["---\nkind: Pipeline\n"]) == "---\nkind: Pipeline\n"

    def test_separators_and_newline_guard(self) -> None:
        """Each body gets a separator and documents never run together."""
        assert join_documents(["foo: 1", "---\nbar: 2"]) == "---\nfoo: 1\n---\nbar: 2"

    def test_trailing_newline_is_not_doubled(self) -> None:
        """A body ending in a newline is not padded again."""
        assert join_documents(["a: 1\n", "b: 2\n"]) == "---\na: 1\n---\nb: 2\n"


@pytest.mark.asyncio
async def test_missing_directory_is_empty() -> None:
    """A missing path aggregates to an empty string."""
    manifest = await aggregate_manifest(
        DirectoryListing.missing(), _fetcher({}), slug="octo/reef", path=".tekton"
    )
    assert manifest == ""


@pytest.mark.asyncio
async def test_file_path_is_rejected() -> None:
    """A path naming a file raises PathNotADirectoryError."""
    with pytest.raises(PathNotADirectoryError, match="is a file") as exc_info:
        await aggregate_manifest(
            DirectoryListing.file(), _fetcher({}), slug="octo/reef", path=".tekton"
        )
    assert exc_info.value.path == ".tekton"


@pytest.mark.asyncio
async def test_directory_keeps_listing_order_and_skips_other_entries() -> None:
    """YAML files are fetched in listing order and everything else is skipped."""
    fetched: list[str] = []
    listing = DirectoryListing.directory(
        [
            _entry("z.yaml"),
            _entry("readme.md"),
            _entry("sub.yaml", EntryKind.DIRECTORY),
            _entry("a.yml"),
        ]
    )

    manifest = await aggregate_manifest(
        listing,
        _fetcher({"z.yaml": "z: 1", "a.yml": "a: 1"}, fetched),
        slug="octo/reef",
        path=".tekton",
    )

    assert fetched == ["z.yaml", "a.yml"]
    assert manifest == "---\nz: 1\n---\na: 1"


@pytest.mark.asyncio
async def test_directory_without_yaml_is_empty() -> None:
    """A directory without recognised files aggregates to an empty string."""
    listing = DirectoryListing.directory([_entry("notes.txt")])

    manifest = await aggregate_manifest(
        listing, _fetcher({}), slug="octo/reef", path=".tekton"
    )

    assert manifest == ""


@pytest.mark.asyncio
async def test_blob_failure_aborts_aggregation() -> None:
    """A failing blob fetch propagates without a partial manifest."""

    async def fetch(entry: DirectoryEntry) -> str:
        if entry.name == "b.yaml":
            raise ProviderTransportError.http_error(
                "github", 502, slug="octo/reef", path=entry.path
            )
        return "a: 1"

    listing = DirectoryListing.directory([_entry("a.yaml"), _entry("b.yaml")])

    with pytest.raises(ProviderTransportError, match="502"):
        await aggregate_manifest(listing, fetch, slug="octo/reef", path=".tekton")
