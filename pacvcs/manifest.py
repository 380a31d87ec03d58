"""Aggregate the pipeline definitions stored in one repository directory.

Adapters translate their provider's "list directory at ref" answer into a
:class:`DirectoryListing` and pass a blob fetcher to
:func:`aggregate_manifest`. The aggregator decides what a missing path or a
file path means, filters entries to YAML documents and joins the bodies into a
single multi-document stream.

Entry order is whatever the provider returned. Repository authors rely on
that order for layering, so it is never re-sorted here.
"""

from __future__ import annotations

import collections.abc as cabc
import enum
import typing as typ

import msgspec

from pacvcs.errors import PathNotADirectoryError

DOCUMENT_SEPARATOR = "---"
MANIFEST_SUFFIXES: tuple[str, ...] = (".yaml", ".yml")


class EntryKind(enum.StrEnum):
    """Kind of object found in a directory listing."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class ListingKind(enum.StrEnum):
    """What a provider found at the requested path."""

    MISSING = "missing"
    FILE = "file"
    DIRECTORY = "directory"


class DirectoryEntry(msgspec.Struct, kw_only=True, frozen=True):
    """One object directly under the listed directory.

    Attributes
    ----------
    name
        Base name of the object.
    path
        Repository-relative path of the object.
    kind
        File, directory or anything else (symlinks, submodules).
    blob_id
        Provider blob identifier when the listing includes one.

    """

    name: str
    path: str
    kind: EntryKind = EntryKind.FILE
    blob_id: str = ""


class DirectoryListing(msgspec.Struct, kw_only=True, frozen=True):
    """Provider answer to "list this path at this ref"."""

    kind: ListingKind
    entries: tuple[DirectoryEntry, ...] = ()

    @classmethod
    def missing(cls) -> DirectoryListing:
        """Return the listing for a path that does not exist."""
        return cls(kind=ListingKind.MISSING)

    @classmethod
    def file(cls) -> DirectoryListing:
        """Return the listing for a path that names a single file."""
        return cls(kind=ListingKind.FILE)

    @classmethod
    def directory(cls, entries: cabc.Iterable[DirectoryEntry]) -> DirectoryListing:
        """Return the listing for a directory holding ``entries``."""
        return cls(kind=ListingKind.DIRECTORY, entries=tuple(entries))


BlobFetcher: typ.TypeAlias = cabc.Callable[[DirectoryEntry], cabc.Awaitable[str]]


def is_manifest_entry(entry: DirectoryEntry) -> bool:
    """Return whether ``entry`` is a file with a recognised YAML suffix."""
    return entry.kind == EntryKind.FILE and entry.name.endswith(MANIFEST_SUFFIXES)


def join_documents(bodies: cabc.Iterable[str]) -> str:
    """Join document bodies into one multi-document YAML stream.

    Each body is preceded by a separator line unless it already starts with
    one. Bodies are newline-terminated before the next one is appended.

    Examples
    --------
    >>> join_documents([])
    ''
    >>> join_documents(["---\\nkind: Pipeline"])
    '---\\nkind: Pipeline'
    >>> join_documents(["a: 1", "---\\nb: 2"])
    '---\\na: 1\\n---\\nb: 2'

    """
    stream = ""
    for body in bodies:
        if stream and not stream.endswith("\n"):
            stream += "\n"
        if not body.startswith(DOCUMENT_SEPARATOR):
            stream += f"{DOCUMENT_SEPARATOR}\n"
        stream += body
    return stream


async def aggregate_manifest(
    listing: DirectoryListing,
    fetch_blob: BlobFetcher,
    *,
    slug: str,
    path: str,
) -> str:
    """Return the aggregated manifest for ``listing``.

    Parameters
    ----------
    listing
        Provider answer for ``path``.
    fetch_blob
        Coroutine function returning the decoded content of an entry.
    slug
        ``owner/repository`` used in error messages.
    path
        Directory path that was listed.

    Returns
    -------
    str
        The joined stream, or ``""`` when the directory is missing or holds
        no YAML files.

    Raises
    ------
    PathNotADirectoryError
        If ``path`` is a single file.

    Any error raised by ``fetch_blob`` propagates and no partial manifest is
    returned.

    """
    if listing.kind == ListingKind.MISSING:
        return ""
    if listing.kind == ListingKind.FILE:
        raise PathNotADirectoryError.for_path(slug, path)

    bodies: list[str] = []
    for entry in listing.entries:
        if not is_manifest_entry(entry):
            continue
        bodies.append(await fetch_blob(entry))
    return join_documents(bodies)


__all__ = [
    "DOCUMENT_SEPARATOR",
    "MANIFEST_SUFFIXES",
    "BlobFetcher",
    "DirectoryEntry",
    "DirectoryListing",
    "EntryKind",
    "ListingKind",
    "aggregate_manifest",
    "is_manifest_entry",
    "join_documents",
]
