"""Repository slug utilities.

Slugs are provider identifiers in ``owner/name`` form. GitLab owners may be
nested groups (``group/subgroup/name``), so the repository name is always the
last segment and everything before it is the owner.
"""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Build a repository slug from owner and name.

    Examples
    --------
    >>> repo_slug("openshift", "pipelines")
    'openshift/pipelines'

    """
    return f"{owner}/{name}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split a slug into ``(owner, name)``.

    Raises
    ------
    ValueError
        If the slug has no owner or no name.

    Examples
    --------
    >>> parse_repo_slug("group/sub/project")
    ('group/sub', 'project')

    """
    owner, sep, name = slug.strip("/").rpartition("/")
    if not sep or not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)
    return owner, name
