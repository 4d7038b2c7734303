"""Split ``owner/name`` repository slugs.

Webhook payloads carry the repository as ``repository.full_name``. The
slash is a separator between two GitHub identifiers, not a path component,
so these slugs never go through ``pathlib``.
"""

from __future__ import annotations


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Return ``(owner, name)`` for a ``full_name`` such as ``acme/app``.

    A ``ValueError`` is raised unless ``slug`` holds exactly one slash with
    a non-empty identifier on each side.

    >>> parse_repo_slug("acme/app")
    ('acme', 'app')
    """
    owner, sep, name = slug.partition("/")
    if not sep or not owner or not name or "/" in name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name
