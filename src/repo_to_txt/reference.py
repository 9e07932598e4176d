from __future__ import annotations

import re
from typing import TYPE_CHECKING

from repo_to_txt.config import GITHUB_HOSTS, RepositoryReference
from repo_to_txt.exceptions import InvalidReferenceError

if TYPE_CHECKING:
    from collections.abc import Iterable

_REFERENCE_PATTERN = re.compile(
    r"^https://(?P<host>[^/]+)/(?P<owner>[^/]+)/(?P<name>[^/]+)"
    r"(?:/tree/(?P<revision>[^/]+)(?:/(?P<subpath>.+))?)?$",
)


def parse_reference(url: str, hosts: Iterable[str] = GITHUB_HOSTS) -> RepositoryReference:
    """Parse a repository URL into owner, name, revision and subpath.

    Accepted grammar: `https://<host>/<owner>/<name>[/tree/<revision>[/<subpath>]]`.
    The subpath may contain slashes. A missing revision is left as None; the
    caller decides which revision to use.

    Args:
        url (str): the URL typed by the user
        hosts (Iterable[str]): hostnames accepted for `<host>`, compared case-insensitively

    Raises:
        InvalidReferenceError: if the URL does not match the grammar or names another host

    Returns:
        RepositoryReference: the parsed coordinates
    """
    cleaned = url.strip().removesuffix("/")
    match = _REFERENCE_PATTERN.match(cleaned)
    if match is None:
        raise InvalidReferenceError(url=url)
    if match["host"].lower() not in {h.lower() for h in hosts}:
        raise InvalidReferenceError(url=url)
    return RepositoryReference(
        owner=match["owner"],
        name=match["name"],
        revision=match["revision"],
        subpath=match["subpath"],
    )
