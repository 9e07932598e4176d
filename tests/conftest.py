from __future__ import annotations

import base64
import threading

import pytest

from repo_to_txt.config import ContentPayload, EntryKind, RepositoryReference, TreeEntry


def blob(path: str, size: int | None = None) -> TreeEntry:
    return TreeEntry(
        path=path,
        kind=EntryKind.BLOB,
        content_location=f"https://api.github.test/blobs/{path}",
        id=f"sha-{path}",
        size=size,
    )


def tree(path: str) -> TreeEntry:
    return TreeEntry(path=path, kind=EntryKind.TREE, content_location="", id=f"sha-{path}")


class FakeClient:
    """In-memory stand-in for GitHubClient keyed by entry path."""

    def __init__(
        self,
        files: dict[str, str | bytes | Exception] | None = None,
        listing: list[TreeEntry] | None = None,
    ) -> None:
        self.files = files or {}
        self.listing = listing if listing is not None else [blob(p) for p in self.files]
        self.calls: list[tuple[str, str | None]] = []
        self.revisions: list[tuple[RepositoryReference, str, str | None]] = []
        self._lock = threading.Lock()

    def _lookup(self, location: str, token: str | None) -> str | bytes:
        path = location.removeprefix("https://api.github.test/blobs/")
        with self._lock:
            self.calls.append((path, token))
        value = self.files[path]
        if isinstance(value, Exception):
            raise value
        return value

    def resolve_revision(self, reference: RepositoryReference, revision: str, token: str | None = None) -> str:
        self.revisions.append((reference, revision, token))
        return "root-sha"

    def fetch_listing(self, reference: RepositoryReference, sha: str, token: str | None = None) -> list[TreeEntry]:
        return list(self.listing)

    def fetch_content(self, location: str, token: str | None = None) -> ContentPayload:
        value = self._lookup(location, token)
        raw = value if isinstance(value, bytes) else value.encode("utf-8")
        return ContentPayload(content=base64.encodebytes(raw).decode("ascii"), encoding="base64")

    def fetch_blob(self, location: str, token: str | None = None) -> bytes:
        value = self._lookup(location, token)
        return value if isinstance(value, bytes) else value.encode("utf-8")


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient(
        {
            "a.py": "x",
            "b.txt": "plain",
            "dir/c.ts": "y",
            "dir/sub/d.css": "body {}",
        },
    )
