from __future__ import annotations

import base64
import binascii
import io
import zipfile
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ConfigDict, computed_field

from repo_to_txt.exceptions import (
    NoFilesSelectedError,
    RateLimitedError,
    RepoToTxtError,
    TransportFailureError,
    UnknownPathError,
)
from repo_to_txt.logging import logger
from repo_to_txt.retrieval import fetch_ordered
from repo_to_txt.tree import index_files

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from repo_to_txt.config import ContentPayload, TreeEntry
    from repo_to_txt.github import GitHubClient
    from repo_to_txt.retrieval import CancellationToken
    from repo_to_txt.tree import DirectoryNode

R = TypeVar("R")

SECTION_HEADER = "// --- {path} ---"
SECTION_SEPARATOR = "\n\n"


class FileSection(BaseModel):
    """One retrieved file of an aggregated document."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str


class AggregatedOutput(BaseModel):
    """Ordered file sections and the single text document built from them."""

    model_config = ConfigDict(frozen=True)

    sections: list[FileSection]

    @computed_field
    @property
    def text(self) -> str:
        """Sections rendered as `// --- <path> ---` headers followed by the body."""
        return SECTION_SEPARATOR.join(
            f"{SECTION_HEADER.format(path=s.path)}\n{s.content}" for s in self.sections
        )


class ArchiveResult(BaseModel):
    """A ZIP container of the selected files and the bytes retrieved to build it."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    total_size: int
    file_count: int

    @computed_field
    @property
    def size_label(self) -> str:
        return f"ZIP: {self.total_size / 1024:.2f} KB"


def decode_payload(payload: ContentPayload, target: str = "") -> str:
    """Turn a blob payload into text.

    Base64 payloads (GitHub wraps them every 60 characters) are decoded and
    read as UTF-8, replacing undecodable bytes. Anything tagged `utf-8`, or not
    tagged at all, is already text.

    Args:
        payload (ContentPayload): content and encoding tag from the blobs API
        target (str): the path being decoded, used in error messages

    Raises:
        TransportFailureError: if the encoding is unknown or the base64 is corrupt

    Returns:
        str: the decoded text
    """
    encoding = payload.encoding.lower()
    if encoding in {"", "utf-8", "utf8"}:
        return payload.content
    if encoding != "base64":
        raise TransportFailureError(target=target, reason=f"unsupported encoding {payload.encoding!r}")
    try:
        raw = base64.b64decode("".join(payload.content.split()), validate=True)
    except binascii.Error as e:
        raise TransportFailureError(target=target, reason="corrupt base64 payload") from e
    return raw.decode("utf-8", errors="replace")


def resolve_entries(paths: Sequence[str], root: DirectoryNode) -> list[TreeEntry]:
    """Resolve selected paths to their blob entries, failing before any retrieval.

    Raises:
        NoFilesSelectedError: if `paths` is empty
        UnknownPathError: for the first path missing from the tree
    """
    if not paths:
        raise NoFilesSelectedError
    files = index_files(root)
    entries: list[TreeEntry] = []
    for path in paths:
        node = files.get(path)
        if node is None:
            raise UnknownPathError(path=path)
        entries.append(node.entry)
    return entries


def _per_path(fetch: Callable[[TreeEntry], R]) -> Callable[[TreeEntry], R]:
    """Attribute any retrieval failure to the entry's path."""

    def run(entry: TreeEntry) -> R:
        try:
            return fetch(entry)
        except RateLimitedError:
            raise
        except RepoToTxtError as e:
            raise TransportFailureError(target=entry.path, reason=str(e)) from e

    return run


def aggregate_text(
    paths: Sequence[str],
    root: DirectoryNode,
    client: GitHubClient,
    *,
    token: str | None = None,
    workers: int = 1,
    cancel: CancellationToken | None = None,
) -> AggregatedOutput:
    """Retrieve the selected files and concatenate them into one document.

    Args:
        paths (Sequence[str]): selected file paths, in output order
        root (DirectoryNode): the materialized tree the paths belong to
        client (GitHubClient): source of the blob contents
        token (str | None): optional access token forwarded with every request
        workers (int): maximum number of concurrent downloads
        cancel (CancellationToken | None): optional cancellation flag

    Returns:
        AggregatedOutput: one section per path, in the order of `paths`
    """
    entries = resolve_entries(paths, root)
    logger.info("aggregation_started", files=len(entries), workers=workers)

    @_per_path
    def fetch(entry: TreeEntry) -> FileSection:
        payload = client.fetch_content(entry.content_location, token)
        return FileSection(path=entry.path, content=decode_payload(payload, entry.path))

    sections = fetch_ordered(entries, fetch, workers=workers, cancel=cancel)
    output = AggregatedOutput(sections=sections)
    logger.info("aggregation_finished", files=len(sections), chars=len(output.text))
    return output


def build_archive(
    paths: Sequence[str],
    root: DirectoryNode,
    client: GitHubClient,
    *,
    token: str | None = None,
    workers: int = 1,
    cancel: CancellationToken | None = None,
) -> ArchiveResult:
    """Retrieve the selected files as raw bytes and pack them into a ZIP archive.

    The archive is only written once every payload has been retrieved, so a
    failed run never yields a partial container.

    Args:
        paths (Sequence[str]): selected file paths, in archive order
        root (DirectoryNode): the materialized tree the paths belong to
        client (GitHubClient): source of the blob bytes
        token (str | None): optional access token forwarded with every request
        workers (int): maximum number of concurrent downloads
        cancel (CancellationToken | None): optional cancellation flag

    Returns:
        ArchiveResult: the archive bytes and the summed size of the payloads
    """
    entries = resolve_entries(paths, root)
    logger.info("archive_started", files=len(entries), workers=workers)

    @_per_path
    def fetch(entry: TreeEntry) -> bytes:
        return client.fetch_blob(entry.content_location, token)

    blobs = fetch_ordered(entries, fetch, workers=workers, cancel=cancel)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for entry, blob in zip(entries, blobs, strict=True):
            zf.writestr(entry.path, blob)
    total = sum(len(b) for b in blobs)
    logger.info("archive_finished", files=len(blobs), total_size=total)
    return ArchiveResult(data=buf.getvalue(), total_size=total, file_count=len(blobs))
