from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

GITHUB_API_BASE = "https://api.github.com"
GITHUB_HOSTS: tuple[str, ...] = ("github.com", "www.github.com")
DEFAULT_REVISION = "main"

ACCEPT_OBJECT = "application/vnd.github.object+json"
ACCEPT_JSON = "application/vnd.github+json"
ACCEPT_RAW = "application/vnd.github.raw"

DEFAULT_TEXT_OUTPUT = "repo.txt"
DEFAULT_ARCHIVE_OUTPUT = "repo_files.zip"

# Extensions selected by default right after a tree is materialized.
COMMON_EXTENSIONS: tuple[str, ...] = (".js", ".ts", ".jsx", ".tsx", ".py", ".cpp", ".html", ".css")


class EntryKind(StrEnum):
    """Kind of an item in a GitHub recursive tree listing."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"


class OutputFormat(StrEnum):
    """Artifacts the CLI can produce from a selection."""

    TXT = "txt"
    ZIP = "zip"


def has_common_extension(path: str) -> bool:
    """Check whether a path ends with one of the default-selected extensions.

    Args:
        path (str): slash-separated repository path

    Returns:
        bool: True if the lowercased path ends with an entry of COMMON_EXTENSIONS
    """
    return path.lower().endswith(COMMON_EXTENSIONS)


class RepositoryReference(BaseModel):
    """Structured coordinates parsed from a repository URL.

    Attributes:
        owner: Account or organisation owning the repository.
        name: Repository name.
        revision: Branch, tag or commit; None when the URL does not pin one.
        subpath: Directory inside the repository to browse; None for the root.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    revision: str | None = None
    subpath: str | None = None

    @computed_field
    @property
    def slug(self) -> str:
        """`owner/name` form used in log records and messages."""
        return f"{self.owner}/{self.name}"


class TreeEntry(BaseModel):
    """One item of the flat, recursive listing returned by the git trees API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    path: str
    kind: EntryKind = Field(..., alias="type")
    content_location: str = Field(default="", alias="url")
    id: str = Field(default="", alias="sha")
    size: int | None = Field(default=None, ge=0)

    @computed_field
    @property
    def is_blob(self) -> bool:
        """Only blob entries are ever downloaded."""
        return self.kind is EntryKind.BLOB


class ContentPayload(BaseModel):
    """Body of a blob as returned by the git blobs API, still encoded."""

    model_config = ConfigDict(frozen=True)

    content: str
    encoding: str = ""
