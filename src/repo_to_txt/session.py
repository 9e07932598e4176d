"""Session context: one repository, its tree, the selection and the last output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from repo_to_txt.exceptions import NoRepositoryLoadedError
from repo_to_txt.logging import logger
from repo_to_txt.output_construction import aggregate_text, build_archive
from repo_to_txt.reference import parse_reference
from repo_to_txt.selection import SelectionModel
from repo_to_txt.tree import find_node, materialize, sort_entries

if TYPE_CHECKING:
    from repo_to_txt.config import RepositoryReference
    from repo_to_txt.github import GitHubClient
    from repo_to_txt.output_construction import AggregatedOutput, ArchiveResult
    from repo_to_txt.retrieval import CancellationToken
    from repo_to_txt.settings import Settings
    from repo_to_txt.tree import DirectoryNode, MaterializedTree


class Session:
    """Holds everything one browsing session needs; nothing outlives it.

    The access token lives only on the session and is forwarded per request.
    """

    def __init__(self, client: GitHubClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings
        self.token: str | None = None
        self.reference: RepositoryReference | None = None
        self.materialized: MaterializedTree | None = None
        self._selection: SelectionModel | None = None
        self.output: AggregatedOutput | None = None

    @property
    def root(self) -> DirectoryNode:
        if self.materialized is None:
            raise NoRepositoryLoadedError
        return self.materialized.root

    @property
    def selection(self) -> SelectionModel:
        if self._selection is None:
            raise NoRepositoryLoadedError
        return self._selection

    def load(self, url: str, token: str | None = None) -> DirectoryNode:
        """Parse `url`, fetch its listing and materialize it with the default selection.

        Any previous tree, selection and output are discarded first, so a failed
        load leaves the session empty.

        Args:
            url (str): repository URL, optionally pinned to a revision and subpath
            token (str | None): optional access token

        Returns:
            DirectoryNode: root of the new tree
        """
        self.reference = None
        self.materialized = None
        self._selection = None
        self.output = None
        self.token = token or None

        reference = parse_reference(url)
        revision = reference.revision or self.settings.default_revision
        sha = self.client.resolve_revision(reference, revision, self.token)
        entries = self.client.fetch_listing(reference, sha, self.token)
        materialized = materialize(sort_entries(entries))

        self.reference = reference
        self.materialized = materialized
        self._selection = SelectionModel(materialized.root, materialized.default_selection)
        logger.info(
            "repository_loaded",
            repo=reference.slug,
            revision=revision,
            subpath=reference.subpath or "",
            default_selected=len(materialized.default_selection),
            total_size=materialized.total_size,
        )
        return materialized.root

    def toggle(self, path: str) -> None:
        self.selection.toggle(path)

    def is_checked(self, path: str) -> bool:
        node = find_node(self.root, path)
        return node is not None and self.selection.is_checked(node)

    def generate(self, cancel: CancellationToken | None = None) -> AggregatedOutput:
        """Build the text document from the current selection.

        `output` is only replaced when every file was retrieved.
        """
        output = aggregate_text(
            self.selection.paths(),
            self.root,
            self.client,
            token=self.token,
            workers=self.settings.workers,
            cancel=cancel,
        )
        self.output = output
        return output

    def archive(self, cancel: CancellationToken | None = None) -> ArchiveResult:
        """Build the ZIP archive from the current selection."""
        return build_archive(
            self.selection.paths(),
            self.root,
            self.client,
            token=self.token,
            workers=self.settings.workers,
            cancel=cancel,
        )
