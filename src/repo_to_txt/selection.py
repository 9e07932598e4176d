"""Selection of leaf paths with directory-level toggles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from repo_to_txt.exceptions import UnknownPathError
from repo_to_txt.tree import DirectoryNode, FileNode, find_node, leaf_paths

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from repo_to_txt.tree import TreeNode


class SelectionModel:
    """Insertion-ordered set of selected file paths over a materialized tree.

    Only file paths are stored. Whether a directory is checked is derived from
    its descendants every time it is asked, never cached.
    """

    def __init__(self, root: DirectoryNode, selected: Iterable[str] = ()) -> None:
        self._root = root
        self._selected: dict[str, None] = dict.fromkeys(selected)

    def __contains__(self, path: object) -> bool:
        return path in self._selected

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._selected))

    def __len__(self) -> int:
        return len(self._selected)

    @property
    def root(self) -> DirectoryNode:
        return self._root

    def paths(self) -> list[str]:
        """Selected paths in insertion order."""
        return list(self._selected)

    def is_selected(self, path: str) -> bool:
        return path in self._selected

    def toggle_file(self, path: str) -> None:
        """Flip membership of exactly `path`."""
        if path in self._selected:
            del self._selected[path]
        else:
            self._selected[path] = None

    def toggle_directory(self, node: DirectoryNode) -> None:
        """Drive every file under `node` to the same membership.

        If all of them are selected they are all removed, otherwise the missing
        ones are appended in display order.
        """
        paths = leaf_paths(node)
        if all(p in self._selected for p in paths):
            for p in paths:
                self._selected.pop(p, None)
        else:
            for p in paths:
                self._selected.setdefault(p, None)

    def is_directory_checked(self, node: DirectoryNode) -> bool:
        """True iff every file under `node` is selected."""
        return all(p in self._selected for p in leaf_paths(node))

    def is_checked(self, node: TreeNode) -> bool:
        if isinstance(node, FileNode):
            return node.path in self._selected
        return self.is_directory_checked(node)

    def toggle(self, path: str) -> None:
        """Toggle a file or a whole directory, given its full path.

        Raises:
            UnknownPathError: if `path` names nothing in the tree
        """
        node = find_node(self._root, path)
        if node is None:
            raise UnknownPathError(path=path)
        if isinstance(node, FileNode):
            self.toggle_file(node.path)
        else:
            self.toggle_directory(node)
