"""Materialize a flat GitHub tree listing into nested directory and file nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from repo_to_txt.config import TreeEntry, has_common_extension
from repo_to_txt.exceptions import MalformedListingError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence


@dataclass(frozen=True)
class FileNode:
    """Leaf of the tree, wrapping exactly one blob entry."""

    entry: TreeEntry

    @property
    def path(self) -> str:
        return self.entry.path


@dataclass
class DirectoryNode:
    """Inner node; children are kept in insertion order, which is display order."""

    path: str = ""
    children: dict[str, TreeNode] = field(default_factory=dict)


TreeNode = DirectoryNode | FileNode


@dataclass(frozen=True)
class MaterializedTree:
    """Result of a materialization: the root, the default selection seed and the summed blob size."""

    root: DirectoryNode
    default_selection: list[str]
    total_size: int = 0


def sort_entries(entries: Iterable[TreeEntry]) -> list[TreeEntry]:
    """Sort a listing by path, comparing the UTF-8 bytes (git's own ordering).

    Args:
        entries (Iterable[TreeEntry]): listing in any order

    Returns:
        list[TreeEntry]: a new list sorted ascending by path bytes
    """
    return sorted(entries, key=lambda e: e.path.encode("utf-8"))


def materialize(entries: Sequence[TreeEntry]) -> MaterializedTree:
    """Build the directory tree from a sorted flat listing.

    Directories are inferred from blob paths only; `tree` entries (and empty
    directories) produce no node. The iteration order of `entries` becomes the
    child order of every directory.

    Args:
        entries (Sequence[TreeEntry]): listing sorted with `sort_entries`

    Raises:
        MalformedListingError: if a blob path is empty or collides with another node

    Returns:
        MaterializedTree: root directory and the paths selected by default
    """
    root = DirectoryNode()
    default_selection: list[str] = []
    total_size = 0
    for entry in entries:
        if not entry.is_blob:
            continue
        parts = entry.path.split("/")
        if not entry.path or any(not part for part in parts):
            raise MalformedListingError(path=entry.path, reason="empty path segment")

        current = root
        for depth, part in enumerate(parts[:-1], start=1):
            child = current.children.get(part)
            if child is None:
                child = DirectoryNode(path="/".join(parts[:depth]))
                current.children[part] = child
            elif isinstance(child, FileNode):
                raise MalformedListingError(
                    path=entry.path,
                    reason=f"{child.path!r} is a file, not a directory",
                )
            current = child

        name = parts[-1]
        if name in current.children:
            raise MalformedListingError(path=entry.path, reason="path already present in the tree")
        current.children[name] = FileNode(entry=entry)
        total_size += entry.size or 0
        if has_common_extension(entry.path):
            default_selection.append(entry.path)

    return MaterializedTree(root=root, default_selection=default_selection, total_size=total_size)


def iter_files(node: TreeNode) -> Iterator[FileNode]:
    """Yield every file under `node` (or `node` itself) in display order."""
    if isinstance(node, FileNode):
        yield node
        return
    for child in node.children.values():
        yield from iter_files(child)


def leaf_paths(node: TreeNode) -> list[str]:
    """Full paths of all files under `node`, in display order."""
    return [f.path for f in iter_files(node)]


def index_files(root: DirectoryNode) -> dict[str, FileNode]:
    """Map every file path of the tree to its node."""
    return {f.path: f for f in iter_files(root)}


def find_node(root: DirectoryNode, path: str) -> TreeNode | None:
    """Look up a directory or file by its full slash-separated path.

    The empty string (or `/`) designates the root itself.

    Args:
        root (DirectoryNode): root of a materialized tree
        path (str): full path, leading and trailing slashes ignored

    Returns:
        TreeNode | None: the node, or None if the path is not in the tree
    """
    parts = [p for p in path.strip("/").split("/") if p]
    node: TreeNode = root
    for part in parts:
        if not isinstance(node, DirectoryNode):
            return None
        child = node.children.get(part)
        if child is None:
            return None
        node = child
    return node


def build_tree_lines(
    root_name: str,
    root: DirectoryNode,
    marker: Callable[[TreeNode], str] | None = None,
) -> list[str]:
    """Build a visual tree representation of a materialized tree.

    Args:
        root_name (str): the name to use for the root line
        root (DirectoryNode): the tree to render
        marker (Callable[[TreeNode], str] | None): optional prefix for each node,
            e.g. a checkbox such as "[x] "

    Returns:
        list[str]: one string per line, suitable for printing
    """
    lines: list[str] = [root_name]

    def walk(node: DirectoryNode, prefix: str) -> None:
        entries = list(node.children.items())
        for idx, (name, child) in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            mark = marker(child) if marker else ""
            is_dir = isinstance(child, DirectoryNode)
            lines.append(prefix + branch + mark + name + ("/" if is_dir else ""))
            if is_dir:
                walk(child, prefix + ("    " if last else "│   "))

    walk(root, "")
    return lines
