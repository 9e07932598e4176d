"""
repo_to_txt — Flatten a remote GitHub repository for an LLM.

Overview
--------
Point the tool at a GitHub repository URL (optionally pinned to a branch, tag
or commit and to a sub-directory). It lists the repository tree, pre-selects
common source files (.js .ts .jsx .tsx .py .cpp .html .css), applies the
`--toggle` paths you give, then either:

1) **Text (`--format txt`)** — one document where every file is preceded by a
   `// --- <path> ---` header, written to `repo.txt` by default;
2) **ZIP (`--format zip`)** — the selected files under their repository paths,
   written to `repo_files.zip` by default.

Usage
-----
Run `python -m repo_to_txt.cli --help` for full options. Common examples:
    - Preview the tree and the default selection:
        uv run repo-to-txt https://github.com/owner/repo --list

    - Text export of a sub-directory, adding README.md and dropping tests/:
        uv run repo-to-txt https://github.com/owner/repo/tree/dev/pkg --toggle README.md --toggle tests

    - ZIP export with 8 parallel downloads and a token from the environment:
        GITHUB_TOKEN=... uv run repo-to-txt https://github.com/owner/repo --format zip --workers 8
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from repo_to_txt import __version__
from repo_to_txt.clipboard import copy_text
from repo_to_txt.config import (
    DEFAULT_ARCHIVE_OUTPUT,
    DEFAULT_REVISION,
    DEFAULT_TEXT_OUTPUT,
    GITHUB_API_BASE,
    OutputFormat,
)
from repo_to_txt.exceptions import ConfigurationError, RepoToTxtError, TransportFailureError
from repo_to_txt.github import GitHubClient
from repo_to_txt.logging import logger, setup_logging
from repo_to_txt.session import Session
from repo_to_txt.settings import Settings, load_config_file
from repo_to_txt.tree import build_tree_lines

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_to_txt.tree import TreeNode


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="repo-to-txt",
        description="Export files of a GitHub repository as one text file or a ZIP archive.",
    )
    p.add_argument("url", help="https://github.com/<owner>/<repo>[/tree/<revision>[/<path>]]")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", dest="config_file", type=str, default="", help="YAML file with option defaults.")
    p.add_argument("--token", type=str, default=None, help="GitHub access token (default: $GITHUB_TOKEN).")
    p.add_argument("--output", type=str, default=None, help="Output file (.txt or .zip).")
    p.add_argument(
        "--format",
        type=str,
        choices=[f.value for f in OutputFormat],
        default="",
        help="Force format.",
    )
    p.add_argument(
        "--toggle",
        action="append",
        default=[],
        help="Toggle a file or directory after the default selection (repeatable).",
    )
    p.add_argument("--list", dest="list_tree", action="store_true", help="Print the tree and exit.")
    p.add_argument("--copy", dest="copy_to_clipboard", action="store_true", help="Copy the text to the clipboard.")
    p.add_argument("--workers", type=int, default=1, help="Concurrent file downloads.")
    p.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout in seconds.")
    p.add_argument(
        "--revision-default",
        dest="default_revision",
        type=str,
        default=DEFAULT_REVISION,
        help="Revision used when the URL does not name one.",
    )
    p.add_argument("--api-base", type=str, default=GITHUB_API_BASE, help="GitHub REST API base URL.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse the command line, using a `--config` YAML file for defaults.

    Values given on the command line win over the file, which wins over the
    built-in defaults.
    """
    p = build_parser()
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", dest="config_file", default="")
    known, _ = pre.parse_known_args(argv)
    if known.config_file:
        p.set_defaults(**load_config_file(known.config_file))
    args = vars(p.parse_args(argv))
    if args["token"] is None:
        del args["token"]
    try:
        return Settings(**args)
    except ValidationError as e:
        reason = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise ConfigurationError(source=known.config_file or "command line", reason=reason) from e


def resolve_format(settings: Settings) -> tuple[OutputFormat, Path]:
    """Pick the output format and file from explicit options or the output suffix."""
    fmt = (settings.format or "").strip().lower()
    if not fmt:
        suffix = settings.output.suffix.lower() if settings.output else ""
        fmt = OutputFormat.ZIP if suffix == ".zip" else OutputFormat.TXT
    try:
        fmt = OutputFormat(fmt)
    except ValueError as e:
        choices = ", ".join(f.value for f in OutputFormat)
        raise ConfigurationError(source="format", reason=f"{fmt!r} is not one of {choices}") from e
    default = DEFAULT_ARCHIVE_OUTPUT if fmt is OutputFormat.ZIP else DEFAULT_TEXT_OUTPUT
    return fmt, settings.output or Path(default)


def write_output(path: Path, data: bytes) -> None:
    """Write an artifact, reporting filesystem faults as TransportFailureError."""
    try:
        path.write_bytes(data)
    except OSError as e:
        raise TransportFailureError(target=str(path), reason=e.strerror or str(e), action="write") from e


def render_tree(session: Session) -> str:
    """Tree with `[x]` / `[ ]` markers followed by a selection summary."""
    selection = session.selection
    reference = session.reference
    root_name = reference.slug if reference else "."
    if reference and reference.subpath:
        root_name = f"{root_name}/{reference.subpath}"

    def marker(node: TreeNode) -> str:
        return "[x] " if selection.is_checked(node) else "[ ] "

    lines = build_tree_lines(root_name, session.root, marker)
    lines.append("")
    lines.append(f"selected={len(selection)}")
    return "\n".join(lines)


def run(settings: Settings, client: GitHubClient | None = None) -> int:
    fmt, out_path = resolve_format(settings)
    session = Session(client or GitHubClient(settings.api_base, timeout=settings.timeout), settings)
    session.load(settings.url, settings.token)
    for path in settings.toggle:
        session.toggle(path)

    if settings.list_tree:
        sys.stdout.write(render_tree(session) + "\n")
        return 0

    if fmt is OutputFormat.ZIP:
        result = session.archive()
        write_output(out_path, result.data)
        print(f"Wrote {out_path} format={fmt} files={result.file_count} {result.size_label}")
        return 0

    output = session.generate()
    write_output(out_path, output.text.encode("utf-8"))
    print(f"Wrote {out_path} format={fmt} files={len(output.sections)}")
    if settings.copy_to_clipboard:
        mechanism = copy_text(output.text)
        print(f"Copied to clipboard ({mechanism})")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
        if settings.log_file:
            setup_logging(settings.log_file)
        return run(settings)
    except RepoToTxtError as e:
        logger.error("command_failed", error_type=type(e).__name__, error=str(e))
        sys.stderr.write(f"error: {e}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
