from __future__ import annotations

import os
import shutil
import subprocess  # noqa: S404
import sys

import pyperclip

from repo_to_txt.exceptions import ClipboardError
from repo_to_txt.logging import logger


def fallback_command() -> list[str] | None:
    """First clipboard command available on this platform, if any."""
    if sys.platform == "darwin":
        candidates = [["pbcopy"]]
    elif os.name == "nt":
        candidates = [["clip"]]
    else:
        candidates = [
            ["wl-copy"],
            ["xclip", "-selection", "clipboard"],
            ["xsel", "--clipboard", "--input"],
        ]
    for command in candidates:
        if shutil.which(command[0]) is not None:
            return command
    return None


def copy_text(text: str) -> str:
    """Copy text to the clipboard, trying one alternate mechanism on failure.

    Args:
        text (str): the text to copy

    Raises:
        ClipboardError: if both pyperclip and the platform command fail

    Returns:
        str: the name of the mechanism that succeeded
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning("clipboard_primary_failed", error=str(e))
    else:
        return "pyperclip"

    command = fallback_command()
    if command is None:
        raise ClipboardError(reason="pyperclip failed and no clipboard command is installed")
    try:
        subprocess.run(command, input=text, text=True, check=True)  # noqa: S603
    except (OSError, subprocess.CalledProcessError) as e:
        raise ClipboardError(reason=f"{command[0]}: {e}") from e
    return command[0]
