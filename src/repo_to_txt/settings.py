from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from repo_to_txt.config import DEFAULT_REVISION, GITHUB_API_BASE
from repo_to_txt.exceptions import ConfigurationError

ENV_FILE = find_dotenv(usecwd=True)
TOKEN_ENV_VAR = "GITHUB_TOKEN"


def default_token() -> str:
    """Read the access token from the process environment, then from the `.env` file.

    Returns:
        str: the token, or an empty string when none is configured
    """
    token = os.environ.get(TOKEN_ENV_VAR, "")
    if not token and ENV_FILE:
        token = dotenv_values(ENV_FILE).get(TOKEN_ENV_VAR) or ""
    return token.strip()


class Settings(BaseModel):
    """Configuration settings for the repo_to_txt module."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str = Field(..., description="GitHub repository URL.")
    token: str = Field(default_factory=default_token, description="GitHub access token.")
    output: Path | None = Field(default=None, description="Output file (.txt or .zip).")
    format: str = Field(default="", description="Force format (txt or zip).")
    default_revision: str = Field(
        default=DEFAULT_REVISION,
        description="Revision used when the URL does not name one.",
    )
    api_base: str = Field(default=GITHUB_API_BASE, description="GitHub REST API base URL.")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds.")
    workers: int = Field(default=1, ge=1, le=32, description="Concurrent file downloads.")
    toggle: list[str] = Field(default_factory=list, description="Paths to toggle after loading.")
    list_tree: bool = Field(default=False, description="Print the tree and exit.")
    copy_to_clipboard: bool = Field(default=False, description="Copy the text output to the clipboard.")
    log_file: str = Field(default="", description="Log file path.")
    config_file: str = Field(default="", description="YAML configuration file.")


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load option defaults from a YAML file.

    Keys may use dashes or underscores (`log-file` or `log_file`).

    Args:
        path (str | Path): path to the YAML file

    Raises:
        ConfigurationError: if the file cannot be read or is not a mapping

    Returns:
        dict[str, Any]: option names (underscored) mapped to their values
    """
    source = str(path)
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(source=source, reason=str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(source=source, reason=f"invalid YAML ({e})") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(source=source, reason="top level must be a mapping")
    return {str(k).replace("-", "_"): v for k, v in data.items()}
