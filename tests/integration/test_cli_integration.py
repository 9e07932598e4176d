from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import requests

from repo_to_txt import cli

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

API = "https://api.github.com"
BLOBS = {
    "s-app": b"print('hi')\n",
    "s-readme": b"# Hello\n",
    "s-util": b"export const x = 1;\n",
}
LISTING = [
    {"path": "README.md", "type": "blob", "sha": "s-readme", "url": f"{API}/repos/octo/hello/git/blobs/s-readme"},
    {"path": "src", "type": "tree", "sha": "t-src", "url": f"{API}/repos/octo/hello/git/trees/t-src"},
    {"path": "src/app.py", "type": "blob", "sha": "s-app", "url": f"{API}/repos/octo/hello/git/blobs/s-app"},
    {"path": "src/util.ts", "type": "blob", "sha": "s-util", "url": f"{API}/repos/octo/hello/git/blobs/s-util"},
]


def _response(status: int, *, body: Any = None, raw: bytes | None = None) -> requests.Response:  # noqa: ANN401
    response = requests.Response()
    response.status_code = status
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    return response


class FakeGitHub:
    """Route requests.Session.get calls to canned GitHub API answers."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, dict[str, str]]] = []

    def __call__(self, url: str, headers: dict[str, str], params: dict[str, str] | None = None, timeout: float = 0) -> requests.Response:
        self.requests.append((url, headers))
        if url == f"{API}/repos/octo/hello/contents/":
            if (params or {}).get("ref") != "main":
                return _response(404, body={"message": "No commit found for the ref"})
            return _response(200, body={"sha": "root-sha", "type": "dir"})
        if url == f"{API}/repos/octo/hello/git/trees/root-sha":
            return _response(200, body={"sha": "root-sha", "tree": LISTING, "truncated": False})
        sha = url.rsplit("/", 1)[-1]
        if sha in BLOBS:
            if headers.get("Accept") == "application/vnd.github.raw":
                return _response(200, raw=BLOBS[sha])
            content = base64.encodebytes(BLOBS[sha]).decode("ascii")
            return _response(200, body={"sha": sha, "content": content, "encoding": "base64"})
        return _response(404, body={"message": "Not Found"})


@pytest.fixture
def github(mocker: MockerFixture) -> FakeGitHub:
    fake = FakeGitHub()
    mocker.patch.object(requests.Session, "get", autospec=True, side_effect=lambda _self, *a, **kw: fake(*a, **kw))
    return fake


@pytest.mark.integration
def test_main_generates_text_through_http_client(tmp_path: Path, github: FakeGitHub) -> None:
    output = tmp_path / "repo.txt"

    exit_code = cli.main(["https://github.com/octo/hello", "--token", "t0k", "--output", str(output)])

    assert exit_code == 0
    assert output.read_text(encoding="utf-8") == (
        "// --- src/app.py ---\nprint('hi')\n\n\n// --- src/util.ts ---\nexport const x = 1;\n"
    )
    assert all(headers.get("Authorization") == "token t0k" for _, headers in github.requests)


@pytest.mark.integration
def test_main_reports_missing_revision(tmp_path: Path, github: FakeGitHub, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["https://github.com/octo/hello/tree/nope", "--output", str(tmp_path / "x.txt")])

    assert exit_code == 1
    assert "Not found: octo/hello@nope" in capsys.readouterr().err
    assert not (tmp_path / "x.txt").exists()
