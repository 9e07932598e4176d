"""Thin client for the GitHub REST endpoints used to browse and download a repository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import requests
from pydantic import ValidationError

from repo_to_txt.config import (
    ACCEPT_JSON,
    ACCEPT_OBJECT,
    ACCEPT_RAW,
    GITHUB_API_BASE,
    ContentPayload,
    TreeEntry,
)
from repo_to_txt.exceptions import NotFoundError, RateLimitedError, TransportFailureError
from repo_to_txt.logging import logger

if TYPE_CHECKING:
    from repo_to_txt.config import RepositoryReference


def auth_headers(token: str | None) -> dict[str, str]:
    """Authorization header for an optional access token."""
    return {"Authorization": f"token {token}"} if token else {}


def _reset_time(response: requests.Response) -> str:
    retry_after = response.headers.get("Retry-After", "")
    if retry_after.isdigit():
        return (datetime.now(UTC) + timedelta(seconds=int(retry_after))).isoformat(timespec="seconds")
    raw = response.headers.get("X-RateLimit-Reset", "")
    if raw.isdigit():
        return datetime.fromtimestamp(int(raw), tz=UTC).isoformat(timespec="seconds")
    return ""


def check_response(response: requests.Response, target: str) -> None:
    """Map an unsuccessful response to the matching error.

    Args:
        response (requests.Response): the response to check
        target (str): what was requested, used in error messages

    Raises:
        NotFoundError: on 404
        RateLimitedError: on 429, or 403 with an exhausted quota or a Retry-After header
        TransportFailureError: on any other non-2xx status
    """
    status = response.status_code
    if response.ok:
        return
    if status == requests.codes.not_found:
        raise NotFoundError(target=target)
    # secondary rate limits answer 403 with Retry-After while quota remains
    exhausted = response.headers.get("X-RateLimit-Remaining") == "0" or "Retry-After" in response.headers
    if status == requests.codes.too_many_requests or (status == requests.codes.forbidden and exhausted):
        raise RateLimitedError(target=target, reset_at=_reset_time(response))
    raise TransportFailureError(target=target, reason=f"HTTP {status} {response.reason or ''}".strip())


class GitHubClient:
    """Issue the revision, listing, content and blob requests against the GitHub API.

    The access token is never stored on the client; every call receives it from
    the session that owns it.
    """

    def __init__(
        self,
        api_base: str = GITHUB_API_BASE,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _get(self, url: str, *, accept: str, token: str | None, target: str, **params: Any) -> requests.Response:  # noqa: ANN401
        headers = {"Accept": accept, **auth_headers(token)}
        try:
            response = self.http.get(url, headers=headers, params=params or None, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportFailureError(target=target, reason=str(e)) from e
        check_response(response, target)
        return response

    def _get_json(self, url: str, *, accept: str, token: str | None, target: str, **params: Any) -> Any:  # noqa: ANN401
        response = self._get(url, accept=accept, token=token, target=target, **params)
        try:
            return response.json()
        except ValueError as e:
            raise TransportFailureError(target=target, reason="response is not valid JSON") from e

    def resolve_revision(self, reference: RepositoryReference, revision: str, token: str | None = None) -> str:
        """Return the object id of the reference's subpath at `revision`.

        Args:
            reference (RepositoryReference): owner, name and optional subpath
            revision (str): branch, tag or commit to resolve
            token (str | None): optional access token

        Returns:
            str: the SHA of the subpath (the tree id for a directory)
        """
        subpath = quote(reference.subpath or "", safe="/")
        url = f"{self.api_base}/repos/{reference.owner}/{reference.name}/contents/{subpath}"
        target = f"{reference.slug}@{revision}:{reference.subpath or '/'}"
        data = self._get_json(url, accept=ACCEPT_OBJECT, token=token, target=target, ref=revision)
        sha = data.get("sha") if isinstance(data, dict) else None
        if not sha:
            raise TransportFailureError(target=target, reason="response has no sha")
        logger.info("revision_resolved", repo=reference.slug, revision=revision, sha=sha)
        return sha

    def fetch_listing(self, reference: RepositoryReference, sha: str, token: str | None = None) -> list[TreeEntry]:
        """Return the recursive flat listing of the tree `sha`."""
        url = f"{self.api_base}/repos/{reference.owner}/{reference.name}/git/trees/{sha}"
        target = f"{reference.slug} tree {sha}"
        data = self._get_json(url, accept=ACCEPT_JSON, token=token, target=target, recursive="1")
        if not isinstance(data, dict) or not isinstance(data.get("tree"), list):
            raise TransportFailureError(target=target, reason="response has no tree")
        try:
            entries = [TreeEntry.model_validate(item) for item in data["tree"]]
        except ValidationError as e:
            raise TransportFailureError(target=target, reason=f"unexpected listing item ({e.error_count()} errors)") from e
        if data.get("truncated"):
            logger.warning("listing_truncated", repo=reference.slug, entries=len(entries))
        logger.info("listing_fetched", repo=reference.slug, entries=len(entries))
        return entries

    def fetch_content(self, location: str, token: str | None = None) -> ContentPayload:
        """Fetch a blob through the git blobs API; the payload is still encoded."""
        data = self._get_json(location, accept=ACCEPT_JSON, token=token, target=location)
        try:
            return ContentPayload.model_validate(data)
        except ValidationError as e:
            raise TransportFailureError(target=location, reason="response has no content") from e

    def fetch_blob(self, location: str, token: str | None = None) -> bytes:
        """Fetch the raw bytes of a blob."""
        return self._get(location, accept=ACCEPT_RAW, token=token, target=location).content
