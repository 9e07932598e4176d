from dataclasses import dataclass


@dataclass(frozen=True)
class RepoToTxtError(Exception):
    """Base exception for errors in the repo_to_txt module."""

    def __str__(self) -> str:
        return self.message

    @property
    def message(self) -> str:
        """Human-readable description of the error."""
        return self.__doc__.strip().splitlines()[0] if self.__doc__ else type(self).__name__


@dataclass(frozen=True)
class InvalidReferenceError(RepoToTxtError):
    """Raised when a string is not a valid repository URL."""

    url: str

    @property
    def message(self) -> str:
        return (
            f"Invalid GitHub repository URL: {self.url!r}. "
            "Expected https://github.com/<owner>/<repo>[/tree/<revision>[/<path>]]."
        )


@dataclass(frozen=True)
class NotFoundError(RepoToTxtError):
    """Raised when the repository, revision or path does not exist remotely."""

    target: str

    @property
    def message(self) -> str:
        return f"Not found: {self.target}"


@dataclass(frozen=True)
class RateLimitedError(RepoToTxtError):
    """Raised when the remote API reports that the request quota is exhausted."""

    target: str
    reset_at: str = ""

    @property
    def message(self) -> str:
        hint = f" (quota resets at {self.reset_at})" if self.reset_at else ""
        return (
            f"GitHub API rate limit exceeded while requesting {self.target}{hint}. "
            "Provide an access token with --token or wait before retrying."
        )


@dataclass(frozen=True)
class MalformedListingError(RepoToTxtError):
    """Raised when a flat listing cannot be turned into a tree."""

    path: str
    reason: str

    @property
    def message(self) -> str:
        return f"Malformed repository listing at {self.path!r}: {self.reason}"


@dataclass(frozen=True)
class NoFilesSelectedError(RepoToTxtError):
    """No files selected."""


@dataclass(frozen=True)
class UnknownPathError(RepoToTxtError):
    """Raised when a path is not present in the materialized tree."""

    path: str

    @property
    def message(self) -> str:
        return f"Unknown path: {self.path!r} is not part of the current repository tree."


@dataclass(frozen=True)
class TransportFailureError(RepoToTxtError):
    """Raised for any other network or IO fault."""

    target: str
    reason: str
    action: str = "fetch"

    @property
    def message(self) -> str:
        return f"Failed to {self.action} {self.target}: {self.reason}"


@dataclass(frozen=True)
class OperationCancelledError(RepoToTxtError):
    """Operation cancelled."""


@dataclass(frozen=True)
class NoRepositoryLoadedError(RepoToTxtError):
    """No repository loaded; load a repository URL first."""


@dataclass(frozen=True)
class ConfigurationError(RepoToTxtError):
    """Raised when a configuration file cannot be used."""

    source: str
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid configuration in {self.source}: {self.reason}"


@dataclass(frozen=True)
class ClipboardError(RepoToTxtError):
    """Raised when no clipboard mechanism could copy the text."""

    reason: str

    @property
    def message(self) -> str:
        return f"Clipboard copy failed: {self.reason}"
