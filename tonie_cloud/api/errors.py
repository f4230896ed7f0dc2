"""Exception hierarchy for the Tonie cloud client.

WHY: Callers (CLI, scripts, tests) need to tell apart a rejected login, a
missing household selection, an API error and a failed blob upload without
parsing messages. Each failure mode of the client has its own type.

HOW: Everything derives from TonieError so a single except clause can catch
any client failure. Errors coming from an HTTP response keep the status code
and the response body text.

RULES:
- Always include status and body when the failure came from a response
- status is None when no response was received (transport error)
- No exception here triggers a retry anywhere in the package
"""

from __future__ import annotations


class TonieError(Exception):
    """Base class for every error raised by tonie_cloud."""


class NotAuthenticated(TonieError):
    """Raised when an API call needs a token but none has been obtained."""

    def __init__(self, message: str = "No access token available. Call `authenticate` first.") -> None:
        super().__init__(message)


class AuthenticationFailed(TonieError):
    """Raised when the token exchange is rejected or cannot be completed.

    WHY: A bad password, a locked account and an unreachable identity
    provider all leave the session without a token; the caller only needs
    to know the login did not work, plus the details for the message.

    RULES:
    - status/body come from the token endpoint response when there was one
    - The session never keeps a token after this is raised
    """

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        self.status = status
        self.body = body
        if status is not None:
            message = f"{message} (HTTP {status}): {body}"
        super().__init__(message)


class AmbiguousHousehold(TonieError):
    """Raised when no household is selected and one cannot be picked automatically."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(
            "No current household set. Can't set household automatically "
            f"because there are {count} households."
        )


class ServiceError(TonieError):
    """Raised when the application API returns a non-2xx response."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Tonie API error {status}: {body}")


class DecodeError(TonieError):
    """Raised when a response body does not match the expected shape."""


class FileNotFound(TonieError, FileNotFoundError):
    """Raised when the local file to upload does not exist."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")

    def __str__(self) -> str:
        return f"File not found: {self.path}"


class UploadFailed(TonieError):
    """Raised when streaming a file to the blob store fails.

    status is None for transport failures (connection reset, timeout),
    otherwise the blob store's HTTP status.
    """

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message)


class ChapterNotFound(TonieError):
    """Raised when a chapter to remove is not in the figurine's chapter list."""


class AmbiguousChapter(ChapterNotFound):
    """Raised when the chapter to remove occurs more than once."""


class AcquisitionFailed(TonieError):
    """Raised when downloading or trimming audio with the external tools fails."""
