"""
Video generation error taxonomy.

Every failure carries a human-readable message, a stable error code and a
``retryable`` flag read by the retry policy:

- ServerStartFailed, EncodingFailed, GenerationTimeout: terminal
- HTTPStatus, InvalidResponse, GenerationFailed, ConnectionFailed: retryable
"""

from typing import Optional


class GenerationError(Exception):
    """Raised when video generation fails."""

    retryable: bool = False

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ServerStartFailed(GenerationError):
    """The companion service could not be started."""

    def __init__(self, message: str = "Social Effects server could not be started"):
        super().__init__(message, error_code="SERVER_START_FAILED")


class EncodingFailed(GenerationError):
    """The request payload could not be serialized."""

    def __init__(self, reason: str):
        super().__init__(f"JSON serialization failed: {reason}", error_code="ENCODING_FAILED")


class HTTPStatus(GenerationError):
    """The companion answered with a non-200 status."""

    retryable = True

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}", error_code=f"HTTP_{status_code}")


class InvalidResponse(GenerationError):
    """The response body was not JSON or lacked a required field."""

    retryable = True

    def __init__(self, message: str = "Invalid response from Social Effects"):
        super().__init__(message, error_code="INVALID_RESPONSE")


class GenerationFailed(GenerationError):
    """The companion explicitly reported ``success: false``."""

    retryable = True

    def __init__(self, message: str):
        super().__init__(message, error_code="GENERATION_FAILED")


class ConnectionFailed(GenerationError):
    """No HTTP response was received (refused, reset, per-request timeout)."""

    retryable = True

    def __init__(self, message: str):
        super().__init__(message, error_code="CONNECTION_FAILED")


class GenerationTimeout(GenerationError, TimeoutError):
    """The outer generation deadline elapsed."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(
            f"Video generation did not complete within {deadline:.0f} seconds",
            error_code="TIMEOUT",
        )
