"""Custom exception classes for the headshot pipeline."""

from typing import Optional

from ..models.enums import ErrorKind


class HeadshotStudioError(Exception):
    """Base exception for all pipeline errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, user_message: Optional[str] = None):
        self.message = message
        self.user_message = user_message or message
        super().__init__(message)


class ConfigurationError(HeadshotStudioError):
    """Configuration or initialization errors."""
    pass


class InvalidTypeError(HeadshotStudioError):
    """Declared media type is not an allowed image type."""
    kind = ErrorKind.INVALID_TYPE


class FileTooLargeError(HeadshotStudioError):
    """Declared upload size exceeds the configured maximum."""
    kind = ErrorKind.FILE_TOO_LARGE


class UnsupportedImageError(HeadshotStudioError):
    """Image bytes could not be decoded."""
    kind = ErrorKind.UNSUPPORTED_IMAGE


class TooSmallError(HeadshotStudioError):
    """Decoded image is below the minimum dimension."""
    kind = ErrorKind.TOO_SMALL


class QuotaExceededError(HeadshotStudioError):
    """Upstream quota still exhausted after all retry attempts."""
    kind = ErrorKind.QUOTA_EXCEEDED


class UpstreamError(HeadshotStudioError):
    """Upstream generation call failed for a non-quota reason."""
    kind = ErrorKind.UPSTREAM_ERROR


class MalformedResponseError(HeadshotStudioError):
    """Upstream response did not carry an inline image."""
    kind = ErrorKind.MALFORMED_RESPONSE


class PipelineTimeoutError(HeadshotStudioError):
    """Request exceeded its overall timeout."""
    kind = ErrorKind.TIMEOUT


class ArtifactNotFoundError(HeadshotStudioError):
    """Artifact handle does not resolve to stored bytes."""
    kind = ErrorKind.NOT_FOUND


class ProviderError(Exception):
    """Generic provider API error with status code."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class RateLimitError(ProviderError):
    """API rate limit or quota exceeded."""

    def __init__(self, provider: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after}s"
        super().__init__(provider, message, 429)
