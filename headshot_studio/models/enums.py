"""Enumerations for the headshot pipeline."""

from enum import Enum


class StyleType(str, Enum):
    """Transformation preset requested by the caller."""
    CORPORATE = "corporate"
    CREATIVE = "creative"
    EXECUTIVE = "executive"

    @classmethod
    def values(cls) -> list[str]:
        return [style.value for style in cls]


class ArtifactRole(str, Enum):
    """Role tag of an ephemeral artifact."""
    ORIGINAL = "original"
    NORMALIZED = "normalized"
    GENERATED = "generated"


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced in pipeline outcomes."""
    INVALID_TYPE = "InvalidType"
    FILE_TOO_LARGE = "FileTooLarge"
    UNSUPPORTED_IMAGE = "UnsupportedImage"
    TOO_SMALL = "TooSmall"
    QUOTA_EXCEEDED = "QuotaExceeded"
    UPSTREAM_ERROR = "UpstreamError"
    MALFORMED_RESPONSE = "MalformedResponse"
    TIMEOUT = "Timeout"
    NOT_FOUND = "NotFound"
    UNKNOWN = "Unknown"


class PipelineStage(str, Enum):
    """Stage of a single pipeline request, in execution order."""
    RECEIVED = "received"
    VALIDATED = "validated"
    NORMALIZED = "normalized"
    GENERATED = "generated"
    PERSISTED = "persisted"
    ASSEMBLED = "assembled"
    CLEANED_UP = "cleaned_up"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
