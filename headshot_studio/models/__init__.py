"""Data models and schemas for the headshot pipeline."""

from .schemas import (
    UploadedImage,
    NormalizedImage,
    GenerationResult,
    ArtifactHandle,
    PipelineSuccess,
    PipelineFailure,
    PipelineOutcome,
    HeadshotResponse,
    StyleInfo,
    StylesCatalog,
)
from .enums import (
    StyleType,
    ArtifactRole,
    ErrorKind,
    PipelineStage,
)

__all__ = [
    "UploadedImage",
    "NormalizedImage",
    "GenerationResult",
    "ArtifactHandle",
    "PipelineSuccess",
    "PipelineFailure",
    "PipelineOutcome",
    "HeadshotResponse",
    "StyleInfo",
    "StylesCatalog",
    "StyleType",
    "ArtifactRole",
    "ErrorKind",
    "PipelineStage",
]
