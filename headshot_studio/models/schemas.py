"""Pydantic schemas for data validation."""

from pathlib import Path
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone

from .enums import ArtifactRole, ErrorKind, StyleType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadedImage(BaseModel):
    """Raw upload as received by the transport layer."""
    data: bytes = Field(repr=False)
    media_type: str
    size: int
    filename: Optional[str] = None

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        media_type: str,
        filename: Optional[str] = None,
    ) -> "UploadedImage":
        return cls(data=data, media_type=media_type, size=len(data), filename=filename)


class NormalizedImage(BaseModel):
    """Image re-encoded into the canonical output format."""
    data: bytes = Field(repr=False)
    width: int
    height: int
    original_width: int
    original_height: int
    format: str = "jpeg"
    media_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.data)


class GenerationResult(BaseModel):
    """Raw output of the upstream generation call."""
    image_bytes: bytes = Field(repr=False)
    media_type: str = "image/jpeg"
    style: StyleType
    attempts: int
    processing_time_ms: int


class ArtifactHandle(BaseModel):
    """Opaque reference to a stored artifact."""
    model_config = ConfigDict(frozen=True)

    artifact_id: str
    role: ArtifactRole
    style: Optional[StyleType] = None
    path: Path
    created_at: datetime = Field(default_factory=_utcnow)


class PipelineSuccess(BaseModel):
    """Successful pipeline outcome."""
    success: Literal[True] = True
    original_image: str
    generated_image: str
    style: StyleType
    processing_time_ms: int


class PipelineFailure(BaseModel):
    """Failed pipeline outcome."""
    success: Literal[False] = False
    kind: ErrorKind
    message: str


PipelineOutcome = Union[PipelineSuccess, PipelineFailure]


class HeadshotData(BaseModel):
    """Response body ``data`` section."""
    model_config = ConfigDict(populate_by_name=True)

    original_image: str = Field(..., alias="originalImage")
    generated_image: str = Field(..., alias="generatedImage")
    style: StyleType
    processing_time_ms: int = Field(..., alias="processingTimeMs")


class HeadshotResponse(BaseModel):
    """Response envelope returned by the generate endpoint."""
    success: bool
    data: Optional[HeadshotData] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: PipelineOutcome) -> "HeadshotResponse":
        if isinstance(outcome, PipelineSuccess):
            return cls(
                success=True,
                data=HeadshotData(
                    original_image=outcome.original_image,
                    generated_image=outcome.generated_image,
                    style=outcome.style,
                    processing_time_ms=outcome.processing_time_ms,
                ),
            )
        return cls(success=False, error=outcome.message)

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class StyleInfo(BaseModel):
    """Entry of the styles catalog."""
    id: StyleType
    name: str
    description: str


class StylesCatalog(BaseModel):
    styles: List[StyleInfo]
