"""Core business logic components."""

from .validator import UploadValidator
from .normalizer import ImageNormalizer
from .artifact_store import ArtifactStore
from .generator import HeadshotGenerator
from .pipeline import HeadshotPipeline
from .sweeper import ArtifactSweeper

__all__ = [
    "UploadValidator",
    "ImageNormalizer",
    "ArtifactStore",
    "HeadshotGenerator",
    "HeadshotPipeline",
    "ArtifactSweeper",
]
