"""Request pipeline coordinating validation, normalization, generation and cleanup."""

import asyncio
import time
import uuid
from typing import List, Optional

from .artifact_store import ArtifactStore
from .generator import HeadshotGenerator
from .normalizer import ImageNormalizer
from .validator import UploadValidator
from ..models.enums import ArtifactRole, ErrorKind, PipelineStage, StyleType
from ..models.schemas import (
    ArtifactHandle,
    PipelineFailure,
    PipelineOutcome,
    PipelineSuccess,
    UploadedImage,
)
from ..utils.errors import HeadshotStudioError
from ..utils.images import to_data_uri
from ..utils.logger import get_logger
from ..utils.retry import timeout_async

logger = get_logger(__name__)


class _RequestState:
    """Per-request bookkeeping shared between the timed stages and cleanup."""

    def __init__(self, request_id: str, style: StyleType):
        self.request_id = request_id
        self.style = style
        self.stage = PipelineStage.RECEIVED
        self.handles: List[ArtifactHandle] = []
        self.started = time.perf_counter()

    def advance(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.debug(
            f"Request {self.request_id} reached stage {stage.value}",
            extra={"request_id": self.request_id, "stage": stage.value}
        )

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


class HeadshotPipeline:
    """Runs one headshot request end to end.

    Stages run strictly in order: validate, normalize (and persist the
    normalized image), generate, persist the result, read both artifacts
    back and encode them. Any failure skips the remaining stages. Every
    artifact written during the request is deleted exactly once before the
    outcome is returned, whatever the outcome is.

    The pipeline holds no per-request state on ``self``; one instance
    serves all concurrent requests.
    """

    def __init__(
        self,
        validator: UploadValidator,
        normalizer: ImageNormalizer,
        generator: HeadshotGenerator,
        store: ArtifactStore,
        timeout_seconds: Optional[float] = None,
    ):
        self.validator = validator
        self.normalizer = normalizer
        self.generator = generator
        self.store = store
        self.timeout_seconds = timeout_seconds

    async def process(self, upload: UploadedImage, style: StyleType) -> PipelineOutcome:
        """
        Process one upload into a styled headshot.

        Args:
            upload: Uploaded image
            style: Requested style

        Returns:
            PipelineSuccess or PipelineFailure; never raises for request errors
        """
        state = _RequestState(uuid.uuid4().hex[:12], style)

        logger.info(
            f"Processing headshot generation request for style: {style.value}",
            extra={
                "request_id": state.request_id,
                "style": style.value,
                "media_type": upload.media_type,
                "size": upload.size,
            }
        )

        try:
            stages = self._run_stages(state, upload)
            if self.timeout_seconds:
                outcome = await timeout_async(stages, self.timeout_seconds)
            else:
                outcome = await stages
        except HeadshotStudioError as e:
            outcome = PipelineFailure(kind=e.kind, message=e.user_message)
            logger.error(
                f"Headshot generation failed at stage {state.stage.value}: {e.message}",
                extra={
                    "request_id": state.request_id,
                    "style": style.value,
                    "stage": state.stage.value,
                    "error_kind": e.kind.value,
                }
            )
        except Exception as e:
            outcome = PipelineFailure(
                kind=ErrorKind.UNKNOWN,
                message=f"Failed to generate headshot: {e}",
            )
            logger.error(
                f"Unexpected error at stage {state.stage.value}: {type(e).__name__}: {e}",
                extra={
                    "request_id": state.request_id,
                    "style": style.value,
                    "stage": state.stage.value,
                    "error_kind": ErrorKind.UNKNOWN.value,
                },
                exc_info=True,
            )
        finally:
            # The worker thread finishes the deletes even if this task is cancelled.
            await asyncio.to_thread(self._cleanup, state)

        if isinstance(outcome, PipelineSuccess):
            state.advance(PipelineStage.SUCCEEDED)
            logger.info(
                f"Headshot generation completed in {outcome.processing_time_ms}ms",
                extra={
                    "request_id": state.request_id,
                    "style": style.value,
                    "processing_time_ms": outcome.processing_time_ms,
                }
            )
        else:
            state.advance(PipelineStage.FAILED)

        return outcome

    async def _run_stages(self, state: _RequestState, upload: UploadedImage) -> PipelineSuccess:
        self.validator.validate(upload)
        state.advance(PipelineStage.VALIDATED)

        normalized = await asyncio.to_thread(self.normalizer.normalize, upload.data)
        normalized_handle = self._persist(state, normalized.data, ArtifactRole.NORMALIZED)
        state.advance(PipelineStage.NORMALIZED)

        result = await self.generator.generate(
            normalized.data,
            state.style,
            mime_type=normalized.media_type,
        )
        state.advance(PipelineStage.GENERATED)

        generated_handle = self._persist(
            state,
            result.image_bytes,
            ArtifactRole.GENERATED,
            state.style,
        )
        state.advance(PipelineStage.PERSISTED)

        original_bytes = await asyncio.to_thread(self.store.read, normalized_handle)
        generated_bytes = await asyncio.to_thread(self.store.read, generated_handle)
        processing_time_ms = state.elapsed_ms()

        success = PipelineSuccess(
            original_image=to_data_uri(original_bytes, "image/jpeg"),
            generated_image=to_data_uri(generated_bytes, "image/jpeg"),
            style=state.style,
            processing_time_ms=processing_time_ms,
        )
        state.advance(PipelineStage.ASSEMBLED)
        return success

    def _persist(
        self,
        state: _RequestState,
        data: bytes,
        role: ArtifactRole,
        style: Optional[StyleType] = None,
    ) -> ArtifactHandle:
        # Synchronous so a timeout cannot land between the write and the
        # handle being recorded for cleanup.
        handle = self.store.write(data, role, style)
        state.handles.append(handle)
        return handle

    def _cleanup(self, state: _RequestState) -> None:
        """Delete every artifact this request created. Never raises."""
        for handle in state.handles:
            try:
                self.store.delete(handle)
            except Exception as e:
                logger.warning(
                    f"Error during cleanup: {e}",
                    extra={
                        "request_id": state.request_id,
                        "artifact_id": handle.artifact_id,
                        "error": str(e),
                    }
                )

        logger.debug(
            "Request artifacts cleaned up",
            extra={"request_id": state.request_id, "artifacts": len(state.handles)}
        )
        state.handles.clear()
        state.advance(PipelineStage.CLEANED_UP)
