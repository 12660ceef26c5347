"""Headshot generation and styles catalog endpoints."""

from typing import Optional
from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from ..core.styles import list_styles
from ..models.enums import ErrorKind, StyleType
from ..models.schemas import HeadshotResponse, PipelineFailure, StylesCatalog, UploadedImage
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

STATUS_BY_KIND = {
    ErrorKind.INVALID_TYPE: 400,
    ErrorKind.FILE_TOO_LARGE: 400,
    ErrorKind.UNSUPPORTED_IMAGE: 400,
    ErrorKind.TOO_SMALL: 400,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.TIMEOUT: 504,
}


def _error(status_code: int, message: str) -> JSONResponse:
    body = HeadshotResponse(success=False, error=message).to_body()
    return JSONResponse(status_code=status_code, content=body)


@router.post("/generate")
async def generate_headshot(
    request: Request,
    image: Optional[UploadFile] = File(None),
    style: Optional[str] = Form(None),
):
    """Generate a styled headshot from one uploaded photo."""
    if image is None:
        return _error(400, "No image file provided")

    if style not in StyleType.values():
        return _error(
            400,
            f"Invalid style. Must be one of: {', '.join(StyleType.values())}",
        )

    # Read at most one byte past the limit; anything longer fails the size
    # check before it is decoded.
    limit = request.app.state.config.policy.max_file_size_bytes
    data = await image.read(limit + 1)
    upload = UploadedImage(
        data=data,
        media_type=image.content_type or "",
        size=max(image.size or 0, len(data)),
        filename=image.filename,
    )

    pipeline = request.app.state.pipeline
    outcome = await pipeline.process(upload, StyleType(style))
    body = HeadshotResponse.from_outcome(outcome).to_body()

    if isinstance(outcome, PipelineFailure):
        return JSONResponse(status_code=STATUS_BY_KIND.get(outcome.kind, 500), content=body)

    return body


@router.get("/styles")
async def get_styles():
    """List the available styles."""
    catalog = StylesCatalog(styles=list_styles())
    return {"success": True, "data": catalog.model_dump(mode="json")}
