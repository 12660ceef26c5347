"""Headshot generation through the upstream image model."""

import asyncio
import base64
import binascii
import time
from typing import Any, Awaitable, Dict, Mapping, Protocol, Tuple

from ..models.enums import StyleType
from ..models.schemas import GenerationResult
from ..utils.config import PolicyConfig
from ..utils.errors import (
    ConfigurationError,
    HeadshotStudioError,
    MalformedResponseError,
    ProviderError,
    QuotaExceededError,
    RateLimitError,
    UpstreamError,
)
from ..utils.logger import get_logger
from ..utils.retry import AttemptResult, RetryPolicy, SleepFn, run_with_backoff

logger = get_logger(__name__)

QUOTA_MESSAGE = "API quota exceeded. Please try again later."

_LIKENESS = "Make subject look great and accurate to their original appearance."

STYLE_PROMPTS: Dict[StyleType, str] = {
    StyleType.CORPORATE: (
        "Transform this photo into photorealistic professional headshot. Use soft, flattering "
        "studio lighting against a solid dark gray backdrop. Dress me in a modern, stylish, "
        "professional business attire. Maintain my exact facial features and likeness, but give "
        "me a confident and approachable expression. The final image should be high-resolution "
        "with a sharp focus on my face. Neutral studio background. High-angle perspective, "
        "showing full head and body upto the bust, with soft, diffused lighting creating gentle "
        "catchlights. 85mm lens aesthetic with shallow depth of field - sharp focus on eyes, soft "
        "bokeh background. Natural skin texture with visible hair detail. Bright, airy feel. "
        + _LIKENESS
    ),
    StyleType.CREATIVE: (
        "Transform this photo into a close-up portrait with shallow depth of field creating soft "
        "bokeh background. Warm, natural lighting highlighting subject's features. Casual attire "
        "and genuine, engaging smile. Subject fills more of the frame. Background hints at "
        "creative workspace or outdoor setting with beautiful blur. Preserve natural skin texture "
        "and authentic features. Modern, approachable creative professional aesthetic. "
        + _LIKENESS
    ),
    StyleType.EXECUTIVE: (
        "Transform this photo into a dramatic black and white portrait in editorial style. "
        "Preserve subject's authentic features and character. Apply these specifications: "
        "monochromatic treatment with rich grayscale tones, deep charcoal or black background "
        "with subtle gradation, dramatic side lighting creating strong shadows and highlights on "
        "face (Rembrandt or split lighting), preserve all natural skin texture and detail - no "
        "smoothing, sharp focus capturing fine details in eyes and facial features, relaxed and "
        "contemplative expression - confident smile, casual professional attire (dark textured "
        "jacket, shirt, no tie), hand gesture near chest or face for dynamic composition, high "
        "contrast with deep blacks and bright highlights, cinematic film grain for texture. "
        "Maintain editorial photography aesthetic - artistic but professional. "
        + _LIKENESS
    ),
}


def require_complete(table: Mapping[StyleType, Any], name: str) -> None:
    """Fail at import time if a style has no entry in ``table``."""
    missing = set(StyleType) - set(table)
    if missing:
        raise ConfigurationError(
            f"{name} is missing styles: {sorted(s.value for s in missing)}"
        )


require_complete(STYLE_PROMPTS, "STYLE_PROMPTS")


class ImageModelClient(Protocol):
    """Upstream capability: instruction + image in, raw response out."""

    def generate_content(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = ...,
    ) -> Awaitable[Dict[str, Any]]:
        ...


def _malformed(message: str) -> MalformedResponseError:
    return MalformedResponseError(message, user_message=f"Failed to generate headshot: {message}")


def extract_inline_image(response: Dict[str, Any]) -> Tuple[bytes, str]:
    """
    Pull the first inline image out of a ``generateContent`` response.

    Returns:
        Tuple of (image_bytes, mime_type)

    Raises:
        MalformedResponseError: No candidate, no content parts, or no image part
    """
    candidates = response.get("candidates") if isinstance(response, dict) else None
    if not isinstance(candidates, list) or not candidates:
        raise _malformed("No response from Gemini API")

    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        raise _malformed("Invalid response format from Gemini API")

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict) or not inline.get("data"):
            continue
        try:
            image_bytes = base64.b64decode(inline["data"], validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise _malformed(f"Image data in Gemini API response is not valid base64: {e}")
        mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/jpeg"
        return image_bytes, mime_type

    raise _malformed("No image data found in Gemini API response")


class HeadshotGenerator:
    """Generates a styled headshot with bounded retry on quota errors.

    Only quota/rate-limit failures are retried, with delays of
    ``base * 2^(attempt-1)``. Network errors, other HTTP errors and
    malformed responses fail on the attempt they occur.
    """

    def __init__(
        self,
        client: ImageModelClient,
        policy: PolicyConfig,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.client = client
        self.retry_policy = RetryPolicy(
            max_attempts=policy.max_attempts,
            base_delay=policy.base_delay_seconds,
        )
        self.sleep = sleep

    @staticmethod
    def prompt_for(style: StyleType) -> str:
        return STYLE_PROMPTS[style]

    async def _attempt(
        self,
        attempt: int,
        image_bytes: bytes,
        style: StyleType,
        mime_type: str,
    ) -> AttemptResult[Tuple[bytes, str]]:
        logger.info(
            f"Generating headshot with style: {style.value} "
            f"(attempt {attempt}/{self.retry_policy.max_attempts})",
            extra={"style": style.value, "attempt": attempt}
        )

        try:
            response = await self.client.generate_content(
                prompt=self.prompt_for(style),
                image_bytes=image_bytes,
                mime_type=mime_type,
            )
            return AttemptResult.success(extract_inline_image(response))
        except RateLimitError as e:
            return AttemptResult.retry(e)
        except ProviderError as e:
            return AttemptResult.terminal(
                UpstreamError(str(e), user_message=f"Failed to generate headshot: {e}")
            )
        except HeadshotStudioError as e:
            return AttemptResult.terminal(e)

    async def generate(
        self,
        image_bytes: bytes,
        style: StyleType,
        mime_type: str = "image/jpeg",
    ) -> GenerationResult:
        """
        Generate a transformed image.

        Args:
            image_bytes: Normalized image bytes
            style: Style to apply
            mime_type: Media type of ``image_bytes``

        Returns:
            GenerationResult with the generated bytes

        Raises:
            QuotaExceededError: Quota failure on every attempt
            UpstreamError: Non-quota upstream failure
            MalformedResponseError: Response did not carry an image
        """
        start = time.perf_counter()

        async def attempt_fn(attempt: int) -> AttemptResult[Tuple[bytes, str]]:
            return await self._attempt(attempt, image_bytes, style, mime_type)

        outcome = await run_with_backoff(
            attempt_fn,
            self.retry_policy,
            sleep=self.sleep,
            operation="headshot generation",
        )

        if outcome.exhausted:
            raise QuotaExceededError(
                f"Quota exceeded on all {outcome.attempts} attempts: {outcome.result.error}",
                user_message=QUOTA_MESSAGE,
            )

        if not outcome.result.ok:
            raise outcome.result.error

        image, result_type = outcome.result.value
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        logger.info(
            "Headshot generated",
            extra={
                "style": style.value,
                "attempts": outcome.attempts,
                "size_kb": round(len(image) / 1024, 1),
                "processing_time_ms": elapsed_ms,
            }
        )

        return GenerationResult(
            image_bytes=image,
            media_type=result_type,
            style=style,
            attempts=outcome.attempts,
            processing_time_ms=elapsed_ms,
        )
