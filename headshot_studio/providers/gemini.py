"""Google Gemini REST client for image-to-image generation."""

import json
from typing import Any, Dict, Optional
import httpx

from ..utils.logger import get_logger
from ..utils.errors import MalformedResponseError, ProviderError, RateLimitError
from ..utils.images import bytes_to_base64

logger = get_logger(__name__)

QUOTA_STATUSES = {"RESOURCE_EXHAUSTED"}


class GeminiImageClient:
    """Client for the Gemini ``generateContent`` endpoint.

    Sends one instruction text plus one inline image and returns the raw
    decoded JSON response. Shape validation of the response is left to the
    caller; this class only distinguishes quota failures (``RateLimitError``)
    from every other transport or HTTP failure (``ProviderError``).

    One instance owns one ``httpx.AsyncClient`` for the life of the process
    and keeps no per-request state.
    """

    PROVIDER = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash-image",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Google API key, sent as ``x-goog-api-key``
            model: Image-capable Gemini model name
            base_url: API root, without trailing slash
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def is_initialized(self) -> bool:
        return self.client is not None

    async def initialize(self):
        """Open the shared HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    "x-goog-api-key": self.api_key,
                    "Content-Type": "application/json",
                },
                transport=self.transport,
            )
            logger.info(
                "Gemini client initialized",
                extra={"provider": self.PROVIDER, "model": self.model}
            )

    async def close(self):
        """Close the shared HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Gemini client closed", extra={"provider": self.PROVIDER})

    def build_payload(self, prompt: str, image_bytes: bytes, mime_type: str) -> Dict[str, Any]:
        """Build the request body: instruction text followed by the inline image."""
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": bytes_to_base64(image_bytes),
                            }
                        },
                    ]
                }
            ],
            "generationConfig": {
                "responseModalities": ["TEXT", "IMAGE"],
            },
        }


    async def generate_content(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
    ) -> Dict[str, Any]:
        """
        Submit one generation request.

        Returns:
            Decoded JSON response body

        Raises:
            RateLimitError: Upstream signalled rate limiting or quota exhaustion
            ProviderError: Network failure or any other non-2xx response
            MalformedResponseError: Response body is not a JSON object
        """
        if self.client is None:
            raise RuntimeError(
                "GeminiImageClient not initialized. "
                "Call initialize() or use as async context manager."
            )

        url = f"{self.base_url}/models/{self.model}:generateContent"

        logger.info(
            f"Submitting to Gemini: {self.model}",
            extra={
                "model": self.model,
                "prompt": prompt[:100],
                "image_size_kb": round(len(image_bytes) / 1024, 1),
            }
        )

        try:
            response = await self.client.post(
                url,
                json=self.build_payload(prompt, image_bytes, mime_type),
            )
        except httpx.RequestError as e:
            logger.error(
                f"Gemini request failed: {type(e).__name__}: {e}",
                extra={"model": self.model, "error": str(e)}
            )
            raise ProviderError(self.PROVIDER, f"Request failed: {e}")

        self._handle_response_errors(response)

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            raise MalformedResponseError(
                "Invalid JSON in Gemini API response",
                user_message="Failed to generate headshot: invalid response from Gemini API",
            )

        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Unexpected Gemini API response body",
                user_message="Failed to generate headshot: invalid response from Gemini API",
            )

        return data

    def _handle_response_errors(self, response: httpx.Response):
        """Handle HTTP response errors."""
        if response.status_code < 400:
            return

        error_status: Optional[str] = None
        error_message = response.text
        try:
            error_data = response.json().get("error", {})
            error_status = error_data.get("status")
            error_message = error_data.get("message", response.text)
        except (ValueError, AttributeError):
            pass

        if response.status_code == 429 or error_status in QUOTA_STATUSES:
            retry_after = response.headers.get("Retry-After")
            logger.warning(
                "Gemini quota exceeded",
                extra={"status": response.status_code, "error_status": error_status}
            )
            raise RateLimitError(
                self.PROVIDER,
                int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        logger.error(
            f"Gemini HTTP error: {response.status_code}",
            extra={
                "status": response.status_code,
                "error_status": error_status,
                "response": response.text[:500],
            }
        )
        raise ProviderError(self.PROVIDER, error_message, response.status_code)
