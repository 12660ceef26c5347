"""Tests for headshot generation and upstream response handling."""

import pytest

from conftest import FakeModelClient, RecordingSleep, image_response
from headshot_studio.core.generator import (
    QUOTA_MESSAGE,
    STYLE_PROMPTS,
    HeadshotGenerator,
    extract_inline_image,
)
from headshot_studio.models.enums import ErrorKind, StyleType
from headshot_studio.utils.errors import (
    MalformedResponseError,
    ProviderError,
    QuotaExceededError,
    RateLimitError,
    UpstreamError,
)

IMAGE = b"\xff\xd8generated-image\xff\xd9"


def _generator(client, policy, sleep):
    return HeadshotGenerator(client, policy, sleep=sleep)


def test_every_style_has_a_prompt():
    assert set(STYLE_PROMPTS) == set(StyleType)
    assert all(prompt.strip() for prompt in STYLE_PROMPTS.values())


class TestExtractInlineImage:
    """Response shape validation."""

    def test_returns_first_image_part(self):
        response = image_response(IMAGE, "image/png")
        response["candidates"][0]["content"]["parts"].append(image_response(b"second")["candidates"][0]["content"]["parts"][1])

        image, mime_type = extract_inline_image(response)

        assert image == IMAGE
        assert mime_type == "image/png"

    def test_accepts_snake_case_keys(self):
        response = {"candidates": [{"content": {"parts": [
            {"inline_data": {"mime_type": "image/jpeg", "data": "aGVsbG8="}},
        ]}}]}

        assert extract_inline_image(response) == (b"hello", "image/jpeg")

    @pytest.mark.parametrize("response", [
        {},
        {"candidates": []},
        {"candidates": [{}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": "I cannot do that."}]}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": ""}}]}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {"data": "***not-base64***"}}]}}]},
        {"candidates": [None]},
        {"candidates": "none"},
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": "text"}}]},
        {"candidates": [{"content": {"parts": ["text"]}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": "aGVsbG8="}]}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {"data": 123}}]}}]},
        [],
    ])
    def test_rejects_malformed_responses(self, response):
        with pytest.raises(MalformedResponseError) as exc_info:
            extract_inline_image(response)

        assert exc_info.value.kind == ErrorKind.MALFORMED_RESPONSE
        assert exc_info.value.user_message.startswith("Failed to generate headshot:")


@pytest.mark.asyncio
async def test_sends_style_prompt_with_image(policy, recording_sleep):
    client = FakeModelClient([image_response(IMAGE)])

    result = await _generator(client, policy, recording_sleep).generate(b"normalized", StyleType.EXECUTIVE)

    assert result.image_bytes == IMAGE
    assert result.style == StyleType.EXECUTIVE
    assert result.attempts == 1
    assert result.processing_time_ms >= 0
    assert client.calls == [{
        "prompt": STYLE_PROMPTS[StyleType.EXECUTIVE],
        "image_bytes": b"normalized",
        "mime_type": "image/jpeg",
    }]


@pytest.mark.asyncio
async def test_retries_quota_errors_then_succeeds(policy, recording_sleep):
    client = FakeModelClient([
        RateLimitError("gemini"),
        RateLimitError("gemini"),
        image_response(IMAGE),
    ])

    result = await _generator(client, policy, recording_sleep).generate(b"img", StyleType.CORPORATE)

    assert result.image_bytes == IMAGE
    assert result.attempts == 3
    assert len(client.calls) == 3
    assert recording_sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_quota_exhaustion_raises_quota_exceeded(policy, recording_sleep):
    client = FakeModelClient([RateLimitError("gemini")])

    with pytest.raises(QuotaExceededError) as exc_info:
        await _generator(client, policy, recording_sleep).generate(b"img", StyleType.CREATIVE)

    assert exc_info.value.kind == ErrorKind.QUOTA_EXCEEDED
    assert exc_info.value.user_message == QUOTA_MESSAGE
    assert len(client.calls) == 3
    assert recording_sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_backoff_follows_configured_base(policy):
    sleep = RecordingSleep()
    client = FakeModelClient([RateLimitError("gemini")])
    custom = policy.model_copy(update={"base_delay_seconds": 0.5, "max_attempts": 4})

    with pytest.raises(QuotaExceededError):
        await HeadshotGenerator(client, custom, sleep=sleep).generate(b"img", StyleType.CORPORATE)

    assert len(client.calls) == 4
    assert sleep.delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_provider_error_is_not_retried(policy, recording_sleep):
    client = FakeModelClient([ProviderError("gemini", "Internal error", 500), image_response(IMAGE)])

    with pytest.raises(UpstreamError) as exc_info:
        await _generator(client, policy, recording_sleep).generate(b"img", StyleType.CORPORATE)

    assert len(client.calls) == 1
    assert recording_sleep.delays == []
    assert exc_info.value.user_message.startswith("Failed to generate headshot:")
    assert "Internal error" in exc_info.value.user_message


@pytest.mark.asyncio
async def test_malformed_response_is_not_retried(policy, recording_sleep):
    client = FakeModelClient([{"candidates": []}, image_response(IMAGE)])

    with pytest.raises(MalformedResponseError):
        await _generator(client, policy, recording_sleep).generate(b"img", StyleType.CORPORATE)

    assert len(client.calls) == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_non_quota_failure_after_quota_stops(policy, recording_sleep):
    client = FakeModelClient([RateLimitError("gemini"), ProviderError("gemini", "boom", 502)])

    with pytest.raises(UpstreamError):
        await _generator(client, policy, recording_sleep).generate(b"img", StyleType.CORPORATE)

    assert len(client.calls) == 2
    assert recording_sleep.delays == [1.0]
