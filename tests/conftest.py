"""Pytest configuration and shared fixtures."""

import base64
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import pytest
from PIL import Image

from headshot_studio.core import (
    ArtifactStore,
    HeadshotGenerator,
    HeadshotPipeline,
    ImageNormalizer,
    UploadValidator,
)
from headshot_studio.utils.config import PolicyConfig


def make_image_bytes(
    width: int,
    height: int,
    fmt: str = "JPEG",
    mode: str = "RGB",
    color=(180, 120, 90),
) -> bytes:
    """Encode a synthetic image of the given size."""
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 128)
    image = Image.new(mode, (width, height), color)
    # A gradient stripe so the encoder has real content to work with.
    for x in range(0, width, max(1, width // 16)):
        for y in range(height):
            image.putpixel((x, y), (x % 256, y % 256, 40) + ((255,) if mode == "RGBA" else ()))
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def image_response(image_bytes: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
    """Build a generateContent response carrying one text and one image part."""
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "Here is your headshot."},
                        {
                            "inlineData": {
                                "mimeType": mime_type,
                                "data": base64.b64encode(image_bytes).decode("utf-8"),
                            }
                        },
                    ]
                }
            }
        ]
    }


class FakeModelClient:
    """Stands in for the upstream model; replays scripted responses in order.

    Each script entry is either a response dict or an exception to raise.
    The last entry is repeated once the script runs out.
    """

    def __init__(self, script: List[Union[Dict[str, Any], Exception]]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []
        self.is_initialized = True

    async def generate_content(self, prompt: str, image_bytes: bytes, mime_type: str = "image/jpeg"):
        self.calls.append({"prompt": prompt, "image_bytes": image_bytes, "mime_type": mime_type})
        index = min(len(self.calls) - 1, len(self.script) - 1)
        entry = self.script[index]
        if isinstance(entry, Exception):
            raise entry
        return entry


class RecordingSleep:
    """Async sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class SpyArtifactStore(ArtifactStore):
    """ArtifactStore that records every write and delete."""

    def __init__(self, root: Path):
        super().__init__(root)
        self.written = []
        self.deleted = []

    def write(self, data, role, style=None):
        handle = super().write(data, role, style)
        self.written.append(handle)
        return handle

    def delete(self, handle):
        self.deleted.append(handle)
        return super().delete(handle)


@pytest.fixture
def policy() -> PolicyConfig:
    """Default policy."""
    return PolicyConfig()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def sample_jpeg() -> bytes:
    """600x600 JPEG, within bounds."""
    return make_image_bytes(600, 600, "JPEG")


@pytest.fixture
def generated_jpeg() -> bytes:
    """Image returned by the fake upstream model."""
    return make_image_bytes(640, 640, "JPEG", color=(20, 20, 20))


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def build_pipeline(policy: PolicyConfig, upload_dir: Path, recording_sleep: RecordingSleep) -> Callable:
    """Factory wiring a pipeline around a fake client and a spy store."""

    def _build(client: FakeModelClient, timeout_seconds=None, **overrides):
        pipeline_policy = policy.model_copy(update=overrides)
        store = SpyArtifactStore(upload_dir)
        pipeline = HeadshotPipeline(
            validator=UploadValidator(pipeline_policy),
            normalizer=ImageNormalizer(pipeline_policy),
            generator=HeadshotGenerator(client, pipeline_policy, sleep=recording_sleep),
            store=store,
            timeout_seconds=timeout_seconds,
        )
        return pipeline, store

    return _build
