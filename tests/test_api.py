"""Tests for the HTTP boundary."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeModelClient, image_response, make_image_bytes
from headshot_studio.main import create_app
from headshot_studio.utils.config import Config, PolicyConfig
from headshot_studio.utils.errors import RateLimitError


@pytest.fixture
def app_config(upload_dir) -> Config:
    return Config(
        google_api_key="test-key",
        upload_dir=upload_dir,
        policy=PolicyConfig(base_delay_seconds=0),
    )


def _client_for(app_config, script):
    return TestClient(create_app(config=app_config, client=FakeModelClient(script)))


def test_generate_returns_both_images(app_config, sample_jpeg, generated_jpeg, upload_dir):
    with _client_for(app_config, [image_response(generated_jpeg)]) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("me.jpg", sample_jpeg, "image/jpeg")},
            data={"style": "corporate"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "error" not in body
    assert body["data"]["style"] == "corporate"
    assert body["data"]["originalImage"].startswith("data:image/jpeg;base64,")
    assert body["data"]["generatedImage"].startswith("data:image/jpeg;base64,")
    assert body["data"]["processingTimeMs"] >= 0
    assert list(upload_dir.iterdir()) == []


def test_image_jpg_alias_is_accepted(app_config, sample_jpeg, generated_jpeg):
    with _client_for(app_config, [image_response(generated_jpeg)]) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("me.jpg", sample_jpeg, "image/jpg")},
            data={"style": "creative"},
        )

    assert response.status_code == 200


def test_missing_file(app_config):
    with _client_for(app_config, [image_response(b"x")]) as client:
        response = client.post("/api/headshot/generate", data={"style": "corporate"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "No image file provided"}


def test_unknown_style(app_config, sample_jpeg):
    fake = FakeModelClient([image_response(b"x")])
    with TestClient(create_app(config=app_config, client=fake)) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("me.jpg", sample_jpeg, "image/jpeg")},
            data={"style": "vaporwave"},
        )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid style. Must be one of: corporate, creative, executive"
    assert fake.calls == []


def test_too_small_image(app_config):
    with _client_for(app_config, [image_response(b"x")]) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("small.png", make_image_bytes(300, 300, "PNG"), "image/png")},
            data={"style": "executive"},
        )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Image must be at least 512x512 pixels"}


def test_invalid_type(app_config, sample_jpeg):
    with _client_for(app_config, [image_response(b"x")]) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("me.gif", sample_jpeg, "image/gif")},
            data={"style": "corporate"},
        )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid file type. Only JPEG and PNG files are allowed."


def test_oversized_upload_is_rejected_before_decoding(upload_dir, sample_jpeg):
    config = Config(
        google_api_key="test-key",
        upload_dir=upload_dir,
        policy=PolicyConfig(max_file_size_bytes=1024),
    )
    fake = FakeModelClient([image_response(b"x")])
    with TestClient(create_app(config=config, client=fake)) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("me.jpg", sample_jpeg, "image/jpeg")},
            data={"style": "corporate"},
        )

    assert len(sample_jpeg) > 1024
    assert response.status_code == 400
    assert response.json()["error"].startswith("File size exceeds maximum limit of")
    assert fake.calls == []


def test_quota_exceeded(app_config, sample_jpeg):
    with _client_for(app_config, [RateLimitError("gemini")]) as client:
        response = client.post(
            "/api/headshot/generate",
            files={"image": ("me.jpg", sample_jpeg, "image/jpeg")},
            data={"style": "corporate"},
        )

    assert response.status_code == 429
    assert response.json() == {"success": False, "error": "API quota exceeded. Please try again later."}


def test_styles_catalog(app_config):
    with _client_for(app_config, [image_response(b"x")]) as client:
        response = client.get("/api/headshot/styles")

    assert response.status_code == 200
    styles = response.json()["data"]["styles"]
    assert [s["id"] for s in styles] == ["corporate", "creative", "executive"]
    assert styles[0]["name"] == "Corporate Classic"


def test_health(app_config):
    with _client_for(app_config, [image_response(b"x")]) as client:
        health = client.get("/health/")
        ready = client.get("/health/ready")

    assert health.status_code == 200
    assert health.json()["data"]["status"] == "healthy"
    assert health.json()["data"]["apiConnected"] is True
    assert ready.json()["ready"] is True


def test_lifespan_starts_and_stops_sweeper(app_config):
    app = create_app(config=app_config, client=FakeModelClient([image_response(b"x")]))

    with TestClient(app):
        assert app.state.sweeper.running

    assert not app.state.sweeper.running
