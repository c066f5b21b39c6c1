"""
API tests for POST /api/image.

The fal.ai client and the asset download are replaced with fakes so no
network traffic happens.
"""
import base64

import pytest
import requests
from fastapi.testclient import TestClient

from app import app
from conftest import FakeFalClient, FakeImageResponse, PNG_BYTES
from image.provider import FalImageProvider, get_image_provider

EDIT_DEPRECATED = "The image editing API endpoint is deprecated. Please update to a supported endpoint."
GENERATE_DEPRECATED = "The image generation API endpoint is deprecated. Please update to a supported endpoint."


@pytest.fixture
def client(provider):
    app.dependency_overrides[get_image_provider] = lambda: provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def use_client(fake):
    app.dependency_overrides[get_image_provider] = lambda: FalImageProvider(
        fake,
        text_to_image_endpoint="fal-ai/qwen-image",
        edit_image_endpoint="fal-ai/flux-pro/kontext",
    )


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("body", [
    {},
    {"prompt": ""},
    {"prompt": None, "image": "data:image/png;base64,AAAA"},
    {"prompt": "", "image": 5},
    {"prompt": 123},
    {"prompt": ["a red balloon"]},
])
def test_missing_prompt_is_rejected_without_provider_call(client, fake_client, asset_download, body):
    response = client.post("/api/image", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Prompt is required"}
    assert fake_client.calls == []
    assert asset_download["urls"] == []


def test_generate_mode(client, fake_client, asset_download):
    """A red balloon: text only goes to the text-to-image endpoint."""
    response = client.post("/api/image", json={"prompt": "a red balloon"})

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "image": "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii"),
        "description": None,
    }
    assert fake_client.endpoints() == ["fal-ai/qwen-image"]
    assert fake_client.calls[0]["arguments"] == {
        "prompt": "a red balloon",
        "image_size": "square_hd",
        "guidance_scale": 4.0,
    }
    assert fake_client.calls[0]["with_logs"] is True
    assert asset_download["urls"] == ["https://fal.media/files/out.png"]


def test_edit_mode_forwards_image_verbatim(client, fake_client, asset_download):
    source = "data:image/png;base64,AAAA"
    response = client.post("/api/image", json={"prompt": "add a hat", "image": source})

    assert response.status_code == 200
    assert response.json()["description"] is None
    assert response.json()["image"].startswith("data:image/png;base64,")
    assert fake_client.endpoints() == ["fal-ai/flux-pro/kontext"]
    assert fake_client.calls[0]["arguments"] == {
        "prompt": "add a hat",
        "image_url": source,
        "num_images": 1,
        "image_size": "square_hd",
    }


def test_empty_image_selects_generate_mode(client, fake_client, asset_download):
    response = client.post("/api/image", json={"prompt": "a red balloon", "image": ""})
    assert response.status_code == 200
    assert fake_client.endpoints() == ["fal-ai/qwen-image"]


def test_image_without_data_scheme_fails_before_provider_call(client, fake_client, asset_download):
    response = client.post("/api/image", json={"prompt": "add a hat", "image": "https://example.com/cat.png"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate image",
        "details": "Invalid image data URL format",
    }
    assert fake_client.calls == []


@pytest.mark.parametrize("image", [123, True, ["data:image/png;base64,AAAA"], {"url": "data:image/png;base64,AAAA"}])
def test_non_string_image_fails_with_generation_envelope(client, fake_client, asset_download, image):
    response = client.post("/api/image", json={"prompt": "add a hat", "image": image})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate image",
        "details": "Invalid image data URL format",
    }
    assert fake_client.calls == []
    assert asset_download["urls"] == []


def test_prompt_is_forwarded_verbatim(client, fake_client, asset_download):
    response = client.post("/api/image", json={"prompt": "  a red balloon\n"})
    assert response.status_code == 200
    assert fake_client.calls[0]["arguments"]["prompt"] == "  a red balloon\n"


@pytest.mark.parametrize("quality",["high", "low", "medium", "ultra", 7, None])
def test_quality_never_changes_the_response(client, fake_client, asset_download, quality):
    response = client.post("/api/image", json={"prompt": "a red balloon", "quality": quality})
    assert response.status_code == 200
    assert set(response.json()) == {"image", "description"}
    assert "quality" not in fake_client.calls[0]["arguments"]


def test_mime_type_follows_content_type_header(client, asset_download):
    asset_download["response"] = FakeImageResponse(content=b"jpeg-bytes", content_type="image/jpeg")
    response = client.post("/api/image", json={"prompt": "a red balloon"})
    assert response.json()["image"] == "data:image/jpeg;base64," + base64.b64encode(b"jpeg-bytes").decode("ascii")


def test_mime_type_defaults_to_png(client, asset_download):
    asset_download["response"] = FakeImageResponse(content_type=None)
    response = client.post("/api/image", json={"prompt": "a red balloon"})
    assert response.json()["image"].startswith("data:image/png;base64,")


def test_no_images_in_provider_result(asset_download):
    use_client(FakeFalClient(result={"images": []}))
    try:
        response = TestClient(app).post("/api/image", json={"prompt": "a red balloon"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate image", "details": "No image data in response"}
    assert asset_download["urls"] == []


def test_deprecated_edit_endpoint(asset_download):
    use_client(FakeFalClient(error=RuntimeError("Application 'flux-pro/kontext' is deprecated")))
    try:
        response = TestClient(app).post(
            "/api/image", json={"prompt": "add a hat", "image": "data:image/png;base64,AAAA"}
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate image", "details": EDIT_DEPRECATED}


def test_deprecated_generate_endpoint(asset_download):
    use_client(FakeFalClient(error=RuntimeError("This model is no longer supported")))
    try:
        response = TestClient(app).post("/api/image", json={"prompt": "a red balloon"})
    finally:
        app.dependency_overrides.clear()

    assert response.json() == {"error": "Failed to generate image", "details": GENERATE_DEPRECATED}


def test_other_provider_errors_keep_their_message(asset_download):
    use_client(FakeFalClient(error=RuntimeError("Insufficient balance")))
    try:
        response = TestClient(app).post("/api/image", json={"prompt": "a red balloon"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate image", "details": "Insufficient balance"}


def test_asset_download_failure(client, asset_download):
    asset_download["response"] = FakeImageResponse(
        status_error=requests.HTTPError("404 Client Error: Not Found for url: https://fal.media/files/out.png")
    )
    response = client.post("/api/image", json={"prompt": "a red balloon"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to generate image"
    assert "404" in body["details"]


def test_non_object_body_uses_error_envelope(client, fake_client):
    response = client.post("/api/image", json=["a red balloon"])
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request body"
    assert body["details"]
    assert fake_client.calls == []


def test_non_json_body_is_rejected(client, fake_client):
    response = client.post("/api/image", content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"
    assert fake_client.calls == []
