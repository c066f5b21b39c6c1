"""Shared pytest fixtures for the image gateway."""
import os
import tempfile

# Must be set before config.py is imported by any test module
os.environ.setdefault("FAL_KEY", "test-fal-key")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="gateway-logs-"))

import fal_client
import pytest
from requests.structures import CaseInsensitiveDict

from image.provider import FalImageProvider

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-body"


class FakeFalClient:
    """Stands in for fal_client.SyncClient and records every subscribe call."""

    def __init__(self, result=None, error=None):
        self.result = {"images": [{"url": "https://fal.media/files/out.png"}]} if result is None else result
        self.error = error
        self.calls = []

    def subscribe(self, application, arguments, *, with_logs=False, on_queue_update=None):
        self.calls.append({"application": application, "arguments": arguments, "with_logs": with_logs})
        if on_queue_update is not None:
            on_queue_update(fal_client.Queued(position=0))
            on_queue_update(fal_client.InProgress(logs=[{"message": "step 1"}]))
        if self.error is not None:
            raise self.error
        return self.result

    def endpoints(self):
        return [call["application"] for call in self.calls]


class FakeImageResponse:
    """Minimal requests.Response replacement for the asset download."""

    def __init__(self, content=PNG_BYTES, content_type="image/png", status_error=None):
        self.content = content
        self.headers = CaseInsensitiveDict()
        if content_type is not None:
            self.headers["Content-Type"] = content_type
        self.status_error = status_error

    def raise_for_status(self):
        if self.status_error is not None:
            raise self.status_error


@pytest.fixture
def fake_client():
    return FakeFalClient()


@pytest.fixture
def provider(fake_client):
    return FalImageProvider(
        fake_client,
        text_to_image_endpoint="fal-ai/qwen-image",
        edit_image_endpoint="fal-ai/flux-pro/kontext",
        image_size="square_hd",
        guidance_scale=4.0,
    )


@pytest.fixture
def asset_download(monkeypatch):
    """Patch the asset download; returns the list of fetched URLs and a setter for the response."""
    state = {"response": FakeImageResponse(), "urls": []}

    def fake_get(url, timeout=None):
        state["urls"].append(url)
        return state["response"]

    monkeypatch.setattr("image.services.requests.get", fake_get)
    return state
