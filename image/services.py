"""Image gateway services - mode selection, result extraction and asset download."""
import base64
from typing import Any, Dict, Optional

import requests

from config import Config
from image.models import GenerationMode, ImageResponse, Quality
from image.provider import FalImageProvider
from utils.logger import get_logger

logger = get_logger("image.services")

DEFAULT_MIME_TYPE = "image/png"


def extract_first_image_url(result: Optional[Dict[str, Any]]) -> str:
    """Return the URL of the first image in a provider result."""
    images = (result or {}).get("images") or []
    if not images or not images[0].get("url"):
        raise RuntimeError("No image data in response")
    return images[0]["url"]


def fetch_image_as_data_url(image_url: str) -> str:
    """
    Download an image and re-encode it as a base64 data URL.

    The MIME type comes from the response's Content-Type header, falling
    back to image/png when the header is missing.
    """
    response = requests.get(image_url, timeout=Config.ASSET_FETCH_TIMEOUT_SECONDS)
    response.raise_for_status()

    content_type = response.headers.get("content-type") or ""
    mime_type = content_type.split(";")[0].strip() or DEFAULT_MIME_TYPE
    payload = base64.b64encode(response.content).decode("ascii")
    logger.info(f"Fetched generated image ({mime_type}, {len(response.content)} bytes)")
    return f"data:{mime_type};base64,{payload}"


def generate_image(
    provider: FalImageProvider,
    prompt: str,
    image: Optional[Any] = None,
    quality: Quality = Quality.MEDIUM
) -> ImageResponse:
    """
    Generate a new image, or edit ``image`` when one is given.

    Args:
        provider: Provider used for the remote job
        prompt: Non-empty text prompt
        image: Optional source image as a data URL; selects edit mode
        quality: Requested quality (logged only)

    Returns:
        ImageResponse with the image as a data URL and no description

    Raises:
        ValueError: ``image`` is not a data URL (no remote call is made)
        RuntimeError: the provider failed or returned no image
        requests.RequestException: the generated image could not be downloaded
    """
    logger.info(f"Using quality setting: {quality.value}")

    mode = GenerationMode.EDIT if image else GenerationMode.GENERATE
    if mode is GenerationMode.EDIT:
        logger.info("Processing image edit request")
        if not isinstance(image, str) or not image.startswith("data:"):
            raise ValueError("Invalid image data URL format")
        result = provider.edit(prompt, image)
    else:
        logger.info("Processing text-to-image request")
        result = provider.generate(prompt)

    logger.debug(f"Response received: {result}")

    image_url = extract_first_image_url(result)
    return ImageResponse(image=fetch_image_as_data_url(image_url), description=None)
