"""fal.ai provider integration - job submission and queue updates."""
from typing import Any, Dict, Optional

import fal_client
from fastapi import Request

from config import Config
from image.models import GenerationMode
from utils.logger import get_logger

logger = get_logger("image.provider")

DEPRECATION_MARKERS = ("deprecated", "no longer supported")

DEPRECATION_MESSAGES = {
    GenerationMode.EDIT: "The image editing API endpoint is deprecated. Please update to a supported endpoint.",
    GenerationMode.GENERATE: "The image generation API endpoint is deprecated. Please update to a supported endpoint.",
}


class EndpointDeprecatedError(RuntimeError):
    """Raised when the provider reports that an endpoint has been retired."""


def is_endpoint_deprecated(exc: BaseException) -> bool:
    """
    Decide whether a provider failure means the endpoint itself is retired.

    A 410 Gone status from the provider client is conclusive. Without one the
    error message is searched for the provider's deprecation wording.
    """
    status_code = getattr(exc, "status_code", None)
    if status_code == 410:
        return True
    message = getattr(exc, "message", None) or str(exc)
    message = message.lower()
    return any(marker in message for marker in DEPRECATION_MARKERS)


def log_queue_update(update: Any) -> None:
    """Log in-progress queue updates; other statuses are ignored."""
    if isinstance(update, fal_client.InProgress):
        logger.info(f"Processing: {update.logs}")


class FalImageProvider:
    """Submits generate and edit jobs to fal.ai and waits for their results."""

    def __init__(
        self,
        client: Any,
        text_to_image_endpoint: str = Config.FAL_TEXT_TO_IMAGE_ENDPOINT,
        edit_image_endpoint: str = Config.FAL_EDIT_IMAGE_ENDPOINT,
        image_size: str = Config.FAL_IMAGE_SIZE,
        guidance_scale: float = Config.FAL_GUIDANCE_SCALE,
    ):
        self.client = client
        self.text_to_image_endpoint = text_to_image_endpoint
        self.edit_image_endpoint = edit_image_endpoint
        self.image_size = image_size
        self.guidance_scale = guidance_scale

    def generate(self, prompt: str) -> Dict[str, Any]:
        """Run a text-to-image job."""
        arguments = {
            "prompt": prompt,
            "image_size": self.image_size,
            "guidance_scale": self.guidance_scale,
        }
        return self._subscribe(self.text_to_image_endpoint, arguments, GenerationMode.GENERATE)

    def edit(self, prompt: str, image_url: str) -> Dict[str, Any]:
        """Run an image edit job on ``image_url`` (a data URL, passed through as is)."""
        arguments = {
            "prompt": prompt,
            "image_url": image_url,
            "num_images": 1,
            "image_size": self.image_size,
        }
        return self._subscribe(self.edit_image_endpoint, arguments, GenerationMode.EDIT)

    def _subscribe(self, endpoint: str, arguments: Dict[str, Any], mode: GenerationMode) -> Dict[str, Any]:
        logger.info(f"Submitting {mode.value} job to {endpoint}")
        try:
            return self.client.subscribe(
                endpoint,
                arguments=arguments,
                with_logs=True,
                on_queue_update=log_queue_update,
            )
        except Exception as e:
            logger.error(f"Error accessing fal.ai API ({endpoint}): {e}")
            if is_endpoint_deprecated(e):
                raise EndpointDeprecatedError(DEPRECATION_MESSAGES[mode]) from e
            raise


def build_image_provider(api_key: Optional[str] = None) -> FalImageProvider:
    """Create the provider once per process with the configured credential."""
    key = api_key or Config.FAL_KEY or None
    if not key:
        logger.warning("FAL_KEY is not set; provider calls will fail until it is configured")
    return FalImageProvider(fal_client.SyncClient(key=key))


def get_image_provider(request: Request) -> FalImageProvider:
    """FastAPI dependency returning the provider built at startup."""
    provider = getattr(request.app.state, "image_provider", None)
    if provider is None:
        provider = build_image_provider()
        request.app.state.image_provider = provider
    return provider
