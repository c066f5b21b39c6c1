"""Image gateway module."""
from image.models import (
    Quality,
    GenerationMode,
    ImageRequest,
    ImageResponse,
    ErrorResponse,
    HistoryItem,
    HistoryPart
)
from image.provider import (
    FalImageProvider,
    EndpointDeprecatedError,
    is_endpoint_deprecated,
    build_image_provider,
    get_image_provider
)
from image.services import generate_image, fetch_image_as_data_url, extract_first_image_url

__all__ = [
    "Quality",
    "GenerationMode",
    "ImageRequest",
    "ImageResponse",
    "ErrorResponse",
    "HistoryItem",
    "HistoryPart",
    "FalImageProvider",
    "EndpointDeprecatedError",
    "is_endpoint_deprecated",
    "build_image_provider",
    "get_image_provider",
    "generate_image",
    "fetch_image_as_data_url",
    "extract_first_image_url"
]
