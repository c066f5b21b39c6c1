"""Image generation and editing route."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from common.error_messages import ErrorCode, get_error_response
from image.models import ErrorResponse, ImageRequest, ImageResponse
from image.provider import FalImageProvider, get_image_provider
from image.services import generate_image
from utils.logger import get_logger

logger = get_logger("image")
router = APIRouter(tags=["image"])


@router.post(
    "/api/image",
    response_model=ImageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Prompt is missing"},
        500: {"model": ErrorResponse, "description": "Generation failed"},
    },
)
def create_image(req: ImageRequest, provider: FalImageProvider = Depends(get_image_provider)):
    """
    Generate an image from a prompt, or edit the supplied image.

    Accepts:
      { prompt: "...", image?: "data:image/png;base64,...", quality?: "high"|"medium"|"low" }

    Returns:
      { image: "data:<mime>;base64,...", description: null }
    """
    prompt = req.prompt
    if not isinstance(prompt, str) or not prompt:
        body, status_code = get_error_response(ErrorCode.PROMPT_REQUIRED)
        return JSONResponse(status_code=status_code, content=body)

    try:
        logger.info(f"Starting {req.mode.value} request with prompt: {prompt[:50]}...")
        return generate_image(provider, prompt, image=req.image, quality=req.quality)
    except Exception as e:
        logger.error(f"Error generating image: {e}", exc_info=True)
        body, status_code = get_error_response(ErrorCode.GENERATION_FAILED, details=str(e))
        return JSONResponse(status_code=status_code, content=body)
