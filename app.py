"""
FastAPI application that relays image generation and editing to fal.ai.

Features:
- Text-to-image generation from a prompt
- Image editing from a prompt plus an uploaded image (data URL)
- Results returned inline as base64 data URLs
"""
import re
import json
import time
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import Config
from image.provider import build_image_provider
from image.routes import router as image_router
from utils.logger import get_logger
from common.error_messages import ErrorCode, get_error_response

logger = get_logger("main")

# Sensitive fields that should be masked in logs
SENSITIVE_FIELDS = {
    'api_key', 'fal_key', 'key', 'token', 'secret', 'authorization', 'credentials'
}

DATA_URL_PATTERN = re.compile(r"data:([\w.+-]+/[\w.+-]+);base64,([A-Za-z0-9+/=]+)")
MAX_LOGGED_BODY = 2000


def abbreviate_data_urls(text: str) -> str:
    """Replace base64 payloads of data URLs with their length."""
    return DATA_URL_PATTERN.sub(
        lambda m: f"data:{m.group(1)};base64,<{len(m.group(2))} chars>", text
    )


def mask_sensitive_data(data: Any, mask_value: str = "***MASKED***") -> Any:
    """
    Recursively mask sensitive fields and shorten data URLs in data structures.

    Args:
        data: Data to mask (dict, list, or string)
        mask_value: Value to replace sensitive data with

    Returns:
        Data with sensitive fields masked
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_FIELDS:
                masked[key] = mask_value
            else:
                masked[key] = mask_sensitive_data(value, mask_value)
        return masked
    elif isinstance(data, list):
        return [mask_sensitive_data(item, mask_value) for item in data]
    elif isinstance(data, str):
        # JSON bodies arrive as strings
        try:
            parsed = json.loads(data)
            if isinstance(parsed, (dict, list)):
                return json.dumps(mask_sensitive_data(parsed, mask_value))
        except (json.JSONDecodeError, ValueError):
            pass
        return abbreviate_data_urls(data)
    else:
        return data


def format_body_for_log(body: bytes) -> str:
    """Decode, mask and truncate a request or response body for logging."""
    text = mask_sensitive_data(body.decode("utf-8", errors="replace"))
    if len(text) > MAX_LOGGED_BODY:
        text = text[:MAX_LOGGED_BODY] + "... [truncated]"
    return text


# Validate configuration on startup
try:
    Config.validate()
    logger.info("Configuration validated successfully")
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    logger.error("Please set required environment variables in .env file")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the provider client on startup and log the service lifecycle."""
    app.state.image_provider = build_image_provider()
    logger.info("=" * 80)
    logger.info("Image gateway starting up")
    logger.info(f"Text-to-image endpoint: {Config.FAL_TEXT_TO_IMAGE_ENDPOINT}")
    logger.info(f"Edit endpoint: {Config.FAL_EDIT_IMAGE_ENDPOINT}")
    logger.info(f"Host: {Config.HOST}:{Config.PORT}")
    logger.info("=" * 80)

    yield

    logger.info("=" * 80)
    logger.info("Image gateway shutting down")
    logger.info("=" * 80)


app = FastAPI(
    title="Image Gateway",
    description="Generates images from text prompts and edits uploaded images through fal.ai, returning results as data URLs.",
    version="1.0.0",
    lifespan=lifespan
)


# CORS middleware - added first so it also covers error responses and OPTIONS
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies with the gateway's error envelope."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    logger.warning(f"Rejected request to {request.url.path}: {problems}")
    body, status_code = get_error_response(ErrorCode.INVALID_REQUEST, details="; ".join(problems))
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions globally."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    body, status_code = get_error_response(ErrorCode.UNKNOWN_ERROR)
    return JSONResponse(status_code=status_code, content=body)


# Request logging middleware - runs after CORS middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing and request/response details."""
    start_time = time.time()
    full_url = str(request.url)

    try:
        log_msg = f"→ {request.method} {full_url} - Client: {request.client.host if request.client else 'unknown'}"
        if request.method in ["POST", "PUT", "PATCH"]:
            body_bytes = await request.body()
            if body_bytes:
                log_msg += f"\n  Request Body: {format_body_for_log(body_bytes)}"
        logger.info(log_msg)

        response = await call_next(request)

        response_body_bytes = b""
        async for chunk in response.body_iterator:
            response_body_bytes += chunk
        response = Response(
            content=response_body_bytes,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type
        )

        process_time = (time.time() - start_time) * 1000
        log_msg = f"← {request.method} {full_url} - Status: {response.status_code} - Time: {process_time:.2f}ms"
        if response_body_bytes:
            log_msg += f"\n  Response Body: {format_body_for_log(response_body_bytes)}"
        logger.info(log_msg)

        return response
    except Exception as e:
        process_time = (time.time() - start_time) * 1000
        logger.error(f"← {request.method} {full_url} - Error: {str(e)} - Time: {process_time:.2f}ms")
        raise


app.include_router(image_router)
logger.info("Image router included")


@app.get("/healthz")
def health():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {"status": "ok"}


# Run server directly
if __name__ == "__main__":
    logger.info(f"Starting server on {Config.HOST}:{Config.PORT}")
    uvicorn.run(
        "app:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=True,
        log_level=Config.LOG_LEVEL.lower()
    )
