"""
Error envelopes and status codes.

Every error the gateway returns is a JSON object with an ``error`` message and,
for downstream failures, a ``details`` string. The messages and status codes
are defined here so routes and exception handlers stay consistent.
"""
from typing import Any, Dict, Optional, Tuple
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for different types of failures."""

    # Validation Errors (400)
    PROMPT_REQUIRED = "PROMPT_REQUIRED"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Generation Errors (500)
    GENERATION_FAILED = "GENERATION_FAILED"

    # Generic Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES = {
    ErrorCode.PROMPT_REQUIRED: "Prompt is required",
    ErrorCode.INVALID_REQUEST: "Invalid request body",
    ErrorCode.GENERATION_FAILED: "Failed to generate image",
    ErrorCode.UNKNOWN_ERROR: "Something unexpected happened. Please try again.",
}


ERROR_STATUS_CODES = {
    ErrorCode.PROMPT_REQUIRED: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.GENERATION_FAILED: 500,
    ErrorCode.UNKNOWN_ERROR: 500,
}


def get_error_response(
    error_code: ErrorCode,
    details: Optional[str] = None
) -> Tuple[Dict[str, Any], int]:
    """
    Build the JSON error envelope and HTTP status code for an error.

    Args:
        error_code: The error code enum
        details: Optional technical detail; the ``details`` key is only
                 present when this is given

    Returns:
        Tuple of (error_body, status_code)
    """
    message = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR])
    status_code = ERROR_STATUS_CODES.get(error_code, 500)

    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return body, status_code
