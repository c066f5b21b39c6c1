"""Common module."""
from common.error_messages import ErrorCode, ERROR_MESSAGES, ERROR_STATUS_CODES, get_error_response

__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_STATUS_CODES",
    "get_error_response"
]
