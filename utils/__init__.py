"""Utils module."""
from utils.logger import setup_logger, get_logger, gateway_logger, cleanup_old_logs

__all__ = [
    "setup_logger",
    "get_logger",
    "gateway_logger",
    "cleanup_old_logs"
]
