"""
Logging configuration with daily file rotation and retention cleanup.

Every module logs through a child of the ``gateway`` logger so a single pair of
handlers (rotating file + console) serves the whole service.
"""
import os
import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime, timedelta
from pathlib import Path

from config import Config

ROOT_LOGGER_NAME = "gateway"
LOGS_DIR = Config.LOG_DIR
LOG_FILE = os.path.join(LOGS_DIR, "gateway.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def cleanup_old_logs(directory: str, retention_days: int) -> int:
    """Remove rotated log files older than ``retention_days``.

    Rotated files are named ``gateway.log.YYYY-MM-DD``; files whose suffix
    does not parse as a date are judged by modification time instead.

    Returns:
        Number of files deleted
    """
    log_dir = Path(directory)
    if not log_dir.exists():
        return 0

    cutoff = datetime.now() - timedelta(days=retention_days)
    deleted = 0
    for log_file in log_dir.glob("gateway.log.*"):
        if not log_file.is_file():
            continue
        suffix = log_file.name[len("gateway.log."):]
        try:
            file_date = datetime.strptime(suffix, "%Y-%m-%d")
        except ValueError:
            file_date = datetime.fromtimestamp(log_file.stat().st_mtime)
        if file_date >= cutoff:
            continue
        try:
            log_file.unlink()
            deleted += 1
        except OSError as e:
            logging.getLogger(ROOT_LOGGER_NAME).error(f"Failed to delete log file {log_file.name}: {e}")
    return deleted


def setup_logger(name: str = ROOT_LOGGER_NAME, level: str = Config.LOG_LEVEL) -> logging.Logger:
    """
    Set up logger with file rotation and console output.

    Args:
        name: Logger name
        level: Level name such as ``INFO`` or ``DEBUG``

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    numeric_level = getattr(logging, level, logging.INFO)
    logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", "%H:%M:%S")
    )
    logger.addHandler(console_handler)

    try:
        os.makedirs(LOGS_DIR, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            LOG_FILE,
            when="midnight",
            interval=1,
            backupCount=Config.LOG_RETENTION_DAYS,
            encoding="utf-8",
            utc=True
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"File logging disabled, cannot write to {LOGS_DIR}: {e}")
        return logger

    removed = cleanup_old_logs(LOGS_DIR, Config.LOG_RETENTION_DAYS)
    if removed:
        logger.info(f"Cleaned up {removed} old log file(s)")

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Dotted child name (if None, returns the root gateway logger)

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


gateway_logger = setup_logger()
gateway_logger.debug(f"Logging to {LOG_FILE} (retention: {Config.LOG_RETENTION_DAYS} days)")
