"""
Configuration module - loads all settings from environment variables.
"""
import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
try:
    load_dotenv()
except Exception as e:
    print(f"Warning: Failed to load .env file: {e}")
    print("Continuing with environment variables or defaults...")


class Config:
    """Application configuration loaded from environment variables."""

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Safely parse integer environment variable."""
        try:
            return int(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid integer for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Safely parse float environment variable."""
        try:
            return float(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid float for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_list(key: str, default: str) -> List[str]:
        """Parse a comma separated environment variable."""
        raw = os.getenv(key, default)
        return [item.strip() for item in raw.split(",") if item.strip()]

    # fal.ai provider
    FAL_KEY: str = os.getenv("FAL_KEY", "")
    FAL_TEXT_TO_IMAGE_ENDPOINT: str = os.getenv("FAL_TEXT_TO_IMAGE_ENDPOINT", "fal-ai/qwen-image")
    FAL_EDIT_IMAGE_ENDPOINT: str = os.getenv("FAL_EDIT_IMAGE_ENDPOINT", "fal-ai/flux-pro/kontext")
    FAL_IMAGE_SIZE: str = os.getenv("FAL_IMAGE_SIZE", "square_hd")
    FAL_GUIDANCE_SCALE: float = _get_float.__func__("FAL_GUIDANCE_SCALE", 4.0)

    # Generated asset download
    ASSET_FETCH_TIMEOUT_SECONDS: float = _get_float.__func__("ASSET_FETCH_TIMEOUT_SECONDS", 60.0)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR: str = os.getenv(
        "LOG_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
    )
    LOG_RETENTION_DAYS: int = _get_int.__func__("LOG_RETENTION_DAYS", 10)

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = _get_int.__func__("PORT", 8000)
    CORS_ALLOW_ORIGINS: List[str] = _get_list.__func__("CORS_ALLOW_ORIGINS", "*")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.FAL_KEY:
            raise ValueError("FAL_KEY environment variable is required")
