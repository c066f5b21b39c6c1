"""Image gateway Pydantic models."""
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Quality(str, Enum):
    """Requested output quality. Accepted and logged, not sent to the provider."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GenerationMode(str, Enum):
    """Which provider job a request turns into."""
    GENERATE = "generate"
    EDIT = "edit"


class ImageRequest(BaseModel):
    """Body of ``POST /api/image``."""
    # Types are checked by the route, not by body validation
    prompt: Optional[Any] = Field(None, description="Text prompt or edit instruction")
    image: Optional[Any] = Field(None, description="Source image as a data URL; selects edit mode")
    quality: Quality = Field(Quality.MEDIUM, description="high, medium or low; anything else means medium")

    @field_validator("quality", mode="before")
    @classmethod
    def fallback_to_medium(cls, value: Any) -> Any:
        valid = {q.value for q in Quality}
        if isinstance(value, Quality):
            return value
        if isinstance(value, str) and value in valid:
            return value
        return Quality.MEDIUM

    @property
    def mode(self) -> GenerationMode:
        return GenerationMode.EDIT if self.image else GenerationMode.GENERATE


class ImageResponse(BaseModel):
    """Successful gateway response."""
    image: str = Field(..., description="Generated image as a data URL")
    description: Optional[str] = Field(None, description="Caption text; the provider returns none")


class ErrorResponse(BaseModel):
    """Error envelope returned for 400 and 500 responses."""
    error: str
    details: Optional[str] = None


class HistoryPart(BaseModel):
    """One part of a conversation turn: free text or an image data URL."""
    text: Optional[str] = None
    image: Optional[str] = Field(None, description="data:image/png;base64,... or data:image/jpeg;base64,...")


class HistoryItem(BaseModel):
    """
    A turn in the client-side conversation history.

    Model turns carry text only; user turns may carry text and at most one
    image. The gateway never receives these.
    """
    role: Literal["user", "model"]
    parts: List[HistoryPart] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_parts_for_role(self) -> "HistoryItem":
        images = [part for part in self.parts if part.image]
        if self.role == "model" and images:
            raise ValueError("model turns may only contain text parts")
        if len(images) > 1:
            raise ValueError("user turns may contain at most one image")
        return self
