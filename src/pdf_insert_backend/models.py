from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PlacementRegion(BaseModel):
    """Rectangle an image must fit inside, in page units with a bottom-left origin."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class ImageDimensions(BaseModel):
    """Natural size of a decoded image at 1:1 scale."""

    model_config = ConfigDict(frozen=True)

    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class DrawRectangle(BaseModel):
    """Where and how large an image is drawn, bottom-left origin."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
