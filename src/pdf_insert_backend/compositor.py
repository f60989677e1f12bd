"""
Placement arithmetic for drawing uploaded images onto PDF pages.

This module decides where, and at what scale, an image is drawn:
- fit_and_center scales an image uniformly into a region and centers it
- fit_to_page_top centers an image horizontally on a page and hangs it
  from a fixed top margin
- BoxPlacement and TopAnchoredPlacement wrap those rules as the named
  policies the PDF service uses for each endpoint

All coordinates use the PDF convention of a bottom-left origin. Nothing here
touches a PDF document; see pdf_service for the drawing side.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Tuple

from .models import DrawRectangle, ImageDimensions, PlacementRegion


def _require_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive finite number, got {value!r}")


def fit_and_center(region: PlacementRegion, image: ImageDimensions) -> DrawRectangle:
    """
    Scale an image to the largest size that fits inside a region and center it.

    The scale factor is the tighter of the two axis ratios, so the aspect ratio is
    preserved and the binding axis touches the region edges exactly. There is no
    upper bound on the scale: a small image in a large region is scaled up.

    Args:
        region: Target rectangle with positive width and height
        image: Natural image size with positive width and height

    Returns:
        The rectangle to draw the image into

    Raises:
        ValueError: If any dimension is zero, negative or not finite
    """
    _require_positive("region.width", region.width)
    _require_positive("region.height", region.height)
    _require_positive("image.width", image.width)
    _require_positive("image.height", image.height)

    scale = min(region.width / image.width, region.height / image.height)
    width = image.width * scale
    height = image.height * scale
    return DrawRectangle(
        x=region.x + (region.width - width) / 2,
        y=region.y + (region.height - height) / 2,
        width=width,
        height=height,
    )


def fit_to_page_top(
    page_width: float,
    page_height: float,
    top_margin: float,
    image: ImageDimensions,
) -> DrawRectangle:
    """
    Fit an image below a top margin, centered horizontally.

    The image is scaled into the page minus the margin, then its top edge is
    placed `top_margin` below the page top. Short images therefore leave empty
    space at the bottom of the page instead of being centered vertically.
    """
    if top_margin < 0 or top_margin >= page_height:
        raise ValueError(f"top_margin must be within [0, {page_height}), got {top_margin!r}")

    region = PlacementRegion(x=0, y=0, width=page_width, height=page_height - top_margin)
    fitted = fit_and_center(region, image)
    return DrawRectangle(
        x=fitted.x,
        y=page_height - fitted.height - top_margin,
        width=fitted.width,
        height=fitted.height,
    )


class PlacementPolicy(Protocol):
    def place(self, image: ImageDimensions) -> DrawRectangle: ...


@dataclass(frozen=True)
class BoxPlacement:
    """Fit and center inside a fixed box, used for the template page."""

    region: PlacementRegion

    def place(self, image: ImageDimensions) -> DrawRectangle:
        return fit_and_center(self.region, image)


@dataclass(frozen=True)
class TopAnchoredPlacement:
    """One fresh page per image, image hung from the top margin."""

    page_width: float
    page_height: float
    top_margin: float

    @property
    def page_size(self) -> Tuple[float, float]:
        return (self.page_width, self.page_height)

    def place(self, image: ImageDimensions) -> DrawRectangle:
        return fit_to_page_top(self.page_width, self.page_height, self.top_margin, image)
