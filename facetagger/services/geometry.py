"""
Coordinate mapping from provider-normalized boxes to absolute pixel rectangles.
"""

import math

from facetagger.errors import InvalidGeometry
from facetagger.schemas.detection import BoundingBox
from facetagger.schemas.tasks import FaceBounds
from facetagger.utils.guard import in01, positive


def round_half_away(value: float) -> int:
    """Round to nearest, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def map_box(width: int, height: int, box: BoundingBox) -> FaceBounds:
    """Map a normalized ``box`` onto a ``width`` x ``height`` image.

    Raises InvalidGeometry for non-positive image dimensions, coordinates
    outside [0, 1], or a box that collapses to zero width or height.
    """
    positive(width, "image width")
    positive(height, "image height")
    in01(box.x_min, "x_min")
    in01(box.x_max, "x_max")
    in01(box.y_min, "y_min")
    in01(box.y_max, "y_max")

    x = round_half_away(width * box.x_min)
    y = round_half_away(height * box.y_min)
    w = round_half_away(width * box.x_max) - x
    h = round_half_away(height * box.y_max) - y
    if w <= 0 or h <= 0:
        raise InvalidGeometry("degenerate face box", width=w, height=h)
    return FaceBounds(x=x, y=y, width=w, height=h)


def clamp_bounds(bounds: FaceBounds, image_width: int, image_height: int) -> tuple[int, int, int, int]:
    """Clip a rectangle to the image extents, returning a PIL crop box.

    Out-of-range bounds are clipped silently; an empty intersection raises
    InvalidGeometry so the caller can report it as an empty crop.
    """
    left = min(max(bounds.x, 0), image_width)
    upper = min(max(bounds.y, 0), image_height)
    right = min(bounds.x + bounds.width, image_width)
    lower = min(bounds.y + bounds.height, image_height)
    if right - left <= 0 or lower - upper <= 0:
        raise InvalidGeometry("crop outside image", box=(left, upper, right, lower))
    return (left, upper, right, lower)
