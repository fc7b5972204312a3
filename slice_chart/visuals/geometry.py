"""Overlay geometry for bar and pie elements.

All coordinates are surface pixels: origin at the top-left, y growing
downward, angles in radians measured clockwise from the positive x axis.
The functions here are pure; the matplotlib adapter in ``charts`` feeds them
element geometry and draws what they return.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..core.models import format_value

IMAGE_RADIUS_FACTOR = 0.6
IMAGE_BOUND_FACTOR = 1.4
EMPTY_LABEL = "Empty"
EMPTY_COLOR = "#f0f0f0"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @classmethod
    def centered_at(cls, center: Point, width: float, height: float) -> Rect:
        return cls(center.x - width / 2, center.y - height / 2, width, height)

    def contains(self, other: Rect, tolerance: float = 1e-9) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )


@dataclass(frozen=True)
class BarElement:
    """A drawn bar as reported by the backend.

    ``value_y`` is where the bar's value sits, ``base_y`` the zero baseline.
    For negative values ``value_y`` lies below ``base_y``.
    """

    center_x: float
    value_y: float
    base_y: float
    width: float

    @property
    def rect(self) -> Rect:
        top = min(self.value_y, self.base_y)
        return Rect(
            self.center_x - self.width / 2,
            top,
            self.width,
            abs(self.base_y - self.value_y),
        )


@dataclass(frozen=True)
class WedgeElement:
    center_x: float
    center_y: float
    outer_radius: float
    start_angle: float
    end_angle: float

    @property
    def center(self) -> Point:
        return Point(self.center_x, self.center_y)

    @property
    def mid_angle(self) -> float:
        return (self.start_angle + self.end_angle) / 2

    def point_on_bisector(self, distance: float) -> Point:
        return Point(
            self.center_x + math.cos(self.mid_angle) * distance,
            self.center_y + math.sin(self.mid_angle) * distance,
        )


@dataclass(frozen=True)
class ValueLabel:
    text: str
    anchor: Point


@dataclass(frozen=True)
class BarOverlay:
    clip: Rect
    image: Rect | None
    label: ValueLabel


@dataclass(frozen=True)
class WedgeOverlay:
    clip: WedgeElement
    image: Rect | None
    label: ValueLabel | None


def aspect_fit(image_size: tuple[float, float] | None, box: Rect) -> Rect | None:
    """Largest rect with the image's aspect ratio that fits in ``box``, centered.

    Landscape images span the box width and portrait (or square) images span
    its height, unless that would overflow the other side, in which case the
    image is shrunk further so it stays inside the box.

    Returns None when there is no image or either side is degenerate.
    """
    if image_size is None:
        return None
    img_w, img_h = image_size
    if img_w <= 0 or img_h <= 0 or box.width <= 0 or box.height <= 0:
        return None

    aspect = img_w / img_h
    if aspect > 1:
        draw_w, draw_h = box.width, box.width / aspect
    else:
        draw_w, draw_h = box.height * aspect, box.height

    if draw_w > box.width:
        draw_w, draw_h = box.width, box.width / aspect
    if draw_h > box.height:
        draw_w, draw_h = box.height * aspect, box.height

    return Rect.centered_at(box.center, draw_w, draw_h)


def compute_bar_overlay_geometry(
    bar: BarElement, image_size: tuple[float, float] | None, value: float
) -> BarOverlay:
    """Image placement and value-label anchor for one bar.

    The label sits halfway between the value position and the baseline, i.e.
    the vertical center of the filled part of the bar.
    """
    rect = bar.rect
    anchor = Point(bar.center_x, (bar.value_y + bar.base_y) / 2)
    return BarOverlay(
        clip=rect,
        image=aspect_fit(image_size, rect),
        label=ValueLabel(format_value(value), anchor),
    )


def wedge_centroid(wedge: WedgeElement) -> Point:
    """Tooltip position of a pie wedge: halfway out along the bisector."""
    return wedge.point_on_bisector(wedge.outer_radius / 2)


def compute_wedge_overlay_geometry(
    wedge: WedgeElement,
    image_size: tuple[float, float] | None,
    value: float,
    *,
    series_length: int,
    plot_center: Point,
) -> WedgeOverlay:
    """Image placement and value-label anchor for one pie wedge.

    The image is centered on the bisector at 60% of the outer radius and
    fitted into a square of side 1.4 x radius; drawing is clipped to the
    wedge's own sector. A single-member series labels the plot center.
    """
    if series_length <= 0:
        return WedgeOverlay(clip=wedge, image=None, label=None)

    image_center = wedge.point_on_bisector(wedge.outer_radius * IMAGE_RADIUS_FACTOR)
    bound = wedge.outer_radius * IMAGE_BOUND_FACTOR
    image = aspect_fit(image_size, Rect.centered_at(image_center, bound, bound))

    anchor = plot_center if series_length == 1 else wedge_centroid(wedge)
    return WedgeOverlay(
        clip=wedge,
        image=image,
        label=ValueLabel(format_value(value), anchor),
    )
