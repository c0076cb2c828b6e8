from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_SCALE = 20.0
MIN_SCALE = 1e-18

Point = tuple[float, float]
Size = tuple[float, float]


@dataclass(frozen=True)
class Rect:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_center_size(cls, center: Point, size: Size) -> "Rect":
        half_w = size[0] / 2.0
        half_h = size[1] / 2.0
        return cls(center[0] - half_w, center[1] - half_h, center[0] + half_w, center[1] + half_h)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def intersects(self, other: "Rect") -> bool:
        """Strict overlap; rectangles that only share an edge do not intersect."""
        return (
            self.min_x < other.max_x
            and other.min_x < self.max_x
            and self.min_y < other.max_y
            and other.min_y < self.max_y
        )

    def translate(self, dx: float, dy: float) -> "Rect":
        return Rect(self.min_x + dx, self.min_y + dy, self.max_x + dx, self.max_y + dy)


def level_of_detail(scale: float) -> int:
    """Macrocell depth whose edge covers about one pixel at ``scale`` pixels per cell."""
    if scale >= 1.0:
        return 0
    return max(0, math.floor(-math.log2(max(scale, MIN_SCALE))))


@dataclass
class ViewState:
    """Viewer camera: ``center`` in grid units, ``scale`` in pixels per grid unit."""

    center: Point = (0.0, 0.0)
    scale: float = DEFAULT_SCALE

    def __post_init__(self) -> None:
        self.center = (float(self.center[0]), float(self.center[1]))
        self.scale = _clamp_scale(float(self.scale))

    def pixel_to_grid(self, pixel: Point, viewport_size: Size) -> Point:
        return (
            self.center[0] + (pixel[0] - viewport_size[0] / 2.0) / self.scale,
            self.center[1] + (pixel[1] - viewport_size[1] / 2.0) / self.scale,
        )

    def grid_to_pixel(self, grid: Point, viewport_size: Size) -> Point:
        return (
            (grid[0] - self.center[0]) * self.scale + viewport_size[0] / 2.0,
            (grid[1] - self.center[1]) * self.scale + viewport_size[1] / 2.0,
        )

    def drag(self, delta_pixels: Point) -> None:
        self.center = (
            self.center[0] - delta_pixels[0] / self.scale,
            self.center[1] - delta_pixels[1] / self.scale,
        )

    def zoom(self, delta_factor: float, cursor_pixel: Point, viewport_size: Size) -> None:
        # Offset must use the scale from before the update.
        offset_x = (cursor_pixel[0] - viewport_size[0] / 2.0) / self.scale
        offset_y = (cursor_pixel[1] - viewport_size[1] / 2.0) / self.scale
        old_scale = self.scale
        self.scale = _clamp_scale(self.scale + delta_factor * self.scale)
        shift = 1.0 - old_scale / self.scale
        self.center = (self.center[0] + offset_x * shift, self.center[1] + offset_y * shift)

    def viewport_rect_in_grid(self, viewport_size: Size) -> Rect:
        return Rect.from_center_size(self.center, (viewport_size[0] / self.scale, viewport_size[1] / self.scale))

    @property
    def level_of_detail(self) -> int:
        return level_of_detail(self.scale)


def _clamp_scale(scale: float) -> float:
    if math.isnan(scale) or scale <= 0.0:
        return MIN_SCALE
    return max(scale, MIN_SCALE)
