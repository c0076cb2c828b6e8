from __future__ import annotations

import math
from collections.abc import Iterator

from lifeview.sim.hashlife import Handle, HashLife
from lifeview.view.grid_view import Rect, Size, ViewState


class ViewportCuller:
    """Turns the oracle's windowed enumeration into pixel rectangles for one frame."""

    def __init__(self, oracle: HashLife, *, bias: int, depth: int) -> None:
        self.oracle = oracle
        self.bias = bias
        self.depth = depth

    def query_depth(self, view: ViewState) -> int:
        return min(view.level_of_detail, self.depth)

    def enumerate_visible(self, handle: Handle, view: ViewState, viewport_size: Size) -> Iterator[Rect]:
        view_rect = view.viewport_rect_in_grid(viewport_size)
        depth = self.query_depth(view)
        last = (1 << self.depth) - 1
        min_x = max(0, math.floor(view_rect.min_x) + self.bias)
        min_y = max(0, math.floor(view_rect.min_y) + self.bias)
        max_x = min(last, math.ceil(view_rect.max_x) + self.bias)
        max_y = min(last, math.ceil(view_rect.max_y) + self.bias)
        if min_x > max_x or min_y > max_y:
            return

        cell_size = float(1 << depth)
        pixel_size = (cell_size * view.scale, cell_size * view.scale)
        # Cell (x, y) covers [x - 0.5, x + 0.5); a macrocell spans 2**depth of them.
        centre_offset = (cell_size - 1.0) / 2.0
        for abs_x, abs_y in self.oracle.iter_populated(handle, depth, ((min_x, min_y), (max_x, max_y))):
            grid_center = (abs_x - self.bias + centre_offset, abs_y - self.bias + centre_offset)
            cell_rect = Rect.from_center_size(grid_center, (cell_size, cell_size))
            if not view_rect.intersects(cell_rect):
                continue
            yield Rect.from_center_size(view.grid_to_pixel(grid_center, viewport_size), pixel_size)
