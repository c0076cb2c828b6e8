from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from enum import Enum

from lifeview.sim.hashlife import Coord, Handle, HashLife
from lifeview.view.grid_view import Point, Size, ViewState


class EditIntent(Enum):
    SET_ALIVE = "set_alive"
    SET_DEAD = "set_dead"
    TOGGLE = "toggle"


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def lattice_coord_at(view: ViewState, cursor_pixel: Point, viewport_size: Size) -> Coord:
    """View-centred lattice cell under ``cursor_pixel``."""
    grid_x, grid_y = view.pixel_to_grid(cursor_pixel, viewport_size)
    return (_round_half_away(grid_x), _round_half_away(grid_y))


class EditQueue:
    """Pending cell edits keyed by view-centred lattice coordinate; last write wins."""

    def __init__(self) -> None:
        self._pending: dict[Coord, EditIntent] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, coord: object) -> bool:
        return coord in self._pending

    def pending(self, coord: Coord) -> EditIntent | None:
        return self._pending.get(coord)

    def enqueue(self, view: ViewState, cursor_pixel: Point, viewport_size: Size, intent: EditIntent) -> Coord:
        coord = lattice_coord_at(view, cursor_pixel, viewport_size)
        self.enqueue_at(coord, intent)
        return coord

    def enqueue_at(self, coord: Coord, intent: EditIntent) -> None:
        if not isinstance(intent, EditIntent):
            raise ValueError(f"intent must be an EditIntent, got {intent!r}")
        self._pending[(int(coord[0]), int(coord[1]))] = intent

    def drain(self) -> Iterator[tuple[Coord, EditIntent]]:
        """Empty the queue now and return an iterator over its former contents."""
        drained, self._pending = self._pending, {}
        return iter(list(drained.items()))

    def clear(self) -> None:
        self._pending.clear()


def commit_edits(
    oracle: HashLife,
    handle: Handle,
    edits: Iterable[tuple[Coord, EditIntent]],
    *,
    bias: int,
    depth: int,
) -> tuple[Handle, int]:
    """Apply drained edits one by one; edits outside the universe are dropped.

    Returns the new working handle and the number of edits applied.
    """
    size = 1 << depth
    applied = 0
    for (x, y), intent in edits:
        coord = (x + bias, y + bias)
        if not (0 <= coord[0] < size and 0 <= coord[1] < size):
            continue
        if intent is EditIntent.TOGGLE:
            value = not oracle.read(handle, coord)
        else:
            value = intent is EditIntent.SET_ALIVE
        handle = oracle.modify(handle, coord, value, depth)
        applied += 1
    return handle, applied
