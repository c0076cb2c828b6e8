from __future__ import annotations

import sys
from collections.abc import Callable, Iterator, Sequence

from lifeview.sim.rules import LifeRule, parse_rule

Coord = tuple[int, int]
LatticeRect = tuple[Coord, Coord]


class Macrocell:
    """Canonical quadtree node; a square of side ``2**level`` cells.

    Nodes are hash-consed by :class:`HashLife`, so two nodes with the same
    content are the same object and identity comparison is content equality.
    Nodes are never mutated after construction.
    """

    __slots__ = ("level", "nw", "ne", "sw", "se", "population")

    def __init__(
        self,
        level: int,
        nw: Macrocell | None,
        ne: Macrocell | None,
        sw: Macrocell | None,
        se: Macrocell | None,
        population: int,
    ) -> None:
        self.level = level
        self.nw = nw
        self.ne = ne
        self.sw = sw
        self.se = se
        self.population = population

    def __repr__(self) -> str:
        return f"Macrocell(level={self.level}, population={self.population})"


Handle = Macrocell


class HashLife:
    """Quadtree-memoizing Life engine.

    Coordinates are ``(x, y)`` with ``x`` growing right and ``y`` growing down,
    relative to the top-left corner of the handle being addressed.
    """

    def __init__(self, rule: LifeRule) -> None:
        self.rule = rule
        self._dead = Macrocell(0, None, None, None, None, 0)
        self._alive = Macrocell(0, None, None, None, None, 1)
        self._parents: dict[tuple[Macrocell, Macrocell, Macrocell, Macrocell], Macrocell] = {}
        self._results: dict[tuple[Macrocell, int], Macrocell] = {}
        self._empty: list[Macrocell] = [self._dead]

    # Node construction

    def leaf(self, alive: bool) -> Macrocell:
        return self._alive if alive else self._dead

    def join(self, nw: Macrocell, ne: Macrocell, sw: Macrocell, se: Macrocell) -> Macrocell:
        key = (nw, ne, sw, se)
        node = self._parents.get(key)
        if node is None:
            node = Macrocell(
                nw.level + 1,
                nw,
                ne,
                sw,
                se,
                nw.population + ne.population + sw.population + se.population,
            )
            self._parents[key] = node
        return node

    def empty(self, level: int) -> Macrocell:
        if level < 0:
            raise ValueError("macrocell level must be >= 0")
        while len(self._empty) <= level:
            child = self._empty[-1]
            self._empty.append(self.join(child, child, child, child))
        return self._empty[level]

    def population(self, handle: Handle) -> int:
        return handle.population

    @staticmethod
    def max_steps(level: int) -> int:
        """Largest generation count ``result`` accepts for a handle of ``level``."""
        if level < 2:
            return 0
        return 1 << (level - 2)

    # Oracle contract

    def insert_array(self, cells: Sequence[bool | int], width: int, top_left: Coord, depth: int) -> Handle:
        if depth < 0:
            raise ValueError("depth must be >= 0")
        if width <= 0:
            raise ValueError("pattern width must be > 0")
        if len(cells) % width != 0:
            raise ValueError(f"pattern cell count {len(cells)} is not a multiple of width {width}")
        height = len(cells) // width
        left, top = top_left
        size = 1 << depth
        if left < 0 or top < 0 or left + width > size or top + height > size:
            raise ValueError(
                f"pattern {width}x{height} at ({left}, {top}) does not fit a universe of side 2**{depth}"
            )
        return self._build(depth, 0, 0, cells, width, height, left, top)

    def read(self, handle: Handle, coord: Coord) -> bool:
        x, y = self._checked_coord(handle, coord)
        node = handle
        while node.level > 0:
            if node.population == 0:
                return False
            half = 1 << (node.level - 1)
            if y < half:
                if x < half:
                    node = node.nw
                else:
                    node, x = node.ne, x - half
            else:
                y -= half
                if x < half:
                    node = node.sw
                else:
                    node, x = node.se, x - half
        return node is self._alive

    def modify(self, handle: Handle, coord: Coord, value: bool, depth: int) -> Handle:
        if handle.level != depth:
            raise ValueError(f"handle level {handle.level} does not match depth {depth}")
        x, y = self._checked_coord(handle, coord)
        return self._set_cell(handle, x, y, bool(value))

    def result(self, handle: Handle, steps: int, translation: Coord = (0, 0)) -> Handle:
        """Advance the centre of ``handle`` by ``steps`` generations.

        A handle of level ``n`` yields a handle of level ``n - 1`` covering the
        square whose top-left corner is at ``2**(n-2) + translation`` in the
        input's coordinates.
        """
        if handle.level < 2:
            raise ValueError("result requires a handle of level >= 2")
        if not isinstance(steps, int) or steps < 0:
            raise ValueError("steps must be a non-negative integer")
        if steps > self.max_steps(handle.level):
            raise ValueError(
                f"steps={steps} exceeds the reach of a level {handle.level} handle "
                f"(max {self.max_steps(handle.level)}); expand the handle first"
            )
        dx, dy = translation
        if dx == 0 and dy == 0:
            return self._advance(handle, steps)
        quarter = 1 << (handle.level - 2)
        if abs(dx) > quarter or abs(dy) > quarter:
            raise ValueError(f"translation {translation} exceeds +/-{quarter} for a level {handle.level} handle")
        advanced = self._advance(self.expand(handle), steps)
        return self._window(advanced, quarter + dx, quarter + dy, handle.level - 1)

    def expand(self, handle: Handle) -> Handle:
        if handle.level < 1:
            raise ValueError("cannot expand a level 0 handle")
        border = self.empty(handle.level - 1)
        return self.join(
            self.join(border, border, border, handle.nw),
            self.join(border, border, handle.ne, border),
            self.join(border, handle.sw, border, border),
            self.join(handle.se, border, border, border),
        )

    def iter_populated(self, handle: Handle, depth: int, rect: LatticeRect) -> Iterator[Coord]:
        """Yield the top-left corner of every populated ``2**depth`` macrocell touching ``rect``.

        ``rect`` is ``((min_x, min_y), (max_x, max_y))`` with both corners inclusive.
        """
        (min_x, min_y), (max_x, max_y) = rect
        if min_x > max_x or min_y > max_y:
            raise ValueError(f"malformed query rectangle {rect}")
        if depth < 0:
            raise ValueError("query depth must be >= 0")
        stack: list[tuple[Macrocell, int, int]] = [(handle, 0, 0)]
        while stack:
            node, left, top = stack.pop()
            if node.population == 0:
                continue
            size = 1 << node.level
            if left > max_x or top > max_y or left + size <= min_x or top + size <= min_y:
                continue
            if node.level <= depth:
                yield (left, top)
                continue
            half = size >> 1
            stack.append((node.se, left + half, top + half))
            stack.append((node.sw, left, top + half))
            stack.append((node.ne, left + half, top))
            stack.append((node.nw, left, top))

    def resolve(
        self,
        origin: Coord,
        visitor: Callable[[Coord], None],
        depth: int,
        rect: LatticeRect,
        handle: Handle,
    ) -> None:
        """Visitor form of :meth:`iter_populated`; ``origin`` is the handle's top-left corner."""
        origin_x, origin_y = origin
        (min_x, min_y), (max_x, max_y) = rect
        local_rect = ((min_x - origin_x, min_y - origin_y), (max_x - origin_x, max_y - origin_y))
        for x, y in self.iter_populated(handle, depth, local_rect):
            visitor((x + origin_x, y + origin_y))

    def mem_usage(self) -> tuple[int, int, int]:
        """Approximate bytes held by the result cache, the parent table and the nodes.

        The cache and table figures are shallow ``sys.getsizeof`` sizes of the
        dicts; keys and values are not counted there.
        """
        node_bytes = sys.getsizeof(self._dead)
        return (
            sys.getsizeof(self._results),
            sys.getsizeof(self._parents),
            (len(self._parents) + 2) * node_bytes,
        )

    # Internals

    def _checked_coord(self, handle: Handle, coord: Coord) -> Coord:
        x, y = coord
        size = 1 << handle.level
        if not (0 <= x < size and 0 <= y < size):
            raise ValueError(f"coordinate {coord} is outside the universe of side 2**{handle.level}")
        return int(x), int(y)

    def _build(
        self,
        level: int,
        x0: int,
        y0: int,
        cells: Sequence[bool | int],
        width: int,
        height: int,
        left: int,
        top: int,
    ) -> Macrocell:
        size = 1 << level
        if x0 >= left + width or x0 + size <= left or y0 >= top + height or y0 + size <= top:
            return self.empty(level)
        if level == 0:
            return self.leaf(bool(cells[(y0 - top) * width + (x0 - left)]))
        half = size >> 1
        return self.join(
            self._build(level - 1, x0, y0, cells, width, height, left, top),
            self._build(level - 1, x0 + half, y0, cells, width, height, left, top),
            self._build(level - 1, x0, y0 + half, cells, width, height, left, top),
            self._build(level - 1, x0 + half, y0 + half, cells, width, height, left, top),
        )

    def _set_cell(self, node: Macrocell, x: int, y: int, value: bool) -> Macrocell:
        if node.level == 0:
            return self.leaf(value)
        half = 1 << (node.level - 1)
        if y < half:
            if x < half:
                return self.join(self._set_cell(node.nw, x, y, value), node.ne, node.sw, node.se)
            return self.join(node.nw, self._set_cell(node.ne, x - half, y, value), node.sw, node.se)
        if x < half:
            return self.join(node.nw, node.ne, self._set_cell(node.sw, x, y - half, value), node.se)
        return self.join(node.nw, node.ne, node.sw, self._set_cell(node.se, x - half, y - half, value))

    def _center(self, node: Macrocell) -> Macrocell:
        return self.join(node.nw.se, node.ne.sw, node.sw.ne, node.se.nw)

    def _advance(self, node: Macrocell, steps: int) -> Macrocell:
        if node.population == 0:
            return self.empty(node.level - 1)
        if steps == 0:
            return self._center(node)
        key = (node, steps)
        cached = self._results.get(key)
        if cached is not None:
            return cached
        if node.level == 2:
            advanced = self._advance_level2(node)
        else:
            advanced = self._advance_recursive(node, steps)
        self._results[key] = advanced
        return advanced

    def _advance_recursive(self, node: Macrocell, steps: int) -> Macrocell:
        # Two half-passes, each within the reach of a level n-1 node.
        half_reach = 1 << (node.level - 3)
        second = min(steps, half_reach)
        first = steps - second

        nw, ne, sw, se = node.nw, node.ne, node.sw, node.se
        r00 = self._advance(nw, first)
        r01 = self._advance(self.join(nw.ne, ne.nw, nw.se, ne.sw), first)
        r02 = self._advance(ne, first)
        r10 = self._advance(self.join(nw.sw, nw.se, sw.nw, sw.ne), first)
        r11 = self._advance(self.join(nw.se, ne.sw, sw.ne, se.nw), first)
        r12 = self._advance(self.join(ne.sw, ne.se, se.nw, se.ne), first)
        r20 = self._advance(sw, first)
        r21 = self._advance(self.join(sw.ne, se.nw, sw.se, se.sw), first)
        r22 = self._advance(se, first)

        return self.join(
            self._advance(self.join(r00, r01, r10, r11), second),
            self._advance(self.join(r01, r02, r11, r12), second),
            self._advance(self.join(r10, r11, r20, r21), second),
            self._advance(self.join(r11, r12, r21, r22), second),
        )

    def _advance_level2(self, node: Macrocell) -> Macrocell:
        grid = [[False] * 4 for _ in range(4)]
        for quadrant, ox, oy in ((node.nw, 0, 0), (node.ne, 2, 0), (node.sw, 0, 2), (node.se, 2, 2)):
            grid[oy][ox] = quadrant.nw is self._alive
            grid[oy][ox + 1] = quadrant.ne is self._alive
            grid[oy + 1][ox] = quadrant.sw is self._alive
            grid[oy + 1][ox + 1] = quadrant.se is self._alive

        def next_cell(x: int, y: int) -> Macrocell:
            neighbours = sum(
                grid[y + dy][x + dx]
                for dy in (-1, 0, 1)
                for dx in (-1, 0, 1)
                if dx or dy
            )
            return self.leaf(self.rule.next_state(grid[y][x], neighbours))

        return self.join(next_cell(1, 1), next_cell(2, 1), next_cell(1, 2), next_cell(2, 2))

    def _window(self, node: Macrocell, x: int, y: int, level: int) -> Macrocell:
        """Level ``level`` square whose top-left corner sits at ``(x, y)`` inside ``node``."""
        if node.population == 0:
            return self.empty(level)
        if node.level == level:
            return node
        half = 1 << (node.level - 1)
        size = 1 << level
        column = 0 if x + size <= half else (1 if x >= half else None)
        row = 0 if y + size <= half else (1 if y >= half else None)
        if column is not None and row is not None:
            child = ((node.nw, node.ne), (node.sw, node.se))[row][column]
            return self._window(child, x - column * half, y - row * half, level)
        quarter = size >> 1
        return self.join(
            self._window(node, x, y, level - 1),
            self._window(node, x + quarter, y, level - 1),
            self._window(node, x, y + quarter, level - 1),
            self._window(node, x + quarter, y + quarter, level - 1),
        )


def new_oracle(rule_spec: str) -> HashLife:
    return HashLife(parse_rule(rule_spec))
