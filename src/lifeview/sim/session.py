from __future__ import annotations

from dataclasses import dataclass, field

from lifeview.content.rle import RlePattern
from lifeview.sim.hashlife import Coord, Handle, HashLife, new_oracle
from lifeview.sim.rules import DEFAULT_RULE_SPEC
from lifeview.view.grid_view import ViewState

# Universe side is 2**MAX_N; large enough for big maps while view-centred
# float coordinates keep full cell precision.
MAX_N = 62
MIN_DEPTH = 2


@dataclass
class Session:
    """Everything a viewer needs for one pattern: oracle, working handle, camera and depth."""

    oracle: HashLife
    handle: Handle
    depth: int
    view: ViewState = field(default_factory=ViewState)

    def __post_init__(self) -> None:
        if not isinstance(self.depth, int) or not MIN_DEPTH <= self.depth <= MAX_N:
            raise ValueError(f"session depth must be an integer in {MIN_DEPTH}..{MAX_N}")
        if self.handle.level != self.depth:
            raise ValueError(f"handle level {self.handle.level} does not match session depth {self.depth}")

    @property
    def bias(self) -> int:
        """Offset from view-centred lattice coordinates to oracle coordinates."""
        return 1 << (self.depth - 1)

    def to_absolute(self, coord: Coord) -> Coord:
        return (coord[0] + self.bias, coord[1] + self.bias)

    def to_view(self, coord: Coord) -> Coord:
        return (coord[0] - self.bias, coord[1] - self.bias)


def pattern_insert_offset(pattern: RlePattern, depth: int) -> Coord:
    """Top-left insertion corner that centres ``pattern`` in a ``2**depth`` universe."""
    half = 1 << (depth - 1)
    return (half - pattern.width // 2, half - pattern.height // 2)


def build_session(
    rule_spec: str | None,
    pattern: RlePattern,
    *,
    depth: int = MAX_N,
    view: ViewState | None = None,
) -> Session:
    """Build a ready session; ``rule_spec=None`` falls back to the pattern's own rule."""
    if not isinstance(depth, int) or not MIN_DEPTH <= depth <= MAX_N:
        raise ValueError(f"session depth must be an integer in {MIN_DEPTH}..{MAX_N}")
    oracle = new_oracle(rule_spec or pattern.rule or DEFAULT_RULE_SPEC)
    handle = oracle.insert_array(pattern.cells, pattern.width, pattern_insert_offset(pattern, depth), depth)
    return Session(oracle=oracle, handle=handle, depth=depth, view=view if view is not None else ViewState())
