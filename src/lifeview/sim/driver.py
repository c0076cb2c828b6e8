from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from lifeview.sim.hashlife import Handle, HashLife
from lifeview.sim.session import Session
from lifeview.view.culling import ViewportCuller
from lifeview.view.edits import EditQueue, commit_edits
from lifeview.view.grid_view import Rect, Size, ViewState


class FrameState(Enum):
    IDLE = "idle"
    APPLY_EDITS = "apply_edits"
    STEP = "step"
    RENDERED = "rendered"


def halve_time_step(time_step: int) -> int:
    if time_step <= 1:
        return 0
    return 1 << (time_step.bit_length() - 2)


def double_time_step(time_step: int) -> int:
    return 1 << max(0, time_step).bit_length()


def _validate_time_step(time_step: int) -> int:
    if isinstance(time_step, bool) or not isinstance(time_step, int) or time_step < 0:
        raise ValueError("time_step must be a non-negative integer")
    return time_step


class SimulationStepDriver:
    """Per-frame cycle: commit queued edits, advance, then cull for rendering.

    The driver is the only writer of ``session.handle``; each edit and each
    step replaces it with the oracle's returned handle.
    """

    def __init__(self, session: Session, *, time_step: int = 1) -> None:
        self.session = session
        self.edits = EditQueue()
        self.culler = ViewportCuller(session.oracle, bias=session.bias, depth=session.depth)
        self._time_step = _validate_time_step(time_step)
        self.state = FrameState.IDLE
        self.generation = 0
        self.last_applied_edits = 0

    @property
    def oracle(self) -> HashLife:
        return self.session.oracle

    @property
    def handle(self) -> Handle:
        return self.session.handle

    @property
    def population(self) -> int:
        return self.oracle.population(self.session.handle)

    @property
    def time_step(self) -> int:
        return self._time_step

    @time_step.setter
    def time_step(self, value: int) -> None:
        self._time_step = _validate_time_step(value)

    def apply_edits(self) -> int:
        handle, applied = commit_edits(
            self.oracle,
            self.session.handle,
            self.edits.drain(),
            bias=self.session.bias,
            depth=self.session.depth,
        )
        self.session.handle = handle
        self.last_applied_edits = applied
        return applied

    def step(self, steps: int) -> None:
        steps = _validate_time_step(steps)
        oracle = self.oracle
        handle = self.session.handle
        # Expanded handles reach 2**(depth - 1) generations and result() hands
        # back the original universe at the session depth.
        reach = HashLife.max_steps(self.session.depth + 1)
        remaining = steps
        while remaining > 0:
            chunk = min(remaining, reach)
            handle = oracle.result(oracle.expand(handle), chunk)
            remaining -= chunk
        self.session.handle = self._normalize(handle)
        self.generation += steps

    def _normalize(self, handle: Handle) -> Handle:
        if handle.level > self.session.depth:
            raise ValueError(f"handle level {handle.level} exceeds session depth {self.session.depth}")
        while handle.level < self.session.depth:
            handle = self.oracle.expand(handle)
        return handle

    def frame(self, view: ViewState, viewport_size: Size) -> Iterator[Rect]:
        self.state = FrameState.APPLY_EDITS
        self.apply_edits()
        self.state = FrameState.STEP
        self.step(self._time_step)
        self.state = FrameState.RENDERED
        return self.culler.enumerate_visible(self.session.handle, view, viewport_size)

    def finish_frame(self) -> None:
        self.state = FrameState.IDLE
