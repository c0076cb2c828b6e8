from __future__ import annotations

import argparse
import math
from typing import Sequence

from lifeview.content.patterns import BUILTIN_PATTERNS, DEFAULT_PATTERN_NAME, builtin_pattern
from lifeview.sim.driver import SimulationStepDriver
from lifeview.sim.session import MAX_N, build_session
from lifeview.view.edits import EditIntent
from lifeview.view.grid_view import ViewState

ALIVE_GLYPH = "#"
DEAD_GLYPH = "."
DEFAULT_COLUMNS = 60
DEFAULT_ROWS = 24


def _covered_span(low: float, high: float, center: float, limit: int) -> range:
    # Character i covers [i, i + 1); mark it when its midpoint falls inside.
    first = math.ceil(low - 0.5)
    last = math.ceil(high - 0.5) - 1
    if last < first:
        first = last = math.floor(center)
    return range(max(0, first), min(limit, last + 1))


class AsciiViewer:
    """Read-only projection of the visible cells for terminal display."""

    def __init__(self, columns: int = DEFAULT_COLUMNS, rows: int = DEFAULT_ROWS) -> None:
        if columns <= 0 or rows <= 0:
            raise ValueError("columns and rows must be > 0")
        self.columns = columns
        self.rows = rows

    def render(self, driver: SimulationStepDriver, view: ViewState) -> str:
        canvas = [[DEAD_GLYPH] * self.columns for _ in range(self.rows)]
        for rect in driver.culler.enumerate_visible(driver.handle, view, (self.columns, self.rows)):
            center_x, center_y = rect.center
            for row in _covered_span(rect.min_y, rect.max_y, center_y, self.rows):
                for column in _covered_span(rect.min_x, rect.max_x, center_x, self.columns):
                    canvas[row][column] = ALIVE_GLYPH

        lines = [
            f"gen={driver.generation} pop={driver.population} step={driver.time_step} "
            f"center=({view.center[0]:.1f},{view.center[1]:.1f}) scale={view.scale:g}"
        ]
        lines.extend("".join(row) for row in canvas)
        return "\n".join(lines)


def advance_frame(driver: SimulationStepDriver, view: ViewState, viewer: AsciiViewer) -> None:
    """Run one frame cycle; the terminal view renders separately."""
    for _ in driver.frame(view, (viewer.columns, viewer.rows)):
        pass
    driver.finish_frame()


def run_demo(
    pattern_name: str = DEFAULT_PATTERN_NAME,
    *,
    rule: str | None = None,
    depth: int = MAX_N,
    columns: int = DEFAULT_COLUMNS,
    rows: int = DEFAULT_ROWS,
) -> None:
    session = build_session(rule, builtin_pattern(pattern_name), depth=depth, view=ViewState(scale=1.0))
    driver = SimulationStepDriver(session, time_step=1)
    view = session.view
    viewer = AsciiViewer(columns=columns, rows=rows)

    print("lifeview demo. Commands: show | step <n> | toggle <x> <y> | zoom <factor> | pan <dx> <dy> | quit")
    print(viewer.render(driver, view))

    while True:
        raw = input("> ").strip()
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            print(viewer.render(driver, view))
            continue

        parts = raw.split()
        try:
            if len(parts) == 2 and parts[0] == "step":
                driver.time_step = int(parts[1])
                advance_frame(driver, view, viewer)
                print(viewer.render(driver, view))
                continue
            if len(parts) == 3 and parts[0] == "toggle":
                driver.edits.enqueue_at((int(parts[1]), int(parts[2])), EditIntent.TOGGLE)
                print("edit queued; applied on next step")
                continue
            if len(parts) == 2 and parts[0] == "zoom":
                view.zoom(float(parts[1]), (columns / 2.0, rows / 2.0), (columns, rows))
                print(viewer.render(driver, view))
                continue
            if len(parts) == 3 and parts[0] == "pan":
                view.center = (view.center[0] + float(parts[1]), view.center[1] + float(parts[2]))
                print(viewer.render(driver, view))
                continue
        except ValueError as exc:
            print(f"error: {exc}")
            continue

        print("unknown command")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lifeview-ascii", description="Terminal lifeview demo.")
    parser.add_argument("--pattern", default=DEFAULT_PATTERN_NAME, choices=sorted(BUILTIN_PATTERNS), help="Builtin pattern.")
    parser.add_argument("--rule", help="Birth/survival rule such as B3/S23.")
    parser.add_argument("--depth", type=int, default=MAX_N, help="Universe depth N.")
    parser.add_argument("--columns", type=int, default=DEFAULT_COLUMNS, help="Terminal columns used for the grid.")
    parser.add_argument("--rows", type=int, default=DEFAULT_ROWS, help="Terminal rows used for the grid.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    run_demo(args.pattern, rule=args.rule, depth=args.depth, columns=args.columns, rows=args.rows)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
