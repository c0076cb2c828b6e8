from __future__ import annotations

import argparse
import importlib.metadata
import math
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lifeview.content.io import load_view_state_json, save_view_state_json
from lifeview.content.patterns import BUILTIN_PATTERNS, DEFAULT_PATTERN_NAME, builtin_pattern
from lifeview.content.rle import load_rle
from lifeview.sim.driver import SimulationStepDriver, double_time_step, halve_time_step
from lifeview.sim.session import MAX_N, Session, build_session
from lifeview.view.edits import EditIntent
from lifeview.view.grid_view import Rect

GRID_SIZE = (720, 480)
HUD_HEIGHT = 56
VIEWPORT_MARGIN = 12
WINDOW_SIZE = (GRID_SIZE[0] + VIEWPORT_MARGIN * 2, GRID_SIZE[1] + HUD_HEIGHT + VIEWPORT_MARGIN * 2)
FRAME_RATE = 60
ZOOM_STEP = 0.1
CLICK_DRAG_THRESHOLD_PX = 3

BACKGROUND_COLOR = (17, 18, 25)
GRID_BACKGROUND_COLOR = (0, 0, 0)
CELL_COLOR = (255, 255, 255)
BORDER_COLOR = (64, 68, 84)
HUD_TEXT_COLOR = (240, 240, 240)

MEM_UNITS: tuple[tuple[int, str], ...] = (
    (1, "bytes"),
    (1024, "KB"),
    (1024**2, "MB"),
    (1024**3, "GB"),
)

pygame: Any | None = None


@dataclass
class PointerState:
    """Left-button press bookkeeping used to tell clicks from drags."""

    pressed_at: tuple[int, int] | None = None
    dragged: bool = False


def format_mem_size(size: int) -> str:
    text = f"{size} bytes"
    for measure, name in MEM_UNITS:
        if size > measure * 10:
            text = f"{size // measure} {name}"
        else:
            break
    return text


def _to_screen_rect(rect: Rect, origin: tuple[int, int]) -> tuple[int, int, int, int]:
    """Pixel-space rectangle to integer ``(x, y, w, h)``, never thinner than one pixel."""
    left = math.floor(rect.min_x) + origin[0]
    top = math.floor(rect.min_y) + origin[1]
    width = max(1, math.ceil(rect.max_x) + origin[0] - left)
    height = max(1, math.ceil(rect.max_y) + origin[1] - top)
    return (left, top, width, height)


def _edit_intent_for_modifiers(mods: int, *, ctrl_mask: int, alt_mask: int) -> EditIntent:
    if mods & ctrl_mask:
        return EditIntent.SET_ALIVE
    if mods & alt_mask:
        return EditIntent.SET_DEAD
    return EditIntent.TOGGLE


def _hud_lines(driver: SimulationStepDriver, status_message: str | None) -> list[str]:
    result_bytes, parent_bytes, macrocell_bytes = driver.oracle.mem_usage()
    view = driver.session.view
    lines = [
        (
            f"time step={driver.time_step} | gen={driver.generation} | pop={driver.population} "
            f"| scale={view.scale:.4g} | lod={driver.culler.query_depth(view)}"
        ),
        (
            f"mem (approx) results={format_mem_size(result_bytes)} parents={format_mem_size(parent_bytes)} "
            f"macrocells={format_mem_size(macrocell_bytes)} "
            f"total={format_mem_size(result_bytes + parent_bytes + macrocell_bytes)}"
        ),
    ]
    if status_message:
        lines[-1] += f" | {status_message}"
    return lines


def _viewport_rect() -> pygame.Rect:
    return pygame.Rect(VIEWPORT_MARGIN, VIEWPORT_MARGIN + HUD_HEIGHT, GRID_SIZE[0], GRID_SIZE[1])


def _draw_grid(screen: pygame.Surface, driver: SimulationStepDriver, viewport_rect: pygame.Rect) -> int:
    old_clip = screen.get_clip()
    screen.set_clip(viewport_rect)
    pygame.draw.rect(screen, GRID_BACKGROUND_COLOR, viewport_rect)
    drawn = 0
    for tile in driver.frame(driver.session.view, GRID_SIZE):
        pygame.draw.rect(screen, CELL_COLOR, _to_screen_rect(tile, viewport_rect.topleft))
        drawn += 1
    screen.set_clip(old_clip)
    return drawn


def _draw_hud(screen: pygame.Surface, driver: SimulationStepDriver, font: pygame.font.Font, status_message: str | None) -> None:
    y = VIEWPORT_MARGIN
    for line in _hud_lines(driver, status_message):
        surface = font.render(line, True, HUD_TEXT_COLOR)
        screen.blit(surface, (VIEWPORT_MARGIN, y))
        y += 22


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifeview",
        description="Run the lifeview pygame viewer.",
    )
    parser.add_argument(
        "--pattern",
        default=DEFAULT_PATTERN_NAME,
        choices=sorted(BUILTIN_PATTERNS),
        help="Builtin pattern loaded at startup.",
    )
    parser.add_argument(
        "--rle-path",
        help="Optional RLE pattern file; overrides --pattern.",
    )
    parser.add_argument(
        "--rule",
        help="Birth/survival rule such as B3/S23 (defaults to the pattern's rule).",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=MAX_N,
        help="Universe depth N; the universe is 2**N cells on a side.",
    )
    parser.add_argument(
        "--time-step",
        type=int,
        default=1,
        help="Generations advanced per frame (0 pauses).",
    )
    parser.add_argument(
        "--view-state",
        help="Optional JSON path used to restore and save the camera and time step.",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver, render one frame and exit without opening a real window.",
    )
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[lifeview.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )
    for name in ("SDL_VIDEODRIVER", "SDL_AUDIODRIVER", "SDL_VIDEO_WINDOW_POS"):
        value = os.environ.get(name, "<unset>")
        print(f"[lifeview.viewer] env {name}={value}")


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _build_viewer_session(
    *,
    pattern_name: str = DEFAULT_PATTERN_NAME,
    rle_path: str | None = None,
    rule: str | None = None,
    depth: int = MAX_N,
) -> Session:
    pattern = load_rle(rle_path) if rle_path else builtin_pattern(pattern_name)
    session = build_session(rule, pattern, depth=depth)
    print(
        "[lifeview.viewer] session "
        f"pattern={pattern.name or rle_path or pattern_name} size={pattern.width}x{pattern.height} "
        f"rule={session.oracle.rule.to_spec()} depth={session.depth} population={session.handle.population}"
    )
    return session


def _restore_view_state(session: Session, view_state_path: str | None, time_step: int) -> int:
    if not view_state_path or not Path(view_state_path).exists():
        return time_step
    view, restored_time_step = load_view_state_json(view_state_path)
    session.view = view
    print(
        "[lifeview.viewer] restored "
        f"path={view_state_path} center={view.center} scale={view.scale} time_step={restored_time_step}"
    )
    return restored_time_step


def _save_view_state(driver: SimulationStepDriver, view_state_path: str) -> None:
    save_view_state_json(view_state_path, driver.session.view, time_step=driver.time_step)
    print(f"[lifeview.viewer] saved path={view_state_path} time_step={driver.time_step}")


def run_pygame_viewer(
    pattern_name: str = DEFAULT_PATTERN_NAME,
    *,
    rle_path: str | None = None,
    rule: str | None = None,
    depth: int = MAX_N,
    time_step: int = 1,
    view_state_path: str | None = None,
    headless: bool = False,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[lifeview.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()

    try:
        session = _build_viewer_session(pattern_name=pattern_name, rle_path=rle_path, rule=rule, depth=depth)
        time_step = _restore_view_state(session, view_state_path, time_step)
        driver = SimulationStepDriver(session, time_step=time_step)
    except (OSError, ValueError) as exc:
        print(f"[lifeview.viewer] failed to initialize session: {exc}", file=sys.stderr)
        return 1

    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(
            "[lifeview.viewer] failed during pygame.init(): "
            f"{exc}. Hint: verify a working SDL video driver (set SDL_VIDEODRIVER=dummy for headless mode).",
            file=sys.stderr,
        )
        return 1

    try:
        pygame_module.display.set_caption("lifeview")
        screen = pygame_module.display.set_mode(WINDOW_SIZE)
    except Exception as exc:
        print(
            "[lifeview.viewer] failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: GUI sessions require a valid display; in CI/WSL/remote shells use --headless or LIFEVIEW_HEADLESS=1.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    driver_name = pygame_module.display.get_driver()
    print(f"[lifeview.viewer] display initialized: {driver_name}, window size={WINDOW_SIZE}")

    viewport_rect = _viewport_rect()

    if headless:
        drawn = _draw_grid(screen, driver, viewport_rect)
        driver.finish_frame()
        print(f"[lifeview.viewer] headless frame gen={driver.generation} rects={drawn}")
        pygame_module.quit()
        return 0

    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 18)
    pointer = PointerState()
    paused_time_step = driver.time_step or 1
    status_message: str | None = None
    running = True

    while running:
        clock.tick(FRAME_RATE)
        view = driver.session.view

        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_ESCAPE:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_MINUS:
                driver.time_step = halve_time_step(driver.time_step)
            elif event.type == pygame_module.KEYDOWN and event.key in (pygame_module.K_EQUALS, pygame_module.K_PLUS):
                driver.time_step = double_time_step(driver.time_step)
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_SPACE:
                if driver.time_step > 0:
                    paused_time_step = driver.time_step
                    driver.time_step = 0
                    status_message = "paused"
                else:
                    driver.time_step = paused_time_step
                    status_message = None
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_F5:
                if view_state_path:
                    _save_view_state(driver, view_state_path)
                    status_message = f"saved {view_state_path}"
                else:
                    status_message = "save skipped: no --view-state path"
            elif event.type == pygame_module.MOUSEWHEEL:
                cursor = pygame_module.mouse.get_pos()
                if viewport_rect.collidepoint(cursor):
                    cursor_relative = (cursor[0] - viewport_rect.x, cursor[1] - viewport_rect.y)
                    view.zoom(event.y * ZOOM_STEP, cursor_relative, GRID_SIZE)
            elif event.type == pygame_module.MOUSEBUTTONDOWN and event.button == 1:
                pointer.pressed_at = event.pos
                pointer.dragged = False
            elif event.type == pygame_module.MOUSEMOTION:
                left, _, right = event.buttons
                shift_held = bool(pygame_module.key.get_mods() & pygame_module.KMOD_SHIFT)
                if right or (left and shift_held):
                    view.drag(event.rel)
                if left and pointer.pressed_at is not None:
                    moved = abs(event.pos[0] - pointer.pressed_at[0]) + abs(event.pos[1] - pointer.pressed_at[1])
                    if shift_held or moved > CLICK_DRAG_THRESHOLD_PX:
                        pointer.dragged = True
            elif event.type == pygame_module.MOUSEBUTTONUP and event.button == 1:
                if pointer.pressed_at is not None and not pointer.dragged and viewport_rect.collidepoint(event.pos):
                    cursor_relative = (event.pos[0] - viewport_rect.x, event.pos[1] - viewport_rect.y)
                    intent = _edit_intent_for_modifiers(
                        pygame_module.key.get_mods(),
                        ctrl_mask=pygame_module.KMOD_CTRL,
                        alt_mask=pygame_module.KMOD_ALT,
                    )
                    driver.edits.enqueue(view, cursor_relative, GRID_SIZE, intent)
                pointer.pressed_at = None
                pointer.dragged = False

        screen.fill(BACKGROUND_COLOR)
        _draw_grid(screen, driver, viewport_rect)
        pygame_module.draw.rect(screen, BORDER_COLOR, viewport_rect, 1)
        _draw_hud(screen, driver, font, status_message)
        pygame_module.display.flip()
        driver.finish_frame()

    if view_state_path:
        _save_view_state(driver, view_state_path)
    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    headless = args.headless or _env_flag_enabled("LIFEVIEW_HEADLESS")
    raise SystemExit(
        run_pygame_viewer(
            args.pattern,
            rle_path=args.rle_path,
            rule=args.rule,
            depth=args.depth,
            time_step=args.time_step,
            view_state_path=args.view_state,
            headless=headless,
        )
    )


if __name__ == "__main__":
    main()
