import pytest

from lifeview.view.grid_view import MIN_SCALE, Rect, ViewState, level_of_detail

VIEWPORT_SIZES = [(720.0, 480.0), (101.0, 37.0), (1.0, 1.0)]


@pytest.mark.parametrize("viewport_size", VIEWPORT_SIZES)
@pytest.mark.parametrize("grid_point", [(0.0, 0.0), (1.5, -2.25), (1e6, -3e5), (-0.001, 42.0)])
def test_pixel_grid_round_trip(viewport_size: tuple[float, float], grid_point: tuple[float, float]) -> None:
    view = ViewState(center=(3.5, -7.0), scale=0.37)

    restored = view.pixel_to_grid(view.grid_to_pixel(grid_point, viewport_size), viewport_size)

    assert restored == pytest.approx(grid_point, rel=1e-9, abs=1e-9)


@pytest.mark.parametrize("delta", [-0.9, -0.5, -0.001, 0.001, 0.5, 0.99])
def test_zoom_keeps_grid_point_under_cursor_fixed(delta: float) -> None:
    viewport_size = (720.0, 480.0)
    cursor = (100.0, 400.0)
    view = ViewState(center=(10.0, -4.0), scale=20.0)

    before = view.pixel_to_grid(cursor, viewport_size)
    view.zoom(delta, cursor, viewport_size)
    after = view.pixel_to_grid(cursor, viewport_size)

    assert view.scale == pytest.approx(20.0 * (1.0 + delta))
    assert after == pytest.approx(before, abs=1e-9)


def test_viewport_centre_maps_to_grid_centre_exactly() -> None:
    view = ViewState(center=(0.0, 0.0), scale=20.0)

    assert view.pixel_to_grid((360.0, 240.0), (720.0, 480.0)) == (0.0, 0.0)
    assert view.grid_to_pixel((0.0, 0.0), (720.0, 480.0)) == (360.0, 240.0)


def test_drag_moves_centre_against_pointer_motion() -> None:
    view = ViewState(center=(0.0, 0.0), scale=20.0)

    view.drag((20.0, 0.0))

    assert view.center == (-1.0, 0.0)


@pytest.mark.parametrize("delta", [-1.0, -5.0])
def test_zoom_clamps_scale_to_positive_epsilon(delta: float) -> None:
    view = ViewState(scale=20.0)

    view.zoom(delta, (0.0, 0.0), (720.0, 480.0))

    assert view.scale == MIN_SCALE
    assert view.scale > 0


def test_view_state_clamps_non_positive_scale() -> None:
    assert ViewState(scale=0.0).scale == MIN_SCALE
    assert ViewState(scale=-3.0).scale == MIN_SCALE
    assert ViewState(center=(1, 2)).center == (1.0, 2.0)


def test_viewport_rect_in_grid_is_centred_on_view() -> None:
    view = ViewState(center=(1.0, 2.0), scale=20.0)

    rect = view.viewport_rect_in_grid((720.0, 480.0))

    assert rect == Rect(-17.0, -10.0, 19.0, 14.0)
    assert rect.center == (1.0, 2.0)
    assert (rect.width, rect.height) == (36.0, 24.0)


def test_rect_intersects_requires_strict_overlap() -> None:
    unit = Rect(0.0, 0.0, 1.0, 1.0)

    assert unit.intersects(Rect(0.5, 0.5, 2.0, 2.0))
    assert not unit.intersects(Rect(1.0, 0.0, 2.0, 1.0))
    assert not unit.intersects(Rect(0.0, -1.0, 1.0, 0.0))
    assert unit.translate(2.0, 3.0) == Rect(2.0, 3.0, 3.0, 4.0)


def test_level_of_detail_values() -> None:
    assert level_of_detail(20.0) == 0
    assert level_of_detail(1.0) == 0
    assert level_of_detail(0.5) == 1
    assert level_of_detail(0.3) == 1
    assert level_of_detail(0.25) == 2
    assert level_of_detail(2.0**-40) == 40
    assert ViewState(scale=0.125).level_of_detail == 3


def test_level_of_detail_is_monotone_in_scale() -> None:
    scales = sorted([1e-18, 1e-12, 3e-7, 0.001, 0.2, 0.49, 0.5, 0.51, 0.99, 1.0, 7.0, 1e9])

    depths = [level_of_detail(scale) for scale in scales]

    assert depths == sorted(depths, reverse=True)


def test_level_of_detail_never_goes_negative() -> None:
    assert level_of_detail(1e300) == 0
    assert level_of_detail(float("inf")) == 0
    assert level_of_detail(1e-300) == level_of_detail(MIN_SCALE)
    assert level_of_detail(MIN_SCALE) >= 0
