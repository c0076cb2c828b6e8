import pytest

from lifeview.content.patterns import builtin_pattern
from lifeview.content.rle import parse_rle
from lifeview.sim.driver import FrameState, SimulationStepDriver, double_time_step, halve_time_step
from lifeview.sim.hashlife import HashLife
from lifeview.sim.rules import RuleParseError
from lifeview.sim.session import MAX_N, Session, build_session
from lifeview.view.edits import EditIntent
from lifeview.view.grid_view import ViewState

VIEWPORT = (720.0, 480.0)


def _driver(pattern_name: str, depth: int, time_step: int = 1) -> SimulationStepDriver:
    session = build_session("B3/S23", builtin_pattern(pattern_name), depth=depth)
    return SimulationStepDriver(session, time_step=time_step)


def _alive_view_cells(driver: SimulationStepDriver) -> set[tuple[int, int]]:
    session = driver.session
    last = (1 << session.depth) - 1
    return {session.to_view(coord) for coord in driver.oracle.iter_populated(driver.handle, 0, ((0, 0), (last, last)))}


def test_build_session_centres_pattern_and_defaults_view() -> None:
    session = build_session(None, builtin_pattern("blinker"), depth=6)

    assert session.depth == 6
    assert session.bias == 32
    assert session.handle.level == 6
    assert session.view == ViewState()
    assert session.to_view(session.to_absolute((-3, 4))) == (-3, 4)


def test_build_session_uses_pattern_rule_when_none_given() -> None:
    pattern = parse_rle("x = 3, y = 1, rule = B36/S23\n3o!")

    session = build_session(None, pattern, depth=5)

    assert session.oracle.rule.to_spec() == "B36/S23"


def test_build_session_rejects_bad_rule_and_depth() -> None:
    with pytest.raises(RuleParseError):
        build_session("B3/S99", builtin_pattern("glider"), depth=6)
    with pytest.raises(ValueError, match="depth"):
        build_session("B3/S23", builtin_pattern("glider"), depth=MAX_N + 1)
    with pytest.raises(ValueError, match="depth"):
        build_session("B3/S23", builtin_pattern("glider"), depth=1)


def test_session_rejects_handle_with_mismatched_level() -> None:
    session = build_session("B3/S23", builtin_pattern("glider"), depth=6)

    with pytest.raises(ValueError, match="does not match session depth"):
        Session(oracle=session.oracle, handle=session.oracle.empty(5), depth=6)


def test_frame_applies_edits_before_stepping() -> None:
    driver = _driver("blinker", depth=6)
    driver.edits.enqueue_at((-1, 0), EditIntent.SET_DEAD)
    driver.edits.enqueue_at((1, 0), EditIntent.SET_DEAD)

    list(driver.frame(ViewState(), VIEWPORT))

    assert driver.last_applied_edits == 2
    assert len(driver.edits) == 0
    assert driver.population == 0


def test_step_zero_keeps_the_same_handle() -> None:
    driver = _driver("glider", depth=6)
    before = driver.handle

    driver.step(0)

    assert driver.handle is before
    assert driver.generation == 0


def test_handle_level_stays_at_session_depth() -> None:
    driver = _driver("r-pentomino", depth=7)

    for steps in (1, 3, 8, 40):
        driver.step(steps)
        assert driver.handle.level == 7


def test_large_step_matches_repeated_single_steps() -> None:
    chunked = _driver("glider", depth=5)
    start_cells = _alive_view_cells(chunked)
    # Both drivers share one oracle so identical content is the identical node.
    single = SimulationStepDriver(Session(oracle=chunked.oracle, handle=chunked.handle, depth=5))
    assert HashLife.max_steps(6) < 20

    chunked.step(20)
    for _ in range(20):
        single.step(1)

    assert chunked.handle is single.handle
    assert _alive_view_cells(chunked) == {(x + 5, y + 5) for x, y in start_cells}
    assert chunked.generation == single.generation == 20


@pytest.mark.parametrize(("pattern_name", "depth", "steps"), [("r-pentomino", 7, 37), ("glider", 8, 100)])
def test_chunked_step_matches_single_steps_on_separate_oracles(pattern_name: str, depth: int, steps: int) -> None:
    chunked = _driver(pattern_name, depth=depth)
    single = _driver(pattern_name, depth=depth)

    chunked.step(steps)
    for _ in range(steps):
        single.step(1)

    assert chunked.oracle is not single.oracle
    assert _alive_view_cells(chunked) == _alive_view_cells(single)
    assert chunked.population == single.population


def test_blinker_returns_to_start_after_two_steps() -> None:
    driver = _driver("blinker", depth=6)
    start = driver.handle

    driver.step(1)
    assert _alive_view_cells(driver) == {(0, -1), (0, 0), (0, 1)}
    driver.step(1)

    assert driver.handle is start


def test_time_step_validation() -> None:
    driver = _driver("glider", depth=6)

    with pytest.raises(ValueError):
        driver.step(-1)
    with pytest.raises(ValueError):
        driver.time_step = True
    with pytest.raises(ValueError):
        driver.time_step = 1.5
    with pytest.raises(ValueError):
        SimulationStepDriver(driver.session, time_step=-2)
    driver.time_step = 0
    assert driver.time_step == 0


@pytest.mark.parametrize(
    ("time_step", "halved", "doubled"),
    [(0, 0, 1), (1, 0, 2), (2, 1, 4), (3, 1, 4), (4, 2, 8), (5, 2, 8), (8, 4, 16)],
)
def test_time_step_halving_and_doubling_stay_on_powers_of_two(time_step: int, halved: int, doubled: int) -> None:
    assert halve_time_step(time_step) == halved
    assert double_time_step(time_step) == doubled


def test_frame_moves_through_states_and_counts_generations() -> None:
    driver = _driver("glider", depth=6, time_step=4)
    assert driver.state is FrameState.IDLE

    visible = list(driver.frame(ViewState(), VIEWPORT))

    assert driver.state is FrameState.RENDERED
    assert driver.generation == 4
    assert len(visible) == 5
    driver.finish_frame()
    assert driver.state is FrameState.IDLE


def test_paused_frame_still_commits_edits() -> None:
    driver = _driver("glider", depth=6, time_step=0)
    driver.edits.enqueue_at((10, 10), EditIntent.SET_ALIVE)

    list(driver.frame(ViewState(), VIEWPORT))

    assert driver.generation == 0
    assert driver.population == 6
