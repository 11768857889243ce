import pytest

from astar_grid.environment.grid_world import GridEditError, GridWorld
from astar_grid.pathfinding.astar import Movement, StepStatus
from astar_grid.simulation.session import (
    NO_PATH_MESSAGE,
    PathfindingSession,
    SessionBusyError,
    speed_to_delay_ms,
)


def walled_grid():
    grid = GridWorld(width=8)
    grid.add_obstacle(3, 0, width=1, height=7)
    return grid


def test_instant_run_returns_start_to_end_path():
    session = PathfindingSession(walled_grid(), instant=True, record_frames=True)
    outcome = session.start_run()
    assert outcome.found
    assert outcome.path[0] == (0, 0)
    assert outcome.path[-1] == (7, 7)
    assert session.path == outcome.path
    assert not session.running
    assert outcome.expansions == len(session.frames)


def test_stepped_run_matches_instant_run():
    instant = PathfindingSession(walled_grid(), instant=True)
    instant.start_run()

    stepped = PathfindingSession(walled_grid())
    assert stepped.start_run() is None
    assert stepped.running
    ticks = 0
    while stepped.running:
        stepped.tick()
        ticks += 1

    assert stepped.outcome == instant.outcome
    assert ticks == stepped.outcome.expansions
    assert stepped.last_result.status is StepStatus.PATH_FOUND


def test_frames_grow_the_closed_set_one_cell_per_tick():
    session = PathfindingSession(walled_grid(), record_frames=True)
    session.start_run()
    for _ in range(5):
        session.tick()
    sizes = [len(frame.closed_set) for frame in session.frames]
    assert sizes == [1, 2, 3, 4, 5]
    assert session.frames[0].current == (0, 0)
    assert session.frames[-1].closed_set[-1] == session.frames[-1].current


def test_frames_are_not_kept_unless_requested():
    session = PathfindingSession(walled_grid(), instant=True)
    assert session.start_run().found
    assert session.frames == []
    # the live overlays are still available on demand
    assert session.snapshot().closed_set[-1] == (7, 7)


def test_grid_is_locked_while_running():
    session = PathfindingSession(walled_grid())
    session.start_run()
    with pytest.raises(GridEditError):
        session.grid_world.add_wall(5, 5)
    while session.running:
        session.tick()
    assert session.grid_world.add_wall(5, 5)


def test_run_searches_a_snapshot_of_the_grid():
    session = PathfindingSession(walled_grid())
    session.start_run()
    assert session.state.grid is not session.grid_world


def test_unreachable_end_reports_message_and_drops_overlays():
    grid = GridWorld.from_strings([
        "S..#.",
        "...#.",
        "...#.",
        "...#.",
        "...#E",
    ])
    session = PathfindingSession(grid, instant=True)
    outcome = session.start_run()
    assert not outcome.found
    assert outcome.message == NO_PATH_MESSAGE
    assert outcome.path == []
    assert session.state is None
    assert session.snapshot().open_nodes == []
    assert not session.grid_world.locked


def test_cannot_start_twice_or_tick_idle():
    session = PathfindingSession(walled_grid())
    with pytest.raises(SessionBusyError):
        session.tick()
    session.start_run()
    with pytest.raises(SessionBusyError):
        session.start_run()


def test_reset_keeps_walls_and_clear_wipes_them():
    session = PathfindingSession(walled_grid(), instant=True)
    session.start_run()
    session.reset()
    assert session.outcome is None and session.frames == []
    assert session.grid_world.is_blocked(3, 0)

    session.grid_world.set_end(6, 2)
    session.clear()
    assert not session.grid_world.is_blocked(3, 0)
    assert session.grid_world.end == (7, 7)


def test_rerun_after_finish_starts_fresh():
    session = PathfindingSession(walled_grid(), instant=True)
    first = session.start_run()
    second = session.start_run()
    assert first == second


def test_movement_override():
    grid = GridWorld(width=5)
    session = PathfindingSession(grid, instant=True, movement=Movement.ORTHOGONAL)
    outcome = session.start_run()
    assert len(outcome.path) == 9
    assert outcome.cost == pytest.approx(8.0)


@pytest.mark.parametrize("speed, delay", [(0, 400), (50, 200), (100, 0)])
def test_speed_to_delay(speed, delay):
    assert speed_to_delay_ms(speed) == delay


def test_speed_out_of_range():
    with pytest.raises(ValueError):
        speed_to_delay_ms(101)
    session = PathfindingSession()
    session.set_speed(75)
    assert session.step_delay_ms == 100
