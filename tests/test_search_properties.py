"""Properties that must hold on arbitrary grids, checked on seeded random ones."""

import heapq
import math

import numpy as np
import pytest

from astar_grid.environment.grid_world import GridWorld
from astar_grid.pathfinding.astar import Movement, StepStatus, begin_search, run, step

SEEDS = [0, 1, 2, 3, 7, 11, 19, 23]


def random_grid(seed, size=12, density=0.3):
    grid = GridWorld(width=size)
    grid.scatter_walls(density, rng=np.random.default_rng(seed))
    return grid


def legal_moves(grid, cell, movement):
    cx, cy = cell
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            nx, ny = cx + dx, cy + dy
            if not grid.is_valid(nx, ny):
                continue
            if dx and dy:
                if movement is Movement.ORTHOGONAL:
                    continue
                if (movement is Movement.NO_CORNER_CUTTING
                        and grid.is_blocked(cx, cy + dy) and grid.is_blocked(cx + dx, cy)):
                    continue
            yield nx, ny


def dijkstra(grid, source, movement):
    dist = {source: 0.0}
    queue = [(0.0, source)]
    while queue:
        d, cell = heapq.heappop(queue)
        if d > dist[cell]:
            continue
        for nxt in legal_moves(grid, cell, movement):
            nd = d + math.hypot(nxt[0] - cell[0], nxt[1] - cell[1])
            if nd < dist.get(nxt, math.inf):
                dist[nxt] = nd
                heapq.heappush(queue, (nd, nxt))
    return dist


def drive_by_hand(grid, movement):
    state = begin_search(grid, grid.start, grid.end, movement=movement)
    result = step(state)
    while not result.terminal:
        result = step(state)
    return state, result


@pytest.mark.parametrize("movement", list(Movement))
@pytest.mark.parametrize("seed", SEEDS)
def test_run_matches_manual_stepping(seed, movement):
    grid = random_grid(seed)
    manual_state, manual = drive_by_hand(grid, movement)
    state = begin_search(grid, grid.start, grid.end, movement=movement)
    result = run(state)

    assert result.status is manual.status
    assert result.path == manual.path
    assert state.visited_snapshot() == manual_state.visited_snapshot()
    assert state.steps == manual_state.steps


@pytest.mark.parametrize("seed", SEEDS)
def test_repeated_runs_are_identical(seed):
    grid = random_grid(seed)
    first = begin_search(grid, grid.start, grid.end, allow_diagonal=True)
    second = begin_search(grid, grid.start, grid.end, allow_diagonal=True)
    assert run(first).path == run(second).path
    assert list(first.visited) == list(second.visited)


@pytest.mark.parametrize("movement", list(Movement))
@pytest.mark.parametrize("seed", SEEDS)
def test_expanded_nodes_carry_shortest_costs(seed, movement):
    grid = random_grid(seed)
    truth = dijkstra(grid, grid.start, movement)
    state = begin_search(grid, grid.start, grid.end, movement=movement)
    result = run(state)

    for coord, node in state.visited.items():
        assert node.g == pytest.approx(truth[coord], abs=1e-9)
    if grid.end in truth:
        assert result.status is StepStatus.PATH_FOUND
    else:
        assert result.status is StepStatus.NO_PATH


@pytest.mark.parametrize("movement", list(Movement))
@pytest.mark.parametrize("seed", SEEDS)
def test_paths_are_legal(seed, movement):
    grid = random_grid(seed)
    state = begin_search(grid, grid.start, grid.end, movement=movement)
    result = run(state)
    if result.status is StepStatus.NO_PATH:
        return

    path = list(reversed(result.path))
    assert path[0] == grid.start and path[-1] == grid.end
    assert len(path) == len(set(path))
    for (x1, y1), (x2, y2) in zip(path, path[1:]):
        assert max(abs(x1 - x2), abs(y1 - y2)) == 1
        assert (x2, y2) in set(legal_moves(grid, (x1, y1), movement))
        assert not grid.is_blocked(x2, y2)


@pytest.mark.parametrize("seed", SEEDS[:4])
def test_each_step_expands_the_head_of_the_frontier(seed):
    grid = random_grid(seed, density=0.2)
    state = begin_search(grid, grid.start, grid.end)
    while True:
        head = state.frontier_snapshot()
        result = step(state)
        if result.status is StepStatus.NO_PATH:
            assert head == []
            break
        assert result.current == head[0].coord
        assert state.visited[result.current] == head[0]
        if result.terminal:
            break


def test_independent_states_do_not_interfere():
    grid = GridWorld(width=12)
    grid.add_obstacle(4, 0, width=1, height=10)
    grid.add_obstacle(8, 2, width=1, height=10)
    a = begin_search(grid, grid.start, grid.end, allow_diagonal=True)
    b = begin_search(grid, grid.start, grid.end, allow_diagonal=True)
    # interleave the two runs
    ra = step(a)
    for _ in range(3):
        step(b)
    while not ra.terminal:
        ra = step(a)
    rb = run(b)
    assert ra.path == rb.path
    assert list(a.visited) == list(b.visited)
