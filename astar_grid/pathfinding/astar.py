"""
A* Pathfinding Algorithm

Finds the shortest path between two cells of a GridWorld while avoiding walls.
The search is incremental: begin_search() seeds a SearchState, step() performs
exactly one expansion and run() repeats step() until the search terminates.
Driving step() by hand and calling run() give identical results, so callers
can animate a search one expansion per frame.

Ordering of the open set:
- lower f, then lower h (prefer nodes closer to the goal),
- then earlier insertion into the open set (FIFO among exact ties).
"""

import enum
import heapq
import itertools
import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from astar_grid.environment.grid_world import Coord, GridWorld
from astar_grid.pathfinding.errors import (
    InvalidEndError,
    InvalidStartError,
    PathNotFoundError,
    SearchTerminatedError,
)

logger = logging.getLogger(__name__)

# Neighbor scan order: x offset outer, y offset inner
NEIGHBOR_OFFSETS: Tuple[Coord, ...] = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)
)


def euclidean_distance(a: Coord, b: Coord) -> float:
    """Straight-line distance between two cells."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def path_cost(path: List[Coord]) -> float:
    """Total Euclidean length of a coordinate sequence (either direction)."""
    return sum(euclidean_distance(a, b) for a, b in zip(path, path[1:]))


class Movement(enum.Enum):
    """
    Which moves between neighboring cells are legal.

    FREE: all 8 directions.
    NO_CORNER_CUTTING: all 8 directions, except a diagonal whose two
        orthogonal side cells are both walls.
    ORTHOGONAL: the 4 axis-aligned directions only.
    """
    FREE = "free"
    NO_CORNER_CUTTING = "no_corner_cutting"
    ORTHOGONAL = "orthogonal"

    @classmethod
    def from_flag(cls, allow_diagonal: bool) -> "Movement":
        return cls.FREE if allow_diagonal else cls.NO_CORNER_CUTTING


class SearchStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PATH_FOUND = "path_found"
    NO_PATH = "no_path"

    @property
    def terminal(self) -> bool:
        return self in (SearchStatus.PATH_FOUND, SearchStatus.NO_PATH)


class StepStatus(enum.Enum):
    CONTINUE = "continue"
    PATH_FOUND = "path_found"
    NO_PATH = "no_path"


@dataclass(frozen=True)
class SearchNode:
    """
    A cell as seen by the search.

    Attributes:
        coord: (x, y) of the cell
        g: Cost from start to this cell
        h: Straight-line distance from this cell to the goal
        parent: Cell this one was reached from (None only for the start)
    """
    coord: Coord
    g: float
    h: float
    parent: Optional[Coord] = None

    @property
    def f(self) -> float:
        return self.g + self.h

    @property
    def priority(self) -> Tuple[float, float]:
        return (self.f, self.h)


@dataclass
class StepResult:
    """
    Outcome of one expansion.

    `path` is only set for PATH_FOUND and runs from the end cell back to the
    start; reverse it for start-to-end order.
    """
    status: StepStatus
    current: Optional[Coord] = None
    opened: List[Coord] = field(default_factory=list)
    path: Optional[List[Coord]] = None

    @property
    def terminal(self) -> bool:
        return self.status is not StepStatus.CONTINUE


class Frontier:
    """
    Open set keyed by coordinate with O(log n) extract-min.

    Each coordinate has at most one live entry. Improving an entry pushes a
    fresh heap record and orphans the old one, which is skipped on pop.
    """

    def __init__(self):
        self._heap: List[Tuple[float, float, int, Coord]] = []
        self._entries: Dict[Coord, Tuple[int, SearchNode]] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, coord: Coord) -> bool:
        return coord in self._entries

    def get(self, coord: Coord) -> Optional[SearchNode]:
        entry = self._entries.get(coord)
        return entry[1] if entry else None

    def push(self, node: SearchNode):
        """Insert a node, replacing any entry for the same coordinate."""
        seq = next(self._counter)
        self._entries[node.coord] = (seq, node)
        heapq.heappush(self._heap, (node.f, node.h, seq, node.coord))

    def offer(self, node: SearchNode) -> bool:
        """
        Insert a node, or replace the existing entry if the new one is
        strictly better by (f, h). Returns True if the frontier changed.
        """
        existing = self.get(node.coord)
        if existing is not None and node.priority >= existing.priority:
            return False
        self.push(node)
        return True

    def pop(self) -> SearchNode:
        """Remove and return the best node. Raises IndexError when empty."""
        while self._heap:
            _, _, seq, coord = heapq.heappop(self._heap)
            entry = self._entries.get(coord)
            if entry is not None and entry[0] == seq:
                del self._entries[coord]
                return entry[1]
        raise IndexError("pop from an empty frontier")

    def coords(self) -> Set[Coord]:
        return set(self._entries)

    def peek(self) -> Optional[SearchNode]:
        """Best node without removing it, or None when empty."""
        while self._heap:
            _, _, seq, coord = self._heap[0]
            entry = self._entries.get(coord)
            if entry is not None and entry[0] == seq:
                return entry[1]
            heapq.heappop(self._heap)
        return None

    def nodes(self) -> List[SearchNode]:
        """Live nodes in the order they would be popped."""
        ranked = sorted(self._entries.values(),
                        key=lambda entry: (entry[1].f, entry[1].h, entry[0]))
        return [node for _, node in ranked]


@dataclass
class SearchState:
    """
    Everything one search run owns.

    The grid is borrowed: callers must not edit it until the run ends.
    """
    grid: GridWorld
    start: Coord
    end: Coord
    movement: Movement = Movement.NO_CORNER_CUTTING
    status: SearchStatus = SearchStatus.IDLE
    frontier: Frontier = field(default_factory=Frontier)
    visited: Dict[Coord, SearchNode] = field(default_factory=dict)
    steps: int = 0

    @property
    def allow_diagonal(self) -> bool:
        return self.movement is Movement.FREE

    def frontier_snapshot(self) -> List[SearchNode]:
        """Open nodes in priority order."""
        return self.frontier.nodes()

    def visited_snapshot(self) -> List[SearchNode]:
        """Closed nodes in expansion order."""
        return list(self.visited.values())

    def neighbors(self, coord: Coord) -> Iterator[Coord]:
        """Legal moves out of `coord`, ignoring the visited set."""
        cx, cy = coord
        grid = self.grid
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = cx + dx, cy + dy
            if not grid.in_bounds(nx, ny) or grid.is_blocked(nx, ny):
                continue
            if dx and dy:
                if self.movement is Movement.ORTHOGONAL:
                    continue
                if (self.movement is Movement.NO_CORNER_CUTTING
                        and grid.is_blocked(cx, cy + dy)
                        and grid.is_blocked(cx + dx, cy)):
                    continue
            yield nx, ny


def _as_coord(value, error_cls, label: str) -> Coord:
    """Normalize an (x, y) pair of integers (numpy integers included)."""
    try:
        x, y = value
    except (TypeError, ValueError):
        raise error_cls(f"{label} {value!r} is not an (x, y) pair") from None
    for part in (x, y):
        if isinstance(part, bool) or not isinstance(part, numbers.Integral):
            raise error_cls(f"{label} {value!r} must have integer coordinates")
    return int(x), int(y)


def begin_search(grid: GridWorld, start: Coord, end: Coord,
                 allow_diagonal: bool = False, *,
                 movement: Optional[Movement] = None) -> SearchState:
    """
    Create a fresh search seeded with the start node.

    Args:
        grid: Grid to search; must not be edited until the run ends
        start: Start cell (x, y)
        end: Goal cell (x, y); may equal start
        allow_diagonal: True for FREE movement, False for NO_CORNER_CUTTING
        movement: Explicit movement mode, overrides allow_diagonal

    Returns:
        A RUNNING SearchState

    Raises:
        InvalidStartError / InvalidEndError for off-grid or blocked cells
    """
    start = _as_coord(start, InvalidStartError, "Start")
    end = _as_coord(end, InvalidEndError, "End")
    if not grid.is_valid(*start):
        raise InvalidStartError(f"Start {start} is off the grid or blocked")
    if not grid.is_valid(*end):
        raise InvalidEndError(f"End {end} is off the grid or blocked")

    if movement is None:
        movement = Movement.from_flag(allow_diagonal)

    state = SearchState(grid=grid, start=start, end=end, movement=movement)
    state.frontier.push(SearchNode(start, g=0.0, h=euclidean_distance(start, end)))
    state.status = SearchStatus.RUNNING
    logger.debug("Search started from %s to %s (%s)", start, end, movement.value)
    return state


def step(state: SearchState) -> StepResult:
    """
    Perform one A* expansion.

    Returns:
        CONTINUE, PATH_FOUND (with the end-to-start path) or NO_PATH

    Raises:
        SearchTerminatedError if the search already finished
    """
    if state.status.terminal:
        raise SearchTerminatedError(
            f"Search already finished with {state.status.value}; call begin_search again")
    if state.status is not SearchStatus.RUNNING:
        raise SearchTerminatedError("Search was never started; use begin_search")

    if not state.frontier:
        state.status = SearchStatus.NO_PATH
        logger.info("No path from %s to %s after %d expansions",
                    state.start, state.end, state.steps)
        return StepResult(StepStatus.NO_PATH)

    current = state.frontier.pop()
    state.visited[current.coord] = current
    state.steps += 1

    if current.coord == state.end:
        state.status = SearchStatus.PATH_FOUND
        path = reconstruct_path(state)
        logger.info("Path found from %s to %s: %d cells, cost %.2f, %d expansions",
                    state.start, state.end, len(path), current.g, state.steps)
        return StepResult(StepStatus.PATH_FOUND, current=current.coord, path=path)

    opened = []
    for neighbor in state.neighbors(current.coord):
        if neighbor in state.visited:
            continue
        g = current.g + euclidean_distance(current.coord, neighbor)
        h = euclidean_distance(neighbor, state.end)
        candidate = SearchNode(neighbor, g=g, h=h, parent=current.coord)
        if state.frontier.offer(candidate):
            opened.append(neighbor)

    return StepResult(StepStatus.CONTINUE, current=current.coord, opened=opened)


def run(state: SearchState) -> StepResult:
    """Step until the search terminates and return the terminal result."""
    result = step(state)
    while not result.terminal:
        result = step(state)
    return result


def reconstruct_path(state: SearchState) -> List[Coord]:
    """
    Follow parent links from the end cell back to the start.

    Returns:
        Coordinates from end to start

    Raises:
        PathNotFoundError if the end cell has not been expanded
    """
    node = state.visited.get(state.end)
    if node is None:
        raise PathNotFoundError(f"End {state.end} has not been reached")

    path = [node.coord]
    while node.parent is not None:
        node = state.visited[node.parent]
        path.append(node.coord)
    return path


class AStar:
    """
    Convenience wrapper that runs a whole search on a GridWorld.
    """

    def __init__(self, grid_world: GridWorld, allow_diagonal: bool = True,
                 movement: Optional[Movement] = None):
        """
        Initialize A* pathfinder.

        Args:
            grid_world: GridWorld object containing the environment
            allow_diagonal: Whether diagonal moves may cut wall corners
            movement: Explicit movement mode, overrides allow_diagonal
        """
        self.grid_world = grid_world
        self.movement = movement or Movement.from_flag(allow_diagonal)
        self.last_state: Optional[SearchState] = None

    def find_path(self, start: Optional[Coord] = None, goal: Optional[Coord] = None,
                  verbose: bool = False,
                  step_callback: Optional[Callable] = None) -> Optional[List[Coord]]:
        """
        Find the shortest path from start to goal.

        Args:
            start: Start position (x, y), defaults to the grid's start marker
            goal: Goal position (x, y), defaults to the grid's end marker
            verbose: Print search progress
            step_callback: Optional callback called before each expansion with
                         (open_positions, closed_positions, next_position)

        Returns:
            List of (x, y) cells from start to goal, or None if no path exists
        """
        start = self.grid_world.start if start is None else start
        goal = self.grid_world.end if goal is None else goal

        if verbose:
            print(f"Finding path from {start} to {goal}...")

        state = begin_search(self.grid_world, start, goal, movement=self.movement)
        self.last_state = state

        result = None
        while result is None or not result.terminal:
            if step_callback:
                head = state.frontier.peek()
                step_callback(state.frontier.coords(),
                              set(state.visited),
                              head.coord if head else None)
            result = step(state)

        if result.status is StepStatus.NO_PATH:
            if verbose:
                print(f"❌ No path found from {start} to {goal}")
                print(f"  Nodes explored: {state.steps}")
            return None

        path = list(reversed(result.path))
        if verbose:
            print(f"✓ Path found! Length: {len(path)} cells")
            print(f"  Nodes explored: {state.steps}")
            print(f"  Path cost: {state.visited[state.end].g:.2f}")
        return path


__all__ = [
    'AStar',
    'Frontier',
    'Movement',
    'SearchNode',
    'SearchState',
    'SearchStatus',
    'StepResult',
    'StepStatus',
    'begin_search',
    'euclidean_distance',
    'path_cost',
    'reconstruct_path',
    'run',
    'step',
]
