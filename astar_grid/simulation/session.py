"""
PathfindingSession - Caller-side lifecycle around the search engine.

The session owns the editable GridWorld and one search at a time:
- start_run() snapshots the grid and locks it against edits
- tick() advances the search by one expansion, optionally recording a frame
- instant mode finishes the whole search inside start_run()
- reset() forgets the search but keeps the walls, clear() wipes everything

The session never sleeps or schedules anything. Whoever drives it (a GUI
timer, a matplotlib animation, a test) calls tick() at its own pace and may
use step_delay_ms as the suggested interval.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from astar_grid.environment.grid_world import Coord, GridWorld
from astar_grid.pathfinding.astar import (
    Movement,
    SearchNode,
    SearchState,
    StepResult,
    StepStatus,
    begin_search,
    path_cost,
    step,
)

logger = logging.getLogger(__name__)

DEFAULT_SPEED = 50
NO_PATH_MESSAGE = "No valid path"


def speed_to_delay_ms(speed: int) -> int:
    """Map a 0-100 speed slider value to milliseconds between steps."""
    if not 0 <= speed <= 100:
        raise ValueError(f"speed must be within [0, 100], got {speed}")
    return 4 * (100 - speed)


@dataclass
class Frame:
    """What a renderer needs to draw one moment of the search."""
    open_nodes: List[SearchNode]
    closed_nodes: List[SearchNode]
    current: Optional[Coord] = None

    @property
    def open_set(self) -> List[Coord]:
        return [node.coord for node in self.open_nodes]

    @property
    def closed_set(self) -> List[Coord]:
        return [node.coord for node in self.closed_nodes]


@dataclass
class SessionOutcome:
    found: bool
    path: List[Coord] = field(default_factory=list)
    cost: float = 0.0
    expansions: int = 0
    message: Optional[str] = None


class SessionBusyError(RuntimeError):
    """Raised when a run is started while another is still in progress."""


class PathfindingSession:
    """
    Drives searches on an editable grid the way an interactive front end would.
    """

    def __init__(self, grid_world: Optional[GridWorld] = None,
                 allow_diagonal: bool = False, instant: bool = False,
                 speed: int = DEFAULT_SPEED, record_frames: bool = False,
                 movement: Optional[Movement] = None):
        """
        Args:
            grid_world: Grid to edit and search (a fresh default grid if None)
            allow_diagonal: Let diagonal moves cut between two walls
            instant: Finish each run inside start_run()
            speed: 0-100, converted to step_delay_ms
            record_frames: Keep a full Frame per tick for later playback;
                off by default, each frame copies both node sets
            movement: Explicit movement mode, overrides allow_diagonal
        """
        self.grid_world = grid_world if grid_world is not None else GridWorld()
        self.allow_diagonal = allow_diagonal
        self.movement = movement
        self.instant = instant
        self.step_delay_ms = speed_to_delay_ms(speed)
        self.record_frames = record_frames

        self.state: Optional[SearchState] = None
        self.frames: List[Frame] = []
        self.outcome: Optional[SessionOutcome] = None
        self.last_result: Optional[StepResult] = None

    @property
    def running(self) -> bool:
        return self.state is not None and self.outcome is None

    @property
    def path(self) -> List[Coord]:
        """Final path in start-to-end order, empty until one is found."""
        return self.outcome.path if self.outcome else []

    def set_speed(self, speed: int):
        self.step_delay_ms = speed_to_delay_ms(speed)

    def start_run(self) -> Optional[SessionOutcome]:
        """
        Begin a search from the grid's start marker to its end marker.

        Returns:
            The outcome in instant mode, otherwise None (call tick())
        """
        if self.running:
            raise SessionBusyError("A run is already in progress")

        self.reset()
        movement = self.movement or Movement.from_flag(self.allow_diagonal)
        world = self.grid_world
        self.state = begin_search(world.copy(), world.start, world.end, movement=movement)
        world.locked = True
        logger.info("Run started (%s, %s)", movement.value,
                    "instant" if self.instant else f"{self.step_delay_ms}ms/step")

        if self.instant:
            while self.running:
                self.tick()
            return self.outcome
        return None

    def tick(self) -> StepResult:
        """Advance the running search by one expansion."""
        if not self.running:
            raise SessionBusyError("No run in progress; call start_run() first")

        result = step(self.state)
        self.last_result = result
        if self.record_frames:
            self.frames.append(self.snapshot(current=result.current))

        if result.status is StepStatus.PATH_FOUND:
            path = list(reversed(result.path))
            self._finish(SessionOutcome(found=True, path=path, cost=path_cost(path),
                                        expansions=self.state.steps))
        elif result.status is StepStatus.NO_PATH:
            self._finish(SessionOutcome(found=False, expansions=self.state.steps,
                                        message=NO_PATH_MESSAGE))
        return result

    def snapshot(self, current: Optional[Coord] = None) -> Frame:
        """Frontier and visited nodes of the current search."""
        if self.state is None:
            return Frame(open_nodes=[], closed_nodes=[])
        return Frame(open_nodes=self.state.frontier_snapshot(),
                     closed_nodes=self.state.visited_snapshot(),
                     current=current)

    def reset(self):
        """Drop the search and its path, keep walls and markers."""
        self.state = None
        self.frames = []
        self.outcome = None
        self.last_result = None
        self.grid_world.locked = False

    def clear(self):
        """Reset and wipe the grid back to its initial layout."""
        self.reset()
        self.grid_world.clear()

    def _finish(self, outcome: SessionOutcome):
        self.outcome = outcome
        self.grid_world.locked = False
        if outcome.found:
            logger.info("Path of %d cells (cost %.2f) after %d expansions",
                        len(outcome.path), outcome.cost, outcome.expansions)
        else:
            # Unreachable goal: overlays are dropped, only the message remains
            self.state = None
            logger.warning("%s after %d expansions", outcome.message, outcome.expansions)
