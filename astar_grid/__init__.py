"""
Incremental A* pathfinding on a square grid.

The search can be advanced one expansion at a time for animation or run to
completion; both give the same result.
"""

from .environment.grid_world import GRID_SIZE, CellState, GridEditError, GridWorld
from .pathfinding.astar import (
    AStar,
    Movement,
    SearchNode,
    SearchState,
    SearchStatus,
    StepResult,
    StepStatus,
    begin_search,
    euclidean_distance,
    path_cost,
    reconstruct_path,
    run,
    step,
)
from .pathfinding.errors import (
    InvalidEndError,
    InvalidStartError,
    PathNotFoundError,
    PathSearchError,
    SearchTerminatedError,
)
from .simulation.session import PathfindingSession, SessionOutcome

__version__ = "0.1.0"

__all__ = [
    'GRID_SIZE',
    'AStar',
    'CellState',
    'GridEditError',
    'GridWorld',
    'InvalidEndError',
    'InvalidStartError',
    'Movement',
    'PathNotFoundError',
    'PathSearchError',
    'PathfindingSession',
    'SearchNode',
    'SearchState',
    'SearchStatus',
    'SearchTerminatedError',
    'SessionOutcome',
    'StepResult',
    'StepStatus',
    'begin_search',
    'euclidean_distance',
    'path_cost',
    'reconstruct_path',
    'run',
    'step',
]
