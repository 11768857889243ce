"""
GridWorld - The square field of cells the pathfinder searches.

Each cell in the grid is either:
- 0: Open (passable)
- 1: Blocked (wall)

The start and end markers live on the grid too. Walls can never be placed
under a marker, and moving a marker onto a wall erases that wall.
"""

import enum
import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

GRID_SIZE = 50

Coord = Tuple[int, int]


class CellState(enum.Enum):
    OPEN = 0
    BLOCKED = 1


class GridEditError(ValueError):
    """Raised when an edit targets an invalid cell or a locked grid."""


class GridWorld:
    """
    A 2D passability grid with start and end markers.

    Attributes:
        width: Number of cells in x-direction
        height: Number of cells in y-direction
        grid: 2D numpy array indexed [y, x]; values > 0.5 are blocked
        start: Start marker (x, y)
        end: End marker (x, y)
    """

    def __init__(self, width: int = GRID_SIZE, height: Optional[int] = None):
        """
        Initialize an empty grid with the markers in opposite corners.

        Args:
            width: Grid width in cells
            height: Grid height in cells (defaults to width)
        """
        if height is None:
            height = width
        if width < 1 or height < 1:
            raise GridEditError(f"Grid must be at least 1x1, got {width}x{height}")

        self.width = width
        self.height = height
        self.grid = np.zeros((height, width), dtype=np.float32)
        self.start: Coord = (0, 0)
        self.end: Coord = (width - 1, height - 1)
        self.locked = False

        logger.debug("Created GridWorld: %dx%d cells", width, height)

    @classmethod
    def from_strings(cls, rows: Iterable[str]) -> "GridWorld":
        """
        Build a grid from text rows, top row first.

        '#' marks a wall, 'S' and 'E' the start and end markers and any
        other character an open cell. Markers that are not given keep their
        default corners.

        Example:
            GridWorld.from_strings([
                "S..",
                ".#.",
                "..E",
            ])
        """
        rows = list(rows)
        if not rows or any(len(row) != len(rows[0]) for row in rows):
            raise GridEditError("Rows must be non-empty and of equal length")

        world = cls(width=len(rows[0]), height=len(rows))
        start = end = None
        for y, row in enumerate(rows):
            for x, char in enumerate(row):
                if char == '#':
                    world.grid[y, x] = 1.0
                elif char == 'S':
                    start = (x, y)
                elif char == 'E':
                    end = (x, y)

        # Assign directly; the default corners may be walls in the layout
        if start is not None:
            world.start = start
        if end is not None:
            world.end = end
        if world.is_blocked(*world.start) or world.is_blocked(*world.end):
            raise GridEditError("Start and end markers must sit on open cells")
        return world

    def to_strings(self) -> List[str]:
        """Inverse of from_strings."""
        rows = []
        for y in range(self.height):
            chars = []
            for x in range(self.width):
                if (x, y) == self.start:
                    chars.append('S')
                elif (x, y) == self.end:
                    chars.append('E')
                elif self.grid[y, x] > 0.5:
                    chars.append('#')
                else:
                    chars.append('.')
            rows.append(''.join(chars))
        return rows

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_state(self, x: int, y: int) -> CellState:
        self._require_in_bounds(x, y)
        return CellState.BLOCKED if self.grid[y, x] > 0.5 else CellState.OPEN

    def is_blocked(self, x: int, y: int) -> bool:
        """
        Check if a cell is an on-grid wall.

        Off-grid coordinates are not walls; callers combine this with
        in_bounds where that distinction matters.
        """
        if not self.in_bounds(x, y):
            return False
        return bool(self.grid[y, x] > 0.5)

    def is_valid(self, x: int, y: int) -> bool:
        """
        Check if a cell is valid (within bounds and passable).

        Args:
            x: X coordinate
            y: Y coordinate

        Returns:
            True if cell is valid and passable
        """
        return self.in_bounds(x, y) and not self.is_blocked(x, y)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_wall(self, x: int, y: int) -> bool:
        """
        Brush a single wall.

        Returns:
            True if the cell changed. Painting over a marker or an existing
            wall is a silent no-op, matching drag-to-draw behavior.
        """
        self._check_editable()
        self._require_in_bounds(x, y)
        if (x, y) in (self.start, self.end) or self.grid[y, x] > 0.5:
            return False
        self.grid[y, x] = 1.0
        return True

    def erase_wall(self, x: int, y: int) -> bool:
        """Erase a single wall. Returns True if the cell changed."""
        self._check_editable()
        self._require_in_bounds(x, y)
        if self.grid[y, x] <= 0.5:
            return False
        self.grid[y, x] = 0.0
        return True

    def add_obstacle(self, x: int, y: int, width: int = 1, height: int = 1):
        """
        Add a rectangular obstacle to the grid.

        The rectangle is clipped to the grid and never covers the markers.

        Args:
            x: Top-left x coordinate
            y: Top-left y coordinate
            width: Width of obstacle in cells
            height: Height of obstacle in cells
        """
        self._check_editable()
        x_end = min(x + width, self.width)
        y_end = min(y + height, self.height)
        x = max(0, x)
        y = max(0, y)
        if x >= x_end or y >= y_end:
            return

        self.grid[y:y_end, x:x_end] = 1.0
        self._clear_markers()
        logger.debug("Added obstacle at (%d, %d) with size %dx%d", x, y, width, height)

    def add_circular_obstacle(self, center_x: int, center_y: int, radius: int):
        """
        Add a circular obstacle.

        Args:
            center_x: Center x coordinate
            center_y: Center y coordinate
            radius: Radius in cells
        """
        self._check_editable()
        ys, xs = np.ogrid[:self.height, :self.width]
        mask = (xs - center_x) ** 2 + (ys - center_y) ** 2 <= radius ** 2
        self.grid[mask] = 1.0
        self._clear_markers()
        logger.debug("Added circular obstacle at (%d, %d) with radius %d",
                     center_x, center_y, radius)

    def set_start(self, x: int, y: int):
        """Move the start marker, erasing any wall beneath it."""
        self._move_marker('start', x, y)

    def set_end(self, x: int, y: int):
        """Move the end marker, erasing any wall beneath it."""
        self._move_marker('end', x, y)

    def clear(self):
        """Clear all walls and put the markers back in their corners."""
        self._check_editable()
        self.grid = np.zeros((self.height, self.width), dtype=np.float32)
        self.start = (0, 0)
        self.end = (self.width - 1, self.height - 1)
        logger.debug("Grid cleared")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def free_cells(self) -> List[Coord]:
        """All open cells as (x, y), row by row."""
        return [(int(x), int(y)) for y, x in np.argwhere(self.grid <= 0.5)]

    def get_random_free_position(self, rng: Optional[np.random.Generator] = None) -> Coord:
        """
        Get a random passable position in the grid.

        Args:
            rng: Optional numpy Generator for reproducible picks

        Returns:
            (x, y) tuple of a free position
        """
        free_cells = np.argwhere(self.grid <= 0.5)
        if len(free_cells) == 0:
            raise GridEditError("No free cells available in grid")

        if rng is None:
            rng = np.random.default_rng()
        y, x = free_cells[rng.integers(0, len(free_cells))]
        return int(x), int(y)

    def scatter_walls(self, density: float, rng: Optional[np.random.Generator] = None) -> int:
        """
        Randomly block a fraction of the open cells, sparing the markers.

        Returns:
            Number of walls added
        """
        self._check_editable()
        if not 0.0 <= density <= 1.0:
            raise GridEditError(f"density must be within [0, 1], got {density}")
        if rng is None:
            rng = np.random.default_rng()

        mask = (rng.random(self.grid.shape) < density) & (self.grid <= 0.5)
        for x, y in (self.start, self.end):
            mask[y, x] = False
        self.grid[mask] = 1.0
        return int(mask.sum())

    def copy(self) -> "GridWorld":
        """Independent snapshot; edits to either grid do not affect the other."""
        twin = GridWorld(self.width, self.height)
        twin.grid = self.grid.copy()
        twin.start = self.start
        twin.end = self.end
        return twin

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _move_marker(self, which: str, x: int, y: int):
        self._check_editable()
        self._require_in_bounds(x, y)
        other = self.end if which == 'start' else self.start
        if (x, y) == other:
            raise GridEditError(f"Cannot place {which} on top of the other marker at {other}")
        self.grid[y, x] = 0.0
        setattr(self, which, (x, y))

    def _clear_markers(self):
        for x, y in (self.start, self.end):
            self.grid[y, x] = 0.0

    def _require_in_bounds(self, x: int, y: int):
        if not self.in_bounds(x, y):
            raise GridEditError(
                f"Cell ({x}, {y}) is outside the {self.width}x{self.height} grid")

    def _check_editable(self):
        if self.locked:
            raise GridEditError("Grid is locked while a search is running")

    def __repr__(self) -> str:
        """String representation of the grid."""
        wall_count = int(np.sum(self.grid > 0.5))
        free_count = int(np.sum(self.grid <= 0.5))
        return (f"GridWorld({self.width}x{self.height}, walls={wall_count}, "
                f"free={free_count}, start={self.start}, end={self.end})")
