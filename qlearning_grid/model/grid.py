"""Grid environment for the Q-learning simulation."""

from collections import defaultdict
from enum import IntEnum
from typing import Dict, Hashable, Optional, Set, Tuple

import numpy as np

from .errors import InvalidStateError, OutOfRangeError
from .movement import Position


class CellType(IntEnum):
    """Cell classification, using the integer codes of raster assets."""
    FREE = 0
    BLOCKED = 1
    EXIT = 2


class GridEnvironment:
    """
    Cell classifications plus a spatial index of occupant positions.

    Coordinate convention: (x, y) for API, [y, x] for array indexing.
    Row y = 0 is the southern edge.

    The spatial index is shared mutable state without internal locking;
    callers that tick agents concurrently must serialize access.
    """

    def __init__(self, width: int, height: int,
                 cells: Optional[np.ndarray] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive: {width}x{height}")
        self.width = width
        self.height = height

        if cells is None:
            self.cells = np.full((height, width), CellType.FREE, dtype=np.int8)
        else:
            cells = np.asarray(cells)
            if cells.shape != (height, width):
                raise ValueError(
                    f"Cell array shape {cells.shape} does not match "
                    f"{width}x{height} grid"
                )
            unknown = set(np.unique(cells).tolist()) - {c.value for c in CellType}
            if unknown:
                raise ValueError(f"Unknown cell codes: {sorted(unknown)}")
            self.cells = cells.astype(np.int8)

        # Read-only once the simulation runs
        self.cells.setflags(write=False)

        self._positions: Dict[Hashable, Position] = {}
        self._occupancy: Dict[Position, Set[Hashable]] = defaultdict(set)

    @classmethod
    def from_raster(cls, raster: np.ndarray) -> "GridEnvironment":
        """
        Build an environment from raster rows as they appear in a file.

        The first row of the raster is the northern edge of the grid.
        """
        raster = np.atleast_2d(np.asarray(raster, dtype=np.int64))
        cells = np.flipud(raster)
        height, width = cells.shape
        return cls(width, height, cells)

    # ---------- cell queries ----------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> CellType:
        """Return the classification of (x, y)."""
        if not self.in_bounds(x, y):
            raise OutOfRangeError(x, y, self.width, self.height)
        return CellType(int(self.cells[y, x]))

    def is_routable(self, x: int, y: int) -> bool:
        """Check if cell is within bounds and free. Exits are not routable."""
        if not self.in_bounds(x, y):
            return False
        return bool(self.cells[y, x] == CellType.FREE)

    def is_exit(self, x: int, y: int) -> bool:
        """Check if cell is within bounds and an exit."""
        if not self.in_bounds(x, y):
            return False
        return bool(self.cells[y, x] == CellType.EXIT)

    def exits(self) -> Set[Tuple[int, int]]:
        """Return set of all exit cell positions."""
        ys, xs = np.where(self.cells == CellType.EXIT)
        return {(int(x), int(y)) for x, y in zip(xs, ys)}

    # ---------- spatial index ----------

    def insert(self, occupant: Hashable, position: Tuple[int, int]) -> None:
        """Index an occupant at position."""
        if occupant in self._positions:
            raise InvalidStateError(f"{occupant!r} is already in the environment")
        position = self._checked(position)
        self._positions[occupant] = position
        self._occupancy[position].add(occupant)

    def remove(self, occupant: Hashable) -> None:
        """Drop an occupant from the index."""
        try:
            position = self._positions.pop(occupant)
        except KeyError:
            raise InvalidStateError(
                f"{occupant!r} is not in the environment"
            ) from None
        self._release(occupant, position)

    def move_to(self, occupant: Hashable, position: Tuple[int, int]) -> None:
        """Move an already indexed occupant to position."""
        if occupant not in self._positions:
            raise InvalidStateError(f"{occupant!r} is not in the environment")
        position = self._checked(position)
        self._release(occupant, self._positions[occupant])
        self._positions[occupant] = position
        self._occupancy[position].add(occupant)

    def position_of(self, occupant: Hashable) -> Position:
        try:
            return self._positions[occupant]
        except KeyError:
            raise InvalidStateError(
                f"{occupant!r} is not in the environment"
            ) from None

    def occupants_at(self, x: int, y: int) -> Set[Hashable]:
        return set(self._occupancy.get(Position(x, y), ()))

    def __contains__(self, occupant: Hashable) -> bool:
        return occupant in self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def _checked(self, position: Tuple[int, int]) -> Position:
        x, y = int(position[0]), int(position[1])
        if not self.in_bounds(x, y):
            raise OutOfRangeError(x, y, self.width, self.height)
        return Position(x, y)

    def _release(self, occupant: Hashable, position: Position) -> None:
        occupants = self._occupancy[position]
        occupants.discard(occupant)
        if not occupants:
            del self._occupancy[position]
