"""Positions and the four cardinal movement directions.

Orientation: y grows northward, so North is (0, +1). The order of
MOVEMENT_DIRECTIONS defines the action index used by the Q-table.
"""

from typing import NamedTuple, Tuple


class Position(NamedTuple):
    """Immutable integer grid coordinate."""
    x: int
    y: int

    def offset(self, direction: "Position") -> "Position":
        return Position(self.x + direction.x, self.y + direction.y)


NORTH = Position(0, 1)
EAST = Position(1, 0)
SOUTH = Position(0, -1)
WEST = Position(-1, 0)

MOVEMENT_DIRECTIONS: Tuple[Position, ...] = (NORTH, EAST, SOUTH, WEST)
ACTION_NAMES: Tuple[str, ...] = ("north", "east", "south", "west")
ACTION_COUNT = len(MOVEMENT_DIRECTIONS)

# Arrows used when rendering a greedy policy as text
ACTION_ARROWS: Tuple[str, ...] = ("^", ">", "v", "<")


def direction_for(action: int) -> Position:
    """Return the direction vector for an action index."""
    if not 0 <= action < ACTION_COUNT:
        raise ValueError(f"Action must be in [0, {ACTION_COUNT}), got {action}")
    return MOVEMENT_DIRECTIONS[action]
