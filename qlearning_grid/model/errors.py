"""Exceptions raised by the grid and Q-learning model."""


class GridError(Exception):
    """Base class for model errors."""


class OutOfRangeError(GridError, IndexError):
    """A coordinate lies outside [0, width) x [0, height)."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(
            f"({x}, {y}) is outside the {width}x{height} grid"
        )
        self.x = x
        self.y = y


class InvalidStateError(GridError, RuntimeError):
    """An operation was attempted on an occupant or agent in the wrong state."""
