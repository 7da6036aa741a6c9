"""Tabular action-value store for a single learning agent."""

from typing import Optional, Tuple

import numpy as np

from .errors import OutOfRangeError
from .movement import ACTION_COUNT


class QTable:
    """
    Dense action-value table over every cell of a width x height grid.

    Values live in an array indexed [y, x, action], zero-initialized. The
    action axis follows MOVEMENT_DIRECTIONS.

    The one-step Q-learning update:
        Q(s, a) <- Q(s, a) + alpha * (r + gamma * Q(s', a*) - Q(s, a))
    where a* = best_action(s'). When s' is off the grid there is no a*
    and Q(s, a) is set to 0 instead.
    """

    def __init__(self, width: int, height: int,
                 alpha: float, gamma: float,
                 rng: np.random.Generator):
        self.width = width
        self.height = height
        self.alpha = alpha
        self.gamma = gamma
        self.rng = rng
        self.values = np.zeros((height, width, ACTION_COUNT), dtype=np.float64)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> np.ndarray:
        """Return a copy of the action scores at (x, y)."""
        if not self.in_bounds(x, y):
            raise OutOfRangeError(x, y, self.width, self.height)
        return self.values[y, x].copy()

    def best_action(self, x: int, y: int) -> Optional[int]:
        """
        Index of the highest-scoring action at (x, y), or None off the grid.

        Ties are resolved while scanning: an equal candidate replaces the
        best-so-far with probability 0.5. With four equal scores this picks
        actions 0..3 with probabilities 1/8, 1/8, 1/4, 1/2.
        """
        if not self.in_bounds(x, y):
            return None

        actions = self.values[y, x]
        best = 0
        best_value = actions[0]
        for i in range(1, len(actions)):
            if actions[i] > best_value:
                best, best_value = i, actions[i]
            elif actions[i] == best_value and self.rng.random() < 0.5:
                best, best_value = i, actions[i]
        return best

    def max_value(self, x: int, y: int) -> float:
        if not self.in_bounds(x, y):
            raise OutOfRangeError(x, y, self.width, self.height)
        return float(np.max(self.values[y, x]))

    def update(self, state: Tuple[int, int], action: int,
               reward: float, next_state: Tuple[int, int]) -> float:
        """Apply the Q-learning update for one transition; return the new value."""
        x, y = state
        if not self.in_bounds(x, y):
            raise OutOfRangeError(x, y, self.width, self.height)
        if not 0 <= action < ACTION_COUNT:
            raise ValueError(f"Action must be in [0, {ACTION_COUNT}), got {action}")

        next_x, next_y = next_state
        next_best = self.best_action(next_x, next_y)
        if next_best is None:
            new_value = 0.0
        else:
            old_value = self.values[y, x, action]
            next_value = self.values[next_y, next_x, next_best]
            new_value = old_value + self.alpha * (
                reward + self.gamma * next_value - old_value
            )

        self.values[y, x, action] = new_value
        return float(new_value)

    def greedy_policy(self) -> np.ndarray:
        """Argmax action per cell, indexed [y, x]. Ties go to the lowest index."""
        return np.argmax(self.values, axis=2).astype(int)
