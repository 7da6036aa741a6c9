import numpy as np
import pytest

from qlearning_grid.model.agent import LearningAgent, LearningParameters
from qlearning_grid.model.grid import CellType, GridEnvironment
from qlearning_grid.model.movement import Position


class ScriptedRNG:
    """Generator stand-in: fixed random() value, scripted integers()."""

    def __init__(self, actions=(), value=0.0):
        self.actions = list(actions)
        self.value = value

    def random(self):
        return self.value

    def integers(self, high):
        action = self.actions.pop(0)
        assert 0 <= action < high
        return action


@pytest.fixture
def scripted_rng():
    return ScriptedRNG


@pytest.fixture
def room():
    """5x5 grid, exit at (4, 4), blocked cell at (2, 2)."""
    cells = np.zeros((5, 5), dtype=np.int8)
    cells[4, 4] = CellType.EXIT
    cells[2, 2] = CellType.BLOCKED
    return GridEnvironment(5, 5, cells)


@pytest.fixture
def make_agent():
    removed = []

    def _make(grid, start=(0, 0), rng=None, epsilon=0.0, alpha=0.8, gamma=0.6):
        agent = LearningAgent(
            agent_id=1,
            start=Position(*start),
            params=LearningParameters(epsilon=epsilon, alpha=alpha, gamma=gamma),
            rng=rng if rng is not None else np.random.default_rng(0),
            unregister_handle=lambda env, a: removed.append((env, a)),
        )
        agent.init(grid)
        return agent

    _make.removed = removed
    return _make
