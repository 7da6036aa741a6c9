"""Model package for the Q-learning grid simulation."""

from .errors import GridError, OutOfRangeError, InvalidStateError
from .movement import Position, MOVEMENT_DIRECTIONS, ACTION_NAMES
from .grid import CellType, GridEnvironment
from .qtable import QTable
from .agent import (
    LearningAgent, LearningParameters, AgentState, MoveOutcome, TickResult
)
from .state import AgentSnapshot, SimulationState
from .engine import SimulationEngine

__all__ = [
    'GridError',
    'OutOfRangeError',
    'InvalidStateError',
    'Position',
    'MOVEMENT_DIRECTIONS',
    'ACTION_NAMES',
    'CellType',
    'GridEnvironment',
    'QTable',
    'LearningAgent',
    'LearningParameters',
    'AgentState',
    'MoveOutcome',
    'TickResult',
    'AgentSnapshot',
    'SimulationState',
    'SimulationEngine',
]
