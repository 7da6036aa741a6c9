"""Q-learning agent with an epsilon-greedy behavior policy."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

import numpy as np

from .errors import InvalidStateError
from .grid import GridEnvironment
from .movement import ACTION_COUNT, ACTION_NAMES, Position, direction_for
from .qtable import QTable

logger = logging.getLogger(__name__)

REWARD_STEP = 0.0
REWARD_EXIT = 10.0
REWARD_BLOCKED = -1.0
REWARD_OUT_OF_BOUNDS = -1.0


class AgentState(Enum):
    """Lifecycle states of a learning agent."""
    ACTIVE = "active"
    REMOVED = "removed"


class MoveOutcome(Enum):
    """Classification of an attempted move."""
    MOVED = "moved"
    EXITED = "exited"
    BLOCKED = "blocked"
    OUT_OF_BOUNDS = "out_of_bounds"


@dataclass(frozen=True)
class LearningParameters:
    """Hyperparameters handed to each agent at construction."""
    epsilon: float = 0.2  # exploration rate
    alpha: float = 0.8    # learning rate
    gamma: float = 0.6    # discount factor

    def __post_init__(self):
        if not 0.0 <= self.epsilon <= 1.0:
            raise ValueError(f"epsilon must be in [0, 1], got {self.epsilon}")
        if not 0.0 < self.alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {self.alpha}")
        if not 0.0 <= self.gamma <= 1.0:
            raise ValueError(f"gamma must be in [0, 1], got {self.gamma}")


@dataclass(frozen=True)
class TickResult:
    """What happened during one tick of an agent."""
    action: int
    explored: bool
    outcome: MoveOutcome
    reward: float
    position: Position


UnregisterHandle = Callable[[GridEnvironment, "LearningAgent"], None]


class LearningAgent:
    """
    Agent that learns a route to an exit cell with tabular Q-learning.

    Each tick the agent explores with probability epsilon and otherwise
    exploits its Q-table, then classifies the attempted move:

    - off the grid:  reward -1, back to start
    - free cell:     reward 0, move
    - exit cell:     reward +10, move, then leave the simulation
    - blocked cell:  reward -1, back to start

    The Q-table is updated with the observed reward in every case.
    """

    def __init__(self, agent_id: int,
                 start: Position,
                 params: LearningParameters,
                 rng: np.random.Generator,
                 unregister_handle: Optional[UnregisterHandle] = None):
        self.id = agent_id
        self.start = Position(*start)
        self.position = self.start
        self.params = params
        self.rng = rng
        self.unregister_handle = unregister_handle
        self.state = AgentState.ACTIVE

        self.environment: Optional[GridEnvironment] = None
        self.qtable: Optional[QTable] = None

        self.steps_taken = 0
        self.resets = 0
        self.total_reward = 0.0

    def init(self, environment: GridEnvironment) -> None:
        """Place the agent at its start position and allocate its Q-table."""
        if self.environment is not None:
            raise InvalidStateError(f"Agent {self.id} is already initialized")
        environment.insert(self, self.start)
        self.position = self.start
        self.qtable = QTable(environment.width, environment.height,
                             self.params.alpha, self.params.gamma, self.rng)
        self.environment = environment

    # ---------- tick ----------

    def tick(self) -> TickResult:
        """Choose an action, learn from its outcome and apply it."""
        self._check_active()

        explored = self._is_true_with_chance(self.params.epsilon)
        if explored:
            action = self._random_action()
        else:
            action = self.qtable.best_action(*self.position)
            if action is None:
                logger.warning("Agent %s has no greedy action at %s; exploring instead",
                               self.id, self.position)
                explored = True
                action = self._random_action()

        self.steps_taken += 1
        outcome, reward = self.attempt_move(action)
        self.total_reward += reward
        return TickResult(action=action, explored=explored, outcome=outcome,
                          reward=reward, position=self.position)

    def attempt_move(self, action: int) -> Tuple[MoveOutcome, float]:
        """Classify the move for action, update the Q-table and apply it."""
        self._check_active()
        state = self.position
        target = state.offset(direction_for(action))
        env = self.environment

        if not env.in_bounds(*target):
            self.qtable.update(state, action, REWARD_OUT_OF_BOUNDS, target)
            logger.debug("Agent %s tried to leave the world: %s", self.id, target)
            self.reset_to_start()
            return MoveOutcome.OUT_OF_BOUNDS, REWARD_OUT_OF_BOUNDS

        if env.is_routable(*target):
            self.qtable.update(state, action, REWARD_STEP, target)
            self._move(target)
            logger.debug("Agent %s moved %s to %s", self.id,
                         ACTION_NAMES[action], target)
            return MoveOutcome.MOVED, REWARD_STEP

        if env.is_exit(*target):
            self.qtable.update(state, action, REWARD_EXIT, target)
            self._move(target)
            logger.debug("Agent %s moved to the exit cell: %s", self.id, target)
            self.remove_from_simulation()
            return MoveOutcome.EXITED, REWARD_EXIT

        self.qtable.update(state, action, REWARD_BLOCKED, target)
        logger.debug("Agent %s tried to move to a blocked cell: %s", self.id, target)
        self.reset_to_start()
        return MoveOutcome.BLOCKED, REWARD_BLOCKED

    def reset_to_start(self) -> None:
        """Return to the start position, keeping everything learned."""
        self._move(self.start)
        self.resets += 1
        logger.debug("Agent %s was reset to the start position: %s",
                     self.id, self.start)

    def remove_from_simulation(self) -> None:
        """Leave the environment and notify the host."""
        if self.state == AgentState.REMOVED:
            raise InvalidStateError(f"Agent {self.id} was already removed")
        logger.info("Agent %s is removing itself from the simulation", self.id)
        self.environment.remove(self)
        self.state = AgentState.REMOVED
        if self.unregister_handle is not None:
            self.unregister_handle(self.environment, self)

    # ---------- helpers ----------

    def _check_active(self) -> None:
        if self.environment is None:
            raise InvalidStateError(f"Agent {self.id} has not been initialized")
        if self.state == AgentState.REMOVED:
            raise InvalidStateError(f"Agent {self.id} was removed from the simulation")

    def _move(self, position: Position) -> None:
        self.position = position
        self.environment.move_to(self, position)

    def _is_true_with_chance(self, chance: float) -> bool:
        return self.rng.random() < chance

    def _random_action(self) -> int:
        return int(self.rng.integers(ACTION_COUNT))

    @property
    def is_active(self) -> bool:
        return self.state == AgentState.ACTIVE

    def __repr__(self) -> str:
        return (f"LearningAgent(id={self.id}, pos={tuple(self.position)}, "
                f"state={self.state.value})")
