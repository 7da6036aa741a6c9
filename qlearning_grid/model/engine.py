"""Simulation engine hosting the Q-learning agents."""

import logging
from typing import Dict, List, TYPE_CHECKING

import numpy as np

from .agent import LearningAgent, LearningParameters, MoveOutcome, TickResult
from .grid import CellType, GridEnvironment
from .movement import ACTION_NAMES, Position
from .state import AgentSnapshot, SimulationState

if TYPE_CHECKING:
    from ..config import SimulationConfig

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Orchestrates the discrete-time simulation loop.

    Implements:
    1. Grid construction from walls, exits or a raster
    2. Agent spawning and registration
    3. Sequential ticking of every active agent
    4. State snapshot generation

    Agents are ticked one after another, which serializes every access to
    the shared spatial index.
    """

    def __init__(self, config: "SimulationConfig"):
        self.config = config
        self.current_step = 0

        self.grid = self._build_grid()

        # One independent stream per agent, all derived from the run seed
        self._seed_sequence = np.random.SeedSequence(config.seed)

        self.agents: List[LearningAgent] = []
        self.active_agents: List[LearningAgent] = []
        self._spawn_agents()

        # Metrics tracking
        self.exited_count = 0
        self.total_steps_to_exit = 0
        self.cumulative_reward = 0.0

    def _build_grid(self) -> GridEnvironment:
        """Build the environment from a raster or from the layout lists."""
        if self.config.raster is not None:
            return GridEnvironment.from_raster(self.config.raster)

        width, height = self.config.grid.width, self.config.grid.height
        cells = np.full((height, width), CellType.FREE, dtype=np.int8)

        for wall_spec in self.config.layout.walls:
            if wall_spec.wall_type == "rectangle":
                x, y = wall_spec.data['x'], wall_spec.data['y']
                # Clamp to grid boundaries
                x_end = min(x + wall_spec.data['width'], width)
                y_end = min(y + wall_spec.data['height'], height)
                cells[max(0, y):y_end, max(0, x):x_end] = CellType.BLOCKED
            elif wall_spec.wall_type == "points":
                for x, y in wall_spec.data['coords']:
                    if 0 <= x < width and 0 <= y < height:
                        cells[y, x] = CellType.BLOCKED

        for x, y in self.config.layout.exits:
            if not (0 <= x < width and 0 <= y < height):
                raise ValueError(f"Exit ({x}, {y}) lies outside the grid")
            cells[y, x] = CellType.EXIT

        return GridEnvironment(width, height, cells)

    def _spawn_agents(self) -> None:
        """Create the configured agents and place them at their start cell."""
        agents_config = self.config.agents
        start = Position(agents_config.start_x, agents_config.start_y)
        if not self.grid.is_routable(*start):
            raise ValueError(f"Start position {tuple(start)} is not a free cell")
        if not self.grid.exits():
            raise ValueError("Grid has no exit cell")

        params = LearningParameters(
            epsilon=agents_config.epsilon,
            alpha=agents_config.alpha,
            gamma=agents_config.gamma,
        )
        child_seeds = self._seed_sequence.spawn(agents_config.count)

        for agent_id, seed in enumerate(child_seeds, start=1):
            agent = LearningAgent(
                agent_id=agent_id,
                start=start,
                params=params,
                rng=np.random.default_rng(seed),
                unregister_handle=self._unregister,
            )
            agent.init(self.grid)
            self.agents.append(agent)
            self.active_agents.append(agent)

    def _unregister(self, environment: GridEnvironment,
                    agent: LearningAgent) -> None:
        """Removal handle invoked by an agent when it reaches an exit."""
        self.active_agents.remove(agent)
        self.exited_count += 1
        self.total_steps_to_exit += agent.steps_taken
        logger.info("Agent %s exited after %d steps and %d resets",
                    agent.id, agent.steps_taken, agent.resets)

    def step(self) -> SimulationState:
        """
        Execute one discrete time step.

        Every agent active at the start of the step ticks exactly once.
        """
        self.current_step += 1

        results: Dict[int, TickResult] = {}
        for agent in list(self.active_agents):
            result = agent.tick()
            results[agent.id] = result
            self.cumulative_reward += result.reward

        return self._create_state_snapshot(results)

    def _create_state_snapshot(self, results: Dict[int, TickResult]) -> SimulationState:
        """Create snapshot of current simulation state."""
        agent_snapshots = []
        for a in self.agents:
            result = results.get(a.id)
            agent_snapshots.append(AgentSnapshot(
                agent_id=a.id,
                x=a.position.x,
                y=a.position.y,
                state=a.state.value,
                action=ACTION_NAMES[result.action] if result else None,
                reward=result.reward if result else 0.0,
                outcome=result.outcome.value if result else None,
            ))

        outcomes = [r.outcome for r in results.values()]
        metrics = {
            'exited': self.exited_count,
            'total_agents': len(self.agents),
            'active_agents': len(self.active_agents),
            'step_reward': sum(r.reward for r in results.values()),
            'cumulative_reward': self.cumulative_reward,
            'resets': sum(1 for o in outcomes
                          if o in (MoveOutcome.BLOCKED, MoveOutcome.OUT_OF_BOUNDS)),
            'explored': sum(1 for r in results.values() if r.explored),
        }

        return SimulationState(
            step=self.current_step,
            agents=agent_snapshots,
            metrics=metrics
        )

    def is_finished(self) -> bool:
        """Check if simulation should terminate."""
        return (self.current_step >= self.config.max_steps or
                len(self.active_agents) == 0)

    def get_summary(self) -> Dict:
        """Get summary statistics for the simulation."""
        return {
            'total_steps': self.current_step,
            'agents_exited': self.exited_count,
            'agents_total': len(self.agents),
            'agents_remaining': len(self.active_agents),
            'avg_steps_to_exit': (self.total_steps_to_exit / self.exited_count
                                  if self.exited_count > 0 else 0),
            'total_resets': sum(a.resets for a in self.agents),
            'cumulative_reward': self.cumulative_reward,
        }
