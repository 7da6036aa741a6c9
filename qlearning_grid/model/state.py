"""State snapshot dataclasses for the Q-learning simulation."""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable snapshot of an agent after a given time step."""
    agent_id: int
    x: int
    y: int
    state: str             # "active", "removed"
    action: Optional[str]  # None when the agent did not act this step
    reward: float
    outcome: Optional[str]  # "moved", "exited", "blocked", "out_of_bounds"


@dataclass
class SimulationState:
    """Complete snapshot of simulation state at a given time step."""
    step: int
    agents: List[AgentSnapshot]
    metrics: Dict[str, float]  # exited, active_agents, cumulative reward, etc.

    def to_csv_rows(self) -> List[Dict]:
        """Convert to CSV-compatible format, one row per agent that acted."""
        return [
            {
                "step": self.step,
                "agent_id": a.agent_id,
                "x": a.x,
                "y": a.y,
                "state": a.state,
                "action": a.action,
                "reward": a.reward,
                "outcome": a.outcome,
            }
            for a in self.agents
            if a.action is not None
        ]
