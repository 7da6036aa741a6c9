"""Summary report generation for the Q-learning simulation."""

from typing import List, Dict, Optional, TYPE_CHECKING
from pathlib import Path

import numpy as np

from ..model.grid import CellType
from ..model.movement import ACTION_ARROWS

if TYPE_CHECKING:
    from ..model.grid import GridEnvironment
    from ..model.qtable import QTable
    from ..model.state import SimulationState


def render_policy(grid: "GridEnvironment", qtable: "QTable") -> List[str]:
    """
    Render the greedy policy as text, northern row first.

    Blocked cells show '#', exits 'E', cells never updated '.'.
    """
    policy = qtable.greedy_policy()
    learned = np.any(qtable.values != 0, axis=2)
    lines = []
    for y in range(grid.height - 1, -1, -1):
        row = []
        for x in range(grid.width):
            cell = grid.cell(x, y)
            if cell == CellType.BLOCKED:
                row.append('#')
            elif cell == CellType.EXIT:
                row.append('E')
            elif not learned[y, x]:
                row.append('.')
            else:
                row.append(ACTION_ARROWS[policy[y, x]])
        lines.append(' '.join(row))
    return lines


class Reporter:
    """Generates summary statistics and formatted text report."""

    def __init__(self, config_path: str, seed: Optional[int]):
        self.config_path = config_path
        self.seed = seed
        self.step_metrics: List[Dict] = []
        self.total_resets = 0
        self.total_explored = 0
        self.first_exit_step: Optional[int] = None

    def update(self, state: "SimulationState") -> None:
        """Accumulate metrics per step."""
        self.step_metrics.append(state.metrics.copy())
        self.total_resets += int(state.metrics.get('resets', 0))
        self.total_explored += int(state.metrics.get('explored', 0))

        if self.first_exit_step is None and state.metrics.get('exited', 0) > 0:
            self.first_exit_step = state.step

    def generate_summary(self, final_state: "SimulationState",
                         summary: Dict,
                         output_dir: Path,
                         csv_enabled: bool,
                         policy_lines: Optional[List[str]] = None) -> str:
        """Returns formatted text report."""
        total_agents = int(summary.get('agents_total', 0))
        exited = int(summary.get('agents_exited', 0))
        exit_pct = (exited / total_agents * 100) if total_agents > 0 else 0

        # Build report
        lines = [
            "",
            "=" * 80,
            "                    Q-LEARNING GRID SIMULATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_path}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "SIMULATION METRICS",
            "-" * 40,
            f"Total Steps:           {final_state.step}",
            f"Agents Exited:         {exited} / {total_agents} ({exit_pct:.1f}%)",
            f"First Exit At Step:    {self.first_exit_step if self.first_exit_step else '-'}",
            f"Average Steps To Exit: {summary.get('avg_steps_to_exit', 0):.1f}",
            f"Resets To Start:       {self.total_resets}",
            f"Exploratory Actions:   {self.total_explored}",
            f"Cumulative Reward:     {summary.get('cumulative_reward', 0):.1f}",
            "",
        ]

        if policy_lines:
            lines.extend([
                "GREEDY POLICY (agent 1)",
                "-" * 40,
                *policy_lines,
                "",
            ])

        lines.extend([
            "OUTPUT FILES",
            "-" * 40,
        ])

        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / 'simulation_log.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)
