import csv

import numpy as np
import pytest

from qlearning_grid.export.csv_writer import CSVWriter
from qlearning_grid.export.reporter import Reporter, render_policy
from qlearning_grid.main import main
from qlearning_grid.model.grid import GridEnvironment
from qlearning_grid.model.qtable import QTable
from qlearning_grid.model.state import AgentSnapshot, SimulationState

CONFIG = """
grid: {width: 3, height: 3}
layout:
  exits: [[2, 2]]
agents: {start_x: 0, start_y: 0}
simulation: {max_steps: 3000, seed: 1}
"""


def make_state(step=1):
    return SimulationState(
        step=step,
        agents=[
            AgentSnapshot(1, 1, 0, "active", "east", 0.0, "moved"),
            AgentSnapshot(2, 2, 2, "removed", None, 0.0, None),
        ],
        metrics={"exited": 1, "active_agents": 1, "resets": 0, "explored": 1},
    )


def test_csv_writer_skips_idle_agents(tmp_path):
    path = tmp_path / "out" / "log.csv"
    with CSVWriter(path) as writer:
        writer.append(make_state(1))
        writer.append(make_state(2))

    with open(path, newline='') as f:
        rows = list(csv.DictReader(f))
    assert [r["step"] for r in rows] == ["1", "2"]
    assert rows[0]["action"] == "east"
    assert rows[0]["outcome"] == "moved"


def test_render_policy():
    grid = GridEnvironment.from_raster([[0, 2],
                                        [0, 1]])
    table = QTable(2, 2, 0.8, 0.6, np.random.default_rng(0))
    table.values[0, 0, 0] = 1.0  # (0, 0) north
    assert render_policy(grid, table) == [". E", "^ #"]


def test_reporter_summary(tmp_path):
    reporter = Reporter("sim.yaml", 3)
    reporter.update(make_state(1))
    text = reporter.generate_summary(
        make_state(1),
        {"agents_total": 2, "agents_exited": 1, "avg_steps_to_exit": 4.0,
         "cumulative_reward": 10.0},
        tmp_path, csv_enabled=False, policy_lines=["^ >"],
    )
    assert "Agents Exited:         1 / 2 (50.0%)" in text
    assert "First Exit At Step:    1" in text
    assert "^ >" in text
    assert "CSV Log:    (disabled)" in text


def test_main_runs_simulation(tmp_path, capsys):
    config_path = tmp_path / "sim.yaml"
    config_path.write_text(CONFIG)
    out_dir = tmp_path / "results"

    assert main(["--config", str(config_path), "--out-dir", str(out_dir)]) == 0

    output = capsys.readouterr().out
    assert "Q-LEARNING GRID SIMULATION REPORT" in output
    assert "Agents Exited:         1 / 1" in output
    with open(out_dir / "simulation_log.csv", newline='') as f:
        rows = list(csv.DictReader(f))
    assert rows[-1]["outcome"] == "exited"


def test_main_quiet_without_csv(tmp_path, capsys):
    config_path = tmp_path / "sim.yaml"
    config_path.write_text(CONFIG)
    out_dir = tmp_path / "results"

    assert main(["--config", str(config_path), "--out-dir", str(out_dir),
                 "--no-csv", "--quiet", "--steps", "5"]) == 0
    assert capsys.readouterr().out == ""
    assert not (out_dir / "simulation_log.csv").exists()


def test_main_missing_config(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
    assert "not found" in capsys.readouterr().err


def test_main_rejects_empty_config(tmp_path, capsys):
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("")
    assert main(["--config", str(config_path)]) == 1
    assert "Error loading config" in capsys.readouterr().err


def test_csv_writer_requires_open_file(tmp_path):
    writer = CSVWriter(tmp_path / "log.csv")
    with pytest.raises(ValueError):
        writer.append(make_state())
