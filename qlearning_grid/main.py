#!/usr/bin/env python3
"""
Q-Learning Grid Simulation

Agents learn, by tabular Q-learning with an epsilon-greedy policy, how to
walk from a start cell to the exit of a grid.

Usage:
    qlearning-grid --config configs/corridor.yaml [options]

Examples:
    qlearning-grid --config configs/corridor.yaml
    qlearning-grid --config configs/maze.yaml --out-dir results/
    qlearning-grid --config configs/corridor.yaml --no-csv --quiet
    qlearning-grid --config configs/corridor.yaml --seed 42 --verbose
"""

import argparse
import logging
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import List, Optional

import yaml

from qlearning_grid.config import load_config
from qlearning_grid.model.engine import SimulationEngine
from qlearning_grid.model.state import SimulationState
from qlearning_grid.export.csv_writer import CSVWriter
from qlearning_grid.export.reporter import Reporter, render_policy


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Q-Learning Grid Simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    qlearning-grid --config configs/corridor.yaml
    qlearning-grid --config configs/maze.yaml --out-dir results/
    qlearning-grid --config configs/corridor.yaml --no-csv --quiet
    qlearning-grid --config configs/corridor.yaml --seed 42 --verbose
        """
    )

    # Required arguments
    parser.add_argument('--config', type=Path, required=True,
                        help='Path to YAML configuration file')

    # Optional overrides
    parser.add_argument('--steps', type=int, default=None,
                        help='Override max simulation steps')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Log every agent move')

    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')

    return parser.parse_args(argv)


def configure_logging(quiet: bool, verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def run_simulation(engine: SimulationEngine, reporter: Reporter,
                   csv_writer: Optional[CSVWriter],
                   quiet: bool) -> Optional[SimulationState]:
    """Step the engine until it finishes; return the last state."""
    final_state = None
    try:
        while not engine.is_finished():
            state = engine.step()
            final_state = state

            # Export CSV
            if csv_writer:
                csv_writer.append(state)

            # Update reporter
            reporter.update(state)

            # Progress indicator
            if not quiet and state.step % 1000 == 0:
                active = state.metrics.get('active_agents', 0)
                exited = int(state.metrics.get('exited', 0))
                print(f"  Step {state.step}: {active} active, {exited} exited")

    except KeyboardInterrupt:
        if not quiet:
            print("\nSimulation interrupted by user.")

    return final_state


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.quiet, args.verbose)

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (KeyError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.steps is not None:
        config.max_steps = args.steps
    if args.csv is not None:
        config.csv_enabled = args.csv
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir

    # Initialize engine
    if not config.quiet:
        print(f"Initializing simulation...")
        print(f"  Grid: {config.grid.width}x{config.grid.height}")
        print(f"  Agents: {config.agents.count} starting at "
              f"({config.agents.start_x}, {config.agents.start_y})")
        print(f"  epsilon={config.agents.epsilon} alpha={config.agents.alpha} "
              f"gamma={config.agents.gamma}")
        print(f"  Max steps: {config.max_steps}")

    try:
        engine = SimulationEngine(config)
    except ValueError as e:
        print(f"Error building simulation: {e}", file=sys.stderr)
        return 1

    reporter = Reporter(str(args.config), config.seed)

    # Main simulation loop
    if not config.quiet:
        print(f"\nRunning simulation...")

    csv_writer = None
    if config.csv_enabled:
        csv_writer = CSVWriter(config.out_dir / 'simulation_log.csv')

    with csv_writer or nullcontext():
        final_state = run_simulation(engine, reporter, csv_writer, config.quiet)

    if config.csv_enabled and not config.quiet:
        print(f"\nCSV saved: {config.out_dir / 'simulation_log.csv'}")

    # Print summary report
    if not config.quiet and final_state:
        first = engine.agents[0]
        report = reporter.generate_summary(
            final_state,
            engine.get_summary(),
            config.out_dir,
            config.csv_enabled,
            render_policy(engine.grid, first.qtable)
        )
        print(report)

    return 0


if __name__ == '__main__':
    sys.exit(main())
