"""Configuration dataclasses and YAML loader for the Q-learning simulation."""

from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Any, Optional
from pathlib import Path

import numpy as np
import yaml


@dataclass
class GridConfig:
    width: int
    height: int
    raster_path: Optional[Path] = None


@dataclass
class AgentConfig:
    start_x: int
    start_y: int
    count: int = 1
    epsilon: float = 0.2  # exploration rate
    alpha: float = 0.8    # learning rate
    gamma: float = 0.6    # discount factor


@dataclass
class WallSpec:
    wall_type: str  # "rectangle" or "points"
    data: Dict[str, Any]


@dataclass
class LayoutConfig:
    walls: List[WallSpec] = field(default_factory=list)
    exits: List[Tuple[int, int]] = field(default_factory=list)


@dataclass
class SimulationConfig:
    grid: GridConfig
    max_steps: int
    agents: AgentConfig
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    # Cell codes read from grid.raster_path, first row = northern edge
    raster: Optional[np.ndarray] = None

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))


def _parse_walls(walls_raw: List[Dict]) -> List[WallSpec]:
    """Parse wall specifications from raw YAML data."""
    walls = []
    for w in walls_raw:
        wall_type = w.get('type', 'rectangle')
        if wall_type == 'rectangle':
            data = {
                'x': w['x'],
                'y': w['y'],
                'width': w['width'],
                'height': w['height']
            }
        elif wall_type == 'points':
            data = {'coords': [tuple(c) for c in w['coords']]}
        else:
            raise ValueError(f"Unknown wall type: {wall_type}")
        walls.append(WallSpec(wall_type=wall_type, data=data))
    return walls


def _parse_exits(exits_raw: List) -> List[Tuple[int, int]]:
    """Parse exit cells given as [x, y] pairs or {x, y} mappings."""
    exits = []
    for e in exits_raw:
        if isinstance(e, dict):
            exits.append((int(e['x']), int(e['y'])))
        else:
            x, y = e
            exits.append((int(x), int(y)))
    return exits


def load_raster(raster_path: Path) -> np.ndarray:
    """Read a comma-separated grid of cell codes (0 free, 1 blocked, 2 exit)."""
    raster = np.loadtxt(raster_path, delimiter=',', dtype=np.int64, ndmin=2)
    invalid = set(np.unique(raster).tolist()) - {0, 1, 2}
    if invalid:
        raise ValueError(f"Invalid cell codes in {raster_path}: {sorted(invalid)}")
    return raster


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file."""
    config_path = Path(config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} does not contain a configuration mapping")

    # Parse grid config; a raster fixes the dimensions itself
    grid_raw = raw['grid']
    raster = None
    raster_path = None
    if grid_raw.get('raster'):
        raster_path = Path(grid_raw['raster'])
        if not raster_path.is_absolute():
            raster_path = config_path.parent / raster_path
        raster = load_raster(raster_path)
        height, width = raster.shape
    else:
        width, height = grid_raw['width'], grid_raw['height']
    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive: {width}x{height}")
    grid = GridConfig(width=width, height=height, raster_path=raster_path)

    # Parse agent config
    agents_raw = raw['agents']
    agents = AgentConfig(
        start_x=agents_raw['start_x'],
        start_y=agents_raw['start_y'],
        count=agents_raw.get('count', 1),
        epsilon=agents_raw.get('epsilon', 0.2),
        alpha=agents_raw.get('alpha', 0.8),
        gamma=agents_raw.get('gamma', 0.6)
    )
    if agents.count < 1:
        raise ValueError(f"agents.count must be at least 1, got {agents.count}")
    if not (0 <= agents.start_x < width and 0 <= agents.start_y < height):
        raise ValueError(
            f"Start ({agents.start_x}, {agents.start_y}) lies outside the grid"
        )

    # Parse layout (ignored when a raster is given)
    layout_raw = raw.get('layout') or {}
    layout = LayoutConfig(
        walls=_parse_walls(layout_raw.get('walls', [])),
        exits=_parse_exits(layout_raw.get('exits', []))
    )

    # Parse simulation config
    sim_raw = raw['simulation']

    # Parse export config (optional)
    export_raw = raw.get('export', {})

    return SimulationConfig(
        grid=grid,
        max_steps=sim_raw['max_steps'],
        agents=agents,
        layout=layout,
        raster=raster,
        csv_enabled=export_raw.get('csv', True),
        seed=sim_raw.get('seed')
    )
