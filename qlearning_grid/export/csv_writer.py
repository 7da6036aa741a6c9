"""CSV export functionality for the Q-learning simulation."""

import csv
from pathlib import Path
from typing import IO, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import SimulationState


class CSVWriter:
    """
    Incremental per-tick log, used as a context manager around the run.

    Output format:
        step,agent_id,x,y,state,action,reward,outcome
        1,1,1,0,active,east,0.0,moved
    """

    FIELDNAMES = ['step', 'agent_id', 'x', 'y', 'state',
                  'action', 'reward', 'outcome']

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self.file: Optional[IO[str]] = None
        self.writer: Optional[csv.DictWriter] = None

    def __enter__(self) -> "CSVWriter":
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.DictWriter(self.file, fieldnames=self.FIELDNAMES)
        self.writer.writeheader()
        return self

    def append(self, state: "SimulationState") -> None:
        """Write the rows of every agent that acted this step."""
        if self.writer is None:
            raise ValueError(f"{self.output_path} is not open for writing")
        self.writer.writerows(state.to_csv_rows())
        self.file.flush()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.file:
            self.file.close()
        self.file = None
        self.writer = None
        return False
