"""I/O package for the Q-learning simulation."""

from .csv_writer import CSVWriter
from .reporter import Reporter, render_policy

__all__ = ['CSVWriter', 'Reporter', 'render_policy']
