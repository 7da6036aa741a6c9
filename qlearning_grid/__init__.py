"""Tabular Q-learning agents navigating a grid toward an exit."""

__version__ = "0.1.0"
