# dayplan - time-block day planner
"""
Core library for the dayplan CLI and daemon.

The engine lives in dayplan.timeblocks; this package adds storage,
configuration, logging and the transition daemon around it.
"""

__version__ = "0.3.0"
