"""Worker colony simulation driven by a hierarchical task network planner."""

__version__ = "0.1.0"
