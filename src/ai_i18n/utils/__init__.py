"""
Utility module for the ai-i18n pipeline.

Submodules:
    progress: Live progress tracking and display of a run.
"""

from .progress import UnitStatus, UnitProgress, ProgressTracker, ProgressDisplay

__all__ = ["UnitStatus", "UnitProgress", "ProgressTracker", "ProgressDisplay"]
