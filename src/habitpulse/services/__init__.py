"""Service module exports."""

from . import aggregates, completion, habits, notes, progress, snapshots, stats_cache, streaks

__all__ = [
    "aggregates",
    "completion",
    "habits",
    "notes",
    "progress",
    "snapshots",
    "stats_cache",
    "streaks",
]
