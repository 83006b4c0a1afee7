"""Pipeline orchestration for Stockify."""

from stockify.pipeline.weekly import WeeklyPipeline, WeeklyRunResult, run_weekly_sync

__all__ = [
    "WeeklyPipeline",
    "WeeklyRunResult",
    "run_weekly_sync",
]
