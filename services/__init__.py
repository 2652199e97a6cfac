"""Services package."""

from .async_runner import LoopRunner
from .cache import StatsCache
from .calendar import ChallengeCalendar
from .thresholds import ChallengeThresholds, ThresholdEvaluation, evaluate

__all__ = [
    "LoopRunner",
    "StatsCache",
    "ChallengeCalendar",
    "ChallengeThresholds",
    "ThresholdEvaluation",
    "evaluate",
]
