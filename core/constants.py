"""Application-wide constants and domain enums."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple


class ActivityKind(str, Enum):
    """Closed set of loggable activities; CUSTOM carries a free-text label."""
    WALKING = "Walking"
    RUNNING = "Running"
    LIFTING = "Bonus: Lifting"
    DETOX = "Bonus: Detox"
    COLD_PLUNGE = "Bonus: Cold Plunge"
    SAUNA = "Bonus: Sauna"
    STRETCH = "Bonus: Stretch"
    SLEEP = "Bonus: Sleep"
    HYDRATION = "Bonus: Hydration"
    GRATITUDE = "Bonus: Gratitude"
    MEDITATION = "Bonus: Meditation"
    CUSTOM = "Custom"

    @property
    def is_bonus(self) -> bool:
        return self.value.startswith("Bonus:")

    @property
    def short_name(self) -> str:
        return self.value.split(":", 1)[-1].strip()

    def display(self, label: Optional[str] = None) -> str:
        if self is ActivityKind.CUSTOM and label:
            return label
        return self.value


def parse_activity(text: Optional[str]) -> Tuple[ActivityKind, Optional[str]]:
    """Resolve free text to an activity kind.

    Matches the stored value ("Bonus: Sauna") or the short name ("sauna"),
    case-insensitively. Anything else becomes ``CUSTOM`` with the original
    text kept as its label. Empty input means walking.
    """
    if text is None or not text.strip():
        return ActivityKind.WALKING, None

    cleaned = " ".join(text.split())
    lowered = cleaned.lower()
    for kind in ActivityKind:
        if kind is ActivityKind.CUSTOM:
            continue
        if lowered in (kind.value.lower(), kind.short_name.lower()):
            return kind, None
    return ActivityKind.CUSTOM, cleaned


# Default step award for each bonus activity
BONUS_STEP_VALUES = {
    ActivityKind.LIFTING: 1500,
    ActivityKind.DETOX: 1200,
    ActivityKind.COLD_PLUNGE: 1000,
    ActivityKind.SAUNA: 800,
    ActivityKind.STRETCH: 750,
    ActivityKind.SLEEP: 500,
    ActivityKind.MEDITATION: 500,
    ActivityKind.HYDRATION: 300,
    ActivityKind.GRATITUDE: 300,
}


class PrizeType(str, Enum):
    """Prize categories."""
    WEEKLY = "weekly"
    GRAND = "grand"


class MilestoneType(str, Enum):
    """One-time organisation-wide milestones."""
    HALFWAY = "50_percent"


class StepLimits:
    """Bounds for a single activity log."""
    MIN_STEPS = 1
    MAX_STEPS_PER_LOG = 50_000


class DatabaseDefaults:
    """Default database configuration."""
    POOL_SIZE = 10
    BUSY_TIMEOUT = 5000  # milliseconds


class NotificationDefaults:
    """Slack notification defaults."""
    TIMEOUT_SECONDS = 10.0
    FALLBACK_TEXT_LIMIT = 300
    DAILY_GOAL_CALLOUTS = (
        (15000, "🔥 *BEAST MODE!*"),
        (10000, "🎯 *10K Club!*"),
    )


class ConversionRates:
    """Approximate step conversions used in digests."""
    STEPS_PER_MILE = 2222
    CALORIES_PER_STEP = 0.05


# Collective journey map (cumulative org steps -> location)
JOURNEY_MILESTONES: Tuple[Tuple[int, str], ...] = (
    (0, "Starting Point (HQ)"),
    (500_000, "Blue Lagoon, Iceland"),
    (1_000_000, "Kyoto Bamboo Forest"),
    (1_500_000, "Machu Picchu"),
    (2_000_000, "Great Barrier Reef"),
    (2_500_000, "The Moon"),
)
