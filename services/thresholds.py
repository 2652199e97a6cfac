"""Threshold crossing and qualification rules."""

from __future__ import annotations

from dataclasses import dataclass

from config import Config


@dataclass(frozen=True, slots=True)
class ThresholdEvaluation:
    crossed: bool
    qualifies: bool
    remaining: int


def evaluate(total_before: int, total_after: int, threshold: int) -> ThresholdEvaluation:
    """Compare a running total before and after a single write.

    ``crossed`` holds only for the write that moves the total from below the
    threshold to at-or-above it. ``qualifies`` ignores history.
    """
    return ThresholdEvaluation(
        crossed=total_before < threshold <= total_after,
        qualifies=total_after >= threshold,
        remaining=max(0, threshold - total_after),
    )


@dataclass(frozen=True, slots=True)
class ChallengeThresholds:
    weekly_raffle: int
    grand_prize: int
    org_milestone: int
    org_goal: int

    @classmethod
    def from_config(cls, config: Config) -> "ChallengeThresholds":
        goal = config.daily_goal
        org_goal = goal * config.challenge_days * config.participant_count
        return cls(
            weekly_raffle=round(goal * 7 * config.raffle_threshold_pct),
            grand_prize=round(goal * config.challenge_days * config.grand_prize_threshold_pct),
            org_milestone=round(org_goal * config.milestone_pct),
            org_goal=org_goal,
        )
