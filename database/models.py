"""Data access layer models implemented with handcrafted queries."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from core.constants import ActivityKind, PrizeType


@dataclass(slots=True)
class Team:
    id: int
    name: str
    color: Optional[str]
    icon: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Team":
        return cls(id=row["id"], name=row["name"], color=row["color"], icon=row["icon"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Participant:
    id: int
    username: str
    slack_user_id: Optional[str]
    team_id: Optional[int]
    avatar_emoji: Optional[str]
    banked_steps: int
    raffle_tickets: int
    grand_prize_entry: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Participant":
        return cls(
            id=row["id"],
            username=row["username"],
            slack_user_id=row["slack_user_id"],
            team_id=row["team_id"],
            avatar_emoji=row["avatar_emoji"],
            banked_steps=row["banked_steps"],
            raffle_tickets=row["raffle_tickets"],
            grand_prize_entry=bool(row["grand_prize_entry"]),
        )

    @property
    def mention(self) -> str:
        """Slack mention when the Slack id is known, bold name otherwise."""
        if self.slack_user_id:
            return f"<@{self.slack_user_id}>"
        return f"*{self.username}*"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ActivityLogEntry:
    id: int
    participant_id: int
    step_count: int
    date_logged: str
    activity_kind: ActivityKind
    activity_label: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ActivityLogEntry":
        return cls(
            id=row["id"],
            participant_id=row["participant_id"],
            step_count=row["step_count"],
            date_logged=row["date_logged"],
            activity_kind=ActivityKind(row["activity_kind"]),
            activity_label=row["activity_label"],
        )

    @property
    def activity_type(self) -> str:
        return self.activity_kind.display(self.activity_label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "participant_id": self.participant_id,
            "step_count": self.step_count,
            "date_logged": self.date_logged,
            "activity_kind": self.activity_kind.value,
            "activity_label": self.activity_label,
            "activity_type": self.activity_type,
        }


@dataclass(slots=True)
class PrizeDefinition:
    id: int
    week_number: Optional[int]
    prize_type: PrizeType
    title: str
    description: Optional[str]
    emoji: Optional[str]
    winner_participant_id: Optional[int]
    drawn_at: Optional[str]
    draw_seed: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PrizeDefinition":
        return cls(
            id=row["id"],
            week_number=row["week_number"],
            prize_type=PrizeType(row["prize_type"]),
            title=row["title"],
            description=row["description"],
            emoji=row["emoji"],
            winner_participant_id=row["winner_participant_id"],
            drawn_at=row["drawn_at"],
            draw_seed=row["draw_seed"],
        )

    @property
    def is_drawn(self) -> bool:
        return self.winner_participant_id is not None

    @property
    def label(self) -> str:
        if self.prize_type is PrizeType.GRAND:
            return "Grand prize"
        return f"Week {self.week_number} prize"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["prize_type"] = self.prize_type.value
        data["already_drawn"] = self.is_drawn
        return data


@dataclass(slots=True)
class PrizeEntry:
    id: int
    participant_id: int
    prize_id: int
    week_number: Optional[int]
    opted_in: bool
    qualified: bool
    created_at: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PrizeEntry":
        return cls(
            id=row["id"],
            participant_id=row["participant_id"],
            prize_id=row["prize_id"],
            week_number=row["week_number"],
            opted_in=bool(row["opted_in"]),
            qualified=bool(row["qualified"]),
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class MilestoneEvent:
    id: int
    milestone_type: str
    threshold_value: int
    total_steps_at_trigger: int
    triggered_by_participant_id: Optional[int]
    triggered_by_log_id: Optional[int]
    announced_at: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MilestoneEvent":
        return cls(
            id=row["id"],
            milestone_type=row["milestone_type"],
            threshold_value=row["threshold_value"],
            total_steps_at_trigger=row["total_steps_at_trigger"],
            triggered_by_participant_id=row["triggered_by_participant_id"],
            triggered_by_log_id=row["triggered_by_log_id"],
            announced_at=row["announced_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class DailyWinner:
    id: int
    date: str
    participant_id: int
    step_count: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DailyWinner":
        return cls(
            id=row["id"],
            date=row["date"],
            participant_id=row["participant_id"],
            step_count=row["step_count"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
