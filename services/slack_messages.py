"""Slack Block Kit payload builders."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from core.constants import ConversionRates, NotificationDefaults
from database.models import Participant, PrizeDefinition, Team

Block = Dict[str, Any]


@dataclass(slots=True)
class SlackMessage:
    """A prepared post: ``text`` is the notification fallback."""
    kind: str
    text: str
    blocks: List[Block] = field(default_factory=list)

    def payload(self, channel: str) -> Dict[str, Any]:
        return {
            "channel": channel,
            "text": self.text[: NotificationDefaults.FALLBACK_TEXT_LIMIT],
            "blocks": self.blocks,
        }


WEEKLY_CELEBRATIONS = (
    "Your legs called. They want a medal. 🏅",
    "Your couch is filing a missing persons report. 🛋️😢",
    "Plot twist: You're now officially a walking legend. 🦵✨",
    "Your future self just high-fived you through time. 🙌",
)

GRAND_CELEBRATIONS = (
    "You absolute LEGEND. 👑",
    "Somewhere, a treadmill is weeping with pride. 🏃‍♀️😭",
    "Your dedication has been noted by the fitness gods. ⚡",
    "Your legs have earned their own Wikipedia page. 📚",
)


def _n(value: int) -> str:
    return f"{value:,}"


def section(text: str) -> Block:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def context(text: str) -> Block:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def header(text: str) -> Block:
    return {"type": "header", "text": {"type": "plain_text", "text": text, "emoji": True}}


def divider() -> Block:
    return {"type": "divider"}


def fun_stat(steps: int) -> str:
    miles = steps / ConversionRates.STEPS_PER_MILE
    calories = round(steps * ConversionRates.CALORIES_PER_STEP)
    return f"📏 {miles:.1f} miles • 🔥 {_n(calories)} calories"


def _avatar(participant: Participant) -> str:
    return participant.avatar_emoji or "🏃"


def _team_line(team: Optional[Team]) -> str:
    if team is None:
        return ""
    return f"{team.icon or ''} {team.name}".strip()


def activity_logged(
    participant: Participant,
    team: Optional[Team],
    steps: int,
    activity_type: str,
    is_bonus: bool,
    daily_total: int,
    challenge_total: int,
    date_logged: date,
    today: date,
    daily_goal: int,
) -> SlackMessage:
    emoji = "🌟" if is_bonus else "👟"
    when = "just logged" if date_logged == today else f"logged for {date_logged.isoformat()}"

    callout = ""
    for floor, label in NotificationDefaults.DAILY_GOAL_CALLOUTS:
        if daily_total >= floor:
            callout = f" {label}"
            break
    else:
        if daily_total >= daily_goal:
            callout = " ✅ *Daily goal crushed!*"

    icon = team.icon if team and team.icon else ""
    headline = f"{emoji} *{participant.username}* {icon} {when} *{_n(steps)} steps*!{callout}"
    return SlackMessage(
        kind="activity_logged",
        text=f"{participant.username} {when} {_n(steps)} steps",
        blocks=[
            section(headline),
            context(
                f"📅 Today: *{_n(daily_total)}* steps | 📊 Challenge: *{_n(challenge_total)}* steps | {activity_type}"
            ),
        ],
    )


def weekly_qualified(
    participant: Participant, week: int, weekly_steps: int, prize: Optional[PrizeDefinition]
) -> SlackMessage:
    prize_line = f"{prize.emoji or '🎁'} Now in the running for: *{prize.title}*" if prize else "🎁 Weekly prize"
    return SlackMessage(
        kind="weekly_qualified",
        text=f"{participant.username} qualified for the Week {week} prize drawing",
        blocks=[
            section(
                f"🎉 *WEEKLY PRIZE ALERT!* 🎉\n\n{_avatar(participant)} *{participant.username}* "
                f"just qualified for the *Week {week}* prize drawing!"
            ),
            section(f"> _{random.choice(WEEKLY_CELEBRATIONS)}_"),
            context(f"🎯 *{_n(weekly_steps)} steps* this week • {fun_stat(weekly_steps)}"),
            context(prize_line),
        ],
    )


def grand_qualified(
    participant: Participant, total_steps: int, prize: Optional[PrizeDefinition]
) -> SlackMessage:
    title = prize.title if prize else "The Grand Prize"
    return SlackMessage(
        kind="grand_qualified",
        text=f"{participant.username} qualified for the grand prize drawing",
        blocks=[
            section("🏆✨ *GRAND PRIZE QUALIFIER ALERT!* ✨🏆"),
            section(
                f"{_avatar(participant)} *{participant.username}* has unlocked entry into the *GRAND PRIZE* "
                f"drawing!\n\n> _{random.choice(GRAND_CELEBRATIONS)}_"
            ),
            section(
                f"📊 *The Stats Don't Lie:*\n• 🚶 *{_n(total_steps)} total steps*\n• {fun_stat(total_steps)}\n"
                f"• 🎟️ Now entered to win: *{title}*"
            ),
        ],
    )


def halfway_milestone(
    total_steps: int,
    challenge_goal: int,
    participant: Optional[Participant],
    grand_prize: Optional[PrizeDefinition],
    grand_threshold: int,
    app_url: str = "",
) -> SlackMessage:
    trigger = participant.mention if participant else "Someone"
    blocks = [
        header("🎉 WE'RE HALFWAY THERE! 🎉"),
        section(
            f"<!here> *INCREDIBLE TEAM ACHIEVEMENT!*\n\nWe have collectively walked *{_n(total_steps)} steps*, "
            f"that's *HALF* of our goal! 🎊\n\n{trigger} pushed us over the line with their latest log!"
        ),
    ]
    if grand_prize is not None:
        blocks.append(section(f"*🏆 THE GRAND PRIZE:* {grand_prize.emoji or ''} *{grand_prize.title}*"))
    blocks.append(
        section(
            f"*🎟️ HOW TO ENTER THE DRAWING:*\nHit *{_n(grand_threshold)} steps* and you're automatically entered!"
        )
    )
    remaining = max(0, challenge_goal - total_steps)
    closing = f"*🔥 THE SECOND HALF BEGINS NOW!*\n*Only {_n(remaining)} steps to go!*"
    if app_url:
        closing += f"\n\n<{app_url}|📲 Log Your Steps>"
    blocks.append(section(closing))
    return SlackMessage(kind="halfway_milestone", text=f"Halfway there! {_n(total_steps)} steps", blocks=blocks)


def weekly_winner(
    prize: PrizeDefinition, winner: Participant, team: Optional[Team], qualified_count: int, threshold: int
) -> SlackMessage:
    return SlackMessage(
        kind="weekly_winner",
        text=f"Week {prize.week_number} prize winner: {winner.username}",
        blocks=[
            header(f"🎉 WEEK {prize.week_number} PRIZE WINNER! 🎉"),
            section(
                f"*Congratulations {winner.mention}!* {winner.avatar_emoji or ''}\n\n"
                f"You've won the *{prize.emoji or ''} {prize.title}*!\n{_team_line(team)}"
            ),
            context(
                f"🎲 Randomly selected from *{qualified_count}* qualified participants who hit "
                f"{_n(threshold)} steps during Week {prize.week_number}. Great job everyone! 👏"
            ),
        ],
    )


def grand_winner(
    prize: PrizeDefinition,
    winner: Participant,
    team: Optional[Team],
    qualified_count: int,
    threshold: int,
    total_steps: int,
) -> SlackMessage:
    return SlackMessage(
        kind="grand_winner",
        text=f"Grand prize winner: {winner.username}",
        blocks=[
            section("🥁 *DRUMROLL PLEASE...* 🥁"),
            section(
                f"🎊 *CONGRATULATIONS {winner.mention}!* {winner.avatar_emoji or ''} 🎊\n\n"
                f"> _{random.choice(GRAND_CELEBRATIONS)}_"
            ),
            section(f"You've won the *{prize.emoji or ''} {prize.title}*!\n{_team_line(team)}"),
            section(f"📊 *{winner.username}'s Stats:*\n• 🚶 *{_n(total_steps)} total steps*\n• {fun_stat(total_steps)}"),
            context(
                f"🎲 Randomly selected from *{qualified_count}* participants who hit {_n(threshold)}+ steps."
            ),
        ],
    )


def _leaderboard_lines(rows: Sequence[Dict[str, Any]], limit: int = 5) -> str:
    medals = ("🥇", "🥈", "🥉")
    lines = []
    for index, row in enumerate(rows[:limit]):
        prefix = medals[index] if index < len(medals) else f"{index + 1}."
        lines.append(f"{prefix} {row.get('avatar_emoji') or ''} *{row['username']}*: {_n(row['total_steps'])}")
    return "\n".join(lines) or "_No steps logged yet_"


def _team_lines(rows: Sequence[Dict[str, Any]]) -> str:
    return "\n".join(
        f"{row.get('icon') or ''} {row['name']}: *{_n(row['total_steps'])}* total" for row in rows
    ) or "_No teams yet_"


def daily_digest(
    day: date,
    today_total: int,
    goal_hitters: int,
    leaderboard: Sequence[Dict[str, Any]],
    teams: Sequence[Dict[str, Any]],
    progress: Dict[str, Any],
    week: int,
    weekly_prize: Optional[PrizeDefinition],
    qualified_count: int,
    raffle_threshold: int,
    days_left_in_week: int,
) -> SlackMessage:
    miles = today_total / ConversionRates.STEPS_PER_MILE
    blocks = [
        header(f"📣 Daily Update for {day.isoformat()}"),
        section(
            f"*📊 TODAY'S STATS*\n*{_n(today_total)}* steps logged\n🎯 {goal_hitters} people hit the daily goal\n"
            f"🚶 {miles:.1f} miles"
        ),
        section(f"*🏃 TODAY'S LEADERBOARD*\n{_leaderboard_lines(leaderboard)}"),
        section(f"*⚔️ TEAM BATTLE*\n{_team_lines(teams)}"),
        section(
            f"*🌍 Challenge Progress:* {progress['percentage']}%\n*{_n(progress['total_steps'])}* steps toward "
            f"{_n(progress['goal'])} goal!"
        ),
    ]
    if weekly_prize is not None:
        plural = "s" if days_left_in_week != 1 else ""
        blocks.append(
            section(
                f"*🎁 THIS WEEK'S PRIZE: {weekly_prize.emoji or ''} {weekly_prize.title}*\n"
                f"🎯 *{_n(raffle_threshold)}* steps this week to qualify!\n"
                f"⏰ *{days_left_in_week}* day{plural} left to enter!"
            )
        )
    blocks.append(context(f"🎟️ *Week {week} Raffle:* {qualified_count} qualified"))
    return SlackMessage(kind="daily_digest", text=f"Daily update: {_n(today_total)} steps today", blocks=blocks)


def morning_recap(
    day: date,
    top_walker: Optional[Participant],
    top_steps: int,
    win_count: int,
    leaderboard: Sequence[Dict[str, Any]],
    teams: Sequence[Dict[str, Any]],
    total_steps: int,
    participant_count: int,
    goal_hitters: int,
    winner_announcement: Optional[SlackMessage] = None,
) -> SlackMessage:
    blocks: List[Block] = [
        header("☀️ Good Morning, Walkers!"),
        context(f"Results from *{day.isoformat()}*"),
    ]
    if top_walker is not None:
        crown = "👑" * min(win_count, 5)
        blocks.append(
            section(
                f"🏆 *TOP WALKER*\n\n👑 {top_walker.mention}\n*{_n(top_steps)} steps!*\n\n"
                f"Daily crowns: {crown} ({win_count})"
            )
        )
    blocks.extend(
        [
            section(f"*📊 LEADERBOARD*\n{_leaderboard_lines(leaderboard)}"),
            section(
                f"*📈 Total Steps*\n{_n(total_steps)}\n*🎯 Hit Daily Goal*\n{goal_hitters} of {participant_count}"
            ),
            section(f"*⚔️ TEAM BATTLE*\n{_team_lines(teams)}"),
        ]
    )
    if winner_announcement is not None:
        blocks.append(divider())
        blocks.extend(winner_announcement.blocks)
    return SlackMessage(kind="morning_recap", text=f"Morning recap for {day.isoformat()}", blocks=blocks)
