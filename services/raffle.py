"""Prize raffle: one uniformly random winner, recorded exactly once."""

from __future__ import annotations

import hashlib
import os
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from core import get_logger
from core.constants import PrizeType
from core.exceptions import PrizeNotFoundError, ValidationError
from database.models import Participant, PrizeDefinition
from database.repositories import ParticipantRepository, PrizeRepository, TeamRepository
from services import slack_messages
from services.notifier import NotificationDispatcher
from services.step_reader import StepReader
from services.thresholds import ChallengeThresholds

logger = get_logger(__name__)

SEED_RANDOM_BYTES = 32


def generate_seed() -> str:
    """SHA-256 hex digest of the current timestamp and fresh random bytes."""
    timestamp = datetime.now(timezone.utc).isoformat()
    combined = f"{timestamp}{os.urandom(SEED_RANDOM_BYTES).hex()}"
    return hashlib.sha256(combined.encode()).hexdigest()


def pick(candidates: Sequence[int], seed: str, rng: Optional[random.Random] = None) -> int:
    """Uniform choice; the seed fully determines the result unless ``rng`` is given."""
    if not candidates:
        raise ValueError("cannot pick from an empty candidate list")
    chooser = rng if rng is not None else random.Random(int(seed, 16))
    return candidates[chooser.randrange(len(candidates))]


@dataclass(slots=True)
class DrawResult:
    prize: PrizeDefinition
    winner: Optional[Participant]
    already_drawn: bool
    qualified_count: int
    seed: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.winner is not None and not self.already_drawn

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "already_drawn": self.already_drawn,
            "winner": self.winner.to_dict() if self.winner else None,
            "prize": self.prize.to_dict(),
            "qualified_count": self.qualified_count,
        }
        if self.seed:
            data["seed"] = self.seed
        return data


class RaffleDrawer:
    """Draws prize winners among qualified, opted-in entrants.

    The winner write is a conditional update on ``winner_participant_id IS
    NULL``; a concurrent drawer that loses it reports the stored winner as
    already drawn instead of overwriting it.
    """

    def __init__(
        self,
        prizes: PrizeRepository,
        participants: ParticipantRepository,
        teams: TeamRepository,
        reader: StepReader,
        thresholds: ChallengeThresholds,
        dispatcher: NotificationDispatcher,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.prizes = prizes
        self.participants = participants
        self.teams = teams
        self.reader = reader
        self.thresholds = thresholds
        self.dispatcher = dispatcher
        self.rng = rng

    async def _require_prize(self, prize_id: int) -> PrizeDefinition:
        prize = await self.prizes.get(prize_id)
        if prize is None:
            raise PrizeNotFoundError(f"Prize {prize_id} not found")
        return prize

    async def draw(self, prize_id: int, announce: bool = False) -> DrawResult:
        """Draw a winner for a prize, or report the one already stored.

        Args:
            prize_id: Prize to draw.
            announce: Queue the winner post when a new winner is recorded.

        Returns:
            DrawResult: ``success`` for a fresh winner, ``already_drawn`` with
            the stored winner otherwise, or no winner when nobody qualified.

        Raises:
            PrizeNotFoundError: Unknown prize id.
        """
        prize = await self._require_prize(prize_id)
        candidates = await self.prizes.eligible_participant_ids(prize.id)

        if prize.is_drawn:
            logger.info(f"{prize.label} already drawn (winner {prize.winner_participant_id})")
            return await self._already_drawn(prize, len(candidates))

        if not candidates:
            logger.info(f"{prize.label}: no qualified entrants, nothing drawn")
            return DrawResult(prize=prize, winner=None, already_drawn=False, qualified_count=0)

        seed = generate_seed()
        winner_id = pick(candidates, seed, self.rng)
        drawn_at = datetime.now(timezone.utc).isoformat()

        if not await self.prizes.set_winner_if_unset(prize.id, winner_id, drawn_at, seed):
            logger.warning(f"{prize.label}: lost draw race, returning stored winner")
            stored = await self._require_prize(prize.id)
            return await self._already_drawn(stored, len(candidates))

        prize = await self._require_prize(prize.id)
        winner = await self.participants.get(winner_id)
        logger.info(
            f"{prize.label} drawn: participant {winner_id} from {len(candidates)} entrants (seed {seed[:16]}...)"
        )
        result = DrawResult(
            prize=prize, winner=winner, already_drawn=False, qualified_count=len(candidates), seed=seed
        )
        if announce:
            await self.announce(result)
        return result

    async def _already_drawn(self, prize: PrizeDefinition, qualified_count: int) -> DrawResult:
        winner = (
            await self.participants.get(prize.winner_participant_id)
            if prize.winner_participant_id is not None
            else None
        )
        return DrawResult(
            prize=prize,
            winner=winner,
            already_drawn=True,
            qualified_count=qualified_count,
            seed=prize.draw_seed,
        )

    async def draw_week(self, week: int, announce: bool = False) -> DrawResult:
        prize = await self.resolve_week(week)
        return await self.draw(prize.id, announce=announce)

    async def draw_grand(self, announce: bool = False) -> DrawResult:
        prize = await self.resolve_grand()
        return await self.draw(prize.id, announce=announce)

    async def announce(self, result: DrawResult) -> Optional[slack_messages.SlackMessage]:
        message = await self.winner_message(result)
        if message is not None:
            self.dispatcher.dispatch(message)
        return message

    async def announce_stored(self, prize: PrizeDefinition) -> DrawResult:
        """Re-post the winner of a prize that was already drawn.

        Args:
            prize: A weekly or grand prize definition.

        Returns:
            The stored draw, with ``already_drawn`` set.

        Raises:
            ValidationError: The prize has no winner yet.
        """
        if not prize.is_drawn:
            raise ValidationError(f"{prize.label} has not been drawn yet")
        candidates = await self.prizes.eligible_participant_ids(prize.id)
        result = await self._already_drawn(prize, len(candidates))
        await self.announce(result)
        logger.info(f"{prize.label}: re-announced winner {prize.winner_participant_id}")
        return result

    async def winner_message(self, result: DrawResult) -> Optional[slack_messages.SlackMessage]:
        if result.winner is None:
            return None
        team = await self.teams.get(result.winner.team_id) if result.winner.team_id is not None else None
        if result.prize.prize_type is PrizeType.GRAND:
            total = await self.reader.participant_challenge_total(result.winner.id)
            return slack_messages.grand_winner(
                result.prize, result.winner, team, result.qualified_count, self.thresholds.grand_prize, total
            )
        return slack_messages.weekly_winner(
            result.prize, result.winner, team, result.qualified_count, self.thresholds.weekly_raffle
        )

    async def preview(self, prize_id: int) -> Dict[str, Any]:
        """Who would be in the hat, without drawing.

        Args:
            prize_id: Prize to inspect.

        Returns:
            Dict with the prize, its drawn flag, the qualified count and the
            qualified, opted-in entrants.
        """
        prize = await self._require_prize(prize_id)
        candidates = await self.prizes.eligible_participant_ids(prize.id)
        entrants = []
        for participant_id in candidates:
            participant = await self.participants.get(participant_id)
            if participant is not None:
                entrants.append(participant.to_dict())
        return {
            "prize": prize.to_dict(),
            "already_drawn": prize.is_drawn,
            "qualified_count": len(entrants),
            "entrants": entrants,
        }

    async def resolve_week(self, week: int) -> PrizeDefinition:
        if week < 1 or week > self.reader.calendar.weeks:
            raise ValidationError(f"week must be between 1 and {self.reader.calendar.weeks}")
        prize = await self.prizes.get_weekly(week)
        if prize is None:
            raise PrizeNotFoundError(f"No prize defined for week {week}")
        return prize

    async def resolve_grand(self) -> PrizeDefinition:
        prize = await self.prizes.get_grand()
        if prize is None:
            raise PrizeNotFoundError("No grand prize defined")
        return prize
