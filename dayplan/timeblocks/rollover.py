"""
Rollover - the two day-boundary actions.

1. promote_tomorrow: tomorrowTasks becomes todayTasks, tomorrowTasks is removed
2. load_routine_for_tomorrow: routine<Weekday of tomorrow> is copied into
   tomorrowTasks, replacing whatever was planned there

Neither action knows about clocks or last-run markers; DayTransitionScheduler
decides when they run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .documents import TODAY_KEY, TOMORROW_KEY, WEEKDAYS, DocumentStore, routine_key

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    job: str
    source_key: str
    target_key: str
    performed: bool
    reason: str
    blocks: int = 0
    discarded: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return {
            "job": self.job,
            "source_key": self.source_key,
            "target_key": self.target_key,
            "performed": self.performed,
            "reason": self.reason,
            "blocks": self.blocks,
            "discarded": self.discarded,
            "timestamp": self.timestamp,
        }


def weekday_name(day: date) -> str:
    """English weekday name, independent of locale."""
    return WEEKDAYS[day.weekday()]


class Rollover:
    """Moves plans between today, tomorrow and the weekly routines."""

    PROMOTE = "promote_tomorrow"
    ROUTINE = "load_routine"

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    async def promote_tomorrow(self) -> TransitionResult:
        """
        Make tomorrow's plan today's plan.

        Nothing happens when tomorrowTasks is absent or unusable; today's
        plan is left as it is.
        """
        blocks = await self.documents.read_blocks(TOMORROW_KEY)
        if blocks is None:
            logger.info("No plan for tomorrow, today's plan unchanged")
            return TransitionResult(
                job=self.PROMOTE,
                source_key=TOMORROW_KEY,
                target_key=TODAY_KEY,
                performed=False,
                reason="no tomorrowTasks",
            )

        await self.documents.save_blocks(TODAY_KEY, blocks)
        await self.documents.remove(TOMORROW_KEY)

        assigned = sum(1 for b in blocks if b.has_content)
        logger.info("Promoted tomorrow's plan to today (%d blocks, %d assigned)", len(blocks), assigned)
        return TransitionResult(
            job=self.PROMOTE,
            source_key=TOMORROW_KEY,
            target_key=TODAY_KEY,
            performed=True,
            reason="promoted",
            blocks=len(blocks),
        )

    async def load_routine_for_tomorrow(
        self,
        today: date | None = None,
        protect_assigned: bool = False,
    ) -> TransitionResult:
        """
        Instantiate tomorrow's weekday routine as tomorrow's plan.

        Args:
            today: The current date (defaults to date.today())
            protect_assigned: Skip instead of overwriting a tomorrow plan that
                already has assigned blocks

        Returns:
            TransitionResult; performed is False when there is no routine for
            that weekday or the existing plan is protected
        """
        today = today or date.today()
        weekday = weekday_name(today + timedelta(days=1))
        source = routine_key(weekday)

        routine = await self.documents.read_blocks(source)
        if routine is None:
            logger.info("No %s routine, tomorrow's plan unchanged", weekday)
            return TransitionResult(
                job=self.ROUTINE,
                source_key=source,
                target_key=TOMORROW_KEY,
                performed=False,
                reason=f"no {source}",
            )

        existing = await self.documents.read_blocks(TOMORROW_KEY) or []
        assigned = sum(1 for b in existing if b.has_content)
        if assigned and protect_assigned:
            logger.info("Tomorrow already has %d assigned block(s), %s not loaded", assigned, source)
            return TransitionResult(
                job=self.ROUTINE,
                source_key=source,
                target_key=TOMORROW_KEY,
                performed=False,
                reason="tomorrow already planned",
            )
        if assigned:
            logger.warning("Loading %s over tomorrow's plan, %d assigned block(s) discarded", source, assigned)

        await self.documents.save_blocks(TOMORROW_KEY, routine)
        logger.info("Loaded %s into tomorrow (%d blocks)", source, len(routine))
        return TransitionResult(
            job=self.ROUTINE,
            source_key=source,
            target_key=TOMORROW_KEY,
            performed=True,
            reason="loaded",
            blocks=len(routine),
            discarded=assigned,
        )
