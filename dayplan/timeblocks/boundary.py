"""
Boundary adjustment - resize a day without throwing away its plan.

Changing only the day start/end is additive/subtractive: blocks inside both
the old and the new range keep their content, new empty blocks are added at
the head or tail, and blocks outside the new range are discarded.

Changing the interval size is destructive: the whole sequence is
regenerated and every assignment is lost.
"""

import logging

from dayplan.observability.metrics import boundary_adjustments

from .generator import fill_range, generate_for_config, generate_time_blocks
from .invariants import assert_valid_sequence
from .models import ScheduleConfig, TimeBlock, format_clock, parse_clock, reindex

logger = logging.getLogger(__name__)


def adjust_boundaries(
    blocks: list[TimeBlock],
    interval_minutes: int,
    day_start: str | int,
    day_end: str | int,
) -> list[TimeBlock]:
    """
    Fit a sequence to new day boundaries at an unchanged interval.

    Head: blocks starting before the new start are dropped; when the new start
    is earlier, empty blocks are prepended at interval spacing from the new
    start (the one touching the old first block is shortened if needed).
    Tail: blocks ending after the new end are dropped; when the new end is
    later, empty blocks are appended and a partial trailing interval is
    dropped, as in generation.

    Returns:
        Reindexed, contiguous sequence covering [day_start, day_end)
    """
    new_start = parse_clock(day_start)
    new_end = parse_clock(day_end, end=True)
    if interval_minutes <= 0:
        raise ValueError(f"Interval must be positive: {interval_minutes}")
    if new_end <= new_start:
        return []

    kept = [b for b in blocks if b.start >= new_start and b.end <= new_end]
    if not kept:
        if blocks:
            _log_discarded(blocks, new_start, new_end)
        return generate_time_blocks(interval_minutes, new_start, new_end)

    head = fill_range(new_start, kept[0].start, interval_minutes, clip_last=True)
    tail = fill_range(kept[-1].end, new_end, interval_minutes, clip_last=False)

    if len(kept) != len(blocks):
        _log_discarded(blocks, new_start, new_end)

    result = reindex(head + kept + tail)
    assert_valid_sequence(result)
    if head or tail or len(kept) != len(blocks):
        logger.debug(
            "Adjusted day to %s-%s: +%d head, +%d tail, -%d outside",
            format_clock(new_start),
            format_clock(new_end),
            len(head),
            len(tail),
            len(blocks) - len(kept),
        )
    return result


def discarded_blocks(blocks: list[TimeBlock], day_start: str | int, day_end: str | int) -> list[TimeBlock]:
    """Blocks that adjust_boundaries would drop for these boundaries."""
    new_start = parse_clock(day_start)
    new_end = parse_clock(day_end, end=True)
    return [b for b in blocks if b.start < new_start or b.end > new_end]


def apply_schedule_change(
    blocks: list[TimeBlock],
    current: ScheduleConfig,
    new: ScheduleConfig,
) -> list[TimeBlock]:
    """
    Move a sequence from one schedule configuration to another.

    Interval changed -> regenerate from scratch (all content lost).
    Only boundaries changed -> adjust_boundaries.
    Nothing changed -> the same sequence.
    """
    if new == current:
        return blocks

    boundary_adjustments.inc()
    if new.interval_minutes != current.interval_minutes:
        assigned = sum(1 for b in blocks if b.has_content)
        if assigned:
            logger.warning(
                "Interval changed %d -> %d minutes, %d assigned block(s) discarded",
                current.interval_minutes,
                new.interval_minutes,
                assigned,
            )
        return generate_for_config(new)

    return adjust_boundaries(blocks, new.interval_minutes, new.day_start, new.day_end)


def content_lost_by_change(
    blocks: list[TimeBlock],
    current: ScheduleConfig,
    new: ScheduleConfig,
) -> list[TimeBlock]:
    """Assigned blocks whose content a schedule change would discard."""
    if new == current:
        return []
    if new.interval_minutes != current.interval_minutes:
        return [b for b in blocks if b.has_content]
    return [b for b in discarded_blocks(blocks, new.day_start, new.day_end) if b.has_content]


def _log_discarded(blocks: list[TimeBlock], new_start: int, new_end: int) -> None:
    lost = [b for b in blocks if (b.start < new_start or b.end > new_end) and b.has_content]
    if lost:
        logger.warning(
            "Day boundaries now %s-%s, %d assigned block(s) discarded: %s",
            format_clock(new_start),
            format_clock(new_end),
            len(lost),
            ", ".join(b.time_range for b in lost[:5]),
        )
