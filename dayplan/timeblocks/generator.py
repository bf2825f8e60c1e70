"""
Time block generation.

Partitions a day into equal, contiguous blocks. Minutes left over at the end
of the day (when the interval does not divide the day) are dropped: the last
partial interval is never created.
"""

import logging

from .models import NO_PRIORITY, ScheduleConfig, TimeBlock, parse_clock

logger = logging.getLogger(__name__)


def generate_time_blocks(
    interval_minutes: int = 15,
    day_start: str | int = "6:00",
    day_end: str | int = "23:00",
) -> list[TimeBlock]:
    """
    Generate empty blocks covering [day_start, day_end).

    Args:
        interval_minutes: Block length in minutes (> 0)
        day_start: "HH:MM" or minute of day
        day_end: "HH:MM" or minute of day; "00:00" means end of day

    Returns:
        floor((end - start) / interval) blocks with ids "0".."n-1"
    """
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int) or interval_minutes <= 0:
        raise ValueError(f"Interval must be a positive number of minutes: {interval_minutes!r}")

    start = parse_clock(day_start)
    end = parse_clock(day_end, end=True)
    total_minutes = end - start
    if total_minutes <= 0:
        return []

    count = total_minutes // interval_minutes
    return [
        TimeBlock(
            id=str(i),
            start=start + i * interval_minutes,
            end=start + (i + 1) * interval_minutes,
            priority=NO_PRIORITY,
        )
        for i in range(count)
    ]


def generate_for_config(config: ScheduleConfig) -> list[TimeBlock]:
    """Fresh sequence for a schedule configuration."""
    return generate_time_blocks(config.interval_minutes, config.day_start, config.day_end)


def fill_range(start: int, end: int, interval_minutes: int, *, clip_last: bool) -> list[TimeBlock]:
    """
    Empty blocks from start towards end at interval spacing.

    With clip_last the final block is shortened to end exactly at `end`
    (needed when the filler must join an existing block). Without it a
    partial trailing interval is dropped, as in generate_time_blocks.
    Ids are provisional; callers reindex.
    """
    blocks = []
    cursor = start
    while cursor + interval_minutes <= end:
        blocks.append(TimeBlock(id="", start=cursor, end=cursor + interval_minutes))
        cursor += interval_minutes
    if clip_last and cursor < end:
        blocks.append(TimeBlock(id="", start=cursor, end=end))
    return blocks
