"""
Day Brief - what is planned, what is free, and where "now" falls.

- locate_current_block: the block containing a minute of the day and how far
  through it we are (the red "now" bar)
- summarize_day: counts and minutes per priority
- generate_day_brief: a short text rendering of a day's plan
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .models import NO_PRIORITY, TimeBlock, format_clock
from .priorities import PriorityRegistry

logger = logging.getLogger(__name__)


@dataclass
class CurrentBlock:
    index: int
    block: TimeBlock
    fraction: float  # elapsed share of the block, 0 <= fraction < 1


@dataclass
class DaySummary:
    total_blocks: int
    assigned_blocks: int
    empty_blocks: int
    planned_minutes: int
    free_minutes: int
    day_start: int | None = None
    day_end: int | None = None
    minutes_by_priority: dict[str, int] = field(default_factory=dict)


def minute_of_day(moment: datetime) -> float:
    return moment.hour * 60 + moment.minute + moment.second / 60


def locate_current_block(blocks: list[TimeBlock], minute: float | datetime) -> CurrentBlock | None:
    """
    Block whose [start, end) contains `minute`.

    Returns None before the first block, after the last one, or for an
    empty sequence.
    """
    if isinstance(minute, datetime):
        minute = minute_of_day(minute)
    for index, block in enumerate(blocks):
        if block.start <= minute < block.end:
            return CurrentBlock(index=index, block=block, fraction=(minute - block.start) / block.duration)
    return None


def summarize_day(blocks: list[TimeBlock]) -> DaySummary:
    assigned = [b for b in blocks if not b.is_empty]
    by_priority: dict[str, int] = {}
    for block in assigned:
        if block.priority != NO_PRIORITY:
            by_priority[block.priority] = by_priority.get(block.priority, 0) + block.duration

    planned = sum(b.duration for b in assigned)
    total = sum(b.duration for b in blocks)
    return DaySummary(
        total_blocks=len(blocks),
        assigned_blocks=len(assigned),
        empty_blocks=len(blocks) - len(assigned),
        planned_minutes=planned,
        free_minutes=total - planned,
        day_start=blocks[0].start if blocks else None,
        day_end=blocks[-1].end if blocks else None,
        minutes_by_priority=dict(sorted(by_priority.items())),
    )


def generate_day_brief(
    blocks: list[TimeBlock],
    title: str = "Today",
    now: datetime | None = None,
    registry: PriorityRegistry | None = None,
    format: str = "markdown",
) -> str:
    """
    Render a day's plan.

    Args:
        blocks: The day's sequence
        title: Heading ("Today", "Tomorrow", "Monday routine", ...)
        now: When given, the block in progress is marked
        registry: Used for priority labels
        format: Output format ('markdown' or 'plain')

    Returns:
        Formatted brief string
    """
    summary = summarize_day(blocks)
    current = locate_current_block(blocks, now) if now else None
    if format == "markdown":
        return _format_markdown(title, blocks, summary, current, registry)
    return _format_plain(title, blocks, summary, current, registry)


def _hours(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"


def _label(tag: str, registry: PriorityRegistry | None) -> str:
    entry = registry.get(tag) if registry else None
    return entry.label if entry else tag


def _format_markdown(
    title: str,
    blocks: list[TimeBlock],
    summary: DaySummary,
    current: CurrentBlock | None,
    registry: PriorityRegistry | None,
) -> str:
    lines = [f"*🎯 {title}*", ""]

    if not blocks:
        lines.append("_No blocks planned_")
        return "\n".join(lines)

    lines.append("📊 *Time Overview*")
    lines.append(f"• Day: {format_clock(summary.day_start)}-{format_clock(summary.day_end)}")
    lines.append(f"• Planned: {_hours(summary.planned_minutes)} in {summary.assigned_blocks} block(s)")
    lines.append(f"• Free: {_hours(summary.free_minutes)}")
    for tag, minutes in summary.minutes_by_priority.items():
        lines.append(f"• {_label(tag, registry)}: {_hours(minutes)}")
    lines.append("")

    if current:
        block = current.block
        lines.append(f"*⏱ Now: {block.time_range}* ({int(current.fraction * 100)}% through)")
        lines.append(f"• {block.title or 'Empty'}")
        lines.append("")

    assigned = [b for b in blocks if not b.is_empty]
    if assigned:
        lines.append("*📅 Planned Blocks*")
        for block in assigned:
            tag = f" [{_label(block.priority, registry)}]" if block.priority != NO_PRIORITY else ""
            lines.append(f"• {block.time_range} {block.title}{tag}")

    return "\n".join(lines).rstrip()


def _format_plain(
    title: str,
    blocks: list[TimeBlock],
    summary: DaySummary,
    current: CurrentBlock | None,
    registry: PriorityRegistry | None,
) -> str:
    lines = [title, "=" * 40, ""]

    if not blocks:
        lines.append("No blocks planned")
        return "\n".join(lines)

    lines.append("TIME OVERVIEW")
    lines.append(f"  Day: {format_clock(summary.day_start)}-{format_clock(summary.day_end)}")
    lines.append(f"  Planned: {summary.planned_minutes} min")
    lines.append(f"  Free: {summary.free_minutes} min")
    lines.append("")

    lines.append("BLOCKS")
    for index, block in enumerate(blocks):
        marker = ">" if current and current.index == index else " "
        tag = f" ({_label(block.priority, registry)})" if block.priority != NO_PRIORITY else ""
        lines.append(f" {marker}{block.time_range} {block.title or 'Empty'}{tag}")

    return "\n".join(lines)
