"""
Time block data model.

Times are integer minutes since midnight everywhere inside the engine.
"HH:MM" strings only appear at the JSON boundary (to_dict here, the pydantic
records in schemas.py on the way in) and in user input. An end time of
"00:00" means midnight at the end of the day, minute 1440.
"""

import json
import re
from dataclasses import dataclass, replace

MINUTES_PER_DAY = 1440
NO_PRIORITY = "none"

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_clock(value: str | int, *, end: bool = False) -> int:
    """
    Convert "H:MM"/"HH:MM" (or a minute count) to minutes since midnight.

    With end=True, midnight ("00:00" or 0) is read as 1440 so that a day
    ending at midnight has positive length.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid time: {value!r}")
    if isinstance(value, int):
        minutes = value
    else:
        match = _CLOCK_RE.match(value.strip())
        if not match:
            raise ValueError(f"Invalid time format {value!r} (use HH:MM)")
        hours, mins = int(match.group(1)), int(match.group(2))
        if mins >= 60:
            raise ValueError(f"Invalid minutes in {value!r}")
        minutes = hours * 60 + mins

    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Time out of range: {value!r}")
    if end and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def format_clock(minutes: int) -> str:
    """Minutes since midnight to "HH:MM". 1440 wraps to "00:00"."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time_range(time_range: str) -> tuple[int, int]:
    """"06:00-06:15" -> (360, 375). "23:45-00:00" -> (1425, 1440)."""
    try:
        start_text, end_text = time_range.split("-")
    except ValueError as e:
        raise ValueError(f"Invalid time range {time_range!r}") from e
    start = parse_clock(start_text)
    end = parse_clock(end_text, end=True)
    if end <= start:
        raise ValueError(f"Time range {time_range!r} ends before it starts")
    return start, end


def format_time_range(start: int, end: int) -> str:
    return f"{format_clock(start)}-{format_clock(end)}"


@dataclass(frozen=True)
class TimeBlock:
    """
    One scheduling slot, [start, end) in minutes.

    `id` is the block's position in its sequence as a string. It is derived
    and gets reassigned after every structural change; use `key` (the start
    minute, unique within a contiguous sequence) to follow a block.
    """

    id: str
    start: int
    end: int
    title: str = ""
    description: str = ""
    priority: str = NO_PRIORITY

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def key(self) -> int:
        return self.start

    @property
    def time_range(self) -> str:
        return format_time_range(self.start, self.end)

    @property
    def is_empty(self) -> bool:
        """Unassigned blocks show as "Empty"."""
        return not self.title

    @property
    def has_content(self) -> bool:
        return bool(self.title or self.description or self.priority != NO_PRIORITY)

    def cleared(self) -> "TimeBlock":
        return replace(self, title="", description="", priority=NO_PRIORITY)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "time": self.time_range,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
        }


def reindex(blocks: list[TimeBlock]) -> list[TimeBlock]:
    """Sort by start and make every id equal its position."""
    ordered = sorted(blocks, key=lambda b: b.start)
    return [b if b.id == str(i) else replace(b, id=str(i)) for i, b in enumerate(ordered)]


def blocks_to_json(blocks: list[TimeBlock]) -> str:
    """Compact JSON, the same bytes the mobile app's JSON.stringify produced."""
    return json.dumps([b.to_dict() for b in blocks], separators=(",", ":"), ensure_ascii=False)


def find_index(blocks: list[TimeBlock], block_id: str) -> int | None:
    for i, block in enumerate(blocks):
        if block.id == block_id:
            return i
    return None


@dataclass(frozen=True)
class ScheduleConfig:
    """Interval size and day boundaries, in minutes."""

    interval_minutes: int = 15
    day_start: int = 6 * 60
    day_end: int = 23 * 60

    def __post_init__(self):
        if not isinstance(self.interval_minutes, int) or self.interval_minutes <= 0:
            raise ValueError(f"Interval must be a positive number of minutes: {self.interval_minutes!r}")
        if not 0 <= self.day_start < MINUTES_PER_DAY:
            raise ValueError(f"Day start out of range: {self.day_start}")
        if not 0 < self.day_end <= MINUTES_PER_DAY:
            raise ValueError(f"Day end out of range: {self.day_end}")
        if self.day_end <= self.day_start:
            raise ValueError(
                f"Day end {format_clock(self.day_end)} must be after start {format_clock(self.day_start)}"
            )

    @property
    def day_length(self) -> int:
        return self.day_end - self.day_start

    @classmethod
    def from_clock(cls, interval_minutes: int, day_start: str | int, day_end: str | int) -> "ScheduleConfig":
        return cls(
            interval_minutes=interval_minutes,
            day_start=parse_clock(day_start),
            day_end=parse_clock(day_end, end=True),
        )

    def to_dict(self) -> dict:
        return {
            "intervalMinutes": self.interval_minutes,
            "dayStart": format_clock(self.day_start),
            "dayEnd": format_clock(self.day_end),
        }
