"""
Pydantic records for the persisted JSON documents.

These describe exactly what the store holds. Anything that fails validation
is treated by the document layer as "no data yet".

Usage:
    from dayplan.timeblocks.schemas import BlockListAdapter

    records = BlockListAdapter.validate_json(raw)
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .models import NO_PRIORITY, ScheduleConfig, TimeBlock, parse_clock, parse_time_range

# ==== Blocks ====
# Keys: todayTasks, tomorrowTasks, routine<Weekday>
# Shape: [{id, time, title, description, priority}, ...]


class BlockRecord(BaseModel):
    """One stored time block."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default="", description="Positional id at the time of writing")
    time: str = Field(description='"HH:MM-HH:MM", end "00:00" = midnight')
    title: str | None = Field(default="", description="Empty = unassigned")
    description: str | None = Field(default="", description="Optional details")
    priority: str | None = Field(default=NO_PRIORITY, description="Priority tag")

    @field_validator("time")
    @classmethod
    def _valid_range(cls, value: str) -> str:
        parse_time_range(value)
        return value

    def to_block(self) -> TimeBlock:
        start, end = parse_time_range(self.time)
        return TimeBlock(
            id=self.id,
            start=start,
            end=end,
            title=self.title or "",
            description=self.description or "",
            priority=self.priority or NO_PRIORITY,
        )


BlockListAdapter = TypeAdapter(list[BlockRecord])


# ==== Priorities ====
# Key: customPriorities
# Shape: {tag: {label, color}}


class PriorityRecord(BaseModel):
    """Display settings for one priority tag."""

    model_config = ConfigDict(extra="ignore")

    label: str
    color: str


PriorityMapAdapter = TypeAdapter(dict[str, PriorityRecord])


# ==== Schedule settings ====
# Key: scheduleConfig


class ScheduleConfigRecord(BaseModel):
    """Interval and day boundaries as stored."""

    model_config = ConfigDict(extra="ignore")

    intervalMinutes: int = Field(gt=0)
    dayStart: str
    dayEnd: str

    @field_validator("dayStart", "dayEnd")
    @classmethod
    def _valid_clock(cls, value: str) -> str:
        parse_clock(value)
        return value

    def to_config(self) -> ScheduleConfig:
        return ScheduleConfig.from_clock(self.intervalMinutes, self.dayStart, self.dayEnd)
