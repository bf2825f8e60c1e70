"""
Time Blocks Module

The planning engine: a day partitioned into contiguous time blocks, the edits
users make to it, and the transitions between days.

Objects:
- TimeBlock (one slot, [start, end) in minutes, with optional content)
- ScheduleConfig (interval size and day boundaries)
- PriorityRegistry (user-extensible priority tags and their colors)

Invariants:
- Blocks are sorted, contiguous and non-overlapping
- A block's id is its position in the sequence
- Structural operations never invent content; only assign() sets it
- Each day transition runs at most once per calendar day
"""

from .block_manager import BlockOperationError, assign_block, clear_block, merge_blocks, reset_blocks, split_block
from .boundary import adjust_boundaries, apply_schedule_change
from .brief import generate_day_brief, locate_current_block, summarize_day
from .documents import TODAY_KEY, TOMORROW_KEY, WEEKDAYS, DocumentStore, document_key, routine_key
from .generator import generate_for_config, generate_time_blocks
from .invariants import InvariantViolation, assert_valid_sequence, validate_sequence
from .models import ScheduleConfig, TimeBlock
from .priorities import PriorityRegistry, color_for
from .rollover import Rollover, TransitionResult
from .scheduler import DayTransitionScheduler
from .selection import Selection
from .session import ConfirmationRequired, PlanSession

__all__ = [
    "TimeBlock",
    "ScheduleConfig",
    "generate_time_blocks",
    "generate_for_config",
    "split_block",
    "merge_blocks",
    "assign_block",
    "clear_block",
    "reset_blocks",
    "BlockOperationError",
    "Selection",
    "adjust_boundaries",
    "apply_schedule_change",
    "PriorityRegistry",
    "color_for",
    "InvariantViolation",
    "validate_sequence",
    "assert_valid_sequence",
    "DocumentStore",
    "document_key",
    "routine_key",
    "TODAY_KEY",
    "TOMORROW_KEY",
    "WEEKDAYS",
    "PlanSession",
    "ConfirmationRequired",
    "Rollover",
    "TransitionResult",
    "DayTransitionScheduler",
    "locate_current_block",
    "summarize_day",
    "generate_day_brief",
]
