"""
Sequence invariants.

A block sequence is valid when:
- blocks are ordered and contiguous (block[i].end == block[i+1].start)
- every block has positive length inside [0, 1440]
- every id equals the block's position as a string

Mutations assert these on their output; documents check them on load.
"""

from dataclasses import dataclass, field

from .models import MINUTES_PER_DAY, TimeBlock, format_clock


class InvariantViolation(Exception):
    """Raised when a block sequence breaks a structural invariant."""

    pass


@dataclass
class ValidationResult:
    valid: bool
    issues: list[str] = field(default_factory=list)
    stats: dict = field(default_factory=dict)


def validate_sequence(
    blocks: list[TimeBlock],
    day_start: int | None = None,
    day_end: int | None = None,
    interval_minutes: int | None = None,
) -> ValidationResult:
    """
    Check a sequence against the structural invariants.

    When day_start/day_end are given, coverage is checked too: the first
    block must start at day_start and the last block may end before day_end
    by less than one interval (the dropped-remainder rule; defaults to the
    last block's own length).
    """
    issues = []

    for i, block in enumerate(blocks):
        if block.id != str(i):
            issues.append(f"Block at position {i} has id {block.id!r}")
        if block.end <= block.start:
            issues.append(f"Block {i} has non-positive length ({block.time_range})")
        if block.start < 0 or block.end > MINUTES_PER_DAY:
            issues.append(f"Block {i} outside the day ({block.start}-{block.end})")

    for a, b in zip(blocks, blocks[1:]):
        if a.end < b.start:
            issues.append(f"Gap between {format_clock(a.end)} and {format_clock(b.start)}")
        elif a.end > b.start:
            issues.append(f"Overlap: block {a.id} ends {format_clock(a.end)}, block {b.id} starts {format_clock(b.start)}")

    if blocks and day_start is not None and blocks[0].start != day_start:
        issues.append(f"First block starts {format_clock(blocks[0].start)}, day starts {format_clock(day_start)}")
    if blocks and day_end is not None:
        last = blocks[-1]
        if last.end > day_end:
            issues.append(f"Last block ends {format_clock(last.end)}, after day end {format_clock(day_end)}")
        elif day_end - last.end >= (interval_minutes or last.duration):
            issues.append(f"Last block ends {format_clock(last.end)}, day ends {format_clock(day_end)}")

    stats = {
        "blocks": len(blocks),
        "assigned": sum(1 for b in blocks if not b.is_empty),
        "minutes": sum(b.duration for b in blocks),
    }
    return ValidationResult(valid=not issues, issues=issues, stats=stats)


def assert_valid_sequence(blocks: list[TimeBlock]) -> None:
    """
    Raises:
        InvariantViolation: If the sequence is not contiguous or ids are not positional
    """
    result = validate_sequence(blocks)
    if not result.valid:
        raise InvariantViolation("; ".join(result.issues))
