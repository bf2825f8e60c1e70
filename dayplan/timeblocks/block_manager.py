"""
Block Manager - structural and content operations on a block sequence.

Every operation takes a sequence and returns a new one; the input list is
never modified. Structural operations (split, merge) reassign positional ids
and leave the sequence contiguous with the same total range.

Content rules:
- split discards the parent's title/description/priority
- merge keeps the FIRST selected block's content, later blocks' content is dropped
- only assign() ever sets content
"""

import logging
from dataclasses import replace

from dayplan.config import SPLIT_GRANULARITY_MINUTES
from dayplan.observability.metrics import block_mutations

from .invariants import assert_valid_sequence
from .models import NO_PRIORITY, TimeBlock, find_index, reindex

logger = logging.getLogger(__name__)


class BlockOperationError(ValueError):
    """Raised when an operation's preconditions do not hold. The sequence is untouched."""

    pass


def split_piece_length(duration: int, interval_minutes: int) -> int:
    """
    Length of the pieces a block of `duration` minutes splits into.

    - exactly one interval long -> 5-minute pieces
    - a whole multiple of the interval -> interval-sized pieces
    - anything else -> 5-minute pieces
    """
    if duration == interval_minutes:
        return SPLIT_GRANULARITY_MINUTES
    if duration % interval_minutes == 0:
        return interval_minutes
    return SPLIT_GRANULARITY_MINUTES


def split_pieces(block: TimeBlock, interval_minutes: int) -> list[TimeBlock]:
    """
    The empty sub-blocks replacing `block`, with provisional ids "<id>-<n>".

    floor(duration / piece) pieces are produced. When the duration is not a
    whole number of pieces the last piece absorbs the leftover minutes, so the
    pieces always cover the parent exactly.
    """
    piece = split_piece_length(block.duration, interval_minutes)
    count = block.duration // piece
    pieces = []
    for i in range(count):
        start = block.start + i * piece
        end = block.end if i == count - 1 else start + piece
        pieces.append(
            TimeBlock(id=f"{block.id}-{i}", start=start, end=end, title="", description="", priority=NO_PRIORITY)
        )
    return pieces


def split_block(blocks: list[TimeBlock], block_id: str, interval_minutes: int) -> list[TimeBlock]:
    """
    Replace one block with smaller empty blocks.

    Args:
        blocks: Current sequence
        block_id: Id of the single selected block
        interval_minutes: Currently configured interval

    Returns:
        New sequence, count grown by (pieces - 1)

    Raises:
        BlockOperationError: Unknown id, or the block is too short to split
    """
    if interval_minutes <= 0:
        raise BlockOperationError(f"Interval must be positive: {interval_minutes}")
    index = find_index(blocks, block_id)
    if index is None:
        raise BlockOperationError(f"Block {block_id!r} not found")

    target = blocks[index]
    pieces = split_pieces(target, interval_minutes)
    if len(pieces) < 2:
        raise BlockOperationError(f"Block {target.time_range} is too short to split")

    result = reindex(blocks[:index] + pieces + blocks[index + 1 :])
    assert_valid_sequence(result)
    block_mutations.inc()
    logger.debug(
        "Split block %s (%s) into %d pieces%s",
        block_id,
        target.time_range,
        len(pieces),
        " (content discarded)" if target.has_content else "",
    )
    return result


def merge_blocks(blocks: list[TimeBlock], block_ids: list[str]) -> list[TimeBlock]:
    """
    Merge two or more adjacent blocks into one.

    The merged block spans the first selected block's start to the last
    one's end and carries the first selected block's content.

    Raises:
        BlockOperationError: Fewer than two ids, unknown ids, or a selection
            that is not a run of adjacent blocks
    """
    if len(block_ids) < 2:
        raise BlockOperationError("Merge needs at least two selected blocks")

    positions = []
    for block_id in block_ids:
        index = find_index(blocks, block_id)
        if index is None:
            raise BlockOperationError(f"Block {block_id!r} not found")
        positions.append(index)

    positions.sort()
    if len(set(positions)) != len(positions):
        raise BlockOperationError("Selection contains the same block twice")
    if positions[-1] - positions[0] != len(positions) - 1:
        raise BlockOperationError("Selected blocks are not contiguous")

    first_pos, last_pos = positions[0], positions[-1]
    first, last = blocks[first_pos], blocks[last_pos]
    merged = replace(first, end=last.end)

    dropped = [b for b in blocks[first_pos + 1 : last_pos + 1] if b.has_content]
    if dropped:
        logger.debug("Merge drops content of %d block(s)", len(dropped))

    result = reindex(blocks[:first_pos] + [merged] + blocks[last_pos + 1 :])
    assert_valid_sequence(result)
    block_mutations.inc()
    logger.debug("Merged %d blocks into %s", len(positions), merged.time_range)
    return result


def assign_block(
    blocks: list[TimeBlock],
    block_id: str,
    title: str,
    description: str = "",
    priority: str = NO_PRIORITY,
) -> list[TimeBlock]:
    """
    Set one block's content. Structure is unchanged.

    Raises:
        BlockOperationError: Unknown id
    """
    index = find_index(blocks, block_id)
    if index is None:
        raise BlockOperationError(f"Block {block_id!r} not found")

    updated = replace(
        blocks[index],
        title=title or "",
        description=description or "",
        priority=priority or NO_PRIORITY,
    )
    return blocks[:index] + [updated] + blocks[index + 1 :]


def clear_block(blocks: list[TimeBlock], block_id: str) -> list[TimeBlock]:
    """Back to "Empty"."""
    return assign_block(blocks, block_id, "", "", NO_PRIORITY)


def reset_blocks(blocks: list[TimeBlock]) -> list[TimeBlock]:
    """Clear every block's content, keeping the structure."""
    return [b.cleared() if b.has_content else b for b in blocks]
