"""
Tests for split, merge, assign and reset.

Covers:
- Split piece sizing (one interval, multiples, odd lengths)
- Merge keeps the first selected block's content
- Rejections leave the sequence untouched
- Positional ids after every structural change
"""

import pytest

from dayplan.observability.metrics import block_mutations
from dayplan.timeblocks.block_manager import (
    BlockOperationError,
    assign_block,
    clear_block,
    merge_blocks,
    reset_blocks,
    split_block,
    split_piece_length,
    split_pieces,
)
from dayplan.timeblocks.generator import generate_time_blocks
from dayplan.timeblocks.invariants import validate_sequence
from dayplan.timeblocks.models import TimeBlock


@pytest.fixture
def day():
    return generate_time_blocks(15, "06:00", "23:00")


def _ids(blocks):
    return [b.id for b in blocks]


# =============================================================================
# SPLIT
# =============================================================================


class TestSplitPieceLength:
    def test_one_interval_splits_into_five_minute_pieces(self):
        assert split_piece_length(15, 15) == 5

    def test_multiple_of_interval_splits_into_intervals(self):
        assert split_piece_length(45, 15) == 15

    def test_odd_length_splits_into_five_minute_pieces(self):
        assert split_piece_length(20, 15) == 5


class TestSplit:
    def test_split_single_interval_block(self, day):
        target = day[3]
        pieces = split_pieces(target, 15)

        assert _ids(pieces) == ["3-0", "3-1", "3-2"]
        assert [p.duration for p in pieces] == [5, 5, 5]

        result = split_block(day, "3", 15)

        assert len(result) == len(day) + 2
        assert _ids(result) == [str(i) for i in range(len(result))]
        assert [b.time_range for b in result[3:6]] == ["06:45-06:50", "06:50-06:55", "06:55-07:00"]
        assert result[6].time_range == "07:00-07:15"

    def test_split_merged_block_into_intervals(self, day):
        merged = merge_blocks(day, ["0", "1", "2"])
        result = split_block(merged, "0", 15)

        assert [b.time_range for b in result[:3]] == ["06:00-06:15", "06:15-06:30", "06:30-06:45"]
        assert len(result) == len(day)

    def test_split_odd_length_block_last_piece_absorbs_remainder(self):
        blocks = [TimeBlock(id="0", start=360, end=382), TimeBlock(id="1", start=382, end=390)]

        result = split_block(blocks, "0", 15)

        assert [b.duration for b in result] == [5, 5, 5, 7, 8]
        assert result[3].end == 382
        assert validate_sequence(result).valid

    def test_split_discards_content(self, day):
        assigned = assign_block(day, "3", "Write", "draft", "p1")

        result = split_block(assigned, "3", 15)

        assert all(not b.has_content for b in result[3:6])

    def test_split_preserves_total_range(self, day):
        result = split_block(day, "10", 15)

        assert result[0].start == day[0].start
        assert result[-1].end == day[-1].end
        assert validate_sequence(result).valid

    def test_split_unknown_block_rejected(self, day):
        with pytest.raises(BlockOperationError, match="not found"):
            split_block(day, "999", 15)

    def test_split_too_short_rejected(self):
        blocks = [TimeBlock(id="0", start=360, end=365)]

        with pytest.raises(BlockOperationError, match="too short"):
            split_block(blocks, "0", 15)

    def test_split_does_not_modify_input(self, day):
        before = list(day)
        split_block(day, "3", 15)

        assert day == before

    def test_split_counts_mutation(self, day):
        before = block_mutations.value
        split_block(day, "3", 15)

        assert block_mutations.value == before + 1


# =============================================================================
# MERGE
# =============================================================================


class TestMerge:
    def test_merge_keeps_first_blocks_content(self, day):
        blocks = assign_block(day, "5", "Deep work", "no meetings", "p1")
        blocks = assign_block(blocks, "6", "Email")

        result = merge_blocks(blocks, ["5", "6", "7"])

        merged = result[5]
        assert merged.time_range == "07:15-08:00"
        assert merged.duration == 45
        assert (merged.title, merged.description, merged.priority) == ("Deep work", "no meetings", "p1")
        assert len(result) == len(day) - 2
        assert _ids(result) == [str(i) for i in range(len(result))]

    def test_merge_order_of_ids_does_not_matter(self, day):
        assert merge_blocks(day, ["7", "5", "6"]) == merge_blocks(day, ["5", "6", "7"])

    def test_merge_drops_later_content(self, day):
        blocks = assign_block(day, "6", "Email")

        result = merge_blocks(blocks, ["5", "6"])

        assert result[5].title == ""

    def test_merge_needs_two_blocks(self, day):
        with pytest.raises(BlockOperationError, match="at least two"):
            merge_blocks(day, ["5"])

    def test_merge_non_contiguous_rejected(self, day):
        with pytest.raises(BlockOperationError, match="contiguous"):
            merge_blocks(day, ["5", "7"])

    def test_merge_duplicate_rejected(self, day):
        with pytest.raises(BlockOperationError):
            merge_blocks(day, ["5", "5"])

    def test_merge_unknown_rejected(self, day):
        with pytest.raises(BlockOperationError, match="not found"):
            merge_blocks(day, ["66", "67", "68"])

    def test_merge_whole_day(self, day):
        result = merge_blocks(day, [b.id for b in day])

        assert len(result) == 1
        assert result[0].time_range == "06:00-23:00"


# =============================================================================
# CONTENT
# =============================================================================


class TestContent:
    def test_assign_sets_only_target(self, day):
        result = assign_block(day, "2", "Standup", "daily", "p2")

        assert result[2].title == "Standup"
        assert result[2].priority == "p2"
        assert result[2].time_range == day[2].time_range
        assert result[:2] == day[:2]
        assert result[3:] == day[3:]

    def test_assign_none_values_become_defaults(self, day):
        result = assign_block(day, "2", "Standup", None, None)

        assert result[2].description == ""
        assert result[2].priority == "none"

    def test_assign_unknown_rejected(self, day):
        with pytest.raises(BlockOperationError):
            assign_block(day, "x", "Nope")

    def test_clear_block(self, day):
        blocks = assign_block(day, "2", "Standup", "daily", "p2")

        assert clear_block(blocks, "2")[2] == day[2]

    def test_reset_clears_everything_keeps_structure(self, day):
        blocks = merge_blocks(day, ["0", "1"])
        blocks = assign_block(blocks, "0", "Gym", priority="p3")
        blocks = assign_block(blocks, "9", "Read")

        result = reset_blocks(blocks)

        assert all(not b.has_content for b in result)
        assert [b.time_range for b in result] == [b.time_range for b in blocks]
