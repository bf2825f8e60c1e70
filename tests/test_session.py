"""
Tests for PlanSession: selection-driven edits, persistence, confirmation,
undo/redo and reloading on external changes.
"""

import asyncio

import pytest

from dayplan.timeblocks.block_manager import BlockOperationError
from dayplan.timeblocks.documents import TODAY_KEY, TOMORROW_KEY
from dayplan.timeblocks.generator import generate_time_blocks
from dayplan.timeblocks.models import ScheduleConfig
from dayplan.timeblocks.session import ConfirmationRequired, PlanSession


def _open(documents, key=TODAY_KEY) -> PlanSession:
    return asyncio.run(PlanSession.open(documents, key))


class TestOpen:
    def test_fresh_day(self, documents):
        session = _open(documents)

        assert len(session.blocks) == 68
        assert session.config == ScheduleConfig()
        assert session.priorities.tags() == ["p1", "p2", "p3", "p4"]

    def test_open_does_not_write(self, documents, memory_store):
        _open(documents)

        assert asyncio.run(memory_store.keys()) == []


class TestEdits:
    def test_split_selected_block_persists(self, documents):
        session = _open(documents)
        session.press(3)

        asyncio.run(session.split())

        assert len(session.blocks) == 70
        assert session.selection.is_empty
        stored = asyncio.run(documents.read_blocks(TODAY_KEY))
        assert stored == session.blocks

    def test_split_needs_exactly_one_selected(self, documents):
        session = _open(documents)
        session.press(3)
        session.press(4)

        with pytest.raises(BlockOperationError, match="exactly one"):
            asyncio.run(session.split())
        assert len(session.blocks) == 68

    def test_merge_selection(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("5", "Deep work", priority="p1"))
        session.press(5)
        session.press(7)

        asyncio.run(session.merge())

        assert session.blocks[5].time_range == "07:15-08:00"
        assert session.blocks[5].title == "Deep work"
        assert len(session.blocks) == 66

    def test_merge_single_selection_rejected(self, documents, memory_store):
        session = _open(documents)
        session.press(5)

        with pytest.raises(BlockOperationError):
            asyncio.run(session.merge())
        assert asyncio.run(memory_store.get(TODAY_KEY)) is None

    def test_press_past_end_rejected(self, documents):
        session = _open(documents)

        with pytest.raises(BlockOperationError):
            session.press(68)

    def test_assign_unknown_priority_rejected(self, documents):
        session = _open(documents)

        with pytest.raises(BlockOperationError, match="priority"):
            asyncio.run(session.assign("1", "Call", priority="p9"))

    def test_assign_and_color(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("1", "Call", priority="p2"))

        assert session.color_for(session.block("1")) == "#FF8184"
        assert session.color_for(session.block("2")) == "transparent"

    def test_clear(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("1", "Call", priority="p2"))
        asyncio.run(session.clear("1"))

        assert not session.block("1").has_content


class TestConfirmation:
    def test_reset_needs_confirmation_when_content_exists(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("1", "Call"))

        with pytest.raises(ConfirmationRequired) as exc_info:
            asyncio.run(session.reset())
        assert [b.title for b in exc_info.value.lost] == ["Call"]
        assert session.block("1").title == "Call"

        asyncio.run(session.reset(confirm=True))
        assert all(not b.has_content for b in session.blocks)

    def test_reset_of_empty_day_needs_no_confirmation(self, documents):
        session = _open(documents)

        asyncio.run(session.reset())

    def test_shrinking_day_with_content_needs_confirmation(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("0", "Early run"))

        with pytest.raises(ConfirmationRequired):
            asyncio.run(session.update_settings(day_start="08:00"))
        assert session.config == ScheduleConfig()
        assert len(session.blocks) == 68

        asyncio.run(session.update_settings(day_start="08:00", confirm=True))
        assert session.blocks[0].time_range == "08:00-08:15"
        assert asyncio.run(documents.load_config()).day_start == 480

    def test_growing_day_needs_no_confirmation(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("0", "Early run"))

        asyncio.run(session.update_settings(day_start="05:00", day_end="00:00"))

        assert session.blocks[0].time_range == "05:00-05:15"
        assert session.blocks[4].title == "Early run"
        assert session.blocks[-1].time_range == "23:45-00:00"

    def test_interval_change_with_content_needs_confirmation(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("30", "Lunch"))

        with pytest.raises(ConfirmationRequired):
            asyncio.run(session.update_settings(interval_minutes=30))

        asyncio.run(session.update_settings(interval_minutes=30, confirm=True))
        assert len(session.blocks) == 34
        assert all(b.is_empty for b in session.blocks)

    def test_invalid_settings_rejected(self, documents):
        session = _open(documents)

        with pytest.raises(ValueError):
            asyncio.run(session.update_settings(day_start="23:00", day_end="22:00"))


class TestUndoRedo:
    def test_undo_and_redo(self, documents):
        session = _open(documents)
        original = session.blocks
        asyncio.run(session.split("3"))
        split = session.blocks

        assert asyncio.run(session.undo()) is True
        assert session.blocks == original
        assert asyncio.run(documents.read_blocks(TODAY_KEY)) == original

        assert asyncio.run(session.redo()) is True
        assert session.blocks == split

    def test_new_edit_clears_redo(self, documents):
        session = _open(documents)
        asyncio.run(session.assign("1", "A"))
        asyncio.run(session.undo())
        asyncio.run(session.assign("2", "B"))

        assert asyncio.run(session.redo()) is False

    def test_nothing_to_undo(self, documents):
        assert asyncio.run(_open(documents).undo()) is False

    def test_settings_change_clears_history(self, documents):
        session = _open(documents)
        asyncio.run(session.split("3"))
        asyncio.run(session.update_settings(day_end="22:00"))

        assert asyncio.run(session.undo()) is False


class TestExternalChanges:
    def test_reload_when_document_rewritten(self, documents):
        async def run():
            session = await PlanSession.open(documents, TODAY_KEY)
            replacement = generate_time_blocks(30, "09:00", "10:00")
            await documents.save_blocks(TODAY_KEY, replacement)
            return session, replacement

        session, replacement = asyncio.run(run())

        assert session.blocks == replacement
        assert not session.history.can_undo

    def test_other_documents_ignored(self, documents):
        async def run():
            session = await PlanSession.open(documents, TODAY_KEY)
            await documents.save_blocks(TOMORROW_KEY, generate_time_blocks(30, "09:00", "10:00"))
            return session

        assert len(asyncio.run(run()).blocks) == 68

    def test_two_sessions_on_same_document(self, documents):
        async def run():
            first = await PlanSession.open(documents, TODAY_KEY)
            second = await PlanSession.open(documents, TODAY_KEY)
            await first.assign("4", "Shared")
            return first, second

        first, second = asyncio.run(run())

        assert second.block("4").title == "Shared"
        assert first.history.can_undo

    def test_priority_edits_picked_up(self, documents):
        async def run():
            session = await PlanSession.open(documents, TODAY_KEY)
            registry = await documents.load_priorities()
            registry.recolor("p1", "#000000")
            await documents.save_priorities(registry)
            return session

        assert asyncio.run(run()).priorities.color_for("p1") == "#000000"

    def test_closed_session_stops_listening(self, documents):
        async def run():
            session = await PlanSession.open(documents, TODAY_KEY)
            session.close()
            await documents.save_blocks(TODAY_KEY, generate_time_blocks(30, "09:00", "10:00"))
            return session

        assert len(asyncio.run(run()).blocks) == 68
