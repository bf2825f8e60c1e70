"""
Tests for the day-boundary actions.

Covers:
- Promotion: tomorrow -> today, tomorrow removed; no-op without tomorrow
- Routine: routine<Weekday of tomorrow> -> tomorrow, overwriting
- protect_assigned
"""

import asyncio
import logging
from datetime import date

import pytest

from dayplan.timeblocks.block_manager import assign_block
from dayplan.timeblocks.documents import TODAY_KEY, TOMORROW_KEY, routine_key
from dayplan.timeblocks.generator import generate_time_blocks
from dayplan.timeblocks.models import blocks_to_json
from dayplan.timeblocks.rollover import Rollover, weekday_name

# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 25)


@pytest.fixture
def rollover(documents):
    return Rollover(documents)


@pytest.fixture
def planned_day():
    blocks = generate_time_blocks(30, "08:00", "12:00")
    return assign_block(blocks, "1", "Dentist", "bring card", "p1")


def test_weekday_names_are_english():
    assert weekday_name(MONDAY) == "Monday"
    assert weekday_name(SUNDAY) == "Sunday"


class TestPromote:
    def test_tomorrow_becomes_today(self, rollover, documents, memory_store, planned_day):
        asyncio.run(documents.save_blocks(TOMORROW_KEY, planned_day))

        result = asyncio.run(rollover.promote_tomorrow())

        assert result.performed
        assert result.blocks == len(planned_day)
        assert asyncio.run(memory_store.get(TODAY_KEY)) == blocks_to_json(planned_day)
        assert asyncio.run(memory_store.get(TOMORROW_KEY)) is None

    def test_promote_replaces_existing_today(self, rollover, documents, planned_day):
        async def run():
            await documents.save_blocks(TODAY_KEY, generate_time_blocks(15, "06:00", "23:00"))
            await documents.save_blocks(TOMORROW_KEY, planned_day)
            await rollover.promote_tomorrow()
            return await documents.read_blocks(TODAY_KEY)

        assert asyncio.run(run()) == planned_day

    def test_no_tomorrow_leaves_today_alone(self, rollover, documents, memory_store, planned_day):
        asyncio.run(documents.save_blocks(TODAY_KEY, planned_day))

        result = asyncio.run(rollover.promote_tomorrow())

        assert not result.performed
        assert result.reason == "no tomorrowTasks"
        assert asyncio.run(documents.read_blocks(TODAY_KEY)) == planned_day

    def test_promote_notifies(self, rollover, documents, planned_day):
        seen = []
        asyncio.run(documents.save_blocks(TOMORROW_KEY, planned_day))
        documents.subscribe(seen.append)

        asyncio.run(rollover.promote_tomorrow())

        assert seen == [TODAY_KEY, TOMORROW_KEY]


class TestLoadRoutine:
    def test_routine_for_tomorrows_weekday(self, rollover, documents, planned_day):
        asyncio.run(documents.save_blocks(routine_key("Tuesday"), planned_day))

        result = asyncio.run(rollover.load_routine_for_tomorrow(MONDAY))

        assert result.performed
        assert result.source_key == "routineTuesday"
        assert asyncio.run(documents.read_blocks(TOMORROW_KEY)) == planned_day

    def test_sunday_loads_monday(self, rollover, documents, planned_day):
        asyncio.run(documents.save_blocks(routine_key("Monday"), planned_day))

        result = asyncio.run(rollover.load_routine_for_tomorrow(SUNDAY))

        assert result.performed
        assert result.source_key == "routineMonday"

    def test_no_routine_leaves_tomorrow_alone(self, rollover, documents, planned_day):
        asyncio.run(documents.save_blocks(TOMORROW_KEY, planned_day))

        result = asyncio.run(rollover.load_routine_for_tomorrow(MONDAY))

        assert not result.performed
        assert asyncio.run(documents.read_blocks(TOMORROW_KEY)) == planned_day

    def test_routine_overwrites_planned_tomorrow(self, rollover, documents, planned_day, caplog):
        routine = generate_time_blocks(60, "07:00", "10:00")

        async def run():
            await documents.save_blocks(routine_key("Tuesday"), routine)
            await documents.save_blocks(TOMORROW_KEY, planned_day)
            return await rollover.load_routine_for_tomorrow(MONDAY)

        with caplog.at_level(logging.WARNING, logger="dayplan.timeblocks.rollover"):
            result = asyncio.run(run())

        assert result.discarded == 1
        assert "1 assigned block(s) discarded" in caplog.text
        assert asyncio.run(documents.read_blocks(TOMORROW_KEY)) == routine

    def test_protect_assigned_skips(self, rollover, documents, planned_day):
        async def run():
            await documents.save_blocks(routine_key("Tuesday"), generate_time_blocks(60, "07:00", "10:00"))
            await documents.save_blocks(TOMORROW_KEY, planned_day)
            return await rollover.load_routine_for_tomorrow(MONDAY, protect_assigned=True)

        result = asyncio.run(run())

        assert not result.performed
        assert asyncio.run(documents.read_blocks(TOMORROW_KEY)) == planned_day

    def test_protect_assigned_still_loads_over_empty_plan(self, rollover, documents, planned_day):
        async def run():
            await documents.save_blocks(routine_key("Tuesday"), planned_day)
            await documents.save_blocks(TOMORROW_KEY, generate_time_blocks(15, "06:00", "23:00"))
            return await rollover.load_routine_for_tomorrow(MONDAY, protect_assigned=True)

        assert asyncio.run(run()).performed

    def test_routine_is_copied_not_moved(self, rollover, documents, planned_day):
        asyncio.run(documents.save_blocks(routine_key("Tuesday"), planned_day))

        asyncio.run(rollover.load_routine_for_tomorrow(MONDAY))

        assert asyncio.run(documents.read_blocks(routine_key("Tuesday"))) == planned_day

    def test_result_to_dict(self, rollover):
        data = asyncio.run(rollover.load_routine_for_tomorrow(MONDAY)).to_dict()

        assert data["job"] == "load_routine"
        assert data["performed"] is False
