"""
Documents - typed access to everything dayplan keeps in the key-value store.

Each logical document (today, tomorrow, a weekday routine, the priority
registry, the schedule settings) lives under one string key as JSON. Missing
or malformed data is treated as "no data yet", never as an error.

Writers call notify() through save/remove, and every subscribed listener is
told which key changed. This replaces a shared "tasks updated" flag: a session
showing today's plan reloads when the rollover job rewrites todayTasks.
"""

import inspect
import json
import logging
from collections.abc import Callable

from pydantic import ValidationError

from dayplan.state_store import KeyValueStore, get_store

from .generator import generate_for_config
from .invariants import validate_sequence
from .models import ScheduleConfig, TimeBlock, blocks_to_json, reindex
from .priorities import PriorityRegistry
from .schemas import BlockListAdapter, PriorityMapAdapter, ScheduleConfigRecord

logger = logging.getLogger(__name__)

TODAY_KEY = "todayTasks"
TOMORROW_KEY = "tomorrowTasks"
PRIORITIES_KEY = "customPriorities"
SCHEDULE_KEY = "scheduleConfig"
LAST_RUN_PREFIX = "lastRun:"

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def routine_key(weekday: str) -> str:
    """Key of a weekday's routine template, e.g. routineMonday."""
    name = weekday.strip().capitalize()
    if name not in WEEKDAYS:
        raise ValueError(f"Unknown weekday {weekday!r}")
    return f"routine{name}"


def last_run_key(job: str) -> str:
    """Per-job marker holding the ISO date of the job's last completed run."""
    return f"{LAST_RUN_PREFIX}{job}"


def document_key(name: str) -> str:
    """
    Resolve a document name to its store key.

    Accepts "today", "tomorrow", a weekday ("monday") or "routine:<weekday>".
    """
    lowered = name.strip().lower()
    if lowered == "today":
        return TODAY_KEY
    if lowered == "tomorrow":
        return TOMORROW_KEY
    if lowered.startswith("routine:"):
        return routine_key(lowered.split(":", 1)[1])
    return routine_key(lowered)


Listener = Callable[[str], object]


class DocumentStore:
    """Load/save block sequences, settings and priorities; notify on writes."""

    def __init__(self, store: KeyValueStore | None = None):
        self.store = store or get_store()
        self._listeners: list[Listener] = []

    # ==================== Subscribe / notify ====================

    def subscribe(self, listener: Listener) -> None:
        """listener(key) is called (or awaited) after every save/remove."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def notify(self, key: str) -> None:
        for listener in list(self._listeners):
            result = listener(key)
            if inspect.isawaitable(result):
                await result

    # ==================== Block sequences ====================

    async def read_blocks(self, key: str) -> list[TimeBlock] | None:
        """Stored sequence, or None when absent or unusable."""
        raw = await self.store.get(key)
        if raw is None:
            return None
        return self.decode_blocks(raw, key)

    def decode_blocks(self, raw: str, key: str = "") -> list[TimeBlock] | None:
        try:
            records = BlockListAdapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed %s: %d validation error(s)", key or "blocks", e.error_count())
            return None

        blocks = reindex([r.to_block() for r in records])
        result = validate_sequence(blocks)
        if not result.valid:
            logger.warning("Ignoring broken %s: %s", key or "blocks", "; ".join(result.issues[:3]))
            return None
        return blocks

    async def load_blocks(self, key: str, config: ScheduleConfig | None = None) -> list[TimeBlock]:
        """Stored sequence, or a fresh one for the schedule settings."""
        blocks = await self.read_blocks(key)
        if blocks is not None:
            return blocks
        config = config or await self.load_config()
        logger.debug("No usable %s, generating a fresh day", key)
        return generate_for_config(config)

    async def save_blocks(self, key: str, blocks: list[TimeBlock]) -> None:
        await self.store.set(key, blocks_to_json(blocks))
        await self.notify(key)

    async def remove(self, key: str) -> None:
        await self.store.remove(key)
        await self.notify(key)

    # ==================== Schedule settings ====================

    async def load_config(self) -> ScheduleConfig:
        raw = await self.store.get(SCHEDULE_KEY)
        if raw is None:
            return ScheduleConfig()
        try:
            return ScheduleConfigRecord.model_validate_json(raw).to_config()
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring malformed %s: %s", SCHEDULE_KEY, e)
            return ScheduleConfig()

    async def save_config(self, config: ScheduleConfig) -> None:
        await self.store.set(SCHEDULE_KEY, json.dumps(config.to_dict(), separators=(",", ":")))
        await self.notify(SCHEDULE_KEY)

    # ==================== Priorities ====================

    async def load_priorities(self) -> PriorityRegistry:
        raw = await self.store.get(PRIORITIES_KEY)
        if raw is None:
            return PriorityRegistry()
        try:
            records = PriorityMapAdapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed %s: %d validation error(s)", PRIORITIES_KEY, e.error_count())
            return PriorityRegistry()
        return PriorityRegistry({tag: r.model_dump() for tag, r in records.items()})

    async def save_priorities(self, registry: PriorityRegistry) -> None:
        await self.store.set(PRIORITIES_KEY, json.dumps(registry.to_dict(), separators=(",", ":")))
        await self.notify(PRIORITIES_KEY)
