"""
Plan Session - one open document (today, tomorrow or a routine) being edited.

The session owns the in-memory sequence, the current selection, the undo
history and the priority registry. Mutations are applied synchronously to the
in-memory sequence and then persisted; the in-memory sequence is what callers
render between writes.

Usage:
    documents = DocumentStore(get_store())
    session = await PlanSession.open(documents, TODAY_KEY)
    session.press(5)
    session.press(7)
    await session.merge()
"""

import logging

from .block_manager import (
    BlockOperationError,
    assign_block,
    clear_block,
    merge_blocks,
    reset_blocks,
    split_block,
)
from .boundary import apply_schedule_change, content_lost_by_change
from .documents import PRIORITIES_KEY, SCHEDULE_KEY, DocumentStore
from .history import BlockHistory
from .models import NO_PRIORITY, ScheduleConfig, TimeBlock, find_index
from .priorities import PriorityRegistry, color_for
from .selection import Selection

logger = logging.getLogger(__name__)


class ConfirmationRequired(Exception):
    """An operation would discard assigned content; retry with confirm=True."""

    def __init__(self, message: str, lost: list[TimeBlock] | None = None):
        super().__init__(message)
        self.lost = lost or []


class PlanSession:
    def __init__(
        self,
        documents: DocumentStore,
        key: str,
        blocks: list[TimeBlock],
        config: ScheduleConfig,
        priorities: PriorityRegistry,
    ):
        self.documents = documents
        self.key = key
        self.config = config
        self.priorities = priorities
        self.selection = Selection()
        self.history = BlockHistory()
        self._blocks = blocks
        self._writing = False
        self._closed = False
        documents.subscribe(self._on_change)

    @classmethod
    async def open(cls, documents: DocumentStore, key: str) -> "PlanSession":
        """Load a document, generating a fresh day if nothing usable is stored."""
        config = await documents.load_config()
        blocks = await documents.load_blocks(key, config)
        priorities = await documents.load_priorities()
        return cls(documents, key, blocks, config, priorities)

    def close(self) -> None:
        self.documents.unsubscribe(self._on_change)
        self._closed = True

    @property
    def blocks(self) -> list[TimeBlock]:
        return self._blocks

    # ==================== Selection ====================

    def press(self, index: int) -> Selection:
        if index >= len(self._blocks):
            raise BlockOperationError(f"No block at position {index}")
        return self.selection.press(index)

    def clear_selection(self) -> None:
        self.selection.clear()

    # ==================== Mutations ====================

    async def split(self, block_id: str | None = None) -> list[TimeBlock]:
        """Split the explicitly given block, or the single selected one."""
        if block_id is None:
            if len(self.selection) != 1:
                raise BlockOperationError(f"Split needs exactly one selected block, got {len(self.selection)}")
            block_id = self.selection.ids()[0]
        return await self._commit(split_block(self._blocks, block_id, self.config.interval_minutes))

    async def merge(self, block_ids: list[str] | None = None) -> list[TimeBlock]:
        if block_ids is None:
            block_ids = self.selection.ids()
        return await self._commit(merge_blocks(self._blocks, block_ids))

    async def assign(
        self,
        block_id: str,
        title: str,
        description: str = "",
        priority: str = NO_PRIORITY,
    ) -> list[TimeBlock]:
        if priority != NO_PRIORITY and priority not in self.priorities:
            raise BlockOperationError(f"Unknown priority {priority!r}")
        return await self._commit(assign_block(self._blocks, block_id, title, description, priority))

    async def clear(self, block_id: str) -> list[TimeBlock]:
        return await self._commit(clear_block(self._blocks, block_id))

    async def reset(self, confirm: bool = False) -> list[TimeBlock]:
        """Clear every block's content. Structure is kept."""
        assigned = [b for b in self._blocks if b.has_content]
        if assigned and not confirm:
            raise ConfirmationRequired(f"Reset clears {len(assigned)} assigned block(s)", assigned)
        return await self._commit(reset_blocks(self._blocks))

    async def update_settings(
        self,
        interval_minutes: int | None = None,
        day_start: str | int | None = None,
        day_end: str | int | None = None,
        confirm: bool = False,
    ) -> list[TimeBlock]:
        """
        Change the interval and/or day boundaries and refit this document.

        An interval change regenerates the sequence; a boundary-only change
        keeps every block inside the new range. Undo history is cleared.

        Raises:
            ConfirmationRequired: Assigned content would be discarded and
                confirm is False. Nothing is changed.
            ValueError: Invalid settings
        """
        new = ScheduleConfig.from_clock(
            interval_minutes if interval_minutes is not None else self.config.interval_minutes,
            day_start if day_start is not None else self.config.day_start,
            day_end if day_end is not None else self.config.day_end,
        )
        lost = content_lost_by_change(self._blocks, self.config, new)
        if lost and not confirm:
            raise ConfirmationRequired(f"New settings discard {len(lost)} assigned block(s)", lost)

        blocks = apply_schedule_change(self._blocks, self.config, new)
        self.config = new
        self._writing = True
        try:
            await self.documents.save_config(new)
        finally:
            self._writing = False
        # Snapshots from the old settings would not fit the new day
        self.history.clear()
        await self._replace(blocks)
        return blocks

    async def undo(self) -> bool:
        previous = self.history.undo(self._blocks)
        if previous is None:
            return False
        await self._replace(previous)
        return True

    async def redo(self) -> bool:
        following = self.history.redo(self._blocks)
        if following is None:
            return False
        await self._replace(following)
        return True

    async def _commit(self, blocks: list[TimeBlock]) -> list[TimeBlock]:
        if blocks is not self._blocks:
            self.history.push(self._blocks)
        await self._replace(blocks)
        return blocks

    async def _replace(self, blocks: list[TimeBlock]) -> None:
        self._blocks = blocks
        self.selection.clear()
        await self.save()

    async def save(self) -> None:
        self._writing = True
        try:
            await self.documents.save_blocks(self.key, self._blocks)
        finally:
            self._writing = False

    # ==================== Rendering helpers ====================

    def block(self, block_id: str) -> TimeBlock | None:
        index = find_index(self._blocks, block_id)
        return None if index is None else self._blocks[index]

    def color_for(self, block: TimeBlock) -> str:
        return color_for(block.priority, self.priorities)

    # ==================== External changes ====================

    async def reload(self) -> None:
        """Re-read the document; undo history no longer applies to it."""
        self._blocks = await self.documents.load_blocks(self.key, self.config)
        self.selection.clear()
        self.history.clear()
        logger.debug("Reloaded %s (%d blocks)", self.key, len(self._blocks))

    async def _on_change(self, key: str) -> None:
        if self._writing or self._closed:
            return
        if key == self.key:
            await self.reload()
        elif key == PRIORITIES_KEY:
            self.priorities = await self.documents.load_priorities()
        elif key == SCHEDULE_KEY:
            self.config = await self.documents.load_config()
