"""Undo/redo snapshots of a block sequence."""

from .models import TimeBlock

DEFAULT_DEPTH = 50


class BlockHistory:
    """
    Bounded undo/redo stacks of whole sequences.

    Sequences are lists of frozen blocks, so a snapshot is just the list.
    Recording a new state clears the redo stack.
    """

    def __init__(self, depth: int = DEFAULT_DEPTH):
        if depth <= 0:
            raise ValueError(f"History depth must be positive: {depth}")
        self.depth = depth
        self._undo: list[list[TimeBlock]] = []
        self._redo: list[list[TimeBlock]] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def push(self, previous: list[TimeBlock]) -> None:
        """Record the state before a mutation."""
        self._undo.append(list(previous))
        if len(self._undo) > self.depth:
            self._undo.pop(0)
        self._redo.clear()

    def undo(self, current: list[TimeBlock]) -> list[TimeBlock] | None:
        """State to restore, or None if there is nothing to undo."""
        if not self._undo:
            return None
        self._redo.append(list(current))
        return self._undo.pop()

    def redo(self, current: list[TimeBlock]) -> list[TimeBlock] | None:
        if not self._redo:
            return None
        self._undo.append(list(current))
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
