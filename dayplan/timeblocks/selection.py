"""
Multi-block selection.

A selection is always a run of adjacent block positions [first, last].
Pressing a block position b:
- empty selection      -> [b, b]
- b after last         -> [first, b]   (extend forward)
- b before first       -> [b, last]    (extend backward)
- first <= b <= last   -> [first, b]   (shrink back towards the anchor)
"""

from dataclasses import dataclass

from .models import TimeBlock


@dataclass
class Selection:
    first: int | None = None
    last: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.first is None

    def __len__(self) -> int:
        if self.first is None:
            return 0
        return self.last - self.first + 1

    @property
    def positions(self) -> list[int]:
        if self.first is None:
            return []
        return list(range(self.first, self.last + 1))

    def press(self, index: int) -> "Selection":
        """Apply one press and return self."""
        if index < 0:
            raise ValueError(f"Block position must be >= 0: {index}")
        if self.first is None:
            self.first = self.last = index
        elif index > self.last:
            self.last = index
        elif index < self.first:
            self.first = index
        else:
            self.last = index
        return self

    def clear(self) -> None:
        self.first = self.last = None

    def ids(self) -> list[str]:
        return [str(i) for i in self.positions]

    def blocks(self, sequence: list[TimeBlock]) -> list[TimeBlock]:
        """Selected blocks; positions past the end of the sequence are ignored."""
        return [sequence[i] for i in self.positions if i < len(sequence)]


def select(presses: list[int]) -> Selection:
    """Selection produced by a sequence of presses."""
    selection = Selection()
    for index in presses:
        selection.press(index)
    return selection
