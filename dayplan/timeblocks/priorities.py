"""
Priority registry and color resolution.

The set of priority tags is user-extensible: p1..p4 exist by default and users
can add, relabel, recolor and delete tags. Blocks keep whatever tag they were
assigned, so lookups must tolerate tags that no longer exist.
"""

import logging
from dataclasses import dataclass

from .models import NO_PRIORITY

logger = logging.getLogger(__name__)

NO_HIGHLIGHT = "transparent"
NEW_PRIORITY_COLOR = "#D3D3D3"

# Colors offered when recoloring a priority
PALETTE = ("#D6B4FC", "#FF8184", "#FDAA48", "#FFFFC5", "#D1FFBD", "#90D5FF", "#D3D3D3")

DEFAULT_PRIORITIES = {
    "p1": {"label": "p1", "color": "#D6B4FC"},
    "p2": {"label": "p2", "color": "#FF8184"},
    "p3": {"label": "p3", "color": "#FDAA48"},
    "p4": {"label": "p4", "color": "#FFFFC5"},
}


@dataclass
class Priority:
    label: str
    color: str


class PriorityRegistry:
    """Ordered mapping of priority tag -> (label, color). Persisted through DocumentStore."""

    def __init__(self, entries: dict[str, dict] | None = None):
        source = DEFAULT_PRIORITIES if entries is None else entries
        self._entries: dict[str, Priority] = {
            tag: Priority(label=value["label"], color=value["color"]) for tag, value in source.items()
        }

    # ==================== Lookup ====================

    def __contains__(self, tag: str) -> bool:
        return tag in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def get(self, tag: str) -> Priority | None:
        return self._entries.get(tag)

    def tags(self) -> list[str]:
        return list(self._entries)

    def color_for(self, tag: str | None) -> str:
        return color_for(tag, self)

    # ==================== Editing ====================

    def add(self, label: str | None = None, color: str = NEW_PRIORITY_COLOR) -> str:
        """Add a new tag p<n>, the first free number after the current count. Returns the tag."""
        n = len(self._entries) + 1
        while f"p{n}" in self._entries:
            n += 1
        tag = f"p{n}"
        self._entries[tag] = Priority(label=label or tag, color=color)
        return tag

    def rename(self, tag: str, label: str) -> None:
        self._require(tag).label = label

    def recolor(self, tag: str, color: str) -> None:
        self._require(tag).color = color

    def delete(self, tag: str) -> None:
        """Remove a tag. Blocks still carrying it simply lose their highlight."""
        self._require(tag)
        del self._entries[tag]

    def _require(self, tag: str) -> Priority:
        if tag == NO_PRIORITY:
            raise KeyError("The 'none' priority cannot be edited")
        try:
            return self._entries[tag]
        except KeyError:
            raise KeyError(f"Unknown priority {tag!r}") from None

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, dict]:
        return {tag: {"label": p.label, "color": p.color} for tag, p in self._entries.items()}


def color_for(tag: str | None, registry: PriorityRegistry | dict | None) -> str:
    """
    Display color for a block's priority tag.

    "none", unknown tags and tags deleted after assignment all resolve to
    NO_HIGHLIGHT instead of failing.
    """
    if not tag or tag == NO_PRIORITY or registry is None:
        return NO_HIGHLIGHT

    if isinstance(registry, PriorityRegistry):
        entry = registry.get(tag)
        color = entry.color if entry else None
    else:
        entry = registry.get(tag)
        color = entry.get("color") if isinstance(entry, dict) else None

    if not color:
        logger.debug("No color for priority %r", tag)
        return NO_HIGHLIGHT
    return color
