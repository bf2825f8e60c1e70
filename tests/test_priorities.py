"""Tests for the priority registry and color resolution."""

import pytest

from dayplan.timeblocks.priorities import (
    DEFAULT_PRIORITIES,
    NEW_PRIORITY_COLOR,
    NO_HIGHLIGHT,
    PALETTE,
    PriorityRegistry,
    color_for,
)


@pytest.fixture
def registry():
    return PriorityRegistry()


class TestColorFor:
    def test_known_tag(self, registry):
        assert color_for("p1", registry) == "#D6B4FC"
        assert registry.color_for("p4") == "#FFFFC5"

    def test_none_tag(self, registry):
        assert color_for("none", registry) == NO_HIGHLIGHT
        assert color_for(None, registry) == NO_HIGHLIGHT
        assert color_for("", registry) == NO_HIGHLIGHT

    def test_unknown_tag(self, registry):
        assert color_for("p42", registry) == NO_HIGHLIGHT

    def test_deleted_after_assignment(self, registry):
        registry.delete("p2")

        assert color_for("p2", registry) == NO_HIGHLIGHT

    def test_plain_dict_registry(self):
        assert color_for("p3", DEFAULT_PRIORITIES) == "#FDAA48"
        assert color_for("p3", {"p3": "not a dict"}) == NO_HIGHLIGHT

    def test_missing_registry(self):
        assert color_for("p1", None) == NO_HIGHLIGHT


class TestRegistryEditing:
    def test_defaults(self, registry):
        assert registry.tags() == ["p1", "p2", "p3", "p4"]
        assert registry.to_dict() == DEFAULT_PRIORITIES

    def test_add_uses_next_number_and_grey(self, registry):
        tag = registry.add()

        assert tag == "p5"
        assert registry.get("p5").label == "p5"
        assert registry.get("p5").color == NEW_PRIORITY_COLOR

    def test_add_skips_taken_numbers(self, registry):
        registry.delete("p2")  # 3 left, p4 exists

        assert registry.add("Later") == "p5"
        assert registry.get("p5").label == "Later"

    def test_rename_and_recolor(self, registry):
        registry.rename("p1", "Urgent")
        registry.recolor("p1", PALETTE[4])

        assert registry.get("p1").label == "Urgent"
        assert registry.color_for("p1") == "#D1FFBD"

    def test_edit_unknown_tag_rejected(self, registry):
        with pytest.raises(KeyError):
            registry.rename("p9", "x")
        with pytest.raises(KeyError):
            registry.delete("none")

    def test_custom_entries(self):
        registry = PriorityRegistry({"work": {"label": "Work", "color": "#90D5FF"}})

        assert "work" in registry
        assert len(registry) == 1
        assert list(registry) == ["work"]

    def test_palette_has_seven_colors(self):
        assert len(PALETTE) == 7
        assert NEW_PRIORITY_COLOR in PALETTE
