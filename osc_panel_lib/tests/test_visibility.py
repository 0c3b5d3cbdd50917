"""
Tests for control visibility and section grouping.
"""

from dataclasses import replace

from osc_panel_lib.model import Control
from osc_panel_lib.tree import delete, enabled_in_order, set_preset_on
from osc_panel_lib.visibility import (
    ALWAYS_VISIBLE_TITLE, OTHER_CONTROLS_TITLE, SectionKind,
    build_control_sections, is_visible, layout_sections, primary_preset,
    visible_controls,
)


def _titles(sections):
    return [section.title for section in sections]


def _names(section):
    return [control.name for control in section.controls]


class TestVisibility:
    """Test the visibility predicate."""

    def test_always_visible_ignores_presets(self):
        control = Control(id="c", name="C", address="/c", always_visible=True, preset_ids=("gone",))
        assert is_visible(control, frozenset())

    def test_linked_to_enabled_preset(self):
        control = Control(id="c", name="C", address="/c", always_visible=False, preset_ids=("x", "y"))
        assert is_visible(control, frozenset({"y"}))
        assert not is_visible(control, frozenset({"z"}))

    def test_no_links_is_hidden(self):
        control = Control(id="c", name="C", address="/c", always_visible=False)
        assert not is_visible(control, frozenset({"a"}))

    def test_visible_controls_keep_layout_order(self, sample_layout):
        visible = visible_controls(sample_layout.preset_tree, sample_layout.controls)
        assert [c.id for c in visible] == ["master", "kick", "snare"]

    def test_disabled_ancestor_hides_control(self, sample_layout):
        """"muted" links f, which is on but sits under disabled e."""
        assert sample_layout.preset_tree.get("f").is_on
        visible = visible_controls(sample_layout.preset_tree, sample_layout.controls)
        assert "muted" not in [c.id for c in visible]

    def test_enabling_ancestor_reveals_control(self, sample_layout):
        tree, _ = set_preset_on(sample_layout.preset_tree, "e", True)
        visible = visible_controls(tree, sample_layout.controls)
        assert "muted" in [c.id for c in visible]


class TestPrimaryPreset:
    """Test earliest-in-tree-order linking."""

    def test_tree_order_beats_link_order(self, sample_layout):
        snare = sample_layout.find_control("snare")
        assert snare.preset_ids == ("c", "b")
        ordered = enabled_in_order(sample_layout.preset_tree)
        assert primary_preset(snare, ordered) == "b"

    def test_no_enabled_link(self, sample_layout):
        hidden = sample_layout.find_control("hidden")
        ordered = enabled_in_order(sample_layout.preset_tree)
        assert primary_preset(hidden, ordered) is None


class TestSections:
    """Test section grouping."""

    def test_sample_layout_sections(self, sample_layout):
        sections = layout_sections(sample_layout)

        assert _titles(sections) == [ALWAYS_VISIBLE_TITLE, "B"]
        assert sections[0].kind == SectionKind.ALWAYS
        assert _names(sections[0]) == ["Master"]
        assert sections[1].kind == SectionKind.PRESET
        assert sections[1].preset_id == "b"
        assert _names(sections[1]) == ["Kick", "Snare"]

    def test_each_visible_control_in_exactly_one_section(self, sample_layout):
        sections = layout_sections(sample_layout)
        placed = [c.id for section in sections for c in section.controls]
        visible = visible_controls(sample_layout.preset_tree, sample_layout.controls)
        assert sorted(placed) == sorted(c.id for c in visible)
        assert len(placed) == len(set(placed))

    def test_deterministic(self, sample_layout):
        assert layout_sections(sample_layout) == layout_sections(sample_layout)

    def test_disabling_primary_moves_control_to_next_preset(self, sample_layout):
        tree, _ = set_preset_on(sample_layout.preset_tree, "b", False)
        sections = build_control_sections(tree, sample_layout.controls)
        assert _titles(sections) == [ALWAYS_VISIBLE_TITLE, "C"]
        assert _names(sections[1]) == ["Snare"]

    def test_empty_sections_omitted(self, sample_layout):
        only_hidden = [sample_layout.find_control("hidden")]
        assert build_control_sections(sample_layout.preset_tree, only_hidden) == []

    def test_multi_root_sections_follow_tree_order(self, tree_builder):
        tree = tree_builder([("x", True, []), ("y", True, [])])
        controls = [
            Control(id="1", name="One", address="/o", always_visible=False, preset_ids=("y",)),
            Control(id="2", name="Two", address="/t", always_visible=False, preset_ids=("x",)),
        ]
        sections = build_control_sections(tree, controls)
        assert _titles(sections) == ["X", "Y"]
        assert _names(sections[0]) == ["Two"]

    def test_end_to_end_toggle_scenario(self, sample_layout):
        """Delete a preset, then check nothing points at it and sections follow."""
        tree, deleted = delete(sample_layout.preset_tree, "b")
        controls = tuple(
            replace(c, preset_ids=tuple(p for p in c.preset_ids if p not in deleted))
            for c in sample_layout.controls
        )
        layout = replace(sample_layout, preset_tree=tree, controls=controls)

        sections = layout_sections(layout)
        assert _titles(sections) == [ALWAYS_VISIBLE_TITLE, "C"]
        assert _names(sections[1]) == ["Snare"]
        assert OTHER_CONTROLS_TITLE not in _titles(sections)
