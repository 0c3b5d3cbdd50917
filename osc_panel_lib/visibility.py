"""
Control Visibility Resolution

Decides which controls of a layout are visible for the current preset
toggle state and groups them into display sections. Recomputed from
scratch on every call; no caching.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Tuple

from .model import Control, Layout, PresetTree
from .tree import enabled_ids, enabled_in_order

ALWAYS_VISIBLE_TITLE = "Always Visible"
OTHER_CONTROLS_TITLE = "Other Controls"


class SectionKind(str, Enum):
    ALWAYS = "always"
    PRESET = "preset"
    OTHER = "other"


@dataclass(frozen=True)
class ControlSection:
    """
    A titled group of visible controls.

    Attributes:
        title: Section header ("Always Visible", a preset name, "Other Controls")
        kind: Section category
        preset_id: Governing preset for PRESET sections
        controls: Controls in layout order
    """
    title: str
    kind: SectionKind
    controls: Tuple[Control, ...]
    preset_id: Optional[str] = None


def is_visible(control: Control, enabled: FrozenSet[str]) -> bool:
    """Always-visible controls, or controls linked to an effectively enabled preset."""
    if control.always_visible:
        return True
    return any(pid in enabled for pid in control.preset_ids)


def visible_controls(tree: PresetTree, controls: Sequence[Control]) -> List[Control]:
    enabled = enabled_ids(tree)
    return [c for c in controls if is_visible(c, enabled)]


def primary_preset(control: Control, ordered_enabled: Sequence[Tuple[str, str]]) -> Optional[str]:
    """
    Earliest (tree pre-order) enabled preset the control links to.

    Args:
        ordered_enabled: Output of enabled_in_order()
    """
    linked = set(control.preset_ids)
    for preset_id, _ in ordered_enabled:
        if preset_id in linked:
            return preset_id
    return None


def build_control_sections(tree: PresetTree, controls: Sequence[Control]) -> List[ControlSection]:
    """
    Group visible controls into ordered sections.

    Order: "Always Visible" first, then one section per enabled preset in
    tree pre-order (only presets that govern at least one control), then
    "Other Controls". Empty sections are omitted.
    """
    ordered = enabled_in_order(tree)
    visible = visible_controls(tree, controls)

    always: List[Control] = []
    by_preset = {preset_id: [] for preset_id, _ in ordered}
    other: List[Control] = []

    for control in visible:
        if control.always_visible:
            always.append(control)
            continue
        preset_id = primary_preset(control, ordered)
        if preset_id is None:
            other.append(control)
        else:
            by_preset[preset_id].append(control)

    sections: List[ControlSection] = []
    if always:
        sections.append(ControlSection(ALWAYS_VISIBLE_TITLE, SectionKind.ALWAYS, tuple(always)))
    for preset_id, name in ordered:
        grouped = by_preset[preset_id]
        if grouped:
            sections.append(ControlSection(name, SectionKind.PRESET, tuple(grouped), preset_id))
    if other:
        sections.append(ControlSection(OTHER_CONTROLS_TITLE, SectionKind.OTHER, tuple(other)))
    return sections


def layout_sections(layout: Layout) -> List[ControlSection]:
    return build_control_sections(layout.preset_tree, layout.controls)
