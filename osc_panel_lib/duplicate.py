"""
Layout Duplication

Deep-copies a layout: preset tree and controls get fresh ids and every
control -> preset reference is remapped onto the copied tree.
"""

from dataclasses import replace
from typing import Callable, Dict, Sequence, Tuple

from .model import Layout, new_id
from .tree import clone

COPY_SUFFIX = " Copy"


def remap_preset_ids(preset_ids: Sequence[str], id_map: Dict[str, str]) -> Tuple[str, ...]:
    """Map references through id_map, dropping ids that have no mapping."""
    return tuple(id_map[pid] for pid in preset_ids if pid in id_map)


def duplicate_layout(
    layout: Layout,
    id_factory: Callable[[], str] = new_id,
    suffix: str = COPY_SUFFIX,
) -> Layout:
    """
    Independent copy of a layout.

    Args:
        layout: Layout to copy
        id_factory: Id generator (injectable for tests)
        suffix: Appended to the layout name
    """
    tree, id_map = clone(layout.preset_tree, id_factory)
    controls = tuple(
        replace(
            control,
            id=id_factory(),
            preset_ids=remap_preset_ids(control.preset_ids, id_map),
        )
        for control in layout.controls
    )
    return Layout(
        id=id_factory(),
        name=layout.name + suffix,
        controls=controls,
        preset_tree=tree,
        port=layout.port,
    )
