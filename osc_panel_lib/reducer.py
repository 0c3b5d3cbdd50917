"""
State Transitions - Pure Functions

reduce(state, action) -> (new_state, effects)

Same input = same output, no side effects. Effects (OSC sends, saves,
log lines) are returned for the imperative shell to execute. Every
transition ends in ensure_selection(), the one place that keeps
selected_layout_id pointing at an existing layout (or None).
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .address import normalize_address, preset_toggle_address, resolve_address
from .codec import LayoutImportError, prepare_import
from .duplicate import duplicate_layout
from .interactions import Interaction, RawMessage, apply_interaction, change_control_type
from .model import (
    AppState, Control, ControlType, Effect, Layout, LogEffect, PresetNode,
    PresetTree, SaveStateEffect, SendOscEffect, SliderSpec, new_id,
)
from . import tree as presets

Transition = Tuple[AppState, List[Effect]]


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class SetHost:
    host: str


@dataclass(frozen=True)
class SetDefaultPort:
    port: str


@dataclass(frozen=True)
class AddLayout:
    name: str
    port: str = ""
    layout_id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class SelectLayout:
    layout_id: str


@dataclass(frozen=True)
class RenameLayout:
    layout_id: str
    name: str


@dataclass(frozen=True)
class SetLayoutPort:
    layout_id: str
    port: str


@dataclass(frozen=True)
class DeleteLayout:
    layout_id: str


@dataclass(frozen=True)
class DuplicateLayout:
    """Duplicate a layout (the selected one when layout_id is None)."""
    layout_id: Optional[str] = None


@dataclass(frozen=True)
class ImportLayout:
    """Import a layout file (single layout or full app state JSON)."""
    data: Union[str, bytes]


@dataclass(frozen=True)
class AddControl:
    layout_id: str
    control: Control


@dataclass(frozen=True)
class UpdateControl:
    """Replace a control (matched by id) with an edited version."""
    layout_id: str
    control: Control


@dataclass(frozen=True)
class ChangeControlType:
    layout_id: str
    control_id: str
    new_type: ControlType


@dataclass(frozen=True)
class RemoveControl:
    layout_id: str
    control_id: str


@dataclass(frozen=True)
class LinkPresets:
    """Set the presets that reveal a control; always_visible=None keeps the flag."""
    layout_id: str
    control_id: str
    preset_ids: Tuple[str, ...]
    always_visible: Optional[bool] = None


@dataclass(frozen=True)
class AddRootPreset:
    layout_id: str
    name: str
    preset_id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class AddChildPreset:
    layout_id: str
    parent_id: str
    name: str
    preset_id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class MovePreset:
    """Re-parent a preset; new_parent_id=None makes it a root."""
    layout_id: str
    preset_id: str
    new_parent_id: Optional[str] = None


@dataclass(frozen=True)
class DeletePreset:
    layout_id: str
    preset_id: str


@dataclass(frozen=True)
class RenamePreset:
    layout_id: str
    preset_id: str
    name: str


@dataclass(frozen=True)
class TogglePreset:
    layout_id: str
    preset_id: str
    is_on: bool


@dataclass(frozen=True)
class Interact:
    """A widget interaction on a control."""
    layout_id: str
    control_id: str
    interaction: Interaction


Action = Union[
    SetHost, SetDefaultPort, AddLayout, SelectLayout, RenameLayout, SetLayoutPort,
    DeleteLayout, DuplicateLayout, ImportLayout, AddControl, UpdateControl,
    ChangeControlType, RemoveControl, LinkPresets, AddRootPreset, AddChildPreset,
    MovePreset, DeletePreset, RenamePreset, TogglePreset, Interact,
]


# =============================================================================
# HELPERS
# =============================================================================

def ensure_selection(state: AppState) -> AppState:
    """Point selected_layout_id at an existing layout: keep it, else first, else None."""
    if state.find_layout(state.selected_layout_id) is not None:
        return state
    first = state.layouts[0].id if state.layouts else None
    if first == state.selected_layout_id:
        return state
    return replace(state, selected_layout_id=first)


def parse_port(port: str) -> Optional[int]:
    """Port number from a string, or None unless it is an integer in 1..65535."""
    text = port.strip()
    if not text.isdigit():
        return None
    value = int(text)
    return value if 0 < value <= 65535 else None


def validate_control(control: Control) -> Optional[str]:
    """Error message for a control that cannot be added, or None."""
    if not control.name.strip():
        return "Control name must not be empty"
    if not control.address.strip():
        return "Control address must not be empty"
    spec = control.spec
    if isinstance(spec, SliderSpec) and spec.max <= spec.min:
        return "Max must be greater than Min"
    return None


def _unchanged(state: AppState, message: str, level: str = "DEBUG") -> Transition:
    return state, [LogEffect(message, level)]


def _saved(state: AppState, *effects: Effect) -> Transition:
    return state, list(effects) + [SaveStateEffect()]


def _replace_layout(state: AppState, layout: Layout) -> AppState:
    return replace(
        state,
        layouts=tuple(layout if l.id == layout.id else l for l in state.layouts),
    )


def _replace_control(layout: Layout, control: Control) -> Layout:
    return replace(
        layout,
        controls=tuple(control if c.id == control.id else c for c in layout.controls),
    )


def _linkable(layout: Layout, preset_ids: Sequence[str]) -> Tuple[str, ...]:
    """Preset ids present in the layout tree, de-duplicated, in order."""
    return tuple(dict.fromkeys(p for p in preset_ids if p in layout.preset_tree))


def _send_effects(state: AppState, layout: Layout, messages: Sequence[Tuple[str, tuple]]) -> List[Effect]:
    """SendOscEffects for resolved messages, or a warning if the port is invalid."""
    if not messages:
        return []
    port_text = layout.port or state.port
    port = parse_port(port_text)
    if port is None:
        return [LogEffect(f"Invalid port: {port_text!r}", "WARNING")]
    return [
        SendOscEffect(address=address, args=tuple(args), host=state.host, port=port)
        for address, args in messages
    ]


def _resolve(control: Control, raw_messages: List[RawMessage]) -> List[Tuple[str, tuple]]:
    return [
        (resolve_address(control.address, control.name, raw), args)
        for raw, args in raw_messages
    ]


# =============================================================================
# APP SETTINGS
# =============================================================================

def _set_host(state: AppState, action: SetHost) -> Transition:
    return _saved(replace(state, host=action.host.strip()))


def _set_default_port(state: AppState, action: SetDefaultPort) -> Transition:
    return _saved(replace(state, port=action.port.strip()))


# =============================================================================
# LAYOUTS
# =============================================================================

def _add_layout(state: AppState, action: AddLayout) -> Transition:
    name = action.name.strip()
    if not name:
        return _unchanged(state, "Layout name must not be empty", "WARNING")
    layout = Layout(id=action.layout_id, name=name, port=action.port.strip())
    new_state = replace(
        state, layouts=state.layouts + (layout,), selected_layout_id=layout.id
    )
    return _saved(new_state, LogEffect(f"Added layout '{name}'"))


def _select_layout(state: AppState, action: SelectLayout) -> Transition:
    if state.find_layout(action.layout_id) is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    return _saved(replace(state, selected_layout_id=action.layout_id))


def _rename_layout(state: AppState, action: RenameLayout) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    name = action.name.strip()
    if not name:
        return _unchanged(state, "Layout name must not be empty", "WARNING")
    return _saved(_replace_layout(state, replace(layout, name=name)))


def _set_layout_port(state: AppState, action: SetLayoutPort) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    return _saved(_replace_layout(state, replace(layout, port=action.port.strip())))


def _delete_layout(state: AppState, action: DeleteLayout) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    new_state = replace(
        state, layouts=tuple(l for l in state.layouts if l.id != action.layout_id)
    )
    return _saved(new_state, LogEffect(f"Deleted layout '{layout.name}'"))


def _duplicate_layout(state: AppState, action: DuplicateLayout) -> Transition:
    layout_id = action.layout_id or state.selected_layout_id
    layout = state.find_layout(layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {layout_id}")
    copy = duplicate_layout(layout)
    new_state = replace(
        state, layouts=state.layouts + (copy,), selected_layout_id=copy.id
    )
    return _saved(new_state, LogEffect(f"Duplicated layout '{layout.name}' as '{copy.name}'"))


def _import_layout(state: AppState, action: ImportLayout) -> Transition:
    try:
        layout = prepare_import(action.data, (l.name for l in state.layouts))
    except LayoutImportError as e:
        return _unchanged(state, f"Import failed: {e}", "WARNING")
    new_state = replace(
        state, layouts=state.layouts + (layout,), selected_layout_id=layout.id
    )
    return _saved(new_state, LogEffect(f"Imported layout '{layout.name}'"))


# =============================================================================
# CONTROLS
# =============================================================================

def _add_control(state: AppState, action: AddControl) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    error = validate_control(action.control)
    if error:
        return _unchanged(state, error, "WARNING")
    control = replace(
        action.control,
        name=action.control.name.strip(),
        address=normalize_address(action.control.address),
    )
    updated = replace(layout, controls=layout.controls + (control,))
    return _saved(_replace_layout(state, updated))


def _update_control(state: AppState, action: UpdateControl) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None or layout.find_control(action.control.id) is None:
        return _unchanged(state, f"Control not found: {action.control.id}")
    error = validate_control(action.control)
    if error:
        return _unchanged(state, error, "WARNING")
    control = replace(
        action.control,
        name=action.control.name.strip(),
        address=normalize_address(action.control.address),
        preset_ids=_linkable(layout, action.control.preset_ids),
    )
    return _saved(_replace_layout(state, _replace_control(layout, control)))


def _change_control_type(state: AppState, action: ChangeControlType) -> Transition:
    layout = state.find_layout(action.layout_id)
    control = layout.find_control(action.control_id) if layout else None
    if control is None:
        return _unchanged(state, f"Control not found: {action.control_id}")
    updated = change_control_type(control, action.new_type)
    return _saved(_replace_layout(state, _replace_control(layout, updated)))


def _remove_control(state: AppState, action: RemoveControl) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None or layout.find_control(action.control_id) is None:
        return _unchanged(state, f"Control not found: {action.control_id}")
    updated = replace(
        layout, controls=tuple(c for c in layout.controls if c.id != action.control_id)
    )
    return _saved(_replace_layout(state, updated))


def _link_presets(state: AppState, action: LinkPresets) -> Transition:
    layout = state.find_layout(action.layout_id)
    control = layout.find_control(action.control_id) if layout else None
    if control is None:
        return _unchanged(state, f"Control not found: {action.control_id}")
    always_visible = control.always_visible if action.always_visible is None else action.always_visible
    updated = replace(control, preset_ids=_linkable(layout, action.preset_ids), always_visible=always_visible)
    return _saved(_replace_layout(state, _replace_control(layout, updated)))


def _interact(state: AppState, action: Interact) -> Transition:
    layout = state.find_layout(action.layout_id)
    control = layout.find_control(action.control_id) if layout else None
    if control is None:
        return _unchanged(state, f"Control not found: {action.control_id}")
    try:
        updated, raw_messages = apply_interaction(control, action.interaction)
    except ValueError as e:
        return _unchanged(state, str(e), "WARNING")

    new_state = state
    if updated != control:
        new_state = _replace_layout(state, _replace_control(layout, updated))
    effects = _send_effects(new_state, layout, _resolve(control, raw_messages))
    if new_state is state:
        return state, effects
    return _saved(new_state, *effects)


# =============================================================================
# PRESETS
# =============================================================================

def _with_tree(state: AppState, layout: Layout, tree: PresetTree) -> AppState:
    return _replace_layout(state, replace(layout, preset_tree=tree))


def _add_root_preset(state: AppState, action: AddRootPreset) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    name = action.name.strip()
    if not name:
        return _unchanged(state, "Preset name must not be empty", "WARNING")
    if action.preset_id in layout.preset_tree:
        return _unchanged(state, f"Preset id already in use: {action.preset_id}", "WARNING")
    node = PresetNode(id=action.preset_id, name=name)
    tree, _ = presets.append_root(layout.preset_tree, node)
    return _saved(_with_tree(state, layout, tree))


def _add_child_preset(state: AppState, action: AddChildPreset) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    name = action.name.strip()
    if not name:
        return _unchanged(state, "Preset name must not be empty", "WARNING")
    if action.preset_id in layout.preset_tree:
        return _unchanged(state, f"Preset id already in use: {action.preset_id}", "WARNING")
    node = PresetNode(id=action.preset_id, name=name)
    tree, inserted = presets.insert_child(layout.preset_tree, action.parent_id, node)
    if not inserted:
        # Parent vanished: drop the request rather than create a detached node
        return _unchanged(state, f"Parent preset not found: {action.parent_id}")
    return _saved(_with_tree(state, layout, tree))


def _move_preset(state: AppState, action: MovePreset) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    tree, outcome = presets.move(layout.preset_tree, action.preset_id, action.new_parent_id)
    if outcome == presets.MoveOutcome.NOT_FOUND:
        return _unchanged(state, f"Preset not found: {action.preset_id}")
    effects: List[Effect] = []
    if outcome == presets.MoveOutcome.FELL_BACK_TO_ROOT:
        effects.append(LogEffect(
            f"Moved preset {action.preset_id} to root: parent {action.new_parent_id} not found",
            "WARNING",
        ))
    return _saved(_with_tree(state, layout, tree), *effects)


def _delete_preset(state: AppState, action: DeletePreset) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    tree, deleted = presets.delete(layout.preset_tree, action.preset_id)
    if not deleted:
        return _unchanged(state, f"Preset not found: {action.preset_id}")
    controls = tuple(
        replace(c, preset_ids=presets.prune_references(c.preset_ids, deleted))
        for c in layout.controls
    )
    updated = replace(layout, preset_tree=tree, controls=controls)
    return _saved(
        _replace_layout(state, updated),
        LogEffect(f"Deleted {len(deleted)} preset(s)"),
    )


def _rename_preset(state: AppState, action: RenamePreset) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    tree, found = presets.rename_preset(layout.preset_tree, action.preset_id, action.name)
    if not found:
        return _unchanged(state, f"Preset not found: {action.preset_id}")
    return _saved(_with_tree(state, layout, tree))


def _toggle_preset(state: AppState, action: TogglePreset) -> Transition:
    layout = state.find_layout(action.layout_id)
    if layout is None:
        return _unchanged(state, f"Layout not found: {action.layout_id}")
    tree, found = presets.set_preset_on(layout.preset_tree, action.preset_id, action.is_on)
    if not found:
        return _unchanged(state, f"Preset not found: {action.preset_id}")
    node = tree.nodes[action.preset_id]
    new_state = _with_tree(state, layout, tree)
    message = (
        preset_toggle_address(node.name),
        (node.id, node.name, 1 if action.is_on else 0),
    )
    return _saved(new_state, *_send_effects(new_state, layout, [message]))


# =============================================================================
# DISPATCH
# =============================================================================

_HANDLERS: Dict[type, Callable[[AppState, Action], Transition]] = {
    SetHost: _set_host,
    SetDefaultPort: _set_default_port,
    AddLayout: _add_layout,
    SelectLayout: _select_layout,
    RenameLayout: _rename_layout,
    SetLayoutPort: _set_layout_port,
    DeleteLayout: _delete_layout,
    DuplicateLayout: _duplicate_layout,
    ImportLayout: _import_layout,
    AddControl: _add_control,
    UpdateControl: _update_control,
    ChangeControlType: _change_control_type,
    RemoveControl: _remove_control,
    LinkPresets: _link_presets,
    AddRootPreset: _add_root_preset,
    AddChildPreset: _add_child_preset,
    MovePreset: _move_preset,
    DeletePreset: _delete_preset,
    RenamePreset: _rename_preset,
    TogglePreset: _toggle_preset,
    Interact: _interact,
}


def reduce(state: AppState, action: Action) -> Transition:
    """
    Apply an action to the state.

    Returns:
        (new_state, effects); new_state always satisfies the selection invariant

    Raises:
        TypeError: unknown action type
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {action!r}")
    new_state, effects = handler(state, action)
    return ensure_selection(new_state), effects
