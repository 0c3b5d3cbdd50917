"""
OSC Panel Library

Layouts of OSC controls (sliders, buttons, toggles, XY pads, color
pickers, tap tempo, pad grids, choice selectors) gated by a tree of
independently toggleable presets.

Features:
- Preset tree engine: insert, move, cascade delete, clone with id remap
- Visibility resolution and grouping of controls by primary preset
- Deterministic OSC address construction from base address and name
- Pure reducer for state transitions with effects for the imperative shell

Usage:
    from osc_panel_lib import (
        PanelController, OscTransport, StateStorage,
        AddRootPreset, TogglePreset, Interact, SetValue,
    )

    controller = PanelController(transport=OscTransport(), storage=StateStorage())
    layout_id = controller.state.selected_layout_id

    action = AddRootPreset(layout_id, "Drums")
    controller.dispatch(action)
    controller.dispatch(TogglePreset(layout_id, action.preset_id, False))

    for section in controller.sections():
        print(section.title, [c.name for c in section.controls])
"""

from .model import (
    # Preset tree
    PresetNode,
    PresetTree,
    new_id,
    # Controls
    ControlType,
    SliderSpec,
    ButtonSpec,
    ToggleSpec,
    XYPadSpec,
    ColorSpec,
    TapTempoSpec,
    PadGridSpec,
    ChoiceSpec,
    DEFAULT_SPECS,
    Control,
    # Layouts and state
    Layout,
    AppState,
    default_state,
    # Effect types
    Effect,
    SendOscEffect,
    SaveStateEffect,
    LogEffect,
)
from .tree import (
    MoveOutcome,
    insert_child,
    append_root,
    extract,
    move,
    delete,
    enabled_ids,
    enabled_in_order,
    clone,
    picker_options,
)
from .visibility import (
    SectionKind,
    ControlSection,
    visible_controls,
    primary_preset,
    build_control_sections,
    layout_sections,
)
from .address import (
    sanitize_segment,
    normalize_address,
    normalize_base,
    resolve_address,
    preset_toggle_address,
)
from .interactions import (
    SetValue,
    Press,
    SetToggle,
    SetXY,
    SetColor,
    Tap,
    GridPad,
    Choose,
    apply_interaction,
    change_control_type,
    normalize_grid,
    parse_choice_options,
)
from .duplicate import duplicate_layout, remap_preset_ids
from .codec import (
    LayoutImportError,
    encode_state,
    decode_state,
    encode_layout,
    decode_layout_file,
    prepare_import,
)
from .reducer import (
    SetHost,
    SetDefaultPort,
    AddLayout,
    SelectLayout,
    RenameLayout,
    SetLayoutPort,
    DeleteLayout,
    DuplicateLayout,
    ImportLayout,
    AddControl,
    UpdateControl,
    ChangeControlType,
    RemoveControl,
    LinkPresets,
    AddRootPreset,
    AddChildPreset,
    MovePreset,
    DeletePreset,
    RenamePreset,
    TogglePreset,
    Interact,
    reduce,
    ensure_selection,
)
from .transport import OscTransport
from .storage import StateStorage, DEFAULT_STATE_PATH
from .settings import PanelSettings, load_settings, save_settings, DEFAULT_CONFIG_PATH
from .controller import PanelController

__all__ = [
    # Preset tree
    "PresetNode",
    "PresetTree",
    "new_id",
    "MoveOutcome",
    "insert_child",
    "append_root",
    "extract",
    "move",
    "delete",
    "enabled_ids",
    "enabled_in_order",
    "clone",
    "picker_options",
    # Controls
    "ControlType",
    "SliderSpec",
    "ButtonSpec",
    "ToggleSpec",
    "XYPadSpec",
    "ColorSpec",
    "TapTempoSpec",
    "PadGridSpec",
    "ChoiceSpec",
    "DEFAULT_SPECS",
    "Control",
    # Layouts and state
    "Layout",
    "AppState",
    "default_state",
    # Effects
    "Effect",
    "SendOscEffect",
    "SaveStateEffect",
    "LogEffect",
    # Visibility
    "SectionKind",
    "ControlSection",
    "visible_controls",
    "primary_preset",
    "build_control_sections",
    "layout_sections",
    # Addresses
    "sanitize_segment",
    "normalize_address",
    "normalize_base",
    "resolve_address",
    "preset_toggle_address",
    # Interactions
    "SetValue",
    "Press",
    "SetToggle",
    "SetXY",
    "SetColor",
    "Tap",
    "GridPad",
    "Choose",
    "apply_interaction",
    "change_control_type",
    "normalize_grid",
    "parse_choice_options",
    # Duplication
    "duplicate_layout",
    "remap_preset_ids",
    # JSON
    "LayoutImportError",
    "encode_state",
    "decode_state",
    "encode_layout",
    "decode_layout_file",
    "prepare_import",
    # Reducer
    "SetHost",
    "SetDefaultPort",
    "AddLayout",
    "SelectLayout",
    "RenameLayout",
    "SetLayoutPort",
    "DeleteLayout",
    "DuplicateLayout",
    "ImportLayout",
    "AddControl",
    "UpdateControl",
    "ChangeControlType",
    "RemoveControl",
    "LinkPresets",
    "AddRootPreset",
    "AddChildPreset",
    "MovePreset",
    "DeletePreset",
    "RenamePreset",
    "TogglePreset",
    "Interact",
    "reduce",
    "ensure_selection",
    # Shell
    "OscTransport",
    "StateStorage",
    "DEFAULT_STATE_PATH",
    "PanelSettings",
    "load_settings",
    "save_settings",
    "DEFAULT_CONFIG_PATH",
    "PanelController",
]

__version__ = "1.0.0"
