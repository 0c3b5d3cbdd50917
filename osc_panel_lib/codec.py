"""
JSON Wire Format

Pydantic models for the persisted / exported JSON shape, plus the
conversions between that shape and the domain models.

On the wire every control is one flat record carrying the fields of
all control types, and the preset tree is nested. In memory controls
carry a per-type spec and the tree is an arena.
"""

import json
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .interactions import normalize_grid
from .model import (
    AppState, ButtonSpec, ChoiceSpec, ColorSpec, Control, ControlType,
    DEFAULT_HOST, DEFAULT_PORT, Layout, PadGridSpec, PresetNode, PresetTree,
    SliderSpec, TapTempoSpec, ToggleSpec, XYPadSpec, new_id,
)

logger = logging.getLogger(__name__)


class LayoutImportError(ValueError):
    """Raised when a file cannot be decoded into a layout."""


# =============================================================================
# WIRE SCHEMA
# =============================================================================

class PresetNodeDoc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    is_on: bool = Field(default=True, alias="isOn")
    children: Optional[List["PresetNodeDoc"]] = None


class ControlDoc(BaseModel):
    """Flat control record; fields that do not apply to a type keep defaults."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    name: str
    address: str
    type: ControlType = ControlType.SLIDER
    min: float = 0.0
    max: float = 1.0
    value: float = 0.0
    x: float = 0.5
    y: float = 0.5
    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0
    always_visible: bool = Field(default=True, alias="alwaysVisible")
    preset_ids: List[str] = Field(default_factory=list, alias="presetIDs")
    tap_reset_seconds: float = Field(default=2.0, alias="tapResetSeconds")
    grid_rows: int = Field(default=4, alias="gridRows")
    grid_cols: int = Field(default=4, alias="gridCols")
    grid_is_momentary: bool = Field(default=True, alias="gridIsMomentary")
    grid_states: List[bool] = Field(default_factory=list, alias="gridStates")
    choice_options: List[str] = Field(default_factory=list, alias="choiceOptions")
    choice_index: int = Field(default=0, alias="choiceIndex")


class LayoutDoc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    name: str
    controls: List[ControlDoc] = Field(default_factory=list)
    port: str = ""
    preset_tree: List[PresetNodeDoc] = Field(default_factory=list, alias="presetTree")


class AppStateDoc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    host: str = DEFAULT_HOST
    port: str = Field(
        default=DEFAULT_PORT,
        validation_alias=AliasChoices("port", "portString"),
        serialization_alias="port",
    )
    layouts: List[LayoutDoc] = Field(default_factory=list)
    selected_layout_id: Optional[str] = Field(default=None, alias="selectedLayoutID")


# =============================================================================
# PRESET TREE CONVERSION
# =============================================================================

def tree_from_docs(docs: Iterable[PresetNodeDoc]) -> PresetTree:
    """
    Flatten a nested preset forest into an arena.

    Raises:
        ValueError: the same preset id appears twice
    """
    nodes: Dict[str, PresetNode] = {}

    def visit(doc: PresetNodeDoc) -> str:
        if doc.id in nodes:
            raise ValueError(f"Duplicate preset id: {doc.id}")
        # Reserve the id before descending so nested duplicates are caught
        nodes[doc.id] = PresetNode(id=doc.id, name=doc.name, is_on=doc.is_on)
        children = tuple(visit(child) for child in doc.children or [])
        nodes[doc.id] = PresetNode(id=doc.id, name=doc.name, is_on=doc.is_on, children=children)
        return doc.id

    roots = tuple(visit(doc) for doc in docs)
    return PresetTree(nodes=nodes, roots=roots)


def tree_to_docs(tree: PresetTree) -> List[PresetNodeDoc]:
    def build(node_id: str) -> PresetNodeDoc:
        node = tree.nodes[node_id]
        children = [build(child) for child in node.children] or None
        return PresetNodeDoc(id=node.id, name=node.name, is_on=node.is_on, children=children)

    return [build(root) for root in tree.roots]


# =============================================================================
# CONTROL CONVERSION
# =============================================================================

def control_from_doc(doc: ControlDoc) -> Control:
    """Build a typed control; grid states and choice index are normalized."""
    kind = doc.type
    if kind == ControlType.SLIDER:
        spec = SliderSpec(min=doc.min, max=doc.max, value=doc.value)
    elif kind == ControlType.BUTTON:
        spec = ButtonSpec()
    elif kind == ControlType.TOGGLE:
        spec = ToggleSpec(is_on=doc.value > 0.5)
    elif kind == ControlType.XY_PAD:
        spec = XYPadSpec(min=doc.min, max=doc.max, x=doc.x, y=doc.y)
    elif kind == ControlType.COLOR:
        spec = ColorSpec(r=doc.r, g=doc.g, b=doc.b, a=doc.a)
    elif kind == ControlType.TAP_TEMPO:
        spec = TapTempoSpec(bpm=doc.value, reset_seconds=doc.tap_reset_seconds)
    elif kind == ControlType.PAD_GRID:
        spec = normalize_grid(doc.grid_rows, doc.grid_cols, doc.grid_is_momentary, doc.grid_states)
    else:
        options = tuple(doc.choice_options)
        index = min(max(doc.choice_index, 0), len(options) - 1) if options else 0
        spec = ChoiceSpec(options=options, index=index)

    return Control(
        id=doc.id,
        name=doc.name,
        address=doc.address,
        spec=spec,
        always_visible=doc.always_visible,
        preset_ids=tuple(doc.preset_ids),
    )


def control_to_doc(control: Control) -> ControlDoc:
    doc = ControlDoc(
        id=control.id,
        name=control.name,
        address=control.address,
        type=control.type,
        always_visible=control.always_visible,
        preset_ids=list(control.preset_ids),
    )
    spec = control.spec
    if isinstance(spec, SliderSpec):
        doc.min, doc.max, doc.value = spec.min, spec.max, spec.value
    elif isinstance(spec, ToggleSpec):
        doc.value = 1.0 if spec.is_on else 0.0
    elif isinstance(spec, XYPadSpec):
        doc.min, doc.max, doc.x, doc.y = spec.min, spec.max, spec.x, spec.y
    elif isinstance(spec, ColorSpec):
        doc.r, doc.g, doc.b, doc.a = spec.r, spec.g, spec.b, spec.a
    elif isinstance(spec, TapTempoSpec):
        doc.value = spec.bpm
        doc.tap_reset_seconds = spec.reset_seconds
    elif isinstance(spec, PadGridSpec):
        doc.grid_rows, doc.grid_cols = spec.rows, spec.cols
        doc.grid_is_momentary = spec.momentary
        doc.grid_states = list(spec.states)
    elif isinstance(spec, ChoiceSpec):
        doc.choice_options = list(spec.options)
        doc.choice_index = spec.index
        doc.value = float(spec.index)
    return doc


# =============================================================================
# LAYOUT / STATE CONVERSION
# =============================================================================

def layout_from_doc(doc: LayoutDoc) -> Layout:
    return Layout(
        id=doc.id,
        name=doc.name,
        controls=tuple(control_from_doc(c) for c in doc.controls),
        preset_tree=tree_from_docs(doc.preset_tree),
        port=doc.port,
    )


def layout_to_doc(layout: Layout) -> LayoutDoc:
    return LayoutDoc(
        id=layout.id,
        name=layout.name,
        controls=[control_to_doc(c) for c in layout.controls],
        port=layout.port,
        preset_tree=tree_to_docs(layout.preset_tree),
    )


def state_from_doc(doc: AppStateDoc) -> AppState:
    return AppState(
        host=doc.host,
        port=doc.port,
        layouts=tuple(layout_from_doc(l) for l in doc.layouts),
        selected_layout_id=doc.selected_layout_id,
    )


def state_to_doc(state: AppState) -> AppStateDoc:
    return AppStateDoc(
        host=state.host,
        port=state.port,
        layouts=[layout_to_doc(l) for l in state.layouts],
        selected_layout_id=state.selected_layout_id,
    )


def _dumps(doc: BaseModel) -> str:
    return json.dumps(doc.model_dump(mode="json", by_alias=True), indent=2, sort_keys=True)


def encode_state(state: AppState) -> str:
    return _dumps(state_to_doc(state))


def decode_state(data: Union[str, bytes]) -> AppState:
    """
    Decode a persisted state.

    Raises:
        ValueError: malformed JSON or schema mismatch
    """
    return state_from_doc(AppStateDoc.model_validate_json(data))


def encode_layout(layout: Layout) -> str:
    """Pretty-printed, key-sorted JSON for a single layout (export format)."""
    return _dumps(layout_to_doc(layout))


# =============================================================================
# IMPORT
# =============================================================================

def decode_layout_file(data: Union[str, bytes]) -> Layout:
    """
    Decode an import file holding either one layout or a full app state.

    For a full app state the selected layout is taken, or else the first.

    Raises:
        LayoutImportError: the file cannot be decoded or holds no layout
    """
    try:
        raw = json.loads(data)
        if isinstance(raw, dict) and "layouts" in raw:
            state_doc = AppStateDoc.model_validate(raw)
            chosen = next(
                (l for l in state_doc.layouts if l.id == state_doc.selected_layout_id),
                state_doc.layouts[0] if state_doc.layouts else None,
            )
            if chosen is None:
                raise LayoutImportError("File contains no layouts")
            return layout_from_doc(chosen)
        return layout_from_doc(LayoutDoc.model_validate(raw))
    except LayoutImportError:
        raise
    except (ValidationError, ValueError, TypeError) as e:
        raise LayoutImportError(f"Could not read layout: {e}") from e


def unique_layout_name(name: str, existing: Iterable[str]) -> str:
    """Append " (2)", " (3)", ... until the name is not taken."""
    taken = set(existing)
    if name not in taken:
        return name
    n = 2
    while f"{name} ({n})" in taken:
        n += 1
    return f"{name} ({n})"


def prepare_import(data: Union[str, bytes], existing_names: Iterable[str]) -> Layout:
    """
    Decode an import file and make it safe to add to the state.

    Layout and control ids are regenerated and the name is de-duplicated.
    Preset node ids are kept as they are in the file, so importing the same
    file twice yields two layouts sharing preset ids.
    """
    layout = decode_layout_file(data)
    controls = tuple(replace(c, id=new_id()) for c in layout.controls)
    imported = replace(
        layout,
        id=new_id(),
        name=unique_layout_name(layout.name, existing_names),
        controls=controls,
    )
    logger.info(f"Prepared import of '{imported.name}' ({len(controls)} controls)")
    return imported
