"""
Domain Models for OSC Panels

Immutable data structures for the preset tree, controls, layouts,
application state and the effects produced by state transitions.

The preset tree is stored as an arena: every node lives in a flat
mapping keyed by id and lists its children by id. Parent links are
derived by lookup, never stored.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple, Union


def new_id() -> str:
    """Fresh identifier (upper-case UUID4 string)."""
    return str(uuid.uuid4()).upper()


# =============================================================================
# PRESET TREE
# =============================================================================

@dataclass(frozen=True)
class PresetNode:
    """
    A toggleable, hierarchical tag that gates visibility of controls.

    Attributes:
        id: Unique identifier, only replaced when the tree is cloned
        name: Display name (not guaranteed unique)
        is_on: User toggle state
        children: Ordered child ids
    """
    id: str
    name: str
    is_on: bool = True
    children: Tuple[str, ...] = ()

    @classmethod
    def create(cls, name: str, is_on: bool = True) -> "PresetNode":
        """New leaf node with a fresh id."""
        return cls(id=new_id(), name=name, is_on=is_on)


@dataclass(frozen=True)
class PresetTree:
    """
    Rooted forest of preset nodes (arena form).

    Attributes:
        nodes: Every node of the forest keyed by id
        roots: Ordered root ids
    """
    nodes: Mapping[str, PresetNode] = field(default_factory=dict)
    roots: Tuple[str, ...] = ()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, node_id: str) -> Optional[PresetNode]:
        return self.nodes.get(node_id)

    def children_of(self, node_id: str) -> Tuple[str, ...]:
        node = self.nodes.get(node_id)
        return node.children if node else ()

    def parent_of(self, node_id: str) -> Optional[str]:
        """Derive the parent id of a node (None for roots and unknown ids)."""
        for candidate in self.nodes.values():
            if node_id in candidate.children:
                return candidate.id
        return None

    def walk(self) -> Iterator[Tuple[PresetNode, int]]:
        """Yield (node, depth) in pre-order: root first, children in stored order."""
        stack: List[Tuple[str, int]] = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node_id, depth = stack.pop()
            node = self.nodes[node_id]
            yield node, depth
            stack.extend((child, depth + 1) for child in reversed(node.children))

    def ids(self) -> List[str]:
        """All node ids in pre-order."""
        return [node.id for node, _ in self.walk()]

    def branch(self, node_id: str) -> Optional["PresetTree"]:
        """Sub-forest rooted at node_id, or None if the node is unknown."""
        if node_id not in self.nodes:
            return None
        collected: Dict[str, PresetNode] = {}
        pending = [node_id]
        while pending:
            current = self.nodes[pending.pop()]
            collected[current.id] = current
            pending.extend(current.children)
        return PresetTree(nodes=collected, roots=(node_id,))


# =============================================================================
# CONTROLS
# =============================================================================

class ControlType(str, Enum):
    """Control widget types (values match the JSON wire format)."""
    SLIDER = "slider"
    BUTTON = "button"
    TOGGLE = "toggle"
    XY_PAD = "xyPad"
    COLOR = "color"
    TAP_TEMPO = "tapTempo"
    PAD_GRID = "padGrid"
    CHOICE = "choice"


@dataclass(frozen=True)
class SliderSpec:
    type: ClassVar[ControlType] = ControlType.SLIDER
    min: float = 0.0
    max: float = 1.0
    value: float = 0.0


@dataclass(frozen=True)
class ButtonSpec:
    type: ClassVar[ControlType] = ControlType.BUTTON


@dataclass(frozen=True)
class ToggleSpec:
    type: ClassVar[ControlType] = ControlType.TOGGLE
    is_on: bool = False


@dataclass(frozen=True)
class XYPadSpec:
    """Min/max apply to both axes."""
    type: ClassVar[ControlType] = ControlType.XY_PAD
    min: float = 0.0
    max: float = 1.0
    x: float = 0.5
    y: float = 0.5


@dataclass(frozen=True)
class ColorSpec:
    """RGBA components in 0..1."""
    type: ClassVar[ControlType] = ControlType.COLOR
    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0


@dataclass(frozen=True)
class TapTempoSpec:
    """
    Tap tempo state.

    Attributes:
        bpm: Last computed tempo
        reset_seconds: Taps further apart than this start a new measurement
        last_tap: Timestamp of the previous tap (runtime only, not persisted)
    """
    type: ClassVar[ControlType] = ControlType.TAP_TEMPO
    bpm: float = 120.0
    reset_seconds: float = 2.0
    last_tap: Optional[float] = None


@dataclass(frozen=True)
class PadGridSpec:
    """
    Grid of pads addressed as /<row>/<col>.

    Momentary grids hold no state; latching grids hold rows*cols states
    in row-major order.
    """
    type: ClassVar[ControlType] = ControlType.PAD_GRID
    rows: int = 4
    cols: int = 4
    momentary: bool = True
    states: Tuple[bool, ...] = ()

    def __post_init__(self):
        if self.rows < 1 or self.cols < 1:
            raise ValueError("Grid needs at least one row and one column")
        if self.momentary and self.states:
            raise ValueError("Momentary grid must not hold pad states")
        if not self.momentary and len(self.states) != self.rows * self.cols:
            raise ValueError(
                f"Grid states must have {self.rows * self.cols} entries, got {len(self.states)}"
            )


@dataclass(frozen=True)
class ChoiceSpec:
    type: ClassVar[ControlType] = ControlType.CHOICE
    options: Tuple[str, ...] = ("A", "B", "C")
    index: int = 0

    def __post_init__(self):
        if not self.options:
            if self.index != 0:
                raise ValueError("Choice without options must have index 0")
        elif not 0 <= self.index < len(self.options):
            raise ValueError(f"Choice index {self.index} out of range")


ControlSpec = Union[
    SliderSpec, ButtonSpec, ToggleSpec, XYPadSpec,
    ColorSpec, TapTempoSpec, PadGridSpec, ChoiceSpec,
]

# Defaults applied when a control switches type
DEFAULT_SPECS: Dict[ControlType, ControlSpec] = {
    ControlType.SLIDER: SliderSpec(),
    ControlType.BUTTON: ButtonSpec(),
    ControlType.TOGGLE: ToggleSpec(),
    ControlType.XY_PAD: XYPadSpec(),
    ControlType.COLOR: ColorSpec(),
    ControlType.TAP_TEMPO: TapTempoSpec(),
    ControlType.PAD_GRID: PadGridSpec(),
    ControlType.CHOICE: ChoiceSpec(),
}


@dataclass(frozen=True)
class Control:
    """
    A single on-screen control.

    Attributes:
        id: Unique identifier
        name: Display name, also injected into outgoing addresses
        address: Base OSC address (starts with "/")
        spec: Type-specific fields
        always_visible: Ignore preset gating when True
        preset_ids: Presets that reveal this control when not always visible
    """
    id: str
    name: str
    address: str
    spec: ControlSpec = field(default_factory=SliderSpec)
    always_visible: bool = True
    preset_ids: Tuple[str, ...] = ()

    @property
    def type(self) -> ControlType:
        return self.spec.type

    @classmethod
    def create(cls, name: str, address: str, spec: Optional[ControlSpec] = None, **kwargs) -> "Control":
        return cls(id=new_id(), name=name, address=address, spec=spec or SliderSpec(), **kwargs)


# =============================================================================
# LAYOUT AND APPLICATION STATE
# =============================================================================

@dataclass(frozen=True)
class Layout:
    """
    Named collection of controls with its own preset tree and target port.

    An empty port means "use the application default port".
    """
    id: str
    name: str
    controls: Tuple[Control, ...] = ()
    preset_tree: PresetTree = field(default_factory=PresetTree)
    port: str = ""

    @classmethod
    def create(cls, name: str, port: str = "") -> "Layout":
        return cls(id=new_id(), name=name, port=port)

    def find_control(self, control_id: str) -> Optional[Control]:
        for control in self.controls:
            if control.id == control_id:
                return control
        return None


DEFAULT_HOST = "192.168.1.100"
DEFAULT_PORT = "9000"


@dataclass(frozen=True)
class AppState:
    """
    Complete application state (immutable).

    selected_layout_id is either None or the id of a layout in layouts;
    the reducer repairs it after every transition.
    """
    host: str = DEFAULT_HOST
    port: str = DEFAULT_PORT
    layouts: Tuple[Layout, ...] = ()
    selected_layout_id: Optional[str] = None

    def find_layout(self, layout_id: Optional[str]) -> Optional[Layout]:
        for layout in self.layouts:
            if layout.id == layout_id:
                return layout
        return None

    @property
    def selected_layout(self) -> Optional[Layout]:
        return self.find_layout(self.selected_layout_id)


def default_state() -> AppState:
    """Fresh state with a single empty "Default" layout selected."""
    layout = Layout.create("Default")
    return AppState(layouts=(layout,), selected_layout_id=layout.id)


# =============================================================================
# EFFECTS (Side effect descriptions for imperative shell)
# =============================================================================

@dataclass(frozen=True)
class Effect:
    """Base class for side effects."""
    pass


@dataclass(frozen=True)
class SendOscEffect(Effect):
    """Effect: Send an OSC message to host:port."""
    address: str
    args: Tuple[Any, ...]
    host: str
    port: int


@dataclass(frozen=True)
class SaveStateEffect(Effect):
    """Effect: Persist the current state."""
    pass


@dataclass(frozen=True)
class LogEffect(Effect):
    """Effect: Log a message."""
    message: str
    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
