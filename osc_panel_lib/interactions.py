"""
Control Interactions - Pure Functions

Translate a raw widget interaction into the updated control and the
messages the widget emits. Emitted addresses are raw (base address plus
suffix); callers pass them through address.resolve_address().
"""

import time
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union

from .address import as_float, bool_to_float, normalize_base
from .model import (
    ButtonSpec, ChoiceSpec, ColorSpec, Control, ControlType, DEFAULT_SPECS,
    PadGridSpec, SliderSpec, TapTempoSpec, ToggleSpec, XYPadSpec,
)

# (raw address, args)
RawMessage = Tuple[str, Tuple[float, ...]]


# =============================================================================
# INTERACTION TYPES
# =============================================================================

@dataclass(frozen=True)
class SetValue:
    """Slider moved."""
    value: float


@dataclass(frozen=True)
class Press:
    """Button pressed."""
    pass


@dataclass(frozen=True)
class SetToggle:
    is_on: bool


@dataclass(frozen=True)
class SetXY:
    x: float
    y: float


@dataclass(frozen=True)
class SetColor:
    r: float
    g: float
    b: float
    a: float = 1.0


@dataclass(frozen=True)
class Tap:
    """Tap tempo tap; timestamp defaults to time.monotonic()."""
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class GridPad:
    """Pad grid cell pressed (pressed=True) or released."""
    row: int
    col: int
    pressed: bool = True


@dataclass(frozen=True)
class Choose:
    index: int


Interaction = Union[SetValue, Press, SetToggle, SetXY, SetColor, Tap, GridPad, Choose]


def _clamp(value: float, low: float, high: float) -> float:
    if high < low:
        low, high = high, low
    return max(low, min(high, value))


def _expect(control: Control, spec_type: type, interaction: Interaction):
    if not isinstance(control.spec, spec_type):
        raise ValueError(
            f"{type(interaction).__name__} does not apply to {control.type.value} control '{control.name}'"
        )
    return control.spec


# =============================================================================
# APPLY
# =============================================================================

def apply_interaction(control: Control, interaction: Interaction) -> Tuple[Control, List[RawMessage]]:
    """
    Apply an interaction to a control.

    Returns:
        (updated_control, raw_messages)

    Raises:
        ValueError: interaction does not fit the control type, or the
            interaction carries malformed input (grid cell or choice index
            out of range, choice without options)
    """
    base = normalize_base(control.address)

    if isinstance(interaction, SetValue):
        spec = _expect(control, SliderSpec, interaction)
        value = as_float(_clamp(interaction.value, spec.min, spec.max))
        return replace(control, spec=replace(spec, value=value)), [(base, (value,))]

    if isinstance(interaction, Press):
        _expect(control, ButtonSpec, interaction)
        return control, [(base, (1.0,))]

    if isinstance(interaction, SetToggle):
        spec = _expect(control, ToggleSpec, interaction)
        updated = replace(control, spec=replace(spec, is_on=interaction.is_on))
        return updated, [(base, (bool_to_float(interaction.is_on),))]

    if isinstance(interaction, SetXY):
        spec = _expect(control, XYPadSpec, interaction)
        x = as_float(_clamp(interaction.x, spec.min, spec.max))
        y = as_float(_clamp(interaction.y, spec.min, spec.max))
        updated = replace(control, spec=replace(spec, x=x, y=y))
        return updated, [(f"{base}/x", (x,)), (f"{base}/y", (y,))]

    if isinstance(interaction, SetColor):
        spec = _expect(control, ColorSpec, interaction)
        r, g, b, a = (
            as_float(_clamp(c, 0.0, 1.0))
            for c in (interaction.r, interaction.g, interaction.b, interaction.a)
        )
        updated = replace(control, spec=replace(spec, r=r, g=g, b=b, a=a))
        return updated, [
            (f"{base}/r", (r,)), (f"{base}/g", (g,)),
            (f"{base}/b", (b,)), (f"{base}/a", (a,)),
        ]

    if isinstance(interaction, Tap):
        return _apply_tap(control, _expect(control, TapTempoSpec, interaction), interaction, base)

    if isinstance(interaction, GridPad):
        return _apply_grid(control, _expect(control, PadGridSpec, interaction), interaction, base)

    if isinstance(interaction, Choose):
        spec = _expect(control, ChoiceSpec, interaction)
        if not spec.options:
            raise ValueError(f"Choice control '{control.name}' has no options")
        if not 0 <= interaction.index < len(spec.options):
            raise ValueError(f"Choice index {interaction.index} out of range")
        updated = replace(control, spec=replace(spec, index=interaction.index))
        return updated, [(base, (float(interaction.index),))]

    raise ValueError(f"Unknown interaction: {interaction!r}")


def _apply_tap(control: Control, spec: TapTempoSpec, tap: Tap, base: str) -> Tuple[Control, List[RawMessage]]:
    now = time.monotonic() if tap.timestamp is None else tap.timestamp
    messages: List[RawMessage] = [(f"{base}/tap", (1.0,))]
    bpm = spec.bpm

    if spec.last_tap is not None:
        interval = now - spec.last_tap
        if 0 < interval <= spec.reset_seconds:
            bpm = as_float(60.0 / interval)
            messages.append((f"{base}/bpm", (bpm,)))

    return replace(control, spec=replace(spec, bpm=bpm, last_tap=now)), messages


def _apply_grid(control: Control, spec: PadGridSpec, pad: GridPad, base: str) -> Tuple[Control, List[RawMessage]]:
    if not (0 <= pad.row < spec.rows and 0 <= pad.col < spec.cols):
        raise ValueError(f"Grid cell ({pad.row}, {pad.col}) out of range")
    address = f"{base}/{pad.row}/{pad.col}"

    if spec.momentary:
        return control, [(address, (bool_to_float(pad.pressed),))]

    # Latching grids flip on press and ignore release
    if not pad.pressed:
        return control, []
    cell = pad.row * spec.cols + pad.col
    states = list(spec.states)
    states[cell] = not states[cell]
    updated = replace(control, spec=replace(spec, states=tuple(states)))
    return updated, [(address, (bool_to_float(states[cell]),))]


# =============================================================================
# EDITING HELPERS
# =============================================================================

def change_control_type(control: Control, new_type: ControlType) -> Control:
    """
    Switch control type, keeping id, name, address and visibility.

    Type-specific fields are reset to the defaults of the new type.
    """
    if control.type == new_type:
        return control
    return replace(control, spec=DEFAULT_SPECS[new_type])


def normalize_grid(rows: int, cols: int, momentary: bool, states=()) -> PadGridSpec:
    """
    Build a consistent PadGridSpec from possibly inconsistent input.

    Rows and cols are at least 1; momentary grids drop their states;
    latching grids pad with False or truncate to rows*cols.
    """
    rows = max(1, rows)
    cols = max(1, cols)
    if momentary:
        return PadGridSpec(rows=rows, cols=cols, momentary=True)
    expected = rows * cols
    cells = [bool(s) for s in states][:expected]
    cells.extend([False] * (expected - len(cells)))
    return PadGridSpec(rows=rows, cols=cols, momentary=False, states=tuple(cells))


def parse_choice_options(csv: str, current_index: int = 0) -> ChoiceSpec:
    """
    Parse comma-separated options; trims entries, drops empty ones and
    clamps the selected index into range.
    """
    options = tuple(opt.strip() for opt in csv.split(",") if opt.strip())
    if not options:
        return ChoiceSpec(options=(), index=0)
    index = min(max(current_index, 0), len(options) - 1)
    return ChoiceSpec(options=options, index=index)


def current_value(control: Control) -> Optional[float]:
    """Primary numeric value of a control, as it would be sent (None for buttons/xy/color/grid)."""
    spec = control.spec
    if isinstance(spec, SliderSpec):
        return spec.value
    if isinstance(spec, ToggleSpec):
        return bool_to_float(spec.is_on)
    if isinstance(spec, TapTempoSpec):
        return spec.bpm
    if isinstance(spec, ChoiceSpec):
        return float(spec.index)
    return None
