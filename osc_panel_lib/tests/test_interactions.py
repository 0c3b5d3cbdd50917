"""
Tests for widget interactions and control editing helpers.
"""

import pytest

from osc_panel_lib.interactions import (
    Choose, GridPad, Press, SetColor, SetToggle, SetValue, SetXY, Tap,
    apply_interaction, change_control_type, current_value, normalize_grid,
    parse_choice_options,
)
from osc_panel_lib.model import (
    ButtonSpec, ChoiceSpec, ColorSpec, Control, ControlType, PadGridSpec,
    SliderSpec, TapTempoSpec, ToggleSpec, XYPadSpec,
)


def make(spec, address="/fx"):
    return Control(id="c1", name="Ctl", address=address, spec=spec)


# =============================================================================
# apply_interaction
# =============================================================================

class TestSliderAndButton:

    def test_slider_sends_value(self):
        control, messages = apply_interaction(make(SliderSpec()), SetValue(0.25))
        assert control.spec.value == 0.25
        assert messages == [("/fx", (0.25,))]

    def test_slider_clamps_to_range(self):
        control, messages = apply_interaction(make(SliderSpec(min=0, max=10)), SetValue(42))
        assert control.spec.value == 10.0
        assert messages == [("/fx", (10.0,))]

    def test_slider_value_is_single_precision(self):
        _, messages = apply_interaction(make(SliderSpec()), SetValue(0.1))
        assert messages[0][1][0] != 0.1
        assert messages[0][1][0] == pytest.approx(0.1, abs=1e-7)

    def test_button_sends_one(self):
        control = make(ButtonSpec())
        updated, messages = apply_interaction(control, Press())
        assert updated is control
        assert messages == [("/fx", (1.0,))]

    def test_base_address_is_normalized(self):
        _, messages = apply_interaction(make(ButtonSpec(), address="fx/"), Press())
        assert messages == [("/fx", (1.0,))]


class TestToggle:

    def test_on(self):
        control, messages = apply_interaction(make(ToggleSpec()), SetToggle(True))
        assert control.spec.is_on
        assert messages == [("/fx", (1.0,))]

    def test_off(self):
        control, messages = apply_interaction(make(ToggleSpec(is_on=True)), SetToggle(False))
        assert not control.spec.is_on
        assert messages == [("/fx", (0.0,))]


class TestXYAndColor:

    def test_xy_sends_both_axes(self):
        control, messages = apply_interaction(make(XYPadSpec()), SetXY(0.25, 0.75))
        assert (control.spec.x, control.spec.y) == (0.25, 0.75)
        assert messages == [("/fx/x", (0.25,)), ("/fx/y", (0.75,))]

    def test_xy_clamps(self):
        _, messages = apply_interaction(make(XYPadSpec(min=-1, max=1)), SetXY(-5, 5))
        assert messages == [("/fx/x", (-1.0,)), ("/fx/y", (1.0,))]

    def test_color_sends_four_components(self):
        control, messages = apply_interaction(make(ColorSpec()), SetColor(1.0, 0.5, 0.0))
        assert [address for address, _ in messages] == ["/fx/r", "/fx/g", "/fx/b", "/fx/a"]
        assert [args[0] for _, args in messages] == [1.0, 0.5, 0.0, 1.0]
        assert control.spec.g == 0.5

    def test_color_clamps(self):
        control, _ = apply_interaction(make(ColorSpec()), SetColor(2.0, -1.0, 0.5, 0.5))
        assert (control.spec.r, control.spec.g) == (1.0, 0.0)


class TestTapTempo:
    """Test bpm from inter-tap interval."""

    def test_first_tap_sends_tap_only(self):
        control, messages = apply_interaction(make(TapTempoSpec()), Tap(timestamp=10.0))
        assert messages == [("/fx/tap", (1.0,))]
        assert control.spec.last_tap == 10.0
        assert control.spec.bpm == 120.0

    def test_second_tap_sends_bpm(self):
        control, _ = apply_interaction(make(TapTempoSpec()), Tap(timestamp=10.0))
        control, messages = apply_interaction(control, Tap(timestamp=10.5))
        assert messages == [("/fx/tap", (1.0,)), ("/fx/bpm", (120.0,))]
        assert control.spec.bpm == 120.0

    def test_slow_tap_restarts_measurement(self):
        control, _ = apply_interaction(make(TapTempoSpec(bpm=90.0)), Tap(timestamp=10.0))
        control, messages = apply_interaction(control, Tap(timestamp=13.0))
        assert messages == [("/fx/tap", (1.0,))]
        assert control.spec.bpm == 90.0
        assert control.spec.last_tap == 13.0

    def test_default_timestamp_is_monotonic(self):
        control, _ = apply_interaction(make(TapTempoSpec()), Tap())
        assert control.spec.last_tap is not None


class TestPadGrid:

    def test_momentary_press_and_release(self):
        control = make(PadGridSpec(rows=2, cols=3))
        _, pressed = apply_interaction(control, GridPad(1, 2))
        _, released = apply_interaction(control, GridPad(1, 2, pressed=False))
        assert pressed == [("/fx/1/2", (1.0,))]
        assert released == [("/fx/1/2", (0.0,))]

    def test_latching_flips_on_press(self):
        control = make(normalize_grid(2, 2, momentary=False))
        control, messages = apply_interaction(control, GridPad(0, 1))
        assert messages == [("/fx/0/1", (1.0,))]
        assert control.spec.states == (False, True, False, False)

        control, messages = apply_interaction(control, GridPad(0, 1))
        assert messages == [("/fx/0/1", (0.0,))]
        assert control.spec.states == (False, False, False, False)

    def test_latching_ignores_release(self):
        control = make(normalize_grid(2, 2, momentary=False))
        updated, messages = apply_interaction(control, GridPad(1, 1, pressed=False))
        assert messages == []
        assert updated is control

    def test_cell_out_of_range(self):
        with pytest.raises(ValueError):
            apply_interaction(make(PadGridSpec(rows=2, cols=2)), GridPad(2, 0))


class TestChoice:

    def test_sends_index(self):
        control, messages = apply_interaction(make(ChoiceSpec()), Choose(2))
        assert control.spec.index == 2
        assert messages == [("/fx", (2.0,))]

    def test_index_out_of_range(self):
        with pytest.raises(ValueError):
            apply_interaction(make(ChoiceSpec()), Choose(3))

    def test_no_options(self):
        with pytest.raises(ValueError):
            apply_interaction(make(ChoiceSpec(options=(), index=0)), Choose(0))


class TestTypeMismatch:

    def test_wrong_interaction_for_type(self):
        with pytest.raises(ValueError, match="SetValue"):
            apply_interaction(make(ButtonSpec()), SetValue(0.5))


# =============================================================================
# Control spec validation
# =============================================================================

class TestControlSpecValidation:

    def test_momentary_grid_rejects_states(self):
        with pytest.raises(ValueError):
            PadGridSpec(rows=1, cols=1, momentary=True, states=(True,))

    def test_latching_grid_needs_full_states(self):
        with pytest.raises(ValueError):
            PadGridSpec(rows=2, cols=2, momentary=False, states=(True,))

    def test_grid_needs_a_cell(self):
        with pytest.raises(ValueError):
            PadGridSpec(rows=0, cols=3)

    def test_choice_index_in_range(self):
        with pytest.raises(ValueError):
            ChoiceSpec(options=("a",), index=1)


# =============================================================================
# Editing helpers
# =============================================================================

class TestEditingHelpers:

    def test_change_type_keeps_identity(self):
        control = Control(
            id="c1", name="Ctl", address="/fx", spec=SliderSpec(value=0.7),
            always_visible=False, preset_ids=("p",),
        )
        changed = change_control_type(control, ControlType.COLOR)
        assert isinstance(changed.spec, ColorSpec)
        assert (changed.id, changed.name, changed.address) == ("c1", "Ctl", "/fx")
        assert changed.preset_ids == ("p",)
        assert not changed.always_visible

    def test_change_to_same_type_is_noop(self):
        control = make(SliderSpec(value=0.7))
        assert change_control_type(control, ControlType.SLIDER) is control

    def test_normalize_grid_pads_and_truncates(self):
        assert normalize_grid(1, 3, False, [True]).states == (True, False, False)
        assert normalize_grid(1, 1, False, [True, True, True]).states == (True,)

    def test_normalize_grid_momentary_drops_states(self):
        grid = normalize_grid(0, 2, True, [True])
        assert (grid.rows, grid.cols, grid.states) == (1, 2, ())

    def test_parse_choice_options(self):
        spec = parse_choice_options(" Low, Mid ,, High ", current_index=5)
        assert spec.options == ("Low", "Mid", "High")
        assert spec.index == 2

    def test_parse_empty_choice_options(self):
        spec = parse_choice_options(" , ", current_index=3)
        assert spec.options == ()
        assert spec.index == 0

    def test_current_value(self):
        assert current_value(make(SliderSpec(value=0.5))) == 0.5
        assert current_value(make(ToggleSpec(is_on=True))) == 1.0
        assert current_value(make(ChoiceSpec(index=1))) == 1.0
        assert current_value(make(ButtonSpec())) is None
