"""Tests for action bindings and key-type flags."""

import pytest

from padmap.bindings import (
    UNBOUND,
    ActionBinding,
    KeyCode,
    KeyFlags,
    Layer,
    MacroSequence,
    OutputControl,
    default_bindings,
    format_key_flags,
    parse_key_flags,
)
from padmap.controls import Control, OutputAction


class TestKeyFlags:
    def test_format_order(self):
        flags = KeyFlags.TOGGLE | KeyFlags.SCAN_CODE
        assert format_key_flags(flags) == "ScanCode, Toggle"
        assert format_key_flags(KeyFlags.NONE) == ""

    def test_parse_current_form(self):
        flags, ok = parse_key_flags("ScanCode, Toggle")
        assert ok
        assert flags == KeyFlags.SCAN_CODE | KeyFlags.TOGGLE

    def test_parse_legacy_concatenated(self):
        flags, ok = parse_key_flags("ScanCodeToggle")
        assert ok
        assert flags == KeyFlags.SCAN_CODE | KeyFlags.TOGGLE

    def test_hold_macro_not_read_as_macro(self):
        flags, ok = parse_key_flags("HoldMacro")
        assert ok
        assert flags == KeyFlags.HOLD_MACRO

    def test_hold_macro_and_macro(self):
        flags, ok = parse_key_flags("HoldMacroMacro")
        assert ok
        assert flags == KeyFlags.HOLD_MACRO | KeyFlags.MACRO

    def test_separators(self):
        flags, ok = parse_key_flags("Macro|RepeatMacro Unbound")
        assert ok
        assert flags == KeyFlags.MACRO | KeyFlags.REPEAT_MACRO | KeyFlags.UNBOUND

    def test_none_and_empty(self):
        assert parse_key_flags("None") == (KeyFlags.NONE, True)
        assert parse_key_flags("") == (KeyFlags.NONE, True)

    def test_unknown_token_keeps_known_flags(self):
        flags, ok = parse_key_flags("ScanCode, Sparkle")
        assert not ok
        assert flags == KeyFlags.SCAN_CODE

    def test_every_combination_round_trips(self):
        members = [f for f in KeyFlags if f is not KeyFlags.NONE]
        for mask in range(1 << len(members)):
            flags = KeyFlags.NONE
            for i, member in enumerate(members):
                if mask & (1 << i):
                    flags |= member
            assert parse_key_flags(format_key_flags(flags)) == (flags, True)


class TestVariants:
    def test_key_code_range(self):
        with pytest.raises(ValueError):
            KeyCode(-1)
        with pytest.raises(ValueError):
            KeyCode(0x10000)

    def test_macro_coerces_to_tuple(self):
        assert MacroSequence([1, 2, 3]).keys == (1, 2, 3)

    @pytest.mark.parametrize("keys", [(-5,), (65, 0x10000), (1_000_000_000,)])
    def test_macro_key_range(self, keys):
        with pytest.raises(ValueError):
            MacroSequence(keys)

    def test_unsupported_variant_rejected(self):
        binding = ActionBinding(Control.Cross)
        with pytest.raises(TypeError):
            binding.set_action(Layer.NORMAL, 65)


class TestActionBinding:
    def test_default(self):
        binding = ActionBinding(Control.Cross)
        assert binding.is_default()
        assert binding.is_default(Layer.SHIFT)
        assert not binding.shift_active

    @pytest.mark.parametrize("action", [
        KeyCode(65),
        OutputControl(OutputAction.B),
        MacroSequence((65, 66, 67)),
        UNBOUND,
    ])
    def test_exactly_one_case_populated(self, action):
        binding = ActionBinding(Control.Square)
        binding.set_action(Layer.NORMAL, MacroSequence((1, 2)))
        binding.set_action(Layer.NORMAL, action)

        populated = [
            binding.key_code() != 0,
            binding.output_control() is not OutputAction.NONE,
            binding.macro() != (),
        ]
        expected = 0 if action is UNBOUND else 1
        assert sum(populated) == expected

    def test_set_action_replaces_whole_layer(self):
        binding = ActionBinding(Control.Cross)
        binding.set_action(Layer.NORMAL, KeyCode(65), "extra", KeyFlags.TOGGLE)
        binding.set_action(Layer.NORMAL, OutputControl(OutputAction.A))
        assert binding.normal.extras == ""
        assert binding.normal.flags == KeyFlags.NONE
        assert binding.key_code() == 0

    def test_flags_make_binding_non_default(self):
        binding = ActionBinding(Control.Cross)
        binding.set_action(Layer.NORMAL, UNBOUND, flags=KeyFlags.UNBOUND)
        assert not binding.is_default()

    def test_shift_layer_sets_trigger(self):
        binding = ActionBinding(Control.Cross)
        binding.set_action(Layer.SHIFT, KeyCode(32), shift_trigger=3)
        assert binding.shift_trigger == 3
        assert binding.shift_active
        assert binding.shift_trigger_control is Control.Square
        assert binding.key_code(Layer.SHIFT) == 32
        assert binding.key_code(Layer.NORMAL) == 0

    def test_shift_trigger_out_of_range(self):
        binding = ActionBinding(Control.Cross)
        with pytest.raises(ValueError):
            binding.set_action(Layer.SHIFT, KeyCode(32), shift_trigger=27)

    def test_reset(self):
        binding = ActionBinding(Control.Cross)
        binding.set_action(Layer.NORMAL, KeyCode(65), "x", KeyFlags.SCAN_CODE)
        binding.set_action(Layer.SHIFT, KeyCode(66), shift_trigger=1)
        binding.reset()
        assert binding.is_default()
        assert binding.is_default(Layer.SHIFT)
        assert binding.shift_trigger == 0

    def test_key_alias_excluded_from_equality(self):
        a = ActionBinding(Control.Cross)
        b = ActionBinding(Control.Cross)
        a.key_alias = 17
        assert a == b

    def test_equality_is_structural(self):
        a = ActionBinding(Control.Cross)
        b = ActionBinding(Control.Cross)
        a.set_action(Layer.NORMAL, KeyCode(65))
        assert a != b
        b.set_action(Layer.NORMAL, KeyCode(65))
        assert a == b

    def test_copy_is_independent(self):
        a = ActionBinding(Control.Cross)
        b = a.copy()
        b.set_action(Layer.NORMAL, KeyCode(65))
        assert a.is_default()


class TestDefaultBindings:
    def test_one_per_control_in_order(self):
        bindings = default_bindings()
        assert [b.control for b in bindings] == [c for c in Control if c is not Control.NONE]
        assert all(b.is_default() for b in bindings)
