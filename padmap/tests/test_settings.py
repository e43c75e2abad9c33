"""Tests for the profile settings model."""

import pytest

from padmap.bindings import KeyCode, Layer
from padmap.controls import Control
from padmap.settings import (
    Color,
    CurveMode,
    GyroOutMode,
    LightgunButton,
    OutContType,
    OutputStickAxes,
    ProfileSettings,
    StickMode,
    TouchpadOutMode,
    TriggerMode,
    TwoStageTriggerMode,
    parse_custom_curve,
)


class TestColor:
    def test_parse_and_format(self):
        color = Color.parse("10, 20,30")
        assert color == Color(10, 20, 30)
        assert str(color) == "10,20,30"

    @pytest.mark.parametrize("text", ["1,2", "1,2,3,4", "a,b,c", "0,0,256"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            Color.parse(text)


class TestCustomCurve:
    def test_valid(self):
        assert parse_custom_curve("0.25, 0.1, 0.75, 0.9") == (0.25, 0.1, 0.75, 0.9)

    @pytest.mark.parametrize("text", ["", "0.1,0.2,0.3", "1.5,0,0.5,1", "a,b,c,d"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_custom_curve(text)


class TestProfileSettings:
    def test_documented_defaults(self):
        s = ProfileSettings()
        assert s.ls.dead_zone == 10
        assert s.ls.anti_dead_zone == 20
        assert s.l2.dead_zone == 0
        assert s.ls_curve.mode is CurveMode.LINEAR
        assert s.gyro_out_mode is GyroOutMode.CONTROLS
        assert s.touchpad.out_mode is TouchpadOutMode.MOUSE
        assert s.out_cont_type is OutContType.X360
        assert s.rumble.boost == 100
        assert s.lightbar.color == Color(0, 0, 255)
        assert s.profile_actions == ["Disconnect Controller"]
        assert len(s.bindings) == 53

    def test_extended_defaults(self):
        s = ProfileSettings()
        assert s.lightgun_button is LightgunButton.NOT_SET
        assert not s.square_stick.ls_mode
        assert s.square_stick.rs_roundness == 5.0
        assert not s.ls_anti_snapback.enabled
        assert s.rs_anti_snapback.delta == 135.0
        assert s.rs_anti_snapback.timeout == 50
        assert s.ls.outer_bind_dead_zone == 75.0
        assert not s.ls.max_output_force
        assert s.ls_output.mode is StickMode.CONTROLS
        assert s.rs_output.flick.real_world_calibration == 5.3
        assert s.l2_output.mode is TriggerMode.NORMAL
        assert s.r2_output.two_stage_mode is TwoStageTriggerMode.DISABLED
        assert s.gyro_mouse.min_threshold == 1.0
        assert s.gyro_mouse.jitter_compensation
        assert not s.gyro_mouse_stick.jitter_compensation
        assert s.gyro_mouse_stick.output_stick_axes is OutputStickAxes.XY
        assert s.touchpad_abs_mouse.max_zone_x == 90
        assert s.touch_mouse_stick.max_zone == 8
        assert s.touch_mouse_stick.trackball_mode
        assert s.button_abs_mouse.snap_to_center
        assert s.button_abs_mouse.x_center == 0.5
        assert not s.wheel_smoothing.enabled

    def test_binding_lookup(self):
        s = ProfileSettings()
        assert s.binding(Control.Cross).control is Control.Cross
        assert s.binding(Control.RSOuter).control is Control.RSOuter
        with pytest.raises(ValueError):
            s.binding(Control.NONE)

    def test_reset_restores_defaults_in_place(self):
        s = ProfileSettings()
        bindings = s.bindings
        cross = s.binding(Control.Cross)
        actions = s.profile_actions

        s.ls.dead_zone = 50
        s.rumble.boost = 5
        s.set_action(Control.Cross, Layer.NORMAL, KeyCode(65))
        s.profile_actions.append("Other")
        s.reset()

        assert s == ProfileSettings()
        assert s.bindings is bindings
        assert s.binding(Control.Cross) is cross
        assert s.profile_actions is actions

    def test_fresh_instances_do_not_share_state(self):
        a = ProfileSettings()
        b = ProfileSettings()
        a.ls.dead_zone = 99
        a.gyro_mouse.smoothing.weight = 0.1
        assert b.ls.dead_zone == 10
        assert b.gyro_mouse.smoothing.weight == 0.5


class TestLightgunButton:
    @pytest.mark.parametrize("index, button", [
        (0, LightgunButton.NOT_SET),
        (1, LightgunButton.CROSS_A),
        (4, LightgunButton.TRIANGLE_Y),
        (6, LightgunButton.R1),
        (7, LightgunButton.NOT_SET),
        (-1, LightgunButton.NOT_SET),
    ])
    def test_from_index(self, index, button):
        assert LightgunButton.from_index(index) is button

    def test_control(self):
        assert LightgunButton.CIRCLE_B.control is Control.Circle
        assert LightgunButton.L1.control is Control.L1
        assert LightgunButton.NOT_SET.control is None
