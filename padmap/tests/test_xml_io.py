"""Tests for profile XML serialization and per-field fallback."""

from xml.etree import ElementTree as ET

import pytest

from padmap.bindings import (
    UNBOUND,
    KeyCode,
    KeyFlags,
    Layer,
    MacroSequence,
    OutputControl,
)
from padmap.controls import Control, OutputAction
from padmap.settings import (
    Color,
    CurveMode,
    GyroOutMode,
    LightgunButton,
    OutContType,
    OutputStickAxes,
    ProfileSettings,
    SmoothingMethod,
    StickMode,
    TouchpadOutMode,
    TriggerMode,
    TwoStageTriggerMode,
)
from padmap.xml_io import (
    CONFIG_VERSION,
    PROFILE_FIELDS,
    ROOT_TAG,
    document_version,
    parse_document,
    profile_to_xml,
    read_profile,
)


# ── Fixtures ─────────────────────────────────────────────────────────────

def _edited_profile() -> ProfileSettings:
    s = ProfileSettings()
    s.ls.dead_zone = 25
    s.rs.max_output = 87.5
    s.l2.dead_zone = 40
    s.ls_curve.mode = CurveMode.CUSTOM
    s.ls_curve.custom = "0.25, 0.1, 0.75, 0.9"
    s.rs_curve.mode = CurveMode.QUADRATIC
    s.gyro_out_mode = GyroOutMode.MOUSE
    s.gyro_mouse.smoothing.use_smoothing = True
    s.gyro_mouse.smoothing.method = SmoothingMethod.ONE_EURO
    s.gyro_controls.trigger_cond = False
    s.touchpad.out_mode = TouchpadOutMode.ABSOLUTE_MOUSE
    s.lightbar.color = Color(255, 128, 0)
    s.lightbar.low_color = Color(10, 0, 0)
    s.lightbar.charging_color = Color(0, 10, 0)
    s.lightbar.flash_color = Color(0, 0, 10)
    s.rumble.boost = 150
    s.rumble.autostop_time = 2000
    s.out_cont_type = OutContType.DS4
    s.launch_program = "C:\\Games\\run.exe"
    s.profile_actions[:] = ["Disconnect Controller", "Launch"]
    s.lightgun_button = LightgunButton.SQUARE_X
    s.square_stick.ls_mode = True
    s.square_stick.ls_roundness = 3.5
    s.rs_anti_snapback.enabled = True
    s.rs_anti_snapback.timeout = 80
    s.ls.outer_bind_invert = True
    s.rs_output.mode = StickMode.FLICK_STICK
    s.rs_output.flick.flick_time = 0.25
    s.r2_output.mode = TriggerMode.TWO_STAGE
    s.r2_output.two_stage_mode = TwoStageTriggerMode.HIP_FIRE
    s.gyro_mouse.min_threshold = 2.5
    s.gyro_mouse_stick.output_stick_axes = OutputStickAxes.X
    s.touchpad_rel_mouse.rotation = -0.5
    s.touch_mouse_stick.output_curve = CurveMode.CUBIC
    s.button_abs_mouse.width = 0.75
    s.wheel_smoothing.enabled = True

    s.set_action(Control.Cross, Layer.NORMAL, MacroSequence((65, 66, 67)))
    s.set_action(Control.Square, Layer.NORMAL, KeyCode(0x41), flags=KeyFlags.SCAN_CODE | KeyFlags.TOGGLE)
    s.set_action(Control.Circle, Layer.NORMAL, OutputControl(OutputAction.WheelUp), extras="0,0,0,0,0,0,0,1")
    s.set_action(Control.Triangle, Layer.NORMAL, UNBOUND, flags=KeyFlags.UNBOUND)
    s.set_action(Control.L1, Layer.SHIFT, OutputControl(OutputAction.RB), shift_trigger=1)
    s.set_action(Control.R1, Layer.SHIFT, KeyCode(32), "shift extras", KeyFlags.SCAN_CODE, shift_trigger=26)
    s.set_action(Control.DpadUp, Layer.SHIFT, UNBOUND, shift_trigger=5)
    return s


def _load(text: str) -> tuple[ProfileSettings, list]:
    settings = ProfileSettings()
    issues = read_profile(parse_document(text), settings)
    return settings, issues


def _profile_xml(body: str) -> str:
    return f'<DS4Windows app_version="1.0.0" config_version="5">{body}</DS4Windows>'


# ── Round trip ───────────────────────────────────────────────────────────

class TestRoundTrip:
    def test_defaults(self):
        settings, issues = _load(profile_to_xml(ProfileSettings()))
        assert issues == []
        assert settings == ProfileSettings()

    def test_edited_profile(self):
        original = _edited_profile()
        settings, issues = _load(profile_to_xml(original))
        assert issues == []
        assert settings == original

    def test_macro_order_preserved(self):
        original = _edited_profile()
        settings, _ = _load(profile_to_xml(original))
        assert settings.binding(Control.Cross).macro() == (65, 66, 67)

    def test_key_alias_not_written(self):
        original = _edited_profile()
        original.binding(Control.Square).key_alias = 999
        assert "999" not in profile_to_xml(original)

    def test_document_header(self):
        text = profile_to_xml(ProfileSettings())
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<DS4Windows')
        root = ET.fromstring(text.split("\n", 1)[1])
        assert root.get("config_version") == str(CONFIG_VERSION)

    def test_formats(self):
        root = ET.fromstring(profile_to_xml(_edited_profile()).split("\n", 1)[1])
        assert root.findtext("Color") == "255,128,0"
        assert root.findtext("GyroMouseSmoothingSettings/UseSmoothing") == "True"
        assert root.findtext("GyroControlsSettings/TriggerCond") == "or"
        assert root.findtext("Control/Button/Circle") == "Mouse Wheel Up"
        assert root.findtext("Control/Macro/Cross") == "65/66/67"
        assert root.findtext("Control/KeyType/Square") == "ScanCode, Toggle"
        assert root.findtext("ProfileActions") == "Disconnect Controller/Launch"
        assert root.findtext("LightgunButton") == "SQUARE_X"
        assert root.findtext("RSOutputMode") == "FlickStick"
        assert root.findtext("RSOutputSettings/FlickStickSettings/FlickTime") == "0.25"
        assert root.findtext("R2TwoStageMode") == "HipFire"
        assert root.findtext("RSAntiSnapbackSettings/Timeout") == "80"
        assert root.findtext("AbsMouseRegionSettings/AbsWidth") == "0.75"

    def test_free_text_keeps_whitespace(self):
        original = ProfileSettings()
        original.launch_program = " C:/prog.exe "
        original.gyro_mouse.triggers = " 1,2"
        settings, issues = _load(profile_to_xml(original))
        assert issues == []
        assert settings.launch_program == " C:/prog.exe "
        assert settings.gyro_mouse.triggers == " 1,2"


class TestShiftLayer:
    def test_zero_trigger_never_serialized(self):
        s = ProfileSettings()
        s.set_action(Control.Cross, Layer.SHIFT, KeyCode(65), "x", KeyFlags.TOGGLE, shift_trigger=0)
        root = ET.fromstring(profile_to_xml(s).split("\n", 1)[1])
        shift = root.find("ShiftControl")
        assert all(len(group) == 0 for group in shift)

    def test_entries_without_trigger_are_ignored(self):
        text = _profile_xml("""
            <ShiftControl>
              <Key><Cross>65</Cross></Key>
              <ShiftTrigger><Circle>2</Circle></ShiftTrigger>
              <Button><Circle>B Button</Circle></Button>
            </ShiftControl>
        """)
        settings, _ = _load(text)
        assert settings.binding(Control.Cross).is_default(Layer.SHIFT)
        circle = settings.binding(Control.Circle)
        assert circle.shift_trigger == 2
        assert circle.output_control(Layer.SHIFT) is OutputAction.B

    def test_trigger_out_of_range_is_malformed(self):
        text = _profile_xml("""
            <ShiftControl>
              <ShiftTrigger><Cross>40</Cross></ShiftTrigger>
              <Key><Cross>65</Cross></Key>
            </ShiftControl>
        """)
        settings, issues = _load(text)
        assert settings.binding(Control.Cross).shift_trigger == 0
        assert any(i.kind == "malformed" and "Cross" in i.field for i in issues)


# ── Per-field fallback ───────────────────────────────────────────────────

class TestFieldFallback:
    def test_scenario_custom_curve_without_definition(self):
        text = _profile_xml("<LSOutputCurveMode>custom</LSOutputCurveMode>")
        settings, issues = _load(text)
        assert settings.ls_curve.mode is CurveMode.LINEAR
        assert issues

    def test_custom_curve_with_bad_definition(self):
        text = _profile_xml(
            "<RSOutputCurveMode>custom</RSOutputCurveMode>"
            "<RSOutputCurveCustom>nonsense</RSOutputCurveCustom>"
        )
        settings, issues = _load(text)
        assert settings.rs_curve.mode is CurveMode.LINEAR
        assert any(i.kind == "malformed" for i in issues)

    def test_scenario_legacy_touchpad_flag(self):
        text = _profile_xml("<UseTPforControls>true</UseTPforControls>")
        settings, _ = _load(text)
        assert settings.touchpad.out_mode is TouchpadOutMode.CONTROLS

    def test_current_touchpad_field_wins_over_legacy(self):
        text = _profile_xml(
            "<UseTPforControls>True</UseTPforControls>"
            "<TouchpadOutputMode>AbsoluteMouse</TouchpadOutputMode>"
        )
        settings, _ = _load(text)
        assert settings.touchpad.out_mode is TouchpadOutMode.ABSOLUTE_MOUSE

    def test_malformed_scalar_uses_default(self):
        text = _profile_xml(
            "<LSDeadZone>lots</LSDeadZone>"
            "<RSDeadZone>200</RSDeadZone>"
            "<Color>1,2</Color>"
            "<RumbleBoost>50</RumbleBoost>"
        )
        settings, issues = _load(text)
        assert settings.ls.dead_zone == 10
        assert settings.rs.dead_zone == 10
        assert settings.lightbar.color == Color(0, 0, 255)
        assert settings.rumble.boost == 50
        malformed = {i.field for i in issues if i.kind == "malformed"}
        assert {"LSDeadZone", "RSDeadZone", "Color"} <= malformed

    def test_bool_spellings(self):
        text = _profile_xml(
            "<DoubleTap>1</DoubleTap>"
            "<LowerRCOn>true</LowerRCOn>"
            "<TouchToggle>False</TouchToggle>"
        )
        settings, _ = _load(text)
        assert settings.touchpad.double_tap is True
        assert settings.touchpad.lower_right_click is True
        assert settings.touchpad.toggle_enabled is False

    def test_every_field_missing_is_reported(self):
        settings, issues = _load(_profile_xml(""))
        assert settings == ProfileSettings()
        missing = {i.field for i in issues if i.kind == "missing"}
        assert missing == {f.tag for f in PROFILE_FIELDS}

    def test_removed_subset_falls_back_others_kept(self):
        original = _edited_profile()
        root = ET.fromstring(profile_to_xml(original).split("\n", 1)[1])
        for tag in ("LSDeadZone", "Color", "RumbleBoost", "GyroOutputMode"):
            root.remove(root.find(tag))
        settings = ProfileSettings()
        issues = read_profile(root, settings)

        defaults = ProfileSettings()
        assert settings.ls.dead_zone == defaults.ls.dead_zone
        assert settings.lightbar.color == defaults.lightbar.color
        assert settings.rumble.boost == defaults.rumble.boost
        assert settings.gyro_out_mode is defaults.gyro_out_mode
        assert settings.rs.max_output == 87.5
        assert settings.lightbar.low_color == Color(10, 0, 0)
        assert settings.bindings == original.bindings
        assert {i.field for i in issues} == {"LSDeadZone", "Color", "RumbleBoost", "GyroOutputMode"}


class TestExtendedFields:
    @pytest.mark.parametrize("text, button", [
        ("CIRCLE_B", LightgunButton.CIRCLE_B),
        ("r1", LightgunButton.R1),
        ("3", LightgunButton.SQUARE_X),
        ("9", LightgunButton.NOT_SET),
    ])
    def test_lightgun_button(self, text, button):
        settings, issues = _load(_profile_xml(f"<LightgunButton>{text}</LightgunButton>"))
        assert settings.lightgun_button is button
        assert "LightgunButton" not in {i.field for i in issues}

    def test_bad_lightgun_button_is_malformed(self):
        settings, issues = _load(_profile_xml("<LightgunButton>Trigger</LightgunButton>"))
        assert settings.lightgun_button is LightgunButton.NOT_SET
        assert [i.kind for i in issues if i.field == "LightgunButton"] == ["malformed"]

    def test_nested_groups_read(self):
        settings, _ = _load(_profile_xml("""
            <LSAntiSnapbackSettings><Enabled>True</Enabled><Delta>90</Delta></LSAntiSnapbackSettings>
            <LSOutputMode>FlickStick</LSOutputMode>
            <LSOutputSettings><FlickStickSettings><FlickThreshold>0.5</FlickThreshold></FlickStickSettings></LSOutputSettings>
            <TouchpadAbsMouseSettings><SnapToCenter>True</SnapToCenter></TouchpadAbsMouseSettings>
        """))
        assert settings.ls_anti_snapback.enabled
        assert settings.ls_anti_snapback.delta == 90.0
        assert settings.ls_anti_snapback.timeout == 50
        assert settings.ls_output.mode is StickMode.FLICK_STICK
        assert settings.ls_output.flick.flick_threshold == 0.5
        assert settings.touchpad_abs_mouse.snap_to_center

    def test_rotation_out_of_range_is_malformed(self):
        settings, issues = _load(_profile_xml("<TouchpadMouse><Rotation>7.0</Rotation></TouchpadMouse>"))
        assert settings.touchpad_rel_mouse.rotation == 0.0
        assert [i.kind for i in issues if i.field == "TouchpadMouse/Rotation"] == ["malformed"]


class TestBindingEntries:
    def test_legacy_control_names_and_flags(self):
        text = _profile_xml("""
            <Control>
              <Key><bnSquare>65</bnSquare></Key>
              <KeyType><bnSquare>ScanCodeToggle</bnSquare></KeyType>
            </Control>
        """)
        settings, issues = _load(text)
        square = settings.binding(Control.Square)
        assert square.key_code() == 65
        assert square.normal.flags == KeyFlags.SCAN_CODE | KeyFlags.TOGGLE

    def test_bad_entries_recorded_and_skipped(self):
        text = _profile_xml("""
            <Control>
              <Button><Cross>Warp Drive</Cross><Wobble>A Button</Wobble></Button>
              <Key><Square>sixty</Square></Key>
              <Macro><Circle>1/x/3</Circle></Macro>
              <KeyType><Triangle>Sparkle</Triangle></KeyType>
            </Control>
        """)
        settings, issues = _load(text)
        assert settings.binding(Control.Cross).is_default()
        assert settings.binding(Control.Square).is_default()
        assert settings.binding(Control.Circle).is_default()
        malformed = [i.field for i in issues if i.kind == "malformed"]
        for fragment in ("Cross", "Wobble", "Square", "Circle", "Triangle"):
            assert any(fragment in f for f in malformed)

    def test_macro_step_out_of_range(self):
        text = _profile_xml("<Control><Macro><Cross>65/70000</Cross></Macro></Control>")
        settings, issues = _load(text)
        assert settings.binding(Control.Cross).is_default()
        assert [i.kind for i in issues if i.field == "Control/Macro/Cross"] == ["malformed"]

    def test_key_wins_over_button(self):
        text = _profile_xml("""
            <Control>
              <Button><Cross>A Button</Cross></Button>
              <Key><Cross>65</Cross></Key>
            </Control>
        """)
        settings, _ = _load(text)
        assert settings.binding(Control.Cross).key_code() == 65
        assert settings.binding(Control.Cross).output_control() is OutputAction.NONE


class TestDocument:
    def test_malformed_xml(self):
        with pytest.raises(ValueError):
            parse_document("<DS4Windows><LSDeadZone>")

    def test_unknown_encoding(self):
        data = b'<?xml version="1.0" encoding="bogus"?><DS4Windows config_version="5"/>'
        with pytest.raises(ValueError):
            parse_document(data)

    def test_wrong_root(self):
        with pytest.raises(ValueError):
            read_profile(ET.fromstring("<Profile/>"), ProfileSettings())

    def test_read_resets_previous_state(self):
        settings = _edited_profile()
        read_profile(ET.fromstring(f"<{ROOT_TAG}/>"), settings)
        assert settings == ProfileSettings()

    @pytest.mark.parametrize("xml, version", [
        ('<DS4Windows config_version="3"/>', 3),
        ("<DS4Windows/>", 1),
        ("<ScpControl/>", 0),
        ('<DS4Windows config_version="x"/>', 1),
    ])
    def test_document_version(self, xml, version):
        assert document_version(ET.fromstring(xml)) == version
