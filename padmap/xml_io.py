# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Profile XML serialization and deserialization (current schema).

Every scalar is read independently: a missing or unparseable element falls
back to its default and is reported as a :class:`FieldIssue`, but never
aborts the load.  Older schemas are upgraded by :mod:`padmap.migration`
before they reach :func:`read_profile`; only the current schema is written.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable
from xml.etree import ElementTree as ET

from .bindings import (
    UNBOUND,
    Action,
    KeyCode,
    KeyFlags,
    Layer,
    MacroSequence,
    OutputControl,
    format_key_flags,
    parse_key_flags,
)
from .controls import (
    SHIFT_TRIGGER_MAX,
    Control,
    control_by_name,
    output_action_by_name,
    output_action_name,
)
from .settings import (
    Color,
    CurveMode,
    DeadZoneType,
    GyroOutMode,
    LightbarMode,
    LightgunButton,
    OutContType,
    OutputStick,
    OutputStickAxes,
    ProfileSettings,
    SmoothingMethod,
    StickMode,
    SwipeXAxis,
    TouchpadOutMode,
    TriggerMode,
    TwoStageTriggerMode,
    parse_custom_curve,
)

log = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
CONFIG_VERSION = 5
ROOT_TAG = "DS4Windows"


@dataclass(frozen=True)
class FieldIssue:
    """A profile element that was absent or could not be used."""
    field: str
    kind: str          # "missing" | "malformed"
    detail: str = ""


# ── Value kinds ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _Kind:
    parse: Callable[[str], Any]
    format: Callable[[Any], str] = str
    # Free text keeps its surrounding whitespace.
    strip: bool = True


def _int_kind(lo: int, hi: int) -> _Kind:
    def parse(text: str) -> int:
        value = int(text)
        if not lo <= value <= hi:
            raise ValueError(f"{value} outside {lo}-{hi}")
        return value
    return _Kind(parse)


def _float_kind(lo: float, hi: float) -> _Kind:
    def parse(text: str) -> float:
        value = float(text)
        if not lo <= value <= hi:
            raise ValueError(f"{value} outside {lo}-{hi}")
        return value
    return _Kind(parse)


def _parse_bool(text: str) -> bool:
    lowered = text.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _enum_kind(cls: type[Enum]) -> _Kind:
    def parse(text: str) -> Enum:
        lowered = text.lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        raise ValueError(f"unknown {cls.__name__} {text!r}")
    return _Kind(parse, lambda member: member.value)


def _parse_trigger_cond(text: str) -> bool:
    lowered = text.lower()
    if lowered == "and":
        return True
    if lowered == "or":
        return False
    return _parse_bool(text)


def _parse_name_list(text: str) -> list[str]:
    return [part.strip() for part in text.split("/") if part.strip()]


def _parse_lightgun(text: str) -> LightgunButton:
    # Older editors stored the numeric selector.
    if text.isdigit():
        return LightgunButton.from_index(int(text))
    return _LIGHTGUN_NAMES.parse(text)


_BOOL = _Kind(_parse_bool, lambda v: "True" if v else "False")
_STR = _Kind(lambda text: text, strip=False)
_COLOR = _Kind(Color.parse)
_COND = _Kind(_parse_trigger_cond, lambda v: "and" if v else "or")
_NAME_LIST = _Kind(_parse_name_list, "/".join)
_PERCENT = _int_kind(0, 100)
_PERCENT_F = _float_kind(0.0, 100.0)
_UNIT_F = _float_kind(0.0, 1.0)
_SENS = _int_kind(0, 1000)
_INVERT = _int_kind(0, 3)
_TIME = _int_kind(0, 2**31 - 1)
_ROTATION = _float_kind(-math.pi, math.pi)
_LIGHTGUN_NAMES = _enum_kind(LightgunButton)
_LIGHTGUN = _Kind(_parse_lightgun, lambda member: member.value)


@dataclass(frozen=True)
class _Field:
    tag: str       # element path below the root, "/" for nesting
    path: str      # dotted attribute path on ProfileSettings
    kind: _Kind


def _stick_fields(prefix: str, attr: str) -> list[_Field]:
    return [
        _Field(f"{prefix}DeadZone", f"{attr}.dead_zone", _int_kind(0, 127)),
        _Field(f"{prefix}AntiDeadZone", f"{attr}.anti_dead_zone", _PERCENT),
        _Field(f"{prefix}MaxZone", f"{attr}.max_zone", _PERCENT),
        _Field(f"{prefix}MaxOutput", f"{attr}.max_output", _PERCENT_F),
        _Field(f"{prefix}Fuzz", f"{attr}.fuzz", _PERCENT),
        _Field(f"{prefix}VerticalScale", f"{attr}.vertical_scale", _float_kind(0.0, 200.0)),
        _Field(f"{prefix}DeadZoneType", f"{attr}.dead_zone_type", _enum_kind(DeadZoneType)),
        _Field(f"{prefix}MaxOutputForce", f"{attr}.max_output_force", _BOOL),
        _Field(f"{prefix}OuterBindDeadZone", f"{attr}.outer_bind_dead_zone", _PERCENT_F),
        _Field(f"{prefix}OuterBindInvert", f"{attr}.outer_bind_invert", _BOOL),
    ]


def _trigger_fields(prefix: str, middle: str, attr: str) -> list[_Field]:
    return [
        _Field(middle, f"{attr}.dead_zone", _int_kind(0, 255)),
        _Field(f"{prefix}AntiDeadZone", f"{attr}.anti_dead_zone", _PERCENT),
        _Field(f"{prefix}MaxZone", f"{attr}.max_zone", _PERCENT),
        _Field(f"{prefix}MaxOutput", f"{attr}.max_output", _PERCENT_F),
    ]


def _stick_extra_fields(prefix: str, attr: str) -> list[_Field]:
    snapback = f"{prefix}AntiSnapbackSettings"
    flick = f"{prefix}OutputSettings/FlickStickSettings"
    return [
        _Field(f"{snapback}/Enabled", f"{attr}_anti_snapback.enabled", _BOOL),
        _Field(f"{snapback}/Delta", f"{attr}_anti_snapback.delta", _float_kind(0.0, 1000.0)),
        _Field(f"{snapback}/Timeout", f"{attr}_anti_snapback.timeout", _int_kind(0, 10000)),
        _Field(f"{prefix}OutputMode", f"{attr}_output.mode", _enum_kind(StickMode)),
        _Field(f"{flick}/RealWorldCalibration", f"{attr}_output.flick.real_world_calibration", _float_kind(0.0, 100.0)),
        _Field(f"{flick}/FlickThreshold", f"{attr}_output.flick.flick_threshold", _UNIT_F),
        _Field(f"{flick}/FlickTime", f"{attr}_output.flick.flick_time", _float_kind(0.0, 10.0)),
        _Field(f"{flick}/MinAngleThreshold", f"{attr}_output.flick.min_angle_threshold", _float_kind(0.0, 360.0)),
        _Field(f"{flick}/MinCutoff", f"{attr}_output.flick.min_cutoff", _PERCENT_F),
        _Field(f"{flick}/Beta", f"{attr}_output.flick.beta", _PERCENT_F),
    ]


def _trigger_output_fields(prefix: str, attr: str) -> list[_Field]:
    return [
        _Field(f"{prefix}OutputMode", f"{attr}_output.mode", _enum_kind(TriggerMode)),
        _Field(f"{prefix}TwoStageMode", f"{attr}_output.two_stage_mode", _enum_kind(TwoStageTriggerMode)),
    ]


def _touch_mouse_stick_fields(group: str, attr: str) -> list[_Field]:
    return [
        _Field(f"{group}/DeadZone", f"{attr}.dead_zone", _int_kind(0, 10000)),
        _Field(f"{group}/MaxZone", f"{attr}.max_zone", _int_kind(0, 10000)),
        _Field(f"{group}/AntiDeadX", f"{attr}.anti_dead_x", _UNIT_F),
        _Field(f"{group}/AntiDeadY", f"{attr}.anti_dead_y", _UNIT_F),
        _Field(f"{group}/VerticalScale", f"{attr}.vertical_scale", _SENS),
        _Field(f"{group}/MaxOutputEnabled", f"{attr}.max_output_enabled", _BOOL),
        _Field(f"{group}/MaxOutput", f"{attr}.max_output", _PERCENT_F),
        _Field(f"{group}/Invert", f"{attr}.invert", _INVERT),
        _Field(f"{group}/SmoothingMethod", f"{attr}.smoothing_method", _enum_kind(SmoothingMethod)),
        _Field(f"{group}/MinCutoff", f"{attr}.min_cutoff", _PERCENT_F),
        _Field(f"{group}/Beta", f"{attr}.beta", _PERCENT_F),
        _Field(f"{group}/OutputStick", f"{attr}.output_stick", _enum_kind(OutputStick)),
        _Field(f"{group}/OutputStickAxes", f"{attr}.output_stick_axes", _enum_kind(OutputStickAxes)),
        _Field(f"{group}/TrackballMode", f"{attr}.trackball_mode", _BOOL),
        _Field(f"{group}/TrackballFriction", f"{attr}.trackball_friction", _float_kind(0.0, 100.0)),
        _Field(f"{group}/OutputCurve", f"{attr}.output_curve", _enum_kind(CurveMode)),
        _Field(f"{group}/Rotation", f"{attr}.rotation", _ROTATION),
    ]


def _curve_fields(prefix: str, attr: str) -> list[_Field]:
    return [
        _Field(f"{prefix}OutputCurveMode", f"{attr}.mode", _enum_kind(CurveMode)),
        _Field(f"{prefix}OutputCurveCustom", f"{attr}.custom", _STR),
    ]


def _smoothing_fields(group: str, attr: str) -> list[_Field]:
    return [
        _Field(f"{group}/UseSmoothing", f"{attr}.use_smoothing", _BOOL),
        _Field(f"{group}/SmoothingMethod", f"{attr}.method", _enum_kind(SmoothingMethod)),
        _Field(f"{group}/SmoothingWeight", f"{attr}.weight", _UNIT_F),
        _Field(f"{group}/SmoothingMinCutoff", f"{attr}.min_cutoff", _PERCENT_F),
        _Field(f"{group}/SmoothingBeta", f"{attr}.beta", _PERCENT_F),
    ]


# Single source of truth for scalar element names; also the write order.
PROFILE_FIELDS: tuple[_Field, ...] = (
    *_stick_fields("LS", "ls"),
    *_stick_fields("RS", "rs"),
    *_trigger_fields("L2", "LeftTriggerMiddle", "l2"),
    *_trigger_fields("R2", "RightTriggerMiddle", "r2"),
    *_curve_fields("LS", "ls_curve"),
    *_curve_fields("RS", "rs_curve"),
    *_curve_fields("L2", "l2_curve"),
    *_curve_fields("R2", "r2_curve"),
    _Field("LSSensitivity", "ls_sensitivity", _float_kind(0.0, 10.0)),
    _Field("RSSensitivity", "rs_sensitivity", _float_kind(0.0, 10.0)),
    _Field("L2Sensitivity", "l2_sensitivity", _float_kind(0.0, 10.0)),
    _Field("R2Sensitivity", "r2_sensitivity", _float_kind(0.0, 10.0)),
    _Field("LSSquareStick", "square_stick.ls_mode", _BOOL),
    _Field("RSSquareStick", "square_stick.rs_mode", _BOOL),
    _Field("SquareStickRoundness", "square_stick.ls_roundness", _float_kind(0.0, 100.0)),
    _Field("SquareRStickRoundness", "square_stick.rs_roundness", _float_kind(0.0, 100.0)),
    *_stick_extra_fields("LS", "ls"),
    *_stick_extra_fields("RS", "rs"),
    *_trigger_output_fields("L2", "l2"),
    *_trigger_output_fields("R2", "r2"),

    _Field("GyroOutputMode", "gyro_out_mode", _enum_kind(GyroOutMode)),
    _Field("GyroControlsSettings/Triggers", "gyro_controls.triggers", _STR),
    _Field("GyroControlsSettings/TriggerCond", "gyro_controls.trigger_cond", _COND),
    _Field("GyroControlsSettings/TriggerTurns", "gyro_controls.trigger_turns", _BOOL),
    _Field("GyroControlsSettings/Toggle", "gyro_controls.toggle", _BOOL),

    _Field("GyroSensitivity", "gyro_mouse.sensitivity", _SENS),
    _Field("GyroSensVerticalScale", "gyro_mouse.vertical_scale", _SENS),
    _Field("GyroInvert", "gyro_mouse.invert", _INVERT),
    _Field("SATriggers", "gyro_mouse.triggers", _STR),
    _Field("SATriggerCond", "gyro_mouse.trigger_cond", _COND),
    _Field("GyroTriggerTurns", "gyro_mouse.trigger_turns", _BOOL),
    _Field("GyroMouseToggle", "gyro_mouse.toggle", _BOOL),
    _Field("GyroMouseMinThreshold", "gyro_mouse.min_threshold", _float_kind(0.0, 100.0)),
    _Field("GyroMouseJitterCompensation", "gyro_mouse.jitter_compensation", _BOOL),
    *_smoothing_fields("GyroMouseSmoothingSettings", "gyro_mouse.smoothing"),

    _Field("GyroMouseStickTriggers", "gyro_mouse_stick.triggers", _STR),
    _Field("GyroMouseStickTriggerCond", "gyro_mouse_stick.trigger_cond", _COND),
    _Field("GyroMouseStickTriggerTurns", "gyro_mouse_stick.trigger_turns", _BOOL),
    _Field("GyroMouseStickToggle", "gyro_mouse_stick.toggle", _BOOL),
    _Field("GyroMouseStickDeadZone", "gyro_mouse_stick.dead_zone", _int_kind(0, 10000)),
    _Field("GyroMouseStickMaxZone", "gyro_mouse_stick.max_zone", _int_kind(0, 10000)),
    _Field("GyroMouseStickAntiDeadX", "gyro_mouse_stick.anti_dead_x", _UNIT_F),
    _Field("GyroMouseStickAntiDeadY", "gyro_mouse_stick.anti_dead_y", _UNIT_F),
    _Field("GyroMouseStickVerticalScale", "gyro_mouse_stick.vertical_scale", _SENS),
    _Field("GyroMouseStickInvert", "gyro_mouse_stick.invert", _INVERT),
    _Field("GyroMouseStickMaxOutput", "gyro_mouse_stick.max_output", _PERCENT_F),
    _Field("GyroMouseStickMaxOutputEnabled", "gyro_mouse_stick.max_output_enabled", _BOOL),
    _Field("GyroMouseStickOutputStick", "gyro_mouse_stick.output_stick", _enum_kind(OutputStick)),
    _Field("GyroMouseStickOutputAxes", "gyro_mouse_stick.output_stick_axes", _enum_kind(OutputStickAxes)),
    _Field("GyroMouseStickJitterCompensation", "gyro_mouse_stick.jitter_compensation", _BOOL),
    *_smoothing_fields("GyroMouseStickSmoothingSettings", "gyro_mouse_stick.smoothing"),

    _Field("GyroSwipeSettings/DeadZoneX", "gyro_swipe.dead_zone_x", _SENS),
    _Field("GyroSwipeSettings/DeadZoneY", "gyro_swipe.dead_zone_y", _SENS),
    _Field("GyroSwipeSettings/Triggers", "gyro_swipe.triggers", _STR),
    _Field("GyroSwipeSettings/TriggerCond", "gyro_swipe.trigger_cond", _COND),
    _Field("GyroSwipeSettings/TriggerTurns", "gyro_swipe.trigger_turns", _BOOL),
    _Field("GyroSwipeSettings/XAxis", "gyro_swipe.x_axis", _enum_kind(SwipeXAxis)),
    _Field("GyroSwipeSettings/DelayTime", "gyro_swipe.delay_time", _int_kind(0, 10000)),

    _Field("TouchpadOutputMode", "touchpad.out_mode", _enum_kind(TouchpadOutMode)),
    _Field("TouchSensitivity", "touchpad.sensitivity", _SENS),
    _Field("TouchToggle", "touchpad.toggle_enabled", _BOOL),
    _Field("ScrollSensitivity", "touchpad.scroll_sensitivity", _int_kind(-1000, 1000)),
    _Field("TapSensitivity", "touchpad.tap_sensitivity", _SENS),
    _Field("DoubleTap", "touchpad.double_tap", _BOOL),
    _Field("TouchpadJitterCompensation", "touchpad.jitter_compensation", _BOOL),
    _Field("LowerRCOn", "touchpad.lower_right_click", _BOOL),
    _Field("TouchpadInvert", "touchpad.invert", _INVERT),
    _Field("TouchpadMouse/Rotation", "touchpad_rel_mouse.rotation", _ROTATION),
    _Field("TouchpadMouse/MinThreshold", "touchpad_rel_mouse.min_threshold", _float_kind(0.0, 100.0)),
    _Field("TouchpadAbsMouseSettings/MaxZoneX", "touchpad_abs_mouse.max_zone_x", _PERCENT),
    _Field("TouchpadAbsMouseSettings/MaxZoneY", "touchpad_abs_mouse.max_zone_y", _PERCENT),
    _Field("TouchpadAbsMouseSettings/SnapToCenter", "touchpad_abs_mouse.snap_to_center", _BOOL),
    *_touch_mouse_stick_fields("TouchpadMouseStick", "touch_mouse_stick"),

    _Field("LightbarMode", "lightbar.mode", _enum_kind(LightbarMode)),
    _Field("Color", "lightbar.color", _COLOR),
    _Field("LowColor", "lightbar.low_color", _COLOR),
    _Field("ChargingColor", "lightbar.charging_color", _COLOR),
    _Field("FlashColor", "lightbar.flash_color", _COLOR),
    _Field("LedAsBatteryIndicator", "lightbar.led_as_battery", _BOOL),
    _Field("FlashType", "lightbar.flash_type", _int_kind(0, 255)),
    _Field("FlashBatteryAt", "lightbar.flash_at", _PERCENT),
    _Field("Rainbow", "lightbar.rainbow", _float_kind(0.0, 1000.0)),
    _Field("MaxSatRainbow", "lightbar.max_rainbow_saturation", _PERCENT),
    _Field("ChargingType", "lightbar.charging_type", _int_kind(0, 255)),

    _Field("RumbleBoost", "rumble.boost", _int_kind(0, 255)),
    _Field("RumbleAutostopTime", "rumble.autostop_time", _TIME),

    _Field("ButtonMouseSensitivity", "button_mouse.sensitivity", _SENS),
    _Field("MouseAcceleration", "button_mouse.mouse_accel", _BOOL),
    _Field("ButtonMouseVerticalScale", "button_mouse.vertical_scale", _PERCENT_F),
    _Field("AbsMouseRegionSettings/AbsWidth", "button_abs_mouse.width", _UNIT_F),
    _Field("AbsMouseRegionSettings/AbsHeight", "button_abs_mouse.height", _UNIT_F),
    _Field("AbsMouseRegionSettings/AbsXCenter", "button_abs_mouse.x_center", _UNIT_F),
    _Field("AbsMouseRegionSettings/AbsYCenter", "button_abs_mouse.y_center", _UNIT_F),
    _Field("AbsMouseRegionSettings/AntiRadius", "button_abs_mouse.anti_radius", _UNIT_F),
    _Field("AbsMouseRegionSettings/SnapToCenter", "button_abs_mouse.snap_to_center", _BOOL),

    _Field("WheelSmoothingSettings/UseSmoothing", "wheel_smoothing.enabled", _BOOL),
    _Field("WheelSmoothingSettings/MinCutoff", "wheel_smoothing.min_cutoff", _PERCENT_F),
    _Field("WheelSmoothingSettings/Beta", "wheel_smoothing.beta", _PERCENT_F),

    _Field("LightgunButton", "lightgun_button", _LIGHTGUN),

    _Field("OutputContDevice", "out_cont_type", _enum_kind(OutContType)),
    _Field("IdleDisconnectTimeout", "idle_disconnect_timeout", _TIME),
    _Field("BTPollRate", "bt_poll_rate", _int_kind(0, 16)),
    _Field("LaunchProgram", "launch_program", _STR),
    _Field("ProfileActions", "profile_actions", _NAME_LIST),
)

_CURVES = (("LS", "ls_curve"), ("RS", "rs_curve"), ("L2", "l2_curve"), ("R2", "r2_curve"))

CONTROL_GROUP = "Control"
SHIFT_CONTROL_GROUP = "ShiftControl"
SHIFT_TRIGGER_GROUP = "ShiftTrigger"
# Read order; a control present in several groups keeps the last one read.
_ACTION_GROUPS = ("Button", "Macro", "Key")


# ── Attribute paths ──────────────────────────────────────────────────────

def _owner(settings: ProfileSettings, path: str) -> tuple[Any, str]:
    *parents, attr = path.split(".")
    obj: Any = settings
    for name in parents:
        obj = getattr(obj, name)
    return obj, attr


def _get(settings: ProfileSettings, path: str) -> Any:
    obj, attr = _owner(settings, path)
    return getattr(obj, attr)


def _set(settings: ProfileSettings, path: str, value: Any) -> None:
    obj, attr = _owner(settings, path)
    setattr(obj, attr, value)


# ── Deserialization ──────────────────────────────────────────────────────

def parse_document(source: str | Path | bytes) -> ET.Element:
    """Parse *source* (path, XML string, or raw file bytes) into its root.

    Raises :class:`ValueError` if the text is not well-formed XML or
    declares an unknown encoding; a path that cannot be opened raises
    :class:`OSError`.
    """
    try:
        if isinstance(source, bytes):
            return ET.fromstring(source)
        if isinstance(source, Path) or not source.lstrip().startswith("<"):
            return ET.parse(str(source)).getroot()
        return ET.fromstring(source)
    except ET.ParseError as exc:
        raise ValueError(f"Malformed profile document: {exc}") from exc
    except LookupError as exc:
        # Unknown encoding named in the XML declaration.
        raise ValueError(f"Unreadable profile document: {exc}") from exc


def document_version(root: ET.Element) -> int:
    """Schema version declared by *root*.

    Documents predating the ``config_version`` attribute are version 0 when
    they still carry the legacy root element and version 1 otherwise.
    """
    raw = root.get("config_version")
    if raw is not None:
        try:
            return int(raw.strip())
        except ValueError:
            log.debug("Unparseable config_version %r", raw)
    return 0 if root.tag != ROOT_TAG else 1


class _Reader:
    def __init__(self, root: ET.Element) -> None:
        self.root = root
        self.issues: list[FieldIssue] = []

    def missing(self, tag: str) -> None:
        log.debug("Profile element <%s> missing, using default", tag)
        self.issues.append(FieldIssue(tag, "missing"))

    def malformed(self, tag: str, detail: str) -> None:
        log.debug("Profile element <%s> malformed (%s), using default", tag, detail)
        self.issues.append(FieldIssue(tag, "malformed", detail))

    def scalar(self, f: _Field, settings: ProfileSettings) -> bool:
        node = self.root.find(f.tag)
        if node is None:
            self.missing(f.tag)
            return False
        text = node.text or ""
        if f.kind.strip:
            text = text.strip()
        try:
            value = f.kind.parse(text)
        except ValueError as exc:
            self.malformed(f.tag, str(exc))
            return False
        _set(settings, f.path, value)
        return True


def read_profile(root: ET.Element, settings: ProfileSettings) -> list[FieldIssue]:
    """Reset *settings* to defaults and fill it from a current-schema *root*.

    Returns the list of per-field issues; an empty list means the document
    was complete.  Raises :class:`ValueError` if *root* is not a profile.
    """
    if root.tag != ROOT_TAG:
        raise ValueError(f"Expected <{ROOT_TAG}> root, got <{root.tag}>")

    settings.reset()
    reader = _Reader(root)
    present: set[str] = set()
    for f in PROFILE_FIELDS:
        if reader.scalar(f, settings):
            present.add(f.tag)

    if "TouchpadOutputMode" not in present:
        _apply_touchpad_alias(root, settings)
    _check_custom_curves(reader, settings)
    _read_bindings(reader, settings)
    return reader.issues


def _apply_touchpad_alias(root: ET.Element, settings: ProfileSettings) -> None:
    node = root.find("UseTPforControls")
    if node is None:
        return
    try:
        use_controls = _parse_bool((node.text or "").strip())
    except ValueError:
        return
    if use_controls:
        settings.touchpad.out_mode = TouchpadOutMode.CONTROLS


def _check_custom_curves(reader: _Reader, settings: ProfileSettings) -> None:
    for prefix, attr in _CURVES:
        curve = getattr(settings, attr)
        if curve.mode is not CurveMode.CUSTOM:
            continue
        try:
            parse_custom_curve(curve.custom)
        except ValueError as exc:
            reader.malformed(f"{prefix}OutputCurveCustom", str(exc))
            curve.mode = CurveMode.LINEAR
            curve.custom = ""


def _parse_binding_action(group: str, text: str) -> Action:
    if group == "Button":
        action = output_action_by_name(text)
        if action is None:
            raise ValueError(f"unknown output action {text!r}")
        return OutputControl(action)
    if group == "Key":
        return KeyCode(int(text))
    keys = tuple(int(part) for part in text.split("/") if part.strip())
    if not keys:
        raise ValueError("empty macro")
    return MacroSequence(keys)


def _read_layer_group(
    reader: _Reader, group_node: ET.Element | None, group: str,
) -> dict[Control, tuple[Action, str, KeyFlags]]:
    """Collect ``control -> (action, extras, flags)`` for one layer."""
    layers: dict[Control, list[Any]] = {}
    if group_node is None:
        return {}

    def entries(sub: str):
        node = group_node.find(sub)
        if node is None:
            return
        for child in node:
            control = control_by_name(child.tag)
            if control is None or control is Control.NONE:
                reader.malformed(f"{group}/{sub}/{child.tag}", "unknown control")
                continue
            yield control, child, (child.text or "").strip()

    for sub in _ACTION_GROUPS:
        for control, child, text in entries(sub):
            try:
                action = _parse_binding_action(sub, text)
            except ValueError as exc:
                reader.malformed(f"{group}/{sub}/{child.tag}", str(exc))
                continue
            layers.setdefault(control, [UNBOUND, "", KeyFlags.NONE])[0] = action

    for control, child, _text in entries("Extras"):
        layers.setdefault(control, [UNBOUND, "", KeyFlags.NONE])[1] = child.text or ""

    for control, child, text in entries("KeyType"):
        flags, ok = parse_key_flags(text)
        if not ok:
            reader.malformed(f"{group}/KeyType/{child.tag}", f"bad flags {text!r}")
        layers.setdefault(control, [UNBOUND, "", KeyFlags.NONE])[2] = flags

    return {c: (v[0], v[1], v[2]) for c, v in layers.items()}


def _read_shift_triggers(reader: _Reader, group_node: ET.Element | None) -> dict[Control, int]:
    triggers: dict[Control, int] = {}
    node = group_node.find(SHIFT_TRIGGER_GROUP) if group_node is not None else None
    if node is None:
        return triggers
    for child in node:
        control = control_by_name(child.tag)
        text = (child.text or "").strip()
        if control is None or control is Control.NONE:
            reader.malformed(f"{SHIFT_TRIGGER_GROUP}/{child.tag}", "unknown control")
            continue
        try:
            value = int(text)
        except ValueError:
            reader.malformed(f"{SHIFT_TRIGGER_GROUP}/{child.tag}", f"bad index {text!r}")
            continue
        if not 0 <= value <= SHIFT_TRIGGER_MAX:
            reader.malformed(f"{SHIFT_TRIGGER_GROUP}/{child.tag}", f"index {value} out of range")
            continue
        triggers[control] = value
    return triggers


def _read_bindings(reader: _Reader, settings: ProfileSettings) -> None:
    normal = _read_layer_group(reader, reader.root.find(CONTROL_GROUP), CONTROL_GROUP)
    for control, (action, extras, flags) in normal.items():
        settings.binding(control).set_action(Layer.NORMAL, action, extras, flags)

    shift_node = reader.root.find(SHIFT_CONTROL_GROUP)
    triggers = _read_shift_triggers(reader, shift_node)
    shift = _read_layer_group(reader, shift_node, SHIFT_CONTROL_GROUP)
    for control, (action, extras, flags) in shift.items():
        trigger = triggers.get(control, 0)
        if trigger <= 0:
            log.debug("Ignoring shift entry for %s without a shift trigger", control.name)
            continue
        settings.binding(control).set_action(
            Layer.SHIFT, action, extras, flags, shift_trigger=trigger,
        )
    for control, trigger in triggers.items():
        if control not in shift and trigger > 0:
            settings.binding(control).shift_trigger = trigger


# ── Serialization ────────────────────────────────────────────────────────

def _element_at(root: ET.Element, tag: str) -> ET.Element:
    """Return the element at *tag*, creating intermediate groups."""
    node = root
    for part in tag.split("/"):
        child = node.find(part)
        if child is None:
            child = ET.SubElement(node, part)
        node = child
    return node


def _format_action(action: Action) -> tuple[str, str] | None:
    """Return ``(group, text)`` for *action*, or ``None`` when unbound."""
    if isinstance(action, OutputControl):
        return "Button", output_action_name(action.action)
    if isinstance(action, KeyCode):
        return "Key", str(action.code)
    if isinstance(action, MacroSequence):
        return "Macro", "/".join(str(k) for k in action.keys)
    return None


def _write_layer(group_node: ET.Element, control: Control, layer) -> None:
    formatted = _format_action(layer.action)
    if formatted is not None:
        sub, text = formatted
        ET.SubElement(_element_at(group_node, sub), control.name).text = text
    if layer.extras:
        ET.SubElement(_element_at(group_node, "Extras"), control.name).text = layer.extras
    if layer.flags != KeyFlags.NONE:
        ET.SubElement(
            _element_at(group_node, "KeyType"), control.name,
        ).text = format_key_flags(layer.flags)


def profile_to_element(settings: ProfileSettings) -> ET.Element:
    """Build the current-schema document for *settings*."""
    root = ET.Element(ROOT_TAG, {
        "app_version": APP_VERSION,
        "config_version": str(CONFIG_VERSION),
    })
    for f in PROFILE_FIELDS:
        _element_at(root, f.tag).text = f.kind.format(_get(settings, f.path))

    control_node = ET.SubElement(root, CONTROL_GROUP)
    shift_node = ET.SubElement(root, SHIFT_CONTROL_GROUP)
    trigger_node = ET.SubElement(shift_node, SHIFT_TRIGGER_GROUP)
    for sub in ("Button", "Key", "Macro", "Extras", "KeyType"):
        ET.SubElement(control_node, sub)
        ET.SubElement(shift_node, sub)

    for binding in settings.bindings:
        _write_layer(control_node, binding.control, binding.normal)
        # A shift layer without a trigger is never persisted.
        if binding.shift_trigger > 0:
            ET.SubElement(trigger_node, binding.control.name).text = str(binding.shift_trigger)
            _write_layer(shift_node, binding.control, binding.shift)
    return root


def profile_to_xml(settings: ProfileSettings) -> str:
    """Serialize *settings* to current-schema profile XML."""
    root = profile_to_element(settings)
    ET.indent(root, space="  ")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        + ET.tostring(root, encoding="unicode")
        + "\n"
    )
