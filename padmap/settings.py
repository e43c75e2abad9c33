# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Typed data models for one slot's profile settings.

Every field has a documented default; :meth:`ProfileSettings.reset`
restores all of them in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum

from .bindings import (
    Action,
    ActionBinding,
    KeyFlags,
    Layer,
    default_bindings,
)
from .controls import Control


# ── Enumerations (value = persisted text) ────────────────────────────────

class CurveMode(Enum):
    LINEAR = "linear"
    ENHANCED_PRECISION = "enhanced-precision"
    QUADRATIC = "quadratic"
    CUBIC = "cubic"
    EASEOUT_QUAD = "easeout-quad"
    EASEOUT_CUBIC = "easeout-cubic"
    CUSTOM = "custom"


class DeadZoneType(Enum):
    RADIAL = "Radial"
    AXIAL = "Axial"


class GyroOutMode(Enum):
    NONE = "None"
    CONTROLS = "Controls"
    MOUSE = "Mouse"
    MOUSE_JOYSTICK = "MouseJoystick"
    DIRECTIONAL_SWIPE = "DirectionalSwipe"
    PASSTHRU = "Passthru"


class TouchpadOutMode(Enum):
    NONE = "None"
    MOUSE = "Mouse"
    CONTROLS = "Controls"
    ABSOLUTE_MOUSE = "AbsoluteMouse"
    PASSTHRU = "Passthru"
    MOUSE_JOYSTICK = "MouseJoystick"


class LightbarMode(Enum):
    DS4WIN = "DS4Win"
    PASSTHRU = "Passthru"


class OutContType(Enum):
    NONE = "None"
    X360 = "X360"
    DS4 = "DS4"


class SmoothingMethod(Enum):
    NONE = "none"
    ONE_EURO = "one-euro"
    WEIGHTED_AVERAGE = "weighted-average"


class OutputStick(Enum):
    NONE = "None"
    LEFT = "LeftStick"
    RIGHT = "RightStick"


class SwipeXAxis(Enum):
    YAW = "Yaw"
    ROLL = "Roll"


class OutputStickAxes(Enum):
    NONE = "None"
    XY = "XY"
    X = "X"
    Y = "Y"


class StickMode(Enum):
    NONE = "None"
    CONTROLS = "Controls"
    FLICK_STICK = "FlickStick"


class TriggerMode(Enum):
    NORMAL = "Normal"
    TWO_STAGE = "TwoStage"


class TwoStageTriggerMode(Enum):
    DISABLED = "Disabled"
    NORMAL = "Normal"
    EXCLUSIVE_BUTTONS = "ExclusiveButtons"
    HAIR_TRIGGER = "HairTrigger"
    HIP_FIRE = "HipFire"
    HIP_FIRE_EXCLUSIVE_BUTTONS = "HipFireExclusiveButtons"


class LightgunButton(Enum):
    """Face/shoulder button a light gun's trigger is reported as."""
    NOT_SET = "NOT_SET"
    CROSS_A = "CROSS_A"
    CIRCLE_B = "CIRCLE_B"
    SQUARE_X = "SQUARE_X"
    TRIANGLE_Y = "TRIANGLE_Y"
    L1 = "L1"
    R1 = "R1"

    @classmethod
    def from_index(cls, index: int) -> LightgunButton:
        """Map the numeric selector (0-6) used by older editors; unknown is NOT_SET."""
        members = list(cls)
        return members[index] if 0 <= index < len(members) else cls.NOT_SET

    @property
    def control(self) -> Control | None:
        return _LIGHTGUN_CONTROLS.get(self)


_LIGHTGUN_CONTROLS = {
    LightgunButton.CROSS_A: Control.Cross,
    LightgunButton.CIRCLE_B: Control.Circle,
    LightgunButton.SQUARE_X: Control.Square,
    LightgunButton.TRIANGLE_Y: Control.Triangle,
    LightgunButton.L1: Control.L1,
    LightgunButton.R1: Control.R1,
}


# ── Value types ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Color:
    """RGB lightbar colour, persisted as ``r,g,b``."""
    red: int = 0
    green: int = 0
    blue: int = 0

    def __post_init__(self) -> None:
        for channel in (self.red, self.green, self.blue):
            if not 0 <= channel <= 255:
                raise ValueError(f"colour channel must be 0-255, got {channel}")

    @classmethod
    def parse(cls, text: str) -> Color:
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 3:
            raise ValueError(f"expected r,g,b, got {text!r}")
        return cls(*(int(p) for p in parts))

    def __str__(self) -> str:
        return f"{self.red},{self.green},{self.blue}"


def parse_custom_curve(text: str) -> tuple[float, float, float, float]:
    """Parse a cubic-bezier curve definition ``"x1, y1, x2, y2"``.

    Raises :class:`ValueError` when the definition is incomplete or the
    x control points fall outside 0-1.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise ValueError(f"expected four curve points, got {text!r}")
    x1, y1, x2, y2 = (float(p) for p in parts)
    if not (0.0 <= x1 <= 1.0 and 0.0 <= x2 <= 1.0):
        raise ValueError(f"curve x points must be 0-1, got {text!r}")
    return x1, y1, x2, y2


# ── Sub-records ──────────────────────────────────────────────────────────

@dataclass
class StickDeadZone:
    dead_zone: int = 10            # 0-127
    anti_dead_zone: int = 20       # percent
    max_zone: int = 100            # percent
    max_output: float = 100.0      # percent
    fuzz: int = 0
    vertical_scale: float = 100.0
    dead_zone_type: DeadZoneType = DeadZoneType.RADIAL
    max_output_force: bool = False
    # Outer-ring binding (LSOuter/RSOuter) engages past this percent.
    outer_bind_dead_zone: float = 75.0
    outer_bind_invert: bool = False


@dataclass
class SquareStick:
    ls_mode: bool = False
    rs_mode: bool = False
    ls_roundness: float = 5.0
    rs_roundness: float = 5.0


@dataclass
class StickAntiSnapback:
    enabled: bool = False
    delta: float = 135.0
    timeout: int = 50              # milliseconds


@dataclass
class FlickStick:
    real_world_calibration: float = 5.3
    flick_threshold: float = 0.9
    flick_time: float = 0.1        # seconds
    min_angle_threshold: float = 0.0
    min_cutoff: float = 0.4
    beta: float = 0.4


@dataclass
class StickOutput:
    mode: StickMode = StickMode.CONTROLS
    flick: FlickStick = field(default_factory=FlickStick)


@dataclass
class TriggerDeadZone:
    dead_zone: int = 0             # 0-255 axis units
    anti_dead_zone: int = 0
    max_zone: int = 100
    max_output: float = 100.0


@dataclass
class TriggerOutput:
    mode: TriggerMode = TriggerMode.NORMAL
    two_stage_mode: TwoStageTriggerMode = TwoStageTriggerMode.DISABLED


@dataclass
class OutputCurve:
    mode: CurveMode = CurveMode.LINEAR
    # Bezier definition, only used when mode is CUSTOM.
    custom: str = ""


@dataclass
class GyroSmoothing:
    use_smoothing: bool = False
    method: SmoothingMethod = SmoothingMethod.NONE
    weight: float = 0.5
    min_cutoff: float = 1.0
    beta: float = 0.7


@dataclass
class GyroControls:
    triggers: str = "-1"
    trigger_cond: bool = True      # True = all triggers ("and")
    trigger_turns: bool = True
    toggle: bool = False


@dataclass
class GyroMouse:
    sensitivity: int = 100
    vertical_scale: int = 100
    invert: int = 0
    triggers: str = "-1"
    trigger_cond: bool = True
    trigger_turns: bool = True
    toggle: bool = False
    min_threshold: float = 1.0
    jitter_compensation: bool = True
    smoothing: GyroSmoothing = field(default_factory=GyroSmoothing)


@dataclass
class GyroMouseStick:
    triggers: str = "-1"
    trigger_cond: bool = True
    trigger_turns: bool = True
    toggle: bool = False
    dead_zone: int = 30
    max_zone: int = 830
    anti_dead_x: float = 0.4
    anti_dead_y: float = 0.4
    vertical_scale: int = 100
    invert: int = 0
    max_output: float = 100.0
    max_output_enabled: bool = False
    output_stick: OutputStick = OutputStick.RIGHT
    output_stick_axes: OutputStickAxes = OutputStickAxes.XY
    jitter_compensation: bool = False
    smoothing: GyroSmoothing = field(
        default_factory=lambda: GyroSmoothing(min_cutoff=0.4)
    )


@dataclass
class GyroSwipe:
    dead_zone_x: int = 80          # degrees per second
    dead_zone_y: int = 80
    triggers: str = "-1"
    trigger_cond: bool = True
    trigger_turns: bool = True
    x_axis: SwipeXAxis = SwipeXAxis.YAW
    delay_time: int = 0


@dataclass
class Touchpad:
    out_mode: TouchpadOutMode = TouchpadOutMode.MOUSE
    sensitivity: int = 100
    toggle_enabled: bool = True
    scroll_sensitivity: int = 0
    tap_sensitivity: int = 0
    double_tap: bool = False
    jitter_compensation: bool = True
    lower_right_click: bool = False
    invert: int = 0


@dataclass
class TouchpadRelMouse:
    rotation: float = 0.0          # radians
    min_threshold: float = 1.0


@dataclass
class TouchpadAbsMouse:
    max_zone_x: int = 90
    max_zone_y: int = 90
    snap_to_center: bool = False


@dataclass
class TouchMouseStick:
    dead_zone: int = 0
    max_zone: int = 8
    anti_dead_x: float = 0.4
    anti_dead_y: float = 0.4
    vertical_scale: int = 100
    max_output_enabled: bool = False
    max_output: float = 100.0
    invert: int = 0
    smoothing_method: SmoothingMethod = SmoothingMethod.NONE
    min_cutoff: float = 0.8
    beta: float = 0.7
    output_stick: OutputStick = OutputStick.RIGHT
    output_stick_axes: OutputStickAxes = OutputStickAxes.XY
    trackball_mode: bool = True
    trackball_friction: float = 10.0
    output_curve: CurveMode = CurveMode.LINEAR
    rotation: float = 0.0          # radians


@dataclass
class Lightbar:
    mode: LightbarMode = LightbarMode.DS4WIN
    color: Color = Color(0, 0, 255)
    low_color: Color = Color(0, 0, 0)
    charging_color: Color = Color(0, 0, 0)
    flash_color: Color = Color(0, 0, 0)
    led_as_battery: bool = False
    flash_type: int = 0
    flash_at: int = 0              # battery percent, 0 disables
    rainbow: float = 0.0
    max_rainbow_saturation: int = 100
    charging_type: int = 0


@dataclass
class Rumble:
    boost: int = 100               # percent
    autostop_time: int = 0         # milliseconds, 0 disables


@dataclass
class ButtonMouse:
    sensitivity: int = 25
    mouse_accel: bool = False
    vertical_scale: float = 1.0


@dataclass
class ButtonAbsMouse:
    """Screen region targeted by the absolute-mouse output actions."""
    width: float = 1.0
    height: float = 1.0
    x_center: float = 0.5
    y_center: float = 0.5
    snap_to_center: bool = True
    anti_radius: float = 0.0


@dataclass
class WheelSmoothing:
    enabled: bool = False
    min_cutoff: float = 0.1
    beta: float = 0.1


def _default_profile_actions() -> list[str]:
    return ["Disconnect Controller"]


# ── Profile aggregate ────────────────────────────────────────────────────

@dataclass
class ProfileSettings:
    """Complete settings for one slot."""
    ls: StickDeadZone = field(default_factory=StickDeadZone)
    rs: StickDeadZone = field(default_factory=StickDeadZone)
    l2: TriggerDeadZone = field(default_factory=TriggerDeadZone)
    r2: TriggerDeadZone = field(default_factory=TriggerDeadZone)
    ls_curve: OutputCurve = field(default_factory=OutputCurve)
    rs_curve: OutputCurve = field(default_factory=OutputCurve)
    l2_curve: OutputCurve = field(default_factory=OutputCurve)
    r2_curve: OutputCurve = field(default_factory=OutputCurve)
    ls_sensitivity: float = 1.0
    rs_sensitivity: float = 1.0
    l2_sensitivity: float = 1.0
    r2_sensitivity: float = 1.0
    square_stick: SquareStick = field(default_factory=SquareStick)
    ls_anti_snapback: StickAntiSnapback = field(default_factory=StickAntiSnapback)
    rs_anti_snapback: StickAntiSnapback = field(default_factory=StickAntiSnapback)
    ls_output: StickOutput = field(default_factory=StickOutput)
    rs_output: StickOutput = field(default_factory=StickOutput)
    l2_output: TriggerOutput = field(default_factory=TriggerOutput)
    r2_output: TriggerOutput = field(default_factory=TriggerOutput)

    gyro_out_mode: GyroOutMode = GyroOutMode.CONTROLS
    gyro_controls: GyroControls = field(default_factory=GyroControls)
    gyro_mouse: GyroMouse = field(default_factory=GyroMouse)
    gyro_mouse_stick: GyroMouseStick = field(default_factory=GyroMouseStick)
    gyro_swipe: GyroSwipe = field(default_factory=GyroSwipe)

    touchpad: Touchpad = field(default_factory=Touchpad)
    touchpad_rel_mouse: TouchpadRelMouse = field(default_factory=TouchpadRelMouse)
    touchpad_abs_mouse: TouchpadAbsMouse = field(default_factory=TouchpadAbsMouse)
    touch_mouse_stick: TouchMouseStick = field(default_factory=TouchMouseStick)
    lightbar: Lightbar = field(default_factory=Lightbar)
    rumble: Rumble = field(default_factory=Rumble)
    button_mouse: ButtonMouse = field(default_factory=ButtonMouse)
    button_abs_mouse: ButtonAbsMouse = field(default_factory=ButtonAbsMouse)
    wheel_smoothing: WheelSmoothing = field(default_factory=WheelSmoothing)
    lightgun_button: LightgunButton = LightgunButton.NOT_SET

    out_cont_type: OutContType = OutContType.X360
    idle_disconnect_timeout: int = 0   # seconds
    bt_poll_rate: int = 4
    launch_program: str = ""

    bindings: list[ActionBinding] = field(default_factory=default_bindings)
    profile_actions: list[str] = field(default_factory=_default_profile_actions)

    def reset(self) -> None:
        """Restore every field to its default.

        Binding objects and the profile-action list are reset in place so
        views over them (see :class:`~padmap.groups.BindingGroups`) stay
        valid.
        """
        fresh = ProfileSettings()
        for f in fields(self):
            if f.name == "bindings":
                for binding in self.bindings:
                    binding.reset()
            elif f.name == "profile_actions":
                self.profile_actions[:] = fresh.profile_actions
            else:
                setattr(self, f.name, getattr(fresh, f.name))

    def binding(self, control: Control) -> ActionBinding:
        if control is Control.NONE:
            raise ValueError("Control.NONE has no binding")
        # Bindings are stored in control order starting at LXNeg.
        return self.bindings[control - 1]

    def set_action(
        self,
        control: Control,
        layer: Layer,
        action: Action,
        extras: str = "",
        flags: KeyFlags = KeyFlags.NONE,
        shift_trigger: int = 0,
    ) -> ActionBinding:
        binding = self.binding(control)
        binding.set_action(layer, action, extras, flags, shift_trigger)
        return binding

    def reset_action(self, control: Control) -> ActionBinding:
        binding = self.binding(control)
        binding.reset()
        return binding

    def is_default(self, control: Control, layer: Layer = Layer.NORMAL) -> bool:
        return self.binding(control).is_default(layer)
