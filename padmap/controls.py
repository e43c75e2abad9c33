# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Physical controls, output actions, and the name tables that persist them.

Both enumerations are persisted by *name*, never by numeric value, so the
numbering below may change between releases without breaking profiles.
"""

from __future__ import annotations

from enum import IntEnum


# ── Physical / virtual input controls ────────────────────────────────────

class Control(IntEnum):
    NONE = 0
    LXNeg = 1
    LXPos = 2
    LYNeg = 3
    LYPos = 4
    RXNeg = 5
    RXPos = 6
    RYNeg = 7
    RYPos = 8
    L1 = 9
    L2 = 10
    L3 = 11
    R1 = 12
    R2 = 13
    R3 = 14
    Square = 15
    Triangle = 16
    Circle = 17
    Cross = 18
    DpadUp = 19
    DpadRight = 20
    DpadDown = 21
    DpadLeft = 22
    PS = 23
    TouchLeft = 24
    TouchUpper = 25
    TouchMulti = 26
    TouchRight = 27
    Share = 28
    Options = 29
    Mute = 30
    FnL = 31
    FnR = 32
    BLP = 33
    BRP = 34
    GyroXPos = 35
    GyroXNeg = 36
    GyroZPos = 37
    GyroZNeg = 38
    SwipeLeft = 39
    SwipeRight = 40
    SwipeUp = 41
    SwipeDown = 42
    L2FullPull = 43
    R2FullPull = 44
    GyroSwipeLeft = 45
    GyroSwipeRight = 46
    GyroSwipeUp = 47
    GyroSwipeDown = 48
    Capture = 49
    SideL = 50
    SideR = 51
    LSOuter = 52
    RSOuter = 53


# Every control except NONE owns one binding per slot.
BINDABLE_CONTROLS: tuple[Control, ...] = tuple(
    c for c in Control if c is not Control.NONE
)


# ── Output actions ───────────────────────────────────────────────────────

class OutputAction(IntEnum):
    NONE = 0
    LXNeg = 1
    LXPos = 2
    LYNeg = 3
    LYPos = 4
    RXNeg = 5
    RXPos = 6
    RYNeg = 7
    RYPos = 8
    LB = 9
    LT = 10
    LS = 11
    RB = 12
    RT = 13
    RS = 14
    X = 15
    Y = 16
    B = 17
    A = 18
    DpadUp = 19
    DpadRight = 20
    DpadDown = 21
    DpadLeft = 22
    Guide = 23
    LeftMouse = 24
    RightMouse = 25
    MiddleMouse = 26
    FourthMouse = 27
    FifthMouse = 28
    WheelUp = 29
    WheelDown = 30
    MouseUp = 31
    MouseDown = 32
    MouseLeft = 33
    MouseRight = 34
    AbsMouseUp = 35
    AbsMouseDown = 36
    AbsMouseLeft = 37
    AbsMouseRight = 38
    Back = 39
    Start = 40
    TouchpadClick = 41
    Unbound = 42


OUTPUT_ACTION_NAMES: dict[OutputAction, str] = {
    OutputAction.NONE: "(none)",
    OutputAction.LXNeg: "Left X-Axis-",
    OutputAction.LXPos: "Left X-Axis+",
    OutputAction.LYNeg: "Left Y-Axis-",
    OutputAction.LYPos: "Left Y-Axis+",
    OutputAction.RXNeg: "Right X-Axis-",
    OutputAction.RXPos: "Right X-Axis+",
    OutputAction.RYNeg: "Right Y-Axis-",
    OutputAction.RYPos: "Right Y-Axis+",
    OutputAction.LB: "Left Bumper",
    OutputAction.LT: "Left Trigger",
    OutputAction.LS: "Left Stick",
    OutputAction.RB: "Right Bumper",
    OutputAction.RT: "Right Trigger",
    OutputAction.RS: "Right Stick",
    OutputAction.X: "X Button",
    OutputAction.Y: "Y Button",
    OutputAction.B: "B Button",
    OutputAction.A: "A Button",
    OutputAction.DpadUp: "Up Button",
    OutputAction.DpadRight: "Right Button",
    OutputAction.DpadDown: "Down Button",
    OutputAction.DpadLeft: "Left Button",
    OutputAction.Guide: "Guide",
    OutputAction.LeftMouse: "Left Mouse Button",
    OutputAction.RightMouse: "Right Mouse Button",
    OutputAction.MiddleMouse: "Middle Mouse Button",
    OutputAction.FourthMouse: "4th Mouse Button",
    OutputAction.FifthMouse: "5th Mouse Button",
    OutputAction.WheelUp: "Mouse Wheel Up",
    OutputAction.WheelDown: "Mouse Wheel Down",
    OutputAction.MouseUp: "Mouse Up",
    OutputAction.MouseDown: "Mouse Down",
    OutputAction.MouseLeft: "Mouse Left",
    OutputAction.MouseRight: "Mouse Right",
    OutputAction.AbsMouseUp: "Abs Mouse Up",
    OutputAction.AbsMouseDown: "Abs Mouse Down",
    OutputAction.AbsMouseLeft: "Abs Mouse Left",
    OutputAction.AbsMouseRight: "Abs Mouse Right",
    OutputAction.Back: "Back",
    OutputAction.Start: "Start",
    OutputAction.TouchpadClick: "Touchpad Click",
    OutputAction.Unbound: "Unbound",
}

_OUTPUT_BY_NAME: dict[str, OutputAction] = {
    **{a.name: a for a in OutputAction},
    **{name: a for a, name in OUTPUT_ACTION_NAMES.items()},
}

# Prefixes written by very old profile editors ("bnCross", "sbnCross").
_LEGACY_CONTROL_PREFIXES = ("sbn", "bn")


# ── Name lookups ─────────────────────────────────────────────────────────

def control_name(control: Control) -> str:
    """Return the stable persisted name of *control*."""
    return control.name


def control_by_name(name: str) -> Control | None:
    """Resolve a persisted control name, or ``None`` if it is unknown.

    Accepts the legacy ``bn``/``sbn`` prefixed spellings.
    """
    name = name.strip()
    if not name:
        return None
    found = Control.__members__.get(name)
    if found is not None:
        return found
    for prefix in _LEGACY_CONTROL_PREFIXES:
        if name.startswith(prefix):
            found = Control.__members__.get(name[len(prefix):])
            if found is not None:
                return found
    return None


def output_action_name(action: OutputAction) -> str:
    """Return the stable persisted name of *action*."""
    return OUTPUT_ACTION_NAMES[action]


def output_action_by_name(name: str) -> OutputAction | None:
    """Resolve a stable or member name to an :class:`OutputAction`."""
    return _OUTPUT_BY_NAME.get(name.strip())


def parse_control_list(text: str, sep: str = "/") -> list[Control]:
    """Split a delimiter-separated control list, dropping unknown names."""
    controls: list[Control] = []
    for part in (text or "").split(sep):
        control = control_by_name(part)
        if control is not None and control is not Control.NONE:
            controls.append(control)
    return controls


def format_control_list(controls: list[Control], sep: str = "/") -> str:
    return sep.join(c.name for c in controls)


# ── Compiled-in default mapping ──────────────────────────────────────────

DEFAULT_OUTPUT: dict[Control, OutputAction] = {
    Control.LXNeg: OutputAction.LXNeg,
    Control.LXPos: OutputAction.LXPos,
    Control.LYNeg: OutputAction.LYNeg,
    Control.LYPos: OutputAction.LYPos,
    Control.RXNeg: OutputAction.RXNeg,
    Control.RXPos: OutputAction.RXPos,
    Control.RYNeg: OutputAction.RYNeg,
    Control.RYPos: OutputAction.RYPos,
    Control.L1: OutputAction.LB,
    Control.L2: OutputAction.LT,
    Control.L3: OutputAction.LS,
    Control.R1: OutputAction.RB,
    Control.R2: OutputAction.RT,
    Control.R3: OutputAction.RS,
    Control.Square: OutputAction.X,
    Control.Triangle: OutputAction.Y,
    Control.Circle: OutputAction.B,
    Control.Cross: OutputAction.A,
    Control.DpadUp: OutputAction.DpadUp,
    Control.DpadRight: OutputAction.DpadRight,
    Control.DpadDown: OutputAction.DpadDown,
    Control.DpadLeft: OutputAction.DpadLeft,
    Control.PS: OutputAction.Guide,
    Control.TouchLeft: OutputAction.LeftMouse,
    Control.TouchUpper: OutputAction.MiddleMouse,
    Control.TouchMulti: OutputAction.RightMouse,
    Control.TouchRight: OutputAction.LeftMouse,
    Control.Share: OutputAction.Back,
    Control.Options: OutputAction.Start,
}


def default_output(control: Control) -> OutputAction:
    """Output a control produces when its binding is left unbound."""
    return DEFAULT_OUTPUT.get(control, OutputAction.NONE)


# ── Shift triggers ───────────────────────────────────────────────────────
# Index 0 disables the shift layer; 26 means "any touch on the pad".

SHIFT_TRIGGER_ANY_TOUCH = 26

SHIFT_TRIGGER_CONTROLS: dict[int, Control] = {
    1: Control.Cross,
    2: Control.Circle,
    3: Control.Square,
    4: Control.Triangle,
    5: Control.Options,
    6: Control.Share,
    7: Control.DpadUp,
    8: Control.DpadDown,
    9: Control.DpadLeft,
    10: Control.DpadRight,
    11: Control.PS,
    12: Control.L1,
    13: Control.R1,
    14: Control.L2,
    15: Control.R2,
    16: Control.L3,
    17: Control.R3,
    18: Control.TouchLeft,
    19: Control.TouchUpper,
    20: Control.TouchMulti,
    21: Control.TouchRight,
    22: Control.GyroZNeg,
    23: Control.GyroZPos,
    24: Control.GyroXPos,
    25: Control.GyroXNeg,
}

SHIFT_TRIGGER_MAX = SHIFT_TRIGGER_ANY_TOUCH


# ── Hardware-specific extra buttons ──────────────────────────────────────

DEVICE_EXTRA_BUTTONS: dict[str, tuple[Control, ...]] = {
    "DS3": (),
    "DS4": (),
    "DualSense": (Control.Mute,),
    "DualSenseEdge": (
        Control.Mute, Control.FnL, Control.FnR, Control.BLP, Control.BRP,
    ),
    "SwitchPro": (Control.Capture,),
    "JoyConL": (Control.Capture, Control.SideL, Control.SideR),
    "JoyConR": (Control.Capture, Control.SideL, Control.SideR),
}
