# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Named actions and their compact string encoding.

A named action is triggered by a set of controls independently of any one
binding (disconnect the pad, switch profile, launch a program, ...).  Each
action is stored as four strings -- trigger list, type tag, details and
extras -- whose internal layout depends on the type tag:

=============  ==================================  =============================
Type           details                             extras
=============  ==================================  =============================
Key            ``"65"`` / ``"65 Scan Code"``       ``"Press|Release\\n<untrigger>"``
Macro          ``"65/66/67"``                      ``"Scan Code, Sync, Repeat"``
Program        executable path                     argument string
Profile        profile name                        ``"<untrigger>[\\nAutomaticUntrigger]"``
DisconnectBT   ``"<delay>"``                       --
BatteryCheck   ``"<delay>|<notify>|<light>|r,g,b|r,g,b"``  --
MultiAction    opaque, interpreted by the executor --
=============  ==================================  =============================

Older files separate the BatteryCheck/DisconnectBT fields with ``,``
instead of ``|``; both are read, only ``|`` is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar
from xml.etree import ElementTree as ET

from .controls import Control, format_control_list, parse_control_list

log = logging.getLogger(__name__)


class ActionType(Enum):
    KEY = "Key"
    PROGRAM = "Program"
    PROFILE = "Profile"
    MACRO = "Macro"
    DISCONNECT = "DisconnectBT"
    BATTERY_CHECK = "BatteryCheck"
    MULTI_ACTION = "MultiAction"
    STEERING_WHEEL_CALIBRATE = "SASteeringWheelEmulationCalibrate"

    @classmethod
    def from_tag(cls, tag: str) -> ActionType:
        tag = (tag or "").strip()
        if tag == "XboxGameDVR":
            return cls.MULTI_ACTION
        for member in cls:
            if member.value == tag:
                return member
        raise ValueError(f"Unknown action type {tag!r}")


# ── Payloads ─────────────────────────────────────────────────────────────

@dataclass
class KeyPress:
    TYPE: ClassVar[ActionType] = ActionType.KEY
    key: int = 0
    scan_code: bool = False
    toggle: bool = False
    # Toggle fires on release instead of press.
    release: bool = False


@dataclass
class ProgramLaunch:
    TYPE: ClassVar[ActionType] = ActionType.PROGRAM
    path: str = ""
    arguments: str = ""


@dataclass
class ProfileSwitch:
    TYPE: ClassVar[ActionType] = ActionType.PROFILE
    profile: str = ""


@dataclass
class Macro:
    TYPE: ClassVar[ActionType] = ActionType.MACRO
    keys: list[int] = field(default_factory=list)
    scan_code: bool = False
    run_on_release: bool = False
    synchronized: bool = False
    keep_key_state: bool = False
    repeat: bool = False


@dataclass
class Disconnect:
    TYPE: ClassVar[ActionType] = ActionType.DISCONNECT


@dataclass
class BatteryCheck:
    TYPE: ClassVar[ActionType] = ActionType.BATTERY_CHECK
    notification: bool = True
    light: bool = False
    low_color: tuple[int, int, int] = (255, 0, 0)
    high_color: tuple[int, int, int] = (0, 255, 0)


@dataclass
class MultiAction:
    TYPE: ClassVar[ActionType] = ActionType.MULTI_ACTION
    details: str = ""


@dataclass
class SteeringWheelCalibrate:
    TYPE: ClassVar[ActionType] = ActionType.STEERING_WHEEL_CALIBRATE


Payload = (
    KeyPress | ProgramLaunch | ProfileSwitch | Macro | Disconnect
    | BatteryCheck | MultiAction | SteeringWheelCalibrate
)

# (macro extras token, Macro attribute) -- matched by substring presence.
_MACRO_EXTRA_TOKENS: tuple[tuple[str, str], ...] = (
    ("Scan Code", "scan_code"),
    ("RunOnRelease", "run_on_release"),
    ("Sync", "synchronized"),
    ("KeepKeyState", "keep_key_state"),
    ("Repeat", "repeat"),
)

_AUTOMATIC_UNTRIGGER = "AutomaticUntrigger"


@dataclass
class NamedAction:
    """An independently triggerable action, referenced from profiles by name."""
    name: str
    triggers: list[Control] = field(default_factory=list)
    payload: Payload = field(default_factory=Disconnect)
    delay: float = 0.0
    untrigger: list[Control] = field(default_factory=list)
    automatic_untrigger: bool = False

    @property
    def type(self) -> ActionType:
        return self.payload.TYPE

    def validate(self) -> None:
        check_action_name(self.name)
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")


def check_action_name(name: str) -> None:
    """Raise :class:`ValueError` unless *name* can be stored in a profile.

    Profiles keep their action names in one ``/``-joined element, so a
    name may not contain ``/`` or surrounding whitespace.
    """
    if not name.strip():
        raise ValueError("Action name cannot be empty")
    if "/" in name:
        raise ValueError(f"Action name cannot contain '/': {name!r}")
    if name != name.strip():
        raise ValueError(f"Action name has surrounding whitespace: {name!r}")


# ── Helpers ──────────────────────────────────────────────────────────────

def _split_legacy(details: str) -> list[str]:
    """Split on ``|``; fall back to ``,`` for files written before ``|``."""
    parts = details.split("|")
    if len(parts) == 1:
        parts = details.split(",")
    return [p.strip() for p in parts]


def _parse_float(text: str, default: float = 0.0) -> float:
    try:
        return float(text)
    except (TypeError, ValueError):
        return default


def _parse_bool(text: str, default: bool) -> bool:
    lowered = text.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    return default


def _parse_rgb(parts: list[str]) -> tuple[int, int, int] | None:
    if len(parts) != 3:
        return None
    try:
        rgb = tuple(int(p) for p in parts)
    except ValueError:
        return None
    if not all(0 <= c <= 255 for c in rgb):
        return None
    return rgb  # type: ignore[return-value]


def _format_number(value: float) -> str:
    return f"{value:g}"


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _format_rgb(rgb: tuple[int, int, int]) -> str:
    return ",".join(str(c) for c in rgb)


# ── Parsing ──────────────────────────────────────────────────────────────

def parse_action(
    name: str,
    triggers: str,
    type_tag: str,
    details: str,
    delay: float = 0.0,
    extras: str = "",
) -> NamedAction:
    """Build a :class:`NamedAction` from its persisted strings.

    Unknown control names in trigger lists are dropped.  Raises
    :class:`ValueError` only for an unknown *type_tag*.
    """
    action_type = ActionType.from_tag(type_tag)
    details = details or ""
    extras = extras or ""
    action = NamedAction(
        name=name,
        triggers=parse_control_list(triggers),
        delay=delay,
    )

    if action_type is ActionType.KEY:
        key_text = details.split(" ")[0]
        try:
            key = int(key_text)
        except ValueError:
            log.debug("Action %r has non-numeric key %r", name, key_text)
            key = 0
        payload = KeyPress(key=key, scan_code="Scan Code" in details)
        if extras:
            lines = extras.split("\n")
            payload.toggle = True
            payload.release = lines[0].strip() == "Release"
            if len(lines) > 1:
                action.untrigger = parse_control_list(lines[1])
        action.payload = payload

    elif action_type is ActionType.MACRO:
        keys: list[int] = []
        for part in details.split("/"):
            try:
                keys.append(int(part))
            except ValueError:
                continue
        payload = Macro(keys=keys)
        for token, attr in _MACRO_EXTRA_TOKENS:
            if token in extras:
                setattr(payload, attr, True)
        action.payload = payload

    elif action_type is ActionType.PROGRAM:
        action.payload = ProgramLaunch(path=details, arguments=extras)

    elif action_type is ActionType.PROFILE:
        action.payload = ProfileSwitch(profile=details)
        if extras:
            lines = extras.split("\n")
            action.untrigger = parse_control_list(lines[0])
            action.automatic_untrigger = any(
                line.strip() == _AUTOMATIC_UNTRIGGER for line in lines[1:]
            )

    elif action_type is ActionType.DISCONNECT:
        action.payload = Disconnect()
        action.delay = _parse_float(_split_legacy(details)[0])

    elif action_type is ActionType.BATTERY_CHECK:
        action.payload, action.delay = _parse_battery_check(details)

    elif action_type is ActionType.MULTI_ACTION:
        action.payload = MultiAction(details=details)

    else:
        action.payload = SteeringWheelCalibrate()

    return action


def _parse_battery_check(details: str) -> tuple[BatteryCheck, float]:
    payload = BatteryCheck()
    if "|" in details:
        parts = [p.strip() for p in details.split("|")]
        low = parts[3].split(",") if len(parts) > 3 else []
        high = parts[4].split(",") if len(parts) > 4 else []
    else:
        parts = [p.strip() for p in details.split(",")]
        low = parts[3:6]
        high = parts[6:9]

    delay = _parse_float(parts[0])
    if len(parts) > 1:
        payload.notification = _parse_bool(parts[1], payload.notification)
    if len(parts) > 2:
        payload.light = _parse_bool(parts[2], payload.light)
    low_rgb = _parse_rgb(low)
    if low_rgb is not None:
        payload.low_color = low_rgb
    high_rgb = _parse_rgb(high)
    if high_rgb is not None:
        payload.high_color = high_rgb
    return payload, delay


# ── Encoding ─────────────────────────────────────────────────────────────

def encode_action(action: NamedAction) -> tuple[str, str]:
    """Return the ``(details, extras)`` strings for *action*."""
    payload = action.payload

    if isinstance(payload, KeyPress):
        details = str(payload.key) + (" Scan Code" if payload.scan_code else "")
        extras = ""
        if payload.toggle:
            timing = "Release" if payload.release else "Press"
            extras = f"{timing}\n{format_control_list(action.untrigger)}"
        return details, extras

    if isinstance(payload, Macro):
        details = "/".join(str(k) for k in payload.keys)
        extras = ", ".join(
            token for token, attr in _MACRO_EXTRA_TOKENS if getattr(payload, attr)
        )
        return details, extras

    if isinstance(payload, ProgramLaunch):
        return payload.path, payload.arguments

    if isinstance(payload, ProfileSwitch):
        extras = format_control_list(action.untrigger)
        if action.automatic_untrigger:
            extras += "\n" + _AUTOMATIC_UNTRIGGER
        return payload.profile, extras

    if isinstance(payload, Disconnect):
        return _format_number(action.delay), ""

    if isinstance(payload, BatteryCheck):
        details = "|".join((
            _format_number(action.delay),
            _format_bool(payload.notification),
            _format_bool(payload.light),
            _format_rgb(payload.low_color),
            _format_rgb(payload.high_color),
        ))
        return details, ""

    if isinstance(payload, MultiAction):
        return payload.details, ""

    return "", ""


# ── Actions.xml ──────────────────────────────────────────────────────────

def default_actions() -> list[NamedAction]:
    """Actions present when no ``Actions.xml`` exists yet."""
    return [
        NamedAction(
            name="Disconnect Controller",
            triggers=[Control.PS, Control.Options],
            payload=Disconnect(),
        ),
    ]


def _child_text(node: ET.Element, tag: str) -> str:
    child = node.find(tag)
    if child is None:
        return ""
    return child.text or ""


def parse_actions_xml(source: str | Path) -> list[NamedAction]:
    """Parse an ``Actions.xml`` document (path or XML string).

    Entries with an unknown type or no name are skipped with a warning.
    When a name repeats, the later entry replaces the earlier one.
    Raises :class:`ValueError` if the document itself is not valid.
    """
    try:
        if isinstance(source, Path) or not str(source).lstrip().startswith("<"):
            root = ET.parse(str(source)).getroot()
        else:
            root = ET.fromstring(source)
    except ET.ParseError as exc:
        raise ValueError(f"Malformed actions document: {exc}") from exc
    except LookupError as exc:
        raise ValueError(f"Unreadable actions document: {exc}") from exc

    if root.tag != "Actions":
        raise ValueError(f"Expected <Actions> root, got <{root.tag}>")

    by_name: dict[str, NamedAction] = {}
    for node in root.findall("Action"):
        name = _child_text(node, "Name").strip()
        if not name:
            log.warning("Skipping action without a name")
            continue
        try:
            check_action_name(name)
            action = parse_action(
                name,
                _child_text(node, "Trigger"),
                _child_text(node, "Type"),
                _child_text(node, "Details"),
                delay=_parse_float(_child_text(node, "Delay")),
                extras=_child_text(node, "Extras"),
            )
        except ValueError as exc:
            log.warning("Skipping action %r: %s", name, exc)
            continue
        by_name.pop(name, None)
        by_name[name] = action
    return list(by_name.values())


def actions_to_xml(actions: list[NamedAction]) -> str:
    root = ET.Element("Actions")
    for action in actions:
        details, extras = encode_action(action)
        node = ET.SubElement(root, "Action")
        ET.SubElement(node, "Name").text = action.name
        ET.SubElement(node, "Trigger").text = format_control_list(action.triggers)
        ET.SubElement(node, "Type").text = action.type.value
        ET.SubElement(node, "Details").text = details
        if extras:
            ET.SubElement(node, "Extras").text = extras
        if action.delay and action.type not in (
            ActionType.DISCONNECT, ActionType.BATTERY_CHECK,
        ):
            ET.SubElement(node, "Delay").text = _format_number(action.delay)

    ET.indent(root, space="  ")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        + ET.tostring(root, encoding="unicode")
        + "\n"
    )
