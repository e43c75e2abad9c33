# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Per-control action bindings.

A binding holds two layers (normal and shift).  Each layer carries exactly
one action variant, a free-form *extras* string, and a set of key-type
flags.  Callers construct the variant explicitly::

    binding.set_action(Layer.NORMAL, KeyCode(0x41), flags=KeyFlags.SCAN_CODE)
    binding.set_action(Layer.SHIFT, OutputControl(OutputAction.B), shift_trigger=1)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum, Flag

from .controls import (
    BINDABLE_CONTROLS,
    SHIFT_TRIGGER_CONTROLS,
    SHIFT_TRIGGER_MAX,
    Control,
    OutputAction,
)


class Layer(Enum):
    NORMAL = "normal"
    SHIFT = "shift"


# ── Key-type flags ───────────────────────────────────────────────────────

class KeyFlags(Flag):
    NONE = 0
    SCAN_CODE = 1
    TOGGLE = 2
    UNBOUND = 4
    MACRO = 8
    HOLD_MACRO = 16
    REPEAT_MACRO = 32


# Persisted token for each flag, in write order.
KEY_FLAG_TOKENS: dict[KeyFlags, str] = {
    KeyFlags.SCAN_CODE: "ScanCode",
    KeyFlags.TOGGLE: "Toggle",
    KeyFlags.UNBOUND: "Unbound",
    KeyFlags.MACRO: "Macro",
    KeyFlags.HOLD_MACRO: "HoldMacro",
    KeyFlags.REPEAT_MACRO: "RepeatMacro",
}

_TOKEN_TO_FLAG: dict[str, KeyFlags] = {
    **{token: flag for flag, token in KEY_FLAG_TOKENS.items()},
    "None": KeyFlags.NONE,
}
# Longest first so "HoldMacro" is never read as "Macro".
_TOKENS_BY_LENGTH = sorted(_TOKEN_TO_FLAG, key=len, reverse=True)
_FLAG_SEPARATORS = re.compile(r"[\s,|]+")


def format_key_flags(flags: KeyFlags) -> str:
    """Render *flags* as ``"ScanCode, Toggle"``; empty set gives ``""``."""
    return ", ".join(
        token for flag, token in KEY_FLAG_TOKENS.items() if flag in flags
    )


def parse_key_flags(text: str) -> tuple[KeyFlags, bool]:
    """Parse a persisted key-type string.

    Accepts the separated form written by :func:`format_key_flags` as well
    as the legacy concatenated form (``"ScanCodeToggle"``).  Returns
    ``(flags, ok)`` where *ok* is ``False`` if any unknown token was seen;
    recognised flags are still returned in that case.
    """
    flags = KeyFlags.NONE
    ok = True
    for chunk in _FLAG_SEPARATORS.split(text or ""):
        pos = 0
        while pos < len(chunk):
            for token in _TOKENS_BY_LENGTH:
                if chunk.startswith(token, pos):
                    flags |= _TOKEN_TO_FLAG[token]
                    pos += len(token)
                    break
            else:
                ok = False
                break
    return flags, ok


# ── Action variants ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Unbound:
    """No action."""


@dataclass(frozen=True)
class KeyCode:
    """A platform virtual-key value."""
    code: int

    def __post_init__(self) -> None:
        if not 0 <= self.code <= 0xFFFF:
            raise ValueError(f"key code must be 0-65535, got {self.code}")


@dataclass(frozen=True)
class OutputControl:
    """One of the virtual controller / mouse output actions."""
    action: OutputAction


@dataclass(frozen=True)
class MacroSequence:
    """Ordered list of key codes replayed in sequence."""
    keys: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        keys = tuple(int(k) for k in self.keys)
        for key in keys:
            if not 0 <= key <= 0xFFFF:
                raise ValueError(f"macro key code must be 0-65535, got {key}")
        object.__setattr__(self, "keys", keys)


Action = Unbound | KeyCode | OutputControl | MacroSequence

UNBOUND = Unbound()


@dataclass(frozen=True)
class ActionLayer:
    """One layer of a binding.  Replaced as a whole, never patched."""
    action: Action = UNBOUND
    extras: str = ""
    flags: KeyFlags = KeyFlags.NONE

    def is_default(self) -> bool:
        return isinstance(self.action, Unbound) and self.flags == KeyFlags.NONE


_DEFAULT_LAYER = ActionLayer()


# ── Binding ──────────────────────────────────────────────────────────────

@dataclass
class ActionBinding:
    """Configured behaviour for one physical control.

    The shift layer is only meaningful while ``shift_trigger`` is greater
    than zero.  ``key_alias`` is computed at runtime by the key translator
    and takes no part in equality or persistence.
    """
    control: Control
    normal: ActionLayer = _DEFAULT_LAYER
    shift: ActionLayer = _DEFAULT_LAYER
    shift_trigger: int = 0
    key_alias: int = field(default=0, compare=False)

    def layer(self, layer: Layer) -> ActionLayer:
        return self.shift if layer is Layer.SHIFT else self.normal

    def set_action(
        self,
        layer: Layer,
        action: Action,
        extras: str = "",
        flags: KeyFlags = KeyFlags.NONE,
        shift_trigger: int = 0,
    ) -> None:
        """Replace every field of *layer* at once.

        *shift_trigger* is only applied when *layer* is the shift layer.
        """
        if not isinstance(action, (Unbound, KeyCode, OutputControl, MacroSequence)):
            raise TypeError(f"unsupported action variant {action!r}")
        new_layer = ActionLayer(action=action, extras=extras or "", flags=flags)
        if layer is Layer.SHIFT:
            if not 0 <= shift_trigger <= SHIFT_TRIGGER_MAX:
                raise ValueError(
                    f"shift_trigger must be 0-{SHIFT_TRIGGER_MAX}, got {shift_trigger}"
                )
            self.shift = new_layer
            self.shift_trigger = shift_trigger
        else:
            self.normal = new_layer

    def reset(self) -> None:
        self.normal = _DEFAULT_LAYER
        self.shift = _DEFAULT_LAYER
        self.shift_trigger = 0

    def is_default(self, layer: Layer = Layer.NORMAL) -> bool:
        return self.layer(layer).is_default()

    @property
    def shift_active(self) -> bool:
        return self.shift_trigger > 0

    @property
    def shift_trigger_control(self) -> Control | None:
        """Control that engages the shift layer (``None`` for any-touch or off)."""
        return SHIFT_TRIGGER_CONTROLS.get(self.shift_trigger)

    # -- Variant accessors (empty sentinel when the case is not active) --

    def key_code(self, layer: Layer = Layer.NORMAL) -> int:
        action = self.layer(layer).action
        return action.code if isinstance(action, KeyCode) else 0

    def output_control(self, layer: Layer = Layer.NORMAL) -> OutputAction:
        action = self.layer(layer).action
        return action.action if isinstance(action, OutputControl) else OutputAction.NONE

    def macro(self, layer: Layer = Layer.NORMAL) -> tuple[int, ...]:
        action = self.layer(layer).action
        return action.keys if isinstance(action, MacroSequence) else ()

    def copy(self) -> ActionBinding:
        return replace(self)


def default_bindings() -> list[ActionBinding]:
    """One unbound binding per bindable control, in control order."""
    return [ActionBinding(control=c) for c in BINDABLE_CONTROLS]
