# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Semantic views over a slot's flat binding list.

Views hold references to the same :class:`ActionBinding` objects as the
slot's list, so edits through a view are edits to the profile.
"""

from __future__ import annotations

import logging

from .bindings import ActionBinding
from .controls import DEVICE_EXTRA_BUTTONS, Control

log = logging.getLogger(__name__)


LEFT_STICK: tuple[Control, ...] = (
    Control.LSOuter, Control.LXNeg, Control.LXPos, Control.LYNeg, Control.LYPos,
)
RIGHT_STICK: tuple[Control, ...] = (
    Control.RSOuter, Control.RXNeg, Control.RXPos, Control.RYNeg, Control.RYPos,
)
TRIGGERS: tuple[Control, ...] = (
    Control.L2, Control.L2FullPull, Control.R2, Control.R2FullPull,
)
GYRO_SWIPE: tuple[Control, ...] = (
    Control.GyroSwipeLeft, Control.GyroSwipeRight,
    Control.GyroSwipeUp, Control.GyroSwipeDown,
)

# Face/shoulder buttons: the shoulders, then two ranges that skip the
# hardware-specific controls (Mute..BRP) sitting between them.
_SHOULDERS = (Control.L1, Control.L3, Control.R1, Control.R3)
_BUTTON_RANGES = (
    (Control.Square, Control.Options),
    (Control.GyroXPos, Control.SwipeDown),
)


def button_controls() -> tuple[Control, ...]:
    controls = list(_SHOULDERS)
    for first, last in _BUTTON_RANGES:
        controls.extend(Control(i) for i in range(first, last + 1))
    return tuple(controls)


BUTTONS: tuple[Control, ...] = button_controls()


class BindingGroups:
    """Left stick, right stick, triggers, gyro swipe and button views."""

    def __init__(self, bindings: list[ActionBinding]) -> None:
        self._by_control = {b.control: b for b in bindings}
        self.left_stick = self._pick(LEFT_STICK)
        self.right_stick = self._pick(RIGHT_STICK)
        self.triggers = self._pick(TRIGGERS)
        self.gyro_swipe = self._pick(GYRO_SWIPE)
        self.buttons = self._pick(BUTTONS)
        self.extra_buttons: list[ActionBinding] = []

    def _pick(self, controls: tuple[Control, ...]) -> list[ActionBinding]:
        return [self._by_control[c] for c in controls]

    # -- Extra buttons -----------------------------------------------------

    def populate_extra_buttons(self, controls: list[Control] | tuple[Control, ...]) -> None:
        """Replace the extra-button list with bindings for *controls*."""
        self.extra_buttons = [
            self._by_control[c] for c in controls if c in self._by_control
        ]

    def populate_for_device(self, device_type: str) -> None:
        """Fill the extra-button list from the known device-type table."""
        controls = DEVICE_EXTRA_BUTTONS.get(device_type)
        if controls is None:
            log.debug("No extra-button table for device type %r", device_type)
            controls = ()
        self.populate_extra_buttons(controls)

    def clear_extra_buttons(self) -> None:
        self.extra_buttons = []

    def all_groups(self) -> dict[str, list[ActionBinding]]:
        return {
            "left_stick": self.left_stick,
            "right_stick": self.right_stick,
            "triggers": self.triggers,
            "gyro_swipe": self.gyro_swipe,
            "buttons": self.buttons,
            "extra_buttons": self.extra_buttons,
        }
