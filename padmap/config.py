# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""
Configuration service: the single accessor surface for profile state.

One :class:`ConfigService` owns the settings for all nine slots (eight
physical devices plus the editor slot), the shared named-action list, the
serial-to-profile links and per-device calibration.  Collaborators receive
the service explicitly; there is no module-level instance.

Files live under the application-data directory, resolved through Qt's
``QStandardPaths`` unless overridden by argument or ``PADMAP_DATA_DIR``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from PySide6.QtCore import QCoreApplication, QStandardPaths

from . import repository
from .bindings import Action, ActionBinding, KeyFlags, Layer
from .controls import Control
from .groups import BindingGroups
from .repository import ControllerConfig, LoadResult, LoadStatus, SaveResult
from .settings import (
    Color,
    GyroOutMode,
    OutContType,
    ProfileSettings,
    TouchpadOutMode,
)
from .special_actions import NamedAction, check_action_name, default_actions

log = logging.getLogger(__name__)


# -- Defaults --------------------------------------------------------------

APP_NAME = "padmap"
DATA_DIR_ENV = "PADMAP_DATA_DIR"

SLOT_COUNT = 9
PHYSICAL_SLOTS = 8
EDITOR_SLOT = 8

KeyTranslator = Callable[[ActionBinding], int]


def resolve_app_data_dir() -> Path:
    """Return (and create) the per-user application-data directory."""
    override = os.environ.get(DATA_DIR_ENV, "").strip()
    if override:
        path = Path(override)
    else:
        if QCoreApplication.instance() is None:
            QCoreApplication.setApplicationName(APP_NAME)
        base = QStandardPaths.writableLocation(
            QStandardPaths.StandardLocation.AppDataLocation,
        )
        path = Path(base)
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass(frozen=True)
class DeviceSettingsUpdate:
    """Snapshot handed to a device worker after a profile load."""
    slot: int
    profile_name: str
    out_cont_type: OutContType
    gyro_out_mode: GyroOutMode
    touchpad_out_mode: TouchpadOutMode
    lightbar_color: Color
    rumble_boost: int
    rumble_autostop_time: int
    idle_disconnect_timeout: int
    bt_poll_rate: int
    launch_program: str

    @classmethod
    def from_settings(
        cls, slot: int, profile_name: str, settings: ProfileSettings,
    ) -> DeviceSettingsUpdate:
        return cls(
            slot=slot,
            profile_name=profile_name,
            out_cont_type=settings.out_cont_type,
            gyro_out_mode=settings.gyro_out_mode,
            touchpad_out_mode=settings.touchpad.out_mode,
            lightbar_color=settings.lightbar.color,
            rumble_boost=settings.rumble.boost,
            rumble_autostop_time=settings.rumble.autostop_time,
            idle_disconnect_timeout=settings.idle_disconnect_timeout,
            bt_poll_rate=settings.bt_poll_rate,
            launch_program=settings.launch_program,
        )


class ConfigService:
    """Owns every slot's settings and the shared configuration files.

    *key_translator* is called with a binding after every load and binding
    change; its return value is stored in ``binding.key_alias``.
    *device_queues* maps physical slots (0-7) to objects with a ``put``
    method that receive a :class:`DeviceSettingsUpdate` after each
    successful load.
    """

    def __init__(
        self,
        app_data_dir: str | Path | None = None,
        key_translator: KeyTranslator | None = None,
        device_queues: dict[int, Any] | None = None,
    ) -> None:
        if app_data_dir is None:
            self.app_data_dir = resolve_app_data_dir()
        else:
            self.app_data_dir = Path(app_data_dir)
        self._key_translator = key_translator
        self._device_queues: dict[int, Any] = {}
        for slot, q in (device_queues or {}).items():
            self.attach_device_queue(slot, q)

        self._profiles = [ProfileSettings() for _ in range(SLOT_COUNT)]
        self._groups = [BindingGroups(p.bindings) for p in self._profiles]
        self._profile_names = [""] * SLOT_COUNT
        self._actions: list[NamedAction] = default_actions()
        self._linked: dict[str, str] = {}
        self._controller_configs: dict[str, ControllerConfig] = {}

    # -- Paths -------------------------------------------------------------

    @property
    def profiles_dir(self) -> Path:
        return repository.profiles_dir(self.app_data_dir)

    @property
    def actions_path(self) -> Path:
        return self.app_data_dir / repository.ACTIONS_FILE

    @property
    def linked_profiles_path(self) -> Path:
        return self.app_data_dir / repository.LINKED_PROFILES_FILE

    @property
    def controller_configs_path(self) -> Path:
        return self.app_data_dir / repository.CONTROLLER_CONFIGS_FILE

    def profile_path(self, name: str) -> Path:
        return repository.profile_path(self.app_data_dir, name)

    # -- Slots -------------------------------------------------------------

    @staticmethod
    def _check_slot(slot: int) -> None:
        if not 0 <= slot < SLOT_COUNT:
            raise IndexError(f"slot must be 0-{SLOT_COUNT - 1}, got {slot}")

    def profile(self, slot: int) -> ProfileSettings:
        self._check_slot(slot)
        return self._profiles[slot]

    def profile_name(self, slot: int) -> str:
        """Name of the profile last loaded into *slot* (empty if none)."""
        self._check_slot(slot)
        return self._profile_names[slot]

    def binding(self, slot: int, control: Control) -> ActionBinding:
        return self.profile(slot).binding(control)

    def set_action(
        self,
        slot: int,
        control: Control,
        layer: Layer,
        action: Action,
        extras: str = "",
        flags: KeyFlags = KeyFlags.NONE,
        shift_trigger: int = 0,
    ) -> ActionBinding:
        binding = self.profile(slot).set_action(
            control, layer, action, extras, flags, shift_trigger,
        )
        self._refresh_alias(binding)
        return binding

    def reset_action(self, slot: int, control: Control) -> ActionBinding:
        binding = self.profile(slot).reset_action(control)
        self._refresh_alias(binding)
        return binding

    def is_default(
        self, slot: int, control: Control, layer: Layer = Layer.NORMAL,
    ) -> bool:
        return self.profile(slot).is_default(control, layer)

    def groups(self, slot: int) -> BindingGroups:
        self._check_slot(slot)
        return self._groups[slot]

    def profile_actions(self, slot: int) -> list[str]:
        return list(self.profile(slot).profile_actions)

    def set_profile_actions(self, slot: int, names: list[str]) -> None:
        for name in names:
            check_action_name(name)
        self.profile(slot).profile_actions[:] = list(names)

    def resolved_profile_actions(self, slot: int) -> list[NamedAction]:
        """Named actions attached to *slot*; unknown names are skipped."""
        resolved: list[NamedAction] = []
        for name in self.profile(slot).profile_actions:
            action = self.get_action(name)
            if action is None:
                log.debug("Slot %d references unknown action %r", slot, name)
                continue
            resolved.append(action)
        return resolved

    def reset_profile(self, slot: int) -> None:
        self.profile(slot).reset()
        self._profile_names[slot] = ""
        self._refresh_aliases(slot)

    def _refresh_alias(self, binding: ActionBinding) -> None:
        if self._key_translator is not None:
            binding.key_alias = self._key_translator(binding)

    def _refresh_aliases(self, slot: int) -> None:
        for binding in self._profiles[slot].bindings:
            self._refresh_alias(binding)

    # -- Device hand-off ---------------------------------------------------

    def attach_device_queue(self, slot: int, q: Any) -> None:
        if not 0 <= slot < PHYSICAL_SLOTS:
            raise IndexError(f"device queues attach to slots 0-{PHYSICAL_SLOTS - 1}, got {slot}")
        self._device_queues[slot] = q

    def detach_device_queue(self, slot: int) -> None:
        self._device_queues.pop(slot, None)

    def _hand_off(self, slot: int) -> None:
        q = self._device_queues.get(slot)
        if q is None:
            return
        update = DeviceSettingsUpdate.from_settings(
            slot, self._profile_names[slot], self._profiles[slot],
        )
        q.put(update)
        log.debug("Queued settings update for slot %d", slot)

    # -- Profile files -----------------------------------------------------

    def load_profile(self, slot: int, name: str) -> LoadResult:
        """Load profile *name* into *slot*.

        On any status other than ``LOADED`` the slot holds defaults.
        """
        settings = self.profile(slot)
        try:
            path = self.profile_path(name)
        except ValueError as exc:
            log.error("Cannot load profile %r: %s", name, exc)
            settings.reset()
            self._profile_names[slot] = ""
            self._refresh_aliases(slot)
            return LoadResult(
                LoadStatus.INVALID, self.profiles_dir / f"{name}.xml", error=str(exc),
            )
        result = repository.load_profile(path, settings)
        self._profile_names[slot] = name if result.ok else ""
        self._refresh_aliases(slot)
        if result.ok and slot < PHYSICAL_SLOTS:
            self._hand_off(slot)
        return result

    def save_profile(self, slot: int, name: str) -> SaveResult:
        settings = self.profile(slot)
        try:
            path = self.profile_path(name)
        except ValueError as exc:
            log.error("Cannot save profile %r: %s", name, exc)
            return SaveResult(False, self.profiles_dir / f"{name}.xml", str(exc))
        result = repository.save_profile(path, settings)
        if result.ok:
            self._profile_names[slot] = name
        return result

    def list_profiles(self) -> list[str]:
        return repository.list_profiles(self.app_data_dir)

    def delete_profile(self, name: str) -> bool:
        return repository.delete_profile(self.app_data_dir, name)

    # -- Named actions -----------------------------------------------------

    @property
    def actions(self) -> list[NamedAction]:
        return list(self._actions)

    def get_action(self, name: str) -> NamedAction | None:
        for action in self._actions:
            if action.name == name:
                return action
        return None

    def save_action(self, action: NamedAction) -> None:
        """Insert *action*, replacing any existing action of the same name."""
        action.validate()
        for i, existing in enumerate(self._actions):
            if existing.name == action.name:
                self._actions[i] = action
                return
        self._actions.append(action)

    def remove_action(self, name: str) -> bool:
        """Remove *name* from the action list and from every slot."""
        before = len(self._actions)
        self._actions = [a for a in self._actions if a.name != name]
        for settings in self._profiles:
            if name in settings.profile_actions:
                settings.profile_actions[:] = [
                    n for n in settings.profile_actions if n != name
                ]
        return len(self._actions) != before

    def load_actions(self) -> list[NamedAction]:
        self._actions = repository.load_actions(self.actions_path)
        return self.actions

    def save_actions(self) -> SaveResult:
        return repository.save_actions(self.actions_path, self._actions)

    # -- Linked profiles ---------------------------------------------------

    def load_linked_profiles(self) -> dict[str, str]:
        self._linked = repository.load_linked_profiles(self.linked_profiles_path)
        return dict(self._linked)

    def save_linked_profiles(self) -> SaveResult:
        return repository.save_linked_profiles(self.linked_profiles_path, self._linked)

    def link_profile(self, serial: str, name: str) -> None:
        if not serial.strip():
            raise ValueError("Device serial cannot be empty")
        self._linked[serial] = name

    def unlink_profile(self, serial: str) -> bool:
        return self._linked.pop(serial, None) is not None

    def linked_profile(self, serial: str) -> str | None:
        return self._linked.get(serial)

    # -- Controller calibration --------------------------------------------

    def load_controller_configs(self) -> dict[str, ControllerConfig]:
        self._controller_configs = repository.load_controller_configs(
            self.controller_configs_path,
        )
        return dict(self._controller_configs)

    def save_controller_configs(self) -> SaveResult:
        return repository.save_controller_configs(
            self.controller_configs_path, self._controller_configs,
        )

    def controller_config(self, address: str) -> ControllerConfig:
        """Calibration record for *address*, created on first access."""
        config = self._controller_configs.get(address)
        if config is None:
            config = ControllerConfig(address)
            self._controller_configs[address] = config
        return config
