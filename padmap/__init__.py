# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Controller remapping profiles: model, XML codec and configuration service.

Quick start::

    from padmap import ConfigService, Control, KeyCode, Layer, MacroSequence

    service = ConfigService(app_data_dir="path/to/data")
    service.load_actions()
    result = service.load_profile(0, "Racing")
    if not result.ok:
        print("slot 0 now holds defaults:", result.status.value)

    service.set_action(0, Control.Cross, Layer.NORMAL, MacroSequence((65, 66, 67)))
    service.set_action(0, Control.Square, Layer.SHIFT, KeyCode(0x20), shift_trigger=1)
    service.save_profile(0, "Racing")
"""

from __future__ import annotations

from .controls import (
    DEFAULT_OUTPUT,
    DEVICE_EXTRA_BUTTONS,
    SHIFT_TRIGGER_ANY_TOUCH,
    SHIFT_TRIGGER_CONTROLS,
    Control,
    OutputAction,
    control_by_name,
    default_output,
    output_action_by_name,
)
from .bindings import (
    UNBOUND,
    ActionBinding,
    ActionLayer,
    KeyCode,
    KeyFlags,
    Layer,
    MacroSequence,
    OutputControl,
    Unbound,
    format_key_flags,
    parse_key_flags,
)
from .groups import BindingGroups
from .special_actions import (
    ActionType,
    NamedAction,
    encode_action,
    parse_action,
)
from .settings import LightgunButton, ProfileSettings
from .xml_io import (
    APP_VERSION,
    CONFIG_VERSION,
    FieldIssue,
    profile_to_xml,
    read_profile,
)
from .migration import MigrationResult, migrate
from .repository import LoadResult, LoadStatus, SaveResult
from .config import ConfigService, DeviceSettingsUpdate, resolve_app_data_dir

__version__ = APP_VERSION

__all__ = [
    # Controls
    "Control",
    "OutputAction",
    "DEFAULT_OUTPUT",
    "DEVICE_EXTRA_BUTTONS",
    "SHIFT_TRIGGER_ANY_TOUCH",
    "SHIFT_TRIGGER_CONTROLS",
    "control_by_name",
    "default_output",
    "output_action_by_name",
    # Bindings
    "ActionBinding",
    "ActionLayer",
    "Layer",
    "KeyFlags",
    "Unbound",
    "UNBOUND",
    "KeyCode",
    "OutputControl",
    "MacroSequence",
    "format_key_flags",
    "parse_key_flags",
    "BindingGroups",
    # Named actions
    "ActionType",
    "NamedAction",
    "parse_action",
    "encode_action",
    # Profiles
    "ProfileSettings",
    "LightgunButton",
    "FieldIssue",
    "CONFIG_VERSION",
    "profile_to_xml",
    "read_profile",
    "MigrationResult",
    "migrate",
    "LoadResult",
    "LoadStatus",
    "SaveResult",
    # Service
    "ConfigService",
    "DeviceSettingsUpdate",
    "resolve_app_data_dir",
]
