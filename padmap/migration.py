# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""One-way upgrade of older profile documents to the current schema.

Each step rewrites the parsed document in place and bumps its version by
one.  Legacy layouts are only ever read here; nothing writes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable
from xml.etree import ElementTree as ET

from .controls import control_by_name
from .xml_io import (
    CONFIG_VERSION,
    ROOT_TAG,
    SHIFT_CONTROL_GROUP,
    SHIFT_TRIGGER_GROUP,
    document_version,
)

log = logging.getLogger(__name__)

LEGACY_ROOT_TAG = "ScpControl"


@dataclass
class MigrationResult:
    changed: bool
    from_version: int
    to_version: int
    root: ET.Element


# ── Helpers ──────────────────────────────────────────────────────────────

def _pop(root: ET.Element, tag: str) -> str | None:
    """Remove *tag* from *root* and return its stripped text."""
    node = root.find(tag)
    if node is None:
        return None
    root.remove(node)
    return (node.text or "").strip()


def _is_true(text: str | None) -> bool:
    return (text or "").strip().lower() in ("true", "1")


def _byte(text: str | None) -> int:
    try:
        value = int((text or "").strip())
    except ValueError:
        return 0
    return min(max(value, 0), 255)


# ── Steps ────────────────────────────────────────────────────────────────

def _rename_root(root: ET.Element) -> None:
    if root.tag == LEGACY_ROOT_TAG:
        root.tag = ROOT_TAG


_COLOR_PREFIXES = (("", "Color"), ("Low", "LowColor"), ("Charging", "ChargingColor"))


def _merge_color_channels(root: ET.Element) -> None:
    for prefix, target in _COLOR_PREFIXES:
        channels = [_pop(root, f"{prefix}{c}") for c in ("Red", "Green", "Blue")]
        if all(c is None for c in channels):
            continue
        if root.find(target) is None:
            ET.SubElement(root, target).text = ",".join(str(_byte(c)) for c in channels)


def _convert_mode_flags(root: ET.Element) -> None:
    use_tp = _pop(root, "UseTPforControls")
    if _is_true(use_tp) and root.find("TouchpadOutputMode") is None:
        ET.SubElement(root, "TouchpadOutputMode").text = "Controls"

    use_sa = _pop(root, "UseSAforMouse")
    if _is_true(use_sa) and root.find("GyroOutputMode") is None:
        ET.SubElement(root, "GyroOutputMode").text = "Mouse"


def _nest_gyro_smoothing(root: ET.Element) -> None:
    use = _pop(root, "GyroSmoothing")
    weight = _pop(root, "GyroSmoothingWeight")
    if use is None and weight is None:
        return
    if root.find("GyroMouseSmoothingSettings") is not None:
        return
    group = ET.SubElement(root, "GyroMouseSmoothingSettings")
    ET.SubElement(group, "UseSmoothing").text = "True" if _is_true(use) else "False"
    ET.SubElement(group, "SmoothingMethod").text = "weighted-average"
    if weight:
        ET.SubElement(group, "SmoothingWeight").text = weight


def _expand_shift_modifier(root: ET.Element) -> None:
    raw = _pop(root, "ShiftModifier")
    shift_node = root.find(SHIFT_CONTROL_GROUP)
    if raw is None or shift_node is None:
        return
    try:
        index = int(raw)
    except ValueError:
        log.debug("Dropping unparseable ShiftModifier %r", raw)
        return
    if index <= 0:
        return

    controls: list[str] = []
    for group in shift_node:
        if group.tag == SHIFT_TRIGGER_GROUP:
            continue
        for child in group:
            if control_by_name(child.tag) is not None and child.tag not in controls:
                controls.append(child.tag)

    trigger_node = shift_node.find(SHIFT_TRIGGER_GROUP)
    if trigger_node is None:
        trigger_node = ET.SubElement(shift_node, SHIFT_TRIGGER_GROUP)
    for name in controls:
        if trigger_node.find(name) is None:
            ET.SubElement(trigger_node, name).text = str(index)


# Indexed by the version each step upgrades *from*.
MIGRATION_STEPS: tuple[tuple[int, Callable[[ET.Element], None]], ...] = (
    (0, _rename_root),
    (1, _merge_color_channels),
    (2, _convert_mode_flags),
    (3, _nest_gyro_smoothing),
    (4, _expand_shift_modifier),
)


def migrate(root: ET.Element) -> MigrationResult:
    """Upgrade *root* in place to :data:`CONFIG_VERSION`.

    Documents already at (or beyond) the current version are left alone
    and reported with ``changed=False``.
    """
    version = document_version(root)
    if version >= CONFIG_VERSION:
        if version > CONFIG_VERSION:
            log.info(
                "Profile schema %d is newer than %d; loading as-is",
                version, CONFIG_VERSION,
            )
        return MigrationResult(False, version, version, root)

    start = version
    for step_from, step in MIGRATION_STEPS:
        if step_from < version:
            continue
        step(root)
        version = step_from + 1
        log.debug("Applied profile migration %d -> %d", step_from, version)

    root.set("config_version", str(version))
    log.info("Migrated profile schema %d -> %d", start, version)
    return MigrationResult(True, start, version, root)
