# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""File-system repository for profiles and the shared configuration files.

Layout below the application-data directory::

    Profiles/<name>.xml      one settings aggregate per file
    Actions.xml              named actions shared by all profiles
    LinkedProfiles.xml       device serial -> profile name
    ControllerConfigs.xml    per-device calibration keyed by address

Public load/save functions report problems through :class:`LoadResult` /
:class:`SaveResult` instead of raising.  Every write goes through a
temporary file in the destination directory and an atomic replace, so a
failed save leaves the previous file untouched.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from xml.etree import ElementTree as ET

from .migration import migrate
from .settings import ProfileSettings
from .special_actions import (
    NamedAction,
    actions_to_xml,
    default_actions,
    parse_actions_xml,
)
from .xml_io import (
    CONFIG_VERSION,
    FieldIssue,
    document_version,
    parse_document,
    profile_to_xml,
    read_profile,
)

log = logging.getLogger(__name__)

PROFILES_DIR = "Profiles"
ACTIONS_FILE = "Actions.xml"
LINKED_PROFILES_FILE = "LinkedProfiles.xml"
CONTROLLER_CONFIGS_FILE = "ControllerConfigs.xml"

_FILENAME_RE = re.compile(r'^[^<>:"/\\|?*\x00-\x1f]+$')


# ── Result values ────────────────────────────────────────────────────────

class LoadStatus(Enum):
    LOADED = "loaded"
    MISSING = "missing"
    UNREADABLE = "unreadable"
    INVALID = "invalid"


@dataclass
class LoadResult:
    status: LoadStatus
    path: Path
    migrated: bool = False
    rewritten: bool = False
    issues: list[FieldIssue] = field(default_factory=list)
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.LOADED

    @property
    def needs_rewrite(self) -> bool:
        return self.migrated or bool(self.issues)


@dataclass
class SaveResult:
    ok: bool
    path: Path
    error: str = ""


# ── Helpers ──────────────────────────────────────────────────────────────

def atomic_write_text(dest: Path, text: str) -> None:
    """Write *text* to *dest* via a temp file and atomic replace.

    Raises on failure; the temp file is removed and *dest* is untouched.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        suffix=".xml", dir=str(dest.parent), prefix=".tmp_"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        Path(tmp_path).replace(dest)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _save_text(dest: Path, text: str, what: str) -> SaveResult:
    try:
        atomic_write_text(dest, text)
    except OSError as exc:
        log.error("Failed to save %s to %s: %s", what, dest, exc)
        return SaveResult(False, dest, str(exc))
    log.info("Saved %s to %s", what, dest)
    return SaveResult(True, dest)


def _read_root(path: Path, what: str) -> ET.Element | None:
    """Parse an optional shared file; ``None`` when absent or unusable."""
    if not path.exists():
        return None
    try:
        return parse_document(path)
    except (OSError, ValueError) as exc:
        log.warning("Ignoring unreadable %s %s: %s", what, path, exc)
        return None


def _to_document(root: ET.Element) -> str:
    ET.indent(root, space="  ")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        + ET.tostring(root, encoding="unicode")
        + "\n"
    )


# ── Profiles ─────────────────────────────────────────────────────────────

def profiles_dir(data_dir: str | Path) -> Path:
    return Path(data_dir) / PROFILES_DIR


def is_valid_profile_name(name: str) -> bool:
    return bool(name) and bool(_FILENAME_RE.match(name)) and name.strip() == name


def profile_path(data_dir: str | Path, name: str) -> Path:
    """Return ``<data_dir>/Profiles/<name>.xml``.

    Raises :class:`ValueError` for names that cannot be a file name.
    """
    if not is_valid_profile_name(name):
        raise ValueError(f"Invalid profile name {name!r}")
    return profiles_dir(data_dir) / f"{name}.xml"


def list_profiles(data_dir: str | Path) -> list[str]:
    """Return sorted profile names found under *data_dir*."""
    directory = profiles_dir(data_dir)
    if not directory.is_dir():
        return []
    return sorted(
        p.stem for p in directory.glob("*.xml")
        if not p.name.startswith(".tmp_") and is_valid_profile_name(p.stem)
    )


def delete_profile(data_dir: str | Path, name: str) -> bool:
    """Delete a profile by name.  Returns ``True`` if it existed."""
    path = profile_path(data_dir, name)
    if path.exists():
        path.unlink()
        log.info("Deleted profile %s", path)
        return True
    return False


def load_profile(
    path: str | Path,
    settings: ProfileSettings,
    rewrite: bool = True,
) -> LoadResult:
    """Load the profile at *path* into *settings*.

    *settings* is reset to defaults first, and stays at defaults whenever
    the returned status is not ``LOADED``.  A migrated or incomplete file
    is re-saved in the current schema when *rewrite* is true.
    """
    path = Path(path)
    settings.reset()

    if not path.exists():
        log.info("Profile %s not found; using defaults", path)
        return LoadResult(LoadStatus.MISSING, path)

    try:
        data = path.read_bytes()
    except OSError as exc:
        log.error("Cannot read profile %s: %s", path, exc)
        return LoadResult(LoadStatus.UNREADABLE, path, error=str(exc))

    try:
        root = parse_document(data)
        migration = migrate(root)
        issues = read_profile(migration.root, settings)
    except ValueError as exc:
        log.error("Invalid profile %s: %s", path, exc)
        settings.reset()
        return LoadResult(LoadStatus.INVALID, path, error=str(exc))

    result = LoadResult(
        LoadStatus.LOADED, path, migrated=migration.changed, issues=issues,
    )
    log.info("Loaded profile %s", path)

    if result.needs_rewrite:
        if document_version(migration.root) > CONFIG_VERSION:
            log.warning("Not rewriting %s: written by a newer schema", path)
        elif rewrite:
            log.warning(
                "Rewriting profile %s (migrated=%s, %d field issue(s))",
                path, result.migrated, len(issues),
            )
            result.rewritten = save_profile(path, settings).ok
    return result


def save_profile(path: str | Path, settings: ProfileSettings) -> SaveResult:
    """Write *settings* to *path* in the current schema."""
    return _save_text(Path(path), profile_to_xml(settings), "profile")


# ── Named actions ────────────────────────────────────────────────────────

def load_actions(path: str | Path) -> list[NamedAction]:
    """Load ``Actions.xml``; the built-in defaults when it is absent."""
    path = Path(path)
    if not path.exists():
        return default_actions()
    try:
        actions = parse_actions_xml(path)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        log.warning("Ignoring unreadable actions file %s: %s", path, exc)
        return default_actions()
    log.info("Loaded %d action(s) from %s", len(actions), path)
    return actions


def save_actions(path: str | Path, actions: list[NamedAction]) -> SaveResult:
    return _save_text(Path(path), actions_to_xml(actions), "actions")


# ── Linked profiles ──────────────────────────────────────────────────────

def load_linked_profiles(path: str | Path) -> dict[str, str]:
    """Return the ``serial -> profile name`` map from *path*."""
    root = _read_root(Path(path), "linked-profiles file")
    links: dict[str, str] = {}
    if root is None or root.tag != "LinkedControllers":
        return links
    for node in root.findall("Controller"):
        serial = (node.get("serial") or "").strip()
        name = (node.text or "").strip()
        if serial and name:
            links[serial] = name
    return links


def save_linked_profiles(path: str | Path, links: dict[str, str]) -> SaveResult:
    root = ET.Element("LinkedControllers")
    for serial, name in sorted(links.items()):
        ET.SubElement(root, "Controller", {"serial": serial}).text = name
    return _save_text(Path(path), _to_document(root), "linked profiles")


# ── Controller calibration ───────────────────────────────────────────────

Point = tuple[int, int]
_UNSET: Point = (-1, -1)


@dataclass
class ControllerConfig:
    """Steering-wheel calibration points for one physical device."""
    address: str
    wheel_center: Point = _UNSET
    wheel_90_left: Point = _UNSET
    wheel_90_right: Point = _UNSET
    wheel_180_left: Point = _UNSET
    wheel_180_right: Point = _UNSET


_POINT_TAGS = (
    ("wheelCenterPoint", "wheel_center"),
    ("wheel90DegPointLeft", "wheel_90_left"),
    ("wheel90DegPointRight", "wheel_90_right"),
    ("wheel180DegPointLeft", "wheel_180_left"),
    ("wheel180DegPointRight", "wheel_180_right"),
)


def _parse_point(text: str) -> Point | None:
    parts = text.split(",")
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def load_controller_configs(path: str | Path) -> dict[str, ControllerConfig]:
    """Return calibration records from *path*, keyed by device address."""
    root = _read_root(Path(path), "controller-configs file")
    configs: dict[str, ControllerConfig] = {}
    if root is None or root.tag != "Controllers":
        return configs
    for node in root.findall("Controller"):
        address = (node.get("Mac") or "").strip()
        if not address:
            continue
        config = ControllerConfig(address)
        for tag, attr in _POINT_TAGS:
            child = node.find(tag)
            if child is None:
                continue
            point = _parse_point((child.text or "").strip())
            if point is None:
                log.debug("Bad %s for %s: %r", tag, address, child.text)
                continue
            setattr(config, attr, point)
        configs[address] = config
    return configs


def save_controller_configs(
    path: str | Path, configs: dict[str, ControllerConfig],
) -> SaveResult:
    root = ET.Element("Controllers")
    for address in sorted(configs):
        config = configs[address]
        node = ET.SubElement(root, "Controller", {"Mac": address})
        for tag, attr in _POINT_TAGS:
            x, y = getattr(config, attr)
            ET.SubElement(node, tag).text = f"{x},{y}"
    return _save_text(Path(path), _to_document(root), "controller configs")
