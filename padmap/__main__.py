# Copyright (C) 2025-2026 padmap Contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
# See LICENSE for the full text.

"""Command-line entry point: inspect, check and migrate stored profiles."""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

from .bindings import ActionBinding, KeyCode, Layer, MacroSequence, OutputControl
from .config import EDITOR_SLOT, ConfigService, resolve_app_data_dir
from .controls import output_action_name
from .repository import LoadStatus, load_profile
from .settings import ProfileSettings

_CRASH_LOG_NAME = "latest.log"
_DEBUG_LOG_NAME = "padmap_debug.log"


def _install_crash_logger(log_dir: Path) -> None:
    """Replace the default exception hook so unhandled errors are written
    to ``latest.log`` before the process terminates."""
    _original_hook = sys.excepthook

    def _crash_hook(exc_type, exc_value, exc_tb):
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            tb_text = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
            header = (
                f"padmap crash log\n"
                f"================\n"
                f"Timestamp : {timestamp}\n"
                f"Python    : {sys.version}\n"
                f"Platform  : {sys.platform}\n"
                f"Exception : {exc_type.__name__}: {exc_value}\n"
                f"\n"
            )
            (log_dir / _CRASH_LOG_NAME).write_text(header + tb_text, encoding="utf-8")
        except Exception:
            pass
        _original_hook(exc_type, exc_value, exc_tb)

    sys.excepthook = _crash_hook


def _apply_logging(debug: bool, log_dir: Path) -> None:
    if debug:
        log_dir.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[
                logging.FileHandler(str(log_dir / _DEBUG_LOG_NAME), encoding="utf-8"),
                logging.StreamHandler(sys.stderr),
            ],
            force=True,
        )
    else:
        logging.basicConfig(level=logging.WARNING, force=True)


# ── Commands ─────────────────────────────────────────────────────────────

def _cmd_list(service: ConfigService, args: argparse.Namespace) -> int:
    for name in service.list_profiles():
        print(name)
    return 0


def _cmd_check(service: ConfigService, args: argparse.Namespace) -> int:
    """Report load status and field issues without touching the files."""
    failed = 0
    for name in args.names or service.list_profiles():
        result = load_profile(service.profile_path(name), ProfileSettings(), rewrite=False)
        print(f"{name}: {result.status.value}"
              + (" (needs migration)" if result.migrated else ""))
        if result.error:
            print(f"  error: {result.error}")
        for issue in result.issues:
            detail = f" ({issue.detail})" if issue.detail else ""
            print(f"  {issue.kind}: {issue.field}{detail}")
        if result.status in (LoadStatus.UNREADABLE, LoadStatus.INVALID):
            failed += 1
    return 1 if failed else 0


def _cmd_migrate(service: ConfigService, args: argparse.Namespace) -> int:
    """Load every named profile so migrated or incomplete files are rewritten."""
    failed = 0
    for name in args.names or service.list_profiles():
        result = service.load_profile(EDITOR_SLOT, name)
        if not result.ok:
            print(f"{name}: {result.status.value}")
            failed += 1
        elif result.rewritten:
            print(f"{name}: rewritten")
        elif result.needs_rewrite:
            print(f"{name}: rewrite failed")
            failed += 1
        else:
            print(f"{name}: up to date")
    return 1 if failed else 0


def _cmd_show(service: ConfigService, args: argparse.Namespace) -> int:
    settings = service.profile(EDITOR_SLOT)
    result = load_profile(service.profile_path(args.name), settings, rewrite=False)
    if not result.ok:
        print(f"{args.name}: {result.status.value}", file=sys.stderr)
        return 1
    print(f"Profile        : {args.name}")
    print(f"Output device  : {settings.out_cont_type.value}")
    print(f"Gyro mode      : {settings.gyro_out_mode.value}")
    print(f"Touchpad mode  : {settings.touchpad.out_mode.value}")
    print(f"Lightbar       : {settings.lightbar.color}")
    print(f"Lightgun button: {settings.lightgun_button.value}")
    print(f"Actions        : {', '.join(settings.profile_actions) or '-'}")
    print("Bindings:")
    for binding in settings.bindings:
        for layer in (Layer.NORMAL, Layer.SHIFT):
            if binding.is_default(layer):
                continue
            if layer is Layer.SHIFT and not binding.shift_active:
                continue
            print(f"  {binding.control.name:<16} {layer.value:<6} {_describe(binding, layer)}")
    return 0


def _describe(binding: ActionBinding, layer: Layer) -> str:
    action = binding.layer(layer).action
    if isinstance(action, KeyCode):
        return f"key {action.code}"
    if isinstance(action, MacroSequence):
        return "macro " + "/".join(str(k) for k in action.keys)
    if isinstance(action, OutputControl):
        return output_action_name(action.action)
    return "unbound"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="padmap", description=__doc__)
    parser.add_argument("--data-dir", type=Path, help="application data directory")
    parser.add_argument("--debug", action="store_true", help="verbose logging to file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="list stored profiles").set_defaults(func=_cmd_list)

    check = sub.add_parser("check", help="report problems without rewriting")
    check.add_argument("names", nargs="*")
    check.set_defaults(func=_cmd_check)

    migrate = sub.add_parser("migrate", help="rewrite old or incomplete profiles")
    migrate.add_argument("names", nargs="*")
    migrate.set_defaults(func=_cmd_migrate)

    show = sub.add_parser("show", help="print a profile summary")
    show.add_argument("name")
    show.set_defaults(func=_cmd_show)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    data_dir = args.data_dir or resolve_app_data_dir()
    _install_crash_logger(data_dir)
    _apply_logging(args.debug, data_dir)
    service = ConfigService(app_data_dir=data_dir)
    service.load_actions()
    return args.func(service, args)


if __name__ == "__main__":
    sys.exit(main())
