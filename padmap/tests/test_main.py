"""Tests for the command-line entry point and crash logger."""

import sys
import traceback

import pytest

from padmap import __main__ as cli
from padmap.config import ConfigService


@pytest.fixture
def hook_recorder(monkeypatch):
    calls = []
    monkeypatch.setattr(sys, "excepthook", lambda *args: calls.append(args))
    return calls


def _raise_and_capture():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        return sys.exc_info()


class TestCrashLogger:
    def test_writes_log_and_chains(self, tmp_path, hook_recorder):
        cli._install_crash_logger(tmp_path)
        sys.excepthook(*_raise_and_capture())
        text = (tmp_path / "latest.log").read_text(encoding="utf-8")
        assert "RuntimeError: boom" in text
        assert len(hook_recorder) == 1

    def test_failure_while_logging_still_chains(self, tmp_path, hook_recorder, monkeypatch):
        def broken(*args, **kwargs):
            raise TypeError("cannot format")

        cli._install_crash_logger(tmp_path)
        monkeypatch.setattr(traceback, "format_exception", broken)
        exc_info = _raise_and_capture()
        sys.excepthook(*exc_info)
        assert hook_recorder == [exc_info]
        assert not (tmp_path / "latest.log").exists()


class TestCommands:
    def test_list_and_check(self, tmp_path, hook_recorder, capsys):
        service = ConfigService(app_data_dir=tmp_path)
        assert service.save_profile(0, "Mine").ok

        assert cli.main(["--data-dir", str(tmp_path), "list"]) == 0
        assert capsys.readouterr().out.split() == ["Mine"]

        assert cli.main(["--data-dir", str(tmp_path), "check"]) == 0
        assert "Mine: loaded" in capsys.readouterr().out

    def test_check_reports_invalid(self, tmp_path, hook_recorder, capsys):
        profiles = tmp_path / "Profiles"
        profiles.mkdir()
        (profiles / "Bad.xml").write_text("<DS4Windows>", encoding="utf-8")
        assert cli.main(["--data-dir", str(tmp_path), "check", "Bad"]) == 1
        assert "Bad: invalid" in capsys.readouterr().out

    def test_show_does_not_rewrite(self, tmp_path, hook_recorder, capsys):
        profiles = tmp_path / "Profiles"
        profiles.mkdir()
        path = profiles / "Old.xml"
        original = "<ScpControl><LSDeadZone>33</LSDeadZone></ScpControl>"
        path.write_text(original, encoding="utf-8")
        assert cli.main(["--data-dir", str(tmp_path), "show", "Old"]) == 0
        assert "Lightgun button: NOT_SET" in capsys.readouterr().out
        assert path.read_text(encoding="utf-8") == original
