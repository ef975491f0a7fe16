"""Tests for the detached cleaner."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from click.testing import CliRunner

from interviewguard.cleaner import main, remove_path, self_destruct


def _install(tmp_path: Path) -> Path:
    root = tmp_path / "InterviewGuard.app"
    (root / "Contents" / "MacOS").mkdir(parents=True)
    (root / "Contents" / "MacOS" / "InterviewGuard").write_text("binary")
    return root


def test_remove_directory_tree(tmp_path: Path):
    root = _install(tmp_path)
    assert remove_path(root) is True
    assert not root.exists()


def test_remove_file(tmp_path: Path):
    f = tmp_path / "cleaner"
    f.write_text("x")
    assert remove_path(f) is True
    assert not f.exists()


def test_remove_missing_path_is_success(tmp_path: Path):
    assert remove_path(tmp_path / "gone") is True


def test_self_destruct_waits_then_deletes(tmp_path: Path):
    root = _install(tmp_path)
    me = tmp_path / "cleaner.bin"
    me.write_text("x")
    sleep = MagicMock()

    self_destruct(root, me, delay=2.0, sleep=sleep)

    sleep.assert_called_once_with(2.0)
    assert not root.exists()
    assert not me.exists()


def test_self_destruct_survives_missing_target(tmp_path: Path):
    me = tmp_path / "cleaner.bin"
    me.write_text("x")
    self_destruct(tmp_path / "already-gone", me, delay=0)
    assert not me.exists()


def test_cli_deletes_target(tmp_path: Path):
    root = _install(tmp_path)
    me = tmp_path / "cleaner.bin"
    me.write_text("x")

    result = CliRunner().invoke(
        main, [str(root), "--delay", "0", "--self-path", str(me)]
    )

    assert result.exit_code == 0
    assert not root.exists()
    assert not me.exists()


def test_cli_without_target_does_nothing(tmp_path: Path):
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 0
    assert tmp_path.exists()


def test_cli_delay_from_environment(tmp_path: Path):
    root = _install(tmp_path)
    me = tmp_path / "cleaner.bin"
    me.write_text("x")

    result = CliRunner().invoke(
        main,
        [str(root), "--self-path", str(me)],
        env={"INTERVIEWGUARD_CLEANER_DELAY": "0"},
    )

    assert result.exit_code == 0
    assert not root.exists()
