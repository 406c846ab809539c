"""Tests for the keyledger command-line interface."""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from keyledger import __version__
from keyledger.cli import USAGE, app, main
from keyledger.config import ENV_KEYS_DIR, ENV_ROTATION_WARNING_DAYS
from keyledger.errors import KeyGenerationError, PersistenceError


def _invoke(keys_dir: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(app, ["--keys-dir", str(keys_dir), *args])


class TestCliUsage:
    def test_version(self) -> None:
        result = CliRunner().invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_prints_usage(self) -> None:
        result = CliRunner().invoke(app, [])

        assert result.exit_code == 0
        assert "keyledger rotate" in result.output
        assert "keyledger list" in result.output

    def test_main_unknown_command_prints_usage(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["bogus"]) == 0

        assert USAGE in capsys.readouterr().out

    def test_main_no_arguments(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 0

        assert "Usage:" in capsys.readouterr().out

    def test_main_unknown_option_prints_usage(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--no-such-flag"]) == 0

        assert USAGE in capsys.readouterr().out

    def test_main_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--version"]) == 0

        assert __version__ in capsys.readouterr().out


class TestCliConfiguration:
    def test_invalid_env_config_exits_non_zero(
        self, monkeypatch: pytest.MonkeyPatch, keys_dir: Path
    ) -> None:
        monkeypatch.setenv(ENV_ROTATION_WARNING_DAYS, "abc")

        result = _invoke(keys_dir, "rotate")

        assert result.exit_code == 1
        assert "Error: Invalid configuration: rotation_warning_days" in result.output
        assert "Usage:" not in result.output
        assert not keys_dir.exists()

    def test_main_invalid_env_config_returns_one(
        self,
        monkeypatch: pytest.MonkeyPatch,
        keys_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv(ENV_ROTATION_WARNING_DAYS, "abc")

        assert main(["--keys-dir", str(keys_dir), "rotate"]) == 1

        captured = capsys.readouterr()
        assert "Invalid configuration" in captured.err
        assert USAGE not in captured.out
        assert not keys_dir.exists()


class TestCliRotate:
    def test_rotate_bootstraps_empty_store(self, keys_dir: Path) -> None:
        result = _invoke(keys_dir, "rotate")

        assert result.exit_code == 0
        assert "Current version: 1" in result.output
        assert "Total keys stored: 1" in result.output
        assert "Previous versions: none" in result.output
        assert (keys_dir / "private-v1.pem").is_file()

    def test_rotate_three_times(self, keys_dir: Path) -> None:
        for _ in range(3):
            result = _invoke(keys_dir, "rotate")
            assert result.exit_code == 0

        assert "Current version: 3" in result.output
        assert "Previous versions: v1, v2" in result.output
        assert sorted(p.name for p in keys_dir.glob("*.pem")) == [
            "private-v1.pem",
            "private-v2.pem",
            "private-v3.pem",
            "public-v1.pem",
            "public-v2.pem",
            "public-v3.pem",
        ]

    def test_rotate_uses_env_keys_dir(
        self, monkeypatch: pytest.MonkeyPatch, keys_dir: Path
    ) -> None:
        monkeypatch.setenv(ENV_KEYS_DIR, str(keys_dir))

        result = CliRunner().invoke(app, ["rotate"])

        assert result.exit_code == 0
        assert (keys_dir / "keystore.json").is_file()

    def test_rotate_never_prints_private_key(self, keys_dir: Path) -> None:
        result = _invoke(keys_dir, "rotate")

        assert "PRIVATE KEY" not in result.output

    def test_rotate_persistence_failure_exits_non_zero(self, keys_dir: Path) -> None:
        error = PersistenceError(str(keys_dir), "create directory", "Permission denied")
        with patch("keyledger.cli.KeyStoreManager.rotate", side_effect=error):
            result = _invoke(keys_dir, "rotate")

        assert result.exit_code == 1
        assert "Permission denied" in result.output

    def test_rotate_key_generation_failure_exits_non_zero(self, keys_dir: Path) -> None:
        with patch(
            "keyledger.cli.KeyStoreManager.generate_key_pair",
            side_effect=KeyGenerationError("unavailable"),
        ):
            result = _invoke(keys_dir, "rotate")

        assert result.exit_code == 1
        assert "key generation failed" in result.output
        assert not (keys_dir / "keystore.json").exists()

    def test_main_returns_exit_code_on_failure(self, keys_dir: Path) -> None:
        with patch(
            "keyledger.cli.KeyStoreManager.generate_key_pair",
            side_effect=KeyGenerationError("unavailable"),
        ):
            assert main(["--keys-dir", str(keys_dir), "rotate"]) == 1


class TestCliList:
    def test_list_empty(self, keys_dir: Path) -> None:
        result = _invoke(keys_dir, "list")

        assert result.exit_code == 0
        assert "No keys found in keystore" in result.output

    def test_list_two_keys(self, keys_dir: Path) -> None:
        _invoke(keys_dir, "rotate")
        _invoke(keys_dir, "rotate")

        result = _invoke(keys_dir, "list")

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if "│ Version" in line]
        assert lines[0].startswith("  Archived │ Version 1 │")
        assert lines[1].startswith("  Current  │ Version 2 │")
        assert "Total: 2 key pair(s)" in result.output

    def test_list_twice_is_identical(self, keys_dir: Path) -> None:
        _invoke(keys_dir, "rotate")

        assert _invoke(keys_dir, "list").output == _invoke(keys_dir, "list").output

    def test_list_corrupt_store_still_succeeds(self, keys_dir: Path) -> None:
        keys_dir.mkdir()
        (keys_dir / "keystore.json").write_text("{oops")

        result = _invoke(keys_dir, "list")

        assert result.exit_code == 0
        assert "No keys found in keystore" in result.output

    def test_list_permission_error_exits_non_zero(self, keys_dir: Path) -> None:
        keys_dir.mkdir()
        (keys_dir / "keystore.json").write_text("{}")

        with patch("pathlib.Path.read_text", side_effect=PermissionError("denied")):
            result = _invoke(keys_dir, "list")

        assert result.exit_code == 1
        assert "denied" in result.output


class TestCliShow:
    def test_show_current_public_key(self, keys_dir: Path) -> None:
        _invoke(keys_dir, "rotate")
        _invoke(keys_dir, "rotate")

        result = _invoke(keys_dir, "show")

        assert result.exit_code == 0
        assert result.output == (keys_dir / "public-v2.pem").read_text()

    def test_show_archived_version(self, keys_dir: Path) -> None:
        _invoke(keys_dir, "rotate")
        _invoke(keys_dir, "rotate")

        result = _invoke(keys_dir, "show", "--key-version", "1")

        assert result.exit_code == 0
        assert result.output == (keys_dir / "public-v1.pem").read_text()

    def test_show_unknown_version(self, keys_dir: Path) -> None:
        _invoke(keys_dir, "rotate")

        result = _invoke(keys_dir, "show", "--key-version", "5")

        assert result.exit_code == 1
        assert "Key version not found: 5" in result.output

    def test_show_empty_store(self, keys_dir: Path) -> None:
        result = _invoke(keys_dir, "show")

        assert result.exit_code == 1
        assert "empty" in result.output
