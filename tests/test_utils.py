from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from packutils.config import MatchConfig, load_config
from packutils.errors import ConfigError, DataError, ExternalToolError, SideConflictError
from packutils.paths import normalise_path, resolve_within
from packutils.process import COMMAND_NOT_FOUND, CommandResult, CommandRunner


def test_load_config_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.yml")
    assert isinstance(config, MatchConfig)
    assert config.min_size == 4096
    assert config.materialize == "tool"
    assert config.url_lookup == "batch"
    assert config.batch_size == 0
    assert config.curseforge_api_key is None


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "packmatch.yml"
    path.write_text("min_size: 0\nmaterialize: metadata\npackwiz_command: [go, run, packwiz]\n")
    config = load_config(path)
    assert config.min_size == 0
    assert config.materialize == "metadata"
    assert config.packwiz_command == ["go", "run", "packwiz"]


def test_with_overrides_ignores_none() -> None:
    config = MatchConfig(curseforge_api_key="from-file", min_size=10)
    updated = config.with_overrides(curseforge_api_key=None, min_size=0, dry_run=True)
    assert updated.curseforge_api_key == "from-file"
    assert updated.min_size == 0
    assert updated.dry_run is True
    assert config.min_size == 10


def test_with_overrides_validates() -> None:
    with pytest.raises(ValidationError):
        MatchConfig().with_overrides(url_lookup="sometimes")


def test_normalise_path(tmp_path: Path) -> None:
    test_path = tmp_path / "folder" / "file.txt"
    test_path.parent.mkdir(parents=True)
    test_path.write_text("data")
    resolved = normalise_path(Path(str(test_path)))
    assert resolved.exists()


def test_resolve_within_accepts_nested(tmp_path: Path) -> None:
    assert resolve_within(tmp_path, "mods/a.jar") == normalise_path(tmp_path / "mods" / "a.jar")


@pytest.mark.parametrize("relative", ["../outside.jar", "mods/../../outside.jar", "/etc/passwd"])
def test_resolve_within_rejects_escape(tmp_path: Path, relative: str) -> None:
    with pytest.raises(ValueError):
        resolve_within(tmp_path / "pack", relative)


def test_command_result_describe() -> None:
    result = CommandResult(("packwiz", "refresh"), 1, stderr="first\nlast line\n")
    assert not result.ok
    assert result.describe() == "`packwiz refresh` exited with 1: last line"


def test_runner_reports_missing_executable(tmp_path: Path) -> None:
    result = CommandRunner(cwd=tmp_path).run(["packmatch-no-such-tool", "refresh"])
    assert result.returncode == COMMAND_NOT_FOUND
    assert not result.ok


def test_error_exit_codes() -> None:
    assert ConfigError("missing key").exit_code == 2
    assert ExternalToolError("failed", 3).exit_code == 3
    assert ExternalToolError("killed", -9).exit_code == 1
    assert isinstance(SideConflictError("both"), DataError)


def test_load_config_required_file_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yml", required=True)
