"""Tests for the environment file loader utilities."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from utils import env_loader
from utils.env_loader import ENVIRONMENT_VAR, EXPLICIT_ENV_FILE_VAR, load_project_env


@pytest.fixture(autouse=True)
def _reset_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure test-specific variables are cleared after each case."""

    tracked = {"FOO", "BAR", "PRIVATE_KEY", ENVIRONMENT_VAR, EXPLICIT_ENV_FILE_VAR}

    for key in tracked:
        monkeypatch.delenv(key, raising=False)

    yield

    for key in tracked:
        monkeypatch.delenv(key, raising=False)


def test_loads_base_env_file(tmp_path: Path) -> None:
    """Values from `.env` are applied when no OS overrides exist."""

    env_file = tmp_path / ".env"
    env_file.write_text(f"FOO=base\n{ENVIRONMENT_VAR}=testing\n")

    result = load_project_env(root=tmp_path)

    assert result.loaded_files == (env_file,)
    assert os.environ["FOO"] == "base"
    assert result.resolved_env == "testing"
    assert set(result.applied_keys) == {"FOO", ENVIRONMENT_VAR}


def test_env_specific_file_picked_from_base_file(tmp_path: Path) -> None:
    """The environment named in `.env` selects the `.env.<env>` layer."""

    (tmp_path / ".env").write_text(f"{ENVIRONMENT_VAR}=production\nFOO=base\n")
    prod = tmp_path / ".env.production"
    prod.write_text("FOO=prod\n")

    result = load_project_env(root=tmp_path)

    assert result.loaded_files[-1] == prod
    assert os.environ["FOO"] == "prod"


def test_local_file_overrides_environment_file(tmp_path: Path) -> None:
    """`.env.local` takes precedence over `.env.<env>`."""

    (tmp_path / ".env.testing").write_text("FOO=testing\n")
    local_file = tmp_path / ".env.local"
    local_file.write_text("FOO=local\n")

    result = load_project_env(env="testing", root=tmp_path)

    assert result.loaded_files == (tmp_path / ".env.testing", local_file)
    assert os.environ["FOO"] == "local"


def test_existing_environment_values_not_overwritten(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Existing process environment values win over file contents."""

    (tmp_path / ".env").write_text("FOO=base\n")
    monkeypatch.setenv("FOO", "already-set")

    result = load_project_env(root=tmp_path)

    assert os.environ["FOO"] == "already-set"
    assert "FOO" not in result.applied_keys


def test_result_never_carries_values(tmp_path: Path) -> None:
    """Key material from env files is applied but not echoed back."""

    (tmp_path / ".env").write_text("PRIVATE_KEY=c2VjcmV0\n")

    result = load_project_env(root=tmp_path)

    assert os.environ["PRIVATE_KEY"] == "c2VjcmV0"
    assert result.applied_keys == ("PRIVATE_KEY",)
    assert "c2VjcmV0" not in repr(result)


def test_explicit_env_file_loaded_last(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """An explicit env file path is honoured with highest precedence."""

    (tmp_path / ".env").write_text("FOO=base\n")
    (tmp_path / ".env.local").write_text("FOO=local\n")
    explicit = tmp_path / "custom.env"
    explicit.write_text("FOO=custom\n")
    monkeypatch.setenv(EXPLICIT_ENV_FILE_VAR, str(explicit))

    result = load_project_env(root=tmp_path)

    assert result.loaded_files[-1] == explicit
    assert os.environ["FOO"] == "custom"


def test_explicit_env_file_missing_logs_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """A missing explicit env file emits a warning and is skipped."""

    explicit = tmp_path / "missing.env"

    with caplog.at_level("WARNING"):
        result = load_project_env(root=tmp_path, explicit=explicit)

    assert explicit not in result.loaded_files
    assert result.explicit_file == explicit
    assert "does not exist" in caplog.text


def test_unreadable_env_file_is_skipped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """Failed env file reads log a warning and do not apply values."""

    (tmp_path / ".env").write_text("FOO=base\n")

    def failing_dotenv(_: Path) -> dict[str, str]:
        raise OSError("cannot read")

    monkeypatch.setattr(env_loader, "dotenv_values", failing_dotenv)

    with caplog.at_level("WARNING"):
        result = load_project_env(root=tmp_path)

    assert "Failed to read env file" in caplog.text
    assert result.applied_keys == ()
    assert result.loaded_files == ()
