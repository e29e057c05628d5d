"""Tests for configuration and path resolution."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from persist_timeout.config import DEFAULT_PERIOD_MS, PersisterConfig
from persist_timeout.paths import (
    DIR_ENV_VAR,
    FALLBACK_PROCESS_ID,
    PROCESS_ID_ENV_VAR,
    get_base_dir,
    get_process_id,
    get_state_path,
)


class TestPersisterConfig:
    def test_defaults(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv(DIR_ENV_VAR, str(tmp_path))
        monkeypatch.setenv(PROCESS_ID_ENV_VAR, "my-app")
        config = PersisterConfig()
        assert config.name is None
        assert config.period_ms == DEFAULT_PERIOD_MS == 5000
        assert config.base_dir == tmp_path.resolve()
        assert config.process_id == "my-app"
        assert config.period_seconds == 5.0

    @pytest.mark.parametrize("period_ms", [0, -5])
    def test_period_must_be_positive(self, period_ms):
        with pytest.raises(ValidationError):
            PersisterConfig(period_ms=period_ms)

    @pytest.mark.parametrize("name", ["a/b", "..\\x"])
    def test_name_rejects_path_separators(self, name):
        with pytest.raises(ValidationError):
            PersisterConfig(name=name)

    def test_process_id_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            PersisterConfig(process_id="")


class TestPaths:
    def test_base_dir_from_env(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv(DIR_ENV_VAR, str(tmp_path))
        assert get_base_dir() == tmp_path.resolve()

    def test_base_dir_default(self, monkeypatch):
        monkeypatch.delenv(DIR_ENV_VAR, raising=False)
        assert get_base_dir().is_dir()

    def test_process_id_from_env(self, monkeypatch):
        monkeypatch.setenv(PROCESS_ID_ENV_VAR, "billing")
        assert get_process_id() == "billing"

    def test_process_id_fallback(self, monkeypatch):
        monkeypatch.delenv(PROCESS_ID_ENV_VAR, raising=False)
        monkeypatch.setattr(
            "persist_timeout.paths._main_distribution_name", lambda: None
        )
        assert get_process_id() == FALLBACK_PROCESS_ID == "persist-timeout"

    def test_state_path(self, tmp_path: Path):
        assert get_state_path(tmp_path, "app", "jobs") == tmp_path / "app-jobs.json"
        assert get_state_path(tmp_path, "app", 3) == tmp_path / "app-3.json"
