"""Tests for runtime settings."""

from __future__ import annotations

import pytest

from portsim.config import (
    DEFAULT_HISTORY_START,
    DEFAULT_MAX_PERIODS,
    DEFAULT_MAX_SIMULATIONS,
    Settings,
)


class TestSettings:
    """Tests for defaults and validation."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.max_periods == DEFAULT_MAX_PERIODS == 1200
        assert settings.max_simulations == DEFAULT_MAX_SIMULATIONS == 10_000
        assert settings.periods_per_year == 12
        assert settings.history_start == DEFAULT_HISTORY_START
        assert settings.n_workers == 1
        assert settings.verbose is False

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"max_periods": 0}, "max_periods"),
            ({"max_simulations": 0}, "max_simulations"),
            ({"n_workers": 0}, "n_workers"),
            ({"history_start": "2000/01/01"}, "YYYY-MM-DD"),
        ],
    )
    def test_rejects_bad_values(self, kwargs: dict, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            Settings(**kwargs)


class TestFromEnv:
    """Tests for environment overrides."""

    def test_empty_environment_gives_defaults(self) -> None:
        assert Settings.from_env({}) == Settings()

    def test_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "PORTSIM_MAX_PERIODS": "600",
                "PORTSIM_MAX_SIMULATIONS": "5000",
                "PORTSIM_HISTORY_START": "1990-01-01",
                "PORTSIM_WORKERS": "4",
                "PORTSIM_VERBOSE": "true",
            }
        )
        assert settings.max_periods == 600
        assert settings.max_simulations == 5000
        assert settings.history_start == "1990-01-01"
        assert settings.n_workers == 4
        assert settings.verbose is True

    @pytest.mark.parametrize("raw", ["1", "yes", "ON", " True "])
    def test_verbose_truthy(self, raw: str) -> None:
        assert Settings.from_env({"PORTSIM_VERBOSE": raw}).verbose is True

    @pytest.mark.parametrize("raw", ["", "0", "false", "nope"])
    def test_verbose_falsy(self, raw: str) -> None:
        assert Settings.from_env({"PORTSIM_VERBOSE": raw}).verbose is False

    def test_blank_integer_uses_default(self) -> None:
        assert Settings.from_env({"PORTSIM_WORKERS": "  "}).n_workers == 1

    def test_malformed_integer(self) -> None:
        with pytest.raises(ValueError, match="PORTSIM_MAX_PERIODS must be an integer"):
            Settings.from_env({"PORTSIM_MAX_PERIODS": "many"})

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORTSIM_WORKERS", "3")
        assert Settings.from_env().n_workers == 3
