"""Runtime settings for the simulation service.

Request limits, the historical window fetched for each ticker, and the
worker count used to fan paths out. Values can be overridden through
environment variables:

    PORTSIM_MAX_PERIODS       upper bound on ``periods`` in a request
    PORTSIM_MAX_SIMULATIONS   upper bound on ``simulations`` in a request
    PORTSIM_HISTORY_START     first date (YYYY-MM-DD) of fetched price history
    PORTSIM_WORKERS           worker processes per simulation run
    PORTSIM_VERBOSE           "1"/"true" enables DEBUG logging

"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

DEFAULT_MAX_PERIODS = 1200
DEFAULT_MAX_SIMULATIONS = 10_000
DEFAULT_HISTORY_START = "2000-01-01"

# Withdrawals and growth rates are expressed on a monthly cadence.
PERIODS_PER_YEAR = 12

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Service configuration.

    Attributes:
        max_periods: Largest accepted number of simulated periods.
        max_simulations: Largest accepted number of simulated paths.
        periods_per_year: Periods per year used for growth-rate conversion.
        history_start: First date of price history fetched per ticker.
        n_workers: Worker processes per run (1 runs in-process).
        verbose: Enable DEBUG logging.

    """

    max_periods: int = DEFAULT_MAX_PERIODS
    max_simulations: int = DEFAULT_MAX_SIMULATIONS
    periods_per_year: int = PERIODS_PER_YEAR
    history_start: str = DEFAULT_HISTORY_START
    n_workers: int = 1
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.max_periods < 1:
            msg = f"max_periods must be at least 1, got {self.max_periods}"
            raise ValueError(msg)
        if self.max_simulations < 1:
            msg = f"max_simulations must be at least 1, got {self.max_simulations}"
            raise ValueError(msg)
        if self.n_workers < 1:
            msg = f"n_workers must be at least 1, got {self.n_workers}"
            raise ValueError(msg)
        try:
            datetime.strptime(self.history_start, "%Y-%m-%d")
        except ValueError as exc:
            msg = f"history_start must be YYYY-MM-DD, got '{self.history_start}'"
            raise ValueError(msg) from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``PORTSIM_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Settings with defaults for every unset variable.

        Raises:
            ValueError: If a variable is set to a malformed value.

        """
        env = os.environ if environ is None else environ
        return cls(
            max_periods=_int_from(env, "PORTSIM_MAX_PERIODS", DEFAULT_MAX_PERIODS),
            max_simulations=_int_from(
                env, "PORTSIM_MAX_SIMULATIONS", DEFAULT_MAX_SIMULATIONS
            ),
            history_start=env.get("PORTSIM_HISTORY_START", DEFAULT_HISTORY_START),
            n_workers=_int_from(env, "PORTSIM_WORKERS", 1),
            verbose=env.get("PORTSIM_VERBOSE", "").strip().lower() in _TRUTHY,
        )


def _int_from(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"{key} must be an integer, got '{raw}'"
        raise ValueError(msg) from exc
