"""Simulation parameters shared by every path of a run."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np

from portsim.errors import ValidationError

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass(frozen=True, eq=False)
class SimulationParams:
    """Inputs for one Monte Carlo run.

    The return series is copied into a read-only array on construction,
    so neither the caller nor the simulation can mutate it mid-run.

    Attributes:
        initial_value: Starting portfolio value. Must be positive.
        returns: Historical period returns (e.g. monthly) to model from.
        withdrawal_rate: Annual withdrawal as a fraction of the initial
            value (0.04 for 4%). 0 disables withdrawals.
        inflation_per_year: Annual inflation applied to withdrawals.
        periods: Number of simulated periods.
        simulations: Number of independent paths.

    """

    initial_value: float
    returns: NDArray[np.float64] | Sequence[float]
    withdrawal_rate: float = 0.0
    inflation_per_year: float = 0.0
    periods: int = 360
    simulations: int = 1_000

    def __post_init__(self) -> None:
        arr = np.array(self.returns, dtype=np.float64).ravel()
        arr.setflags(write=False)
        object.__setattr__(self, "returns", arr)

    @property
    def withdrawals_enabled(self) -> bool:
        return self.withdrawal_rate > 0

    def validate(self) -> None:
        """Check the parameters before any path runs.

        Raises:
            ValidationError: On a non-positive period count, simulation
                count or initial value, a negative withdrawal rate, an empty
                return series, or a NaN or infinite input.

        """
        if self.periods <= 0:
            msg = f"number of periods must be positive, got {self.periods}"
            raise ValidationError(msg)
        if self.simulations <= 0:
            msg = f"number of simulations must be positive, got {self.simulations}"
            raise ValidationError(msg)
        if not (math.isfinite(self.initial_value) and self.initial_value > 0):
            msg = f"initial value must be a positive finite number, got {self.initial_value}"
            raise ValidationError(msg)
        if not (math.isfinite(self.withdrawal_rate) and self.withdrawal_rate >= 0):
            msg = f"withdrawal rate must be a non-negative finite number, got {self.withdrawal_rate}"
            raise ValidationError(msg)
        if len(self.returns) == 0:
            msg = "historical returns must not be empty"
            raise ValidationError(msg)
        if not math.isfinite(self.inflation_per_year):
            msg = f"inflation must be finite, got {self.inflation_per_year}"
            raise ValidationError(msg)
        if not np.isfinite(self.returns).all():
            msg = "historical returns must be finite numbers"
            raise ValidationError(msg)
