"""Inflation-adjusted withdrawal schedule.

Constant-dollar withdrawals (Bengen, 1994) on a monthly cadence: the
annual withdrawal is a fixed fraction of the initial portfolio, split
into twelve equal monthly amounts, and grown with inflation compounded
monthly. The cadence is fixed at monthly whatever a simulation period
represents.

References:
    Bengen, W. P. (1994). "Determining Withdrawal Rates Using Historical Data."

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from portsim.config import PERIODS_PER_YEAR

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from portsim.simulation.params import SimulationParams


def monthly_withdrawal(
    base_withdrawal: float,
    period: ArrayLike,
    inflation_per_year: float,
) -> NDArray[np.float64] | float:
    """Calculate the inflation-adjusted withdrawal for a period.

    Args:
        base_withdrawal: Withdrawal due in the first period.
        period: Period number (1-indexed), or an array of them.
            Period 1 returns base_withdrawal.
        inflation_per_year: Annual inflation rate (e.g., 0.02 for 2%).

    Returns:
        Withdrawal amount, with the same shape as ``period``.

    """
    years_elapsed = (np.asarray(period, dtype=np.float64) - 1.0) / PERIODS_PER_YEAR
    adjusted = base_withdrawal * (1.0 + inflation_per_year) ** years_elapsed
    if np.ndim(adjusted) == 0:
        return float(adjusted)
    return adjusted


def build_withdrawal_schedule(params: SimulationParams) -> NDArray[np.float64]:
    """Precompute the withdrawal due at every period of a run.

    Args:
        params: Simulation parameters.

    Returns:
        Read-only array of length ``periods + 1``. Index 0 is unused and
        always 0.0; index t holds the withdrawal applied after the return
        of period t. All zeros when the withdrawal rate is 0.

    """
    schedule = np.zeros(params.periods + 1, dtype=np.float64)
    if params.withdrawals_enabled:
        base = params.initial_value * params.withdrawal_rate / PERIODS_PER_YEAR
        periods = np.arange(1, params.periods + 1)
        schedule[1:] = monthly_withdrawal(base, periods, params.inflation_per_year)
    schedule.setflags(write=False)
    return schedule
