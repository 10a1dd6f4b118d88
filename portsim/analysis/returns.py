"""Return calculation utilities.

Derives monthly return series from price history and converts
simulated outcomes back into compound growth rates.
"""

from __future__ import annotations

from typing import Any

from portsim.config import PERIODS_PER_YEAR


def cagr(
    start_value: float,
    end_value: float,
    n_years: float,
) -> float:
    """Calculate Compound Annual Growth Rate.

    Args:
        start_value: Initial portfolio or investment value. Must be positive.
        end_value: Final portfolio or investment value. Must be non-negative.
        n_years: Number of years (can be fractional). Must be positive.

    Returns:
        CAGR as a decimal (e.g., 0.07 for 7%).

    Raises:
        ValueError: If start_value <= 0, end_value < 0, or n_years <= 0.

    """
    if start_value <= 0:
        msg = f"start_value must be positive, got {start_value}"
        raise ValueError(msg)
    if end_value < 0:
        msg = f"end_value must be non-negative, got {end_value}"
        raise ValueError(msg)
    if n_years <= 0:
        msg = f"n_years must be positive, got {n_years}"
        raise ValueError(msg)
    return float((end_value / start_value) ** (1.0 / n_years) - 1.0)


def simulated_cagr(
    mean_final_value: float,
    initial_value: float,
    periods: int,
    periods_per_year: int = PERIODS_PER_YEAR,
) -> float:
    """Growth rate implied by the mean final value of a simulation.

    Withdrawals are already reflected in the final values, so this is the
    net annualized rate of the average outcome.

    Args:
        mean_final_value: Mean of the simulated final values.
        initial_value: Starting portfolio value.
        periods: Number of simulated periods.
        periods_per_year: Periods per year (12 for monthly).

    Returns:
        Annualized rate as a decimal. 0.0 if the horizon or initial value
        is not positive; -1.0 if the mean is negative.

    """
    if initial_value <= 0 or periods <= 0 or periods_per_year <= 0:
        return 0.0
    if mean_final_value < 0:
        return -1.0
    return cagr(initial_value, mean_final_value, periods / periods_per_year)


def monthly_returns(prices: list[dict[str, Any]]) -> list[float]:
    """Calculate sequential monthly returns from price records.

    Records are sorted by date and bucketed by calendar month; the last
    close within each month is that month's price.

    Args:
        prices: List of dicts with keys "date" (YYYY-MM-DD) and "close".

    Returns:
        One simple return per consecutive month pair. A month following a
        zero close gets a 0.0 return. Empty when fewer than two months
        are present.

    Raises:
        ValueError: If a record is missing "date" or "close".

    """
    month_close: dict[str, float] = {}
    try:
        ordered = sorted(prices, key=lambda r: str(r["date"]))
        for record in ordered:
            month_close[str(record["date"])[:7]] = float(record["close"])
    except KeyError as exc:
        msg = f"price records need 'date' and 'close' keys, missing {exc}"
        raise ValueError(msg) from exc

    closes = [month_close[k] for k in sorted(month_close)]
    returns: list[float] = []
    for prev, cur in zip(closes, closes[1:]):
        if prev == 0:
            returns.append(0.0)
            continue
        returns.append((cur - prev) / prev)
    return returns
