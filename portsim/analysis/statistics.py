"""Statistical utilities for simulation inputs and outcomes.

Provides moment estimation for the parametric return model, summary
statistics over final portfolio values, per-period percentile bands
for charting, and percentile ranking.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np
from scipy import stats

from portsim.errors import ValidationError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

PERCENTILE_LEVELS = (5, 25, 50, 75, 95)


@dataclass(frozen=True)
class SummaryStats:
    """Descriptive statistics over final portfolio values.

    Attributes:
        mean: Arithmetic mean.
        median: Middle value, or the average of the two middle values.
        min: Smallest value.
        max: Largest value.

    """

    mean: float
    median: float
    min: float
    max: float

    def to_dict(self) -> dict[str, float]:
        """Return the statistics as a plain dict."""
        return asdict(self)


def sample_mean_std(values: Sequence[float] | NDArray[np.float64]) -> tuple[float, float]:
    """Calculate the mean and sample standard deviation.

    Uses the (n-1) denominator. The standard deviation is 0.0 when fewer
    than two values are given.

    Args:
        values: Observations.

    Returns:
        Tuple of (mean, standard deviation).

    Raises:
        ValidationError: If values is empty.

    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        msg = "values must not be empty"
        raise ValidationError(msg)
    mean = float(np.mean(arr))
    if arr.size < 2:  # noqa: PLR2004
        return mean, 0.0
    return mean, float(np.std(arr, ddof=1))


def summarize_final_values(values: ArrayLike) -> SummaryStats:
    """Compute mean, median, min and max over final portfolio values.

    Values are sorted ascending; the median is the middle element for an
    odd count and the mean of the two middle elements otherwise.

    Args:
        values: One final value per simulated path.

    Returns:
        SummaryStats for the values.

    Raises:
        ValidationError: If values is empty.

    """
    ordered = np.sort(np.asarray(values, dtype=np.float64).ravel())
    n = ordered.size
    if n == 0:
        msg = "cannot summarize an empty set of final values"
        raise ValidationError(msg)

    lo = float(ordered[0])
    hi = float(ordered[-1])
    mid = n // 2
    if n % 2 == 0:
        median = (float(ordered[mid - 1]) + float(ordered[mid])) / 2.0
    else:
        median = float(ordered[mid])

    # fsum keeps the mean inside [min, max] up to one rounding step; clamp that away
    mean = min(max(math.fsum(ordered.tolist()) / n, lo), hi)
    return SummaryStats(mean=mean, median=median, min=lo, max=hi)


def percentile_bands(
    paths: NDArray[np.float64],
    levels: Sequence[int] = PERCENTILE_LEVELS,
) -> dict[int, NDArray[np.float64]]:
    """Compute percentile paths across trials at each period.

    Percentiles use linear interpolation between closest ranks.

    Args:
        paths: Array of shape (n_paths, n_periods + 1).
        levels: Percentile levels in [0, 100].

    Returns:
        Dict mapping each level to an array of shape (n_periods + 1,).

    Raises:
        ValidationError: If paths is not a non-empty 2-D array or a
            level is outside [0, 100].

    """
    arr = np.asarray(paths, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] == 0:  # noqa: PLR2004
        msg = f"paths must be a non-empty 2-D array, got shape {arr.shape}"
        raise ValidationError(msg)

    bands: dict[int, NDArray[np.float64]] = {}
    for p in levels:
        if not 0 <= p <= 100:  # noqa: PLR2004
            msg = f"percentile levels must be within [0, 100], got {p}"
            raise ValidationError(msg)
        bands[p] = np.percentile(arr, p, axis=0)
    return bands


def percentile_rank(
    values: ArrayLike,
    target: float,
) -> float:
    """Calculate the percentile rank of a target value within a distribution.

    Uses scipy.stats.percentileofscore with "rank" interpolation.

    Args:
        values: Array of observed values, e.g. simulated final values.
        target: The value to rank.

    Returns:
        Percentile rank as a float between 0 and 100.

    Raises:
        ValidationError: If values is empty.

    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        msg = "values must not be empty"
        raise ValidationError(msg)
    return float(stats.percentileofscore(arr, target, kind="rank"))
