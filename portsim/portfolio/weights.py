"""Multi-asset return blending.

A portfolio is a list of tickers with allocation weights. Its return
series is the per-period weighted sum of the asset return series, which
is what the simulation engine consumes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Sequence

import numpy as np

from portsim.errors import ValidationError

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass(frozen=True)
class Asset:
    """A single holding and its allocation weight (0.6 for 60%)."""

    ticker: str
    weight: float


@dataclass(frozen=True)
class Portfolio:
    """A collection of weighted assets."""

    assets: tuple[Asset, ...] = field(default_factory=tuple)

    @classmethod
    def from_weights(cls, weights: Mapping[str, float]) -> Portfolio:
        """Build a portfolio from a ticker -> weight mapping."""
        return cls(tuple(Asset(ticker=t, weight=float(w)) for t, w in weights.items()))

    @property
    def tickers(self) -> list[str]:
        return [a.ticker for a in self.assets]

    @property
    def total_weight(self) -> float:
        return float(sum(a.weight for a in self.assets))


def weighted_returns(
    portfolio: Portfolio,
    returns_by_asset: Mapping[str, Sequence[float] | NDArray[np.float64]],
) -> NDArray[np.float64]:
    """Compute the weighted per-period return series of a portfolio.

    Args:
        portfolio: Assets and weights.
        returns_by_asset: Return series keyed by ticker. All series used
            by the portfolio must have the same length and alignment.

    Returns:
        Array with one blended return per period. Empty for an empty
        portfolio.

    Raises:
        ValidationError: If a ticker has no series or series lengths differ.

    """
    if not portfolio.assets:
        return np.empty(0, dtype=np.float64)

    n_periods: int | None = None
    for asset in portfolio.assets:
        if asset.ticker not in returns_by_asset:
            msg = f"missing returns for asset {asset.ticker}"
            raise ValidationError(msg)
        length = len(returns_by_asset[asset.ticker])
        if n_periods is None:
            n_periods = length
        elif length != n_periods:
            msg = (
                f"returns length mismatch for asset {asset.ticker}: "
                f"expected {n_periods}, got {length}"
            )
            raise ValidationError(msg)

    blended = np.zeros(n_periods or 0, dtype=np.float64)
    for asset in portfolio.assets:
        blended += asset.weight * np.asarray(
            returns_by_asset[asset.ticker], dtype=np.float64
        )
    return blended
