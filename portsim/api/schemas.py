"""Wire-format request and response types for simulation calls.

Requests arrive as camelCase JSON objects (the front-end contract)::

    {"portfolio": [{"ticker": "VTI", "weight": 0.6},
                   {"ticker": "BND", "weight": 0.4}],
     "initialValue": 1000000, "withdrawalRate": 0.04, "inflation": 0.02,
     "simulations": 1000, "periods": 360, "method": "bootstrap"}

Responses are snake_case::

    {"paths": [[...], ...], "final_stats": {"mean", "median", "min", "max"},
     "success_rate": 0.93, "simulated_cagr": 0.031}

"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from portsim.analysis.returns import simulated_cagr
from portsim.config import Settings
from portsim.errors import ValidationError
from portsim.portfolio.weights import Asset, Portfolio
from portsim.simulation.generators import ReturnMethod

if TYPE_CHECKING:
    from portsim.simulation.monte_carlo import SimulationResult

# Allowed deviation of the summed portfolio weights from 1.0
_WEIGHT_TOLERANCE = 0.01


@dataclass
class SimulationRequest:
    """A simulation request as received from a client.

    Attributes:
        initial_value: Starting portfolio value.
        withdrawal_rate: Annual withdrawal rate (0.04 = 4%).
        inflation: Annual inflation rate (0.02 = 2%).
        simulations: Number of simulation paths.
        periods: Number of monthly periods.
        method: "normal" or "bootstrap".
        ticker: Single asset to simulate when no portfolio is given.
        portfolio: Weighted assets.
        seed: Optional seed for reproducible runs.

    """

    initial_value: float
    withdrawal_rate: float
    inflation: float
    simulations: int
    periods: int
    method: str
    ticker: str = ""
    portfolio: list[Asset] = field(default_factory=list)
    seed: int | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SimulationRequest:
        """Parse a wire payload.

        Raises:
            ValidationError: If a field is missing or has the wrong type.

        """
        if not isinstance(payload, dict):
            msg = f"request body must be a JSON object, got {type(payload).__name__}"
            raise ValidationError(msg)
        try:
            assets = [
                Asset(ticker=str(a.get("ticker", "")).strip(), weight=float(a["weight"]))
                for a in payload.get("portfolio") or []
            ]
            seed = payload.get("seed")
            return cls(
                initial_value=float(payload["initialValue"]),
                withdrawal_rate=float(payload.get("withdrawalRate", 0.0)),
                inflation=float(payload.get("inflation", 0.0)),
                simulations=_as_int(payload["simulations"], "simulations"),
                periods=_as_int(payload["periods"], "periods"),
                method=str(payload.get("method", "")),
                ticker=str(payload.get("ticker") or "").strip(),
                portfolio=assets,
                seed=None if seed is None else _as_int(seed, "seed"),
            )
        except ValidationError:
            raise
        except KeyError as exc:
            msg = f"missing required field: {exc.args[0]}"
            raise ValidationError(msg) from exc
        except (TypeError, ValueError, AttributeError) as exc:
            msg = f"invalid request body: {exc}"
            raise ValidationError(msg) from exc

    def validate(self, settings: Settings | None = None) -> None:
        """Check ranges and portfolio consistency.

        Args:
            settings: Source of the period and simulation limits.

        Raises:
            ValidationError: On the first failed check.

        """
        settings = settings or Settings()
        if not (math.isfinite(self.initial_value) and self.initial_value > 0):
            msg = "initial value must be greater than 0"
            raise ValidationError(msg)
        check_run_size(self.periods, self.simulations, settings)
        if not 0 <= self.withdrawal_rate <= 1:
            msg = "withdrawal rate must be between 0 and 1"
            raise ValidationError(msg)
        if not 0 <= self.inflation <= 1:
            msg = "inflation must be between 0 and 1"
            raise ValidationError(msg)

        if not self.portfolio and not self.ticker:
            msg = "either portfolio or ticker must be provided"
            raise ValidationError(msg)
        for asset in self.portfolio:
            if not asset.ticker:
                msg = "each asset in portfolio must have a ticker"
                raise ValidationError(msg)
            if asset.weight <= 0:
                msg = "asset weights must be greater than 0"
                raise ValidationError(msg)
        if self.portfolio:
            total = sum(a.weight for a in self.portfolio)
            if abs(total - 1.0) > _WEIGHT_TOLERANCE:
                msg = "sum of portfolio weights must be approximately 1.0"
                raise ValidationError(msg)

        ReturnMethod.parse(self.method)

    @property
    def return_method(self) -> ReturnMethod:
        return ReturnMethod.parse(self.method)

    def to_portfolio(self) -> Portfolio:
        """The assets to simulate; a lone ticker becomes a 100% holding."""
        if self.portfolio:
            return Portfolio(tuple(self.portfolio))
        return Portfolio((Asset(ticker=self.ticker, weight=1.0),))


@dataclass
class SimulationResponse:
    """Serializable simulation outcome."""

    paths: list[list[float]]
    final_stats: dict[str, float]
    success_rate: float
    simulated_cagr: float
    percentiles: dict[str, list[float]] | None = None

    @classmethod
    def from_result(
        cls,
        result: SimulationResult,
        initial_value: float,
        periods: int,
        *,
        periods_per_year: int = 12,
        include_percentiles: bool = False,
    ) -> SimulationResponse:
        """Format a simulation result for transport.

        The growth rate is derived from the mean final value over
        ``periods / periods_per_year`` years.
        """
        percentiles = None
        if include_percentiles:
            percentiles = {
                f"p{level}": band.tolist()
                for level, band in result.percentile_bands().items()
            }
        return cls(
            paths=result.paths.tolist(),
            final_stats=result.final_stats.to_dict(),
            success_rate=result.success_rate,
            simulated_cagr=simulated_cagr(
                result.final_stats.mean, initial_value, periods, periods_per_year
            ),
            percentiles=percentiles,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "paths": self.paths,
            "final_stats": self.final_stats,
            "success_rate": self.success_rate,
            "simulated_cagr": self.simulated_cagr,
        }
        if self.percentiles is not None:
            data["percentiles"] = self.percentiles
        return data


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        msg = f"{name} must be an integer, got {value!r}"
        raise ValidationError(msg)
    if isinstance(value, float) and not value.is_integer():
        msg = f"{name} must be an integer, got {value!r}"
        raise ValidationError(msg)
    return int(value)


def check_run_size(periods: int, simulations: int, settings: Settings) -> None:
    """Enforce the configured period and simulation limits.

    Raises:
        ValidationError: If either count is outside [1, limit].

    """
    if not 1 <= periods <= settings.max_periods:
        msg = f"periods must be between 1 and {settings.max_periods}"
        raise ValidationError(msg)
    if not 1 <= simulations <= settings.max_simulations:
        msg = f"simulations must be between 1 and {settings.max_simulations}"
        raise ValidationError(msg)
