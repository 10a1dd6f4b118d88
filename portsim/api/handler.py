"""Request handling for portfolio simulations.

Turns a client request into a simulation run: validate, fetch each
asset's monthly returns, blend them by weight, simulate, and format the
response.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from portsim.api.schemas import SimulationRequest, SimulationResponse
from portsim.config import Settings
from portsim.errors import DataFetchError, PortsimError
from portsim.portfolio.weights import weighted_returns
from portsim.simulation.monte_carlo import run_simulation
from portsim.simulation.params import SimulationParams

logger = logging.getLogger(__name__)


class PriceFetcher(Protocol):
    """Source of historical monthly returns for a ticker."""

    def get_monthly_returns(self, ticker: str) -> list[float]:
        """Return chronologically ordered monthly returns."""
        ...


class SimulationHandler:
    """Runs simulation requests against a price source.

    Args:
        fetcher: Provides monthly returns per ticker.
        settings: Request limits and worker count. Defaults to
            ``Settings.from_env()``.

    """

    def __init__(self, fetcher: PriceFetcher, settings: Settings | None = None) -> None:
        self.fetcher = fetcher
        self.settings = settings or Settings.from_env()

    def handle(
        self,
        payload: dict[str, Any],
        *,
        include_percentiles: bool = False,
    ) -> dict[str, Any]:
        """Process one simulation request.

        Args:
            payload: Request body (see ``portsim.api.schemas``).
            include_percentiles: Add per-period percentile bands.

        Returns:
            Response dict.

        Raises:
            ValidationError: If the request is malformed or the blended
                history cannot support the chosen method.
            DataFetchError: If returns for a ticker could not be fetched.

        """
        request = SimulationRequest.from_dict(payload)
        request.validate(self.settings)
        portfolio = request.to_portfolio()

        returns_by_asset: dict[str, list[float]] = {}
        for asset in portfolio.assets:
            logger.info("Fetching returns for ticker: %s", asset.ticker)
            try:
                asset_returns = self.fetcher.get_monthly_returns(asset.ticker)
            except PortsimError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.error("Error fetching returns for %s: %s", asset.ticker, exc)
                msg = f"failed to fetch returns for ticker {asset.ticker}"
                raise DataFetchError(msg) from exc
            if not asset_returns:
                logger.warning(
                    "No returns fetched for %s; simulation may fail or be skewed",
                    asset.ticker,
                )
            returns_by_asset[asset.ticker] = asset_returns

        blended = weighted_returns(portfolio, returns_by_asset)
        logger.info("Computed portfolio returns for %d months", len(blended))

        params = SimulationParams(
            initial_value=request.initial_value,
            returns=blended,
            withdrawal_rate=request.withdrawal_rate,
            inflation_per_year=request.inflation,
            periods=request.periods,
            simulations=request.simulations,
        )
        result = run_simulation(
            params,
            request.return_method,
            seed=request.seed,
            n_workers=self.settings.n_workers,
        )
        return SimulationResponse.from_result(
            result,
            request.initial_value,
            request.periods,
            periods_per_year=self.settings.periods_per_year,
            include_percentiles=include_percentiles,
        ).to_dict()
