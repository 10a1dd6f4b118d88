"""portsim sidecar entry point.

Communicates with a host process via stdin/stdout using
newline-delimited JSON messages. Logs go to stderr.

Protocol:
    Request:  {"id": "uuid", "method": "string", "params": {}}
    Response: {"id": "uuid", "result": {}}
    Error:    {"id": "uuid", "error": {"message": "string", "type": "string"}}
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from functools import partial
from typing import Any

from portsim import log_config
from portsim.analysis.returns import cagr, monthly_returns, simulated_cagr
from portsim.analysis.statistics import percentile_rank
from portsim.api.handler import SimulationHandler
from portsim.api.schemas import SimulationResponse, check_run_size
from portsim.config import Settings
from portsim.export.csv_export import export_simulation_csv
from portsim.export.json_export import NumpyEncoder, export_simulation_json
from portsim.market.yahoo import YahooPriceFetcher, fetch_monthly_returns
from portsim.portfolio.weights import Portfolio, weighted_returns
from portsim.simulation.monte_carlo import SimulationResult, run_simulation
from portsim.simulation.params import SimulationParams

logger = logging.getLogger(__name__)


def _run(
    settings: Settings,
    initial_value: float,
    returns: list[float],
    periods: int,
    simulations: int,
    withdrawal_rate: float = 0.0,
    inflation_per_year: float = 0.0,
    method: str = "bootstrap",
    seed: int | None = None,
) -> SimulationResult:
    check_run_size(periods, simulations, settings)
    params = SimulationParams(
        initial_value=initial_value,
        returns=returns,
        withdrawal_rate=withdrawal_rate,
        inflation_per_year=inflation_per_year,
        periods=periods,
        simulations=simulations,
    )
    return run_simulation(params, method, seed=seed, n_workers=settings.n_workers)


def _handle_simulation_run(
    settings: Settings,
    include_percentiles: bool = False,
    **kwargs: Any,
) -> dict[str, Any]:
    """Simulate a caller-supplied return series (no market data fetch).

    Args:
        settings: Service settings.
        include_percentiles: Add per-period percentile bands.
        **kwargs: initial_value, returns, periods, simulations, and
            optionally withdrawal_rate, inflation_per_year, method, seed.

    Returns:
        Response dict with paths, final_stats, success_rate, simulated_cagr.

    """
    result = _run(settings, **kwargs)
    return SimulationResponse.from_result(
        result,
        kwargs["initial_value"],
        kwargs["periods"],
        periods_per_year=settings.periods_per_year,
        include_percentiles=include_percentiles,
    ).to_dict()


def _handle_simulation_request(
    settings: Settings,
    request: dict[str, Any],
    include_percentiles: bool = False,
) -> dict[str, Any]:
    """Run a front-end request: fetch prices, blend, simulate."""
    handler = SimulationHandler(YahooPriceFetcher(settings.history_start), settings)
    return handler.handle(request, include_percentiles=include_percentiles)


def _handle_weighted_returns(
    weights: dict[str, float],
    returns_by_asset: dict[str, list[float]],
) -> list[float]:
    return weighted_returns(Portfolio.from_weights(weights), returns_by_asset).tolist()


def _handle_export_csv(
    settings: Settings,
    output_path: str | None = None,
    **kwargs: Any,
) -> str:
    """Simulate and export the percentile bands as CSV."""
    return export_simulation_csv(_run(settings, **kwargs), output_path=output_path)


def dispatch(
    method: str,
    params: dict[str, Any],
    settings: Settings | None = None,
) -> Any:
    """Route a method call to the appropriate handler.

    Args:
        method: The method name (e.g., "simulation.run").
        params: The parameters for the method.
        settings: Service settings. Read from the environment if omitted.

    Returns:
        The result of the method call.

    Raises:
        ValueError: If the method is not recognized.

    """
    settings = settings or Settings.from_env()
    handlers: dict[str, Any] = {
        # Simulation
        "simulation.run": partial(_handle_simulation_run, settings),
        "simulation.request": partial(_handle_simulation_request, settings),
        # Analysis
        "analysis.cagr": cagr,
        "analysis.simulated_cagr": simulated_cagr,
        "analysis.percentile_rank": percentile_rank,
        "analysis.monthly_returns": monthly_returns,
        # Portfolio
        "portfolio.weighted_returns": _handle_weighted_returns,
        # Market data (Yahoo Finance)
        "market.yahoo.monthly_returns": fetch_monthly_returns,
        # Export
        "export.simulation_csv": partial(_handle_export_csv, settings),
        "export.simulation_json": export_simulation_json,
    }
    if method not in handlers:
        msg = f"Unknown method: {method}"
        raise ValueError(msg)
    return handlers[method](**params)


def main() -> None:
    """Run the sidecar message loop.

    Reads newline-delimited JSON from stdin, dispatches to handlers,
    and writes JSON responses to stdout. Runs until stdin is closed.
    """
    settings = Settings.from_env()
    log_config.setup(verbose=settings.verbose)

    for raw_line in sys.stdin:
        stripped = raw_line.strip()
        if not stripped:
            continue

        request: dict[str, Any] = {}
        try:
            request = json.loads(stripped)
            request_id = request.get("id", "unknown")
            method = request["method"]
            params = request.get("params", {})
            logger.debug("Dispatching %s (id=%s)", method, request_id)
            result = dispatch(method, params, settings)
            response: dict[str, Any] = {"id": request_id, "result": result}
        except Exception as exc:  # noqa: BLE001
            request_id = (
                request.get("id", "unknown") if isinstance(request, dict) else "unknown"
            )
            logger.warning("Request %s failed: %s", request_id, exc)
            response = {
                "id": request_id,
                "error": {
                    "message": str(exc),
                    "type": type(exc).__name__,
                    "traceback": traceback.format_exc(),
                },
            }
        sys.stdout.write(json.dumps(response, cls=NumpyEncoder) + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
