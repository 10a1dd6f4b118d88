"""Monte Carlo simulation engine.

Runs many independent portfolio trajectories under an inflation-adjusted
withdrawal schedule and summarizes their outcomes: success rate (share of
paths never depleted) and mean/median/min/max of the final values.

Every path owns its random state. A ``numpy.random.SeedSequence`` built
from the run seed is spawned into one child per path, so a seeded run
produces the same paths whether it executes in-process or fanned out
over worker processes.

References:
    Bengen, W. P. (1994). "Determining Withdrawal Rates Using Historical Data."
    Trinity Study (Cooley, Hubbard, Walz, 1998).
        "Retirement Savings: Choosing a Withdrawal Rate That Is Sustainable."

"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence

import numpy as np

from portsim.analysis.statistics import (
    PERCENTILE_LEVELS,
    SummaryStats,
    percentile_bands,
    summarize_final_values,
)
from portsim.errors import SimulationCancelledError, ValidationError
from portsim.simulation.generators import ReturnMethod, create_generator
from portsim.simulation.path import simulate_path
from portsim.simulation.withdrawal import build_withdrawal_schedule

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from portsim.simulation.generators import ReturnGenerator
    from portsim.simulation.params import SimulationParams

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]

# Batches per worker; keeps workers busy when batch runtimes vary.
_BATCHES_PER_WORKER = 4


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """Outcome of a Monte Carlo run. Arrays are read-only.

    Attributes:
        paths: Portfolio values, shape (simulations, periods + 1).
        final_stats: Statistics over the last value of every path,
            depleted paths included as 0.
        success_rate: Fraction of paths that never depleted.
        depleted: Per-path depletion flags, shape (simulations,).

    """

    paths: NDArray[np.float64]
    final_stats: SummaryStats
    success_rate: float
    depleted: NDArray[np.bool_]

    @property
    def final_values(self) -> NDArray[np.float64]:
        return self.paths[:, -1]

    @property
    def n_depleted(self) -> int:
        return int(np.count_nonzero(self.depleted))

    def percentile_bands(
        self, levels: Sequence[int] = PERCENTILE_LEVELS
    ) -> dict[int, NDArray[np.float64]]:
        """Per-period percentile paths across all trials."""
        return percentile_bands(self.paths, levels)


class MonteCarloSimulator:
    """Drives independent path simulations for one set of parameters.

    The return generator is chosen once, here; each path receives a copy
    of it bound to that path's own random state.

    Example:
        >>> params = SimulationParams(1_000_000, returns, withdrawal_rate=0.04,
        ...                           inflation_per_year=0.02, periods=360,
        ...                           simulations=1_000)
        >>> sim = MonteCarloSimulator(params, BootstrapReturnGenerator(returns))
        >>> result = sim.run(seed=42)
        >>> print(f"Success rate: {result.success_rate:.1%}")

    """

    def __init__(self, params: SimulationParams, generator: ReturnGenerator) -> None:
        self.params = params
        self.generator = generator

    def run(
        self,
        seed: int | None = None,
        n_workers: int = 1,
        cancel_check: CancelCheck | None = None,
    ) -> SimulationResult:
        """Run all paths and aggregate the outcome.

        Args:
            seed: Root seed. Required for deterministic results.
            n_workers: Worker processes. 1 runs in the calling process.
            cancel_check: Polled at path (in-process) or batch (workers)
                granularity; returning True aborts the run.

        Returns:
            SimulationResult for the run.

        Raises:
            ValidationError: If the parameters are invalid. Raised before
                any path runs.
            SimulationCancelledError: If cancel_check fired.

        """
        params = self.params
        params.validate()
        if n_workers < 1:
            msg = f"n_workers must be at least 1, got {n_workers}"
            raise ValidationError(msg)

        schedule = build_withdrawal_schedule(params)
        seeds = np.random.SeedSequence(seed).spawn(params.simulations)
        paths = np.empty((params.simulations, params.periods + 1), dtype=np.float64)
        depleted = np.zeros(params.simulations, dtype=np.bool_)

        logger.debug(
            "Running %d paths x %d periods on %d worker(s)",
            params.simulations,
            params.periods,
            n_workers,
        )
        if n_workers == 1 or params.simulations == 1:
            _run_batch(
                params, self.generator, schedule, seeds, paths, depleted, cancel_check
            )
        else:
            self._run_parallel(schedule, seeds, paths, depleted, n_workers, cancel_check)

        final_stats = summarize_final_values(paths[:, -1])
        success_rate = float(np.count_nonzero(~depleted)) / params.simulations
        paths.setflags(write=False)
        depleted.setflags(write=False)

        logger.info(
            "Simulated %d paths: success rate %.4f, median final value %.2f",
            params.simulations,
            success_rate,
            final_stats.median,
        )
        return SimulationResult(
            paths=paths,
            final_stats=final_stats,
            success_rate=success_rate,
            depleted=depleted,
        )

    def _run_parallel(
        self,
        schedule: NDArray[np.float64],
        seeds: list[np.random.SeedSequence],
        paths: NDArray[np.float64],
        depleted: NDArray[np.bool_],
        n_workers: int,
        cancel_check: CancelCheck | None,
    ) -> None:
        n_batches = min(len(seeds), n_workers * _BATCHES_PER_WORKER)
        batches = np.array_split(np.arange(len(seeds)), n_batches)

        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = {}
            for rows in batches:
                _raise_if_cancelled(cancel_check, executor)
                future = executor.submit(
                    _simulate_batch,
                    self.params,
                    self.generator,
                    schedule,
                    [seeds[i] for i in rows],
                )
                futures[future] = rows

            for future in as_completed(futures):
                _raise_if_cancelled(cancel_check, executor)
                rows = futures[future]
                block, flags = future.result()
                paths[rows] = block
                depleted[rows] = flags


def _raise_if_cancelled(
    cancel_check: CancelCheck | None,
    executor: ProcessPoolExecutor | None = None,
) -> None:
    if cancel_check is None or not cancel_check():
        return
    if executor is not None:
        executor.shutdown(wait=False, cancel_futures=True)
    msg = "simulation cancelled before completion"
    raise SimulationCancelledError(msg)


def _run_batch(
    params: SimulationParams,
    generator: ReturnGenerator,
    schedule: NDArray[np.float64],
    seeds: Sequence[np.random.SeedSequence],
    paths: NDArray[np.float64],
    depleted: NDArray[np.bool_],
    cancel_check: CancelCheck | None = None,
) -> None:
    """Simulate one path per seed into the matching rows of ``paths``."""
    for i, seq in enumerate(seeds):
        _raise_if_cancelled(cancel_check)
        outcome = simulate_path(
            params.initial_value,
            generator.with_rng(np.random.default_rng(seq)),
            schedule,
            params.periods,
            withdrawals_enabled=params.withdrawals_enabled,
            out=paths[i],
        )
        depleted[i] = not outcome.succeeded


def _simulate_batch(
    params: SimulationParams,
    generator: ReturnGenerator,
    schedule: NDArray[np.float64],
    seeds: list[np.random.SeedSequence],
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Worker entry point: simulate a batch into freshly allocated arrays."""
    block = np.empty((len(seeds), params.periods + 1), dtype=np.float64)
    flags = np.zeros(len(seeds), dtype=np.bool_)
    _run_batch(params, generator, schedule, seeds, block, flags)
    return block, flags


def run_simulation(
    params: SimulationParams,
    method: str | ReturnMethod = ReturnMethod.BOOTSTRAP,
    seed: int | None = None,
    n_workers: int = 1,
    cancel_check: CancelCheck | None = None,
) -> SimulationResult:
    """Run a Monte Carlo simulation with the named return model.

    Args:
        params: Simulation parameters.
        method: "normal" (parametric) or "bootstrap".
        seed: Root seed for reproducibility.
        n_workers: Worker processes.
        cancel_check: Optional cancellation poll, see MonteCarloSimulator.run.

    Returns:
        SimulationResult for the run.

    Raises:
        ValidationError: On invalid parameters, an unknown method, or a
            historical series the method cannot model.

    """
    params.validate()
    generator = create_generator(method, params.returns)
    return MonteCarloSimulator(params, generator).run(
        seed=seed, n_workers=n_workers, cancel_check=cancel_check
    )


def simulate_normal(
    params: SimulationParams,
    seed: int | None = None,
    n_workers: int = 1,
    cancel_check: CancelCheck | None = None,
) -> SimulationResult:
    """Run with returns drawn from a normal fit to the historical series."""
    return run_simulation(params, ReturnMethod.NORMAL, seed, n_workers, cancel_check)


def simulate_bootstrap(
    params: SimulationParams,
    seed: int | None = None,
    n_workers: int = 1,
    cancel_check: CancelCheck | None = None,
) -> SimulationResult:
    """Run with returns resampled from the historical series."""
    return run_simulation(params, ReturnMethod.BOOTSTRAP, seed, n_workers, cancel_check)
