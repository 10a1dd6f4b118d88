"""Shared pytest fixtures for portsim tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence

import numpy as np
import pytest
from numpy.typing import NDArray

from portsim.simulation.generators import ReturnGenerator
from portsim.simulation.params import SimulationParams


class ScriptedGenerator(ReturnGenerator):
    """Replays fixed return sequences, one script per path.

    Each call to ``with_rng`` takes the next script, so an in-process run
    assigns scripts to paths in order.
    """

    def __init__(self, scripts: Iterable[Sequence[float]]) -> None:
        super().__init__()
        self._scripts = iter(scripts)
        self._draws: Iterator[float] = iter(())

    def with_rng(self, rng: np.random.Generator) -> ScriptedGenerator:
        clone = super().with_rng(rng)
        assert isinstance(clone, ScriptedGenerator)
        clone._draws = iter(next(self._scripts))
        return clone

    def generate(self) -> float:
        return float(next(self._draws))


@pytest.fixture
def reproducible_rng() -> np.random.Generator:
    """Provide a seeded random number generator for deterministic tests."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def sample_returns() -> NDArray[np.float64]:
    """Provide sample historical monthly returns for testing.

    Two years of representative broad-market monthly returns.
    """
    return np.array(
        [
            0.012,
            -0.031,
            0.024,
            0.008,
            0.017,
            -0.006,
            0.035,
            -0.042,
            0.019,
            0.011,
            0.004,
            0.027,
            -0.015,
            0.022,
            0.009,
            -0.058,
            0.046,
            0.013,
            0.006,
            -0.009,
            0.031,
            0.018,
            -0.024,
            0.015,
        ],
        dtype=np.float64,
    )


@pytest.fixture
def sample_portfolio_value() -> float:
    """Provide a standard portfolio value for testing."""
    return 1_000_000.0


@pytest.fixture
def sample_params(
    sample_returns: NDArray[np.float64],
    sample_portfolio_value: float,
) -> SimulationParams:
    """Thirty years of monthly periods with a 4% withdrawal rate."""
    return SimulationParams(
        initial_value=sample_portfolio_value,
        returns=sample_returns,
        withdrawal_rate=0.04,
        inflation_per_year=0.02,
        periods=360,
        simulations=200,
    )


@pytest.fixture
def scripted_generator() -> Callable[[Iterable[Sequence[float]]], ScriptedGenerator]:
    """Factory for generators that replay fixed per-path return scripts."""
    return ScriptedGenerator
