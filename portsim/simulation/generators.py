"""Synthetic period-return generators.

Two models share one interface:

    - Parametric: independent draws from Normal(mean, std) fitted to the
      historical series with the sample (n-1) standard deviation.
    - Bootstrap: uniform resampling with replacement from the historical
      series. Ordering and autocorrelation of history are discarded.

Each generator owns its ``numpy.random.Generator``. ``with_rng`` hands out
a copy that shares the immutable fitted state but draws from a different
random state, which is how the aggregator gives every path its own stream.

References:
    Efron, B. (1979). "Bootstrap Methods: Another Look at the Jackknife."

"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Sequence

import numpy as np

from portsim.analysis.statistics import sample_mean_std
from portsim.errors import ValidationError

if TYPE_CHECKING:
    from numpy.typing import NDArray


class ReturnMethod(Enum):
    """Supported return-generation methods."""

    NORMAL = "normal"
    BOOTSTRAP = "bootstrap"

    @classmethod
    def parse(cls, value: str | ReturnMethod) -> ReturnMethod:
        """Resolve a method name case-insensitively.

        Raises:
            ValidationError: If the name is not a supported method.

        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            valid = ", ".join(f"'{m.value}'" for m in cls)
            msg = f"method must be one of {valid}, got '{value}'"
            raise ValidationError(msg) from exc


class ReturnGenerator(ABC):
    """Produces one synthetic period return per call."""

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def generate(self) -> float:
        """Draw one period return."""

    def generate_many(self, n: int) -> NDArray[np.float64]:
        """Draw ``n`` consecutive period returns."""
        return np.fromiter((self.generate() for _ in range(n)), np.float64, count=n)

    def with_rng(self, rng: np.random.Generator) -> ReturnGenerator:
        """Return a copy of this generator drawing from ``rng``."""
        clone = copy.copy(self)
        clone._rng = rng
        return clone


def _historical_array(returns: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    arr = np.array(returns, dtype=np.float64).ravel()
    if arr.size == 0:
        msg = "historical returns must not be empty"
        raise ValidationError(msg)
    arr.setflags(write=False)
    return arr


class ParametricReturnGenerator(ReturnGenerator):
    """Normal draws fitted to the historical mean and sample standard deviation.

    Args:
        historical_returns: Non-empty series of period returns.
        rng: Random state. A fresh unseeded generator if omitted.

    Raises:
        ValidationError: If the series is empty, or has more than one value
            and zero standard deviation.

    """

    def __init__(
        self,
        historical_returns: Sequence[float] | NDArray[np.float64],
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__(rng)
        history = _historical_array(historical_returns)
        self.mean, self.std = sample_mean_std(history)
        if self.std == 0 and history.size > 1:
            msg = (
                "standard deviation of historical returns is zero; "
                "a constant series cannot drive a stochastic normal simulation"
            )
            raise ValidationError(msg)

    def generate(self) -> float:
        return float(self._rng.normal(self.mean, self.std))

    def generate_many(self, n: int) -> NDArray[np.float64]:
        return self._rng.normal(self.mean, self.std, size=n)


class BootstrapReturnGenerator(ReturnGenerator):
    """Uniform resampling with replacement from the historical series.

    Args:
        historical_returns: Non-empty series of period returns.
        rng: Random state. A fresh unseeded generator if omitted.

    Raises:
        ValidationError: If the series is empty.

    """

    def __init__(
        self,
        historical_returns: Sequence[float] | NDArray[np.float64],
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__(rng)
        self.history = _historical_array(historical_returns)

    def generate(self) -> float:
        return float(self.history[self._rng.integers(0, self.history.size)])

    def generate_many(self, n: int) -> NDArray[np.float64]:
        return self.history[self._rng.integers(0, self.history.size, size=n)]


def create_generator(
    method: str | ReturnMethod,
    historical_returns: Sequence[float] | NDArray[np.float64],
    rng: np.random.Generator | None = None,
) -> ReturnGenerator:
    """Build the generator for a method name.

    Args:
        method: "normal" or "bootstrap" (case-insensitive), or a ReturnMethod.
        historical_returns: Series the generator is fitted to.
        rng: Random state for the generator.

    Returns:
        A ParametricReturnGenerator or BootstrapReturnGenerator.

    Raises:
        ValidationError: If the method is unknown or the series is invalid
            for the method.

    """
    resolved = ReturnMethod.parse(method)
    if resolved is ReturnMethod.NORMAL:
        return ParametricReturnGenerator(historical_returns, rng)
    return BootstrapReturnGenerator(historical_returns, rng)
