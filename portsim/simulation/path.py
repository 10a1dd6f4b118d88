"""Single-trajectory simulation.

A path starts ACTIVE at the initial value. Each period applies the
generated return, then the scheduled withdrawal. A withdrawal that takes
the value to zero or below moves the path to DEPLETED, which is terminal:
the remaining periods are recorded as 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from portsim.simulation.generators import ReturnGenerator


class PathState(Enum):
    """Lifecycle of a simulated path."""

    ACTIVE = "active"
    DEPLETED = "depleted"


@dataclass(frozen=True)
class PathOutcome:
    """Result of one path.

    Attributes:
        values: Portfolio value at periods 0..n (length n + 1).
        state: Final state of the path.
        depleted_at: Period at which the path depleted, or None.

    """

    values: NDArray[np.float64]
    state: PathState
    depleted_at: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PathState.ACTIVE

    @property
    def final_value(self) -> float:
        return float(self.values[-1])


def simulate_path(
    initial_value: float,
    generator: ReturnGenerator,
    schedule: NDArray[np.float64],
    periods: int,
    *,
    withdrawals_enabled: bool = True,
    out: NDArray[np.float64] | None = None,
) -> PathOutcome:
    """Advance one portfolio trajectory through all periods.

    Args:
        initial_value: Portfolio value at period 0.
        generator: Source of period returns, owned by this path.
        schedule: Withdrawal per period (index 0 unused), length periods + 1.
        periods: Number of periods to simulate.
        withdrawals_enabled: Apply the schedule and check for depletion.
        out: Buffer of length periods + 1 to write into. Every element is
            overwritten. A new array is allocated if omitted.

    Returns:
        PathOutcome wrapping the written buffer.

    Raises:
        ValueError: If ``out`` or ``schedule`` is shorter than periods + 1.

    """
    n_points = periods + 1
    if out is None:
        out = np.empty(n_points, dtype=np.float64)
    elif out.shape != (n_points,):
        msg = f"out must have shape ({n_points},), got {out.shape}"
        raise ValueError(msg)
    if withdrawals_enabled and len(schedule) < n_points:
        msg = f"schedule must have at least {n_points} entries, got {len(schedule)}"
        raise ValueError(msg)

    draws = generator.generate_many(periods)
    value = float(initial_value)
    out[0] = value

    for t in range(1, n_points):
        value *= 1.0 + draws[t - 1]
        if withdrawals_enabled:
            value -= schedule[t]
            if value <= 0.0:
                out[t:] = 0.0
                return PathOutcome(values=out, state=PathState.DEPLETED, depleted_at=t)
        elif value < 0.0:
            # a period return below -100% wipes the portfolio out; values stay >= 0
            value = 0.0
        out[t] = value

    return PathOutcome(values=out, state=PathState.ACTIVE)
