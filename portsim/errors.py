"""Exception types raised by portsim.

All input problems surface as :class:`ValidationError`, which also derives
from ``ValueError`` so callers catching the built-in keep working.
"""

from __future__ import annotations


class PortsimError(Exception):
    """Base class for portsim errors."""


class ValidationError(PortsimError, ValueError):
    """Simulation parameters or a request failed validation.

    Deterministic property of the input: never retried.
    """


class SimulationCancelledError(PortsimError):
    """A caller-supplied cancel check stopped a run before it finished."""


class DataFetchError(PortsimError):
    """Price history could not be retrieved for a ticker."""
