"""Vulture whitelist: references that appear unused but are called dynamically.

Vulture scans for unreachable code.  Items listed here are known false
positives: entry points invoked by setuptools, pytest fixtures consumed
via dependency injection, protocol members, dataclass lifecycle hooks.

Usage:
    vulture portsim tests vulture_whitelist.py
"""

# ── Entry points (called by setuptools console_scripts, not imported) ──
from portsim.main import main  # noqa: F401

# ── Pytest fixtures (injected by pytest, never called directly) ──
from tests.conftest import reproducible_rng  # noqa: F401
from tests.conftest import sample_params  # noqa: F401
from tests.conftest import sample_portfolio_value  # noqa: F401
from tests.conftest import sample_returns  # noqa: F401
from tests.conftest import scripted_generator  # noqa: F401

# ── Protocol members (satisfied structurally by fetchers) ──
from portsim.api.handler import PriceFetcher  # noqa: F401

PriceFetcher.get_monthly_returns  # noqa: B018

# ── Dataclass lifecycle hooks (called by @dataclass, not user code) ──
from portsim.config import Settings  # noqa: F401
from portsim.simulation.params import SimulationParams  # noqa: F401

Settings.__post_init__  # noqa: B018
SimulationParams.__post_init__  # noqa: B018
