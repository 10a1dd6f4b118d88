"""JSON export for simulation responses.

Wraps a response dict with metadata and serializes NumPy values.

"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import numpy as np


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles NumPy types and datetimes."""

    def default(self, o: Any) -> Any:
        """Convert non-serializable types to JSON-safe values."""
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        if isinstance(o, np.bool_):
            return bool(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def export_simulation_json(
    response: dict[str, Any],
    params: dict[str, Any] | None = None,
    output_path: str | None = None,
) -> str:
    """Export a simulation response to JSON format.

    Args:
        response: Response dict as produced by ``SimulationResponse.to_dict``.
        params: Request parameters to record alongside the results.
        output_path: File path to write. If None, returns JSON string.

    Returns:
        JSON string, or file path if output_path given.

    """
    export_data: dict[str, Any] = {
        "metadata": {
            "export_date": datetime.now(tz=UTC).isoformat(),
            "format_version": "1.0",
            "source": "portsim",
        },
        "params": params or {},
        "result": response,
    }

    content = json.dumps(export_data, cls=NumpyEncoder, indent=2)
    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return output_path
    return content
