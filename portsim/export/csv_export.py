"""CSV export for simulation results.

Generates CSV files with metadata headers including export date,
success rate, and path count.

"""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from portsim.analysis.statistics import PERCENTILE_LEVELS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from portsim.simulation.monte_carlo import SimulationResult


def export_simulation_csv(
    result: SimulationResult,
    output_path: str | None = None,
    levels: Sequence[int] = PERCENTILE_LEVELS,
) -> str:
    """Export per-period percentile paths of a simulation to CSV.

    Writes a "period" column and one column per percentile level
    (p5, p25, p50, p75, p95 by default).

    Args:
        result: Simulation result.
        output_path: File path to write. If None, returns CSV string.
        levels: Percentile levels to include.

    Returns:
        The CSV content as a string, or file path if output_path given.

    """
    bands = result.percentile_bands(levels)

    output = io.StringIO()
    _write_metadata_header(
        output,
        "Simulation Results Export",
        extra=[
            f"Success Rate: {result.success_rate:.4f}",
            f"Paths: {result.paths.shape[0]}",
            f"Median Final Value: {result.final_stats.median:.2f}",
        ],
    )

    ordered = sorted(bands)
    fieldnames = ["period"] + [f"p{p}" for p in ordered]
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()

    for period in range(result.paths.shape[1]):
        row: dict[str, object] = {"period": period}
        for p_level in ordered:
            row[f"p{p_level}"] = f"{float(bands[p_level][period]):.2f}"
        writer.writerow(row)

    content = output.getvalue()
    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return output_path
    return content


def _write_metadata_header(
    output: io.StringIO,
    title: str,
    extra: Sequence[str] = (),
) -> None:
    """Write metadata comment lines at the top of a CSV export.

    Args:
        output: StringIO buffer to write to.
        title: Export title.
        extra: Additional metadata lines.

    """
    now = datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    output.write(f"# {title}\n")
    output.write(f"# Generated: {now}\n")
    for line in extra:
        output.write(f"# {line}\n")
