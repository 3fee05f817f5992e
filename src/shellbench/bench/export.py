"""Export benchmark results to JSON, CSV, Markdown and AsciiDoc.

JSON format: every statistic plus the raw per-run times and exit codes.
This is the complete data and can be re-read by ``shellbench show``.

CSV format: one summary row per command, with one extra column per
benchmark parameter.

Markdown/AsciiDoc: a summary table with the relative speed column,
suitable for reports, README files, and GitHub issues.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from shellbench.bench.compare import compute_relative_speeds
from shellbench.bench.results import BenchmarkResult, results_to_json
from shellbench.formatting import choose_unit, format_number

log = logging.getLogger("shellbench")

EXPORT_FORMATS = ("json", "csv", "markdown", "asciidoc")


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export_csv(results: Sequence[BenchmarkResult], time_unit: str | None = None) -> str:
    """Export summary statistics as CSV, in seconds.

    Columns:
        command, mean, stddev, median, user, system, min, max,
        parameter_<name> for every parameter used by any command
    """
    param_names: list[str] = []
    for r in results:
        for name in r.parameter_values:
            if name not in param_names:
                param_names.append(name)

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(
        ["command", "mean", "stddev", "median", "user", "system", "min", "max"]
        + [f"parameter_{name}" for name in param_names]
    )
    for r in results:
        writer.writerow(
            [
                r.name,
                f"{r.mean:.9f}",
                f"{r.stddev:.9f}" if r.stddev is not None else "",
                f"{r.median:.9f}",
                f"{r.user_mean:.9f}",
                f"{r.system_mean:.9f}",
                f"{r.min:.9f}",
                f"{r.max:.9f}",
            ]
            + [r.parameter_values.get(name, "") for name in param_names]
        )
    return output.getvalue()


# ---------------------------------------------------------------------------
# Markdown / AsciiDoc export
# ---------------------------------------------------------------------------


def _table_rows(
    results: Sequence[BenchmarkResult],
    time_unit: str | None,
) -> tuple[list[str], list[list[str]]]:
    """Header and rows shared by the Markdown and AsciiDoc tables."""
    unit = choose_unit([r.mean for r in results], time_unit)
    headers = ["Command", f"Mean [{unit}]", f"Min [{unit}]", f"Max [{unit}]", "Relative"]

    annotated = compute_relative_speeds(results)
    rows: list[list[str]] = []
    for i, r in enumerate(results):
        mean = format_number(r.mean, unit)
        if r.stddev is not None:
            mean += f" ± {format_number(r.stddev, unit)}"

        if annotated is None:
            relative = "N/A"
        else:
            a = annotated[i]
            relative = f"{a.relative_speed:.2f}"
            if a.relative_speed_stddev is not None and not a.is_fastest:
                relative += f" ± {a.relative_speed_stddev:.2f}"

        rows.append(
            [
                f"`{r.name}`",
                mean,
                format_number(r.min, unit),
                format_number(r.max, unit),
                relative,
            ]
        )
    return headers, rows


def export_markdown(results: Sequence[BenchmarkResult], time_unit: str | None = None) -> str:
    """Export results as a Markdown table."""
    if not results:
        return ""
    headers, rows = _table_rows(results, time_unit)
    lines = [
        "| " + " | ".join(headers) + " |",
        "|:---|---:|---:|---:|---:|",
    ]
    for row in rows:
        escaped = [cell.replace("|", "\\|") for cell in row]
        lines.append("| " + " | ".join(escaped) + " |")
    return "\n".join(lines) + "\n"


def export_asciidoc(results: Sequence[BenchmarkResult], time_unit: str | None = None) -> str:
    """Export results as an AsciiDoc table."""
    if not results:
        return ""
    headers, rows = _table_rows(results, time_unit)
    lines = ['[cols="<,>,>,>,>"]', "|==="]
    lines.append(" ".join(f"| {h}" for h in headers))
    lines.append("")
    for row in rows:
        escaped = [cell.replace("|", "\\|") for cell in row]
        lines.append(" ".join(f"| {cell}" for cell in escaped))
    lines.append("|===")
    return "\n".join(lines) + "\n"


def export_json(results: Sequence[BenchmarkResult], time_unit: str | None = None) -> str:
    """Export results as JSON (always in seconds)."""
    return results_to_json(results)


_EXPORTERS: dict[str, Callable[[Sequence[BenchmarkResult], str | None], str]] = {
    "json": export_json,
    "csv": export_csv,
    "markdown": export_markdown,
    "asciidoc": export_asciidoc,
}


def render(fmt: str, results: Sequence[BenchmarkResult], time_unit: str | None = None) -> str:
    """Render *results* in export format *fmt*."""
    try:
        exporter = _EXPORTERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown export format: {fmt!r}") from None
    return exporter(results, time_unit)


# ---------------------------------------------------------------------------
# Export manager
# ---------------------------------------------------------------------------


@dataclass
class ExportTarget:
    """One requested export: a format and the file it is written to."""

    fmt: str
    path: Path


@dataclass
class ExportManager:
    """Writes every requested export file.

    ``write_results`` is called after each finished command so that the
    files always hold the results completed so far, and once more at
    the end with the full set.
    """

    targets: list[ExportTarget] = field(default_factory=list)
    time_unit: str | None = None

    def add(self, fmt: str, path: Path) -> None:
        if fmt not in _EXPORTERS:
            raise ValueError(f"Unknown export format: {fmt!r}")
        self.targets.append(ExportTarget(fmt=fmt, path=path))

    def write_results(self, results: Sequence[BenchmarkResult]) -> None:
        for target in self.targets:
            target.path.write_text(render(target.fmt, results, self.time_unit))
            log.debug("Wrote %d result(s) to %s", len(results), target.path)
