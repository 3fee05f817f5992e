"""Terminal display formatting for benchmark results.

Produces the per-command statistics block, warnings, and the final
relative-speed summary.  Colors come from ``click.style`` and are
dropped entirely when *colored* is False.
"""

from __future__ import annotations

from typing import Any, Sequence

import click

from shellbench.bench.compare import compute_relative_speeds, sort_by_mean
from shellbench.bench.results import BenchmarkResult
from shellbench.bench.warnings import BenchWarning
from shellbench.formatting import choose_unit, format_number, format_table, format_time, truncate

COMPARISON_NOT_COMPUTABLE = (
    "The benchmark comparison could not be computed as some benchmark times are zero. "
    "This could be caused by background interference during the initial calibration "
    "phase, in combination with very fast commands (faster than a few milliseconds). "
    "Try to re-run the benchmark on a quiet system. If it does not help, your command "
    "is most likely too fast to be accurately benchmarked."
)


def _style(text: str, colored: bool, **kwargs: Any) -> str:
    return click.style(text, **kwargs) if colored else text


# ---------------------------------------------------------------------------
# Single command display
# ---------------------------------------------------------------------------


def format_header(index: int, name: str, *, colored: bool = True) -> str:
    """``Benchmark 1: sleep 0.1``"""
    return f"{_style(f'Benchmark {index + 1}', colored, bold=True)}: {name}"


def format_result(
    result: BenchmarkResult,
    *,
    time_unit: str | None = None,
    colored: bool = True,
) -> str:
    """Format the statistics block of one result."""
    unit = choose_unit([result.mean], time_unit)

    def t(value: float) -> str:
        return format_time(value, unit)

    mean_str = _style(f"{t(result.mean):>9s}", colored, fg="green", bold=True)
    cpu_str = (
        f"[User: {_style(t(result.user_mean), colored, fg='blue')}, "
        f"System: {_style(t(result.system_mean), colored, fg='blue')}]"
    )
    if result.stddev is not None:
        stddev_str = _style(f"{t(result.stddev):>8s}", colored, fg="green")
        time_line = (
            f"  Time ({_style('mean', colored, fg='green', bold=True)} ± "
            f"{_style('σ', colored, fg='green')}):     {mean_str} ± {stddev_str}    {cpu_str}"
        )
    else:
        # A single run has no spread to report.
        time_line = (
            f"  Time ({_style('abs', colored, fg='green', bold=True)} ≡):        "
            f"{mean_str}               {cpu_str}"
        )

    runs = f"{result.n_runs} run" + ("s" if result.n_runs != 1 else "")
    if result.n_outliers:
        noun = "outlier" if result.n_outliers == 1 else "outliers"
        runs += f" ({result.n_outliers} {noun} excluded)"
    range_line = (
        f"  Range ({_style('min', colored, fg='cyan')} … "
        f"{_style('max', colored, fg='magenta')}):   "
        f"{_style(f'{t(result.min):>9s}', colored, fg='cyan')} … "
        f"{_style(f'{t(result.max):>9s}', colored, fg='magenta')}    "
        f"{_style(runs, colored, dim=True)}"
    )
    return "\n".join([time_line, range_line])


def format_warnings(warnings: Sequence[BenchWarning], *, colored: bool = True) -> str:
    """One indented ``Warning:`` line per warning."""
    label = _style("Warning", colored, fg="yellow", bold=True)
    return "\n".join(f"  {label}: {w.message}" for w in warnings)


def format_failure(message: str, *, colored: bool = True) -> str:
    return f"  {_style('Error', colored, fg='red', bold=True)}: {message}"


# ---------------------------------------------------------------------------
# Comparison summary
# ---------------------------------------------------------------------------


def format_summary(results: Sequence[BenchmarkResult], *, colored: bool = True) -> str:
    """Format the relative speed summary.

    Returns an empty string for fewer than two results, and a note
    explaining why when the comparison cannot be computed.
    """
    if len(results) < 2:
        return ""

    annotated = compute_relative_speeds(results)
    if annotated is None:
        return f"{_style('Note', colored, fg='red', bold=True)}: {COMPARISON_NOT_COMPUTABLE}"

    ordered = sort_by_mean(annotated)
    fastest, others = ordered[0], ordered[1:]

    lines = [_style("Summary", colored, bold=True)]
    lines.append(f"  '{_style(fastest.result.name, colored, fg='cyan')}' ran")
    for item in others:
        ratio = _style(f"{item.relative_speed:8.2f}", colored, fg="green", bold=True)
        if item.relative_speed_stddev is not None:
            ratio += f" ± {_style(f'{item.relative_speed_stddev:.2f}', colored, fg='green')}"
        lines.append(
            f"{ratio} times faster than '{_style(item.result.name, colored, fg='magenta')}'"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Saved results overview
# ---------------------------------------------------------------------------


def format_results_table(
    results: Sequence[BenchmarkResult],
    *,
    time_unit: str | None = None,
) -> str:
    """Aligned overview table of saved results, in input order."""
    if not results:
        return "No results."
    unit = choose_unit([r.mean for r in results], time_unit)
    rows: list[list[str]] = []
    for r in results:
        rows.append(
            [
                truncate(r.name, 40),
                format_number(r.mean, unit),
                format_number(r.stddev, unit) if r.stddev is not None else "-",
                format_number(r.median, unit),
                format_number(r.min, unit),
                format_number(r.max, unit),
                str(r.n_runs),
                str(r.n_outliers),
            ]
        )
    return format_table(
        ["Command", f"Mean [{unit}]", "σ", "Median", "Min", "Max", "Runs", "Outliers"],
        rows,
        alignments=["l", "r", "r", "r", "r", "r", "r", "r"],
    )
