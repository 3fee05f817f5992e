"""Benchmark result data structures and serialization.

Hierarchy::

    BenchmarkRun (one invocation of the tool)
      → results: list[BenchmarkResult]   (one per successful command)
      → failures: list[CommandFailure]  (commands whose benchmark aborted)

    BenchmarkResult
      → raw_times / exit_codes / outliers  (one entry per timed run)
      → mean / stddev / median / user_mean / system_mean  (retained runs)
      → min / max  (all runs)

Files produced (by the export manager)::

    <name>.json  — {"results": [BenchmarkResult, ...]}
"""

from __future__ import annotations

import json
import logging
import statistics
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from shellbench.bench.errors import NoSamplesError
from shellbench.bench.stats import OUTLIER_THRESHOLD, describe, detect_outliers, min_max
from shellbench.bench.timing import ExitOutcome, TimingSample

log = logging.getLogger("shellbench")


# ---------------------------------------------------------------------------
# Command-level result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkResult:
    """Aggregated timing of one benchmarked command."""

    command: str
    mean: float
    stddev: float | None
    median: float
    user_mean: float
    system_mean: float
    min: float
    max: float
    raw_times: list[float] = field(default_factory=list)
    exit_codes: list[ExitOutcome] = field(default_factory=list)
    parameter_values: dict[str, str] = field(default_factory=dict)
    outliers: list[bool] = field(default_factory=list)  # parallel to raw_times
    command_name: str | None = None

    @classmethod
    def from_samples(
        cls,
        command: str,
        samples: Sequence[TimingSample],
        *,
        parameter_values: dict[str, str] | None = None,
        command_name: str | None = None,
        outlier_threshold: float = OUTLIER_THRESHOLD,
    ) -> BenchmarkResult:
        """Aggregate timed samples into a result.

        Outliers in wall time are excluded from the mean, median, stddev
        and the user/system means, but are kept in ``raw_times``.  The
        min/max are taken over all samples.

        Raises:
            NoSamplesError: If *samples* is empty.
        """
        if not samples:
            raise NoSamplesError(f"No timed runs were recorded for '{command}'")

        raw_times = [s.wall_time for s in samples]
        split = detect_outliers(raw_times, threshold=outlier_threshold)
        retained = [s for s, flagged in zip(samples, split.flags) if not flagged]

        wall = describe(split.retained)
        lo, hi = min_max(raw_times)
        if split.n_outliers:
            log.debug(
                "%s: excluded %d of %d samples as outliers",
                command,
                split.n_outliers,
                len(raw_times),
            )

        return cls(
            command=command,
            mean=wall.mean,
            stddev=wall.stddev,
            median=wall.median,
            user_mean=statistics.fmean(s.user_time for s in retained),
            system_mean=statistics.fmean(s.system_time for s in retained),
            min=lo,
            max=hi,
            raw_times=raw_times,
            exit_codes=[s.exit_status for s in samples],
            parameter_values=dict(parameter_values or {}),
            outliers=split.flags,
            command_name=command_name,
        )

    @property
    def name(self) -> str:
        """Display name: the explicit command name, else the command."""
        return self.command_name or self.command

    @property
    def n_runs(self) -> int:
        return len(self.raw_times)

    @property
    def n_outliers(self) -> int:
        return sum(1 for flagged in self.outliers if flagged)

    @property
    def all_succeeded(self) -> bool:
        return all(e.success for e in self.exit_codes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {
            "command": self.name,
            "mean": self.mean,
            "stddev": self.stddev,
            "median": self.median,
            "user": self.user_mean,
            "system": self.system_mean,
            "min": self.min,
            "max": self.max,
            "times": self.raw_times,
            "exit_codes": [e.code for e in self.exit_codes],
            "outliers": self.outliers,
        }
        if any(e.signal is not None for e in self.exit_codes):
            d["signals"] = [e.signal for e in self.exit_codes]
        if self.command_name:
            d["expression"] = self.command
        if self.parameter_values:
            d["parameters"] = self.parameter_values
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkResult:
        """Deserialize from a dict produced by ``to_dict``."""
        command = data.get("expression") or data["command"]
        command_name = data["command"] if data.get("expression") else None
        times = [float(t) for t in data.get("times", [])]
        codes = data.get("exit_codes", [])
        signals = data.get("signals") or [None] * len(codes)
        return cls(
            command=command,
            mean=float(data["mean"]),
            stddev=None if data.get("stddev") is None else float(data["stddev"]),
            median=float(data["median"]),
            user_mean=float(data.get("user", 0.0)),
            system_mean=float(data.get("system", 0.0)),
            min=float(data["min"]),
            max=float(data["max"]),
            raw_times=times,
            exit_codes=[ExitOutcome(code=c, signal=s) for c, s in zip(codes, signals)],
            parameter_values={k: str(v) for k, v in data.get("parameters", {}).items()},
            outliers=list(data.get("outliers", [False] * len(times))),
            command_name=command_name,
        )


# ---------------------------------------------------------------------------
# Run-level result
# ---------------------------------------------------------------------------


@dataclass
class CommandFailure:
    """A command whose benchmark was aborted."""

    command: str
    message: str


@dataclass
class BenchmarkRun:
    """Everything one invocation of the tool produced."""

    results: list[BenchmarkResult] = field(default_factory=list)
    failures: list[CommandFailure] = field(default_factory=list)
    shell_spawn_time: float = 0.0

    @property
    def succeeded(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# I/O functions
# ---------------------------------------------------------------------------


def results_to_json(results: Sequence[BenchmarkResult]) -> str:
    """Serialize results to the JSON export layout."""
    return json.dumps({"results": [r.to_dict() for r in results]}, indent=2) + "\n"


def load_results(path: Path) -> list[BenchmarkResult]:
    """Load results from a JSON export.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a shellbench JSON export.
    """
    if not path.exists():
        raise FileNotFoundError(f"No such results file: {path}")
    data = json.loads(path.read_text())
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise ValueError(f"{path} is not a shellbench JSON export")
    return [BenchmarkResult.from_dict(r) for r in data["results"]]
