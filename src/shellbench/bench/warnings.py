"""Post-hoc diagnostics over a finished benchmark result.

Warnings are advisory: they never change the numbers in a result or
the exit status of the tool.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from shellbench.bench.results import BenchmarkResult
from shellbench.bench.stats import OUTLIER_THRESHOLD, modified_zscores
from shellbench.formatting import format_time

# Below this mean the shell calibration noise is of the same order as the
# measurement itself.
MIN_EXECUTION_TIME = 0.005


class WarningKind(enum.Enum):
    NON_ZERO_EXIT = "non_zero_exit"
    FAST_EXECUTION = "fast_execution"
    SLOW_INITIAL_RUN = "slow_initial_run"
    OUTLIERS_DETECTED = "outliers_detected"


@dataclass(frozen=True)
class BenchWarning:
    """One advisory message about a result."""

    kind: WarningKind
    message: str


def _outlier_advice(warmup_used: bool, prepare_used: bool) -> str:
    advice = []
    if not warmup_used:
        advice.append("use the '--warmup' option to fill caches before the actual benchmark")
    if not prepare_used:
        advice.append("use the '--prepare' option to clear caches before each timing run")
    if not advice:
        return ""
    return " It might help to " + " or ".join(advice) + "."


def check_warnings(
    result: BenchmarkResult,
    *,
    outlier_threshold: float = OUTLIER_THRESHOLD,
    outlier_fraction: float = 0.0,
    min_execution_time: float = MIN_EXECUTION_TIME,
    shell_enabled: bool = True,
    warmup_used: bool = False,
    prepare_used: bool = False,
) -> list[BenchWarning]:
    """Inspect *result* and return the applicable warnings.

    Args:
        result: A completed benchmark result.
        outlier_threshold: Modified z-score above which a run counts
            as an outlier.
        outlier_fraction: Warn when the excluded fraction of runs is
            above this value.
        min_execution_time: Warn when the mean is below this (seconds)
            and a shell is in use.
        shell_enabled: Whether shell overhead was subtracted.
        warmup_used: Whether warmup runs were configured (tunes advice).
        prepare_used: Whether a preparation command was configured.
    """
    warnings: list[BenchWarning] = []

    if not result.all_succeeded:
        warnings.append(
            BenchWarning(
                WarningKind.NON_ZERO_EXIT,
                "Ignoring non-zero exit code.",
            )
        )

    if shell_enabled and result.mean < min_execution_time:
        warnings.append(
            BenchWarning(
                WarningKind.FAST_EXECUTION,
                f"Command took less than {min_execution_time * 1000:.0f} ms to complete. "
                "Note that the results might be inaccurate because the shell startup "
                "time can not be calibrated much more precisely than this limit. "
                "You can try to use the '-N'/'--shell=none' option to disable the "
                "shell completely.",
            )
        )

    scores = modified_zscores(result.raw_times)
    if result.n_runs >= 2 and scores and scores[0] > outlier_threshold:
        warnings.append(
            BenchWarning(
                WarningKind.SLOW_INITIAL_RUN,
                "The first benchmarking run for this command was significantly slower "
                f"than the rest ({format_time(result.raw_times[0])}). This could be "
                "caused by (filesystem) caches that were not filled until after the "
                "first run." + _outlier_advice(warmup_used, prepare_used),
            )
        )
    elif result.n_runs and result.n_outliers / result.n_runs > outlier_fraction:
        warnings.append(
            BenchWarning(
                WarningKind.OUTLIERS_DETECTED,
                f"Statistical outliers were detected ({result.n_outliers} of "
                f"{result.n_runs} runs excluded). Consider re-running this benchmark "
                "on a quiet system without any interferences from other programs."
                + _outlier_advice(warmup_used, prepare_used),
            )
        )

    return warnings
