"""Shell spawn overhead calibration.

Every benchmarked command is started through a shell, and the shell's
own startup latency is not part of the command's cost.  The calibrator
times the shell running an empty command and the runner subtracts that
mean from every recorded sample.
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass

from shellbench.bench.config import Shell
from shellbench.bench.errors import CalibrationError, ExecError
from shellbench.bench.stats import subtract_overhead
from shellbench.bench.timing import CommandExecutor, TimingSample

log = logging.getLogger("shellbench")

CALIBRATION_RUNS = 50


@dataclass(frozen=True)
class CalibrationEstimate:
    """Mean cost of spawning the shell with a no-op command."""

    shell_spawn_mean: float
    user_mean: float = 0.0
    system_mean: float = 0.0

    @classmethod
    def zero(cls) -> CalibrationEstimate:
        """Estimate used when commands are not run through a shell."""
        return cls(shell_spawn_mean=0.0)

    def adjust(self, sample: TimingSample) -> TimingSample:
        """Return *sample* with the shell overhead removed from each time."""
        return TimingSample(
            wall_time=subtract_overhead(sample.wall_time, self.shell_spawn_mean),
            user_time=subtract_overhead(sample.user_time, self.user_mean),
            system_time=subtract_overhead(sample.system_time, self.system_mean),
            exit_status=sample.exit_status,
        )


def calibrate(
    executor: CommandExecutor,
    *,
    shell: Shell | None = None,
    count: int = CALIBRATION_RUNS,
) -> CalibrationEstimate:
    """Measure the mean time of running an empty command *count* times.

    Args:
        executor: Executor bound to the shell being calibrated.
        shell: The shell, used for the error message and to skip
            calibration when no shell is in use.
        count: Number of no-op runs to average.

    Raises:
        CalibrationError: If the shell cannot be spawned.
    """
    if shell is not None and not shell.enabled:
        log.debug("No shell in use, skipping calibration")
        return CalibrationEstimate.zero()
    if count < 1:
        raise ValueError(f"Calibration needs at least one run (got {count})")

    samples: list[TimingSample] = []
    for _ in range(count):
        try:
            samples.append(executor.run(""))
        except ExecError as exc:
            shell_name = shell.executable if shell is not None else "the shell"
            raise CalibrationError(
                f"Could not measure shell execution time. Make sure you can run '{shell_name}'."
            ) from exc

    estimate = CalibrationEstimate(
        shell_spawn_mean=statistics.fmean(s.wall_time for s in samples),
        user_mean=statistics.fmean(s.user_time for s in samples),
        system_mean=statistics.fmean(s.system_time for s in samples),
    )
    log.debug(
        "Shell spawn time: %.3f ms (user %.3f ms, system %.3f ms) over %d runs",
        estimate.shell_spawn_mean * 1000,
        estimate.user_mean * 1000,
        estimate.system_mean * 1000,
        count,
    )
    return estimate
