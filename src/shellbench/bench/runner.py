"""Benchmark execution engine.

Orchestrates, for each command in input order:
1. Setup command (once)
2. Warmup runs (untimed, each preceded by the preparation command)
3. Timed runs, with the run count planned from the first run
4. Cleanup command (once, even if the benchmark failed)
5. Aggregation into a BenchmarkResult

The shell spawn overhead is calibrated once per invocation by
``run_benchmarks`` and handed to every ``BenchmarkRunner`` explicitly.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

from shellbench.bench.calibration import CalibrationEstimate, calibrate
from shellbench.bench.commands import Command
from shellbench.bench.config import BenchOptions, check_options
from shellbench.bench.errors import (
    BenchmarkInterrupted,
    CommandFailedError,
    ExecError,
    SetupFailedError,
)
from shellbench.bench.results import BenchmarkResult, BenchmarkRun, CommandFailure
from shellbench.bench.timing import CommandExecutor, ShellExecutor, TimingSample

log = logging.getLogger("shellbench")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class BenchProgress:
    """Progress info passed to the callback."""

    phase: str  # "start", "setup", "warmup", "measure", "cleanup", "done", "failed"
    command: str
    run: int = 0  # 1-based
    total_runs: int = 0
    commands_done: int = 0
    commands_total: int = 1
    wall_time_s: float = 0.0
    estimate_s: float = 0.0  # running mean of the timed runs so far
    result: BenchmarkResult | None = None
    detail: str = ""


ProgressCallback = Callable[[BenchProgress], None]


# ---------------------------------------------------------------------------
# Run count planning
# ---------------------------------------------------------------------------


def plan_run_count(options: BenchOptions, per_run_time: float) -> int:
    """Decide how many timed runs a command gets.

    An explicit ``runs`` wins.  Otherwise enough runs to fill
    ``min_benchmarking_time`` are planned, at least ``min_runs`` and at
    most ``max_runs``.  A zero per-run estimate falls back to
    ``min_runs``.

    Args:
        options: Iteration options.
        per_run_time: Measured cost of one run (timed run plus
            preparation), in seconds.
    """
    if options.runs is not None:
        return options.runs

    if per_run_time > 0:
        runs_in_min_time = math.ceil(options.min_benchmarking_time / per_run_time)
    else:
        runs_in_min_time = 0

    count = max(options.min_runs, runs_in_min_time)
    if options.max_runs is not None:
        count = min(count, options.max_runs)
    return max(count, 1)


# ---------------------------------------------------------------------------
# BenchmarkRunner
# ---------------------------------------------------------------------------


class BenchmarkRunner:
    """Benchmarks one command at a time.

    Usage::

        executor = ShellExecutor(options.shell)
        calibration = calibrate(executor, shell=options.shell)
        runner = BenchmarkRunner(options, executor, calibration)
        result = runner.run(Command("sleep 0.1"))
    """

    def __init__(
        self,
        options: BenchOptions,
        executor: CommandExecutor,
        calibration: CalibrationEstimate,
        *,
        progress_callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.options = options
        self.executor = executor
        self.calibration = calibration
        self.progress: Any = progress_callback or self._default_progress
        self.cancel_event = cancel_event

    def run(
        self,
        command: Command,
        *,
        index: int = 0,
        total: int = 1,
    ) -> BenchmarkResult:
        """Benchmark *command*.

        Args:
            command: The command to benchmark.
            index: Position of the command in the command set; selects
                the matching preparation command.
            total: Size of the command set (for progress reporting).

        Raises:
            SetupFailedError: If the setup command fails.
            CommandFailedError: If the command (with ``fail_on_error``)
                or its preparation command exits unsuccessfully.
            BenchmarkInterrupted: If cancellation was requested.
            SpawnFailedError: If a process cannot be started at all.
        """
        shell_command = command.shell_command
        label = command.display_name or shell_command
        prepare = self.options.preparation_command_for(index)

        def report(phase: str, **kwargs: Any) -> None:
            self.progress(
                BenchProgress(
                    phase=phase,
                    command=label,
                    commands_done=index,
                    commands_total=total,
                    **kwargs,
                )
            )

        self.check_cancelled()
        self._run_setup(report)

        try:
            self._run_warmup(shell_command, prepare, report)
            samples = self._run_timed(shell_command, prepare, report)
        finally:
            self._run_cleanup(report)

        result = BenchmarkResult.from_samples(
            shell_command,
            samples,
            parameter_values=command.parameters,
            command_name=command.display_name,
            outlier_threshold=self.options.outlier_threshold,
        )
        report("done", run=len(samples), total_runs=len(samples), result=result)
        return result

    # -- phases -------------------------------------------------------------

    def _run_setup(self, report: Callable[..., None]) -> None:
        setup = self.options.setup_command
        if not setup:
            return
        report("setup", detail=setup)
        try:
            sample = self.executor.run(setup)
        except ExecError as exc:
            raise SetupFailedError(f"The setup command could not be run: {exc}") from exc
        if not sample.exit_status.success:
            raise SetupFailedError(
                f"The setup command '{setup}' terminated with "
                f"{sample.exit_status.describe()}."
            )

    def _run_preparation(self, prepare: str | None) -> float:
        """Run the preparation command, returning its wall time."""
        if not prepare:
            return 0.0
        sample = self.executor.run(prepare)
        if not sample.exit_status.success:
            raise CommandFailedError(prepare, sample.exit_status, phase="preparation")
        return sample.wall_time

    def _run_warmup(
        self,
        shell_command: str,
        prepare: str | None,
        report: Callable[..., None],
    ) -> None:
        count = self.options.warmup_count
        if count <= 0:
            return
        log.debug("Warming up '%s' with %d runs", shell_command, count)

        allowed_failures = int(self.options.warmup_failure_tolerance * count)
        failures = 0
        for i in range(count):
            self.check_cancelled()
            self._run_preparation(prepare)
            sample = self.executor.run(shell_command)
            if not sample.exit_status.success:
                failures += 1
                log.debug("Warmup run %d of '%s' failed", i + 1, shell_command)
                if self.options.fail_on_error and failures > allowed_failures:
                    raise CommandFailedError(shell_command, sample.exit_status, phase="warmup")
            report("warmup", run=i + 1, total_runs=count, wall_time_s=sample.wall_time)

    def _run_timed(
        self,
        shell_command: str,
        prepare: str | None,
        report: Callable[..., None],
    ) -> list[TimingSample]:
        samples: list[TimingSample] = []
        total_time = 0.0

        def timed_step(run: int, planned: int) -> float:
            nonlocal total_time
            self.check_cancelled()
            prep_time = self._run_preparation(prepare)
            sample = self.calibration.adjust(self.executor.run(shell_command))
            if not sample.exit_status.success and self.options.fail_on_error:
                raise CommandFailedError(shell_command, sample.exit_status)
            samples.append(sample)
            total_time += sample.wall_time
            report(
                "measure",
                run=run,
                total_runs=planned,
                wall_time_s=sample.wall_time,
                estimate_s=total_time / len(samples),
            )
            return sample.wall_time + prep_time

        # The first run is timed like any other and also sizes the loop.
        first_cost = timed_step(1, self.options.runs or 0)
        planned = plan_run_count(self.options, first_cost)
        log.debug(
            "Planned %d timed runs for '%s' (first run %.6f s)",
            planned,
            shell_command,
            first_cost,
        )

        for run in range(2, planned + 1):
            timed_step(run, planned)

        return samples

    def _run_cleanup(self, report: Callable[..., None]) -> None:
        cleanup = self.options.cleanup_command
        if not cleanup:
            return
        report("cleanup", detail=cleanup)
        try:
            sample = self.executor.run(cleanup)
        except ExecError as exc:
            log.warning("The cleanup command '%s' could not be run: %s", cleanup, exc)
            return
        if not sample.exit_status.success:
            log.warning(
                "The cleanup command '%s' terminated with %s.",
                cleanup,
                sample.exit_status.describe(),
            )

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise BenchmarkInterrupted("Benchmark interrupted.")

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log at DEBUG."""
        if progress.phase in ("warmup", "measure"):
            marker = "W" if progress.phase == "warmup" else "M"
            log.debug(
                "  [%d/%d] %s %s%d/%d %.6fs",
                progress.commands_done + 1,
                progress.commands_total,
                progress.command,
                marker,
                progress.run,
                progress.total_runs,
                progress.wall_time_s,
            )
        else:
            log.debug("  %s: %s %s", progress.phase, progress.command, progress.detail)


# ---------------------------------------------------------------------------
# Top-level orchestration
# ---------------------------------------------------------------------------


class ResultSink(Protocol):
    """Anything that accepts the finished results after each command."""

    def write_results(self, results: Sequence[BenchmarkResult]) -> None: ...


def run_benchmarks(
    commands: Sequence[Command],
    options: BenchOptions,
    *,
    executor: CommandExecutor | None = None,
    export_manager: ResultSink | None = None,
    progress_callback: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> BenchmarkRun:
    """Benchmark every command in order.

    Options are validated before anything runs.  The shell overhead is
    calibrated once.  A ``CommandFailedError`` only drops that command
    from the results; every other error aborts the whole run.

    Args:
        commands: Commands to benchmark, in order.
        options: Benchmark options.
        executor: Process executor (a ``ShellExecutor`` by default).
        export_manager: Receives all finished results after each
            command and once more at the end.
        progress_callback: Receives ``BenchProgress`` updates.  A
            ``"failed"`` update carries the error message in ``detail``.
        cancel_event: When set, stops before the next run or command.

    Returns:
        BenchmarkRun with results and failures in input order.

    Raises:
        ConfigurationError: On invalid options (before anything runs),
            failed setup, or failed calibration.
        SpawnFailedError: If a command cannot be started.
        BenchmarkInterrupted: If cancellation was requested.
    """
    check_options(options, command_count=len(commands))

    if executor is None:
        executor = ShellExecutor(options.shell, show_output=options.show_output)
    calibration = calibrate(executor, shell=options.shell)

    runner = BenchmarkRunner(
        options,
        executor,
        calibration,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
    )
    progress: Any = runner.progress
    run = BenchmarkRun(shell_spawn_time=calibration.shell_spawn_mean)

    for idx, command in enumerate(commands):
        runner.check_cancelled()
        label = command.display_name or command.shell_command
        progress(
            BenchProgress(
                phase="start",
                command=label,
                commands_done=idx,
                commands_total=len(commands),
            )
        )
        try:
            result = runner.run(command, index=idx, total=len(commands))
        except CommandFailedError as exc:
            log.debug("Benchmark of '%s' aborted: %s", label, exc)
            run.failures.append(CommandFailure(command=label, message=str(exc)))
            progress(
                BenchProgress(
                    phase="failed",
                    command=label,
                    commands_done=idx,
                    commands_total=len(commands),
                    detail=str(exc),
                )
            )
            continue

        run.results.append(result)
        if export_manager is not None:
            export_manager.write_results(run.results)

    if export_manager is not None:
        export_manager.write_results(run.results)

    return run
