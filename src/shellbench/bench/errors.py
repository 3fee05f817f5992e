"""Exception hierarchy for the benchmark engine.

Fatal errors (``ConfigurationError`` and ``SpawnFailedError``) abort the
whole invocation.  ``CommandFailedError`` only aborts the benchmark of
the command that raised it; the orchestrator moves on to the next one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shellbench.bench.timing import ExitOutcome


class BenchError(Exception):
    """Base class for all shellbench errors."""


class ConfigurationError(BenchError):
    """Invalid options or command set.  Fatal."""


class SetupFailedError(ConfigurationError):
    """The setup command could not run or exited non-zero."""


class CalibrationError(ConfigurationError):
    """The shell could not be spawned while measuring its overhead."""


class ExecError(BenchError):
    """A process could not be executed to completion."""


class SpawnFailedError(ExecError):
    """The shell (or the command itself) could not be started."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to run '{command}': {reason}")


class CommandInterruptedError(ExecError):
    """The child process was terminated by SIGINT."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command '{command}' was interrupted")


class CommandFailedError(BenchError):
    """A benchmarked (or preparation) command exited unsuccessfully."""

    def __init__(
        self,
        command: str,
        exit_status: ExitOutcome,
        *,
        phase: str = "benchmark",
    ) -> None:
        self.command = command
        self.exit_status = exit_status
        self.phase = phase
        if phase == "preparation":
            msg = (
                f"The preparation command '{command}' terminated with "
                f"{exit_status.describe()}. Append ' || true' to the command "
                f"if you are sure that this can be ignored."
            )
        else:
            msg = (
                f"Command '{command}' terminated with {exit_status.describe()}. "
                f"Use the '-i'/'--ignore-failure' option if you want to ignore "
                f"this. Alternatively, use the '--show-output' option to debug "
                f"what went wrong."
            )
        super().__init__(msg)


class BenchmarkInterrupted(BenchError):
    """Cancellation was requested before the next run could start."""


class NoSamplesError(BenchError):
    """No timed sample was collected for a command."""
