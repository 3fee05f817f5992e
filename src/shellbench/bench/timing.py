"""Timing capture for single command executions.

Measures wall-clock time with ``time.perf_counter`` and user/system CPU
time of the child from ``resource.getrusage(RUSAGE_CHILDREN)`` deltas.
Commands are spawned through the configured shell, or split with
``shlex`` and run directly when the shell is disabled.
"""

from __future__ import annotations

import logging
import resource
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Protocol

from shellbench.bench.config import Shell
from shellbench.bench.errors import CommandInterruptedError, SpawnFailedError

log = logging.getLogger("shellbench")


# ---------------------------------------------------------------------------
# ExitOutcome / TimingSample
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExitOutcome:
    """How a process ended: an exit code, or the signal that killed it."""

    code: int | None
    signal: int | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> ExitOutcome:
        # subprocess reports death-by-signal as a negative return code.
        if returncode < 0:
            return cls(code=None, signal=-returncode)
        return cls(code=returncode)

    @property
    def success(self) -> bool:
        return self.code == 0

    def describe(self) -> str:
        if self.signal is not None:
            try:
                name = signal.Signals(self.signal).name
            except ValueError:
                name = f"SIG{self.signal}"
            return f"signal {name}"
        return f"non-zero exit code: {self.code}"


@dataclass(frozen=True)
class TimingSample:
    """Timing of one executed run."""

    wall_time: float
    user_time: float
    system_time: float
    exit_status: ExitOutcome


# ---------------------------------------------------------------------------
# Core timing implementation
# ---------------------------------------------------------------------------


def build_argv(command: str, shell: Shell) -> list[str]:
    """Build the argument vector that runs *command* under *shell*."""
    if shell.enabled:
        return [shell.executable, shell.flag, command]
    argv = shlex.split(command)
    if not argv:
        raise SpawnFailedError(command, "empty command (no shell to run it)")
    return argv


def run_timed(
    command: str,
    *,
    shell: Shell,
    show_output: bool = False,
) -> TimingSample:
    """Execute a command once and capture its timing.

    Args:
        command: The command string to execute.
        shell: The shell used to interpret *command*.
        show_output: Forward the child's stdout/stderr to the terminal
            instead of discarding them.

    Returns:
        TimingSample with wall, user and system time and the exit status.

    Raises:
        SpawnFailedError: If the process could not be created.
        CommandInterruptedError: If the child was killed by SIGINT.
    """
    argv = build_argv(command, shell)
    stream = None if show_output else subprocess.DEVNULL

    # Snapshot children's resource usage before.
    pre_rusage = resource.getrusage(resource.RUSAGE_CHILDREN)
    wall_start = time.perf_counter()

    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=stream,
            stderr=stream,
        )
    except OSError as exc:
        raise SpawnFailedError(command, exc.strerror or str(exc)) from exc

    returncode = proc.wait()
    wall_time = time.perf_counter() - wall_start

    # Snapshot children's resource usage after.
    post_rusage = resource.getrusage(resource.RUSAGE_CHILDREN)

    if returncode == -signal.SIGINT:
        raise CommandInterruptedError(command)

    return TimingSample(
        wall_time=wall_time,
        user_time=max(post_rusage.ru_utime - pre_rusage.ru_utime, 0.0),
        system_time=max(post_rusage.ru_stime - pre_rusage.ru_stime, 0.0),
        exit_status=ExitOutcome.from_returncode(returncode),
    )


# ---------------------------------------------------------------------------
# Injectable executor
# ---------------------------------------------------------------------------


class CommandExecutor(Protocol):
    """Anything that can run a command and time it."""

    def run(self, command: str) -> TimingSample: ...


class ShellExecutor:
    """Runs commands through a shell with ``run_timed``.

    Usage::

        executor = ShellExecutor(Shell.default())
        sample = executor.run("sleep 0.1")
    """

    def __init__(self, shell: Shell, *, show_output: bool = False) -> None:
        self.shell = shell
        self.show_output = show_output

    def run(self, command: str) -> TimingSample:
        return run_timed(command, shell=self.shell, show_output=self.show_output)
