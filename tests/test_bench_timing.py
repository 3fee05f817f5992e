"""Tests for shellbench.bench.timing — timing capture for single runs."""

from __future__ import annotations

import signal
import tempfile
import unittest
from pathlib import Path

from shellbench.bench.config import Shell
from shellbench.bench.errors import SpawnFailedError
from shellbench.bench.timing import (
    ExitOutcome,
    ShellExecutor,
    build_argv,
    run_timed,
)


# ---------------------------------------------------------------------------
# ExitOutcome
# ---------------------------------------------------------------------------


class TestExitOutcome(unittest.TestCase):
    def test_success(self) -> None:
        self.assertTrue(ExitOutcome.from_returncode(0).success)
        self.assertFalse(ExitOutcome.from_returncode(3).success)

    def test_negative_returncode_is_signal(self) -> None:
        outcome = ExitOutcome.from_returncode(-signal.SIGKILL)
        self.assertIsNone(outcome.code)
        self.assertEqual(outcome.signal, signal.SIGKILL)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.describe(), "signal SIGKILL")

    def test_describe_exit_code(self) -> None:
        self.assertEqual(ExitOutcome(code=2).describe(), "non-zero exit code: 2")


# ---------------------------------------------------------------------------
# build_argv
# ---------------------------------------------------------------------------


class TestBuildArgv(unittest.TestCase):
    def test_with_shell(self) -> None:
        self.assertEqual(
            build_argv("echo hi | wc -c", Shell("bash", "-c")),
            ["bash", "-c", "echo hi | wc -c"],
        )

    def test_without_shell_splits(self) -> None:
        self.assertEqual(
            build_argv("grep -r 'foo bar' .", Shell.none()),
            ["grep", "-r", "foo bar", "."],
        )

    def test_without_shell_empty_command(self) -> None:
        with self.assertRaises(SpawnFailedError):
            build_argv("   ", Shell.none())


# ---------------------------------------------------------------------------
# run_timed with real processes
# ---------------------------------------------------------------------------


class TestRunTimed(unittest.TestCase):
    """Tests that spawn real ``sh`` processes."""

    def test_true_succeeds(self) -> None:
        sample = run_timed("true", shell=Shell("sh", "-c"))
        self.assertTrue(sample.exit_status.success)
        self.assertGreater(sample.wall_time, 0.0)
        self.assertGreaterEqual(sample.user_time, 0.0)
        self.assertGreaterEqual(sample.system_time, 0.0)

    def test_exit_code_captured(self) -> None:
        sample = run_timed("exit 3", shell=Shell("sh", "-c"))
        self.assertEqual(sample.exit_status.code, 3)
        self.assertFalse(sample.exit_status.success)

    def test_sleep_measured(self) -> None:
        sample = run_timed("sleep 0.1", shell=Shell("sh", "-c"))
        self.assertGreaterEqual(sample.wall_time, 0.09)
        self.assertLess(sample.wall_time, 5.0)

    def test_empty_command_through_shell(self) -> None:
        sample = run_timed("", shell=Shell("sh", "-c"))
        self.assertTrue(sample.exit_status.success)

    def test_without_shell(self) -> None:
        sample = run_timed("true", shell=Shell.none())
        self.assertTrue(sample.exit_status.success)

    def test_killed_by_signal(self) -> None:
        sample = run_timed("kill -KILL $$", shell=Shell("sh", "-c"))
        self.assertEqual(sample.exit_status.signal, signal.SIGKILL)
        self.assertFalse(sample.exit_status.success)

    def test_missing_shell_raises(self) -> None:
        with self.assertRaises(SpawnFailedError) as ctx:
            run_timed("true", shell=Shell("/nonexistent/shell", "-c"))
        self.assertIn("true", str(ctx.exception))

    def test_missing_program_without_shell_raises(self) -> None:
        with self.assertRaises(SpawnFailedError):
            run_timed("/nonexistent/program --flag", shell=Shell.none())

    def test_output_discarded_by_default(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            marker = Path(tmpdir) / "ran"
            sample = run_timed(f"echo hello && touch {marker}", shell=Shell("sh", "-c"))
            self.assertTrue(sample.exit_status.success)
            self.assertTrue(marker.exists())


class TestShellExecutor(unittest.TestCase):
    def test_run(self) -> None:
        executor = ShellExecutor(Shell("sh", "-c"))
        sample = executor.run("exit 0")
        self.assertTrue(sample.exit_status.success)


if __name__ == "__main__":
    unittest.main()
