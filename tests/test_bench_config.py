"""Tests for shellbench.bench.config — options, shells and profiles."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from shellbench.bench.config import (
    BenchOptions,
    OutputStyle,
    Shell,
    check_options,
    load_profile,
    options_from_profile,
    validate_options,
)
from shellbench.bench.errors import ConfigurationError


# ---------------------------------------------------------------------------
# Shell
# ---------------------------------------------------------------------------


class TestShell(unittest.TestCase):
    def test_parse_single_word(self) -> None:
        self.assertEqual(Shell.parse("bash"), Shell("bash", "-c"))

    def test_parse_with_flags(self) -> None:
        self.assertEqual(Shell.parse("zsh --no-rcs -c"), Shell("zsh", "--no-rcs -c"))

    def test_parse_cmd(self) -> None:
        self.assertEqual(Shell.parse("cmd.exe"), Shell("cmd.exe", "/C"))

    def test_parse_none(self) -> None:
        shell = Shell.parse("none")
        self.assertFalse(shell.enabled)
        self.assertEqual(str(shell), "none")

    def test_parse_empty(self) -> None:
        with self.assertRaises(ConfigurationError):
            Shell.parse("  ")

    def test_str(self) -> None:
        self.assertEqual(str(Shell("bash", "-c")), "bash -c")


class TestOutputStyle(unittest.TestCase):
    def test_flags(self) -> None:
        self.assertTrue(OutputStyle.FULL.colored)
        self.assertTrue(OutputStyle.FULL.show_warnings)
        self.assertFalse(OutputStyle.BASIC.colored)
        self.assertTrue(OutputStyle.BASIC.show_warnings)
        self.assertTrue(OutputStyle.NO_WARNINGS.colored)
        self.assertFalse(OutputStyle.NO_WARNINGS.show_warnings)
        self.assertFalse(OutputStyle.DISABLED.show_warnings)

    def test_progress_shown_for_full_and_nowarnings(self) -> None:
        self.assertTrue(OutputStyle.FULL.show_progress)
        self.assertTrue(OutputStyle.NO_WARNINGS.show_progress)
        self.assertFalse(OutputStyle.BASIC.show_progress)
        self.assertFalse(OutputStyle.DISABLED.show_progress)


# ---------------------------------------------------------------------------
# BenchOptions
# ---------------------------------------------------------------------------


class TestBenchOptions(unittest.TestCase):
    def test_defaults(self) -> None:
        options = BenchOptions()
        self.assertEqual(options.warmup_count, 0)
        self.assertEqual(options.min_runs, 10)
        self.assertIsNone(options.max_runs)
        self.assertEqual(options.min_benchmarking_time, 3.0)
        self.assertTrue(options.fail_on_error)
        self.assertEqual(options.outlier_threshold, 3.5)

    def test_single_preparation_applies_to_all(self) -> None:
        options = BenchOptions(preparation_commands=["sync"])
        self.assertEqual(options.preparation_command_for(0), "sync")
        self.assertEqual(options.preparation_command_for(3), "sync")

    def test_preparation_by_position(self) -> None:
        options = BenchOptions(preparation_commands=["p0", "p1"])
        self.assertEqual(options.preparation_command_for(1), "p1")

    def test_no_preparation(self) -> None:
        self.assertIsNone(BenchOptions().preparation_command_for(0))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateOptions(unittest.TestCase):
    def _fields(self, options: BenchOptions, **kwargs: object) -> list[str]:
        return [
            e.field
            for e in validate_options(options, **kwargs)  # type: ignore[arg-type]
            if e.severity == "error"
        ]

    def test_defaults_valid(self) -> None:
        self.assertEqual(validate_options(BenchOptions()), [])

    def test_negative_warmup(self) -> None:
        self.assertEqual(self._fields(BenchOptions(warmup_count=-1)), ["warmup_count"])

    def test_zero_runs(self) -> None:
        self.assertEqual(self._fields(BenchOptions(runs=0)), ["runs"])

    def test_min_greater_than_max(self) -> None:
        errors = validate_options(BenchOptions(min_runs=10, max_runs=3))
        self.assertEqual(len(errors), 1)
        self.assertIn("cannot be larger than the maximum", errors[0].message)

    def test_exact_runs_skip_range_check(self) -> None:
        self.assertEqual(self._fields(BenchOptions(runs=3, min_runs=10, max_runs=2)), [])

    def test_negative_min_time(self) -> None:
        self.assertEqual(
            self._fields(BenchOptions(min_benchmarking_time=-1.0)), ["min_benchmarking_time"]
        )

    def test_bad_threshold(self) -> None:
        self.assertEqual(self._fields(BenchOptions(outlier_threshold=0)), ["outlier_threshold"])

    def test_bad_time_unit(self) -> None:
        self.assertEqual(self._fields(BenchOptions(time_unit="us")), ["time_unit"])

    def test_preparation_count_mismatch(self) -> None:
        options = BenchOptions(preparation_commands=["a", "b"])
        self.assertEqual(self._fields(options, command_count=3), ["preparation_commands"])
        self.assertEqual(self._fields(options, command_count=2), [])

    def test_single_preparation_any_count(self) -> None:
        options = BenchOptions(preparation_commands=["a"])
        self.assertEqual(self._fields(options, command_count=5), [])

    def test_show_output_warning(self) -> None:
        errors = validate_options(BenchOptions(show_output=True))
        self.assertEqual([e.severity for e in errors], ["warning"])


class TestCheckOptions(unittest.TestCase):
    def test_single_error_message(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            check_options(BenchOptions(preparation_commands=["a", "b"]), command_count=3)
        self.assertEqual(
            str(ctx.exception),
            "The '--prepare' option has to be provided just once or N times, "
            "where N is the number of benchmark commands.",
        )

    def test_multiple_errors_combined(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            check_options(BenchOptions(warmup_count=-1, runs=0))
        self.assertIn("warmup_count", str(ctx.exception))
        self.assertIn("runs", str(ctx.exception))

    def test_warning_logged_not_raised(self) -> None:
        with self.assertLogs("shellbench", level="WARNING") as logs:
            check_options(BenchOptions(show_output=True))
        self.assertIn("show_output", logs.output[0])


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestLoadProfile(unittest.TestCase):
    def test_load(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bench.yaml"
            path.write_text(
                "commands:\n  - sleep 0.1\n  - sleep 0.2\nwarmup: 3\nprepare: sync\n"
            )
            data = load_profile(path)
        self.assertEqual(data["commands"], ["sleep 0.1", "sleep 0.2"])
        self.assertEqual(data["warmup"], 3)

    def test_empty_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bench.yaml"
            path.write_text("")
            self.assertEqual(load_profile(path), {})

    def test_not_a_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bench.yaml"
            path.write_text("- a\n- b\n")
            with self.assertRaises(ConfigurationError):
                load_profile(path)

    def test_missing(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_profile(Path("/nonexistent/bench.yaml"))


class TestOptionsFromProfile(unittest.TestCase):
    def test_profile_values(self) -> None:
        options = options_from_profile(
            {
                "warmup": 3,
                "min_runs": 20,
                "max_runs": 50,
                "min_benchmarking_time": 5,
                "prepare": "sync",
                "setup": "make",
                "cleanup": "make clean",
                "shell": "bash",
                "style": "basic",
                "ignore_failure": True,
                "time_unit": "ms",
            }
        )
        self.assertEqual(options.warmup_count, 3)
        self.assertEqual(options.min_runs, 20)
        self.assertEqual(options.max_runs, 50)
        self.assertEqual(options.min_benchmarking_time, 5.0)
        self.assertEqual(options.preparation_commands, ["sync"])
        self.assertEqual(options.setup_command, "make")
        self.assertEqual(options.cleanup_command, "make clean")
        self.assertEqual(options.shell, Shell("bash", "-c"))
        self.assertIs(options.output_style, OutputStyle.BASIC)
        self.assertFalse(options.fail_on_error)
        self.assertEqual(options.time_unit, "ms")

    def test_cli_overrides_profile(self) -> None:
        options = options_from_profile(
            {"warmup": 3, "prepare": ["a", "b"], "style": "basic"},
            cli_overrides={
                "warmup_count": 1,
                "preparation_commands": ["c"],
                "output_style": OutputStyle.DISABLED,
                "shell": Shell.none(),
            },
        )
        self.assertEqual(options.warmup_count, 1)
        self.assertEqual(options.preparation_commands, ["c"])
        self.assertIs(options.output_style, OutputStyle.DISABLED)
        self.assertFalse(options.shell.enabled)

    def test_none_overrides_ignored(self) -> None:
        options = options_from_profile({"min_runs": 4}, cli_overrides={"min_runs": None})
        self.assertEqual(options.min_runs, 4)

    def test_empty_profile_gives_defaults(self) -> None:
        options = options_from_profile({})
        self.assertEqual(options.min_runs, 10)
        self.assertIsNone(options.preparation_commands)
        self.assertTrue(options.fail_on_error)

    def test_max_runs_lowers_default_min_runs(self) -> None:
        options = options_from_profile({}, cli_overrides={"max_runs": 3})
        self.assertEqual(options.min_runs, 3)
        self.assertEqual(options.max_runs, 3)
        self.assertEqual(validate_options(options), [])

    def test_max_runs_from_profile_lowers_default_min_runs(self) -> None:
        options = options_from_profile({"max_runs": 2})
        self.assertEqual(options.min_runs, 2)

    def test_explicit_min_runs_kept_above_max(self) -> None:
        options = options_from_profile({"min_runs": 5}, cli_overrides={"max_runs": 3})
        self.assertEqual(options.min_runs, 5)
        fields = [e.field for e in validate_options(options)]
        self.assertIn("max_runs", fields)

    def test_large_max_runs_keeps_default_min(self) -> None:
        options = options_from_profile({}, cli_overrides={"max_runs": 50})
        self.assertEqual(options.min_runs, 10)

    def test_unknown_style(self) -> None:
        with self.assertRaises(ConfigurationError):
            options_from_profile({"style": "fancy"})


if __name__ == "__main__":
    unittest.main()
