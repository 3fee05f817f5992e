"""Benchmark options, shell selection, and profile loading.

Handles:
- The resolved option set for one invocation (``BenchOptions``).
- The shell used to spawn commands (``Shell``).
- Loading option profiles from YAML files.
- Validating the final options before any command is run.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shellbench.bench.errors import ConfigurationError

log = logging.getLogger("shellbench")

DEFAULT_MIN_RUNS = 10
DEFAULT_MIN_BENCHMARKING_TIME = 3.0
DEFAULT_OUTLIER_THRESHOLD = 3.5


# ---------------------------------------------------------------------------
# Shell selector
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Shell:
    """The shell executable and its "run this string" flag.

    An empty ``executable`` means no shell: commands are split with
    ``shlex`` and executed directly, and no calibration is needed.
    """

    executable: str = "sh"
    flag: str = "-c"

    @classmethod
    def default(cls) -> Shell:
        if os.name == "nt":
            return cls("cmd.exe", "/C")
        return cls()

    @classmethod
    def none(cls) -> Shell:
        return cls("", "")

    @classmethod
    def parse(cls, value: str) -> Shell:
        """Parse a ``--shell`` value such as ``bash`` or ``"zsh -c"``.

        ``none`` disables the shell.
        """
        value = value.strip()
        if not value:
            raise ConfigurationError("The shell name cannot be empty.")
        if value == "none":
            return cls.none()
        parts = value.split()
        if len(parts) == 1:
            flag = "/C" if parts[0].lower() in ("cmd", "cmd.exe") else "-c"
            return cls(parts[0], flag)
        return cls(parts[0], " ".join(parts[1:]))

    @property
    def enabled(self) -> bool:
        return bool(self.executable)

    def __str__(self) -> str:
        if not self.enabled:
            return "none"
        return f"{self.executable} {self.flag}"


# ---------------------------------------------------------------------------
# Output style
# ---------------------------------------------------------------------------


class OutputStyle(enum.Enum):
    """How much the presentation layer prints."""

    FULL = "full"  # colors, progress, warnings
    BASIC = "basic"  # no colors, no progress
    NO_WARNINGS = "nowarnings"  # like full, without warnings
    DISABLED = "none"  # nothing at all

    @property
    def colored(self) -> bool:
        return self in (OutputStyle.FULL, OutputStyle.NO_WARNINGS)

    @property
    def show_progress(self) -> bool:
        return self in (OutputStyle.FULL, OutputStyle.NO_WARNINGS)

    @property
    def show_warnings(self) -> bool:
        return self in (OutputStyle.FULL, OutputStyle.BASIC)


# ---------------------------------------------------------------------------
# BenchOptions
# ---------------------------------------------------------------------------


@dataclass
class BenchOptions:
    """Resolved options for one benchmark invocation."""

    # Iteration control
    warmup_count: int = 0
    min_runs: int = DEFAULT_MIN_RUNS
    max_runs: int | None = None
    runs: int | None = None  # exact count; overrides min/max
    min_benchmarking_time: float = DEFAULT_MIN_BENCHMARKING_TIME

    # Failure policy
    fail_on_error: bool = True
    warmup_failure_tolerance: float = 0.5  # fraction of warmup runs

    # Auxiliary commands
    preparation_commands: list[str] | None = None
    setup_command: str | None = None
    cleanup_command: str | None = None

    # Execution
    shell: Shell = field(default_factory=Shell.default)
    show_output: bool = False

    # Statistics
    outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD

    # Presentation
    output_style: OutputStyle = OutputStyle.FULL
    time_unit: str | None = None  # "s", "ms" or None for automatic

    def preparation_command_for(self, index: int) -> str | None:
        """Preparation command for the *index*-th benchmarked command.

        A single preparation command applies to every command; otherwise
        they are matched by position.
        """
        if not self.preparation_commands:
            return None
        if len(self.preparation_commands) == 1:
            return self.preparation_commands[0]
        return self.preparation_commands[index]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single option validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_options(
    options: BenchOptions,
    *,
    command_count: int | None = None,
) -> list[ValidationError]:
    """Validate benchmark options.

    Args:
        options: The options to check.
        command_count: Number of benchmarked commands, used to check
            the number of preparation commands.

    Returns:
        A list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if options.warmup_count < 0:
        errors.append(
            ValidationError(
                field="warmup_count",
                message=f"Warmup runs cannot be negative (got {options.warmup_count}).",
            )
        )

    if options.runs is not None:
        if options.runs < 1:
            errors.append(
                ValidationError(
                    field="runs",
                    message=f"Number of runs must be at least 1 (got {options.runs}).",
                )
            )
    else:
        if options.min_runs < 1:
            errors.append(
                ValidationError(
                    field="min_runs",
                    message=f"Minimum number of runs must be at least 1 (got {options.min_runs}).",
                )
            )
        if options.max_runs is not None and options.max_runs < options.min_runs:
            errors.append(
                ValidationError(
                    field="max_runs",
                    message=(
                        f"The minimum number of runs ({options.min_runs}) cannot be "
                        f"larger than the maximum number of runs ({options.max_runs})."
                    ),
                )
            )

    if options.min_benchmarking_time < 0:
        errors.append(
            ValidationError(
                field="min_benchmarking_time",
                message=(
                    "Minimum benchmarking time cannot be negative "
                    f"(got {options.min_benchmarking_time})."
                ),
            )
        )

    if not 0 <= options.warmup_failure_tolerance <= 1:
        errors.append(
            ValidationError(
                field="warmup_failure_tolerance",
                message="Warmup failure tolerance must be a fraction between 0 and 1.",
            )
        )

    if options.outlier_threshold <= 0:
        errors.append(
            ValidationError(
                field="outlier_threshold",
                message=f"Outlier threshold must be positive (got {options.outlier_threshold}).",
            )
        )

    if options.time_unit not in (None, "s", "ms"):
        errors.append(
            ValidationError(
                field="time_unit",
                message=f"Unknown time unit '{options.time_unit}' (expected 's' or 'ms').",
            )
        )

    prep = options.preparation_commands
    if prep and command_count is not None and len(prep) > 1 and len(prep) != command_count:
        errors.append(
            ValidationError(
                field="preparation_commands",
                message=(
                    "The '--prepare' option has to be provided just once or N times, "
                    "where N is the number of benchmark commands."
                ),
            )
        )

    if options.show_output and options.output_style.show_progress:
        errors.append(
            ValidationError(
                field="show_output",
                message="Command output will be interleaved with the progress display.",
                severity="warning",
            )
        )

    return errors


def check_options(options: BenchOptions, *, command_count: int | None = None) -> None:
    """Validate options, log warnings, and raise on fatal errors.

    Raises:
        ConfigurationError: If any error-severity problem was found.
    """
    errors = validate_options(options, command_count=command_count)
    fatal = [e for e in errors if e.severity == "error"]
    for w in errors:
        if w.severity == "warning":
            log.warning("Option warning: %s: %s", w.field, w.message)
    if fatal:
        if len(fatal) == 1:
            raise ConfigurationError(fatal[0].message)
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ConfigurationError("Invalid benchmark options:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        commands:
          - "sleep 0.1"
          - "sleep 0.2"
        warmup: 3
        min_runs: 20
        min_benchmarking_time: 5
        prepare: "sync"
        shell: "bash"
        ignore_failure: false

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    return data


def options_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchOptions:
    """Build BenchOptions from a parsed profile.

    CLI overrides take precedence over profile values.  Override keys
    are ``BenchOptions`` field names; ``None`` means "not given".
    """
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    def pick(key: str, profile_key: str, default: Any) -> Any:
        if key in cli:
            return cli[key]
        return profile_data.get(profile_key, default)

    prepare = profile_data.get("prepare")
    if isinstance(prepare, str):
        prepare = [prepare]

    ignore_failure = bool(profile_data.get("ignore_failure", False))

    max_runs = pick("max_runs", "max_runs", None)
    min_runs = pick("min_runs", "min_runs", None)
    if min_runs is None:
        # Only an explicit minimum can conflict with the maximum.
        min_runs = DEFAULT_MIN_RUNS
        if max_runs is not None and int(max_runs) < DEFAULT_MIN_RUNS:
            min_runs = int(max_runs)

    options = BenchOptions(
        warmup_count=int(pick("warmup_count", "warmup", 0)),
        min_runs=int(min_runs),
        max_runs=max_runs,
        runs=pick("runs", "runs", None),
        min_benchmarking_time=float(
            pick("min_benchmarking_time", "min_benchmarking_time", DEFAULT_MIN_BENCHMARKING_TIME)
        ),
        fail_on_error=pick("fail_on_error", "fail_on_error", not ignore_failure),
        preparation_commands=cli.get("preparation_commands") or prepare or None,
        setup_command=pick("setup_command", "setup", None),
        cleanup_command=pick("cleanup_command", "cleanup", None),
        show_output=bool(pick("show_output", "show_output", False)),
        time_unit=pick("time_unit", "time_unit", None),
    )

    if "shell" in cli:
        options.shell = cli["shell"]
    elif profile_data.get("shell"):
        options.shell = Shell.parse(str(profile_data["shell"]))

    if "output_style" in cli:
        options.output_style = cli["output_style"]
    elif profile_data.get("style"):
        try:
            options.output_style = OutputStyle(profile_data["style"])
        except ValueError as exc:
            raise ConfigurationError(f"Unknown output style '{profile_data['style']}'") from exc

    return options
