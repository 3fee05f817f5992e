"""Command-line interface for shellbench.

Subcommands:
    shellbench run       Benchmark one or more shell commands
    shellbench show      Display results saved with --export-json
    shellbench export    Convert saved results to another format
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from shellbench import __version__
from shellbench.bench.config import OutputStyle, Shell
from shellbench.bench.errors import (
    BenchError,
    BenchmarkInterrupted,
    CommandInterruptedError,
    ConfigurationError,
)
from shellbench.bench.export import EXPORT_FORMATS
from shellbench.bench.runner import BenchProgress
from shellbench.logging import get_logger, setup_logging

log = get_logger("cli")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """shellbench — benchmark shell commands with calibrated statistics."""


# ---------------------------------------------------------------------------
# Progress / live output
# ---------------------------------------------------------------------------


class _LiveOutput:
    """Progress callback that prints results as each command finishes."""

    def __init__(
        self,
        style: OutputStyle,
        *,
        time_unit: str | None,
        warning_kwargs: dict[str, object],
    ) -> None:
        self.style = style
        self.time_unit = time_unit
        self.warning_kwargs = warning_kwargs
        self.show_progress = style.show_progress and sys.stderr.isatty()
        self._progress_shown = False

    def __call__(self, progress: BenchProgress) -> None:
        from shellbench.bench.display import (
            format_failure,
            format_header,
            format_result,
            format_warnings,
        )
        from shellbench.bench.warnings import check_warnings

        if self.style is OutputStyle.DISABLED:
            return
        colored = self.style.colored

        if progress.phase == "start":
            click.echo(format_header(progress.commands_done, progress.command, colored=colored))
        elif progress.phase in ("warmup", "measure") and self.show_progress:
            self._draw(progress)
        elif progress.phase == "done" and progress.result is not None:
            self._clear()
            click.echo(format_result(progress.result, time_unit=self.time_unit, colored=colored))
            if self.style.show_warnings:
                warnings = check_warnings(progress.result, **self.warning_kwargs)  # type: ignore[arg-type]
                if warnings:
                    click.echo(format_warnings(warnings, colored=colored))
            click.echo()
        elif progress.phase == "failed":
            self._clear()
            click.echo(format_failure(progress.detail, colored=colored), err=True)
            click.echo()

    def _draw(self, progress: BenchProgress) -> None:
        from shellbench.formatting import format_time

        if progress.phase == "warmup":
            text = f"  Performing warmup runs {progress.run}/{progress.total_runs}"
        else:
            total = f"/{progress.total_runs}" if progress.total_runs else ""
            text = (
                f"  Current estimate: {format_time(progress.estimate_s, self.time_unit)}"
                f"  ({progress.run}{total})"
            )
        click.echo(f"\r\x1b[K{text}", nl=False, err=True)
        self._progress_shown = True

    def _clear(self) -> None:
        if self._progress_shown:
            click.echo("\r\x1b[K", nl=False, err=True)
            self._progress_shown = False


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.argument("commands", nargs=-1)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML profile with commands and options.",
)
@click.option("-w", "--warmup", type=int, default=None, help="Warmup runs (default: 0).")
@click.option(
    "-m", "--min-runs", type=int, default=None, help="Minimum number of runs (default: 10)."
)
@click.option("-M", "--max-runs", type=int, default=None, help="Maximum number of runs.")
@click.option("-r", "--runs", type=int, default=None, help="Exact number of runs.")
@click.option(
    "--min-benchmarking-time",
    type=float,
    default=None,
    help="Minimum total measured time per command in seconds (default: 3).",
)
@click.option(
    "-p",
    "--prepare",
    multiple=True,
    help="Run before each timing run (once, or once per command).",
)
@click.option("-s", "--setup", default=None, help="Run once before each command's benchmark.")
@click.option("-c", "--cleanup", default=None, help="Run once after each command's benchmark.")
@click.option(
    "-i",
    "--ignore-failure",
    is_flag=True,
    default=False,
    help="Ignore non-zero exit codes of the benchmarked commands.",
)
@click.option("--show-output", is_flag=True, default=False, help="Print command output.")
@click.option("-S", "--shell", "shell_name", default=None, help="Shell to use (or 'none').")
@click.option("-N", "no_shell", is_flag=True, default=False, help="Run without a shell.")
@click.option(
    "--style",
    type=click.Choice([s.value for s in OutputStyle]),
    default=None,
    help="Output style.",
)
@click.option("-u", "--time-unit", type=click.Choice(["ms", "s"]), default=None)
@click.option(
    "-P",
    "--parameter-scan",
    nargs=3,
    type=str,
    default=None,
    metavar="NAME MIN MAX",
    help="Benchmark a numeric range of values for {NAME}.",
)
@click.option(
    "-D", "--parameter-step-size", default=None, help="Step size for --parameter-scan."
)
@click.option(
    "-L",
    "--parameter-list",
    nargs=2,
    multiple=True,
    metavar="NAME VALUES",
    help="Benchmark each comma-separated value for {NAME} (repeatable).",
)
@click.option("-n", "--command-name", multiple=True, help="Display name per command.")
@click.option("--export-json", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--export-csv", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--export-markdown", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--export-asciidoc", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None)
def run(  # noqa: PLR0913
    commands: tuple[str, ...],
    profile_path: Path | None,
    warmup: int | None,
    min_runs: int | None,
    max_runs: int | None,
    runs: int | None,
    min_benchmarking_time: float | None,
    prepare: tuple[str, ...],
    setup: str | None,
    cleanup: str | None,
    ignore_failure: bool,
    show_output: bool,
    shell_name: str | None,
    no_shell: bool,
    style: str | None,
    time_unit: str | None,
    parameter_scan: tuple[str, str, str] | None,
    parameter_step_size: str | None,
    parameter_list: tuple[tuple[str, str], ...],
    command_name: tuple[str, ...],
    export_json: Path | None,
    export_csv: Path | None,
    export_markdown: Path | None,
    export_asciidoc: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Benchmark one or more shell commands.

    \b
    Examples:
        shellbench run 'sleep 0.1' 'sleep 0.2'
        shellbench run -w 3 -p 'sync' 'grep -r foo .'
        shellbench run -P threads 1 8 'make -j {threads}'
        shellbench run -L compiler gcc,clang '{compiler} -O2 main.c'
    """
    from shellbench.bench.commands import ParameterScan, build_commands, split_list_values
    from shellbench.bench.compare import compute_relative_speeds
    from shellbench.bench.config import load_profile, options_from_profile
    from shellbench.bench.display import format_summary
    from shellbench.bench.export import ExportManager
    from shellbench.bench.runner import run_benchmarks

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        profile_commands = profile_data.get("commands") or []
        if isinstance(profile_commands, str):
            profile_commands = [profile_commands]
        expressions = list(commands) or [str(c) for c in profile_commands]
        if not expressions:
            raise click.UsageError("At least one command to benchmark is required.")

        shell: Shell | None = None
        if no_shell:
            shell = Shell.none()
        elif shell_name:
            shell = Shell.parse(shell_name)

        options = options_from_profile(
            profile_data,
            cli_overrides={
                "warmup_count": warmup,
                "min_runs": min_runs,
                "max_runs": max_runs,
                "runs": runs,
                "min_benchmarking_time": min_benchmarking_time,
                "preparation_commands": list(prepare) or None,
                "setup_command": setup,
                "cleanup_command": cleanup,
                "fail_on_error": False if ignore_failure else None,
                "show_output": True if show_output else None,
                "shell": shell,
                "output_style": OutputStyle(style) if style else None,
                "time_unit": time_unit,
            },
        )

        scan = None
        if parameter_scan:
            name, start, end = parameter_scan
            scan = ParameterScan(name=name, start=start, end=end, step=parameter_step_size)
        elif parameter_step_size:
            raise ConfigurationError("--parameter-step-size requires --parameter-scan.")

        command_list = build_commands(
            expressions,
            names=command_name,
            parameter_scan=scan,
            parameter_lists=[(n, split_list_values(v)) for n, v in parameter_list],
        )
    except (ConfigurationError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    export_manager = ExportManager(time_unit=options.time_unit)
    for fmt, path in (
        ("json", export_json),
        ("csv", export_csv),
        ("markdown", export_markdown),
        ("asciidoc", export_asciidoc),
    ):
        if path is not None:
            export_manager.add(fmt, path)

    live = _LiveOutput(
        options.output_style,
        time_unit=options.time_unit,
        warning_kwargs={
            "outlier_threshold": options.outlier_threshold,
            "shell_enabled": options.shell.enabled,
            "warmup_used": options.warmup_count > 0,
            "prepare_used": bool(options.preparation_commands),
        },
    )

    try:
        result = run_benchmarks(
            command_list,
            options,
            export_manager=export_manager,
            progress_callback=live,
        )
    except (KeyboardInterrupt, BenchmarkInterrupted, CommandInterruptedError):
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904
    except BenchError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except OSError as exc:
        click.echo(f"Error: could not write export file: {exc}", err=True)
        raise SystemExit(1) from exc

    if options.output_style is not OutputStyle.DISABLED:
        summary = format_summary(result.results, colored=options.output_style.colored)
        if summary:
            # The note for an uncomputable comparison goes to stderr.
            comparable = compute_relative_speeds(result.results) is not None
            click.echo(summary, err=not comparable)

    if result.failures:
        log.debug("%d command(s) failed", len(result.failures))
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command("show")
@click.argument("results_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-u", "--time-unit", type=click.Choice(["ms", "s"]), default=None)
def show(results_file: Path, time_unit: str | None) -> None:
    """Display results saved with --export-json.

    RESULTS_FILE is the path to a JSON export.
    """
    from shellbench.bench.display import format_results_table, format_summary
    from shellbench.bench.results import load_results

    try:
        results = load_results(results_file)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    click.echo(format_results_table(results, time_unit=time_unit))
    summary = format_summary(results, colored=False)
    if summary:
        click.echo()
        click.echo(summary)


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------


@main.command("export")
@click.argument("results_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(list(EXPORT_FORMATS)),
    default="markdown",
    help="Export format.",
)
@click.option("-u", "--time-unit", type=click.Choice(["ms", "s"]), default=None)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: stdout).",
)
def export(results_file: Path, fmt: str, time_unit: str | None, output: Path | None) -> None:
    """Convert results saved with --export-json to another format.

    \b
    Examples:
        shellbench export results.json --format markdown -o results.md
        shellbench export results.json --format csv > results.csv
    """
    from shellbench.bench.export import render
    from shellbench.bench.results import load_results

    try:
        results = load_results(results_file)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    text = render(fmt, results, time_unit)
    if output:
        output.write_text(text)
        click.echo(f"Exported to {output}")
    else:
        click.echo(text, nl=False)
