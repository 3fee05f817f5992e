"""Construction of the benchmarked command set.

Commands may contain ``{name}`` placeholders which are filled from a
numeric parameter scan (``-P name min max`` with an optional step) or
from explicit value lists (``-L name a,b,c``).  Several lists combine as
a cartesian product; the first list varies slowest.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Sequence

from shellbench.bench.errors import ConfigurationError

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class Command:
    """One command to benchmark, with its parameter substitutions."""

    expression: str
    name: str | None = None
    parameters: dict[str, str] = field(default_factory=dict)

    def _substitute(self, text: str) -> str:
        def repl(match: re.Match[str]) -> str:
            return self.parameters.get(match.group(1), match.group(0))

        return _PLACEHOLDER.sub(repl, text)

    @property
    def shell_command(self) -> str:
        """The command string handed to the shell."""
        return self._substitute(self.expression)

    @property
    def display_name(self) -> str | None:
        """The explicit command name with parameters filled in, if any."""
        if self.name is None:
            return None
        return self._substitute(self.name)


@dataclass(frozen=True)
class ParameterScan:
    """A numeric parameter range ``min..=max`` in steps of ``step``."""

    name: str
    start: str
    end: str
    step: str | None = None

    def values(self) -> list[str]:
        try:
            start = Decimal(self.start)
            end = Decimal(self.end)
            step = Decimal(self.step) if self.step is not None else Decimal(1)
        except InvalidOperation as exc:
            raise ConfigurationError(
                f"Invalid number in parameter scan for '{self.name}'"
            ) from exc

        integral = start == start.to_integral_value() and end == end.to_integral_value()
        if self.step is None and not integral:
            raise ConfigurationError(
                "A step size (-D/--parameter-step-size) is required for non-integer ranges."
            )
        if step <= 0:
            raise ConfigurationError("The parameter step size must be positive.")
        if start > end:
            raise ConfigurationError(
                f"Empty parameter range: {self.start} is larger than {self.end}."
            )

        values: list[str] = []
        i = 0
        while True:
            value = start + i * step
            if value > end:
                break
            values.append(str(value))
            i += 1
        return values


def _check_parameter_name(name: str) -> None:
    if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
        raise ConfigurationError(f"Invalid parameter name: '{name}'")


def build_commands(
    expressions: Sequence[str],
    *,
    names: Sequence[str] | None = None,
    parameter_scan: ParameterScan | None = None,
    parameter_lists: Sequence[tuple[str, Sequence[str]]] = (),
) -> list[Command]:
    """Expand command expressions into the ordered command list.

    Args:
        expressions: Command strings, possibly containing placeholders.
        names: Optional display names, matched by position with
            *expressions*.
        parameter_scan: A numeric range parameter.
        parameter_lists: ``(name, values)`` list parameters.

    Raises:
        ConfigurationError: On an invalid parameter definition or more
            names than commands.
    """
    if not expressions:
        raise ConfigurationError("At least one command is required.")
    names = list(names or [])
    if len(names) > len(expressions):
        raise ConfigurationError(
            f"Too many command names ({len(names)}) for {len(expressions)} command(s)."
        )
    if parameter_scan is not None and parameter_lists:
        raise ConfigurationError("A parameter scan cannot be combined with parameter lists.")

    axes: list[tuple[str, list[str]]] = []
    if parameter_scan is not None:
        _check_parameter_name(parameter_scan.name)
        axes.append((parameter_scan.name, parameter_scan.values()))
    seen: set[str] = set()
    for name, values in parameter_lists:
        _check_parameter_name(name)
        if name in seen:
            raise ConfigurationError(f"Duplicate parameter name: '{name}'")
        seen.add(name)
        if not values:
            raise ConfigurationError(f"Parameter list '{name}' is empty.")
        axes.append((name, list(values)))

    commands: list[Command] = []
    for idx, expression in enumerate(expressions):
        name = names[idx] if idx < len(names) else None
        if not axes:
            commands.append(Command(expression=expression, name=name))
            continue
        axis_names = [a[0] for a in axes]
        for combo in itertools.product(*(a[1] for a in axes)):
            commands.append(
                Command(
                    expression=expression,
                    name=name,
                    parameters=dict(zip(axis_names, combo)),
                )
            )
    return commands


def split_list_values(text: str) -> list[str]:
    """Split a ``-L`` value list on commas, honouring ``\\,`` escapes."""
    values: list[str] = []
    current: list[str] = []
    chars = iter(text)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            if nxt == ",":
                current.append(",")
            else:
                current.append(ch + nxt)
        elif ch == ",":
            values.append("".join(current))
            current = []
        else:
            current.append(ch)
    values.append("".join(current))
    return values
