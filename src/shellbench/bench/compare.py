"""Relative speed comparison across benchmarked commands.

Each command's mean is expressed as a multiple of the fastest mean.
The uncertainty of the ratio is propagated from both standard
deviations assuming independent measurements (covariance zero).

Reference:
    https://en.wikipedia.org/wiki/Propagation_of_uncertainty#Example_formulae
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from shellbench.bench.results import BenchmarkResult


@dataclass(frozen=True)
class AnnotatedResult:
    """A result together with its speed relative to the fastest."""

    result: BenchmarkResult
    relative_speed: float
    relative_speed_stddev: float | None
    is_fastest: bool = False


def fastest_result(results: Sequence[BenchmarkResult]) -> BenchmarkResult:
    """Result with the lowest mean; the first one wins ties."""
    return min(results, key=lambda r: r.mean)


def compute_relative_speeds(
    results: Sequence[BenchmarkResult],
) -> list[AnnotatedResult] | None:
    """Annotate every result with its speed relative to the fastest.

    Returns:
        Annotated results in input order, or ``None`` when the fastest
        mean is exactly zero and ratios would be meaningless.  An empty
        input gives an empty list.
    """
    if not results:
        return []

    fastest = fastest_result(results)
    if fastest.mean == 0:
        return None

    annotated: list[AnnotatedResult] = []
    for result in results:
        is_fastest = result is fastest
        ratio = 1.0 if is_fastest else result.mean / fastest.mean

        ratio_stddev: float | None = None
        if result.stddev is not None and fastest.stddev is not None:
            # result.mean > 0 here since result.mean >= fastest.mean > 0.
            ratio_stddev = ratio * math.sqrt(
                (result.stddev / result.mean) ** 2 + (fastest.stddev / fastest.mean) ** 2
            )

        annotated.append(
            AnnotatedResult(
                result=result,
                relative_speed=ratio,
                relative_speed_stddev=ratio_stddev,
                is_fastest=is_fastest,
            )
        )
    return annotated


def sort_by_mean(annotated: Sequence[AnnotatedResult]) -> list[AnnotatedResult]:
    """Fastest first.  Stable, so ties keep their input order."""
    return sorted(annotated, key=lambda a: a.result.mean)
