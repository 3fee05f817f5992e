"""Statistical functions for benchmark aggregation.

Provides summary statistics, a min/max tracker, and outlier detection
based on the modified z-score, all in pure Python.

The modified z-score uses the median absolute deviation (MAD) instead
of the standard deviation, since the standard deviation is itself
inflated by the outliers it is meant to detect.

References:
    Iglewicz, B. & Hoaglin, D. C. (1993). "How to Detect and Handle
        Outliers." ASQC Basic References in Quality Control, vol. 16.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import Sequence

# 0.6745 is the 0.75 quantile of the standard normal distribution, which
# makes MAD-based scores comparable to ordinary z-scores.
MAD_SCALE = 0.6745
# sqrt(pi / 2) turns a mean absolute deviation into a standard deviation estimate.
MEANAD_SCALE = 1.253314
OUTLIER_THRESHOLD = 3.5
MIN_SAMPLES_FOR_OUTLIERS = 3


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DescriptiveStats:
    """Summary statistics for a sample."""

    n: int
    mean: float
    median: float
    stddev: float | None  # None when n < 2
    min: float
    max: float


def describe(values: Sequence[float]) -> DescriptiveStats:
    """Compute descriptive statistics for a non-empty sample.

    The standard deviation is the sample (n-1) estimate and is ``None``
    for a single value.

    Raises:
        ValueError: If *values* is empty.
    """
    if not values:
        raise ValueError("describe() requires at least one value")

    n = len(values)
    lo, hi = min_max(values)
    # Rounding in the summation can push the mean one ulp outside [lo, hi].
    mean = min(max(statistics.fmean(values), lo), hi)
    return DescriptiveStats(
        n=n,
        mean=mean,
        median=statistics.median(values),
        stddev=statistics.stdev(values) if n >= 2 else None,
        min=lo,
        max=hi,
    )


# ---------------------------------------------------------------------------
# Min/Max tracker
# ---------------------------------------------------------------------------


def min_max(values: Sequence[float]) -> tuple[float, float]:
    """Return ``(min, max)`` of *values* in a single pass.

    No value is excluded: these are the raw extrema.

    Raises:
        ValueError: If *values* is empty.
    """
    it = iter(values)
    try:
        lo = hi = next(it)
    except StopIteration:
        raise ValueError("min_max() requires at least one value") from None
    for v in it:
        if v < lo:
            lo = v
        elif v > hi:
            hi = v
    return lo, hi


# ---------------------------------------------------------------------------
# Outlier detection
# ---------------------------------------------------------------------------


def median_absolute_deviation(values: Sequence[float]) -> float:
    """Median of the absolute deviations from the median."""
    med = statistics.median(values)
    return statistics.median([abs(v - med) for v in values])


def mean_absolute_deviation(values: Sequence[float]) -> float:
    """Mean of the absolute deviations from the median."""
    med = statistics.median(values)
    return statistics.fmean(abs(v - med) for v in values)


def modified_zscores(values: Sequence[float]) -> list[float]:
    """Compute the modified z-score of every value.

    ``score = 0.6745 * (x - median) / MAD``.

    When MAD is zero (more than half of the values are identical) the
    mean absolute deviation is used instead, scaled by
    ``MEANAD_SCALE``.  If that is zero too, every value is identical and
    every score is 0.0.
    """
    if not values:
        return []
    med = statistics.median(values)
    mad = median_absolute_deviation(values)
    if mad > 0:
        return [MAD_SCALE * (v - med) / mad for v in values]
    meanad = mean_absolute_deviation(values)
    if meanad == 0:
        return [0.0] * len(values)
    return [(v - med) / (MEANAD_SCALE * meanad) for v in values]


@dataclass
class OutlierSplit:
    """Result of outlier detection over an ordered sample."""

    retained: list[float] = field(default_factory=list)
    outliers: list[float] = field(default_factory=list)
    flags: list[bool] = field(default_factory=list)  # parallel to the input

    @property
    def n_outliers(self) -> int:
        return len(self.outliers)


def detect_outliers(
    values: Sequence[float],
    *,
    threshold: float = OUTLIER_THRESHOLD,
) -> OutlierSplit:
    """Split *values* into retained samples and outliers.

    A value is an outlier if the absolute value of its modified z-score
    exceeds *threshold*.  Rejection is repeated on the retained values
    until a pass flags nothing, so running the detector again on its own
    ``retained`` output never removes anything further.  A pass that
    would flag every remaining value is discarded, so ``retained`` is
    never empty.

    Fewer than ``MIN_SAMPLES_FOR_OUTLIERS`` values are returned as-is.
    Input order is preserved in both ``retained`` and ``outliers``.
    """
    flags = [False] * len(values)
    if len(values) < MIN_SAMPLES_FOR_OUTLIERS:
        return OutlierSplit(retained=list(values), outliers=[], flags=flags)

    active = list(range(len(values)))
    while len(active) >= MIN_SAMPLES_FOR_OUTLIERS:
        scores = modified_zscores([values[i] for i in active])
        rejected = {i for i, s in zip(active, scores) if abs(s) > threshold}
        # A threshold below MAD_SCALE can flag every value; stop instead.
        if not rejected or len(rejected) == len(active):
            break
        for i in rejected:
            flags[i] = True
        active = [i for i in active if i not in rejected]

    return OutlierSplit(
        retained=[v for v, f in zip(values, flags) if not f],
        outliers=[v for v, f in zip(values, flags) if f],
        flags=flags,
    )


# ---------------------------------------------------------------------------
# Calibration arithmetic
# ---------------------------------------------------------------------------


def subtract_overhead(measured: float, overhead: float) -> float:
    """Remove a calibrated overhead from a measurement, clamping at zero."""
    adjusted = measured - overhead
    if adjusted < 0 or math.isnan(adjusted):
        return 0.0
    return adjusted
