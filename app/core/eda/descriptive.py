"""
Aggregate Statistics Engine — Descriptive stats per numerical field
=====================================================================
count / mean / median / std / min / max / q25 / q75 for every numerical
field, over whatever record subset the caller passes in (full dataset,
training rows only, target == 1 rows, ...).

Conventions:
  - Nulls and non-finite values are dropped silently; missingness is
    reported by the Missingness Analyzer, not here.
  - std is the POPULATION standard deviation (divisor n).
  - Percentiles use linear interpolation at index (p/100)·(n-1).
  - A field with zero usable values is omitted from the result mapping.
    An absent key means "no data", never zero.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from .errors import ComputationSkipped
from .frame import numeric_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stats:
    """Descriptive statistics for one numerical field."""
    count: int
    mean: float
    median: float
    std: float
    min: float
    max: float
    q25: float
    q75: float

    @property
    def variance(self) -> float:
        return self.std ** 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "std": self.std,
            "min": self.min,
            "max": self.max,
            "q25": self.q25,
            "q75": self.q75,
        }


# ═══════════════════════════════════════════════════════════════
# SINGLE-SEQUENCE REDUCTIONS
# ═══════════════════════════════════════════════════════════════

def finite_values(records: Iterable[Mapping[str, Any]], field: str) -> pd.Series:
    """Non-null finite values of one field, in record order."""
    return numeric_frame(records, [field])[field].dropna().reset_index(drop=True)


def median(values: Sequence[float]) -> float:
    return float(np.median(np.asarray(values, dtype="float64")))


def percentile(values: Sequence[float], p: float) -> float:
    """
    Linear-interpolation percentile.

    index = (p/100)·(n-1); result blends the floor and ceil neighbours.
    [1, 2, 3, 4] → p25 = 1.75, p75 = 3.25.
    """
    return float(np.percentile(np.asarray(values, dtype="float64"), p, method="linear"))


def summarize(values: Sequence[float], field: str = "<values>") -> Stats:
    """
    Compute Stats for one value sequence.

    Raises:
        ComputationSkipped: when the sequence is empty.
    """
    series = pd.Series(values, dtype="float64")
    if series.empty:
        raise ComputationSkipped(field)

    quartiles = series.quantile([0.25, 0.75], interpolation="linear")
    return Stats(
        count=int(series.count()),
        mean=float(series.mean()),
        median=float(series.median()),
        std=float(series.std(ddof=0)),
        min=float(series.min()),
        max=float(series.max()),
        q25=float(quartiles.loc[0.25]),
        q75=float(quartiles.loc[0.75]),
    )


# ═══════════════════════════════════════════════════════════════
# PER-FIELD DESCRIBE
# ═══════════════════════════════════════════════════════════════

def describe(
    records: Iterable[Mapping[str, Any]],
    numerical_fields: Iterable[str],
) -> Dict[str, Stats]:
    """
    Descriptive statistics for each numerical field, keyed in field order.
    Fields without a single finite value are left out.
    """
    fields = list(numerical_fields)
    df = numeric_frame(records, fields)
    result: Dict[str, Stats] = {}
    for field in fields:
        try:
            result[field] = summarize(df[field].dropna(), field)
        except ComputationSkipped as e:
            logger.debug(f"describe: skipped {e}")
    return result


def mean_gaps(
    positive: Mapping[str, Stats],
    negative: Mapping[str, Stats],
) -> Dict[str, float]:
    """positive.mean - negative.mean for every field present on both sides."""
    return {
        field: positive[field].mean - negative[field].mean
        for field in positive
        if field in negative
    }


def stats_table(stats: Mapping[str, Stats]) -> Dict[str, Dict[str, Any]]:
    return {field: s.to_dict() for field, s in stats.items()}
