"""
Missingness Analyzer — Null counts, percentages, and drop/impute tiers
========================================================================
Per-field missing counts (null or absent key), a dataset-wide missing-cell
ratio, and the recommendation tier the presentation layer and the insight
synthesizer both key off.

Tiers (strict comparisons):
  percent > 50  → HIGH      "consider dropping"
  percent > 20  → MODERATE  "impute or analyze patterns"
  otherwise     → LOW       "safe to impute"
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

from .frame import raw_frame

logger = logging.getLogger(__name__)

HIGH_MISSING_PCT = 50.0
MODERATE_MISSING_PCT = 20.0


class MissingTier(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def recommendation(self) -> str:
        return _RECOMMENDATIONS[self]


_RECOMMENDATIONS = {
    MissingTier.HIGH: "High missing - consider dropping",
    MissingTier.MODERATE: "Moderate - impute or analyze patterns",
    MissingTier.LOW: "Low missing - safe to impute",
}


def recommendation_tier(percent: float) -> MissingTier:
    if percent > HIGH_MISSING_PCT:
        return MissingTier.HIGH
    if percent > MODERATE_MISSING_PCT:
        return MissingTier.MODERATE
    return MissingTier.LOW


@dataclass(frozen=True)
class MissingEntry:
    field: str
    missing_count: int
    missing_percent: float

    @property
    def tier(self) -> MissingTier:
        return recommendation_tier(self.missing_percent)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "missing_count": self.missing_count,
            "missing_percent": self.missing_percent,
            "tier": self.tier.value,
            "recommendation": self.tier.recommendation,
        }


def missing_counts(records: Sequence[Mapping[str, Any]], fields: Sequence[str]) -> pd.Series:
    """Null-or-absent count per field (NaN counts too), indexed by field."""
    return raw_frame(records, fields).isna().sum()


def count_missing(records: Sequence[Mapping[str, Any]], field: str) -> int:
    return int(missing_counts(records, [field])[field])


def analyze_missing(
    records: Sequence[Mapping[str, Any]],
    fields: Sequence[str],
) -> List[MissingEntry]:
    """
    Missing count and percent per field, most-missing first.
    Ties keep the order of `fields` (sorted() is stable).
    """
    total = len(records)
    counts = missing_counts(records, fields)
    entries = []
    for field in fields:
        missing = int(counts[field])
        percent = round(100 * missing / total, 2) if total else 0.0
        entries.append(MissingEntry(field, missing, percent))
    return sorted(entries, key=lambda e: e.missing_percent, reverse=True)


def overall_missing_percent(
    records: Sequence[Mapping[str, Any]],
    fields: Sequence[str],
) -> float:
    """Missing cells / total cells across the given fields, as a percent."""
    total_cells = len(records) * len(fields)
    if total_cells == 0:
        return 0.0
    missing = int(missing_counts(records, fields).sum())
    logger.debug(f"overall missing: {missing}/{total_cells} cells")
    return round(100 * missing / total_cells, 2)
