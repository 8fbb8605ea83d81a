"""
Categorical Cross-Tabulator — Group counts and target rates
=============================================================
Counts positive (target == 1) and negative (target == 0) records per group,
where a group is one of:

  1. A distinct value of a field              group_counts()
  2. An equal-width numeric bin               binned_group_counts()
  3. An explicit range bucket (open ends)     range_bucket_group_counts()
  4. A 2-way combination of two fields        two_way_counts()

Records whose target is null (holdout rows) or not 0/1 are ignored.
A group with zero members has rate None and is_empty True; callers must
check for that rather than divide.

Binning policy: index = floor((v - min) / ((max - min) / bins)), clamped
above to bins-1. A negative index (value below min) drops the value instead
of clamping it into bin 0.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .schema import as_finite, fmt_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupCounts:
    positives: int = 0
    negatives: int = 0

    @property
    def total(self) -> int:
        return self.positives + self.negatives

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def rate(self) -> Optional[float]:
        """positives / total, or None when the group has no members."""
        if self.is_empty:
            return None
        return self.positives / self.total

    @property
    def rate_percent(self) -> Optional[float]:
        rate = self.rate
        return None if rate is None else round(rate * 100, 2)

    def add(self, outcome: int) -> "GroupCounts":
        if outcome == 1:
            return GroupCounts(self.positives + 1, self.negatives)
        return GroupCounts(self.positives, self.negatives + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "positives": self.positives,
            "negatives": self.negatives,
            "total": self.total,
            "rate": self.rate,
            "is_empty": self.is_empty,
        }


def outcome(record: Mapping[str, Any], target: str) -> Optional[int]:
    """1 / 0 for a binary target value, None for null or anything else."""
    value = record.get(target)
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)) and value in (0, 1):
        return int(value)
    return None


def overall_rate(records: Iterable[Mapping[str, Any]], target: str) -> GroupCounts:
    counts = GroupCounts()
    for record in records:
        o = outcome(record, target)
        if o is not None:
            counts = counts.add(o)
    return counts


# ═══════════════════════════════════════════════════════════════
# 1. PER-VALUE GROUPS
# ═══════════════════════════════════════════════════════════════

def group_counts(
    records: Iterable[Mapping[str, Any]],
    field: str,
    target: str,
    values: Optional[Sequence[Any]] = None,
) -> Dict[Any, GroupCounts]:
    """
    GroupCounts per distinct value of `field` (null values are not a group).

    With `values`, exactly those groups are returned in that order, and
    unseen values appear as empty groups.
    """
    groups: Dict[Any, GroupCounts] = {v: GroupCounts() for v in (values or ())}
    for record in records:
        o = outcome(record, target)
        key = record.get(field)
        if o is None or key is None:
            continue
        if values is not None and key not in groups:
            continue
        groups[key] = groups.get(key, GroupCounts()).add(o)
    return groups


def rate_gap(groups: Mapping[Any, GroupCounts]) -> Optional[Tuple[Any, Any, float]]:
    """
    (highest-rate value, lowest-rate value, gap) over non-empty groups.
    None when fewer than two groups have members.
    """
    rated = [(k, g.rate) for k, g in groups.items() if not g.is_empty]
    if len(rated) < 2:
        return None
    hi = max(rated, key=lambda kv: kv[1])
    lo = min(rated, key=lambda kv: kv[1])
    return hi[0], lo[0], hi[1] - lo[1]


# ═══════════════════════════════════════════════════════════════
# 2. EQUAL-WIDTH BINS
# ═══════════════════════════════════════════════════════════════

def bin_index(value: Any, lo: float, hi: float, bins: int) -> Optional[int]:
    if bins <= 0 or hi <= lo:
        raise ValueError(f"Invalid bin spec: min={lo}, max={hi}, bins={bins}")
    v = as_finite(value)
    if v is None:
        return None
    width = (hi - lo) / bins
    index = min(math.floor((v - lo) / width), bins - 1)
    if index < 0:
        return None
    return index


def bin_counts(values: Iterable[Any], lo: float, hi: float, bins: int) -> List[int]:
    counts = [0] * bins
    dropped = 0
    for value in values:
        index = bin_index(value, lo, hi, bins)
        if index is None:
            dropped += 1
            continue
        counts[index] += 1
    if dropped:
        logger.debug(f"bin_counts: dropped {dropped} values outside [{lo}, ...)")
    return counts


def binned_group_counts(
    records: Iterable[Mapping[str, Any]],
    field: str,
    target: str,
    lo: float,
    hi: float,
    bins: int,
) -> List[GroupCounts]:
    groups = [GroupCounts() for _ in range(bins)]
    for record in records:
        o = outcome(record, target)
        if o is None:
            continue
        index = bin_index(record.get(field), lo, hi, bins)
        if index is not None:
            groups[index] = groups[index].add(o)
    return groups


# ═══════════════════════════════════════════════════════════════
# 3. EXPLICIT RANGE BUCKETS
# ═══════════════════════════════════════════════════════════════

def bucket_index(value: Any, edges: Sequence[float]) -> Optional[int]:
    """
    Bucket for `value` given ascending edges [e0, e1, ..., ek].
    Buckets: (-inf, e1), [e1, e2), ..., [ek, +inf) — k buckets in total.
    """
    v = as_finite(value)
    if v is None:
        return None
    for i in range(1, len(edges)):
        if v < edges[i]:
            return i - 1
    return len(edges) - 1


def bucket_labels(edges: Sequence[float]) -> List[str]:
    labels = [f"{fmt_number(edges[i])}-{fmt_number(edges[i + 1])}" for i in range(len(edges) - 1)]
    labels.append(f"{fmt_number(edges[-1])}+")
    return labels


def range_bucket_group_counts(
    records: Iterable[Mapping[str, Any]],
    field: str,
    target: str,
    edges: Sequence[float],
) -> List[GroupCounts]:
    groups = [GroupCounts() for _ in range(len(edges))]
    for record in records:
        o = outcome(record, target)
        if o is None:
            continue
        index = bucket_index(record.get(field), edges)
        if index is not None:
            groups[index] = groups[index].add(o)
    return groups


# ═══════════════════════════════════════════════════════════════
# 4. TWO-WAY GROUPS
# ═══════════════════════════════════════════════════════════════

def two_way_counts(
    records: Iterable[Mapping[str, Any]],
    field_a: str,
    field_b: str,
    target: str,
) -> Dict[Tuple[Any, Any], GroupCounts]:
    """GroupCounts per observed (a, b) combination, first-seen order."""
    cells: Dict[Tuple[Any, Any], GroupCounts] = {}
    for record in records:
        o = outcome(record, target)
        a = record.get(field_a)
        b = record.get(field_b)
        if o is None or a is None or b is None:
            continue
        cells[(a, b)] = cells.get((a, b), GroupCounts()).add(o)
    return cells


def two_way_table(cells: Mapping[Tuple[Any, Any], GroupCounts]) -> List[Dict[str, Any]]:
    return [
        {"a": a, "b": b, **counts.to_dict()}
        for (a, b), counts in cells.items()
    ]
