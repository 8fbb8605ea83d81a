"""
Insight Synthesizer — Comparative findings from computed statistics
=====================================================================
Pure aggregation over what the other engines already produced. Never
touches records.

Findings, in output order:
  1. largest_rate_gap  — rate field whose extreme groups differ the most
     rate_gap          — the remaining rate fields, strongest first
  2. mean_gap          — numerical field with the largest |mean(pos) - mean(neg)|
  3. missingness       — overall missing-cell percent + HIGH/MODERATE fields
  4. feature_ideas     — static, schema-configured derived-feature list

Each Finding is structured (headline + numbers); turning it into prose or
HTML belongs to the presentation layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .crosstab import GroupCounts, rate_gap
from .descriptive import Stats, mean_gaps
from .missingness import MissingEntry, MissingTier

logger = logging.getLogger(__name__)


@dataclass
class Finding:
    kind: str                  # largest_rate_gap | rate_gap | mean_gap | missingness | feature_ideas
    headline: str              # Short headline
    supporting_numbers: Dict[str, float] = field(default_factory=dict)
    column: Optional[str] = None
    groups: List[Any] = field(default_factory=list)    # Group values the numbers refer to
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "headline": self.headline,
            "supporting_numbers": dict(self.supporting_numbers),
            "column": self.column,
            "groups": list(self.groups),
            "details": list(self.details),
        }


class InsightSynthesizer:
    """Combines rate splits, stats, and missingness into ordered findings."""

    def __init__(self, target_label: str = "target"):
        self.target_label = target_label

    def synthesize(
        self,
        rate_splits: Mapping[str, Mapping[Any, GroupCounts]],
        positive_stats: Mapping[str, Stats],
        negative_stats: Mapping[str, Stats],
        overall_missing: Optional[float] = None,
        missing_entries: Sequence[MissingEntry] = (),
        suggested_features: Sequence[str] = (),
    ) -> List[Finding]:
        findings: List[Finding] = []
        findings.extend(self._rate_gap_findings(rate_splits))

        mean_finding = self._mean_gap_finding(positive_stats, negative_stats)
        if mean_finding:
            findings.append(mean_finding)

        if overall_missing is not None:
            findings.append(self._missingness_finding(overall_missing, missing_entries))

        if suggested_features:
            findings.append(Finding(
                kind="feature_ideas",
                headline="Feature engineering ideas",
                details=list(suggested_features),
            ))

        logger.debug(f"Synthesized {len(findings)} findings")
        return findings

    # ──────────────────────────────────────────────────────────
    # 1. Rate gaps
    # ──────────────────────────────────────────────────────────

    def _rate_gap_findings(
        self, rate_splits: Mapping[str, Mapping[Any, GroupCounts]]
    ) -> List[Finding]:
        gaps = []
        for name, groups in rate_splits.items():
            gap = rate_gap(groups)
            if gap is None:
                continue
            high, low, diff = gap
            gaps.append((name, high, low, diff, groups))

        gaps.sort(key=lambda g: g[3], reverse=True)

        findings = []
        for rank, (name, high, low, diff, groups) in enumerate(gaps):
            kind = "largest_rate_gap" if rank == 0 else "rate_gap"
            headline = (
                f"{name} is the strongest predictor of {self.target_label}"
                if rank == 0 else
                f"{name} splits {self.target_label} rate"
            )
            findings.append(Finding(
                kind=kind,
                headline=headline,
                column=name,
                groups=[high, low],
                supporting_numbers={
                    "high_rate_pct": groups[high].rate_percent,
                    "low_rate_pct": groups[low].rate_percent,
                    "gap_pct": round(diff * 100, 2),
                    "high_count": groups[high].total,
                    "low_count": groups[low].total,
                },
            ))
        return findings

    # ──────────────────────────────────────────────────────────
    # 2. Mean gap
    # ──────────────────────────────────────────────────────────

    def _mean_gap_finding(
        self,
        positive_stats: Mapping[str, Stats],
        negative_stats: Mapping[str, Stats],
    ) -> Optional[Finding]:
        gaps = mean_gaps(positive_stats, negative_stats)
        if not gaps:
            return None
        name = max(gaps, key=lambda f: abs(gaps[f]))
        return Finding(
            kind="mean_gap",
            headline=f"{name} differs most between outcomes",
            column=name,
            supporting_numbers={
                "positive_mean": positive_stats[name].mean,
                "negative_mean": negative_stats[name].mean,
                "gap": gaps[name],
            },
        )

    # ──────────────────────────────────────────────────────────
    # 3. Missingness
    # ──────────────────────────────────────────────────────────

    def _missingness_finding(
        self, overall_missing: float, missing_entries: Sequence[MissingEntry]
    ) -> Finding:
        flagged = [
            e for e in missing_entries
            if e.tier in (MissingTier.HIGH, MissingTier.MODERATE)
        ]
        return Finding(
            kind="missingness",
            headline="Data quality",
            supporting_numbers={
                "overall_missing_pct": overall_missing,
                "fields_flagged": len(flagged),
            },
            groups=[e.field for e in flagged],
            details=[
                f"{e.field}: {e.missing_percent}% missing ({e.tier.recommendation})"
                for e in flagged
            ],
        )
