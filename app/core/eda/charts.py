"""
Chart Payloads — Data handed to the rendering collaborator
============================================================
Each chart is {chart_id, kind, labels, series[{name, values, style}]}. The
engine never draws; the frontend maps these straight onto its chart library.

Charts built from an AnalysisReport:
  missing_values        — horizontal bar, % missing per column
  hist_<field>          — equal-width bins, negative vs positive counts
  dist_<field>          — equal-width bins, all merged rows
  buckets_<field>       — explicit range buckets, negative vs positive counts
  rate_<field>          — stacked bar per group value
  correlation           — one series per field, coloured by strength
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from .crosstab import GroupCounts, bucket_labels
from .missingness import MissingEntry, MissingTier

NEGATIVE_COLOR = "rgba(220, 53, 69, 0.6)"
POSITIVE_COLOR = "rgba(40, 167, 69, 0.6)"
NEUTRAL_COLOR = "#667eea"
HIGH_MISSING_COLOR = "#dc3545"
STRONG_POSITIVE_CORR = "rgba(40, 167, 69, 0.8)"
STRONG_NEGATIVE_CORR = "rgba(220, 53, 69, 0.8)"
WEAK_CORR = "rgba(102, 126, 234, 0.6)"


@dataclass
class Series:
    name: str
    values: List[float]
    style: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "values": list(self.values), "style": dict(self.style)}


@dataclass
class ChartPayload:
    chart_id: str
    kind: str                  # bar | horizontal_bar | stacked_bar | grouped_bar
    labels: List[str]
    series: List[Series] = field(default_factory=list)
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chart_id": self.chart_id,
            "kind": self.kind,
            "title": self.title,
            "labels": list(self.labels),
            "series": [s.to_dict() for s in self.series],
        }


def missing_chart(entries: Sequence[MissingEntry]) -> ChartPayload:
    return ChartPayload(
        chart_id="missing_values",
        kind="horizontal_bar",
        title="Percentage Missing",
        labels=[e.field for e in entries],
        series=[Series(
            name="% Missing",
            values=[e.missing_percent for e in entries],
            style={"colors": [
                HIGH_MISSING_COLOR if e.tier == MissingTier.HIGH else NEUTRAL_COLOR
                for e in entries
            ]},
        )],
    )


def outcome_chart(
    chart_id: str,
    labels: List[str],
    groups: Sequence[GroupCounts],
    positive_label: str,
    negative_label: str,
    stacked: bool = False,
    title: str = "",
) -> ChartPayload:
    return ChartPayload(
        chart_id=chart_id,
        kind="stacked_bar" if stacked else "grouped_bar",
        title=title,
        labels=labels,
        series=[
            Series(negative_label, [g.negatives for g in groups], {"color": NEGATIVE_COLOR}),
            Series(positive_label, [g.positives for g in groups], {"color": POSITIVE_COLOR}),
        ],
    )


def distribution_chart(name: str, labels: List[str], counts: Sequence[int]) -> ChartPayload:
    return ChartPayload(
        chart_id=f"dist_{name}",
        kind="bar",
        title=f"{name} Distribution",
        labels=labels,
        series=[Series("Count", list(counts), {"color": NEUTRAL_COLOR})],
    )


def bucket_chart(
    name: str,
    edges: Sequence[float],
    groups: Sequence[GroupCounts],
    positive_label: str,
    negative_label: str,
) -> ChartPayload:
    return outcome_chart(
        f"buckets_{name}", bucket_labels(edges), groups,
        positive_label, negative_label, title=f"{name} Range",
    )


def rate_chart(
    name: str,
    groups: Mapping[Any, GroupCounts],
    labeller,
    positive_label: str,
    negative_label: str,
) -> ChartPayload:
    keys = list(groups)
    return outcome_chart(
        f"rate_{name}", [labeller(name, k) for k in keys], [groups[k] for k in keys],
        positive_label, negative_label, stacked=True, title=name,
    )


def correlation_chart(fields: Sequence[str], matrix: Sequence[Sequence[float]]) -> ChartPayload:
    def color(r):
        if r > 0.5:
            return STRONG_POSITIVE_CORR
        if r < -0.5:
            return STRONG_NEGATIVE_CORR
        return WEAK_CORR

    return ChartPayload(
        chart_id="correlation",
        kind="bar",
        title="Correlation Coefficient",
        labels=list(fields),
        series=[
            Series(name, list(row), {"colors": [color(r) for r in row], "y_range": [-1, 1]})
            for name, row in zip(fields, matrix)
        ],
    )
