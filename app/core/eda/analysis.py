"""
Analysis Orchestrator — One run, end to end
=============================================
Strict ordering, nothing overlapped:

  parse (ingestion) → validate + merge → compute → findings

Every engine reads the same immutable Dataset. The result is one
AnalysisReport value; the caller owns it (no module-level "current
dataset").

Usage:
  analyzer = EdaAnalyzer(TITANIC_SCHEMA)
  report = analyzer.run_files(train_bytes, test_bytes)
  report.to_dict(); report.charts()
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from . import charts as chart_builders
from .correlation import CorrelationMatrix, correlation_matrix
from .crosstab import (
    GroupCounts,
    bin_counts,
    binned_group_counts,
    group_counts,
    outcome,
    overall_rate,
    range_bucket_group_counts,
    two_way_counts,
    two_way_table,
)
from .dataset import Dataset
from .descriptive import Stats, describe, finite_values, stats_table
from .ingestion import Source, read_records
from .insights import Finding, InsightSynthesizer
from .merger import merge
from .missingness import MissingEntry, analyze_missing, overall_missing_percent
from .schema import Schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    schema: Schema
    dataset: Dataset
    statistics: Dict[str, Stats]
    positive_stats: Dict[str, Stats]
    negative_stats: Dict[str, Stats]
    missing: List[MissingEntry]
    overall_missing: float
    correlation: CorrelationMatrix
    overall: GroupCounts
    rate_splits: Dict[str, Dict[Any, GroupCounts]]
    histograms: Dict[str, List[GroupCounts]]
    distributions: Dict[str, List[int]]
    buckets: Dict[str, List[GroupCounts]]
    two_way: Dict[Tuple[str, str], Dict[Tuple[Any, Any], GroupCounts]]
    findings: List[Finding]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    elapsed_ms: float = 0.0

    # ──────────────────────────────────────────────────────────
    # Views
    # ──────────────────────────────────────────────────────────

    def overview(self) -> Dict[str, int]:
        return {
            "train_rows": self.dataset.train_rows,
            "test_rows": self.dataset.test_rows,
            "total_rows": len(self.dataset),
            "columns": len(self.dataset.field_names()),
        }

    def extra_fields(self) -> List[str]:
        """Columns carried through the merge that the schema does not declare."""
        return list(self.schema.extras(dict.fromkeys(self.dataset.field_names())))

    def comparison_table(self) -> List[Dict[str, Any]]:
        """Positive vs negative means per numerical field (training rows)."""
        rows = []
        for name in self.schema.numerical_fields:
            pos = self.positive_stats.get(name)
            neg = self.negative_stats.get(name)
            if pos is None or neg is None:
                continue
            rows.append({
                "field": name,
                "negative_mean": neg.mean,
                "positive_mean": pos.mean,
                "difference": pos.mean - neg.mean,
            })
        return rows

    def rate_table(self, name: str) -> List[Dict[str, Any]]:
        return [
            {"value": value, "label": self.schema.label_for(name, value), **counts.to_dict()}
            for value, counts in self.rate_splits.get(name, {}).items()
        ]

    def charts(self) -> List[chart_builders.ChartPayload]:
        s = self.schema
        payloads = [chart_builders.missing_chart(self.missing)]

        for name, groups in self.histograms.items():
            payloads.append(chart_builders.outcome_chart(
                f"hist_{name}", s.histograms[name].labels(), groups,
                s.positive_label, s.negative_label, title=f"{name} Range",
            ))
        for name, counts in self.distributions.items():
            payloads.append(chart_builders.distribution_chart(
                name, s.histograms[name].labels(), counts,
            ))
        for name, groups in self.buckets.items():
            payloads.append(chart_builders.bucket_chart(
                name, s.range_buckets[name], groups, s.positive_label, s.negative_label,
            ))
        for name, groups in self.rate_splits.items():
            payloads.append(chart_builders.rate_chart(
                name, groups, s.label_for, s.positive_label, s.negative_label,
            ))
        payloads.append(chart_builders.correlation_chart(
            self.correlation.fields, self.correlation.matrix,
        ))
        return payloads

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overview": self.overview(),
            "extra_fields": self.extra_fields(),
            "preview": self.dataset.head(10),
            "statistics": stats_table(self.statistics),
            "outcome_comparison": self.comparison_table(),
            "missing": [e.to_dict() for e in self.missing],
            "overall_missing_pct": self.overall_missing,
            "correlation": self.correlation.to_dict(),
            "overall_rate": self.overall.to_dict(),
            "distributions": {
                name: dict(zip(self.schema.histograms[name].labels(), counts))
                for name, counts in self.distributions.items()
            },
            "rate_splits": {name: self.rate_table(name) for name in self.rate_splits},
            "two_way": {
                f"{a} x {b}": two_way_table(cells)
                for (a, b), cells in self.two_way.items()
            },
            "findings": [f.to_dict() for f in self.findings],
            "created_at": self.created_at.isoformat(),
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


class EdaAnalyzer:
    """Runs every engine over one merged Dataset, in a fixed order."""

    def __init__(self, schema: Schema):
        self.schema = schema
        self.synthesizer = InsightSynthesizer(target_label=schema.target)

    # ──────────────────────────────────────────────────────────
    # Entry points
    # ──────────────────────────────────────────────────────────

    def run_files(
        self,
        train_source: Source,
        test_source: Source,
        train_name: str = "train.csv",
        test_name: str = "test.csv",
    ) -> AnalysisReport:
        training = read_records(train_source, train_name, self.schema.numerical_fields)
        holdout = read_records(test_source, test_name, self.schema.numerical_fields)
        return self.run(training, holdout)

    def run(
        self,
        training: Sequence[Mapping[str, Any]],
        holdout: Sequence[Mapping[str, Any]],
    ) -> AnalysisReport:
        dataset = merge(training, holdout, self.schema)
        return self.analyze(dataset)

    def analyze(self, dataset: Dataset) -> AnalysisReport:
        start = time.time()
        s = self.schema
        records = list(dataset)
        train_only = dataset.training()
        positives = [r for r in train_only if outcome(r, s.target) == 1]
        negatives = [r for r in train_only if outcome(r, s.target) == 0]

        fields = s.analysis_fields(dataset.field_names())
        missing = analyze_missing(records, fields)
        overall_missing = overall_missing_percent(records, fields)
        positive_stats = describe(positives, s.numerical_fields)
        negative_stats = describe(negatives, s.numerical_fields)
        rate_splits = {
            name: group_counts(train_only, name, s.target, s.rate_values.get(name))
            for name in s.rate_fields
        }

        findings = self.synthesizer.synthesize(
            rate_splits=rate_splits,
            positive_stats=positive_stats,
            negative_stats=negative_stats,
            overall_missing=overall_missing,
            missing_entries=missing,
            suggested_features=s.suggested_features,
        )

        report = AnalysisReport(
            schema=s,
            dataset=dataset,
            statistics=describe(records, s.numerical_fields),
            positive_stats=positive_stats,
            negative_stats=negative_stats,
            missing=missing,
            overall_missing=overall_missing,
            correlation=correlation_matrix(train_only, s.numerical_fields),
            overall=overall_rate(train_only, s.target),
            rate_splits=rate_splits,
            histograms={
                name: binned_group_counts(train_only, name, s.target, spec.min, spec.max, spec.bins)
                for name, spec in s.histograms.items()
            },
            distributions={
                name: bin_counts(finite_values(records, name), spec.min, spec.max, spec.bins)
                for name, spec in s.histograms.items()
            },
            buckets={
                name: range_bucket_group_counts(train_only, name, s.target, edges)
                for name, edges in s.range_buckets.items()
            },
            two_way={
                (a, b): two_way_counts(train_only, a, b, s.target)
                for a, b in s.two_way
            },
            findings=findings,
            elapsed_ms=(time.time() - start) * 1000,
        )

        logger.info(
            f"Analysis complete: {len(records)} rows, {len(report.statistics)} numeric fields, "
            f"{len(report.findings)} findings in {report.elapsed_ms:.0f}ms"
        )
        return report
