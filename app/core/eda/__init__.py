"""
Split-Dataset EDA — Core Module
================================
Merges a labelled training split with an unlabelled holdout split and computes
descriptive statistics, missingness, correlations, target-rate cross-tabs and
comparative findings over the combined records.

Components:
  ┌──────────────────────────────────────────────────────┐
  │ EdaAnalyzer         — Runs one analysis, end to end  │
  │ Schema              — Field roles + chart config     │
  │ read_records        — CSV → records (pandas)         │
  │ merge               — Validate + tag provenance      │
  │ describe            — Count/mean/median/std/quartile │
  │ analyze_missing     — Per-field missing + tiers      │
  │ correlation_matrix  — Pearson, pairwise dropout      │
  │ group_counts & co.  — Target rate per group / bin    │
  │ InsightSynthesizer  — Ordered comparative findings   │
  │ charts / export     — Payloads, CSV, JSON summary    │
  └──────────────────────────────────────────────────────┘

Usage:
  from app.core.eda import EdaAnalyzer, TITANIC_SCHEMA
  report = EdaAnalyzer(TITANIC_SCHEMA).run(train_records, test_records)
"""

from .analysis import AnalysisReport, EdaAnalyzer
from .correlation import CorrelationMatrix, correlation_matrix, pearson
from .crosstab import (
    GroupCounts,
    bin_counts,
    binned_group_counts,
    group_counts,
    range_bucket_group_counts,
    two_way_counts,
)
from .dataset import Dataset
from .descriptive import Stats, describe, median, percentile, summarize
from .errors import (
    ComputationSkipped,
    EdaError,
    IngestionFailure,
    SchemaViolation,
    UnknownField,
    ViolationKind,
)
from .export import build_summary, to_csv, to_json
from .ingestion import read_records
from .insights import Finding, InsightSynthesizer
from .merger import merge, validate_pair
from .missingness import MissingEntry, MissingTier, analyze_missing, overall_missing_percent
from .schema import TITANIC_SCHEMA, HistogramSpec, Schema, default_schema

__all__ = [
    "AnalysisReport", "EdaAnalyzer",
    "CorrelationMatrix", "correlation_matrix", "pearson",
    "GroupCounts", "bin_counts", "binned_group_counts", "group_counts",
    "range_bucket_group_counts", "two_way_counts",
    "Dataset",
    "Stats", "describe", "median", "percentile", "summarize",
    "ComputationSkipped", "EdaError", "IngestionFailure", "SchemaViolation",
    "UnknownField", "ViolationKind",
    "build_summary", "to_csv", "to_json",
    "read_records",
    "Finding", "InsightSynthesizer",
    "merge", "validate_pair",
    "MissingEntry", "MissingTier", "analyze_missing", "overall_missing_percent",
    "TITANIC_SCHEMA", "HistogramSpec", "Schema", "default_schema",
]
