"""
Split-Dataset EDA Engine — Test Suite
=======================================
Tests all components: schema, merger, descriptive stats, missingness,
correlation, cross-tabs/binning, insights, ingestion, export, orchestrator.

Run: pytest app/core/eda/tests -v
"""

import copy
import json
import math
import random
import tracemalloc
from types import MappingProxyType

import numpy as np
import pandas as pd
import pytest

from app.core.eda.analysis import EdaAnalyzer
from app.core.eda.correlation import correlation_matrix, paired_values, pearson
from app.core.eda.crosstab import (
    GroupCounts,
    bin_counts,
    bin_index,
    binned_group_counts,
    bucket_index,
    bucket_labels,
    group_counts,
    outcome,
    range_bucket_group_counts,
    rate_gap,
    two_way_counts,
)
from app.core.eda.dataset import Dataset
from app.core.eda.descriptive import describe, finite_values, median, percentile, summarize
from app.core.eda.errors import (
    ComputationSkipped,
    IngestionFailure,
    SchemaViolation,
    UnknownField,
    ViolationKind,
)
from app.core.eda.export import build_summary, to_csv, to_json
from app.core.eda.ingestion import read_records
from app.core.eda.insights import InsightSynthesizer
from app.core.eda.merger import merge
from app.core.eda.missingness import (
    MissingEntry,
    MissingTier,
    analyze_missing,
    missing_counts,
    overall_missing_percent,
    recommendation_tier,
)
from app.core.eda.schema import TITANIC_SCHEMA, HistogramSpec, Schema, as_finite, fmt_number


# ═══════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════

def make_train():
    """Two labelled passengers, one survivor and one not."""
    return [
        {"PassengerId": 1, "Survived": 1, "Age": 22, "Fare": 7.25, "Sex": "female",
         "Pclass": 1, "SibSp": 0, "Parch": 0, "Embarked": "S"},
        {"PassengerId": 2, "Survived": 0, "Age": 35, "Fare": 8.05, "Sex": "male",
         "Pclass": 3, "SibSp": 0, "Parch": 0, "Embarked": "S"},
    ]


def make_test():
    return [
        {"PassengerId": 3, "Age": 28, "Fare": 7.75, "Sex": "female",
         "Pclass": 2, "SibSp": 0, "Parch": 0, "Embarked": "Q"},
    ]


def make_merged():
    return merge(make_train(), make_test(), TITANIC_SCHEMA)


TRAIN_CSV = (
    "PassengerId,Survived,Pclass,Name,Sex,Age,SibSp,Parch,Fare,Embarked\n"
    "1,0,3,Braund,male,22,1,0,7.25,S\n"
    "2,1,1,Cumings,female,38,1,0,71.2833,C\n"
    "3,1,3,Heikkinen,female,26,0,0,7.925,S\n"
    "4,1,1,Futrelle,female,35,1,0,53.1,S\n"
    "5,0,3,Allen,male,35,0,0,8.05,S\n"
    "6,0,3,Moran,male,,0,0,8.4583,Q\n"
).encode()

TEST_CSV = (
    "PassengerId,Pclass,Name,Sex,Age,SibSp,Parch,Fare,Embarked\n"
    "892,3,Kelly,male,34.5,0,0,7.8292,Q\n"
    "893,3,Wilkes,female,47,1,0,7,S\n"
    "894,2,Myles,male,,0,0,9.6875,Q\n"
).encode()


# ═══════════════════════════════════════════════════════════════
# 1. SCHEMA TESTS
# ═══════════════════════════════════════════════════════════════

class TestSchema:
    """Tests for schema.py"""

    def test_titanic_roles(self):
        s = TITANIC_SCHEMA
        assert s.target == "Survived"
        assert s.identifier_field == "PassengerId"
        assert "Age" in s.numerical_fields
        assert "Sex" in s.categorical_fields

    def test_overlapping_roles_rejected(self):
        with pytest.raises(ValueError):
            Schema(
                target="y", numerical_fields=("a",), categorical_fields=("a",),
                identifier_field="id",
            )

    def test_role_columns_must_be_distinct(self):
        with pytest.raises(ValueError):
            Schema(target="id", numerical_fields=(), categorical_fields=(), identifier_field="id")

    def test_undeclared_rate_field_rejected(self):
        with pytest.raises(UnknownField):
            Schema(
                target="y", numerical_fields=("a",), categorical_fields=(),
                identifier_field="id", rate_fields=("b",),
            )

    def test_checked_access(self):
        record = {"Age": 22, "Sex": "male", "Cabin": "C85"}
        assert TITANIC_SCHEMA.numeric_value(record, "Age") == 22.0
        assert TITANIC_SCHEMA.category_value(record, "Sex") == "male"
        with pytest.raises(UnknownField):
            TITANIC_SCHEMA.numeric_value(record, "Cabin")
        # UnknownField is still a KeyError for callers that expect one
        with pytest.raises(KeyError):
            TITANIC_SCHEMA.category_value(record, "Cabin")

    def test_extras_are_undeclared_columns(self):
        record = {"PassengerId": 1, "Age": 22, "Cabin": "C85", "Name": "Braund"}
        assert TITANIC_SCHEMA.extras(record) == {"Cabin": "C85", "Name": "Braund"}

    def test_numeric_value_keeps_ints(self):
        assert type(TITANIC_SCHEMA.numeric_value({"Pclass": 3}, "Pclass")) is int
        assert TITANIC_SCHEMA.numeric_value({"Age": "unknown"}, "Age") is None
        assert TITANIC_SCHEMA.numeric_value({"Age": float("inf")}, "Age") is None

    def test_typed_record(self):
        record = {"PassengerId": 7, "Age": "n/a", "Sex": "male", "Fare": float("nan"),
                  "Cabin": "C85"}
        row = TITANIC_SCHEMA.typed_record(record)
        assert row["Age"] is None
        assert row["Fare"] is None
        assert row["Sex"] == "male"
        assert row["Cabin"] == "C85"
        assert row["Embarked"] is None
        assert list(row)[:5] == ["PassengerId", "Age", "Sex", "Fare", "Cabin"]
        assert "Survived" not in row

    def test_with_names(self):
        renamed = TITANIC_SCHEMA.with_names(target="Outcome")
        assert renamed.target == "Outcome"
        assert renamed.identifier_field == "PassengerId"
        assert TITANIC_SCHEMA.target == "Survived"

    def test_analysis_fields_exclude_identifier_and_provenance(self):
        names = ["PassengerId", "Survived", "Age", "DataSource"]
        assert TITANIC_SCHEMA.analysis_fields(names) == ["Survived", "Age"]

    def test_as_finite(self):
        assert as_finite(3) == 3.0
        assert as_finite(None) is None
        assert as_finite(True) is None
        assert as_finite("7") is None
        assert as_finite(float("nan")) is None
        assert as_finite(float("inf")) is None

    def test_histogram_labels(self):
        assert HistogramSpec(0, 80, 8).labels()[:2] == ["0-10", "10-20"]


# ═══════════════════════════════════════════════════════════════
# 2. MERGER TESTS
# ═══════════════════════════════════════════════════════════════

class TestMerger:
    """Tests for merger.py"""

    def test_length_is_sum(self):
        train, test = make_train(), make_test()
        merged = merge(train, test, TITANIC_SCHEMA)
        assert len(merged) == len(train) + len(test)

    def test_order_train_then_test(self):
        merged = make_merged()
        assert [r["PassengerId"] for r in merged] == [1, 2, 3]
        assert [r["DataSource"] for r in merged] == ["train", "train", "test"]

    def test_holdout_target_is_null(self):
        merged = make_merged()
        assert all(r["Survived"] is None for r in merged.holdout())

    def test_training_target_unchanged(self):
        train = make_train()
        merged = merge(train, make_test(), TITANIC_SCHEMA)
        assert [r["Survived"] for r in merged.training()] == [r["Survived"] for r in train]

    def test_inputs_not_mutated(self):
        train, test = make_train(), make_test()
        before = copy.deepcopy((train, test))
        merge(train, test, TITANIC_SCHEMA)
        assert (train, test) == before

    def test_declared_columns_filled_with_null(self):
        train = [{"PassengerId": 1, "Survived": 1}]
        test = [{"PassengerId": 2}]
        merged = merge(train, test, TITANIC_SCHEMA)
        assert merged[0]["Age"] is None
        assert merged[1]["Embarked"] is None

    def test_non_numeric_declared_cell_becomes_null(self):
        train = make_train()
        train[0]["Age"] = "n/a"
        merged = merge(train, make_test(), TITANIC_SCHEMA)
        assert merged[0]["Age"] is None
        assert merged[1]["Age"] == 35
        assert train[0]["Age"] == "n/a"

    def test_undeclared_columns_carried_through(self):
        train = make_train()
        train[0]["Cabin"] = "C85"
        merged = merge(train, make_test(), TITANIC_SCHEMA)
        assert merged[0]["Cabin"] == "C85"
        assert "Cabin" in merged.field_names()

    def test_empty_training_rejected(self):
        with pytest.raises(SchemaViolation) as exc:
            merge([], make_test(), TITANIC_SCHEMA)
        assert exc.value.kind == ViolationKind.EMPTY_INPUT

    def test_empty_holdout_rejected(self):
        with pytest.raises(SchemaViolation) as exc:
            merge(make_train(), [], TITANIC_SCHEMA)
        assert exc.value.kind == ViolationKind.EMPTY_INPUT

    def test_swapped_files_rejected(self):
        with pytest.raises(SchemaViolation) as exc:
            merge(make_test(), make_test(), TITANIC_SCHEMA)
        assert exc.value.kind == ViolationKind.TARGET_MISSING_FROM_TRAINING
        assert "swapped" in str(exc.value)

    def test_holdout_with_target_rejected(self):
        with pytest.raises(SchemaViolation) as exc:
            merge(make_train(), make_train(), TITANIC_SCHEMA)
        assert exc.value.kind == ViolationKind.TARGET_PRESENT_IN_HOLDOUT

    def test_every_training_row_checked(self):
        train = make_train() + [{"PassengerId": 9, "Age": 40}]
        with pytest.raises(SchemaViolation) as exc:
            merge(train, make_test(), TITANIC_SCHEMA)
        assert exc.value.kind == ViolationKind.TARGET_MISSING_FROM_TRAINING

    def test_violation_to_dict_has_kind(self):
        with pytest.raises(SchemaViolation) as exc:
            merge([], [], TITANIC_SCHEMA)
        payload = exc.value.to_dict()
        assert payload["kind"] == "empty_input"
        assert payload["message"]

    def test_dataset_rows_are_read_only(self):
        merged = make_merged()
        assert isinstance(merged[0], MappingProxyType)
        with pytest.raises(TypeError):
            merged[0]["Age"] = 99

    def test_field_names_first_seen(self):
        merged = make_merged()
        names = merged.field_names()
        assert names[0] == "PassengerId"
        assert names[-1] == "DataSource"
        assert merged.train_rows == 2 and merged.test_rows == 1


# ═══════════════════════════════════════════════════════════════
# 3. DESCRIPTIVE STATISTICS TESTS
# ═══════════════════════════════════════════════════════════════

class TestDescriptive:
    """Tests for descriptive.py"""

    def test_median_and_quartiles(self):
        v = [1.0, 2.0, 3.0, 4.0]
        assert median(v) == 2.5
        assert percentile(v, 25) == pytest.approx(1.75)
        assert percentile(v, 75) == pytest.approx(3.25)

    def test_odd_length_median(self):
        assert median([1.0, 5.0, 9.0]) == 5.0

    def test_population_std(self):
        s = summarize([2, 4, 4, 4, 5, 5, 7, 9])
        assert s.mean == 5.0
        assert s.std == pytest.approx(2.0)
        assert s.variance == pytest.approx(4.0)

    def test_single_value(self):
        s = summarize([42.0])
        assert s.count == 1
        assert s.std == 0.0
        assert s.q25 == s.q75 == s.median == 42.0

    def test_empty_skipped(self):
        with pytest.raises(ComputationSkipped):
            summarize([], "Age")

    def test_describe_end_to_end(self):
        stats = describe(make_merged(), ["Age"])
        age = stats["Age"]
        assert age.count == 3
        assert age.mean == pytest.approx((22 + 35 + 28) / 3)
        assert age.min == 22
        assert age.max == 35

    def test_describe_ignores_nulls_and_non_numbers(self):
        records = [{"Age": 10}, {"Age": None}, {"Age": "n/a"}, {"Age": float("nan")}, {"Age": 20}]
        assert describe(records, ["Age"])["Age"].count == 2

    def test_summarize_matches_pandas(self):
        values = pd.Series([3.0, 1.0, 4.0, 1.0, 5.0, 9.0, 2.0, 6.0])
        s = summarize(values, "x")
        assert s.std == pytest.approx(values.std(ddof=0))
        assert s.std != pytest.approx(values.std())
        assert s.q25 == pytest.approx(values.quantile(0.25))
        assert s.q75 == pytest.approx(values.quantile(0.75))
        assert type(s.mean) is float
        assert type(s.count) is int

    def test_finite_values_keeps_record_order(self):
        records = [{"Age": 30}, {"Age": None}, {"Age": "x"}, {"Age": 10}, {"Age": float("inf")}]
        values = finite_values(records, "Age")
        assert isinstance(values, pd.Series)
        assert values.tolist() == [30.0, 10.0]

    def test_describe_omits_fields_without_values(self):
        records = [{"Age": None}, {"Age": None}]
        assert describe(records, ["Age"]) == {}

    def test_describe_is_deterministic(self):
        records = [dict(r) for r in make_merged()]
        before = copy.deepcopy(records)
        first = describe(records, TITANIC_SCHEMA.numerical_fields)
        second = describe(records, TITANIC_SCHEMA.numerical_fields)
        assert first == second
        assert records == before

    def test_repeated_describe_does_not_grow_memory(self):
        rng = random.Random(7)
        records = [{"Age": rng.uniform(0, 80), "Fare": rng.uniform(0, 500)} for _ in range(2000)]
        describe(records, ["Age", "Fare"])

        tracemalloc.start()
        try:
            describe(records, ["Age", "Fare"])
            baseline, _ = tracemalloc.get_traced_memory()
            for _ in range(30):
                describe(records, ["Age", "Fare"])
            current, _ = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        assert current - baseline < 256 * 1024


# ═══════════════════════════════════════════════════════════════
# 4. MISSINGNESS TESTS
# ═══════════════════════════════════════════════════════════════

class TestMissingness:
    """Tests for missingness.py"""

    def test_all_null_field(self):
        records = [{"Cabin": None}, {"Cabin": None}, {"Cabin": None}]
        entry = analyze_missing(records, ["Cabin"])[0]
        assert entry.missing_count == 3
        assert entry.missing_percent == 100.00
        assert entry.tier == MissingTier.HIGH

    def test_no_null_field(self):
        entry = analyze_missing(list(make_merged()), ["Age"])[0]
        assert entry.missing_count == 0
        assert entry.missing_percent == 0.0
        assert entry.tier != MissingTier.HIGH

    def test_absent_key_counts_as_missing(self):
        entry = analyze_missing([{"a": 1}, {}], ["a"])[0]
        assert entry.missing_count == 1
        assert entry.missing_percent == 50.0

    def test_sorted_most_missing_first(self):
        records = [{"a": None, "b": 1, "c": None}, {"a": None, "b": None, "c": 1}]
        entries = analyze_missing(records, ["b", "a", "c"])
        assert [e.field for e in entries] == ["a", "b", "c"]

    def test_tier_boundaries_are_strict(self):
        assert recommendation_tier(50.0) == MissingTier.MODERATE
        assert recommendation_tier(50.01) == MissingTier.HIGH
        assert recommendation_tier(20.0) == MissingTier.LOW
        assert recommendation_tier(20.01) == MissingTier.MODERATE

    def test_recommendation_text(self):
        assert "dropping" in MissingTier.HIGH.recommendation
        assert MissingEntry("Cabin", 7, 77.1).to_dict()["tier"] == "high"

    def test_empty_records(self):
        assert analyze_missing([], ["a"])[0].missing_percent == 0.0
        assert overall_missing_percent([], ["a"]) == 0.0

    def test_missing_counts_per_field(self):
        records = [{"a": None, "b": "NA"}, {"a": float("nan"), "b": ""}, {"b": 0}]
        counts = missing_counts(records, ["a", "b"])
        assert counts["a"] == 3
        # "NA" and "" are values, only null / NaN / absent are missing
        assert counts["b"] == 0

    def test_overall_percent(self):
        records = [{"a": None, "b": 1}, {"a": 2, "b": 3}]
        assert overall_missing_percent(records, ["a", "b"]) == 25.0


# ═══════════════════════════════════════════════════════════════
# 5. CORRELATION TESTS
# ═══════════════════════════════════════════════════════════════

class TestCorrelation:
    """Tests for correlation.py"""

    def make_records(self, n=200):
        rng = random.Random(42)
        records = []
        for _ in range(n):
            x = rng.gauss(0, 1)
            records.append({
                "x": x if rng.random() > 0.1 else None,
                "y": 2 * x + rng.gauss(0, 0.5) if rng.random() > 0.2 else None,
                "z": rng.gauss(0, 1),
                "w": -x,
            })
        return records

    def test_bounds_and_symmetry(self):
        fields = ["x", "y", "z", "w"]
        cm = correlation_matrix(self.make_records(), fields)
        for a in fields:
            for b in fields:
                r = cm.get(a, b)
                assert -1 - 1e-9 <= r <= 1 + 1e-9
                assert cm.get(a, b) == cm.get(b, a)

    def test_diagonal_is_one(self):
        cm = correlation_matrix(self.make_records(), ["x", "y"])
        assert cm.get("x", "x") == 1.0
        assert cm.get("y", "y") == 1.0

    def test_self_correlation(self):
        xs = [1.0, 2.0, 3.0, 5.0, 8.0]
        assert pearson(xs, xs) == pytest.approx(1.0, abs=1e-9)

    def test_perfect_negative(self):
        cm = correlation_matrix(self.make_records(), ["x", "w"])
        assert cm.get("x", "w") == pytest.approx(-1.0, abs=1e-6)

    def test_pairwise_dropout(self):
        records = [
            {"a": 1, "b": None},
            {"a": None, "b": 5},
            {"a": 2, "b": 2},
            {"a": 3, "b": 3},
        ]
        xs, ys = paired_values(records, "a", "b")
        assert xs == [2.0, 3.0]
        assert ys == [2.0, 3.0]

    def test_constant_series_is_zero(self):
        assert pearson([1.0, 1.0, 1.0], [1.0, 2.0, 3.0]) == 0.0

    def test_constant_column_in_matrix_is_zero(self):
        records = [{"a": 1.0, "k": 4.0}, {"a": 2.0, "k": 4.0}, {"a": 3.0, "k": 4.0}]
        assert np.isnan(pd.DataFrame(records).corr().loc["a", "k"])
        cm = correlation_matrix(records, ["a", "k"])
        assert cm.get("a", "k") == 0.0
        assert cm.get("k", "k") == 1.0

    def test_matrix_matches_pandas_on_complete_data(self):
        records = [r for r in self.make_records() if r["x"] is not None and r["y"] is not None]
        cm = correlation_matrix(records, ["x", "y"])
        expected = pd.DataFrame(records)[["x", "y"]].corr().loc["x", "y"]
        assert cm.get("x", "y") == pytest.approx(expected, abs=1e-8)

    def test_no_pairs_is_zero(self):
        assert pearson([], []) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            pearson([1.0], [1.0, 2.0])

    def test_high_pairs(self):
        cm = correlation_matrix(self.make_records(), ["x", "y", "z"])
        pairs = cm.high_pairs()
        assert pairs[0]["feature1"] == "x"
        assert pairs[0]["feature2"] == "y"
        assert all(p["abs_correlation"] >= 0.5 for p in pairs)
        assert cm.to_dict()["method"] == "pearson"


# ═══════════════════════════════════════════════════════════════
# 6. CROSS-TAB & BINNING TESTS
# ═══════════════════════════════════════════════════════════════

class TestCrossTab:
    """Tests for crosstab.py"""

    def test_empty_group_has_no_rate(self):
        g = GroupCounts()
        assert g.is_empty
        assert g.rate is None
        assert g.rate_percent is None

    def test_rate(self):
        g = GroupCounts(positives=3, negatives=1)
        assert g.total == 4
        assert g.rate == 0.75
        assert g.rate_percent == 75.0

    def test_outcome(self):
        assert outcome({"y": 1}, "y") == 1
        assert outcome({"y": 0.0}, "y") == 0
        assert outcome({"y": True}, "y") == 1
        assert outcome({"y": None}, "y") is None
        assert outcome({"y": 2}, "y") is None
        assert outcome({}, "y") is None

    def test_group_counts_skip_holdout(self):
        groups = group_counts(make_merged(), "Sex", "Survived")
        assert groups["female"] == GroupCounts(1, 0)
        assert groups["male"] == GroupCounts(0, 1)

    def test_group_counts_fixed_values(self):
        groups = group_counts(make_merged(), "Pclass", "Survived", values=(1, 2, 3))
        assert list(groups) == [1, 2, 3]
        assert groups[2].is_empty

    def test_rate_gap(self):
        groups = {"a": GroupCounts(3, 1), "b": GroupCounts(1, 3), "c": GroupCounts()}
        hi, lo, gap = rate_gap(groups)
        assert (hi, lo) == ("a", "b")
        assert gap == pytest.approx(0.5)
        assert rate_gap({"a": GroupCounts(1, 0)}) is None

    def test_below_min_is_dropped_not_clamped(self):
        values = [-5, 0, 79.9, 80, 200]
        counts = bin_counts(values, 0, 80, 8)
        assert sum(counts) < len(values)
        assert counts[0] == 1
        assert counts[7] == 3

    def test_bin_counts_skip_nulls(self):
        assert bin_counts([None, "x", 5, 15], 0, 20, 2) == [1, 1]

    def test_bucket_labels_share_number_format(self):
        assert bucket_labels([0, 7.5, 10]) == ["0-7.5", "7.5-10", "10+"]
        assert fmt_number(10.0) == "10"
        assert fmt_number(7.5) == "7.5"

    def test_bin_index(self):
        assert bin_index(15, 0, 80, 8) == 1
        assert bin_index(-0.1, 0, 80, 8) is None
        assert bin_index(None, 0, 80, 8) is None
        with pytest.raises(ValueError):
            bin_index(1, 5, 5, 8)

    def test_binned_group_counts(self):
        groups = binned_group_counts(make_merged(), "Age", "Survived", 0, 80, 8)
        assert groups[2] == GroupCounts(1, 0)   # 22
        assert groups[3] == GroupCounts(0, 1)   # 35; holdout 28 not counted

    def test_range_buckets(self):
        edges = (0, 50, 100, 200, 300)
        assert bucket_index(-1, edges) == 0
        assert bucket_index(7.25, edges) == 0
        assert bucket_index(150, edges) == 2
        assert bucket_index(512.33, edges) == 4
        assert bucket_labels(edges) == ["0-50", "50-100", "100-200", "200-300", "300+"]

    def test_range_bucket_group_counts(self):
        groups = range_bucket_group_counts(make_merged(), "Fare", "Survived", (0, 50, 100, 200, 300))
        assert len(groups) == 5
        assert groups[0] == GroupCounts(1, 1)

    def test_two_way(self):
        cells = two_way_counts(make_merged(), "Sex", "Pclass", "Survived")
        assert cells[("female", 1)] == GroupCounts(1, 0)
        assert cells[("male", 3)] == GroupCounts(0, 1)
        assert ("female", 2) not in cells


# ═══════════════════════════════════════════════════════════════
# 7. INSIGHT SYNTHESIZER TESTS
# ═══════════════════════════════════════════════════════════════

class TestInsights:
    """Tests for insights.py"""

    def test_finding_order(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        kinds = [f.kind for f in report.findings]
        assert kinds == ["largest_rate_gap", "rate_gap", "mean_gap", "missingness", "feature_ideas"]

    def test_largest_gap_numbers(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        top = report.findings[0]
        assert top.column == "Sex"
        assert top.groups == ["female", "male"]
        assert top.supporting_numbers["gap_pct"] == 100.0

    def test_mean_gap_picks_largest_difference(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        mean_gap = next(f for f in report.findings if f.kind == "mean_gap")
        assert mean_gap.column == "Age"
        assert mean_gap.supporting_numbers["gap"] == pytest.approx(22 - 35)

    def test_missingness_finding(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        missing = next(f for f in report.findings if f.kind == "missingness")
        assert missing.groups == ["Survived"]
        assert missing.supporting_numbers["fields_flagged"] == 1

    def test_no_inputs_no_findings(self):
        assert InsightSynthesizer().synthesize({}, {}, {}) == []

    def test_single_group_field_skipped(self):
        findings = InsightSynthesizer().synthesize({"Sex": {"male": GroupCounts(1, 1)}}, {}, {})
        assert findings == []


# ═══════════════════════════════════════════════════════════════
# 8. INGESTION TESTS
# ═══════════════════════════════════════════════════════════════

class TestIngestion:
    """Tests for ingestion.py"""

    def test_parse_bytes(self):
        records = read_records(TRAIN_CSV, "train.csv")
        assert len(records) == 6
        first = records[0]
        assert first["PassengerId"] == 1
        assert type(first["PassengerId"]) is int
        assert first["Sex"] == "male"
        assert first["Fare"] == 7.25

    def test_empty_cell_is_none(self):
        records = read_records(TRAIN_CSV, "train.csv")
        assert records[5]["Age"] is None

    def test_literal_na_is_a_value(self):
        records = read_records(b"Region,Code\nNA,1\nEU,\n")
        assert records[0]["Region"] == "NA"
        assert records[1]["Region"] == "EU"
        assert records[1]["Code"] is None

    def test_non_numeric_cell_keeps_column_numeric(self):
        csv = b"PassengerId,Age\n1,22\n2,35\n3,unknown\n"
        records = read_records(csv, "train.csv", numeric_fields=("Age",))
        assert [r["Age"] for r in records] == [22.0, 35.0, None]
        assert describe(records, ["Age"])["Age"].count == 2

    def test_undeclared_column_not_coerced(self):
        records = read_records(b"Ticket,Age\nA/5 21171,22\n113803,x\n", numeric_fields=("Age",))
        assert records[0]["Ticket"] == "A/5 21171"
        assert records[1]["Ticket"] == "113803"
        assert records[1]["Age"] is None

    def test_headers_stripped(self):
        records = read_records(b" a , b \n1,2\n")
        assert list(records[0]) == ["a", "b"]

    def test_empty_file(self):
        assert read_records(b"", "train.csv") == []

    def test_malformed_file(self):
        with pytest.raises(IngestionFailure) as exc:
            read_records(b"a,b\n1,2\n3,4,5\n", "broken.csv")
        assert "broken.csv" in str(exc.value)
        assert exc.value.parser_message

    def test_duplicate_headers_after_strip(self):
        with pytest.raises(IngestionFailure):
            read_records(b"a, a\n1,2\n")


# ═══════════════════════════════════════════════════════════════
# 9. EXPORT TESTS
# ═══════════════════════════════════════════════════════════════

class TestExport:
    """Tests for export.py"""

    def test_csv_header_and_nulls(self):
        dataset = make_merged()
        lines = to_csv(dataset).splitlines()
        assert lines[0].split(",") == dataset.field_names()
        assert len(lines) == 4
        holdout = lines[3].split(",")
        assert holdout[dataset.field_names().index("Survived")] == ""
        assert holdout[-1] == "test"
        assert "female" in holdout and "Q" in holdout

    def test_summary_shape(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        summary = build_summary(report)
        assert summary["overview"] == {"trainRows": 2, "testRows": 1, "totalRows": 3, "columns": 10}
        assert set(summary["statistics"]) == set(TITANIC_SCHEMA.numerical_fields)
        assert summary["survivalRates"]["overall"] == 50.0
        assert summary["survivalRates"]["Sex"] == {"male": 0.0, "female": 100.0}
        assert summary["survivalRates"]["Pclass"]["2"] is None
        assert "T" in summary["timestamp"]

    def test_json_is_parseable(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        parsed = json.loads(to_json(build_summary(report)))
        assert parsed["overview"]["totalRows"] == 3


# ═══════════════════════════════════════════════════════════════
# 10. ORCHESTRATOR / END-TO-END
# ═══════════════════════════════════════════════════════════════

class TestEndToEnd:
    """Tests for analysis.py"""

    def test_scenario(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        assert len(report.dataset) == 3
        assert report.statistics["Age"].count == 3
        age = next(e for e in report.missing if e.field == "Age")
        assert age.missing_percent == 0.0

    def test_outcome_split_uses_training_only(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run(make_train(), make_test())
        assert report.positive_stats["Age"].count == 1
        assert report.negative_stats["Age"].count == 1
        assert report.overall == GroupCounts(1, 1)

    def test_from_csv_bytes(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run_files(TRAIN_CSV, TEST_CSV)
        assert report.overview() == {"train_rows": 6, "test_rows": 3, "total_rows": 9, "columns": 11}
        age = next(e for e in report.missing if e.field == "Age")
        assert age.missing_count == 2
        assert report.rate_splits["Embarked"]["C"] == GroupCounts(1, 0)

    def test_to_dict_is_json_serializable(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run_files(TRAIN_CSV, TEST_CSV)
        payload = json.loads(json.dumps(report.to_dict()))
        assert payload["overview"]["total_rows"] == 9
        assert len(payload["preview"]) == 9
        assert payload["findings"][0]["kind"] == "largest_rate_gap"
        assert "Sex x Pclass" in payload["two_way"]

    def test_charts(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run_files(TRAIN_CSV, TEST_CSV)
        charts = {c.chart_id: c for c in report.charts()}
        assert set(charts) >= {
            "missing_values", "hist_Age", "buckets_Fare",
            "rate_Sex", "rate_Pclass", "rate_Embarked", "correlation",
        }
        assert charts["hist_Age"].labels[0] == "0-10"
        assert [s.name for s in charts["rate_Sex"].series] == ["Died", "Survived"]
        assert charts["rate_Pclass"].labels == ["1st Class", "2nd Class", "3rd Class"]
        assert len(charts["correlation"].series) == len(TITANIC_SCHEMA.numerical_fields)

    def test_non_numeric_age_still_described(self):
        train = TRAIN_CSV.replace(b"Allen,male,35,", b"Allen,male,unknown,")
        report = EdaAnalyzer(TITANIC_SCHEMA).run_files(train, TEST_CSV)
        assert report.statistics["Age"].count == 6
        age = next(e for e in report.missing if e.field == "Age")
        assert age.missing_count == 3

    def test_distributions_cover_all_rows(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run_files(TRAIN_CSV, TEST_CSV)
        assert sum(report.distributions["Age"]) == 7
        assert report.distributions["Age"][2] == 2
        payload = report.to_dict()
        assert payload["distributions"]["Age"]["20-30"] == 2
        charts = {c.chart_id: c for c in report.charts()}
        assert charts["dist_Age"].series[0].values == report.distributions["Age"]

    def test_extra_fields(self):
        report = EdaAnalyzer(TITANIC_SCHEMA).run_files(TRAIN_CSV, TEST_CSV)
        assert report.extra_fields() == ["Name"]
        assert report.to_dict()["extra_fields"] == ["Name"]

    def test_swapped_csv_files(self):
        with pytest.raises(SchemaViolation) as exc:
            EdaAnalyzer(TITANIC_SCHEMA).run_files(TEST_CSV, TRAIN_CSV)
        assert exc.value.kind == ViolationKind.TARGET_MISSING_FROM_TRAINING

    def test_repeated_runs_are_independent(self):
        analyzer = EdaAnalyzer(TITANIC_SCHEMA)
        first = analyzer.run(make_train(), make_test())
        second = analyzer.run_files(TRAIN_CSV, TEST_CSV)
        assert len(first.dataset) == 3
        assert len(second.dataset) == 9
        assert math.isclose(first.statistics["Age"].mean, (22 + 35 + 28) / 3)
