"""
Schema Config — Field roles for a split (train/test) dataset
==============================================================
Declares which columns are numerical, categorical, identifier or target.
Every other component reads field names from here, so analysing a different
split dataset only needs a new Schema value.

The presentation-level settings (histogram ranges, range buckets, rate
fields, 2-way pairs, suggested features) ride on the same frozen value.

Checked access:
  schema.numeric_value(record, "Age")      → finite number or None
  schema.category_value(record, "Sex")     → str or None
  schema.extras(record)                    → undeclared columns
  schema.typed_record(record)              → all of the above, one row
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import UnknownField

Record = Dict[str, Any]

TRAIN = "train"
TEST = "test"


@dataclass(frozen=True)
class HistogramSpec:
    """Equal-width bins over [min, max)."""
    min: float
    max: float
    bins: int

    def labels(self) -> List[str]:
        width = (self.max - self.min) / self.bins
        return [
            f"{fmt_number(self.min + i * width)}-{fmt_number(self.min + (i + 1) * width)}"
            for i in range(self.bins)
        ]


@dataclass(frozen=True)
class Schema:
    target: str
    numerical_fields: Tuple[str, ...]
    categorical_fields: Tuple[str, ...]
    identifier_field: str
    provenance_field: str = "DataSource"

    # ── Presentation / cross-tab configuration ──
    histograms: Mapping[str, HistogramSpec] = field(default_factory=dict)
    range_buckets: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)
    rate_fields: Tuple[str, ...] = ()
    rate_values: Mapping[str, Tuple[Any, ...]] = field(default_factory=dict)
    two_way: Tuple[Tuple[str, str], ...] = ()
    category_labels: Mapping[str, Mapping[Any, str]] = field(default_factory=dict)
    suggested_features: Tuple[str, ...] = ()
    positive_label: str = "Positive"
    negative_label: str = "Negative"

    def __post_init__(self):
        overlap = set(self.numerical_fields) & set(self.categorical_fields)
        if overlap:
            raise ValueError(f"Fields declared both numerical and categorical: {sorted(overlap)}")
        reserved = {self.target, self.identifier_field, self.provenance_field}
        if len(reserved) != 3:
            raise ValueError("target, identifier and provenance fields must be distinct")
        for name in self.rate_fields:
            self._require_declared(name, "rate field")
        for a, b in self.two_way:
            self._require_declared(a, "2-way field")
            self._require_declared(b, "2-way field")

    # ──────────────────────────────────────────────────────────
    # Field sets
    # ──────────────────────────────────────────────────────────

    @property
    def declared_fields(self) -> Tuple[str, ...]:
        return (self.identifier_field, self.target) + self.numerical_fields + self.categorical_fields

    def analysis_fields(self, field_names: Iterable[str]) -> List[str]:
        """Every column except identifier and provenance, in the given order."""
        excluded = {self.identifier_field, self.provenance_field}
        return [f for f in field_names if f not in excluded]

    def with_names(
        self,
        target: Optional[str] = None,
        identifier_field: Optional[str] = None,
        provenance_field: Optional[str] = None,
    ) -> "Schema":
        """Copy with the role columns renamed (used for env overrides)."""
        return replace(
            self,
            target=target or self.target,
            identifier_field=identifier_field or self.identifier_field,
            provenance_field=provenance_field or self.provenance_field,
        )

    # ──────────────────────────────────────────────────────────
    # Checked access
    # ──────────────────────────────────────────────────────────

    def numeric_value(self, record: Mapping[str, Any], name: str) -> Optional[float]:
        """The value if it is a finite number (ints stay ints), else None."""
        if name not in self.numerical_fields and name != self.target:
            raise UnknownField(name, "numerical")
        value = record.get(name)
        return value if as_finite(value) is not None else None

    def category_value(self, record: Mapping[str, Any], name: str) -> Optional[Any]:
        if name not in self.categorical_fields and name not in self.rate_fields:
            raise UnknownField(name, "categorical")
        value = record.get(name)
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value

    def extras(self, record: Mapping[str, Any]) -> Record:
        known = set(self.declared_fields) | {self.provenance_field}
        return {k: v for k, v in record.items() if k not in known}

    def typed_record(self, record: Mapping[str, Any]) -> Record:
        """
        Copy of `record` with every declared numerical/categorical field read
        through the checked accessors and absent declared fields set to None.
        Undeclared columns (extras) and the target are copied as-is, in order.
        """
        row: Record = {}
        for name, value in record.items():
            if name in self.numerical_fields:
                row[name] = self.numeric_value(record, name)
            elif name in self.categorical_fields:
                row[name] = self.category_value(record, name)
            else:
                row[name] = value
        for name in (self.identifier_field,) + self.numerical_fields + self.categorical_fields:
            row.setdefault(name, None)
        return row

    def label_for(self, name: str, value: Any) -> str:
        labels = self.category_labels.get(name, {})
        return labels.get(value, str(value))

    def _require_declared(self, name: str, role: str) -> None:
        if name not in self.numerical_fields and name not in self.categorical_fields:
            raise UnknownField(name, role)


def as_finite(value: Any) -> Optional[float]:
    """Return value as a float if it is a finite real number, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = float(value)
        return value if math.isfinite(value) else None
    return None


def fmt_number(x: float) -> str:
    return str(int(x)) if float(x).is_integer() else f"{x:g}"


# ═══════════════════════════════════════════════════════════════
# DEFAULT: TITANIC
# ═══════════════════════════════════════════════════════════════

TITANIC_SCHEMA = Schema(
    target="Survived",
    numerical_fields=("Age", "Fare", "SibSp", "Parch", "Pclass"),
    categorical_fields=("Sex", "Embarked"),
    identifier_field="PassengerId",
    provenance_field="DataSource",
    histograms={"Age": HistogramSpec(0, 80, 8)},
    range_buckets={"Fare": (0, 50, 100, 200, 300)},
    rate_fields=("Sex", "Pclass", "Embarked"),
    rate_values={
        "Sex": ("male", "female"),
        "Pclass": (1, 2, 3),
        "Embarked": ("C", "Q", "S"),
    },
    two_way=(("Sex", "Pclass"),),
    category_labels={
        "Sex": {"male": "Male", "female": "Female"},
        "Pclass": {1: "1st Class", 2: "2nd Class", 3: "3rd Class"},
        "Embarked": {"C": "Cherbourg (C)", "Q": "Queenstown (Q)", "S": "Southampton (S)"},
    },
    suggested_features=(
        "Create 'IsAlone' feature (SibSp + Parch == 0)",
        "Extract title from Name (Mr., Mrs., Miss., Master.)",
        "Group Age into buckets (child, adult, senior)",
        "Create 'FamilySize' = SibSp + Parch + 1",
    ),
    positive_label="Survived",
    negative_label="Died",
)


def default_schema() -> Schema:
    """Titanic schema with role-column names taken from Settings."""
    from app.config import settings

    return TITANIC_SCHEMA.with_names(
        target=settings.EDA_TARGET,
        identifier_field=settings.EDA_IDENTIFIER,
        provenance_field=settings.EDA_PROVENANCE,
    )
