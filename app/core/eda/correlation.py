"""
Correlation Engine — Pairwise Pearson matrix with pairwise dropout
====================================================================
For each pair of fields only the records where BOTH values are finite are
used, so the two series stay aligned row-for-row. Filtering each field on
its own and truncating to the shorter length would pair values from
different records whenever the nulls do not line up.

  r = Σ(dx·dy) / (sqrt(Σdx² · Σdy²) + 1e-10)

The epsilon keeps constant fields at r = 0 instead of dividing by zero.
The diagonal is exactly 1.0; the upper triangle is mirrored.
"""

import logging

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from .frame import numeric_frame

logger = logging.getLogger(__name__)

EPSILON = 1e-10
HIGH_CORRELATION = 0.5


def _pair_mask(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    return np.isfinite(x) & np.isfinite(y)


def paired_values(
    records: Iterable[Mapping[str, Any]],
    field_x: str,
    field_y: str,
) -> Tuple[List[float], List[float]]:
    """Values of both fields from the records where both are finite."""
    df = numeric_frame(records, [field_x, field_y])
    x = df[field_x].to_numpy()
    y = df[field_y].to_numpy()
    mask = _pair_mask(x, y)
    return x[mask].tolist(), y[mask].tolist()


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r of two aligned, equal-length series. Empty series → 0.0."""
    x = np.asarray(xs, dtype="float64")
    y = np.asarray(ys, dtype="float64")
    if x.shape != y.shape:
        raise ValueError(f"Series must be paired: {len(x)} != {len(y)}")
    if x.size == 0:
        return 0.0

    dx = x - x.mean()
    dy = y - y.mean()
    # DataFrame.corr gives NaN for constant columns; the epsilon gives 0.0
    return float((dx * dy).sum() / (np.sqrt((dx * dx).sum() * (dy * dy).sum()) + EPSILON))


@dataclass(frozen=True)
class CorrelationMatrix:
    fields: Tuple[str, ...]
    matrix: Tuple[Tuple[float, ...], ...]

    def get(self, field_x: str, field_y: str) -> float:
        return self.matrix[self.fields.index(field_x)][self.fields.index(field_y)]

    def high_pairs(self, threshold: float = HIGH_CORRELATION) -> List[Dict[str, Any]]:
        pairs = []
        n = len(self.fields)
        for i in range(n):
            for j in range(i + 1, n):
                r = self.matrix[i][j]
                if abs(r) >= threshold:
                    pairs.append({
                        "feature1": self.fields[i],
                        "feature2": self.fields[j],
                        "correlation": round(r, 4),
                        "abs_correlation": round(abs(r), 4),
                    })
        pairs.sort(key=lambda p: p["abs_correlation"], reverse=True)
        return pairs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": list(self.fields),
            "matrix": [list(row) for row in self.matrix],
            "high_pairs": self.high_pairs(),
            "method": "pearson",
        }


def correlation_matrix(
    records: Iterable[Mapping[str, Any]],
    fields: Sequence[str],
) -> CorrelationMatrix:
    values = numeric_frame(records, fields).to_numpy()
    n = len(fields)
    cells = np.eye(n)

    for i in range(n):
        for j in range(i + 1, n):
            mask = _pair_mask(values[:, i], values[:, j])
            r = pearson(values[mask, i], values[mask, j])
            cells[i, j] = r
            cells[j, i] = r
            if mask.sum() < 2:
                logger.debug(f"correlation {fields[i]}~{fields[j]}: only {int(mask.sum())} paired values")

    return CorrelationMatrix(
        fields=tuple(fields),
        matrix=tuple(tuple(float(v) for v in row) for row in cells),
    )
