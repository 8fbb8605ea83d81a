"""
Record → DataFrame adapters shared by the statistics engines.

  numeric_frame(records, fields)  float64, NaN for null / non-finite / non-number
  raw_frame(records, fields)      object dtype, values untouched, absent → NaN
"""

from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from .schema import as_finite


def _as_float(value: Any) -> float:
    v = as_finite(value)
    return np.nan if v is None else v


def raw_frame(records: Iterable[Mapping[str, Any]], fields: Sequence[str]) -> pd.DataFrame:
    rows = [[r.get(f) for f in fields] for r in records]
    return pd.DataFrame(rows, columns=list(fields), dtype=object)


def numeric_frame(records: Iterable[Mapping[str, Any]], fields: Sequence[str]) -> pd.DataFrame:
    rows = [[_as_float(r.get(f)) for f in fields] for r in records]
    return pd.DataFrame(rows, columns=list(fields), dtype="float64")
