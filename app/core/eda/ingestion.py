"""
Ingestion — CSV → ordered records
===================================
Reads one CSV with pandas and hands back plain dict records:
  - header names stripped of surrounding whitespace
  - empty cells → None; literal "NA" / "null" / "None" stay strings
  - declared numerical columns coerced cell by cell: a non-numeric cell
    becomes None, the rest of the column stays numeric
  - numpy scalars → Python int / float / bool
  - a zero-byte file → [] (the merger reports it as EMPTY_INPUT)
  - a malformed file → IngestionFailure with the parser message
"""

import io
import logging
from typing import Any, BinaryIO, Dict, Iterable, List, Union

import numpy as np
import pandas as pd

from .errors import IngestionFailure

logger = logging.getLogger(__name__)

Source = Union[str, bytes, BinaryIO]


def _to_python(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value != value:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def _coerce_numeric(df: pd.DataFrame, columns: Iterable[str], name: str) -> None:
    for col in columns:
        if col not in df.columns or pd.api.types.is_numeric_dtype(df[col]):
            continue
        text = df[col].map(lambda v: (v.strip() or None) if isinstance(v, str) else v)
        coerced = pd.to_numeric(text, errors="coerce")
        dropped = int(text.notna().sum() - coerced.notna().sum())
        if dropped:
            logger.warning(f"{name}: {dropped} non-numeric value(s) in '{col}' treated as missing")
        df[col] = coerced.astype("float64")


def read_records(
    source: Source,
    name: str = "<upload>",
    numeric_fields: Iterable[str] = (),
) -> List[Dict[str, Any]]:
    """
    Parse a CSV into records in file order.

    Args:
        source: path, raw bytes, or a binary file object
        name: label used in error messages and logs
        numeric_fields: columns that must come back as numbers or None

    Raises:
        IngestionFailure: when pandas cannot parse the content.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)

    try:
        df = pd.read_csv(source, skip_blank_lines=True, keep_default_na=False, na_values=[""])
    except pd.errors.EmptyDataError:
        logger.warning(f"{name}: file is empty")
        return []
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        raise IngestionFailure(name, str(e)) from e

    df.columns = [str(c).strip() for c in df.columns]
    if len(set(df.columns)) != len(df.columns):
        raise IngestionFailure(name, "duplicate column names after trimming headers")

    _coerce_numeric(df, numeric_fields, name)

    columns = list(df.columns)
    records = [
        {col: _to_python(value) for col, value in zip(columns, row)}
        for row in df.itertuples(index=False, name=None)
    ]
    logger.info(f"{name}: parsed {len(records)} rows x {len(columns)} columns")
    return records
