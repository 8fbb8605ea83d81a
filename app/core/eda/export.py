"""
Export — merged-dataset CSV and JSON summary
==============================================
  to_csv(dataset)        header = union of field names (first-seen), null → ""
  build_summary(report)  {overview, statistics, survivalRates, timestamp}
  to_json(summary)       pretty-printed, 2-space indent
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pandas as pd

from .dataset import Dataset
from .descriptive import stats_table

logger = logging.getLogger(__name__)

CSV_FILENAME = "merged_dataset.csv"
JSON_FILENAME = "eda_summary.json"


def to_csv(dataset: Dataset) -> str:
    columns = dataset.field_names()
    # dtype=object keeps ints as ints when a column also holds None
    df = pd.DataFrame([dict(r) for r in dataset], columns=columns, dtype=object)
    text = df.to_csv(index=False, na_rep="")
    logger.info(f"CSV export: {len(df)} rows x {len(columns)} columns")
    return text


def build_summary(report, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """JSON-ready summary of one AnalysisReport."""
    timestamp = timestamp or datetime.now(timezone.utc)
    overview = report.overview()

    rates: Dict[str, Any] = {"overall": report.overall.rate_percent}
    for name, groups in report.rate_splits.items():
        rates[name] = {str(value): counts.rate_percent for value, counts in groups.items()}

    return {
        "overview": {
            "trainRows": overview["train_rows"],
            "testRows": overview["test_rows"],
            "totalRows": overview["total_rows"],
            "columns": overview["columns"],
        },
        "statistics": stats_table(report.statistics),
        "survivalRates": rates,
        "timestamp": timestamp.isoformat(),
    }


def to_json(summary: Dict[str, Any]) -> str:
    return json.dumps(summary, indent=2, default=str)
