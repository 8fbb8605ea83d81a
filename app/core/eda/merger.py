"""
Dataset Merger — Combine train + test with provenance tracking
================================================================
Validates the uploaded pair, then concatenates training rows followed by
holdout rows. Holdout rows get the target synthesized as None; every row
gets the provenance column ("train" / "test").

Validation order:
  1. Both inputs non-empty                 → EMPTY_INPUT
  2. Every training row carries the target → TARGET_MISSING_FROM_TRAINING
  3. No holdout row carries the target     → TARGET_PRESENT_IN_HOLDOUT
"""

import logging
from typing import Any, Mapping, Sequence

from .dataset import Dataset
from .errors import SchemaViolation, ViolationKind
from .schema import TEST, TRAIN, Schema

logger = logging.getLogger(__name__)


def validate_pair(
    training: Sequence[Mapping[str, Any]],
    holdout: Sequence[Mapping[str, Any]],
    schema: Schema,
) -> None:
    if len(training) == 0 or len(holdout) == 0:
        which = "train" if len(training) == 0 else "test"
        if len(training) == 0 and len(holdout) == 0:
            which = "train and test"
        raise SchemaViolation(
            ViolationKind.EMPTY_INPUT,
            f"One or both files are empty! ({which} file has no rows)",
        )

    for i, record in enumerate(training):
        if schema.target not in record:
            raise SchemaViolation(
                ViolationKind.TARGET_MISSING_FROM_TRAINING,
                f"Train file missing '{schema.target}' column (row {i}). Files may be swapped!",
            )

    for i, record in enumerate(holdout):
        if schema.target in record:
            raise SchemaViolation(
                ViolationKind.TARGET_PRESENT_IN_HOLDOUT,
                f"Test file contains '{schema.target}' column (row {i}). Files may be swapped!",
            )


def merge(
    training: Sequence[Mapping[str, Any]],
    holdout: Sequence[Mapping[str, Any]],
    schema: Schema,
) -> Dataset:
    """
    Merge training and holdout records into one Dataset.

    Input records are copied, never mutated. No renaming, filtering or
    deduplication happens here. Schema-declared columns missing from a
    file are added as None, and a declared numerical cell that is not a
    finite number becomes None.

    Raises:
        SchemaViolation: when validate_pair() rejects the inputs.
    """
    validate_pair(training, holdout, schema)

    merged = []
    for record in training:
        row = schema.typed_record(record)
        row[schema.provenance_field] = TRAIN
        merged.append(row)

    for record in holdout:
        row = schema.typed_record(record)
        row[schema.target] = None
        row[schema.provenance_field] = TEST
        merged.append(row)

    logger.info(
        f"Merged {len(training)} train + {len(holdout)} test rows "
        f"into {len(merged)} records"
    )
    return Dataset.from_records(merged, provenance_field=schema.provenance_field)
