"""
EDA Errors — Exception taxonomy for the analysis engine
=========================================================
Every failure the core can raise derives from EdaError, so the API layer
catches one type at one boundary and maps it to an HTTP status.

  SchemaViolation     — merge precondition failed (empty file, swapped files)
  IngestionFailure    — CSV could not be parsed
  ComputationSkipped  — a field had no usable values for a statistic
  UnknownField        — checked access to a field the schema does not declare
"""

from enum import Enum
from typing import Any, Dict, Optional


class EdaError(Exception):
    """Base class for all analysis-engine errors."""

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


class ViolationKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    TARGET_MISSING_FROM_TRAINING = "target_missing_from_training"
    TARGET_PRESENT_IN_HOLDOUT = "target_present_in_holdout"


class SchemaViolation(EdaError):
    """
    Raised before merge when the uploaded pair cannot be analysed.
    `kind` lets the caller show a specific remediation message.
    """

    def __init__(self, kind: ViolationKind, message: str):
        super().__init__(message)
        self.kind = kind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "SchemaViolation",
            "kind": self.kind.value,
            "message": str(self),
        }


class IngestionFailure(EdaError):
    """The CSV parser rejected a file. Carries the parser's own message."""

    def __init__(self, source: str, message: str):
        super().__init__(f"CSV parsing error in {source}: {message}")
        self.source = source
        self.parser_message = message


class ComputationSkipped(EdaError):
    """
    A statistic had zero usable values. Not a user-facing error:
    describe() turns it into an omitted key.
    """

    def __init__(self, field: str, reason: str = "no finite values"):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class UnknownField(EdaError, KeyError):
    def __init__(self, field: str, role: Optional[str] = None):
        msg = f"Field '{field}' is not declared in the schema"
        if role:
            msg += f" as {role}"
        super().__init__(msg)
        self.field = field

    def __str__(self) -> str:
        return self.args[0]
