"""Transaction records: schema, coercion, validation and the shared data model."""

from .coercion import coerce_form, coerce_numeric, coerce_row
from .errors import DecodeError, FraudscopeError, ScoringError, ValidationFailure
from .models import (
    BatchSubmission,
    BatchSummary,
    PredictionLabel,
    PredictionOutcome,
    RawRow,
    ReconciledResult,
    ResultStatus,
    TransactionRecord,
)
from .schema import TRANSACTION_FIELDS, FieldKind, FieldSpec, blank_record
from .validation import ensure_valid, validate_transaction

__all__ = [
    "BatchSubmission",
    "BatchSummary",
    "DecodeError",
    "FieldKind",
    "FieldSpec",
    "FraudscopeError",
    "PredictionLabel",
    "PredictionOutcome",
    "RawRow",
    "ReconciledResult",
    "ResultStatus",
    "ScoringError",
    "TRANSACTION_FIELDS",
    "TransactionRecord",
    "ValidationFailure",
    "blank_record",
    "coerce_form",
    "coerce_numeric",
    "coerce_row",
    "ensure_valid",
    "validate_transaction",
]
