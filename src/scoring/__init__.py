"""Remote scoring and reconciliation of transaction records."""

from .client import ScoringClient, normalize_prediction, normalize_predictions
from .reconcile import SubmissionKind, reconcile, reconcile_single, summarize

__all__ = [
    "ScoringClient",
    "SubmissionKind",
    "normalize_prediction",
    "normalize_predictions",
    "reconcile",
    "reconcile_single",
    "summarize",
]
