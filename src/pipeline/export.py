"""Flatten reconciled results into a downloadable CSV."""

from collections.abc import Sequence
from datetime import UTC, date, datetime

import pandas as pd

from src.config import settings
from src.domains.transactions.models import ReconciledResult
from src.domains.transactions.schema import AMOUNT_FIELD, CARD_TYPE_FIELD, PRODUCT_CODE_FIELD

EXPORT_COLUMNS: list[str] = [
    "transaction_id",
    "amount",
    "product_code",
    "card_type",
    "fraud_label",
    "fraud_probability",
    "fraud_score",
    "timestamp",
]


def export_rows(results: Sequence[ReconciledResult]) -> list[dict]:
    return [
        {
            "transaction_id": r.id,
            "amount": r.transaction.get(AMOUNT_FIELD),
            "product_code": r.transaction.get(PRODUCT_CODE_FIELD),
            "card_type": r.transaction.get(CARD_TYPE_FIELD),
            "fraud_label": r.prediction.label.value,
            "fraud_probability": r.prediction.probability,
            "fraud_score": r.prediction.fraud_score,
            "timestamp": r.submitted_at.isoformat(),
        }
        for r in results
    ]


def export_csv(results: Sequence[ReconciledResult]) -> bytes:
    """One CSV row per result in the fixed export column order."""
    frame = pd.DataFrame(export_rows(results), columns=EXPORT_COLUMNS)
    return frame.to_csv(index=False).encode("utf-8")


def export_filename(prefix: str | None = None, on: date | None = None) -> str:
    """``fraud_analysis_2026-01-15.csv`` style download name."""
    day = on or datetime.now(UTC).date()
    return f"{prefix or settings.export_filename_prefix}_{day.isoformat()}.csv"
