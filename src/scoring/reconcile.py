"""Positional reconciliation of predictions with the records they score.

Pairing is by index only: ``results[i]`` joins ``records[i]`` with
``outcomes[i]``. No field of the record is consulted, so the pairing is only
as good as the scoring client's order and length check.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import StrEnum

from src.domains.transactions.models import (
    BatchSummary,
    PredictionOutcome,
    RawRow,
    ReconciledResult,
    ResultStatus,
    TransactionRecord,
)


class SubmissionKind(StrEnum):
    SINGLE = "single"
    BATCH = "batch"
    CSV = "csv"


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def result_id(kind: SubmissionKind, stamp_ms: int, index: int = 0) -> str:
    if kind is SubmissionKind.SINGLE:
        return str(stamp_ms)
    return f"{kind.value}_{stamp_ms}_{index}"


def reconcile(
    records: Sequence[TransactionRecord],
    outcomes: Sequence[PredictionOutcome],
    raw_rows: Sequence[RawRow] | None = None,
    kind: SubmissionKind = SubmissionKind.BATCH,
    submitted_at: datetime | None = None,
) -> list[ReconciledResult]:
    """Zip records with outcomes by position. Unequal lengths raise ValueError."""
    submitted_at = submitted_at or datetime.now(UTC)
    stamp_ms = _epoch_ms(submitted_at)
    rows: Sequence[RawRow | None] = raw_rows if raw_rows is not None else [None] * len(records)
    if len(rows) != len(records):
        raise ValueError(f"raw_rows length {len(rows)} != records length {len(records)}")

    return [
        ReconciledResult(
            id=result_id(kind, stamp_ms, index),
            transaction=record,
            prediction=outcome,
            submitted_at=submitted_at,
            status=ResultStatus.SUCCESS,
            raw_row=raw,
        )
        for index, (record, outcome, raw) in enumerate(zip(records, outcomes, rows, strict=True))
    ]


def reconcile_single(
    record: TransactionRecord,
    outcome: PredictionOutcome,
    submitted_at: datetime | None = None,
) -> ReconciledResult:
    return reconcile([record], [outcome], kind=SubmissionKind.SINGLE, submitted_at=submitted_at)[0]


def summarize(results: Sequence[ReconciledResult]) -> BatchSummary:
    """Fraud/legitimate counts for display."""
    total = len(results)
    if total == 0:
        return BatchSummary()
    fraud_count = sum(1 for r in results if r.prediction.is_fraud)
    return BatchSummary(
        total=total,
        fraud_count=fraud_count,
        legitimate_count=total - fraud_count,
        fraud_rate=fraud_count / total,
        avg_fraud_score=sum(r.prediction.fraud_score for r in results) / total,
    )
