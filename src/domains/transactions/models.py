"""Data model for the ingestion, scoring and reconciliation pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Column name -> typed value. Numeric fields hold finite floats,
# categorical and unknown columns hold the original text.
TransactionRecord = dict[str, Any]

# Column name -> original cell text, exactly as decoded.
RawRow = dict[str, str]


class PredictionLabel(StrEnum):
    FRAUD = "fraud"
    LEGITIMATE = "legitimate"


class ResultStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


class PredictionOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: PredictionLabel
    probability: float = Field(ge=0.0, le=1.0)
    fraud_score: float = Field(ge=0.0, le=1.0)

    @property
    def is_fraud(self) -> bool:
        return self.label is PredictionLabel.FRAUD


class ReconciledResult(BaseModel):
    """One scored transaction paired with the input it was produced from."""

    model_config = ConfigDict(frozen=True)

    id: str
    transaction: TransactionRecord
    prediction: PredictionOutcome
    submitted_at: datetime
    status: ResultStatus = ResultStatus.SUCCESS
    raw_row: RawRow | None = None


class BatchSummary(BaseModel):
    total: int = 0
    fraud_count: int = 0
    legitimate_count: int = 0
    fraud_rate: float = 0.0
    avg_fraud_score: float = 0.0


@dataclass(frozen=True)
class BatchSubmission:
    """Ordered records from one file, aligned index-for-index with raw rows.

    Order is load-bearing: results are paired back to records by position,
    so nothing may sort, filter or deduplicate these sequences.
    """

    records: tuple[TransactionRecord, ...]
    raw_rows: tuple[RawRow, ...]
    columns: tuple[str, ...] = ()
    zero_filled_cells: int = 0
    source_bytes: bytes = field(default=b"", repr=False)

    def __post_init__(self) -> None:
        if len(self.records) != len(self.raw_rows):
            raise ValueError(
                f"records/raw_rows length mismatch: {len(self.records)} != {len(self.raw_rows)}"
            )

    def __len__(self) -> int:
        return len(self.records)

    def preview(self, rows: int = 5) -> list[RawRow]:
        return [dict(r) for r in self.raw_rows[:rows]]
