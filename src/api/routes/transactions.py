"""Single-transaction endpoints: form template, validation and scoring."""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends

from src.api.dependencies import get_scoring_client
from src.domains.transactions.coercion import coerce_form, coerce_row
from src.domains.transactions.schema import blank_record
from src.domains.transactions.validation import ensure_valid, validate_transaction
from src.scoring.client import ScoringClient
from src.scoring.reconcile import reconcile_single

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


@router.get("/template")
async def transaction_template() -> dict:
    """Blank record with every schema field, for seeding an entry form."""
    return blank_record()


@router.post("/validate")
async def validate(values: dict[str, Any] = Body(...)) -> dict:  # noqa: B008
    errors = validate_transaction(coerce_row(values))
    return {"valid": not errors, "errors": errors}


@router.post("/score")
async def score_transaction(
    values: dict[str, Any] = Body(...),  # noqa: B008
    client: ScoringClient = Depends(get_scoring_client),  # noqa: B008
) -> dict:
    """Validate, score and reconcile one manually entered transaction.

    Validation failures are answered locally with every violation; the
    scoring service is only called for a clean record.
    """
    record = coerce_form(values)
    ensure_valid(record)
    outcome = await client.predict_transaction(record)
    result = reconcile_single(record, outcome)
    return result.model_dump(mode="json")
