"""Async client for the remote fraud-scoring service.

Every batch call enforces the service contract the reconciler depends on:
predictions come back in submission order and in the same number as the
records sent. A response that breaks that contract is a ScoringError, never
a partial result.
"""

from collections.abc import Sequence
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from src.config import settings
from src.domains.transactions.errors import ScoringError
from src.domains.transactions.models import (
    PredictionLabel,
    PredictionOutcome,
    TransactionRecord,
)

logger = structlog.get_logger()

PREDICT_TRANSACTION_PATH = "/predict_transaction"
PREDICT_BATCH_PATH = "/predict_batch"
PREDICT_CSV_PATH = "/predict_csv"
DASHBOARD_STATS_PATH = "/dashboard_stats"
CHAT_PATH = "/chat"


class _RawPrediction(BaseModel):
    """Prediction row as the service returns it. Extra keys such as ``input`` are ignored."""

    label: PredictionLabel
    probability: float = Field(ge=0.0, le=1.0)
    fraud_score: float | None = Field(default=None, ge=0.0, le=1.0)


class ChatReply(BaseModel):
    answer: str
    session_id: str | None = None


def normalize_prediction(payload: Any) -> PredictionOutcome:
    """Validate one prediction row and fill ``fraud_score`` from ``probability`` when absent."""
    try:
        raw = _RawPrediction.model_validate(payload)
    except ValidationError as e:
        raise ScoringError(f"Malformed prediction in scoring response: {e.error_count()} error(s)") from e
    fraud_score = raw.probability if raw.fraud_score is None else raw.fraud_score
    return PredictionOutcome(label=raw.label, probability=raw.probability, fraud_score=fraud_score)


def normalize_predictions(body: Any, expected_count: int | None) -> list[PredictionOutcome]:
    """Normalize a ``{"predictions": [...]}`` body and check it against the request size."""
    if not isinstance(body, dict) or not isinstance(body.get("predictions"), list):
        raise ScoringError("Scoring response has no predictions list")
    predictions = body["predictions"]
    if expected_count is not None and len(predictions) != expected_count:
        raise ScoringError(
            f"Scoring response length mismatch: sent {expected_count}, received {len(predictions)}"
        )
    return [normalize_prediction(p) for p in predictions]


async def _log_request(request: httpx.Request) -> None:
    logger.debug("scoring_request", method=request.method, url=str(request.url))


async def _log_response(response: httpx.Response) -> None:
    logger.debug(
        "scoring_response",
        method=response.request.method,
        url=str(response.request.url),
        status_code=response.status_code,
    )


class ScoringClient:
    """Talks to the scoring service's single, batch and file endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url or settings.scoring_api_url
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout or settings.scoring_timeout_seconds),
            transport=transport,
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "ScoringClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("scoring_transport_error", path=path, error=str(e))
            raise ScoringError(f"Scoring service unreachable: {e.__class__.__name__}") from e

        if response.is_error:
            logger.warning("scoring_http_error", path=path, status_code=response.status_code)
            raise ScoringError(
                f"Scoring service returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ScoringError("Scoring response is not valid JSON") from e

    async def predict_transaction(self, record: TransactionRecord) -> PredictionOutcome:
        """Score one record. Exactly one outcome comes back."""
        body = await self._request("POST", PREDICT_TRANSACTION_PATH, json=record)
        outcome = normalize_prediction(body)
        logger.info("transaction_scored", label=outcome.label, probability=outcome.probability)
        return outcome

    async def predict_batch(self, records: Sequence[TransactionRecord]) -> list[PredictionOutcome]:
        """Score records in one request; the result is order-aligned with ``records``."""
        body = await self._request(
            "POST", PREDICT_BATCH_PATH, json={"transactions": list(records)}
        )
        outcomes = normalize_predictions(body, expected_count=len(records))
        logger.info("batch_scored", count=len(outcomes))
        return outcomes

    async def predict_csv(
        self,
        file_name: str,
        data: bytes,
        expected_count: int | None = None,
    ) -> list[PredictionOutcome]:
        """Upload the original file; outcomes follow the file's data-row order."""
        files = {"file": (file_name, data, "text/csv")}
        body = await self._request("POST", PREDICT_CSV_PATH, files=files)
        outcomes = normalize_predictions(body, expected_count=expected_count)
        logger.info("csv_scored", file_name=file_name, count=len(outcomes))
        return outcomes

    # Opaque collaborator calls, passed through as-is.

    async def dashboard_stats(self) -> dict:
        body = await self._request("GET", DASHBOARD_STATS_PATH)
        return body or {}

    async def chat(self, question: str, session_id: str | None = None) -> ChatReply:
        body = await self._request(
            "POST", CHAT_PATH, json={"question": question, "session_id": session_id}
        )
        try:
            return ChatReply.model_validate(body)
        except ValidationError as e:
            raise ScoringError("Malformed assistant response") from e

    async def chat_history(self, session_id: str) -> list:
        body = await self._request("GET", f"{CHAT_PATH}/history/{session_id}")
        if not isinstance(body, dict):
            return []
        return body.get("history") or []

    async def clear_chat_history(self, session_id: str) -> None:
        await self._request("DELETE", f"{CHAT_PATH}/clear/{session_id}")
