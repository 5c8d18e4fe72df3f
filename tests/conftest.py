"""Shared test fixtures for fraudscope tests."""

import json

import httpx
import pytest

from src.scoring.client import ScoringClient

SAMPLE_CSV = (
    "TransactionDT,TransactionAmt,ProductCD,card1,card4,P_emaildomain,R_emaildomain,DeviceType\n"
    "86400,100.5,W,13926,visa,gmail.com,,desktop\n"
    "86401,2500,C,2755,mastercard,yahoo.com,hotmail.com,mobile\n"
    "86402,abc,H,4663,visa,,,\n"
).encode()


class FakeScoringService:
    """In-process stand-in for the remote scoring API.

    Transactions with an amount above ``fraud_amount`` are labelled fraud.
    Responses can be truncated, padded or replaced to exercise the client's
    contract checks.
    """

    def __init__(self, fraud_amount: float = 1000.0):
        self.fraud_amount = fraud_amount
        self.requests: list[httpx.Request] = []
        self.drop_last = False
        self.pad = False
        self.status_code = 200
        self.csv_predictions: list[dict] = []
        self.raw_body: bytes | None = None

    def _predict(self, record: dict) -> dict:
        amount = record.get("TransactionAmt") or 0
        if amount > self.fraud_amount:
            return {"label": "fraud", "probability": 0.92, "fraud_score": 0.88}
        return {"label": "legitimate", "probability": 0.08}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"detail": "boom"})
        if self.raw_body is not None:
            return httpx.Response(200, content=self.raw_body)

        path = request.url.path
        if path == "/predict_transaction":
            return httpx.Response(200, json=self._predict(json.loads(request.content)))
        if path in ("/predict_batch", "/predict_csv"):
            if path == "/predict_batch":
                records = json.loads(request.content)["transactions"]
                predictions = [{**self._predict(r), "input": r} for r in records]
            else:
                predictions = list(self.csv_predictions)
            if self.drop_last:
                predictions = predictions[:-1]
            if self.pad:
                predictions.append({"label": "legitimate", "probability": 0.5})
            return httpx.Response(200, json={"predictions": predictions})
        if path == "/dashboard_stats":
            return httpx.Response(200, json={"totalTransactions": 10, "fraudCount": 2})
        if path == "/chat":
            body = json.loads(request.content)
            return httpx.Response(
                200, json={"answer": f"echo: {body['question']}", "session_id": body["session_id"] or "s-1"}
            )
        if path.startswith("/chat/history/"):
            return httpx.Response(200, json={"history": [{"role": "user", "content": "hi"}]})
        if path.startswith("/chat/clear/"):
            return httpx.Response(204)
        return httpx.Response(404, json={"detail": "not found"})

    def client(self) -> ScoringClient:
        return ScoringClient(
            base_url="http://scoring.test", transport=httpx.MockTransport(self.handler)
        )


@pytest.fixture
def fake_service():
    return FakeScoringService()


@pytest.fixture
def sample_csv() -> bytes:
    return SAMPLE_CSV


@pytest.fixture
def valid_transaction() -> dict:
    return {
        "TransactionDT": 86400.0,
        "TransactionAmt": 100.5,
        "ProductCD": "W",
        "card1": 13926.0,
        "card4": "visa",
        "P_emaildomain": "gmail.com",
        "R_emaildomain": "",
    }
