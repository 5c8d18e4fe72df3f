"""Integration tests for the HTTP API against a fake scoring service."""

import asyncio
import io
from types import SimpleNamespace

import pandas as pd
import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_scoring_client
from src.api.routes.batches import get_batch_store
from src.main import app

pytestmark = pytest.mark.integration


@pytest.fixture
def scoring_override(fake_service):
    client = fake_service.client()
    app.dependency_overrides[get_scoring_client] = lambda: client
    yield fake_service
    app.dependency_overrides.pop(get_scoring_client, None)


def _api() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_endpoint(self):
        async with _api() as api:
            response = await api.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "X-Request-ID" in response.headers


class TestTransactions:
    @pytest.mark.asyncio
    async def test_template(self):
        async with _api() as api:
            response = await api.get("/api/v1/transactions/template")
        assert response.status_code == 200
        assert response.json()["TransactionAmt"] == 0.0

    @pytest.mark.asyncio
    async def test_validate_collects_all_errors(self):
        async with _api() as api:
            response = await api.post(
                "/api/v1/transactions/validate",
                json={"TransactionDT": 1, "TransactionAmt": -5, "ProductCD": "", "card1": 0},
            )
        data = response.json()
        assert data["valid"] is False
        assert len(data["errors"]) == 3

    @pytest.mark.asyncio
    async def test_score_valid_transaction(self, scoring_override, valid_transaction):
        async with _api() as api:
            response = await api.post("/api/v1/transactions/score", json=valid_transaction)
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["prediction"]["label"] == "legitimate"
        assert data["prediction"]["fraud_score"] == data["prediction"]["probability"]
        assert data["transaction"]["TransactionAmt"] == 100.5
        assert data["status"] == "success"

    @pytest.mark.asyncio
    async def test_invalid_transaction_never_reaches_scoring(self, scoring_override):
        async with _api() as api:
            response = await api.post(
                "/api/v1/transactions/score", json={"TransactionAmt": -5, "ProductCD": ""}
            )
        assert response.status_code == 422
        assert len(response.json()["errors"]) == 4
        assert scoring_override.requests == []

    @pytest.mark.asyncio
    async def test_scoring_failure_is_502(self, scoring_override, valid_transaction):
        scoring_override.status_code = 500
        async with _api() as api:
            response = await api.post("/api/v1/transactions/score", json=valid_transaction)
        assert response.status_code == 502
        assert response.json()["error"] == "scoring_failed"


class TestBatches:
    async def _upload(self, api: AsyncClient, content: bytes, name: str = "batch.csv"):
        response = await api.post(
            "/api/v1/batches", files={"file": (name, content, "text/csv")}
        )
        return response

    @pytest.mark.asyncio
    async def test_upload_analyze_export(self, scoring_override, sample_csv):
        async with _api() as api:
            uploaded = await self._upload(api, sample_csv)
            assert uploaded.status_code == 200, uploaded.text
            batch = uploaded.json()
            assert batch["row_count"] == 3
            assert batch["stage"] == "loaded"
            assert batch["preview"][1]["ProductCD"] == "C"

            analyzed = await api.post(f"/api/v1/batches/{batch['batch_id']}/analyze")
            assert analyzed.status_code == 200, analyzed.text
            body = analyzed.json()
            assert body["summary"]["total"] == 3
            assert body["summary"]["fraud_count"] == 1
            assert [r["transaction"]["ProductCD"] for r in body["results"]] == ["W", "C", "H"]

            exported = await api.get(f"/api/v1/batches/{batch['batch_id']}/export")
            assert exported.status_code == 200
            assert "attachment; filename=\"fraud_analysis_" in exported.headers["content-disposition"]

        frame = pd.read_csv(io.BytesIO(exported.content), keep_default_na=False)
        assert list(frame["fraud_label"]) == ["legitimate", "fraud", "legitimate"]
        assert list(frame["product_code"]) == ["W", "C", "H"]

    @pytest.mark.asyncio
    async def test_file_mode(self, scoring_override, sample_csv):
        scoring_override.csv_predictions = [
            {"label": "legitimate", "probability": 0.1},
            {"label": "legitimate", "probability": 0.1},
            {"label": "fraud", "probability": 0.7},
        ]
        async with _api() as api:
            batch = (await self._upload(api, sample_csv)).json()
            analyzed = await api.post(
                f"/api/v1/batches/{batch['batch_id']}/analyze", params={"mode": "file"}
            )
        assert analyzed.status_code == 200, analyzed.text
        assert analyzed.json()["results"][2]["prediction"]["label"] == "fraud"

    @pytest.mark.asyncio
    async def test_malformed_csv_is_400(self):
        async with _api() as api:
            response = await self._upload(api, b'TransactionAmt,ProductCD\n"100.5,W\n')
        assert response.status_code == 400
        assert response.json()["error"] == "decode_failed"

    @pytest.mark.asyncio
    async def test_non_csv_is_400(self, sample_csv):
        async with _api() as api:
            response = await self._upload(api, sample_csv, name="batch.xlsx")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_length_mismatch_is_502_and_nothing_exported(self, scoring_override, sample_csv):
        scoring_override.drop_last = True
        async with _api() as api:
            batch = (await self._upload(api, sample_csv)).json()
            analyzed = await api.post(f"/api/v1/batches/{batch['batch_id']}/analyze")
            exported = await api.get(f"/api/v1/batches/{batch['batch_id']}/export")
        assert analyzed.status_code == 502
        assert exported.status_code == 400

    @pytest.mark.asyncio
    async def test_analyze_while_in_flight_is_409(self, scoring_override, sample_csv):
        release = asyncio.Event()

        class SlowClient:
            async def predict_batch(self, records):
                await release.wait()
                return []

        async with _api() as api:
            batch = (await self._upload(api, sample_csv)).json()
            session = get_batch_store().get(batch["batch_id"])
            first = asyncio.create_task(session.analyze(SlowClient()))
            await asyncio.sleep(0)

            busy = await api.post(f"/api/v1/batches/{batch['batch_id']}/analyze")
            await api.put(
                f"/api/v1/batches/{batch['batch_id']}/file",
                files={"file": ("small.csv", b"TransactionAmt,ProductCD\n1,W\n", "text/csv")},
            )
            busy_after_reload = await api.post(f"/api/v1/batches/{batch['batch_id']}/analyze")

            release.set()
            await first

        assert busy.status_code == 409
        assert busy.json()["error"] == "analysis_in_progress"
        assert busy_after_reload.status_code == 409
        assert scoring_override.requests == []

    @pytest.mark.asyncio
    async def test_replace_file(self, scoring_override, sample_csv):
        async with _api() as api:
            batch = (await self._upload(api, sample_csv)).json()
            replaced = await api.put(
                f"/api/v1/batches/{batch['batch_id']}/file",
                files={"file": ("small.csv", b"TransactionAmt,ProductCD\n1,W\n", "text/csv")},
            )
            status = await api.get(f"/api/v1/batches/{batch['batch_id']}")
        assert replaced.json()["row_count"] == 1
        assert status.json()["file_name"] == "small.csv"
        assert status.json()["summary"] is None

    @pytest.mark.asyncio
    async def test_unknown_batch_is_404(self):
        async with _api() as api:
            response = await api.get("/api/v1/batches/does-not-exist")
        assert response.status_code == 404


class TestDashboardPassthrough:
    @pytest.mark.asyncio
    async def test_dashboard_stats(self, scoring_override):
        async with _api() as api:
            response = await api.get("/api/v1/dashboard/stats")
        assert response.json() == {"totalTransactions": 10, "fraudCount": 2}

    @pytest.mark.asyncio
    async def test_assistant_chat(self, scoring_override):
        async with _api() as api:
            response = await api.post("/api/v1/assistant/chat", json={"question": "hello"})
            cleared = await api.delete("/api/v1/assistant/sessions/s-1")
        assert response.json() == {"answer": "echo: hello", "session_id": "s-1"}
        assert cleared.json()["cleared"] is True


class TestScoringClientLifecycle:
    @pytest.mark.asyncio
    async def test_lifespan_opens_and_closes_client(self):
        request = SimpleNamespace(app=app)
        async with app.router.lifespan_context(app):
            client = get_scoring_client(request)
            assert app.state.scoring_client is client

        assert client._client.is_closed
        with pytest.raises(RuntimeError, match="lifespan"):
            get_scoring_client(request)

    def test_no_client_without_lifespan(self):
        request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))
        with pytest.raises(RuntimeError):
            get_scoring_client(request)
