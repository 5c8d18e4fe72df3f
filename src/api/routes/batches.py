"""Batch endpoints: upload a CSV, analyze it, export the results."""

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse, Response

from src.api.dependencies import get_scoring_client
from src.domains.transactions.errors import DecodeError, ScoringError
from src.pipeline.session import BatchSession, BatchSessionStore, BatchStage, BatchState, ScoringMode
from src.scoring.client import ScoringClient

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/batches", tags=["batches"])

# Shared instance
_store = BatchSessionStore()


def get_batch_store() -> BatchSessionStore:
    return _store


def _describe(session: BatchSession, state: BatchState) -> dict:
    submission = state.submission
    return {
        "batch_id": session.session_id,
        "stage": state.stage.value,
        "file_name": state.file_name,
        "row_count": state.row_count,
        "columns": list(submission.columns) if submission else [],
        "preview": state.preview(),
        "error": state.error,
    }


async def _load(session: BatchSession, file: UploadFile) -> dict:
    state = await session.load(file.filename or "", await file.read())
    if state.stage is BatchStage.FAILED:
        raise DecodeError(state.error or "Failed to parse CSV file")
    return _describe(session, state)


@router.post("")
async def upload_batch(
    file: UploadFile = File(...),  # noqa: B008
    store: BatchSessionStore = Depends(get_batch_store),  # noqa: B008
) -> dict:
    """Decode an uploaded CSV into a new batch and return a preview."""
    session = store.create()
    return await _load(session, file)


@router.put("/{batch_id}/file")
async def replace_batch_file(
    batch_id: str,
    file: UploadFile = File(...),  # noqa: B008
    store: BatchSessionStore = Depends(get_batch_store),  # noqa: B008
) -> dict:
    """Select a different file for an existing batch; earlier results are dropped."""
    return await _load(store.get(batch_id), file)


@router.get("/{batch_id}")
async def get_batch(
    batch_id: str,
    store: BatchSessionStore = Depends(get_batch_store),  # noqa: B008
) -> dict:
    session = store.get(batch_id)
    state = session.state
    body = _describe(session, state)
    body["summary"] = state.summary.model_dump() if state.summary else None
    return body


@router.post("/{batch_id}/analyze")
async def analyze_batch(
    batch_id: str,
    mode: ScoringMode = Query(ScoringMode.BATCH),  # noqa: B008
    store: BatchSessionStore = Depends(get_batch_store),  # noqa: B008
    client: ScoringClient = Depends(get_scoring_client),  # noqa: B008
):
    """Score every row of the batch and return the reconciled results."""
    session = store.get(batch_id)
    state = await session.analyze(client, mode=mode)

    if state.refused:
        return JSONResponse(
            status_code=409,
            content={"error": "analysis_in_progress", "message": state.error, "batch_id": batch_id},
        )
    if state.stage is BatchStage.FAILED:
        if state.submission is None:
            raise ValueError(state.error)
        raise ScoringError(state.error or "Failed to analyze transactions")

    return {
        "batch_id": batch_id,
        "stage": state.stage.value,
        "summary": state.summary.model_dump() if state.summary else None,
        "results": [r.model_dump(mode="json") for r in state.results],
    }


@router.get("/{batch_id}/export")
async def export_batch(
    batch_id: str,
    store: BatchSessionStore = Depends(get_batch_store),  # noqa: B008
) -> Response:
    filename, content = store.get(batch_id).export()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
