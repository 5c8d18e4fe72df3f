"""Dashboard and assistant passthrough to the scoring service.

The scoring service computes dashboard statistics and holds assistant
sessions; these routes forward requests and return its answers unchanged.
"""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.dependencies import get_scoring_client
from src.scoring.client import ScoringClient

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1", tags=["dashboards"])


class ChatRequest(BaseModel):
    question: str
    session_id: str | None = None


@router.get("/dashboard/stats")
async def dashboard_stats(
    client: ScoringClient = Depends(get_scoring_client),  # noqa: B008
) -> dict:
    """Aggregate statistics, as computed by the scoring service."""
    return await client.dashboard_stats()


@router.post("/assistant/chat")
async def assistant_chat(
    request: ChatRequest,
    client: ScoringClient = Depends(get_scoring_client),  # noqa: B008
) -> dict:
    reply = await client.chat(request.question, session_id=request.session_id)
    return reply.model_dump()


@router.get("/assistant/sessions/{session_id}")
async def assistant_history(
    session_id: str,
    client: ScoringClient = Depends(get_scoring_client),  # noqa: B008
) -> dict:
    return {"session_id": session_id, "history": await client.chat_history(session_id)}


@router.delete("/assistant/sessions/{session_id}")
async def assistant_clear(
    session_id: str,
    client: ScoringClient = Depends(get_scoring_client),  # noqa: B008
) -> dict:
    await client.clear_chat_history(session_id)
    logger.info("assistant_session_cleared", session_id=session_id)
    return {"session_id": session_id, "cleared": True}
