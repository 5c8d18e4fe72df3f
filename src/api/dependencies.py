"""Shared FastAPI dependencies."""

from fastapi import Request

from src.scoring.client import ScoringClient


def get_scoring_client(request: Request) -> ScoringClient:
    """The app-wide scoring client opened and closed by the lifespan."""
    client = getattr(request.app.state, "scoring_client", None)
    if client is None:
        raise RuntimeError("Scoring client is not available: the application lifespan is not running")
    return client
