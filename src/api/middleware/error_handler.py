"""Exception to JSON response mapping."""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from src.domains.transactions.errors import DecodeError, ScoringError, ValidationFailure

logger = structlog.get_logger()


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")

    if isinstance(exc, ValidationFailure):
        logger.info("validation_failed", request_id=request_id, errors=exc.errors)
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_failed",
                "message": "Transaction failed validation",
                "errors": exc.errors,
                "request_id": request_id,
            },
        )

    if isinstance(exc, DecodeError):
        logger.warning("decode_failed", request_id=request_id, error=str(exc))
        return JSONResponse(
            status_code=400,
            content={"error": "decode_failed", "message": str(exc), "request_id": request_id},
        )

    if isinstance(exc, ScoringError):
        logger.warning(
            "scoring_failed",
            request_id=request_id,
            error=str(exc),
            upstream_status=exc.status_code,
        )
        return JSONResponse(
            status_code=502,
            content={"error": "scoring_failed", "message": str(exc), "request_id": request_id},
        )

    if isinstance(exc, ValueError):
        logger.warning("bad_request", request_id=request_id, error=str(exc))
        return JSONResponse(
            status_code=400,
            content={"error": "bad_request", "message": str(exc), "request_id": request_id},
        )

    if isinstance(exc, (KeyError, LookupError)):
        message = exc.args[0] if exc.args else str(exc)
        logger.warning("not_found", request_id=request_id, error=message)
        return JSONResponse(
            status_code=404,
            content={"error": "not_found", "message": message, "request_id": request_id},
        )

    logger.exception("unhandled_exception", request_id=request_id, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request_id,
        },
    )
