"""
Readiness gate.

Every route except the exempt ones answers 503 until the managed table has
finished its first successful load.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from csvquery.exceptions import NotInitializedException
from csvquery.schemas import ErrorResponse

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset(
    {
        "/health",
        "/api/init",
        "/api/metrics",
        "/docs",
        "/docs/oauth2-redirect",
        "/redoc",
        "/openapi.json",
    }
)


def is_exempt(path: str) -> bool:
    return path in EXEMPT_PATHS or path.rstrip("/") in EXEMPT_PATHS


async def readiness_gate(request: Request, call_next):
    """Reject gated requests while the managed table is not ready."""
    if is_exempt(request.url.path):
        return await call_next(request)

    context = request.app.state.context
    if not context.is_ready():
        exc = NotInitializedException()
        context.metrics.record_rejection(exc.code)
        logger.info(f"Rejecting {request.method} {request.url.path}: {context.state.value}")
        body = ErrorResponse(
            message=exc.message,
            code=exc.code,
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))

    return await call_next(request)
