from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from pixshop.domain.entities.session import Session
from pixshop.domain.errors import PixshopError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[str, int] = {
    "precondition": status.HTTP_400_BAD_REQUEST,
    "busy": status.HTTP_409_CONFLICT,
    "service": status.HTTP_502_BAD_GATEWAY,
    "upscale": status.HTTP_502_BAD_GATEWAY,
    "resource": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "config": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for_kind(kind: str) -> int:
    return STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def raise_for_session_error(session: Session) -> None:
    """Turn the session's error slot into an HTTP error, if set."""
    if session.error is not None:
        raise HTTPException(status_code=status_for_kind(session.error.kind), detail=session.error.message)


def add_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PixshopError)
    async def pixshop_error_handler(request: Request, exc: PixshopError) -> JSONResponse:
        code = status_for_kind(exc.kind)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=code, content={"detail": exc.message})
