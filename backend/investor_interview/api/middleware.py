import time
import logging
import uuid
from typing import Callable
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"

class TurnLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a short id and log how long it took

    The id is put on ``request.state.request_id`` so error payloads can carry
    it, and echoed back in the ``X-Request-ID`` header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} failed after "
                f"{time.perf_counter() - started:.3f}s: {e}",
                exc_info=True
            )
            raise

        elapsed = time.perf_counter() - started
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} -> "
            f"{response.status_code} in {elapsed:.3f}s"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed:.3f}s"
        return response

def setup_middleware(app: FastAPI) -> None:
    """Install CORS, compression and request logging"""
    from ..config import settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, RESPONSE_TIME_HEADER]
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    # Added last so it runs first and every response gets the id
    app.add_middleware(TurnLoggingMiddleware)
