import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from datetime import datetime

from .config import settings
from .api.routes import router
from .api.middleware import setup_middleware
from .core.errors import (
    InterviewError, InvalidInputError, InterpreterFailure, ProtocolError, ValidationError
)
from .core.interview import InterviewEngine
from .interpreter.adapter import AnswerInterpreter, LLMAnswerInterpreter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "Voice Investment Questionnaire API"
VERSION = "1.0.0"

ERROR_STATUS = {
    InvalidInputError: 400,
    InterpreterFailure: 503,
    ProtocolError: 502,
    ValidationError: 500,
}

USER_GUIDANCE = {
    InvalidInputError: "Please try again.",
    InterpreterFailure: "We couldn't process your answer right now. Please submit it again.",
    ProtocolError: "Something went wrong with the interview service. Please start over.",
    ValidationError: "Something went wrong with the interview service. Please start over.",
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {SERVICE_NAME}...")

    try:
        if getattr(app.state, "engine", None) is None:
            interpreter = LLMAnswerInterpreter.from_settings(settings)
            app.state.engine = InterviewEngine(interpreter, settings.TURN_TIMEOUT_SECONDS)
        logger.info(f"{SERVICE_NAME} ready")

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down...")

async def interview_error_handler(request: Request, exc: InterviewError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    if isinstance(exc, (ProtocolError, ValidationError)):
        logger.error(f"Interview contract breach ({exc.kind}): {exc}")
    else:
        logger.warning(f"Turn rejected ({exc.kind}): {exc}")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.kind,
            "detail": str(exc),
            "errors": exc.errors,
            "message": USER_GUIDANCE.get(type(exc), "Please try again."),
            "retryable": exc.retryable,
            "requestId": getattr(request.state, "request_id", None),
            "timestamp": datetime.now().isoformat()
        }
    )

async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same envelope as other invalid turns"""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location or 'body'}: {error.get('msg', 'invalid')}")
    return await interview_error_handler(
        request, InvalidInputError("Request body is malformed", errors)
    )

async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "timestamp": datetime.now().isoformat()
        }
    )

def create_app(interpreter: Optional[AnswerInterpreter] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        interpreter: Answer interpreter to use; when omitted the OpenAI-backed
            interpreter is built from settings at startup
    """
    app = FastAPI(
        title=SERVICE_NAME,
        description="Investor profile interview with deterministic portfolio selection",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.engine = (
        InterviewEngine(interpreter, settings.TURN_TIMEOUT_SECONDS) if interpreter else None
    )

    setup_middleware(app)
    app.include_router(router, prefix="/api", tags=["Interview"])
    app.add_exception_handler(InterviewError, interview_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/")
    async def root():
        return {"message": SERVICE_NAME, "version": VERSION}

    return app

app = create_app()
