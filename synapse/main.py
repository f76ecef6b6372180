"""
Synapse Mastery Core

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from synapse.api.deps import DbSession, build_services
from synapse.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from synapse.api.v1 import router as api_v1_router
from synapse.config import get_settings
from synapse.database import close_db, init_db
from synapse.errors import (
    GateClosed,
    GenerationFailed,
    InvalidState,
    MasteryError,
    NotFound,
    SessionConcluded,
)
from synapse.logging_config import configure_logging, get_logger
from synapse.schemas.common import ErrorResponse, HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")
    app.state.services = build_services(settings)

    yield

    logger.info("Shutting down...")
    await app.state.services.teardown()
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Synapse Mastery Core

    Tracks a student's progress through an assignment roadmap and decides,
    through an adversarial debate, when a milestone is mastered.

    ## Features

    - **Roadmaps**: assignment analysis into milestones, progress tracking
    - **Mini-courses**: generated once per milestone, cached on the milestone
    - **Formative gate**: the debate unlocks once the formative action is done
    - **Debate**: Socratic sparring scored into a refined/perfected verdict
    - **Scaffolding**: academic-freeze detection with a timed micro-task
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# LAST added = OUTERMOST, so CORS wraps every response including errors
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",  # Vite default
    "http://127.0.0.1:3000",
]

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    headers = {}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers[REQUEST_ID_HEADER] = req_id
        content.setdefault("request_id", req_id)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _status_for(exc: MasteryError) -> int:
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (SessionConcluded, GateClosed, InvalidState)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, GenerationFailed):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(MasteryError)
async def mastery_exception_handler(request: Request, exc: MasteryError):
    """Map the mastery error taxonomy onto HTTP status codes."""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.warning("Generation failed: %s", exc, extra={"path": request.url.path})
    body = ErrorResponse(detail=str(exc), code=type(exc).__name__)
    return _error_response(request, status_code, body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": "Validation error", "errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__}
    else:
        content = {"detail": "Internal server error"}
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(db: DbSession):
    """Check application and database health."""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("Health check database probe failed")
        database = "unavailable"
    return HealthResponse(
        status="ok" if database == "connected" else "degraded",
        version=settings.version,
        database=database,
        ai_configured=settings.ai_configured,
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "synapse.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
