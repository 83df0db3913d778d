"""FastAPI application for MediScribe."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medi_scribe import __version__
from medi_scribe.api.middleware import RequestLoggingMiddleware
from medi_scribe.api.routes import (
    analytics,
    appointments,
    auth,
    consultations,
    export,
    health,
    patients,
    risk,
    scribe,
)
from medi_scribe.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting MediScribe API")

    settings = get_settings()

    from medi_scribe.core.database import close_db, init_db
    from medi_scribe.llm import LLMNotConfiguredError, create_router_from_settings
    from medi_scribe.scribe import ClinicalScribe

    await init_db()

    # The API serves records and calculators without a Gemini key
    try:
        llm_router = create_router_from_settings()
    except LLMNotConfiguredError as e:
        logger.warning(f"AI features disabled: {e}")
        llm_router = None

    app.state.llm_router = llm_router
    app.state.scribe = (
        ClinicalScribe(llm_router, default_specialty=settings.default_specialty)
        if llm_router
        else None
    )

    logger.info("MediScribe API started successfully")

    yield

    logger.info("Shutting down MediScribe API")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="MediScribe API",
        description="Clinical documentation assistant with perioperative risk engine",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, tags=["health"])
    app.include_router(auth.router, prefix="/api/v1", tags=["auth"])
    app.include_router(patients.router, prefix="/api/v1")
    app.include_router(consultations.router, prefix="/api/v1")
    app.include_router(appointments.router, prefix="/api/v1")
    app.include_router(risk.router, prefix="/api/v1")
    app.include_router(scribe.router, prefix="/api/v1")
    app.include_router(export.router, prefix="/api/v1")
    app.include_router(analytics.router, prefix="/api/v1")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.debug_mode else None,
            },
        )

    return app
