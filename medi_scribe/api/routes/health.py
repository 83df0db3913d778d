"""Health check endpoints."""

from __future__ import annotations

import logging
import time
from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe import __version__
from medi_scribe.core.database import get_db, ping_database

logger = logging.getLogger(__name__)

router = APIRouter()

DB_SLOW_MS = 1000
DB_DEGRADED_MS = 1500

Overall = Literal["healthy", "degraded", "critical"]


class ProbeStatus(BaseModel):
    status: str
    latency: int


class SystemHealth(BaseModel):
    database: ProbeStatus
    ai: ProbeStatus
    models: dict[str, bool] = {}
    overall: Overall


def overall_status(db_ok: bool, db_latency_ms: float, ai_ok: bool) -> Overall:
    """Database down is critical; a slow database or unreachable AI is degraded."""
    if not db_ok:
        return "critical"
    if db_latency_ms > DB_DEGRADED_MS or not ai_ok:
        return "degraded"
    return "healthy"


def database_status(db_ok: bool, db_latency_ms: float) -> str:
    if not db_ok:
        return "offline"
    return "latency" if db_latency_ms > DB_SLOW_MS else "online"


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "service": "medi-scribe",
        "version": __version__,
    }


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness check - basic process health."""
    return {"status": "alive"}


@router.get("/health/ready", response_model=SystemHealth)
async def readiness_check(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SystemHealth:
    """Readiness check - queries the database and the Gemini models."""
    db_ok = True
    try:
        db_latency = await ping_database(db)
    except Exception as e:
        logger.error(f"Database check failed: {e}")
        db_ok, db_latency = False, 0.0
        await db.rollback()

    models: dict[str, bool] = {}
    ai_ok = False
    start = time.perf_counter()
    llm_router = getattr(request.app.state, "llm_router", None)
    if llm_router is not None:
        try:
            models = await llm_router.health_check()
            ai_ok = any(models.values())
        except Exception as e:
            logger.error(f"AI check failed: {e}")
    ai_latency = (time.perf_counter() - start) * 1000

    return SystemHealth(
        database=ProbeStatus(
            status=database_status(db_ok, db_latency), latency=round(db_latency)
        ),
        ai=ProbeStatus(status="online" if ai_ok else "offline", latency=round(ai_latency)),
        models=models,
        overall=overall_status(db_ok, db_latency, ai_ok),
    )
