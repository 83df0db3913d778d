"""FastAPI dependencies: JWT/API-key auth and shared services."""

from __future__ import annotations

import hmac
import uuid

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.config import get_settings
from medi_scribe.core.auth import ACCESS_COOKIE, access_token_subject
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Doctor
from medi_scribe.scribe import ClinicalScribe


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


async def _active_doctor(db: AsyncSession, doctor_id: str) -> Doctor | None:
    try:
        did = uuid.UUID(doctor_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token subject")
    result = await db.execute(select(Doctor).where(Doctor.id == did, Doctor.active.is_(True)))
    return result.scalar_one_or_none()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Doctor:
    """Resolve the authenticated doctor.

    Priority:
    1. JWT from the medi_access cookie or a Bearer header
    2. Static API key (Bearer / X-API-Key) + optional X-Doctor-Id header
    3. Raise 401
    """
    bearer = _bearer_token(request)

    # --- Path 1: JWT ---
    for token in (request.cookies.get(ACCESS_COOKIE), bearer):
        doctor_id = access_token_subject(token)
        if doctor_id:
            doctor = await _active_doctor(db, doctor_id)
            if doctor:
                return doctor

    # --- Path 2: API key ---
    settings = get_settings()
    if settings.api_key:
        provided_key = bearer or request.headers.get("X-API-Key")
        if provided_key and hmac.compare_digest(provided_key, settings.api_key):
            doctor_id = request.headers.get("X-Doctor-Id")
            if doctor_id:
                doctor = await _active_doctor(db, doctor_id)
            else:
                result = await db.execute(
                    select(Doctor).where(Doctor.active.is_(True)).order_by(Doctor.created_at).limit(1)
                )
                doctor = result.scalar_one_or_none()
            if doctor:
                return doctor

    raise HTTPException(status_code=401, detail="Not authenticated")


def get_scribe(request: Request) -> ClinicalScribe:
    """The clinical scribe, or 503 when no Gemini key is configured."""
    scribe = getattr(request.app.state, "scribe", None)
    if scribe is None:
        raise HTTPException(status_code=503, detail="AI service is not configured")
    return scribe
