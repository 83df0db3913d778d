"""Auth routes: login, logout, me."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.api.dependencies import get_current_user
from medi_scribe.core.auth import (
    clear_auth_cookie,
    create_access_token,
    set_auth_cookie,
    verify_password,
)
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Doctor
from medi_scribe.core.repository import DoctorRepository

router = APIRouter(prefix="/auth")


class LoginRequest(BaseModel):
    email: str
    password: str


class DoctorProfile(BaseModel):
    id: str
    full_name: str
    email: str
    specialty: Optional[str]
    license_number: Optional[str]


class LoginResponse(DoctorProfile):
    access_token: str
    token_type: str = "bearer"


def _profile(doctor: Doctor) -> dict:
    return {
        "id": str(doctor.id),
        "full_name": doctor.full_name,
        "email": doctor.email,
        "specialty": doctor.specialty,
        "license_number": doctor.license_number,
    }


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    doctor = await DoctorRepository(db).get_active_by_email(body.email)

    if not doctor or not doctor.password_hash:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, doctor.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    access = create_access_token(str(doctor.id))
    set_auth_cookie(response, access)

    return LoginResponse(access_token=access, **_profile(doctor))


@router.post("/logout")
async def logout(response: Response) -> dict:
    clear_auth_cookie(response)
    return {"ok": True}


@router.get("/me", response_model=DoctorProfile)
async def me(current_user: Doctor = Depends(get_current_user)) -> DoctorProfile:
    return DoctorProfile(**_profile(current_user))
