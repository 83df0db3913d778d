"""Perioperative risk and bedside calculator endpoints.

Calculators are stateless and open; saving a result to a patient's history
requires an authenticated doctor.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.api.dependencies import get_current_user
from medi_scribe.api.routes.patients import get_owned_patient
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Doctor, Patient
from medi_scribe.core.records import save_dual_assessment, save_rcri_assessment
from medi_scribe.core.repository import AuditRepository
from medi_scribe.core.schemas import ConsultationRead
from medi_scribe.risk import (
    CalculatorResult,
    DualRiskAssessment,
    RCRIFactors,
    RCRIResult,
    RiskAssessmentResult,
    RiskCalculatorInputs,
    assess_perioperative_risk,
    calculate_bmi,
    calculate_egfr,
    calculate_mica,
    calculate_pediatric_dose,
    calculate_rcri,
    estimate_rcri,
    format_assessment_note,
)
from medi_scribe.risk.calculators import Sex

logger = logging.getLogger(__name__)

router = APIRouter(tags=["risk"])


# --- Request / Response schemas ---

class DualAssessmentRequest(RiskCalculatorInputs):
    is_high_risk_surgery: Optional[bool] = Field(
        None, description="Override the procedure-derived RCRI surgery flag"
    )

    def calculator_inputs(self) -> RiskCalculatorInputs:
        return RiskCalculatorInputs(**self.model_dump(exclude={"is_high_risk_surgery"}))


class DualAssessmentResponse(BaseModel):
    assessment: DualRiskAssessment
    note: str


class BMIRequest(BaseModel):
    weight_kg: float
    height_cm: float


class EGFRRequest(BaseModel):
    creatinine_mg_dl: float
    age: float = Field(..., ge=18, le=120)
    sex: Sex


class PediatricDoseRequest(BaseModel):
    weight_kg: float


class SaveRiskAssessmentRequest(BaseModel):
    """Exactly one of ``rcri_factors`` or ``mica_inputs``."""

    rcri_factors: Optional[RCRIFactors] = None
    mica_inputs: Optional[RiskCalculatorInputs] = None
    is_high_risk_surgery: Optional[bool] = None

    @model_validator(mode="after")
    def one_model(self) -> "SaveRiskAssessmentRequest":
        if (self.rcri_factors is None) == (self.mica_inputs is None):
            raise ValueError("Provide either rcri_factors or mica_inputs")
        return self


class SavedRiskAssessment(BaseModel):
    consultation: ConsultationRead
    result: dict[str, Any]


def _calculator(func, **kwargs) -> CalculatorResult:
    try:
        return func(**kwargs)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# --- Endpoints ---

@router.post("/risk/mica", response_model=RiskAssessmentResult)
async def mica(inputs: RiskCalculatorInputs) -> RiskAssessmentResult:
    return calculate_mica(inputs)


@router.post("/risk/rcri", response_model=RCRIResult)
async def rcri(factors: RCRIFactors) -> RCRIResult:
    return calculate_rcri(factors)


@router.post("/risk/rcri/estimate", response_model=RCRIResult)
async def rcri_estimate(body: DualAssessmentRequest) -> RCRIResult:
    return estimate_rcri(body.calculator_inputs(), body.is_high_risk_surgery)


@router.post("/risk/assessment", response_model=DualAssessmentResponse)
async def dual_assessment(body: DualAssessmentRequest) -> DualAssessmentResponse:
    inputs = body.calculator_inputs()
    assessment = assess_perioperative_risk(inputs, body.is_high_risk_surgery)
    return DualAssessmentResponse(
        assessment=assessment, note=format_assessment_note(assessment, inputs)
    )


@router.post("/risk/bmi", response_model=CalculatorResult)
async def bmi(body: BMIRequest) -> CalculatorResult:
    return _calculator(calculate_bmi, weight_kg=body.weight_kg, height_cm=body.height_cm)


@router.post("/risk/egfr", response_model=CalculatorResult)
async def egfr(body: EGFRRequest) -> CalculatorResult:
    return _calculator(
        calculate_egfr, creatinine_mg_dl=body.creatinine_mg_dl, age=body.age, sex=body.sex
    )


@router.post("/risk/pediatric-dose", response_model=CalculatorResult)
async def pediatric_dose(body: PediatricDoseRequest) -> CalculatorResult:
    return _calculator(calculate_pediatric_dose, weight_kg=body.weight_kg)


@router.post(
    "/patients/{patient_id}/risk-assessments",
    response_model=SavedRiskAssessment,
    status_code=201,
)
async def save_risk_assessment(
    body: SaveRiskAssessmentRequest,
    request: Request,
    patient: Patient = Depends(get_owned_patient),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavedRiskAssessment:
    """Compute a risk score and store it as a completed consultation."""
    if body.rcri_factors is not None:
        consultation = await save_rcri_assessment(
            db, patient, body.rcri_factors, doctor_id=current_user.id
        )
    else:
        consultation, _ = await save_dual_assessment(
            db,
            patient,
            body.mica_inputs,
            doctor_id=current_user.id,
            is_high_risk_surgery=body.is_high_risk_surgery,
        )

    await AuditRepository(db).log_action(
        action="create",
        resource_type="risk_assessment",
        resource_id=str(consultation.id),
        user_id=str(current_user.id),
        details={"patient_id": str(patient.id)},
        ip_address=request.client.host if request.client else "unknown",
    )

    return SavedRiskAssessment(
        consultation=ConsultationRead.model_validate(consultation),
        result=consultation.ai_analysis_data["result"],
    )
