"""Gupta MICA perioperative cardiac risk model.

Probability of intraoperative/postoperative myocardial infarction or cardiac
arrest. Coefficients from Gupta PK et al., Circulation 2013;128:127-136
(procedure betas simplified to the aggregated categories).
"""

from __future__ import annotations

import math

from medi_scribe.risk.models import (
    FunctionalStatus,
    ProcedureCategory,
    RiskAssessmentResult,
    RiskCalculatorInputs,
    RiskLevel,
)

MODEL_NAME = "Gupta MICA (Riesgo Cardíaco Perioperatorio)"

INTERCEPT = -5.309
AGE_PER_YEAR = 0.003
CREATININE_GT_15 = 0.605

FUNCTIONAL_STATUS_COEFFICIENTS: dict[FunctionalStatus, float] = {
    FunctionalStatus.INDEPENDENT: 0.0,
    FunctionalStatus.PARTIALLY_DEPENDENT: 0.35,
    FunctionalStatus.TOTALLY_DEPENDENT: 0.70,
}

# ASA 1 is the reference class
ASA_COEFFICIENTS: dict[int, float] = {
    1: 0.0,
    2: 0.115,
    3: 0.638,
    4: 1.099,
    5: 1.838,
}

PROCEDURE_COEFFICIENTS: dict[ProcedureCategory, float] = {
    ProcedureCategory.ANORECTAL: -0.852,
    ProcedureCategory.AORTIC: 1.107,
    ProcedureCategory.BARIATRIC: -0.738,
    ProcedureCategory.BRAIN: 0.32,
    ProcedureCategory.BREAST: -1.2,
    ProcedureCategory.CARDIAC: 1.25,
    ProcedureCategory.ENT: -0.65,
    ProcedureCategory.FOREGUT_HEPATOBILIARY: 0.23,
    ProcedureCategory.INTESTINAL: 0.35,
    ProcedureCategory.NECK: -0.60,
    ProcedureCategory.OBGYN: -0.40,
    ProcedureCategory.ORTHOPEDIC: -0.208,
    ProcedureCategory.SPINE: -0.15,
    ProcedureCategory.THORACIC: 0.65,
    ProcedureCategory.VASCULAR: 0.534,
    ProcedureCategory.UROLOGY: -0.30,
    ProcedureCategory.OTHER: 0.0,
}

ELEVATED_THRESHOLD = 1.0
HIGH_THRESHOLD = 3.0


def mica_logit(inputs: RiskCalculatorInputs) -> float:
    """Linear predictor of the MICA logistic regression."""
    logit = INTERCEPT
    logit += inputs.age * AGE_PER_YEAR
    if inputs.creatinine_gt_15:
        logit += CREATININE_GT_15
    logit += ASA_COEFFICIENTS[inputs.asa_class]
    logit += FUNCTIONAL_STATUS_COEFFICIENTS[inputs.functional_status]
    # Unmapped procedures contribute nothing
    logit += PROCEDURE_COEFFICIENTS.get(inputs.procedure, 0.0)
    return logit


def classify_mica(percent: float) -> RiskLevel:
    """Map a MICA percentage to Bajo (<1), Elevado (1-3) or Alto (>=3)."""
    if percent >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if percent >= ELEVATED_THRESHOLD:
        return RiskLevel.ELEVATED
    return RiskLevel.LOW


def calculate_mica(inputs: RiskCalculatorInputs) -> RiskAssessmentResult:
    """Compute the Gupta MICA risk as a percentage.

    Args:
        inputs: Age, ASA class, functional status, creatinine flag and procedure.

    Returns:
        RiskAssessmentResult with the percentage rounded to 2 decimals.
    """
    logit = mica_logit(inputs)
    probability = 1.0 / (1.0 + math.exp(-logit))
    percent = probability * 100

    return RiskAssessmentResult(
        model_name=MODEL_NAME,
        risk_percentage=round(percent, 2),
        risk_level=classify_mica(percent),
        inputs_snapshot=inputs.model_copy(),
    )
