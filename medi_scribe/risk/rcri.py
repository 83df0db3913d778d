"""Revised Cardiac Risk Index (Lee et al., Circulation 1999).

One point per criterion; points map to classes I-IV with published rates of
major cardiac complications.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from medi_scribe.risk.models import (
    ProcedureCategory,
    RCRIFactors,
    RCRIResult,
    RiskCalculatorInputs,
)


class _RCRIClass(NamedTuple):
    risk_class: str
    estimated_risk: str
    risk_label: str


# Indexed by points; 3 or more collapse into class IV
RCRI_CLASSES: tuple[_RCRIClass, ...] = (
    _RCRIClass("Clase I", "0.4%", "Bajo"),
    _RCRIClass("Clase II", "0.9%", "Bajo"),
    _RCRIClass("Clase III", "6.6%", "Moderado"),
    _RCRIClass("Clase IV", ">11%", "Alto"),
)

# Vascular, intraperitoneal and intrathoracic procedures
HIGH_RISK_PROCEDURES: frozenset[ProcedureCategory] = frozenset({
    ProcedureCategory.AORTIC,
    ProcedureCategory.VASCULAR,
    ProcedureCategory.INTESTINAL,
    ProcedureCategory.FOREGUT_HEPATOBILIARY,
    ProcedureCategory.THORACIC,
})


def is_high_risk_procedure(procedure: ProcedureCategory) -> bool:
    return procedure in HIGH_RISK_PROCEDURES


def _classify(points: int) -> _RCRIClass:
    return RCRI_CLASSES[min(points, len(RCRI_CLASSES) - 1)]


def calculate_rcri(factors: RCRIFactors) -> RCRIResult:
    """Score the full six-criterion Lee index."""
    points = sum(
        1
        for flag in (
            factors.high_risk_surgery,
            factors.ischemic_heart_disease,
            factors.congestive_heart_failure,
            factors.cerebrovascular_disease,
            factors.insulin_dependent_diabetes,
            factors.creatinine_gt_2,
        )
        if flag
    )
    cls = _classify(points)
    return RCRIResult(
        points=points,
        risk_class=cls.risk_class,
        estimated_risk=cls.estimated_risk,
        risk_label=cls.risk_label,
        factors=factors,
    )


def estimate_rcri(
    inputs: RiskCalculatorInputs,
    is_high_risk_surgery: Optional[bool] = None,
) -> RCRIResult:
    """Partial RCRI using only what the Gupta inputs can tell us.

    Ischemic heart disease, heart failure, cerebrovascular disease and insulin
    use are not captured by the Gupta form, so only surgery risk and the
    creatinine flag are scored. The creatinine > 1.5 flag stands in for the
    RCRI > 2.0 criterion.
    """
    if is_high_risk_surgery is None:
        is_high_risk_surgery = is_high_risk_procedure(inputs.procedure)

    factors = RCRIFactors(
        high_risk_surgery=is_high_risk_surgery,
        creatinine_gt_2=inputs.creatinine_gt_15,
    )
    result = calculate_rcri(factors)
    result.partial = True
    return result
