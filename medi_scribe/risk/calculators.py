"""Bedside calculators: BMI, CKD-EPI 2021 eGFR and pediatric paracetamol dose."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

Sex = Literal["M", "F"]

PARACETAMOL_MG_PER_KG = 15


class CalculatorResult(BaseModel):
    """Output of a bedside calculator."""

    calculator: str
    value: float
    unit: str
    interpretation: str


def _require_positive(**values: float) -> None:
    for name, value in values.items():
        if value is None or value <= 0:
            raise ValueError(f"{name} must be greater than zero")


def calculate_bmi(weight_kg: float, height_cm: float) -> CalculatorResult:
    """Body mass index from weight (kg) and height (cm)."""
    _require_positive(weight_kg=weight_kg, height_cm=height_cm)

    height_m = height_cm / 100
    bmi = weight_kg / (height_m * height_m)

    if bmi < 18.5:
        interpretation = "Bajo Peso"
    elif bmi < 25:
        interpretation = "Normal"
    elif bmi < 30:
        interpretation = "Sobrepeso"
    else:
        interpretation = "Obesidad"

    return CalculatorResult(
        calculator="BMI",
        value=round(bmi, 1),
        unit="kg/m²",
        interpretation=interpretation,
    )


def ckd_stage(egfr: float) -> str:
    """KDIGO GFR category for an eGFR in mL/min/1.73m²."""
    if egfr >= 90:
        return "Estadio G1 (Normal)"
    if egfr >= 60:
        return "Estadio G2 (Leve)"
    if egfr >= 45:
        return "Estadio G3a (Mod-Grave)"
    if egfr >= 30:
        return "Estadio G3b (Mod-Grave)"
    if egfr >= 15:
        return "Estadio G4 (Grave)"
    return "Estadio G5 (Falla Renal)"


def calculate_egfr(creatinine_mg_dl: float, age: float, sex: Sex) -> CalculatorResult:
    """Race-free CKD-EPI 2021 creatinine equation.

    eGFR = 142 * min(Scr/k, 1)^a * max(Scr/k, 1)^-1.200 * 0.9938^age [* 1.012 if female]
    """
    _require_positive(creatinine_mg_dl=creatinine_mg_dl, age=age)
    if sex not in ("M", "F"):
        raise ValueError(f"sex must be 'M' or 'F', got {sex!r}")

    female = sex == "F"
    kappa = 0.7 if female else 0.9
    alpha = -0.241 if female else -0.302

    ratio = creatinine_mg_dl / kappa
    egfr = 142 * min(ratio, 1) ** alpha * max(ratio, 1) ** -1.200 * 0.9938 ** age
    if female:
        egfr *= 1.012

    return CalculatorResult(
        calculator="eGFR (CKD-EPI 2021)",
        value=round(egfr),
        unit="ml/min/1.73m²",
        interpretation=ckd_stage(egfr),
    )


def calculate_pediatric_dose(weight_kg: float) -> CalculatorResult:
    """Standard weight-based paracetamol dose (15 mg/kg)."""
    _require_positive(weight_kg=weight_kg)
    return CalculatorResult(
        calculator="Dosis Pediátrica",
        value=round(weight_kg * PARACETAMOL_MG_PER_KG, 1),
        unit="mg",
        interpretation=f"Dosis Paracetamol ({PARACETAMOL_MG_PER_KG}mg/kg)",
    )
