"""Perioperative risk data models (Gupta MICA and RCRI/Lee)."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FunctionalStatus(str, Enum):
    """Ability to perform activities of daily living (Gupta model)."""

    INDEPENDENT = "independent"
    PARTIALLY_DEPENDENT = "partially"
    TOTALLY_DEPENDENT = "totally"


class ProcedureCategory(str, Enum):
    """Surgical procedure groups with distinct cardiac risk weights."""

    ANORECTAL = "anorectal"
    AORTIC = "aortic"
    BARIATRIC = "bariatric"
    BRAIN = "brain"
    BREAST = "breast"
    CARDIAC = "cardiac"
    ENT = "ent"
    FOREGUT_HEPATOBILIARY = "foregut"
    INTESTINAL = "intestinal"
    NECK = "neck"  # thyroid/parathyroid
    OBGYN = "obgyn"
    ORTHOPEDIC = "orthopedic"
    SPINE = "spine"
    THORACIC = "thoracic"  # non-cardiac
    VASCULAR = "vascular"  # peripheral
    UROLOGY = "urology"
    OTHER = "other"


PROCEDURE_LABELS: dict[ProcedureCategory, str] = {
    ProcedureCategory.ANORECTAL: "Anorectal",
    ProcedureCategory.AORTIC: "Aórtico",
    ProcedureCategory.BARIATRIC: "Bariátrica",
    ProcedureCategory.BRAIN: "Neurocirugía (Cerebro)",
    ProcedureCategory.BREAST: "Mama",
    ProcedureCategory.CARDIAC: "Cardíaca",
    ProcedureCategory.ENT: "Otorrinolaringología (ENT)",
    ProcedureCategory.FOREGUT_HEPATOBILIARY: "Hepatobiliar / Gástrica",
    ProcedureCategory.INTESTINAL: "Intestinal / Colorectal",
    ProcedureCategory.NECK: "Cuello (Tiroides/Otras)",
    ProcedureCategory.OBGYN: "Ginecología / Obstetricia",
    ProcedureCategory.ORTHOPEDIC: "Ortopedia",
    ProcedureCategory.SPINE: "Columna",
    ProcedureCategory.THORACIC: "Torácica (No Cardíaca)",
    ProcedureCategory.VASCULAR: "Vascular Periférico",
    ProcedureCategory.UROLOGY: "Urología",
    ProcedureCategory.OTHER: "Otro / Menor",
}


class RiskLevel(str, Enum):
    """Semantic interpretation of a MICA probability."""

    LOW = "Bajo"
    ELEVATED = "Elevado"
    HIGH = "Alto"


class RiskCalculatorInputs(BaseModel):
    """Inputs requested from the surgeon for the Gupta model."""

    age: int = Field(..., ge=0, le=120, description="Age in years")
    asa_class: int = Field(..., ge=1, le=5, description="ASA physical status I-V")
    functional_status: FunctionalStatus = FunctionalStatus.INDEPENDENT
    creatinine_gt_15: bool = Field(False, description="Serum creatinine > 1.5 mg/dL")
    procedure: ProcedureCategory = ProcedureCategory.OTHER

    @property
    def procedure_label(self) -> str:
        return PROCEDURE_LABELS.get(self.procedure, self.procedure.value)


class RiskAssessmentResult(BaseModel):
    """Gupta MICA output for the doctor."""

    model_name: str
    risk_percentage: float = Field(..., description="Probability in percent, 2 decimals")
    risk_level: RiskLevel
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    inputs_snapshot: RiskCalculatorInputs


class RCRIFactors(BaseModel):
    """The six Lee index criteria."""

    high_risk_surgery: bool = False
    ischemic_heart_disease: bool = False
    congestive_heart_failure: bool = False
    cerebrovascular_disease: bool = False
    insulin_dependent_diabetes: bool = False
    creatinine_gt_2: bool = False

    def present(self) -> list[str]:
        """Human-readable names of the factors that are present."""
        return [
            label
            for name, label in RCRI_FACTOR_LABELS.items()
            if getattr(self, name)
        ]


RCRI_FACTOR_LABELS: dict[str, str] = {
    "high_risk_surgery": "Cirugía Alto Riesgo",
    "ischemic_heart_disease": "Cardiopatía Isquémica",
    "congestive_heart_failure": "Insuficiencia Cardíaca",
    "cerebrovascular_disease": "Enf. Cerebrovascular",
    "insulin_dependent_diabetes": "Insulina Dependiente",
    "creatinine_gt_2": "Creatinina > 2.0",
}


class RCRIResult(BaseModel):
    """Revised Cardiac Risk Index score."""

    points: int = Field(..., ge=0, le=6)
    risk_class: str = Field(..., description="Clase I-IV")
    estimated_risk: str = Field(..., description="e.g. '6.6%'")
    risk_label: str = Field(..., description="Bajo | Moderado | Alto")
    partial: bool = Field(
        False,
        description="True when only the factors available from the Gupta inputs were scored",
    )
    factors: Optional[RCRIFactors] = None


class DualRiskAssessment(BaseModel):
    """Both perioperative models side by side."""

    mica: RiskAssessmentResult
    rcri: RCRIResult
