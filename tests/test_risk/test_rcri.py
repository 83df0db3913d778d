"""Tests for the Revised Cardiac Risk Index."""

import pytest

from medi_scribe.risk import (
    ProcedureCategory,
    RCRIFactors,
    RiskCalculatorInputs,
    calculate_rcri,
    estimate_rcri,
    is_high_risk_procedure,
)


class TestCalculateRcri:
    def test_no_factors_is_class_one(self):
        result = calculate_rcri(RCRIFactors())

        assert result.points == 0
        assert result.risk_class == "Clase I"
        assert result.estimated_risk == "0.4%"
        assert result.risk_label == "Bajo"
        assert result.partial is False

    @pytest.mark.parametrize(
        "flags,points,risk_class,estimated,label",
        [
            ({"ischemic_heart_disease": True}, 1, "Clase II", "0.9%", "Bajo"),
            (
                {"ischemic_heart_disease": True, "congestive_heart_failure": True},
                2, "Clase III", "6.6%", "Moderado",
            ),
            (
                {
                    "high_risk_surgery": True,
                    "cerebrovascular_disease": True,
                    "insulin_dependent_diabetes": True,
                },
                3, "Clase IV", ">11%", "Alto",
            ),
        ],
    )
    def test_classes(self, flags, points, risk_class, estimated, label):
        result = calculate_rcri(RCRIFactors(**flags))

        assert result.points == points
        assert result.risk_class == risk_class
        assert result.estimated_risk == estimated
        assert result.risk_label == label

    def test_all_six_factors_stay_class_four(self):
        factors = RCRIFactors(
            high_risk_surgery=True,
            ischemic_heart_disease=True,
            congestive_heart_failure=True,
            cerebrovascular_disease=True,
            insulin_dependent_diabetes=True,
            creatinine_gt_2=True,
        )
        result = calculate_rcri(factors)

        assert result.points == 6
        assert result.risk_class == "Clase IV"

    def test_factors_echoed(self):
        factors = RCRIFactors(creatinine_gt_2=True)
        assert calculate_rcri(factors).factors == factors

    def test_present_labels(self):
        factors = RCRIFactors(high_risk_surgery=True, creatinine_gt_2=True)
        assert factors.present() == ["Cirugía Alto Riesgo", "Creatinina > 2.0"]


class TestHighRiskProcedures:
    @pytest.mark.parametrize(
        "procedure",
        [
            ProcedureCategory.AORTIC,
            ProcedureCategory.VASCULAR,
            ProcedureCategory.INTESTINAL,
            ProcedureCategory.FOREGUT_HEPATOBILIARY,
            ProcedureCategory.THORACIC,
        ],
    )
    def test_high_risk(self, procedure):
        assert is_high_risk_procedure(procedure)

    @pytest.mark.parametrize(
        "procedure",
        [ProcedureCategory.BREAST, ProcedureCategory.ORTHOPEDIC, ProcedureCategory.OTHER],
    )
    def test_not_high_risk(self, procedure):
        assert not is_high_risk_procedure(procedure)


class TestEstimateRcri:
    def test_scores_only_surgery_and_creatinine(self):
        inputs = RiskCalculatorInputs(
            age=70,
            asa_class=3,
            creatinine_gt_15=True,
            procedure=ProcedureCategory.INTESTINAL,
        )
        result = estimate_rcri(inputs)

        assert result.points == 2
        assert result.risk_class == "Clase III"
        assert result.partial is True
        assert result.factors.ischemic_heart_disease is False
        assert result.factors.congestive_heart_failure is False

    def test_low_risk_procedure_without_creatinine(self, sample_inputs):
        result = estimate_rcri(sample_inputs)
        assert result.points == 0
        assert result.partial is True

    def test_override_marks_surgery_high_risk(self, sample_inputs):
        result = estimate_rcri(sample_inputs, is_high_risk_surgery=True)
        assert result.points == 1
        assert result.factors.high_risk_surgery is True

    def test_override_can_clear_procedure_flag(self):
        inputs = RiskCalculatorInputs(
            age=60, asa_class=2, procedure=ProcedureCategory.THORACIC
        )
        assert estimate_rcri(inputs).points == 1
        assert estimate_rcri(inputs, is_high_risk_surgery=False).points == 0
