"""Tests for the Gupta MICA model."""

import math

import pytest
from pydantic import ValidationError

from medi_scribe.risk import (
    FunctionalStatus,
    ProcedureCategory,
    RiskCalculatorInputs,
    RiskLevel,
    calculate_mica,
)
from medi_scribe.risk.gupta import (
    PROCEDURE_COEFFICIENTS,
    classify_mica,
    mica_logit,
)


def _expected_percent(logit: float) -> float:
    return 100 / (1 + math.exp(-logit))


class TestMicaLogit:
    def test_reference_patient(self, sample_inputs):
        # -5.309 + 65 * 0.003 + ASA III 0.638
        assert mica_logit(sample_inputs) == pytest.approx(-4.476)

    def test_all_factors_add_up(self):
        inputs = RiskCalculatorInputs(
            age=80,
            asa_class=4,
            functional_status=FunctionalStatus.TOTALLY_DEPENDENT,
            creatinine_gt_15=True,
            procedure=ProcedureCategory.AORTIC,
        )
        expected = -5.309 + 0.24 + 0.605 + 1.099 + 0.70 + 1.107
        assert mica_logit(inputs) == pytest.approx(expected)

    def test_every_procedure_has_a_coefficient(self):
        assert set(PROCEDURE_COEFFICIENTS) == set(ProcedureCategory)
        assert PROCEDURE_COEFFICIENTS[ProcedureCategory.OTHER] == 0.0


class TestCalculateMica:
    def test_reference_patient_is_elevated(self, sample_inputs):
        result = calculate_mica(sample_inputs)

        assert result.risk_percentage == pytest.approx(_expected_percent(-4.476), abs=0.01)
        assert result.risk_level == RiskLevel.ELEVATED
        assert result.model_name.startswith("Gupta MICA")

    def test_healthy_breast_surgery_is_low(self):
        inputs = RiskCalculatorInputs(
            age=30, asa_class=1, procedure=ProcedureCategory.BREAST
        )
        result = calculate_mica(inputs)

        assert result.risk_percentage < 1.0
        assert result.risk_level == RiskLevel.LOW

    def test_sick_aortic_patient_is_high(self):
        inputs = RiskCalculatorInputs(
            age=80,
            asa_class=4,
            functional_status=FunctionalStatus.TOTALLY_DEPENDENT,
            creatinine_gt_15=True,
            procedure=ProcedureCategory.AORTIC,
        )
        result = calculate_mica(inputs)

        assert result.risk_percentage == pytest.approx(17.39, abs=0.01)
        assert result.risk_level == RiskLevel.HIGH

    def test_percentage_rounded_to_two_decimals(self, sample_inputs):
        result = calculate_mica(sample_inputs)
        assert round(result.risk_percentage, 2) == result.risk_percentage

    def test_risk_increases_with_asa(self):
        percents = [
            calculate_mica(RiskCalculatorInputs(age=60, asa_class=asa)).risk_percentage
            for asa in range(1, 6)
        ]
        assert percents == sorted(percents)
        assert len(set(percents)) == 5

    def test_functional_dependence_raises_risk(self, sample_inputs):
        independent = calculate_mica(sample_inputs)
        dependent = calculate_mica(
            sample_inputs.model_copy(
                update={"functional_status": FunctionalStatus.PARTIALLY_DEPENDENT}
            )
        )
        assert dependent.risk_percentage > independent.risk_percentage

    def test_snapshot_matches_inputs(self, sample_inputs):
        result = calculate_mica(sample_inputs)
        assert result.inputs_snapshot == sample_inputs
        assert result.inputs_snapshot is not sample_inputs

    def test_calculated_at_is_timezone_aware(self, sample_inputs):
        assert calculate_mica(sample_inputs).calculated_at.tzinfo is not None


class TestClassification:
    @pytest.mark.parametrize(
        "percent,level",
        [
            (0.0, RiskLevel.LOW),
            (0.99, RiskLevel.LOW),
            (1.0, RiskLevel.ELEVATED),
            (2.99, RiskLevel.ELEVATED),
            (3.0, RiskLevel.HIGH),
            (45.0, RiskLevel.HIGH),
        ],
    )
    def test_thresholds(self, percent, level):
        assert classify_mica(percent) == level


class TestInputValidation:
    def test_asa_out_of_range(self):
        with pytest.raises(ValidationError):
            RiskCalculatorInputs(age=50, asa_class=6)

    def test_age_out_of_range(self):
        with pytest.raises(ValidationError):
            RiskCalculatorInputs(age=121, asa_class=2)

    def test_unknown_procedure_rejected(self):
        with pytest.raises(ValidationError):
            RiskCalculatorInputs(age=50, asa_class=2, procedure="dental")

    def test_defaults(self):
        inputs = RiskCalculatorInputs(age=50, asa_class=2)
        assert inputs.functional_status == FunctionalStatus.INDEPENDENT
        assert inputs.procedure == ProcedureCategory.OTHER
        assert inputs.creatinine_gt_15 is False
        assert inputs.procedure_label == "Otro / Menor"


# Procedures whose coefficient keeps an ASA 1, independent patient below 1 %
# at every age up to 100. Aortic, cardiac, thoracic and vascular do not.
LOW_RISK_PROCEDURES = [
    ProcedureCategory.ANORECTAL,
    ProcedureCategory.BARIATRIC,
    ProcedureCategory.BRAIN,
    ProcedureCategory.BREAST,
    ProcedureCategory.ENT,
    ProcedureCategory.FOREGUT_HEPATOBILIARY,
    ProcedureCategory.INTESTINAL,
    ProcedureCategory.NECK,
    ProcedureCategory.OBGYN,
    ProcedureCategory.ORTHOPEDIC,
    ProcedureCategory.SPINE,
    ProcedureCategory.UROLOGY,
    ProcedureCategory.OTHER,
]


class TestRiskInvariants:
    @pytest.mark.parametrize("procedure", LOW_RISK_PROCEDURES)
    def test_healthy_patient_low_at_any_age(self, procedure):
        levels = {
            calculate_mica(
                RiskCalculatorInputs(age=age, asa_class=1, procedure=procedure)
            ).risk_level
            for age in range(0, 101)
        }
        assert levels == {RiskLevel.LOW}

    @pytest.mark.parametrize(
        "procedure,first_elevated_age",
        [
            (ProcedureCategory.AORTIC, 0),
            (ProcedureCategory.CARDIAC, 0),
            (ProcedureCategory.THORACIC, 22),
            (ProcedureCategory.VASCULAR, 60),
        ],
    )
    def test_higher_risk_procedures_leave_low_tier(self, procedure, first_elevated_age):
        def level(age):
            return calculate_mica(
                RiskCalculatorInputs(age=age, asa_class=1, procedure=procedure)
            ).risk_level

        assert level(first_elevated_age) == RiskLevel.ELEVATED
        if first_elevated_age:
            assert level(first_elevated_age - 1) == RiskLevel.LOW

    @pytest.mark.parametrize("procedure", list(ProcedureCategory))
    @pytest.mark.parametrize("asa_class", [1, 3, 5])
    @pytest.mark.parametrize("status", list(FunctionalStatus))
    def test_creatinine_never_lowers_risk(self, procedure, asa_class, status):
        for age in (0, 40, 80, 120):
            base = RiskCalculatorInputs(
                age=age, asa_class=asa_class, functional_status=status, procedure=procedure
            )
            with_creatinine = base.model_copy(update={"creatinine_gt_15": True})

            assert mica_logit(with_creatinine) > mica_logit(base)
            assert (
                calculate_mica(with_creatinine).risk_percentage
                >= calculate_mica(base).risk_percentage
            )

    @pytest.mark.parametrize("asa_class", [1, 2, 3, 4, 5])
    @pytest.mark.parametrize("creatinine", [False, True])
    def test_larger_procedure_coefficient_never_lowers_risk(self, asa_class, creatinine):
        ordered = sorted(ProcedureCategory, key=PROCEDURE_COEFFICIENTS.__getitem__)
        for age in (18, 65, 90):
            percents = [
                calculate_mica(
                    RiskCalculatorInputs(
                        age=age,
                        asa_class=asa_class,
                        creatinine_gt_15=creatinine,
                        procedure=procedure,
                    )
                ).risk_percentage
                for procedure in ordered
            ]
            assert percents == sorted(percents)

    def test_functional_status_order_never_lowers_risk(self):
        statuses = [
            FunctionalStatus.INDEPENDENT,
            FunctionalStatus.PARTIALLY_DEPENDENT,
            FunctionalStatus.TOTALLY_DEPENDENT,
        ]
        for procedure in ProcedureCategory:
            percents = [
                calculate_mica(
                    RiskCalculatorInputs(
                        age=70, asa_class=2, functional_status=s, procedure=procedure
                    )
                ).risk_percentage
                for s in statuses
            ]
            assert percents == sorted(percents)
