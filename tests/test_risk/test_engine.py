"""Tests for the dual-model assessment and note rendering."""

from medi_scribe.risk import (
    FunctionalStatus,
    ProcedureCategory,
    RCRIFactors,
    RiskCalculatorInputs,
    assess_perioperative_risk,
    calculate_rcri,
    format_assessment_note,
    format_rcri_note,
    rcri_summary,
)


def test_dual_assessment_runs_both_models(sample_inputs):
    assessment = assess_perioperative_risk(sample_inputs)

    assert assessment.mica.inputs_snapshot == sample_inputs
    assert assessment.rcri.partial is True
    assert assessment.rcri.points == 0


def test_dual_assessment_passes_override(sample_inputs):
    assessment = assess_perioperative_risk(sample_inputs, is_high_risk_surgery=True)
    assert assessment.rcri.points == 1


def test_assessment_note_contents():
    inputs = RiskCalculatorInputs(
        age=72,
        asa_class=3,
        functional_status=FunctionalStatus.PARTIALLY_DEPENDENT,
        creatinine_gt_15=True,
        procedure=ProcedureCategory.AORTIC,
    )
    assessment = assess_perioperative_risk(inputs)
    note = format_assessment_note(assessment)

    assert note.startswith("EVALUACIÓN DE RIESGO QUIRÚRGICO (Dual Model)")
    assert f"Riesgo: {assessment.mica.risk_percentage}% ({assessment.mica.risk_level.value})" in note
    assert "Puntuación: 2 puntos" in note
    assert "Edad: 72 años | ASA: 3" in note
    assert "Parcialmente dependiente" in note
    assert "Creatinina >1.5: Sí" in note
    assert "Procedimiento: Aórtico" in note


def test_assessment_note_with_explicit_inputs(sample_inputs):
    assessment = assess_perioperative_risk(sample_inputs)

    note = format_assessment_note(assessment, sample_inputs)

    assert note == format_assessment_note(assessment)
    assert "Edad: 65 años | ASA: 3" in note
    assert "Procedimiento: Otro / Menor" in note


def test_assessment_note_parameters_follow_given_inputs(sample_inputs):
    assessment = assess_perioperative_risk(sample_inputs)
    corrected = sample_inputs.model_copy(update={"age": 66})

    note = format_assessment_note(assessment, corrected)

    assert "Edad: 66 años | ASA: 3" in note
    assert f"Riesgo: {assessment.mica.risk_percentage}%" in note


def test_rcri_summary_line():
    result = calculate_rcri(RCRIFactors(ischemic_heart_disease=True, creatinine_gt_2=True))
    assert rcri_summary(result) == (
        "Valoración Riesgo Qx: Clase III (2 pts) - Riesgo 6.6% (Moderado)"
    )


def test_rcri_note_lists_present_factors():
    result = calculate_rcri(RCRIFactors(congestive_heart_failure=True))
    note = format_rcri_note(result, "María López")

    assert note.startswith("[CALCULADORA RIESGO RCRI]")
    assert "Pac: María López" in note
    assert "Resultado: Clase II" in note
    assert "Insuficiencia Cardíaca" in note


def test_rcri_note_without_factors():
    note = format_rcri_note(calculate_rcri(RCRIFactors()))
    assert "Ninguno (Paciente Sano)" in note
    assert "Pac: Paciente" in note
