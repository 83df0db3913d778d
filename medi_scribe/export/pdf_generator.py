"""fpdf2-based renderers for consultation notes, prescriptions and risk reports.

Generates in-memory PDF bytes. No disk I/O; returns bytes directly via
FPDF.output().
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from fpdf import FPDF
from fpdf.fonts import FontFace

from medi_scribe.risk import DualRiskAssessment

RX_DISCLAIMER = (
    "Este documento es una receta médica digital válida. "
    "Su uso requiere verificación de identidad del profesional."
)

RISK_DISCLAIMER = (
    "Los modelos Gupta MICA y RCRI son herramientas de apoyo. La decisión quirúrgica "
    "corresponde al juicio clínico del médico tratante."
)

_TABLE_HEADINGS = FontFace(emphasis="BOLD", fill_color=(230, 230, 235))


class ClinicalDocumentPDF(FPDF):
    """PDF subclass with clinic header and page-numbered footer."""

    def __init__(self, clinic_name: str = "MediScribe Clinic"):
        super().__init__()
        self.clinic_name = clinic_name

    def header(self):
        self.set_font("Helvetica", "B", 12)
        self.cell(0, 6, _sanitize(self.clinic_name), new_x="LMARGIN", new_y="NEXT")
        self.set_font("Helvetica", "", 7)
        self.set_text_color(180, 0, 0)
        self.cell(0, 4, "CONFIDENCIAL - INFORMACIÓN CLÍNICA PROTEGIDA", new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.line(10, self.get_y() + 1, 200, self.get_y() + 1)
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 7)
        self.set_text_color(128, 128, 128)
        self.cell(0, 10, f"Página {self.page_no()}/{{nb}}", align="C")


def _new_document(clinic_name: str) -> ClinicalDocumentPDF:
    pdf = ClinicalDocumentPDF(clinic_name=clinic_name)
    pdf.alias_nb_pages()
    pdf.add_page()
    pdf.set_auto_page_break(auto=True, margin=20)
    return pdf


def _doctor_block(
    pdf: FPDF,
    doctor_name: Optional[str],
    specialty: Optional[str],
    license_number: Optional[str],
) -> None:
    if not doctor_name:
        return
    pdf.set_font("Helvetica", "B", 10)
    pdf.cell(0, 5, _sanitize(f"Dr(a). {doctor_name}"), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 8)
    meta = [part for part in (specialty, f"Cédula Prof: {license_number}" if license_number else None) if part]
    if meta:
        pdf.cell(0, 4, _sanitize("  |  ".join(meta)), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(2)


def _patient_line(pdf: FPDF, patient_name: str, doc_date: str) -> None:
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(
        0, 5, _sanitize(f"Paciente: {patient_name}  |  Fecha: {doc_date}"),
        new_x="LMARGIN", new_y="NEXT",
    )
    pdf.ln(3)


def _signature(pdf: FPDF, doctor_name: Optional[str], doc_date: str) -> None:
    pdf.ln(10)
    pdf.line(10, pdf.get_y(), 90, pdf.get_y())
    pdf.set_font("Helvetica", "", 8)
    pdf.ln(1)
    signer = f"DR. {doctor_name.upper()}" if doctor_name else "Firma del médico"
    pdf.cell(0, 4, _sanitize(f"{signer}  |  Fecha: {doc_date}"), new_x="LMARGIN", new_y="NEXT")


def _generated_stamp(pdf: FPDF) -> None:
    pdf.ln(4)
    pdf.set_font("Helvetica", "I", 7)
    pdf.set_text_color(160, 160, 160)
    pdf.cell(
        0, 4, f"Generado por MediScribe el {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        new_x="LMARGIN", new_y="NEXT",
    )
    pdf.set_text_color(0, 0, 0)


def generate_consultation_pdf(
    *,
    patient_name: str,
    consultation_date: str,
    soap: dict[str, str],
    clinical_note: Optional[str] = None,
    patient_instructions: Optional[str] = None,
    prescriptions: Optional[Sequence[dict]] = None,
    doctor_name: Optional[str] = None,
    specialty: Optional[str] = None,
    license_number: Optional[str] = None,
    clinic_name: str = "MediScribe Clinic",
) -> bytes:
    """Render a consultation note and return raw PDF bytes.

    Parameters
    ----------
    patient_name : Name printed in the header line
    consultation_date : Date string as it should appear on the document
    soap : Dict with keys subjective, objective, analysis, plan
    clinical_note : Free-text note, used when no SOAP section has content
    patient_instructions : Indications for the patient
    prescriptions : Medication dicts (drug, details, frequency, duration, notes)
    clinic_name : Header text
    """
    pdf = _new_document(clinic_name)
    _doctor_block(pdf, doctor_name, specialty, license_number)

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, "NOTA CLÍNICA", new_x="LMARGIN", new_y="NEXT")
    _patient_line(pdf, patient_name, consultation_date)

    section_map = [
        ("S", "Subjetivo", soap.get("subjective", "")),
        ("O", "Objetivo", soap.get("objective", "")),
        ("A", "Análisis", soap.get("analysis", "")),
        ("P", "Plan", soap.get("plan", "")),
    ]
    rendered = False
    for letter, title, content in section_map:
        if not content:
            continue
        _render_filled_header(pdf, f"  {letter} - {title}")
        pdf.multi_cell(0, 5, _sanitize(content), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(2)
        rendered = True

    if not rendered and clinical_note:
        _render_filled_header(pdf, "  Nota")
        pdf.multi_cell(0, 5, _sanitize(clinical_note), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(2)

    if prescriptions:
        _render_section_header(pdf, "Tratamiento")
        _render_medication_table(pdf, prescriptions)

    if patient_instructions:
        _render_section_header(pdf, "Indicaciones al paciente")
        pdf.set_font("Helvetica", "", 9)
        pdf.multi_cell(0, 5, _sanitize(patient_instructions), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(2)

    _signature(pdf, doctor_name, consultation_date)
    _generated_stamp(pdf)
    return bytes(pdf.output())


def generate_prescription_pdf(
    *,
    patient_name: str,
    rx_date: str,
    medications: Sequence[dict],
    doctor_name: Optional[str] = None,
    specialty: Optional[str] = None,
    license_number: Optional[str] = None,
    clinic_name: str = "MediScribe Clinic",
) -> bytes:
    """Render a prescription with one row per medication."""
    pdf = _new_document(clinic_name)
    _doctor_block(pdf, doctor_name, specialty, license_number)
    _patient_line(pdf, patient_name, rx_date)

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, "RECETA MÉDICA", align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(2)

    _render_medication_table(pdf, medications)

    _signature(pdf, doctor_name, rx_date)
    pdf.ln(3)
    pdf.set_font("Helvetica", "I", 7)
    pdf.multi_cell(0, 4, _sanitize(RX_DISCLAIMER), new_x="LMARGIN", new_y="NEXT")
    return bytes(pdf.output())


def generate_risk_report_pdf(
    *,
    patient_name: str,
    report_date: str,
    assessment: DualRiskAssessment,
    doctor_name: Optional[str] = None,
    clinic_name: str = "MediScribe Clinic",
) -> bytes:
    """Render both perioperative models with the patient parameters."""
    mica = assessment.mica
    rcri = assessment.rcri
    inputs = mica.inputs_snapshot

    pdf = _new_document(clinic_name)
    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, "EVALUACIÓN DE RIESGO QUIRÚRGICO", new_x="LMARGIN", new_y="NEXT")
    _patient_line(pdf, patient_name, report_date)

    _render_filled_header(pdf, "  1. Gupta MICA (Cardíaco Perioperatorio)")
    pdf.cell(
        0, 5, _sanitize(f"Riesgo: {mica.risk_percentage}% ({mica.risk_level.value})"),
        new_x="LMARGIN", new_y="NEXT",
    )
    pdf.ln(2)

    title = "  2. RCRI (Índice de Lee)" + (" - estimado" if rcri.partial else "")
    _render_filled_header(pdf, title)
    pdf.cell(
        0, 5,
        _sanitize(
            f"{rcri.risk_class}: {rcri.points} puntos - Riesgo {rcri.estimated_risk} ({rcri.risk_label})"
        ),
        new_x="LMARGIN", new_y="NEXT",
    )
    pdf.ln(2)

    _render_section_header(pdf, "Parámetros del paciente")
    _render_table(pdf, ["Parámetro", "Valor"], [
        ["Edad", f"{inputs.age} años"],
        ["ASA", str(inputs.asa_class)],
        ["Estado funcional", inputs.functional_status.value],
        ["Creatinina > 1.5 mg/dL", "Sí" if inputs.creatinine_gt_15 else "No"],
        ["Procedimiento", inputs.procedure_label],
    ])

    _signature(pdf, doctor_name, report_date)
    pdf.ln(3)
    pdf.set_font("Helvetica", "I", 7)
    pdf.multi_cell(0, 4, _sanitize(RISK_DISCLAIMER), new_x="LMARGIN", new_y="NEXT")
    _generated_stamp(pdf)
    return bytes(pdf.output())


# --- Helpers ---

def _sanitize(text: str) -> str:
    """Replace characters that Helvetica (latin-1) can't render."""
    text = (
        text
        .replace("—", "-")   # em-dash
        .replace("–", "-")   # en-dash
        .replace("‘", "'")
        .replace("’", "'")
        .replace("“", '"')
        .replace("”", '"')
        .replace("•", "-")   # bullet
        .replace("≥", ">=")
        .replace("≤", "<=")
    )
    # Emojis from generated patient text
    return text.encode("latin-1", "replace").decode("latin-1")


def _render_filled_header(pdf: FPDF, title: str) -> None:
    pdf.set_font("Helvetica", "B", 10)
    pdf.set_fill_color(240, 240, 245)
    pdf.cell(0, 7, _sanitize(title), fill=True, new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 9)
    pdf.ln(1)


def _render_section_header(pdf: FPDF, title: str) -> None:
    pdf.set_font("Helvetica", "B", 9)
    pdf.set_text_color(60, 60, 60)
    pdf.cell(0, 6, _sanitize(title.upper()), new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)


def _render_table(
    pdf: FPDF,
    headers: list[str],
    rows: list[list[str]],
    widths: Optional[list[float]] = None,
) -> None:
    """Bordered table whose cells wrap onto as many lines as their text needs."""
    usable = pdf.w - 20
    widths = widths or [usable / len(headers)] * len(headers)
    pdf.set_font("Helvetica", "", 8)
    with pdf.table(
        col_widths=tuple(widths),
        width=sum(widths),
        line_height=4,
        text_align="LEFT",
        headings_style=_TABLE_HEADINGS,
    ) as table:
        for values in [headers, *rows]:
            row = table.row()
            for value in values:
                row.cell(_sanitize(str(value)))
    pdf.ln(2)


def _render_medication_table(pdf: FPDF, medications: Sequence[dict]) -> None:
    usable = pdf.w - 20
    widths = [usable * 0.28, usable * 0.22, usable * 0.32, usable * 0.18]
    _render_table(
        pdf,
        ["Medicamento", "Presentación", "Indicaciones", "Duración"],
        [
            [m.get("drug", ""), m.get("details", ""), m.get("frequency", ""), m.get("duration", "")]
            for m in medications
        ],
        widths=widths,
    )
    notes = [f"{m.get('drug', '')}: {m['notes']}" for m in medications if m.get("notes")]
    if notes:
        pdf.set_font("Helvetica", "I", 8)
        for note in notes:
            pdf.multi_cell(0, 4, _sanitize(f"Nota - {note}"), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(2)
