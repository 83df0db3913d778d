"""CLI commands for MediScribe."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from medi_scribe.config import get_settings
from medi_scribe.risk import (
    FunctionalStatus,
    ProcedureCategory,
    RCRIFactors,
    RiskCalculatorInputs,
    RiskLevel,
    assess_perioperative_risk,
    calculate_bmi,
    calculate_egfr,
    calculate_pediatric_dose,
    calculate_rcri,
    format_assessment_note,
    format_rcri_note,
)

app = typer.Typer(
    name="medi-scribe",
    help="Clinical documentation assistant and perioperative risk calculator",
    add_completion=False,
)
console = Console()

_LEVEL_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.ELEVATED: "yellow",
    RiskLevel.HIGH: "red",
}


def get_scribe():
    """Get a clinical scribe wired to the configured Gemini models."""
    from medi_scribe.llm import create_router_from_settings
    from medi_scribe.scribe import ClinicalScribe

    settings = get_settings()
    return ClinicalScribe(create_router_from_settings(), default_specialty=settings.default_specialty)


@app.command()
def risk(
    age: int = typer.Option(..., "--age", "-a", help="Age in years"),
    asa: int = typer.Option(..., "--asa", help="ASA class 1-5"),
    functional: str = typer.Option(
        "independent", "--functional", "-f", help="independent, partially or totally"
    ),
    creatinine: bool = typer.Option(False, "--creatinine", help="Creatinine > 1.5 mg/dL"),
    procedure: str = typer.Option("other", "--procedure", "-p", help="Procedure category"),
    high_risk: Optional[bool] = typer.Option(
        None, "--high-risk/--low-risk", help="Override RCRI surgery risk"
    ),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Gupta MICA plus estimated RCRI for a surgical candidate."""
    try:
        functional_enum = FunctionalStatus(functional)
    except ValueError:
        console.print(f"[red]Invalid functional status: {functional}[/red]")
        raise typer.Exit(1)

    try:
        procedure_enum = ProcedureCategory(procedure)
    except ValueError:
        valid = ", ".join(p.value for p in ProcedureCategory)
        console.print(f"[red]Invalid procedure: {procedure}. Use one of: {valid}[/red]")
        raise typer.Exit(1)

    if not 1 <= asa <= 5 or not 0 <= age <= 120:
        console.print("[red]Age must be 0-120 and ASA 1-5[/red]")
        raise typer.Exit(1)

    inputs = RiskCalculatorInputs(
        age=age,
        asa_class=asa,
        functional_status=functional_enum,
        creatinine_gt_15=creatinine,
        procedure=procedure_enum,
    )
    assessment = assess_perioperative_risk(inputs, high_risk)

    if output_json:
        console.print(assessment.model_dump_json(indent=2))
        return

    color = _LEVEL_COLORS[assessment.mica.risk_level]
    console.print(
        Panel(
            format_assessment_note(assessment, inputs),
            title="Riesgo Quirúrgico",
            border_style=color,
        )
    )


@app.command()
def rcri(
    high_risk_surgery: bool = typer.Option(False, "--high-risk-surgery"),
    ischemic: bool = typer.Option(False, "--ischemic", help="Ischemic heart disease"),
    heart_failure: bool = typer.Option(False, "--heart-failure", help="Congestive heart failure"),
    cerebrovascular: bool = typer.Option(False, "--cerebrovascular", help="Stroke or TIA"),
    insulin: bool = typer.Option(False, "--insulin", help="Insulin-dependent diabetes"),
    creatinine: bool = typer.Option(False, "--creatinine", help="Creatinine > 2.0 mg/dL"),
    patient: str = typer.Option("Paciente", "--patient", help="Name for the note header"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Full Revised Cardiac Risk Index (Lee)."""
    result = calculate_rcri(
        RCRIFactors(
            high_risk_surgery=high_risk_surgery,
            ischemic_heart_disease=ischemic,
            congestive_heart_failure=heart_failure,
            cerebrovascular_disease=cerebrovascular,
            insulin_dependent_diabetes=insulin,
            creatinine_gt_2=creatinine,
        )
    )

    if output_json:
        console.print(result.model_dump_json(indent=2))
        return

    console.print(Panel(format_rcri_note(result, patient), title="RCRI"))


def _print_calculator(result, output_json: bool) -> None:
    if output_json:
        console.print(result.model_dump_json(indent=2))
        return
    table = Table(title=result.calculator)
    table.add_column("Valor", justify="right")
    table.add_column("Unidad")
    table.add_column("Interpretación")
    table.add_row(f"{result.value:g}", result.unit, result.interpretation)
    console.print(table)


def _run_calculator(func, output_json: bool, **kwargs) -> None:
    try:
        result = func(**kwargs)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    _print_calculator(result, output_json)


@app.command()
def bmi(
    weight: float = typer.Option(..., "--weight", "-w", help="Weight in kg"),
    height: float = typer.Option(..., "--height", "-h", help="Height in cm"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Body mass index."""
    _run_calculator(calculate_bmi, output_json, weight_kg=weight, height_cm=height)


@app.command()
def egfr(
    creatinine: float = typer.Option(..., "--creatinine", "-c", help="Serum creatinine mg/dL"),
    age: float = typer.Option(..., "--age", "-a", help="Age in years"),
    sex: str = typer.Option(..., "--sex", "-s", help="M or F"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """CKD-EPI 2021 estimated glomerular filtration rate."""
    _run_calculator(
        calculate_egfr, output_json, creatinine_mg_dl=creatinine, age=age, sex=sex.upper()
    )


@app.command("peds-dose")
def peds_dose(
    weight: float = typer.Option(..., "--weight", "-w", help="Weight in kg"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Pediatric paracetamol dose (15 mg/kg)."""
    _run_calculator(calculate_pediatric_dose, output_json, weight_kg=weight)


@app.command()
def note(
    transcript_file: Path = typer.Argument(..., help="Text file with the consultation transcript"),
    specialty: Optional[str] = typer.Option(None, "--specialty", "-s", help="Medical specialty"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Draft a SOAP note from a transcript with Gemini."""
    from medi_scribe.llm import LLMError

    if not transcript_file.exists():
        console.print(f"[red]Transcript file not found: {transcript_file}[/red]")
        raise typer.Exit(1)
    transcript = transcript_file.read_text(encoding="utf-8")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Drafting note...", total=None)
        try:
            scribe = get_scribe()
            draft = asyncio.run(scribe.generate_clinical_note(transcript, specialty=specialty))
        except (LLMError, ValueError) as e:
            progress.stop()
            console.print(f"[red]Could not draft note: {e}[/red]")
            raise typer.Exit(1)
        progress.update(task, completed=True)

    if output_json:
        console.print(json.dumps(draft.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    if draft.soap:
        for title, body in (
            ("Subjetivo", draft.soap.subjective),
            ("Objetivo", draft.soap.objective),
            ("Análisis", draft.soap.analysis),
            ("Plan", draft.soap.plan),
        ):
            console.print(Panel(body or "-", title=title))
    else:
        console.print(Panel(draft.clinical_note, title="Nota Clínica"))

    if draft.prescriptions:
        table = Table(title="Receta")
        table.add_column("Medicamento")
        table.add_column("Presentación")
        table.add_column("Frecuencia")
        table.add_column("Duración")
        for item in draft.prescriptions:
            table.add_row(item.drug, item.details, item.frequency, item.duration)
        console.print(table)

    if draft.patient_instructions:
        console.print(Panel(draft.patient_instructions, title="Indicaciones"))


@app.command()
def health():
    """Check Gemini model availability."""
    from medi_scribe.llm import LLMNotConfiguredError, create_router_from_settings

    console.print("[bold]MediScribe Health Check[/bold]\n")

    try:
        llm = create_router_from_settings()
    except LLMNotConfiguredError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    health_status = asyncio.run(llm.health_check())

    table = Table(title="Gemini Models")
    table.add_column("Model")
    table.add_column("Status")
    for model, status in health_status.items():
        status_str = "[green]OK[/green]" if status else "[red]UNAVAILABLE[/red]"
        table.add_row(model, status_str)
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind"),
    port: int = typer.Option(8080, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the REST API server."""
    import uvicorn

    console.print(f"Starting MediScribe API server on {host}:{port}")
    uvicorn.run(
        "medi_scribe.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version():
    """Show version information."""
    from medi_scribe import __version__

    console.print(f"MediScribe v{__version__}")
