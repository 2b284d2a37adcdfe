"""CLI interface for Consensus."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, NoReturn, Optional

import typer

from core.config import Settings, configure_logging
from core.consensus import ConsensusService
from core.controller import ConsensusController
from core.errors import ConsensusError
from core.storage import SQLiteProjectRepository
from shared.schemas import Constraints

app = typer.Typer(help="Consensus - turn a problem statement into a decision package")
projects_app = typer.Typer(help="Manage locally saved projects")
app.add_typer(projects_app, name="projects")

logger = logging.getLogger(__name__)

QUOTA_HINT = (
    "API Quota Exceeded: Free tier limit reached. "
    "Please wait and try again, or upgrade your plan."
)


def build_controller(settings: Optional[Settings] = None) -> ConsensusController:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    return ConsensusController(
        ConsensusService(settings),
        SQLiteProjectRepository(settings.db_path),
    )


def _fail(e: ConsensusError) -> NoReturn:
    if e.kind == "quota":
        typer.echo(QUOTA_HINT, err=True)
    else:
        typer.echo(f"Error ({e.kind}): {e}", err=True)
    raise typer.Exit(code=1)


def _constraints(
    budget: Optional[str],
    timeframe: Optional[str],
    stakeholder: Optional[List[str]],
    legal: Optional[str],
    priority: Optional[str],
) -> Constraints:
    return Constraints(
        budget=budget,
        timeframe=timeframe,
        stakeholders=list(stakeholder) if stakeholder else None,
        legal=legal,
        priority=priority,
    )


def _parse_answers(pairs: Optional[List[str]]) -> Dict[str, str]:
    answers: Dict[str, str] = {}
    for pair in pairs or []:
        qid, sep, text = pair.partition("=")
        if not sep or not qid.strip():
            raise typer.BadParameter(f"expected ID=TEXT, got {pair!r}", param_hint="--answer")
        answers[qid.strip()] = text.strip()
    return answers


def _print_package(pkg: dict) -> None:
    print(f"\n{pkg['title']}")
    print(f"  {pkg['headline']}")
    print(f"\n{pkg['summary']}")
    print("\nOptions:")
    for opt in pkg["options"]:
        print(f"  [{opt['id']}] {opt['title']} — success {opt['success_probability']}%")
    if pkg["recommended_plan"]:
        print("\nRecommended plan:")
        for step in pkg["recommended_plan"]:
            print(f"  {step.get('step_number')}. {step.get('action')} ({step.get('owner')})")
    scenarios = pkg["scenarios"]
    print("\nScenarios:")
    for key in ("best", "expected", "worst"):
        print(f"  {key}: {scenarios[key]}")


# ---------------------------------------------------------------------------
# Generation commands
# ---------------------------------------------------------------------------

@app.command()
def status():
    """Show whether the Gemini credential is configured."""
    ctl = build_controller()
    st = ctl.load_status()
    if st.configured:
        print("✓ Gemini configured")
    else:
        print(f"✗ Gemini not configured: {st.reason}")
        raise typer.Exit(code=1)


@app.command()
def ping():
    """Round-trip a tiny prompt to Gemini and print the latency."""
    ctl = build_controller()
    try:
        latency_ms = ctl.service.ping()
    except ConsensusError as e:
        _fail(e)
    print(f"✓ Gemini reachable ({latency_ms} ms)")


@app.command()
def clarify(
    problem: str = typer.Argument(..., help="Problem description (at least 10 characters)"),
    budget: Optional[str] = typer.Option(None, help="Budget constraint"),
    timeframe: Optional[str] = typer.Option(None, help="Timeframe constraint"),
    stakeholder: Optional[List[str]] = typer.Option(None, help="Stakeholder (repeatable)"),
    legal: Optional[str] = typer.Option(None, help="Legal constraints"),
    priority: Optional[str] = typer.Option(None, help="Priority"),
):
    """Generate 2-4 clarifying questions."""
    ctl = build_controller()
    ctl.set_problem(problem, _constraints(budget, timeframe, stakeholder, legal, priority))
    try:
        questions = ctl.submit_clarify()
    except ConsensusError as e:
        _fail(e)
    for q in questions:
        print(f"{q.id}: {q.question}")


@app.command()
def produce(
    problem: str = typer.Argument(..., help="Problem description (at least 10 characters)"),
    budget: Optional[str] = typer.Option(None, help="Budget constraint"),
    timeframe: Optional[str] = typer.Option(None, help="Timeframe constraint"),
    stakeholder: Optional[List[str]] = typer.Option(None, help="Stakeholder (repeatable)"),
    legal: Optional[str] = typer.Option(None, help="Legal constraints"),
    priority: Optional[str] = typer.Option(None, help="Priority"),
    answer: Optional[List[str]] = typer.Option(None, help="Answer as ID=TEXT (repeatable)"),
    save: bool = typer.Option(False, "--save", help="Save as a project"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the package JSON here"),
):
    """Generate a full decision package."""
    answers = _parse_answers(answer)
    ctl = build_controller()
    ctl.set_problem(problem, _constraints(budget, timeframe, stakeholder, legal, priority))
    for qid, text in answers.items():
        ctl.answer(qid, text)
    try:
        pkg = ctl.submit_produce()
    except ConsensusError as e:
        _fail(e)

    _print_package(pkg)
    if output is not None:
        output.write_text(ctl.export_result(), encoding="utf-8")
        print(f"\n✓ Decision package written to {output}")
    if save:
        saved = ctl.save_project()
        print(f"✓ Project saved locally: {saved['id']}")


# ---------------------------------------------------------------------------
# Project commands
# ---------------------------------------------------------------------------

@projects_app.command("list")
def list_projects():
    """List saved projects, most recent first."""
    ctl = build_controller()
    projects = ctl.load_projects()
    if not projects:
        print("No saved projects")
        return
    for p in projects:
        print(f"{p.get('id')}  {p.get('updatedAt', '')}  {p.get('title', '')}")


@projects_app.command("show")
def show_project(project_id: str = typer.Argument(..., help="Project id")):
    """Print one project as JSON."""
    ctl = build_controller()
    try:
        print(ctl.export_project(project_id))
    except ConsensusError as e:
        _fail(e)


@projects_app.command("delete")
def delete_project(project_id: str = typer.Argument(..., help="Project id")):
    """Delete a project (no error if it does not exist)."""
    ctl = build_controller()
    ctl.delete_project(project_id)
    print(f"✓ Deleted {project_id}")


@projects_app.command("export")
def export_projects_cmd(
    project_id: Optional[str] = typer.Argument(None, help="Project id (omit to export all)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file"),
):
    """Export one project, or all of them, as JSON."""
    ctl = build_controller()
    try:
        text = ctl.export_project(project_id) if project_id else ctl.export_all()
    except ConsensusError as e:
        _fail(e)
    if output is None:
        print(text)
        return
    output.write_text(text, encoding="utf-8")
    print(f"✓ Exported to {output}")


@projects_app.command("import")
def import_projects_cmd(path: Path = typer.Argument(..., exists=True, help="Export file to import")):
    """Import projects from an export file (fresh ids are assigned)."""
    ctl = build_controller()
    try:
        saved = ctl.import_projects(path.read_text(encoding="utf-8"))
    except ConsensusError as e:
        _fail(e)
    print(f"✓ Imported {len(saved)} project(s)")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("services.api.app.main:app", host=host, port=port, reload=reload)


def main():
    app()


if __name__ == "__main__":
    main()
