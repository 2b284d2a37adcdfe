"""Project store endpoints: list, get, save, delete, export, import."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from core.storage import (
    ProjectRepository,
    derive_title,
    export_project,
    export_projects,
    generate_id,
    import_projects,
    prepare_imported,
)
from shared.schemas import ProjectSave

from ..deps import repository_dep

logger = logging.getLogger(__name__)

router = APIRouter()

_JSON = "application/json"


def _unwrap_content(raw: str) -> str:
    try:
        data = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(data, dict) and set(data) == {"content"} and isinstance(data["content"], str):
        return data["content"]
    return raw


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/projects")
def list_projects(repo: ProjectRepository = Depends(repository_dep)):
    """List all projects, most recently updated first."""
    return repo.list_all()


@router.get("/projects/export")
def export_all_projects(repo: ProjectRepository = Depends(repository_dep)):
    """Export every project as ``{exported, projects}``."""
    return Response(
        export_projects(repo.list_all()),
        media_type=_JSON,
        headers=_attachment("consensus-projects.json"),
    )


@router.post("/projects/import", status_code=201)
async def import_project_file(request: Request, repo: ProjectRepository = Depends(repository_dep)):
    """Import an export file; projects get fresh ids and timestamps.

    The body is the raw export text, or ``{"content": "<export text>"}``.
    """
    raw = (await request.body()).decode("utf-8", errors="replace")
    projects = import_projects(_unwrap_content(raw))
    saved = [repo.save(p) for p in prepare_imported(projects)]
    logger.info("Imported %d project(s)", len(saved))
    return {"imported": len(saved), "projects": saved}


@router.get("/projects/{project_id}")
def get_project(project_id: str, repo: ProjectRepository = Depends(repository_dep)):
    project = repo.get(project_id)
    if not project:
        raise HTTPException(status_code=404, detail={"code": "PROJECT_NOT_FOUND"})
    return project


@router.get("/projects/{project_id}/export")
def export_one_project(project_id: str, repo: ProjectRepository = Depends(repository_dep)):
    project = repo.get(project_id)
    if not project:
        raise HTTPException(status_code=404, detail={"code": "PROJECT_NOT_FOUND"})
    return Response(
        export_project(project),
        media_type=_JSON,
        headers=_attachment(f"consensus-{project_id}.json"),
    )


@router.post("/projects", status_code=201)
def create_project(body: ProjectSave, repo: ProjectRepository = Depends(repository_dep)):
    """Save a new project (or overwrite one when ``id`` is given)."""
    record = body.to_record()
    record.setdefault("id", generate_id())
    record.setdefault("title", derive_title(body.problem, body.result))
    return repo.save(record)


@router.put("/projects/{project_id}")
def save_project(project_id: str, body: ProjectSave, repo: ProjectRepository = Depends(repository_dep)):
    """Upsert a project; ``updatedAt`` is refreshed, ``createdAt`` kept."""
    record = body.to_record()
    record["id"] = project_id
    record.setdefault("title", derive_title(body.problem, body.result))
    return repo.save(record)


@router.delete("/projects/{project_id}")
def delete_project(project_id: str, repo: ProjectRepository = Depends(repository_dep)):
    """Delete a project. Unknown ids are not an error."""
    repo.delete(project_id)
    return {"status": "deleted", "project_id": project_id}
