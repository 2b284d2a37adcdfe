"""Local project store.

Projects are plain dicts keyed by ``id`` with camelCase timestamps
(``createdAt`` / ``updatedAt``), exactly the shape written to export files.

Two repositories implement the same small interface:
- SQLite file (or ``:memory:``) for durable local storage
- In-memory dict, used as a fake in tests
"""

from __future__ import annotations

import abc
import json
import logging
import random
import sqlite3
import string
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .errors import ImportFormatError

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50

_ID_ALPHABET = string.digits + string.ascii_lowercase


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_id() -> str:
    """``proj_<epoch-ms>_<7 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"proj_{int(time.time() * 1000)}_{suffix}"


def derive_title(problem: str, result: Optional[Dict[str, Any]] = None) -> str:
    if result and result.get("title"):
        return result["title"]
    return problem[:TITLE_MAX_CHARS]


def _updated_key(project: Dict[str, Any]) -> float:
    value = project.get("updatedAt")
    if not value:
        return float("-inf")
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return float("-inf")


def sort_by_recency(projects: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most recently updated first; stable for equal timestamps."""
    return sorted(projects, key=_updated_key, reverse=True)


# ---------------------------------------------------------------------------
# Repository interface
# ---------------------------------------------------------------------------

class ProjectRepository(abc.ABC):
    """Storage-engine-agnostic project persistence."""

    def list_all(self) -> List[Dict[str, Any]]:
        return sort_by_recency(self._values())

    @abc.abstractmethod
    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save(self, project: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert by id.

        ``updatedAt`` is always stamped now; an existing record keeps its
        ``createdAt`` whatever the caller passed.
        """
        if not project.get("id"):
            raise ValueError("project id is required")
        record = dict(project)
        now = _now_iso()
        existing = self.get(record["id"])
        if existing is not None and existing.get("createdAt"):
            record["createdAt"] = existing["createdAt"]
        elif not record.get("createdAt"):
            record["createdAt"] = now
        record["updatedAt"] = now
        self._put(record)
        logger.info("Saved project %s", record["id"])
        return record

    @abc.abstractmethod
    def delete(self, project_id: str) -> None:
        """Remove a project. Unknown ids are ignored."""
        ...

    @abc.abstractmethod
    def _values(self) -> List[Dict[str, Any]]:
        ...

    @abc.abstractmethod
    def _put(self, record: Dict[str, Any]) -> None:
        ...


class InMemoryProjectRepository(ProjectRepository):
    def __init__(self):
        self._projects: Dict[str, Dict[str, Any]] = {}

    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        project = self._projects.get(project_id)
        return dict(project) if project is not None else None

    def delete(self, project_id: str) -> None:
        self._projects.pop(project_id, None)

    def clear(self) -> None:
        self._projects.clear()

    def _values(self) -> List[Dict[str, Any]]:
        return [dict(p) for p in self._projects.values()]

    def _put(self, record: Dict[str, Any]) -> None:
        self._projects[record["id"]] = dict(record)


class SQLiteProjectRepository(ProjectRepository):
    """One ``projects`` table: id primary key, updated_at index, JSON body."""

    def __init__(self, path: str = "consensus.db"):
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        with self._lock, self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS projects ("
                "  id TEXT PRIMARY KEY,"
                "  updated_at TEXT NOT NULL,"
                "  body TEXT NOT NULL"
                ")"
            )
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_projects_updated_at "
                "ON projects (updated_at)"
            )
        logger.info("Project store opened: %s", path)

    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._conn.execute(
                "SELECT body FROM projects WHERE id = ?", (project_id,),
            ).fetchone()
        return json.loads(row[0]) if row else None

    def delete(self, project_id: str) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))

    def close(self) -> None:
        self._conn.close()

    def _values(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute("SELECT body FROM projects ORDER BY rowid").fetchall()
        return [json.loads(r[0]) for r in rows]

    def _put(self, record: Dict[str, Any]) -> None:
        body = json.dumps(record, ensure_ascii=False)
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO projects (id, updated_at, body) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "updated_at = excluded.updated_at, body = excluded.body",
                (record["id"], record["updatedAt"], body),
            )


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------

def export_project(project: Dict[str, Any]) -> str:
    return json.dumps(project, indent=2, ensure_ascii=False)


def export_projects(projects: List[Dict[str, Any]]) -> str:
    return json.dumps(
        {"exported": _now_iso(), "projects": projects}, indent=2, ensure_ascii=False,
    )


def export_decision_package(package: Dict[str, Any]) -> str:
    return json.dumps(package, indent=2, ensure_ascii=False)


def import_projects(text: str) -> List[Dict[str, Any]]:
    """Parse an export file into project dicts.

    Accepts ``{"projects": [...]}``, a bare list, or a single project
    (recognised by ``id`` and ``problem``). Nothing is persisted and inner
    fields are not validated.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportFormatError("Invalid project data format: not valid JSON") from e

    if isinstance(data, dict) and isinstance(data.get("projects"), list):
        return data["projects"]
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and data.get("id") and data.get("problem"):
        return [data]
    raise ImportFormatError("Invalid project data format")


def prepare_imported(projects: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Give imported projects fresh ids and timestamps before saving."""
    prepared = []
    for project in projects:
        if not isinstance(project, dict):
            raise ImportFormatError("Invalid project data format: entries must be objects")
        record = dict(project)
        now = _now_iso()
        record["id"] = generate_id()
        record["createdAt"] = now
        record["updatedAt"] = now
        prepared.append(record)
    return prepared
