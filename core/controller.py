"""Application controller -- explicit session state plus commands.

The controller owns the ephemeral working set (current problem, questions,
answers, result) and drives the service and the project store through a
fixed set of commands::

    ctl = ConsensusController(service, repository)
    ctl.load_status()
    ctl.set_problem("Should we expand into the European market this year?",
                    Constraints(budget="$500,000"))
    ctl.submit_clarify()
    ctl.answer("q1", "Germany first")
    ctl.submit_produce()
    ctl.save_project()

Front ends (the CLI, a UI) render ``ctl.state``; they never talk to the
provider or the store directly.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from shared.schemas import ClarifyingQuestion, Constraints

from .config import ConfigurationStatus, configuration_status
from .consensus import ConsensusService
from .errors import ConfigurationError, ConsensusError, InputValidationError
from .providers import LLMQuotaError
from .storage import (
    ProjectRepository,
    derive_title,
    export_decision_package,
    export_project,
    export_projects,
    generate_id,
    import_projects,
    prepare_imported,
)

logger = logging.getLogger(__name__)


@dataclass
class CommandRecord:
    """Record of one command execution."""
    name: str
    status: str = "pending"  # pending / running / success / error
    started_at: float = 0.0
    finished_at: float = 0.0
    error_kind: str = ""
    error_message: str = ""

    @property
    def elapsed_seconds(self) -> float:
        if self.finished_at and self.started_at:
            return self.finished_at - self.started_at
        return 0.0


@dataclass
class AppState:
    problem: str = ""
    constraints: Constraints = field(default_factory=Constraints)
    questions: List[ClarifyingQuestion] = field(default_factory=list)
    answers: Dict[str, str] = field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    current_project_id: Optional[str] = None
    status: Optional[ConfigurationStatus] = None
    projects: List[Dict[str, Any]] = field(default_factory=list)
    busy: bool = False
    quota_exhausted: bool = False
    last_error: Optional[ConsensusError] = None
    history: List[CommandRecord] = field(default_factory=list)

    @property
    def configured(self) -> bool:
        return bool(self.status and self.status.configured)


class ConsensusController:
    """Consumes commands and updates :class:`AppState`."""

    def __init__(self, service: ConsensusService, repository: ProjectRepository) -> None:
        self.service = service
        self.repository = repository
        self.state = AppState()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run(self, name: str, fn: Callable[[], Any]) -> Any:
        record = CommandRecord(name=name, status="running", started_at=time.time())
        self.state.history.append(record)
        self.state.busy = True
        self.state.last_error = None
        try:
            out = fn()
        except ConsensusError as e:
            record.status = "error"
            record.error_kind = e.kind
            record.error_message = str(e)
            self.state.last_error = e
            self.state.quota_exhausted = isinstance(e, LLMQuotaError)
            logger.warning("Command %s failed (%s): %s", name, e.kind, e)
            raise
        finally:
            record.finished_at = time.time()
            self.state.busy = False
        record.status = "success"
        return out

    def _require_ready(self) -> None:
        if self.state.status is None:
            self.load_status()
        if not self.state.configured:
            raise ConfigurationError(
                self.state.status.reason if self.state.status else "not configured"
            )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def load_status(self) -> ConfigurationStatus:
        self.state.status = configuration_status(self.service.settings)
        return self.state.status

    def load_projects(self) -> List[Dict[str, Any]]:
        self.state.projects = self.repository.list_all()
        return self.state.projects

    def set_problem(self, problem: str, constraints: Optional[Constraints] = None) -> None:
        self.state.problem = problem
        if constraints is not None:
            self.state.constraints = constraints

    def answer(self, question_id: str, text: str) -> None:
        if text:
            self.state.answers[question_id] = text
        else:
            self.state.answers.pop(question_id, None)

    def submit_clarify(self) -> List[ClarifyingQuestion]:
        def _do():
            self._require_ready()
            questions = self.service.clarify(self.state.problem, self.state.constraints)
            self.state.questions = questions
            return questions
        return self._run("submit_clarify", _do)

    def submit_produce(self) -> Dict[str, Any]:
        def _do():
            self._require_ready()
            self.state.result = None
            result = self.service.produce(
                self.state.problem,
                self.state.constraints,
                self.state.answers or None,
            )
            self.state.result = result
            self.state.quota_exhausted = False
            return result
        return self._run("submit_produce", _do)

    def save_project(self) -> Dict[str, Any]:
        def _do():
            if not self.state.problem:
                raise InputValidationError("Nothing to save: problem is empty")
            project_id = self.state.current_project_id or generate_id()
            project: Dict[str, Any] = {
                "id": project_id,
                "title": derive_title(self.state.problem, self.state.result),
                "problem": self.state.problem,
                "constraints": self.state.constraints.model_dump(exclude_none=True),
            }
            if self.state.answers:
                project["answers"] = dict(self.state.answers)
            if self.state.result is not None:
                project["result"] = self.state.result
            saved = self.repository.save(project)
            self.state.current_project_id = project_id
            self.load_projects()
            return saved
        return self._run("save_project", _do)

    def load_project(self, project_id: str) -> Dict[str, Any]:
        def _do():
            project = self.repository.get(project_id)
            if project is None:
                raise InputValidationError(f"Project not found: {project_id}")
            self.state.problem = project.get("problem", "")
            self.state.constraints = Constraints.model_validate(project.get("constraints") or {})
            self.state.answers = dict(project.get("answers") or {})
            self.state.result = project.get("result")
            self.state.current_project_id = project["id"]
            self.state.questions = []
            return project
        return self._run("load_project", _do)

    def delete_project(self, project_id: str) -> None:
        def _do():
            self.repository.delete(project_id)
            if self.state.current_project_id == project_id:
                self.state.current_project_id = None
            self.load_projects()
        self._run("delete_project", _do)

    def new_project(self) -> None:
        self.state.problem = ""
        self.state.constraints = Constraints()
        self.state.questions = []
        self.state.answers = {}
        self.state.result = None
        self.state.current_project_id = None

    def import_projects(self, text: str) -> List[Dict[str, Any]]:
        def _do():
            imported = prepare_imported(import_projects(text))
            saved = [self.repository.save(p) for p in imported]
            self.load_projects()
            return saved
        return self._run("import_projects", _do)

    def export_project(self, project_id: str) -> str:
        project = self.repository.get(project_id)
        if project is None:
            raise InputValidationError(f"Project not found: {project_id}")
        return export_project(project)

    def export_all(self) -> str:
        return export_projects(self.repository.list_all())

    def export_result(self) -> str:
        if self.state.result is None:
            raise InputValidationError("No decision package to export")
        return export_decision_package(self.state.result)
