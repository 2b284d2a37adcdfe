"""Project schemas for API contracts."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .consensus import Constraints

__all__ = ["ProjectSave"]


class ProjectSave(BaseModel):
    """Request to save (create or overwrite) a project.

    JSON keys are camelCase (``createdAt``) to match export files.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    title: Optional[str] = None
    problem: str = Field(..., min_length=1)
    constraints: Constraints = Field(default_factory=Constraints)
    answers: Optional[Dict[str, str]] = None
    result: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        record = self.model_dump(by_alias=True, exclude_none=True)
        record["constraints"] = self.constraints.model_dump(exclude_none=True)
        return record
