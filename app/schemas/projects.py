"""Project request schemas. Updates use ``ProjectPatch`` from the record module."""

from typing import Any, Optional

from pydantic import ConfigDict, Field

from app.models.enums import Language
from app.schemas.common import ApiModel
from app.schemas.records import ProjectCreate


class ProjectCreateRequest(ApiModel):
    """Project creation request. New projects always start as drafts."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=5000)
    theme: str = Field("modern", min_length=1, max_length=50)
    language: Language = Language.EN
    assets: Optional[Any] = None
    settings: Optional[dict[str, Any]] = None

    def to_create(self) -> ProjectCreate:
        return ProjectCreate(**self.model_dump())
