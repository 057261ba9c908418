"""Generation artifact and generation request schemas."""

from typing import Optional

from pydantic import Field

from app.models.enums import Language
from app.schemas.common import ApiModel


class GenerationArtifact(ApiModel):
    """Generated Flutter project: entry point, manifest, pages, widgets, assets."""

    main_dart: str
    pubspec_yaml: str
    pages: dict[str, str] = Field(default_factory=dict)
    widgets: dict[str, str] = Field(default_factory=dict)
    assets: list[str] = Field(default_factory=list)


class GenerateRequest(ApiModel):
    """Body of POST /generate. Presence of ids and prompt is checked by the workflow."""

    project_id: Optional[str] = None
    user_id: Optional[str] = None
    prompt: Optional[str] = None
    theme: str = "modern"
    language: Language = Language.EN


class PromptRequest(ApiModel):
    prompt: str = Field(..., min_length=1, max_length=10000)


class PromptValidation(ApiModel):
    """Advisory assessment of a prompt. Never used for billing."""

    is_valid: bool = True
    suggestions: list[str] = Field(default_factory=list)
    estimated_credits: int = Field(default=10, ge=10, le=50)


class IdeaSummary(ApiModel):
    summary: str
