"""Code generation routes."""

from fastapi import APIRouter

from app.api.deps import Generations
from app.schemas.generations import GenerateRequest, IdeaSummary, PromptRequest

router = APIRouter(tags=["generations"])


@router.post("/generate")
async def generate(payload: GenerateRequest, generations: Generations):
    """Run one generation attempt and return the terminal record."""
    generation = await generations.generate(
        payload.project_id,
        payload.user_id,
        payload.prompt,
        theme=payload.theme,
        language=payload.language,
    )
    return {"generation": generation.to_json()}


@router.post("/generate/validate")
async def validate_prompt(payload: PromptRequest, generations: Generations):
    """Advisory prompt check. Provider failures yield the permissive default."""
    validation = await generations.validate_prompt(payload.prompt)
    return validation.to_json()


@router.post("/generate/summarize")
async def summarize_idea(payload: PromptRequest, generations: Generations):
    summary = await generations.summarize_idea(payload.prompt)
    return IdeaSummary(summary=summary).to_json()


@router.get("/generations/{project_id}")
async def list_generations(project_id: str, generations: Generations):
    return [generation.to_json() for generation in await generations.list_for_project(project_id)]
