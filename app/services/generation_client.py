"""Gemini client that turns an app idea into a Flutter project bundle."""

import logging
from typing import Any, Callable, Optional, Protocol

import google.generativeai as genai
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.schemas.common import ApiModel
from app.schemas.generations import GenerationArtifact, PromptValidation
from app.utils.exceptions import GenerationError, ValidationError

logger = logging.getLogger(__name__)

# (model_name, system_instruction) -> object exposing ``generate_content_async``
ModelFactory = Callable[[str, str], Any]

MIN_ESTIMATED_CREDITS = 10
MAX_ESTIMATED_CREDITS = 50

# Gemini response schemas cannot describe free-form maps, so pages and widgets
# travel as name/content lists and are folded into dicts after parsing.
_SOURCE_FILE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "content": {"type": "STRING"},
    },
    "required": ["name", "content"],
}

ARTIFACT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "mainDart": {"type": "STRING"},
        "pubspecYaml": {"type": "STRING"},
        "pages": {"type": "ARRAY", "items": _SOURCE_FILE_SCHEMA},
        "widgets": {"type": "ARRAY", "items": _SOURCE_FILE_SCHEMA},
        "assets": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["mainDart", "pubspecYaml", "pages", "widgets", "assets"],
}

VALIDATION_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "isValid": {"type": "BOOLEAN"},
        "suggestions": {"type": "ARRAY", "items": {"type": "STRING"}},
        "estimatedCredits": {"type": "NUMBER"},
    },
    "required": ["isValid", "suggestions", "estimatedCredits"],
}

VALIDATION_INSTRUCTION = f"""Analyze this app idea prompt and provide validation feedback.

Respond with JSON in this format:
{{
  "isValid": boolean,
  "suggestions": ["array of improvement suggestions"],
  "estimatedCredits": number (between {MIN_ESTIMATED_CREDITS}-{MAX_ESTIMATED_CREDITS} based on complexity)
}}

Consider factors like:
- Clarity of requirements
- Technical feasibility
- Feature complexity
- Number of screens/components needed"""

SUMMARY_INSTRUCTION = (
    "Summarize this app idea in 1-2 sentences, focusing on the core functionality "
    "and target audience."
)


def build_app_instruction(theme: str, language: str) -> str:
    return f"""You are an expert Flutter developer. Generate a complete Flutter application based on the user's description.

Theme: {theme}
Language: {language}

Requirements:
1. Generate a complete main.dart file with proper Material app structure
2. Create a valid pubspec.yaml with all necessary dependencies
3. Generate individual page files for each screen
4. Create reusable widget components
5. Follow Flutter best practices and Material Design guidelines
6. Include proper navigation between screens
7. Use appropriate widgets for the requested functionality

The response must be a single JSON object with the following structure:
{{
  "mainDart": "complete main.dart content",
  "pubspecYaml": "complete pubspec.yaml content",
  "pages": [{{"name": "page name", "content": "page dart content"}}],
  "widgets": [{{"name": "widget name", "content": "widget dart content"}}],
  "assets": ["list of asset filenames needed"]
}}

Page and widget names must be unique. Focus on creating production-ready, well-structured Flutter code."""


class _SourceFile(ApiModel):
    name: str
    content: str


class _ArtifactPayload(ApiModel):
    main_dart: str
    pubspec_yaml: str
    pages: list[_SourceFile]
    widgets: list[_SourceFile]
    assets: list[str]


class _ValidationPayload(ApiModel):
    is_valid: bool
    suggestions: list[str] = []
    estimated_credits: float


class AppGenerator(Protocol):
    async def generate_app(self, prompt: str, theme: str = "modern", language: str = "en") -> GenerationArtifact:
        ...

    async def validate_prompt(self, prompt: str) -> PromptValidation:
        ...

    async def summarize_idea(self, prompt: str) -> str:
        ...


def _fold_files(files: list[_SourceFile], kind: str) -> dict[str, str]:
    folded: dict[str, str] = {}
    for source in files:
        if source.name in folded:
            raise GenerationError(f"Gemini returned duplicate {kind} name: {source.name}")
        folded[source.name] = source.content
    return folded


def _response_text(response: Any) -> Optional[str]:
    # ``text`` raises ValueError when the candidate was blocked or has no parts
    try:
        return response.text
    except ValueError:
        return None


class GeminiGenerationClient:
    """One synchronous request per call: no retry, no streaming, no partial results."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        fast_model_name: Optional[str] = None,
        model_factory: Optional[ModelFactory] = None,
    ):
        self._api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self._model_name = model_name or settings.GEMINI_MODEL
        self._fast_model_name = fast_model_name or settings.GEMINI_FAST_MODEL
        self._model_factory = model_factory or self._default_model_factory
        if model_factory is None and self._api_key:
            genai.configure(api_key=self._api_key)

    def _default_model_factory(self, model_name: str, system_instruction: str) -> Any:
        if not self._api_key:
            raise GenerationError("GEMINI_API_KEY is not configured")
        return genai.GenerativeModel(model_name, system_instruction=system_instruction)

    async def generate_app(self, prompt: str, theme: str = "modern", language: str = "en") -> GenerationArtifact:
        """Generate a Flutter project for ``prompt``.

        Raises:
            ValidationError: If the prompt is blank
            GenerationError: If the call fails or the response is empty or malformed
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt must not be empty")

        try:
            model = self._model_factory(self._model_name, build_app_instruction(theme, language))
            response = await model.generate_content_async(
                prompt,
                generation_config={
                    "response_mime_type": "application/json",
                    "response_schema": ARTIFACT_RESPONSE_SCHEMA,
                },
            )
        except GenerationError:
            raise
        except Exception as exc:
            logger.error("Gemini generation error: %s", exc)
            raise GenerationError(f"Failed to generate Flutter app: {exc}") from exc

        raw = _response_text(response)
        if not raw:
            raise GenerationError("Empty response from Gemini model")

        try:
            payload = _ArtifactPayload.model_validate_json(raw)
        except PydanticValidationError as exc:
            logger.error("Gemini response did not match the project schema: %s", exc)
            raise GenerationError(
                "Gemini response did not match the project schema",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        return GenerationArtifact(
            main_dart=payload.main_dart,
            pubspec_yaml=payload.pubspec_yaml,
            pages=_fold_files(payload.pages, "page"),
            widgets=_fold_files(payload.widgets, "widget"),
            assets=payload.assets,
        )

    async def validate_prompt(self, prompt: str) -> PromptValidation:
        """Advisory check of a prompt. Any failure yields the permissive default."""
        try:
            model = self._model_factory(self._fast_model_name, VALIDATION_INSTRUCTION)
            response = await model.generate_content_async(
                prompt,
                generation_config={
                    "response_mime_type": "application/json",
                    "response_schema": VALIDATION_RESPONSE_SCHEMA,
                },
            )
            raw = _response_text(response)
            if not raw:
                raise GenerationError("Empty response from validation")
            payload = _ValidationPayload.model_validate_json(raw)
            estimated = round(payload.estimated_credits)
        except Exception as exc:
            logger.warning("Prompt validation failed, allowing prompt: %s", exc)
            return PromptValidation()

        return PromptValidation(
            is_valid=payload.is_valid,
            suggestions=payload.suggestions,
            estimated_credits=min(MAX_ESTIMATED_CREDITS, max(MIN_ESTIMATED_CREDITS, estimated)),
        )

    async def summarize_idea(self, prompt: str) -> str:
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt must not be empty")
        try:
            model = self._model_factory(self._fast_model_name, SUMMARY_INSTRUCTION)
            response = await model.generate_content_async(prompt)
        except GenerationError:
            raise
        except Exception as exc:
            logger.error("Summarization error: %s", exc)
            raise GenerationError(f"Failed to summarize app idea: {exc}") from exc

        summary = _response_text(response)
        if not summary or not summary.strip():
            raise GenerationError("Unable to summarize app idea")
        return summary.strip()
