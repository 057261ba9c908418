import json

import pytest

from app.services.generation_client import (
    ARTIFACT_RESPONSE_SCHEMA,
    VALIDATION_INSTRUCTION,
    GeminiGenerationClient,
)
from app.utils.exceptions import GenerationError, ValidationError

pytestmark = pytest.mark.anyio

ARTIFACT_JSON = {
    "mainDart": "void main() {}",
    "pubspecYaml": "name: shop_app",
    "pages": [{"name": "HomePage", "content": "class HomePage {}"}],
    "widgets": [{"name": "ProductCard", "content": "class ProductCard {}"}],
    "assets": ["logo.png"],
}


class StubResponse:
    def __init__(self, text=None, blocked=False):
        self._text = text
        self._blocked = blocked

    @property
    def text(self):
        if self._blocked:
            raise ValueError("response was blocked")
        return self._text


class StubModel:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content_async(self, prompt, generation_config=None):
        self.calls.append((prompt, generation_config))
        if self.error is not None:
            raise self.error
        return self.response


def _client(model):
    created = []

    def factory(model_name, system_instruction):
        created.append((model_name, system_instruction))
        return model

    client = GeminiGenerationClient(
        api_key="test-key", model_name="pro-model", fast_model_name="fast-model", model_factory=factory
    )
    return client, created


async def test_generate_app_folds_pages_and_widgets():
    model = StubModel(StubResponse(json.dumps(ARTIFACT_JSON)))
    client, created = _client(model)

    artifact = await client.generate_app("A shop app", theme="dark", language="ar")

    assert artifact.main_dart == "void main() {}"
    assert artifact.pages == {"HomePage": "class HomePage {}"}
    assert artifact.widgets == {"ProductCard": "class ProductCard {}"}
    assert artifact.assets == ["logo.png"]

    [(model_name, instruction)] = created
    assert model_name == "pro-model"
    assert "Theme: dark" in instruction
    assert "Language: ar" in instruction
    [(prompt, config)] = model.calls
    assert prompt == "A shop app"
    assert config == {"response_mime_type": "application/json", "response_schema": ARTIFACT_RESPONSE_SCHEMA}


@pytest.mark.parametrize(
    "response",
    [
        StubResponse(None),
        StubResponse(""),
        StubResponse(blocked=True),
        StubResponse("not json"),
        StubResponse(json.dumps({"mainDart": "void main() {}"})),
    ],
    ids=["none", "empty", "blocked", "invalid-json", "missing-keys"],
)
async def test_generate_app_rejects_unusable_responses(response):
    client, _ = _client(StubModel(response))
    with pytest.raises(GenerationError):
        await client.generate_app("A shop app")


async def test_generate_app_rejects_duplicate_page_names():
    payload = dict(ARTIFACT_JSON, pages=[{"name": "Home", "content": "a"}, {"name": "Home", "content": "b"}])
    client, _ = _client(StubModel(StubResponse(json.dumps(payload))))

    with pytest.raises(GenerationError, match="duplicate page name"):
        await client.generate_app("A shop app")


async def test_generate_app_wraps_provider_errors():
    client, _ = _client(StubModel(error=RuntimeError("quota exceeded")))

    with pytest.raises(GenerationError, match="quota exceeded"):
        await client.generate_app("A shop app")


async def test_generate_app_requires_prompt():
    client, _ = _client(StubModel())
    with pytest.raises(ValidationError):
        await client.generate_app("   ")


async def test_missing_api_key_fails_generation():
    client = GeminiGenerationClient(api_key="")
    with pytest.raises(GenerationError, match="GEMINI_API_KEY"):
        await client.generate_app("A shop app")


async def test_validate_prompt_uses_fast_model_and_clamps_estimate():
    model = StubModel(StubResponse(json.dumps({"isValid": False, "suggestions": ["Add screens"], "estimatedCredits": 90})))
    client, created = _client(model)

    validation = await client.validate_prompt("app")

    assert created == [("fast-model", VALIDATION_INSTRUCTION)]
    assert validation.is_valid is False
    assert validation.suggestions == ["Add screens"]
    assert validation.estimated_credits == 50


async def test_validate_prompt_raises_low_estimates_to_minimum():
    model = StubModel(StubResponse(json.dumps({"isValid": True, "suggestions": [], "estimatedCredits": 2})))
    client, _ = _client(model)

    assert (await client.validate_prompt("app")).estimated_credits == 10


@pytest.mark.parametrize(
    "model",
    [
        StubModel(error=RuntimeError("network down")),
        StubModel(StubResponse("garbage")),
        StubModel(StubResponse(json.dumps({"isValid": True, "suggestions": [], "estimatedCredits": "NaN"}))),
        StubModel(StubResponse(blocked=True)),
    ],
    ids=["provider-error", "invalid-json", "nan-estimate", "blocked"],
)
async def test_validate_prompt_fails_open(model):
    client, _ = _client(model)

    validation = await client.validate_prompt("app")

    assert validation.is_valid is True
    assert validation.suggestions == []
    assert validation.estimated_credits == 10


async def test_summarize_idea_strips_text():
    client, _ = _client(StubModel(StubResponse("  A shop for plants.  ")))
    assert await client.summarize_idea("plants") == "A shop for plants."


async def test_summarize_idea_fails_on_empty_text():
    client, _ = _client(StubModel(StubResponse("   ")))
    with pytest.raises(GenerationError):
        await client.summarize_idea("plants")
