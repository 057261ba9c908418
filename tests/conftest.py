import json
from typing import Callable, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.database.memory_storage import MemoryStorage
from app.main import create_app
from app.schemas.generations import GenerationArtifact, PromptValidation
from app.services.paypal_service import PayPalService
from app.utils.exceptions import GenerationError

SAMPLE_ARTIFACT = GenerationArtifact(
    main_dart="import 'package:flutter/material.dart';\nvoid main() => runApp(const ShopApp());\n",
    pubspec_yaml="name: shop_app\ndependencies:\n  flutter:\n    sdk: flutter\n",
    pages={"HomePage": "class HomePage {}", "CartPage": "class CartPage {}"},
    widgets={"ProductCard": "class ProductCard {}"},
    assets=["logo.png"],
)


class FakeGenerator:
    """Stands in for the Gemini client."""

    def __init__(self, artifact: GenerationArtifact = SAMPLE_ARTIFACT):
        self.artifact = artifact
        self.error: Optional[Exception] = None
        self.calls: list[tuple[str, str, str]] = []
        self.before_return: Optional[Callable] = None

    async def generate_app(self, prompt: str, theme: str = "modern", language: str = "en") -> GenerationArtifact:
        self.calls.append((prompt, theme, language))
        if self.before_return is not None:
            await self.before_return()
        if self.error is not None:
            raise self.error
        return self.artifact

    async def validate_prompt(self, prompt: str) -> PromptValidation:
        return PromptValidation(is_valid=True, suggestions=["Name the screens"], estimated_credits=20)

    async def summarize_idea(self, prompt: str) -> str:
        if self.error is not None:
            raise GenerationError("Unable to summarize app idea")
        return f"Summary of: {prompt}"


class PayPalStub:
    """httpx transport answering like the PayPal REST API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.orders: dict[str, dict] = {}
        self.token_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v1/oauth2/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(200, json={"access_token": "A21-token", "expires_in": 32400})
        if path == "/v1/identity/generate-token":
            return httpx.Response(200, json={"client_token": "client-token-123"})
        if path == "/v2/checkout/orders" and request.method == "POST":
            body = json.loads(request.content)
            order = {"id": f"ORDER-{len(self.orders) + 1}", "status": "CREATED", "purchase_units": body["purchase_units"]}
            self.orders[order["id"]] = order
            return httpx.Response(201, json=order)
        if path.startswith("/v2/checkout/orders/"):
            order_id = path.split("/")[4]
            order = self.orders.get(order_id)
            if order is None:
                return httpx.Response(404, json={"name": "RESOURCE_NOT_FOUND"})
            if path.endswith("/capture"):
                order["status"] = "COMPLETED"
            return httpx.Response(200, json=order)
        return httpx.Response(404, json={"name": "NOT_FOUND"})

    def add_order(self, order_id: str, status: str = "COMPLETED", value: str = "29.00") -> None:
        self.orders[order_id] = {
            "id": order_id,
            "status": status,
            "purchase_units": [{"amount": {"currency_code": "USD", "value": value}}],
        }


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def paypal_stub():
    return PayPalStub()


@pytest.fixture
def payments(paypal_stub):
    return PayPalService(
        client_id="client-id",
        client_secret="client-secret",
        environment="sandbox",
        transport=httpx.MockTransport(paypal_stub),
    )


@pytest.fixture
def client(storage, generator, payments):
    app = create_app(storage=storage, generation_client=generator, payments=payments)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    def _register(username: str = "maker", email: str = "maker@example.com", password: str = "s3cret-pass", **extra):
        response = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def make_project(client):
    def _make_project(user_id: str, **fields):
        body = {"userId": user_id, "name": "Shop", "description": "A shop app", "theme": "dark", "language": "en"}
        body.update(fields)
        response = client.post("/api/projects", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_project
