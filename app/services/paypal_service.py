"""PayPal REST client for client tokens and checkout orders.

The provider is the implementation of payment capture: bodies and status codes
from the order endpoints are handed back to the caller unchanged.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.core.config import settings
from app.schemas.payments import OrderRequest
from app.utils.exceptions import PaymentError

logger = logging.getLogger(__name__)

PAYPAL_BASE_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "production": "https://api-m.paypal.com",
}

# Refresh the OAuth token this many seconds before PayPal expires it
TOKEN_EXPIRY_MARGIN = 60


@dataclass
class ProviderResponse:
    status_code: int
    body: Any


class PayPalService:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        environment: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = settings.PAYPAL_CLIENT_ID if client_id is None else client_id
        self._client_secret = settings.PAYPAL_CLIENT_SECRET if client_secret is None else client_secret
        environment = (environment or settings.PAYPAL_ENVIRONMENT).lower()
        if environment not in PAYPAL_BASE_URLS:
            raise ValueError(f"Unknown PayPal environment: {environment}")
        self._base_url = PAYPAL_BASE_URLS[environment]
        self._timeout = timeout or settings.PAYPAL_TIMEOUT
        self._transport = transport
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    @property
    def configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("PayPal request %s %s failed: %s", method, path, exc)
            raise PaymentError("Payment provider is unreachable", status_code=502) from exc

    async def _access_token(self) -> str:
        if not self.configured:
            raise PaymentError("PayPal is not configured")
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = await self._send(
            "POST",
            "/v1/oauth2/token",
            auth=(self._client_id, self._client_secret),
            data={"grant_type": "client_credentials"},
        )
        if response.status_code != 200:
            logger.error("PayPal token request returned %s", response.status_code)
            raise PaymentError("Payment provider authentication failed", status_code=502)

        payload = response.json()
        self._token = payload["access_token"]
        self._token_expires_at = time.monotonic() + max(0, int(payload.get("expires_in", 0)) - TOKEN_EXPIRY_MARGIN)
        return self._token

    async def _call(self, method: str, path: str, json: Optional[dict[str, Any]] = None) -> ProviderResponse:
        token = await self._access_token()
        response = await self._send(
            method,
            path,
            json=json,
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text} if response.text else None
        if response.is_error:
            logger.warning("PayPal %s %s returned %s", method, path, response.status_code)
        return ProviderResponse(status_code=response.status_code, body=body)

    async def client_token(self) -> dict[str, str]:
        """Client token for the PayPal JS SDK."""
        result = await self._call("POST", "/v1/identity/generate-token")
        if result.status_code >= 400 or not isinstance(result.body, dict) or "client_token" not in result.body:
            raise PaymentError("Failed to obtain a PayPal client token", status_code=502, details=result.body)
        return {"clientToken": result.body["client_token"]}

    async def create_order(self, order: OrderRequest) -> ProviderResponse:
        return await self._call(
            "POST",
            "/v2/checkout/orders",
            json={
                "intent": order.intent,
                "purchase_units": [
                    {"amount": {"currency_code": order.currency, "value": order.amount}},
                ],
            },
        )

    async def capture_order(self, order_id: str) -> ProviderResponse:
        return await self._call("POST", f"/v2/checkout/orders/{order_id}/capture")

    async def get_order(self, order_id: str) -> ProviderResponse:
        return await self._call("GET", f"/v2/checkout/orders/{order_id}")
