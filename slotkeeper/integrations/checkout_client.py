"""Minimal client for the redirect checkout provider."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, cast
from uuid import uuid4

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Checkout-Signature"


class CheckoutProviderError(RuntimeError):
    """Raised when the checkout provider responds with an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_body: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_body = error_body


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(secret: str | SecretStr, raw_body: bytes, signature: Optional[str]) -> bool:
    secret_value = secret.get_secret_value() if isinstance(secret, SecretStr) else secret
    if not secret_value:
        logger.error("Checkout webhook secret is not configured for signature verification")
        return False
    if not signature or not signature.strip():
        logger.warning("Missing checkout webhook signature header")
        return False
    normalized = signature.strip().lower()
    if normalized.startswith("sha256="):
        normalized = normalized[len("sha256=") :]
    return hmac.compare_digest(normalized, compute_signature(secret_value, raw_body))


class CheckoutClient:
    """Thin client for the checkout provider's order API."""

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        secret_value = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        if not secret_value:
            raise ValueError("Checkout API key must be provided")

        self._api_key = secret_value
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def create_order(
        self,
        *,
        merchant_reference: str,
        amount: Decimal,
        currency: str,
        description: str,
        return_url: str,
        customer_email: str | None = None,
    ) -> Dict[str, Any]:
        """Create a checkout order; the response carries ``OrderId`` and ``PaymentLink``."""

        body: Dict[str, Any] = {
            "MerchantReference": merchant_reference,
            "TotalPrice": str(amount),
            "Currency": currency,
            "Description": description,
            "MerchantConfirmationUrl": return_url,
        }
        if customer_email:
            body["CustomerEmail"] = customer_email
        return self.request(
            "POST",
            "/orders",
            json_body=body,
            headers={"Idempotency-Key": f"{merchant_reference}:{uuid4().hex}"},
        )

    def get_order(self, order_id: str) -> Dict[str, Any]:
        """Fetch an order; ``Status`` holds the provider's payment status."""

        if not order_id:
            raise ValueError("order_id must be provided")
        return self.request("GET", f"/orders/{order_id}")

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={"Accept": "application/json", "Authorization": f"Bearer {self._api_key}"},
        ) as client:
            try:
                response = client.request(method, url, json=json_body, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                try:
                    error_payload: Any = exc.response.json()
                except json.JSONDecodeError:
                    error_payload = exc.response.text
                logger.error(
                    "Checkout API error %s for %s %s: %s",
                    status,
                    method,
                    path,
                    exc.response.text[:500],
                )
                raise CheckoutProviderError(
                    f"Checkout provider responded with status {status}",
                    status_code=status,
                    error_body=error_payload,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("Checkout request failure for %s %s: %s", method, path, str(exc))
                raise CheckoutProviderError("Failed to reach the checkout provider") from exc

        try:
            return cast(Dict[str, Any], response.json())
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON from checkout provider for %s %s", method, path)
            raise CheckoutProviderError(
                "Received malformed JSON from the checkout provider"
            ) from exc
