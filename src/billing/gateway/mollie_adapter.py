"""Mollie payment gateway adapter.

Talks to the Mollie v2 REST API over httpx. Only the two calls the billing
flow needs are implemented: creating a payment and fetching one back when
a webhook arrives. Any transport failure, timeout or error response is
turned into a GatewayError so callers never see httpx exceptions.
"""

from decimal import Decimal

import httpx
import structlog
from babel.numbers import get_currency_precision

from billing.errors import GatewayError
from billing.gateway.port import GatewayPayment, PaymentGateway

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.mollie.com/v2"


def format_amount_value(amount: Decimal, currency: str) -> str:
    """Render an amount the way Mollie expects it: a string with the currency's precision."""
    precision = get_currency_precision(currency.upper())
    quantum = Decimal(10) ** -precision
    return format(Decimal(str(amount)).quantize(quantum), "f")


class MollieGateway(PaymentGateway):
    """Production gateway adapter for the Mollie payments API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.client = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def create_payment(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: dict,
        webhook_url: str | None = None,
    ) -> GatewayPayment:
        payload = {
            "amount": {
                "currency": currency.upper(),
                "value": format_amount_value(amount, currency),
            },
            "description": description,
            "metadata": metadata,
        }
        if webhook_url:
            payload["webhookUrl"] = webhook_url

        return self._to_payment(self._request("POST", "/payments", json=payload))

    def get_payment(self, payment_id: str) -> GatewayPayment:
        return self._to_payment(self._request("GET", f"/payments/{payment_id}"))

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.warning(
                "Mollie request rejected",
                method=method,
                path=path,
                status_code=status_code,
            )
            raise GatewayError(
                f"Mollie responded with {status_code} for {method} {path}",
                status_code=status_code,
                retryable=status_code >= 500 or status_code == 429,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Mollie request failed", method=method, path=path, error=str(exc))
            raise GatewayError(f"Mollie request failed: {exc}") from exc

    def _to_payment(self, response: httpx.Response) -> GatewayPayment:
        try:
            data = response.json()
            amount = data.get("amount") or {}
            return GatewayPayment(
                id=data["id"],
                status=data["status"],
                amount=Decimal(amount.get("value", "0")),
                currency=amount.get("currency", ""),
                metadata=data.get("metadata") or {},
            )
        except (ValueError, KeyError, TypeError, AttributeError, ArithmeticError) as exc:
            logger.warning(
                "Mollie response unreadable",
                status_code=response.status_code,
                error=repr(exc),
            )
            raise GatewayError(
                f"Mollie returned an unreadable payment ({response.status_code})",
                status_code=response.status_code,
                retryable=True,
            ) from exc
