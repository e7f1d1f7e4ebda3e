"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- MollieGateway for production, selected with CASHIER_GATEWAY=mollie
"""

from billing.config import BillingSettings, get_settings
from billing.gateway.fake_adapter import FakeGateway
from billing.gateway.mollie_adapter import MollieGateway
from billing.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway(settings: BillingSettings) -> PaymentGateway:
    """Build the gateway adapter named by the settings."""
    if settings.gateway == "mollie":
        return MollieGateway(
            api_key=settings.mollie_api_key,
            base_url=settings.mollie_base_url,
            timeout=settings.gateway_timeout,
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway(get_settings())
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
