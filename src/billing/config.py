"""Billing settings, loaded once from the environment (prefix ``CASHIER_``)."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class BillingSettings(BaseSettings):
    """Boot-time configuration for the billing context."""

    model_config = SettingsConfigDict(env_prefix="CASHIER_", env_file=".env", extra="ignore")

    # Currency
    currency: str = "eur"
    currency_symbol: str | None = None
    currency_locale: str = "de_DE"
    locale: str | None = None  # default owner locale

    # Orders
    order_number_offset: int = 0
    batch_size: int = 100

    # Webhooks
    webhook_url: str = "https://example.com/webhooks/mollie"
    first_payment_webhook_url: str = "https://example.com/webhooks/mollie/first-payment"

    # Feature toggles
    runs_migrations: bool = True
    registers_routes: bool = True
    debug: bool = False

    # Gateway
    gateway: Literal["fake", "mollie"] = "fake"
    mollie_api_key: str = ""
    mollie_base_url: str = "https://api.mollie.com/v2"
    gateway_timeout: float = 10.0


@lru_cache
def get_settings() -> BillingSettings:
    """Return the process-wide settings, read from the environment on first use."""
    return BillingSettings()
