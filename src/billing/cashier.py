"""Cashier — currency, formatting and model configuration for billing.

A Cashier is built once at boot from BillingSettings and handed to the
components that need it. get_cashier() / configure_cashier() / reset_cashier()
expose the active instance the same way the gateway factory does, which is
the narrow seam tests use to swap it.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from babel.numbers import format_currency
from moneyed import Money
from protean.utils.globals import current_domain

from billing.config import BillingSettings, get_settings
from billing.errors import ConfigurationError, UnsupportedCurrency
from billing.order.order import Order
from billing.order.ports import OrderItemStore, OrderStore
from billing.order_item.order_item import OrderItem

_CURRENCY_SYMBOLS = {
    "usd": "$",
    "aud": "$",
    "cad": "$",
    "eur": "€",
    "gbp": "£",
}


class ModelSlot(Enum):
    """The model types that can be swapped for application-specific ones."""

    ORDER = "order"
    ORDER_ITEM = "order_item"


def guess_currency_symbol(currency: str) -> str:
    """Symbol for the well-known currencies; anything else must be given explicitly."""
    try:
        return _CURRENCY_SYMBOLS[currency.lower()]
    except KeyError:
        raise UnsupportedCurrency(currency) from None


def _path_from_url(url: str) -> str:
    return urlparse(url).path.lstrip("/")


class Cashier:
    def __init__(
        self,
        currency: str = "eur",
        currency_symbol: str | None = None,
        currency_locale: str = "de_DE",
        locale: str | None = None,
        order_number_offset: int = 0,
        batch_size: int = 100,
        webhook_url: str = "",
        first_payment_webhook_url: str = "",
        runs_migrations: bool = True,
        registers_routes: bool = True,
        debug: bool = False,
    ) -> None:
        self.currency = currency
        self.currency_symbol = currency_symbol or guess_currency_symbol(currency)
        self.currency_locale = currency_locale
        self.locale = locale
        self.order_number_offset = order_number_offset
        self.batch_size = batch_size
        self.webhook_url = webhook_url
        self.first_payment_webhook_url = first_payment_webhook_url
        self.runs_migrations = runs_migrations
        self.registers_routes = registers_routes
        self.debug = debug
        self._formatter: Callable[[Money], str] | None = None
        self._models: dict[ModelSlot, type] = {
            ModelSlot.ORDER: Order,
            ModelSlot.ORDER_ITEM: OrderItem,
        }

    @classmethod
    def from_settings(cls, settings: BillingSettings) -> "Cashier":
        return cls(
            currency=settings.currency,
            currency_symbol=settings.currency_symbol,
            currency_locale=settings.currency_locale,
            locale=settings.locale,
            order_number_offset=settings.order_number_offset,
            batch_size=settings.batch_size,
            webhook_url=settings.webhook_url,
            first_payment_webhook_url=settings.first_payment_webhook_url,
            runs_migrations=settings.runs_migrations,
            registers_routes=settings.registers_routes,
            debug=settings.debug,
        )

    # -------------------------------------------------------------------
    # Currency
    # -------------------------------------------------------------------
    def use_currency(self, currency: str, symbol: str | None = None) -> None:
        """Set the default currency; the symbol is guessed when not given."""
        symbol = symbol or guess_currency_symbol(currency)
        self.currency = currency
        self.use_currency_symbol(symbol)

    def use_currency_symbol(self, symbol: str) -> None:
        self.currency_symbol = symbol

    def use_currency_locale(self, locale: str) -> None:
        self.currency_locale = locale

    def uses_currency(self) -> str:
        return self.currency

    def uses_currency_symbol(self) -> str:
        return self.currency_symbol

    def uses_currency_locale(self) -> str:
        return self.currency_locale

    def format_currency_using(self, formatter: Callable[[Money], str]) -> None:
        """Replace locale formatting with a custom callable."""
        self._formatter = formatter

    def format_amount(self, money: Money) -> str:
        """Format money for display."""
        if self._formatter is not None:
            return self._formatter(money)

        return format_currency(money.amount, money.currency.code, locale=self.currency_locale)

    def get_locale(self, owner: Any) -> str | None:
        """The owner's own locale when it has one, else the configured default."""
        get_owner_locale = getattr(owner, "get_locale", None)
        if callable(get_owner_locale):
            locale = get_owner_locale()
            if locale:
                return locale

        return self.locale

    # -------------------------------------------------------------------
    # Routes and migrations
    # -------------------------------------------------------------------
    def ignore_migrations(self) -> "Cashier":
        self.runs_migrations = False
        return self

    def ignore_routes(self) -> "Cashier":
        self.registers_routes = False
        return self

    def webhook_path(self) -> str:
        return _path_from_url(self.webhook_url)

    def first_payment_webhook_path(self) -> str:
        return _path_from_url(self.first_payment_webhook_url)

    # -------------------------------------------------------------------
    # Model registry
    # -------------------------------------------------------------------
    def set_model(self, slot: ModelSlot, model: type) -> None:
        """Swap the concrete type behind one of the fixed model slots."""
        if not isinstance(slot, ModelSlot):
            raise ConfigurationError(f"Unknown model slot {slot!r}; expected one of {[s.name for s in ModelSlot]}")
        if slot is ModelSlot.ORDER and not callable(getattr(model, "create_from_items", None)):
            raise ConfigurationError(f"{model.__name__} cannot be used as order model: missing create_from_items()")
        self._models[slot] = model

    @property
    def order_model(self) -> type:
        return self._models[ModelSlot.ORDER]

    @property
    def order_item_model(self) -> type:
        return self._models[ModelSlot.ORDER_ITEM]

    def order_store(self) -> OrderStore:
        """Repository of the order model, checked for the capabilities billing relies on."""
        return self._store_for(ModelSlot.ORDER, OrderStore)

    def order_item_store(self) -> OrderItemStore:
        return self._store_for(ModelSlot.ORDER_ITEM, OrderItemStore)

    def _store_for(self, slot: ModelSlot, protocol: type):
        model = self._models[slot]
        repository = current_domain.repository_for(model)
        if not isinstance(repository, protocol):
            raise ConfigurationError(
                f"Repository for {model.__name__} does not provide the {protocol.__name__} capabilities"
            )
        return repository


_current_cashier: Cashier | None = None


def get_cashier() -> Cashier:
    """Return the active Cashier, building it from settings on first use."""
    global _current_cashier
    if _current_cashier is None:
        _current_cashier = Cashier.from_settings(get_settings())
    return _current_cashier


def configure_cashier(cashier: Cashier) -> None:
    """Install a Cashier (boot code and tests)."""
    global _current_cashier
    _current_cashier = cashier


def reset_cashier() -> None:
    global _current_cashier
    _current_cashier = None
