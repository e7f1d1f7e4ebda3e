import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

WEBHOOK_URL = "https://billing.example.com/webhooks/mollie"
FIRST_PAYMENT_WEBHOOK_URL = "https://billing.example.com/webhooks/mollie/first-payment"


@pytest.fixture(scope="session")
def billing_bed():
    from billing.domain import billing

    bed = DomainFixture(billing)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture()
def cashier():
    from billing.cashier import Cashier, configure_cashier

    cashier = Cashier(
        webhook_url=WEBHOOK_URL,
        first_payment_webhook_url=FIRST_PAYMENT_WEBHOOK_URL,
    )
    configure_cashier(cashier)
    return cashier


@pytest.fixture()
def gateway():
    from billing.gateway import set_gateway
    from billing.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture(autouse=True)
def _ctx(billing_bed, cashier, gateway):
    from billing.cashier import reset_cashier
    from billing.gateway import reset_gateway

    with billing_bed.domain_context():
        yield

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_cashier()
