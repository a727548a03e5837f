import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def backoffice_bed():
    from backoffice.domain import backoffice

    bed = DomainFixture(backoffice)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(backoffice_bed):
    with backoffice_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def gateway():
    """A fresh fake notification gateway for every test."""
    from backoffice.notifications.gateway import reset_gateway, set_gateway
    from backoffice.notifications.gateway.fake_adapter import FakeNotificationGateway

    fake = FakeNotificationGateway()
    set_gateway(fake)
    yield fake
    reset_gateway()
