import pytest
from protean.integrations.pytest import DomainFixture

from storefront.catalogue import reset_catalogue
from storefront.config import reset_settings
from storefront.notifications import reset_email_adapter


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _reset_collaborators():
    """Fresh settings, catalogue and mailbox for every test."""
    reset_settings()
    reset_catalogue()
    reset_email_adapter()
    yield
    reset_settings()
    reset_catalogue()
    reset_email_adapter()


@pytest.fixture()
def catalogue():
    from storefront.catalogue import set_catalogue
    from storefront.catalogue.fake_adapter import FakeCatalogue
    from storefront.catalogue.port import ProductInfo

    fake = FakeCatalogue(
        products=[
            ProductInfo(id="prod-1000", name="Helmet", price=1000.0, brand="Vega", stock_quantity=10),
            ProductInfo(id="prod-500", name="Gloves", price=500.0, brand="Rynox", stock_quantity=0),
            ProductInfo(id="prod-oos", name="Jacket", price=2500.0, in_stock=False),
            ProductInfo(id="prod-retired", name="Visor", price=300.0, is_active=False),
        ]
    )
    set_catalogue(fake)
    return fake


@pytest.fixture()
def mailbox():
    from storefront.notifications import set_email_adapter
    from storefront.notifications.fake_email import FakeEmailAdapter

    adapter = FakeEmailAdapter()
    set_email_adapter(adapter)
    return adapter
