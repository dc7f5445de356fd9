import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from minimart import create_app
from minimart.database import Base, build_engine
from minimart.models import Product
from minimart.services.register_service import Register
from minimart.services.store_service import PersistentStore

# Registers the store_entry table on Base.metadata
import minimart.models  # noqa: F401


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing (fresh in-memory database)."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Standalone database session on an in-memory SQLite database."""
    engine = build_engine('sqlite://')
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.rollback()
    session.close()
    engine.dispose()


@pytest.fixture(scope='function')
def clock():
    """Clock fixed at 2024-03-15 10:00 local time."""
    return FixedClock(datetime(2024, 3, 15, 10, 0, 0))


@pytest.fixture(scope='function')
def store(session):
    return PersistentStore(session)


@pytest.fixture(scope='function')
def register(store, clock):
    return Register(store, clock=clock, default_store_name='Test Store')


@pytest.fixture(scope='function')
def sample_products(register):
    """
    Seed a small catalog.

    - water: wholesale 12 for 100.00, carton barcode 1001-12
    - cola / cola6: six-pack sold from the cola stock
    - bread / bun: low stock, grouped as Bakery
    """
    products = {
        'water': Product(id='p-water', barcode='1001', name='Water 600ml', price=Decimal('10.00'),
                         cost=Decimal('6.00'), stock=50, wholesale_qty=12,
                         wholesale_price=Decimal('100.00'), pack_barcode='1001-12'),
        'cola': Product(id='p-cola', barcode='2001', name='Cola can', price=Decimal('15.00'),
                        cost=Decimal('11.00'), stock=24),
        'cola6': Product(id='p-cola6', barcode='2006', name='Cola 6-pack', price=Decimal('85.00'),
                         parent_id='p-cola', pack_size=6),
        'bread': Product(id='p-bread', barcode='3001', name='Bread loaf', price=Decimal('42.00'),
                         cost=Decimal('35.00'), stock=5, group='Bakery'),
        'bun': Product(id='p-bun', barcode='3002', name='Sweet bun', price=Decimal('12.00'),
                       cost=Decimal('8.00'), stock=2, group='Bakery'),
    }
    for product in products.values():
        register.catalog.upsert(product)
    return products
