"""
Pytest fixtures for wholesale backend tests.

Provides test database setup, tenant isolation fixtures, and test client.
"""

from decimal import Decimal

import pytest
from wholesale import create_app
from wholesale.extensions import db
from wholesale.models import Category, Distributor, DistributorVendor, Product, Vendor
from wholesale.services.schema_service import reset_schema_contract


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SCHEMA_CHECK_ON_STARTUP': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        reset_schema_contract()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def distributor_a(db_session):
    """Create Distributor A (first tenant)."""
    distributor = Distributor(name="Distributor A - Acme Wholesale", code="ACME", is_active=True)
    db_session.add(distributor)
    db_session.commit()
    return distributor


@pytest.fixture(scope='function')
def distributor_b(db_session):
    """Create Distributor B (second tenant)."""
    distributor = Distributor(name="Distributor B - Beta Supply", code="BETA", is_active=True)
    db_session.add(distributor)
    db_session.commit()
    return distributor


@pytest.fixture(scope='function')
def vendor(db_session):
    """Buyer account."""
    vendor = Vendor(name="Corner Shop", email="shop@example.com")
    db_session.add(vendor)
    db_session.commit()
    return vendor


@pytest.fixture(scope='function')
def linked_vendor(db_session, distributor_a, vendor):
    """Vendor linked to Distributor A only."""
    db_session.add(DistributorVendor(distributor_id=distributor_a.id, vendor_id=vendor.id))
    db_session.commit()
    return vendor


@pytest.fixture(scope='function')
def category_a(db_session, distributor_a):
    category = Category(distributor_id=distributor_a.id, name="Beverages")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: create a product with sane defaults."""
    def _make(distributor, **overrides):
        fields = dict(
            distributor_id=distributor.id,
            name="Sparkling Water",
            sell_per_unit=Decimal("2.00"),
            sell_per_case=None,
            cost_per_unit=Decimal("1.00"),
            units_per_case=None,
            allow_unit=True,
            allow_case=False,
            stock_pieces=100,
        )
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def case_product(make_product, distributor_a, category_a):
    """Orderable by unit and by case, 7 per case."""
    return make_product(
        distributor_a,
        name="Cola 7-pack",
        category_id=category_a.id,
        sell_per_unit=Decimal("9.4286"),
        sell_per_case=Decimal("66.00"),
        cost_per_unit=Decimal("5.00"),
        units_per_case=7,
        allow_case=True,
        stock_pieces=140,
    )


@pytest.fixture(scope='function')
def unit_product(make_product, distributor_a):
    """Orderable by unit only."""
    return make_product(distributor_a, name="Loose Lemon", sell_per_unit=Decimal("0.75"), stock_pieces=10)


@pytest.fixture(scope='function')
def product_b(make_product, distributor_b):
    """Product owned by Distributor B."""
    return make_product(distributor_b, name="Beta Only Item")


@pytest.fixture(scope='function')
def tenant_headers():
    """Factory for the gateway headers a request arrives with."""
    def _headers(distributor_id, *, vendor_id=None, role="vendor", actor_id="user-1") -> dict:
        headers = {
            'X-Distributor-Id': str(distributor_id),
            'X-Actor-Role': role,
            'X-Actor-Id': actor_id,
        }
        if vendor_id is not None:
            headers['X-Vendor-Id'] = str(vendor_id)
        return headers

    return _headers
