"""
Pytest fixtures for TradeDesk backend tests.

Provides test database setup, users with session tokens, a test client, and
small factories for products and partners.
"""

import pytest

from tradedesk import create_app
from tradedesk.extensions import db
from tradedesk.services import auth_service, repository, session_service


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'ALLOW_NEGATIVE_STOCK': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture
def hub(app):
    return app.extensions["notifications"]


@pytest.fixture
def events(hub):
    """Subscription that records every notification published during the test."""
    sub = hub.subscribe()

    def drain():
        collected = []
        while True:
            message = sub.next_event(timeout=0)
            if message is None:
                return collected
            collected.append(message)

    yield drain
    sub.close()


def _make_user(username: str, role: str, full_name: str):
    return auth_service.create_user(
        username=username,
        email=f"{username}@tradedesk.test",
        password=TEST_PASSWORD,
        full_name=full_name,
        role=role,
    )


@pytest.fixture
def admin_user(db_session):
    return _make_user("admin", "admin", "Ada Admin")


@pytest.fixture
def sales_user(db_session):
    return _make_user("sam", "salesperson", "Sam Seller")


@pytest.fixture
def other_sales_user(db_session):
    return _make_user("rita", "salesperson", "Rita Rep")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    _, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def sales_headers(sales_user):
    return headers_for(sales_user)


@pytest.fixture
def other_sales_headers(other_sales_user):
    return headers_for(other_sales_user)


@pytest.fixture
def make_product(db_session):
    counter = {"n": 0}

    def _make(stock: int = 10, min_stock: int | None = 5, **fields):
        counter["n"] += 1
        values = {
            "sku": f"SKU-{counter['n']:03d}",
            "name": f"Product {counter['n']}",
            "category": "general",
            "price_cents": 1000,
            "stock": stock,
            "min_stock": min_stock,
        }
        values.update(fields)
        product = repository.products.create(values)
        db_session.commit()
        return product

    return _make


CONTACT = {
    "contact_name": "Pat Contact",
    "email": "pat@example.com",
    "phone": "555-0100",
    "address": "1 Market St",
}


@pytest.fixture
def supplier(db_session):
    row = repository.suppliers.create({
        "company_name": "Acme Supply",
        "payment_terms": "net 30",
        "pricing_info": "list",
        **CONTACT,
    })
    db_session.commit()
    return row


@pytest.fixture
def retailer(db_session):
    row = repository.retailers.create({"store_name": "Corner Shop", **CONTACT})
    db_session.commit()
    return row


@pytest.fixture
def billed_entity(db_session):
    row = repository.billed_entities.create({"name": "Corner Shop Ltd", "type": "company", **CONTACT})
    db_session.commit()
    return row
