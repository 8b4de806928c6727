"""
Pytest fixtures for classifieds backend tests.

Provides test database setup, user/category fixtures, and test client.
"""

import pytest
from classifieds import create_app
from classifieds.extensions import db
from classifieds.models import Category
from classifieds.models.auth import ROLE_SELLER, ROLE_USER
from classifieds.services import ad_service, auth_service, category_service, session_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'SELLER_APPROVAL_REQUIRED': False,
        'FRONTEND_ORIGINS': ['http://localhost:3000'],
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def categories(db_session):
    """Default category catalog, keyed by slug."""
    category_service.seed_default_categories()
    return {c.slug: c for c in db_session.query(Category).all()}


@pytest.fixture(scope='function')
def admin(db_session):
    return auth_service.create_admin("Admin", "admin@test.local", PASSWORD)


@pytest.fixture(scope='function')
def seller(db_session):
    return auth_service.create_user("Sara Seller", "seller@test.local", PASSWORD, role=ROLE_SELLER)


@pytest.fixture(scope='function')
def other_seller(db_session):
    return auth_service.create_user("Omar Seller", "other@test.local", PASSWORD, role=ROLE_SELLER)


@pytest.fixture(scope='function')
def buyer(db_session):
    return auth_service.create_user("Bilal Buyer", "buyer@test.local", PASSWORD, role=ROLE_USER)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    """Issue a session for user directly and return its Authorization headers."""
    _, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture(scope='function')
def seller_headers(seller):
    return headers_for(seller)


@pytest.fixture(scope='function')
def other_seller_headers(other_seller):
    return headers_for(other_seller)


@pytest.fixture(scope='function')
def buyer_headers(buyer):
    return headers_for(buyer)


def make_ad(user, category, **overrides):
    """Create an ad through the service with sensible defaults."""
    patch = {
        "title": "Bike",
        "description": "Road bike in good condition",
        "price": 150,
        "category_id": category.id,
        "package": "Free",
    }
    patch.update(overrides)
    return ad_service.create_ad(user=user, patch=patch)
