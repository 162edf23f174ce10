"""
Pytest fixtures for Sabor POS backend tests.

Provides test database setup, an operator, a few catalog products and
helpers for authenticated requests.
"""

import pytest

from sabor import create_app
from sabor.extensions import db
from sabor.models import Operator
from sabor.services import products_service
from sabor.services.auth_service import hash_password


OPERATOR_LOGIN = "operador.master"
OPERATOR_PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'AUTH_SECRET': 'test-auth-secret',
    'DEFAULT_PAYMENT_TYPE': 'Dinheiro',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

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


@pytest.fixture(scope='session')
def operator_password_hash():
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(OPERATOR_PASSWORD)


@pytest.fixture(scope='function')
def operator(db_session, operator_password_hash):
    """Active operator who rings the sales."""
    op = Operator(
        name="Operador Master",
        login=OPERATOR_LOGIN,
        password_hash=operator_password_hash,
        is_active=True,
    )
    db_session.add(op)
    db_session.commit()
    return op


@pytest.fixture(scope='function')
def kernel_burger(db_session, operator):
    """P1: barcode 1111111111111, 22.00, 35 on hand."""
    return products_service.register_product(
        name="Kernel Burger",
        barcode="1111111111111",
        unit_price="22.00",
        initial_quantity=35,
        operator_id=operator.id,
    )


@pytest.fixture(scope='function')
def dual_core_burger(db_session, operator):
    return products_service.register_product(
        name="Dual-Core Burger",
        barcode="2222222222222",
        unit_price="28.00",
        initial_quantity=30,
        operator_id=operator.id,
    )


def get_auth_token(client, login: str, password: str) -> str:
    """Helper to get auth token for an operator."""
    response = client.post('/api/auth/login', json={
        'login': login,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def operator_headers(client, operator):
    token = get_auth_token(client, OPERATOR_LOGIN, OPERATOR_PASSWORD)
    assert token, "login failed for test operator"
    return auth_headers(token)
