"""
Shared fixtures: a fresh SQLite database per test, wired into the app
"""

import os

os.environ["APP_ENV"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("OTP_SECRET", "test-otp-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from herbstore.auth.auth_handler import auth_handler
from herbstore.database import Base, create_db_engine, get_db
from herbstore.models.admin_user import AdminUser
from herbstore.models.customer import Customer
from herbstore.models.product import Product
from herbstore.services.session_service import SessionService
from main import app

@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()

@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def make_customer(session_factory):
    """Insert a customer and return its id"""
    def _make(mobile="9876543210", name="Asha", email=None, is_active=True):
        db = session_factory()
        try:
            customer = Customer(name=name, mobile=mobile, email=email, is_active=is_active)
            db.add(customer)
            db.commit()
            return customer.id
        finally:
            db.close()
    return _make

@pytest.fixture
def make_customer_token(session_factory):
    """Open a session for an existing customer and return the bearer token"""
    def _make(customer_id):
        db = session_factory()
        try:
            customer = db.query(Customer).filter(Customer.id == customer_id).one()
            session = SessionService(db).issue_customer_session(customer)
            token = session.session_token
            db.commit()
            return token
        finally:
            db.close()
    return _make

@pytest.fixture
def make_admin(session_factory):
    """Insert an admin account and return (id, bearer token)"""
    def _make(email="admin@herbstore.in", role="admin", password="Secret123", is_active=True):
        db = session_factory()
        try:
            user = AdminUser(
                name="Store Admin",
                email=email,
                password_hash=auth_handler.get_password_hash(password),
                role=role,
                is_active=is_active,
            )
            db.add(user)
            db.flush()
            session = SessionService(db).issue_admin_session(user)
            user_id, token = user.id, session.session_token
            db.commit()
            return user_id, token
        finally:
            db.close()
    return _make

@pytest.fixture
def make_product(session_factory):
    def _make(name="Ashwagandha Capsules", actual_price=500.0, selling_price=450.0, **extra):
        db = session_factory()
        try:
            product = Product(
                name=name,
                actual_price=actual_price,
                selling_price=selling_price,
                stock_quantity=extra.pop("stock_quantity", 10),
                images=extra.pop("images", ["https://cdn.herbstore.test/ashwagandha.jpg"]),
                **extra,
            )
            db.add(product)
            db.commit()
            return product.id
        finally:
            db.close()
    return _make

@pytest.fixture
def customer_id(make_customer):
    return make_customer()

@pytest.fixture
def customer_headers(customer_id, make_customer_token):
    return {"Authorization": f"Bearer {make_customer_token(customer_id)}"}

@pytest.fixture
def admin_headers(make_admin):
    _, token = make_admin()
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def limited_admin_headers(make_admin):
    _, token = make_admin(email="staff@herbstore.in", role="limited_admin")
    return {"Authorization": f"Bearer {token}"}
