"""
Fixtures compartilhadas: banco SQLite em memória por teste, sessão ORM,
TestClient com get_db sobrescrito e usuários logados (admin / user).
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("STORE_RETRY_BASE_SECONDS", "0")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.infra.db import get_db
from app.infra.models import Base, ClientORM, ProductORM, UserORM, UserRole
from app.main import app
from app.services.cart import Cart, cart_store
from app.services.security import hash_password
from app.services.session import SessionContext

PASSWORD = "senha-forte-123"
TODAY = date(2026, 10, 17)


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt é lento; calcula uma vez só
    return hash_password(PASSWORD)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def operator(db, password_hash):
    user = UserORM(name="Operador", email="user@loja.com", password_hash=password_hash, role=UserRole.USER)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db, password_hash):
    user = UserORM(name="Admin", email="admin@loja.com", password_hash=password_hash, role=UserRole.ADMIN)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def ctx(operator):
    return SessionContext.from_user(operator, token_id="test-session")


@pytest.fixture
def ana(db):
    client = ClientORM(name="Ana", phone="85999990001", email="ana@example.com", address="Rua A, 10")
    db.add(client)
    db.commit()
    return client


@pytest.fixture
def caneta(db):
    product = ProductORM(code="001", name="Caneta", price=Decimal("2.50"), category="Papelaria", unit="un", stock=Decimal("100"))
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def caderno(db):
    product = ProductORM(code="002", name="Caderno", price=Decimal("15.00"), category="Papelaria", unit="un", stock=Decimal("40"))
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def cart():
    return Cart()


@pytest.fixture
def client(session_factory):
    """TestClient sem startup (as tabelas já existem no engine de teste)."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    cart_store.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        cart_store.clear()


def _login(client: TestClient, email: str) -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def admin_headers(client, admin):
    return _login(client, admin.email)


@pytest.fixture
def user_headers(client, operator):
    return _login(client, operator.email)
