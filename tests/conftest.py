import os

os.environ.setdefault("ENV", "test")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["SENDGRID_API_KEY"] = ""

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import billmaster.models  # noqa: E402,F401
from billmaster.core.database import Base, get_db  # noqa: E402
from billmaster.models.company import Company  # noqa: E402
from billmaster.models.customer import Customer  # noqa: E402
from billmaster.models.product import Product  # noqa: E402
from billmaster.models.user import User  # noqa: E402
from billmaster.services.admin_bootstrap import seed_roles  # noqa: E402
from billmaster.services.auth import create_access_token, hash_password  # noqa: E402
from billmaster.services.authorization_service import (  # noqa: E402
    COMPANY_ADMIN_ROLE,
    MANAGER_ROLE,
    SUPER_ADMIN_ROLE,
    USER_ROLE,
)
from tests.fixtures_data import COMPANY_A, COMPANY_B, DEFAULT_PASSWORD  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def _make_user(db, *, company, role, email, name, active=True):
    user = User(
        company_id=company.id,
        role_id=role.id,
        name=name,
        email=email,
        password_hash=hash_password(DEFAULT_PASSWORD),
        is_active=active,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def seeded(db_session):
    """Duas empresas (A e B), um usuário por papel e catálogo mínimo em cada empresa."""
    db = db_session
    roles = seed_roles(db)

    platform = Company(name="Platform", slug="platform")
    company_a = Company(**COMPANY_A)
    company_b = Company(**COMPANY_B)
    db.add_all([platform, company_a, company_b])
    db.flush()

    users = {
        "super_admin": _make_user(db, company=platform, role=roles[SUPER_ADMIN_ROLE], email="root@example.com", name="Root"),
        "admin_a": _make_user(db, company=company_a, role=roles[COMPANY_ADMIN_ROLE], email="admin.a@example.com", name="Admin A"),
        "admin_b": _make_user(db, company=company_b, role=roles[COMPANY_ADMIN_ROLE], email="admin.b@example.com", name="Admin B"),
        "manager_a": _make_user(db, company=company_a, role=roles[MANAGER_ROLE], email="manager.a@example.com", name="Manager A"),
        "user_a": _make_user(db, company=company_a, role=roles[USER_ROLE], email="user.a@example.com", name="User A"),
        "inactive_a": _make_user(
            db,
            company=company_a,
            role=roles[USER_ROLE],
            email="inactive.a@example.com",
            name="Inactive A",
            active=False,
        ),
    }

    widget_a = Product(company_id=company_a.id, name="Widget", price=10, tax_rate=0)
    service_a = Product(company_id=company_a.id, name="Setup service", price=5, tax_rate=0)
    widget_b = Product(company_id=company_b.id, name="Gadget", price=7, tax_rate=0)
    customer_a = Customer(company_id=company_a.id, name="Jane Buyer", email="jane@buyer.example.com")
    customer_b = Customer(company_id=company_b.id, name="Bob Other", email="bob@other.example.com")
    db.add_all([widget_a, service_a, widget_b, customer_a, customer_b])
    db.commit()

    return SimpleNamespace(
        roles={name: role.id for name, role in roles.items()},
        platform_id=platform.id,
        company_a_id=company_a.id,
        company_b_id=company_b.id,
        user_ids={key: user.id for key, user in users.items()},
        tokens={key: create_access_token(user) for key, user in users.items()},
        widget_a_id=widget_a.id,
        service_a_id=service_a.id,
        widget_b_id=widget_b.id,
        customer_a_id=customer_a.id,
        customer_b_id=customer_b.id,
    )


@pytest.fixture
def client(session_factory):
    from billmaster.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth(seeded):
    def _headers(user_key: str) -> dict:
        return {"Authorization": f"Bearer {seeded.tokens[user_key]}"}

    return _headers
