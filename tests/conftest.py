import os

# Configuração de teste antes de qualquer import do pacote
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "chave-de-teste")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "100000")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_clinicstock")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_clinicstock")
os.environ.setdefault("STRIPE_PRICE_ID_MONTHLY", "price_monthly")
os.environ.setdefault("STRIPE_PRICE_ID_YEARLY", "price_yearly")
os.environ.setdefault("FIREBASE_PROJECT_ID", "clinicstock-test")

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clinicstock.core import rate_limit  # noqa: E402
from clinicstock.core.security import hash_password, create_access_token  # noqa: E402
from clinicstock.db import session as db_session  # noqa: E402
from clinicstock.db.base import Base  # noqa: E402
from clinicstock.main import app  # noqa: E402
from clinicstock.models import User, Product, Subscription  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def reset_login_limits():
    rate_limit._rate_limiter_cache.clear()
    yield
    rate_limit._rate_limiter_cache.clear()


@pytest.fixture
def db(monkeypatch):
    Base.metadata.create_all(bind=engine)
    # get_db e o worker de checkout abrem sessões por aqui
    monkeypatch.setattr(db_session, "SessionLocal", TestingSessionLocal)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


def make_user(db, email="ana@clinica.com", password="secret123", **kwargs) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password),
        display_name=email.split("@")[0],
        **kwargs,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


def activate_subscription(db, user: User, status: str = "active") -> Subscription:
    subscription = Subscription(
        id=f"sub_{user.id.hex[:12]}",
        user_id=user.id,
        status=status,
        price_id="price_monthly",
        current_period_end=datetime.utcnow() + timedelta(days=30),
    )
    db.add(subscription)
    db.commit()
    return subscription


def make_product(db, owner: User, **kwargs) -> Product:
    fields = {
        "name": "Toxina botulínica",
        "category": "Injetáveis",
        "unit": "Frasco",
        "current_stock": 10,
        "minimum_stock": 5,
        "expiry_date": date.today() + timedelta(days=90),
        "cost_price": 100,
    }
    fields.update(kwargs)
    product = Product(owner_id=owner.id, **fields)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def user(db) -> User:
    return make_user(db)


@pytest.fixture
def subscriber(db, user) -> User:
    activate_subscription(db, user)
    return user


@pytest.fixture
def headers(subscriber) -> dict:
    return auth_headers(subscriber)
