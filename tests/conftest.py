import os

# Settings are read at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SMTP_HOST"] = ""
os.environ["OTP_STORE_BACKEND"] = "memory"
os.environ["WATERMARK_ALLOWED_HOSTS"] = ""

import pytest
from starlette.testclient import TestClient

import realty.models  # noqa: F401
from realty.database import Base, SessionLocal, engine
from realty.main import app
from realty.models.user import User
from realty.services.otp_store import InMemoryOTPStore, set_otp_store
from realty.utils.security import create_access_token


@pytest.fixture(autouse=True)
def fresh_state():
    Base.metadata.create_all(bind=engine)
    set_otp_store(InMemoryOTPStore())
    yield
    set_otp_store(None)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, email, user_type):
    user = User(name=email.split("@")[0], email=email, phone="", userType=user_type, isActive=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.userType, user.email)}"}


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@example.com", "admin")


@pytest.fixture
def seller_user(db):
    return _make_user(db, "seller@example.com", "seller")


@pytest.fixture
def admin_headers(admin_user):
    return _auth(admin_user)


@pytest.fixture
def seller_headers(seller_user):
    return _auth(seller_user)
