"""Shared fixtures: in-memory SQLite database and an API client bound to it."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.db.base import Base
from app.db.models import QRCode, QRStatus, Vehicle
from app.db.session import get_db
from app.main import app


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    factory = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(engine):
    factory = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)

    def _override_get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_qr(db):
    def _make(short_id: str = "J6UQDV") -> QRCode:
        qr = QRCode(short_id=short_id, status=QRStatus.UNREGISTERED)
        db.add(qr)
        db.commit()
        db.refresh(qr)
        return qr

    return _make


@pytest.fixture()
def registered_qr(db):
    qr = QRCode(short_id="R5Q7UD", status=QRStatus.REGISTERED)
    db.add(qr)
    db.flush()
    db.add(
        Vehicle(
            qr_code_id=qr.id,
            phone_number="010-1234-5678",
            vehicle_number="12가1234",
            safe_number="050-8940-3626",
            password_hash=hash_password("1234"),
        )
    )
    db.commit()
    db.refresh(qr)
    return qr
