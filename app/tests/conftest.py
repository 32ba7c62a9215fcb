"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time; tests never touch a real database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only-0123456789")
os.environ.setdefault("APP_ENV", "local")
os.environ.setdefault("APP_TIMEZONE", "Asia/Ho_Chi_Minh")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.core.deps import get_db
from app.core.security import hash_password

# Import all models to ensure they're registered with Base.metadata
from app.models import (
    Company,
    AdminAccount,
    AdminRole,
    Employee,
    Location,
    Shift,
    AttendanceRequest,
    AttendanceRecord,
    AuditLog,
)  # noqa


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def company(db):
    company = Company(name="Acme Coffee")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def company_admin(db, company):
    admin = AdminAccount(
        company_id=company.id,
        username="acme-admin",
        password_hash=hash_password("adminpass123"),
        name="Acme Admin",
        role=AdminRole.COMPANY_ADMIN.value,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def super_admin(db):
    admin = AdminAccount(
        company_id=None,
        username="root",
        password_hash=hash_password("rootpass123"),
        name="Root",
        role=AdminRole.SUPER_ADMIN.value,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def office(db, company):
    """Location at (10.0, 106.0) with a 100 m fence"""
    location = Location(
        company_id=company.id,
        name="Head Office",
        latitude=10.0,
        longitude=106.0,
        radius=100.0,
        require_selfie=False,
    )
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


@pytest.fixture
def day_shift(db, company):
    shift = Shift(company_id=company.id, name="Day", start_time="08:00", end_time="17:00")
    db.add(shift)
    db.commit()
    db.refresh(shift)
    return shift


@pytest.fixture
def employee(db, company):
    employee = Employee(
        company_id=company.id,
        username="an.nguyen",
        name="Nguyen Van An",
        password_hash=hash_password("emppass123"),
        device_code="AB12C",
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee
