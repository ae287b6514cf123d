"""Pytest configuration and fixtures."""

import os

# Keep the module-level engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from typing import Generator

from sqlalchemy.orm import Session

from queueme.core.locks import KeyedLockRegistry
from queueme.database.session import create_db_engine, create_session_factory
from queueme.models import Base
from queueme.repositories import BusinessPolicyStore
from queueme.services import Actor, AdmissionEngine, StaffActionGateway

TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_db_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_business(db_session: Session):
    """Factory creating committed businesses with the given policy."""
    def _make(max_queue_length: int = 50, reserved_priority_slots: int = 10, **kwargs):
        store = BusinessPolicyStore(db_session)
        business = store.create_business(
            kwargs.pop("name", "Test Restaurant"),
            max_queue_length=max_queue_length,
            reserved_priority_slots=reserved_priority_slots,
            **kwargs,
        )
        db_session.commit()
        return business
    return _make


@pytest.fixture
def business(make_business):
    return make_business(owner_id="user-owner")


@pytest.fixture
def admission(db_session: Session) -> AdmissionEngine:
    """Admission engine with its own lock registry."""
    return AdmissionEngine(db_session, locks=KeyedLockRegistry(), lock_timeout=5.0)


@pytest.fixture
def gateway(admission: AdmissionEngine) -> StaffActionGateway:
    return StaffActionGateway(admission)


@pytest.fixture
def staff(business) -> Actor:
    return Actor(id="user-staff", role="staff", business_id=business.id)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="user-admin", role="admin")
