"""
Test configuration and fixtures for the WCAG scanner.

Each test gets its own SQLite file; the app's get_db and get_orchestrator
dependencies are pointed at it, so no test touches Redis, Chrome or the
PageSpeed API.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.mktemp(suffix='.db')}"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["FORCE_IN_MEMORY_RATE_LIMITER"] = "true"
os.environ["WHITELIST_IPS"] = '["testclient"]'
os.environ["AUDIT_BACKEND"] = "remote"
os.environ["SCORE_STRATEGY"] = "direct"
os.environ["SCAN_MODE"] = "sync"
os.environ["SCAN_DISPATCHER"] = "inline"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from datetime import datetime, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from tests.fakes import FakeAuditor, make_result
from wcag_audit.features.auth.models.user import MagicLinkToken, User  # noqa: F401
from wcag_audit.features.auth.utils.security import create_access_token
from wcag_audit.features.scan.models.scan import Scan, ScanStatus
from wcag_audit.features.scan.services.orchestrator import ScanOrchestrator
from wcag_audit.platform.config import settings
from wcag_audit.platform.db.base import Base


@pytest.fixture
def sync_engine(tmp_path):
    """Fresh schema per test; also used to seed rows without an event loop."""
    engine = create_engine(f"sqlite:///{tmp_path / 'scans.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sync_engine):
    # NullPool: connections are never shared between event loops
    engine = create_async_engine(f"sqlite+aiosqlite:///{sync_engine.url.database}", poolclass=NullPool)
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def seed_scan(sync_engine):
    """Insert a scan row directly, e.g. with a fixed created_at."""

    def _seed(url="https://example.com", status=ScanStatus.pending, user_id=None, created_at=None, **fields):
        with Session(sync_engine, expire_on_commit=False) as session:
            scan = Scan(
                url=url,
                status=status,
                user_id=user_id,
                created_at=created_at or datetime.now(timezone.utc),
                **fields,
            )
            session.add(scan)
            session.commit()
            return scan

    return _seed


@pytest.fixture
def fake_auditor():
    return FakeAuditor(result=make_result())


@pytest.fixture
def orchestrator(session_factory, fake_auditor):
    return ScanOrchestrator(
        auditor=fake_auditor,
        session_factory=session_factory,
        score_strategy="direct",
        mode="sync",
        monthly_quota=settings.MONTHLY_SCAN_QUOTA,
    )


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from wcag_audit.main import app

    return app


@pytest.fixture
def client(test_app, session_factory, orchestrator) -> Generator[TestClient, None, None]:
    """
    TestClient with the database and the orchestrator overridden for this test.
    """
    from wcag_audit.features.scan.dependencies import get_orchestrator
    from wcag_audit.platform.db.session import get_db

    async def override_get_db():
        async with session_factory() as session:
            yield session

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    with TestClient(test_app) as test_client:
        yield test_client

    test_app.dependency_overrides.clear()


@pytest.fixture
def user(sync_engine):
    with Session(sync_engine, expire_on_commit=False) as session:
        account = User(email="marie@example.com")
        session.add(account)
        session.commit()
        return account


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def async_client(test_app, session_factory, orchestrator):
    """httpx client over ASGITransport, for tests that are coroutines themselves."""
    from httpx import ASGITransport, AsyncClient

    from wcag_audit.features.scan.dependencies import get_orchestrator
    from wcag_audit.platform.db.session import get_db

    async def override_get_db():
        async with session_factory() as session:
            yield session

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://testserver") as ac:
        yield ac

    test_app.dependency_overrides.clear()
