import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import Base, make_engine, make_session_factory
from app.core.ids import IdGenerator
from app.core.signing import TokenIssuer
from app.main import create_app
from app.services.core import build_core
from app.services.license_store import LicenseRecord, SqlLicenseStore
from app.services.shards import ShardRegistry

SIGNING_SECRET = "test-signing-secret"
ADMIN_SECRET = "test-admin-secret"
START = 1_700_000_000.0


class FakeClock:
    def __init__(self, start: float = START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000.0

    def datetime(self) -> datetime:
        return datetime.fromtimestamp(self.now, tz=timezone.utc)


class SequentialIds(IdGenerator):
    def __init__(self) -> None:
        self._actions = itertools.count(1)
        self._keys = itertools.count(1)

    def action_id(self, created_at_ms: int) -> str:
        return f"action-{next(self._actions)}"

    def license_key(self) -> str:
        return f"GG-TEST-{next(self._keys):04d}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def settings():
    s = Settings()
    s.SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
    s.LICENSE_SIGNING_SECRET = SIGNING_SECRET
    s.ADMIN_SECRET = ADMIN_SECRET
    s.JWT_SECRET_KEY = "test-jwt-secret"
    s.STORE_TIMEOUT_SECONDS = 2.0
    s.ONLINE_TTL_MS = 30000
    s.LOG_CAPACITY = 300
    s.ACTION_CAPACITY = 200
    s.ACTION_EVICT_BATCH = 50
    s.CORS_ORIGINS = "http://localhost:3000"
    return s


@pytest.fixture
def store():
    engine = make_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield SqlLicenseStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def add_license(store, clock):
    def _add(key="GG-AAAA-BBBB", status="ACTIVE", expires_in_days=None, hwid=None):
        expires_at = None
        if expires_in_days is not None:
            expires_at = clock.datetime() + timedelta(days=expires_in_days)
        return store.insert_license(LicenseRecord(license_key=key, status=status, expires_at=expires_at, hwid=hwid))
    return _add


@pytest.fixture
def issuer(clock):
    return TokenIssuer(SIGNING_SECRET, clock=clock)


@pytest.fixture
def registry():
    return ShardRegistry()


@pytest.fixture
def core(settings, store, clock, ids):
    c = build_core(settings, store, clock=clock, ids=ids)
    yield c
    c.close()


@pytest.fixture
def client(settings, store, clock, ids):
    app = create_app(settings=settings, store=store, clock=clock, ids=ids)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_SECRET}"}
