"""
Shared test fixtures.

The app runs in-process over an in-memory SQLite database. Redis is an
in-test double and Celery email dispatch is replaced by recorders.
"""

import os
import tempfile

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="utsav-storage-"))
os.environ.setdefault("GEMINI_API_KEY", "")

import time  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import utsav.models  # noqa: E402,F401
from utsav.client.api import BackendClient  # noqa: E402
from utsav.client.config import ClientSettings  # noqa: E402
from utsav.client.store import LocalStore  # noqa: E402
from utsav.core.database import get_db  # noqa: E402
from utsav.core.dependencies import get_redis, get_storage_bucket  # noqa: E402
from utsav.core.storage import StorageBucket  # noqa: E402
from utsav.models.base import Base  # noqa: E402
from utsav.workers import email_tasks  # noqa: E402

BASE_URL = "http://test"
API = f"{BASE_URL}/api/v1"


# ---------------------------------------------------------------------------
# Doubles
# ---------------------------------------------------------------------------

class FakeRedis:
    """The handful of string commands the services use, with expiry."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def setex(self, key: str, seconds: int, value: Any) -> bool:
        self._data[key] = (str(value), time.monotonic() + seconds)
        return True

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self._data[key] = (str(value), time.monotonic() + ex if ex else None)
        return True

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self._data.pop(key, None) is not None)

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._live(key) is not None)


class TaskRecorder:
    """Stands in for a Celery task; records `.delay` kwargs."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def delay(self, **kwargs: Any) -> None:
        self.calls.append(kwargs)

    @property
    def last(self) -> dict[str, Any]:
        return self.calls[-1]


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_engine():
    """In-memory SQLite shared across connections, with foreign keys on."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def mail(monkeypatch) -> dict[str, TaskRecorder]:
    """Recorders for the email tasks, keyed by kind."""
    recorders = {"magic_link": TaskRecorder(), "invitation": TaskRecorder()}
    monkeypatch.setattr(email_tasks, "send_magic_link_email", recorders["magic_link"])
    monkeypatch.setattr(email_tasks, "send_invitation_email", recorders["invitation"])
    return recorders


@pytest.fixture
def bucket(tmp_path) -> StorageBucket:
    return StorageBucket("user-images", root=tmp_path)


@pytest.fixture
def app(session_factory, fake_redis, mail, bucket):
    """The API with database, Redis and storage pointed at test doubles."""
    from utsav.main import app as _app

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _get_redis():
        return fake_redis

    _app.dependency_overrides[get_db] = _get_db
    _app.dependency_overrides[get_redis] = _get_redis
    _app.dependency_overrides[get_storage_bucket] = lambda: bucket
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac


@pytest.fixture
async def backend(app):
    """The client package's BackendClient wired to the in-process app."""
    settings = ClientSettings(API_URL=API, FUNCTIONS_URL=f"{BASE_URL}/functions")
    api = BackendClient(settings, transport=ASGITransport(app=app))
    yield api
    await api.aclose()


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "state.json")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def sign_in(client: AsyncClient, mail: dict[str, TaskRecorder], email: str) -> dict[str, str]:
    """Run the magic link flow and return bearer headers."""
    resp = await client.post(f"{API}/auth/magic-link", json={"email": email})
    assert resp.status_code == 202, f"Magic link failed: {resp.text}"
    token = mail["magic_link"].last["magic_link_token"]

    resp = await client.post(f"{API}/auth/verify", json={"token": token})
    assert resp.status_code == 200, f"Verify failed: {resp.text}"
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def create_org(
    client: AsyncClient,
    headers: dict[str, str],
    slug: str = "ganesh-utsav",
    passcode: str = "1234",
    name: str = "Ganesh Utsav Committee",
) -> dict:
    resp = await client.post(
        f"{API}/organizations",
        json={"name": name, "slug": slug, "passcode": passcode},
        headers=headers,
    )
    assert resp.status_code == 201, f"Create org failed: {resp.text}"
    return resp.json()


async def invite(
    client: AsyncClient,
    headers: dict[str, str],
    slug: str,
    email: str,
    role: str = "viewer",
) -> dict:
    resp = await client.post(
        f"{API}/organizations/{slug}/invitations",
        json={"email": email, "role": role},
        headers=headers,
    )
    assert resp.status_code == 201, f"Invite failed: {resp.text}"
    return resp.json()


@pytest.fixture
async def admin(client, mail) -> dict[str, str]:
    """Signed-in admin of the `ganesh-utsav` organization."""
    headers = await sign_in(client, mail, "admin@example.com")
    await create_org(client, headers)
    return headers
