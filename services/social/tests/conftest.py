from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import set_session_factory
from app.main import create_app
from app.models import User
from app.notifications.producer import NotificationProducer
from app.search.indexer import SearchIndexer
from shared.auth.dependencies import get_auth_settings
from shared.database.postgres import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_QUEUE = "test:notifications"


# ── Broker / search doubles ────────────────────────────────────────────────────


@dataclass
class FakeJob:
    job_id: str


class FakeArqPool:
    """Records enqueue_job calls the way ArqRedis would receive them."""

    def __init__(self) -> None:
        self.jobs: list[tuple[str, tuple[Any, ...], str | None]] = []
        self.down = False
        self.return_none = False

    async def enqueue_job(self, function: str, *args: Any, _queue_name: str | None = None, **kwargs: Any):
        if self.down:
            raise ConnectionError("redis unavailable")
        self.jobs.append((function, args, _queue_name))
        if self.return_none:
            return None
        return FakeJob(job_id=f"job-{len(self.jobs)}")

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [args[0] for _, args, _ in self.jobs]

    async def aclose(self) -> None:
        pass


class FakeIndices:
    def __init__(self) -> None:
        self.created: list[str] = []

    async def create(self, index: str, body: dict, ignore: int | None = None) -> dict:
        if index not in self.created:
            self.created.append(index)
        return {"acknowledged": True}


class FakeOpenSearch:
    """In-memory stand-in for AsyncOpenSearch covering the calls this service makes."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, dict[str, Any]]] = {}
        self.indices = FakeIndices()
        self.down = False
        self.failing_ids: set[str] = set()
        self.closed = False

    def _check(self, doc_id: str | None = None) -> None:
        if self.down or (doc_id is not None and doc_id in self.failing_ids):
            raise ConnectionError("opensearch unavailable")

    async def index(self, index: str, id: str, body: dict, refresh: bool = False) -> dict:
        self._check(id)
        self.docs.setdefault(index, {})[id] = dict(body)
        return {"result": "created"}

    async def delete(self, index: str, id: str, refresh: bool = False, ignore: int | None = None) -> dict:
        self._check(id)
        found = self.docs.get(index, {}).pop(id, None)
        return {"result": "deleted" if found else "not_found"}

    async def search(self, index: str, body: dict, ignore: int | None = None) -> dict:
        self._check()
        needle = body["query"]["multi_match"]["query"].lower()
        fields = [f.split("^")[0] for f in body["query"]["multi_match"]["fields"]]
        hits = [
            {"_id": doc_id, "_source": doc}
            for doc_id, doc in self.docs.get(index, {}).items()
            if any(needle in str(doc.get(f, "")).lower() for f in fields)
        ]
        start = body.get("from", 0)
        return {"hits": {"hits": hits[start:start + body.get("size", 20)]}}

    async def close(self) -> None:
        self.closed = True


# ── Database ───────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory(request) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory database; tests marked ``foreign_keys`` get SQLite FK enforcement."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if request.node.get_closest_marker("foreign_keys") is not None:

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session_factory) -> Callable[..., Awaitable[User]]:
    """Create and commit a user in its own session."""

    async def _make(username: str, *, is_private: bool = False, first_name: str = "", last_name: str = "") -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                email=f"{username}@example.com",
                first_name=first_name,
                last_name=last_name,
                is_private=is_private,
            )
            session.add(user)
            await session.commit()
            return user

    return _make


# ── Collaborators ──────────────────────────────────────────────────────────────


@pytest.fixture
def arq_pool() -> FakeArqPool:
    return FakeArqPool()


@pytest.fixture
def producer(arq_pool) -> NotificationProducer:
    return NotificationProducer(arq_pool, TEST_QUEUE)


@pytest.fixture
def opensearch() -> FakeOpenSearch:
    return FakeOpenSearch()


@pytest.fixture
def indexer(opensearch) -> SearchIndexer:
    return SearchIndexer(opensearch, "test")


# ── HTTP ───────────────────────────────────────────────────────────────────────


def _auth_headers(user: User) -> dict[str, str]:
    settings = get_auth_settings()
    token = jwt.encode(
        {"sub": str(user.id), "username": user.username},
        settings.secret,
        algorithm=settings.algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    return _auth_headers


@pytest_asyncio.fixture
async def app(session_factory, arq_pool, opensearch):
    # Lifespan is not run under ASGITransport; wire state by hand.
    application = create_app()
    set_session_factory(session_factory)
    application.state.arq_pool = arq_pool
    application.state.opensearch = opensearch
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
