"""
Shared test fixtures.

These replace real infrastructure with lightweight local alternatives:
- PostgreSQL → SQLite file in the test's tmp_path (worker threads and the
  test itself each get their own connection, like with a real server)
- Redis → fakeredis (pure Python Redis mock)
- HTTP server → httpx.AsyncClient with ASGI transport (no network)
- Push notifications → RecordingNotifier (keeps sent messages in a list)

Orchestrators built here use a few milliseconds of step delay, so a
passthrough job finishes in well under a second.
"""

import threading
import time

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_orchestrator, get_redis, get_store
from api.main import create_app
from jobs.base import (
    AbstractEnhancer,
    EnhancementFailed,
    EnhancementState,
    EnhancementSucceeded,
    ProgressStep,
    StepOutcome,
)
from jobs.passthrough import PassthroughEnhancer
from models.base import Base
from models.store import JobStore
from notifications.base import AbstractNotifier
from notifications.dispatcher import NotificationDispatcher
from worker.orchestrator import JobOrchestrator
from worker.pool import WorkerPool
from worker.registry import JobRegistry

FAST_STEP_DELAY = 0.005


class RecordingNotifier(AbstractNotifier):
    """Notifier that remembers what it was asked to send."""

    def __init__(self):
        self.sent: list[dict] = []
        self._lock = threading.Lock()

    def send(self, target, title, body, metadata) -> bool:
        with self._lock:
            self.sent.append({"target": target, "title": title, "body": body, "metadata": metadata})
        return True


class GatedEnhancer(AbstractEnhancer):
    """
    Blocks inside its first step until `gate` is set, then finishes in
    one 50% step. Lets a test look at a job while it is mid-flight.
    """

    def __init__(self, timeout: float = 2.0):
        self.gate = threading.Event()
        self.entered = threading.Event()
        self._timeout = timeout

    def step(self, state: EnhancementState) -> StepOutcome:
        self.entered.set()
        if not self.gate.wait(self._timeout):
            return EnhancementFailed("gate never opened")
        if state.progress < 50:
            return ProgressStep(50)
        return EnhancementSucceeded(state.input_payload)

    @property
    def name(self) -> str:
        return "gated"


@pytest.fixture
def db_engine(tmp_path):
    """Fresh SQLite database file for each test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    return JobStore(sessionmaker(db_engine, expire_on_commit=False))


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def add_user(store):
    """Create a user with a given balance: add_user("alice", credit=3)."""

    def _add(user_id: str = "user-1", credit: int = 3) -> str:
        store.register_user(user_id, credit)
        return user_id

    return _add


@pytest.fixture
def make_orchestrator(store, registry, notifier):
    """Build orchestrators sharing this test's store/registry/notifier; all are shut down afterwards."""
    created: list[JobOrchestrator] = []

    def _make(enhancer=None, step_delay=FAST_STEP_DELAY, pool_size=8, job_store=None):
        orchestrator = JobOrchestrator(
            store=job_store or store,
            registry=registry,
            dispatcher=NotificationDispatcher(notifier),
            enhancer=enhancer or PassthroughEnhancer(),
            pool=WorkerPool(pool_size),
            step_delay=step_delay,
            credit_cost=1,
        )
        created.append(orchestrator)
        return orchestrator

    yield _make
    for orchestrator in created:
        orchestrator.shutdown(wait=True)


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()


@pytest.fixture
def gated_enhancer():
    """A GatedEnhancer whose gate is opened on teardown so no worker stays blocked."""
    enhancer = GatedEnhancer()
    yield enhancer
    enhancer.gate.set()


@pytest.fixture
def wait_until():
    """Poll a predicate until it is truthy or the timeout expires."""

    def _wait(predicate, timeout: float = 5.0, interval: float = 0.01):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return
            time.sleep(interval)
        raise AssertionError(f"Condition not met within {timeout}s")

    return _wait


@pytest_asyncio.fixture
async def fake_redis():
    """Create a fake Redis instance (in-memory, no real Redis needed)."""
    r = FakeRedis()
    yield r
    await r.flushall()


@pytest_asyncio.fixture
async def client(store, orchestrator, fake_redis):
    """
    Create a test HTTP client that talks directly to the FastAPI app.

    dependency_overrides tells FastAPI: "instead of the services the
    lifespan would build, use these test versions." ASGITransport does not
    run the lifespan, so nothing tries to reach Postgres or Redis.
    """
    app = create_app()

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
