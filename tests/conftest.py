"""Pytest configuration and fixtures."""
import os

# Set test env BEFORE any imports that use config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CHECK_HANDLE"] = "true"

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bot.models import Base
from bot.services.arcade_api import ArcadeAPIService
from bot.services.classifier import ClassifierUnavailable


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
async def session_factory(db_url):
    """Fresh database per test. A file, not :memory:, so concurrent sessions get their own connections."""
    engine = create_async_engine(db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


class FakeArcade:
    """Routes arcade API paths to canned JSON via httpx.MockTransport."""

    def __init__(self):
        self.routes: dict[str, tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, body: object = None, status: int = 200) -> None:
        self.routes[path] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(request.url.path, (404, {"error": "not found"}))
        if status >= 600:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status, json=body)


@pytest.fixture
def fake_arcade():
    return FakeArcade()


@pytest.fixture
async def arcade_api(fake_arcade):
    api = ArcadeAPIService(base_url="https://arcade.test", transport=httpx.MockTransport(fake_arcade.handler))
    yield api
    await api.close()


class FakeClassifier:
    """Classifier stand-in: names in ``sensitive`` are flagged, ``fail`` makes every call fail."""

    def __init__(self, sensitive=()):
        self.sensitive = set(sensitive)
        self.fail = False
        self.calls: list[str] = []

    async def classify(self, text: str) -> bool:
        self.calls.append(text)
        if self.fail:
            raise ClassifierUnavailable("classifier down")
        return text in self.sensitive

    async def close(self) -> None:
        pass


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()
