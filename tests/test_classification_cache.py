"""Tests for the name classification cache."""
import asyncio
from datetime import timedelta

import pytest

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from bot.models import ClassificationEntry
from bot.services.classification_cache import CachePolicy, ClassificationCache, FailurePolicy, get_entry


def make_cache(classifier, session_factory, clock, **policy):
    return ClassificationCache(classifier, session_factory=session_factory, policy=CachePolicy(**policy), clock=clock)


@pytest.mark.asyncio
async def test_hit_skips_classifier(fake_classifier, session_factory, clock):
    fake_classifier.sensitive = {"Eve"}
    cache = make_cache(fake_classifier, session_factory, clock)
    assert await cache.classify("Eve") is True
    assert await cache.classify("Eve") is True
    assert await cache.classify("Alice") is False
    assert await cache.classify("Alice") is False
    assert fake_classifier.calls == ["Eve", "Alice"]


@pytest.mark.asyncio
async def test_verdict_is_persisted(fake_classifier, session_factory, clock):
    cache = make_cache(fake_classifier, session_factory, clock)
    await cache.classify("Bob")
    async with session_factory() as session:
        entry = await get_entry(session, "Bob")
    assert entry is not None
    assert entry.is_sensitive is False

    # A new cache instance (restart) reads the stored verdict
    fresh = make_cache(fake_classifier, session_factory, clock)
    await fresh.classify("Bob")
    assert fake_classifier.calls == ["Bob"]


@pytest.mark.asyncio
async def test_key_is_verbatim(fake_classifier, session_factory, clock):
    cache = make_cache(fake_classifier, session_factory, clock)
    await cache.classify("bob")
    await cache.classify("Bob")
    await cache.classify("Bob ")
    assert fake_classifier.calls == ["bob", "Bob", "Bob "]


@pytest.mark.asyncio
async def test_no_ttl_never_refreshes(fake_classifier, session_factory, clock):
    cache = make_cache(fake_classifier, session_factory, clock)
    await cache.classify("Bob")
    clock.advance(days=3650)
    await cache.classify("Bob")
    assert fake_classifier.calls == ["Bob"]


@pytest.mark.asyncio
async def test_ttl_refreshes_stale_entry(fake_classifier, session_factory, clock):
    cache = make_cache(fake_classifier, session_factory, clock, ttl=timedelta(days=7))
    assert await cache.classify("Bob") is False
    clock.advance(days=6)
    assert await cache.classify("Bob") is False
    assert fake_classifier.calls == ["Bob"]

    fake_classifier.sensitive = {"Bob"}
    clock.advance(days=2)
    assert await cache.classify("Bob") is True
    assert fake_classifier.calls == ["Bob", "Bob"]
    async with session_factory() as session:
        entry = await get_entry(session, "Bob")
    assert entry.is_sensitive is True


@pytest.mark.asyncio
async def test_fail_closed_without_entry(fake_classifier, session_factory, clock):
    fake_classifier.fail = True
    cache = make_cache(fake_classifier, session_factory, clock, on_failure=FailurePolicy.FAIL_CLOSED)
    assert await cache.classify("Bob") is True
    async with session_factory() as session:
        assert await get_entry(session, "Bob") is None


@pytest.mark.asyncio
async def test_fail_open_without_entry(fake_classifier, session_factory, clock):
    fake_classifier.fail = True
    cache = make_cache(fake_classifier, session_factory, clock, on_failure=FailurePolicy.FAIL_OPEN)
    assert await cache.classify("Bob") is False


@pytest.mark.asyncio
async def test_fail_open_uses_stale_verdict(fake_classifier, session_factory, clock):
    async with session_factory() as session:
        session.add(ClassificationEntry(name="Eve", is_sensitive=True, checked_at=clock()))
        await session.commit()
    clock.advance(days=30)
    fake_classifier.fail = True
    cache = make_cache(fake_classifier, session_factory, clock, ttl=timedelta(days=7), on_failure=FailurePolicy.FAIL_OPEN)
    assert await cache.classify("Eve") is True
    assert fake_classifier.calls == ["Eve"]


@pytest.mark.asyncio
async def test_fail_closed_ignores_stale_verdict(fake_classifier, session_factory, clock):
    async with session_factory() as session:
        session.add(ClassificationEntry(name="Bob", is_sensitive=False, checked_at=clock()))
        await session.commit()
    clock.advance(days=30)
    fake_classifier.fail = True
    cache = make_cache(fake_classifier, session_factory, clock, ttl=timedelta(days=7), on_failure=FailurePolicy.FAIL_CLOSED)
    assert await cache.classify("Bob") is True


@pytest.mark.asyncio
async def test_failure_is_not_cached(fake_classifier, session_factory, clock):
    fake_classifier.fail = True
    cache = make_cache(fake_classifier, session_factory, clock)
    await cache.classify("Bob")
    fake_classifier.fail = False
    assert await cache.classify("Bob") is False
    assert fake_classifier.calls == ["Bob", "Bob"]


@pytest.mark.asyncio
async def test_store_write_failure_still_returns_verdict(fake_classifier, session_factory, clock, monkeypatch):
    async def locked(self):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    fake_classifier.sensitive = {"Eve"}
    cache = make_cache(fake_classifier, session_factory, clock)
    monkeypatch.setattr(AsyncSession, "commit", locked)
    assert await cache.classify("Eve") is True
    assert await cache.redact("Eve") == "E***"
    monkeypatch.undo()

    async with session_factory() as session:
        assert await get_entry(session, "Eve") is None
    assert fake_classifier.calls == ["Eve", "Eve"]


@pytest.mark.asyncio
async def test_store_read_failure_counts_as_miss(fake_classifier, session_factory, clock, monkeypatch):
    async def locked(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    cache = make_cache(fake_classifier, session_factory, clock)
    monkeypatch.setattr(AsyncSession, "execute", locked)
    assert await cache.classify("Bob") is False
    assert fake_classifier.calls == ["Bob"]

@pytest.mark.asyncio
async def test_disabled_cache_never_calls(fake_classifier, session_factory, clock):
    fake_classifier.sensitive = {"Eve"}
    cache = ClassificationCache(fake_classifier, session_factory=session_factory, enabled=False, clock=clock)
    assert await cache.classify("Eve") is False
    assert fake_classifier.calls == []


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_call(session_factory, clock):
    class SlowClassifier:
        def __init__(self):
            self.calls = 0

        async def classify(self, text):
            self.calls += 1
            await asyncio.sleep(0.05)
            return True

    classifier = SlowClassifier()
    cache = ClassificationCache(classifier, session_factory=session_factory, clock=clock)
    verdicts = await asyncio.gather(*(cache.classify("Eve") for _ in range(5)))
    assert verdicts == [True] * 5
    assert classifier.calls == 1


@pytest.mark.asyncio
async def test_redact(fake_classifier, session_factory, clock):
    fake_classifier.sensitive = {"Eve"}
    cache = make_cache(fake_classifier, session_factory, clock)
    assert await cache.redact("Eve") == "E***"
    assert await cache.redact("Alice") == "Alice"
    assert await cache.redact("") == "***"
    assert await cache.redact(None) == "***"
    assert fake_classifier.calls == ["Eve", "Alice"]


def test_policy_from_config(monkeypatch):
    import config

    monkeypatch.setattr(config, "CLASSIFIER_TTL_DAYS", 7.0)
    monkeypatch.setattr(config, "CLASSIFIER_FAILURE_POLICY", "fail_open")
    policy = CachePolicy.from_config()
    assert policy.ttl == timedelta(days=7)
    assert policy.on_failure is FailurePolicy.FAIL_OPEN

    monkeypatch.setattr(config, "CLASSIFIER_TTL_DAYS", None)
    monkeypatch.setattr(config, "CLASSIFIER_FAILURE_POLICY", "whatever")
    policy = CachePolicy.from_config()
    assert policy.ttl is None
    assert policy.on_failure is FailurePolicy.FAIL_CLOSED
