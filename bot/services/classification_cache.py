"""Cache-aside layer in front of the profanity classifier.

Every player name shown in chat goes through :meth:`ClassificationCache.classify`.
Verdicts are stored per raw name in ``arcade_sensitive_names``; the classifier is
only called on a miss, or on a stale hit when the policy has a TTL.

The cache never raises. A store that cannot be read counts as a miss, and a
verdict that cannot be written is still returned. When the classifier fails,
what it returns instead is decided by :class:`FailurePolicy`:

* ``FAIL_OPEN``   - the last known verdict for the name if there is one, else ``False``
* ``FAIL_CLOSED`` - ``True`` (unclassifiable names are treated as sensitive)
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import config
from bot.models import ClassificationEntry
from bot.models.base import async_session_factory
from bot.services.classifier import ClassifierClient, ClassifierUnavailable

logger = logging.getLogger("arcade.cache")

MASK = "***"


class FailurePolicy(str, Enum):
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


@dataclass(frozen=True)
class CachePolicy:
    """ttl=None caches verdicts forever."""

    ttl: timedelta | None = None
    on_failure: FailurePolicy = FailurePolicy.FAIL_CLOSED

    @classmethod
    def from_config(cls) -> CachePolicy:
        ttl = timedelta(days=config.CLASSIFIER_TTL_DAYS) if config.CLASSIFIER_TTL_DAYS else None
        try:
            on_failure = FailurePolicy(config.CLASSIFIER_FAILURE_POLICY)
        except ValueError:
            logger.warning(
                "Unknown CLASSIFIER_FAILURE_POLICY %r, using fail_closed", config.CLASSIFIER_FAILURE_POLICY
            )
            on_failure = FailurePolicy.FAIL_CLOSED
        return cls(ttl=ttl, on_failure=on_failure)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


async def get_entry(session: AsyncSession, name: str) -> ClassificationEntry | None:
    result = await session.execute(select(ClassificationEntry).where(ClassificationEntry.name == name))
    return result.scalar_one_or_none()


class ClassificationCache:
    """Classify names through the store first, the classifier second."""

    def __init__(
        self,
        classifier: ClassifierClient,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        policy: CachePolicy | None = None,
        enabled: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._classifier = classifier
        self._session_factory = session_factory
        self.policy = policy or CachePolicy()
        self.enabled = enabled
        self._clock = clock
        # Concurrent misses on the same name share one upstream call
        self._inflight: dict[str, asyncio.Task[bool]] = {}

    def _is_fresh(self, entry: ClassificationEntry, now: datetime) -> bool:
        if self.policy.ttl is None:
            return True
        return now - _as_utc(entry.checked_at) < self.policy.ttl

    async def classify(self, text: str) -> bool:
        """Return True if ``text`` is sensitive."""
        if not self.enabled:
            return False

        try:
            async with self._session_factory() as session:
                entry = await get_entry(session, text)
        except SQLAlchemyError as e:
            logger.warning("Could not read verdict for %r: %s", text, e)
            entry = None
        if entry is not None and self._is_fresh(entry, self._clock()):
            return entry.is_sensitive

        task = self._inflight.get(text)
        if task is None:
            stale = entry.is_sensitive if entry is not None else None
            task = asyncio.ensure_future(self._refresh(text, stale))
            self._inflight[text] = task
            task.add_done_callback(lambda _t: self._inflight.pop(text, None))
        return await asyncio.shield(task)

    async def _refresh(self, text: str, stale: bool | None) -> bool:
        try:
            verdict = await self._classifier.classify(text)
        except ClassifierUnavailable as e:
            fallback = self._on_failure(stale)
            logger.warning("Classifier failed for %r (%s); using %s -> %s", text, e, self.policy.on_failure.value, fallback)
            return fallback

        try:
            async with self._session_factory() as session:
                await session.merge(ClassificationEntry(name=text, is_sensitive=verdict, checked_at=self._clock()))
                await session.commit()
        except SQLAlchemyError as e:
            # Verdict is still good, it just gets fetched again next time
            logger.warning("Could not store verdict for %r: %s", text, e)
        return verdict

    def _on_failure(self, stale: bool | None) -> bool:
        if self.policy.on_failure is FailurePolicy.FAIL_OPEN:
            return stale if stale is not None else False
        return True

    async def redact(self, name: str | None) -> str:
        """Mask a sensitive name to its first character plus ``***``."""
        if not name:
            return MASK
        if await self.classify(name):
            return f"{name[0]}{MASK}"
        return name
