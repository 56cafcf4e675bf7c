"""Handle registry - bind, list, switch and unbind SC2 handles per Discord user.

Invariant: an owner with at least one handle has exactly one active handle,
an owner with none has none. Handles are addressed by 1-based position in
insertion order (the order :meth:`HandleRegistry.list_handles` returns).

A handle (region, realm, profile) can be bound by one owner at a time. The
check runs before verification and again in the write session, but without a
storage-level constraint two binds racing on the same account can both pass.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import config
from bot.errors import (
    AlreadyBoundToOther,
    AlreadyBoundToSelf,
    IndexOutOfRange,
    InvalidHandle,
    NoActiveHandle,
    NoHandles,
)
from bot.models import REALMS, REGION_NAMES, Handle
from bot.models.base import async_session_factory
from bot.services import handle_store
from bot.services.arcade_api import ArcadeAPIService

logger = logging.getLogger("arcade.handles")

HANDLE_RE = re.compile(r"^([1235])-s2-([12])-(\d+)$", re.IGNORECASE)
HANDLE_FORMAT = "[region]-S2-[realm]-[profile], e.g. 5-S2-1-1234567"


def parse_handle(text: str) -> tuple[int, int, int]:
    """Parse '5-S2-1-1234567' into (region, realm, profile)."""
    match = HANDLE_RE.match((text or "").strip())
    if not match:
        raise InvalidHandle(f"Expected {HANDLE_FORMAT}")
    region, realm, profile = (int(g) for g in match.groups())
    validate_triple(region, realm, profile)
    return region, realm, profile


def validate_triple(region: int, realm: int, profile: int) -> None:
    if region not in REGION_NAMES or realm not in REALMS or profile < 1:
        raise InvalidHandle(f"{region}-S2-{realm}-{profile} is not a valid handle")


def format_handle(handle: Handle) -> str:
    return f"[{handle.region_name}] {handle.region}-S2-{handle.realm}-{handle.profile}"


@dataclass
class UnbindResult:
    removed: Handle
    promoted: Handle | None = None  # Handle that became active because the active one was removed


class HandleRegistry:
    """Per-owner handle operations. Every write is committed before the call returns."""

    def __init__(
        self,
        arcade_api: ArcadeAPIService,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        verify_default: bool = config.CHECK_HANDLE,
    ):
        self._api = arcade_api
        self._session_factory = session_factory
        self.verify_default = verify_default

    async def _check_unbound(self, session: AsyncSession, owner_id: str, region: int, realm: int, profile: int) -> None:
        existing = await handle_store.get_handle_by_triple(session, region, realm, profile)
        if existing is None:
            return
        if existing.owner_id == owner_id:
            raise AlreadyBoundToSelf(f"{region}-S2-{realm}-{profile}")
        raise AlreadyBoundToOther(existing.owner_id)

    async def bind(
        self, owner_id: str, region: int, realm: int, profile: int, verify: bool | None = None
    ) -> Handle:
        """Bind a handle. The owner's first handle becomes active."""
        validate_triple(region, realm, profile)
        async with self._session_factory() as session:
            await self._check_unbound(session, owner_id, region, realm, profile)

        if verify is None:
            verify = self.verify_default
        if verify:
            # ProfileNotFound / UpstreamUnavailable abort before anything is written
            await self._api.get_profile(region, realm, profile)

        async with self._session_factory() as session:
            await self._check_unbound(session, owner_id, region, realm, profile)
            is_first = await handle_store.count_handles(session, owner_id) == 0
            handle = handle_store.create_handle(session, owner_id, region, realm, profile, active=is_first)
            await session.commit()

        logger.info("Bound %s to %s (active=%s)", format_handle(handle), owner_id, handle.active)
        return handle

    async def list_handles(self, owner_id: str) -> list[Handle]:
        async with self._session_factory() as session:
            return await handle_store.get_handles(session, owner_id)

    @staticmethod
    def _select(handles: list[Handle], selector: int | None) -> Handle:
        if not handles:
            raise NoHandles()
        if selector is None or not 1 <= selector <= len(handles):
            raise IndexOutOfRange(selector, len(handles))
        return handles[selector - 1]

    async def switch(self, owner_id: str, selector: int | None) -> Handle:
        """Make the handle at 1-based ``selector`` the only active one."""
        async with self._session_factory() as session:
            handles = await handle_store.get_handles(session, owner_id)
            selected = self._select(handles, selector)
            await handle_store.set_active_exclusive(session, owner_id, selected.id)
            await session.commit()
            await session.refresh(selected)

        logger.info("%s switched to %s", owner_id, format_handle(selected))
        return selected

    async def unbind(self, owner_id: str, selector: int | None) -> UnbindResult:
        """Remove the handle at ``selector``; promote the first remaining one if none is left active."""
        async with self._session_factory() as session:
            handles = await handle_store.get_handles(session, owner_id)
            removed = self._select(handles, selector)
            await handle_store.delete_handle(session, removed)

            promoted = None
            remaining = [h for h in handles if h.id != removed.id]
            if remaining and not any(h.active for h in remaining):
                promoted = remaining[0]
                await handle_store.set_active_exclusive(session, owner_id, promoted.id)
            await session.commit()
            if promoted is not None:
                await session.refresh(promoted)

        logger.info(
            "%s unbound %s%s",
            owner_id,
            format_handle(removed),
            f", promoted {format_handle(promoted)}" if promoted else "",
        )
        return UnbindResult(removed=removed, promoted=promoted)

    async def lookup(self, region: int, realm: int, profile: int) -> str | None:
        """Owner id of the handle.

        Not found is a normal answer here, not an error: returns None when nobody
        has bound the handle. :meth:`bind` runs the same query for its uniqueness check.
        """
        async with self._session_factory() as session:
            existing = await handle_store.get_handle_by_triple(session, region, realm, profile)
        return existing.owner_id if existing else None

    async def active_handle(self, owner_id: str) -> Handle:
        async with self._session_factory() as session:
            active = await handle_store.get_active_handles(session, owner_id)
        if not active:
            raise NoActiveHandle(owner_id)
        return active[0]
