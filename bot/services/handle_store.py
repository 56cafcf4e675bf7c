"""Query helpers for the handles table. Callers own the session and the commit."""
from __future__ import annotations

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bot.models import Handle


async def get_handles(session: AsyncSession, owner_id: str) -> list[Handle]:
    """All handles of an owner in insertion order."""
    result = await session.execute(
        select(Handle).where(Handle.owner_id == owner_id).order_by(Handle.id)
    )
    return list(result.scalars().all())


async def count_handles(session: AsyncSession, owner_id: str) -> int:
    result = await session.execute(select(func.count(Handle.id)).where(Handle.owner_id == owner_id))
    return result.scalar_one()


async def get_handle_by_triple(session: AsyncSession, region: int, realm: int, profile: int) -> Handle | None:
    """Get the handle bound to this account, whoever owns it."""
    result = await session.execute(
        select(Handle)
        .where(Handle.region == region, Handle.realm == realm, Handle.profile == profile)
        .order_by(Handle.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_active_handles(session: AsyncSession, owner_id: str) -> list[Handle]:
    result = await session.execute(
        select(Handle).where(Handle.owner_id == owner_id, Handle.active.is_(True)).order_by(Handle.id)
    )
    return list(result.scalars().all())


def create_handle(session: AsyncSession, owner_id: str, region: int, realm: int, profile: int, active: bool) -> Handle:
    handle = Handle(owner_id=owner_id, region=region, realm=realm, profile=profile, active=active)
    session.add(handle)
    return handle


async def set_active_exclusive(session: AsyncSession, owner_id: str, handle_id: int) -> None:
    """Activate one handle and deactivate every other handle of the owner in a single UPDATE."""
    await session.execute(
        update(Handle)
        .where(Handle.owner_id == owner_id)
        .values(active=case((Handle.id == handle_id, True), else_=False))
        .execution_options(synchronize_session=False)
    )


async def delete_handle(session: AsyncSession, handle: Handle) -> None:
    await session.delete(handle)
    await session.flush()
