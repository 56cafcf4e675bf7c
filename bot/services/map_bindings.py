"""Which arcade map a Discord server follows."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot.errors import InvalidMap, InvalidRegion, MapNotBound
from bot.models import REGION_NAMES, MapBinding
from bot.models.base import async_session_factory

logger = logging.getLogger("arcade.maps")


async def _get(session: AsyncSession, guild_id: str) -> MapBinding | None:
    result = await session.execute(select(MapBinding).where(MapBinding.guild_id == guild_id))
    return result.scalar_one_or_none()


async def get_map_binding(
    guild_id: str, session_factory: async_sessionmaker[AsyncSession] = async_session_factory
) -> MapBinding:
    async with session_factory() as session:
        binding = await _get(session, guild_id)
    if binding is None:
        raise MapNotBound(guild_id)
    return binding


async def bind_map(
    guild_id: str,
    region: int,
    map_id: int,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> MapBinding:
    """Bind a map to the guild, replacing any previous binding."""
    if region not in REGION_NAMES:
        raise InvalidRegion(str(region))
    if map_id < 1:
        raise InvalidMap(f"map id {map_id}")
    async with session_factory() as session:
        binding = await _get(session, guild_id)
        if binding:
            binding.region = region
            binding.map_id = map_id
        else:
            binding = MapBinding(guild_id=guild_id, region=region, map_id=map_id)
            session.add(binding)
        await session.commit()
    logger.info("Guild %s bound to map %s/%s", guild_id, region, map_id)
    return binding


async def unbind_map(
    guild_id: str, session_factory: async_sessionmaker[AsyncSession] = async_session_factory
) -> MapBinding:
    async with session_factory() as session:
        binding = await _get(session, guild_id)
        if binding is None:
            raise MapNotBound(guild_id)
        await session.delete(binding)
        await session.commit()
    logger.info("Guild %s unbound from map %s/%s", guild_id, binding.region, binding.map_id)
    return binding
