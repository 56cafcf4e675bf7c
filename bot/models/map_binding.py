"""Map binding model - the arcade map a Discord server follows."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bot.models.base import Base


class MapBinding(Base):
    """One (region, map) per guild, used by room, history and leaderboard commands."""

    __tablename__ = "arcade_map_bindings"

    guild_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    region: Mapped[int] = mapped_column(Integer, nullable=False)
    map_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
