"""Cached classifier verdicts for player names."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from bot.models.base import Base


class ClassificationEntry(Base):
    """Verdict for one raw name. The name is stored verbatim and is the cache key."""

    __tablename__ = "arcade_sensitive_names"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    is_sensitive: Mapped[bool] = mapped_column(Boolean, nullable=False)
    checked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
