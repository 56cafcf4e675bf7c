"""Handle model - an SC2 game account bound to a Discord user."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bot.models.base import Base

REGION_NAMES = {
    1: "US",
    2: "EU",
    3: "KR",
    5: "CN",
}
REALMS = (1, 2)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Handle(Base):
    """Game handle ({region}-S2-{realm}-{profile}). Exactly one handle per owner is active."""

    __tablename__ = "arcade_handles"
    # The triple is looked up on every bind; uniqueness is checked by the registry, not the schema
    __table_args__ = (Index("ix_arcade_handles_triple", "region", "realm", "profile"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)  # Insertion order
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # Discord user ID
    region: Mapped[int] = mapped_column(Integer, nullable=False)
    realm: Mapped[int] = mapped_column(Integer, nullable=False)
    profile: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def triple(self) -> tuple[int, int, int]:
        return (self.region, self.realm, self.profile)

    @property
    def region_name(self) -> str:
        return REGION_NAMES.get(self.region, str(self.region))

    def __repr__(self) -> str:
        return f"<Handle {self.region}-S2-{self.realm}-{self.profile} owner={self.owner_id} active={self.active}>"
