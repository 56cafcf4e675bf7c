"""Database models."""
from bot.models.base import Base, async_session_factory, init_db
from bot.models.classification import ClassificationEntry
from bot.models.handle import REALMS, REGION_NAMES, Handle
from bot.models.map_binding import MapBinding

__all__ = [
    "Base",
    "ClassificationEntry",
    "Handle",
    "MapBinding",
    "REALMS",
    "REGION_NAMES",
    "async_session_factory",
    "init_db",
]
