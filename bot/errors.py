"""Error taxonomy shared by the registry, map bindings and feed services.

Every error carries a ``kind`` so callers can branch on the category without
inspecting HTTP status codes or database results.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_ARGUMENT = "invalid_argument"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    NO_ACTIVE_STATE = "no_active_state"


class ArcadeError(Exception):
    """Base class for expected, user-reportable failures."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)


class AlreadyBoundToOther(ArcadeError):
    kind = ErrorKind.CONFLICT

    def __init__(self, owner_id: str) -> None:
        super().__init__(f"handle is bound to {owner_id}")
        self.owner_id = owner_id


class AlreadyBoundToSelf(ArcadeError):
    kind = ErrorKind.CONFLICT


class ProfileNotFound(ArcadeError):
    kind = ErrorKind.NOT_FOUND


class MapNotBound(ArcadeError):
    kind = ErrorKind.NOT_FOUND


class UpstreamUnavailable(ArcadeError):
    """Network failure or unexpected status from an external API."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE

    def __init__(self, message: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IndexOutOfRange(ArcadeError):
    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, selector: int | None, count: int) -> None:
        super().__init__(f"selector {selector} not in 1..{count}")
        self.selector = selector
        self.count = count


class InvalidHandle(ArcadeError):
    kind = ErrorKind.INVALID_ARGUMENT


class InvalidRegion(ArcadeError):
    kind = ErrorKind.INVALID_ARGUMENT


class NoActiveHandle(ArcadeError):
    kind = ErrorKind.NO_ACTIVE_STATE


class NoHandles(ArcadeError):
    kind = ErrorKind.NO_ACTIVE_STATE


class InvalidMap(ArcadeError):
    kind = ErrorKind.INVALID_ARGUMENT
