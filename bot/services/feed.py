"""Read-only projections of arcade API data for chat display.

Each query does one upstream fetch. If it fails, UpstreamUnavailable
propagates and nothing partial is returned. Player names in lobby rosters
are redacted through the classification cache.
"""
from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from bot.services.arcade_api import ArcadeAPIService
from bot.services.classification_cache import ClassificationCache

ACTIVE_LOBBY_LIMIT = 20
OPEN_ROOM_LIMIT = 20
STARTED_ROOM_LIMIT = 5  # Started rooms are noisier, keep the list short
MOST_PLAYED_LIMIT = 10


class LobbyPhase(str, Enum):
    OPEN = "open"
    STARTED = "started"


class MatchOutcome(str, Enum):
    LEFT = "left"
    WIN = "win"
    LOSS = "loss"
    TIE = "tie"


@dataclass
class ActiveLobby:
    map_name: str
    humans_taken: int
    humans_total: int


@dataclass
class RoomSlot:
    slot_number: int
    name: str  # Already redacted


@dataclass
class RoomSummary:
    humans_taken: int
    humans_total: int
    created_at: datetime | None
    slots: list[RoomSlot] = field(default_factory=list)


@dataclass
class MapPlayCount:
    map_name: str
    lobbies_started: int


@dataclass
class PlayerPlayCount:
    player_name: str
    lobbies_started: int


@dataclass
class MatchRecord:
    map_name: str
    outcome: MatchOutcome | str  # Unknown decision codes are kept as-is


@dataclass
class PatchNoteSection:
    title: str
    subtitle: str
    items: list[str]


def _map_name(item: dict) -> str:
    return (item.get("map") or {}).get("name") or "?"


def _int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_outcome(decision) -> MatchOutcome | str:
    try:
        return MatchOutcome(decision)
    except ValueError:
        return decision


_DATE_RE = re.compile(r"(\d{4})\D+(\d{1,2})\D+(\d{1,2})")


def _subtitle_date(subtitle: str) -> datetime:
    """Date in a patch note subtitle like '2024年3月1日' or '2024-03-01'."""
    match = _DATE_RE.search(subtitle or "")
    if match:
        try:
            return datetime(*(int(g) for g in match.groups()))
        except ValueError:
            pass
    return datetime.min


class FeedAggregator:
    """Lobby, match and leaderboard queries against the arcade API."""

    def __init__(self, api: ArcadeAPIService, cache: ClassificationCache):
        self._api = api
        self._cache = cache

    async def active_lobbies(self, region: int, map_id: int | None = None) -> list[ActiveLobby]:
        """First 20 lobbies waiting in a region, in upstream order."""
        lobbies = await self._api.get_active_lobbies(region)
        if map_id is not None:
            lobbies = [lobby for lobby in lobbies if _int(lobby.get("mapBnetId")) == map_id]
        return [
            ActiveLobby(
                map_name=_map_name(lobby),
                humans_taken=_int(lobby.get("slotsHumansTaken")),
                humans_total=_int(lobby.get("slotsHumansTotal")),
            )
            for lobby in lobbies[:ACTIVE_LOBBY_LIMIT]
        ]

    async def lobby_history(self, region: int, map_id: int, phase: LobbyPhase | str) -> list[RoomSummary]:
        """Recent rooms in ``phase`` with at least one human, names redacted."""
        phase = LobbyPhase(phase)
        limit = STARTED_ROOM_LIMIT if phase is LobbyPhase.STARTED else OPEN_ROOM_LIMIT
        rooms = await self._api.get_lobby_history(region, map_id)
        rooms = [
            room for room in rooms
            if room.get("status") == phase.value and _int(room.get("slotsHumansTaken")) > 0
        ][:limit]
        return list(await asyncio.gather(*(self._summarize_room(room) for room in rooms)))

    async def _summarize_room(self, room: dict) -> RoomSummary:
        human_slots = sorted(
            (slot for slot in room.get("slots") or [] if slot.get("kind") == "human"),
            key=lambda slot: _int(slot.get("slotNumber")),
        )
        names = await asyncio.gather(*(self._cache.redact(slot.get("name")) for slot in human_slots))
        return RoomSummary(
            humans_taken=_int(room.get("slotsHumansTaken")),
            humans_total=_int(room.get("slotsHumansTotal")),
            created_at=parse_timestamp(room.get("createdAt")),
            slots=[
                RoomSlot(slot_number=_int(slot.get("slotNumber")), name=name)
                for slot, name in zip(human_slots, names)
            ],
        )

    async def most_played(self, region: int, realm: int, profile: int) -> list[MapPlayCount]:
        """Top 10 maps by lobbies started."""
        items = await self._api.get_profile_most_played(region, realm, profile)
        counts = [
            MapPlayCount(map_name=_map_name(item), lobbies_started=_int(item.get("lobbiesStarted")))
            for item in items
        ]
        counts = [c for c in counts if c.lobbies_started > 0]
        counts.sort(key=lambda c: c.lobbies_started, reverse=True)
        return counts[:MOST_PLAYED_LIMIT]

    async def player_base(self, region: int, map_id: int) -> list[PlayerPlayCount]:
        """Every player of a map with at least one lobby started, most active first. Not capped."""
        items = await self._api.get_map_player_base(region, map_id)
        players = [
            PlayerPlayCount(
                player_name=(item.get("profile") or {}).get("name") or "?",
                lobbies_started=_int(item.get("lobbiesStarted")),
            )
            for item in items
        ]
        players = [p for p in players if p.lobbies_started > 0]
        players.sort(key=lambda p: p.lobbies_started, reverse=True)
        return players

    async def match_history(self, region: int, realm: int, profile: int) -> list[MatchRecord]:
        matches = await self._api.get_profile_matches(region, realm, profile)
        return [
            MatchRecord(map_name=_map_name(match), outcome=parse_outcome(match.get("decision")))
            for match in matches
        ]

    async def patch_notes(self, region: int, map_id: int, locale: str | None = None) -> list[PatchNoteSection]:
        """Patch note sections of a map, newest first."""
        if locale:
            details = await self._api.get_map_details(region, map_id, locale)
        else:
            details = await self._api.get_map_details(region, map_id)
        sections = ((details.get("info") or {}).get("arcadeInfo") or {}).get("patchNoteSections") or []
        notes = [
            PatchNoteSection(
                title=section.get("title") or "",
                subtitle=section.get("subtitle") or "",
                items=[
                    item.strip()
                    for item in section.get("items") or []
                    if isinstance(item, str) and item.strip()
                ],
            )
            for section in sections
        ]
        notes.sort(key=lambda note: _subtitle_date(note.subtitle), reverse=True)
        return notes
