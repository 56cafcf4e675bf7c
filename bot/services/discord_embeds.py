"""Discord embeds and messages for handle, lobby and leaderboard results."""
from __future__ import annotations

import discord

from bot import errors
from bot.models import REGION_NAMES, Handle
from bot.services.feed import (
    ActiveLobby,
    MapPlayCount,
    MatchOutcome,
    MatchRecord,
    PatchNoteSection,
    PlayerPlayCount,
    RoomSummary,
)
from bot.services.handle_registry import HANDLE_FORMAT, format_handle

GENERIC_ERROR = "⚠️ The service is busy, please try again later."
UPSTREAM_ERROR = "⚠️ The arcade API is unavailable, please try again later."

OUTCOME_LABELS = {
    MatchOutcome.LEFT: "🚶 Left",
    MatchOutcome.WIN: "🎉 Win",
    MatchOutcome.LOSS: "😞 Loss",
    MatchOutcome.TIE: "🤝 Tie",
}

# Discord caps message content at 2000 characters
MESSAGE_LIMIT = 1900


def error_message(error: Exception) -> str:
    """Short user-facing text for an error. Anything unexpected gets the generic message."""
    if isinstance(error, errors.AlreadyBoundToOther):
        return "❌ That handle is already bound by another user."
    if isinstance(error, errors.AlreadyBoundToSelf):
        return "❌ You have already bound that handle."
    if isinstance(error, errors.ProfileNotFound):
        return "❌ That handle does not exist."
    if isinstance(error, errors.MapNotBound):
        return "This server has no arcade map bound. Ask an admin to use `/map bind`."
    if isinstance(error, errors.IndexOutOfRange):
        return f"❌ Invalid number, pick one between 1 and {error.count}."
    if isinstance(error, errors.InvalidHandle):
        return f"❌ Invalid handle. Format: {HANDLE_FORMAT}"
    if isinstance(error, errors.InvalidRegion):
        names = ", ".join(REGION_NAMES.values())
        return f"❌ Invalid region. Available regions: {names}"
    if isinstance(error, errors.InvalidMap):
        return "❌ Invalid map ID."
    if isinstance(error, errors.NoActiveHandle):
        return "No handle bound, or no active handle set."
    if isinstance(error, errors.NoHandles):
        return "No handles bound yet. Use `/handle bind` first."
    if isinstance(error, errors.UpstreamUnavailable):
        return UPSTREAM_ERROR
    return GENERIC_ERROR


def region_label(region: int) -> str:
    return f"[{REGION_NAMES.get(region, region)}]"


def chunk_lines(lines: list[str], limit: int = MESSAGE_LIMIT) -> list[str]:
    """Join lines into as few messages as fit under ``limit`` characters each."""
    chunks: list[str] = []
    current: list[str] = []
    size = 0
    for line in lines:
        if current and size + len(line) + 1 > limit:
            chunks.append("\n".join(current))
            current, size = [], 0
        current.append(line)
        size += len(line) + 1
    if current:
        chunks.append("\n".join(current))
    return chunks


def handle_list_lines(handles: list[Handle]) -> list[str]:
    return [
        f"{i}. {format_handle(h)}{' (active)' if h.active else ''}"
        for i, h in enumerate(handles, 1)
    ]


def build_handles_embed(handles: list[Handle], title: str) -> discord.Embed:
    return discord.Embed(
        title=title,
        description="\n".join(handle_list_lines(handles)),
        color=discord.Color.blue(),
    )


def build_active_lobbies_embed(lobbies: list[ActiveLobby], region: int) -> discord.Embed:
    label = region_label(region)
    if not lobbies:
        return discord.Embed(description=f"🚪 No rooms in the {label} lobby right now.", color=discord.Color.light_grey())
    lines = [
        f"{i}. {lobby.map_name} — {lobby.humans_taken}/{lobby.humans_total}"
        for i, lobby in enumerate(lobbies, 1)
    ]
    return discord.Embed(title=f"{label} Lobby", description="\n".join(lines), color=discord.Color.green())


def format_room(index: int, room: RoomSummary) -> str:
    lines = [f"🚪 Room {index}: {room.humans_taken}/{room.humans_total}"]
    if room.created_at:
        lines.append(f"Created: {room.created_at.astimezone().strftime('%Y/%m/%d %H:%M:%S')}")
    lines += [f"  {slot.slot_number}. {slot.name}" for slot in room.slots]
    return "\n".join(lines)


def room_history_messages(rooms: list[RoomSummary], started: bool) -> list[str]:
    if not rooms:
        return ["🚪 No past rooms for this map." if started else "🚪 No rooms waiting on this map."]
    blocks = [format_room(i, room) for i, room in enumerate(rooms, 1)]
    return chunk_lines("\n\n".join(blocks).split("\n"))


def match_history_lines(matches: list[MatchRecord]) -> list[str]:
    return [
        f"{i}. {m.map_name} — {OUTCOME_LABELS.get(m.outcome, m.outcome)}"
        for i, m in enumerate(matches, 1)
    ]


def most_played_lines(counts: list[MapPlayCount]) -> list[str]:
    return [f"{i}. {c.map_name} — {c.lobbies_started} games" for i, c in enumerate(counts, 1)]


def player_base_lines(players: list[PlayerPlayCount]) -> list[str]:
    return [f"{i}. {p.player_name} — {p.lobbies_started} games" for i, p in enumerate(players, 1)]


def patch_note_lines(notes: list[PatchNoteSection]) -> list[str]:
    lines = ["🚀 Latest patch notes:", ""]
    for note in notes:
        lines.append(f"▛ {note.title} - {note.subtitle} ▜")
        lines += note.items
        lines.append("")
    while lines and lines[-1] == "":
        lines.pop()
    return lines
