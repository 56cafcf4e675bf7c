"""Arcade cog - lobby rooms, room history, match history and leaderboards."""
from __future__ import annotations

from typing import Optional

import discord
from discord import app_commands

import config
from bot.checks import admin_only, features_enabled
from bot.errors import ArcadeError
from bot.models import REGION_NAMES
from bot.services.discord_embeds import (
    build_active_lobbies_embed,
    chunk_lines,
    error_message,
    match_history_lines,
    most_played_lines,
    patch_note_lines,
    player_base_lines,
    room_history_messages,
)
from bot.services.feed import LobbyPhase
from bot.services.map_bindings import get_map_binding

REGION_CHOICES = [app_commands.Choice(name=name, value=code) for code, name in REGION_NAMES.items()]


async def _send_lines(interaction: discord.Interaction, header: str, lines: list[str], empty: str) -> None:
    if not lines:
        await interaction.followup.send(empty)
        return
    for chunk in chunk_lines([header, *lines]):
        await interaction.followup.send(chunk)


async def _room_history(interaction: discord.Interaction, phase: LobbyPhase) -> None:
    if not interaction.guild_id:
        await interaction.response.send_message("This command can only be used in a server.", ephemeral=True)
        return
    await interaction.response.defer()
    try:
        binding = await get_map_binding(str(interaction.guild_id))
        rooms = await interaction.client.feed.lobby_history(binding.region, binding.map_id, phase)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e))
        return
    for message in room_history_messages(rooms, started=phase is LobbyPhase.STARTED):
        await interaction.followup.send(message)


@app_commands.command(description="Show rooms waiting on this server's map")
@features_enabled()
async def rooms(interaction: discord.Interaction) -> None:
    await _room_history(interaction, LobbyPhase.OPEN)


@app_commands.command(description="Show recently started rooms on this server's map")
@features_enabled()
async def history(interaction: discord.Interaction) -> None:
    await _room_history(interaction, LobbyPhase.STARTED)


@app_commands.command(description="Show players of this server's map by games played")
@features_enabled()
async def playerbase(interaction: discord.Interaction) -> None:
    if not interaction.guild_id:
        await interaction.response.send_message("This command can only be used in a server.", ephemeral=True)
        return
    await interaction.response.defer()
    try:
        binding = await get_map_binding(str(interaction.guild_id))
        players = await interaction.client.feed.player_base(binding.region, binding.map_id)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e))
        return
    await _send_lines(interaction, "Games played on this map:", player_base_lines(players), "📭 No games recorded for this map.")


@app_commands.command(description="Show rooms waiting in a region's lobby")
@app_commands.describe(region="Region")
@app_commands.choices(region=REGION_CHOICES)
@features_enabled()
async def lobby(interaction: discord.Interaction, region: app_commands.Choice[int]) -> None:
    await interaction.response.defer()
    try:
        lobbies = await interaction.client.feed.active_lobbies(region.value)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e))
        return
    await interaction.followup.send(embed=build_active_lobbies_embed(lobbies, region.value))


async def _active_handle_for(interaction: discord.Interaction, user: Optional[discord.Member]):
    target = user or interaction.user
    return await interaction.client.registry.active_handle(str(target.id))


@app_commands.command(description="Show recent matches of your (or a user's) active handle")
@app_commands.describe(user="User to check (default: you)")
@features_enabled()
async def matches(interaction: discord.Interaction, user: Optional[discord.Member] = None) -> None:
    await interaction.response.defer()
    try:
        handle = await _active_handle_for(interaction, user)
        records = await interaction.client.feed.match_history(handle.region, handle.realm, handle.profile)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e))
        return
    await _send_lines(interaction, "Match history:", match_history_lines(records), "📭 No matches found for this handle.")


@app_commands.command(description="Show the maps your (or a user's) active handle played most")
@app_commands.describe(user="User to check (default: you)")
@features_enabled()
async def mostplayed(interaction: discord.Interaction, user: Optional[discord.Member] = None) -> None:
    await interaction.response.defer()
    try:
        handle = await _active_handle_for(interaction, user)
        counts = await interaction.client.feed.most_played(handle.region, handle.realm, handle.profile)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e))
        return
    await _send_lines(interaction, "Most played maps:", most_played_lines(counts), "📭 No games found for this handle.")


@app_commands.command(description="Show the patch notes of this server's map")
@features_enabled()
async def patchnotes(interaction: discord.Interaction) -> None:
    if not interaction.guild_id:
        await interaction.response.send_message("This command can only be used in a server.", ephemeral=True)
        return
    await interaction.response.defer()
    try:
        binding = await get_map_binding(str(interaction.guild_id))
        notes = await interaction.client.feed.patch_notes(binding.region, binding.map_id, config.PATCH_NOTES_LOCALE)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e))
        return
    if not notes:
        await interaction.followup.send("No patch notes yet.")
        return
    for chunk in chunk_lines(patch_note_lines(notes)):
        await interaction.followup.send(chunk)


@app_commands.command(description="Check a text against the sensitive-word filter (Admin only)")
@app_commands.describe(text="Text to check")
@admin_only()
@features_enabled()
async def sensitive(interaction: discord.Interaction, text: str) -> None:
    await interaction.response.defer(ephemeral=True)
    is_sensitive = await interaction.client.cache.classify(text)
    verdict = "❌ contains sensitive words" if is_sensitive else "✅ clean"
    await interaction.followup.send(f"Result: {verdict}\nText: {text}", ephemeral=True)
