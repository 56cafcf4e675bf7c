"""Maps cog - /map bind, unbind, show (bind/unbind Admin only)."""
from __future__ import annotations

import discord
from discord import app_commands

from bot.checks import admin_only, features_enabled
from bot.cogs.arcade import REGION_CHOICES
from bot.errors import ArcadeError
from bot.services.discord_embeds import error_message, region_label
from bot.services.map_bindings import bind_map, get_map_binding, unbind_map

map_group = app_commands.Group(name="map", description="Arcade map followed by this server", guild_only=True)


@map_group.command(name="bind", description="Bind an arcade map to this server (Admin only)")
@app_commands.describe(region="Region of the map", map_id="Arcade map ID")
@app_commands.choices(region=REGION_CHOICES)
@admin_only()
@features_enabled()
async def bind(interaction: discord.Interaction, region: app_commands.Choice[int], map_id: int) -> None:
    await interaction.response.defer(ephemeral=True)
    try:
        binding = await bind_map(str(interaction.guild_id), region.value, map_id)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e), ephemeral=True)
        return
    await interaction.followup.send(
        f"✅ This server now follows map {binding.map_id} {region_label(binding.region)}.", ephemeral=True
    )


@map_group.command(name="unbind", description="Unbind this server's arcade map (Admin only)")
@admin_only()
@features_enabled()
async def unbind(interaction: discord.Interaction) -> None:
    await interaction.response.defer(ephemeral=True)
    try:
        await unbind_map(str(interaction.guild_id))
    except ArcadeError as e:
        await interaction.followup.send(error_message(e), ephemeral=True)
        return
    await interaction.followup.send("✅ This server's arcade map has been unbound.", ephemeral=True)


@map_group.command(name="show", description="Show the arcade map this server follows")
@features_enabled()
async def show(interaction: discord.Interaction) -> None:
    try:
        binding = await get_map_binding(str(interaction.guild_id))
    except ArcadeError as e:
        await interaction.response.send_message(error_message(e), ephemeral=True)
        return
    await interaction.response.send_message(
        f"This server follows map {binding.map_id} {region_label(binding.region)}.", ephemeral=True
    )
