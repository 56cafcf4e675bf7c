"""Handles cog - /handle bind, list, switch, unbind, lookup. Always available."""
from __future__ import annotations

import asyncio
from typing import Optional

import discord
from discord import app_commands

from bot.errors import ArcadeError, NoHandles
from bot.services.discord_embeds import build_handles_embed, error_message, handle_list_lines
from bot.services.handle_registry import HANDLE_FORMAT, format_handle, parse_handle

PROMPT_TIMEOUT = 30


async def prompt_index(interaction: discord.Interaction, lines: list[str], action: str) -> int | None:
    """Ask the user to reply with a list number. None means timeout (cancelled)."""
    await interaction.followup.send(
        f"Choose the handle to {action}:\n" + "\n".join(lines) + f"\n\nReply with its number within {PROMPT_TIMEOUT} seconds.",
        ephemeral=True,
    )

    def check(message: discord.Message) -> bool:
        return message.author.id == interaction.user.id and message.channel.id == interaction.channel_id

    try:
        reply = await interaction.client.wait_for("message", check=check, timeout=PROMPT_TIMEOUT)
    except asyncio.TimeoutError:
        return None
    try:
        return int(reply.content.strip())
    except ValueError:
        return 0  # Rejected as out of range by the registry


handle_group = app_commands.Group(name="handle", description="Bind and manage your SC2 handles")


@handle_group.command(name="bind", description="Bind an SC2 handle")
@app_commands.describe(handle=f"Handle: {HANDLE_FORMAT}")
async def bind(interaction: discord.Interaction, handle: str) -> None:
    """Bind a handle. Your first handle becomes the active one."""
    await interaction.response.defer(ephemeral=True)
    registry = interaction.client.registry
    try:
        region, realm, profile = parse_handle(handle)
        bound = await registry.bind(str(interaction.user.id), region, realm, profile)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e), ephemeral=True)
        return

    note = " and set it as active" if bound.active else ""
    checked = " (verified)" if registry.verify_default else " (not verified)"
    await interaction.followup.send(f"✅ Bound {format_handle(bound)}{note}{checked}.", ephemeral=True)


@handle_group.command(name="list", description="Show bound handles")
@app_commands.describe(user="User to show (default: you)")
async def list_cmd(interaction: discord.Interaction, user: Optional[discord.Member] = None) -> None:
    """List handles in binding order. The numbers are what /handle switch and /handle unbind take."""
    await interaction.response.defer(ephemeral=user is None)
    target = user or interaction.user
    handles = await interaction.client.registry.list_handles(str(target.id))
    if not handles:
        await interaction.followup.send(
            f"{target.mention} has no handles bound." if user else "You have no handles bound.",
            ephemeral=user is None,
        )
        return
    title = f"Handles — {target.display_name}"
    await interaction.followup.send(embed=build_handles_embed(handles, title), ephemeral=user is None)


@handle_group.command(name="switch", description="Switch your active handle")
@app_commands.describe(index="Number from /handle list (omit to choose interactively)")
async def switch(interaction: discord.Interaction, index: Optional[int] = None) -> None:
    await interaction.response.defer(ephemeral=True)
    registry = interaction.client.registry
    owner_id = str(interaction.user.id)
    try:
        if index is None:
            handles = await registry.list_handles(owner_id)
            if not handles:
                raise NoHandles(owner_id)
            index = await prompt_index(interaction, handle_list_lines(handles), "switch to")
            if index is None:
                await interaction.followup.send("Cancelled.", ephemeral=True)
                return
        selected = await registry.switch(owner_id, index)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e), ephemeral=True)
        return
    await interaction.followup.send(f"✅ Switched to {format_handle(selected)}.", ephemeral=True)


@handle_group.command(name="unbind", description="Unbind one of your handles")
@app_commands.describe(index="Number from /handle list (omit to choose interactively)")
async def unbind(interaction: discord.Interaction, index: Optional[int] = None) -> None:
    await interaction.response.defer(ephemeral=True)
    registry = interaction.client.registry
    owner_id = str(interaction.user.id)
    try:
        if index is None:
            handles = await registry.list_handles(owner_id)
            if not handles:
                raise NoHandles(owner_id)
            index = await prompt_index(interaction, handle_list_lines(handles), "unbind")
            if index is None:
                await interaction.followup.send("Cancelled.", ephemeral=True)
                return
        result = await registry.unbind(owner_id, index)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e), ephemeral=True)
        return

    msg = f"✅ Unbound {format_handle(result.removed)}."
    if result.promoted:
        msg += f" Now using {format_handle(result.promoted)}."
    await interaction.followup.send(msg, ephemeral=True)


@handle_group.command(name="lookup", description="Check whether a handle is already bound")
@app_commands.describe(handle=f"Handle: {HANDLE_FORMAT}")
async def lookup(interaction: discord.Interaction, handle: str) -> None:
    await interaction.response.defer(ephemeral=True)
    try:
        region, realm, profile = parse_handle(handle)
    except ArcadeError as e:
        await interaction.followup.send(error_message(e), ephemeral=True)
        return
    owner_id = await interaction.client.registry.lookup(region, realm, profile)
    if owner_id:
        await interaction.followup.send(f"That handle is bound by <@{owner_id}>.", ephemeral=True)
    else:
        await interaction.followup.send("That handle is not bound by anyone yet.", ephemeral=True)
