"""Permission and feature checks for slash commands."""
from __future__ import annotations

import discord
from discord import app_commands

import config


class FeaturesDisabled(app_commands.CheckFailure):
    """Raised when lobby/match/leaderboard commands are switched off."""


def _get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Get Member from interaction."""
    if not interaction.guild:
        return None
    member = getattr(interaction, "member", None) or (
        interaction.user if isinstance(interaction.user, discord.Member) else None
    )
    return member


def _get_role_ids(member: discord.Member) -> set[int]:
    """Get member's role IDs, including raw _roles from the payload when the role cache is incomplete."""
    ids = set()
    raw = getattr(member, "_roles", None)
    if raw is not None:
        ids.update(int(r) for r in raw)
    for r in member.roles:
        ids.add(r.id)
    return ids


def _get_role_names(member: discord.Member) -> set[str]:
    """Get member's role names (lowercase)."""
    return {r.name.lower() for r in member.roles}


async def _get_member_with_roles(interaction: discord.Interaction) -> discord.Member | None:
    """Get Member with roles. Fetches via REST API if we have no role IDs."""
    member = _get_member(interaction)
    if not member or not interaction.guild:
        return None
    if len(_get_role_ids(member)) <= 1:  # Only @everyone or empty
        try:
            member = await interaction.guild.fetch_member(interaction.user.id)
        except discord.NotFound:
            return None
    return member


def admin_only():
    """Check that user has Admin role or is server admin."""

    async def predicate(interaction: discord.Interaction) -> bool:
        if interaction.user.id in config.ADMIN_USER_IDS:
            return True
        member = await _get_member_with_roles(interaction)
        if not member:
            return False
        if member.guild_permissions.administrator:
            return True
        role_ids = _get_role_ids(member)
        role_names = _get_role_names(member)
        return bool(role_ids & config.ADMIN_ROLE_IDS) or bool(role_names & config.ADMIN_ROLE_NAMES)

    return app_commands.check(predicate)


def features_enabled():
    """Check that FEATURES_ENABLED is on. Handle commands never use this check."""

    async def predicate(interaction: discord.Interaction) -> bool:
        if not config.FEATURES_ENABLED:
            raise FeaturesDisabled("This feature is not enabled. Please contact an administrator.")
        return True

    return app_commands.check(predicate)
