"""Main bot entry point."""
import logging

import discord
from discord import app_commands
from discord.ext import commands

import config
from bot.checks import FeaturesDisabled
from bot.cogs import arcade, handles, maps
from bot.models import init_db
from bot.services.arcade_api import ArcadeAPIService
from bot.services.classification_cache import CachePolicy, ClassificationCache
from bot.services.classifier import ClassifierClient
from bot.services.discord_embeds import error_message
from bot.services.feed import FeedAggregator
from bot.services.handle_registry import HandleRegistry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("arcade")

intents = discord.Intents.default()
intents.message_content = True  # Needed to read the number typed in reply to a /handle switch or unbind prompt


class ArcadeBot(commands.Bot):
    """SC2 arcade lobby Discord bot."""

    def __init__(self):
        super().__init__(command_prefix="!", intents=intents)
        self.arcade_api: ArcadeAPIService | None = None
        self.classifier: ClassifierClient | None = None
        self.cache: ClassificationCache | None = None
        self.registry: HandleRegistry | None = None
        self.feed: FeedAggregator | None = None

    async def on_ready(self) -> None:
        logger.info("Bot ready: %s (ID: %s)", self.user, self.user.id if self.user else "?")

    async def setup_hook(self) -> None:
        """Create services and register commands."""
        await init_db()
        self.arcade_api = ArcadeAPIService()
        self.classifier = ClassifierClient()
        policy = CachePolicy.from_config()
        self.cache = ClassificationCache(self.classifier, policy=policy, enabled=config.SENSITIVE_FILTER_ENABLED)
        self.registry = HandleRegistry(self.arcade_api)
        self.feed = FeedAggregator(self.arcade_api, self.cache)
        logger.info(
            "Name filter %s (ttl=%s, on_failure=%s); handle verification %s",
            "on" if self.cache.enabled else "off",
            policy.ttl,
            policy.on_failure.value,
            "on" if self.registry.verify_default else "off",
        )

        self.tree.add_command(handles.handle_group)
        self.tree.add_command(maps.map_group)
        self.tree.add_command(arcade.rooms)
        self.tree.add_command(arcade.history)
        self.tree.add_command(arcade.playerbase)
        self.tree.add_command(arcade.lobby)
        self.tree.add_command(arcade.matches)
        self.tree.add_command(arcade.mostplayed)
        self.tree.add_command(arcade.patchnotes)
        self.tree.add_command(arcade.sensitive)

        await self.tree.sync()
        logger.info("Commands synced")

        # Global error handler: always respond so Discord doesn't show "application did not respond"
        async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
            if isinstance(error, FeaturesDisabled):
                msg = f"⚠️ {error}"
            elif isinstance(error, app_commands.errors.CheckFailure):
                msg = "You don't have permission to use this command."
            else:
                logger.error("Command error: %s", error, exc_info=error)
                msg = error_message(getattr(error, "original", error))
            try:
                if interaction.response.is_done():
                    await interaction.followup.send(msg, ephemeral=True)
                else:
                    await interaction.response.send_message(msg, ephemeral=True)
            except discord.HTTPException:
                logger.warning("Could not report error to user")

        self.tree.on_error = on_app_command_error

    async def close(self) -> None:
        """Cleanup on shutdown."""
        if self.arcade_api:
            await self.arcade_api.close()
        if self.classifier:
            await self.classifier.close()
        await super().close()


def main() -> None:
    """Run the bot."""
    if not config.DISCORD_TOKEN:
        raise ValueError("DISCORD_TOKEN is required")

    bot = ArcadeBot()
    bot.run(config.DISCORD_TOKEN)


if __name__ == "__main__":
    main()
