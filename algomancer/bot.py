import asyncio
import logging
import os

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from algomancer.achievements.engine import engine
from algomancer.database.db_manager import DBManager
from algomancer.utils.env import load_env

logger = logging.getLogger(__name__)

# /log, /achievements, /register and /profile
COGS = (
    'algomancer.cogs.game_logs_cog',
    'algomancer.cogs.achievements_cog',
    'algomancer.cogs.user_cog',
)


class AlgomancerTree(app_commands.CommandTree):
    '''Command tree that answers failed commands instead of leaving them hanging.'''

    async def on_error(self, interaction: Interaction, error: app_commands.AppCommandError):
        command = interaction.command.name if interaction.command else 'unknown'
        logger.error(
            f'/{command} failed for user {interaction.user.id}', exc_info=error
        )
        message = '❌ Something went wrong. Your games are safe, please try again.'
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)


class AlgomancerBot(commands.Bot):
    def __init__(self, guild_id: int):
        # Slash commands only; no message content or member list needed
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=discord.Intents.default(),
            tree_cls=AlgomancerTree,
        )
        self.guild = discord.Object(id=guild_id)

    async def setup_hook(self):
        for module in COGS:
            await self.load_extension(module)
            logger.info(f'Loaded {module}')

        # Seed the badge catalog before the first /log can award anything
        badge_ids = await asyncio.to_thread(engine.ensure_badges)
        logger.info(f'{len(badge_ids)} achievements ready')

        self.tree.copy_global_to(guild=self.guild)
        synced = await self.tree.sync(guild=self.guild)
        logger.info(f'Synced {len(synced)} commands to guild {self.guild.id}')

    async def on_ready(self):
        logger.info(f'Bot ready as {self.user}')


def guild_id_from_env() -> int:
    guild_id = os.getenv('GUILD_ID')
    if not guild_id or not guild_id.strip().isdigit():
        raise RuntimeError('GUILD_ID not set in environment or .env')
    return int(guild_id)


async def main():
    load_env()
    token = os.getenv('DISCORD_TOKEN')
    if not token:
        raise RuntimeError('DISCORD_TOKEN not set in environment or .env')

    bot = AlgomancerBot(guild_id_from_env())

    # Initialize the Postgres connection pool once for the process
    DBManager.init_pool()
    try:
        async with bot:
            await bot.start(token)
    except Exception:
        logger.error('Bot failed due to an exception', exc_info=True)
    finally:
        DBManager.close_pool()


if __name__ == '__main__':
    asyncio.run(main())
