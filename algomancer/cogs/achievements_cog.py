import asyncio
import logging

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from algomancer.achievements.engine import engine
from algomancer.models.user import User
from algomancer.utils.embeds import add_chunked_fields, rank_field_value, status_line

logger = logging.getLogger(__name__)


class AchievementsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name='achievements', description='View your achievements')
    @app_commands.choices(
        show=[
            app_commands.Choice(name='Earned', value='earned'),
            app_commands.Choice(name='Locked', value='locked'),
            app_commands.Choice(name='All', value='all'),
        ]
    )
    async def achievements(
        self,
        interaction: Interaction,
        show: app_commands.Choice[str] | None = None,
    ):
        await interaction.response.defer(thinking=True, ephemeral=True)
        user_id = interaction.user.id
        # Ensure user exists
        await asyncio.to_thread(User.upsert_user, user_id, interaction.user.display_name)

        snapshot = await asyncio.to_thread(engine.snapshot, user_id)

        earned_lines = [status_line(s) for s in snapshot.achievements if s.unlocked]
        locked_lines = [status_line(s) for s in snapshot.achievements if not s.unlocked]

        mode = (show.value if show else 'earned').lower()

        embed = discord.Embed(
            title=f'Achievements for {interaction.user.display_name}',
            description=(
                f'{len(earned_lines)}/{len(snapshot.achievements)} unlocked\n'
                f'{rank_field_value(snapshot.achievement_xp)}'
            ),
            color=discord.Color.gold(),
        )

        if mode in ('earned', 'all'):
            if earned_lines:
                add_chunked_fields(embed, 'Earned', earned_lines)
            elif mode == 'earned':
                embed.add_field(
                    name='Earned', value='No achievements earned yet.', inline=False
                )

        if mode in ('locked', 'all'):
            if locked_lines:
                add_chunked_fields(embed, 'Locked', locked_lines)
            elif mode == 'locked':
                embed.add_field(
                    name='Locked', value='No locked achievements.', inline=False
                )

        await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(AchievementsCog(bot))
