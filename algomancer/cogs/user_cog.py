import asyncio

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from algomancer.achievements.engine import engine
from algomancer.models.user import User
from algomancer.utils.constants import BASIC_ELEMENTS
from algomancer.utils.embeds import rank_field_value


class UserCog(commands.Cog):
    '''Cog for handling user registration and profile display.'''

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(
        name='register',
        description="Register yourself if you're not already in the database",
    )
    async def register_user(self, interaction: Interaction):
        user_id = interaction.user.id
        if await asyncio.to_thread(User.exists, 'id = %s', (user_id,)):
            await interaction.response.send_message(
                f'✅ {interaction.user.mention}, you’re already registered!',
                ephemeral=True,
            )
            return

        await asyncio.to_thread(User.upsert_user, user_id, interaction.user.display_name)
        await interaction.response.send_message(
            f'🎉 {interaction.user.mention}, you’ve been registered successfully!',
            ephemeral=True,
        )

    @app_commands.command(
        name='profile', description="Show your profile or another member's profile"
    )
    @app_commands.describe(member='Optional: The member whose profile you want to view')
    async def show_profile(
        self, interaction: Interaction, member: discord.Member | None = None
    ):
        target = member or interaction.user
        profile = await asyncio.to_thread(User.get_profile, target.id)
        if not profile:
            await interaction.response.send_message(
                f'⚠️ {target.mention} isn’t registered yet.', ephemeral=True
            )
            return

        await interaction.response.defer(thinking=True, ephemeral=True)
        snapshot = await asyncio.to_thread(engine.snapshot, target.id)
        metrics = snapshot.metrics
        unlocked = sum(1 for s in snapshot.achievements if s.unlocked)

        embed = discord.Embed(
            title=f"{profile['display_name']}'s Profile",
            color=discord.Color.blurple(),
        )
        embed.add_field(name='Rank', value=rank_field_value(snapshot.achievement_xp), inline=False)
        embed.add_field(
            name='Achievements', value=f'{unlocked}/{len(snapshot.achievements)}'
        )
        embed.add_field(
            name='Games', value=f'{metrics.total_logs} logged, {metrics.win_logs} won'
        )
        elements = [
            f'{e}: {metrics.element_logs[e]:g}'
            for e in BASIC_ELEMENTS
            if metrics.element_logs.get(e)
        ]
        if elements:
            embed.add_field(name='Elements played', value='\n'.join(elements), inline=False)
        embed.set_footer(text=f"Last Updated: {profile['updated_at']}")

        await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot):
    await bot.add_cog(UserCog(bot))
