import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter

import discord
import pendulum
from discord import Interaction, app_commands
from discord.ext import commands

from algomancer.achievements.engine import engine
from algomancer.models.game_log import GameLog
from algomancer.models.user import User
from algomancer.utils.embeds import rank_up_line, unlocked_lines
from algomancer.utils.helper import parse_deck_reference, parse_element_list, rank_for_xp

logger = logging.getLogger(__name__)


def parse_played_at(value: str | None) -> datetime:
    '''Parse a user supplied date ("2026-01-14", "yesterday", ...) into UTC.'''
    if not value:
        return datetime.now(timezone.utc)
    parsed = pendulum.parse(value, strict=False)
    if not isinstance(parsed, datetime):
        raise ValueError(f'Could not parse date: {value}')
    return parsed.in_timezone('UTC')


class GameLogsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name='log', description='Log a game to earn achievements')
    @app_commands.describe(
        outcome='How the game ended',
        format='Constructed or live draft',
        title='Optional title for this game',
        deck='Constructed: your deck id or an Algomancer deck link',
        elements='Live draft: elements you played, e.g. "fire, water"',
        mvp_cards='Optional comma separated MVP card ids',
        public='Make this log visible to others',
        played_on='When the game was played i.e. YYYY-MM-DD (default: now)',
        notes='Optional notes',
    )
    @app_commands.choices(
        outcome=[
            app_commands.Choice(name='Win', value='win'),
            app_commands.Choice(name='Loss', value='loss'),
            app_commands.Choice(name='Draw', value='draw'),
        ],
        format=[
            app_commands.Choice(name='Constructed', value='constructed'),
            app_commands.Choice(name='Live Draft', value='live_draft'),
        ],
    )
    async def log(
        self,
        interaction: Interaction,
        outcome: app_commands.Choice[str],
        format: app_commands.Choice[str],
        title: str | None = None,
        deck: str | None = None,
        elements: str | None = None,
        mvp_cards: str | None = None,
        public: bool = False,
        played_on: str | None = None,
        notes: str | None = None,
    ):
        user_id = interaction.user.id
        t0 = perf_counter()

        try:
            played_at = parse_played_at(played_on)
            deck_id, deck_url = parse_deck_reference(deck)
        except Exception as e:
            logger.debug(f'Rejected /log input: {e}')
            await interaction.response.send_message(f'❌ {e}', ephemeral=True)
            return

        if format.value == 'constructed' and elements:
            await interaction.response.send_message(
                '❌ Elements are only recorded for live draft games; '
                'constructed games use the deck.',
                ephemeral=True,
            )
            return

        await interaction.response.defer(thinking=True)

        await asyncio.to_thread(User.upsert_user, user_id, interaction.user.display_name)
        before_xp = await asyncio.to_thread(User.get_achievement_xp, user_id) or 0

        await asyncio.to_thread(
            GameLog.insert,
            user_id=user_id,
            outcome=outcome.value,
            format=format.value,
            played_at=played_at,
            title=title or 'Untitled Game',
            is_public=public,
            deck_id=deck_id,
            external_deck_url=deck_url,
            elements_played=(
                parse_element_list(elements) if format.value == 'live_draft' else []
            ),
            mvp_card_ids=[c.strip() for c in (mvp_cards or '').split(',') if c.strip()],
            notes=notes,
        )
        t_insert = perf_counter()

        message = f'✅ Logged **{title or "Untitled Game"}**: {outcome.name} ({format.name})'

        # The game log is already saved; achievement problems must not undo that
        try:
            result = await asyncio.to_thread(engine.award, user_id)
            lines = unlocked_lines(result.unlocked)
            if lines:
                message += '\n' + '\n'.join(lines)
            old_rank, new_rank = rank_for_xp(before_xp), rank_for_xp(result.achievement_xp)
            if new_rank.min_xp > old_rank.min_xp:
                message += '\n' + rank_up_line(old_rank, new_rank)
        except Exception:
            logger.exception(f'Achievement evaluation failed for user {user_id}')

        logger.info(
            f'/log timings: total={perf_counter() - t0:.3f}s, '
            f'insert={t_insert - t0:.3f}s'
        )
        await interaction.followup.send(message, allowed_mentions=discord.AllowedMentions.none())


async def setup(bot: commands.Bot):
    await bot.add_cog(GameLogsCog(bot))
