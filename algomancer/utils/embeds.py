from typing import TYPE_CHECKING, Iterable

import discord

from algomancer.achievements.definitions import rarity_label
from algomancer.utils.helper import Rank, progress_bar, rank_progress

if TYPE_CHECKING:
    from algomancer.achievements.engine import AchievementStatus, UnlockedAchievement


def chunk_lines(lines: list[str], max_len: int = 900) -> list[str]:
    '''Pack lines into blocks that fit an embed field value.'''
    chunks: list[str] = []
    cur: list[str] = []
    cur_len = 0
    for ln in lines:
        add_len = len(ln) + 1
        if cur_len + add_len > max_len and cur:
            chunks.append('\n'.join(cur))
            cur = []
            cur_len = 0
        cur.append(ln)
        cur_len += add_len
    if cur:
        chunks.append('\n'.join(cur))
    return chunks


def unlocked_lines(unlocked: Iterable['UnlockedAchievement']) -> list[str]:
    return [
        f'🏆 **{u.definition.title}** ({rarity_label(u.definition.rarity)}, +{u.xp} XP)'
        for u in unlocked
    ]


def status_line(status: 'AchievementStatus') -> str:
    d = status.definition
    label = f'{d.title} ({rarity_label(d.rarity)}, +{d.xp} XP)'
    if status.unlocked:
        when = (
            f' • {status.awarded_at.date().isoformat()}'
            if status.awarded_at is not None
            else ''
        )
        return f'🏆 {label}{when}\n_{d.description}_'
    return f'🔒 {label}\n_{d.description}_'


def add_chunked_fields(embed: discord.Embed, name: str, lines: list[str]) -> None:
    for idx, block in enumerate(chunk_lines(lines), start=1):
        embed.add_field(
            name=(name if idx == 1 else f'{name} (cont.)'), value=block, inline=False
        )


def rank_field_value(xp: int) -> str:
    progress = rank_progress(xp)
    if progress.next is None:
        return f'**{progress.current.name}** (max rank)\n{xp} XP'
    return (
        f'**{progress.current.name}** → {progress.next.name}\n'
        f'{progress_bar(progress.progress)} {xp}/{progress.next_xp} XP'
    )


def rank_up_line(old: Rank, new: Rank) -> str:
    return f'🏅 Rank up! {old.name} → {new.name}'
