from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from algomancer.utils.constants import DECK_CREATE_DAILY_XP_CAP, DECK_CREATE_XP, LIKE_XP


@dataclass(frozen=True)
class BonusXp:
    like_xp: int
    deck_xp: int

    @property
    def total(self) -> int:
        return self.like_xp + self.deck_xp


def _positive_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value) if value > 0 else 0


def max_decks_per_day(
    daily_cap: int = DECK_CREATE_DAILY_XP_CAP, deck_xp: int = DECK_CREATE_XP
) -> int:
    if daily_cap <= 0 or deck_xp <= 0:
        return 0
    return daily_cap // deck_xp


def calculate_like_xp(total_likes: Any, like_xp: int = LIKE_XP) -> int:
    if like_xp <= 0:
        return 0
    return _positive_int(total_likes) * like_xp


def calculate_deck_create_xp(
    deck_counts: Iterable[Any],
    deck_xp: int = DECK_CREATE_XP,
    daily_cap: int = DECK_CREATE_DAILY_XP_CAP,
) -> int:
    '''XP for deck creation, capped per calendar day.'''
    per_day = max_decks_per_day(daily_cap, deck_xp)
    if per_day <= 0:
        return 0
    return sum(min(_positive_int(c), per_day) * deck_xp for c in deck_counts or ())


def calculate_bonus_xp(
    total_likes: Any,
    deck_counts: Iterable[Any],
    like_xp: int = LIKE_XP,
    deck_xp: int = DECK_CREATE_XP,
    daily_cap: int = DECK_CREATE_DAILY_XP_CAP,
) -> BonusXp:
    return BonusXp(
        like_xp=calculate_like_xp(total_likes, like_xp),
        deck_xp=calculate_deck_create_xp(deck_counts, deck_xp, daily_cap),
    )
