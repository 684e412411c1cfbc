from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Optional, Protocol, Sequence, runtime_checkable

from algomancer.achievements.definitions import AchievementDefinition


@runtime_checkable
class GameLogSource(Protocol):
    '''Read-only queries over a user's game logs and decks.'''

    def count_metrics(self, user_id: int) -> dict[str, int]:
        '''
        Return total_logs, win_logs, constructed_logs, live_draft_logs,
        public_logs and mvp_logs for the user's unseeded logs.
        '''
        ...

    def element_rows(self, user_id: int) -> list[dict[str, Any]]:
        '''
        Return outcome, format, deck_id, external_deck_url and elements_played
        for each of the user's unseeded logs.
        '''
        ...

    def deck_elements(self, deck_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        '''Return deck id -> {'deck_elements': [...], 'card_ids': [...]}.'''
        ...

    def card_element_types(self, card_ids: Iterable[str]) -> dict[str, str]:
        ...

    def total_likes(self, user_id: int) -> int:
        ...

    def deck_counts_per_day(self, user_id: int) -> list[tuple[date, int]]:
        ...


@runtime_checkable
class AwardStore(Protocol):
    '''Badge catalog rows, per-user award records and the cached XP total.'''

    def upsert_badges(
        self, definitions: Sequence[AchievementDefinition]
    ) -> dict[str, int]:
        ...

    def badge_ids(self, keys: Iterable[str]) -> dict[str, int]:
        ...

    def awarded(self, user_id: int, badge_ids: Iterable[int]) -> dict[str, datetime]:
        '''Return achievement key -> awarded_at for existing awards.'''
        ...

    def insert_awards(
        self, user_id: int, badge_ids: Iterable[int], awarded_at: datetime
    ) -> list[int]:
        '''Insert awards, ignoring duplicates; return the badge ids inserted.'''
        ...

    def delete_awards(self, user_ids: Iterable[int], badge_ids: Iterable[int]) -> int:
        ...

    def get_achievement_xp(self, user_id: int) -> Optional[int]:
        ...

    def set_achievement_xp(self, user_id: int, xp: int) -> None:
        ...

    def reset_achievement_xp(self, user_ids: Iterable[int]) -> None:
        ...
