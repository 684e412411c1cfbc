from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from algomancer.achievements.definitions import AchievementDefinition
from algomancer.models.badge import Badge
from algomancer.models.card import Card
from algomancer.models.deck import Deck
from algomancer.models.game_log import GameLog
from algomancer.models.user import User
from algomancer.models.user_badge import UserBadge


class PostgresGameLogSource:
    def count_metrics(self, user_id: int) -> dict[str, int]:
        return GameLog.count_metrics(user_id)

    def element_rows(self, user_id: int) -> list[dict[str, Any]]:
        return GameLog.element_rows(user_id)

    def deck_elements(self, deck_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        return Deck.elements_for(deck_ids)

    def card_element_types(self, card_ids: Iterable[str]) -> dict[str, str]:
        return Card.element_types(card_ids)

    def total_likes(self, user_id: int) -> int:
        return Deck.total_likes(user_id)

    def deck_counts_per_day(self, user_id: int) -> list[tuple[date, int]]:
        return Deck.creation_counts_per_day(user_id)


class PostgresAwardStore:
    def upsert_badges(
        self, definitions: Sequence[AchievementDefinition]
    ) -> dict[str, int]:
        return Badge.upsert_achievements(definitions)

    def badge_ids(self, keys: Iterable[str]) -> dict[str, int]:
        return Badge.ids_for_keys(keys)

    def awarded(self, user_id: int, badge_ids: Iterable[int]) -> dict[str, datetime]:
        return {
            row['key']: row['awarded_at']
            for row in UserBadge.awarded_for(user_id, badge_ids)
        }

    def insert_awards(
        self, user_id: int, badge_ids: Iterable[int], awarded_at: datetime
    ) -> list[int]:
        return UserBadge.insert_awards(user_id, badge_ids, awarded_at)

    def delete_awards(self, user_ids: Iterable[int], badge_ids: Iterable[int]) -> int:
        return UserBadge.delete_for_users(user_ids, badge_ids)

    def get_achievement_xp(self, user_id: int) -> Optional[int]:
        return User.get_achievement_xp(user_id)

    def set_achievement_xp(self, user_id: int, xp: int) -> None:
        User.set_achievement_xp(user_id, xp)

    def reset_achievement_xp(self, user_ids: Iterable[int]) -> None:
        User.reset_achievement_xp(user_ids)
