from datetime import datetime
from typing import Any, Iterable, cast

from algomancer.database.db_manager import DBManager
from algomancer.models.base import BaseModel


class UserBadge(BaseModel):
    table = 'user_badges'

    @classmethod
    def awarded_for(
        cls, user_id: int, badge_ids: Iterable[int]
    ) -> list[dict[str, Any]]:
        '''Award rows for the given badges, with the badge key joined in.'''
        ids = list(badge_ids)
        if not ids:
            return []
        with DBManager() as db:
            rows = db.fetchall(
                '''
                SELECT b.key AS key, ub.badge_id AS badge_id, ub.awarded_at AS awarded_at
                FROM user_badges ub
                JOIN badges b ON b.id = ub.badge_id
                WHERE ub.user_id = %s AND ub.badge_id = ANY(%s)
                ''',
                (user_id, ids),
            )
        return cast(list[dict[str, Any]], rows)

    @classmethod
    def insert_awards(
        cls, user_id: int, badge_ids: Iterable[int], awarded_at: datetime
    ) -> list[int]:
        '''Insert awards, skipping rows that already exist.

        Conflicts are resolved per row, so a concurrent award of one badge
        does not stop the rest of the batch. Returns the badge ids inserted.
        '''
        ids = list(badge_ids)
        if not ids:
            return []
        with DBManager() as db:
            rows = db.fetchall(
                '''
                INSERT INTO user_badges (user_id, badge_id, awarded_at)
                SELECT %s, badge_id, %s FROM unnest(%s::bigint[]) AS badge_id
                ON CONFLICT (user_id, badge_id) DO NOTHING
                RETURNING badge_id
                ''',
                (user_id, awarded_at, ids),
            )
        return [int(r['badge_id']) for r in rows]

    @classmethod
    def delete_for_users(cls, user_ids: Iterable[int], badge_ids: Iterable[int]) -> int:
        users, badges = list(user_ids), list(badge_ids)
        if not users or not badges:
            return 0
        with DBManager() as db:
            return db.execute(
                'DELETE FROM user_badges WHERE user_id = ANY(%s) AND badge_id = ANY(%s)',
                (users, badges),
            )
