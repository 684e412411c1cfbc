from typing import Any, Iterable, Optional, cast

from algomancer.database.db_manager import DBManager
from algomancer.models.base import BaseModel


class User(BaseModel):
    table = 'users'
    pk = 'id'

    @classmethod
    def upsert_user(cls, user_id: int, display_name: str) -> dict[str, Any]:
        return cls.upsert(('id',), {'id': user_id, 'display_name': display_name})

    @classmethod
    def get_profile(cls, user_id: int) -> Optional[dict[str, Any]]:
        with DBManager() as db:
            row = db.fetchone(
                'SELECT id, display_name, email, achievement_xp, updated_at '
                'FROM users WHERE id = %s',
                (user_id,),
            )
        return cast(Optional[dict[str, Any]], row)

    @classmethod
    def get_achievement_xp(cls, user_id: int) -> Optional[int]:
        '''Cached XP, or None when the user row does not exist.'''
        with DBManager() as db:
            row = db.fetchone(
                'SELECT achievement_xp FROM users WHERE id = %s', (user_id,)
            )
        if row is None:
            return None
        value = row.get('achievement_xp')
        return int(value) if isinstance(value, int) else 0

    @classmethod
    def set_achievement_xp(cls, user_id: int, xp: int) -> None:
        with DBManager() as db:
            db.execute(
                'UPDATE users '
                'SET achievement_xp = %s, updated_at = CURRENT_TIMESTAMP '
                'WHERE id = %s',
                (int(xp), user_id),
            )

    @classmethod
    def reset_achievement_xp(cls, user_ids: Iterable[int]) -> None:
        ids = list(user_ids)
        if not ids:
            return
        with DBManager() as db:
            db.execute(
                'UPDATE users '
                'SET achievement_xp = 0, updated_at = CURRENT_TIMESTAMP '
                'WHERE id = ANY(%s)',
                (ids,),
            )

    @classmethod
    def select_for_backfill(
        cls, email: Optional[str] = None, user_id: Optional[int] = None
    ) -> list[dict[str, Any]]:
        where, params = '', ()
        if email is not None:
            where, params = 'email = %s', (email,)
        elif user_id is not None:
            where, params = 'id = %s', (user_id,)
        query = 'SELECT id, email, display_name FROM users'
        if where:
            query += f' WHERE {where}'
        with DBManager() as db:
            rows = db.fetchall(query + ' ORDER BY id', params)
        return cast(list[dict[str, Any]], rows)
