from typing import TYPE_CHECKING, Iterable, cast

from algomancer.database.db_manager import DBManager
from algomancer.models.base import BaseModel
from algomancer.utils.constants import ACHIEVEMENT_BADGE_TYPE

if TYPE_CHECKING:
    from algomancer.achievements.definitions import AchievementDefinition

UPSERT_SQL = '''
    INSERT INTO badges (type, key, title, description, icon, color)
    VALUES (%s, %s, %s, %s, %s, %s)
    ON CONFLICT (type, key) DO UPDATE SET
        title = EXCLUDED.title,
        description = EXCLUDED.description,
        icon = EXCLUDED.icon,
        color = EXCLUDED.color,
        updated_at = CURRENT_TIMESTAMP
    RETURNING id, key
'''


class Badge(BaseModel):
    table = 'badges'

    @classmethod
    def upsert_achievements(
        cls, definitions: Iterable['AchievementDefinition']
    ) -> dict[str, int]:
        '''Upsert catalog rows keyed by achievement key; returns key -> badge id.'''
        badge_ids: dict[str, int] = {}
        with DBManager() as db:
            for d in definitions:
                row = db.fetchone(
                    UPSERT_SQL,
                    (
                        ACHIEVEMENT_BADGE_TYPE,
                        d.key,
                        d.title,
                        d.description,
                        d.icon,
                        d.color,
                    ),
                )
                if row:
                    badge_ids[cast(str, row['key'])] = int(row['id'])
        return badge_ids

    @classmethod
    def ids_for_keys(cls, keys: Iterable[str]) -> dict[str, int]:
        wanted = list(keys)
        if not wanted:
            return {}
        with DBManager() as db:
            rows = db.fetchall(
                'SELECT id, key FROM badges WHERE type = %s AND key = ANY(%s)',
                (ACHIEVEMENT_BADGE_TYPE, wanted),
            )
        return {cast(str, r['key']): int(r['id']) for r in rows}
