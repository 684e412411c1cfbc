from typing import Iterable, cast

from algomancer.database.db_manager import DBManager
from algomancer.models.base import BaseModel


class Card(BaseModel):
    table = 'cards'

    @classmethod
    def element_types(cls, card_ids: Iterable[str]) -> dict[str, str]:
        '''card id -> raw element type (possibly hybrid, e.g. "Fire/Water").'''
        ids = sorted({c for c in card_ids if c})
        if not ids:
            return {}
        with DBManager() as db:
            rows = db.fetchall(
                'SELECT id, element_type FROM cards WHERE id = ANY(%s)', (ids,)
            )
        return {
            cast(str, r['id']): r['element_type']
            for r in rows
            if isinstance(r.get('element_type'), str)
        }
