from datetime import date
from typing import Any, Iterable, cast

from algomancer.database.db_manager import DBManager
from algomancer.models.base import BaseModel


class Deck(BaseModel):
    table = 'decks'

    @classmethod
    def elements_for(cls, deck_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        '''Batch-load precomputed elements (and card ids) for many decks.'''
        ids = sorted({d for d in deck_ids if d})
        if not ids:
            return {}
        with DBManager() as db:
            rows = db.fetchall(
                'SELECT id, deck_elements, card_ids FROM decks WHERE id = ANY(%s)',
                (ids,),
            )
        return {
            cast(str, r['id']): {
                'deck_elements': list(r.get('deck_elements') or []),
                'card_ids': list(r.get('card_ids') or []),
            }
            for r in rows
        }

    @classmethod
    def total_likes(cls, user_id: int) -> int:
        with DBManager() as db:
            row = db.fetchone(
                'SELECT COALESCE(SUM(likes), 0) AS total_likes '
                'FROM decks WHERE user_id = %s',
                (user_id,),
            )
        return int(row['total_likes']) if row and row.get('total_likes') else 0

    @classmethod
    def creation_counts_per_day(cls, user_id: int) -> list[tuple[date, int]]:
        '''Decks created per UTC calendar day, oldest first.'''
        with DBManager() as db:
            rows = db.fetchall(
                '''
                SELECT (created_at AT TIME ZONE 'UTC')::date AS day,
                       COUNT(*) AS count
                FROM decks
                WHERE user_id = %s
                GROUP BY 1
                ORDER BY 1
                ''',
                (user_id,),
            )
        return [(r['day'], int(r['count'])) for r in rows]
