from datetime import datetime
from typing import Any, Optional, Sequence, cast

from psycopg.types.json import Json

from algomancer.database.db_manager import DBManager
from algomancer.models.base import BaseModel

# Only unseeded logs count towards achievements
UNSEEDED = 'user_id = %s AND seed_tag IS NULL'

METRIC_COUNTS_SQL = f'''
    SELECT
        COUNT(*) AS total_logs,
        COUNT(*) FILTER (WHERE outcome = 'win') AS win_logs,
        COUNT(*) FILTER (WHERE format = 'constructed') AS constructed_logs,
        COUNT(*) FILTER (WHERE format = 'live_draft') AS live_draft_logs,
        COUNT(*) FILTER (WHERE is_public) AS public_logs,
        COUNT(*) FILTER (
            WHERE cardinality(mvp_card_ids) > 0
               OR opponents @? '$[*].mvpCardIds[0]'
        ) AS mvp_logs
    FROM game_logs
    WHERE {UNSEEDED}
'''

COUNT_KEYS = (
    'total_logs',
    'win_logs',
    'constructed_logs',
    'live_draft_logs',
    'public_logs',
    'mvp_logs',
)


class GameLog(BaseModel):
    table = 'game_logs'

    @classmethod
    def insert(
        cls,
        user_id: int,
        outcome: str,
        format: str,
        played_at: datetime,
        title: str = 'Untitled Game',
        is_public: bool = False,
        deck_id: Optional[str] = None,
        external_deck_url: Optional[str] = None,
        elements_played: Sequence[str] = (),
        mvp_card_ids: Sequence[str] = (),
        opponents: Sequence[dict[str, Any]] = (),
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        return cls.create(
            {
                'user_id': user_id,
                'title': title,
                'played_at': played_at,
                'outcome': outcome,
                'format': format,
                'is_public': is_public,
                'deck_id': deck_id,
                'external_deck_url': external_deck_url,
                'elements_played': list(elements_played),
                'mvp_card_ids': list(mvp_card_ids),
                'opponents': Json(list(opponents)),
                'notes': notes,
            }
        )

    @classmethod
    def count_metrics(cls, user_id: int) -> dict[str, int]:
        '''All count metrics for a user in one aggregate query.'''
        with DBManager() as db:
            row = db.fetchone(METRIC_COUNTS_SQL, (user_id,))
        row = row or {}
        return {k: int(row.get(k) or 0) for k in COUNT_KEYS}

    @classmethod
    def element_rows(cls, user_id: int) -> list[dict[str, Any]]:
        '''Projection used for per-element tallies.'''
        with DBManager() as db:
            rows = db.fetchall(
                'SELECT outcome, format, deck_id, external_deck_url, elements_played '
                f'FROM game_logs WHERE {UNSEEDED}',
                (user_id,),
            )
        return cast(list[dict[str, Any]], rows)
