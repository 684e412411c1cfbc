import contextlib
import itertools
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Iterator, Optional

import pytest


@dataclass
class FakeDB:
    fetchone_results: list[Any] = field(default_factory=list)
    fetchall_results: list[Any] = field(default_factory=list)
    execute_results: list[int] = field(default_factory=list)
    executed: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)
    last_query: str | None = None
    last_params: tuple[Any, ...] | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def fetchone(self, query: str, params=None):
        self.last_query = query
        self.last_params = tuple(params or ())
        self.queries.append(query)
        if self.fetchone_results:
            return self.fetchone_results.pop(0)

    def fetchall(self, query: str, params=None):
        self.last_query = query
        self.last_params = tuple(params or ())
        self.queries.append(query)
        if self.fetchall_results:
            return self.fetchall_results.pop(0)
        return []

    def execute(self, query: str, params=None) -> int:
        self.executed.append((query, tuple(params or ())))
        self.queries.append(query)
        if self.execute_results:
            return self.execute_results.pop(0)
        return 0


class FakeDBManager:
    def __init__(self, db: FakeDB):
        self._db = db

    def __call__(self):
        return self._db


@contextlib.contextmanager
def patched_dbmanager(monkeypatch, target_module, db: FakeDB) -> Iterator[FakeDB]:
    monkeypatch.setattr(target_module, 'DBManager', FakeDBManager(db))
    yield db


@pytest.fixture()
def fake_db() -> FakeDB:
    return FakeDB()


@pytest.fixture()
def clean_registry():
    from algomancer.achievements.registry import registry

    before = list(registry.all())
    registry._definitions.clear()  # type: ignore[attr-defined]
    try:
        yield registry
    finally:
        registry._definitions.clear()  # type: ignore[attr-defined]
        for d in before:
            registry.register(d)


def _has_mvp(log: dict[str, Any]) -> bool:
    if log.get('mvp_card_ids'):
        return True
    return any(o.get('mvpCardIds') for o in log.get('opponents') or [])


class InMemoryGameLogSource:
    '''Game logs, decks and cards held in dicts; counts batch lookups.'''

    def __init__(self) -> None:
        self.logs: list[dict[str, Any]] = []
        self.decks: dict[str, dict[str, Any]] = {}
        self.cards: dict[str, str] = {}
        self.deck_lookups: list[set[str]] = []
        self.card_lookups: list[set[str]] = []

    def add_log(self, user_id: int = 1, **values: Any) -> dict[str, Any]:
        log = {
            'user_id': user_id,
            'outcome': 'loss',
            'format': 'constructed',
            'is_public': False,
            'seed_tag': None,
            'deck_id': None,
            'external_deck_url': None,
            'elements_played': [],
            'mvp_card_ids': [],
            'opponents': [],
        }
        log.update(values)
        self.logs.append(log)
        return log

    def add_deck(
        self,
        deck_id: str,
        user_id: int = 1,
        deck_elements: Iterable[str] = (),
        card_ids: Iterable[str] = (),
        likes: int = 0,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.decks[deck_id] = {
            'user_id': user_id,
            'deck_elements': list(deck_elements),
            'card_ids': list(card_ids),
            'likes': likes,
            'created_at': created_at or datetime(2026, 1, 1, 12, tzinfo=timezone.utc),
        }

    def _user_logs(self, user_id: int) -> list[dict[str, Any]]:
        return [
            log
            for log in self.logs
            if log['user_id'] == user_id and log.get('seed_tag') is None
        ]

    def count_metrics(self, user_id: int) -> dict[str, int]:
        logs = self._user_logs(user_id)
        return {
            'total_logs': len(logs),
            'win_logs': sum(1 for log in logs if log['outcome'] == 'win'),
            'constructed_logs': sum(1 for log in logs if log['format'] == 'constructed'),
            'live_draft_logs': sum(1 for log in logs if log['format'] == 'live_draft'),
            'public_logs': sum(1 for log in logs if log['is_public']),
            'mvp_logs': sum(1 for log in logs if _has_mvp(log)),
        }

    def element_rows(self, user_id: int) -> list[dict[str, Any]]:
        keys = ('outcome', 'format', 'deck_id', 'external_deck_url', 'elements_played')
        return [{k: log.get(k) for k in keys} for log in self._user_logs(user_id)]

    def deck_elements(self, deck_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        ids = set(deck_ids)
        self.deck_lookups.append(ids)
        return {
            i: {
                'deck_elements': list(self.decks[i]['deck_elements']),
                'card_ids': list(self.decks[i]['card_ids']),
            }
            for i in ids
            if i in self.decks
        }

    def card_element_types(self, card_ids: Iterable[str]) -> dict[str, str]:
        ids = set(card_ids)
        self.card_lookups.append(ids)
        return {i: self.cards[i] for i in ids if i in self.cards}

    def total_likes(self, user_id: int) -> int:
        return sum(d['likes'] for d in self.decks.values() if d['user_id'] == user_id)

    def deck_counts_per_day(self, user_id: int) -> list[tuple[date, int]]:
        days: dict[date, int] = {}
        for d in self.decks.values():
            if d['user_id'] == user_id:
                day = d['created_at'].astimezone(timezone.utc).date()
                days[day] = days.get(day, 0) + 1
        return sorted(days.items())


class InMemoryAwardStore:
    '''Badges, user awards and cached XP; duplicate awards are ignored.'''

    def __init__(self, users: Iterable[int] = (1,)) -> None:
        self._ids = itertools.count(1)
        self.badges: dict[str, int] = {}
        self.awards: dict[tuple[int, int], datetime] = {}
        self.xp: dict[int, int] = {u: 0 for u in users}
        self.upsert_calls = 0
        self.xp_writes: list[tuple[int, int]] = []

    def upsert_badges(self, definitions) -> dict[str, int]:
        self.upsert_calls += 1
        for d in definitions:
            if d.key not in self.badges:
                self.badges[d.key] = next(self._ids)
        return dict(self.badges)

    def badge_ids(self, keys: Iterable[str]) -> dict[str, int]:
        return {k: self.badges[k] for k in keys if k in self.badges}

    def awarded(self, user_id: int, badge_ids: Iterable[int]) -> dict[str, datetime]:
        wanted = set(badge_ids)
        by_id = {v: k for k, v in self.badges.items()}
        return {
            by_id[b]: at
            for (u, b), at in self.awards.items()
            if u == user_id and b in wanted
        }

    def insert_awards(
        self, user_id: int, badge_ids: Iterable[int], awarded_at: datetime
    ) -> list[int]:
        inserted = []
        for b in badge_ids:
            if (user_id, b) not in self.awards:
                self.awards[(user_id, b)] = awarded_at
                inserted.append(b)
        return inserted

    def delete_awards(self, user_ids: Iterable[int], badge_ids: Iterable[int]) -> int:
        users, badges = set(user_ids), set(badge_ids)
        doomed = [k for k in self.awards if k[0] in users and k[1] in badges]
        for k in doomed:
            del self.awards[k]
        return len(doomed)

    def get_achievement_xp(self, user_id: int) -> Optional[int]:
        return self.xp.get(user_id)

    def set_achievement_xp(self, user_id: int, xp: int) -> None:
        self.xp_writes.append((user_id, xp))
        if user_id in self.xp:
            self.xp[user_id] = xp

    def reset_achievement_xp(self, user_ids: Iterable[int]) -> None:
        for u in user_ids:
            if u in self.xp:
                self.xp[u] = 0

    def keys_for(self, user_id: int) -> set[str]:
        return set(self.awarded(user_id, self.badges.values()))


@pytest.fixture()
def source() -> InMemoryGameLogSource:
    return InMemoryGameLogSource()


@pytest.fixture()
def store() -> InMemoryAwardStore:
    return InMemoryAwardStore(users=(1, 2))


@pytest.fixture()
def achievements_engine(source, store):
    from algomancer.achievements.engine import AchievementsEngine

    return AchievementsEngine(source=source, store=store)
