from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

import algomancer.achievements  # noqa: F401 ensure catalog registers
from algomancer.achievements.bonus import BonusXp, calculate_bonus_xp
from algomancer.achievements.definitions import AchievementDefinition, meets_criteria
from algomancer.achievements.interface import AwardStore, GameLogSource
from algomancer.achievements.metrics import MetricsAggregator, MetricsSnapshot
from algomancer.achievements.registry import group_series, registry
from algomancer.achievements.stores import PostgresAwardStore, PostgresGameLogSource
from algomancer.utils.tracing import trace_span

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnlockedAchievement:
    definition: AchievementDefinition
    xp: int

    @property
    def key(self) -> str:
        return self.definition.key


@dataclass
class AwardResult:
    unlocked: list[UnlockedAchievement]
    achievement_xp: int
    previous_achievement_xp: int
    metrics: MetricsSnapshot
    earned_keys: frozenset[str] = frozenset()

    @property
    def xp_gained(self) -> int:
        return self.achievement_xp - self.previous_achievement_xp


@dataclass
class AchievementStatus:
    definition: AchievementDefinition
    unlocked: bool
    awarded_at: Optional[datetime] = None


@dataclass
class AchievementSnapshot:
    achievement_xp: int
    achievements: list[AchievementStatus]
    metrics: MetricsSnapshot


def resolve_unlocks(
    definitions: Sequence[AchievementDefinition],
    metrics: MetricsSnapshot,
    unlocked_keys: Iterable[str],
) -> tuple[set[str], list[AchievementDefinition]]:
    '''Work out which achievements the metrics entitle the user to.

    Returns (should_have_keys, newly_unlocked) where newly_unlocked keeps
    catalog order. Within a series every tier up to the highest qualifying
    threshold is granted, so jumping straight to tier 4 also grants 1-3.
    '''
    already = set(unlocked_keys)
    should_have: set[str] = set()

    for d in definitions:
        if not d.series_key and meets_criteria(d.criteria, metrics):
            should_have.add(d.key)

    for members in group_series(definitions).values():
        qualifying = [
            d.criteria.count for d in members if meets_criteria(d.criteria, metrics)
        ]
        if not qualifying:
            continue
        top = max(qualifying)
        should_have.update(d.key for d in members if d.criteria.count <= top)

    newly = [d for d in definitions if d.key in should_have and d.key not in already]
    return should_have, newly


def badge_xp(definitions: Iterable[AchievementDefinition], keys: Iterable[str]) -> int:
    owned = set(keys)
    return sum(d.xp for d in definitions if d.key in owned)


class AchievementsEngine:
    def __init__(
        self,
        source: Optional[GameLogSource] = None,
        store: Optional[AwardStore] = None,
        definitions: Optional[Sequence[AchievementDefinition]] = None,
    ) -> None:
        self.source = source or PostgresGameLogSource()
        self.store = store or PostgresAwardStore()
        self.aggregator = MetricsAggregator(self.source)
        self._definitions = list(definitions) if definitions is not None else None
        self._badge_ids: Optional[dict[str, int]] = None

    @property
    def definitions(self) -> list[AchievementDefinition]:
        if self._definitions is not None:
            return list(self._definitions)
        return registry.all()

    def ensure_badges(self, force: bool = False) -> dict[str, int]:
        '''Upsert the badge catalog once per process; returns key -> badge id.'''
        if self._badge_ids is None or force:
            self._badge_ids = self.store.upsert_badges(self.definitions)
            logger.info(f'Badge catalog ensured ({len(self._badge_ids)} achievements)')
        return dict(self._badge_ids)

    def _read_badge_ids(self) -> dict[str, int]:
        # dry runs must not write the catalog
        if self._badge_ids is not None:
            return dict(self._badge_ids)
        return self.store.badge_ids(d.key for d in self.definitions)

    def bonus_xp(self, metrics: MetricsSnapshot) -> BonusXp:
        return calculate_bonus_xp(metrics.total_likes, metrics.deck_counts_per_day)

    def _bonus_for_user(self, user_id: int) -> BonusXp:
        counts = [count for _, count in self.source.deck_counts_per_day(user_id)]
        return calculate_bonus_xp(self.source.total_likes(user_id), counts)

    def award(self, user_id: int, dry_run: bool = False) -> AwardResult:
        '''Grant newly earned achievements and recompute the cached XP total.

        With dry_run nothing is written; the result is what a real run
        would produce against the current history.
        '''
        with trace_span(
            'achievements.award', {'user_id': user_id, 'dry_run': dry_run}
        ) as span:
            definitions = self.definitions
            badge_ids = self._read_badge_ids() if dry_run else self.ensure_badges()

            awarded = self.store.awarded(user_id, badge_ids.values())
            previous_xp = self.store.get_achievement_xp(user_id) or 0

            metrics = self.aggregator.compute(user_id)
            _, newly = resolve_unlocks(definitions, metrics, awarded.keys())

            unlocked = newly
            if newly and not dry_run:
                unlocked = self._persist(user_id, newly, badge_ids)

            owned = set(awarded) | {d.key for d in newly}
            total_xp = badge_xp(definitions, owned) + self.bonus_xp(metrics).total
            if not dry_run:
                self.store.set_achievement_xp(user_id, total_xp)

            span.annotate(unlocked=len(unlocked), xp=total_xp)

        if unlocked:
            logger.info(
                f'user={user_id} unlocked {[d.key for d in unlocked]} '
                f'xp {previous_xp} -> {total_xp}'
            )
        return AwardResult(
            unlocked=[UnlockedAchievement(d, d.xp) for d in unlocked],
            achievement_xp=total_xp,
            previous_achievement_xp=previous_xp,
            metrics=metrics,
            earned_keys=frozenset(owned),
        )

    def _persist(
        self,
        user_id: int,
        newly: list[AchievementDefinition],
        badge_ids: dict[str, int],
    ) -> list[AchievementDefinition]:
        '''Insert award rows; returns the definitions this call actually awarded.'''
        with trace_span('achievements.persist', {'user_id': user_id}) as span:
            wanted = {badge_ids[d.key]: d for d in newly if d.key in badge_ids}
            inserted = set(
                self.store.insert_awards(
                    user_id, list(wanted), datetime.now(timezone.utc)
                )
            )
            skipped = len(wanted) - len(inserted)
            if skipped:
                # another evaluation got there first; those count as already awarded
                logger.info(f'user={user_id} skipped {skipped} duplicate awards')
            span.annotate(inserted=len(inserted))
        return [d for badge_id, d in wanted.items() if badge_id in inserted]

    def snapshot(self, user_id: int) -> AchievementSnapshot:
        '''Per-achievement unlock status; only repairs the cached XP if stale.'''
        with trace_span('achievements.snapshot', {'user_id': user_id}) as span:
            definitions = self.definitions
            badge_ids = self.ensure_badges()
            awarded = self.store.awarded(user_id, badge_ids.values())
            metrics = self.aggregator.compute(user_id)

            total_xp = badge_xp(definitions, awarded) + self.bonus_xp(metrics).total
            cached = self.store.get_achievement_xp(user_id)
            if cached != total_xp:
                logger.info(f'user={user_id} stale achievement xp {cached} -> {total_xp}')
                self.store.set_achievement_xp(user_id, total_xp)
            span.annotate(unlocked=len(awarded), xp=total_xp)

        return AchievementSnapshot(
            achievement_xp=total_xp,
            achievements=[
                AchievementStatus(
                    definition=d,
                    unlocked=d.key in awarded,
                    awarded_at=awarded.get(d.key),
                )
                for d in definitions
            ],
            metrics=metrics,
        )

    def refresh_user_xp(self, user_id: int) -> int:
        '''Recompute and persist the cached XP from stored awards and bonus sources.'''
        definitions = self.definitions
        badge_ids = self.ensure_badges()
        awarded = self.store.awarded(user_id, badge_ids.values())
        total_xp = badge_xp(definitions, awarded) + self._bonus_for_user(user_id).total
        self.store.set_achievement_xp(user_id, total_xp)
        return total_xp

    def reset(self, user_ids: Iterable[int]) -> int:
        '''Administrative reset: drop catalog awards and zero the cached XP.'''
        ids = list(user_ids)
        if not ids:
            return 0
        badge_ids = self.ensure_badges()
        deleted = self.store.delete_awards(ids, badge_ids.values())
        self.store.reset_achievement_xp(ids)
        logger.warning(f'Reset achievements for {len(ids)} users ({deleted} awards removed)')
        return deleted


engine = AchievementsEngine()
