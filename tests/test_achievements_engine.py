from datetime import datetime, timezone

from algomancer.achievements.definitions import xp_for_rarity
from algomancer.achievements.engine import AchievementsEngine, badge_xp, resolve_unlocks
from algomancer.achievements.metrics import MetricsSnapshot
from algomancer.achievements.registry import registry

FIRE_DECK = 'a' * 24


def _keys(result) -> set[str]:
    return {u.key for u in result.unlocked}


def test_fresh_user_unlocks_nothing(achievements_engine, store):
    result = achievements_engine.award(1)

    assert result.unlocked == []
    assert result.achievement_xp == 0
    assert store.xp[1] == 0


def test_single_constructed_fire_win_scores_sixty(achievements_engine, source, store):
    # deck owned by someone else so no deck creation bonus applies
    source.add_deck(FIRE_DECK, user_id=2, deck_elements=['Fire'])
    source.add_log(1, outcome='win', format='constructed', deck_id=FIRE_DECK)

    result = achievements_engine.award(1)

    assert _keys(result) == {'first_log', 'constructed_debut', 'first_win'}
    assert 'fire_played_5' not in result.earned_keys
    assert result.metrics.element_logs['Fire'] == 1.0
    assert result.achievement_xp == 60
    assert result.previous_achievement_xp == 0
    assert result.xp_gained == 60
    assert store.xp[1] == 60


def test_second_award_is_idempotent(achievements_engine, source, store):
    source.add_log(1, outcome='win', format='live_draft', elements_played=['Water'])

    first = achievements_engine.award(1)
    second = achievements_engine.award(1)

    assert first.unlocked
    assert second.unlocked == []
    assert second.achievement_xp == first.achievement_xp
    assert second.earned_keys == first.earned_keys


def test_jumping_past_lower_tiers_grants_whole_chain(achievements_engine, source):
    for _ in range(50):
        source.add_log(1, outcome='win', format='live_draft')

    result = achievements_engine.award(1)

    keys = _keys(result)
    assert {'wins_5', 'wins_10', 'wins_25', 'wins_50'} <= keys
    assert {'logs_5', 'logs_10', 'logs_25', 'logs_50'} <= keys


def test_partial_chain_stops_at_highest_qualifying_tier(achievements_engine, source):
    for _ in range(12):
        source.add_log(1, outcome='loss', format='live_draft', elements_played=['Earth'])

    keys = achievements_engine.award(1).earned_keys

    assert {'logs_5', 'logs_10', 'earth_played_5', 'earth_played_10'} <= keys
    assert 'logs_25' not in keys
    assert 'earth_played_25' not in keys
    assert 'earth_wins_5' not in keys


def test_xp_never_decreases_as_logs_arrive(achievements_engine, source):
    previous = 0
    for i in range(30):
        source.add_log(
            1,
            outcome='win' if i % 3 == 0 else 'loss',
            format='live_draft' if i % 2 else 'constructed',
            elements_played=['Fire', 'Metal'] if i % 2 else [],
            is_public=i == 7,
        )
        result = achievements_engine.award(1)
        assert result.achievement_xp >= previous
        assert result.previous_achievement_xp == previous
        previous = result.achievement_xp


def test_cached_xp_matches_awards_plus_bonus(achievements_engine, source, store):
    day = datetime(2026, 2, 1, 9, tzinfo=timezone.utc)
    for i in range(7):
        source.add_deck(f'{i:024x}', user_id=1, likes=2, created_at=day)
    source.add_log(1, outcome='draw', format='live_draft', mvp_card_ids=['c1'])

    result = achievements_engine.award(1)

    # 14 likes * 5 + min(7, 5) decks * 10
    bonus = 14 * 5 + 5 * 10
    owned = store.keys_for(1)
    assert owned == set(result.earned_keys)
    assert store.xp[1] == badge_xp(registry.all(), owned) + bonus
    assert result.achievement_xp == store.xp[1]


def test_xp_is_overwritten_not_incremented(achievements_engine, source, store):
    source.add_log(1, outcome='win', format='constructed')
    store.xp[1] = 9999

    result = achievements_engine.award(1)

    assert result.previous_achievement_xp == 9999
    assert store.xp[1] == xp_for_rarity('rare') + xp_for_rarity('common') + xp_for_rarity('epic')


def test_awards_are_never_revoked(achievements_engine, source, store):
    log = source.add_log(1, outcome='win', format='live_draft')
    achievements_engine.award(1)

    source.logs.remove(log)
    result = achievements_engine.award(1)

    assert result.unlocked == []
    assert {'first_log', 'first_win', 'draft_debut'} <= result.earned_keys
    assert store.xp[1] == result.achievement_xp > 0


def test_seeded_logs_are_ignored(achievements_engine, source):
    source.add_log(1, outcome='win', format='live_draft', seed_tag='demo')

    result = achievements_engine.award(1)

    assert result.unlocked == []
    assert result.metrics.total_logs == 0


def test_badge_catalog_is_upserted_once_per_engine(achievements_engine, source, store):
    source.add_log(1)
    achievements_engine.award(1)
    achievements_engine.award(1)
    achievements_engine.snapshot(1)

    assert store.upsert_calls == 1

    achievements_engine.ensure_badges(force=True)
    assert store.upsert_calls == 2


def test_dry_run_writes_nothing(source, store):
    engine = AchievementsEngine(source=source, store=store)
    source.add_log(1, outcome='win', format='constructed')

    result = engine.award(1, dry_run=True)

    assert _keys(result) == {'first_log', 'constructed_debut', 'first_win'}
    assert result.achievement_xp == 60
    assert store.upsert_calls == 0
    assert store.awards == {}
    assert store.xp_writes == []


def test_dry_run_agrees_with_online_award(source, store):
    for i in range(11):
        source.add_log(
            1,
            outcome='win' if i % 2 else 'loss',
            format='live_draft',
            elements_played=['Wood'] if i < 6 else ['Wood', 'Fire', 'Water'],
        )
    source.add_deck(FIRE_DECK, user_id=1, likes=3)

    preview = AchievementsEngine(source=source, store=store).award(1, dry_run=True)
    actual = AchievementsEngine(source=source, store=store).award(1)

    assert preview.earned_keys == actual.earned_keys
    assert _keys(preview) == _keys(actual)
    assert preview.achievement_xp == actual.achievement_xp


def test_concurrent_duplicate_counts_as_already_awarded(source, store):
    class RacingStore(type(store)):
        def insert_awards(self, user_id, badge_ids, awarded_at):
            ids = list(badge_ids)
            # another evaluation inserted the first badge a moment earlier
            self.awards[(user_id, ids[0])] = awarded_at
            return super().insert_awards(user_id, ids, awarded_at)

    racing = RacingStore(users=(1,))
    engine = AchievementsEngine(source=source, store=racing)
    source.add_log(1, outcome='win', format='constructed')

    result = engine.award(1)

    assert len(result.unlocked) == 2
    assert len(result.earned_keys) == 3
    assert result.achievement_xp == 60


def test_snapshot_only_writes_stale_xp(achievements_engine, source, store):
    source.add_log(1, outcome='win', format='constructed')
    achievements_engine.award(1)
    writes = len(store.xp_writes)

    snap = achievements_engine.snapshot(1)
    assert snap.achievement_xp == 60
    assert len(store.xp_writes) == writes

    store.xp[1] = 5
    snap = achievements_engine.snapshot(1)
    assert store.xp[1] == 60
    assert len(store.xp_writes) == writes + 1

    unlocked = {s.definition.key for s in snap.achievements if s.unlocked}
    assert unlocked == {'first_log', 'constructed_debut', 'first_win'}
    assert len(snap.achievements) == len(registry.all())
    assert all(s.awarded_at is not None for s in snap.achievements if s.unlocked)


def test_snapshot_does_not_award(achievements_engine, source, store):
    source.add_log(1, outcome='win', format='constructed')

    snap = achievements_engine.snapshot(1)

    assert not any(s.unlocked for s in snap.achievements)
    assert store.awards == {}
    assert snap.metrics.win_logs == 1


def test_refresh_user_xp_recomputes_from_awards(achievements_engine, source, store):
    source.add_log(1, outcome='loss', format='live_draft')
    achievements_engine.award(1)
    source.add_deck(FIRE_DECK, user_id=1, likes=4)
    store.xp[1] = 0

    total = achievements_engine.refresh_user_xp(1)

    assert total == xp_for_rarity('rare') + xp_for_rarity('common') + 4 * 5 + 10
    assert store.xp[1] == total


def test_reset_clears_awards_and_xp(achievements_engine, source, store):
    source.add_log(1, outcome='win', format='constructed')
    source.add_log(2, outcome='win', format='constructed')
    achievements_engine.award(1)
    achievements_engine.award(2)

    removed = achievements_engine.reset([1])

    assert removed == 3
    assert store.keys_for(1) == set()
    assert store.xp[1] == 0
    assert store.keys_for(2) == {'first_log', 'constructed_debut', 'first_win'}
    assert achievements_engine.reset([]) == 0


def test_resolve_unlocks_reports_only_new_keys():
    metrics = MetricsSnapshot(total_logs=6, win_logs=1, live_draft_logs=6)

    should_have, newly = resolve_unlocks(registry.all(), metrics, {'first_log'})

    assert should_have == {'first_log', 'draft_debut', 'first_win', 'logs_5'}
    assert [d.key for d in newly] == ['draft_debut', 'first_win', 'logs_5']
