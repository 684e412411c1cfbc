from algomancer.database.db_manager import DBManager


def up(db_manager: DBManager):
    db_manager.execute(
        '''
        CREATE TABLE IF NOT EXISTS badges (
            id BIGSERIAL PRIMARY KEY,
            type TEXT NOT NULL,
            key TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            icon TEXT NOT NULL,
            color TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (type, key)
        )
        '''
    )
    db_manager.execute(
        '''
        CREATE TABLE IF NOT EXISTS user_badges (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id BIGINT NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (user_id, badge_id)
        )
        '''
    )
    db_manager.execute(
        'CREATE INDEX IF NOT EXISTS idx_user_badges_badge_id ON user_badges(badge_id)'
    )
    db_manager.execute(
        '''
        ALTER TABLE IF EXISTS users
        ADD COLUMN IF NOT EXISTS achievement_xp INTEGER NOT NULL DEFAULT 0
        '''
    )


def down(db_manager: DBManager):
    db_manager.execute('ALTER TABLE IF EXISTS users DROP COLUMN IF EXISTS achievement_xp')
    db_manager.execute('DROP TABLE IF EXISTS user_badges')
    db_manager.execute('DROP TABLE IF EXISTS badges')
    db_manager.execute(
        'DELETE FROM migrations WHERE filename = %s',
        ('20260114_101500_create_achievement_badges.py',),
    )
