from algomancer.database.db_manager import DBManager


def up(db_manager: DBManager):
    # Seeded demo logs carry a tag and never count towards achievements
    db_manager.execute(
        '''
        ALTER TABLE IF EXISTS game_logs
        ADD COLUMN IF NOT EXISTS seed_tag TEXT
        '''
    )
    db_manager.execute(
        '''
        CREATE INDEX IF NOT EXISTS idx_game_logs_user_unseeded
        ON game_logs(user_id)
        WHERE seed_tag IS NULL
        '''
    )


def down(db_manager: DBManager):
    db_manager.execute('DROP INDEX IF EXISTS idx_game_logs_user_unseeded')
    db_manager.execute('ALTER TABLE IF EXISTS game_logs DROP COLUMN IF EXISTS seed_tag')
    db_manager.execute(
        'DELETE FROM migrations WHERE filename = %s',
        ('20260203_183000_add_game_log_seed_tag.py',),
    )
