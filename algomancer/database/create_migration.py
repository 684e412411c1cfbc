import logging
import os
from datetime import datetime

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')

TEMPLATE = '''from algomancer.database.db_manager import DBManager


def up(db: DBManager):
    # Apply this migration.
    pass


def down(db: DBManager):
    # Rollback this migration.
    db.execute('DELETE FROM migrations WHERE filename = %s', ('{filename}',))
'''


def migration_filename(name: str, now: datetime | None = None) -> str:
    timestamp = (now or datetime.now()).strftime('%Y%m%d_%H%M%S')
    return f'{timestamp}_{name.strip().lower().replace(" ", "_")}.py'


def create_migration(name: str, migrations_dir: str = MIGRATIONS_DIR) -> str:
    '''Create a new migration module with a timestamp-based name.'''
    filename = migration_filename(name)
    filepath = os.path.join(migrations_dir, filename)

    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(TEMPLATE.format(filename=filename))

    logger.info(f'✅ Created new migration file: {filepath}')
    return filepath


if __name__ == '__main__':
    note = input('Enter a short note for this migration: ')
    create_migration(note)
