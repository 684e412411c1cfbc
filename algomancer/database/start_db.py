import importlib.util
import logging
import os

from algomancer.database.db_manager import DBManager
from algomancer.database.init_schema import init_schema

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')


def pending_migrations(applied: set[str], migrations_dir: str = MIGRATIONS_DIR) -> list[str]:
    '''Migration filenames not yet applied, in timestamp order.'''
    if not os.path.exists(migrations_dir):
        return []
    return sorted(
        f
        for f in os.listdir(migrations_dir)
        if f.endswith('.py') and not f.startswith('__') and f not in applied
    )


def run(db: DBManager, migrations_dir: str = MIGRATIONS_DIR) -> None:
    '''Run full DB setup: schema + migrations.'''
    init_schema(db)
    logger.info('Database and tables created/verified.')

    tables = db.fetchall(
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = 'public' ORDER BY table_name"
    )
    logger.info(f'Current tables in DB: {[t["table_name"] for t in tables]}')

    applied_rows = db.fetchall('SELECT filename FROM migrations')
    applied = {row['filename'] for row in applied_rows}

    for filename in pending_migrations(applied, migrations_dir):
        filepath = os.path.join(migrations_dir, filename)
        module_name = f'migration_{filename.replace(".py", "")}'

        try:
            spec = importlib.util.spec_from_file_location(module_name, filepath)
            if spec is None or spec.loader is None:
                raise ImportError(f'Could not load migration module: {filename}')

            migration = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(migration)

            if not hasattr(migration, 'up'):
                logger.error(f'Skipping {filename}: no `up()` function found.')
                continue

            logger.info(f'Running migration: {filename}')
            migration.up(db)
            db.execute('INSERT INTO migrations (filename) VALUES (%s)', (filename,))
        except Exception:
            logger.error(f'Error running migration {filename}', exc_info=True)
            raise

    logger.info('Migrations complete.')


if __name__ == '__main__':
    from algomancer.utils.env import load_env
    from algomancer.utils.logs import setup_logging

    setup_logging()
    load_env()
    with DBManager() as _db:
        run(_db)
