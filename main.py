import asyncio
import logging

from algomancer.bot import main as run
from algomancer.database import start_db
from algomancer.database.db_manager import DBManager
from algomancer.utils.env import load_env
from algomancer.utils.logs import setup_logging

if __name__ == '__main__':
    setup_logging(logging.INFO)
    load_env()

    with DBManager() as db:
        # Run full DB setup (schema + migrations)
        start_db.run(db)

    # Start the bot
    asyncio.run(run())
