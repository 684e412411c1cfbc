import logging
import sys

NOISY_LOGGERS = ('discord.gateway', 'discord.client', 'psycopg.pool')


def setup_logging(level: int = logging.INFO) -> None:
    '''Configure the root logger once for bot, scripts and migrations.'''
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
