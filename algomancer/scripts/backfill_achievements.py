import argparse
import logging
import sys
from typing import Any, Optional, Sequence

from algomancer.achievements.engine import AchievementsEngine, engine as default_engine
from algomancer.database.db_manager import DBManager
from algomancer.models.user import User
from algomancer.utils.env import load_env
from algomancer.utils.logs import setup_logging

logger = logging.getLogger(__name__)

INVALID_USER_MESSAGE = 'Invalid --user value. Use email or numeric id.'


def parse_user_filter(value: Optional[str]) -> dict[str, Any]:
    '''Turn --user into select_for_backfill kwargs: email, numeric id or nothing.'''
    if value is None:
        return {}
    value = value.strip()
    if '@' in value:
        return {'email': value.lower()}
    if value.isdigit():
        return {'user_id': int(value)}
    raise ValueError(INVALID_USER_MESSAGE)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='algomancer-backfill',
        description='Recompute achievements and achievement XP for existing users.',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Report what would be awarded without writing anything.',
    )
    parser.add_argument(
        '--reset',
        action='store_true',
        help='Remove catalog awards and zero achievement XP before recomputing.',
    )
    parser.add_argument('--user', help='Limit to one user, by email or numeric id.')
    return parser


def user_label(user: dict[str, Any]) -> str:
    return str(user.get('email') or user['id'])


def backfill(
    users: Sequence[dict[str, Any]],
    engine: AchievementsEngine,
    dry_run: bool = False,
    reset: bool = False,
) -> int:
    '''Run the award pass for each user; returns how many were processed.'''
    if not dry_run:
        engine.ensure_badges()

    user_ids = [u['id'] for u in users]
    if reset and not dry_run:
        engine.reset(user_ids)

    for user in users:
        result = engine.award(user['id'], dry_run=dry_run)
        logger.info(
            f'[{user_label(user)}] achievements: {len(result.earned_keys)}, '
            f'xp: {result.achievement_xp}'
        )

    return len(users)


def main(argv: Optional[Sequence[str]] = None, engine: Optional[AchievementsEngine] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        user_filter = parse_user_filter(args.user)
    except ValueError as e:
        logger.error(str(e))
        return 1

    users = User.select_for_backfill(**user_filter)
    if not users:
        logger.warning('No users matched; nothing to do.')
        return 0

    processed = backfill(
        users, engine or default_engine, dry_run=args.dry_run, reset=args.reset
    )
    mode = 'dry run' if args.dry_run else 'backfill'
    logger.info(f'Achievement {mode} complete for {processed} users.')
    return 0


def run() -> None:
    setup_logging()
    load_env()
    DBManager.init_pool()
    try:
        sys.exit(main())
    finally:
        DBManager.close_pool()


if __name__ == '__main__':
    run()
