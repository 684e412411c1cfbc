from unittest.mock import MagicMock

import psycopg
import pytest

from algomancer.database import db_manager
from algomancer.database.db_manager import DBManager


@pytest.fixture()
def fake_conn(monkeypatch):
    conn = MagicMock()
    cur = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur
    connect = MagicMock(return_value=conn)
    monkeypatch.setenv('DATABASE_URL', 'postgresql://test/db')
    monkeypatch.setattr(db_manager.psycopg, 'connect', connect)
    monkeypatch.setattr(DBManager, '_pool', None)
    return conn, cur, connect


def test_missing_database_url_raises(monkeypatch):
    monkeypatch.delenv('DATABASE_URL', raising=False)
    monkeypatch.setattr(DBManager, '_pool', None)
    with pytest.raises(RuntimeError, match='DATABASE_URL'):
        with DBManager():
            pass


def test_queries_require_context():
    with pytest.raises(RuntimeError, match='context'):
        DBManager().fetchall('SELECT 1')


def test_commit_on_success_and_close(fake_conn):
    conn, cur, _ = fake_conn
    cur.fetchall.return_value = [{'id': 1}]

    with DBManager() as db:
        assert db.fetchone('SELECT id FROM users WHERE id = %s', (1,)) == {'id': 1}

    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    conn.close.assert_called_once()


def test_rollback_on_error(fake_conn):
    conn, _, _ = fake_conn

    with pytest.raises(ValueError):
        with DBManager():
            raise ValueError('boom')

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


def test_connection_errors_retry_once(fake_conn):
    _, cur, connect = fake_conn
    cur.execute.side_effect = [psycopg.OperationalError('gone'), None]
    cur.rowcount = 3

    with DBManager() as db:
        assert db.execute('UPDATE users SET achievement_xp = 0') == 3

    assert connect.call_count == 2


def test_other_errors_propagate_without_retry(fake_conn):
    _, cur, connect = fake_conn
    cur.execute.side_effect = psycopg.errors.UniqueViolation('dupe')

    with pytest.raises(psycopg.errors.UniqueViolation):
        with DBManager() as db:
            db.execute('INSERT INTO badges (type, key) VALUES (%s, %s)', ('a', 'b'))

    assert connect.call_count == 1
