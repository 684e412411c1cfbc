import logging

from algomancer.database.db_manager import DBManager

logger = logging.getLogger(__name__)


def init_schema(db: DBManager) -> None:
    '''Create the base schema if it doesn't already exist.

    Achievement tables and later columns are added by migrations.
    '''
    # --- USERS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS users (
            id BIGINT PRIMARY KEY,
            display_name TEXT NOT NULL,
            email TEXT UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- CARDS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS cards (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            element_type TEXT
        )
        '''
    )

    # --- DECKS TABLE ---
    # ids are 24 hex chars so shared deck URLs keep their public shape
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS decks (
            id TEXT PRIMARY KEY
                DEFAULT substr(md5(random()::text || clock_timestamp()::text), 1, 24),
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            deck_elements TEXT[] NOT NULL DEFAULT '{}',
            card_ids TEXT[] NOT NULL DEFAULT '{}',
            likes INTEGER NOT NULL DEFAULT 0,
            is_public BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- GAME LOGS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS game_logs (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL DEFAULT 'Untitled Game',
            played_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            outcome TEXT NOT NULL CHECK (outcome IN ('win', 'loss', 'draw')),
            format TEXT NOT NULL CHECK (format IN ('constructed', 'live_draft')),
            is_public BOOLEAN NOT NULL DEFAULT FALSE,
            deck_id TEXT,
            external_deck_url TEXT,
            elements_played TEXT[] NOT NULL DEFAULT '{}',
            mvp_card_ids TEXT[] NOT NULL DEFAULT '{}',
            opponents JSONB NOT NULL DEFAULT '[]'::jsonb,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- MIGRATIONS TABLE ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS migrations (
            id SERIAL PRIMARY KEY,
            filename TEXT NOT NULL UNIQUE,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- INDEXES ---
    db.execute(
        'CREATE INDEX IF NOT EXISTS idx_decks_user_id ON decks(user_id);'
    )
    db.execute(
        'CREATE INDEX IF NOT EXISTS idx_game_logs_user_played '
        'ON game_logs(user_id, played_at DESC);'
    )
    db.execute(
        'CREATE INDEX IF NOT EXISTS idx_game_logs_public_played '
        'ON game_logs(is_public, played_at DESC);'
    )
