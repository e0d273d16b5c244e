"""SQLite schema management (code-first approach)."""

import logging

from tasklevel.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, in dependency order
COLLECTIONS = [
    "profiles",
    "lists",
    "tasks",
    "votes",
    "push_subscriptions",
    "stats",
    "views",
]


_TABLES: dict[str, str] = {
    "profiles": """
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            username TEXT NOT NULL DEFAULT '',
            email TEXT NOT NULL DEFAULT '',
            points INTEGER NOT NULL DEFAULT 0 CHECK (points >= 0),
            avatar_url TEXT,
            created_at TEXT NOT NULL
        )
    """,
    "lists": """
        CREATE TABLE IF NOT EXISTS lists (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES profiles (id),
            title TEXT NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('daily', 'weekly', 'monthly')),
            is_public INTEGER NOT NULL DEFAULT 0,
            is_completed INTEGER NOT NULL DEFAULT 0,
            reward TEXT NOT NULL DEFAULT '',
            punishment TEXT NOT NULL DEFAULT '',
            completed_at TEXT,
            expires_at TEXT,
            settled_at TEXT,
            view_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            list_id TEXT NOT NULL REFERENCES lists (id),
            description TEXT NOT NULL,
            is_completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
    """,
    "votes": """
        CREATE TABLE IF NOT EXISTS votes (
            id TEXT PRIMARY KEY,
            list_id TEXT NOT NULL REFERENCES lists (id),
            user_id TEXT NOT NULL REFERENCES profiles (id),
            vote INTEGER NOT NULL CHECK (vote IN (1, -1)),
            created_at TEXT NOT NULL,
            UNIQUE (list_id, user_id)
        )
    """,
    "push_subscriptions": """
        CREATE TABLE IF NOT EXISTS push_subscriptions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES profiles (id),
            endpoint TEXT NOT NULL,
            p256dh_key TEXT NOT NULL,
            auth_key TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        )
    """,
    "stats": """
        CREATE TABLE IF NOT EXISTS stats (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL UNIQUE REFERENCES profiles (id),
            strength INTEGER NOT NULL DEFAULT 0 CHECK (strength >= 0),
            endurance INTEGER NOT NULL DEFAULT 0 CHECK (endurance >= 0),
            speed INTEGER NOT NULL DEFAULT 0 CHECK (speed >= 0),
            perception INTEGER NOT NULL DEFAULT 0 CHECK (perception >= 0),
            intelligence INTEGER NOT NULL DEFAULT 0 CHECK (intelligence >= 0),
            luck INTEGER NOT NULL DEFAULT 0 CHECK (luck >= 0),
            created_at TEXT NOT NULL
        )
    """,
    "views": """
        CREATE TABLE IF NOT EXISTS views (
            id TEXT PRIMARY KEY,
            list_id TEXT NOT NULL REFERENCES lists (id),
            user_id TEXT NOT NULL REFERENCES profiles (id),
            created_at TEXT NOT NULL,
            UNIQUE (list_id, user_id)
        )
    """,
}

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_lists_owner_type ON lists (user_id, type, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_lists_public ON lists (is_public, completed_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_list ON tasks (list_id)",
    "CREATE INDEX IF NOT EXISTS idx_votes_list ON votes (list_id)",
    "CREATE INDEX IF NOT EXISTS idx_push_user ON push_subscriptions (user_id, is_active)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes (idempotent)."""
    logger.info("Starting SQLite schema sync...")

    conn = await db_client.get_connection(db_path=db_path)
    for collection in COLLECTIONS:
        await conn.execute(_TABLES[collection])
    for index in _INDEXES:
        await conn.execute(index)
    await conn.commit()

    logger.info("SQLite schema sync complete", extra={"collections": len(COLLECTIONS)})
