from __future__ import annotations


# username is UNIQUE: the store, not the pre-check in register_user, is the
# authority on whether a name is taken.
SCHEMA_SQLITE = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""

SCHEMA_POSTGRES = """
CREATE TABLE IF NOT EXISTS users (
    id BIGSERIAL PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


def get_schema_sql(dialect: str) -> str:
    if dialect == "postgres":
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
