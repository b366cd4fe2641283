import sqlite3
from contextlib import contextmanager
from pathlib import Path

from lantern.config import settings

DB_PATH = Path(settings.database_path)


def get_db_path() -> Path:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    return DB_PATH


def init_db():
    """Create tables if they don't exist."""
    with get_connection() as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                access_level INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS stations (
                station_id INTEGER PRIMARY KEY,
                station_name TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 0,
                signal_value INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS game_users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_name TEXT NOT NULL,
                station_id INTEGER NOT NULL,
                passwords TEXT NOT NULL,
                UNIQUE (user_name, station_id)
            );

            CREATE TABLE IF NOT EXISTS fake_passwords (
                password TEXT PRIMARY KEY
            );

            CREATE TABLE IF NOT EXISTS lantern_hacks (
                owner TEXT PRIMARY KEY,
                station_id INTEGER NOT NULL,
                game_users TEXT NOT NULL,
                tries_left INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS lantern_round (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                is_active INTEGER NOT NULL DEFAULT 0,
                start_time TEXT,
                end_time TEXT
            );

            INSERT OR IGNORE INTO lantern_round (id, is_active) VALUES (1, 0);
        """)


@contextmanager
def get_connection():
    conn = sqlite3.connect(get_db_path())
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


# User helpers
def create_user(username: str, password_hash: str, access_level: int = 1) -> int:
    with get_connection() as conn:
        cursor = conn.execute(
            "INSERT INTO users (username, password_hash, access_level) VALUES (?, ?, ?)",
            (username, password_hash, access_level),
        )
        return cursor.lastrowid


def get_user(user_id: int) -> dict | None:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT id, username, access_level FROM users WHERE id = ?", (user_id,)
        ).fetchone()
    return dict(row) if row else None


def get_user_by_name(username: str) -> dict | None:
    with get_connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
    return dict(row) if row else None
