"""sqlite backed stores for stations, hack sessions, candidate identities and the round.

Public methods are coroutines. The sqlite work itself is blocking, so each
call is pushed to the threadpool. Any sqlite error surfaces as StorageFailure.
"""

from __future__ import annotations

import functools
import json
import logging
import sqlite3
from datetime import datetime

from fastapi.concurrency import run_in_threadpool

from lantern.db import get_connection
from lantern.errors import AlreadyExists, DoesNotExist, StorageFailure
from lantern.hacking.models import Candidate, GameUser, HackSession, Station

logger = logging.getLogger(__name__)


def _storage_call(func):
    """Run a blocking store method in the threadpool, mapping sqlite errors."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except sqlite3.Error as e:
            logger.error(f"{func.__qualname__} failed: {e}")
            raise StorageFailure() from e

    return wrapper


def _row_to_station(row) -> Station:
    return Station(
        station_id=row["station_id"],
        station_name=row["station_name"],
        is_active=bool(row["is_active"]),
        signal_value=row["signal_value"],
    )


def _row_to_session(row) -> HackSession:
    return HackSession(
        owner=row["owner"],
        station_id=row["station_id"],
        candidates=[Candidate.from_dict(c) for c in json.loads(row["game_users"])],
        tries_left=row["tries_left"],
    )


class StationStore:
    @_storage_call
    def get_station(self, station_id: int) -> Station:
        with get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM stations WHERE station_id = ?", (station_id,)
            ).fetchone()
        if not row:
            raise DoesNotExist(f"Station {station_id} does not exist")
        return _row_to_station(row)

    @_storage_call
    def get_all_stations(self) -> list[Station]:
        with get_connection() as conn:
            rows = conn.execute("SELECT * FROM stations ORDER BY station_id").fetchall()
        return [_row_to_station(row) for row in rows]

    @_storage_call
    def create_station(self, station: Station) -> Station:
        try:
            with get_connection() as conn:
                conn.execute(
                    "INSERT INTO stations (station_id, station_name, is_active, signal_value) "
                    "VALUES (?, ?, ?, ?)",
                    (station.station_id, station.station_name, int(station.is_active), station.signal_value),
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyExists(f"Station {station.station_id} already exists") from e
        return station

    @_storage_call
    def update_signal(self, station_id: int, signal_value: int) -> Station:
        with get_connection() as conn:
            cursor = conn.execute(
                "UPDATE stations SET signal_value = ? WHERE station_id = ?",
                (signal_value, station_id),
            )
            if cursor.rowcount == 0:
                raise DoesNotExist(f"Station {station_id} does not exist")
            row = conn.execute(
                "SELECT * FROM stations WHERE station_id = ?", (station_id,)
            ).fetchone()
        return _row_to_station(row)


class SessionStore:
    @_storage_call
    def get_session(self, owner: str) -> HackSession | None:
        with get_connection() as conn:
            row = conn.execute("SELECT * FROM lantern_hacks WHERE owner = ?", (owner,)).fetchone()
        return _row_to_session(row) if row else None

    @_storage_call
    def replace_session(self, session: HackSession) -> HackSession:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO lantern_hacks (owner, station_id, game_users, tries_left)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(owner) DO UPDATE SET
                    station_id = excluded.station_id,
                    game_users = excluded.game_users,
                    tries_left = excluded.tries_left,
                    created_at = CURRENT_TIMESTAMP
                """,
                (
                    session.owner,
                    session.station_id,
                    json.dumps(session.candidates_as_dicts()),
                    session.tries_left,
                ),
            )
        return session

    @_storage_call
    def lower_tries(self, owner: str) -> HackSession | None:
        """Decrement tries_left and return the updated session, None if it vanished."""
        with get_connection() as conn:
            conn.execute(
                "UPDATE lantern_hacks SET tries_left = tries_left - 1 WHERE owner = ?",
                (owner,),
            )
            row = conn.execute("SELECT * FROM lantern_hacks WHERE owner = ?", (owner,)).fetchone()
        return _row_to_session(row) if row else None

    @_storage_call
    def delete_session(self, owner: str) -> bool:
        with get_connection() as conn:
            cursor = conn.execute("DELETE FROM lantern_hacks WHERE owner = ?", (owner,))
            return cursor.rowcount > 0

    @_storage_call
    def delete_all_sessions(self) -> int:
        with get_connection() as conn:
            cursor = conn.execute("DELETE FROM lantern_hacks")
            return cursor.rowcount


class CandidateSource:
    """Game users per station and the pool of fake passwords."""

    @_storage_call
    def get_candidates_for_station(self, station_id: int) -> list[GameUser]:
        with get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM game_users WHERE station_id = ? ORDER BY id", (station_id,)
            ).fetchall()
        return [
            GameUser(
                user_name=row["user_name"],
                station_id=row["station_id"],
                passwords=json.loads(row["passwords"]),
            )
            for row in rows
        ]

    @_storage_call
    def get_decoy_password_pool(self) -> list[str]:
        with get_connection() as conn:
            rows = conn.execute("SELECT password FROM fake_passwords").fetchall()
        return [row["password"] for row in rows]

    @_storage_call
    def add_game_users(self, game_users: list[GameUser]) -> list[GameUser]:
        with get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO game_users (user_name, station_id, passwords) VALUES (?, ?, ?)
                ON CONFLICT(user_name, station_id) DO UPDATE SET passwords = excluded.passwords
                """,
                [
                    (gu.user_name, gu.station_id, json.dumps([p.lower() for p in gu.passwords]))
                    for gu in game_users
                ],
            )
        return game_users

    @_storage_call
    def add_decoy_passwords(self, passwords: list[str]) -> int:
        with get_connection() as conn:
            cursor = conn.executemany(
                "INSERT OR IGNORE INTO fake_passwords (password) VALUES (?)",
                [(p.lower(),) for p in passwords],
            )
            return cursor.rowcount


class RoundStore:
    """The single lantern round row."""

    @staticmethod
    def _read(conn) -> dict:
        row = conn.execute("SELECT * FROM lantern_round WHERE id = 1").fetchone()
        return {
            "isActive": bool(row["is_active"]),
            "startTime": row["start_time"],
            "endTime": row["end_time"],
        }

    @_storage_call
    def get_round(self) -> dict:
        with get_connection() as conn:
            return self._read(conn)

    @_storage_call
    def save_round(
        self,
        is_active: bool | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> dict:
        """Update the round, leaving every field passed as None untouched."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE lantern_round
                SET is_active = COALESCE(?, is_active),
                    start_time = COALESCE(?, start_time),
                    end_time = COALESCE(?, end_time)
                WHERE id = 1
                """,
                (
                    None if is_active is None else int(is_active),
                    start_time.isoformat() if start_time else None,
                    end_time.isoformat() if end_time else None,
                ),
            )
            return self._read(conn)
