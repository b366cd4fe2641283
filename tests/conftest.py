import os
import shutil
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Set test settings before importing the app
os.environ["DATABASE_PATH"] = "test_data/test.db"
os.environ["SIGNAL_RESET_TIMEOUT"] = "3600"
os.environ["HACKING_API_HOST"] = ""
os.environ["DECAY_BACKEND"] = "inline"


@pytest.fixture(scope="session", autouse=True)
def setup_test_dir():
    test_dir = Path("test_data")
    test_dir.mkdir(exist_ok=True)
    yield
    # Cleanup
    if test_dir.exists():
        shutil.rmtree(test_dir)


@pytest.fixture(autouse=True)
def fresh_db():
    import lantern.db as db_module
    from lantern.db import init_db

    db_module.DB_PATH = Path("test_data/test.db")
    if db_module.DB_PATH.exists():
        db_module.DB_PATH.unlink()
    init_db()
    yield


@pytest.fixture
def client():
    from lantern.main import app

    with TestClient(app) as c:
        yield c


def _make_user(username: str, access_level: int) -> str:
    from lantern.auth.utils import create_token, hash_password
    from lantern.db import create_user

    user_id = create_user(username, hash_password("password123"), access_level)
    return create_token(user_id)


@pytest.fixture
def player_token():
    from lantern.auth.utils import ACCESS_BASIC

    return _make_user("player", ACCESS_BASIC)


@pytest.fixture
def admin_token():
    from lantern.auth.utils import ACCESS_ADMIN

    return _make_user("admin", ACCESS_ADMIN)


@pytest.fixture
def services():
    from lantern.hacking.services import build_services
    from lantern.hacking.signal_engine import SignalConfig
    from lantern.hacking.telemetry import BoostNotifier

    return build_services(
        notifier=BoostNotifier(host=""),
        config=SignalConfig(baseline=100, threshold=50, change_percentage=0.2, max_step_change=10),
    )


@pytest.fixture
def seeded_station():
    """Station 5 at baseline with two game users and a handful of fake passwords."""
    import json

    from lantern.db import get_connection

    with get_connection() as conn:
        conn.execute(
            "INSERT INTO stations (station_id, station_name, is_active, signal_value) VALUES (5, 'Hill', 1, 100)"
        )
        conn.executemany(
            "INSERT INTO game_users (user_name, station_id, passwords) VALUES (?, 5, ?)",
            [
                ("razor", json.dumps(["abcee", "hunter"])),
                ("zerocool", json.dumps(["gibson", "crashoverride"])),
            ],
        )
        conn.executemany(
            "INSERT INTO fake_passwords (password) VALUES (?)",
            [(f"decoy{i}",) for i in range(20)],
        )
    return 5
