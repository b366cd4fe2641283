import logging
import sqlite3
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi.concurrency import run_in_threadpool
from jose import JWTError, jwt

from lantern.config import settings
from lantern.db import create_user, get_user, get_user_by_name
from lantern.errors import NotAuthorized, StorageFailure

logger = logging.getLogger(__name__)

ACCESS_BASIC = 1
ACCESS_ADMIN = 11

# Minimum access level per command
COMMANDS = {
    "HackLantern": ACCESS_BASIC,
    "GetLanternRound": ACCESS_BASIC,
    "GetLanternStations": ACCESS_BASIC,
    "StartLanternRound": ACCESS_ADMIN,
    "EndLanternRound": ACCESS_ADMIN,
    "UpdateLanternRound": ACCESS_ADMIN,
    "CreateLanternStation": ACCESS_ADMIN,
    "CreateGameUsers": ACCESS_ADMIN,
    "CreateFakePasswords": ACCESS_ADMIN,
}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def create_token(user_id: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> int | None:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
        return int(payload["sub"])
    except (JWTError, KeyError, ValueError):
        return None


def authorize(token: str | None, command_name: str) -> dict:
    """Return the user behind ``token`` if allowed to run ``command_name``.

    Raises NotAuthorized for missing or invalid tokens, unknown users and
    insufficient access levels alike.
    """
    if not token:
        raise NotAuthorized()

    user_id = decode_token(token)
    if not user_id:
        raise NotAuthorized()

    user = get_user(user_id)
    if not user:
        raise NotAuthorized()

    required = COMMANDS.get(command_name)
    if required is None or user["access_level"] < required:
        raise NotAuthorized(f"{command_name} requires a higher access level")

    return user


async def require_access(token: str | None, command_name: str) -> dict:
    """``authorize`` for async handlers, with the user lookup in the threadpool."""
    try:
        return await run_in_threadpool(authorize, token, command_name)
    except sqlite3.Error as e:
        logger.error(f"User lookup for {command_name} failed: {e}")
        raise StorageFailure() from e


def seed_admin() -> int | None:
    """Create the configured admin account if it does not exist yet."""
    if not settings.admin_username or not settings.admin_password:
        return None

    existing = get_user_by_name(settings.admin_username)
    if existing:
        return existing["id"]

    user_id = create_user(
        settings.admin_username, hash_password(settings.admin_password), ACCESS_ADMIN
    )
    logger.info(f"Created admin account {settings.admin_username}")
    return user_id
