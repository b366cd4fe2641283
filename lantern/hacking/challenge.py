"""Hack session generation and the challenge payload shown to players."""

from __future__ import annotations

import random
import secrets
import string

from lantern.errors import InsufficientCandidates
from lantern.hacking.models import Candidate, GameUser, HackSession, PasswordHint

CANDIDATES_PER_SESSION = 2

_system_random = secrets.SystemRandom()


def password_type_for(index: int) -> str:
    """0 -> "A", 1 -> "B", ..."""
    return string.ascii_uppercase[index]


def build_candidate(game_user: GameUser, rng: random.Random) -> Candidate:
    password_index = rng.randrange(len(game_user.passwords))
    password = game_user.passwords[password_index]
    hint_index = rng.randrange(len(password))

    return Candidate(
        user_name=game_user.user_name,
        password=password,
        password_type=password_type_for(password_index),
        password_hint=PasswordHint(index=hint_index, character=password[hint_index]),
    )


def generate_session(
    owner: str,
    station_id: int,
    game_users: list[GameUser],
    tries_left: int,
    rng: random.Random | None = None,
) -> HackSession:
    """Pick up to two game users and mark the first one picked as correct."""
    rng = rng or _system_random
    usable = [gu for gu in game_users if gu.passwords and all(gu.passwords)]
    if not usable:
        raise InsufficientCandidates(f"No game users exist for station {station_id}")

    picked = rng.sample(usable, min(CANDIDATES_PER_SESSION, len(usable)))
    candidates = [build_candidate(game_user, rng) for game_user in picked]
    candidates[0].is_correct = True

    return HackSession(
        owner=owner,
        station_id=station_id,
        candidates=candidates,
        tries_left=tries_left,
    )


def build_challenge(
    session: HackSession,
    decoy_pool: list[str],
    decoy_display_size: int,
    rng: random.Random | None = None,
) -> dict:
    """Client view of a session. Never says which candidate is correct."""
    rng = rng or _system_random
    real_passwords = [c.password for c in session.candidates]

    decoys = [p for p in dict.fromkeys(decoy_pool) if p not in real_passwords]
    rng.shuffle(decoys)
    passwords = decoys[:decoy_display_size] + real_passwords
    rng.shuffle(passwords)

    correct = session.correct_candidate
    return {
        "passwords": passwords,
        "triesLeft": session.tries_left,
        "userName": correct.user_name,
        "passwordType": correct.password_type,
        "passwordHint": {
            "index": correct.password_hint.index,
            "character": correct.password_hint.character,
        },
        "stationId": session.station_id,
    }


def count_matches(guess: str, correct_password: str) -> int:
    """Positions where the guess and the correct password hold the same character."""
    guess = guess.lower()
    correct_password = correct_password.lower()
    return sum(1 for a, b in zip(guess, correct_password) if a == b)
