from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class Station:
    station_id: int
    station_name: str
    is_active: bool
    signal_value: int

    def to_client(self) -> dict:
        return {
            "stationId": self.station_id,
            "stationName": self.station_name,
            "isActive": self.is_active,
            "signalValue": self.signal_value,
        }


@dataclass
class GameUser:
    """A candidate identity tied to a station, with its possible passwords."""

    user_name: str
    station_id: int
    passwords: list[str]


@dataclass
class PasswordHint:
    index: int
    character: str


@dataclass
class Candidate:
    user_name: str
    password: str
    password_type: str  # "A" for the first password in the game user's list, "B" for the second...
    password_hint: PasswordHint
    is_correct: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> Candidate:
        return cls(
            user_name=data["user_name"],
            password=data["password"],
            password_type=data["password_type"],
            password_hint=PasswordHint(**data["password_hint"]),
            is_correct=data["is_correct"],
        )


@dataclass
class HackSession:
    owner: str
    station_id: int
    candidates: list[Candidate] = field(default_factory=list)
    tries_left: int = 0

    @property
    def correct_candidate(self) -> Candidate:
        return next(c for c in self.candidates if c.is_correct)

    def candidates_as_dicts(self) -> list[dict]:
        return [asdict(c) for c in self.candidates]
