"""Read-only world snapshot consumed by the story engine.

The game's other subsystems own this data. The engine only reads it, so every
record here is a frozen dataclass, and the snapshot is rebuilt (never
mutated) when the calendar or the scout changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _keyed(raw: Any, factory) -> dict:
    """Accept either an id-keyed mapping or a list of records."""
    if isinstance(raw, dict):
        items = [{"id": key, **value} if isinstance(value, dict) else value for key, value in raw.items()]
    else:
        items = list(raw or [])
    records = [factory(item) for item in items]
    return {record.id: record for record in records}


@dataclass(frozen=True)
class Scout:
    reputation: float = 0.0
    career_tier: int = 1
    current_club_id: str | None = None
    fatigue: float = 0.0

    @property
    def employed(self) -> bool:
        return self.current_club_id is not None

    @classmethod
    def from_dict(cls, data: dict) -> Scout:
        club = data.get("current_club_id", data.get("currentClubId"))
        return cls(
            reputation=float(data.get("reputation", 0)),
            career_tier=int(data.get("career_tier", data.get("careerTier", 1))),
            current_club_id=_as_text(club) or None,
            fatigue=float(data.get("fatigue", 0)),
        )


@dataclass(frozen=True)
class Contact:
    id: str
    name: str
    type: str = ""  # "agent" | "journalist" | "scout" | ...

    @classmethod
    def from_dict(cls, data: dict) -> Contact:
        return cls(
            id=_as_text(data.get("id")),
            name=_as_text(data.get("name")),
            type=_as_text(data.get("type")),
        )


@dataclass(frozen=True)
class Club:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> Club:
        return cls(id=_as_text(data.get("id")), name=_as_text(data.get("name")))


@dataclass(frozen=True)
class Player:
    id: str
    first_name: str
    last_name: str
    age: int = 0
    current_ability: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: dict) -> Player:
        return cls(
            id=_as_text(data.get("id")),
            first_name=_as_text(data.get("first_name", data.get("firstName"))),
            last_name=_as_text(data.get("last_name", data.get("lastName"))),
            age=int(data.get("age", 0)),
            current_ability=int(data.get("current_ability", data.get("currentAbility", 0))),
        )


@dataclass(frozen=True)
class RivalScout:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> RivalScout:
        return cls(id=_as_text(data.get("id")), name=_as_text(data.get("name")))


@dataclass(frozen=True)
class WorldSnapshot:
    """Everything eligibility checks and narrative text may look at."""

    current_season: int
    current_week: int
    scout: Scout = field(default_factory=Scout)
    contacts: dict[str, Contact] = field(default_factory=dict)
    clubs: dict[str, Club] = field(default_factory=dict)
    players: dict[str, Player] = field(default_factory=dict)
    rival_scouts: dict[str, RivalScout] = field(default_factory=dict)
    countries: tuple[str, ...] = ()
    report_ids: tuple[str, ...] = ()
    manager_ids: tuple[str, ...] = ()

    def at_week(self, season: int, week: int) -> WorldSnapshot:
        return replace(self, current_season=season, current_week=week)

    def with_scout(self, **changes: Any) -> WorldSnapshot:
        return replace(self, scout=replace(self.scout, **changes))

    @classmethod
    def from_dict(cls, data: dict) -> WorldSnapshot:
        return cls(
            current_season=int(data.get("current_season", data.get("currentSeason", 1))),
            current_week=int(data.get("current_week", data.get("currentWeek", 1))),
            scout=Scout.from_dict(data.get("scout") or {}),
            contacts=_keyed(data.get("contacts"), Contact.from_dict),
            clubs=_keyed(data.get("clubs"), Club.from_dict),
            players=_keyed(data.get("players"), Player.from_dict),
            rival_scouts=_keyed(data.get("rival_scouts", data.get("rivalScouts")), RivalScout.from_dict),
            countries=tuple(_as_text(c) for c in data.get("countries", [])),
            report_ids=tuple(_as_text(r) for r in data.get("report_ids", data.get("reports", []))),
            manager_ids=tuple(_as_text(m) for m in data.get("manager_ids", data.get("managers", []))),
        )
