"""Selection and text helpers shared by the template catalogs."""

from __future__ import annotations

from collections.abc import Callable

from narrative.rng import RNG
from world.models import Player, WorldSnapshot


def related(*ids: str | None) -> tuple[str, ...]:
    """Drop empty ids so events never point at nothing."""
    return tuple(i for i in ids if i)


def pick_player(
    snapshot: WorldSnapshot,
    rng: RNG,
    where: Callable[[Player], bool] | None = None,
    fallback: str = "a player",
) -> tuple[str, str]:
    """Return ``(id, full name)`` of a random player, or ``("", fallback)``."""
    players = list(snapshot.players.values())
    if where is not None:
        players = [p for p in players if where(p)]
    if not players:
        return "", fallback
    player = rng.pick(players)
    return player.id, player.full_name


def pick_club(snapshot: WorldSnapshot, rng: RNG, fallback: str = "a rival club") -> tuple[str, str]:
    clubs = list(snapshot.clubs.values())
    if not clubs:
        return "", fallback
    club = rng.pick(clubs)
    return club.id, club.name


def pick_contact(
    snapshot: WorldSnapshot,
    rng: RNG,
    contact_type: str = "",
    fallback: str = "a contact",
) -> tuple[str, str]:
    """Prefer contacts of ``contact_type`` when any exist."""
    contacts = list(snapshot.contacts.values())
    if contact_type:
        typed = [c for c in contacts if c.type == contact_type]
        contacts = typed or contacts
    if not contacts:
        return "", fallback
    contact = rng.pick(contacts)
    return contact.id, contact.name


def own_club(snapshot: WorldSnapshot) -> tuple[str, str]:
    club_id = snapshot.scout.current_club_id or ""
    club = snapshot.clubs.get(club_id)
    return club_id, club.name if club else "your club"


def invented_name(rng: RNG, first_names: list[str], last_names: list[str]) -> str:
    return f"{rng.pick(first_names)} {rng.pick(last_names)}"


def count_players(snapshot: WorldSnapshot, where: Callable[[Player], bool] | None = None) -> int:
    if where is None:
        return len(snapshot.players)
    return sum(1 for p in snapshot.players.values() if where(p))
