"""Season/week calendar helpers.

All scheduling math runs on absolute weeks so that delays spanning a season
boundary need no special casing.
"""

from __future__ import annotations

from dataclasses import dataclass

STORYLINE_WEEKS_PER_SEASON = 38
EVENT_CHAIN_WEEKS_PER_SEASON = 52


@dataclass(frozen=True)
class Calendar:
    """Flatten (season, week) pairs for one engine variant."""

    weeks_per_season: int

    def __post_init__(self) -> None:
        if self.weeks_per_season < 1:
            raise ValueError(f"weeks_per_season must be positive, got {self.weeks_per_season}")

    def to_absolute(self, season: int, week: int) -> int:
        """Return the absolute week, counting from season 1 week 1 == 1."""
        if season < 1:
            raise ValueError(f"season must be >= 1, got {season}")
        if not 1 <= week <= self.weeks_per_season:
            raise ValueError(f"week must be in [1, {self.weeks_per_season}], got {week}")
        return (season - 1) * self.weeks_per_season + week

    def from_absolute(self, absolute: int) -> tuple[int, int]:
        """Inverse of :meth:`to_absolute`."""
        if absolute < 1:
            raise ValueError(f"absolute week must be >= 1, got {absolute}")
        season = (absolute - 1) // self.weeks_per_season + 1
        week = (absolute - 1) % self.weeks_per_season + 1
        return season, week

    def add_weeks(self, season: int, week: int, delay: int) -> tuple[int, int]:
        return self.from_absolute(self.to_absolute(season, week) + delay)
