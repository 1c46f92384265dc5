"""Immediate numeric consequences of a player's choice, keyed by effect tag."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from .rng import RNG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    reputation: int = 0
    fatigue: int = 0
    message: str | None = None


NEUTRAL = Outcome()


@dataclass(frozen=True)
class Effect:
    """Deltas for one effect tag.

    When ``chance`` is set, one draw decides between the base outcome and
    the ``alternate`` one (taken with probability ``chance``).
    """

    reputation: int = 0
    fatigue: int = 0
    message: str | None = None
    chance: float | None = None
    alternate: Outcome | None = None

    def __post_init__(self) -> None:
        if self.chance is not None:
            if not 0.0 <= self.chance <= 1.0:
                raise ValueError(f"effect chance must be in [0, 1], got {self.chance}")
            if self.alternate is None:
                raise ValueError("an effect with a chance needs an alternate outcome")

    def roll(self, rng: RNG) -> Outcome:
        if self.chance is not None and rng.chance(self.chance):
            return self.alternate
        return Outcome(self.reputation, self.fatigue, self.message)


class EffectTable:
    """Lookup over effect tags. Unknown tags are a neutral no-op."""

    def __init__(self, effects: Mapping[str, Effect]):
        self._effects = dict(effects)

    def __contains__(self, tag: object) -> bool:
        return tag in self._effects

    def __len__(self) -> int:
        return len(self._effects)

    def tags(self) -> list[str]:
        return list(self._effects)

    def resolve(self, tag: str, rng: RNG) -> Outcome:
        effect = self._effects.get(tag)
        if effect is None:
            logger.debug("No effect registered for tag %r", tag)
            return NEUTRAL
        return effect.roll(rng)
