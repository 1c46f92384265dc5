"""Authored template catalogs and ready-made engines for each variant."""

from narrative.engine import EVENT_CHAIN_SETTINGS, STORYLINE_SETTINGS, EngineSettings, StoryEngine

from .chains import CHAIN_EFFECTS, CHAIN_TEMPLATES
from .storylines import STORYLINE_EFFECTS, STORYLINE_TEMPLATES


def storyline_engine(settings: EngineSettings | None = None) -> StoryEngine:
    return StoryEngine(settings or STORYLINE_SETTINGS, STORYLINE_TEMPLATES, STORYLINE_EFFECTS)


def event_chain_engine(settings: EngineSettings | None = None) -> StoryEngine:
    return StoryEngine(settings or EVENT_CHAIN_SETTINGS, CHAIN_TEMPLATES, CHAIN_EFFECTS)


__all__ = [
    "CHAIN_EFFECTS",
    "CHAIN_TEMPLATES",
    "STORYLINE_EFFECTS",
    "STORYLINE_TEMPLATES",
    "event_chain_engine",
    "storyline_engine",
]
