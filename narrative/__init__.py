"""Narrative engine: templated multi-week stories and their scheduling."""

from .calendar import Calendar
from .effects import Effect, EffectTable, Outcome
from .engine import (
    EVENT_CHAIN_SETTINGS,
    STORYLINE_SETTINGS,
    ChoiceResult,
    EngineSettings,
    StoryEngine,
    TickResult,
)
from .models import (
    Choice,
    EventDraft,
    Instance,
    NarrativeEvent,
    Stage,
    StoryContext,
    Template,
    TemplateError,
)
from .registry import TemplateRegistry
from .rng import RNG, SeededRNG

__all__ = [
    "Calendar",
    "Choice",
    "ChoiceResult",
    "Effect",
    "EffectTable",
    "EngineSettings",
    "EventDraft",
    "EVENT_CHAIN_SETTINGS",
    "Instance",
    "NarrativeEvent",
    "Outcome",
    "RNG",
    "STORYLINE_SETTINGS",
    "SeededRNG",
    "Stage",
    "StoryContext",
    "StoryEngine",
    "Template",
    "TemplateError",
    "TemplateRegistry",
    "TickResult",
]
