"""Data model for templated multi-stage stories.

Templates and stages are static, authored once and never persisted.
Instances and events are the persisted side: plain data only, so a save file
never carries executable logic. Instances refer to their template by id and
resolve it through a registry on every use.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields
from typing import Any, TypeVar

from world.models import WorldSnapshot

from .rng import RNG

Primitive = str | int | float | bool | None

_PRIMITIVE_TYPES = (str, int, float, bool, type(None))

C = TypeVar("C", bound="StoryContext")


class TemplateError(ValueError):
    """Raised for malformed template data (an authoring defect)."""


# ── Context records ─────────────────────────────────────────────


@dataclass(frozen=True)
class StoryContext:
    """Base record for per-template context.

    Each template subclasses this with its own fields. Only primitives are
    allowed so the flattened form can live in a save file.
    """

    player_choice: str | None = field(default=None, kw_only=True)

    @classmethod
    def of(cls: type[C], instance: Instance) -> C:
        """Rebuild the typed record from an instance's persisted context."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in instance.context.items() if k in names})

    def to_dict(self) -> dict[str, Primitive]:
        data = asdict(self)
        for key, value in data.items():
            if not isinstance(value, _PRIMITIVE_TYPES):
                raise TemplateError(
                    f"{type(self).__name__}.{key} must be a primitive, got {type(value).__name__}"
                )
        return data


# ── Templates ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Choice:
    label: str
    effect: str  # opaque effect tag

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "effect": self.effect}

    @classmethod
    def from_dict(cls, data: dict) -> Choice:
        return cls(label=str(data.get("label", "")), effect=str(data.get("effect", "")))


@dataclass(frozen=True)
class EventDraft:
    """What a stage generator produces; the engine stamps the rest."""

    type: str
    title: str
    body: str
    related_ids: tuple[str, ...] = ()
    escalation_level: int | None = None  # None = use the stage's level


StageGenerator = Callable[["Instance", WorldSnapshot, RNG], "EventDraft | None"]
StagePrerequisite = Callable[[WorldSnapshot, "Instance"], bool]


@dataclass(frozen=True)
class Stage:
    week_delay: int
    generate: StageGenerator
    escalation_level: int = 0  # 0 normal, 1 warning, 2 critical
    prerequisite: StagePrerequisite | None = None
    choices: tuple[Choice, ...] = ()

    def __post_init__(self) -> None:
        if self.week_delay < 0:
            raise TemplateError(f"week_delay must be >= 0, got {self.week_delay}")
        if self.escalation_level < 0:
            raise TemplateError(f"escalation_level must be >= 0, got {self.escalation_level}")


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    stages: tuple[Stage, ...]
    can_trigger: Callable[[WorldSnapshot], bool]
    init_context: Callable[[WorldSnapshot, RNG], StoryContext]


# ── Persisted state ─────────────────────────────────────────────


@dataclass
class Instance:
    """One running or resolved occurrence of a template.

    Engine operations never mutate an Instance; they return a new one.
    """

    id: str
    template_id: str
    start_week: int  # absolute
    next_due_week: int  # absolute
    max_steps: int
    current_stage: int = 0
    resolved: bool = False
    choice_history: list[int | None] = field(default_factory=list)
    context: dict[str, Primitive] = field(default_factory=dict)
    event_ids: list[str] = field(default_factory=list)

    @property
    def player_choice(self) -> str | None:
        value = self.context.get("player_choice")
        return value if isinstance(value, str) else None

    def choice_at(self, stage_index: int) -> int | None:
        if 0 <= stage_index < len(self.choice_history):
            return self.choice_history[stage_index]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "templateId": self.template_id,
            "startWeek": self.start_week,
            "currentStage": self.current_stage,
            "maxSteps": self.max_steps,
            "resolved": self.resolved,
            "choiceHistory": list(self.choice_history),
            "context": dict(self.context),
            "nextStepWeek": self.next_due_week,
            "eventIds": list(self.event_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Instance:
        history = data.get("choiceHistory", data.get("choice_history", []))
        return cls(
            id=str(data.get("id", "")),
            template_id=str(data.get("templateId", data.get("template_id", ""))),
            start_week=int(data.get("startWeek", data.get("start_week", 0))),
            next_due_week=int(data.get("nextStepWeek", data.get("next_due_week", 0))),
            max_steps=int(data.get("maxSteps", data.get("max_steps", 0))),
            current_stage=int(data.get("currentStage", data.get("current_stage", 0))),
            resolved=bool(data.get("resolved", False)),
            choice_history=[None if c is None else int(c) for c in history],
            context=dict(data.get("context", {})),
            event_ids=[str(e) for e in data.get("eventIds", data.get("event_ids", []))],
        )


@dataclass
class NarrativeEvent:
    """An event handed to the inbox."""

    id: str
    type: str
    week: int
    season: int
    title: str
    body: str
    related_ids: list[str] = field(default_factory=list)
    acknowledged: bool = False
    choices: list[Choice] = field(default_factory=list)
    chain_id: str | None = None
    chain_step: int | None = None  # 1-based part number, "part N of max_steps"
    escalation_level: int = 0
    follow_up_week: int | None = None  # absolute week of the next stage
    parent_event_id: str | None = None
    selected_choice: int | None = None

    @property
    def has_choices(self) -> bool:
        return bool(self.choices)

    @property
    def stage_index(self) -> int | None:
        """0-based index of the stage that emitted this event."""
        return None if self.chain_step is None else self.chain_step - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "week": self.week,
            "season": self.season,
            "title": self.title,
            "body": self.body,
            "relatedIds": list(self.related_ids),
            "acknowledged": self.acknowledged,
            "choices": [c.to_dict() for c in self.choices],
            "chainId": self.chain_id,
            "chainStep": self.chain_step,
            "escalationLevel": self.escalation_level,
            "followUpWeek": self.follow_up_week,
            "parentEventId": self.parent_event_id,
            "selectedChoice": self.selected_choice,
        }

    @classmethod
    def from_dict(cls, data: dict) -> NarrativeEvent:
        return cls(
            id=str(data.get("id", "")),
            type=str(data.get("type", "")),
            week=int(data.get("week", 0)),
            season=int(data.get("season", 0)),
            title=str(data.get("title", "")),
            body=str(data.get("body", data.get("description", ""))),
            related_ids=[str(r) for r in data.get("relatedIds", [])],
            acknowledged=bool(data.get("acknowledged", False)),
            choices=[Choice.from_dict(c) for c in data.get("choices") or []],
            chain_id=data.get("chainId"),
            chain_step=data.get("chainStep"),
            escalation_level=int(data.get("escalationLevel", 0)),
            follow_up_week=data.get("followUpWeek"),
            parent_event_id=data.get("parentEventId"),
            selected_choice=data.get("selectedChoice"),
        )
