"""Weekly scheduler and state machine for templated stories.

One :class:`StoryEngine` drives one variant ("storyline" or "event chain").
The variants share every rule and differ only in their settings and
template catalog.

Each call is a function of (instances, snapshot, rng) to new values. Inputs
are never mutated. The RNG is consumed in a fixed order (trigger roll,
template pick, context, instance id, then per due instance in list order:
generator draws, event id), which is what makes a seeded replay exact.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from world.models import WorldSnapshot

from .calendar import EVENT_CHAIN_WEEKS_PER_SEASON, STORYLINE_WEEKS_PER_SEASON, Calendar
from .effects import EffectTable
from .models import Instance, NarrativeEvent, Template
from .registry import TemplateRegistry
from .rng import RNG

logger = logging.getLogger(__name__)

_ID_CHARS = "abcdefghijklmnopqrstuvwxyz0123456789"


@dataclass(frozen=True)
class EngineSettings:
    name: str
    weeks_per_season: int
    trigger_chance: float
    max_concurrent: int
    id_prefix: str = "story"

    def __post_init__(self) -> None:
        if self.weeks_per_season < 1:
            raise ValueError(f"weeks_per_season must be positive, got {self.weeks_per_season}")
        if not 0.0 <= self.trigger_chance <= 1.0:
            raise ValueError(f"trigger_chance must be in [0, 1], got {self.trigger_chance}")
        if self.max_concurrent < 0:
            raise ValueError(f"max_concurrent must be >= 0, got {self.max_concurrent}")


STORYLINE_SETTINGS = EngineSettings(
    name="storyline",
    weeks_per_season=STORYLINE_WEEKS_PER_SEASON,
    trigger_chance=0.05,
    max_concurrent=2,
    id_prefix="sl",
)

EVENT_CHAIN_SETTINGS = EngineSettings(
    name="event_chain",
    weeks_per_season=EVENT_CHAIN_WEEKS_PER_SEASON,
    trigger_chance=0.10,
    max_concurrent=3,
    id_prefix="chain",
)


@dataclass
class TickResult:
    events: list[NarrativeEvent] = field(default_factory=list)
    instances: list[Instance] = field(default_factory=list)
    started: Instance | None = None


@dataclass
class ChoiceResult:
    instance: Instance
    reputation_delta: int = 0
    fatigue_delta: int = 0
    message: str | None = None
    effect_tag: str | None = None


def generate_id(prefix: str, rng: RNG, length: int) -> str:
    chars = "".join(_ID_CHARS[rng.next_int(0, len(_ID_CHARS) - 1)] for _ in range(length))
    return f"{prefix}_{chars}"


def _copy(instance: Instance, **changes) -> Instance:
    """Replace fields without sharing mutable containers with the input."""
    changes.setdefault("choice_history", list(instance.choice_history))
    changes.setdefault("context", dict(instance.context))
    changes.setdefault("event_ids", list(instance.event_ids))
    return replace(instance, **changes)


class StoryEngine:
    """Trigger, advance and resolve instances of one template catalog."""

    def __init__(self, settings: EngineSettings, registry: TemplateRegistry, effects: EffectTable):
        self.settings = settings
        self.registry = registry
        self.effects = effects
        self.calendar = Calendar(settings.weeks_per_season)

    @property
    def name(self) -> str:
        return self.settings.name

    def current_week(self, snapshot: WorldSnapshot) -> int:
        return self.calendar.to_absolute(snapshot.current_season, snapshot.current_week)

    # ── Trigger ─────────────────────────────────────────────────

    def try_trigger(
        self,
        snapshot: WorldSnapshot,
        instances: Sequence[Instance],
        rng: RNG,
    ) -> Instance | None:
        """Maybe start a new instance. ``None`` is the normal outcome."""
        active = [i for i in instances if not i.resolved]
        if len(active) >= self.settings.max_concurrent:
            logger.debug("%s: at capacity (%d active)", self.name, len(active))
            return None

        if not rng.chance(self.settings.trigger_chance):
            return None

        running = {i.template_id for i in active}
        eligible = [t for t in self.registry if t.id not in running and t.can_trigger(snapshot)]
        if not eligible:
            logger.debug("%s: trigger roll passed but no template is eligible", self.name)
            return None

        template = rng.pick(eligible)
        return self.instantiate(template, snapshot, rng)

    def instantiate(self, template: Template, snapshot: WorldSnapshot, rng: RNG) -> Instance:
        """Build a fresh instance at stage 0, due this week."""
        context = template.init_context(snapshot, rng).to_dict()
        now = self.current_week(snapshot)
        instance = Instance(
            id=generate_id(self.settings.id_prefix, rng, 10),
            template_id=template.id,
            start_week=now,
            next_due_week=now,
            max_steps=len(template.stages),
            choice_history=[None] * len(template.stages),
            context=context,
        )
        logger.info("%s: started %r as %s", self.name, template.id, instance.id)
        return instance

    def start(self, template_id: str, snapshot: WorldSnapshot, rng: RNG) -> Instance | None:
        """Instantiate a specific template, skipping the roll and capacity check."""
        template = self.registry.get(template_id)
        if template is None or not template.can_trigger(snapshot):
            return None
        return self.instantiate(template, snapshot, rng)

    # ── Advance ─────────────────────────────────────────────────

    def advance_instance(
        self,
        instance: Instance,
        snapshot: WorldSnapshot,
        rng: RNG,
    ) -> tuple[Instance, NarrativeEvent | None]:
        """Fire the instance's next stage if it is due."""
        if instance.resolved:
            return instance, None
        now = self.current_week(snapshot)
        if instance.next_due_week > now:
            return instance, None

        template = self.registry.get(instance.template_id)
        if template is None:
            logger.info("%s: %s references unknown template %r, resolving", self.name, instance.id, instance.template_id)
            return _copy(instance, resolved=True), None

        index = instance.current_stage
        if not 0 <= index < len(template.stages):
            return _copy(instance, resolved=True), None

        stage = template.stages[index]
        if stage.prerequisite is not None and not stage.prerequisite(snapshot, instance):
            logger.debug("%s: %s stage %d prerequisite failed, aborting", self.name, instance.id, index)
            return _copy(instance, resolved=True), None

        draft = stage.generate(instance, snapshot, rng)
        if draft is None:
            logger.debug("%s: %s stage %d produced no event, aborting", self.name, instance.id, index)
            return _copy(instance, resolved=True), None

        next_index = index + 1
        done = next_index >= len(template.stages)
        follow_up = None if done else now + template.stages[next_index].week_delay

        event = NarrativeEvent(
            id=generate_id("evt", rng, 12),
            type=draft.type,
            week=snapshot.current_week,
            season=snapshot.current_season,
            title=draft.title,
            body=draft.body,
            related_ids=list(draft.related_ids),
            choices=list(stage.choices),
            chain_id=instance.id,
            chain_step=index + 1,
            escalation_level=stage.escalation_level if draft.escalation_level is None else draft.escalation_level,
            follow_up_week=follow_up,
            parent_event_id=instance.event_ids[-1] if instance.event_ids else None,
        )

        updated = _copy(
            instance,
            current_stage=next_index,
            resolved=done,
            next_due_week=now if follow_up is None else follow_up,
            event_ids=[*instance.event_ids, event.id],
        )
        if done:
            logger.info("%s: %s (%s) completed", self.name, instance.id, instance.template_id)
        return updated, event

    def advance_all(
        self,
        snapshot: WorldSnapshot,
        instances: Sequence[Instance],
        rng: RNG,
    ) -> TickResult:
        """Advance every due instance in list order."""
        result = TickResult()
        for instance in instances:
            updated, event = self.advance_instance(instance, snapshot, rng)
            result.instances.append(updated)
            if event is not None:
                result.events.append(event)
        return result

    def tick(
        self,
        snapshot: WorldSnapshot,
        instances: Sequence[Instance],
        rng: RNG,
    ) -> TickResult:
        """One week: trigger, fire the new instance's first stage, advance the rest.

        A started instance is appended after the existing ones and its event
        comes first in ``events``.
        """
        existing = list(instances)
        events: list[NarrativeEvent] = []

        started = self.try_trigger(snapshot, existing, rng)
        if started is not None:
            started, first = self.advance_instance(started, snapshot, rng)
            if first is not None:
                events.append(first)

        advanced = self.advance_all(snapshot, existing, rng)
        events.extend(advanced.events)
        updated = advanced.instances + ([started] if started is not None else [])
        return TickResult(events=events, instances=updated, started=started)

    # ── Choices ─────────────────────────────────────────────────

    def resolve_choice(
        self,
        instance: Instance,
        stage_index: int,
        choice_index: int,
        rng: RNG,
    ) -> ChoiceResult:
        """Record the player's pick and compute its immediate deltas.

        Anything that does not line up (unknown template, a stage not yet
        emitted, a choice index out of range, a choice already recorded) is
        a neutral no-op that returns the instance unchanged.
        """
        tag = self.registry.effect_tag(instance.template_id, stage_index, choice_index)
        if tag is None or stage_index >= instance.current_stage:
            logger.debug(
                "%s: ignoring choice %d at stage %d for %s", self.name, choice_index, stage_index, instance.id
            )
            return ChoiceResult(instance=instance)
        if instance.choice_at(stage_index) is not None:
            logger.debug("%s: stage %d of %s already has a choice", self.name, stage_index, instance.id)
            return ChoiceResult(instance=instance)

        outcome = self.effects.resolve(tag, rng)

        history = list(instance.choice_history)
        if len(history) <= stage_index:
            history.extend([None] * (stage_index + 1 - len(history)))
        history[stage_index] = choice_index
        updated = _copy(
            instance,
            choice_history=history,
            context={**instance.context, "player_choice": tag},
        )
        logger.info(
            "%s: %s chose %r (rep %+d, fatigue %+d)",
            self.name,
            instance.id,
            tag,
            outcome.reputation,
            outcome.fatigue,
        )
        return ChoiceResult(
            instance=updated,
            reputation_delta=outcome.reputation,
            fatigue_delta=outcome.fatigue,
            message=outcome.message,
            effect_tag=tag,
        )
