"""Tests for triggering, scheduling and advancing story instances."""

from __future__ import annotations

import json
from dataclasses import dataclass

from narrative.effects import EffectTable
from narrative.engine import EngineSettings, StoryEngine, generate_id
from narrative.models import Choice, EventDraft, Instance, Stage, StoryContext, Template
from narrative.registry import TemplateRegistry
from narrative.rng import SeededRNG
from stories import event_chain_engine, storyline_engine
from world.models import WorldSnapshot


@dataclass(frozen=True)
class _Ctx(StoryContext):
    label: str = ""

    @classmethod
    def build(cls, snapshot, rng) -> _Ctx:
        return cls(label=f"s{snapshot.current_season}w{snapshot.current_week}")


def _emit(kind: str):
    def generate(instance, snapshot, rng):
        return EventDraft(type=kind, title=f"{kind} title", body=f"{kind} body")

    return generate


def _nothing(instance, snapshot, rng):
    return None


def _template(template_id: str, *stages: Stage) -> Template:
    return Template(
        id=template_id,
        name=template_id,
        stages=stages,
        can_trigger=lambda s: True,
        init_context=_Ctx.build,
    )


HAPPY = _template(
    "happy",
    Stage(week_delay=0, generate=_emit("one")),
    Stage(week_delay=3, generate=_emit("two"), choices=(Choice("A", "tagA"), Choice("B", "tagB"))),
    Stage(week_delay=3, generate=_emit("three")),
)

EMPLOYED_ONLY = _template(
    "employedOnly",
    Stage(week_delay=0, generate=_emit("start")),
    Stage(
        week_delay=4,
        generate=_emit("middle"),
        prerequisite=lambda s, i: s.scout.current_club_id is not None,
    ),
)

FIZZLE = _template(
    "fizzle",
    Stage(week_delay=0, generate=_emit("start")),
    Stage(week_delay=1, generate=_nothing),
    Stage(week_delay=1, generate=_emit("never")),
)

OTHER = _template("other", Stage(week_delay=0, generate=_emit("other")), Stage(week_delay=2, generate=_emit("end")))


def _engine(*templates: Template, trigger: float = 1.0, capacity: int = 2) -> StoryEngine:
    settings = EngineSettings("test", 38, trigger, capacity, "t")
    return StoryEngine(settings, TemplateRegistry(templates), EffectTable({}))


def _snapshot(season: int = 1, week: int = 1, club: str | None = "club_a") -> WorldSnapshot:
    return WorldSnapshot.from_dict(
        {
            "current_season": season,
            "current_week": week,
            "scout": {"reputation": 50, "career_tier": 3, "current_club_id": club},
        }
    )


class _NoDrawRNG:
    """Fails the test if the engine consumes any randomness."""

    def _fail(self, *args):
        raise AssertionError("RNG must not be consumed")

    next = chance = next_int = pick = pick_weighted = _fail


SAMPLE_WORLD = {
    "current_season": 1,
    "current_week": 1,
    "scout": {"reputation": 55, "career_tier": 3, "current_club_id": "club_h", "fatigue": 10},
    "countries": ["england", "portugal", "brazil"],
    "contacts": [
        {"id": "con_a", "name": "Vera Lindholm", "type": "agent"},
        {"id": "con_b", "name": "Omar Haddad", "type": "journalist"},
    ],
    "clubs": [{"id": "club_h", "name": "Harbour Town"}, {"id": "club_i", "name": "Ironbridge"}],
    "players": [
        {"id": "p1", "first_name": "Tunde", "last_name": "Adeyemi", "age": 17, "current_ability": 96},
        {"id": "p2", "first_name": "Rafael", "last_name": "Sousa", "age": 19, "current_ability": 108},
        {"id": "p3", "first_name": "Callum", "last_name": "Hartley", "age": 21, "current_ability": 121},
        {"id": "p4", "first_name": "Kenji", "last_name": "Nakamura", "age": 24, "current_ability": 134},
        {"id": "p5", "first_name": "Liam", "last_name": "Brennan", "age": 29, "current_ability": 140},
        {"id": "p6", "first_name": "Daniel", "last_name": "Okafor", "age": 33, "current_ability": 128},
    ],
    "rival_scouts": [{"id": "rs_1", "name": "Declan Marsh"}],
    "reports": ["r1", "r2", "r3"],
    "managers": ["m1"],
}


def _simulate(engine: StoryEngine, weeks: int, seed: str, roundtrip: bool = False):
    """Tick ``engine`` over consecutive weeks of its own calendar."""
    world = WorldSnapshot.from_dict(SAMPLE_WORLD)
    calendar = engine.calendar
    instances: list[Instance] = []
    history = []
    for absolute in range(1, weeks + 1):
        season, week = calendar.from_absolute(absolute)
        snapshot = world.at_week(season, week)
        result = engine.tick(snapshot, instances, SeededRNG(f"{seed}-{absolute}"))
        instances = result.instances
        if roundtrip:
            instances = [Instance.from_dict(json.loads(json.dumps(i.to_dict()))) for i in instances]
        history.append((result.events, instances))
    return history


# ── Trigger ─────────────────────────────────────────────────────


class TestTrigger:
    def test_trigger_builds_fresh_instance(self):
        engine = _engine(HAPPY)
        instance = engine.try_trigger(_snapshot(2, 10), [], SeededRNG(1))
        assert instance is not None
        assert instance.template_id == "happy"
        assert instance.current_stage == 0
        assert instance.resolved is False
        assert instance.max_steps == 3
        assert instance.choice_history == [None, None, None]
        assert instance.start_week == 48
        assert instance.next_due_week == 48
        assert instance.context == {"label": "s2w10", "player_choice": None}
        assert instance.id.startswith("t_") and len(instance.id) == 12

    def test_failed_roll_starts_nothing(self):
        engine = _engine(HAPPY, trigger=0.0)
        assert engine.try_trigger(_snapshot(), [], SeededRNG(1)) is None

    def test_capacity_blocks_without_drawing(self):
        engine = _engine(HAPPY, OTHER, FIZZLE, capacity=2)
        active = [
            Instance(id="a", template_id="happy", start_week=1, next_due_week=4, max_steps=3),
            Instance(id="b", template_id="other", start_week=1, next_due_week=3, max_steps=2),
        ]
        assert engine.try_trigger(_snapshot(), active, _NoDrawRNG()) is None

    def test_resolved_instances_do_not_count_against_capacity(self):
        engine = _engine(HAPPY, capacity=1)
        done = Instance(id="a", template_id="happy", start_week=1, next_due_week=1, max_steps=3, resolved=True)
        started = engine.try_trigger(_snapshot(), [done], SeededRNG(5))
        assert started is not None
        assert started.template_id == "happy"

    def test_running_template_is_not_started_twice(self):
        engine = _engine(HAPPY, capacity=5)
        running = Instance(id="a", template_id="happy", start_week=1, next_due_week=4, max_steps=3)
        assert engine.try_trigger(_snapshot(), [running], SeededRNG(1)) is None

    def test_ineligible_templates_are_skipped(self):
        blocked = Template(
            id="blocked",
            name="blocked",
            stages=(Stage(week_delay=0, generate=_emit("x")),),
            can_trigger=lambda s: False,
            init_context=_Ctx.build,
        )
        engine = _engine(blocked, OTHER)
        for seed in range(10):
            assert engine.try_trigger(_snapshot(), [], SeededRNG(seed)).template_id == "other"

    def test_start_skips_roll_but_checks_eligibility(self):
        engine = _engine(HAPPY, trigger=0.0)
        assert engine.start("happy", _snapshot(), SeededRNG(1)).template_id == "happy"
        assert engine.start("unknown", _snapshot(), SeededRNG(1)) is None

    def test_generate_id_shape(self):
        event_id = generate_id("evt", SeededRNG(3), 12)
        assert event_id.startswith("evt_")
        assert len(event_id) == 16
        assert set(event_id[4:]) <= set("abcdefghijklmnopqrstuvwxyz0123456789")


# ── Advance ─────────────────────────────────────────────────────


class TestAdvance:
    def test_happy_path_runs_every_stage(self):
        engine = _engine(HAPPY)
        rng = SeededRNG("happy")
        instance = engine.start("happy", _snapshot(1, 1), rng)

        instance, first = engine.advance_instance(instance, _snapshot(1, 1), rng)
        assert first.type == "one"
        assert first.chain_id == instance.id
        assert first.chain_step == 1
        assert first.choices == []
        assert first.follow_up_week == 4
        assert first.parent_event_id is None
        assert instance.current_stage == 1
        assert instance.next_due_week == 4
        assert instance.event_ids == [first.id]

        for week in (2, 3):
            same, nothing = engine.advance_instance(instance, _snapshot(1, week), rng)
            assert same is instance
            assert nothing is None

        instance, second = engine.advance_instance(instance, _snapshot(1, 4), rng)
        assert second.type == "two"
        assert second.chain_step == 2
        assert [c.effect for c in second.choices] == ["tagA", "tagB"]
        assert second.parent_event_id == first.id
        assert second.follow_up_week == 7
        assert instance.next_due_week == 7

        instance, third = engine.advance_instance(instance, _snapshot(1, 7), rng)
        assert third.type == "three"
        assert third.chain_step == 3
        assert third.follow_up_week is None
        assert third.parent_event_id == second.id
        assert instance.resolved is True
        assert instance.current_stage == 3
        assert instance.event_ids == [first.id, second.id, third.id]

        final, nothing = engine.advance_instance(instance, _snapshot(1, 20), rng)
        assert final is instance
        assert nothing is None

    def test_late_instance_fires_one_stage_per_tick(self):
        engine = _engine(HAPPY)
        rng = SeededRNG(2)
        instance = engine.start("happy", _snapshot(1, 1), rng)
        instance, _ = engine.advance_instance(instance, _snapshot(1, 1), rng)
        instance, event = engine.advance_instance(instance, _snapshot(1, 30), rng)
        assert event.type == "two"
        assert instance.current_stage == 2
        assert instance.next_due_week == 33

    def test_hard_abort_on_failed_prerequisite(self):
        engine = _engine(EMPLOYED_ONLY)
        rng = SeededRNG(4)
        instance = engine.start("employedOnly", _snapshot(1, 1), rng)
        instance, _ = engine.advance_instance(instance, _snapshot(1, 1), rng)

        updated, event = engine.advance_instance(instance, _snapshot(1, 5, club=None), rng)
        assert event is None
        assert updated.resolved is True
        assert updated.current_stage == 1
        assert len(updated.event_ids) == 1

    def test_prerequisite_that_holds_lets_stage_fire(self):
        engine = _engine(EMPLOYED_ONLY)
        rng = SeededRNG(4)
        instance = engine.start("employedOnly", _snapshot(1, 1), rng)
        instance, _ = engine.advance_instance(instance, _snapshot(1, 1), rng)
        updated, event = engine.advance_instance(instance, _snapshot(1, 5), rng)
        assert event.type == "middle"
        assert updated.resolved is True

    def test_soft_abort_when_generator_declines(self):
        engine = _engine(FIZZLE)
        rng = SeededRNG(8)
        instance = engine.start("fizzle", _snapshot(1, 1), rng)
        instance, _ = engine.advance_instance(instance, _snapshot(1, 1), rng)
        updated, event = engine.advance_instance(instance, _snapshot(1, 2), rng)
        assert event is None
        assert updated.resolved is True
        assert updated.current_stage == 1

    def test_unknown_template_resolves_quietly(self):
        engine = _engine(HAPPY)
        stale = Instance(id="x", template_id="removedLongAgo", start_week=1, next_due_week=1, max_steps=2)
        updated, event = engine.advance_instance(stale, _snapshot(), _NoDrawRNG())
        assert event is None
        assert updated.resolved is True
        assert stale.resolved is False

    def test_stage_index_past_end_resolves(self):
        engine = _engine(OTHER)
        broken = Instance(id="x", template_id="other", start_week=1, next_due_week=1, max_steps=2, current_stage=5)
        updated, event = engine.advance_instance(broken, _snapshot(), _NoDrawRNG())
        assert event is None
        assert updated.resolved is True

    def test_inputs_are_not_mutated(self):
        engine = _engine(HAPPY)
        rng = SeededRNG(1)
        instance = engine.start("happy", _snapshot(), rng)
        before = instance.to_dict()
        engine.advance_instance(instance, _snapshot(), rng)
        assert instance.to_dict() == before

    def test_advance_all_keeps_order(self):
        engine = _engine(HAPPY, OTHER)
        rng = SeededRNG(1)
        a = engine.start("happy", _snapshot(), rng)
        b = engine.start("other", _snapshot(), rng)
        result = engine.advance_all(_snapshot(), [a, b], rng)
        assert [i.template_id for i in result.instances] == ["happy", "other"]
        assert [e.type for e in result.events] == ["one", "other"]


# ── Tick ────────────────────────────────────────────────────────


class TestTick:
    def test_new_instance_appended_and_its_event_first(self):
        engine = _engine(HAPPY, OTHER, capacity=3)
        rng = SeededRNG(1)
        existing = engine.start("happy", _snapshot(1, 1), rng)
        existing, _ = engine.advance_instance(existing, _snapshot(1, 1), rng)

        result = engine.tick(_snapshot(1, 4), [existing], SeededRNG("tick"))
        assert result.started is not None
        assert result.started.template_id == "other"
        assert [i.template_id for i in result.instances] == ["happy", "other"]
        assert [e.type for e in result.events] == ["other", "two"]
        assert result.instances[-1].current_stage == 1

    def test_quiet_week_returns_inputs(self):
        engine = _engine(HAPPY, trigger=0.0)
        rng = SeededRNG(1)
        instance = engine.start("happy", _snapshot(1, 1), rng)
        instance, _ = engine.advance_instance(instance, _snapshot(1, 1), rng)
        result = engine.tick(_snapshot(1, 2), [instance], SeededRNG(2))
        assert result.started is None
        assert result.events == []
        assert result.instances == [instance]


# ── Whole-catalog properties ────────────────────────────────────


class TestCatalogRuns:
    def test_same_seed_replays_exactly(self):
        first = _simulate(event_chain_engine(), 80, "replay")
        second = _simulate(event_chain_engine(), 80, "replay")
        flatten = lambda h: [([e.to_dict() for e in ev], [i.to_dict() for i in inst]) for ev, inst in h]
        assert flatten(first) == flatten(second)

    def test_serializing_between_ticks_changes_nothing(self):
        plain = _simulate(storyline_engine(), 80, "codec")
        stored = _simulate(storyline_engine(), 80, "codec", roundtrip=True)
        assert [[e.to_dict() for e in ev] for ev, _ in plain] == [[e.to_dict() for e in ev] for ev, _ in stored]

    def test_capacity_monotonicity_and_terminality(self):
        for engine in (storyline_engine(), event_chain_engine()):
            previous: dict[str, Instance] = {}
            for _, instances in _simulate(engine, 150, f"props-{engine.name}"):
                active = [i for i in instances if not i.resolved]
                assert len(active) <= engine.settings.max_concurrent
                running = [i.template_id for i in active]
                assert len(running) == len(set(running))
                for instance in instances:
                    old = previous.get(instance.id)
                    if old is not None:
                        assert instance.current_stage >= old.current_stage
                        if old.resolved:
                            assert instance.resolved
                            assert instance.current_stage == old.current_stage
                            assert instance.event_ids == old.event_ids
                            assert instance.context == old.context
                            assert instance.choice_history == old.choice_history
                previous = {i.id: i for i in instances}

    def test_something_happens_over_a_long_run(self):
        history = _simulate(event_chain_engine(), 150, "busy")
        assert any(events for events, _ in history)
