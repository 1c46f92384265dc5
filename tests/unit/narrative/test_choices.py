"""Tests for recording player choices and their immediate effects."""

from __future__ import annotations

from narrative.models import Instance
from narrative.rng import SeededRNG
from stories import storyline_engine
from world.models import WorldSnapshot


class ScriptedRNG:
    """Replays fixed draws, then a constant."""

    def __init__(self, values: list[float], default: float = 0.5):
        self._values = list(values)
        self._default = default

    def next(self) -> float:
        return self._values.pop(0) if self._values else self._default

    def chance(self, probability: float) -> bool:
        return self.next() < probability

    def next_int(self, low: int, high: int) -> int:
        return low + int(self.next() * (high - low + 1))

    def pick(self, items):
        return items[self.next_int(0, len(items) - 1)]

    def pick_weighted(self, items):
        return items[0][0]


WORLD = WorldSnapshot.from_dict(
    {
        "current_season": 1,
        "current_week": 1,
        "scout": {"reputation": 50, "career_tier": 3, "current_club_id": "club_h"},
        "countries": ["england", "portugal"],
        "contacts": [{"id": "con_v", "name": "Vera Lindholm", "type": "agent"}],
        "clubs": [{"id": "club_h", "name": "Harbour Town"}],
        "players": [
            {"id": "p1", "first_name": "Tunde", "last_name": "Adeyemi", "age": 17, "current_ability": 96},
            {"id": "p2", "first_name": "Daniel", "last_name": "Okafor", "age": 31, "current_ability": 128},
        ],
        "reports": ["r1"],
    }
)


def _at(season: int, week: int) -> WorldSnapshot:
    return WORLD.at_week(season, week)


def _agent_story_at_choice():
    """corruptAgent advanced through its choice stage (stage 1, week 5)."""
    engine = storyline_engine()
    rng = SeededRNG("agent")
    instance = engine.start("corruptAgent", _at(1, 1), rng)
    instance, _ = engine.advance_instance(instance, _at(1, 1), rng)
    instance, event = engine.advance_instance(instance, _at(1, 5), rng)
    return engine, instance, event


def test_choice_event_carries_stage_options():
    _, instance, event = _agent_story_at_choice()
    assert (event.chain_step, event.stage_index) == (2, 1)
    assert [c.effect for c in event.choices] == ["agentExpose", "agentLeverage"]
    assert instance.current_stage == 2
    assert instance.resolved is False


def test_expose_gives_reputation():
    engine, instance, _ = _agent_story_at_choice()
    result = engine.resolve_choice(instance, 1, 0, ScriptedRNG([0.0]))
    assert result.effect_tag == "agentExpose"
    assert result.reputation_delta == 5
    assert result.fatigue_delta == 0
    assert result.instance.player_choice == "agentExpose"
    assert result.instance.choice_history == [None, 0, None]


def test_leverage_discovered_costs_reputation():
    engine, instance, _ = _agent_story_at_choice()
    result = engine.resolve_choice(instance, 1, 1, ScriptedRNG([0.1]))
    assert result.effect_tag == "agentLeverage"
    assert result.reputation_delta == -3
    assert "discovered" in result.message


def test_leverage_undiscovered_is_free():
    engine, instance, _ = _agent_story_at_choice()
    result = engine.resolve_choice(instance, 1, 1, ScriptedRNG([0.9]))
    assert result.reputation_delta == 0
    assert "quietly leverage" in result.message
    assert result.instance.context["player_choice"] == "agentLeverage"
    assert result.instance.choice_at(1) == 1


def test_resolving_does_not_touch_the_input():
    engine, instance, _ = _agent_story_at_choice()
    before = instance.to_dict()
    engine.resolve_choice(instance, 1, 1, ScriptedRNG([0.9]))
    assert instance.to_dict() == before


def test_second_choice_for_same_stage_is_ignored():
    engine, instance, _ = _agent_story_at_choice()
    chosen = engine.resolve_choice(instance, 1, 0, ScriptedRNG([0.0])).instance
    again = engine.resolve_choice(chosen, 1, 1, ScriptedRNG([0.1]))
    assert again.instance is chosen
    assert again.effect_tag is None
    assert again.reputation_delta == 0
    assert chosen.player_choice == "agentExpose"


def test_choice_for_stage_not_yet_emitted_is_ignored():
    engine = storyline_engine()
    rng = SeededRNG("early")
    instance = engine.start("corruptAgent", _at(1, 1), rng)
    instance, _ = engine.advance_instance(instance, _at(1, 1), rng)
    result = engine.resolve_choice(instance, 1, 0, rng)
    assert result.instance is instance
    assert result.effect_tag is None


def test_invalid_positions_are_neutral():
    engine, instance, _ = _agent_story_at_choice()
    for stage_index, choice_index in [(1, 7), (0, 0), (9, 0), (1, -1)]:
        result = engine.resolve_choice(instance, stage_index, choice_index, ScriptedRNG([]))
        assert result.instance is instance
        assert (result.reputation_delta, result.fatigue_delta, result.message) == (0, 0, None)


def test_unknown_template_is_neutral():
    engine = storyline_engine()
    stale = Instance(id="sl_x", template_id="retired", start_week=1, next_due_week=9, max_steps=2, current_stage=2)
    result = engine.resolve_choice(stale, 1, 0, ScriptedRNG([]))
    assert result.instance is stale
    assert result.effect_tag is None


def test_final_stage_choice_resolves_after_completion():
    engine = storyline_engine()
    rng = SeededRNG("prodigal")
    instance = engine.start("prodigalReturn", _at(2, 1), rng)
    instance, _ = engine.advance_instance(instance, _at(2, 1), rng)
    instance, event = engine.advance_instance(instance, _at(2, 5), rng)
    assert instance.resolved is True
    assert [c.effect for c in event.choices] == ["prodigalRecommend", "prodigalPass"]

    performs = engine.resolve_choice(instance, 1, 0, ScriptedRNG([0.2]))
    assert performs.reputation_delta == 6
    declines = engine.resolve_choice(instance, 1, 0, ScriptedRNG([0.8]))
    assert declines.reputation_delta == -4
    passed = engine.resolve_choice(instance, 1, 1, ScriptedRNG([0.8]))
    assert passed.reputation_delta == 6
    assert performs.instance.resolved is True


def test_choice_steers_the_next_stage():
    engine = storyline_engine()
    rng = SeededRNG("chase")
    instance = engine.start("wonderkidChase", _at(1, 1), rng)
    instance, _ = engine.advance_instance(instance, _at(1, 1), rng)
    instance, event = engine.advance_instance(instance, _at(1, 4), rng)
    assert [c.effect for c in event.choices] == ["wonderkidRush", "wonderkidWait"]

    waited = engine.resolve_choice(instance, 1, 1, ScriptedRNG([]))
    assert waited.fatigue_delta == 0
    _, outcome = engine.advance_instance(waited.instance, _at(1, 7), ScriptedRNG([0.1]))
    assert outcome.title == "Wonderkid Chase: +12 Reputation"

    rushed = engine.resolve_choice(instance, 1, 0, ScriptedRNG([]))
    assert rushed.fatigue_delta == 5
    _, outcome = engine.advance_instance(rushed.instance, _at(1, 7), ScriptedRNG([0.1]))
    assert outcome.title == "Wonderkid Chase: +8 Reputation"

    _, outcome = engine.advance_instance(instance, _at(1, 7), ScriptedRNG([0.7]))
    assert outcome.title == "Wonderkid Chase: -3 Reputation"
