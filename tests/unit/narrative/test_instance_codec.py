"""Tests for the persisted shapes of instances, events and contexts."""

from __future__ import annotations

import json
from dataclasses import dataclass

import pytest

from narrative.models import Choice, Instance, NarrativeEvent, StoryContext, TemplateError


def _instance() -> Instance:
    return Instance(
        id="sl_abc",
        template_id="corruptAgent",
        start_week=3,
        next_due_week=7,
        max_steps=3,
        current_stage=1,
        choice_history=[None, None, None],
        context={"agent_id": "con_1", "agent_name": "Vera", "player_choice": None},
        event_ids=["evt_1"],
    )


def test_instance_to_dict_uses_persisted_keys():
    data = _instance().to_dict()
    assert set(data) == {
        "id",
        "templateId",
        "startWeek",
        "currentStage",
        "maxSteps",
        "resolved",
        "choiceHistory",
        "context",
        "nextStepWeek",
        "eventIds",
    }
    assert data["templateId"] == "corruptAgent"
    assert data["nextStepWeek"] == 7


def test_instance_survives_json():
    original = _instance()
    restored = Instance.from_dict(json.loads(json.dumps(original.to_dict())))
    assert restored == original


def test_instance_from_dict_accepts_snake_case():
    restored = Instance.from_dict(
        {
            "id": "chain_x",
            "template_id": "transferSaga",
            "start_week": 1,
            "next_due_week": 3,
            "max_steps": 4,
            "current_stage": 1,
            "choice_history": [None, 1, None, None],
            "event_ids": ["evt_a"],
        }
    )
    assert restored.template_id == "transferSaga"
    assert restored.choice_at(1) == 1
    assert restored.choice_at(9) is None
    assert restored.context == {}


def test_instance_player_choice_reads_context():
    instance = _instance()
    assert instance.player_choice is None
    instance.context["player_choice"] = "agentExpose"
    assert instance.player_choice == "agentExpose"


def test_event_round_trip_keeps_choices():
    event = NarrativeEvent(
        id="evt_1",
        type="agentDoubleDealing",
        week=5,
        season=1,
        title="Title",
        body="Body",
        related_ids=["con_1"],
        choices=[Choice("Expose publicly", "agentExpose"), Choice("Leverage for intel", "agentLeverage")],
        chain_id="sl_abc",
        chain_step=1,
        escalation_level=1,
        follow_up_week=9,
        parent_event_id="evt_0",
    )
    data = json.loads(json.dumps(event.to_dict()))
    assert data["chainStep"] == 1
    assert data["choices"][1] == {"label": "Leverage for intel", "effect": "agentLeverage"}
    assert NarrativeEvent.from_dict(data) == event
    assert event.has_choices


def test_chain_step_is_the_part_number():
    event = NarrativeEvent(id="evt_1", type="t", week=1, season=1, title="", body="", chain_step=1)
    assert event.stage_index == 0
    loose = NarrativeEvent(id="evt_2", type="t", week=1, season=1, title="", body="")
    assert loose.stage_index is None


def test_context_round_trip_through_instance():
    @dataclass(frozen=True)
    class Ctx(StoryContext):
        name: str = ""
        bid: int = 0

    ctx = Ctx(name="Vera", bid=12)
    data = ctx.to_dict()
    assert data == {"name": "Vera", "bid": 12, "player_choice": None}

    instance = _instance()
    instance.context = {**data, "player_choice": "transferAssess", "stray": 1}
    restored = Ctx.of(instance)
    assert restored.name == "Vera"
    assert restored.bid == 12
    assert restored.player_choice == "transferAssess"


def test_context_rejects_non_primitive_values():
    @dataclass(frozen=True)
    class Bad(StoryContext):
        ids: tuple = ("a", "b")

    with pytest.raises(TemplateError):
        Bad().to_dict()
