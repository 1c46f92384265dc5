"""Tests for template registry validation and lookups."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from narrative.models import Choice, EventDraft, Stage, StoryContext, Template
from narrative.registry import TemplateError, TemplateRegistry


@dataclass(frozen=True)
class _Ctx(StoryContext):
    @classmethod
    def build(cls, snapshot, rng) -> _Ctx:
        return cls()


def _say(instance, snapshot, rng):
    return EventDraft(type="note", title="t", body="b")


def _template(template_id: str, *stages: Stage) -> Template:
    return Template(
        id=template_id,
        name=template_id.title(),
        stages=stages or (Stage(week_delay=0, generate=_say),),
        can_trigger=lambda s: True,
        init_context=_Ctx.build,
    )


def test_lookup_and_iteration_order():
    registry = TemplateRegistry([_template("b"), _template("a"), _template("c")])
    assert len(registry) == 3
    assert registry.ids() == ["b", "a", "c"]
    assert [t.id for t in registry] == ["b", "a", "c"]
    assert "a" in registry
    assert registry.get("a").name == "A"
    assert registry.get("missing") is None
    assert "missing" not in registry


def test_duplicate_ids_rejected():
    with pytest.raises(TemplateError):
        TemplateRegistry([_template("a"), _template("a")])


def test_empty_id_rejected():
    with pytest.raises(TemplateError):
        TemplateRegistry([_template("")])


def test_template_without_stages_rejected():
    bad = Template(id="x", name="X", stages=(), can_trigger=lambda s: True, init_context=_Ctx.build)
    with pytest.raises(TemplateError):
        TemplateRegistry([bad])


def test_choice_without_tag_rejected():
    stage = Stage(week_delay=0, generate=_say, choices=(Choice("Go", ""),))
    with pytest.raises(TemplateError):
        TemplateRegistry([_template("x", stage)])


def test_repeated_tag_in_stage_rejected():
    stage = Stage(week_delay=0, generate=_say, choices=(Choice("Go", "go"), Choice("Also go", "go")))
    with pytest.raises(TemplateError):
        TemplateRegistry([_template("x", stage)])


def test_negative_delay_rejected_at_stage_construction():
    with pytest.raises(TemplateError):
        Stage(week_delay=-1, generate=_say)


def test_template_error_is_value_error():
    assert issubclass(TemplateError, ValueError)


def test_effect_tag_reads_stage_choices():
    registry = TemplateRegistry(
        [
            _template(
                "x",
                Stage(week_delay=0, generate=_say),
                Stage(week_delay=2, generate=_say, choices=(Choice("Left", "left"), Choice("Right", "right"))),
            )
        ]
    )
    assert registry.effect_tag("x", 1, 0) == "left"
    assert registry.effect_tag("x", 1, 1) == "right"
    assert registry.effect_tag("x", 1, 2) is None
    assert registry.effect_tag("x", 0, 0) is None
    assert registry.effect_tag("x", 5, 0) is None
    assert registry.effect_tag("x", -1, 0) is None
    assert registry.effect_tag("nope", 1, 0) is None
