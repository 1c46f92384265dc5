"""Immutable catalog of story templates, looked up by id."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .models import Template, TemplateError

__all__ = ["TemplateError", "TemplateRegistry"]


class TemplateRegistry:
    """Static, validated list of templates.

    Holds no mutable state, so one registry can back any number of sessions.
    Unknown ids return ``None``; a save that references a removed template is
    expected drift, not an error.
    """

    def __init__(self, templates: Iterable[Template]):
        self._templates: tuple[Template, ...] = tuple(templates)
        self._by_id: dict[str, Template] = {}
        for template in self._templates:
            _validate(template)
            if template.id in self._by_id:
                raise TemplateError(f"duplicate template id: {template.id!r}")
            self._by_id[template.id] = template

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._by_id

    def get(self, template_id: str) -> Template | None:
        return self._by_id.get(template_id)

    def ids(self) -> list[str]:
        return [t.id for t in self._templates]

    def effect_tag(self, template_id: str, stage_index: int, choice_index: int) -> str | None:
        """Map a choice position to the tag declared on its stage."""
        template = self._by_id.get(template_id)
        if template is None or not 0 <= stage_index < len(template.stages):
            return None
        choices = template.stages[stage_index].choices
        if not 0 <= choice_index < len(choices):
            return None
        return choices[choice_index].effect


def _validate(template: Template) -> None:
    if not template.id:
        raise TemplateError("template id must not be empty")
    if not template.stages:
        raise TemplateError(f"template {template.id!r} has no stages")
    for index, stage in enumerate(template.stages):
        tags = [c.effect for c in stage.choices]
        if any(not tag for tag in tags):
            raise TemplateError(f"template {template.id!r} stage {index} has a choice without an effect tag")
        if len(set(tags)) != len(tags):
            raise TemplateError(f"template {template.id!r} stage {index} repeats an effect tag")
