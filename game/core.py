"""Career loop: one call per in-game week drives both story engines.

Each week: tick storylines -> tick event chains -> settle choices -> advance
the calendar. Every engine call gets its own RNG stream derived from the
save seed, so a career replays identically from the same save.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from narrative.engine import StoryEngine
from narrative.models import NarrativeEvent
from narrative.rng import SeededRNG
from stories import event_chain_engine, storyline_engine
from world.models import WorldSnapshot

from .config import engine_settings, load_config, load_world, simulation_settings, storage_path
from .memory import HistoryDB, SaveState, StateManager

logger = logging.getLogger(__name__)

VARIANTS = ("storyline", "event_chain")

STAT_MIN = 0
STAT_MAX = 100


def _clamp(value: int) -> int:
    return max(STAT_MIN, min(STAT_MAX, value))


@dataclass
class AppliedChoice:
    variant: str
    event_id: str
    instance_id: str
    stage_index: int
    choice_index: int
    effect_tag: str | None = None
    reputation_delta: int = 0
    fatigue_delta: int = 0
    message: str | None = None


@dataclass
class WeekSummary:
    """What happened in one simulated week."""

    season: int
    week: int
    events: list[tuple[str, NarrativeEvent]] = field(default_factory=list)
    choices: list[AppliedChoice] = field(default_factory=list)
    started: list[str] = field(default_factory=list)  # template ids
    reputation: int = 0
    fatigue: int = 0

    def __str__(self) -> str:
        return (
            f"[S{self.season} W{self.week:02d}] {len(self.events)} event(s), "
            f"{len(self.choices)} choice(s) | rep {self.reputation} fatigue {self.fatigue}"
        )


class CareerSimulation:
    """Drives the storyline and event-chain engines over a career save."""

    def __init__(
        self,
        config: dict | None = None,
        world: WorldSnapshot | None = None,
        engines: dict[str, StoryEngine] | None = None,
        dry_run: bool = False,
    ):
        self._cfg = config or load_config()
        self._dry_run = dry_run
        self._world = world or load_world(self._cfg)

        sim = simulation_settings(self._cfg)
        self._seed = sim["seed"]
        self._policy = sim["choice_policy"]

        self._engines = engines or {
            "storyline": storyline_engine(engine_settings(self._cfg, "storyline")),
            "event_chain": event_chain_engine(engine_settings(self._cfg, "event_chain")),
        }
        # The save's (season, week) is shown on the storyline calendar.
        self.calendar = self._engines["storyline"].calendar

        self._state_mgr = StateManager(storage_path(self._cfg, "state_file", "data/career.json"))
        self._db_path = storage_path(self._cfg, "history_db", "data/history.db")

    @property
    def state_manager(self) -> StateManager:
        return self._state_mgr

    def initial_state(self) -> SaveState:
        return SaveState(
            seed=self._seed,
            season=self._world.current_season,
            week=self._world.current_week,
            elapsed_week=self.calendar.to_absolute(self._world.current_season, self._world.current_week),
            reputation=_clamp(round(self._world.scout.reputation)),
            fatigue=_clamp(round(self._world.scout.fatigue)),
        )

    def elapsed_week(self, state: SaveState) -> int:
        """Absolute week on the career clock, shared by both engines."""
        return state.elapsed_week or self.calendar.to_absolute(state.season, state.week)

    def snapshot_for(
        self,
        state: SaveState,
        world: WorldSnapshot | None = None,
        variant: str = "storyline",
    ) -> WorldSnapshot:
        """The world as ``variant`` sees it: its own (season, week) for the career clock."""
        world = world or self._world
        season, week = self._engines[variant].calendar.from_absolute(self.elapsed_week(state))
        return world.at_week(season, week).with_scout(
            reputation=state.reputation,
            fatigue=state.fatigue,
        )

    # ── One week ────────────────────────────────────────────────

    def run_week(self, state: SaveState, snapshot: WorldSnapshot | None = None) -> WeekSummary:
        """Simulate the week the save is on, then move the save to the next week.

        ``state`` is updated in place.
        """
        summary = WeekSummary(season=state.season, week=state.week)
        abs_week = self.elapsed_week(state)
        world = snapshot or self._world

        for variant in VARIANTS:
            engine = self._engines[variant]
            # Built per variant so chains see the reputation storylines just produced.
            current = self.snapshot_for(state, world, variant)
            rng = SeededRNG(f"{state.seed}-{variant}-{abs_week}")
            logger.debug("%s: week %d stream %s-%s-%d", variant, abs_week, state.seed, variant, abs_week)

            result = engine.tick(current, state.instances(variant), rng)
            state.set_instances(variant, result.instances)
            if result.started is not None:
                summary.started.append(result.started.template_id)

            for event in result.events:
                summary.events.append((variant, event))
                if not event.has_choices:
                    continue
                choice_index = self._policy_choice(state, event)
                if choice_index is None:
                    state.inbox.append({"variant": variant, **event.to_dict()})
                    continue
                applied = self._apply_choice(state, variant, event, choice_index)
                if applied is not None:
                    summary.choices.append(applied)

        summary.reputation = state.reputation
        summary.fatigue = state.fatigue

        state.elapsed_week = abs_week + 1
        state.season, state.week = self.calendar.from_absolute(state.elapsed_week)
        state.weeks_simulated += 1
        return summary

    def choose(self, state: SaveState, event_id: str, choice_index: int) -> AppliedChoice | None:
        """Resolve an inbox event by hand. Unknown events are ignored."""
        for position, (variant, event) in enumerate(state.pending_events()):
            if event.id != event_id:
                continue
            applied = self._apply_choice(state, variant, event, choice_index)
            if applied is not None:
                del state.inbox[position]
            return applied
        logger.info("No pending event %s in the inbox", event_id)
        return None

    def _policy_choice(self, state: SaveState, event: NarrativeEvent) -> int | None:
        if self._policy == "none":
            return None
        if self._policy == "random":
            return SeededRNG(f"{state.seed}-policy-{event.id}").next_int(0, len(event.choices) - 1)
        return 0

    def _apply_choice(
        self,
        state: SaveState,
        variant: str,
        event: NarrativeEvent,
        choice_index: int,
    ) -> AppliedChoice | None:
        engine = self._engines[variant]
        instances = state.instances(variant)
        position = next((n for n, i in enumerate(instances) if i.id == event.chain_id), None)
        if position is None or event.stage_index is None:
            logger.info("%s: event %s refers to an instance that no longer exists", variant, event.id)
            return None

        rng = SeededRNG(f"{state.seed}-resolve-{event.id}-{choice_index}")
        result = engine.resolve_choice(instances[position], event.stage_index, choice_index, rng)
        if result.effect_tag is None:
            return None

        instances[position] = result.instance
        state.set_instances(variant, instances)
        state.reputation = _clamp(state.reputation + result.reputation_delta)
        state.fatigue = _clamp(state.fatigue + result.fatigue_delta)
        event.selected_choice = choice_index

        return AppliedChoice(
            variant=variant,
            event_id=event.id,
            instance_id=result.instance.id,
            stage_index=event.stage_index,
            choice_index=choice_index,
            effect_tag=result.effect_tag,
            reputation_delta=result.reputation_delta,
            fatigue_delta=result.fatigue_delta,
            message=result.message,
        )

    # ── Whole run ───────────────────────────────────────────────

    async def run(self, weeks: int) -> list[WeekSummary]:
        """Load the save, simulate ``weeks`` weeks, journal and save."""
        if self._dry_run and not self._state_mgr.exists():
            state = self.initial_state()
        else:
            state = self._state_mgr.load(initial=self.initial_state())
        if state.seed != self._seed:
            logger.warning("Save was started with seed %r; ignoring configured seed %r", state.seed, self._seed)

        if self._dry_run:
            summaries = [self.run_week(state) for _ in range(weeks)]
            logger.info("[DRY RUN] Simulated %d week(s); save left untouched", weeks)
            return summaries

        summaries = []
        async with HistoryDB(self._db_path) as db:
            for _ in range(weeks):
                summary = self.run_week(state)
                await self._journal(db, state, summary)
                summaries.append(summary)
            self._state_mgr.save(state)

        logger.info(
            "Run complete: %d week(s), now season %d week %d",
            weeks,
            state.season,
            state.week,
        )
        return summaries

    async def _journal(self, db: HistoryDB, state: SaveState, summary: WeekSummary) -> None:
        templates = {
            variant: {i.id: i.template_id for i in state.instances(variant)} for variant in VARIANTS
        }
        for variant, event in summary.events:
            await db.log_event(variant, event, template_id=templates[variant].get(event.chain_id or "", ""))
        for choice in summary.choices:
            await db.log_choice(
                choice.variant,
                choice.instance_id,
                choice.event_id,
                choice.stage_index,
                choice.choice_index,
                effect_tag=choice.effect_tag or "",
                reputation_delta=choice.reputation_delta,
                fatigue_delta=choice.fatigue_delta,
                message=choice.message or "",
            )
