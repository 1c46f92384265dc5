"""Save-file persistence and the narrative journal.

State = the career save (JSON file, loaded and written once per run)
History = append-only journal of emitted events and resolved choices (SQLite)
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from narrative.models import Instance, NarrativeEvent

logger = logging.getLogger(__name__)

# ── Career Save (JSON) ──────────────────────────────────────────


@dataclass
class SaveState:
    """Everything needed to resume a career exactly where it stopped."""

    seed: str = "scout"

    # Calendar (storyline weeks, 38 per season)
    season: int = 1
    week: int = 1
    # Continuous career clock; each engine maps it through its own calendar.
    # 0 means "not recorded yet", derived from season/week on first use.
    elapsed_week: int = 0

    # Scout condition, both clamped to 0..100
    reputation: int = 0
    fatigue: int = 0

    # Persisted instance dicts per variant
    storylines: list[dict] = field(default_factory=list)
    chains: list[dict] = field(default_factory=list)

    # Event dicts still waiting for a choice, each tagged with its "variant"
    inbox: list[dict] = field(default_factory=list)

    weeks_simulated: int = 0
    created_at: str = ""
    last_run: str = ""

    def instances(self, variant: str) -> list[Instance]:
        raw = self.storylines if variant == "storyline" else self.chains
        return [Instance.from_dict(d) for d in raw]

    def set_instances(self, variant: str, instances: list[Instance]) -> None:
        data = [i.to_dict() for i in instances]
        if variant == "storyline":
            self.storylines = data
        else:
            self.chains = data

    def pending_events(self) -> list[tuple[str, NarrativeEvent]]:
        return [(d.get("variant", ""), NarrativeEvent.from_dict(d)) for d in self.inbox]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StateManager:
    """Load / save SaveState to a JSON file."""

    def __init__(self, state_path: str | Path):
        self._path = Path(state_path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self, initial: SaveState | None = None) -> SaveState:
        if self._path.exists():
            raw = json.loads(self._path.read_text())
            state = SaveState(**{k: v for k, v in raw.items() if k in SaveState.__dataclass_fields__})
            logger.debug("Loaded save: season=%d week=%d seed=%s", state.season, state.week, state.seed)
            return state

        # First run: create initial state
        state = initial or SaveState()
        state.created_at = state.created_at or _now_iso()
        self.save(state)
        logger.info("Created initial save file at %s", self._path)
        return state

    def save(self, state: SaveState) -> None:
        state.last_run = _now_iso()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(asdict(state), indent=2))
        logger.debug("Saved state to %s", self._path)

    def reset(self) -> bool:
        """Delete the save file. Returns False when there was nothing to delete."""
        if not self._path.exists():
            return False
        self._path.unlink()
        logger.info("Deleted save file %s", self._path)
        return True


# ── Narrative Journal (SQLite) ──────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS narrative_events (
    id TEXT PRIMARY KEY,      -- event id
    variant TEXT,             -- "storyline" | "event_chain"
    instance_id TEXT,
    template_id TEXT,
    chain_step INTEGER,
    event_type TEXT,
    title TEXT,
    body TEXT,
    season INTEGER,
    week INTEGER,
    escalation_level INTEGER,
    choices TEXT,             -- JSON list of {label, effect}
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS choice_log (
    id TEXT PRIMARY KEY,
    variant TEXT,
    instance_id TEXT,
    event_id TEXT,
    stage_index INTEGER,
    choice_index INTEGER,
    effect_tag TEXT,
    reputation_delta INTEGER,
    fatigue_delta INTEGER,
    message TEXT,
    created_at TEXT
);
"""


class HistoryDB:
    """Append-only journal of everything the engines produced."""

    def __init__(self, db_path: str | Path):
        self._path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.debug("History DB ready at %s", self._path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()

    async def __aenter__(self) -> HistoryDB:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── Logging ─────────────────────────────────────────────────

    async def log_event(self, variant: str, event: NarrativeEvent, template_id: str = "") -> str:
        """Journal an emitted event. Re-logging the same event id is ignored."""
        await self._db.execute(
            "INSERT OR IGNORE INTO narrative_events (id, variant, instance_id, template_id, chain_step, "
            "event_type, title, body, season, week, escalation_level, choices, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                event.id,
                variant,
                event.chain_id or "",
                template_id,
                event.chain_step,
                event.type,
                event.title,
                event.body,
                event.season,
                event.week,
                event.escalation_level,
                json.dumps([c.to_dict() for c in event.choices]),
                _now_iso(),
            ),
        )
        await self._db.commit()
        return event.id

    async def log_choice(
        self,
        variant: str,
        instance_id: str,
        event_id: str,
        stage_index: int,
        choice_index: int,
        effect_tag: str = "",
        reputation_delta: int = 0,
        fatigue_delta: int = 0,
        message: str = "",
    ) -> str:
        row_id = str(uuid.uuid4())
        await self._db.execute(
            "INSERT INTO choice_log (id, variant, instance_id, event_id, stage_index, choice_index, "
            "effect_tag, reputation_delta, fatigue_delta, message, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                row_id,
                variant,
                instance_id,
                event_id,
                stage_index,
                choice_index,
                effect_tag,
                reputation_delta,
                fatigue_delta,
                message,
                _now_iso(),
            ),
        )
        await self._db.commit()
        return row_id

    # ── Queries ─────────────────────────────────────────────────

    async def get_recent_events(self, limit: int = 10, variant: str = "") -> list[dict]:
        query = "SELECT * FROM narrative_events"
        params: list[Any] = []
        if variant:
            query += " WHERE variant = ?"
            params.append(variant)
        query += " ORDER BY rowid DESC LIMIT ?"
        params.append(limit)

        cursor = await self._db.execute(query, tuple(params))
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [_decode_event_row(dict(zip(cols, row))) for row in rows]

    async def get_events_for_instance(self, instance_id: str) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM narrative_events WHERE instance_id = ? ORDER BY chain_step ASC, rowid ASC",
            (instance_id,),
        )
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [_decode_event_row(dict(zip(cols, row))) for row in rows]

    async def get_event_count(self, variant: str = "") -> int:
        if variant:
            cursor = await self._db.execute("SELECT COUNT(*) FROM narrative_events WHERE variant = ?", (variant,))
        else:
            cursor = await self._db.execute("SELECT COUNT(*) FROM narrative_events")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def get_recent_choices(self, limit: int = 10) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM choice_log ORDER BY rowid DESC LIMIT ?", (limit,)
        )
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [dict(zip(cols, row)) for row in rows]


def _decode_event_row(row: dict) -> dict:
    row["choices"] = json.loads(row.get("choices") or "[]")
    return row
