"""Progress persistence and cycle history.

Progress = key-value JSON file, read on session start, written per completion
History = append-only log of finished cycles (SQLite database)
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Progress store (JSON) ───────────────────────────────────────


class ProgressStore:
    """String-keyed records kept in a single JSON document."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable progress file %s: %s", self._path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring progress file %s: not a JSON object", self._path)
            return {}
        return raw

    def get(self, key: str) -> Any | None:
        """Stored value for key; None when absent or unreadable."""
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        """Write one key. Raises OSError when the file cannot be written."""
        data = self._read_all()
        data[key] = value
        self._write_all(data)
        logger.debug("Saved %s to %s", key, self._path)

    def delete(self, key: str) -> bool:
        """Remove one key. Raises OSError when the file cannot be written."""
        data = self._read_all()
        if key not in data:
            return False
        del data[key]
        self._write_all(data)
        logger.debug("Deleted %s from %s", key, self._path)
        return True

    def _write_all(self, data: dict[str, Any]) -> None:
        # Readers never see a half-written document.
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)


# ── History Database (SQLite) ───────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cycles (
    id TEXT PRIMARY KEY,
    completed_on TEXT,        -- YYYY-MM-DD
    days_per_cycle INTEGER,
    budget_total INTEGER,
    remaining INTEGER,
    points_earned INTEGER,
    survived INTEGER,
    total_points INTEGER,
    streak INTEGER,
    level INTEGER,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS achievements (
    id TEXT PRIMARY KEY,
    achievement TEXT,
    cycle_id TEXT,
    streak INTEGER,
    created_at TEXT
);
"""


class HistoryDB:
    """Append-only history of finished cycles."""

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

    async def log_cycle(
        self,
        completed_on: str,
        days_per_cycle: int,
        budget_total: int,
        remaining: int,
        points_earned: int,
        survived: bool,
        total_points: int,
        streak: int,
        level: int,
    ) -> str:
        row_id = str(uuid.uuid4())
        await self._db.execute(
            "INSERT INTO cycles (id, completed_on, days_per_cycle, budget_total, remaining, points_earned, "
            "survived, total_points, streak, level, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                row_id,
                completed_on,
                days_per_cycle,
                budget_total,
                remaining,
                points_earned,
                int(survived),
                total_points,
                streak,
                level,
                _now_iso(),
            ),
        )
        await self._db.commit()
        return row_id

    async def log_achievement(self, achievement: str, cycle_id: str = "", streak: int = 0) -> str:
        row_id = str(uuid.uuid4())
        await self._db.execute(
            "INSERT INTO achievements (id, achievement, cycle_id, streak, created_at) VALUES (?, ?, ?, ?, ?)",
            (row_id, achievement, cycle_id, streak, _now_iso()),
        )
        await self._db.commit()
        return row_id

    # ── Queries ─────────────────────────────────────────────────

    async def get_recent_cycles(self, limit: int = 10) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM cycles ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
        )
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [dict(zip(cols, row)) for row in rows]

    async def get_recent_achievements(self, limit: int = 10) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM achievements ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
        )
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [dict(zip(cols, row)) for row in rows]

    async def get_cycle_counts(self) -> dict[str, int]:
        cursor = await self._db.execute(
            "SELECT COUNT(*), COALESCE(SUM(survived), 0) FROM cycles"
        )
        row = await cursor.fetchone()
        total, survived = (int(row[0]), int(row[1])) if row else (0, 0)
        return {"total": total, "survived": survived, "failed": total - survived}
