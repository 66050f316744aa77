from __future__ import annotations
import aiosqlite
from datetime import datetime, timezone
from typing import Dict, List
from ..domain.models import PhaseEvent


class SQLiteRepository:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS phase_events (
                    ts_utc TEXT NOT NULL,
                    phase TEXT NOT NULL,
                    temperature INTEGER NOT NULL,
                    brightness REAL NOT NULL,
                    enabled INTEGER NOT NULL,
                    next_boundary TEXT
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS idx_phase_events_ts ON phase_events(ts_utc)")
            await db.commit()

    async def insert_phase_event(self, e: PhaseEvent) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO phase_events(ts_utc,phase,temperature,brightness,enabled,next_boundary) VALUES (?,?,?,?,?,?)",
                (
                    e.ts_utc.isoformat(),
                    e.phase,
                    int(e.temperature),
                    float(e.brightness),
                    1 if e.enabled else 0,
                    e.next_boundary.isoformat() if e.next_boundary else None,
                ),
            )
            await db.commit()

    async def query_phase_events(self, start_ts: str, end_ts: str, limit: int) -> List[PhaseEvent]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(
                """
                SELECT ts_utc,phase,temperature,brightness,enabled,next_boundary
                FROM phase_events
                WHERE ts_utc >= ? AND ts_utc <= ?
                ORDER BY ts_utc DESC
                LIMIT ?
                """,
                (start_ts, end_ts, limit),
            )
            rows = await cur.fetchall()
        out: list[PhaseEvent] = []
        for ts, phase, temp, bri, enabled, nxt in rows:
            out.append(
                PhaseEvent(
                    ts_utc=datetime.fromisoformat(ts),
                    phase=phase,
                    temperature=int(temp),
                    brightness=float(bri),
                    enabled=bool(enabled),
                    next_boundary=datetime.fromisoformat(nxt) if nxt else None,
                )
            )
        return list(reversed(out))

    async def get_all_settings(self) -> Dict[str, str]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("SELECT key, value FROM settings")
            rows = await cur.fetchall()
        return {k: v for k, v in rows}

    async def set_settings_batch(self, updates: Dict[str, str]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with aiosqlite.connect(self._path) as db:
            for key, value in updates.items():
                await db.execute(
                    "INSERT INTO settings(key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    (key, value, now),
                )
            await db.commit()
