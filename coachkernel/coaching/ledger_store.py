"""Historical ledger persistence — coaching_ledger table.

Table: coaching_ledger
  user_id (string), kind (string), key (string), value (integer),
  started_at (timestamptz, only for kind = 'challenge_start')
  PRIMARY KEY (user_id, kind, key)

kind is one of 'achievement', 'best_streak', 'challenge_start'. The engines
never touch this table. Their LedgerUpdate commands, and the caller's own
challenge_start enrollments, are written here by apply_updates.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from coachkernel.coaching.models import HistoricalLedger, LedgerUpdate, apply_ledger_updates

logger = logging.getLogger(__name__)

_UPSERT = (
    "INSERT INTO coaching_ledger (user_id, kind, key, value) "
    "VALUES (:user_id, :kind, :key, :value) "
    "ON CONFLICT (user_id, kind, key) "
    "DO UPDATE SET value = GREATEST(coaching_ledger.value, EXCLUDED.value)"
)

_ENROLL = (
    "INSERT INTO coaching_ledger (user_id, kind, key, value, started_at) "
    "VALUES (:user_id, :kind, :key, 0, :started_at) "
    "ON CONFLICT (user_id, kind, key) "
    "DO UPDATE SET started_at = EXCLUDED.started_at"
)


def _statement(update: LedgerUpdate, user_id: str) -> tuple[str, dict[str, Any]]:
    params: dict[str, Any] = {"user_id": user_id, "kind": update.kind, "key": update.key}
    if update.kind == "challenge_start":
        params["started_at"] = update.started_at
        return _ENROLL, params
    params["value"] = update.value
    return _UPSERT, params


def ledger_from_rows(rows: list[dict[str, Any]]) -> HistoricalLedger:
    achievements: dict[str, bool] = {}
    best_streaks: dict[str, int] = {}
    challenge_starts = {}
    for row in rows:
        kind = row.get("kind")
        key = row.get("key")
        if not key:
            continue
        if kind == "achievement":
            achievements[key] = bool(row.get("value"))
        elif kind == "best_streak":
            best_streaks[key] = int(row.get("value") or 0)
        elif kind == "challenge_start" and row.get("started_at") is not None:
            challenge_starts[key] = row["started_at"]
    return HistoricalLedger(
        achievements=achievements,
        best_streaks=best_streaks,
        challenge_starts=challenge_starts,
    )


async def load_ledger(session: AsyncSession, user_id: str) -> HistoricalLedger:
    """Read the user's ledger. An unknown user gets an empty ledger."""
    result = await session.execute(
        text("SELECT kind, key, value, started_at FROM coaching_ledger WHERE user_id = :user_id"),
        {"user_id": user_id},
    )
    columns = result.keys()
    return ledger_from_rows([dict(zip(columns, r)) for r in result.fetchall()])


async def apply_updates(
    session: AsyncSession,
    user_id: str,
    updates: list[LedgerUpdate],
) -> HistoricalLedger:
    """Persist updates in a single transaction and return the resulting ledger."""
    ledger = await load_ledger(session, user_id)
    if not updates:
        return ledger
    try:
        for update in updates:
            sql, params = _statement(update, user_id)
            await session.execute(text(sql), params)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    logger.info("ledger_updated user_id=%s updates=%d", user_id, len(updates))
    return apply_ledger_updates(ledger, updates)
