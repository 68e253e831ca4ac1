# solar_fleet_monitor/services/store_maintenance.py

from __future__ import annotations

import datetime as dt
import sqlite3

from solar_fleet_monitor.services.dashboard_store import DashboardStore, StoreError


def _cutoff(days: int, now: dt.datetime | None = None) -> str:
    now = now or dt.datetime.now(dt.timezone.utc)
    return (now.astimezone(dt.timezone.utc) - dt.timedelta(days=days)).isoformat()


def prune(store: DashboardStore, history_days: int, *, vacuum: bool = True, now: dt.datetime | None = None) -> int:
    """Drop power history older than the retention window; returns rows removed."""
    if not getattr(store, "_persist", False) or not getattr(store, "_conn", None):
        return 0
    conn = store._conn
    try:
        with conn:
            cur = conn.execute(
                "DELETE FROM power_history WHERE timestamp < ?",
                (_cutoff(history_days, now),),
            )
        if vacuum:
            conn.execute("VACUUM")
    except sqlite3.Error as exc:
        raise StoreError(f"prune failed: {exc}") from exc
    return cur.rowcount
