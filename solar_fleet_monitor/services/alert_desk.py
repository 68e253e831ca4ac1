# solar_fleet_monitor/services/alert_desk.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from solar_fleet_monitor.models.alert import Alert, AlertStats
from solar_fleet_monitor.services.alert_engine import AlertEngine
from solar_fleet_monitor.services.dashboard_store import DashboardStore


@dataclass
class AlertListing:
    alerts: List[Alert]
    stats: AlertStats

    @property
    def total(self) -> int:
        return len(self.alerts)

    def as_dict(self) -> dict:
        return {
            "alerts": [a.as_dict() for a in self.alerts],
            "stats": self.stats.as_dict(),
            "total": self.total,
        }


class AlertDesk:
    """Query and acknowledge alerts across the engine log and the store."""

    def __init__(self, engine: AlertEngine, store: DashboardStore, log):
        self.engine = engine
        self.store = store
        self.log = log

    def list_alerts(
        self,
        *,
        building_id: Optional[str] = None,
        acknowledged: Optional[bool] = None,
        severity: Optional[str] = None,
        limit: int = 100,
    ) -> AlertListing:
        stored = self.store.query_alerts(
            building_id=building_id,
            acknowledged=acknowledged,
            severity=severity,
            limit=limit,
        )
        in_memory = self.engine.get_alerts(building_id, acknowledged, severity)

        # The engine's copy wins: it carries acknowledgements not yet mirrored.
        merged: dict[str, Alert] = {a.id: a for a in stored}
        merged.update({a.id: a for a in in_memory})
        alerts = sorted(merged.values(), key=lambda a: a.timestamp, reverse=True)[:limit]
        return AlertListing(alerts=alerts, stats=self.engine.stats())

    def acknowledge(self, alert_id: str) -> bool:
        now = datetime.now(timezone.utc)
        in_memory = self.engine.acknowledge(alert_id)
        stored = self.store.acknowledge_alert(alert_id, now)
        if not (in_memory or stored):
            self.log.info("Alert %s not found", alert_id)
            return False
        self.log.info("Alert %s acknowledged", alert_id)
        return True
