# solar_fleet_monitor/services/alert_engine.py

from __future__ import annotations

import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from solar_fleet_monitor.config import AlertConfig
from solar_fleet_monitor.models.alert import Alert, AlertFactors, AlertStats, SEVERITIES


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify_severity(difference_percentage: float, cfg: AlertConfig) -> str:
    if difference_percentage >= cfg.critical_threshold:
        return "critical"
    if difference_percentage >= cfg.high_threshold:
        return "high"
    if difference_percentage >= cfg.medium_threshold:
        return "medium"
    return "low"


def classify_type(factors: Optional[AlertFactors]) -> str:
    """First matching root cause wins: equipment, maintenance, weather."""
    if factors is None:
        return "performance"
    if factors.equipment_efficiency is not None and factors.equipment_efficiency < 0.8:
        return "equipment"
    if factors.maintenance_status is not None and factors.maintenance_status < 0.85:
        return "maintenance"
    if factors.weather_impact is not None and factors.weather_impact < 0.6:
        return "weather"
    return "performance"


_TITLES = {
    "critical": "Critical Performance Issue",
    "high": "High Performance Deviation",
    "medium": "Performance Warning",
    "low": "Minor Performance Deviation",
}


def _title(severity: str, difference: float, difference_percentage: float) -> str:
    direction = "Below" if difference < 0 else "Above"
    headline = _TITLES.get(severity, "Performance Alert")
    return f"{headline} - {round(difference_percentage * 100)}% {direction} Expected"


def _message(
    building_name: str,
    actual_kw: float,
    predicted_kw: float,
    difference: float,
    difference_percentage: float,
    factors: Optional[AlertFactors],
) -> str:
    direction = "below" if difference < 0 else "above"
    message = (
        f"{building_name} is generating {actual_kw:.1f} kW, which is {abs(difference):.1f} kW "
        f"({round(difference_percentage * 100)}%) {direction} the predicted output of {predicted_kw:.1f} kW."
    )
    if factors is None:
        return message

    causes: list[str] = []
    if factors.equipment_efficiency is not None and factors.equipment_efficiency < 0.8:
        causes.append("Equipment efficiency issues detected")
    if factors.maintenance_status is not None and factors.maintenance_status < 0.85:
        causes.append("Maintenance required")
    if factors.weather_impact is not None and factors.weather_impact < 0.6:
        causes.append("Adverse weather conditions")
    if factors.prediction is not None:
        if factors.prediction.cloudiness < 0.5:
            causes.append("High cloud cover reducing solar irradiance")
        if factors.prediction.temperature < 0.8:
            causes.append("High temperature reducing panel efficiency")

    if causes:
        message += "\n\nPossible causes:" + "".join(f"\n- {c}" for c in causes)
    return message


def _new_alert_id(now: datetime) -> str:
    return f"alert-{int(now.timestamp() * 1000)}-{secrets.token_hex(5)[:9]}"


class AlertEngine:
    """
    Turns actual-vs-predicted deviations into alerts.

    The log is most-recent-first and bounded. A repeat alert for the same
    building and severity is suppressed while an unacknowledged one from
    inside the dedup window exists; a change of severity always gets through.
    All access to the log goes through a single lock.
    """

    def __init__(
        self,
        cfg: AlertConfig,
        log,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.cfg = cfg
        self.log = log
        self.clock = clock
        self._alerts: List[Alert] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def load(self, alerts: Iterable[Alert]) -> None:
        """Replace the log with previously persisted alerts."""
        restored = sorted(alerts, key=lambda a: a.timestamp, reverse=True)
        with self._lock:
            self._alerts = restored[: self.cfg.max_alerts]
        self.log.debug("Alert log restored with %d entries", len(self._alerts))

    # ------------------------------------------------------------------
    def _find_duplicate(self, building_id: str, severity: str, now: datetime) -> Optional[Alert]:
        window = timedelta(seconds=self.cfg.dedup_window_seconds)
        for alert in self._alerts:
            if (
                alert.building_id == building_id
                and alert.severity == severity
                and not alert.acknowledged
                and now - alert.timestamp < window
            ):
                return alert
        return None

    def analyze(
        self,
        building_id: str,
        building_name: str,
        actual_kw: float,
        predicted_kw: float,
        factors: Optional[AlertFactors] = None,
    ) -> Optional[Alert]:
        if predicted_kw < self.cfg.min_predicted_kw:
            return None

        difference = actual_kw - predicted_kw
        difference_percentage = abs(difference) / predicted_kw

        if difference_percentage < self.cfg.low_threshold:
            return None

        # Overperformance past the low threshold is classified like underperformance.
        severity = classify_severity(difference_percentage, self.cfg)
        now = self.clock()

        with self._lock:
            existing = self._find_duplicate(building_id, severity, now)
            if existing is not None:
                self.log.debug(
                    "Suppressing %s alert for %s; %s still open",
                    severity,
                    building_id,
                    existing.id,
                )
                return None

            alert = Alert(
                id=_new_alert_id(now),
                building_id=building_id,
                building_name=building_name,
                type=classify_type(factors),
                severity=severity,
                title=_title(severity, difference, difference_percentage),
                message=_message(
                    building_name,
                    actual_kw,
                    predicted_kw,
                    difference,
                    difference_percentage,
                    factors,
                ),
                actual_kw=actual_kw,
                predicted_kw=predicted_kw,
                difference=difference,
                difference_percentage=difference_percentage,
                timestamp=now,
                acknowledged=False,
                factors=factors,
            )
            self._alerts.insert(0, alert)
            del self._alerts[self.cfg.max_alerts:]

        self.log.info("New %s %s alert for %s: %s", alert.severity, alert.type, building_name, alert.title)
        return alert

    def discard(self, alert_id: str) -> bool:
        """Drop an alert that never reached the store so dedup does not hide its retry."""
        with self._lock:
            for idx, alert in enumerate(self._alerts):
                if alert.id == alert_id:
                    del self._alerts[idx]
                    return True
        return False

    # ------------------------------------------------------------------
    def acknowledge(self, alert_id: str) -> bool:
        with self._lock:
            for alert in self._alerts:
                if alert.id == alert_id:
                    if not alert.acknowledged:
                        alert.acknowledged = True
                        alert.acknowledged_at = self.clock()
                    return True
        return False

    def get_alerts(
        self,
        building_id: Optional[str] = None,
        acknowledged: Optional[bool] = None,
        severity: Optional[str] = None,
    ) -> List[Alert]:
        with self._lock:
            alerts = list(self._alerts)
        if building_id:
            alerts = [a for a in alerts if a.building_id == building_id]
        if acknowledged is not None:
            alerts = [a for a in alerts if a.acknowledged == acknowledged]
        if severity:
            alerts = [a for a in alerts if a.severity == severity]
        return sorted(alerts, key=lambda a: a.timestamp, reverse=True)

    def critical_alerts(self) -> List[Alert]:
        return self.get_alerts(acknowledged=False, severity="critical")

    def stats(self) -> AlertStats:
        with self._lock:
            alerts = list(self._alerts)
        open_alerts = [a for a in alerts if not a.acknowledged]
        return AlertStats(
            total=len(alerts),
            unacknowledged=len(open_alerts),
            by_severity={s: sum(1 for a in open_alerts if a.severity == s) for s in SEVERITIES},
        )
