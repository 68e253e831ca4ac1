# solar_fleet_monitor/services/dashboard_store.py

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Union

from solar_fleet_monitor.models.alert import Alert, AlertFactors
from solar_fleet_monitor.models.building import Building, PowerSample
from solar_fleet_monitor.models.prediction import HistoricalObservation, Prediction
from solar_fleet_monitor.models.simulation import SimulationResult
from solar_fleet_monitor.models.weather import WeatherSnapshot


class StoreError(RuntimeError):
    """Raised when the dashboard store cannot complete a read or write."""


def _ts(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        # Stored as UTC so text ordering matches time ordering.
        value = value.astimezone(timezone.utc)
    return value.isoformat()


def _parse_ts(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _json(value) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


class DashboardStore:
    """
    SQLite-backed document store with three collections: buildings
    (upserted each cycle), power_history (append-only) and alerts
    (append-only, acknowledged in place).
    """

    def __init__(self, path: Optional[Union[Path, str]] = None, *, persist: bool = True):
        default_path = Path.home() / ".solar_fleet_monitor.db"
        self._persist = persist
        self._log = logging.getLogger("solar_fleet.store")
        try:
            if self._persist:
                resolved = Path(path).expanduser() if path else default_path
                resolved.parent.mkdir(parents=True, exist_ok=True)
                self.path: Optional[Path] = resolved
                self._conn = sqlite3.connect(self.path, check_same_thread=False)
                self._conn.execute("PRAGMA journal_mode=WAL")
            else:
                self.path = None
                self._conn = sqlite3.connect(":memory:", check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._init_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to open store: {exc}") from exc

    # ------------------------------------------------------------------
    def _init_schema(self) -> None:
        stmts = [
            """
            CREATE TABLE IF NOT EXISTS buildings (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                city TEXT NOT NULL,
                capacity_kw REAL NOT NULL,
                actual_kw REAL NOT NULL DEFAULT 0,
                expected_kw REAL NOT NULL DEFAULT 0,
                last_updated TEXT,
                latitude REAL,
                longitude REAL,
                prediction TEXT,
                simulation TEXT
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS power_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                building_id TEXT NOT NULL,
                building_name TEXT,
                timestamp TEXT NOT NULL,
                actual_kw REAL NOT NULL,
                predicted_kw REAL NOT NULL,
                weather TEXT,
                factors TEXT,
                equipment_status TEXT,
                prediction TEXT
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_history_building_ts
            ON power_history(building_id, timestamp)
            """,
            """
            CREATE TABLE IF NOT EXISTS alerts (
                id TEXT PRIMARY KEY,
                building_id TEXT NOT NULL,
                building_name TEXT,
                type TEXT NOT NULL,
                severity TEXT NOT NULL,
                title TEXT,
                message TEXT,
                actual_kw REAL,
                predicted_kw REAL,
                difference REAL,
                difference_percentage REAL,
                timestamp TEXT NOT NULL,
                acknowledged INTEGER NOT NULL DEFAULT 0,
                acknowledged_at TEXT,
                factors TEXT
            )
            """,
        ]
        for stmt in stmts:
            self._conn.execute(stmt)
        self._conn.commit()

    @contextmanager
    def _guard(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as exc:
            self._log.error("Store %s failed: %s", operation, exc)
            raise StoreError(f"{operation} failed: {exc}") from exc

    # Buildings --------------------------------------------------------
    def upsert_building(
        self,
        building: Building,
        *,
        prediction: Optional[Prediction] = None,
        simulation: Optional[SimulationResult] = None,
    ) -> None:
        with self._guard("upsert_building") as conn:
            conn.execute(
                """
                INSERT INTO buildings(
                    id, name, city, capacity_kw, actual_kw, expected_kw,
                    last_updated, latitude, longitude, prediction, simulation
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    city=excluded.city,
                    capacity_kw=excluded.capacity_kw,
                    actual_kw=excluded.actual_kw,
                    expected_kw=excluded.expected_kw,
                    last_updated=excluded.last_updated,
                    latitude=excluded.latitude,
                    longitude=excluded.longitude,
                    prediction=COALESCE(excluded.prediction, buildings.prediction),
                    simulation=COALESCE(excluded.simulation, buildings.simulation)
                """,
                (
                    building.building_id,
                    building.name,
                    building.city,
                    building.capacity_kw,
                    building.actual_kw,
                    building.expected_kw,
                    _ts(building.last_updated),
                    building.latitude,
                    building.longitude,
                    _json(asdict(prediction)) if prediction else None,
                    _json(asdict(simulation)) if simulation else None,
                ),
            )

    @staticmethod
    def _building_from_row(row: sqlite3.Row) -> Building:
        return Building(
            building_id=row["id"],
            name=row["name"],
            city=row["city"],
            capacity_kw=row["capacity_kw"],
            actual_kw=row["actual_kw"],
            expected_kw=row["expected_kw"],
            last_updated=_parse_ts(row["last_updated"]),
            latitude=row["latitude"],
            longitude=row["longitude"],
        )

    def list_buildings(self) -> List[Building]:
        with self._guard("list_buildings") as conn:
            rows = conn.execute("SELECT * FROM buildings ORDER BY id").fetchall()
        return [self._building_from_row(r) for r in rows]

    def get_building(self, building_id: str) -> Optional[Building]:
        with self._guard("get_building") as conn:
            row = conn.execute("SELECT * FROM buildings WHERE id = ?", (building_id,)).fetchone()
        return self._building_from_row(row) if row else None

    # Power history ----------------------------------------------------
    def append_history(
        self,
        building: Building,
        simulation: SimulationResult,
        prediction: Prediction,
        weather: WeatherSnapshot,
    ) -> None:
        with self._guard("append_history") as conn:
            conn.execute(
                """
                INSERT INTO power_history (
                    building_id, building_name, timestamp, actual_kw, predicted_kw,
                    weather, factors, equipment_status, prediction
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    building.building_id,
                    building.name,
                    _ts(simulation.timestamp),
                    simulation.actual_kw,
                    prediction.predicted_kw,
                    _json(weather.as_dict()),
                    _json(asdict(simulation.factors)),
                    _json(asdict(simulation.equipment_status)),
                    _json(asdict(prediction)),
                ),
            )

    def recent_history(self, building_id: str, limit: int = 50) -> List[HistoricalObservation]:
        """Most recent observations first."""
        with self._guard("recent_history") as conn:
            rows = conn.execute(
                """
                SELECT weather, actual_kw FROM power_history
                WHERE building_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (building_id, limit),
            ).fetchall()
        observations: List[HistoricalObservation] = []
        for row in rows:
            weather = json.loads(row["weather"]) if row["weather"] else {}
            observations.append(
                HistoricalObservation(
                    weather=WeatherSnapshot.from_dict(weather),
                    actual_kw=row["actual_kw"],
                )
            )
        return observations

    def power_series(self, building_id: str, limit: int = 50) -> List[PowerSample]:
        """The latest ``limit`` samples, oldest first for plotting."""
        with self._guard("power_series") as conn:
            rows = conn.execute(
                """
                SELECT timestamp, actual_kw, predicted_kw FROM power_history
                WHERE building_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (building_id, limit),
            ).fetchall()
        return [
            PowerSample(
                timestamp=_parse_ts(row["timestamp"]),
                actual_kw=row["actual_kw"],
                predicted_kw=row["predicted_kw"],
            )
            for row in reversed(rows)
        ]

    # Alerts -----------------------------------------------------------
    def insert_alert(self, alert: Alert) -> None:
        with self._guard("insert_alert") as conn:
            conn.execute(
                """
                INSERT INTO alerts (
                    id, building_id, building_name, type, severity, title, message,
                    actual_kw, predicted_kw, difference, difference_percentage,
                    timestamp, acknowledged, acknowledged_at, factors
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    alert.id,
                    alert.building_id,
                    alert.building_name,
                    alert.type,
                    alert.severity,
                    alert.title,
                    alert.message,
                    alert.actual_kw,
                    alert.predicted_kw,
                    alert.difference,
                    alert.difference_percentage,
                    _ts(alert.timestamp),
                    1 if alert.acknowledged else 0,
                    _ts(alert.acknowledged_at),
                    _json(alert.factors.as_dict()) if alert.factors else None,
                ),
            )

    def acknowledge_alert(self, alert_id: str, when: Optional[datetime] = None) -> bool:
        when = when or datetime.now(timezone.utc)
        with self._guard("acknowledge_alert") as conn:
            cur = conn.execute(
                """
                UPDATE alerts
                SET acknowledged = 1,
                    acknowledged_at = COALESCE(acknowledged_at, ?)
                WHERE id = ?
                """,
                (_ts(when), alert_id),
            )
        return cur.rowcount > 0

    @staticmethod
    def _alert_from_row(row: sqlite3.Row) -> Alert:
        return Alert(
            id=row["id"],
            building_id=row["building_id"],
            building_name=row["building_name"] or row["building_id"],
            type=row["type"],
            severity=row["severity"],
            title=row["title"] or "",
            message=row["message"] or "",
            actual_kw=row["actual_kw"],
            predicted_kw=row["predicted_kw"],
            difference=row["difference"],
            difference_percentage=row["difference_percentage"],
            timestamp=_parse_ts(row["timestamp"]),
            acknowledged=bool(row["acknowledged"]),
            acknowledged_at=_parse_ts(row["acknowledged_at"]),
            factors=AlertFactors.from_dict(json.loads(row["factors"])) if row["factors"] else None,
        )

    def query_alerts(
        self,
        *,
        building_id: Optional[str] = None,
        acknowledged: Optional[bool] = None,
        severity: Optional[str] = None,
        limit: int = 100,
    ) -> List[Alert]:
        clauses: list[str] = []
        params: list = []
        if building_id:
            clauses.append("building_id = ?")
            params.append(building_id)
        if acknowledged is not None:
            clauses.append("acknowledged = ?")
            params.append(1 if acknowledged else 0)
        if severity:
            clauses.append("severity = ?")
            params.append(severity)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(limit)
        with self._guard("query_alerts") as conn:
            rows = conn.execute(
                f"SELECT * FROM alerts {where} ORDER BY timestamp DESC LIMIT ?",
                params,
            ).fetchall()
        return [self._alert_from_row(r) for r in rows]

    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
