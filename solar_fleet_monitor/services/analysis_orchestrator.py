# solar_fleet_monitor/services/analysis_orchestrator.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Union

from solar_fleet_monitor.models.alert import Alert, AlertFactors, AlertStats
from solar_fleet_monitor.models.building import Building
from solar_fleet_monitor.models.prediction import PredictionFactors
from solar_fleet_monitor.models.weather import DEFAULT_WEATHER, WeatherSnapshot
from solar_fleet_monitor.services.alert_engine import AlertEngine
from solar_fleet_monitor.services.dashboard_store import DashboardStore, StoreError
from solar_fleet_monitor.services.output_predictor import OutputPredictor
from solar_fleet_monitor.services.power_simulator import PowerSimulator


@dataclass
class BuildingAnalysis:
    building_id: str
    building_name: str
    actual_kw: float
    predicted_kw: float
    difference: float
    difference_percentage: float
    confidence: float
    factors: PredictionFactors
    weather: WeatherSnapshot
    weather_available: bool
    status: str
    alert: Optional[Alert]

    def as_dict(self) -> dict:
        return {
            "buildingId": self.building_id,
            "buildingName": self.building_name,
            "actualKw": self.actual_kw,
            "predictedKw": self.predicted_kw,
            "difference": self.difference,
            "differencePercentage": self.difference_percentage,
            "confidence": self.confidence,
            "factors": {
                "temperature": self.factors.temperature,
                "cloudiness": self.factors.cloudiness,
                "humidity": self.factors.humidity,
                "solarRadiation": self.factors.solar_radiation,
            },
            "weather": self.weather.as_dict(),
            "weatherAvailable": self.weather_available,
            "status": self.status,
            "alert": (
                {
                    "id": self.alert.id,
                    "severity": self.alert.severity,
                    "title": self.alert.title,
                    "message": self.alert.message,
                }
                if self.alert
                else None
            ),
        }


@dataclass
class BuildingFailure:
    building_id: str
    building_name: str
    error: str

    def as_dict(self) -> dict:
        return {
            "buildingId": self.building_id,
            "buildingName": self.building_name,
            "error": self.error,
        }


BuildingResult = Union[BuildingAnalysis, BuildingFailure]


@dataclass
class BatchReport:
    timestamp: datetime
    results: List[BuildingResult] = field(default_factory=list)
    alert_stats: AlertStats = field(default_factory=AlertStats)
    total_buildings: int = 0

    @property
    def processed_buildings(self) -> int:
        return sum(1 for r in self.results if isinstance(r, BuildingAnalysis))

    @property
    def new_alerts(self) -> List[Alert]:
        return [r.alert for r in self.results if isinstance(r, BuildingAnalysis) and r.alert]

    def as_dict(self) -> dict:
        return {
            "success": True,
            "timestamp": self.timestamp.isoformat(),
            "results": [r.as_dict() for r in self.results],
            "alertStats": self.alert_stats.as_dict(),
            "totalBuildings": self.total_buildings,
            "processedBuildings": self.processed_buildings,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisOrchestrator:
    """
    Runs one analysis cycle per building:
    weather -> simulate + predict -> alert -> persist.

    Buildings are processed one after another. A failure inside a building
    is recorded against that building only; a store failure aborts the batch.
    """

    def __init__(
        self,
        store: DashboardStore,
        weather_client,
        predictor: OutputPredictor,
        simulator: PowerSimulator,
        alert_engine: AlertEngine,
        log,
        *,
        history_limit: int = 50,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.weather_client = weather_client
        self.predictor = predictor
        self.simulator = simulator
        self.alert_engine = alert_engine
        self.log = log
        self.history_limit = history_limit
        self.clock = clock

    # ------------------------------------------------------------------
    def _fetch_weather(self, city: str) -> Optional[WeatherSnapshot]:
        try:
            return self.weather_client.get_weather(city)
        except Exception as exc:
            self.log.warning("Weather adapter raised for %s: %s", city, exc)
            return None

    def analyze_building(self, building: Building, now: datetime) -> BuildingAnalysis:
        weather = self._fetch_weather(building.city)
        effective_weather = weather or DEFAULT_WEATHER

        history = self.store.recent_history(building.building_id, limit=self.history_limit)

        prediction = self.predictor.predict(effective_weather, building.capacity_kw, history)
        simulation = self.simulator.simulate(
            building.building_id,
            building.capacity_kw,
            weather,
            now,
        )

        factors = AlertFactors(
            equipment_efficiency=simulation.factors.equipment_efficiency,
            maintenance_status=simulation.factors.maintenance_status,
            weather_impact=simulation.factors.weather_impact,
            prediction=prediction.factors,
        )
        alert = self.alert_engine.analyze(
            building.building_id,
            building.name,
            simulation.actual_kw,
            prediction.predicted_kw,
            factors,
        )

        updated = replace(
            building,
            actual_kw=simulation.actual_kw,
            expected_kw=prediction.predicted_kw,
            last_updated=now,
        )
        try:
            self.store.upsert_building(updated, prediction=prediction, simulation=simulation)
            self.store.append_history(updated, simulation, prediction, effective_weather)
            if alert is not None:
                self.store.insert_alert(alert)
        except StoreError:
            # The log may only hold alerts that were mirrored to the store.
            if alert is not None:
                self.alert_engine.discard(alert.id)
            raise

        difference = simulation.actual_kw - prediction.predicted_kw
        difference_percentage = (
            abs(difference) / prediction.predicted_kw if prediction.predicted_kw > 0 else 0.0
        )

        self.log.info(
            "[%s] actual=%.1fkW predicted=%.1fkW (%s, confidence=%.2f) status=%s%s",
            building.name,
            simulation.actual_kw,
            prediction.predicted_kw,
            prediction.source,
            prediction.confidence,
            updated.status,
            f" alert={alert.severity}" if alert else "",
        )

        return BuildingAnalysis(
            building_id=building.building_id,
            building_name=building.name,
            actual_kw=simulation.actual_kw,
            predicted_kw=prediction.predicted_kw,
            difference=difference,
            difference_percentage=difference_percentage,
            confidence=prediction.confidence,
            factors=prediction.factors,
            weather=effective_weather,
            weather_available=weather is not None,
            status=updated.status,
            alert=alert,
        )

    # ------------------------------------------------------------------
    def run_batch(
        self,
        buildings: Optional[Sequence[Building]] = None,
        now: Optional[datetime] = None,
    ) -> BatchReport:
        now = now or self.clock()
        if buildings is None:
            buildings = self.store.list_buildings()

        report = BatchReport(timestamp=now, total_buildings=len(buildings))

        for building in buildings:
            try:
                report.results.append(self.analyze_building(building, now))
            except StoreError:
                raise
            except Exception as exc:
                self.log.error("Error processing building %s: %s", building.name, exc, exc_info=True)
                report.results.append(
                    BuildingFailure(
                        building_id=building.building_id,
                        building_name=building.name,
                        error=str(exc),
                    )
                )

        report.alert_stats = self.alert_engine.stats()
        self.log.info(
            "Analysis complete: %d/%d buildings processed, %d new alerts",
            report.processed_buildings,
            report.total_buildings,
            len(report.new_alerts),
        )
        return report
