# solar_fleet_monitor/models/alert.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from solar_fleet_monitor.models.prediction import PredictionFactors

SEVERITIES = ("low", "medium", "high", "critical")


@dataclass(frozen=True)
class AlertFactors:
    """Root-cause hints captured alongside an alert."""

    equipment_efficiency: Optional[float] = None
    maintenance_status: Optional[float] = None
    weather_impact: Optional[float] = None
    prediction: Optional[PredictionFactors] = None

    def as_dict(self) -> dict:
        prediction = None
        if self.prediction is not None:
            prediction = {
                "temperature": self.prediction.temperature,
                "cloudiness": self.prediction.cloudiness,
                "humidity": self.prediction.humidity,
                "solarRadiation": self.prediction.solar_radiation,
            }
        return {
            "equipmentEfficiency": self.equipment_efficiency,
            "maintenanceStatus": self.maintenance_status,
            "weatherImpact": self.weather_impact,
            "factors": prediction,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> Optional["AlertFactors"]:
        if not data:
            return None
        nested = data.get("factors")
        prediction = None
        if isinstance(nested, dict):
            prediction = PredictionFactors(
                temperature=float(nested.get("temperature", 1.0)),
                cloudiness=float(nested.get("cloudiness", 1.0)),
                humidity=float(nested.get("humidity", 1.0)),
                solar_radiation=float(nested.get("solarRadiation", 1.0)),
            )
        return cls(
            equipment_efficiency=data.get("equipmentEfficiency"),
            maintenance_status=data.get("maintenanceStatus"),
            weather_impact=data.get("weatherImpact"),
            prediction=prediction,
        )


@dataclass
class Alert:
    id: str
    building_id: str
    building_name: str
    type: str
    severity: str
    title: str
    message: str
    actual_kw: float
    predicted_kw: float
    difference: float
    difference_percentage: float
    timestamp: datetime
    acknowledged: bool = False
    factors: Optional[AlertFactors] = None
    acknowledged_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "buildingId": self.building_id,
            "buildingName": self.building_name,
            "type": self.type,
            "severity": self.severity,
            "title": self.title,
            "message": self.message,
            "actualKw": self.actual_kw,
            "predictedKw": self.predicted_kw,
            "difference": self.difference,
            "differencePercentage": self.difference_percentage,
            "timestamp": self.timestamp.isoformat(),
            "acknowledged": self.acknowledged,
            "acknowledgedAt": self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            "factors": self.factors.as_dict() if self.factors else None,
        }


@dataclass
class AlertStats:
    total: int = 0
    unacknowledged: int = 0
    by_severity: dict[str, int] = field(default_factory=lambda: {s: 0 for s in SEVERITIES})

    def as_dict(self) -> dict:
        payload = {"total": self.total, "unacknowledged": self.unacknowledged}
        for severity in reversed(SEVERITIES):
            payload[severity] = self.by_severity.get(severity, 0)
        return payload
