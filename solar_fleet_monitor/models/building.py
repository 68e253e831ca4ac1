# solar_fleet_monitor/models/building.py
from dataclasses import dataclass
from datetime import datetime

STATUS_OK = "ok"
STATUS_WARN = "warn"
STATUS_CRITICAL = "critical"
STATUSES = (STATUS_OK, STATUS_WARN, STATUS_CRITICAL)


@dataclass
class Building:
    building_id: str
    name: str
    city: str
    capacity_kw: float
    actual_kw: float = 0.0
    expected_kw: float = 0.0
    last_updated: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def efficiency(self) -> float:
        if self.capacity_kw <= 0:
            return 0.0
        return self.actual_kw / self.capacity_kw

    @property
    def status(self) -> str:
        if self.actual_kw < self.expected_kw * 0.7:
            return STATUS_CRITICAL
        if self.actual_kw < self.expected_kw * 0.8:
            return STATUS_WARN
        return STATUS_OK


@dataclass(frozen=True)
class PowerSample:
    timestamp: datetime
    actual_kw: float
    predicted_kw: float

    def as_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "actualKw": self.actual_kw,
            "predictedKw": self.predicted_kw,
        }
