from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class EquipmentStatus:
    inverter_efficiency: float
    panel_degradation: float
    soiling: float
    shading: float

    @property
    def combined_efficiency(self) -> float:
        return self.inverter_efficiency * self.panel_degradation * self.soiling * self.shading


@dataclass(frozen=True)
class SimulationFactors:
    base_generation: float  # kW
    weather_impact: float
    equipment_efficiency: float
    maintenance_status: float
    random_variation: float


@dataclass(frozen=True)
class SimulationResult:
    building_id: str
    timestamp: datetime
    actual_kw: float
    factors: SimulationFactors
    equipment_status: EquipmentStatus
