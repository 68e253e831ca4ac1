from dataclasses import dataclass

from solar_fleet_monitor.models.weather import WeatherSnapshot


@dataclass(frozen=True)
class PredictionFactors:
    temperature: float
    cloudiness: float
    humidity: float
    solar_radiation: float

    @property
    def combined(self) -> float:
        return self.temperature * self.cloudiness * self.humidity * self.solar_radiation


@dataclass(frozen=True)
class Prediction:
    predicted_kw: float
    confidence: float
    factors: PredictionFactors
    source: str  # "blended" or "physical"


@dataclass(frozen=True)
class HistoricalObservation:
    weather: WeatherSnapshot
    actual_kw: float
