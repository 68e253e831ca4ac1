# tests/fakes.py

from datetime import datetime, timedelta, timezone

from solar_fleet_monitor.models.simulation import (
    EquipmentStatus,
    SimulationFactors,
    SimulationResult,
)
from solar_fleet_monitor.models.weather import WeatherSnapshot


NOON_UTC = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_weather(**overrides) -> WeatherSnapshot:
    values = {
        "temperature_c": 30.0,
        "humidity_pct": 70.0,
        "cloud_cover_pct": 50.0,
        "wind_speed_mps": 3.0,
        "uv_index": 8.0,
        "visibility_km": 10.0,
    }
    values.update(overrides)
    return WeatherSnapshot(**values)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = NOON_UTC):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeWeatherClient:
    def __init__(self, by_city=None, default=None, fail_cities=()):
        self.by_city = by_city or {}
        self.default = default
        self.fail_cities = set(fail_cities)
        self.calls = []

    def get_weather(self, city):
        self.calls.append(city)
        if city in self.fail_cities:
            raise RuntimeError(f"provider down for {city}")
        return self.by_city.get(city, self.default)


class FakeInferenceClient:
    def __init__(self, value=None, exc=None):
        self.value = value
        self.exc = exc
        self.calls = []

    def estimate_kw(self, weather, capacity_kw, history=None):
        self.calls.append({"weather": weather, "capacity_kw": capacity_kw, "history": history})
        if self.exc is not None:
            raise self.exc
        return self.value


class StubSimulator:
    """Returns a fixed actual output per building instead of simulating one."""

    def __init__(self, actual_by_building, *, fail_for=(), equipment=0.9, maintenance=0.95, impact=0.9):
        self.actual_by_building = actual_by_building
        self.fail_for = set(fail_for)
        self.equipment = equipment
        self.maintenance = maintenance
        self.impact = impact

    def simulate(self, building_id, capacity_kw, weather, now=None):
        if building_id in self.fail_for:
            raise ValueError(f"simulation exploded for {building_id}")
        return SimulationResult(
            building_id=building_id,
            timestamp=now or NOON_UTC,
            actual_kw=self.actual_by_building.get(building_id, 0.0),
            factors=SimulationFactors(
                base_generation=capacity_kw,
                weather_impact=self.impact,
                equipment_efficiency=self.equipment,
                maintenance_status=self.maintenance,
                random_variation=1.0,
            ),
            equipment_status=EquipmentStatus(
                inverter_efficiency=0.95,
                panel_degradation=0.97,
                soiling=0.9,
                shading=0.94,
            ),
        )
