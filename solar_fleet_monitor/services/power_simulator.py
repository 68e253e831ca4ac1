# solar_fleet_monitor/services/power_simulator.py

from __future__ import annotations

import math
import random
import zlib
from datetime import datetime, timezone
from typing import Optional

from solar_fleet_monitor.config import SimulationConfig
from solar_fleet_monitor.models.simulation import (
    EquipmentStatus,
    SimulationFactors,
    SimulationResult,
)
from solar_fleet_monitor.models.weather import WeatherSnapshot


SUNRISE_HOUR = 6
SUNSET_HOUR = 18
PEAK_HOUR = 12
GENERATION_WIDTH_H = 6.0

NO_WEATHER_IMPACT = 0.8
MIN_WEATHER_IMPACT = 0.1


def _stable_seed(key: str) -> int:
    # str hashes are salted per process; crc32 is not.
    return zlib.crc32(key.encode("utf-8"))


def solar_curve(hour: float, capacity_kw: float) -> float:
    """Bell-shaped daylight generation profile peaking at solar noon."""
    if hour < SUNRISE_HOUR or hour > SUNSET_HOUR:
        return 0.0
    sigma = GENERATION_WIDTH_H / 2.5
    curve = math.exp(-((hour - PEAK_HOUR) ** 2) / (2 * sigma ** 2))
    return capacity_kw * curve


def weather_impact(weather: Optional[WeatherSnapshot]) -> float:
    """Multiplicative derating from temperature, clouds, humidity and wind."""
    if weather is None:
        return NO_WEATHER_IMPACT

    impact = 1.0

    temp = weather.temperature_c
    if temp is not None and temp > 25:
        impact *= max(0.7, 1 - (temp - 25) * 0.004)

    cloud = weather.cloud_cover_pct
    if cloud is not None:
        impact *= max(0.2, 1 - (cloud / 100) * 0.8)

    humidity = weather.humidity_pct
    if humidity is not None and humidity > 60:
        impact *= max(0.85, 1 - ((humidity - 60) / 100) * 0.15)

    wind = weather.wind_speed_mps
    if wind is not None:
        impact *= min(1.05, 1 + wind * 0.01)

    return min(1.05, max(MIN_WEATHER_IMPACT, impact))


class PowerSimulator:
    """
    Synthetic stand-in for live inverter telemetry.

    Equipment condition is a deterministic function of the building id, and
    maintenance condition of (building id, coarse time bucket), so repeated
    runs render the same fleet until the bucket rolls over. Only the final
    measurement-noise term is drawn fresh on every call.
    """

    def __init__(self, cfg: SimulationConfig, log, rng: Optional[random.Random] = None):
        self.cfg = cfg
        self.log = log
        self.rng = rng or random.Random(cfg.seed)

    # ------------------------------------------------------------------
    def equipment_status(self, building_id: str) -> EquipmentStatus:
        draw = random.Random(_stable_seed(building_id)).random
        return EquipmentStatus(
            inverter_efficiency=0.92 + draw() * 0.06,
            panel_degradation=0.95 + draw() * 0.04,
            soiling=0.85 + draw() * 0.10,
            shading=0.90 + draw() * 0.08,
        )

    def maintenance_bucket(self, now: datetime) -> int:
        bucket_s = max(1.0, self.cfg.maintenance_bucket_hours * 3600.0)
        return int(now.timestamp() // bucket_s)

    def maintenance_status(self, building_id: str, now: datetime) -> float:
        key = f"{building_id}:{self.maintenance_bucket(now)}"
        return 0.90 + random.Random(_stable_seed(key)).random() * 0.09

    # ------------------------------------------------------------------
    def simulate(
        self,
        building_id: str,
        capacity_kw: float,
        weather: Optional[WeatherSnapshot],
        now: Optional[datetime] = None,
    ) -> SimulationResult:
        now = now or datetime.now(timezone.utc)
        hour = now.hour

        base_generation = solar_curve(hour, capacity_kw)
        impact = weather_impact(weather)
        equipment = self.equipment_status(building_id)
        equipment_efficiency = equipment.combined_efficiency
        maintenance = self.maintenance_status(building_id, now)
        variation = self.rng.uniform(0.95, 1.05)

        actual_kw = max(
            0.0,
            base_generation * impact * equipment_efficiency * maintenance * variation,
        )

        self.log.debug(
            "Simulated %s @%02dh: base=%.1fkW weather=%.3f equipment=%.3f maintenance=%.3f noise=%.3f -> %.1fkW",
            building_id,
            hour,
            base_generation,
            impact,
            equipment_efficiency,
            maintenance,
            variation,
            actual_kw,
        )

        return SimulationResult(
            building_id=building_id,
            timestamp=now,
            actual_kw=actual_kw,
            factors=SimulationFactors(
                base_generation=base_generation,
                weather_impact=impact,
                equipment_efficiency=equipment_efficiency,
                maintenance_status=maintenance,
                random_variation=variation,
            ),
            equipment_status=equipment,
        )
