from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature_c: float
    humidity_pct: float
    cloud_cover_pct: float
    wind_speed_mps: float
    uv_index: float
    visibility_km: float
    solar_irradiance_wm2: Optional[float] = None
    city: Optional[str] = None
    observed_at: Optional[datetime] = None
    provider: Optional[str] = None
    description: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "temperature": self.temperature_c,
            "humidity": self.humidity_pct,
            "cloudCover": self.cloud_cover_pct,
            "windSpeed": self.wind_speed_mps,
            "uvIndex": self.uv_index,
            "visibility": self.visibility_km,
            "solarRadiation": self.solar_irradiance_wm2,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeatherSnapshot":
        return cls(
            temperature_c=float(data.get("temperature", DEFAULT_WEATHER.temperature_c)),
            humidity_pct=float(data.get("humidity", DEFAULT_WEATHER.humidity_pct)),
            cloud_cover_pct=float(data.get("cloudCover", DEFAULT_WEATHER.cloud_cover_pct)),
            wind_speed_mps=float(data.get("windSpeed", DEFAULT_WEATHER.wind_speed_mps)),
            uv_index=float(data.get("uvIndex", DEFAULT_WEATHER.uv_index)),
            visibility_km=float(data.get("visibility", DEFAULT_WEATHER.visibility_km)),
            solar_irradiance_wm2=data.get("solarRadiation"),
        )


# Substituted downstream whenever the weather provider returns nothing.
DEFAULT_WEATHER = WeatherSnapshot(
    temperature_c=25.0,
    humidity_pct=50.0,
    cloud_cover_pct=20.0,
    wind_speed_mps=2.0,
    uv_index=5.0,
    visibility_km=10.0,
    provider="default",
)
