from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from solar_fleet_monitor.config import WeatherConfig
from solar_fleet_monitor.models.weather import DEFAULT_WEATHER, WeatherSnapshot


def _float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def normalize_openweathermap(payload: dict, city: str, provider: str = "openweathermap") -> WeatherSnapshot:
    """Map an OpenWeatherMap current-weather payload onto a WeatherSnapshot."""
    main = payload.get("main") or {}
    clouds = payload.get("clouds") or {}
    wind = payload.get("wind") or {}
    visibility_m = payload.get("visibility")
    visibility_km = (
        _float(visibility_m, DEFAULT_WEATHER.visibility_km * 1000) / 1000.0
        if visibility_m is not None
        else DEFAULT_WEATHER.visibility_km
    )

    observed_at = None
    if isinstance(payload.get("dt"), (int, float)):
        observed_at = datetime.fromtimestamp(payload["dt"], tz=timezone.utc)

    description = None
    conditions = payload.get("weather") or []
    if conditions and isinstance(conditions[0], dict):
        description = conditions[0].get("description")

    irradiance = payload.get("solar_radiation")
    return WeatherSnapshot(
        temperature_c=_float(main.get("temp"), DEFAULT_WEATHER.temperature_c),
        humidity_pct=_float(main.get("humidity"), DEFAULT_WEATHER.humidity_pct),
        cloud_cover_pct=_float(clouds.get("all"), DEFAULT_WEATHER.cloud_cover_pct),
        wind_speed_mps=_float(wind.get("speed"), DEFAULT_WEATHER.wind_speed_mps),
        uv_index=_float(payload.get("uvi"), DEFAULT_WEATHER.uv_index),
        visibility_km=visibility_km,
        solar_irradiance_wm2=_float(irradiance, 0.0) if irradiance is not None else None,
        city=city,
        observed_at=observed_at,
        provider=provider,
        description=description,
    )


@dataclass
class WeatherClient:
    cfg: WeatherConfig
    log: Any
    session: Optional[requests.Session] = None
    _warned_disabled: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        if self.session is None:
            self.session = requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.cfg.api_key)

    def resolve_city(self, city: str) -> str:
        return self.cfg.city_aliases.get(city, city)

    def get_weather(self, city: str) -> Optional[WeatherSnapshot]:
        """Current conditions for ``city``; None on any failure."""
        if not self.enabled:
            if not self._warned_disabled:
                self.log.warning("Weather provider not configured; weather data unavailable.")
                self._warned_disabled = True
            return None
        if not city:
            return None

        url = f"{self.cfg.base_url.rstrip('/')}/weather"
        params = {
            "q": self.resolve_city(city),
            "appid": self.cfg.api_key,
            "units": "metric",
        }

        try:
            resp = self.session.get(url, params=params, timeout=self.cfg.timeout)
            resp.raise_for_status()
            data = resp.json()
        except Exception as exc:
            self.log.warning("Weather fetch failed for %s: %s", city, exc)
            return None

        if not isinstance(data, dict):
            self.log.warning("Weather payload for %s was not an object", city)
            return None

        return normalize_openweathermap(data, city, self.cfg.provider)
