from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Sequence

import requests

from solar_fleet_monitor.config import PredictorConfig
from solar_fleet_monitor.models.prediction import HistoricalObservation
from solar_fleet_monitor.models.weather import WeatherSnapshot


_NUMBER_RE = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")

HISTORY_IN_PROMPT = 5


def build_prompt(
    weather: WeatherSnapshot,
    capacity_kw: float,
    history: Optional[Sequence[HistoricalObservation]] = None,
) -> str:
    radiation = (
        f"{weather.solar_irradiance_wm2:g}"
        if weather.solar_irradiance_wm2 is not None
        else "estimated"
    )
    lines = [
        "You are an expert solar power prediction model. Based on the following weather "
        "conditions and solar panel capacity, predict the power output in kW.",
        "",
        "Weather Conditions:",
        f"- Temperature: {weather.temperature_c:g} C",
        f"- Humidity: {weather.humidity_pct:g}%",
        f"- Cloud Cover: {weather.cloud_cover_pct:g}%",
        f"- Wind Speed: {weather.wind_speed_mps:g} m/s",
        f"- UV Index: {weather.uv_index:g}",
        f"- Visibility: {weather.visibility_km:g} km",
        f"- Solar Radiation: {radiation} W/m2",
        "",
        f"Solar Panel Capacity: {capacity_kw:g} kW",
    ]

    recent = list(history or [])[:HISTORY_IN_PROMPT]
    if recent:
        lines += ["", f"Historical Data (last {len(recent)} observations):"]
        for idx, obs in enumerate(recent, start=1):
            lines.append(
                f"{idx}. Weather: {json.dumps(obs.weather.as_dict())} -> Actual Output: {obs.actual_kw:.1f} kW"
            )

    lines += [
        "",
        "Consider these factors:",
        "1. Optimal panel temperature is around 25 C; efficiency drops ~0.4% per degree above",
        "2. Cloud cover directly reduces solar irradiance",
        "3. High humidity can reduce efficiency",
        "4. Wind helps cool panels, improving efficiency",
        "5. UV index correlates with solar energy potential",
        "",
        "Respond with ONLY a number representing the predicted power output in kW. No explanation needed.",
    ]
    return "\n".join(lines)


def parse_kw_reply(text: Any) -> Optional[float]:
    """Leading float of the reply, or None when there is no number to read."""
    if not isinstance(text, str):
        return None
    match = _NUMBER_RE.match(text.strip())
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


class InferenceClient:
    """OpenAI-compatible chat-completions client that only ever returns a kW figure."""

    def __init__(self, cfg: PredictorConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.base_url = cfg.base_url.rstrip("/")

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.cfg.api_key)

    # ------------------------------------------------------------------
    def _post(self, path: str, body: Dict[str, Any]) -> Optional[Any]:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.cfg.api_key}"}
        try:
            resp = self.session.post(url, json=body, headers=headers, timeout=self.cfg.timeout)
        except requests.RequestException as exc:
            self.log.warning("Inference request failed: %s", exc)
            return None

        if resp.status_code != 200:
            self.log.warning("Inference endpoint returned HTTP %s", resp.status_code)
            return None

        try:
            return resp.json()
        except ValueError:
            self.log.warning("Inference endpoint returned non-JSON payload")
            return None

    # ------------------------------------------------------------------
    def estimate_kw(
        self,
        weather: WeatherSnapshot,
        capacity_kw: float,
        history: Optional[Sequence[HistoricalObservation]] = None,
    ) -> Optional[float]:
        if not self.enabled:
            self.log.debug("Inference provider disabled; skipping external estimate")
            return None

        body = {
            "model": self.cfg.model,
            "messages": [{"role": "user", "content": build_prompt(weather, capacity_kw, history)}],
            "max_tokens": self.cfg.max_tokens,
            "temperature": self.cfg.temperature,
        }
        data = self._post("/chat/completions", body)
        if not isinstance(data, dict):
            return None

        choices = data.get("choices") or []
        content = None
        if choices and isinstance(choices[0], dict):
            content = (choices[0].get("message") or {}).get("content")

        value = parse_kw_reply(content)
        if value is None:
            self.log.warning("Inference reply was not numeric: %r", content)
        return value
