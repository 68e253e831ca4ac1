# solar_fleet_monitor/services/output_predictor.py

from __future__ import annotations

from typing import Optional, Sequence

from solar_fleet_monitor.config import PredictorConfig
from solar_fleet_monitor.models.prediction import (
    HistoricalObservation,
    Prediction,
    PredictionFactors,
)
from solar_fleet_monitor.models.weather import WeatherSnapshot


PEAK_IRRADIANCE_WM2 = 1000.0
FALLBACK_CONFIDENCE_CAP = 0.6
HISTORY_CONFIDENCE_MIN = 10


def temperature_factor(temp_c: float) -> float:
    if temp_c <= 25:
        return 1.0
    return max(0.3, 1 - (temp_c - 25) * 0.004)


def cloud_factor(cloud_cover_pct: float) -> float:
    return max(0.2, 1 - (cloud_cover_pct / 100) * 0.8)


def humidity_factor(humidity_pct: float) -> float:
    if humidity_pct <= 60:
        return 1.0
    return max(0.85, 1 - ((humidity_pct - 60) / 100) * 0.15)


def estimate_irradiance(weather: WeatherSnapshot) -> float:
    uv_factor = min(1.0, weather.uv_index / 10)
    return PEAK_IRRADIANCE_WM2 * (1 - (weather.cloud_cover_pct / 100) * 0.8) * uv_factor


def solar_radiation_factor(irradiance_wm2: float) -> float:
    return min(1.0, irradiance_wm2 / PEAK_IRRADIANCE_WM2)


def physical_factors(weather: WeatherSnapshot) -> PredictionFactors:
    irradiance = weather.solar_irradiance_wm2
    if irradiance is None:
        irradiance = estimate_irradiance(weather)
    return PredictionFactors(
        temperature=temperature_factor(weather.temperature_c),
        cloudiness=cloud_factor(weather.cloud_cover_pct),
        humidity=humidity_factor(weather.humidity_pct),
        solar_radiation=solar_radiation_factor(irradiance),
    )


def confidence(weather: WeatherSnapshot, history: Optional[Sequence[HistoricalObservation]] = None) -> float:
    score = 0.7
    if history and len(history) >= HISTORY_CONFIDENCE_MIN:
        score += 0.2
    extreme = (
        weather.cloud_cover_pct > 80
        or weather.temperature_c > 40
        or weather.temperature_c < 0
    )
    if extreme:
        score -= 0.2
    return max(0.3, min(0.95, score))


class OutputPredictor:
    """
    Expected-output model for a building.

    A physical estimate (capacity scaled by four weather factors) is always
    computed. When the external inference provider answers, the result is
    blended towards it; otherwise the physical estimate stands alone with
    its confidence capped.
    """

    def __init__(self, cfg: PredictorConfig, log, inference_client=None):
        self.cfg = cfg
        self.log = log
        self.inference = inference_client

    # ------------------------------------------------------------------
    def _external_estimate(
        self,
        weather: WeatherSnapshot,
        capacity_kw: float,
        history: Optional[Sequence[HistoricalObservation]],
    ) -> Optional[float]:
        if self.inference is None:
            return None
        try:
            return self.inference.estimate_kw(weather, capacity_kw, history)
        except Exception as exc:
            self.log.warning("External prediction failed, falling back to physical model: %s", exc)
            return None

    def predict(
        self,
        weather: WeatherSnapshot,
        capacity_kw: float,
        history: Optional[Sequence[HistoricalObservation]] = None,
    ) -> Prediction:
        factors = physical_factors(weather)
        traditional_kw = capacity_kw * factors.combined
        score = confidence(weather, history)

        external_kw = self._external_estimate(weather, capacity_kw, history)
        if external_kw is None:
            self.log.debug("Physical prediction only: %.1fkW", traditional_kw)
            return Prediction(
                predicted_kw=max(0.0, traditional_kw),
                confidence=min(score, FALLBACK_CONFIDENCE_CAP),
                factors=factors,
                source="physical",
            )

        weight = self.cfg.external_weight
        blended_kw = external_kw * weight + traditional_kw * (1 - weight)
        self.log.debug(
            "Blended prediction: external=%.1fkW physical=%.1fkW -> %.1fkW",
            external_kw,
            traditional_kw,
            blended_kw,
        )
        return Prediction(
            predicted_kw=max(0.0, blended_kw),
            confidence=score,
            factors=factors,
            source="blended",
        )
