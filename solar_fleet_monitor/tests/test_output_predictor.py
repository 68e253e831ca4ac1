# solar_fleet_monitor/tests/test_output_predictor.py

import pytest

from solar_fleet_monitor.config import PredictorConfig
from solar_fleet_monitor.logging import get_logger
from solar_fleet_monitor.models.prediction import HistoricalObservation
from solar_fleet_monitor.services.output_predictor import (
    OutputPredictor,
    confidence,
    physical_factors,
    temperature_factor,
)

from solar_fleet_monitor.tests.fakes import FakeInferenceClient, make_weather


LOG = get_logger("predictor-test")

PHYSICAL_KW = 1000.0 * 0.98 * 0.6 * 0.985 * 0.48


def _history(n):
    return [HistoricalObservation(weather=make_weather(), actual_kw=300.0) for _ in range(n)]


def test_physical_factors_for_warm_cloudy_day():
    factors = physical_factors(make_weather())
    assert factors.temperature == pytest.approx(0.98)
    assert factors.cloudiness == pytest.approx(0.6)
    assert factors.humidity == pytest.approx(0.985)
    # 1000 W/m2 * 0.6 cloud attenuation * 0.8 UV factor
    assert factors.solar_radiation == pytest.approx(0.48)


def test_measured_irradiance_overrides_estimate():
    factors = physical_factors(make_weather(solar_irradiance_wm2=500.0))
    assert factors.solar_radiation == pytest.approx(0.5)


def test_temperature_factor_floor():
    assert temperature_factor(20.0) == 1.0
    assert temperature_factor(300.0) == 0.3


def test_physical_only_when_no_inference_client():
    predictor = OutputPredictor(PredictorConfig(), LOG)
    prediction = predictor.predict(make_weather(), 1000.0)

    assert prediction.source == "physical"
    assert prediction.predicted_kw == pytest.approx(PHYSICAL_KW)
    assert 200.0 < prediction.predicted_kw < 500.0
    assert prediction.confidence == pytest.approx(0.6)


def test_failing_inference_falls_back_with_capped_confidence():
    client = FakeInferenceClient(exc=RuntimeError("timeout"))
    predictor = OutputPredictor(PredictorConfig(), LOG, inference_client=client)

    prediction = predictor.predict(make_weather(), 1000.0, _history(12))

    assert client.calls
    assert prediction.source == "physical"
    assert prediction.predicted_kw == pytest.approx(PHYSICAL_KW)
    assert prediction.confidence <= 0.6


def test_unavailable_estimate_falls_back():
    predictor = OutputPredictor(PredictorConfig(), LOG, inference_client=FakeInferenceClient(value=None))
    prediction = predictor.predict(make_weather(), 1000.0)
    assert prediction.source == "physical"


def test_blends_external_estimate():
    predictor = OutputPredictor(PredictorConfig(), LOG, inference_client=FakeInferenceClient(value=500.0))
    prediction = predictor.predict(make_weather(), 1000.0)

    assert prediction.source == "blended"
    assert prediction.predicted_kw == pytest.approx(0.7 * 500.0 + 0.3 * PHYSICAL_KW)
    assert prediction.confidence == pytest.approx(0.7)


def test_blend_weight_is_configurable():
    predictor = OutputPredictor(
        PredictorConfig(external_weight=0.5),
        LOG,
        inference_client=FakeInferenceClient(value=500.0),
    )
    prediction = predictor.predict(make_weather(), 1000.0)
    assert prediction.predicted_kw == pytest.approx(0.5 * 500.0 + 0.5 * PHYSICAL_KW)


def test_negative_blend_is_floored_at_zero():
    predictor = OutputPredictor(PredictorConfig(), LOG, inference_client=FakeInferenceClient(value=-5000.0))
    assert predictor.predict(make_weather(), 1000.0).predicted_kw == 0.0


def test_confidence_rules():
    assert confidence(make_weather()) == pytest.approx(0.7)
    assert confidence(make_weather(), _history(9)) == pytest.approx(0.7)
    assert confidence(make_weather(), _history(10)) == pytest.approx(0.9)
    assert confidence(make_weather(cloud_cover_pct=90.0), _history(10)) == pytest.approx(0.7)
    assert confidence(make_weather(temperature_c=-5.0)) == pytest.approx(0.5)
    assert confidence(make_weather(temperature_c=45.0)) == pytest.approx(0.5)
