# solar_fleet_monitor/tests/test_config.py

import textwrap

import pytest

from solar_fleet_monitor.config import Config


BASE = """
[fleet]
buildings = bld-ch-01, bld-tri-01

[building:bld-ch-01]
name = CH-A
city = Chennai
capacity_kw = 1200

[building:bld-tri-01]
name = Trinity Park Hub
city = Trichy
capacity_kw = 900
latitude = 10.79
longitude = 78.70
"""


def _write(tmp_path, body):
    path = tmp_path / "fleet.conf"
    path.write_text(textwrap.dedent(body))
    return path


@pytest.fixture(autouse=True)
def _clear_api_keys(monkeypatch):
    monkeypatch.delenv("WEATHER_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def test_defaults_when_sections_missing(tmp_path):
    cfg = Config.load(_write(tmp_path, BASE))

    assert [b.building_id for b in cfg.fleet.buildings] == ["bld-ch-01", "bld-tri-01"]
    assert cfg.fleet.buildings[1].latitude == pytest.approx(10.79)
    assert cfg.fleet.buildings[0].latitude is None
    assert cfg.weather.enabled is False
    assert cfg.weather.api_key is None
    assert cfg.predictor.external_weight == 0.7
    assert cfg.predictor.timeout == 5.0
    assert cfg.alerts.critical_threshold == 0.5
    assert cfg.alerts.dedup_window_seconds == 3600
    assert cfg.alerts.max_alerts == 100
    assert cfg.simulation.timezone == "UTC"
    assert cfg.analysis.history_limit == 50
    assert cfg.retention.history_days == 30
    assert cfg.retention.vacuum_after_prune is True


def test_sections_override_defaults(tmp_path):
    body = BASE + """
[weather]
enabled = true
api_key = owm-key
city_aliases = Trichy:Tiruchirappalli, Chengalpet:Chengalpattu

[predictor]
enabled = true
api_key = sk-key
model = gpt-4o-mini
external_weight = 0.5

[alerts]
medium_threshold = 0.25
max_alerts = 50

[simulation]
timezone = Asia/Kolkata
simulated_time = 2024-06-01T12:00:00
seed = 11

[retention]
history_days = 7
vacuum_after_prune = false

[logging]
console_level = DEBUG
debug_modules = solar_fleet.store, urllib3
structured_enabled = true
structured_path = /tmp/fleet.jsonl
"""
    cfg = Config.load(_write(tmp_path, body))

    assert cfg.weather.enabled is True
    assert cfg.weather.city_aliases == {"Trichy": "Tiruchirappalli", "Chengalpet": "Chengalpattu"}
    assert cfg.predictor.model == "gpt-4o-mini"
    assert cfg.predictor.external_weight == 0.5
    assert cfg.alerts.medium_threshold == 0.25
    assert cfg.alerts.max_alerts == 50
    assert cfg.simulation.timezone == "Asia/Kolkata"
    assert cfg.simulation.simulated_time == "2024-06-01T12:00:00"
    assert cfg.simulation.seed == 11
    assert cfg.retention.history_days == 7
    assert cfg.retention.vacuum_after_prune is False
    assert cfg.logging.debug_modules == ["solar_fleet.store", "urllib3"]
    assert cfg.logging.structured_enabled is True


def test_api_keys_fall_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("WEATHER_API_KEY", "env-weather")
    monkeypatch.setenv("OPENAI_API_KEY", "env-openai")

    cfg = Config.load(_write(tmp_path, BASE))

    assert cfg.weather.api_key == "env-weather"
    assert cfg.predictor.api_key == "env-openai"


def test_missing_building_section_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        Config.load(_write(tmp_path, "[fleet]\nbuildings = ghost\n"))


def test_non_positive_capacity_is_rejected(tmp_path):
    body = "[fleet]\nbuildings = b\n\n[building:b]\ncity = Chennai\ncapacity_kw = 0\n"
    with pytest.raises(ValueError):
        Config.load(_write(tmp_path, body))


def test_unordered_thresholds_are_rejected(tmp_path):
    with pytest.raises(ValueError):
        Config.load(_write(tmp_path, BASE + "\n[alerts]\nhigh_threshold = 0.6\n"))


def test_external_weight_out_of_range_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        Config.load(_write(tmp_path, BASE + "\n[predictor]\nexternal_weight = 1.5\n"))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(tmp_path / "absent.conf")
