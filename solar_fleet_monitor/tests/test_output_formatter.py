# solar_fleet_monitor/tests/test_output_formatter.py

import json

from solar_fleet_monitor.models.alert import AlertStats
from solar_fleet_monitor.models.building import Building, PowerSample
from solar_fleet_monitor.models.prediction import PredictionFactors
from solar_fleet_monitor.models.weather import DEFAULT_WEATHER
from solar_fleet_monitor.services.analysis_orchestrator import (
    BatchReport,
    BuildingAnalysis,
    BuildingFailure,
)
from solar_fleet_monitor.services.output_formatter import (
    emit_buildings_human,
    emit_buildings_json,
    emit_error_json,
    emit_history_human,
    emit_json,
    emit_report_human,
)
from solar_fleet_monitor.services.fleet_view import summarize_fleet
from solar_fleet_monitor.tests.fakes import NOON_UTC


def _report():
    analysis = BuildingAnalysis(
        building_id="bld-ch-01",
        building_name="CH-A",
        actual_kw=310.0,
        predicted_kw=352.8,
        difference=-42.8,
        difference_percentage=42.8 / 352.8,
        confidence=0.6,
        factors=PredictionFactors(temperature=1.0, cloudiness=0.84, humidity=1.0, solar_radiation=0.42),
        weather=DEFAULT_WEATHER,
        weather_available=False,
        status="ok",
        alert=None,
    )
    failure = BuildingFailure(building_id="bld-th-01", building_name="Th-A", error="simulation exploded")
    return BatchReport(
        timestamp=NOON_UTC,
        results=[analysis, failure],
        alert_stats=AlertStats(),
        total_buildings=2,
    )


def test_report_json(capsys):
    emit_json(_report())
    payload = json.loads(capsys.readouterr().out)

    assert payload["success"] is True
    assert payload["totalBuildings"] == 2
    assert payload["processedBuildings"] == 1
    assert payload["results"][0]["weatherAvailable"] is False
    assert payload["results"][0]["weather"]["cloudCover"] == 20.0
    assert payload["results"][1]["error"] == "simulation exploded"
    assert payload["alertStats"]["total"] == 0


def test_report_human_marks_missing_weather(capsys):
    emit_report_human(_report())
    out = capsys.readouterr().out

    assert "1/2 buildings processed" in out
    assert "weather unavailable" in out
    assert "[Th-A] ERROR: simulation exploded" in out
    assert "Alerts: total=0 open=0" in out


def test_buildings_include_derived_fields(capsys):
    building = Building("bld-ka-01", "ABC Block", "Kancheepuram", 1050.0, actual_kw=525.0, expected_kw=800.0)

    emit_buildings_json([building])
    payload = json.loads(capsys.readouterr().out)
    row = payload["buildings"][0]
    assert row["efficiency"] == 0.5
    assert row["status"] == "critical"

    emit_buildings_human([building])
    assert "status=critical" in capsys.readouterr().out


def test_error_json(capsys):
    emit_error_json("Store failure", "database is locked")
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"success": False, "error": "Store failure", "details": "database is locked"}


def test_buildings_output_leads_with_fleet_summary(capsys):
    buildings = [
        Building("bld-ka-01", "ABC Block", "Kancheepuram", 1050.0, actual_kw=525.0, expected_kw=800.0),
        Building("bld-tri-01", "Trinity Park Hub", "Trichy", 900.0, actual_kw=450.0, expected_kw=460.0),
    ]
    summary = summarize_fleet(buildings)

    emit_buildings_human(buildings, summary)
    first_line = capsys.readouterr().out.splitlines()[0]
    assert first_line == "Fleet: 2 buildings actual=975.0kW expected=1260.0kW avg efficiency=50% critical=1"

    emit_buildings_json(buildings, summary)
    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"]["totalActualKw"] == 975.0
    assert payload["summary"]["criticalBuildings"] == 1


def test_history_human_lists_samples(capsys):
    building = Building("bld-ch-01", "CH-A", "Chennai", 1200.0)
    samples = [PowerSample(timestamp=NOON_UTC, actual_kw=612.34, predicted_kw=650.0)]

    emit_history_human(building, samples)
    out = capsys.readouterr().out

    assert "[CH-A] 1 sample(s)" in out
    assert "2024-06-01T12:00:00+00:00 actual=612.3kW predicted=650.0kW" in out

    emit_history_human(building, [])
    assert "No power history recorded." in capsys.readouterr().out
