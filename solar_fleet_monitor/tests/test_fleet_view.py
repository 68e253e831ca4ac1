# solar_fleet_monitor/tests/test_fleet_view.py

import pytest

from solar_fleet_monitor.models.building import Building
from solar_fleet_monitor.services.fleet_view import filter_buildings, summarize_fleet


def _fleet():
    return [
        Building("bld-ch-01", "CH-A", "Chennai", 1200.0, actual_kw=600.0, expected_kw=650.0),
        Building("bld-th-01", "Th-A", "Thiruvallur", 1000.0, actual_kw=300.0, expected_kw=500.0),
        Building("bld-ka-01", "ABC Block", "Kancheepuram", 1000.0, actual_kw=700.0, expected_kw=690.0),
    ]


def test_summary_totals_and_critical_count():
    summary = summarize_fleet(_fleet())

    assert summary.building_count == 3
    assert summary.total_actual_kw == pytest.approx(1600.0)
    assert summary.total_expected_kw == pytest.approx(1840.0)
    assert summary.average_efficiency == pytest.approx((0.5 + 0.3 + 0.7) / 3)
    # Th-A: 300 < 0.7 * 500
    assert summary.critical_buildings == 1
    assert summary.as_dict()["criticalBuildings"] == 1


def test_summary_of_empty_fleet():
    summary = summarize_fleet([])
    assert summary.building_count == 0
    assert summary.average_efficiency == 0.0


def test_default_sort_is_by_name():
    assert [b.name for b in filter_buildings(_fleet())] == ["ABC Block", "CH-A", "Th-A"]


def test_sort_by_efficiency_and_actual_descending():
    assert [b.building_id for b in filter_buildings(_fleet(), sort="efficiency")] == [
        "bld-ka-01",
        "bld-ch-01",
        "bld-th-01",
    ]
    assert [b.actual_kw for b in filter_buildings(_fleet(), sort="actual")] == [700.0, 600.0, 300.0]


def test_query_is_case_insensitive_substring():
    assert [b.name for b in filter_buildings(_fleet(), query="a")] == ["ABC Block", "CH-A", "Th-A"]
    assert [b.name for b in filter_buildings(_fleet(), query="block")] == ["ABC Block"]


def test_status_filter():
    assert [b.name for b in filter_buildings(_fleet(), status="critical")] == ["Th-A"]
    assert [b.name for b in filter_buildings(_fleet(), status="ok")] == ["ABC Block", "CH-A"]


def test_unknown_sort_key_is_rejected():
    with pytest.raises(ValueError):
        filter_buildings(_fleet(), sort="capacity")
