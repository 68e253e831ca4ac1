# solar_fleet_monitor/services/output_formatter.py

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional

from solar_fleet_monitor.models.building import Building, PowerSample
from solar_fleet_monitor.services.alert_desk import AlertListing
from solar_fleet_monitor.services.analysis_orchestrator import (
    BatchReport,
    BuildingAnalysis,
    BuildingFailure,
)
from solar_fleet_monitor.services.fleet_view import FleetSummary


def _building_to_dict(building: Building) -> dict:
    return {
        "id": building.building_id,
        "name": building.name,
        "city": building.city,
        "capacityKw": building.capacity_kw,
        "actualKw": building.actual_kw,
        "expectedKw": building.expected_kw,
        "efficiency": building.efficiency,
        "status": building.status,
        "lastUpdated": building.last_updated.isoformat() if building.last_updated else None,
    }


def emit_json(payload: Any) -> None:
    if hasattr(payload, "as_dict"):
        payload = payload.as_dict()
    print(json.dumps(payload, indent=2, default=str))


def emit_buildings_json(buildings: Iterable[Building], summary: Optional[FleetSummary] = None) -> None:
    payload = {"buildings": [_building_to_dict(b) for b in buildings]}
    if summary is not None:
        payload["summary"] = summary.as_dict()
    emit_json(payload)


def emit_history_json(building: Building, samples: Iterable[PowerSample]) -> None:
    emit_json({"building": _building_to_dict(building), "series": [s.as_dict() for s in samples]})


def emit_error_json(error: str, details: Optional[str] = None) -> None:
    emit_json({"success": False, "error": error, "details": details})


# ----------------------------------------------------------------------
def _format_weather_human(result: BuildingAnalysis) -> str:
    if not result.weather_available:
        return "weather unavailable"
    w = result.weather
    parts = [
        f"temp={w.temperature_c:.1f}C",
        f"clouds={w.cloud_cover_pct:.0f}%",
        f"humidity={w.humidity_pct:.0f}%",
        f"wind={w.wind_speed_mps:.1f}m/s",
    ]
    if w.description:
        parts.append(f"({w.description})")
    return " ".join(parts)


def emit_report_human(report: BatchReport) -> None:
    print(f"Analysis @ {report.timestamp.isoformat()}: "
          f"{report.processed_buildings}/{report.total_buildings} buildings processed")
    for result in report.results:
        if isinstance(result, BuildingFailure):
            print(f"[{result.building_name}] ERROR: {result.error}")
            continue
        line = (
            f"[{result.building_name}] actual={result.actual_kw:.1f}kW "
            f"predicted={result.predicted_kw:.1f}kW "
            f"diff={result.difference:+.1f}kW ({result.difference_percentage * 100:.0f}%) "
            f"confidence={result.confidence:.2f} status={result.status}"
        )
        print(line)
        print(f"    {_format_weather_human(result)}")
        if result.alert:
            print(f"    ALERT {result.alert.severity.upper()}: {result.alert.title}")
    _print_stats(report.alert_stats.as_dict())


def _print_stats(stats: Mapping[str, int]) -> None:
    print(
        "Alerts: total={total} open={unacknowledged} "
        "critical={critical} high={high} medium={medium} low={low}".format(**stats)
    )


def emit_alerts_human(listing: AlertListing) -> None:
    if not listing.alerts:
        print("No alerts.")
    for alert in listing.alerts:
        ack = "ack" if alert.acknowledged else "OPEN"
        print(
            f"{alert.timestamp.isoformat()} [{alert.severity.upper():8}] {ack:4} "
            f"{alert.id} {alert.building_name} ({alert.type}): {alert.title}"
        )
    _print_stats(listing.stats.as_dict())


def _print_fleet_summary(summary: FleetSummary) -> None:
    print(
        f"Fleet: {summary.building_count} buildings "
        f"actual={summary.total_actual_kw:.1f}kW expected={summary.total_expected_kw:.1f}kW "
        f"avg efficiency={summary.average_efficiency * 100:.0f}% critical={summary.critical_buildings}"
    )


def emit_buildings_human(buildings: Iterable[Building], summary: Optional[FleetSummary] = None) -> None:
    if summary is not None:
        _print_fleet_summary(summary)
    rows = list(buildings)
    if not rows:
        print("No buildings registered.")
        return
    for b in rows:
        updated = b.last_updated.isoformat() if b.last_updated else "never"
        print(
            f"[{b.name}] {b.city}: {b.actual_kw:.1f}/{b.capacity_kw:.0f}kW "
            f"expected={b.expected_kw:.1f}kW efficiency={b.efficiency * 100:.0f}% "
            f"status={b.status} updated={updated}"
        )


def emit_history_human(building: Building, samples: Iterable[PowerSample]) -> None:
    rows = list(samples)
    print(f"[{building.name}] {len(rows)} sample(s), capacity {building.capacity_kw:.0f}kW")
    if not rows:
        print("No power history recorded.")
        return
    for s in rows:
        print(f"{s.timestamp.isoformat()} actual={s.actual_kw:.1f}kW predicted={s.predicted_kw:.1f}kW")
