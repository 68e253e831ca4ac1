# solar_fleet_monitor/services/fleet_view.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from solar_fleet_monitor.models.building import STATUS_CRITICAL, Building


SORT_KEYS = ("name", "efficiency", "actual")


@dataclass
class FleetSummary:
    building_count: int
    total_actual_kw: float
    total_expected_kw: float
    average_efficiency: float
    critical_buildings: int

    def as_dict(self) -> dict:
        return {
            "buildingCount": self.building_count,
            "totalActualKw": self.total_actual_kw,
            "totalExpectedKw": self.total_expected_kw,
            "averageEfficiency": self.average_efficiency,
            "criticalBuildings": self.critical_buildings,
        }


def summarize_fleet(buildings: Iterable[Building]) -> FleetSummary:
    """Fleet-wide KPIs; averages are over every building, filtered or not."""
    rows = list(buildings)
    if not rows:
        return FleetSummary(0, 0.0, 0.0, 0.0, 0)
    return FleetSummary(
        building_count=len(rows),
        total_actual_kw=sum(b.actual_kw for b in rows),
        total_expected_kw=sum(b.expected_kw for b in rows),
        average_efficiency=sum(b.efficiency for b in rows) / len(rows),
        critical_buildings=sum(1 for b in rows if b.status == STATUS_CRITICAL),
    )


def filter_buildings(
    buildings: Iterable[Building],
    *,
    query: Optional[str] = None,
    status: Optional[str] = None,
    sort: str = "name",
) -> List[Building]:
    rows = list(buildings)
    if query:
        needle = query.lower()
        rows = [b for b in rows if needle in b.name.lower()]
    if status:
        rows = [b for b in rows if b.status == status]

    if sort == "name":
        rows.sort(key=lambda b: b.name.lower())
    elif sort == "efficiency":
        rows.sort(key=lambda b: b.efficiency, reverse=True)
    elif sort == "actual":
        rows.sort(key=lambda b: b.actual_kw, reverse=True)
    else:
        raise ValueError(f"Unknown sort key: {sort}")
    return rows
