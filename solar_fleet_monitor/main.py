# solar_fleet_monitor/main.py

from datetime import datetime
import logging
import sys
from zoneinfo import ZoneInfo

from .cli import build_parser
from .config import AppConfig, Config
from .logging import AnalysisLogEntry, ConsoleLog, StructuredLog
from .models.building import Building

from .services.alert_desk import AlertDesk
from .services.alert_engine import AlertEngine
from .services.analysis_orchestrator import AnalysisOrchestrator, BatchReport
from .services.dashboard_store import DashboardStore, StoreError
from .services.inference_client import InferenceClient
from .services.output_formatter import (
    emit_alerts_human,
    emit_buildings_human,
    emit_buildings_json,
    emit_error_json,
    emit_history_human,
    emit_history_json,
    emit_json,
    emit_report_human,
)
from .services.fleet_view import filter_buildings, summarize_fleet
from .services.output_predictor import OutputPredictor
from .services.power_simulator import PowerSimulator
from .services import store_maintenance
from .services.weather_client import WeatherClient


EXIT_NOT_FOUND = 1
EXIT_STORE_FAILURE = 2


def _parse_simulated_time(raw: str | None, tz, log):
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        log.warning("Invalid simulated_time '%s'; using current time instead.", raw)
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def _configured_buildings(app_cfg: AppConfig) -> list[Building]:
    return [
        Building(
            building_id=b.building_id,
            name=b.name,
            city=b.city,
            capacity_kw=b.capacity_kw,
            latitude=b.latitude,
            longitude=b.longitude,
        )
        for b in app_cfg.fleet.buildings
    ]


def seed_buildings(store: DashboardStore, app_cfg: AppConfig, log, *, only_missing: bool = False) -> int:
    seeded = 0
    for building in _configured_buildings(app_cfg):
        existing = store.get_building(building.building_id)
        if existing is not None:
            if only_missing:
                continue
            building.actual_kw = existing.actual_kw
            building.expected_kw = existing.expected_kw
            building.last_updated = existing.last_updated
        store.upsert_building(building)
        seeded += 1
    log.info("Registered %d building(s) from config", seeded)
    return seeded


def _write_structured(structured_logger: StructuredLog, report: BatchReport) -> None:
    if not structured_logger.enabled:
        return
    structured_logger.write(
        AnalysisLogEntry(
            timestamp=report.timestamp.isoformat(),
            total_buildings=report.total_buildings,
            processed_buildings=report.processed_buildings,
            results=[r.as_dict() for r in report.results],
            alert_stats=report.alert_stats.as_dict(),
        )
    )


def main():
    parser = build_parser()
    args = parser.parse_args()

    app_cfg = Config.load(args.config)
    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()
    structured_logger = StructuredLog(
        app_cfg.logging.structured_path,
        app_cfg.logging.structured_enabled,
    )
    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.INFO)

    store = None
    try:
        store = DashboardStore(path=app_cfg.state.path)

        if args.command == "maintain-db":
            days = args.history_days if args.history_days is not None else app_cfg.retention.history_days
            vacuum = app_cfg.retention.vacuum_after_prune and not args.no_vacuum
            removed = store_maintenance.prune(store, days, vacuum=vacuum)
            log.info("Database maintenance complete (%d history rows older than %s days removed)", removed, days)
            return 0

        if args.command == "seed":
            seed_buildings(store, app_cfg, log)
            return 0

        if args.command == "buildings":
            fleet = store.list_buildings()
            summary = summarize_fleet(fleet)
            buildings = filter_buildings(fleet, query=args.query, status=args.status, sort=args.sort)
            if args.json:
                emit_buildings_json(buildings, summary)
            else:
                emit_buildings_human(buildings, summary)
            return 0

        if args.command == "history":
            building = store.get_building(args.building_id)
            if building is None:
                if args.json:
                    emit_error_json("Building not found", args.building_id)
                else:
                    print(f"Building {args.building_id} not found")
                return EXIT_NOT_FOUND
            samples = store.power_series(args.building_id, limit=args.limit)
            if args.json:
                emit_history_json(building, samples)
            else:
                emit_history_human(building, samples)
            return 0

        # Instantiate services
        alert_engine = AlertEngine(app_cfg.alerts, log)
        alert_engine.load(store.query_alerts(limit=app_cfg.alerts.max_alerts))
        desk = AlertDesk(alert_engine, store, log)

        if args.command == "alerts":
            listing = desk.list_alerts(
                building_id=args.building,
                acknowledged=args.acknowledged,
                severity=args.severity,
                limit=args.limit,
            )
            if args.json:
                emit_json(listing)
            else:
                emit_alerts_human(listing)
            return 0

        if args.command == "acknowledge":
            found = desk.acknowledge(args.alert_id)
            if args.json:
                emit_json({"success": found, "alertId": args.alert_id})
            else:
                print("Alert acknowledged" if found else f"Alert {args.alert_id} not found")
            return 0 if found else EXIT_NOT_FOUND

        if args.command == "analyze":
            tz = ZoneInfo(app_cfg.simulation.timezone)
            now = _parse_simulated_time(app_cfg.simulation.simulated_time, tz, log) or datetime.now(tz)

            if not store.list_buildings():
                seed_buildings(store, app_cfg, log, only_missing=True)

            orchestrator = AnalysisOrchestrator(
                store=store,
                weather_client=WeatherClient(app_cfg.weather, log),
                predictor=OutputPredictor(
                    app_cfg.predictor,
                    log,
                    inference_client=InferenceClient(app_cfg.predictor, log),
                ),
                simulator=PowerSimulator(app_cfg.simulation, log),
                alert_engine=alert_engine,
                log=log,
                history_limit=app_cfg.analysis.history_limit,
            )
            report = orchestrator.run_batch(now=now)
            _write_structured(structured_logger, report)

            if args.json:
                emit_json(report)
            else:
                emit_report_human(report)
            return 0

        raise ValueError(f"Unsupported command: {args.command}")
    except StoreError as exc:
        log.error("Store failure: %s", exc)
        if args.json:
            emit_error_json("Store failure", str(exc))
        else:
            print(f"ERROR: store failure: {exc}")
        return EXIT_STORE_FAILURE
    finally:
        if store is not None:
            store.close()


if __name__ == "__main__":
    sys.exit(main())
