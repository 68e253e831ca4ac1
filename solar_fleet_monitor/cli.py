# solar_fleet_monitor/cli.py
import argparse

from solar_fleet_monitor.models.alert import SEVERITIES
from solar_fleet_monitor.models.building import STATUSES
from solar_fleet_monitor.services.fleet_view import SORT_KEYS


def build_parser():
    parser = argparse.ArgumentParser(
        prog="solar-fleet-monitor",
        description="Solar fleet performance monitor"
    )

    parser.add_argument(
        "--config",
        default="solar_fleet_monitor.conf",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress log output (cron-friendly)"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("analyze", help="Run one analysis cycle across all buildings")

    cmd_alerts = sub.add_parser("alerts", help="List alerts with statistics")
    cmd_alerts.add_argument("--building", help="Only alerts for this building id")
    cmd_alerts.add_argument("--severity", choices=SEVERITIES, help="Only alerts of this severity")
    ack_group = cmd_alerts.add_mutually_exclusive_group()
    ack_group.add_argument(
        "--acknowledged",
        dest="acknowledged",
        action="store_const",
        const=True,
        default=None,
        help="Only acknowledged alerts",
    )
    ack_group.add_argument(
        "--open",
        dest="acknowledged",
        action="store_const",
        const=False,
        help="Only unacknowledged alerts",
    )
    cmd_alerts.add_argument("--limit", type=int, default=100, help="Maximum alerts to list")

    cmd_ack = sub.add_parser("acknowledge", help="Acknowledge a single alert")
    cmd_ack.add_argument("alert_id", help="Alert id to acknowledge")

    cmd_buildings = sub.add_parser("buildings", help="Show the fleet with derived efficiency and status")
    cmd_buildings.add_argument("--query", help="Only buildings whose name contains this text")
    cmd_buildings.add_argument("--status", choices=STATUSES, help="Only buildings with this status")
    cmd_buildings.add_argument("--sort", choices=SORT_KEYS, default="name", help="Sort order (default: name)")

    cmd_history = sub.add_parser("history", help="Show the recorded power series for one building")
    cmd_history.add_argument("building_id", help="Building id")
    cmd_history.add_argument("--limit", type=int, default=50, help="Most recent samples to show")

    sub.add_parser("seed", help="Register the buildings defined in the config file")

    cmd_maint = sub.add_parser("maintain-db", help="Prune old power history")
    cmd_maint.add_argument("--history-days", type=int, help="Override [retention] history_days")
    cmd_maint.add_argument("--no-vacuum", action="store_true", help="Skip VACUUM after pruning")

    return parser
