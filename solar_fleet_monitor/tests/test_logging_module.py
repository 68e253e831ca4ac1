import json
import logging

from solar_fleet_monitor.logging import AnalysisLogEntry, ConsoleLog, StructuredLog


def test_structured_log_writes_json(tmp_path):
    log_path = tmp_path / "structured.log"
    entry = AnalysisLogEntry(
        timestamp="2024-06-01T12:00:00+00:00",
        total_buildings=2,
        processed_buildings=1,
        results=[{"buildingId": "bld-ch-01", "actualKw": 812.4}, {"buildingId": "bld-th-01", "error": "boom"}],
        alert_stats={"total": 1, "unacknowledged": 1, "critical": 1, "high": 0, "medium": 0, "low": 0},
    )
    StructuredLog(str(log_path), enabled=True).write(entry)

    line = log_path.read_text(encoding="utf-8").strip()
    assert line
    payload = json.loads(line)
    assert payload["timestamp"] == entry.timestamp
    assert payload["processed_buildings"] == 1
    assert payload["results"][0]["actualKw"] == 812.4
    assert payload["alert_stats"]["critical"] == 1


def test_structured_log_disabled_writes_nothing(tmp_path):
    log_path = tmp_path / "structured.log"
    StructuredLog(str(log_path), enabled=False).write(
        AnalysisLogEntry("2024-06-01T12:00:00+00:00", 0, 0, [], {})
    )
    assert not log_path.exists()


def test_console_log_quiet_skips_handlers():
    root = logging.getLogger()
    orig_handlers = list(root.handlers)
    orig_level = root.level
    try:
        log = ConsoleLog(level="INFO", quiet=True).setup()
        assert log.name == "solar_fleet"
        assert root.handlers == []
    finally:
        root.handlers.clear()
        root.handlers.extend(orig_handlers)
        root.setLevel(orig_level)
