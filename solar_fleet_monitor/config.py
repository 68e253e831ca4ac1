# solar_fleet_monitor/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser
import os


@dataclass
class BuildingConfig:
    building_id: str
    name: str
    city: str
    capacity_kw: float
    latitude: float | None = None
    longitude: float | None = None


@dataclass
class FleetConfig:
    buildings: list[BuildingConfig] = field(default_factory=list)


@dataclass
class WeatherConfig:
    enabled: bool = False
    provider: str = "openweathermap"
    api_key: str | None = None
    base_url: str = "https://api.openweathermap.org/data/2.5"
    timeout: float = 10.0
    city_aliases: dict[str, str] = field(default_factory=dict)


@dataclass
class PredictorConfig:
    enabled: bool = False
    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4"
    timeout: float = 5.0
    max_tokens: int = 50
    temperature: float = 0.1
    external_weight: float = 0.7


@dataclass
class AlertConfig:
    low_threshold: float = 0.10
    medium_threshold: float = 0.20
    high_threshold: float = 0.30
    critical_threshold: float = 0.50
    min_predicted_kw: float = 10.0
    dedup_window_seconds: int = 3600
    max_alerts: int = 100


@dataclass
class SimulationConfig:
    timezone: str = "UTC"
    simulated_time: str | None = None
    maintenance_bucket_hours: float = 3.0
    seed: int | None = None


@dataclass
class AnalysisConfig:
    history_limit: int = 50


@dataclass
class StateConfig:
    path: str | None = None


@dataclass
class RetentionConfig:
    history_days: int = 30
    vacuum_after_prune: bool = True


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    fleet: FleetConfig
    weather: WeatherConfig
    predictor: PredictorConfig
    alerts: AlertConfig
    simulation: SimulationConfig
    analysis: AnalysisConfig
    state: StateConfig
    retention: RetentionConfig
    logging: LoggingConfig


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        def _maybe_float(raw: str | None) -> float | None:
            if raw is None:
                return None
            raw = raw.strip()
            if not raw:
                return None
            return float(raw)

        def _maybe_str(raw: str | None) -> str | None:
            if raw is None:
                return None
            raw = raw.strip()
            return raw or None

        # --- Fleet ---
        buildings: list[BuildingConfig] = []
        if "fleet" in p:
            ids = p["fleet"].get("buildings", "")
            for building_id in [x.strip() for x in ids.split(",") if x.strip()]:
                sec = f"building:{building_id}"
                if sec not in p:
                    raise ValueError(f"Missing section [{sec}] for building '{building_id}'")
                b_sec = p[sec]
                if "capacity_kw" not in b_sec:
                    raise ValueError(f"[{sec}] requires capacity_kw")
                capacity = float(b_sec["capacity_kw"])
                if capacity <= 0:
                    raise ValueError(f"[{sec}] capacity_kw must be positive")
                buildings.append(
                    BuildingConfig(
                        building_id=building_id,
                        name=b_sec.get("name", building_id),
                        city=b_sec.get("city", ""),
                        capacity_kw=capacity,
                        latitude=_maybe_float(b_sec.get("latitude")),
                        longitude=_maybe_float(b_sec.get("longitude")),
                    )
                )
        fleet = FleetConfig(buildings=buildings)

        # --- Weather ---
        weather_kwargs = {}
        if "weather" in p:
            weather_sec = p["weather"]
            if "enabled" in weather_sec:
                weather_kwargs["enabled"] = _as_bool(weather_sec["enabled"])
            if "provider" in weather_sec:
                weather_kwargs["provider"] = weather_sec["provider"]
            if (api_key := _maybe_str(weather_sec.get("api_key"))) is not None:
                weather_kwargs["api_key"] = api_key
            if "base_url" in weather_sec:
                weather_kwargs["base_url"] = weather_sec["base_url"]
            if "timeout" in weather_sec:
                weather_kwargs["timeout"] = float(weather_sec["timeout"])
            if "city_aliases" in weather_sec:
                aliases = {}
                for item in weather_sec["city_aliases"].split(","):
                    if ":" in item:
                        k, v = item.split(":", 1)
                        aliases[k.strip()] = v.strip()
                weather_kwargs["city_aliases"] = aliases
        if "api_key" not in weather_kwargs and os.environ.get("WEATHER_API_KEY"):
            weather_kwargs["api_key"] = os.environ["WEATHER_API_KEY"]
        weather_cfg = WeatherConfig(**weather_kwargs)

        # --- Predictor ---
        predictor_kwargs = {}
        if "predictor" in p:
            pred_sec = p["predictor"]
            if "enabled" in pred_sec:
                predictor_kwargs["enabled"] = _as_bool(pred_sec["enabled"])
            if (api_key := _maybe_str(pred_sec.get("api_key"))) is not None:
                predictor_kwargs["api_key"] = api_key
            if "base_url" in pred_sec:
                predictor_kwargs["base_url"] = pred_sec["base_url"]
            if "model" in pred_sec:
                predictor_kwargs["model"] = pred_sec["model"]
            if "timeout" in pred_sec:
                predictor_kwargs["timeout"] = float(pred_sec["timeout"])
            if "max_tokens" in pred_sec:
                predictor_kwargs["max_tokens"] = int(pred_sec["max_tokens"])
            if "temperature" in pred_sec:
                predictor_kwargs["temperature"] = float(pred_sec["temperature"])
            if "external_weight" in pred_sec:
                weight = float(pred_sec["external_weight"])
                if not 0.0 <= weight <= 1.0:
                    raise ValueError("[predictor] external_weight must be within [0, 1]")
                predictor_kwargs["external_weight"] = weight
        if "api_key" not in predictor_kwargs and os.environ.get("OPENAI_API_KEY"):
            predictor_kwargs["api_key"] = os.environ["OPENAI_API_KEY"]
        predictor_cfg = PredictorConfig(**predictor_kwargs)

        # --- Alerts ---
        alert_kwargs = {}
        if "alerts" in p:
            alert_sec = p["alerts"]
            for key in (
                "low_threshold",
                "medium_threshold",
                "high_threshold",
                "critical_threshold",
                "min_predicted_kw",
            ):
                if key in alert_sec:
                    alert_kwargs[key] = float(alert_sec[key])
            if "dedup_window_seconds" in alert_sec:
                alert_kwargs["dedup_window_seconds"] = int(alert_sec["dedup_window_seconds"])
            if "max_alerts" in alert_sec:
                alert_kwargs["max_alerts"] = int(alert_sec["max_alerts"])
        alert_cfg = AlertConfig(**alert_kwargs)
        if not (
            alert_cfg.low_threshold
            <= alert_cfg.medium_threshold
            <= alert_cfg.high_threshold
            <= alert_cfg.critical_threshold
        ):
            raise ValueError("[alerts] thresholds must be ordered low <= medium <= high <= critical")

        # --- Simulation ---
        sim_kwargs = {}
        if "simulation" in p:
            sim_sec = p["simulation"]
            if "timezone" in sim_sec:
                sim_kwargs["timezone"] = sim_sec["timezone"].strip()
            if (sim_time := _maybe_str(sim_sec.get("simulated_time"))) is not None:
                sim_kwargs["simulated_time"] = sim_time
            if "maintenance_bucket_hours" in sim_sec:
                sim_kwargs["maintenance_bucket_hours"] = float(sim_sec["maintenance_bucket_hours"])
            if (seed := _maybe_str(sim_sec.get("seed"))) is not None:
                sim_kwargs["seed"] = int(seed)
        simulation_cfg = SimulationConfig(**sim_kwargs)

        # --- Analysis ---
        analysis_kwargs = {}
        if "analysis" in p and "history_limit" in p["analysis"]:
            analysis_kwargs["history_limit"] = int(p["analysis"]["history_limit"])
        analysis_cfg = AnalysisConfig(**analysis_kwargs)

        # --- State ---
        state_kwargs = {}
        if "state" in p and "path" in p["state"]:
            state_kwargs["path"] = p["state"]["path"]
        state_cfg = StateConfig(**state_kwargs)

        if "retention" in p:
            retention_sec = p["retention"]
        else:
            retention_sec = {}

        retention_cfg = RetentionConfig(
            history_days=int(retention_sec.get("history_days", 30) or 30),
            vacuum_after_prune=(retention_sec.get("vacuum_after_prune", "true").strip().lower() == "true")
            if retention_sec
            else True,
        )

        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            fleet=fleet,
            weather=weather_cfg,
            predictor=predictor_cfg,
            alerts=alert_cfg,
            simulation=simulation_cfg,
            analysis=analysis_cfg,
            state=state_cfg,
            retention=retention_cfg,
            logging=logging_cfg,
        )
