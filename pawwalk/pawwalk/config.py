"""PawWalk configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: PAWWALK_<SECTION>_<KEY> (uppercase).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pawwalk.core.filter import FilterConfig


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    env: str = "dev"  # "dev" or "prod"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class TrackingConfig:
    min_distance_m: float = 1.5
    max_accuracy_m: float | None = 100.0  # null in YAML disables the gate
    fix_timeout_s: float = 15.0
    high_accuracy: bool = True
    speed_window: int = 100
    max_speed_gap_s: float = 60.0
    persist_every: int = 1  # accepted samples between recovery writes

    def filter_config(self) -> FilterConfig:
        return FilterConfig(
            min_distance_m=self.min_distance_m,
            max_accuracy_m=self.max_accuracy_m,
        )


@dataclass
class GoalConfig:
    goal_seconds: int = 1200


@dataclass
class StorageConfig:
    backend: str = "file"  # "file" or "memory"
    base_dir: str = "data/walks"


@dataclass
class RecoveryConfig:
    backend: str = "file"  # "file" or "memory"
    base_dir: str = "data/recovery"


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    goal: GoalConfig = field(default_factory=GoalConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    recovery: RecoveryConfig = field(default_factory=RecoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _optional_float(value: str) -> float | None:
    if value.strip().lower() in ("", "none", "null"):
        return None
    return float(value)


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "PAWWALK_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "PAWWALK_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "PAWWALK_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "PAWWALK_SERVER_CORS_ORIGINS": lambda v: setattr(
            config.server, "cors_origins", [o.strip() for o in v.split(",") if o.strip()]),
        "PAWWALK_TRACKING_MIN_DISTANCE_M": lambda v: setattr(config.tracking, "min_distance_m", float(v)),
        "PAWWALK_TRACKING_MAX_ACCURACY_M": lambda v: setattr(config.tracking, "max_accuracy_m", _optional_float(v)),
        "PAWWALK_TRACKING_FIX_TIMEOUT_S": lambda v: setattr(config.tracking, "fix_timeout_s", float(v)),
        "PAWWALK_TRACKING_HIGH_ACCURACY": lambda v: setattr(config.tracking, "high_accuracy", _bool(v)),
        "PAWWALK_TRACKING_SPEED_WINDOW": lambda v: setattr(config.tracking, "speed_window", int(v)),
        "PAWWALK_TRACKING_MAX_SPEED_GAP_S": lambda v: setattr(config.tracking, "max_speed_gap_s", float(v)),
        "PAWWALK_TRACKING_PERSIST_EVERY": lambda v: setattr(config.tracking, "persist_every", int(v)),
        "PAWWALK_GOAL_SECONDS": lambda v: setattr(config.goal, "goal_seconds", int(v)),
        "PAWWALK_STORAGE_BACKEND": lambda v: setattr(config.storage, "backend", v),
        "PAWWALK_STORAGE_BASE_DIR": lambda v: setattr(config.storage, "base_dir", v),
        "PAWWALK_RECOVERY_BACKEND": lambda v: setattr(config.recovery, "backend", v),
        "PAWWALK_RECOVERY_BASE_DIR": lambda v: setattr(config.recovery, "base_dir", v),
        "PAWWALK_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "PAWWALK_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    # Try to load YAML
    if config_path is None:
        config_path = Path(os.environ.get("PAWWALK_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section_name in ("server", "tracking", "goal", "storage", "recovery", "logging"):
            section = getattr(config, section_name)
            for k, v in (raw.get(section_name) or {}).items():
                if hasattr(section, k):
                    setattr(section, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
