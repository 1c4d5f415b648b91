"""Configuration management for Cadence."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CADENCE_HOME = Path(os.environ.get("CADENCE_HOME", Path.home() / "cadence"))
CONFIG_FILE = CADENCE_HOME / "config" / "cadence.conf"
DATA_DIR = CADENCE_HOME / "data"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Cadence configuration."""

    tasks_file: str = ""
    reminder_horizon_days: int = 30
    reminder_lead_minutes: int = 0
    heat_map_weeks: int = 12
    log_level: str = "WARNING"

    @property
    def tasks_path(self) -> Path:
        if self.tasks_file:
            return Path(self.tasks_file).expanduser()
        return DATA_DIR / "tasks.json"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from unquoted values."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _positive_int(key: str, value: str, default: int) -> int:
    try:
        number = int(value)
    except ValueError:
        logger.warning(f"Ignoring {key.upper()}={value!r}: not an integer")
        return default
    if number < 0:
        logger.warning(f"Ignoring {key.upper()}={value!r}: must not be negative")
        return default
    return number


def load_config(path: Path | None = None) -> Config:
    """Load configuration from cadence.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "tasks_file":
                config.tasks_file = value
            case "reminder_horizon_days":
                config.reminder_horizon_days = _positive_int(key, value, config.reminder_horizon_days)
            case "reminder_lead_minutes":
                config.reminder_lead_minutes = _positive_int(key, value, config.reminder_lead_minutes)
            case "heat_map_weeks":
                config.heat_map_weeks = _positive_int(key, value, config.heat_map_weeks)
            case "log_level":
                if value.upper() in LOG_LEVELS:
                    config.log_level = value.upper()
                else:
                    logger.warning(f"Ignoring LOG_LEVEL={value!r}: expected one of {', '.join(LOG_LEVELS)}")
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config
