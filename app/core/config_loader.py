import json
import os
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings

logger = logging.getLogger("app")

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "data" / "spa_config.json"

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def get_config_path() -> Path:
    return Path(settings.SPA_CONFIG_PATH) if settings.SPA_CONFIG_PATH else DEFAULT_CONFIG_PATH


def load_spa_config() -> Dict[str, Any]:
    """
    Loads spa configuration from JSON file.
    Raises FileNotFoundError if config is missing.
    Returns: Dict containing config.
    """
    config_path = get_config_path()
    if not os.path.exists(config_path):
        logger.critical(f"❌ Configuration file '{config_path}' not found! The application cannot start.")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
            logger.info(f"✅ Configuration loaded for: {config.get('spa_name', 'Unknown')}")
            return config
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in spa configuration: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")


def get_therapist_days_off(config: Dict[str, Any]) -> Mapping[str, str]:
    """
    Returns a read-only {therapist: weekday} mapping.
    Weekday names are capitalised ("thursday" -> "Thursday").
    """
    days_off = {}
    for therapist, weekday in config.get("therapist_days_off", {}).items():
        weekday = str(weekday).strip().capitalize()
        if weekday not in WEEKDAYS:
            raise ValueError(f"Unknown weekday '{weekday}' for therapist {therapist}")
        days_off[therapist] = weekday
    return MappingProxyType(days_off)


def get_timezone(config: Dict[str, Any]) -> ZoneInfo:
    name = config.get("timezone", "UTC")
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        raise ValueError(f"Unknown timezone '{name}' in spa configuration")
