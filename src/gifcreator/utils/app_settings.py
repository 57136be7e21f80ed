"""Application settings persistence (timeouts, defaults, log level)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

CONFIG_DIR = Path.home() / ".gifcreator"
SETTINGS_FILE = CONFIG_DIR / "settings.json"
LOG_FILE = CONFIG_DIR / "gifcreator.log"

DEFAULTS: Dict[str, Any] = {
    "url_timeout": 5.0,
    "loop": 0,
    "default_delay": 0,
    "log_level": "WARNING",
}


def load_settings() -> Dict[str, Any]:
    """Load application settings from disk."""
    settings = DEFAULTS.copy()
    try:
        if SETTINGS_FILE.exists():
            with open(SETTINGS_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)
                if isinstance(data, dict):
                    settings.update(data)
    except (json.JSONDecodeError, OSError):
        pass
    return settings


def save_settings(settings: Dict[str, Any]) -> None:
    """Save application settings to disk."""
    try:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(SETTINGS_FILE, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)
    except OSError:
        pass


def get_url_timeout() -> float:
    """Seconds to wait for a frame URL before giving up."""
    try:
        timeout = float(load_settings().get("url_timeout", DEFAULTS["url_timeout"]))
    except (TypeError, ValueError):
        return DEFAULTS["url_timeout"]
    return timeout if timeout > 0 else DEFAULTS["url_timeout"]


def get_loop() -> int:
    try:
        return max(0, int(load_settings().get("loop", 0)))
    except (TypeError, ValueError):
        return 0


def get_default_delay() -> int:
    try:
        return max(0, int(load_settings().get("default_delay", 0)))
    except (TypeError, ValueError):
        return 0


def get_log_level() -> str:
    level = str(load_settings().get("log_level", "WARNING")).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        return "WARNING"
    return level


def set_log_level(level: str) -> None:
    """Save the log level preference."""
    settings = load_settings()
    settings["log_level"] = level.upper()
    save_settings(settings)
