"""Pre-DB bootstrap configuration. No imports from the rest of the app.

Stores preferences that must be known before opening the DB (db_folder,
log_level). Config lives in ~/.billcycle/config.json so the periodic job can
find its database without any arguments.
"""
import json
import os
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

CONFIG_DIR = Path(os.environ.get("BILLCYCLE_HOME", Path.home() / ".billcycle"))
CONFIG_FILE = CONFIG_DIR / "config.json"


def load_config() -> dict:
    """Returns {} on missing or corrupt file. Never raises."""
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict) -> bool:
    """Creates the config dir if needed; atomic write via .tmp + os.replace().

    Never raises: on failure the .tmp file is removed, the previous config is
    left in place and False is returned.
    """
    tmp = CONFIG_FILE.with_suffix(".tmp")
    try:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, CONFIG_FILE)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        logger.warning("config_save_failed", path=str(CONFIG_FILE), error=str(exc))
        return False
    return True


def get_db_folder() -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config().get("db_folder")


def set_db_folder(path: str | None) -> bool:
    """Update db_folder in config and save."""
    config = load_config()
    if path is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = path
    return save_config(config)


def get_log_level() -> str:
    return str(load_config().get("log_level", "INFO")).upper()
