from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigError

# --- Configuration ---
DEFAULT_API_BASE_URL = "http://localhost:8080"
HTTP_TIMEOUT = 10
RETRY_ATTEMPTS = 0
MAX_UPCOMING = 8
LOOKBACK_DAYS = 0
DEFAULT_THEME = "textual-dark"

CONFIG_PATH = os.path.expanduser("~/.config/lilian/config.json")

ENV_API_BASE_URL = "LILIAN_API_BASE_URL"
ENV_HTTP_TIMEOUT = "LILIAN_HTTP_TIMEOUT"

REQUEST_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "lilian-feed/0.1",
}

KNOWN_SECTIONS = ("hero", "about", "events", "talks", "social-posts")
CALENDAR_SECTIONS = ("events", "talks")
SINGLE_SECTIONS = ("hero", "about")
LIST_SECTIONS = ("events", "talks", "social-posts")
UPCOMING_SECTIONS = ("events", "talks", "social-posts")

DEFAULT_CONFIG: Dict[str, Any] = {
    "api_base_url": DEFAULT_API_BASE_URL,
    "http_timeout": HTTP_TIMEOUT,
    "retries": RETRY_ATTEMPTS,
    "max_upcoming": MAX_UPCOMING,
    "lookback_days": LOOKBACK_DAYS,
    "calendar_sections": list(CALENDAR_SECTIONS),
    "theme": DEFAULT_THEME,
}

# Default UI settings
UI_DEFAULTS = {
    "statusbar_keybindings": "[b cyan]/[/] to filter, [b cyan]r[/] to refresh",
}

# --- Logging ---
logger = logging.getLogger("lilian")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/lilian_debug_{ts}_{pid}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


@dataclass(frozen=True)
class FeedSettings:
    """Validated runtime settings for the fetcher and the aggregations."""

    api_base_url: str = DEFAULT_API_BASE_URL
    http_timeout: float = HTTP_TIMEOUT
    retries: int = RETRY_ATTEMPTS
    max_upcoming: int = MAX_UPCOMING
    lookback_days: int = LOOKBACK_DAYS
    calendar_sections: Tuple[str, ...] = field(default=CALENDAR_SECTIONS)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FeedSettings":
        base_url = config.get("api_base_url", DEFAULT_API_BASE_URL)
        if not isinstance(base_url, str) or not base_url.strip():
            raise ConfigError("api_base_url must be a non-empty string")

        timeout = config.get("http_timeout", HTTP_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"http_timeout must be a positive number, got {timeout!r}")

        sections = config.get("calendar_sections", list(CALENDAR_SECTIONS))
        if not isinstance(sections, (list, tuple)) or not all(
            isinstance(s, str) and s for s in sections
        ):
            raise ConfigError("calendar_sections must be a list of section names")
        unknown = [s for s in sections if s not in KNOWN_SECTIONS]
        if unknown:
            raise ConfigError(f"calendar_sections has unknown sections: {unknown}")

        return cls(
            api_base_url=base_url.strip().rstrip("/"),
            http_timeout=float(timeout),
            retries=_non_negative_int(config, "retries", RETRY_ATTEMPTS),
            max_upcoming=_non_negative_int(config, "max_upcoming", MAX_UPCOMING),
            lookback_days=_non_negative_int(config, "lookback_days", LOOKBACK_DAYS),
            calendar_sections=tuple(sections),
        )


def _non_negative_int(config: Dict[str, Any], key: str, default: int) -> int:
    value = config.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``config`` with LILIAN_* environment variables applied."""
    merged = dict(config)
    base_url = os.environ.get(ENV_API_BASE_URL)
    if base_url:
        merged["api_base_url"] = base_url
    timeout = os.environ.get(ENV_HTTP_TIMEOUT)
    if timeout:
        try:
            merged["http_timeout"] = float(timeout)
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", ENV_HTTP_TIMEOUT, timeout)
    return merged


def ensure_config_file_exists() -> None:
    """Write the default config file if the user's config file is not found."""
    if not os.path.exists(CONFIG_PATH):
        logger.info("Config file not found at %s, creating default.", CONFIG_PATH)
        save_config(DEFAULT_CONFIG)


def load_config() -> Dict[str, Any]:
    """Load the main configuration file, layered over the defaults."""
    ensure_config_file_exists()
    config = dict(DEFAULT_CONFIG)
    try:
        with open(CONFIG_PATH, "r") as f:
            loaded = json.load(f)
        if isinstance(loaded, dict):
            config.update(loaded)
            logger.info("Loaded config from %s", CONFIG_PATH)
        else:
            logger.error("Config at %s is not a JSON object; using defaults", CONFIG_PATH)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", CONFIG_PATH, e)
    return apply_env_overrides(config)


def save_config(config: Dict[str, Any]) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(CONFIG_PATH), exist_ok=True)
        with open(CONFIG_PATH, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", CONFIG_PATH)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", CONFIG_PATH, e)
