"""Configuration helpers for the TeamSync bot."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .storage import write_json_file

logger = logging.getLogger(__name__)

DATA_DIR = "data"
CONFIG_FILE = os.path.join(DATA_DIR, "config.json")

DEFAULT_WEBSITE_URL = "https://scrimsync.vercel.app/"
DEFAULT_TIMEZONE = "UTC"

_DEFAULT_REMINDER_WINDOW_START_MINUTES = 15
_DEFAULT_REMINDER_WINDOW_END_MINUTES = 30
_DEFAULT_SWEEP_MINUTES = 15
_DEFAULT_BANNER_MAX_BYTES = 8 * 1024 * 1024

_DEFAULT_USER_COMMAND_LIMIT = 3
_DEFAULT_USER_COMMAND_WINDOW_SECONDS = 10
_DEFAULT_GUILD_COMMAND_LIMIT = 12
_DEFAULT_GUILD_COMMAND_WINDOW_SECONDS = 10

_DEFAULT_ROSTER_WIDTHS: Dict[str, int] = {
    "player": 20,
    "status": 16,
    "role": 16,
}

_roster_widths_cache: Dict[str, int] | None = None
_timezone_cache: ZoneInfo | None = None
_reminder_window_cache: tuple[int, int] | None = None
_user_command_rate_limit_cache: tuple[int, int] | None = None
_guild_command_rate_limit_cache: tuple[int, int] | None = None


def _load_config() -> Dict[str, Any]:
    if not os.path.exists(CONFIG_FILE):
        return {}

    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as handle:
            data = json.load(handle)
            if isinstance(data, dict):
                return data
            logger.warning("Config file %s does not contain a dictionary.", CONFIG_FILE)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Could not load config from %s: %s", CONFIG_FILE, exc)
    return {}


def _positive_int(section: Any, key: str, default: int) -> int:
    if isinstance(section, dict):
        candidate = section.get(key)
        if isinstance(candidate, int) and not isinstance(candidate, bool) and candidate > 0:
            return candidate
    return default


def get_discord_webhook_url() -> str | None:
    """Return the outbound webhook URL, preferring the stored value over the environment."""
    discord_cfg = _load_config().get("discord")
    if isinstance(discord_cfg, dict):
        url = discord_cfg.get("webhook_url")
        if isinstance(url, str) and url.strip():
            return url.strip()
    env_url = os.getenv("DISCORD_WEBHOOK_URL", "").strip()
    return env_url or None


def set_discord_webhook_url(url: str) -> None:
    config = _load_config()
    discord_cfg = config.get("discord")
    if not isinstance(discord_cfg, dict):
        discord_cfg = {}
    discord_cfg["webhook_url"] = url
    config["discord"] = discord_cfg
    write_json_file(CONFIG_FILE, config)
    logger.info("Stored new Discord webhook URL in %s.", CONFIG_FILE)


def get_super_admin_ids() -> frozenset[str]:
    """Return the identities allowed to bootstrap admin claims."""
    raw = os.getenv("SUPER_ADMIN_IDS", "")
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def get_timezone() -> ZoneInfo:
    """Return the zone used to turn event dates and time labels into instants."""
    global _timezone_cache
    if _timezone_cache is not None:
        return _timezone_cache

    name = _load_config().get("timezone", DEFAULT_TIMEZONE)
    try:
        zone = ZoneInfo(name) if isinstance(name, str) else ZoneInfo(DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in config; falling back to %s.", name, DEFAULT_TIMEZONE)
        zone = ZoneInfo(DEFAULT_TIMEZONE)

    _timezone_cache = zone
    return zone


def get_reminder_window() -> tuple[int, int]:
    """Return the reminder lookahead as (start_minutes, end_minutes)."""
    global _reminder_window_cache
    if _reminder_window_cache is not None:
        return _reminder_window_cache

    reminders_cfg = _load_config().get("reminders")
    start = _positive_int(reminders_cfg, "window_start_minutes", _DEFAULT_REMINDER_WINDOW_START_MINUTES)
    end = _positive_int(reminders_cfg, "window_end_minutes", _DEFAULT_REMINDER_WINDOW_END_MINUTES)
    if end <= start:
        logger.warning("Reminder window end (%s) must be after start (%s); using defaults.", end, start)
        start, end = _DEFAULT_REMINDER_WINDOW_START_MINUTES, _DEFAULT_REMINDER_WINDOW_END_MINUTES

    _reminder_window_cache = (start, end)
    return _reminder_window_cache


def get_sweep_minutes() -> int:
    return _positive_int(_load_config().get("reminders"), "sweep_minutes", _DEFAULT_SWEEP_MINUTES)


def get_website_url() -> str:
    url = _load_config().get("website_url")
    if isinstance(url, str) and url.strip():
        return url.strip()
    return DEFAULT_WEBSITE_URL


def get_banner_max_bytes() -> int:
    return _positive_int(_load_config().get("banner"), "max_bytes", _DEFAULT_BANNER_MAX_BYTES)


def get_user_command_rate_limit() -> tuple[int, int]:
    """Return per-user rate limit as (max_commands, window_seconds)."""
    global _user_command_rate_limit_cache
    if _user_command_rate_limit_cache is not None:
        return _user_command_rate_limit_cache

    rate_cfg = _load_config().get("rate_limits")
    _user_command_rate_limit_cache = (
        _positive_int(rate_cfg, "user_command_limit", _DEFAULT_USER_COMMAND_LIMIT),
        _positive_int(rate_cfg, "user_command_window_seconds", _DEFAULT_USER_COMMAND_WINDOW_SECONDS),
    )
    return _user_command_rate_limit_cache


def get_guild_command_rate_limit() -> tuple[int, int]:
    """Return per-guild rate limit as (max_commands, window_seconds)."""
    global _guild_command_rate_limit_cache
    if _guild_command_rate_limit_cache is not None:
        return _guild_command_rate_limit_cache

    rate_cfg = _load_config().get("rate_limits")
    _guild_command_rate_limit_cache = (
        _positive_int(rate_cfg, "guild_command_limit", _DEFAULT_GUILD_COMMAND_LIMIT),
        _positive_int(rate_cfg, "guild_command_window_seconds", _DEFAULT_GUILD_COMMAND_WINDOW_SECONDS),
    )
    return _guild_command_rate_limit_cache


def get_roster_column_widths() -> Dict[str, int]:
    """Return column widths for the /roster output."""
    global _roster_widths_cache
    if _roster_widths_cache is not None:
        return _roster_widths_cache

    result = dict(_DEFAULT_ROSTER_WIDTHS)
    roster_cfg = _load_config().get("roster")
    if isinstance(roster_cfg, dict):
        widths = roster_cfg.get("column_widths")
        for key, default_value in _DEFAULT_ROSTER_WIDTHS.items():
            result[key] = _positive_int(widths, key, default_value)

    _roster_widths_cache = result
    return result
