import json
from pathlib import Path

from team_sync import config


def test_get_user_command_rate_limit_defaults(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{}", encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_FILE", str(config_path))
    monkeypatch.setattr(config, "_user_command_rate_limit_cache", None)

    max_commands, window_seconds = config.get_user_command_rate_limit()
    assert max_commands == 3
    assert window_seconds == 10


def test_get_guild_command_rate_limit_override(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    payload = {
        "rate_limits": {
            "guild_command_limit": 7,
            "guild_command_window_seconds": 15,
        }
    }
    config_path.write_text(json.dumps(payload), encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_FILE", str(config_path))
    monkeypatch.setattr(config, "_guild_command_rate_limit_cache", None)

    max_commands, window_seconds = config.get_guild_command_rate_limit()
    assert max_commands == 7
    assert window_seconds == 15


def test_webhook_url_prefers_stored_value(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    monkeypatch.setattr(config, "CONFIG_FILE", str(config_path))
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "https://example.invalid/env")

    assert config.get_discord_webhook_url() == "https://example.invalid/env"

    config.set_discord_webhook_url("https://example.invalid/stored")
    assert config.get_discord_webhook_url() == "https://example.invalid/stored"
    stored = json.loads(config_path.read_text(encoding="utf-8"))
    assert stored["discord"]["webhook_url"] == "https://example.invalid/stored"


def test_webhook_url_missing(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(config, "CONFIG_FILE", str(tmp_path / "config.json"))
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)

    assert config.get_discord_webhook_url() is None


def test_super_admin_ids_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUPER_ADMIN_IDS", " 42, 7 ,,")
    assert config.get_super_admin_ids() == frozenset({"42", "7"})

    monkeypatch.delenv("SUPER_ADMIN_IDS")
    assert config.get_super_admin_ids() == frozenset()


def test_unknown_timezone_falls_back_to_utc(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"timezone": "Not/AZone"}), encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_FILE", str(config_path))
    monkeypatch.setattr(config, "_timezone_cache", None)

    assert config.get_timezone().key == "UTC"


def test_reminder_window_rejects_inverted_bounds(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    payload = {"reminders": {"window_start_minutes": 40, "window_end_minutes": 20}}
    config_path.write_text(json.dumps(payload), encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_FILE", str(config_path))
    monkeypatch.setattr(config, "_reminder_window_cache", None)

    assert config.get_reminder_window() == (15, 30)


def test_roster_column_widths_partial_override(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config.json"
    payload = {"roster": {"column_widths": {"player": 30, "role": -1}}}
    config_path.write_text(json.dumps(payload), encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_FILE", str(config_path))
    monkeypatch.setattr(config, "_roster_widths_cache", None)

    assert config.get_roster_column_widths() == {"player": 30, "status": 16, "role": 16}
