from pathlib import Path

import pytest

from team_sync import config, storage

DATA_FILES = {
    "VOTES_FILE": "votes.json",
    "PROFILES_FILE": "users.json",
    "EVENTS_FILE": "events.json",
    "OVERRIDES_FILE": "overrides.json",
    "EVENT_VOTES_FILE": "event_votes.json",
    "NOTIFICATIONS_FILE": "notifications.json",
    "ADMINS_FILE": "admins.json",
    "REMINDERS_FILE": "reminders.json",
}


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    for attribute, filename in DATA_FILES.items():
        monkeypatch.setattr(storage, attribute, str(tmp_path / filename))
    monkeypatch.setattr(storage, "_listeners", [])
    monkeypatch.setattr(config, "CONFIG_FILE", str(tmp_path / "config.json"))
    monkeypatch.setattr(config, "_timezone_cache", None)
    monkeypatch.setattr(config, "_reminder_window_cache", None)
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)
    return tmp_path
