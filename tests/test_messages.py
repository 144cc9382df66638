from datetime import date, timezone

import pytest

from team_sync import messages
from team_sync.types import EventStatus, EventType, PlayerProfile, ScheduleEvent

SITE = "https://teamsync.example/"


def _event(status: EventStatus = EventStatus.ACTIVE, kind: EventType = EventType.TRAINING) -> ScheduleEvent:
    return {
        "id": "evt",
        "type": kind,
        "date": "2024-06-01",
        "time": "6:30 PM",
        "creatorId": "admin",
        "status": status,
    }


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("123456", "<@123456>"),
        ("@123456", "<@123456>"),
        ("SomeName", "SomeName"),
        (None, "Unknown"),
        ("   ", "Unknown"),
        ("<@42>", "<@42>"),
    ],
)
def test_format_mention(raw: str | None, expected: str) -> None:
    assert messages.format_mention(raw) == expected


def test_resolve_player_tag_prefers_discord_handle() -> None:
    assert messages.resolve_player_tag({"id": "u1", "username": "Alice", "discordUsername": "@99"}) == "<@99>"
    assert messages.resolve_player_tag({"id": "u1", "username": "Alice"}) == "Alice"
    assert messages.resolve_player_tag(None) == "Unknown"


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 Bytes"), (512, "512 Bytes"), (1536, "1.5 KB"), (8 * 1024 * 1024, "8 MB")],
)
def test_format_bytes(size: int, expected: str) -> None:
    assert messages.format_bytes(size) == expected


def test_roster_ready_with_full_squad_has_no_warning() -> None:
    profiles: dict[str, PlayerProfile] = {
        f"u{index}": {"id": f"u{index}", "username": f"Player{index}"} for index in range(7)
    }
    names = [profile["username"] for profile in profiles.values()]

    text = messages.build_roster_ready_message(_event(), names, [], profiles, tz=timezone.utc)

    for name in names:
        assert f"- {name}" in text
    assert "Players Needed" not in text
    assert "**7 players**" in text
    assert "<t:1717266600:F>" in text


def test_roster_ready_counting_possible_players_warns() -> None:
    profiles: dict[str, PlayerProfile] = {
        f"u{index}": {"id": f"u{index}", "username": f"Player{index}"} for index in range(7)
    }
    text = messages.build_roster_ready_message(
        _event(), ["Player0", "Player1", "Player2", "Player3", "Player4"], ["u5", "u6"], profiles, tz=timezone.utc
    )
    assert "**Possibly Available:**" in text
    assert "Players Needed: 2" in text


def test_reminder_sections_appear_in_order_with_counts() -> None:
    profiles: dict[str, PlayerProfile] = {
        "u1": {"id": "u1", "username": "Alice", "rosterStatus": "Main Roster", "discordUsername": "111"},
        "u2": {"id": "u2", "username": "Bob", "rosterStatus": "Main Roster"},
        "u3": {"id": "u3", "username": "Cara", "rosterStatus": "Main Roster"},
        "u4": {"id": "u4", "username": "Dan", "rosterStatus": "Main Roster"},
        "u5": {"id": "u5", "username": "Eve", "rosterStatus": "Standby Player"},
    }
    overrides = [
        {"id": "o1", "eventId": "evt", "userId": "u2", "status": "Possibly Available"},
        {"id": "o2", "eventId": "evt", "userId": "u3", "status": "Possibly Available"},
    ]

    text = messages.build_reminder_message(
        _event(), ["Alice"], overrides, profiles, include_nudges=True, tz=timezone.utc, website_url=SITE
    )

    available = text.index("✅ **Available (1):**")
    possible = text.index("🤔 **Possibly Available (2):**")
    awaiting = text.index("⏰ **Awaiting Response (Main) (1):**")
    assert available < possible < awaiting
    assert "- <@111>" in text
    assert text[awaiting:].splitlines()[1] == "- Dan"
    assert "Eve" not in text
    assert "🔥 **Players Needed: 6**" in text
    assert text.endswith(f"👉 Update your availability at {SITE}")


def test_reminder_without_nudges_or_overrides() -> None:
    text = messages.build_reminder_message(_event(), [], [], {}, tz=timezone.utc, website_url=SITE)
    assert "✅ **Available (0):**\n- None" in text
    assert "Possibly Available" not in text
    assert "Awaiting Response" not in text


def test_reminder_for_cancelled_event() -> None:
    text = messages.build_reminder_message(
        _event(EventStatus.CANCELLED), ["Alice"], [], {}, tz=timezone.utc, website_url=SITE
    )
    assert text.startswith("🚫 **EVENT CANCELLED** 🚫")
    assert "Training" in text

    embed = messages.build_reminder_embed(_event(EventStatus.CANCELLED), text)
    assert embed.colour is not None and embed.colour.value == messages.COLOR_RED


def test_reminder_embed_color_by_type() -> None:
    tournament = messages.build_reminder_embed(_event(kind=EventType.TOURNAMENT), "body")
    training = messages.build_reminder_embed(_event(), "body")
    assert tournament.colour is not None and tournament.colour.value == messages.COLOR_GOLD
    assert training.colour is not None and training.colour.value == messages.COLOR_BLUE
    assert tournament.title == "🔔 TOURNAMENT REMINDER"
    assert training.footer.text == messages.FOOTER_TEXT


def test_daily_summary_lines_and_placeholder() -> None:
    assert messages.build_daily_summary_message([], {}, tz=timezone.utc) == "- No events scheduled for today."

    events = [_event(), {**_event(EventStatus.CANCELLED), "id": "gone"}]
    text = messages.build_daily_summary_message(events, {"evt": 7, "gone": 2}, tz=timezone.utc)
    assert text.splitlines() == [
        "- **<t:1717266600:t>**: Training (7/7 Players) ✅",
        "- **<t:1717266600:t>**: Training (2/7 Players) 🚫",
    ]


def test_daily_summary_embed_footer() -> None:
    embed = messages.build_daily_summary_embed(date(2024, 6, 1), "body", website_url=SITE)
    assert embed.title == "📅 TEAM SCHEDULE: Saturday, 1 Jun"
    assert embed.footer.text == "Update your availability at teamsync.example"


def test_sweep_embed_fields() -> None:
    embed = messages.build_sweep_embed(
        _event(kind=EventType.TOURNAMENT), ["Alice", "Bob"], ["Cara"], 30, tz=timezone.utc
    )
    assert embed.colour is not None and embed.colour.value == messages.COLOR_SWEEP_TOURNAMENT
    assert [field.name for field in embed.fields] == [
        "✅ Available Players (2)",
        "❌ Unavailable Players (1)",
        "🔥 Players Needed",
    ]
    assert embed.fields[0].value == "Alice\nBob"
    assert embed.fields[2].value == "5"


def test_roster_copy_text() -> None:
    profiles: dict[str, PlayerProfile] = {
        "u1": {"id": "u1", "username": "Alice", "rosterStatus": "Main Roster"},
        "u2": {"id": "u2", "username": "Bob", "discordUsername": "bobby", "rosterStatus": "Standby Player"},
    }
    text = messages.build_roster_copy_text(date(2024, 6, 1), "6:30 PM", ["u2"], profiles, website_url=SITE)
    lines = text.splitlines()
    assert lines[0] == "Roster for Saturday, 1 Jun at 6:30 PM:"
    assert "- bobby (Standby)" in lines
    assert "- Alice (Main)" in lines
    assert "🔥 Players Needed: 6" in lines
    assert lines[-1] == SITE


def test_heatmap_marks_events() -> None:
    days = [date(2024, 6, 1)]
    text = messages.build_heatmap_text(days, {"2024-06-01-6:30 PM": ["Alice", "Bob"]}, [_event()], 2)
    row = next(line for line in text.splitlines() if line.startswith("6:30 PM"))
    assert " 2█*" in row
