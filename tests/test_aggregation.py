from datetime import date
from pathlib import Path

from team_sync import aggregation, storage
from team_sync.types import EventStatus, EventType, PlayerProfile, ScheduleEvent


def _profiles() -> dict[str, PlayerProfile]:
    return {
        "u1": {"id": "u1", "username": "Alice", "rosterStatus": "Main Roster"},
        "u2": {"id": "u2", "username": "Bob", "rosterStatus": "Standby Player"},
        "u3": {"id": "u3", "username": "Cara"},
    }


def _event(event_id: str = "evt", day: str = "2024-06-01", label: str = "6:30 PM") -> ScheduleEvent:
    return {
        "id": event_id,
        "type": EventType.TRAINING,
        "date": day,
        "time": label,
        "creatorId": "admin",
        "status": EventStatus.ACTIVE,
    }


def test_aggregate_by_slot_groups_votes_in_order() -> None:
    votes = [
        {"id": "v1", "userId": "u2", "timeslot": "2024-06-01_6:30 PM"},
        {"id": "v2", "userId": "u1", "timeslot": "2024-06-01_6:30 PM"},
        {"id": "v3", "userId": "u1", "timeslot": "2024-06-02_7:00 PM"},
    ]
    result = aggregation.aggregate_by_slot(votes, _profiles())
    assert result == {
        "2024-06-01-6:30 PM": ["Bob", "Alice"],
        "2024-06-02-7:00 PM": ["Alice"],
    }


def test_aggregate_by_slot_skips_malformed_and_unknown() -> None:
    votes = [
        {"id": "v1", "userId": "u1", "timeslot": "2024-06-01 6:30 PM"},
        {"id": "v2", "userId": "ghost", "timeslot": "2024-06-01_6:30 PM"},
        {"id": "v3", "userId": "u3", "timeslot": "2024-06-01_6:30 PM"},
    ]
    assert aggregation.aggregate_by_slot(votes, _profiles()) == {"2024-06-01-6:30 PM": ["Cara"]}


def test_aggregate_by_event_unions_rsvps_and_slot_votes() -> None:
    all_votes = {"2024-06-01-6:30 PM": ["Alice", "Bob"]}
    event_votes = {"evt": ["Cara", "Alice"]}
    overrides = [
        {"id": "o1", "eventId": "evt", "userId": "u9", "status": "Possibly Available"},
        {"id": "o2", "eventId": "other", "userId": "u8", "status": "Possibly Available"},
    ]
    result = aggregation.aggregate_by_event(_event(), all_votes, event_votes, overrides)
    assert result.available == ["Cara", "Alice", "Bob"]
    assert result.possible == ["u9"]


def test_roster_readiness_is_monotonic() -> None:
    outcomes = [aggregation.is_roster_ready(count) for count in range(12)]
    assert outcomes == [False] * 7 + [True] * 5
    assert aggregation.players_needed(3) == 4
    assert aggregation.players_needed(9) == 0


def test_sort_roster_orders_by_status_then_name() -> None:
    profiles = [
        {"id": "a", "username": "Zed"},
        {"id": "b", "username": "Yan", "rosterStatus": "Standby Player"},
        {"id": "c", "username": "Xia", "rosterStatus": "Main Roster"},
        {"id": "d", "username": "Abe", "rosterStatus": "Main Roster"},
        {"id": "e", "username": ""},
    ]
    names = [profile["username"] for profile in aggregation.sort_roster(profiles)]
    assert names == ["Abe", "Xia", "Yan", "Zed"]


def test_heatmap_level() -> None:
    assert aggregation.heatmap_level(0, 10) == 0
    assert aggregation.heatmap_level(1, 10) == 1
    assert aggregation.heatmap_level(5, 10) == 4
    assert aggregation.heatmap_level(10, 10) == 6
    assert aggregation.heatmap_level(3, 0) == 6


def test_week_dates_start_monday() -> None:
    days = aggregation.week_dates(date(2024, 6, 5))
    assert days[0] == date(2024, 6, 3)
    assert days[-1] == date(2024, 6, 9)
    assert len(days) == 7


def test_unread_notifications() -> None:
    entries = [
        {"id": "n2", "message": "b", "icon": "Bell", "createdBy": "x", "timestamp": "2024-06-02T00:00:00+00:00"},
        {"id": "n1", "message": "a", "icon": "Bell", "createdBy": "x", "timestamp": "2024-06-01T00:00:00+00:00"},
    ]
    assert aggregation.unread_notifications(entries, None) == entries
    unread = aggregation.unread_notifications(entries, "2024-06-01T00:00:00+00:00")
    assert [entry["id"] for entry in unread] == ["n2"]


def test_upcoming_events_sorted_and_filtered() -> None:
    events = [_event("c", "2024-06-05"), _event("a", "2024-05-31"), _event("b", "2024-06-01")]
    upcoming = aggregation.upcoming_events(events, date(2024, 6, 1))
    assert [event["id"] for event in upcoming] == ["b", "c"]


def test_snapshot_rebuilds_on_store_changes(data_dir: Path) -> None:
    snapshot = aggregation.AvailabilitySnapshot()
    snapshot.attach()
    try:
        storage.upsert_profile("u1", username="Alice")
        event = storage.create_event(EventType.TRAINING, "2024-06-01", "6:30 PM", "admin")
        storage.toggle_vote("u1", "2024-06-01_6:30 PM")

        assert snapshot.all_votes == {"2024-06-01-6:30 PM": ["Alice"]}
        assert snapshot.availability(snapshot.events[event["id"]]).available == ["Alice"]

        storage.set_override(event["id"], "u2")
        assert snapshot.availability(snapshot.events[event["id"]]).possible == ["u2"]
    finally:
        snapshot.detach()

    storage.toggle_vote("u1", "2024-06-01_6:30 PM")
    assert snapshot.all_votes == {"2024-06-01-6:30 PM": ["Alice"]}
