"""Availability aggregation over raw vote, RSVP and override records."""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping

from . import storage
from .time_utils import parse_timeslot, start_of_week, vote_key
from .types import (
    MINIMUM_PLAYERS,
    AllVotes,
    AppNotification,
    AvailabilityOverride,
    EventAvailability,
    EventVoteRecord,
    EventVotes,
    PlayerProfile,
    ProfilesDB,
    RosterStatus,
    ScheduleEvent,
    VoteRecord,
)

logger = logging.getLogger(__name__)

ROSTER_STATUS_ORDER = [RosterStatus.MAIN.value, RosterStatus.STANDBY.value]
HEATMAP_LEVELS = 6


def aggregate_by_slot(votes: Iterable[VoteRecord], profiles: Mapping[str, PlayerProfile]) -> AllVotes:
    """Group votes into ``"<date>-<time>"`` keys holding usernames in vote order.

    Votes from users without a profile are dropped, and votes whose timeslot
    cannot be parsed are skipped so a single corrupt record never blocks the view.
    """
    all_votes: AllVotes = {}
    for vote in votes:
        timeslot = vote.get("timeslot", "")
        try:
            day, label = parse_timeslot(timeslot)
        except ValueError:
            logger.debug("Skipping vote %s with malformed timeslot %r.", vote.get("id", "?"), timeslot)
            continue
        profile = profiles.get(vote.get("userId", ""))
        username = profile.get("username") if profile else None
        if not username:
            continue
        all_votes.setdefault(vote_key(day.isoformat(), label), []).append(username)
    return all_votes


def aggregate_event_votes(
    event_votes: Iterable[EventVoteRecord],
    profiles: Mapping[str, PlayerProfile],
) -> EventVotes:
    result: EventVotes = {}
    for record in event_votes:
        profile = profiles.get(record.get("userId", ""))
        username = profile.get("username") if profile else None
        if not username or not record.get("eventId"):
            continue
        result.setdefault(record["eventId"], []).append(username)
    return result


def slot_voters(event: ScheduleEvent, all_votes: AllVotes) -> List[str]:
    return list(all_votes.get(vote_key(event["date"], event["time"]), []))


def aggregate_by_event(
    event: ScheduleEvent,
    all_votes: AllVotes,
    event_votes: EventVotes,
    overrides: Iterable[AvailabilityOverride],
) -> EventAvailability:
    """Return who is available for an event and who is only possibly available.

    RSVP names come first, followed by slot voters for the event's time who
    have not RSVP'd. The possible tier lists override user ids for the event.
    """
    available = list(event_votes.get(event["id"], []))
    for name in slot_voters(event, all_votes):
        if name not in available:
            available.append(name)
    possible = [override["userId"] for override in overrides if override.get("eventId") == event["id"]]
    return EventAvailability(available=available, possible=possible)


def is_roster_ready(available_count: int, minimum: int = MINIMUM_PLAYERS) -> bool:
    return available_count >= minimum


def players_needed(available_count: int, minimum: int = MINIMUM_PLAYERS) -> int:
    return max(0, minimum - available_count)


def sort_roster(profiles: Iterable[PlayerProfile]) -> List[PlayerProfile]:
    """Order profiles Main Roster, Standby Player, then the rest; alphabetical within each."""

    def rank(profile: PlayerProfile) -> int:
        status = profile.get("rosterStatus")
        return ROSTER_STATUS_ORDER.index(status) if status in ROSTER_STATUS_ORDER else len(ROSTER_STATUS_ORDER)

    named = [profile for profile in profiles if profile.get("username")]
    return sorted(named, key=lambda profile: (rank(profile), profile["username"]))


def heatmap_level(vote_count: int, total_players: int, levels: int = HEATMAP_LEVELS) -> int:
    if vote_count <= 0:
        return 0
    percentage = vote_count / (total_players or 1)
    return min(math.floor(percentage * levels), levels - 1) + 1


def week_dates(day: date) -> List[date]:
    start = start_of_week(day)
    return [start + timedelta(days=offset) for offset in range(7)]


def unread_notifications(notifications: Iterable[AppNotification], last_read: str | None) -> List[AppNotification]:
    if not last_read:
        return list(notifications)
    return [entry for entry in notifications if entry.get("timestamp", "") > last_read]


def upcoming_events(events: Iterable[ScheduleEvent], today: date) -> List[ScheduleEvent]:
    selected = [event for event in events if event["date"] >= today.isoformat()]
    return sorted(selected, key=lambda event: event["date"])


class AvailabilitySnapshot:
    """Derived availability views, rebuilt in full whenever a watched collection changes."""

    WATCHED = frozenset({"votes", "users", "events", "overrides", "event_votes"})

    def __init__(self) -> None:
        self.profiles: ProfilesDB = {}
        self.events: Dict[str, ScheduleEvent] = {}
        self.overrides: List[AvailabilityOverride] = []
        self.all_votes: AllVotes = {}
        self.event_votes: EventVotes = {}

    def refresh(self) -> None:
        profiles = storage.load_profiles()
        self.profiles = profiles
        self.events = storage.load_events()
        self.overrides = storage.load_overrides()
        self.all_votes = aggregate_by_slot(storage.load_votes(), profiles)
        self.event_votes = aggregate_event_votes(storage.load_event_votes(), profiles)
        logger.debug(
            "Availability snapshot rebuilt: %s profile(s), %s event(s), %s slot(s).",
            len(self.profiles),
            len(self.events),
            len(self.all_votes),
        )

    def on_change(self, collection: str) -> None:
        if collection in self.WATCHED:
            self.refresh()

    def attach(self) -> None:
        storage.subscribe(self.on_change)
        self.refresh()

    def detach(self) -> None:
        storage.unsubscribe(self.on_change)

    def availability(self, event: ScheduleEvent) -> EventAvailability:
        return aggregate_by_event(event, self.all_votes, self.event_votes, self.overrides)
