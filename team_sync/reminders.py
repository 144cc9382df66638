"""Periodic reminder sweep for events that are about to start."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, List, Mapping, Sequence

from . import storage
from .aggregation import aggregate_by_event, aggregate_by_slot, aggregate_event_votes
from .config import get_discord_webhook_url, get_reminder_window, get_timezone
from .messages import build_sweep_embed
from .notifier import post_to_webhook
from .time_utils import event_start
from .types import EventStatus, PlayerProfile, ScheduleEvent

logger = logging.getLogger(__name__)


def select_due_events(
    events: Iterable[ScheduleEvent],
    now: datetime,
    tz: tzinfo,
    window: tuple[int, int],
) -> List[ScheduleEvent]:
    """Return active events starting after ``now + start`` and no later than ``now + end``."""
    window_start = now + timedelta(minutes=window[0])
    window_end = now + timedelta(minutes=window[1])
    due: List[ScheduleEvent] = []
    for event in events:
        if event.get("status") == EventStatus.CANCELLED:
            continue
        try:
            starts_at = event_start(event["date"], event["time"], tz)
        except (KeyError, ValueError):
            logger.error(
                "Could not parse date for event %s: %r %r",
                event.get("id", "?"),
                event.get("date"),
                event.get("time"),
            )
            continue
        if window_start < starts_at <= window_end:
            due.append(event)
    return due


def unavailable_players(profiles: Mapping[str, PlayerProfile], available: Sequence[str]) -> List[str]:
    return [
        profile["username"]
        for profile in profiles.values()
        if profile.get("username") and profile["username"] not in available
    ]


async def run_reminder_sweep(now: datetime | None = None) -> int:
    """Post one reminder per due event and return how many were delivered.

    Each event is marked before its post goes out, so an event that stays in
    the window across two sweeps is reminded at most once.
    """
    webhook_url = get_discord_webhook_url()
    if not webhook_url:
        logger.info("Discord webhook URL not configured. Skipping reminders.")
        return 0

    now = now or datetime.now(tz=timezone.utc)
    tz = get_timezone()
    window = get_reminder_window()

    events = storage.load_events()
    if not events:
        logger.info("No scheduled events found.")
        return 0

    due = [
        event
        for event in select_due_events(events.values(), now, tz, window)
        if storage.reminded_at(event["id"]) is None
    ]
    if not due:
        logger.info("No upcoming events to send reminders for.")
        return 0

    profiles = storage.load_profiles()
    all_votes = aggregate_by_slot(storage.load_votes(), profiles)
    event_votes = aggregate_event_votes(storage.load_event_votes(), profiles)
    overrides = storage.load_overrides()

    sent = 0
    for event in due:
        if not storage.mark_reminded(event["id"], now):
            continue
        availability = aggregate_by_event(event, all_votes, event_votes, overrides)
        embed = build_sweep_embed(
            event,
            availability.available,
            unavailable_players(profiles, availability.available),
            window[1],
            tz=tz,
        )
        result = await post_to_webhook(webhook_url, embeds=[embed])
        if result.success:
            sent += 1
            logger.info("Sent reminder for event %s.", event["id"])
        else:
            logger.error("Failed to send reminder for event %s: %s", event["id"], result.message)
    return sent
