"""Persistence helpers for TeamSync.

Every collection lives in its own JSON file under ``data/`` as a mapping of
document id to record. Reads take a shared lock, writes an exclusive one, and
``_transaction`` holds the exclusive lock across read-modify-write so toggles
behave as an insert-if-absent / delete-if-present swap.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import os
import tempfile
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Iterator, List, cast

try:
    import fcntl
except ImportError:  # pragma: no cover - non-POSIX fallback
    fcntl = None

from .time_utils import parse_date_key, parse_time_label, parse_timeslot, timeslot_key
from .types import (
    POSSIBLY_AVAILABLE,
    AppNotification,
    AvailabilityOverride,
    EventStatus,
    EventType,
    EventVoteRecord,
    PlayerProfile,
    ProfilesDB,
    ScheduleEvent,
    VoteRecord,
)

logger = logging.getLogger(__name__)

DATA_DIR = "data"
VOTES_FILE = os.path.join(DATA_DIR, "votes.json")
PROFILES_FILE = os.path.join(DATA_DIR, "users.json")
EVENTS_FILE = os.path.join(DATA_DIR, "events.json")
OVERRIDES_FILE = os.path.join(DATA_DIR, "overrides.json")
EVENT_VOTES_FILE = os.path.join(DATA_DIR, "event_votes.json")
NOTIFICATIONS_FILE = os.path.join(DATA_DIR, "notifications.json")
ADMINS_FILE = os.path.join(DATA_DIR, "admins.json")
REMINDERS_FILE = os.path.join(DATA_DIR, "reminders.json")

BATCH_SIZE = 500
MAX_DESCRIPTION_LENGTH = 500

PROFILE_FIELDS = frozenset(
    {
        "username",
        "favoriteTank",
        "role",
        "rosterStatus",
        "playstyleTags",
        "discordUsername",
        "photoURL",
        "lastNotificationReadTimestamp",
    }
)

Collection = Dict[str, Dict[str, Any]]
ChangeListener = Callable[[str], None]

_listeners: list[ChangeListener] = []


def subscribe(listener: ChangeListener) -> None:
    """Register a callable invoked with the collection name after each committed write."""
    if listener not in _listeners:
        _listeners.append(listener)


def unsubscribe(listener: ChangeListener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def _notify(collection: str) -> None:
    for listener in list(_listeners):
        try:
            listener(collection)
        except Exception:
            logger.exception("Change listener %r failed for collection %s.", listener, collection)


@contextmanager
def _locked_file(path: str, exclusive: bool) -> Iterator[None]:
    lock_path = f"{path}.lock"
    os.makedirs(os.path.dirname(lock_path) or ".", exist_ok=True)
    with open(lock_path, "a", encoding="utf-8") as lock_handle:
        if fcntl is not None:
            lock_type = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
            fcntl.flock(lock_handle.fileno(), lock_type)
        try:
            yield
        finally:
            if fcntl is not None:
                fcntl.flock(lock_handle.fileno(), fcntl.LOCK_UN)


def _read_unlocked(path: str) -> Collection:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as source:
            raw = json.load(source)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError, OSError):
        logger.warning("Could not decode JSON from %s. Returning empty data.", path)
        return {}

    if not isinstance(raw, dict):
        logger.warning("Data in %s is not a dictionary. Returning empty data.", path)
        return {}
    return {key: dict(value) for key, value in raw.items() if isinstance(value, dict)}


def _write_unlocked(path: str, data: Dict[str, Any]) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix=".teamsync_", suffix=".json", dir=directory or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as target:
            json.dump(data, target, indent=4)
            target.flush()
            os.fsync(target.fileno())
        os.replace(temp_path, path)
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                logger.debug("Failed to remove temp file %s", temp_path)


def write_json_file(path: str, data: Dict[str, Any]) -> None:
    with _locked_file(path, exclusive=True):
        _write_unlocked(path, data)


def _read_collection(path: str) -> Collection:
    with _locked_file(path, exclusive=False):
        return _read_unlocked(path)


@contextmanager
def _transaction(path: str, collection: str) -> Iterator[Collection]:
    with _locked_file(path, exclusive=True):
        data = _read_unlocked(path)
        original = copy.deepcopy(data)
        yield data
        changed = data != original
        if changed:
            _write_unlocked(path, data)
    if changed:
        _notify(collection)


def _chunks(items: List[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _delete_ids(path: str, collection: str, doc_ids: Iterable[str]) -> int:
    """Delete documents in sequential batches. Each batch is atomic, the whole run is not."""
    pending = list(dict.fromkeys(doc_ids))
    deleted = 0
    for chunk in _chunks(pending, BATCH_SIZE):
        with _transaction(path, collection) as data:
            for doc_id in chunk:
                if data.pop(doc_id, None) is not None:
                    deleted += 1
    if pending:
        logger.info("Deleted %s of %s requested %s document(s).", deleted, len(pending), collection)
    return deleted


def _ids_where(path: str, predicate: Callable[[Dict[str, Any]], bool]) -> List[str]:
    return [doc_id for doc_id, record in _read_collection(path).items() if predicate(record)]


# ---- Votes ----


def vote_id(user_id: str, timeslot: str) -> str:
    return hashlib.sha256(f"{user_id}\x1f{timeslot}".encode("utf-8")).hexdigest()[:24]


def load_votes() -> List[VoteRecord]:
    return [cast(VoteRecord, {**record, "id": doc_id}) for doc_id, record in _read_collection(VOTES_FILE).items()]


def toggle_vote(user_id: str, timeslot: str) -> bool:
    """Flip the user's vote for a slot and return whether it is now set."""
    parse_timeslot(timeslot)
    doc_id = vote_id(user_id, timeslot)
    with _transaction(VOTES_FILE, "votes") as data:
        if data.pop(doc_id, None) is not None:
            voted = False
        else:
            data[doc_id] = {"userId": user_id, "timeslot": timeslot}
            voted = True
    logger.info("User %s %s vote for %s.", user_id, "added" if voted else "removed", timeslot)
    return voted


def delete_votes(doc_ids: Iterable[str]) -> int:
    return _delete_ids(VOTES_FILE, "votes", doc_ids)


def votes_in_week(votes: Iterable[VoteRecord], week_start: date) -> List[VoteRecord]:
    week_end = week_start + timedelta(days=6)
    selected: List[VoteRecord] = []
    for vote in votes:
        try:
            day, _ = parse_timeslot(vote["timeslot"])
        except (KeyError, ValueError):
            continue
        if week_start <= day <= week_end:
            selected.append(vote)
    return selected


def clear_week_votes(week_start: date) -> int:
    return delete_votes(vote["id"] for vote in votes_in_week(load_votes(), week_start))


def clear_user_week_votes(user_id: str, week_start: date) -> int:
    own = [vote for vote in load_votes() if vote.get("userId") == user_id]
    return delete_votes(vote["id"] for vote in votes_in_week(own, week_start))


def copy_previous_week_votes(user_id: str, week_start: date) -> int:
    """Repeat last week's votes of one user in the week starting at ``week_start``."""
    previous_start = week_start - timedelta(days=7)
    copied = 0
    with _transaction(VOTES_FILE, "votes") as data:
        own: List[VoteRecord] = [
            cast(VoteRecord, {**record, "id": doc_id})
            for doc_id, record in data.items()
            if record.get("userId") == user_id
        ]
        for vote in votes_in_week(own, previous_start):
            day, label = parse_timeslot(vote["timeslot"])
            shifted = timeslot_key(day + timedelta(days=7), label)
            doc_id = vote_id(user_id, shifted)
            if doc_id in data:
                continue
            data[doc_id] = {"userId": user_id, "timeslot": shifted}
            copied += 1
    logger.info("Copied %s vote(s) for user %s into week of %s.", copied, user_id, week_start.isoformat())
    return copied


# ---- Event RSVPs ----


def event_vote_id(event_id: str, user_id: str) -> str:
    return f"{event_id}_{user_id}"


def load_event_votes() -> List[EventVoteRecord]:
    return [
        cast(EventVoteRecord, {**record, "id": doc_id})
        for doc_id, record in _read_collection(EVENT_VOTES_FILE).items()
    ]


def toggle_event_vote(event_id: str, user_id: str) -> bool:
    doc_id = event_vote_id(event_id, user_id)
    with _transaction(EVENT_VOTES_FILE, "event_votes") as data:
        if data.pop(doc_id, None) is not None:
            attending = False
        else:
            data[doc_id] = {"eventId": event_id, "userId": user_id}
            attending = True
    logger.info("User %s %s RSVP for event %s.", user_id, "added" if attending else "removed", event_id)
    return attending


# ---- Profiles ----


def load_profiles() -> ProfilesDB:
    return {
        doc_id: cast(PlayerProfile, {**record, "id": doc_id})
        for doc_id, record in _read_collection(PROFILES_FILE).items()
    }


def get_profile(user_id: str) -> PlayerProfile | None:
    return load_profiles().get(user_id)


def upsert_profile(user_id: str, **fields: Any) -> PlayerProfile:
    """Merge fields into a profile; a value of ``None`` removes that field."""
    unknown = set(fields) - PROFILE_FIELDS
    if unknown:
        raise ValueError(f"Unknown profile field(s): {', '.join(sorted(unknown))}.")
    if "username" in fields and not (fields["username"] or "").strip():
        raise ValueError("Username cannot be empty.")

    with _transaction(PROFILES_FILE, "users") as data:
        record = data.get(user_id)
        if record is None:
            if not fields.get("username"):
                raise ValueError("A new profile needs a username.")
            record = {}
        username = fields.get("username")
        if username:
            # Usernames key the aggregated availability lists, so they must be unique.
            wanted = username.strip().casefold()
            for other_id, other in data.items():
                if other_id != user_id and str(other.get("username", "")).strip().casefold() == wanted:
                    raise ValueError(f"The username {username.strip()!r} is already taken.")
        for key, value in fields.items():
            if value is None:
                record.pop(key, None)
            else:
                record[key] = value.strip() if isinstance(value, str) else value
        data[user_id] = record
    return cast(PlayerProfile, {**record, "id": user_id})


def delete_profile(user_id: str) -> bool:
    """Remove a player and every vote, RSVP and override that belongs to them."""
    with _transaction(PROFILES_FILE, "users") as data:
        existed = data.pop(user_id, None) is not None

    votes = delete_votes(_ids_where(VOTES_FILE, lambda record: record.get("userId") == user_id))
    rsvps = _delete_ids(
        EVENT_VOTES_FILE,
        "event_votes",
        _ids_where(EVENT_VOTES_FILE, lambda record: record.get("userId") == user_id),
    )
    overrides = _delete_ids(
        OVERRIDES_FILE,
        "overrides",
        _ids_where(OVERRIDES_FILE, lambda record: record.get("userId") == user_id),
    )
    logger.info(
        "Deleted profile %s (existed=%s) with %s vote(s), %s RSVP(s), %s override(s).",
        user_id,
        existed,
        votes,
        rsvps,
        overrides,
    )
    return existed


# ---- Events ----


def _normalize_event(doc_id: str, record: Dict[str, Any]) -> ScheduleEvent | None:
    try:
        entry: dict[str, Any] = dict(record)
        entry["id"] = doc_id
        entry["type"] = EventType(entry["type"])
        status = entry.get("status")
        entry["status"] = EventStatus(status) if status is not None else EventStatus.ACTIVE
        parse_date_key(entry["date"])
        parse_time_label(entry["time"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Skipping malformed event record %s.", doc_id)
        return None
    return cast(ScheduleEvent, entry)


def _serialize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    entry = {key: value for key, value in event.items() if key != "id"}
    for key in ("type", "status"):
        value = entry.get(key)
        if isinstance(value, (EventType, EventStatus)):
            entry[key] = value.value
    return entry


def load_events() -> Dict[str, ScheduleEvent]:
    events: Dict[str, ScheduleEvent] = {}
    for doc_id, record in _read_collection(EVENTS_FILE).items():
        event = _normalize_event(doc_id, record)
        if event is not None:
            events[doc_id] = event
    return events


def create_event(
    event_type: EventType | str,
    day: date | str,
    time_label: str,
    creator_id: str,
    description: str | None = None,
    discord_role_id: str | None = None,
) -> ScheduleEvent:
    """Validate and persist a new Active event."""
    kind = EventType(event_type)
    if isinstance(day, str):
        day = parse_date_key(day)
    parse_time_label(time_label)
    description = (description or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less.")
    role_id = (discord_role_id or "").strip()
    if role_id and not role_id.isdigit():
        raise ValueError("The Discord role id must be numeric.")

    event: dict[str, Any] = {
        "id": uuid.uuid4().hex,
        "type": kind,
        "date": day.isoformat(),
        "time": time_label.strip(),
        "creatorId": creator_id,
        "status": EventStatus.ACTIVE,
    }
    if description:
        event["description"] = description
    if role_id:
        event["discordRoleId"] = role_id

    with _transaction(EVENTS_FILE, "events") as data:
        data[event["id"]] = _serialize_event(event)
    logger.info("Created %s event %s on %s at %s.", kind.value, event["id"], event["date"], event["time"])
    return cast(ScheduleEvent, event)


def _update_event(event_id: str, **fields: Any) -> ScheduleEvent | None:
    with _transaction(EVENTS_FILE, "events") as data:
        record = data.get(event_id)
        if record is None:
            return None
        record.update(fields)
        data[event_id] = _serialize_event(record)
    return _normalize_event(event_id, data[event_id])


def set_event_status(event_id: str, status: EventStatus) -> ScheduleEvent | None:
    return _update_event(event_id, status=EventStatus(status))


def set_event_image(event_id: str, image_url: str) -> ScheduleEvent | None:
    return _update_event(event_id, imageURL=image_url)


def delete_events(event_ids: Iterable[str]) -> int:
    """Delete events along with their overrides, RSVPs and reminder markers."""
    targets = set(event_ids)
    if not targets:
        return 0
    deleted = _delete_ids(EVENTS_FILE, "events", targets)
    _delete_ids(
        OVERRIDES_FILE,
        "overrides",
        _ids_where(OVERRIDES_FILE, lambda record: record.get("eventId") in targets),
    )
    _delete_ids(
        EVENT_VOTES_FILE,
        "event_votes",
        _ids_where(EVENT_VOTES_FILE, lambda record: record.get("eventId") in targets),
    )
    _delete_ids(REMINDERS_FILE, "reminders", targets)
    return deleted


def delete_past_events(today: date) -> int:
    past = [event_id for event_id, event in load_events().items() if parse_date_key(event["date"]) < today]
    return delete_events(past)


# ---- Overrides ----


def override_id(event_id: str, user_id: str) -> str:
    return f"{event_id}_{user_id}"


def load_overrides() -> List[AvailabilityOverride]:
    return [
        cast(AvailabilityOverride, {**record, "id": doc_id})
        for doc_id, record in _read_collection(OVERRIDES_FILE).items()
    ]


def set_override(event_id: str, user_id: str) -> bool:
    doc_id = override_id(event_id, user_id)
    with _transaction(OVERRIDES_FILE, "overrides") as data:
        if doc_id in data:
            return False
        data[doc_id] = {"eventId": event_id, "userId": user_id, "status": POSSIBLY_AVAILABLE}
    logger.info("Marked user %s as possibly available for event %s.", user_id, event_id)
    return True


def remove_override(event_id: str, user_id: str) -> bool:
    with _transaction(OVERRIDES_FILE, "overrides") as data:
        removed = data.pop(override_id(event_id, user_id), None) is not None
    if removed:
        logger.info("Removed override for user %s on event %s.", user_id, event_id)
    return removed


# ---- Notifications ----


def add_notification(message: str, icon: str, created_by: str, now: datetime | None = None) -> AppNotification:
    stamp = (now or datetime.now(tz=timezone.utc)).isoformat()
    notification: dict[str, Any] = {
        "id": uuid.uuid4().hex,
        "message": message,
        "icon": icon,
        "createdBy": created_by,
        "timestamp": stamp,
    }
    with _transaction(NOTIFICATIONS_FILE, "notifications") as data:
        data[notification["id"]] = {key: value for key, value in notification.items() if key != "id"}
    return cast(AppNotification, notification)


def load_notifications() -> List[AppNotification]:
    """Return notifications newest first."""
    entries = [
        cast(AppNotification, {**record, "id": doc_id})
        for doc_id, record in _read_collection(NOTIFICATIONS_FILE).items()
    ]
    return sorted(entries, key=lambda entry: entry.get("timestamp", ""), reverse=True)


def mark_notifications_read(user_id: str, timestamp: str) -> None:
    if get_profile(user_id) is None:
        return
    upsert_profile(user_id, lastNotificationReadTimestamp=timestamp)


# ---- Admin claims ----


def grant_admin(user_id: str, granted_by: str) -> None:
    with _transaction(ADMINS_FILE, "admins") as data:
        data[user_id] = {
            "admin": True,
            "grantedBy": granted_by,
            "grantedAt": datetime.now(tz=timezone.utc).isoformat(),
        }


def has_admin_claim(user_id: str) -> bool:
    record = _read_collection(ADMINS_FILE).get(user_id)
    return bool(record and record.get("admin") is True)


# ---- Reminder markers ----


def mark_reminded(event_id: str, at: datetime) -> bool:
    """Record that a reminder went out; returns False if one already had."""
    with _transaction(REMINDERS_FILE, "reminders") as data:
        if event_id in data:
            return False
        data[event_id] = {"remindedAt": at.isoformat()}
    return True


def reminded_at(event_id: str) -> str | None:
    record = _read_collection(REMINDERS_FILE).get(event_id)
    if record is None:
        return None
    value = record.get("remindedAt")
    return value if isinstance(value, str) else None
