"""Builders for the Discord messages and embeds TeamSync posts."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, List, Mapping, Sequence

import discord

from .aggregation import heatmap_level, players_needed
from .config import get_timezone, get_website_url
from .time_utils import discord_timestamp, vote_key
from .types import (
    MINIMUM_PLAYERS,
    TIME_SLOTS,
    AllVotes,
    AvailabilityOverride,
    EventStatus,
    EventType,
    PlayerProfile,
    RosterStatus,
    ScheduleEvent,
)

COLOR_BLUE = 3892342
COLOR_GOLD = 16766720
COLOR_RED = 15680580
COLOR_GREEN = 2278750
COLOR_SWEEP_TOURNAMENT = 0xFFA500
COLOR_SWEEP_TRAINING = 0x0099FF
COLOR_TEST = 0x00FF00

FOOTER_TEXT = "TeamSync • Coordination made easy"
NOTIFICATIONS_FOOTER = "ScrimSync Notifications"
FIELD_VALUE_LIMIT = 1024
EMPTY_LIST = "- None"
UNKNOWN_PLAYER = "Unknown"
HEATMAP_SHADES = " ░░▒▒▓█"

_NUMERIC_HANDLE = re.compile(r"@?(\d+)")
_MENTION_TOKEN = re.compile(r"<@!?\d+>")


def format_mention(value: str | None) -> str:
    """Turn a stored handle into a Discord mention when it is a numeric id."""
    if value is None or not value.strip():
        return UNKNOWN_PLAYER
    handle = value.strip()
    if _MENTION_TOKEN.fullmatch(handle):
        return handle
    match = _NUMERIC_HANDLE.fullmatch(handle)
    if match:
        return f"<@{match.group(1)}>"
    return handle


def resolve_player_tag(profile: PlayerProfile | None) -> str:
    if profile is None:
        return UNKNOWN_PLAYER
    return format_mention(profile.get("discordUsername") or profile.get("username"))


def format_bytes(size: int, decimals: int = 2) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.{max(decimals, 0)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {units[index]}"


def format_day(day: date) -> str:
    return f"{day:%A}, {day.day} {day:%b}"


def _event_kind(event: ScheduleEvent) -> str:
    return EventType(event["type"]).value


def _is_cancelled(event: ScheduleEvent) -> bool:
    return event.get("status") == EventStatus.CANCELLED


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else EMPTY_LIST


def fit_field(value: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - 3] + "..."


def _tags_for_names(names: Iterable[str], profiles: Mapping[str, PlayerProfile]) -> List[str]:
    by_username = {profile.get("username"): profile for profile in profiles.values()}
    tags = []
    for name in names:
        profile = by_username.get(name)
        tags.append(resolve_player_tag(profile) if profile else format_mention(name))
    return tags


def _override_user_ids(event: ScheduleEvent, overrides: Iterable[AvailabilityOverride]) -> List[str]:
    return [override["userId"] for override in overrides if override.get("eventId") == event["id"]]


def role_mention(event: ScheduleEvent) -> str:
    role_id = event.get("discordRoleId")
    return f"<@&{role_id}>" if role_id else ""


def build_cancelled_message(event: ScheduleEvent, tz: tzinfo | None = None) -> str:
    tz = tz or get_timezone()
    when = discord_timestamp(event["date"], event["time"], tz, "F")
    return f"🚫 **EVENT CANCELLED** 🚫\n> The **{_event_kind(event)}** at {when} has been cancelled."


def build_reminder_message(
    event: ScheduleEvent,
    available: Sequence[str],
    overrides: Iterable[AvailabilityOverride],
    profiles: Mapping[str, PlayerProfile],
    include_nudges: bool = False,
    *,
    tz: tzinfo | None = None,
    website_url: str | None = None,
) -> str:
    """Render the reminder body for one event.

    Sections appear in a fixed order: Available, Possibly Available (only with
    overrides for the event) and Awaiting Response (only with nudges, listing
    Main Roster players who have neither voted nor been overridden).
    """
    tz = tz or get_timezone()
    if _is_cancelled(event):
        return build_cancelled_message(event, tz)

    full = discord_timestamp(event["date"], event["time"], tz, "F")
    relative = discord_timestamp(event["date"], event["time"], tz, "R")
    lines = [f"**When:** {full} ({relative})"]

    needed = players_needed(len(available))
    if needed:
        lines.append(f"🔥 **Players Needed: {needed}**")

    lines += ["", f"✅ **Available ({len(available)}):**", _bullets(_tags_for_names(available, profiles))]

    override_ids = _override_user_ids(event, overrides)
    if override_ids:
        possible_tags = [resolve_player_tag(profiles.get(user_id)) for user_id in override_ids]
        lines += ["", f"🤔 **Possibly Available ({len(possible_tags)}):**", _bullets(possible_tags)]

    if include_nudges:
        covered = set(override_ids)
        missing = [
            profile
            for profile in profiles.values()
            if profile.get("rosterStatus") == RosterStatus.MAIN.value
            and profile.get("username") not in available
            and profile["id"] not in covered
        ]
        if missing:
            lines += [
                "",
                f"⏰ **Awaiting Response (Main) ({len(missing)}):**",
                _bullets([resolve_player_tag(profile) for profile in missing]),
            ]

    lines += ["", f"👉 Update your availability at {website_url or get_website_url()}"]
    return "\n".join(lines)


def build_reminder_embed(event: ScheduleEvent, description: str) -> discord.Embed:
    cancelled = _is_cancelled(event)
    if cancelled:
        color = COLOR_RED
    elif event["type"] == EventType.TOURNAMENT:
        color = COLOR_GOLD
    else:
        color = COLOR_BLUE
    embed = discord.Embed(
        title=f"{'🚫' if cancelled else '🔔'} {_event_kind(event).upper()} REMINDER",
        description=description,
        color=color,
        timestamp=datetime.now(tz=timezone.utc),
    )
    if event.get("imageURL"):
        embed.set_image(url=event["imageURL"])
    embed.set_footer(text=FOOTER_TEXT)
    return embed


def build_roster_ready_message(
    event: ScheduleEvent,
    available: Sequence[str],
    possible_ids: Sequence[str],
    profiles: Mapping[str, PlayerProfile],
    *,
    tz: tzinfo | None = None,
) -> str:
    tz = tz or get_timezone()
    full = discord_timestamp(event["date"], event["time"], tz, "F")
    relative = discord_timestamp(event["date"], event["time"], tz, "R")
    total = len(available) + len(possible_ids)
    lines = [
        f"The **{_event_kind(event)}** at {full} ({relative}) is officially ready with **{total} players**!",
        "",
        "**Squad:**",
        _bullets(_tags_for_names(available, profiles)),
    ]
    if possible_ids:
        lines += ["", "**Possibly Available:**", _bullets([resolve_player_tag(profiles.get(uid)) for uid in possible_ids])]
    needed = players_needed(len(available))
    if needed:
        lines += ["", f"⚠️ **Players Needed: {needed}** (counting on possible attendees)"]
    return "\n".join(lines)


def build_roster_ready_embed(event: ScheduleEvent, description: str) -> discord.Embed:
    embed = discord.Embed(
        title="✅ ROSTER READY!",
        description=description,
        color=COLOR_GREEN,
        timestamp=datetime.now(tz=timezone.utc),
    )
    if event.get("imageURL"):
        embed.set_image(url=event["imageURL"])
    embed.set_footer(text=FOOTER_TEXT)
    return embed


def build_daily_summary_message(
    events: Sequence[ScheduleEvent],
    available_counts: Mapping[str, int],
    *,
    tz: tzinfo | None = None,
) -> str:
    if not events:
        return "- No events scheduled for today."
    tz = tz or get_timezone()
    lines = []
    for event in events:
        count = available_counts.get(event["id"], 0)
        if _is_cancelled(event):
            icon = "🚫"
        elif count >= MINIMUM_PLAYERS:
            icon = "✅"
        else:
            icon = "⏳"
        when = discord_timestamp(event["date"], event["time"], tz, "t")
        lines.append(f"- **{when}**: {_event_kind(event)} ({count}/{MINIMUM_PLAYERS} Players) {icon}")
    return "\n".join(lines)


def build_daily_summary_embed(day: date, description: str, website_url: str | None = None) -> discord.Embed:
    site = (website_url or get_website_url()).removeprefix("https://").rstrip("/")
    embed = discord.Embed(
        title=f"📅 TEAM SCHEDULE: {format_day(day)}",
        description=description,
        color=COLOR_BLUE,
        timestamp=datetime.now(tz=timezone.utc),
    )
    embed.set_footer(text=f"Update your availability at {site}")
    return embed


def build_sweep_embed(
    event: ScheduleEvent,
    available: Sequence[str],
    unavailable: Sequence[str],
    lead_minutes: int,
    *,
    tz: tzinfo | None = None,
) -> discord.Embed:
    tz = tz or get_timezone()
    when = discord_timestamp(event["date"], event["time"], tz, "F")
    embed = discord.Embed(
        title=f"🔔 Event Reminder: {_event_kind(event)} starts in ~{lead_minutes} minutes!",
        description=f"**{event['date']} at {event['time']}** ({when})",
        color=COLOR_SWEEP_TOURNAMENT if event["type"] == EventType.TOURNAMENT else COLOR_SWEEP_TRAINING,
        timestamp=datetime.now(tz=timezone.utc),
    )
    embed.add_field(
        name=f"✅ Available Players ({len(available)})",
        value=fit_field("\n".join(available) if available else "None"),
        inline=True,
    )
    embed.add_field(
        name=f"❌ Unavailable Players ({len(unavailable)})",
        value=fit_field("\n".join(unavailable) if unavailable else "None"),
        inline=True,
    )
    embed.add_field(name="🔥 Players Needed", value=str(players_needed(len(available))), inline=False)
    embed.set_footer(text=NOTIFICATIONS_FOOTER)
    return embed


def build_test_embed() -> discord.Embed:
    embed = discord.Embed(
        title="Webhook Test Successful!",
        description="If you can see this message, your ScrimSync integration is working correctly.",
        color=COLOR_TEST,
    )
    embed.set_footer(text=NOTIFICATIONS_FOOTER)
    return embed


def build_roster_copy_text(
    day: date,
    time_label: str,
    available_ids: Sequence[str],
    profiles: Mapping[str, PlayerProfile],
    website_url: str | None = None,
) -> str:
    """Plain-text roster for one slot, suitable for pasting anywhere."""
    available = [profiles[user_id] for user_id in available_ids if user_id in profiles]
    unavailable = [profile for user_id, profile in profiles.items() if user_id not in available_ids]

    def player_list(players: Sequence[PlayerProfile]) -> str:
        if not players:
            return EMPTY_LIST
        rows = []
        for profile in players:
            suffix = ""
            if profile.get("rosterStatus") == RosterStatus.MAIN.value:
                suffix = " (Main)"
            elif profile.get("rosterStatus") == RosterStatus.STANDBY.value:
                suffix = " (Standby)"
            rows.append(f"- {profile.get('discordUsername') or profile.get('username')}{suffix}")
        return "\n".join(rows)

    return "\n".join(
        [
            f"Roster for {format_day(day)} at {time_label}:",
            "",
            f"✅ Available Players ({len(available)}):",
            player_list(available),
            "",
            f"🔥 Players Needed: {players_needed(len(available))}",
            "",
            f"❌ Unavailable Players ({len(unavailable)}):",
            player_list(unavailable),
            "",
            "---",
            "Generated by TeamSync",
            website_url or get_website_url(),
        ]
    )


def build_heatmap_text(
    days: Sequence[date],
    all_votes: AllVotes,
    events: Iterable[ScheduleEvent],
    total_players: int,
) -> str:
    """Weekly grid of vote counts per slot; ``*`` marks a scheduled event."""
    scheduled = {(event["date"], event["time"]) for event in events if not _is_cancelled(event)}
    header = "Time    " + "".join(f"{day:%a} {day.day:<3}" for day in days)
    rows = [header]
    for label in TIME_SLOTS:
        cells = []
        for day in days:
            count = len(all_votes.get(vote_key(day.isoformat(), label), []))
            shade = HEATMAP_SHADES[heatmap_level(count, total_players)]
            marker = "*" if (day.isoformat(), label) in scheduled else " "
            cells.append(f"{count:>2}{shade}{marker}".ljust(7))
        rows.append(f"{label:<8}" + "".join(cells))
    return "```\n" + "\n".join(rows) + "\n```"
