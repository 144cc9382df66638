"""Shared utilities for command handlers."""

from __future__ import annotations

from collections import deque
from datetime import date, datetime
from typing import TYPE_CHECKING, Deque, List, cast

import discord
from discord import app_commands

from ..aggregation import upcoming_events
from ..config import get_guild_command_rate_limit, get_timezone, get_user_command_rate_limit
from ..discord_utils import safe_send
from ..types import EventStatus, ScheduleEvent

if TYPE_CHECKING:
    from ..aggregation import AvailabilitySnapshot

_user_rate_limits: dict[int, Deque[datetime]] = {}
_guild_rate_limits: dict[int, Deque[datetime]] = {}

MAX_AUTOCOMPLETE_CHOICES = 25


def _check_window(bucket: Deque[datetime], now: datetime, max_commands: int, window_seconds: int) -> tuple[bool, int]:
    cutoff = now.timestamp() - window_seconds
    while bucket and bucket[0].timestamp() < cutoff:
        bucket.popleft()
    if len(bucket) >= max_commands:
        wait_seconds = max(0, int(bucket[0].timestamp() + window_seconds - now.timestamp()))
        return False, wait_seconds
    bucket.append(now)
    return True, 0


def check_user_rate_limit(user_id: int, now: datetime) -> tuple[bool, int]:
    max_commands, window_seconds = get_user_command_rate_limit()
    return _check_window(_user_rate_limits.setdefault(user_id, deque()), now, max_commands, window_seconds)


def check_guild_rate_limit(guild_id: int, now: datetime) -> tuple[bool, int]:
    max_commands, window_seconds = get_guild_command_rate_limit()
    return _check_window(_guild_rate_limits.setdefault(guild_id, deque()), now, max_commands, window_seconds)


async def enforce_rate_limits(interaction: discord.Interaction) -> bool:
    """Reply and return False when the caller or their server is over its rate limit."""
    now = datetime.now(tz=get_timezone())
    allowed, wait_seconds = check_user_rate_limit(interaction.user.id, now)
    if not allowed:
        await safe_send(
            interaction,
            f"Please wait {wait_seconds} more second(s) before running this command again.",
            ephemeral=True,
        )
        return False
    if interaction.guild is not None:
        guild_allowed, guild_wait = check_guild_rate_limit(interaction.guild.id, now)
        if not guild_allowed:
            await safe_send(
                interaction,
                f"This server is busy. Please wait {guild_wait} more second(s) before trying again.",
                ephemeral=True,
            )
            return False
    return True


def today() -> date:
    return datetime.now(tz=get_timezone()).date()


def snapshot_of(interaction: discord.Interaction) -> "AvailabilitySnapshot":
    return cast("AvailabilitySnapshot", getattr(interaction.client, "snapshot"))


def event_label(event: ScheduleEvent) -> str:
    cancelled = " (Cancelled)" if event.get("status") == EventStatus.CANCELLED else ""
    return f"{event['type'].value} - {event['date']} @ {event['time']}{cancelled}"


async def upcoming_event_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    events = upcoming_events(snapshot_of(interaction).events.values(), today())
    needle = current.lower()
    choices = []
    for event in events:
        label = event_label(event)
        if needle and needle not in label.lower():
            continue
        choices.append(app_commands.Choice(name=label[:100], value=event["id"]))
        if len(choices) >= MAX_AUTOCOMPLETE_CHOICES:
            break
    return choices


async def resolve_event(interaction: discord.Interaction, event_id: str) -> ScheduleEvent | None:
    event = snapshot_of(interaction).events.get(event_id)
    if event is None:
        await safe_send(interaction, "I couldn't find that event. Pick one from the suggestions.", ephemeral=True)
    return event


def format_cell(value: str, width: int) -> str:
    if len(value) <= width:
        return value.ljust(width)
    if width <= 3:
        return value[:width]
    return (value[: width - 3] + "...").ljust(width)
