"""UI helpers for event embeds."""

from __future__ import annotations

from datetime import tzinfo
from typing import Mapping

import discord
from discord.utils import escape_markdown, escape_mentions

from .aggregation import is_roster_ready
from .messages import COLOR_BLUE, COLOR_GOLD, COLOR_RED, fit_field, resolve_player_tag
from .time_utils import discord_timestamp
from .types import MINIMUM_PLAYERS, EventAvailability, EventStatus, EventType, PlayerProfile, ScheduleEvent


def create_event_embed(
    event: ScheduleEvent,
    availability: EventAvailability,
    profiles: Mapping[str, PlayerProfile],
    tz: tzinfo,
) -> discord.Embed:
    """Creates the board embed for one event."""
    cancelled = event.get("status") == EventStatus.CANCELLED
    if cancelled:
        color = COLOR_RED
    elif event["type"] == EventType.TOURNAMENT:
        color = COLOR_GOLD
    else:
        color = COLOR_BLUE

    icon = "🏆" if event["type"] == EventType.TOURNAMENT else "⚔️"
    title = f"{icon} {EventType(event['type']).value}"
    if cancelled:
        title += " (Cancelled)"
    embed = discord.Embed(title=title, color=color)
    when = discord_timestamp(event["date"], event["time"], tz, "F")
    relative = discord_timestamp(event["date"], event["time"], tz, "R")
    embed.add_field(name="⏰ When", value=f"{when} ({relative})", inline=False)

    description = event.get("description")
    if description:
        embed.add_field(name="📜 Infos", value=escape_mentions(escape_markdown(description)), inline=False)

    by_username = {profile.get("username"): profile for profile in profiles.values()}
    available = availability.available
    player_lines = []
    for name in available:
        profile = by_username.get(name)
        if profile is not None:
            player_lines.append(f"• {resolve_player_tag(profile)}")
        else:
            player_lines.append(f"• {escape_mentions(escape_markdown(name))}")
    ready = "✅" if is_roster_ready(len(available)) else "⏳"
    embed.add_field(
        name=f"Available ({len(available)}/{MINIMUM_PLAYERS}) {ready}",
        value=fit_field("\n".join(player_lines)) if player_lines else "No players yet.",
        inline=False,
    )

    if availability.possible:
        possible_lines = [f"• {resolve_player_tag(profiles.get(user_id))}" for user_id in availability.possible]
        embed.add_field(name=f"Possibly Available ({len(possible_lines)})", value=fit_field("\n".join(possible_lines)), inline=False)

    if event.get("imageURL"):
        embed.set_image(url=event["imageURL"])
    embed.set_footer(text=f"Event ID: {event['id']}")
    return embed
