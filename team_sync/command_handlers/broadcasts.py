"""Webhook broadcasts: /reminder, /roster-ready, /daily-summary."""

from __future__ import annotations

import logging

import discord
from discord import app_commands

from ..aggregation import is_roster_ready
from ..config import get_discord_webhook_url, get_timezone
from ..discord_utils import require_admin, safe_send
from ..messages import (
    build_daily_summary_embed,
    build_daily_summary_message,
    build_reminder_embed,
    build_reminder_message,
    build_roster_ready_embed,
    build_roster_ready_message,
    role_mention,
)
from ..notifier import post_to_webhook
from ..time_utils import event_start
from ..types import MINIMUM_PLAYERS, EventStatus
from .utils import enforce_rate_limits, resolve_event, snapshot_of, today, upcoming_event_autocomplete

logger = logging.getLogger(__name__)


async def _webhook_url_or_warn(interaction: discord.Interaction) -> str | None:
    url = get_discord_webhook_url()
    if url is None:
        await safe_send(interaction, "No Discord webhook is configured. Use `/set-webhook` first.", ephemeral=True)
    return url


def register_broadcasts(tree: app_commands.CommandTree) -> None:
    @tree.command(name="reminder", description="Post an event reminder to the team channel.")
    @app_commands.describe(event="The event to remind about", nudges="Also list Main Roster players who haven't answered")
    @app_commands.autocomplete(event=upcoming_event_autocomplete)
    async def reminder(interaction: discord.Interaction, event: str, nudges: bool = False) -> None:
        user = interaction.user
        logger.info("Command /reminder invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction) or not await enforce_rate_limits(interaction):
            return
        record = await resolve_event(interaction, event)
        if record is None:
            return
        url = await _webhook_url_or_warn(interaction)
        if url is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        snapshot = snapshot_of(interaction)
        availability = snapshot.availability(record)
        description = build_reminder_message(
            record,
            availability.available,
            snapshot.overrides,
            snapshot.profiles,
            include_nudges=nudges,
            tz=get_timezone(),
        )
        result = await post_to_webhook(
            url,
            content=role_mention(record),
            embeds=[build_reminder_embed(record, description)],
        )
        await safe_send(interaction, ("📣 Reminder sent!" if result.success else f"❌ {result.message}"), ephemeral=True)

    @tree.command(name="roster-ready", description="Announce that an event has enough players.")
    @app_commands.describe(event="The event that is ready")
    @app_commands.autocomplete(event=upcoming_event_autocomplete)
    async def roster_ready(interaction: discord.Interaction, event: str) -> None:
        user = interaction.user
        logger.info("Command /roster-ready invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction) or not await enforce_rate_limits(interaction):
            return
        record = await resolve_event(interaction, event)
        if record is None:
            return
        if record.get("status") == EventStatus.CANCELLED:
            await safe_send(interaction, "That event is cancelled.", ephemeral=True)
            return

        snapshot = snapshot_of(interaction)
        availability = snapshot.availability(record)
        headcount = len(availability.available) + len(availability.possible)
        if not is_roster_ready(headcount):
            await safe_send(
                interaction,
                f"Only {headcount}/{MINIMUM_PLAYERS} players so far, the roster isn't ready yet.",
                ephemeral=True,
            )
            return
        url = await _webhook_url_or_warn(interaction)
        if url is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        description = build_roster_ready_message(
            record,
            availability.available,
            availability.possible,
            snapshot.profiles,
            tz=get_timezone(),
        )
        result = await post_to_webhook(
            url,
            content=role_mention(record),
            embeds=[build_roster_ready_embed(record, description)],
        )
        await safe_send(
            interaction,
            ("✅ Roster Ready alert sent!" if result.success else f"❌ {result.message}"),
            ephemeral=True,
        )

    @tree.command(name="daily-summary", description="Post today's schedule to the team channel.")
    async def daily_summary(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /daily-summary invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction) or not await enforce_rate_limits(interaction):
            return
        url = await _webhook_url_or_warn(interaction)
        if url is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        tz = get_timezone()
        day = today()
        snapshot = snapshot_of(interaction)
        todays = sorted(
            (event for event in snapshot.events.values() if event["date"] == day.isoformat()),
            key=lambda event: event_start(event["date"], event["time"], tz),
        )
        counts = {event["id"]: len(snapshot.availability(event).available) for event in todays}
        description = build_daily_summary_message(todays, counts, tz=tz)
        result = await post_to_webhook(url, embeds=[build_daily_summary_embed(day, description)])
        await safe_send(
            interaction,
            ("📅 Daily summary sent!" if result.success else f"❌ {result.message}"),
            ephemeral=True,
        )
