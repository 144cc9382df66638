"""Event commands: /schedule-event, /events, /toggle-event, /event-banner, /override."""

from __future__ import annotations

import logging

import discord
from discord import app_commands

from ..aggregation import upcoming_events
from ..config import get_banner_max_bytes, get_timezone
from ..discord_utils import require_admin, safe_send
from ..messages import format_bytes, format_day
from ..modals import ScheduleEventModal
from ..storage import add_notification, remove_override, set_event_image, set_event_status, set_override
from ..time_utils import parse_date_key
from ..types import EventStatus
from ..ui import create_event_embed
from ..views import EventRsvpView
from .utils import enforce_rate_limits, resolve_event, snapshot_of, today, upcoming_event_autocomplete

logger = logging.getLogger(__name__)

MAX_BOARD_EVENTS = 10


def register_events(tree: app_commands.CommandTree) -> None:
    @tree.command(name="schedule-event", description="Opens a form to schedule a training or tournament.")
    async def schedule_event(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /schedule-event invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        await interaction.response.send_modal(ScheduleEventModal())

    @tree.command(name="events", description="Shows upcoming events with RSVP buttons.")
    async def events(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /events invoked by %s (%s).", user, user.id)
        if not await enforce_rate_limits(interaction):
            return

        snapshot = snapshot_of(interaction)
        upcoming = upcoming_events(snapshot.events.values(), today())
        if not upcoming:
            await safe_send(interaction, "There are no upcoming events.", ephemeral=True)
            return

        await safe_send(interaction, f"Found {len(upcoming)} upcoming event(s).", ephemeral=True)
        tz = get_timezone()
        for event in upcoming[:MAX_BOARD_EVENTS]:
            embed = create_event_embed(event, snapshot.availability(event), snapshot.profiles, tz)
            await safe_send(interaction, "", embed=embed, view=EventRsvpView(event["id"]))
        logger.info("Displayed %s upcoming event(s) to %s (%s).", min(len(upcoming), MAX_BOARD_EVENTS), user, user.id)

    @tree.command(name="toggle-event", description="Cancel an event, or reactivate a cancelled one.")
    @app_commands.describe(event="The event to cancel or reactivate")
    @app_commands.autocomplete(event=upcoming_event_autocomplete)
    async def toggle_event(interaction: discord.Interaction, event: str) -> None:
        user = interaction.user
        logger.info("Command /toggle-event invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        record = await resolve_event(interaction, event)
        if record is None:
            return

        new_status = EventStatus.ACTIVE if record.get("status") == EventStatus.CANCELLED else EventStatus.CANCELLED
        set_event_status(record["id"], new_status)
        day_label = format_day(parse_date_key(record["date"]))
        add_notification(
            f"Event {new_status.value.lower()}: {record['type'].value} on {day_label}",
            "CalendarX2" if new_status == EventStatus.CANCELLED else "CalendarPlus",
            getattr(user, "display_name", None) or user.name,
        )
        await safe_send(
            interaction,
            f"{record['type'].value} on {day_label} at {record['time']} is now {new_status.value}.",
            ephemeral=True,
        )

    @tree.command(name="event-banner", description="Attach a banner image to an event.")
    @app_commands.describe(event="The event to decorate", image="The banner image")
    @app_commands.autocomplete(event=upcoming_event_autocomplete)
    async def event_banner(interaction: discord.Interaction, event: str, image: discord.Attachment) -> None:
        user = interaction.user
        logger.info("Command /event-banner invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        record = await resolve_event(interaction, event)
        if record is None:
            return
        if not (image.content_type or "").startswith("image/"):
            await safe_send(interaction, "Please attach an image file.", ephemeral=True)
            return
        limit = get_banner_max_bytes()
        if image.size > limit:
            await safe_send(
                interaction,
                f"That image is {format_bytes(image.size)}; the limit is {format_bytes(limit)}.",
                ephemeral=True,
            )
            return

        set_event_image(record["id"], image.url)
        logger.info("Banner for event %s set by %s (%s).", record["id"], user, user.id)
        await safe_send(interaction, "🖼️ Banner updated.", ephemeral=True)

    override = app_commands.Group(name="override", description="Manage 'Possibly Available' overrides")

    @override.command(name="add", description="Mark a player as possibly available for an event.")
    @app_commands.autocomplete(event=upcoming_event_autocomplete)
    async def override_add(interaction: discord.Interaction, event: str, player: discord.Member) -> None:
        user = interaction.user
        logger.info("Command /override add invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        record = await resolve_event(interaction, event)
        if record is None:
            return
        if str(player.id) not in snapshot_of(interaction).profiles:
            await safe_send(interaction, f"{player.display_name} has no player profile yet.", ephemeral=True)
            return
        created = set_override(record["id"], str(player.id))
        message = "is now possibly available" if created else "was already marked possibly available"
        await safe_send(interaction, f"{player.display_name} {message}.", ephemeral=True)

    @override.command(name="remove", description="Remove a player's 'Possibly Available' override.")
    @app_commands.autocomplete(event=upcoming_event_autocomplete)
    async def override_remove(interaction: discord.Interaction, event: str, player: discord.Member) -> None:
        user = interaction.user
        logger.info("Command /override remove invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        record = await resolve_event(interaction, event)
        if record is None:
            return
        removed = remove_override(record["id"], str(player.id))
        message = "override removed" if removed else "had no override for that event"
        await safe_send(interaction, f"{player.display_name}: {message}.", ephemeral=True)

    tree.add_command(override)
