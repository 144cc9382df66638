"""Modal definitions for scheduling events."""

from __future__ import annotations

import logging

import discord

from .discord_utils import safe_send
from .messages import format_day
from .storage import add_notification, create_event
from .time_utils import format_time_label, parse_date_key, parse_time_label
from .types import EventType

logger = logging.getLogger(__name__)


class ScheduleEventModal(discord.ui.Modal, title="Schedule a Team Event"):
    event_type = discord.ui.TextInput(label="Type", placeholder="Training or Tournament", default="Training")
    date = discord.ui.TextInput(label="Date", placeholder="YYYY-MM-DD, e.g. 2024-06-01", max_length=10)
    time = discord.ui.TextInput(label="Time", placeholder="e.g. 6:30 PM", max_length=8)
    description = discord.ui.TextInput(
        label="Description",
        style=discord.TextStyle.long,
        placeholder="Optional notes for the team.",
        required=False,
        max_length=500,
    )
    role_id = discord.ui.TextInput(
        label="Role to mention (ID)",
        placeholder="Optional numeric role ID, e.g. 123456789",
        required=False,
        max_length=20,
    )

    async def on_submit(self, interaction: discord.Interaction) -> None:
        user = interaction.user
        await interaction.response.defer(ephemeral=True, thinking=True)

        kind_raw = self.event_type.value.strip().capitalize()
        try:
            kind = EventType(kind_raw)
        except ValueError:
            await safe_send(interaction, "Type must be either 'Training' or 'Tournament'.", ephemeral=True)
            return

        try:
            day = parse_date_key(self.date.value)
        except ValueError:
            await safe_send(interaction, "The date must look like 2024-06-01.", ephemeral=True)
            return

        try:
            label = format_time_label(parse_time_label(self.time.value))
        except ValueError:
            await safe_send(interaction, "The time must look like 6:30 PM.", ephemeral=True)
            return

        try:
            event = create_event(
                kind,
                day,
                label,
                str(user.id),
                description=self.description.value,
                discord_role_id=self.role_id.value,
            )
        except ValueError as exc:
            logger.warning("User %s (%s) submitted an invalid event: %s", user, user.id, exc)
            await safe_send(interaction, str(exc), ephemeral=True)
            return
        except OSError as exc:
            logger.error("Failed to store event for %s (%s): %s", user, user.id, exc)
            await safe_send(interaction, "Could not save the event. Please try again.", ephemeral=True)
            return

        add_notification(
            f"New event scheduled: {kind.value} on {format_day(day)} at {label}",
            "CalendarPlus",
            getattr(user, "display_name", None) or user.name,
        )
        logger.info("User %s (%s) scheduled event %s.", user, user.id, event["id"])
        await safe_send(
            interaction,
            f"📅 {kind.value} scheduled for {format_day(day)} at {label}.",
            ephemeral=True,
        )
