"""discord.ui.View implementations for TeamSync."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

import discord

from .config import get_timezone
from .discord_utils import safe_send
from .storage import get_profile, toggle_event_vote
from .types import EventStatus
from .ui import create_event_embed

if TYPE_CHECKING:
    from .bot import TeamSyncBot

logger = logging.getLogger(__name__)


class EventRsvpView(discord.ui.View):
    """Persistent attend/leave toggle attached to an event board message."""

    def __init__(self, event_id: str) -> None:
        super().__init__(timeout=None)
        self.event_id: str = event_id

        rsvp_button = discord.ui.Button(
            label="Attending / Not attending",
            style=discord.ButtonStyle.green,
            custom_id=f"rsvp_{event_id}",
            emoji="🗳️",
        )
        rsvp_button.callback = self.rsvp_callback
        self.add_item(rsvp_button)

    async def rsvp_callback(self, interaction: discord.Interaction) -> None:
        user = interaction.user
        bot = cast("TeamSyncBot", interaction.client)
        event = bot.snapshot.events.get(self.event_id)
        if event is None:
            await safe_send(interaction, "This event no longer exists.", ephemeral=True)
            return
        if event.get("status") == EventStatus.CANCELLED:
            await safe_send(interaction, "This event has been cancelled.", ephemeral=True)
            return
        if get_profile(str(user.id)) is None:
            await safe_send(
                interaction,
                "Please set up your player profile with `/profile` before voting.",
                ephemeral=True,
            )
            return

        try:
            attending = toggle_event_vote(self.event_id, str(user.id))
        except OSError as exc:
            logger.error("Failed to store RSVP of %s (%s) for event %s: %s", user, user.id, self.event_id, exc)
            await safe_send(interaction, "Could not save your RSVP. Please try again.", ephemeral=True)
            return

        logger.info(
            "User %s (%s) is %s event %s.",
            user,
            user.id,
            "attending" if attending else "no longer attending",
            self.event_id,
        )
        embed = create_event_embed(event, bot.snapshot.availability(event), bot.snapshot.profiles, get_timezone())
        try:
            await interaction.response.edit_message(embed=embed, view=self)
        except discord.NotFound:
            logger.warning("Board message for event %s no longer exists.", self.event_id)
        except discord.HTTPException as exc:
            logger.error("Failed to refresh board message for event %s: %s", self.event_id, exc)
        await safe_send(
            interaction,
            "✅ You're marked as attending." if attending else "You're no longer marked as attending.",
            ephemeral=True,
        )
