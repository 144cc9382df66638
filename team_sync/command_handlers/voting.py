"""Slot voting commands: /vote, /my-votes, /copy-last-week, /clear-my-week."""

from __future__ import annotations

import logging

import discord
from discord import app_commands

from ..discord_utils import safe_send
from ..storage import (
    clear_user_week_votes,
    copy_previous_week_votes,
    get_profile,
    load_votes,
    toggle_vote,
    votes_in_week,
)
from ..time_utils import parse_date_key, start_of_week, timeslot_key
from ..types import TIME_SLOTS
from .utils import today

logger = logging.getLogger(__name__)

SLOT_CHOICES = [app_commands.Choice(name=label, value=label) for label in TIME_SLOTS]


async def _ensure_profile(interaction: discord.Interaction) -> bool:
    if get_profile(str(interaction.user.id)) is not None:
        return True
    await safe_send(
        interaction,
        "Please set up your player profile with `/profile` before voting.",
        ephemeral=True,
    )
    return False


def register_voting(tree: app_commands.CommandTree) -> None:
    @tree.command(name="vote", description="Toggle your availability for a time slot.")
    @app_commands.describe(date="Day in YYYY-MM-DD form", time="Time slot")
    @app_commands.choices(time=SLOT_CHOICES)
    async def vote(interaction: discord.Interaction, date: str, time: app_commands.Choice[str]) -> None:
        user = interaction.user
        logger.info("Command /vote invoked by %s (%s).", user, user.id)
        try:
            day = parse_date_key(date)
        except ValueError:
            await safe_send(interaction, "The date must look like 2024-06-01.", ephemeral=True)
            return
        if day < today():
            await safe_send(interaction, "You can't vote for a day that has already passed.", ephemeral=True)
            return
        if not await _ensure_profile(interaction):
            return

        slot = timeslot_key(day, time.value)
        try:
            voted = toggle_vote(str(user.id), slot)
        except OSError as exc:
            logger.error("Failed to store vote of %s (%s) for %s: %s", user, user.id, slot, exc)
            await safe_send(interaction, "Could not save your vote. Please try again.", ephemeral=True)
            return
        message = "✅ Marked available" if voted else "Removed your availability"
        await safe_send(interaction, f"{message} for {day.isoformat()} at {time.value}.", ephemeral=True)

    @tree.command(name="my-votes", description="Show your availability for this week.")
    async def my_votes(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /my-votes invoked by %s (%s).", user, user.id)
        week_start = start_of_week(today())
        own = [entry for entry in load_votes() if entry.get("userId") == str(user.id)]
        slots = sorted(entry["timeslot"] for entry in votes_in_week(own, week_start))
        if not slots:
            await safe_send(interaction, "You haven't marked any availability this week.", ephemeral=True)
            return
        lines = "\n".join(f"- {slot.replace('_', ' at ')}" for slot in slots)
        await safe_send(interaction, f"Your availability this week:\n{lines}", ephemeral=True)

    @tree.command(name="copy-last-week", description="Repeat last week's availability for this week.")
    async def copy_last_week(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /copy-last-week invoked by %s (%s).", user, user.id)
        if not await _ensure_profile(interaction):
            return
        copied = copy_previous_week_votes(str(user.id), start_of_week(today()))
        if copied:
            await safe_send(interaction, f"Copied {copied} vote(s) from last week.", ephemeral=True)
        else:
            await safe_send(interaction, "Nothing to copy from last week.", ephemeral=True)

    @tree.command(name="clear-my-week", description="Clear all your votes for this week.")
    async def clear_my_week(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /clear-my-week invoked by %s (%s).", user, user.id)
        removed = clear_user_week_votes(str(user.id), start_of_week(today()))
        await safe_send(interaction, f"Removed {removed} vote(s) for this week.", ephemeral=True)
