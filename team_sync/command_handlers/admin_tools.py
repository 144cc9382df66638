"""Admin commands: claims, webhook, player management and cleanup."""

from __future__ import annotations

import logging
from typing import List

import discord
from discord import app_commands

from .. import admin
from ..discord_utils import report_admin_error, require_admin, safe_send
from ..storage import clear_week_votes, delete_past_events, delete_profile, get_profile, upsert_profile
from ..time_utils import parse_date_key, start_of_week
from ..types import PLAYSTYLE_TAGS, RosterStatus
from .utils import today

logger = logging.getLogger(__name__)


def _parse_tags(raw: str) -> List[str]:
    tags = [part.strip().capitalize() for part in raw.split(",") if part.strip()]
    invalid = [tag for tag in tags if tag not in PLAYSTYLE_TAGS]
    if invalid:
        raise ValueError(f"Unknown tag(s): {', '.join(invalid)}. Choose from {', '.join(PLAYSTYLE_TAGS)}.")
    return list(dict.fromkeys(tags))


def register_admin_tools(tree: app_commands.CommandTree) -> None:
    @tree.command(name="grant-admin", description="Give another member TeamSync admin rights.")
    async def grant_admin(interaction: discord.Interaction, member: discord.User) -> None:
        user = interaction.user
        logger.info("Command /grant-admin invoked by %s (%s).", user, user.id)
        try:
            result = admin.set_admin_claim(str(user.id), {"uid": str(member.id)})
        except admin.AdminOperationError as exc:
            await report_admin_error(interaction, exc)
            return
        await safe_send(interaction, result["message"], ephemeral=True)

    @tree.command(name="set-webhook", description="Set the Discord webhook TeamSync posts to.")
    async def set_webhook(interaction: discord.Interaction, url: str) -> None:
        user = interaction.user
        logger.info("Command /set-webhook invoked by %s (%s).", user, user.id)
        try:
            result = admin.set_discord_webhook_url(str(user.id), {"url": url})
        except admin.AdminOperationError as exc:
            await report_admin_error(interaction, exc)
            return
        await safe_send(interaction, ("✅ " if result["success"] else "❌ ") + result["message"], ephemeral=True)

    @tree.command(name="test-webhook", description="Send a test message through the configured webhook.")
    async def test_webhook(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /test-webhook invoked by %s (%s).", user, user.id)
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            result = await admin.test_discord_webhook(str(user.id))
        except admin.AdminOperationError as exc:
            await report_admin_error(interaction, exc)
            return
        await safe_send(interaction, "✅ " + result["message"], ephemeral=True)

    @tree.command(name="set-roster-status", description="Set a player's roster status.")
    @app_commands.choices(
        status=[app_commands.Choice(name=status.value, value=status.value) for status in RosterStatus]
        + [app_commands.Choice(name="None", value="")]
    )
    async def set_roster_status(
        interaction: discord.Interaction,
        player: discord.User,
        status: app_commands.Choice[str],
    ) -> None:
        user = interaction.user
        logger.info("Command /set-roster-status invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        if get_profile(str(player.id)) is None:
            await safe_send(interaction, f"{player.display_name} has no player profile yet.", ephemeral=True)
            return
        upsert_profile(str(player.id), rosterStatus=status.value or None)
        await safe_send(interaction, f"{player.display_name}'s roster status is now {status.name}.", ephemeral=True)

    @tree.command(name="set-tags", description="Set a player's playstyle tags (comma separated).")
    async def set_tags(interaction: discord.Interaction, player: discord.User, tags: str = "") -> None:
        user = interaction.user
        logger.info("Command /set-tags invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        if get_profile(str(player.id)) is None:
            await safe_send(interaction, f"{player.display_name} has no player profile yet.", ephemeral=True)
            return
        try:
            parsed = _parse_tags(tags)
        except ValueError as exc:
            await safe_send(interaction, str(exc), ephemeral=True)
            return
        upsert_profile(str(player.id), playstyleTags=parsed)
        await safe_send(interaction, f"Tags saved: {', '.join(parsed) or 'none'}.", ephemeral=True)

    @tree.command(name="set-discord-handle", description="Set the handle used to mention a player.")
    @app_commands.describe(handle="@username or a numeric user id; leave empty to clear")
    async def set_discord_handle(interaction: discord.Interaction, player: discord.User, handle: str = "") -> None:
        user = interaction.user
        logger.info("Command /set-discord-handle invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        if get_profile(str(player.id)) is None:
            await safe_send(interaction, f"{player.display_name} has no player profile yet.", ephemeral=True)
            return
        upsert_profile(str(player.id), discordUsername=handle.strip() or None)
        await safe_send(interaction, f"Discord handle for {player.display_name} updated.", ephemeral=True)

    @tree.command(name="clear-week-votes", description="Delete every vote in one week.")
    @app_commands.describe(date="Any day of the week to clear (YYYY-MM-DD); defaults to this week")
    async def clear_week(interaction: discord.Interaction, date: str | None = None) -> None:
        user = interaction.user
        logger.info("Command /clear-week-votes invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        try:
            day = parse_date_key(date) if date else today()
        except ValueError:
            await safe_send(interaction, "The date must look like 2024-06-01.", ephemeral=True)
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        week_start = start_of_week(day)
        deleted = clear_week_votes(week_start)
        await safe_send(interaction, f"{deleted} vote(s) deleted for the week of {week_start.isoformat()}.", ephemeral=True)

    @tree.command(name="clear-past-events", description="Delete all events before today.")
    async def clear_past_events(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /clear-past-events invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        deleted = delete_past_events(today())
        await safe_send(interaction, f"Past events cleared ({deleted}).", ephemeral=True)

    @tree.command(name="delete-player", description="Delete a player together with their votes and overrides.")
    async def delete_player(interaction: discord.Interaction, player: discord.User) -> None:
        user = interaction.user
        logger.info("Command /delete-player invoked by %s (%s).", user, user.id)
        if not await require_admin(interaction):
            return
        existed = delete_profile(str(player.id))
        message = "deleted" if existed else "had no profile; leftover votes were cleaned up"
        await safe_send(interaction, f"{player.display_name} {message}.", ephemeral=True)
