"""Player self-service: /profile, /notifications."""

from __future__ import annotations

import logging
from typing import Any

import discord
from discord import app_commands
from discord.utils import escape_markdown

from ..aggregation import unread_notifications
from ..discord_utils import safe_send
from ..storage import get_profile, load_notifications, mark_notifications_read, upsert_profile
from ..types import GAME_ROLES

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS_SHOWN = 15


def register_profile(tree: app_commands.CommandTree) -> None:
    @tree.command(name="profile", description="Create or update your player profile.")
    @app_commands.describe(
        username="Name shown on the roster",
        favorite_tank="Your favourite tank",
        role="Your main role",
    )
    @app_commands.choices(role=[app_commands.Choice(name=role, value=role) for role in GAME_ROLES])
    async def profile(
        interaction: discord.Interaction,
        username: str | None = None,
        favorite_tank: str | None = None,
        role: app_commands.Choice[str] | None = None,
    ) -> None:
        user = interaction.user
        logger.info("Command /profile invoked by %s (%s).", user, user.id)
        user_id = str(user.id)
        existing = get_profile(user_id)

        fields: dict[str, Any] = {}
        if username is not None:
            fields["username"] = username
        elif existing is None:
            fields["username"] = getattr(user, "display_name", None) or user.name
        if favorite_tank is not None:
            fields["favoriteTank"] = favorite_tank
        if role is not None:
            fields["role"] = role.value
        if existing is None and getattr(user, "display_avatar", None) is not None:
            fields["photoURL"] = user.display_avatar.url

        if fields:
            try:
                existing = upsert_profile(user_id, **fields)
            except ValueError as exc:
                await safe_send(interaction, str(exc), ephemeral=True)
                return

        if existing is None:
            return
        summary = [
            f"**{escape_markdown(existing['username'])}**",
            f"Role: {existing.get('role') or '-'}",
            f"Favourite tank: {escape_markdown(existing.get('favoriteTank') or '-')}",
            f"Roster status: {existing.get('rosterStatus') or '-'}",
            f"Playstyle: {', '.join(existing.get('playstyleTags') or []) or '-'}",
            f"Discord handle: {existing.get('discordUsername') or '-'}",
        ]
        await safe_send(interaction, "\n".join(summary), ephemeral=True)

    @tree.command(name="notifications", description="Show recent team notifications.")
    async def notifications(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /notifications invoked by %s (%s).", user, user.id)
        user_id = str(user.id)
        entries = load_notifications()
        if not entries:
            await safe_send(interaction, "No notifications yet.", ephemeral=True)
            return

        current = get_profile(user_id)
        last_read = current.get("lastNotificationReadTimestamp") if current else None
        unread_ids = {entry["id"] for entry in unread_notifications(entries, last_read)}
        lines = []
        for entry in entries[:MAX_NOTIFICATIONS_SHOWN]:
            marker = "🆕 " if entry["id"] in unread_ids else ""
            lines.append(f"{marker}{entry['message']} · {entry['createdBy']}")
        mark_notifications_read(user_id, entries[0]["timestamp"])
        await safe_send(
            interaction,
            f"**Notifications ({len(unread_ids)} unread)**\n" + "\n".join(lines),
            ephemeral=True,
        )
