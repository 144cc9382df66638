"""Discord interaction helper utilities."""

from __future__ import annotations

import logging
from typing import Any

import discord

from .admin import AdminOperationError, is_admin

logger = logging.getLogger(__name__)


def _channel_label(interaction: discord.Interaction) -> str:
    channel = interaction.channel
    return f"{getattr(channel, 'name', 'unknown')} ({getattr(channel, 'id', 'unknown')})"


async def safe_send(interaction: discord.Interaction, content: str, **kwargs: Any) -> bool:
    """Reply to an interaction, falling back to a followup once the response is used."""
    followup = interaction.response.is_done()
    try:
        if followup:
            await interaction.followup.send(content, **kwargs)
        else:
            await interaction.response.send_message(content, **kwargs)
        return True
    except discord.Forbidden:
        logger.warning("Missing permission to reply in channel %s.", _channel_label(interaction))
    except discord.HTTPException as exc:
        logger.error(
            "Failed to send interaction %s in channel %s: %s",
            "followup" if followup else "response",
            _channel_label(interaction),
            exc,
        )
    return False


async def require_admin(interaction: discord.Interaction) -> bool:
    user = interaction.user
    if is_admin(str(user.id)):
        return True
    logger.warning("User %s (%s) tried an admin-only command.", user, user.id)
    await safe_send(interaction, "⛔ This command is for team admins only.", ephemeral=True)
    return False


async def report_admin_error(interaction: discord.Interaction, exc: AdminOperationError) -> None:
    logger.warning("Admin operation failed for %s (%s): %s %s", interaction.user, interaction.user.id, exc.code, exc.message)
    await safe_send(interaction, f"❌ {exc.message} (`{exc.code}`)", ephemeral=True)
