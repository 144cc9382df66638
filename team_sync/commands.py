"""Slash command registrations for the TeamSync bot."""

from __future__ import annotations

from typing import cast

import discord
from discord import app_commands

from .command_handlers import (
    register_admin_tools,
    register_broadcasts,
    register_events,
    register_profile,
    register_roster,
    register_voting,
)


def setup_commands(bot: discord.Client) -> None:
    tree = cast(app_commands.CommandTree, getattr(bot, "tree"))
    register_profile(tree)
    register_voting(tree)
    register_events(tree)
    register_roster(tree)
    register_broadcasts(tree)
    register_admin_tools(tree)
