"""Discord client implementation for the TeamSync bot."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import tasks

from .aggregation import AvailabilitySnapshot, upcoming_events
from .command_handlers.utils import today
from .config import get_sweep_minutes
from .reminders import run_reminder_sweep
from .views import EventRsvpView

logger = logging.getLogger(__name__)


class TeamSyncBot(discord.Client):
    def __init__(self) -> None:
        super().__init__(intents=discord.Intents.default())
        self.tree = app_commands.CommandTree(self)
        self.snapshot = AvailabilitySnapshot()

    async def setup_hook(self) -> None:
        logger.info("Loading stored events...")
        self.snapshot.attach()

        count = 0
        for event in upcoming_events(self.snapshot.events.values(), today()):
            self.add_view(EventRsvpView(event["id"]))
            count += 1

        sweep_minutes = get_sweep_minutes()
        self.reminder_sweep.change_interval(minutes=sweep_minutes)
        self.reminder_sweep.start()
        logger.info("Reminder sweep scheduled every %s minute(s).", sweep_minutes)

        logger.info("%s upcoming event board(s) restored. Syncing commands...", count)
        await self.tree.sync()
        logger.info("Command tree synced.")

    async def close(self) -> None:
        self.reminder_sweep.cancel()
        self.snapshot.detach()
        await super().close()

    @tasks.loop(minutes=15)
    async def reminder_sweep(self) -> None:
        try:
            sent = await run_reminder_sweep()
        except Exception:
            logger.exception("Reminder sweep failed.")
            return
        if sent:
            logger.info("Reminder sweep posted %s reminder(s).", sent)

    @reminder_sweep.before_loop
    async def before_reminder_sweep(self) -> None:
        await self.wait_until_ready()

    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info("Joined guild %s (%s) with %s members.", guild.name, guild.id, guild.member_count)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Removed from guild %s (%s).", guild.name, guild.id)
