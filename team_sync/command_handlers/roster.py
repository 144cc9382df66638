"""Roster views: /roster, /heatmap, /roster-copy."""

from __future__ import annotations

import logging
from datetime import timedelta

import discord
from discord import app_commands

from ..aggregation import sort_roster, week_dates
from ..config import get_roster_column_widths
from ..discord_utils import safe_send
from ..messages import build_heatmap_text, build_roster_copy_text
from ..storage import load_votes
from ..time_utils import parse_date_key, timeslot_key
from ..types import TIME_SLOTS
from .utils import enforce_rate_limits, format_cell, snapshot_of, today

logger = logging.getLogger(__name__)

FENCE = "```"


def register_roster(tree: app_commands.CommandTree) -> None:
    @tree.command(name="roster", description="Shows the team roster.")
    async def roster(interaction: discord.Interaction) -> None:
        user = interaction.user
        logger.info("Command /roster invoked by %s (%s).", user, user.id)
        if not await enforce_rate_limits(interaction):
            return

        players = sort_roster(snapshot_of(interaction).profiles.values())
        if not players:
            await safe_send(interaction, "No players have set up a profile yet.", ephemeral=True)
            return

        widths = get_roster_column_widths()
        header = (
            format_cell("Player", widths["player"])
            + " "
            + format_cell("Status", widths["status"])
            + " "
            + format_cell("Role", widths["role"])
        )
        rows = [header, "-" * len(header)]
        for profile in players:
            rows.append(
                format_cell(profile["username"], widths["player"])
                + " "
                + format_cell(profile.get("rosterStatus") or "-", widths["status"])
                + " "
                + format_cell(profile.get("role") or "-", widths["role"])
            )
        body = "\n".join(rows)
        await safe_send(interaction, f"**Team Roster ({len(players)})**\n```\n{body}\n```", ephemeral=True)

    @tree.command(name="heatmap", description="Shows this week's availability heatmap.")
    @app_commands.describe(weeks_ahead="0 for this week, 1 for next week, and so on")
    async def heatmap(interaction: discord.Interaction, weeks_ahead: app_commands.Range[int, -4, 4] = 0) -> None:
        user = interaction.user
        logger.info("Command /heatmap invoked by %s (%s).", user, user.id)
        if not await enforce_rate_limits(interaction):
            return

        snapshot = snapshot_of(interaction)
        days = week_dates(today() + timedelta(weeks=weeks_ahead))
        grid = build_heatmap_text(days, snapshot.all_votes, snapshot.events.values(), len(snapshot.profiles))
        title = f"**Availability: week of {days[0].isoformat()}** (`*` = scheduled event)"
        await safe_send(interaction, f"{title}\n{grid}", ephemeral=True)

    @tree.command(name="roster-copy", description="Get a copyable roster for one time slot.")
    @app_commands.describe(date="Day in YYYY-MM-DD form", time="Time slot")
    @app_commands.choices(time=[app_commands.Choice(name=label, value=label) for label in TIME_SLOTS])
    async def roster_copy(interaction: discord.Interaction, date: str, time: app_commands.Choice[str]) -> None:
        user = interaction.user
        logger.info("Command /roster-copy invoked by %s (%s).", user, user.id)
        try:
            day = parse_date_key(date)
        except ValueError:
            await safe_send(interaction, "The date must look like 2024-06-01.", ephemeral=True)
            return

        slot = timeslot_key(day, time.value)
        voter_ids = [entry["userId"] for entry in load_votes() if entry.get("timeslot") == slot]
        text = build_roster_copy_text(day, time.value, voter_ids, snapshot_of(interaction).profiles)
        await safe_send(interaction, f"```\n{text.replace(FENCE, '')}\n```", ephemeral=True)
