"""TeamSync availability and scheduling bot package."""

from .bot import TeamSyncBot
from .commands import setup_commands

__all__ = ["TeamSyncBot", "setup_commands"]
