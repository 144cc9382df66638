"""Command handler package exports."""

from .admin_tools import register_admin_tools
from .broadcasts import register_broadcasts
from .events import register_events
from .profile import register_profile
from .roster import register_roster
from .voting import register_voting

__all__ = [
    "register_admin_tools",
    "register_broadcasts",
    "register_events",
    "register_profile",
    "register_roster",
    "register_voting",
]
