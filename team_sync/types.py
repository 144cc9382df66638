"""Type definitions for TeamSync."""

from enum import Enum
from typing import Dict, List, NamedTuple, NotRequired, TypedDict

MINIMUM_PLAYERS = 7

TIME_SLOTS: List[str] = [
    "4:30 PM",
    "5:00 PM",
    "5:30 PM",
    "6:00 PM",
    "6:30 PM",
    "7:00 PM",
    "7:30 PM",
    "8:00 PM",
    "8:30 PM",
    "9:00 PM",
    "9:30 PM",
]

GAME_ROLES: List[str] = [
    "Tank Destroyer",
    "Medium Tank",
    "Heavy Tank",
    "Assaulter",
    "Defender",
    "Light Tank",
]

PLAYSTYLE_TAGS: List[str] = ["Assaulter", "Defender", "Scout", "Harvester"]


class EventType(str, Enum):
    TRAINING = "Training"
    TOURNAMENT = "Tournament"


class EventStatus(str, Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"


class RosterStatus(str, Enum):
    MAIN = "Main Roster"
    STANDBY = "Standby Player"


POSSIBLY_AVAILABLE = "Possibly Available"


class VoteRecord(TypedDict):
    id: str
    userId: str
    timeslot: str


class EventVoteRecord(TypedDict):
    id: str
    eventId: str
    userId: str


class PlayerProfile(TypedDict):
    id: str
    username: str
    favoriteTank: NotRequired[str]
    role: NotRequired[str]
    rosterStatus: NotRequired[str]
    playstyleTags: NotRequired[List[str]]
    discordUsername: NotRequired[str]
    photoURL: NotRequired[str]
    lastNotificationReadTimestamp: NotRequired[str]


class ScheduleEvent(TypedDict):
    id: str
    type: EventType
    date: str
    time: str
    creatorId: str
    status: NotRequired[EventStatus]
    description: NotRequired[str]
    imageURL: NotRequired[str]
    discordRoleId: NotRequired[str]


class AvailabilityOverride(TypedDict):
    id: str
    eventId: str
    userId: str
    status: str


class AppNotification(TypedDict):
    id: str
    message: str
    icon: str
    createdBy: str
    timestamp: str


class EventAvailability(NamedTuple):
    available: List[str]
    possible: List[str]


# "<dateKey>-<timeLabel>" -> usernames in vote order
AllVotes = Dict[str, List[str]]
# eventId -> usernames attending
EventVotes = Dict[str, List[str]]
ProfilesDB = Dict[str, PlayerProfile]
