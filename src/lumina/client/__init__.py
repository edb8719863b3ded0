"""Client side of Lumina: API wrapper, view-state machine and lesson player."""

from lumina.client.api import ApiClientError, LuminaApiClient
from lumina.client.app import AssignedLesson, LuminaApp, NotAllowed, View
from lumina.client.player import InvalidTransition, LessonPlayer, PlayerStep

__all__ = [
    "ApiClientError",
    "AssignedLesson",
    "InvalidTransition",
    "LessonPlayer",
    "LuminaApiClient",
    "LuminaApp",
    "NotAllowed",
    "PlayerStep",
    "View",
]
