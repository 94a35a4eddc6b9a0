"""
The navevents module contains the most common top-level entry points for reporting navigation
session telemetry.
"""

from navevents.config import Config, HTTPConfig
from navevents.events_manager import EventsManager
from navevents.impl.events.types import (EventKind, FeedbackSource,
                                         FeedbackType)
from navevents.impl.util import log
from navevents.models import (AppState, DeviceOrientation, Location, Route,
                              RouteProgress)
from navevents.version import VERSION

__version__ = VERSION

__all__ = [
    'AppState',
    'Config',
    'DeviceOrientation',
    'EventKind',
    'EventsManager',
    'FeedbackSource',
    'FeedbackType',
    'HTTPConfig',
    'Location',
    'Route',
    'RouteProgress',
    'log',
]
