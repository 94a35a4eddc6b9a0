"""
Value objects describing the route being navigated and the traveler's progress along it.

These are supplied by the navigation engine (see :class:`navevents.interfaces.ProgressSource`);
the events manager only reads them.
"""

import json
from enum import Enum
from typing import Any, List, Optional, Union

from navevents.impl.util import timestamp_rfc3339

# A route geometry is either an encoded polyline or a list of [longitude, latitude] pairs.
Geometry = Union[str, List[List[float]]]


class DeviceOrientation(Enum):
    UNKNOWN = 'unknown'
    PORTRAIT = 'portrait'
    PORTRAIT_UPSIDE_DOWN = 'portraitUpsideDown'
    LANDSCAPE_LEFT = 'landscapeLeft'
    LANDSCAPE_RIGHT = 'landscapeRight'
    FACE_UP = 'faceUp'
    FACE_DOWN = 'faceDown'

    @property
    def is_portrait(self) -> bool:
        return self in (DeviceOrientation.PORTRAIT, DeviceOrientation.PORTRAIT_UPSIDE_DOWN)

    @property
    def is_landscape(self) -> bool:
        return self in (DeviceOrientation.LANDSCAPE_LEFT, DeviceOrientation.LANDSCAPE_RIGHT)


class AppState(Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    BACKGROUND = 'background'


class Route:
    __slots__ = ['geometry', 'distance', 'expected_travel_time', 'step_count', 'leg_count', 'profile', 'request_identifier']

    def __init__(
        self,
        geometry: Optional[Geometry] = None,
        distance: float = 0,
        expected_travel_time: float = 0,
        step_count: int = 0,
        leg_count: int = 1,
        profile: Optional[str] = None,
        request_identifier: Optional[str] = None,
    ):
        """
        :param geometry: the route shape
        :param distance: total route length in meters
        :param expected_travel_time: expected travel time in seconds
        :param step_count: number of maneuver steps across all legs
        :param leg_count: number of legs; a route with N waypoints after the origin has N legs
        :param profile: the routing profile, for instance ``driving-traffic``
        :param request_identifier: the identifier of the directions request that produced the route
        """
        self.geometry = geometry
        self.distance = distance
        self.expected_travel_time = expected_travel_time
        self.step_count = step_count
        self.leg_count = max(leg_count, 1)
        self.profile = profile
        self.request_identifier = request_identifier

    def __repr__(self) -> str:
        return "Route(distance=%s, legs=%d, request=%s)" % (self.distance, self.leg_count, self.request_identifier)


class Location:
    __slots__ = ['latitude', 'longitude', 'timestamp', 'altitude', 'horizontal_accuracy', 'vertical_accuracy', 'speed', 'course']

    def __init__(
        self,
        latitude: float,
        longitude: float,
        timestamp: int,
        altitude: Optional[float] = None,
        horizontal_accuracy: Optional[float] = None,
        vertical_accuracy: Optional[float] = None,
        speed: Optional[float] = None,
        course: Optional[float] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.timestamp = timestamp  # epoch milliseconds
        self.altitude = altitude
        self.horizontal_accuracy = horizontal_accuracy
        self.vertical_accuracy = vertical_accuracy
        self.speed = speed
        self.course = course

    def to_event_dict(self) -> dict:
        return {
            'lat': self.latitude,
            'lng': self.longitude,
            'altitude': self.altitude,
            'timestamp': timestamp_rfc3339(self.timestamp),
            'horizontalAccuracy': self.horizontal_accuracy,
            'verticalAccuracy': self.vertical_accuracy,
            'course': self.course,
            'speed': self.speed,
        }

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Location) and all(getattr(self, a) == getattr(other, a) for a in Location.__slots__)

    def __repr__(self) -> str:
        return "Location(%s)" % json.dumps(self.to_event_dict())


class RouteProgress:
    """
    A snapshot of the traveler's position along a route.
    """

    __slots__ = ['route', 'leg_index', 'step_index', 'distance_traveled', 'distance_remaining', 'duration_remaining', 'user_has_arrived_at_waypoint', 'location']

    def __init__(
        self,
        route: Route,
        leg_index: int = 0,
        step_index: int = 0,
        distance_traveled: float = 0,
        distance_remaining: Optional[float] = None,
        duration_remaining: Optional[float] = None,
        user_has_arrived_at_waypoint: bool = False,
        location: Optional[Location] = None,
    ):
        self.route = route
        self.leg_index = leg_index
        self.step_index = step_index
        self.distance_traveled = distance_traveled
        self.distance_remaining = route.distance - distance_traveled if distance_remaining is None else distance_remaining
        self.duration_remaining = route.expected_travel_time if duration_remaining is None else duration_remaining
        self.user_has_arrived_at_waypoint = user_has_arrived_at_waypoint
        self.location = location

    @property
    def leg_count(self) -> int:
        return self.route.leg_count

    @property
    def is_final_leg(self) -> bool:
        return self.leg_index >= self.route.leg_count - 1

    @property
    def has_arrived_at_destination(self) -> bool:
        """
        True once the traveler has reached the last waypoint of the route. Arriving at an
        intermediate waypoint does not count.
        """
        return self.user_has_arrived_at_waypoint and self.is_final_leg
