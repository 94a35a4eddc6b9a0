from collections import deque
from typing import List, Optional

from navevents.models import AppState, DeviceOrientation, Location, Route


class SessionState:
    """
    Everything remembered about one navigation session for stamping into analytics events.

    A new instance is created when navigation starts and whenever a new route is set after the
    traveler has arrived; an instance is never reset in place. ``departure_timestamp`` and
    ``arrival_timestamp`` are each set at most once, and ``number_of_reroutes`` never decreases.
    """

    def __init__(self, route: Route, session_identifier: str, start_timestamp: int, past_locations_capacity: int = 40):
        self.session_identifier = session_identifier
        self.start_timestamp = start_timestamp
        self.current_route = route
        self.original_route = route
        self.departure_timestamp = None  # type: Optional[int]
        self.arrival_timestamp = None  # type: Optional[int]
        self.last_reroute_date = None  # type: Optional[int]
        self.number_of_reroutes = 0
        self.past_locations = deque(maxlen=past_locations_capacity)  # type: deque
        self.terminated = False

        self.device_orientation = DeviceOrientation.UNKNOWN
        self.app_state = AppState.ACTIVE
        self.time_in_portrait = 0
        self.time_in_landscape = 0
        self.time_in_foreground = 0
        self.time_in_background = 0
        self._last_orientation_change = start_timestamp
        self._last_app_state_change = start_timestamp

    def mark_departed(self, timestamp: int) -> bool:
        if self.departure_timestamp is not None:
            return False
        self.departure_timestamp = timestamp
        return True

    def mark_arrived(self, timestamp: int) -> bool:
        if self.arrival_timestamp is not None:
            return False
        self.arrival_timestamp = timestamp
        return True

    def record_reroute(self, new_route: Route, proactive: bool, timestamp: int):
        """
        Switches to a new route. Only reactive reroutes (the traveler went off route) count
        towards ``number_of_reroutes``; a proactive "faster route found" switch does not.
        """
        self.current_route = new_route
        self.last_reroute_date = timestamp
        if not proactive:
            self.number_of_reroutes += 1

    def seconds_since_last_reroute(self, now: int) -> int:
        if self.last_reroute_date is None:
            return -1
        return int(round((now - self.last_reroute_date) / 1000.0))

    def record_location(self, location: Location):
        self.past_locations.append(location)

    def locations_before(self, timestamp: int) -> List[Location]:
        return [loc for loc in self.past_locations if loc.timestamp <= timestamp]

    def locations_after(self, timestamp: int) -> List[Location]:
        return [loc for loc in self.past_locations if loc.timestamp > timestamp]

    def report_orientation_change(self, orientation: DeviceOrientation, timestamp: int):
        self._accumulate_orientation(timestamp)
        self.device_orientation = orientation

    def report_app_state_change(self, app_state: AppState, timestamp: int):
        self._accumulate_app_state(timestamp)
        self.app_state = app_state

    def percent_time_in_portrait(self, now: int) -> int:
        portrait, landscape = self.time_in_portrait, self.time_in_landscape
        elapsed = max(now - self._last_orientation_change, 0)
        if self.device_orientation.is_portrait:
            portrait += elapsed
        elif self.device_orientation.is_landscape:
            landscape += elapsed
        return _percent(portrait, portrait + landscape)

    def percent_time_in_foreground(self, now: int) -> int:
        foreground, background = self.time_in_foreground, self.time_in_background
        elapsed = max(now - self._last_app_state_change, 0)
        if self.app_state == AppState.ACTIVE:
            foreground += elapsed
        else:
            background += elapsed
        return _percent(foreground, foreground + background)

    def _accumulate_orientation(self, timestamp: int):
        elapsed = max(timestamp - self._last_orientation_change, 0)
        # face up/down and unknown orientations don't count either way
        if self.device_orientation.is_portrait:
            self.time_in_portrait += elapsed
        elif self.device_orientation.is_landscape:
            self.time_in_landscape += elapsed
        self._last_orientation_change = timestamp

    def _accumulate_app_state(self, timestamp: int):
        elapsed = max(timestamp - self._last_app_state_change, 0)
        if self.app_state == AppState.ACTIVE:
            self.time_in_foreground += elapsed
        else:
            self.time_in_background += elapsed
        self._last_app_state_change = timestamp


def _percent(part: int, total: int) -> int:
    if total <= 0:
        return 100
    return int(round(100.0 * part / total))
