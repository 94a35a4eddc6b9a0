import base64
import json
import platform
import sys
from typing import Any, Dict, Optional

from navevents.config import Config
from navevents.impl.events.types import (EVENT_ARRIVE, EVENT_CANCEL,
                                         EVENT_DEPART, EVENT_FASTER_ROUTE,
                                         EVENT_FEEDBACK, EVENT_REROUTE,
                                         FeedbackEvent, FeedbackSource,
                                         PendingEvent)
from navevents.impl.util import log, timestamp_rfc3339
from navevents.interfaces import Clock, ProgressSource, ScreenCapture
from navevents.models import RouteProgress
from navevents.session_state import SessionState
from navevents.version import VERSION

__CURRENT_EVENT_VERSION__ = 8

UNRATED = -1
MAX_RATING = 100
SCREENSHOT_MAX_DIMENSION = 250


# Event payloads are built here so that every event carries the same session and progress
# fields. None of these methods send anything; the lifecycle emitter sends lifecycle payloads
# right away, and the events manager queues feedback and reroute payloads.


class EventFactory:
    def __init__(self, config: Config, progress_source: ProgressSource, clock: Clock, screen_capture: Optional[ScreenCapture] = None):
        self._config = config
        self._progress_source = progress_source
        self._clock = clock
        self._screen_capture = screen_capture

    def new_depart_event(self, session: SessionState, progress: RouteProgress) -> Dict[str, Any]:
        return self._base_details(EVENT_DEPART, session, progress)

    def new_arrive_event(self, session: SessionState, progress: RouteProgress) -> Dict[str, Any]:
        return self._base_details(EVENT_ARRIVE, session, progress)

    def new_cancel_event(self, session: SessionState, progress: Optional[RouteProgress], rating: Optional[int] = None, comment: Optional[str] = None) -> Dict[str, Any]:
        details = self._base_details(EVENT_CANCEL, session, progress)
        details['rating'] = UNRATED
        details['comment'] = comment
        if rating is not None:
            if self.is_valid_rating(rating):
                details['rating'] = rating
            else:
                log.warning("Invalid rating %r; ratings must be between %d (none) and %d. The cancel event will be sent without it" % (rating, UNRATED, MAX_RATING))
        return details

    def new_feedback_event(self, session: SessionState, progress: Optional[RouteProgress], type: Any, description: Optional[str]) -> Dict[str, Any]:
        details = self._base_details(EVENT_FEEDBACK, session, progress)
        details['userId'] = self._config.device_identifier
        details.update(FeedbackEvent.patch(type, FeedbackSource.USER, description))
        details['screenshot'] = self._capture_screen()
        return details

    def new_reroute_event(self, session: SessionState, progress: Optional[RouteProgress], proactive: bool) -> Dict[str, Any]:
        """
        Builds a reroute (or faster route) payload. This must happen before the reroute is
        recorded in the session so ``secondsSinceLastReroute`` refers to the previous reroute.
        The ``new*`` fields are placeholders until the resulting route is known.
        """
        details = self._base_details(EVENT_FASTER_ROUTE if proactive else EVENT_REROUTE, session, progress)
        details['secondsSinceLastReroute'] = session.seconds_since_last_reroute(self._clock.now())
        details['newDistanceRemaining'] = -1
        details['newDurationRemaining'] = -1
        details['newGeometry'] = None
        details['screenshot'] = self._capture_screen()
        return details

    def pending_event_attributes(self, event: PendingEvent, session: Optional[SessionState]) -> Dict[str, Any]:
        """
        The attributes sent for a queued event: its current payload plus the locations recorded
        around the moment it was created.
        """
        attributes = dict(event.payload)
        attributes['feedbackId'] = event.id
        if session is not None:
            attributes['locationsBefore'] = [loc.to_event_dict() for loc in session.locations_before(event.created_at)]
            attributes['locationsAfter'] = [loc.to_event_dict() for loc in session.locations_after(event.created_at)]
        return attributes

    @staticmethod
    def serialize(details: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Returns a detached, JSON-safe copy of the payload, or None if it cannot be serialized.
        """
        try:
            return json.loads(json.dumps(details))
        except (TypeError, ValueError) as e:
            log.warning("Unable to serialize %s event; it will not be sent [%s]" % (details.get('event'), e))
            return None

    @staticmethod
    def is_valid_rating(rating: Any) -> bool:
        return isinstance(rating, int) and not isinstance(rating, bool) and UNRATED <= rating <= MAX_RATING

    def _base_details(self, name: str, session: SessionState, progress: Optional[RouteProgress]) -> Dict[str, Any]:
        now = self._clock.now()
        if progress is None:
            progress = self._progress_source.route_progress
        location = progress.location if progress.location is not None else self._progress_source.location
        route = session.current_route
        original = session.original_route

        return {
            'event': name,
            'created': timestamp_rfc3339(now),
            'startTimestamp': timestamp_rfc3339(session.start_timestamp),
            'sessionIdentifier': session.session_identifier,
            'sdkIdentifier': self._config.user_agent_base,
            'sdkVersion': VERSION,
            'eventVersion': __CURRENT_EVENT_VERSION__,
            'platform': sys.platform,
            'operatingSystem': platform.platform(),
            'profile': route.profile,
            'simulation': self._progress_source.simulating,
            'lat': None if location is None else location.latitude,
            'lng': None if location is None else location.longitude,
            'geometry': route.geometry,
            'distance': round(route.distance),
            'estimatedDuration': round(route.expected_travel_time),
            'stepCount': route.step_count,
            'requestIdentifier': route.request_identifier,
            'originalGeometry': original.geometry,
            'originalDistance': round(original.distance),
            'originalEstimatedDuration': round(original.expected_travel_time),
            'originalStepCount': original.step_count,
            'originalRequestIdentifier': original.request_identifier,
            'distanceCompleted': round(progress.distance_traveled),
            'distanceRemaining': round(progress.distance_remaining),
            'durationRemaining': round(progress.duration_remaining),
            'rerouteCount': session.number_of_reroutes,
            'applicationState': session.app_state.value,
            'deviceOrientation': session.device_orientation.value,
            'percentTimeInPortrait': session.percent_time_in_portrait(now),
            'percentTimeInForeground': session.percent_time_in_foreground(now),
            'stepIndex': progress.step_index,
            'legIndex': progress.leg_index,
            'legCount': progress.leg_count,
            'departureTimestamp': timestamp_rfc3339(session.departure_timestamp),
            'arrivalTimestamp': timestamp_rfc3339(session.arrival_timestamp),
        }

    def _capture_screen(self) -> Optional[str]:
        if self._screen_capture is None:
            return None
        try:
            image = self._screen_capture.capture(SCREENSHOT_MAX_DIMENSION)
        except Exception as e:
            log.warning("Screen capture failed; the event will be sent without a screenshot [%s]" % e)
            return None
        if not image:
            return None
        return base64.b64encode(image).decode('ascii')
