import json
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from navevents.impl.util import log
from navevents.models import Route

# Event names understood by the collector.
EVENT_DEPART = 'navigation.depart'
EVENT_ARRIVE = 'navigation.arrive'
EVENT_CANCEL = 'navigation.cancel'
EVENT_FEEDBACK = 'navigation.feedback'
EVENT_REROUTE = 'navigation.reroute'
EVENT_FASTER_ROUTE = 'navigation.fasterRoute'


class EventKind(Enum):
    FEEDBACK = 'feedback'
    REROUTE = 'reroute'
    FASTER_ROUTE = 'fasterRoute'


class FeedbackType(Enum):
    GENERAL = 'general'
    ACCIDENT = 'accident'
    HAZARD = 'hazard'
    ROAD_CLOSED = 'road_closed'
    NOT_ALLOWED = 'not_allowed'
    ROUTING_ERROR = 'routing_error'
    CONFUSING_INSTRUCTION = 'confusing_instruction'
    INACCURATE_GUIDANCE = 'inaccurate_guidance'
    MISSING_ROAD = 'missing_road'
    MISSING_EXIT = 'missing_exit'
    REPORT_TRAFFIC = 'report_traffic'
    MISTAKEN_REROUTE = 'mistaken_reroute'

    @staticmethod
    def parse(value: Any) -> 'FeedbackType':
        """
        Accepts a ``FeedbackType`` or its string value. Anything else is reported as general
        feedback rather than rejected.
        """
        if isinstance(value, FeedbackType):
            return value
        try:
            return FeedbackType(value)
        except ValueError:
            log.warning("Unknown feedback type %r; reporting it as general feedback" % (value,))
            return FeedbackType.GENERAL


class FeedbackSource(Enum):
    USER = 'user'
    REROUTE = 'reroute'
    UNKNOWN = 'unknown'

    @staticmethod
    def parse(value: Any) -> 'FeedbackSource':
        if isinstance(value, FeedbackSource):
            return value
        try:
            return FeedbackSource(value)
        except ValueError:
            log.warning("Unknown feedback source %r; reporting it as unknown" % (value,))
            return FeedbackSource.UNKNOWN


# Pending events are the feedback and reroute events held in the outstanding queue so that
# later metadata can be attached before they are sent. Lifecycle events (depart, arrive,
# cancel) are never represented this way; they are sent as soon as they are built.


class PendingEvent:
    __slots__ = ['id', 'created_at', 'payload']

    kind = None  # type: Optional[EventKind]
    event_name = None  # type: Optional[str]
    mutable_fields = frozenset()  # type: FrozenSet[str]

    def __init__(self, id: str, created_at: int, payload: Dict[str, Any]):
        self.id = id
        self.created_at = created_at
        self.payload = payload

    def apply_patch(self, patch: Mapping[str, Any]):
        """
        Overwrites mutable payload fields in place. Fields that this kind of event does not allow
        to change are ignored.
        """
        for key, value in patch.items():
            if key in self.mutable_fields:
                self.payload[key] = value
            else:
                log.debug("Ignoring update to immutable field %s of %s %s" % (key, self.__class__.__name__, self.id))

    def __repr__(self) -> str:  # used only in test debugging
        return "%s(%s)" % (self.__class__.__name__, json.dumps({'id': self.id, 'created_at': self.created_at, 'payload': self.payload}, default=str))


class FeedbackEvent(PendingEvent):
    __slots__ = []  # type: list

    kind = EventKind.FEEDBACK
    event_name = EVENT_FEEDBACK
    mutable_fields = frozenset(['feedbackType', 'source', 'description'])

    def update(self, type: FeedbackType, source: FeedbackSource, description: Optional[str]):
        self.apply_patch(FeedbackEvent.patch(type, source, description))

    @staticmethod
    def patch(type: Any, source: Any, description: Optional[str]) -> Dict[str, Any]:
        return {'feedbackType': FeedbackType.parse(type).value, 'source': FeedbackSource.parse(source).value, 'description': description}


class RerouteEvent(PendingEvent):
    __slots__ = ['proactive']

    mutable_fields = frozenset(['newDistanceRemaining', 'newDurationRemaining', 'newGeometry'])

    def __init__(self, id: str, created_at: int, payload: Dict[str, Any], proactive: bool = False):
        super().__init__(id, created_at, payload)
        self.proactive = proactive

    @property
    def kind(self) -> EventKind:  # type: ignore[override]
        return EventKind.FASTER_ROUTE if self.proactive else EventKind.REROUTE

    @property
    def event_name(self) -> str:  # type: ignore[override]
        return EVENT_FASTER_ROUTE if self.proactive else EVENT_REROUTE

    def update(self, new_route: Route):
        self.apply_patch(RerouteEvent.patch(new_route))

    @staticmethod
    def patch(new_route: Route) -> Dict[str, Any]:
        return {
            'newDistanceRemaining': round(new_route.distance),
            'newDurationRemaining': round(new_route.expected_travel_time),
            'newGeometry': new_route.geometry,
        }
