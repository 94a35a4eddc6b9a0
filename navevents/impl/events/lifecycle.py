from typing import Any, Callable, Dict, Optional

from navevents.impl.events.event_factory import EventFactory
from navevents.impl.events.types import EVENT_ARRIVE, EVENT_CANCEL, EVENT_DEPART
from navevents.impl.observers import Observers
from navevents.impl.util import log
from navevents.interfaces import Clock, EventTransport, NavigationEventsObserver
from navevents.models import RouteProgress
from navevents.session_state import SessionState


class LifecycleEventEmitter:
    """
    Sends the one-shot depart, arrive and cancel events of a session.

    Each transition is guarded by a flag on the :class:`SessionState` that is set before the
    event is built, so repeated calls are no-ops and an event that fails to build or serialize
    is not attempted again. Lifecycle events bypass the outstanding queue and are followed by an
    immediate transport flush. None of these methods raise.
    """

    def __init__(self, transport: EventTransport, factory: EventFactory, clock: Clock, observers: Observers):
        self._transport = transport
        self._factory = factory
        self._clock = clock
        self._observers = observers

    def depart(self, session: SessionState, progress: RouteProgress) -> bool:
        if not session.mark_departed(self._clock.now()):
            return False
        return self._send(EVENT_DEPART, lambda: self._factory.new_depart_event(session, progress), lambda o, a: o.on_depart(a))

    def arrive(self, session: SessionState, progress: RouteProgress) -> bool:
        if session.arrival_timestamp is not None or not progress.has_arrived_at_destination:
            return False
        session.mark_arrived(self._clock.now())
        return self._send(EVENT_ARRIVE, lambda: self._factory.new_arrive_event(session, progress), lambda o, a: o.on_arrive(a))

    def cancel(self, session: SessionState, progress: Optional[RouteProgress], rating: Optional[int] = None, comment: Optional[str] = None) -> bool:
        """
        Sends the cancel event unless the session has already arrived or already been cancelled.
        """
        if session.terminated:
            return False
        session.terminated = True
        if session.arrival_timestamp is not None:
            return False
        return self._send(EVENT_CANCEL, lambda: self._factory.new_cancel_event(session, progress, rating, comment), lambda o, a: o.on_cancel(a))

    def _send(self, name: str, build: Callable[[], Dict[str, Any]], hook: Callable[[NavigationEventsObserver, Dict[str, Any]], None]) -> bool:
        try:
            details = build()
        except Exception as e:
            log.warning("Unable to build %s event; it will not be sent [%s]" % (name, e))
            return False
        attributes = EventFactory.serialize(details)
        if attributes is None:
            return False
        try:
            self._transport.send_event(name, attributes)
            self._transport.flush()
        except Exception as e:
            log.warning("Event transport rejected %s event [%s]" % (name, e))
            return False
        self._observers.notify(lambda o: hook(o, attributes))
        return True
