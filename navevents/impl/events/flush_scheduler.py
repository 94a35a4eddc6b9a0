from typing import List, Optional

from navevents.config import Config
from navevents.impl.events.event_factory import EventFactory
from navevents.impl.events.outstanding_queue import OutstandingEventQueue
from navevents.impl.events.types import PendingEvent
from navevents.impl.observers import Observers
from navevents.impl.util import log
from navevents.interfaces import Clock, EventTransport
from navevents.session_state import SessionState


class FlushScheduler:
    """
    Decides which outstanding feedback and reroute events are ready, hands them to the
    transport, and drains them from the queue.

    Delivery is at-most-once: an event is drained as soon as the transport has accepted it (or
    as soon as it has failed to serialize), whether or not the collector ever receives it.
    """

    def __init__(self, config: Config, queue: OutstandingEventQueue, transport: EventTransport, factory: EventFactory, clock: Clock, observers: Observers):
        self._config = config
        self._queue = queue
        self._transport = transport
        self._factory = factory
        self._clock = clock
        self._observers = observers

    def flush_outstanding(self, session: Optional[SessionState], force: bool = False) -> List[PendingEvent]:
        """
        Sends every eligible event. With ``force``, or when the config disables delayed flushing,
        every queued event is eligible regardless of its age.

        :return: the events that were handed to the transport
        """
        flush_all = force or not self._config.delays_event_flushing
        selected = self._queue.select_eligible(self._clock.now(), self._config.flush_delay_millis, flush_all)
        if not selected:
            return []

        sent = []  # type: List[PendingEvent]
        for event in selected:
            if self._send(event, session):
                sent.append(event)

        self._queue.drain(e.id for e in selected)

        if sent:
            log.debug("Flushed %d outstanding events (%d dropped)" % (len(sent), len(selected) - len(sent)))
            self._transport.flush()
            self._observers.notify(lambda o: o.on_events_flushed(sent))
        return sent

    def _send(self, event: PendingEvent, session: Optional[SessionState]) -> bool:
        try:
            details = self._factory.pending_event_attributes(event, session)
        except Exception as e:
            log.warning("Unable to build %s event %s; it will not be sent [%s]" % (event.event_name, event.id, e))
            return False
        attributes = EventFactory.serialize(details)
        if attributes is None:
            return False
        try:
            self._transport.send_event(event.event_name, attributes)
        except Exception as e:
            log.warning("Event transport rejected %s event %s; it will not be retried [%s]" % (event.event_name, event.id, e))
            return False
        return True
