"""
This submodule contains the :class:`EventsManager`, the entry point that a navigation session
controller uses to report what happens during navigation.
"""

import threading
from typing import List, Optional

from navevents.config import Config
from navevents.impl.events.event_factory import EventFactory
from navevents.impl.events.event_transport import DefaultEventTransport
from navevents.impl.events.flush_scheduler import FlushScheduler
from navevents.impl.events.lifecycle import LifecycleEventEmitter
from navevents.impl.events.outstanding_queue import OutstandingEventQueue
from navevents.impl.events.types import (FeedbackEvent, FeedbackSource,
                                         FeedbackType, PendingEvent,
                                         RerouteEvent)
from navevents.impl.observers import Observers
from navevents.impl.stubs import (NullEventTransport, SystemClock,
                                  UUIDIdentityGenerator)
from navevents.impl.util import log
from navevents.interfaces import (Clock, EventTransport, IdentityGenerator,
                                  LifecycleEventSource, LifecycleListener,
                                  NavigationEventsObserver, ProgressSource,
                                  ScreenCapture)
from navevents.models import AppState, DeviceOrientation, Route, RouteProgress
from navevents.session_state import SessionState
from navevents.version import VERSION


class EventsManager(LifecycleListener):
    """The liaison between a navigation session and the telemetry collector.

    Applications should construct one ``EventsManager`` per navigation session controller and
    pass it wherever it is needed; there is no shared instance. All methods are thread-safe and
    serialize on one lock, and none of them raise because of a telemetry failure.

    Depart, arrive and cancel events are sent immediately. Feedback and reroute events are held
    for ``Config.flush_delay_seconds`` so they can still be updated, and are sent by the first
    progress update after that delay, or by :func:`on_terminate()`.
    """

    def __init__(
        self,
        config: Config,
        progress_source: ProgressSource,
        transport: Optional[EventTransport] = None,
        clock: Optional[Clock] = None,
        screen_capture: Optional[ScreenCapture] = None,
        identity_generator: Optional[IdentityGenerator] = None,
        lifecycle_source: Optional[LifecycleEventSource] = None,
    ):
        """
        :param config: the manager configuration
        :param progress_source: where to read the current route progress and location when an
          event is built outside of a progress update
        :param transport: overrides the transport that would otherwise be chosen from the config
        :param clock: overrides the system clock
        :param screen_capture: optional source of screenshots for feedback and reroute events
        :param identity_generator: overrides the generator of pending event ids
        :param lifecycle_source: optional source of platform termination, orientation and
          application state notifications
        """
        config._validate()
        self._config = config
        self._progress_source = progress_source
        self._clock = clock or SystemClock()
        self._identity_generator = identity_generator or UUIDIdentityGenerator()
        self._lifecycle_source = lifecycle_source
        self._lock = threading.RLock()
        self._session = None  # type: Optional[SessionState]
        self._started = False

        if transport is not None:
            self._transport = transport
        elif not config.send_events:
            self._transport = NullEventTransport()
        elif config.event_transport_class:
            self._transport = config.event_transport_class(config)
        else:
            self._transport = DefaultEventTransport(config)

        self._observers = Observers()
        self._queue = OutstandingEventQueue()
        self._factory = EventFactory(config, progress_source, self._clock, screen_capture)
        self._scheduler = FlushScheduler(config, self._queue, self._transport, self._factory, self._clock, self._observers)
        self._emitter = LifecycleEventEmitter(self._transport, self._factory, self._clock, self._observers)

    def start(self):
        """Begins a navigation session on the progress source's current route, unless one was
        already begun by an earlier progress update, feedback or reroute.

        This also subscribes to the lifecycle source, if any, and starts the transport.
        Calling it again has no effect.
        """
        with self._lock:
            if self._started:
                return
            self._started = True
            log.info("Starting navigation events manager " + VERSION)
            self._ensure_session()
        if self._lifecycle_source is not None:
            self._lifecycle_source.subscribe(self)
        self._transport.start()

    def close(self):
        """Sends any outstanding events, regardless of age, and shuts down the transport.

        This does not send a cancel event; call :func:`on_terminate()` for that. Do not use the
        manager after calling this method.
        """
        log.info("Closing navigation events manager..")
        if self._lifecycle_source is not None:
            self._lifecycle_source.unsubscribe(self)
        with self._lock:
            self._scheduler.flush_outstanding(self._session, force=True)
        self._transport.stop()

    # These magic methods allow an events manager to be automatically cleaned up by the "with" scope operator
    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()

    @property
    def session_state(self) -> Optional[SessionState]:
        """The state of the current session, or None before the first session has begun."""
        return self._session

    def add_observer(self, observer: NavigationEventsObserver):
        self._observers.add(observer)

    def remove_observer(self, observer: NavigationEventsObserver):
        self._observers.remove(observer)

    def record_feedback(self, type: FeedbackType = FeedbackType.GENERAL, description: Optional[str] = None) -> Optional[str]:
        """Records feedback about the current road segment or maneuver.

        If you provide a custom feedback UI, call this before showing it so the location and
        timestamp are accurate, then call :func:`update_feedback()` with the returned id once the
        user has elaborated. The feedback is sent ``flush_delay_seconds`` after being recorded.

        :param type: what kind of problem is being reported
        :param description: an optional free-form description
        :return: the id of the queued feedback event, or None if it could not be built
        """
        with self._lock:
            session = self._ensure_session()
            now = self._clock.now()
            try:
                payload = self._factory.new_feedback_event(session, None, type, description)
            except Exception as e:
                log.warning("Unable to build feedback event; it will not be sent [%s]" % e)
                return None
            event = FeedbackEvent(self._identity_generator.new_id(), now, payload)
            self._queue.enqueue(event)
            return event.id

    def update_feedback(self, feedback_id: str, type: FeedbackType, source: FeedbackSource, description: Optional[str]):
        """Updates the metadata of a recorded feedback event.

        Has no effect if the event has already been sent or cancelled, or if the id is unknown.
        """
        with self._lock:
            if not self._queue.update_by_id(feedback_id, FeedbackEvent.patch(type, source, description)):
                log.debug("Feedback %s is no longer outstanding; update ignored" % feedback_id)

    def cancel_feedback(self, feedback_id: str):
        """Discards a recorded feedback event, for instance because the user dismissed a custom
        feedback UI. Has no effect if the event has already been sent or the id is unknown.
        """
        with self._lock:
            self._queue.remove_by_id(feedback_id)

    def on_progress_update(self, progress: RouteProgress):
        """Reports new route progress.

        The first update of a session sends the depart event; the first update at the final
        waypoint sends the arrive event. Outstanding events that have waited long enough are then
        sent.
        """
        with self._lock:
            session = self._ensure_session(progress.route)
            if progress.location is not None:
                session.record_location(progress.location)
            self._emitter.depart(session, progress)
            self._emitter.arrive(session, progress)
            self._scheduler.flush_outstanding(session, force=False)

    def on_reroute(self, new_route: Route, proactive: bool = False) -> Optional[str]:
        """Reports that navigation switched to a new route.

        A reactive reroute (the traveler left the route) is counted in the session's reroute
        count; a proactive one (a faster route was found) is not, and is reported as a separate
        kind of event. If the traveler had already arrived, a new session begins with
        ``new_route``.

        :return: the id of the queued reroute event, or None if it could not be built
        """
        with self._lock:
            session = self._ensure_session()
            now = self._clock.now()
            try:
                payload = self._factory.new_reroute_event(session, None, proactive)
            except Exception as e:
                log.warning("Unable to build reroute event; it will not be sent [%s]" % e)
                payload = None
            if payload is not None:
                self._queue.enqueue(RerouteEvent(self._identity_generator.new_id(), now, payload, proactive))

            session.record_reroute(new_route, proactive, now)

            latest = self._queue.find_last(RerouteEvent)
            if latest is not None:
                try:
                    latest.update(new_route)
                except Exception as e:
                    log.warning("Unable to attach the new route to reroute event %s; it will be sent without it [%s]" % (latest.id, e))

            if session.arrival_timestamp is not None:
                self._reset_session(new_route)

        if latest is not None:
            self._observers.notify(lambda o: o.on_reroute(latest))
        return None if payload is None or latest is None else latest.id

    def on_terminate(self, rating: Optional[int] = None, comment: Optional[str] = None):
        """Reports that the application is about to exit or the user ended navigation.

        Sends a cancel event unless the session has already arrived or been cancelled, then sends
        every outstanding event regardless of age.

        :param rating: an optional rating of the trip, from -1 (unrated) to 100
        :param comment: an optional comment about the trip
        """
        with self._lock:
            if self._session is not None:
                self._emitter.cancel(self._session, None, rating, comment)
            self._scheduler.flush_outstanding(self._session, force=True)

    def on_orientation_change(self, orientation: DeviceOrientation):
        with self._lock:
            if self._session is not None:
                self._session.report_orientation_change(orientation, self._clock.now())

    def on_app_state_change(self, app_state: AppState):
        with self._lock:
            if self._session is not None:
                self._session.report_app_state_change(app_state, self._clock.now())

    def flush_outstanding_events(self, force: bool = False) -> List[PendingEvent]:
        """Sends the outstanding events that are eligible now, or all of them if ``force`` is set.

        :return: the events that were handed to the transport
        """
        with self._lock:
            return self._scheduler.flush_outstanding(self._session, force)

    def flush(self):
        """Asks the transport to deliver anything it has buffered as soon as possible.

        This does not send outstanding feedback or reroute events that are still waiting out
        their delay; see :func:`flush_outstanding_events()`.
        """
        if self._config.offline:
            return
        self._transport.flush()

    def _ensure_session(self, route: Optional[Route] = None) -> SessionState:
        if self._session is None:
            self._reset_session(route or self._progress_source.route_progress.route)
        return self._session  # type: ignore[return-value]

    def _reset_session(self, route: Route):
        self._session = SessionState(route, self._identity_generator.new_id(), self._clock.now(), self._config.past_locations_capacity)
        log.debug("Started navigation session %s" % self._session.session_identifier)


__all__ = ['EventsManager', 'Config']
