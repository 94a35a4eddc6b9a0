"""
This submodule contains interfaces for the collaborators of the events manager.

They may be useful in writing new implementations of these components, or for testing.
"""

from abc import ABCMeta, abstractmethod
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from navevents.models import AppState, DeviceOrientation, Location, RouteProgress

if TYPE_CHECKING:
    from navevents.impl.events.types import PendingEvent, RerouteEvent


class EventTransport(metaclass=ABCMeta):
    """
    Interface for the component that delivers analytics events to the telemetry collector.

    Delivery is fire-and-forget from the caller's point of view: ``send_event`` must not block
    on the network, and retrying or dropping failed deliveries is entirely the transport's
    responsibility.
    """

    def start(self):
        """
        Starts any background activity. Called once by the events manager's ``start()``.
        """

    @abstractmethod
    def send_event(self, name: str, attributes: Mapping[str, Any]):
        """
        Accepts an event to be delivered at some point.

        :param name: the event name, for instance ``navigation.depart``
        :param attributes: the event payload; the transport may keep a reference to it
        """

    @abstractmethod
    def flush(self):
        """
        Hints that buffered events should be delivered as soon as possible rather than at the
        next scheduled interval. This method is asynchronous.
        """

    @abstractmethod
    def stop(self):
        """
        Shuts down the transport after first delivering all pending events.
        """


class Clock(metaclass=ABCMeta):
    @abstractmethod
    def now(self) -> int:
        """
        Returns the current wall-clock time in epoch milliseconds.
        """


class IdentityGenerator(metaclass=ABCMeta):
    @abstractmethod
    def new_id(self) -> str:
        """
        Returns an identifier that has never been returned before.
        """


class ScreenCapture(metaclass=ABCMeta):
    """
    Optional collaborator used to attach a screenshot to feedback and reroute events.
    """

    @abstractmethod
    def capture(self, max_dimension: int) -> Optional[bytes]:
        """
        Returns an encoded image scaled so that neither side exceeds ``max_dimension`` pixels,
        or None if no screenshot is available.
        """


class ProgressSource(metaclass=ABCMeta):
    """
    Interface through which the events manager reads the navigation engine's current state when
    it builds events outside of a progress update (feedback, reroute, termination).
    """

    @property
    @abstractmethod
    def route_progress(self) -> RouteProgress:
        """
        The most recent route progress.
        """

    @property
    @abstractmethod
    def location(self) -> Optional[Location]:
        """
        The most recent location sample, if any.
        """

    @property
    def simulating(self) -> bool:
        """
        True while the navigation engine is replaying or simulating locations.
        """
        return False


class LifecycleListener:
    """
    Typed callbacks for platform lifecycle notifications. The events manager implements this
    and subscribes itself to a :class:`LifecycleEventSource`.
    """

    def on_terminate(self):
        pass

    def on_orientation_change(self, orientation: DeviceOrientation):
        pass

    def on_app_state_change(self, app_state: AppState):
        pass


class LifecycleEventSource(metaclass=ABCMeta):
    """
    Interface for whatever delivers application termination, device orientation and application
    state changes on the host platform.
    """

    @abstractmethod
    def subscribe(self, listener: LifecycleListener):
        pass

    @abstractmethod
    def unsubscribe(self, listener: LifecycleListener):
        pass


class NavigationEventsObserver:
    """
    Observer for the events manager's decisions.

    Every hook has a default implementation that does nothing, so implementations only need to
    override the hooks they care about. Hooks are called synchronously on the thread that
    triggered them; an exception raised by a hook is logged and does not affect other observers
    or the events being sent.
    """

    def on_depart(self, attributes: Mapping[str, Any]):
        """
        Called after the depart event of a session has been handed to the transport.
        """

    def on_arrive(self, attributes: Mapping[str, Any]):
        """
        Called after the arrive event of a session has been handed to the transport.
        """

    def on_cancel(self, attributes: Mapping[str, Any]):
        """
        Called after the cancel event of a session has been handed to the transport.
        """

    def on_reroute(self, event: 'RerouteEvent'):
        """
        Called after a reroute or faster-route event has been queued and patched with the new
        route.
        """

    def on_events_flushed(self, events: List['PendingEvent']):
        """
        Called after outstanding feedback and reroute events have been handed to the transport
        and removed from the queue.
        """
