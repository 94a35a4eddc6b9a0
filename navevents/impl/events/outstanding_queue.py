from collections import OrderedDict
from threading import RLock
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Type

from navevents.impl.events.types import PendingEvent
from navevents.impl.util import log


class OutstandingEventQueue:
    """
    Holds feedback and reroute events that have not been sent yet, keyed by id and kept in
    insertion order.

    Selecting events for sending and removing them are separate steps: the flush scheduler
    selects, hands the events to the transport, then drains exactly the ids it selected. An
    update that names an id which has already been drained or cancelled is silently ignored.
    All operations take the queue's lock, so an update-by-id never interleaves with a drain.
    """

    def __init__(self):
        self._events = OrderedDict()  # type: OrderedDict[str, PendingEvent]
        self._lock = RLock()

    def enqueue(self, event: PendingEvent) -> bool:
        with self._lock:
            if event.id in self._events:
                log.warning("Ignoring event with duplicate id %s" % event.id)
                return False
            self._events[event.id] = event
            return True

    def update_by_id(self, event_id: str, patch: Mapping[str, Any]) -> bool:
        """
        Applies ``patch`` to the mutable fields of the queued event with the given id. Returns
        False, without raising, if there is no such event.
        """
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return False
            event.apply_patch(patch)
            return True

    def remove_by_id(self, event_id: str) -> Optional[PendingEvent]:
        with self._lock:
            return self._events.pop(event_id, None)

    def select_eligible(self, now: int, delay: int, flush_all: bool) -> List[PendingEvent]:
        """
        Returns, without removing them, the events that are ready to send: all of them if
        ``flush_all`` is set, otherwise those created more than ``delay`` milliseconds before
        ``now``. Insertion order is preserved.
        """
        with self._lock:
            if flush_all:
                return list(self._events.values())
            return [e for e in self._events.values() if now - e.created_at > delay]

    def drain(self, event_ids: Iterable[str]) -> List[PendingEvent]:
        with self._lock:
            drained = []
            for event_id in event_ids:
                event = self._events.pop(event_id, None)
                if event is not None:
                    drained.append(event)
            return drained

    def find_last(self, event_class: Type[PendingEvent]) -> Optional[PendingEvent]:
        with self._lock:
            for event in reversed(self._events.values()):
                if isinstance(event, event_class):
                    return event
            return None

    def get(self, event_id: str) -> Optional[PendingEvent]:
        with self._lock:
            return self._events.get(event_id)

    def __contains__(self, event_id: object) -> bool:
        with self._lock:
            return event_id in self._events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __iter__(self) -> Iterator[PendingEvent]:
        with self._lock:
            return iter(list(self._events.values()))
