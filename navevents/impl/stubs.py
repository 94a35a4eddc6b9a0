import uuid
from typing import Any, Mapping

from navevents.impl.util import current_time_millis
from navevents.interfaces import Clock, EventTransport, IdentityGenerator


class NullEventTransport(EventTransport):
    """
    Discards every event. Used when ``send_events`` is off or the manager is offline.
    """

    def send_event(self, name: str, attributes: Mapping[str, Any]):
        pass

    def flush(self):
        pass

    def stop(self):
        pass


class SystemClock(Clock):
    def now(self) -> int:
        return current_time_millis()


class UUIDIdentityGenerator(IdentityGenerator):
    def new_id(self) -> str:
        return str(uuid.uuid4())
