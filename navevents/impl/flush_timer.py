from threading import Event, Thread
from typing import Callable

from navevents.impl.util import log


class FlushTimer:
    """
    Calls ``flush`` every ``interval`` seconds on a daemon thread until stopped. The first call
    happens one interval after :func:`start()`, not immediately.
    """

    def __init__(self, name: str, interval: float, flush: Callable[[], None]):
        self._interval = interval
        self._flush = flush
        self._stopped = Event()
        self._thread = Thread(target=self._run, name=name, daemon=True)

    def start(self):
        self._thread.start()

    def stop(self):
        # takes effect at the next tick; a flush already running is not interrupted
        self._stopped.set()

    def _run(self):
        while not self._stopped.wait(self._interval):
            try:
                self._flush()
            except Exception as e:
                log.exception("Scheduled flush failed: %s" % e)
