import queue
from threading import Condition, Thread
from typing import Callable, Optional

from navevents.impl.util import log


class DeliveryWorkers:
    """
    A fixed number of daemon threads that post event payloads to the collector.

    A job is only accepted while a worker is free. When every worker is busy the transport keeps
    its events buffered and tries again on the next flush, so a slow collector never causes
    requests to pile up.
    """

    def __init__(self, size: int, name: str):
        self._size = size
        self._active = 0
        self._idle = Condition()
        self._jobs = queue.Queue()  # type: queue.Queue[Optional[Callable[[], None]]]
        for i in range(size):
            Thread(target=self._work, name="%s.%d" % (name, i + 1), daemon=True).start()

    def try_submit(self, job: Callable[[], None]) -> bool:
        with self._idle:
            if self._active >= self._size:
                return False
            self._active += 1
        self._jobs.put(job)
        return True

    def wait_idle(self):
        with self._idle:
            self._idle.wait_for(lambda: self._active == 0)

    def shutdown(self):
        """
        Lets every accepted job finish, then ends the worker threads.
        """
        for _ in range(self._size):
            self._jobs.put(None)
        self.wait_idle()

    def _work(self):
        while True:
            job = self._jobs.get()
            if job is None:
                return
            try:
                job()
            except Exception:
                log.warning('Unhandled exception while delivering events', exc_info=True)
            finally:
                with self._idle:
                    self._active -= 1
                    self._idle.notify_all()
