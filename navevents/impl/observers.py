from threading import RLock
from typing import Callable

from navevents.impl.util import log
from navevents.interfaces import NavigationEventsObserver


class Observers:
    """
    The set of :class:`NavigationEventsObserver` instances registered with an events manager.
    Notifications are delivered synchronously on the caller's thread.
    """

    def __init__(self):
        self.__observers = []
        self.__lock = RLock()

    def has_observers(self) -> bool:
        with self.__lock:
            return len(self.__observers) > 0

    def add(self, observer: NavigationEventsObserver):
        with self.__lock:
            self.__observers.append(observer)

    def remove(self, observer: NavigationEventsObserver):
        with self.__lock:
            try:
                self.__observers.remove(observer)
            except ValueError:
                pass  # removing an observer that wasn't registered is a no-op

    def notify(self, hook: Callable[[NavigationEventsObserver], None]):
        """
        Invokes ``hook`` once per observer, for instance ``lambda o: o.on_depart(attributes)``.
        """
        with self.__lock:
            observers_copy = self.__observers.copy()
        for observer in observers_copy:
            try:
                hook(observer)
            except Exception as e:
                log.exception("Unexpected error in navigation events observer %s: %s" % (type(observer).__name__, e))
