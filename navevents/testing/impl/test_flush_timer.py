import time
from queue import Queue
from threading import Event

from navevents.impl.flush_timer import FlushTimer


def test_timer_does_not_flush_before_start():
    signal = Event()
    timer = FlushTimer("navevents.testing.timer", 0.01, signal.set)
    try:
        assert signal.wait(0.1) is False
    finally:
        timer.stop()


def test_first_flush_waits_one_interval():
    signal = Event()
    timer = FlushTimer("navevents.testing.timer", 0.3, signal.set)
    try:
        timer.start()
        assert signal.wait(0.1) is False
        assert signal.wait(1) is True
    finally:
        timer.stop()


def test_timer_flushes_repeatedly_until_stopped():
    flushes = Queue()
    timer = FlushTimer("navevents.testing.timer", 0.05, lambda: flushes.put(time.time()))
    try:
        timer.start()
        for _ in range(3):
            flushes.get(True, 1)
    finally:
        timer.stop()
    time.sleep(0.1)
    while not flushes.empty():
        flushes.get(False)
    time.sleep(0.15)
    assert flushes.empty() is True


def test_failing_flush_does_not_stop_timer():
    calls = Queue()

    def flush():
        calls.put(1)
        raise RuntimeError("collector unreachable")

    timer = FlushTimer("navevents.testing.timer", 0.01, flush)
    try:
        timer.start()
        calls.get(True, 1)
        calls.get(True, 1)
    finally:
        timer.stop()
