import pytest

from navevents.config import Config
from navevents.impl.events.event_factory import EventFactory
from navevents.impl.events.flush_scheduler import FlushScheduler
from navevents.impl.events.outstanding_queue import OutstandingEventQueue
from navevents.impl.events.types import (EVENT_FASTER_ROUTE, EVENT_FEEDBACK,
                                         EVENT_REROUTE, FeedbackEvent,
                                         RerouteEvent)
from navevents.impl.observers import Observers
from navevents.models import Location
from navevents.session_state import SessionState
from navevents.testing.stub_util import (MockClock, MockEventTransport,
                                        MockProgressSource, RecordingObserver,
                                        make_route)

clock = None
transport = None
queue = None
observer = None


def setup_function():
    global clock, transport, queue, observer
    clock = MockClock(0)
    transport = MockEventTransport()
    queue = OutstandingEventQueue()
    observer = RecordingObserver()


def make_scheduler(**kwargs) -> FlushScheduler:
    config = Config('token', **kwargs)
    observers = Observers()
    observers.add(observer)
    factory = EventFactory(config, MockProgressSource(), clock)
    return FlushScheduler(config, queue, transport, factory, clock, observers)


def make_session() -> SessionState:
    return SessionState(make_route(), 'session-1', 0)


def test_nothing_is_sent_when_queue_is_empty():
    scheduler = make_scheduler()
    assert scheduler.flush_outstanding(make_session()) == []
    assert transport.events == []
    assert transport.flush_count == 0
    assert observer.calls == []


def test_young_events_stay_queued():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('f1', 0, {'description': 'x'}))
    clock.time = 19000
    assert scheduler.flush_outstanding(make_session()) == []
    assert 'f1' in queue
    assert transport.events == []


def test_old_events_are_sent_and_drained():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('f1', 0, {'description': 'x'}))
    clock.time = 21000
    sent = scheduler.flush_outstanding(make_session())
    assert [e.id for e in sent] == ['f1']
    assert len(queue) == 0
    assert transport.names() == [EVENT_FEEDBACK]
    assert transport.events[0][1]['feedbackId'] == 'f1'
    assert transport.flush_count == 1


def test_forced_flush_sends_everything_regardless_of_age():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('f1', 0, {}))
    queue.enqueue(RerouteEvent('r1', 500, {}))
    queue.enqueue(RerouteEvent('r2', 900, {}, proactive=True))
    clock.time = 1000
    scheduler.flush_outstanding(make_session(), force=True)
    assert transport.names() == [EVENT_FEEDBACK, EVENT_REROUTE, EVENT_FASTER_ROUTE]
    assert len(queue) == 0


def test_disabling_delay_flushes_everything():
    scheduler = make_scheduler(delays_event_flushing=False)
    queue.enqueue(FeedbackEvent('f1', 0, {}))
    clock.time = 1
    assert len(scheduler.flush_outstanding(make_session())) == 1


@pytest.mark.parametrize('delay, elapsed, expected', [(20, 19000, 0), (20, 21000, 1), (5, 6000, 1), (0, 1, 1)])
def test_configured_delay_is_honored(delay, elapsed, expected):
    scheduler = make_scheduler(flush_delay_seconds=delay)
    queue.enqueue(FeedbackEvent('f1', 0, {}))
    clock.time = elapsed
    assert len(scheduler.flush_outstanding(make_session())) == expected


def test_events_are_never_sent_twice():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('f1', 0, {}))
    clock.time = 30000
    scheduler.flush_outstanding(make_session())
    scheduler.flush_outstanding(make_session())
    scheduler.flush_outstanding(make_session(), force=True)
    assert len(transport.events) == 1


def test_update_before_flush_is_reflected_in_sent_payload():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('f1', 0, {'description': 'original'}))
    queue.update_by_id('f1', {'description': 'updated'})
    clock.time = 30000
    scheduler.flush_outstanding(make_session())
    assert transport.events[0][1]['description'] == 'updated'


def test_sent_attributes_are_a_snapshot():
    scheduler = make_scheduler()
    event = FeedbackEvent('f1', 0, {'description': 'original'})
    queue.enqueue(event)
    scheduler.flush_outstanding(make_session(), force=True)
    event.payload['description'] = 'mutated later'
    assert transport.events[0][1]['description'] == 'original'


def test_locations_are_split_around_event_creation():
    scheduler = make_scheduler()
    session = make_session()
    for ts in [1000, 2000, 3000, 4000]:
        session.record_location(Location(1.0, 2.0, ts))
    queue.enqueue(FeedbackEvent('f1', 2000, {}))
    scheduler.flush_outstanding(session, force=True)
    attributes = transport.events[0][1]
    assert len(attributes['locationsBefore']) == 2
    assert len(attributes['locationsAfter']) == 2
    assert attributes['locationsBefore'][0]['lat'] == 1.0


def test_unserializable_event_is_dropped_without_affecting_others():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('bad', 0, {'description': object()}))
    queue.enqueue(FeedbackEvent('good', 0, {'description': 'fine'}))
    sent = scheduler.flush_outstanding(make_session(), force=True)
    assert [e.id for e in sent] == ['good']
    assert len(queue) == 0


def test_transport_failure_is_not_retried():
    scheduler = make_scheduler()
    transport.fail_sends = True
    queue.enqueue(FeedbackEvent('f1', 0, {}))
    assert scheduler.flush_outstanding(make_session(), force=True) == []
    assert len(queue) == 0
    transport.fail_sends = False
    scheduler.flush_outstanding(make_session(), force=True)
    assert transport.events == []


def test_observer_is_told_about_flushed_events():
    scheduler = make_scheduler()
    queue.enqueue(FeedbackEvent('f1', 0, {}))
    scheduler.flush_outstanding(make_session(), force=True)
    assert observer.hooks() == ['flushed']
    assert [e.id for e in observer.calls[0][1]] == ['f1']
