"""
Implementation details of the default collector transport.
"""

import gzip
import json
import queue
import time
from collections import namedtuple
from threading import Event, Lock, Thread
from typing import Any, Dict, List, Mapping

import urllib3

from navevents.config import Config
from navevents.impl.delivery_workers import DeliveryWorkers
from navevents.impl.flush_timer import FlushTimer
from navevents.impl.http import _http_factory
from navevents.impl.util import (_headers,
                                 check_if_error_is_recoverable_and_log,
                                 is_http_error_recoverable, log,
                                 redact_access_token)
from navevents.interfaces import EventTransport

__MAX_FLUSH_THREADS__ = 2


TransportMessage = namedtuple('TransportMessage', ['type', 'param'])


def _output_event(name: str, attributes: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(attributes)
    out['event'] = name
    return out


class EventPayloadSendTask:
    def __init__(self, http, config, events, response_fn):
        self._http = http
        self._config = config
        self._events = events
        self._response_fn = response_fn

    def run(self):
        try:
            json_body = json.dumps(self._events, separators=(',', ':'))
            log.debug('Sending events payload: ' + json_body)
            r = _post_events_with_retry(self._http, self._config, json_body, "%d events" % len(self._events))
            if r:
                self._response_fn(r)
        except Exception as e:
            log.warning('Unhandled exception in event transport. Analytics events were not delivered. [%s]', e)


class EventBuffer:
    def __init__(self, capacity):
        self._capacity = capacity
        self._events = []  # type: List[Dict[str, Any]]
        self._exceeded_capacity = False
        self._dropped_events = 0

    def add_event(self, event: Dict[str, Any]):
        if len(self._events) >= self._capacity:
            self._dropped_events += 1
            if not self._exceeded_capacity:
                log.warning("Exceeded event buffer capacity. Increase events_max_pending to avoid dropping events.")
                self._exceeded_capacity = True
        else:
            self._events.append(event)
            self._exceeded_capacity = False

    @property
    def dropped_count(self) -> int:
        return self._dropped_events

    def get_payload(self) -> List[Dict[str, Any]]:
        return self._events

    def clear(self):
        self._events = []


class EventDispatcher:
    """
    Owns the event buffer on a single thread; every interaction with it arrives as a message on
    the inbox.
    """

    def __init__(self, inbox, config, http_client):
        self._inbox = inbox
        self._config = config
        self._http = _http_factory(config).create_pool_manager(1, config.events_base_uri) if http_client is None else http_client
        self._close_http = http_client is None
        self._disabled = False
        self._outbox = EventBuffer(config.events_max_pending)
        self._flush_workers = DeliveryWorkers(__MAX_FLUSH_THREADS__, "navevents.transport.delivery")

        self._main_thread = Thread(target=self._run_main_loop, name="navevents.transport.dispatcher")
        self._main_thread.daemon = True
        self._main_thread.start()

    def _run_main_loop(self):
        log.info("Starting event transport")
        while True:
            try:
                message = self._inbox.get(block=True)
                if message.type == 'event':
                    self._process_event(message.param)
                elif message.type == 'flush':
                    self._trigger_flush()
                elif message.type == 'test_sync':
                    self._flush_workers.wait_idle()
                    message.param.set()
                elif message.type == 'stop':
                    self._do_shutdown()
                    message.param.set()
                    return
            except Exception:
                log.error('Unhandled exception in event transport', exc_info=True)

    def _process_event(self, event: Dict[str, Any]):
        if self._disabled:
            return
        self._outbox.add_event(event)

    def _trigger_flush(self):
        if self._disabled:
            return
        events = self._outbox.get_payload()
        if len(events) == 0:
            return
        task = EventPayloadSendTask(self._http, self._config, events, self._handle_response)
        if self._flush_workers.try_submit(task.run):
            # handed off to a worker; a new buffer takes the next events
            self._outbox.clear()

    def _handle_response(self, r):
        if r.status > 299 and not is_http_error_recoverable(r.status):
            self._disabled = True

    def _do_shutdown(self):
        self._flush_workers.shutdown()
        if self._close_http:
            self._http.clear()


class DefaultEventTransport(EventTransport):
    """
    Buffers events in memory and posts them to the collector as a JSON array, either every
    ``flush_interval`` seconds or when :func:`flush()` is called.
    """

    def __init__(self, config: Config, http=None, dispatcher_class=None):
        self._inbox = queue.Queue(config.events_max_pending)  # type: queue.Queue
        self._inbox_full = False
        self._flush_timer = FlushTimer("navevents.transport.flush-timer", config.flush_interval, self.flush)
        self._close_lock = Lock()
        self._started = False
        self._closed = False

        (dispatcher_class or EventDispatcher)(self._inbox, config, http)

    def start(self):
        with self._close_lock:
            if self._started or self._closed:
                return
            self._started = True
        self._flush_timer.start()

    def send_event(self, name: str, attributes: Mapping[str, Any]):
        self._post_to_inbox(TransportMessage('event', _output_event(name, attributes)))

    def flush(self):
        self._post_to_inbox(TransportMessage('flush', None))

    def stop(self):
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._flush_timer.stop()
        self.flush()
        # not _post_to_inbox: shutdown must wait for room in the inbox
        self._post_message_and_wait('stop')

    def _post_to_inbox(self, message):
        try:
            self._inbox.put(message, block=False)
        except queue.Full:
            if not self._inbox_full:
                # racy, but the worst case is an extra log line
                self._inbox_full = True
                log.warning("Events are being produced faster than they can be delivered; some events will be dropped")

    # Used only in tests
    def _wait_until_inactive(self):
        self._post_message_and_wait('test_sync')

    def _post_message_and_wait(self, type):
        reply = Event()
        self._inbox.put(TransportMessage(type, reply))
        reply.wait()

    # These magic methods allow use of the "with" block in tests
    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.stop()


def _post_events_with_retry(http_client, config, body, events_description):
    hdrs = _headers(config)
    if config.enable_event_compression:
        hdrs['Content-Encoding'] = 'gzip'
    uri = config.events_uri
    context = "posting %s to %s" % (events_description, redact_access_token(uri))
    data = gzip.compress(bytes(body, 'utf-8')) if config.enable_event_compression else body
    can_retry = True
    while True:
        next_action_message = "will retry" if can_retry else "some events were dropped"
        try:
            r = http_client.request('POST', uri, headers=hdrs, body=data, timeout=urllib3.Timeout(connect=config.http.connect_timeout, read=config.http.read_timeout), retries=0)
            if r.status < 300:
                return r
            recoverable = check_if_error_is_recoverable_and_log(context, r.status, None, next_action_message)
            if not recoverable:
                return r
        except Exception as e:
            check_if_error_is_recoverable_and_log(context, None, str(e), next_action_message)
        if not can_retry:
            return None
        can_retry = False
        # fixed delay of 1 second for event retries
        time.sleep(1)
