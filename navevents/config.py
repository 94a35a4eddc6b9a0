"""
This submodule contains the :class:`Config` class for custom configuration of the navigation
events manager.
"""

from typing import Callable, Optional

from navevents.impl.util import log
from navevents.interfaces import EventTransport

DEFAULT_EVENTS_URI = 'https://events.mapbox.com'
EVENTS_PATH = '/events/v2'

DEFAULT_USER_AGENT = 'navigation-events-python'
DEFAULT_UI_USER_AGENT = 'navigation-events-ui-python'


class HTTPConfig:
    """Advanced HTTP configuration options for the default event transport.

    If you need to set these, construct an ``HTTPConfig`` instance and pass it as the ``http``
    parameter when you construct the main :class:`Config`.
    """

    def __init__(
        self,
        connect_timeout: float = 10,
        read_timeout: float = 15,
        http_proxy: Optional[str] = None,
        ca_certs: Optional[str] = None,
        disable_ssl_verification: bool = False,
    ):
        """
        :param connect_timeout: The connect timeout for network connections in seconds.
        :param read_timeout: The read timeout for network connections in seconds.
        :param http_proxy: Use a proxy when connecting to the collector, for example
          http://my-proxy.com:1234. This overrides any proxy given by an environment variable.
        :param ca_certs: If using a custom certificate authority, set this to the file path of the
          certificate bundle.
        :param disable_ssl_verification: If true, completely disables SSL verification and
          certificate verification for secure requests. This is unsafe and should not be used in
          a production environment.
        """
        self.__connect_timeout = connect_timeout
        self.__read_timeout = read_timeout
        self.__http_proxy = http_proxy
        self.__ca_certs = ca_certs
        self.__disable_ssl_verification = disable_ssl_verification

    @property
    def connect_timeout(self) -> float:
        return self.__connect_timeout

    @property
    def read_timeout(self) -> float:
        return self.__read_timeout

    @property
    def http_proxy(self) -> Optional[str]:
        return self.__http_proxy

    @property
    def ca_certs(self) -> Optional[str]:
        return self.__ca_certs

    @property
    def disable_ssl_verification(self) -> bool:
        return self.__disable_ssl_verification


class Config:
    """Configuration options for :class:`navevents.events_manager.EventsManager`.

    Create an instance of ``Config`` and pass it to the ``EventsManager`` constructor. There is
    no shared global configuration; each navigation session controller owns its own manager.
    """

    def __init__(
        self,
        access_token: str,
        events_uri: str = DEFAULT_EVENTS_URI,
        events_max_pending: int = 10000,
        flush_interval: float = 5,
        delays_event_flushing: bool = True,
        flush_delay_seconds: float = 20,
        past_locations_capacity: int = 40,
        send_events: Optional[bool] = None,
        offline: bool = False,
        uses_default_user_interface: bool = False,
        device_identifier: Optional[str] = None,
        event_transport_class: Optional[Callable[['Config'], EventTransport]] = None,
        enable_event_compression: bool = False,
        http: HTTPConfig = HTTPConfig(),
    ):
        """
        :param access_token: The token used to authenticate with the telemetry collector.
        :param events_uri: The base URL of the telemetry collector.
        :param events_max_pending: The capacity of the transport's event buffer. Events sent while
          the buffer is full are discarded.
        :param flush_interval: The number of seconds between automatic deliveries of the
          transport's buffer.
        :param delays_event_flushing: When true (the default), feedback and reroute events are held
          for ``flush_delay_seconds`` so that later updates can be attached before they are sent.
          When false they are sent on the next flush opportunity.
        :param flush_delay_seconds: How long, in seconds, a feedback or reroute event stays in the
          outstanding queue before it becomes eligible for sending. Negative values are treated
          as zero.
        :param past_locations_capacity: How many recent location samples each session remembers
          for attaching to feedback events.
        :param send_events: Whether or not to send events to the collector at all. By default,
          events will be sent.
        :param offline: Whether the manager runs without any network activity. Implies
          ``send_events=False``.
        :param uses_default_user_interface: Set by the bundled navigation UI; only changes the
          reported SDK identifier.
        :param device_identifier: An identifier for the device, reported as ``userId`` in
          feedback events.
        :param event_transport_class: A factory for an :class:`navevents.interfaces.EventTransport`
          implementation taking the config.
        :param enable_event_compression: Whether or not to gzip request bodies sent to the
          collector.
        :param http: Optional properties for customizing HTTP behavior. See :class:`HTTPConfig`.
        """
        self.__access_token = access_token
        self.__events_uri = events_uri.rstrip('/')
        self.__events_max_pending = events_max_pending
        self.__flush_interval = flush_interval
        self.__delays_event_flushing = delays_event_flushing
        self.__flush_delay_seconds = max(flush_delay_seconds, 0)
        self.__past_locations_capacity = max(past_locations_capacity, 1)
        if offline is True:
            send_events = False
        self.__send_events = True if send_events is None else send_events
        self.__offline = offline
        self.__uses_default_user_interface = uses_default_user_interface
        self.__device_identifier = device_identifier
        self.__event_transport_class = event_transport_class
        self.__enable_event_compression = enable_event_compression
        self.__http = http

    @property
    def access_token(self) -> str:
        return self.__access_token

    # for internal use only
    @property
    def events_base_uri(self) -> str:
        return self.__events_uri

    # for internal use only
    @property
    def events_uri(self) -> str:
        return '%s%s?access_token=%s' % (self.__events_uri, EVENTS_PATH, self.__access_token or '')

    @property
    def events_max_pending(self) -> int:
        return self.__events_max_pending

    @property
    def flush_interval(self) -> float:
        return self.__flush_interval

    @property
    def delays_event_flushing(self) -> bool:
        return self.__delays_event_flushing

    @property
    def flush_delay_seconds(self) -> float:
        return self.__flush_delay_seconds

    @property
    def flush_delay_millis(self) -> int:
        return int(self.__flush_delay_seconds * 1000)

    @property
    def past_locations_capacity(self) -> int:
        return self.__past_locations_capacity

    @property
    def send_events(self) -> bool:
        return self.__send_events

    @property
    def offline(self) -> bool:
        return self.__offline

    @property
    def uses_default_user_interface(self) -> bool:
        return self.__uses_default_user_interface

    @property
    def user_agent_base(self) -> str:
        return DEFAULT_UI_USER_AGENT if self.__uses_default_user_interface else DEFAULT_USER_AGENT

    @property
    def device_identifier(self) -> Optional[str]:
        return self.__device_identifier

    @property
    def event_transport_class(self) -> Optional[Callable[['Config'], EventTransport]]:
        return self.__event_transport_class

    @property
    def enable_event_compression(self) -> bool:
        return self.__enable_event_compression

    @property
    def http(self) -> HTTPConfig:
        return self.__http

    def _validate(self):
        if self.__offline is False and not self.__access_token:
            log.warning("Missing or blank access_token; events will be rejected by the collector")


__all__ = ['Config', 'HTTPConfig']
