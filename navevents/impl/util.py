import logging
import time
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse, urlunparse

import pyrfc3339

from navevents.impl.http import _base_headers


def current_time_millis() -> int:
    return int(time.time() * 1000)


def timestamp_rfc3339(millis: Optional[int]) -> Optional[str]:
    """
    Formats an epoch-milliseconds timestamp the way the collector expects dates, or returns
    None for a missing timestamp.
    """
    if millis is None:
        return None
    return pyrfc3339.generate(datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc), microseconds=True)


log = logging.getLogger('navevents')


_RETRYABLE_STATUSES = [400, 408, 429]


def _headers(config):
    base_headers = _base_headers(config)
    base_headers.update({'Content-Type': "application/json"})
    return base_headers


def is_http_error_recoverable(status):
    if status >= 400 and status < 500:
        return status in _RETRYABLE_STATUSES  # all other 4xx besides these are unrecoverable
    return True  # all other errors are recoverable


def http_error_description(status):
    return "HTTP error %d%s" % (status, " (invalid access token)" if (status == 401 or status == 403) else "")


def http_error_message(status, context, retryable_message="will retry"):
    return "Received %s for %s - %s" % (http_error_description(status), context, retryable_message if is_http_error_recoverable(status) else "giving up permanently")


def check_if_error_is_recoverable_and_log(error_context, status_code, error_desc, recoverable_message):
    if status_code and (error_desc is None):
        error_desc = http_error_description(status_code)
    if status_code and not is_http_error_recoverable(status_code):
        log.error("Error %s (giving up permanently): %s" % (error_context, error_desc))
        return False
    log.warning("Error %s (%s): %s" % (error_context, recoverable_message, error_desc))
    return True


def redact_access_token(url: str) -> str:
    """
    Replace any embedded password or ``access_token`` query parameter in the provided URL with
    'xxxx'. This is useful for ensuring the collector token isn't logged.
    """
    parts = urlparse(url)
    if parts.password is not None:
        parts = parts._replace(netloc=parts.netloc.replace(parts.password, "xxxx"))

    if 'access_token=' in parts.query:
        query = '&'.join('access_token=xxxx' if p.startswith('access_token=') else p for p in parts.query.split('&'))
        parts = parts._replace(query=query)

    return urlunparse(parts)
