from os import environ
from typing import Optional
from urllib.parse import urlparse

import certifi
import urllib3

from navevents.version import VERSION


def _user_agent(config) -> str:
    return '%s/%s' % (config.user_agent_base, VERSION)


def _base_headers(config):
    return {'User-Agent': _user_agent(config)}


def _http_factory(config):
    return HTTPFactory(config.http)


class HTTPFactory:
    def __init__(self, http_config):
        self.__http_config = http_config

    def create_pool_manager(self, num_pools, target_base_uri):
        proxy_url = self.__http_config.http_proxy or _get_proxy_url(target_base_uri)

        if self.__http_config.disable_ssl_verification:
            cert_reqs = 'CERT_NONE'
            ca_certs = None
        else:
            cert_reqs = 'CERT_REQUIRED'
            ca_certs = self.__http_config.ca_certs or certifi.where()

        if proxy_url is None:
            return urllib3.PoolManager(num_pools=num_pools, cert_reqs=cert_reqs, ca_certs=ca_certs)

        url = urllib3.util.parse_url(proxy_url)
        proxy_headers = None if url.auth is None else urllib3.util.make_headers(proxy_basic_auth=url.auth)
        return urllib3.ProxyManager(proxy_url, num_pools=num_pools, cert_reqs=cert_reqs, ca_certs=ca_certs, proxy_headers=proxy_headers)


def _get_proxy_url(collector_uri: Optional[str]) -> Optional[str]:
    """
    Picks the proxy for the collector from the https_proxy or http_proxy environment variable,
    depending on the collector's scheme. A ``no_proxy`` entry matching the collector host (with
    an optional ``:port``), or ``no_proxy=*``, disables the proxy.
    """
    if collector_uri is None:
        return None

    parsed = urlparse(collector_uri)
    is_https = parsed.scheme == 'https'
    host = parsed.hostname or ''
    port = parsed.port or (443 if is_https else 80)

    proxy_url = environ.get('https_proxy' if is_https else 'http_proxy')
    no_proxy = environ.get('no_proxy', '').strip()
    if proxy_url is None or no_proxy == '*':
        return None

    for entry in (e.strip() for e in no_proxy.split(',')):
        if entry == '':
            continue
        entry_host, _, entry_port = entry.partition(':')
        if entry_host and host.endswith(entry_host) and (entry_port == '' or int(entry_port) == port):
            return None

    return proxy_url
