"""
HTTP session setup for the crawler.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

import requests
import urllib3

from dirspy.core import ConfigError

DEFAULT_USER_AGENT = "dirspy/1.0"


class ReconSession(requests.Session):
    """
    Session that hands its own ``verify`` and ``proxies`` to every request.

    Plain session attributes lose to ``REQUESTS_CA_BUNDLE``, ``CURL_CA_BUNDLE``
    and ``HTTP(S)_PROXY`` from the environment; per-request values do not.
    Without an explicit proxy the environment proxies still apply.
    """

    def request(self, method, url, *args, **kwargs):
        kwargs.setdefault("verify", self.verify)
        if self.proxies:
            kwargs.setdefault("proxies", dict(self.proxies))
        return super().request(method, url, *args, **kwargs)


def validate_proxy_url(proxy: str) -> str:
    """Accept any proxy URL with a scheme and a host (http, https, socks5h, ...)."""
    try:
        parsed = urlparse(proxy)
        host = parsed.hostname
    except ValueError as e:
        raise ConfigError(f"Invalid proxy URL: {proxy} ({e})") from e

    if not parsed.scheme or not host:
        raise ConfigError(f"Invalid proxy URL: {proxy!r} (expected scheme://host[:port])")
    return proxy


def build_session(
    proxy: Optional[str] = None,
    user_agent: str = DEFAULT_USER_AGENT,
    verify_tls: bool = False,
) -> requests.Session:
    """
    Build the session used for every GET of a traversal.

    Certificate validation is off by default so the crawler works against
    self-signed targets and through intercepting proxies.

    Raises:
        ConfigError: if ``proxy`` has no scheme or no host.
    """
    session = ReconSession()
    session.headers["User-Agent"] = user_agent
    session.verify = verify_tls

    if not verify_tls:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    if proxy:
        validate_proxy_url(proxy)
        session.proxies = {"http": proxy, "https": proxy}

    return session
