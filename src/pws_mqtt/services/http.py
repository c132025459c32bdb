"""
Shared HTTP session factory.

Builds a pre-configured ``requests.Session`` with a retry adapter mounted, a
default timeout injected into every request, and default headers.

The weather client uses ``NO_RETRY``: attempts and backoff are owned by the
station retrier, so the transport must fail fast and report every failure.

Usage::

    from pws_mqtt.services.http import create_session

    s = create_session(headers={"User-Agent": "..."})
    resp = s.get("https://api.example.com/v1/data")
    resp.raise_for_status()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

if TYPE_CHECKING:
    from collections.abc import Mapping

#: Transient-error retry strategy for general use.
DEFAULT_RETRY = Retry(
    total=4,
    backoff_factor=2,  # 0s, 2s, 4s, 8s between retries
    status_forcelist=[429, 502, 503, 504],
    allowed_methods=["GET", "HEAD", "OPTIONS"],
    raise_on_status=False,  # let resp.raise_for_status() handle it
)

#: Single attempt, no transport-level retries.
NO_RETRY = Retry(total=0, redirect=3, raise_on_status=False)

DEFAULT_TIMEOUT = 30  # seconds

USER_AGENT = "pws-mqtt/0.1"


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    headers: Mapping[str, str] | None = None,
) -> requests.Session:
    """
    Build a ``requests.Session`` with retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``DEFAULT_RETRY``).
        timeout: Default timeout applied to every request.
        headers: Default headers; replaces the stock ``User-Agent`` if given.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = USER_AGENT
    if headers:
        s.headers.update(headers)

    # Wrap send to inject a default timeout so callers don't need to
    # remember to pass ``timeout=`` every time.
    _original_send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = timeout
        return _original_send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s
