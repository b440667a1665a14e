"""
Outbound HTTP calls to OAuth providers.

This module holds the transport interface the flow handlers depend on, its
requests-based implementation, the provider URL construction rules, and a
small client that performs a single-attempt call and decodes the JSON body.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Mapping
from urllib.parse import quote
import json
import logging

import requests
from requests.exceptions import RequestException, ConnectionError, Timeout


GET_TIMEOUT_MS = 10000
POST_TIMEOUT_MS = 5000

# Values are expected to arrive URL-encoded already (redirect_uri is stored
# that way), so existing escapes are kept and only unsafe characters encoded.
QUERY_VALUE_SAFE = "%/:@!$'()*,;"


logger = logging.getLogger(__name__)


@dataclass
class HTTPResponse:
    """Status code and raw body of a provider response."""
    status_code: int
    body: bytes = b''

    @property
    def is_success(self) -> bool:
        return self.status_code // 100 == 2


class HTTPTransport(ABC):
    """Sends one HTTP request. Transport failures raise RequestException."""

    @abstractmethod
    def send(self, url: str, method: str, body: Optional[Mapping[str, Any]],
             timeout_ms: int) -> HTTPResponse:
        pass


class RequestsTransport(HTTPTransport):
    """HTTP transport backed by a requests session."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers['Accept'] = 'application/json'

    def send(self, url: str, method: str, body: Optional[Mapping[str, Any]],
             timeout_ms: int) -> HTTPResponse:
        response = self.session.request(
            method,
            url,
            data=dict(body) if body is not None else None,
            timeout=timeout_ms / 1000.0,
            allow_redirects=True
        )
        return HTTPResponse(status_code=response.status_code, body=response.content)


def add_query_args(url: str, args: Optional[Mapping[str, Any]]) -> str:
    """
    Append parameters to a URL's query string.

    Args:
        url: Base URL, which may already carry a query string
        args: Parameters to append; None values are skipped

    Returns:
        URL with the parameters appended in order
    """
    if not args:
        return url

    pairs = [
        f"{quote(str(key), safe='')}={quote(str(value), safe=QUERY_VALUE_SAFE)}"
        for key, value in args.items()
        if value is not None
    ]
    if not pairs:
        return url

    separator = '&' if '?' in url else '?'
    return url + separator + '&'.join(pairs)


def build_api_url(base_url: str, path: Optional[str],
                  args: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    """
    Build ``<base_url>/<path>`` with optional query parameters.

    Leading and trailing slashes and backslashes are trimmed from ``path``.

    Returns:
        The URL, or None if ``path`` is empty
    """
    if not path:
        return None

    path = path.strip('\\/')
    return add_query_args(f"{base_url.rstrip('/')}/{path}", args)


class RemoteApiClient:
    """
    Single-attempt calls to a provider API returning decoded JSON.

    Any non-2xx status, transport error, timeout or undecodable body is
    reported as None. Retries, if wanted, belong to the transport.
    """

    def __init__(self, transport: HTTPTransport):
        self.transport = transport

    def get_remote_api_data(self, base_url: str, service: Optional[str],
                            args: Optional[Mapping[str, Any]] = None,
                            post: bool = False) -> Optional[Any]:
        """
        Call ``<base_url>/<service>`` and decode the JSON response.

        Args:
            base_url: Provider base URL
            service: Service path
            args: Request parameters, sent as the form body for POST and as
                the query string otherwise
            post: Whether to send a POST request

        Returns:
            Decoded JSON body, or None on any failure
        """
        args = dict(args or {})

        if post:
            url = build_api_url(base_url, service)
            method, body, timeout_ms = 'POST', args, POST_TIMEOUT_MS
        else:
            url = build_api_url(base_url, service, args)
            method, body, timeout_ms = 'GET', None, GET_TIMEOUT_MS

        if url is None:
            logger.error(f"No service path given for request to {base_url}")
            return None

        try:
            response = self.transport.send(url, method, body, timeout_ms)
        except Timeout:
            logger.error(f"{method} {url} timed out after {timeout_ms} ms")
            return None
        except ConnectionError as e:
            logger.error(f"Connection to {url} failed: {e}")
            return None
        except RequestException as e:
            logger.error(f"{method} {url} failed: {e}", exc_info=True)
            return None

        if not response.is_success:
            logger.warning(f"{method} {url} returned HTTP {response.status_code}")
            return None

        try:
            return json.loads(response.body)
        except (ValueError, TypeError) as e:
            logger.warning(f"Undecodable response body from {url}: {e}")
            return None
