"""
Warden API - Transport
Moves bytes between this site and the Warden server.

The crypto core only needs two calls (GET a path, POST a body to a path),
so any object implementing Transport can be plugged in. HttpTransport is
the default, built on httpx.
"""

import logging
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import httpx

from .exceptions import RemoteCommunicationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class TransportResponse:
    """Status line and body of a response from Warden."""
    status_code: int
    reason: str
    content: bytes


class Transport(ABC):
    """Capability interface for talking to Warden."""

    @abstractmethod
    def get(self, path: str) -> TransportResponse:
        pass

    @abstractmethod
    def post(self, path: str, body: str) -> TransportResponse:
        pass


def ensure_ok(response: TransportResponse) -> TransportResponse:
    """
    Reject any response that is not a 200.

    Raises:
        RemoteCommunicationError: carrying the status code and reason phrase
    """
    if response.status_code != 200:
        raise RemoteCommunicationError(
            f"Unable to communicate with Warden ({response.status_code}) {response.reason}",
            status_code=response.status_code,
            reason=response.reason,
        )
    return response


class HttpTransport(Transport):
    """
    HTTP(S) transport to a Warden server.

    Args:
        warden_url: Base URL of the server, e.g. "https://warden.example.com"
        username: Basic auth username (basic auth is only sent when set)
        password: Basic auth password
        certificate_path: Path to a PEM client certificate (optional)
        timeout: Request timeout in seconds
        http_transport: httpx transport to send through (e.g. httpx.MockTransport)
    """

    def __init__(
        self,
        warden_url: str,
        username: str = "",
        password: str = "",
        certificate_path: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        http_transport: Optional[httpx.BaseTransport] = None,
    ):
        self.warden_url = warden_url.rstrip('/')
        self.username = username
        self.password = password
        self.certificate_path = certificate_path
        self.timeout = timeout
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None

    def _auth(self) -> Optional[Tuple[str, str]]:
        if self.username:
            return (self.username, self.password)
        return None

    def _verify(self) -> Union[bool, ssl.SSLContext]:
        if not self.certificate_path:
            return True
        context = ssl.create_default_context()
        try:
            context.load_cert_chain(self.certificate_path)
        except (OSError, ssl.SSLError) as e:
            logger.warning(f"Unable to load client certificate {self.certificate_path}: {e}")
            raise RemoteCommunicationError(
                f"Unable to load client certificate {self.certificate_path}: {e}",
                status_code=None,
                reason=str(e),
            ) from e
        return context

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                auth=self._auth(),
                verify=self._verify(),
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._http_transport,
            )
        return self._client

    def _send(self, method: str, path: str, body: Optional[str] = None) -> TransportResponse:
        url = f"{self.warden_url}{path}"
        try:
            if body is None:
                resp = self._get_client().request(method, url)
            else:
                resp = self._get_client().request(method, url, content=body.encode('utf-8'))
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise RemoteCommunicationError(
                f"Unable to communicate with Warden: {e}",
                status_code=None,
                reason=str(e),
            ) from e

        if resp.status_code != 200:
            logger.warning(f"{method} {url} returned {resp.status_code}")

        return TransportResponse(
            status_code=resp.status_code,
            reason=resp.reason_phrase,
            content=resp.content,
        )

    def get(self, path: str) -> TransportResponse:
        return self._send('GET', path)

    def post(self, path: str, body: str) -> TransportResponse:
        return self._send('POST', path, body)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            self._client.close()
            self._client = None
