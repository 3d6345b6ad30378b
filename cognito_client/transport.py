"""
HTTP transport used for the token and JWKS endpoints.
The flow depends only on HttpTransport; HttpxTransport is the production implementation.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import httpx

from cognito_client.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        """Decode the body as JSON. Raises ValueError on malformed content."""
        return json.loads(self.body)


class HttpTransport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse: ...


class HttpxTransport:
    """Blocking transport on httpx. One request per call; no retries."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        try:
            r = httpx.request(method, url, headers=dict(headers or {}), content=body, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(f"{method} {url} failed: {e}") from e
        return HttpResponse(status_code=r.status_code, headers=dict(r.headers), body=r.content)
