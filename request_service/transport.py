"""HTTPXTransport - A ready-made transport callback built on httpx.

RequestService only resolves requests; something has to send them. This
module provides that something for plain HTTP APIs:

    async with HTTPXTransport() as transport:
        service = RequestService("https://en.wiktionary.org", transport)
        response = await service.send("GET /w", {"query": {"search": "example"}})

Non-2xx responses are returned with ok=False, not raised. Connection-level
failures are raised as RequestError with kind TRANSPORT_FAILURE.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any

import httpx

from request_service.errors import ErrorKind, RequestError
from request_service.models import RequestDescriptor, ResponseDescriptor, ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "GET"


def _sanitize_header_value(value: str) -> str:
    """Replace non-ASCII characters with '?'.

    HTTP header values must be ASCII per RFC 7230; httpx refuses anything else.
    """
    return value.encode("ascii", errors="replace").decode("ascii")


class HTTPXTransport:
    """Sends RequestDescriptors with an httpx.AsyncClient.

    Usage:
        transport = HTTPXTransport(timeout=10.0)
        try:
            response = await transport(descriptor)
        finally:
            await transport.aclose()
    """

    def __init__(
        self,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        ca_bundle: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            headers: Default headers sent with every request. Per-request
                     headers override them.
            timeout: Request timeout in seconds.
            verify_ssl: Verify server TLS certificates.
            ca_bundle: Path to a CA bundle used for verification.
            client: Pre-built client. When given, the other settings are
                    ignored and the caller owns the client's lifetime.
        """
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(**self._build_client_kwargs(headers, timeout, verify_ssl, ca_bundle))
        self._client = client

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "HTTPXTransport":
        return cls(
            headers=config.headers,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            ca_bundle=config.ca_bundle,
        )

    async def __aenter__(self) -> "HTTPXTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _build_client_kwargs(
        headers: dict[str, str] | None,
        timeout: float,
        verify_ssl: bool,
        ca_bundle: str | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "headers": headers or {},
            "timeout": timeout,
        }

        if ca_bundle:
            kwargs["verify"] = ssl.create_default_context(cafile=ca_bundle)
        elif not verify_ssl:
            kwargs["verify"] = False
        # else: use httpx default (True)

        return kwargs

    async def __call__(self, request: RequestDescriptor) -> ResponseDescriptor:
        """Send one request and convert the response.

        Raises:
            RequestError: With kind TRANSPORT_FAILURE on timeout, connection
                failure, or any other httpx request error.
        """
        method = request.method or DEFAULT_METHOD
        headers = {key: _sanitize_header_value(value) for key, value in request.headers.items()}

        # dict/list bodies go as JSON, str/bytes as raw content
        content: bytes | None = None
        json_body: Any = None
        if isinstance(request.body, (dict, list)):
            json_body = request.body
        elif isinstance(request.body, str):
            content = request.body.encode("utf-8")
        elif isinstance(request.body, bytes):
            content = request.body
        elif request.body is not None:
            content = str(request.body).encode("utf-8")

        try:
            http_response = await self._client.request(
                method=method,
                url=request.url,
                headers=headers if headers else None,
                content=content,
                json=json_body,
            )
        except httpx.TimeoutException as e:
            raise RequestError(
                ErrorKind.TRANSPORT_FAILURE, f"Request timeout: {method} {request.url}: {e}"
            ) from e
        except httpx.ConnectError as e:
            raise RequestError(
                ErrorKind.TRANSPORT_FAILURE, f"Connection error: {method} {request.url}: {e}"
            ) from e
        except httpx.RequestError as e:
            raise RequestError(
                ErrorKind.TRANSPORT_FAILURE, f"Request error: {method} {request.url}: {e}"
            ) from e

        logger.debug("%s %s -> %d", method, request.url, http_response.status_code)
        return self._convert_response(http_response)

    def _convert_response(self, response: httpx.Response) -> ResponseDescriptor:
        """Convert an httpx Response to a ResponseDescriptor.

        Body by content-type: JSON -> parsed value, text/* -> str,
        anything else -> bytes. Repeated headers are joined with ", ".
        """
        headers: dict[str, str] = {}
        for key, value in response.headers.multi_items():
            key_lower = key.lower()
            if key_lower in headers:
                headers[key_lower] = headers[key_lower] + ", " + value
            else:
                headers[key_lower] = value

        body: Any = None
        content_type = response.headers.get("content-type", "").lower()

        if response.content:
            if "json" in content_type:
                try:
                    body = response.json()
                except ValueError:
                    # Not valid JSON despite content-type
                    body = response.text
            elif content_type.startswith("text/"):
                body = response.text
            else:
                body = response.content

        return ResponseDescriptor(
            ok=response.is_success,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=headers,
            body=body,
        )
