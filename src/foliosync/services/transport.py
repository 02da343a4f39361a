"""HTTP transport for the portfolio REST API.

``AiohttpTransport`` implements the ``Transport`` protocol over a shared
``aiohttp.ClientSession``. Bodies are encoded with orjson. A request runs
in its own task so that cancelling the ``CancellationToken`` aborts it
without cancelling the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import aiohttp
import orjson

from foliosync.config.models import APISettings
from foliosync.services.cancellation import CancellationToken
from foliosync.shared.constants import HTTPMethod, NetworkConfig
from foliosync.shared.errors import (
    ErrorCode,
    ErrorContext,
    RequestCancelledError,
    TransportError,
)
from foliosync.shared.logging import log_api_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Status and raw body of an HTTP response."""

    status: int
    content: bytes = b""

    @property
    def ok(self) -> bool:
        """Whether the status is 2xx."""
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON; an empty body decodes to None.

        Raises:
            orjson.JSONDecodeError: If the body is not valid JSON
        """
        if not self.content:
            return None
        return orjson.loads(self.content)


class AiohttpTransport:
    """aiohttp-backed transport.

    Args:
        base_url: Scheme and host of the backend, e.g. ``http://localhost:3000``.
        timeout: Total timeout per request in seconds.
        headers: Extra headers sent with every request.
        session: Optional pre-built session (owned by the caller).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = NetworkConfig.DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers: dict[str, str] = {
            "User-Agent": NetworkConfig.USER_AGENT,
            "Accept": NetworkConfig.ACCEPT_JSON,
        }
        if headers:
            self.headers.update(headers)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: APISettings) -> AiohttpTransport:
        """Build a transport from API settings."""
        headers = {"User-Agent": settings.user_agent}
        if settings.session_cookie:
            headers["Cookie"] = settings.session_cookie
        return cls(settings.base_url, timeout=settings.timeout_seconds, headers=headers)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers,
            )
            self._owns_session = True
            logger.debug("aiohttp.ClientSession created for %s", self.base_url)
        return self._session

    async def request(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> TransportResponse:
        """Perform a request, aborting it if ``token`` is cancelled.

        Raises:
            RequestCancelledError: If the token was cancelled before or during the call
            TransportError: On connection errors and timeouts
        """
        if token is not None and token.cancelled:
            raise self._cancelled(method, path, token)

        start = time.monotonic()
        task = asyncio.ensure_future(self._send(method, path, body))
        remove = token.add_callback(task.cancel) if token is not None else None
        try:
            response = await task
        except asyncio.CancelledError:
            if token is not None and token.cancelled:
                raise self._cancelled(method, path, token) from None
            raise
        finally:
            if remove is not None:
                remove()

        log_api_call(
            logger,
            endpoint=path,
            method=method,
            status_code=response.status,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return response

    async def _send(self, method: str, path: str, body: Any | None) -> TransportResponse:
        session = self._get_session()
        headers: dict[str, str] = {}
        data: bytes | None = None

        if method == HTTPMethod.GET:
            headers["Cache-Control"] = NetworkConfig.NO_CACHE
        if body is not None:
            data = orjson.dumps(body)
            headers["Content-Type"] = NetworkConfig.CONTENT_TYPE_JSON

        try:
            async with session.request(method, f"{self.base_url}{path}", data=data, headers=headers) as response:
                content = await response.read()
                return TransportResponse(status=response.status, content=content)
        except asyncio.TimeoutError as e:
            raise TransportError(
                code=ErrorCode.API_TIMEOUT,
                message=f"{method} {path} timed out after {self.timeout}s",
                context=ErrorContext(operation="transport_request", additional_data={"path": path}),
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                code=ErrorCode.NETWORK_ERROR,
                message=f"{method} {path} failed: {e!s}",
                context=ErrorContext(operation="transport_request", additional_data={"path": path}),
                original_error=e,
            ) from e

    @staticmethod
    def _cancelled(method: str, path: str, token: CancellationToken) -> RequestCancelledError:
        return RequestCancelledError(
            code=ErrorCode.OPERATION_CANCELLED,
            message=f"{method} {path} aborted",
            context=ErrorContext(
                operation="transport_request",
                additional_data={"path": path, "sequence": token.sequence},
            ),
        )

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("aiohttp.ClientSession closed")
        self._session = None

    async def __aenter__(self) -> AiohttpTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["AiohttpTransport", "TransportResponse"]
