"""Test doubles and builders shared by the FolioSync tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Union

import orjson

from foliosync.services import CancellationToken, TransportResponse
from foliosync.shared.errors import ErrorCode, ErrorContext, RequestCancelledError
from foliosync.shared.models import Skill, now_ms

SKILLS_PATH = "/api/admin/skills"

Reply = Union[TransportResponse, BaseException, "asyncio.Future[TransportResponse]"]


def json_response(payload: Any, status: int = 200) -> TransportResponse:
    """Build a response with an orjson-encoded body."""
    return TransportResponse(status=status, content=orjson.dumps(payload))


def skill(record_id: str, name: str, **fields: Any) -> Skill:
    return Skill(id=record_id, name=name, **fields)


@dataclass
class Call:
    method: str
    path: str
    body: Any
    token: CancellationToken | None


class FakeClock:
    """Millisecond clock moved by hand, starting at the current time."""

    def __init__(self, start: int | None = None) -> None:
        self.now = now_ms() if start is None else start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTransport:
    """Scriptable transport.

    Replies are queued per ``(method, path)``; the last queued reply repeats.
    A reply is a response, an exception to raise, or a future the test
    resolves later. With ``honor_cancellation`` a cancelled token aborts a
    pending future with ``RequestCancelledError``; without it the request
    completes regardless, like a transport that cannot abort.
    """

    def __init__(self, *, honor_cancellation: bool = True) -> None:
        self.honor_cancellation = honor_cancellation
        self.calls: list[Call] = []
        self.closed = False
        self._replies: dict[tuple[str, str], list[Reply]] = {}

    def reply(self, method: str, path: str, *replies: Reply) -> None:
        self._replies.setdefault((method, path), []).extend(replies)

    def pending(self, method: str, path: str) -> asyncio.Future[TransportResponse]:
        """Queue a reply the test resolves later and return its future."""
        future: asyncio.Future[TransportResponse] = asyncio.get_running_loop().create_future()
        self.reply(method, path, future)
        return future

    def calls_to(self, method: str, path: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.path == path]

    async def request(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> TransportResponse:
        self.calls.append(Call(method, path, body, token))
        queue = self._replies.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {path}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(reply, asyncio.Future):
            return await self._wait(reply, token)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def _wait(
        self,
        future: asyncio.Future[TransportResponse],
        token: CancellationToken | None,
    ) -> TransportResponse:
        if token is None or not self.honor_cancellation:
            return await asyncio.shield(future)

        waiter: asyncio.Future[TransportResponse] = asyncio.get_running_loop().create_future()

        def relay(source: asyncio.Future[TransportResponse]) -> None:
            if waiter.done():
                return
            if source.exception() is not None:
                waiter.set_exception(source.exception())  # type: ignore[arg-type]
            else:
                waiter.set_result(source.result())

        def abort() -> None:
            if not waiter.done():
                waiter.set_exception(
                    RequestCancelledError(
                        ErrorCode.OPERATION_CANCELLED,
                        "aborted",
                        ErrorContext(operation="transport_request"),
                    ),
                )

        future.add_done_callback(relay)
        remove = token.add_callback(abort)
        try:
            return await waiter
        finally:
            remove()

    async def close(self) -> None:
        self.closed = True


