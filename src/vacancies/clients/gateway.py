# src/vacancies/clients/gateway.py

"""
The single way out to the VDAB API.

Every call is queued, dispatched strictly in arrival order with at most one
call in flight, and spaced so the start of two consecutive calls is never
closer than 1 / rate_limit seconds. Credentials are read per request, and any
failure (network, timeout, non-2xx, bad JSON) comes back as an ApiError.

No retries happen here; wrap calls in a RetryPolicy if you want them.
"""

from __future__ import annotations
import asyncio
import contextlib
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, Optional

import httpx

from vacancies.clients.credentials import CredentialStore, MemoryCredentialStore
from vacancies.config import Settings
from vacancies.errors import (
    DECODE_ERROR,
    GATEWAY_CLOSED,
    TIMEOUT,
    ProtocolError,
    TransportError,
    normalize_error,
)
from vacancies.models import RequestDescriptor

logger = logging.getLogger(__name__)


class GatewayState(Enum):
    IDLE = "idle"
    DRAINING = "draining"


@dataclass(eq=False)
class QueuedRequest:
    descriptor: RequestDescriptor
    result: "asyncio.Future[Any]"


def _default_headers(settings: Settings) -> Dict[str, str]:
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": "vacancies/0.1",
        "X-Pinned-Cert": settings.pinned_cert,
    }


def _decode(response: httpx.Response, descriptor: RequestDescriptor) -> Any:
    try:
        data = response.json()
    except ValueError as e:  # JSONDecodeError, or UnicodeDecodeError for a non-UTF-8 body
        raise ProtocolError(
            DECODE_ERROR,
            f"Undecodable body from {descriptor.path}: {e}",
            details={"status": response.status_code, "body": response.text},
            status=response.status_code,
        ) from e
    if not isinstance(data, descriptor.response_type):
        raise ProtocolError(
            DECODE_ERROR,
            f"Expected a JSON {descriptor.response_type.__name__} from {descriptor.path}, "
            f"got {type(data).__name__}",
            details={"status": response.status_code, "body": data},
            status=response.status_code,
        )
    return data


class RequestGateway:
    """
    Rate-limited FIFO dispatcher around one httpx.AsyncClient.

    Instances are independent: each owns its queue, drain task and HTTP client.
    All state is touched from the event loop only, so no locks are needed.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credentials: Optional[CredentialStore] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or Settings()
        self.credentials = credentials or MemoryCredentialStore(self.settings.api_key)
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(self.settings.timeout),
            headers=_default_headers(self.settings),
            transport=transport,
        )
        self._queue: Deque[QueuedRequest] = deque()
        self._drain_task: Optional["asyncio.Task[None]"] = None
        self._in_flight: Optional[QueuedRequest] = None
        self._last_dispatch: Optional[float] = None
        self._closed = False
        self._clock = clock

    # ---- Observation ---------------------------------------------------------

    @property
    def state(self) -> GatewayState:
        if self._drain_task is not None and not self._drain_task.done():
            return GatewayState.DRAINING
        return GatewayState.IDLE

    @property
    def pending(self) -> int:
        """Requests waiting for their turn (the one in flight is not counted)."""
        return sum(1 for e in self._queue if e is not self._in_flight)

    # ---- Public API ----------------------------------------------------------

    async def enqueue_request(self, descriptor: RequestDescriptor, timeout: Optional[float] = None) -> Any:
        """
        Queue one call and wait for its decoded JSON body.

        `timeout` (default: settings.queue_timeout) bounds the total time spent
        queued plus in flight. Cancelling the awaiting task, or hitting that
        deadline, drops a request that has not been sent yet; a request already
        on the wire is left to finish and its result is thrown away.
        """
        if self._closed:
            raise TransportError(GATEWAY_CLOSED, "The request gateway is closed")

        entry = QueuedRequest(descriptor, asyncio.get_running_loop().create_future())
        self._queue.append(entry)
        self._ensure_draining()

        deadline = timeout if timeout is not None else self.settings.queue_timeout
        try:
            if deadline is None:
                return await entry.result
            return await asyncio.wait_for(entry.result, deadline)
        except asyncio.TimeoutError:
            where = "in flight" if entry is self._in_flight else "queued"
            self._discard(entry)
            raise TransportError(
                TIMEOUT,
                f"{descriptor.method} {descriptor.path} timed out after {deadline}s while {where}",
            ) from None
        except asyncio.CancelledError:
            self._discard(entry)
            raise

    async def aclose(self) -> None:
        """Stop draining, fail whatever is still queued and close the HTTP client."""
        self._closed = True
        leftover = list(self._queue)
        task = self._drain_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._queue.clear()
        for entry in leftover:
            if not entry.result.done():
                entry.result.set_exception(
                    TransportError(GATEWAY_CLOSED, "The request gateway closed before the request completed")
                )
        await self._client.aclose()

    async def __aenter__(self) -> "RequestGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---- Drain loop ----------------------------------------------------------

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    def _discard(self, entry: QueuedRequest) -> None:
        # The in-flight entry is removed by the drain loop once its call settles.
        if entry is not self._in_flight and entry in self._queue:
            self._queue.remove(entry)

    async def _wait_for_slot(self) -> None:
        if self._last_dispatch is None:
            return
        remaining = self._last_dispatch + self.settings.dispatch_interval - self._clock()
        if remaining > 0:
            await asyncio.sleep(remaining)

    async def _drain(self) -> None:
        logger.debug("Gateway draining (%d queued)", len(self._queue))
        try:
            while self._queue:
                await self._wait_for_slot()
                if not self._queue:
                    break
                entry = self._queue[0]
                if entry.result.done():
                    self._queue.popleft()
                    continue

                self._in_flight = entry
                self._last_dispatch = self._clock()
                try:
                    await self._execute(entry)
                finally:
                    self._in_flight = None
                    if self._queue and self._queue[0] is entry:
                        self._queue.popleft()
        finally:
            self._drain_task = None
            logger.debug("Gateway idle")

    def _credential_headers(self) -> Dict[str, str]:
        try:
            token = self.credentials.get()
        except Exception as e:
            logger.warning("Credential store unavailable (%s); sending request unauthenticated", e)
            token = None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _send(self, d: RequestDescriptor) -> Any:
        response = await self._client.request(
            d.method,
            d.path,
            params=d.query_params(),
            json=d.body,
            headers=self._credential_headers(),
        )
        response.raise_for_status()  # raises httpx.HTTPStatusError for 4xx/5xx
        return _decode(response, d)

    async def _execute(self, entry: QueuedRequest) -> None:
        d = entry.descriptor
        logger.debug("Dispatching %s %s %s", d.method, d.path, d.query_params())
        try:
            # httpx only bounds each connect/read/write step; this bounds the whole call.
            data = await asyncio.wait_for(self._send(d), self.settings.timeout)
        except Exception as e:
            if isinstance(e, asyncio.TimeoutError):
                error = TransportError(TIMEOUT, f"{d.method} {d.path} took longer than {self.settings.timeout}s")
            else:
                error = normalize_error(e)
            logger.warning("%s %s failed: %s %s", d.method, d.path, error.code, error.message)
            if not entry.result.done():
                entry.result.set_exception(error)
            return

        if not entry.result.done():
            entry.result.set_result(data)
