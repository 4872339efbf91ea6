"""Shared fixtures: a fake VDAB server behind httpx.MockTransport."""

from __future__ import annotations

import inspect
import time
from typing import Any, Callable, List

import httpx
import pytest
import pytest_asyncio

from vacancies.clients.credentials import MemoryCredentialStore
from vacancies.clients.gateway import RequestGateway
from vacancies.config import Settings

BASE_URL = "https://api.test"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear local VDAB settings that could leak into tests on developer machines."""
    for key in (
        "VDAB_BASE_URL",
        "VDAB_API_KEY",
        "VDAB_RATE_LIMIT",
        "VDAB_TIMEOUT",
        "VDAB_QUEUE_TIMEOUT",
        "VDAB_PINNED_CERT",
    ):
        monkeypatch.delenv(key, raising=False)


class FakeServer:
    """Records every request (and when it arrived) and answers through `handler`."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.handler = handler
        self.requests: List[httpx.Request] = []
        self.times: List[float] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.times.append(time.monotonic())
        result = self.handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    @property
    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


def ok(data: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=data)


def paged_search(total: int) -> Callable[[httpx.Request], httpx.Response]:
    """A /vacatures endpoint with `total` results, honouring offset/limit."""

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params.get("offset", "0"))
        limit = int(request.url.params.get("limit", "10"))
        items = [
            {"id": str(i), "title": f"Vacancy {i}"}
            for i in range(offset, min(offset + limit, total))
        ]
        return ok({"items": items, "total": total, "limit": limit, "offset": offset, "count": len(items)})

    return handler


def build_gateway(handler, *, credentials=None, clock=time.monotonic, **settings) -> "tuple[RequestGateway, FakeServer]":
    server = FakeServer(handler)
    gateway = RequestGateway(
        Settings(**{"base_url": BASE_URL, "rate_limit": 1000, **settings}),
        credentials if credentials is not None else MemoryCredentialStore(),
        transport=httpx.MockTransport(server),
        clock=clock,
    )
    return gateway, server


@pytest_asyncio.fixture
async def make_gateway():
    created: List[RequestGateway] = []

    def factory(handler, **kwargs):
        gateway, server = build_gateway(handler, **kwargs)
        created.append(gateway)
        return gateway, server

    yield factory
    for gateway in created:
        await gateway.aclose()
