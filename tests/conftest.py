from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Callable

import pytest
from aiohttp import web
from fake_daemon import FakeDaemon

from aiodockerapi.docker import Docker


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("DOCKER_HOST", "DOCKER_API_VERSION", "DOCKER_TLS_VERIFY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
async def daemon() -> AsyncIterator[FakeDaemon]:
    fake = FakeDaemon()
    runner = web.AppRunner(fake.make_app())
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    assert site._server is not None
    port = site._server.sockets[0].getsockname()[1]  # type: ignore
    fake.url = f"tcp://127.0.0.1:{port}"
    try:
        yield fake
    finally:
        await runner.cleanup()


@pytest.fixture
async def make_docker(daemon: FakeDaemon) -> AsyncIterator[Callable[..., Docker]]:
    clients: list[Docker] = []

    def _make(**kwargs: Any) -> Docker:
        docker = Docker(url=daemon.url, **kwargs)
        clients.append(docker)
        return docker

    try:
        yield _make
    finally:
        for client in clients:
            await client.close()


@pytest.fixture
async def docker(make_docker: Callable[..., Docker]) -> Docker:
    return make_docker()
