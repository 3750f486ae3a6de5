from __future__ import annotations

import asyncio
import inspect
from typing import Any

import pytest


# Coroutine tests run on a private event loop, so the suite does not need the
# pytest-asyncio plugin. ``@pytest.mark.asyncio`` is accepted for readability.


def pytest_configure(config: Any) -> None:
    for marker in (
        "asyncio: run the coroutine test function on a fresh event loop",
        "unit: fast tests without external services",
        "security: credential and auth gate behaviour",
        "api: HTTP surface tests through the ASGI test client",
        "integration: tests that start a Postgres container",
    ):
        config.addinivalue_line("markers", marker)


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    if not inspect.iscoroutinefunction(pyfuncitem.obj):
        return None

    argnames = pyfuncitem._fixtureinfo.argnames
    kwargs = {name: pyfuncitem.funcargs[name] for name in argnames}

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(pyfuncitem.obj(**kwargs))
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True
