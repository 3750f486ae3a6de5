"""Process entry point: serve the account API on a listen address."""
from __future__ import annotations

import asyncio
import logging

from uvicorn import Config, Server

from ..config import ServiceSettings, parse_listen_addr
from .main import create_app


logger = logging.getLogger(__name__)


async def serve(listen_addr: str | None = None, settings: ServiceSettings | None = None) -> None:
    settings = settings or ServiceSettings.from_env()
    host, port = parse_listen_addr(listen_addr or settings.listen_addr)
    app = create_app(settings=settings)
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    logger.info("account_api_listening", extra={"host": host, "port": port})
    await Server(config).serve()


def run(listen_addr: str | None = None) -> None:
    asyncio.run(serve(listen_addr))
