from __future__ import annotations

import logging

from fastapi import FastAPI

from ..application.security import CredentialService, CredentialSettings
from ..config import ServiceSettings
from ..domain.store import AccountStore
from ..infrastructure.memory import InMemoryAccountStore
from ..infrastructure.repositories import SQLAccountStore
from .api import router, transfer_router
from .metrics import setup_metrics
from .middleware import setup_middleware


logger = logging.getLogger(__name__)


def build_store(settings: ServiceSettings) -> AccountStore:
    if settings.store_backend == "memory":
        return InMemoryAccountStore()
    return SQLAccountStore.from_env()


def create_app(
    *,
    store: AccountStore | None = None,
    credentials: CredentialService | None = None,
    settings: ServiceSettings | None = None,
) -> FastAPI:
    settings = settings or ServiceSettings.from_env()
    app = FastAPI(
        title="Account Service",
        version="0.3.0",
        description="Customer accounts, bearer credentials and transfers between accounts.",
    )
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)
    app.state.credentials = credentials if credentials is not None else CredentialService(CredentialSettings.from_env())

    setup_middleware(app, log_level=settings.log_level)
    setup_metrics(app)
    app.include_router(router)
    app.include_router(transfer_router)

    @app.on_event("startup")
    async def _startup() -> None:
        await app.state.store.initialize()
        logger.info("account_store_ready", extra={"store": type(app.state.store).__name__})

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.store.close()

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app
