from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from bank_services.account_service.application.security import CredentialService, CredentialSettings
from bank_services.account_service.config import ServiceSettings
from bank_services.account_service.infrastructure.memory import InMemoryAccountStore
from bank_services.account_service.presentation.main import create_app


TEST_SECRET = "test-signing-secret-with-at-least-32-bytes"


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def credential_service(clock: FrozenClock) -> CredentialService:
    return CredentialService(CredentialSettings(secret=TEST_SECRET), clock=clock)


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def app(store: InMemoryAccountStore, credential_service: CredentialService) -> Any:
    return create_app(
        store=store,
        credentials=credential_service,
        settings=ServiceSettings(store_backend="memory"),
    )


@pytest.fixture
def client(app: Any) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def open_account(client: TestClient, credential_service: CredentialService) -> Any:
    """Create an account over HTTP and return ``(account_id, token)``."""

    def _open(first_name: str = "Ada", last_name: str = "Lovelace") -> tuple[int, str]:
        response = client.post("/accounts", json={"firstName": first_name, "lastName": last_name})
        assert response.status_code == 200, response.text
        token = response.json()
        claims = credential_service.validate(token).claims
        assert claims is not None
        return claims.subject, token

    return _open