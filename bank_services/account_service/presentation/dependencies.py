from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..application.security import CredentialService
from ..application.services import AccountService
from ..domain.errors import AuthenticationError, AuthorizationError, ClientInputError
from ..domain.models import INT64_MAX, INT64_MIN
from ..domain.store import AccountStore
from .metrics import record_auth_rejection


bearer_scheme = HTTPBearer(
    bearerFormat="JWT",
    description="Token returned by POST /accounts.",
    auto_error=False,
)
_id_pattern = re.compile(r"[+-]?[0-9]+")


@dataclass(slots=True)
class Principal:
    account_id: int
    expires_at: datetime


def get_store(request: Request) -> AccountStore:
    return request.app.state.store


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_account_service(
    store: AccountStore = Depends(get_store),
    credentials: CredentialService = Depends(get_credential_service),
) -> AccountService:
    return AccountService(store, credentials)


def require_account_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    credential_service: CredentialService = Depends(get_credential_service),
) -> Principal:
    if not credentials:
        record_auth_rejection("missing_bearer")
        raise AuthenticationError("bearer token invalid")
    validation = credential_service.validate(credentials.credentials)
    if not validation.valid or validation.claims is None:
        record_auth_rejection(validation.reason or "invalid")
        raise AuthenticationError("invalid token")
    return Principal(
        account_id=validation.claims.subject,
        expires_at=validation.claims.expires_at,
    )


def parse_id(raw: str, parameter: str = "id") -> int:
    if not _id_pattern.fullmatch(raw):
        raise ClientInputError(f"error while parsing {parameter}: {raw}")
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ClientInputError(f"error while parsing {parameter}: {raw}")
    return value


def ensure_owner(principal: Principal, account_id: int) -> None:
    if principal.account_id != account_id:
        raise AuthorizationError()
