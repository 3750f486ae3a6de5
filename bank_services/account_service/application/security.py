"""Bearer credential issuance and validation for account holders."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt

from ..domain.models import Account


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ALGORITHM = "HS256"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class CredentialSettings:
    """Key material and lifetime for account credentials."""

    secret: str
    token_ttl: timedelta = timedelta(hours=24)

    @classmethod
    def from_env(cls) -> "CredentialSettings":
        """Read ``JWT_SECRET`` and ``ACCOUNT_TOKEN_TTL_HOURS`` from the environment."""

        secret = os.getenv("JWT_SECRET", "")
        if not secret:
            logger.warning(
                "jwt_secret_missing",
                extra={"detail": "JWT_SECRET is empty; issued tokens are trivially forgeable"},
            )
        ttl_hours = int(os.getenv("ACCOUNT_TOKEN_TTL_HOURS", "24"))
        return cls(secret=secret, token_ttl=timedelta(hours=ttl_hours))


@dataclass(slots=True, frozen=True)
class TokenClaims:
    subject: int
    expires_at: datetime


@dataclass(slots=True, frozen=True)
class TokenValidation:
    valid: bool
    claims: Optional[TokenClaims] = None
    reason: Optional[str] = None

    @classmethod
    def rejected(cls, reason: str) -> "TokenValidation":
        return cls(valid=False, reason=reason)


class CredentialService:
    """Mints and verifies HS256 tokens bound to an account id.

    The same process signs and verifies, so a symmetric key is enough. There is
    no refresh or revocation: expiry is the only way a token stops working.
    """

    def __init__(self, settings: CredentialSettings, clock: Clock = utc_now):
        self._settings = settings
        self._clock = clock

    @property
    def settings(self) -> CredentialSettings:
        return self._settings

    def issue(self, account: Account) -> str:
        expires_at = self._clock() + self._settings.token_ttl
        payload: dict[str, Any] = {
            "sub": account.id,
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret_bytes(), algorithm=ALGORITHM)

    def validate(self, token: str) -> TokenValidation:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError:
            return TokenValidation.rejected("malformed")
        if header.get("alg") != ALGORITHM:
            return TokenValidation.rejected("unexpected_algorithm")

        try:
            # Expiry is checked against the injected clock below, not wall time.
            payload = jwt.decode(
                token,
                self._secret_bytes(),
                algorithms=[ALGORITHM],
                options={
                    "require": ["sub", "exp"],
                    "verify_exp": False,
                    "verify_sub": False,
                },
            )
        except jwt.InvalidSignatureError:
            return TokenValidation.rejected("bad_signature")
        except jwt.PyJWTError:
            return TokenValidation.rejected("malformed")

        subject = payload.get("sub")
        expires = payload.get("exp")
        if not _is_int(subject) or not _is_int(expires):
            return TokenValidation.rejected("malformed")

        try:
            expires_at = datetime.fromtimestamp(expires, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return TokenValidation.rejected("malformed")
        if expires_at <= self._clock():
            return TokenValidation.rejected("expired")
        return TokenValidation(valid=True, claims=TokenClaims(subject=subject, expires_at=expires_at))

    def _secret_bytes(self) -> bytes:
        return self._settings.secret.encode("utf-8")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


__all__ = [
    "ALGORITHM",
    "Clock",
    "CredentialService",
    "CredentialSettings",
    "TokenClaims",
    "TokenValidation",
    "utc_now",
]
