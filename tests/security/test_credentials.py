from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from bank_services.account_service.application.security import (
    CredentialService,
    CredentialSettings,
)
from bank_services.account_service.domain.models import Account


def _account(account_id: int = 7) -> Account:
    return Account(
        id=account_id,
        first_name="Ada",
        last_name="Lovelace",
        number=1234567890,
        balance=0,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


@pytest.mark.security
def test_issue_embeds_subject_and_24h_expiry(credential_service, clock) -> None:
    token = credential_service.issue(_account(7))

    header = jwt.get_unverified_header(token)
    payload = jwt.decode(token, options={"verify_signature": False, "verify_sub": False})

    assert header["alg"] == "HS256"
    assert payload["sub"] == 7
    assert payload["exp"] == int((clock.now + timedelta(hours=24)).timestamp())


@pytest.mark.security
def test_validate_accepts_fresh_token(credential_service, clock) -> None:
    token = credential_service.issue(_account(7))
    clock.advance(timedelta(hours=23, minutes=59))

    validation = credential_service.validate(token)

    assert validation.valid
    assert validation.claims is not None
    assert validation.claims.subject == 7


@pytest.mark.security
def test_validate_rejects_after_expiry(credential_service, clock) -> None:
    token = credential_service.issue(_account(7))
    clock.advance(timedelta(hours=24))

    validation = credential_service.validate(token)

    assert not validation.valid
    assert validation.reason == "expired"


@pytest.mark.security
def test_validate_rejects_tampered_payload(credential_service) -> None:
    header, payload, signature = credential_service.issue(_account(7)).split(".")
    claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    claims["sub"] = 8
    forged = ".".join([header, _b64(claims), signature])

    assert not credential_service.validate(forged).valid


@pytest.mark.security
def test_validate_rejects_tampered_signature(credential_service) -> None:
    header, payload, signature = credential_service.issue(_account(7)).split(".")
    middle = len(signature) // 2
    replacement = "A" if signature[middle] != "A" else "B"
    forged_signature = signature[:middle] + replacement + signature[middle + 1 :]

    validation = credential_service.validate(".".join([header, payload, forged_signature]))

    assert not validation.valid
    assert validation.reason == "bad_signature"


@pytest.mark.security
def test_validate_rejects_token_signed_with_other_secret(credential_service, clock) -> None:
    other = CredentialService(CredentialSettings(secret="another-secret-of-sufficient-length!"), clock=clock)

    assert not credential_service.validate(other.issue(_account(7))).valid


@pytest.mark.security
def test_validate_rejects_unexpected_algorithm(credential_service, clock) -> None:
    exp = int((clock.now + timedelta(hours=1)).timestamp())
    unsigned = ".".join([_b64({"alg": "none", "typ": "JWT"}), _b64({"sub": 7, "exp": exp}), ""])

    validation = credential_service.validate(unsigned)

    assert not validation.valid
    assert validation.reason == "unexpected_algorithm"


@pytest.mark.security
@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "a.b"])
def test_validate_rejects_malformed_tokens(credential_service, token) -> None:
    validation = credential_service.validate(token)

    assert not validation.valid
    assert validation.claims is None


@pytest.mark.security
def test_validate_rejects_non_integer_subject(credential_service, clock) -> None:
    exp = int((clock.now + timedelta(hours=1)).timestamp())
    token = jwt.encode(
        {"sub": "7", "exp": exp},
        credential_service.settings.secret,
        algorithm="HS256",
    )

    validation = credential_service.validate(token)

    assert not validation.valid
    assert validation.reason == "malformed"


@pytest.mark.security
def test_settings_from_env_reads_secret_and_ttl(monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET", "from-env")
    monkeypatch.setenv("ACCOUNT_TOKEN_TTL_HOURS", "2")

    settings = CredentialSettings.from_env()

    assert settings.secret == "from-env"
    assert settings.token_ttl == timedelta(hours=2)


@pytest.mark.security
def test_empty_secret_still_signs(monkeypatch, clock) -> None:
    monkeypatch.delenv("JWT_SECRET", raising=False)
    service = CredentialService(CredentialSettings.from_env(), clock=clock)

    token = service.issue(_account(3))

    assert service.validate(token).valid


@pytest.mark.security
@pytest.mark.parametrize("exp", [10**20, -(10**20)])
def test_validate_rejects_expiry_outside_datetime_range(credential_service, exp) -> None:
    token = jwt.encode(
        {"sub": 7, "exp": exp},
        credential_service.settings.secret,
        algorithm="HS256",
    )

    validation = credential_service.validate(token)

    assert not validation.valid
    assert validation.reason == "malformed"
