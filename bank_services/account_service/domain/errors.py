from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CLIENT_INPUT = "client-input"
    NOT_FOUND = "not-found"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    BACKEND = "backend"


class AccountServiceError(Exception):
    """Base class for errors rendered as ``{"error": message}`` responses."""

    kind: ErrorKind = ErrorKind.CLIENT_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(AccountServiceError):
    kind = ErrorKind.CLIENT_INPUT


class AccountNotFoundError(AccountServiceError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, *, account_id: int | None = None, number: int | None = None):
        if number is not None:
            message = f"account with number {number} not found"
        else:
            message = f"account {account_id} not found"
        super().__init__(message)
        self.account_id = account_id
        self.number = number


class AuthenticationError(AccountServiceError):
    kind = ErrorKind.AUTH


class AuthorizationError(AccountServiceError):
    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "forbidden"):
        super().__init__(message)


class InsufficientFundsError(AccountServiceError):
    kind = ErrorKind.CONFLICT

    def __init__(self, *, balance: int, amount: int):
        super().__init__("insufficient funds")
        self.balance = balance
        self.amount = amount


class DuplicateAccountNumberError(AccountServiceError):
    kind = ErrorKind.CONFLICT

    def __init__(self, number: int):
        super().__init__(f"account number {number} already exists")
        self.number = number


class StoreUnavailableError(AccountServiceError):
    """Wraps backend failures; the message is logged, never returned to clients."""

    kind = ErrorKind.BACKEND


__all__ = [
    "AccountNotFoundError",
    "AccountServiceError",
    "AuthenticationError",
    "AuthorizationError",
    "ClientInputError",
    "DuplicateAccountNumberError",
    "ErrorKind",
    "InsufficientFundsError",
    "StoreUnavailableError",
]
