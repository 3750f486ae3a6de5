from __future__ import annotations

import asyncio
import itertools
from datetime import datetime

from ..domain.errors import (
    AccountNotFoundError,
    ClientInputError,
    DuplicateAccountNumberError,
    InsufficientFundsError,
)
from ..domain.models import Account


class InMemoryAccountStore:
    """In-memory account store for tests and local runs."""

    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        return None

    async def create(
        self, first_name: str, last_name: str, number: int, created_at: datetime
    ) -> Account:
        async with self._lock:
            if any(account.number == number for account in self._accounts.values()):
                raise DuplicateAccountNumberError(number)
            account = Account(
                id=next(self._ids),
                first_name=first_name,
                last_name=last_name,
                number=number,
                balance=0,
                created_at=created_at,
            )
            self._accounts[account.id] = account
        return account

    async def list_accounts(self) -> list[Account]:
        async with self._lock:
            return list(self._accounts.values())

    async def get_by_id(self, account_id: int) -> Account:
        async with self._lock:
            account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id=account_id)
        return account

    async def get_by_number(self, number: int) -> Account:
        async with self._lock:
            account = self._find_by_number(number)
        if account is None:
            raise AccountNotFoundError(number=number)
        return account

    async def update(self, account: Account) -> Account:
        if account.balance < 0:
            raise ClientInputError("balance must not be negative")
        async with self._lock:
            stored = self._accounts.get(account.id)
            if stored is None:
                raise AccountNotFoundError(account_id=account.id)
            updated = stored.renamed(account.first_name, account.last_name).with_balance(
                account.balance
            )
            self._accounts[account.id] = updated
        return updated

    async def delete(self, account_id: int) -> None:
        async with self._lock:
            self._accounts.pop(account_id, None)

    async def transfer(self, from_id: int, to_number: int, amount: int) -> tuple[Account, Account]:
        async with self._lock:
            destination = self._find_by_number(to_number)
            if destination is None:
                raise AccountNotFoundError(number=to_number)
            if destination.id == from_id:
                raise ClientInputError("cannot transfer to the same account")
            source = self._accounts.get(from_id)
            if source is None:
                raise AccountNotFoundError(account_id=from_id)
            if source.balance < amount:
                raise InsufficientFundsError(balance=source.balance, amount=amount)
            source = source.with_balance(source.balance - amount)
            destination = destination.with_balance(destination.balance + amount)
            self._accounts[source.id] = source
            self._accounts[destination.id] = destination
        return source, destination

    async def close(self) -> None:
        return None

    def _find_by_number(self, number: int) -> Account | None:
        for account in self._accounts.values():
            if account.number == number:
                return account
        return None


__all__ = ["InMemoryAccountStore"]
