"""Storage contract for accounts."""
from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import Account


class AccountStore(Protocol):
    """Operations every account backend provides.

    Missing rows raise ``AccountNotFoundError``; backend failures raise
    ``StoreUnavailableError``. ``delete`` is the exception: removing an
    absent row is a no-op.
    """

    async def initialize(self) -> None:
        """Prepare the schema. Safe to call more than once."""
        ...

    async def create(
        self, first_name: str, last_name: str, number: int, created_at: datetime
    ) -> Account:
        ...

    async def list_accounts(self) -> list[Account]:
        ...

    async def get_by_id(self, account_id: int) -> Account:
        ...

    async def get_by_number(self, number: int) -> Account:
        ...

    async def update(self, account: Account) -> Account:
        """Persist names and balance of ``account``; other columns are left alone."""
        ...

    async def delete(self, account_id: int) -> None:
        ...

    async def transfer(self, from_id: int, to_number: int, amount: int) -> tuple[Account, Account]:
        """Move ``amount`` atomically and return the (source, destination) pair."""
        ...

    async def close(self) -> None:
        ...


__all__ = ["AccountStore"]
