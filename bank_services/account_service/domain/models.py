from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

# Ids, account numbers and balances are stored as signed 64-bit integers.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(slots=True, frozen=True)
class Account:
    id: int
    first_name: str
    last_name: str
    number: int
    balance: int
    created_at: datetime

    def renamed(self, first_name: str, last_name: str) -> "Account":
        return replace(self, first_name=first_name, last_name=last_name)

    def with_balance(self, balance: int) -> "Account":
        return replace(self, balance=balance)


__all__ = ["Account"]
