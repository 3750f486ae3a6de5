from __future__ import annotations

import logging
import secrets
from typing import Callable

from ..domain.errors import DuplicateAccountNumberError
from ..domain.store import AccountStore
from .schemas import AccountCreate, AccountRead, AccountUpdate, TransferCreate, TransferRead
from .security import Clock, CredentialService, utc_now


logger = logging.getLogger(__name__)

ACCOUNT_NUMBER_MIN = 10**9
ACCOUNT_NUMBER_MAX = 10**10
MAX_NUMBER_ATTEMPTS = 5


def generate_account_number() -> int:
    """Random 10-digit account number; uniqueness is enforced by the store."""
    return ACCOUNT_NUMBER_MIN + secrets.randbelow(ACCOUNT_NUMBER_MAX - ACCOUNT_NUMBER_MIN)


class AccountService:
    def __init__(
        self,
        store: AccountStore,
        credentials: CredentialService,
        *,
        number_generator: Callable[[], int] = generate_account_number,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.credentials = credentials
        self._number_generator = number_generator
        self._clock = clock

    async def create_account(self, payload: AccountCreate) -> tuple[AccountRead, str]:
        """Create the account and return it with a freshly issued bearer token."""
        attempt = 0
        while True:
            attempt += 1
            number = self._number_generator()
            try:
                account = await self.store.create(
                    payload.first_name,
                    payload.last_name,
                    number,
                    self._clock(),
                )
            except DuplicateAccountNumberError:
                logger.warning(
                    "account_number_collision",
                    extra={"number": number, "attempt": attempt},
                )
                if attempt >= MAX_NUMBER_ATTEMPTS:
                    raise
                continue
            logger.info("account_created", extra={"account_id": account.id})
            token = self.credentials.issue(account)
            return AccountRead.model_validate(account), token

    async def list_accounts(self) -> list[AccountRead]:
        accounts = await self.store.list_accounts()
        return [AccountRead.model_validate(account) for account in accounts]

    async def get_account(self, account_id: int) -> AccountRead:
        account = await self.store.get_by_id(account_id)
        return AccountRead.model_validate(account)

    async def update_account(self, account_id: int, payload: AccountUpdate) -> AccountRead:
        account = await self.store.get_by_id(account_id)
        updated = await self.store.update(account.renamed(payload.first_name, payload.last_name))
        return AccountRead.model_validate(updated)

    async def delete_account(self, account_id: int) -> int:
        await self.store.delete(account_id)
        logger.info("account_deleted", extra={"account_id": account_id})
        return account_id

    async def transfer(self, from_account_id: int, payload: TransferCreate) -> TransferRead:
        source, destination = await self.store.transfer(
            from_account_id, payload.to_account, payload.amount
        )
        logger.info(
            "transfer_completed",
            extra={
                "from_account_id": source.id,
                "to_account_id": destination.id,
                "amount": payload.amount,
            },
        )
        return TransferRead(
            from_account=source.number,
            to_account=destination.number,
            amount=payload.amount,
            balance=source.balance,
        )
