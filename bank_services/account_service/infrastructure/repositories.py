from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, delete
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select
from sqlmodel import Field, SQLModel

from ..domain.errors import (
    AccountNotFoundError,
    ClientInputError,
    DuplicateAccountNumberError,
    InsufficientFundsError,
    StoreUnavailableError,
)
from ..domain.models import Account


logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "postgresql+asyncpg://postgres:postgres@db:5432/go_fintech_bank"


class AccountRecord(SQLModel, table=True):
    __tablename__ = "accounts"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str = Field(max_length=55, nullable=False)
    last_name: str = Field(max_length=55, nullable=False)
    number: int = Field(
        sa_type=BigInteger,
        index=True,
        nullable=False,
        sa_column_kwargs={"unique": True},
    )
    balance: int = Field(
        default=0,
        sa_type=BigInteger,
        nullable=False,
        sa_column_kwargs={"server_default": "0"},
    )
    created_at: datetime = Field(sa_type=DateTime(timezone=True), nullable=False)


def _to_domain(record: AccountRecord) -> Account:
    created_at = record.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Account(
        id=record.id,
        first_name=record.first_name,
        last_name=record.last_name,
        number=record.number,
        balance=record.balance,
        created_at=created_at,
    )


def _database_url_from_env() -> str:
    """Return the configured database URL, falling back to the default."""

    return os.getenv("ACCOUNT_DATABASE_URL", DEFAULT_DATABASE_URL)


def _normalize_database_url(url: str) -> str:
    """Ensure the SQLAlchemy URL uses the asyncpg driver."""
    url_obj = make_url(url)
    if "asyncpg" not in url_obj.drivername:
        url_obj = url_obj.set(drivername="postgresql+asyncpg")
    return url_obj.render_as_string(hide_password=False)


def _connect_args() -> dict[str, object]:
    ssl_mode = os.getenv("ACCOUNT_DATABASE_SSLMODE", "require").lower()
    if ssl_mode in {"disable", "disabled", "off", "false", "0"}:
        return {}
    if ssl_mode in {"require", "true", "on", "1"}:
        return {"ssl": True}
    raise RuntimeError(f"Unsupported ACCOUNT_DATABASE_SSLMODE value: {ssl_mode}")


def _create_engine(url: str) -> AsyncEngine:
    return create_async_engine(
        _normalize_database_url(url),
        echo=False,
        pool_pre_ping=True,
        connect_args=_connect_args(),
    )


def _build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


class SQLAccountStore:
    """Account store backed by Postgres through SQLAlchemy's async engine."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.async_session_factory = _build_session_factory(engine)

    @classmethod
    def from_env(cls, url: str | None = None) -> "SQLAccountStore":
        return cls(_create_engine(url or _database_url_from_env()))

    @asynccontextmanager
    async def get_session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.async_session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "account_store_failure",
                extra={"operation": operation, "error": str(exc)},
            )
            raise StoreUnavailableError(f"account store unavailable during {operation}") from exc

    async def initialize(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("account_store_failure", extra={"operation": "initialize", "error": str(exc)})
            raise StoreUnavailableError("account store unavailable during initialize") from exc

    async def create(
        self, first_name: str, last_name: str, number: int, created_at: datetime
    ) -> Account:
        record = AccountRecord(
            first_name=first_name,
            last_name=last_name,
            number=number,
            created_at=created_at,
        )
        async with self.get_session("create") as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateAccountNumberError(number) from exc
            await session.refresh(record)
        return _to_domain(record)

    async def list_accounts(self) -> list[Account]:
        async with self.get_session("list") as session:
            result = await session.execute(select(AccountRecord))
            return [_to_domain(record) for record in result.scalars().all()]

    async def get_by_id(self, account_id: int) -> Account:
        async with self.get_session("get_by_id") as session:
            record = await session.get(AccountRecord, account_id)
        if record is None:
            raise AccountNotFoundError(account_id=account_id)
        return _to_domain(record)

    async def get_by_number(self, number: int) -> Account:
        async with self.get_session("get_by_number") as session:
            result = await session.execute(select(AccountRecord).where(AccountRecord.number == number))
            record = result.scalars().first()
        if record is None:
            raise AccountNotFoundError(number=number)
        return _to_domain(record)

    async def update(self, account: Account) -> Account:
        if account.balance < 0:
            raise ClientInputError("balance must not be negative")
        async with self.get_session("update") as session:
            record = await session.get(AccountRecord, account.id)
            if record is None:
                raise AccountNotFoundError(account_id=account.id)
            record.first_name = account.first_name
            record.last_name = account.last_name
            record.balance = account.balance
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ClientInputError("balance must not be negative") from exc
            await session.refresh(record)
        return _to_domain(record)

    async def delete(self, account_id: int) -> None:
        async with self.get_session("delete") as session:
            await session.execute(delete(AccountRecord).where(AccountRecord.id == account_id))
            await session.commit()

    async def transfer(self, from_id: int, to_number: int, amount: int) -> tuple[Account, Account]:
        async with self.get_session("transfer") as session:
            async with session.begin():
                result = await session.execute(
                    select(AccountRecord.id).where(AccountRecord.number == to_number)
                )
                to_id = result.scalars().first()
                if to_id is None:
                    raise AccountNotFoundError(number=to_number)
                if to_id == from_id:
                    raise ClientInputError("cannot transfer to the same account")

                # Row locks are taken in id order so opposite transfers cannot deadlock.
                locked = await session.execute(
                    select(AccountRecord)
                    .where(AccountRecord.id.in_([from_id, to_id]))
                    .order_by(AccountRecord.id)
                    .with_for_update()
                )
                records = {record.id: record for record in locked.scalars().all()}
                source = records.get(from_id)
                destination = records.get(to_id)
                if source is None:
                    raise AccountNotFoundError(account_id=from_id)
                if destination is None:
                    raise AccountNotFoundError(number=to_number)
                if source.balance < amount:
                    raise InsufficientFundsError(balance=source.balance, amount=amount)
                source.balance -= amount
                destination.balance += amount
        return _to_domain(source), _to_domain(destination)

    async def close(self) -> None:
        await self.engine.dispose()


__all__ = [
    "AccountRecord",
    "SQLAccountStore",
    "DEFAULT_DATABASE_URL",
]
