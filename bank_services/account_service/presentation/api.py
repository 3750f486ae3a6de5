from __future__ import annotations

from fastapi import APIRouter, Depends

from ..application.schemas import (
    AccountCreate,
    AccountDeleted,
    AccountRead,
    AccountUpdate,
    TransferCreate,
    TransferRead,
)
from ..application.services import AccountService
from .dependencies import (
    Principal,
    ensure_owner,
    get_account_service,
    parse_id,
    require_account_principal,
)
from .metrics import record_transfer


router = APIRouter(prefix="/accounts", tags=["accounts"])
transfer_router = APIRouter(prefix="/transfers", tags=["transfers"])


@router.get("", response_model=list[AccountRead])
async def list_accounts(
    account_service: AccountService = Depends(get_account_service),
) -> list[AccountRead]:
    return await account_service.list_accounts()


@router.post("", response_model=str)
async def create_account(
    payload: AccountCreate,
    account_service: AccountService = Depends(get_account_service),
) -> str:
    _account, token = await account_service.create_account(payload)
    return token


@router.get("/{id}", response_model=AccountRead)
async def get_account(
    id: str,
    principal: Principal = Depends(require_account_principal),
    account_service: AccountService = Depends(get_account_service),
) -> AccountRead:
    account_id = parse_id(id)
    ensure_owner(principal, account_id)
    return await account_service.get_account(account_id)


@router.put("/{id}", response_model=AccountRead)
async def update_account(
    id: str,
    payload: AccountUpdate,
    principal: Principal = Depends(require_account_principal),
    account_service: AccountService = Depends(get_account_service),
) -> AccountRead:
    account_id = parse_id(id)
    ensure_owner(principal, account_id)
    return await account_service.update_account(account_id, payload)


@router.delete("/{id}", response_model=AccountDeleted)
async def delete_account(
    id: str,
    principal: Principal = Depends(require_account_principal),
    account_service: AccountService = Depends(get_account_service),
) -> AccountDeleted:
    account_id = parse_id(id)
    ensure_owner(principal, account_id)
    deleted = await account_service.delete_account(account_id)
    return AccountDeleted(deleted=deleted)


@transfer_router.post("", response_model=TransferRead)
async def create_transfer(
    payload: TransferCreate,
    principal: Principal = Depends(require_account_principal),
    account_service: AccountService = Depends(get_account_service),
) -> TransferRead:
    receipt = await account_service.transfer(principal.account_id, payload)
    record_transfer()
    return receipt
