"""
Wallet API Routes
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.auth import get_current_user, require_admin
from app.api.routes.schemas import TransactionResponse
from app.core.validation import money_validator, sanitized_text_validator
from app.db.database import get_db
from app.db.models.user import User
from app.db.models.wallet_transaction import DepositMethod, TransactionStatus, TransactionType
from app.domain.services.reconciliation_service import ReconciliationService
from app.domain.services.store_settings_service import StoreSettingsService
from app.domain.services.wallet_service import WalletService

router = APIRouter()


# ==================== Schemas ====================


class WalletResponse(BaseModel):
    balance: float
    transactions: List[TransactionResponse]


class DepositRequest(BaseModel):
    amount: Decimal

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v) -> Decimal:
        return money_validator(v)


class GiftCardDepositRequest(DepositRequest):
    gift_card_type: str
    gift_card_image: str
    gift_card_code: Optional[str] = None

    @field_validator("gift_card_code")
    @classmethod
    def sanitize_code(cls, v: Optional[str]) -> Optional[str]:
        return sanitized_text_validator(v, max_length=100)


class DepositResponse(BaseModel):
    message: str
    transaction: TransactionResponse


class SettleDepositRequest(BaseModel):
    admin_notes: Optional[str] = None

    @field_validator("admin_notes")
    @classmethod
    def sanitize_notes(cls, v: Optional[str]) -> Optional[str]:
        return sanitized_text_validator(v, max_length=2000)


class ConfirmDepositResponse(BaseModel):
    message: str
    transaction: TransactionResponse
    new_balance: float


class GiftCardTypes(BaseModel):
    gift_card_types: List[str]


class UserBalanceResponse(BaseModel):
    id: int
    name: str
    email: str
    wallet_balance: float

    model_config = {"from_attributes": True}


class ReconciliationResponse(BaseModel):
    user_id: int
    old_balance: float
    new_balance: float
    difference: float
    transactions_processed: int

    model_config = {"from_attributes": True}


# ==================== Customer ====================


@router.get(
    "/",
    response_model=WalletResponse,
    summary="Wallet balance and recent transactions",
)
async def get_wallet(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    balance, history = await WalletService(db).get_wallet(current_user.id)
    return {"balance": balance, "transactions": history}


@router.get(
    "/transactions",
    response_model=List[TransactionResponse],
    summary="The caller's ledger, newest first",
)
async def list_my_transactions(
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    type_filter: Optional[TransactionType] = Query(None, alias="type"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WalletService(db).ledger.list_for_user(
        current_user.id, status=status_filter, type=type_filter
    )


@router.get(
    "/giftcard-types",
    response_model=GiftCardTypes,
    summary="Accepted gift card brands",
)
async def get_gift_card_types(db: AsyncSession = Depends(get_db)):
    types = await StoreSettingsService(db).get_gift_card_types()
    return {"gift_card_types": types}


@router.post(
    "/deposit",
    response_model=DepositResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a cash deposit",
)
async def request_deposit(
    data: DepositRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await WalletService(db).request_deposit(current_user.id, data.amount)
    return {
        "message": "Deposit request submitted. Awaiting admin approval.",
        "transaction": entry,
    }


@router.post(
    "/deposit/giftcard",
    response_model=DepositResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a gift card deposit",
)
async def request_gift_card_deposit(
    data: GiftCardDepositRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await WalletService(db).request_deposit(
        current_user.id,
        data.amount,
        method=DepositMethod.GIFTCARD,
        gift_card_type=data.gift_card_type,
        gift_card_image=data.gift_card_image,
        gift_card_code=data.gift_card_code,
    )
    return {
        "message": "Gift card deposit submitted. Awaiting admin verification.",
        "transaction": entry,
    }


# ==================== Admin ====================


@router.put(
    "/admin/giftcard-types",
    response_model=GiftCardTypes,
    summary="Replace the gift card allow-list (admin)",
)
async def update_gift_card_types(
    data: GiftCardTypes,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    types = await StoreSettingsService(db).update_gift_card_types(
        data.gift_card_types, admin_id=admin.id
    )
    return {"gift_card_types": types}


@router.post(
    "/deposit/{transaction_id}/confirm",
    response_model=ConfirmDepositResponse,
    summary="Confirm a pending deposit (admin)",
)
async def confirm_deposit(
    transaction_id: int,
    data: Optional[SettleDepositRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entry, new_balance = await WalletService(db).confirm_deposit(
        transaction_id,
        admin_id=admin.id,
        admin_notes=data.admin_notes if data else None,
    )
    return {
        "message": "Deposit confirmed",
        "transaction": entry,
        "new_balance": new_balance,
    }


@router.post(
    "/deposit/{transaction_id}/reject",
    response_model=DepositResponse,
    summary="Reject a pending deposit (admin)",
)
async def reject_deposit(
    transaction_id: int,
    data: Optional[SettleDepositRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    entry = await WalletService(db).reject_deposit(
        transaction_id,
        admin_id=admin.id,
        admin_notes=data.admin_notes if data else None,
    )
    return {"message": "Deposit rejected", "transaction": entry}


@router.get(
    "/admin/pending-deposits",
    response_model=List[TransactionResponse],
    summary="Deposits awaiting review (admin)",
)
async def list_pending_deposits(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await WalletService(db).list_pending_deposits()


@router.get(
    "/admin/all-transactions",
    response_model=List[TransactionResponse],
    summary="Ledger across all users (admin)",
)
async def list_all_transactions(
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    type_filter: Optional[TransactionType] = Query(None, alias="type"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await WalletService(db).ledger.list_all(status=status_filter, type=type_filter)


@router.get(
    "/admin/users-balances",
    response_model=List[UserBalanceResponse],
    summary="Cached balances per customer (admin)",
)
async def list_users_balances(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await WalletService(db).list_users_balances()


@router.post(
    "/admin/recalculate-balance/{user_id}",
    response_model=ReconciliationResponse,
    summary="Rebuild a cached balance from the ledger (admin)",
)
async def recalculate_balance(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ReconciliationService(db).recalculate(user_id)
