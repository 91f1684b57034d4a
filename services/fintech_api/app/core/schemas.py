from pydantic import AliasChoices, BaseModel, ConfigDict, Field, EmailStr, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from .generators import CURRENCY_RE
from .models import (
    AccountStatus, AccountType, CardStatus, CardType, MarketType, NotificationStatus,
    NotificationType, TicketPriority, TicketStatus, TransactionStatus, TransactionType,
    UserRole, UserStatus,
)


def _currency(v: Optional[str]) -> Optional[str]:
    if v is not None and not CURRENCY_RE.match(v):
        raise ValueError("currency must be 3 uppercase letters")
    return v


class ORMOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- users ---

class UserCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=32)
    role: UserRole = UserRole.CUSTOMER

class UserOut(ORMOut):
    id: UUID
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str]
    role: UserRole
    status: UserStatus
    email_verified: bool
    kyc_verified: bool
    created_at: datetime


# --- accounts ---

class AccountCreate(BaseModel):
    user_id: UUID
    account_type: AccountType
    currency: str = "USD"

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        return _currency(v)

class AccountStatusUpdate(BaseModel):
    status: AccountStatus

class DefaultAccountSet(BaseModel):
    user_id: UUID

class AccountOut(ORMOut):
    id: UUID
    user_id: UUID
    account_number: str
    account_type: AccountType
    currency: str
    balance: Decimal
    available_balance: Decimal
    is_default: bool
    status: AccountStatus
    created_at: datetime


# --- transactions ---

class TransactionCreate(BaseModel):
    user_id: UUID
    from_account_id: Optional[UUID] = None
    to_account_id: Optional[UUID] = None
    type: TransactionType
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    metadata: Optional[dict[str, Any]] = None
    process: bool = Field(default=False, description="settle immediately and return COMPLETED")

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: Optional[str]) -> Optional[str]:
        return _currency(v)

class TransactionFail(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)

class TransactionOut(ORMOut):
    id: UUID
    user_id: UUID
    from_account_id: Optional[UUID]
    to_account_id: Optional[UUID]
    type: TransactionType
    status: TransactionStatus
    amount: Decimal
    currency: str
    fee: Decimal
    description: Optional[str]
    reference: str
    metadata: Optional[dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("extra_metadata", "metadata"))
    created_at: datetime
    processed_at: Optional[datetime]


# --- cards ---

class CardCreate(BaseModel):
    user_id: UUID
    card_holder_name: str = Field(..., min_length=1, max_length=200)
    card_type: CardType
    expiry_month: int = Field(..., ge=1, le=12)
    expiry_year: int = Field(..., ge=2000, le=2100)
    is_virtual: bool = False
    credit_limit: Optional[Decimal] = Field(default=None, gt=0)

class CardOut(ORMOut):
    id: UUID
    user_id: UUID
    card_number: str
    card_holder_name: str
    card_type: CardType
    status: CardStatus
    expiry_month: int
    expiry_year: int
    is_virtual: bool
    credit_limit: Optional[Decimal]
    available_credit: Optional[Decimal]
    created_at: datetime


# --- beneficiaries ---

class BeneficiaryCreate(BaseModel):
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    account_number: str = Field(..., min_length=1, max_length=64)
    bank_name: str = Field(..., min_length=1, max_length=200)
    bank_code: Optional[str] = Field(default=None, max_length=32)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(default=None, max_length=32)

class BeneficiaryOut(ORMOut):
    id: UUID
    user_id: UUID
    name: str
    account_number: str
    bank_name: str
    bank_code: Optional[str]
    email: Optional[str]
    phone_number: Optional[str]
    is_verified: bool
    created_at: datetime


# --- notifications ---

class MarkAllRead(BaseModel):
    user_id: UUID

class NotificationOut(ORMOut):
    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    status: NotificationStatus
    metadata: Optional[dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("extra_metadata", "metadata"))
    created_at: datetime
    read_at: Optional[datetime]


# --- investments / market data ---

class InvestmentOut(ORMOut):
    id: UUID
    account_id: UUID
    symbol: str
    asset_name: str
    quantity: Decimal
    average_price: Decimal
    current_price: Decimal
    total_value: Decimal
    pl_percentage: Decimal
    created_at: datetime

class MarketDataOut(ORMOut):
    symbol: str
    name: str
    type: MarketType
    current_price: Decimal
    change_24h: Decimal
    volume_24h: Decimal
    updated_at: datetime


# --- support tickets ---

class SupportTicketCreate(BaseModel):
    user_id: UUID
    subject: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    priority: TicketPriority = TicketPriority.MEDIUM

class SupportTicketStatusUpdate(BaseModel):
    status: TicketStatus

class SupportTicketOut(ORMOut):
    id: UUID
    user_id: UUID
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_at: datetime
    updated_at: datetime
