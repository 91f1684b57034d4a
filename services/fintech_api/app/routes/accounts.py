from enum import Enum
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..core.db import get_session, fetch
from ..core import schemas, accounts
from ..core.errors import NotFound
from ..core.models import Account, Transaction

router = APIRouter(prefix="/v1/accounts", tags=["accounts"])


class Direction(str, Enum):
    FROM = "from"
    TO = "to"


@router.post("", response_model=schemas.AccountOut, status_code=201)
def create_account(payload: schemas.AccountCreate, session: Session = Depends(get_session)):
    acc = accounts.create_account(
        session, user_id=payload.user_id, account_type=payload.account_type, currency=payload.currency
    )
    return schemas.AccountOut.model_validate(acc)

@router.get("", response_model=list[schemas.AccountOut])
def list_accounts(user_id: UUID, session: Session = Depends(get_session)):
    rows = session.execute(
        select(Account).where(Account.user_id == user_id).order_by(Account.created_at.desc())
    ).scalars().all()
    return [schemas.AccountOut.model_validate(a) for a in rows]

@router.get("/by-number/{account_number}", response_model=schemas.AccountOut)
def get_account_by_number(account_number: str, session: Session = Depends(get_session)):
    acc = session.execute(select(Account).where(Account.account_number == account_number)).scalar_one_or_none()
    if acc is None:
        raise NotFound("Account not found")
    return schemas.AccountOut.model_validate(acc)

@router.get("/{account_id}", response_model=schemas.AccountOut)
def get_account(account_id: UUID, session: Session = Depends(get_session)):
    return schemas.AccountOut.model_validate(fetch(session, Account, account_id, "Account"))

@router.get("/{account_id}/transactions", response_model=list[schemas.TransactionOut])
def list_account_transactions(
    account_id: UUID,
    direction: Direction = Query(default=Direction.FROM),
    session: Session = Depends(get_session),
):
    fetch(session, Account, account_id, "Account")
    column = Transaction.from_account_id if direction == Direction.FROM else Transaction.to_account_id
    rows = session.execute(
        select(Transaction).where(column == account_id).order_by(Transaction.created_at.desc())
    ).scalars().all()
    return [schemas.TransactionOut.model_validate(t) for t in rows]

@router.patch("/{account_id}/status", response_model=schemas.AccountOut)
def update_account_status(account_id: UUID, payload: schemas.AccountStatusUpdate, session: Session = Depends(get_session)):
    return schemas.AccountOut.model_validate(accounts.update_account_status(session, account_id, payload.status))

@router.post("/{account_id}/default", response_model=schemas.AccountOut)
def set_default_account(account_id: UUID, payload: schemas.DefaultAccountSet, session: Session = Depends(get_session)):
    return schemas.AccountOut.model_validate(accounts.set_default_account(session, account_id, payload.user_id))
