from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..core.config import settings
from ..core.db import get_session, fetch
from ..core import schemas, ledger
from ..core.errors import NotFound
from ..core.models import Transaction, TransactionStatus, TransactionType

router = APIRouter(prefix="/v1/transactions", tags=["transactions"])


@router.post("", response_model=schemas.TransactionOut, status_code=201)
def create_transaction(payload: schemas.TransactionCreate, session: Session = Depends(get_session)):
    txn = ledger.create_transaction(
        session,
        user_id=payload.user_id,
        type=payload.type,
        amount=payload.amount,
        from_account_id=payload.from_account_id,
        to_account_id=payload.to_account_id,
        currency=payload.currency,
        description=payload.description,
        metadata=payload.metadata,
        process=payload.process,
    )
    return schemas.TransactionOut.model_validate(txn)

@router.get("", response_model=list[schemas.TransactionOut])
def list_transactions(
    user_id: UUID,
    status: Optional[TransactionStatus] = None,
    type: Optional[TransactionType] = None,
    limit: int = Query(default=settings.transactions_default_limit, ge=1, le=settings.transactions_max_limit),
    session: Session = Depends(get_session),
):
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Transaction.status == status)
    if type is not None:
        stmt = stmt.where(Transaction.type == type)
    rows = session.execute(stmt.order_by(Transaction.created_at.desc()).limit(limit)).scalars().all()
    return [schemas.TransactionOut.model_validate(t) for t in rows]

@router.get("/by-reference/{reference}", response_model=schemas.TransactionOut)
def get_transaction_by_reference(reference: str, session: Session = Depends(get_session)):
    txn = session.execute(select(Transaction).where(Transaction.reference == reference)).scalar_one_or_none()
    if txn is None:
        raise NotFound("Transaction not found")
    return schemas.TransactionOut.model_validate(txn)

@router.get("/{transaction_id}", response_model=schemas.TransactionOut)
def get_transaction(transaction_id: UUID, session: Session = Depends(get_session)):
    return schemas.TransactionOut.model_validate(fetch(session, Transaction, transaction_id, "Transaction"))

@router.post("/{transaction_id}/process", response_model=schemas.TransactionOut)
def process_transaction(transaction_id: UUID, session: Session = Depends(get_session)):
    return schemas.TransactionOut.model_validate(ledger.process_transaction(session, transaction_id))

@router.post("/{transaction_id}/cancel", response_model=schemas.TransactionOut)
def cancel_transaction(transaction_id: UUID, session: Session = Depends(get_session)):
    return schemas.TransactionOut.model_validate(ledger.cancel_transaction(session, transaction_id))

@router.post("/{transaction_id}/fail", response_model=schemas.TransactionOut)
def fail_transaction(
    transaction_id: UUID,
    payload: Optional[schemas.TransactionFail] = None,
    session: Session = Depends(get_session),
):
    reason = payload.reason if payload else None
    return schemas.TransactionOut.model_validate(ledger.fail_transaction(session, transaction_id, reason))
