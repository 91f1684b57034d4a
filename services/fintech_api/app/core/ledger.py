"""
Transaction lifecycle: creation, settlement, cancellation and failure.

Every function works inside the caller's Session and never commits; the
request's unit of work (core.db.Store.session) commits or rolls back the
debit, the credit and the status change together.
"""
import logging
from decimal import Decimal
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import fetch
from .errors import InvalidInput, InvalidState, InsufficientFunds, Conflict, handle_integrity_error
from .generators import exceeds_money_range, generate_reference, quantize, round_to_currency
from .models import (
    Account, AccountStatus, Transaction, TransactionStatus, TransactionType, User, utcnow,
)
from . import notifier

log = logging.getLogger("fintech-api.ledger")

# types that move money out of the source account
DEBIT_TYPES = frozenset({TransactionType.TRANSFER, TransactionType.WITHDRAWAL, TransactionType.PAYMENT})
CREDIT_TYPES = frozenset({TransactionType.DEPOSIT, TransactionType.REFUND})

FEE_SCHEDULE = {
    TransactionType.TRANSFER: Decimal("2.50"),
    TransactionType.WITHDRAWAL: Decimal("5.00"),
}

REFERENCE_ATTEMPTS = 5


def fee_for(type: TransactionType, currency: str = "USD") -> Decimal:
    """Flat fee by transaction type, rounded half-up to the minor units of `currency`."""
    return round_to_currency(FEE_SCHEDULE.get(type, Decimal("0")), currency)


def _unique_reference(session: Session) -> str:
    for _ in range(REFERENCE_ATTEMPTS):
        ref = generate_reference()
        taken = session.execute(select(Transaction.id).where(Transaction.reference == ref)).first()
        if taken is None:
            return ref
    raise Conflict("could not allocate a unique transaction reference")


def _require_pending(txn: Transaction, message: str) -> None:
    if txn.status != TransactionStatus.PENDING:
        raise InvalidState(f"{message} (status is {txn.status.value})")


def _lock_accounts(session: Session, *ids) -> dict:
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    # id order keeps lock acquisition consistent across concurrent settlements
    stmt = (
        select(Account)
        .where(Account.id.in_(wanted))
        .order_by(Account.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {a.id: a for a in session.execute(stmt).scalars()}


def create_transaction(
    session: Session,
    *,
    user_id,
    type: TransactionType,
    amount: Decimal,
    from_account_id=None,
    to_account_id=None,
    currency: Optional[str] = None,
    description: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
    process: bool = False,
) -> Transaction:
    fetch(session, User, user_id, "User")

    if from_account_id is None and to_account_id is None:
        raise InvalidInput("a transaction needs a source or a destination account")
    if from_account_id is not None and from_account_id == to_account_id:
        raise InvalidInput("source and destination accounts must differ")

    source = fetch(session, Account, from_account_id, "Source account") if from_account_id else None
    dest = fetch(session, Account, to_account_id, "Destination account") if to_account_id else None

    if type in DEBIT_TYPES and source is None:
        raise InvalidInput(f"{type.value} requires a source account")
    if type in CREDIT_TYPES and dest is None:
        raise InvalidInput(f"{type.value} requires a destination account")

    for acc in (source, dest):
        if acc is not None and acc.status != AccountStatus.ACTIVE:
            raise InvalidState(f"account {acc.account_number} is {acc.status.value}")

    currency = currency or (source or dest).currency
    for acc in (source, dest):
        if acc is not None and acc.currency != currency:
            raise InvalidInput(f"currency mismatch with account {acc.account_number}")

    try:
        amount = quantize(amount, currency)
    except ValueError as e:
        raise InvalidInput(str(e)) from e
    if amount <= 0:
        raise InvalidInput("amount must be greater than 0")
    if exceeds_money_range(amount):
        raise InvalidInput("amount is too large")

    # pre-check only; settlement checks again under the row lock
    if type in DEBIT_TYPES and source.available_balance < amount:
        log.warning(f"insufficient funds acct={source.id} available={source.available_balance} amount={amount}")
        raise InsufficientFunds("Insufficient funds")

    txn = Transaction(
        user_id=user_id,
        from_account_id=source.id if source else None,
        to_account_id=dest.id if dest else None,
        type=type,
        status=TransactionStatus.PENDING,
        amount=amount,
        currency=currency,
        fee=fee_for(type, currency),
        description=description,
        reference=_unique_reference(session),
        extra_metadata=metadata,
    )
    session.add(txn)
    try:
        session.flush()  # get txn.id
    except IntegrityError as e:
        handle_integrity_error(e)

    log.info(f"created txn id={txn.id} ref={txn.reference} type={type.value} amount={amount} {currency} fee={txn.fee}")

    if process:
        return process_transaction(session, txn.id)
    return txn


def process_transaction(session: Session, transaction_id) -> Transaction:
    """Settle a PENDING transaction: debit amount + fee, credit amount, mark COMPLETED."""
    txn = fetch(session, Transaction, transaction_id, "Transaction", lock=True)
    _require_pending(txn, "Transaction cannot be processed")

    accounts = _lock_accounts(session, txn.from_account_id, txn.to_account_id)
    source = accounts.get(txn.from_account_id)
    dest = accounts.get(txn.to_account_id)

    total = txn.amount + txn.fee
    # the fee comes out of the same available balance
    if source is not None and txn.type in DEBIT_TYPES and source.available_balance < total:
        log.warning(f"settlement rejected txn={txn.id}: available={source.available_balance} debit={total}")
        raise InsufficientFunds("Insufficient funds at settlement")

    if source is not None:
        source.balance = source.balance - total
        source.available_balance = source.available_balance - total
    if dest is not None:
        dest.balance = dest.balance + txn.amount
        dest.available_balance = dest.available_balance + txn.amount

    txn.status = TransactionStatus.COMPLETED
    txn.processed_at = utcnow()

    notifier.transaction_completed(session, txn)
    try:
        session.flush()
    except IntegrityError as e:
        handle_integrity_error(e)

    log.info(f"settled txn id={txn.id} ref={txn.reference} debit={total if source else 0} credit={txn.amount if dest else 0}")
    return txn


def cancel_transaction(session: Session, transaction_id) -> Transaction:
    txn = fetch(session, Transaction, transaction_id, "Transaction", lock=True)
    _require_pending(txn, "Only pending transactions can be cancelled")
    txn.status = TransactionStatus.CANCELLED
    session.flush()
    log.info(f"cancelled txn id={txn.id} ref={txn.reference}")
    return txn


def fail_transaction(session: Session, transaction_id, reason: Optional[str] = None) -> Transaction:
    txn = fetch(session, Transaction, transaction_id, "Transaction", lock=True)
    _require_pending(txn, "Only pending transactions can be failed")
    txn.status = TransactionStatus.FAILED
    if reason:
        txn.extra_metadata = {**(txn.extra_metadata or {}), "failureReason": reason}
    session.flush()
    log.info(f"failed txn id={txn.id} ref={txn.reference} reason={reason!r}")
    return txn
