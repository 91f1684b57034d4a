import logging
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import fetch
from .errors import NotFound, Conflict, handle_integrity_error
from .generators import generate_account_number
from .models import Account, AccountStatus, AccountType, User, utcnow

log = logging.getLogger("fintech-api.accounts")

ACCOUNT_NUMBER_ATTEMPTS = 5


def _unique_account_number(session: Session) -> str:
    for _ in range(ACCOUNT_NUMBER_ATTEMPTS):
        number = generate_account_number()
        taken = session.execute(select(Account.id).where(Account.account_number == number)).first()
        if taken is None:
            return number
    raise Conflict("could not allocate a unique account number")


def create_account(session: Session, *, user_id, account_type: AccountType, currency: str = "USD") -> Account:
    # user row lock serializes concurrent "first account" checks
    fetch(session, User, user_id, "User", lock=True)
    existing = session.execute(
        select(func.count()).select_from(Account).where(Account.user_id == user_id)
    ).scalar_one()

    acc = Account(
        user_id=user_id,
        account_number=_unique_account_number(session),
        account_type=account_type,
        currency=currency,
        status=AccountStatus.ACTIVE,
        is_default=existing == 0,
    )
    session.add(acc)
    try:
        session.flush()
    except IntegrityError as e:
        handle_integrity_error(e)
    log.info(f"opened account id={acc.id} number={acc.account_number} user={user_id} default={acc.is_default}")
    return acc


def update_account_status(session: Session, account_id, status: AccountStatus) -> Account:
    acc = fetch(session, Account, account_id, "Account", lock=True)
    acc.status = status
    session.flush()
    log.info(f"account id={acc.id} status -> {status.value}")
    return acc


def set_default_account(session: Session, account_id, user_id) -> Account:
    """
    Make `account_id` the only default account of `user_id`.

    Both statements run in the caller's transaction, so no committed state ever
    shows zero or two defaults; the partial unique index rejects anything else.
    """
    acc = fetch(session, Account, account_id, "Account")
    if acc.user_id != user_id:
        raise NotFound("Account not found for user")

    session.execute(select(Account.id).where(Account.user_id == user_id).order_by(Account.id).with_for_update()).all()
    now = utcnow()
    try:
        session.execute(
            update(Account)
            .where(Account.user_id == user_id, Account.id != account_id)
            .values(is_default=False, updated_at=now)
        )
        session.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(is_default=True, updated_at=now)
        )
    except IntegrityError as e:
        handle_integrity_error(e)

    session.refresh(acc)
    log.info(f"default account for user={user_id} -> {acc.id}")
    return acc
