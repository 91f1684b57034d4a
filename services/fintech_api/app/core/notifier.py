import logging
from typing import Any, Optional
from sqlalchemy.orm import Session
from .generators import quantize
from .models import Notification, NotificationType, NotificationStatus, Transaction

log = logging.getLogger("fintech-api.notifier")


def notify(
    session: Session,
    user_id,
    type: NotificationType,
    title: str,
    message: str,
    metadata: Optional[dict[str, Any]] = None,
) -> Notification:
    """Queue a notification row in the caller's unit of work; it commits with it."""
    n = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        status=NotificationStatus.UNREAD,
        extra_metadata=metadata,
    )
    session.add(n)
    log.info(f"notification queued user={user_id} type={type.value} title={title!r}")
    return n


def transaction_completed(session: Session, txn: Transaction) -> Notification:
    amount = quantize(txn.amount, txn.currency)
    return notify(
        session,
        txn.user_id,
        NotificationType.TRANSACTION,
        "Transaction Completed",
        f"Your {txn.type.value.lower()} of {amount} {txn.currency} was successful",
        {"transactionId": str(txn.id), "amount": str(amount)},
    )
