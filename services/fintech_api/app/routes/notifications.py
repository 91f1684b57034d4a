from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session
from ..core.db import get_session, fetch
from ..core import schemas
from ..core.models import Notification, NotificationStatus, utcnow

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])

@router.get("", response_model=list[schemas.NotificationOut])
def list_notifications(
    user_id: UUID,
    status: Optional[NotificationStatus] = None,
    session: Session = Depends(get_session),
):
    stmt = select(Notification).where(Notification.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Notification.status == status)
    rows = session.execute(stmt.order_by(Notification.created_at.desc())).scalars().all()
    return [schemas.NotificationOut.model_validate(n) for n in rows]

@router.get("/unread-count", response_model=int)
def unread_notification_count(user_id: UUID, session: Session = Depends(get_session)):
    return session.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id, Notification.status == NotificationStatus.UNREAD
        )
    ).scalar_one()

@router.post("/read-all", response_model=bool)
def mark_all_notifications_as_read(payload: schemas.MarkAllRead, session: Session = Depends(get_session)):
    session.execute(
        update(Notification)
        .where(Notification.user_id == payload.user_id, Notification.status == NotificationStatus.UNREAD)
        .values(status=NotificationStatus.READ, read_at=utcnow())
    )
    return True

@router.get("/{notification_id}", response_model=schemas.NotificationOut)
def get_notification(notification_id: UUID, session: Session = Depends(get_session)):
    return schemas.NotificationOut.model_validate(fetch(session, Notification, notification_id, "Notification"))

@router.post("/{notification_id}/read", response_model=schemas.NotificationOut)
def mark_notification_as_read(notification_id: UUID, session: Session = Depends(get_session)):
    n = fetch(session, Notification, notification_id, "Notification")
    n.status = NotificationStatus.READ
    n.read_at = utcnow()
    session.flush()
    return schemas.NotificationOut.model_validate(n)

@router.delete("/{notification_id}", response_model=bool)
def delete_notification(notification_id: UUID, session: Session = Depends(get_session)):
    session.delete(fetch(session, Notification, notification_id, "Notification"))
    session.flush()
    return True
