from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..core.db import get_session, fetch
from ..core import schemas
from ..core.models import SupportTicket, TicketStatus, User

router = APIRouter(prefix="/v1/support-tickets", tags=["support"])

@router.post("", response_model=schemas.SupportTicketOut, status_code=201)
def create_support_ticket(payload: schemas.SupportTicketCreate, session: Session = Depends(get_session)):
    fetch(session, User, payload.user_id, "User")
    t = SupportTicket(
        user_id=payload.user_id,
        subject=payload.subject,
        description=payload.description,
        priority=payload.priority,
        status=TicketStatus.OPEN,
    )
    session.add(t)
    session.flush()
    return schemas.SupportTicketOut.model_validate(t)

@router.get("", response_model=list[schemas.SupportTicketOut])
def list_support_tickets(user_id: UUID, session: Session = Depends(get_session)):
    rows = session.execute(
        select(SupportTicket).where(SupportTicket.user_id == user_id).order_by(SupportTicket.created_at.desc())
    ).scalars().all()
    return [schemas.SupportTicketOut.model_validate(t) for t in rows]

@router.get("/{ticket_id}", response_model=schemas.SupportTicketOut)
def get_support_ticket(ticket_id: UUID, session: Session = Depends(get_session)):
    return schemas.SupportTicketOut.model_validate(fetch(session, SupportTicket, ticket_id, "Support ticket"))

@router.patch("/{ticket_id}/status", response_model=schemas.SupportTicketOut)
def update_support_ticket_status(
    ticket_id: UUID, payload: schemas.SupportTicketStatusUpdate, session: Session = Depends(get_session)
):
    t = fetch(session, SupportTicket, ticket_id, "Support ticket")
    t.status = payload.status
    session.flush()
    return schemas.SupportTicketOut.model_validate(t)
