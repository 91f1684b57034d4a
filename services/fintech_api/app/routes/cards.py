import logging
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..core.db import get_session, fetch
from ..core import schemas
from ..core.errors import InvalidInput
from ..core.generators import generate_card_number, generate_cvv
from ..core.models import Card, CardStatus, CardType, User

router = APIRouter(prefix="/v1/cards", tags=["cards"])

log = logging.getLogger("fintech-api.cards")


def _set_status(session: Session, card_id: UUID, status: CardStatus) -> Card:
    card = fetch(session, Card, card_id, "Card", lock=True)
    card.status = status
    session.flush()
    log.info(f"card id={card.id} status -> {status.value}")
    return card


@router.post("", response_model=schemas.CardOut, status_code=201)
def create_card(payload: schemas.CardCreate, session: Session = Depends(get_session)):
    fetch(session, User, payload.user_id, "User")

    credit_limit = None
    if payload.card_type == CardType.CREDIT:
        if payload.credit_limit is None:
            raise InvalidInput("credit_limit is required for CREDIT cards")
        credit_limit = payload.credit_limit

    card = Card(
        user_id=payload.user_id,
        card_number=generate_card_number(),
        card_holder_name=payload.card_holder_name,
        card_type=payload.card_type,
        status=CardStatus.ACTIVE,
        expiry_month=payload.expiry_month,
        expiry_year=payload.expiry_year,
        cvv=generate_cvv(),
        is_virtual=payload.is_virtual or payload.card_type == CardType.VIRTUAL,
        credit_limit=credit_limit,
        available_credit=credit_limit,
    )
    session.add(card)
    session.flush()
    log.info(f"issued card id={card.id} type={card.card_type.value} user={card.user_id}")
    return schemas.CardOut.model_validate(card)

@router.get("", response_model=list[schemas.CardOut])
def list_cards(user_id: UUID, session: Session = Depends(get_session)):
    rows = session.execute(
        select(Card).where(Card.user_id == user_id).order_by(Card.created_at.desc())
    ).scalars().all()
    return [schemas.CardOut.model_validate(c) for c in rows]

@router.get("/{card_id}", response_model=schemas.CardOut)
def get_card(card_id: UUID, session: Session = Depends(get_session)):
    return schemas.CardOut.model_validate(fetch(session, Card, card_id, "Card"))

@router.post("/{card_id}/block", response_model=schemas.CardOut)
def block_card(card_id: UUID, session: Session = Depends(get_session)):
    return schemas.CardOut.model_validate(_set_status(session, card_id, CardStatus.BLOCKED))

@router.post("/{card_id}/unblock", response_model=schemas.CardOut)
def unblock_card(card_id: UUID, session: Session = Depends(get_session)):
    return schemas.CardOut.model_validate(_set_status(session, card_id, CardStatus.ACTIVE))
