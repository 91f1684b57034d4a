from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from ..core.db import get_session, fetch
from ..core import schemas
from ..core.models import User
from ..core.errors import handle_integrity_error
from uuid import UUID

router = APIRouter(prefix="/v1/users", tags=["users"])

@router.post("", response_model=schemas.UserOut, status_code=201)
def create_user(payload: schemas.UserCreate, session: Session = Depends(get_session)):
    u = User(
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone_number=payload.phone_number,
        role=payload.role,
    )
    session.add(u)
    try:
        session.flush()
    except IntegrityError as e:
        # duplicate email
        handle_integrity_error(e)
    return schemas.UserOut.model_validate(u)

@router.get("", response_model=list[schemas.UserOut])
def list_users(session: Session = Depends(get_session)):
    rows = session.execute(select(User).order_by(User.created_at.desc())).scalars().all()
    return [schemas.UserOut.model_validate(u) for u in rows]

@router.get("/{user_id}", response_model=schemas.UserOut)
def get_user(user_id: UUID, session: Session = Depends(get_session)):
    return schemas.UserOut.model_validate(fetch(session, User, user_id, "User"))
