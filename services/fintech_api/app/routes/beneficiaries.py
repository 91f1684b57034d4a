from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..core.db import get_session, fetch
from ..core import schemas
from ..core.models import Beneficiary, User

router = APIRouter(prefix="/v1/beneficiaries", tags=["beneficiaries"])

@router.post("", response_model=schemas.BeneficiaryOut, status_code=201)
def add_beneficiary(payload: schemas.BeneficiaryCreate, session: Session = Depends(get_session)):
    fetch(session, User, payload.user_id, "User")
    b = Beneficiary(**payload.model_dump())
    session.add(b)
    session.flush()
    return schemas.BeneficiaryOut.model_validate(b)

@router.get("", response_model=list[schemas.BeneficiaryOut])
def list_beneficiaries(user_id: UUID, session: Session = Depends(get_session)):
    rows = session.execute(
        select(Beneficiary).where(Beneficiary.user_id == user_id).order_by(Beneficiary.created_at.desc())
    ).scalars().all()
    return [schemas.BeneficiaryOut.model_validate(b) for b in rows]

@router.get("/{beneficiary_id}", response_model=schemas.BeneficiaryOut)
def get_beneficiary(beneficiary_id: UUID, session: Session = Depends(get_session)):
    return schemas.BeneficiaryOut.model_validate(fetch(session, Beneficiary, beneficiary_id, "Beneficiary"))

@router.post("/{beneficiary_id}/verify", response_model=schemas.BeneficiaryOut)
def verify_beneficiary(beneficiary_id: UUID, session: Session = Depends(get_session)):
    b = fetch(session, Beneficiary, beneficiary_id, "Beneficiary")
    b.is_verified = True
    session.flush()
    return schemas.BeneficiaryOut.model_validate(b)

@router.delete("/{beneficiary_id}", response_model=bool)
def remove_beneficiary(beneficiary_id: UUID, session: Session = Depends(get_session)):
    session.delete(fetch(session, Beneficiary, beneficiary_id, "Beneficiary"))
    session.flush()
    return True
