from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..core.db import get_session, fetch
from ..core import schemas
from ..core.errors import NotFound
from ..core.models import Investment, MarketData

router = APIRouter(prefix="/v1", tags=["investments"])

@router.get("/investments", response_model=list[schemas.InvestmentOut])
def list_investments(account_id: UUID, session: Session = Depends(get_session)):
    rows = session.execute(
        select(Investment).where(Investment.account_id == account_id).order_by(Investment.created_at.desc())
    ).scalars().all()
    return [schemas.InvestmentOut.model_validate(i) for i in rows]

@router.get("/investments/{investment_id}", response_model=schemas.InvestmentOut)
def get_investment(investment_id: UUID, session: Session = Depends(get_session)):
    return schemas.InvestmentOut.model_validate(fetch(session, Investment, investment_id, "Investment"))

@router.get("/market-data", response_model=list[schemas.MarketDataOut])
def list_market_data(session: Session = Depends(get_session)):
    rows = session.execute(select(MarketData).order_by(MarketData.symbol)).scalars().all()
    return [schemas.MarketDataOut.model_validate(m) for m in rows]

@router.get("/market-data/{symbol}", response_model=schemas.MarketDataOut)
def get_market_data(symbol: str, session: Session = Depends(get_session)):
    row = session.execute(select(MarketData).where(MarketData.symbol == symbol.upper())).scalar_one_or_none()
    if row is None:
        raise NotFound(f"No market data for {symbol}")
    return schemas.MarketDataOut.model_validate(row)
