"""Ticker registry API routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sentiment_tracker.api.schemas import CamelModel, TickerResponse, ticker_to_dict
from sentiment_tracker.core.database import get_db
from sentiment_tracker.core.errors import NotFoundError
from sentiment_tracker.models import TickerType
from sentiment_tracker.services.ticker_service import TickerService, normalize_symbol, parse_ticker_type

router = APIRouter(prefix="/api/tickers", tags=["tickers"])

# Path values meaning "every type"
ALL_TYPES = {"", "all"}


class CreateTickerRequest(CamelModel):
    """Request to register a ticker."""
    symbol: str
    type: str


def parse_type_filter(value: Optional[str]) -> Optional[TickerType]:
    """None for 'all' or an empty value, otherwise the parsed TickerType."""
    if value is None or value in ALL_TYPES:
        return None
    return parse_ticker_type(value)


@router.post("", response_model=TickerResponse, status_code=status.HTTP_201_CREATED)
async def create_ticker(
    request: CreateTickerRequest,
    db: AsyncSession = Depends(get_db)
):
    """Create a new ticker."""
    ticker = await TickerService.create_ticker(db, request.symbol, request.type)
    return ticker_to_dict(ticker)


@router.get("/byType/", response_model=List[TickerResponse])
@router.get("/byType", response_model=List[TickerResponse], include_in_schema=False)
async def get_all_tickers(db: AsyncSession = Depends(get_db)):
    """Get every ticker."""
    tickers = await TickerService.list_tickers(db)
    return [ticker_to_dict(ticker) for ticker in tickers]


@router.get("/byType/{ticker_type}", response_model=List[TickerResponse])
async def get_tickers_by_type(
    ticker_type: str,
    db: AsyncSession = Depends(get_db)
):
    """Get tickers of one type ('stock', 'crypto' or 'all')."""
    tickers = await TickerService.list_tickers(db, parse_type_filter(ticker_type))
    return [ticker_to_dict(ticker) for ticker in tickers]


@router.get("/{symbol}", response_model=TickerResponse)
async def get_ticker(
    symbol: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a ticker by symbol."""
    ticker = await TickerService.get_ticker_by_symbol(db, normalize_symbol(symbol))
    if ticker is None:
        raise NotFoundError("Ticker not found")
    return ticker_to_dict(ticker)


@router.delete("/{symbol}")
async def delete_ticker(
    symbol: str,
    db: AsyncSession = Depends(get_db)
):
    """Delete a ticker; tickers still in use are refused with 409."""
    deleted = await TickerService.delete_ticker(db, symbol)
    if not deleted:
        raise NotFoundError("Ticker not found")
    return {"message": "Ticker deleted"}
