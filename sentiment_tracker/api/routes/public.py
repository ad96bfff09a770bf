"""Read-only public routes; no session required."""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sentiment_tracker.api.schemas import (
    ArticleWithTickersResponse,
    TickerResponse,
    article_with_tickers_to_dict,
    ticker_to_dict,
)
from sentiment_tracker.core.database import get_db
from sentiment_tracker.services.article_service import ArticleService
from sentiment_tracker.services.ticker_service import TickerService, parse_ticker_type

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/tickers", response_model=List[TickerResponse])
async def list_tickers(db: AsyncSession = Depends(get_db)):
    tickers = await TickerService.list_tickers(db)
    return [ticker_to_dict(ticker) for ticker in tickers]


@router.get("/tickers/{ticker_type}", response_model=List[TickerResponse])
async def list_tickers_by_type(
    ticker_type: str,
    db: AsyncSession = Depends(get_db)
):
    """Tickers of one type; anything but 'stock' or 'crypto' is a 400."""
    tickers = await TickerService.list_tickers(db, parse_ticker_type(ticker_type))
    return [ticker_to_dict(ticker) for ticker in tickers]


@router.get("/articles", response_model=List[ArticleWithTickersResponse])
async def list_articles(
    ticker: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    articles = await ArticleService.list_articles(db, ticker)
    return [article_with_tickers_to_dict(item) for item in articles]
