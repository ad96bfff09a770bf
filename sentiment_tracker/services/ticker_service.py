"""Ticker registry service."""
from typing import List, Optional, Union
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.core.errors import ConflictError, ValidationError
from sentiment_tracker.models import Ticker, TickerType

logger = logging.getLogger(__name__)

MAX_SYMBOL_LENGTH = 32


def normalize_symbol(symbol: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Symbols are only trimmed; case is preserved because crypto pairs and
    some exchanges use mixed-case identifiers.

    Raises:
        ValidationError: If the symbol is empty or too long
    """
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError("Invalid symbol")

    normalized = symbol.strip()
    if len(normalized) > MAX_SYMBOL_LENGTH:
        raise ValidationError(f"Symbol must be at most {MAX_SYMBOL_LENGTH} characters")
    return normalized


def parse_ticker_type(value: Union[str, TickerType, None]) -> TickerType:
    """
    Convert user input to a TickerType.

    Raises:
        ValidationError: If value is not 'stock' or 'crypto'
    """
    if isinstance(value, TickerType):
        return value
    try:
        return TickerType(value)
    except ValueError:
        raise ValidationError("Invalid ticker type; expected 'stock' or 'crypto'")


class TickerService:
    """Service for ticker registry management."""

    @staticmethod
    async def create_ticker(
        db: AsyncSession,
        symbol: str,
        ticker_type: Union[str, TickerType]
    ) -> Ticker:
        """Create a ticker, failing with ConflictError if (symbol, type) exists."""
        symbol = normalize_symbol(symbol)
        ticker_type = parse_ticker_type(ticker_type)

        ticker = Ticker(symbol=symbol, type=ticker_type)
        db.add(ticker)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(f"Ticker already exists: {symbol} ({ticker_type.value})")
            raise ConflictError(f"Ticker {symbol} ({ticker_type.value}) already exists")

        await db.refresh(ticker)
        logger.info(f"Created ticker {symbol} ({ticker_type.value}) with id {ticker.ticker_id}")
        return ticker

    @staticmethod
    async def get_ticker_by_symbol(
        db: AsyncSession,
        symbol: str,
        ticker_type: Optional[TickerType] = None
    ) -> Optional[Ticker]:
        """
        Find a ticker by symbol.

        Without a type the oldest ticker carrying the symbol wins, so a symbol
        registered as both stock and crypto resolves deterministically.
        """
        query = select(Ticker).where(Ticker.symbol == symbol)
        if ticker_type is not None:
            query = query.where(Ticker.type == ticker_type)
        query = query.order_by(Ticker.ticker_id).limit(1)

        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_tickers(
        db: AsyncSession,
        ticker_type: Optional[TickerType] = None
    ) -> List[Ticker]:
        """All tickers, optionally restricted to one type."""
        query = select(Ticker)
        if ticker_type is not None:
            query = query.where(Ticker.type == ticker_type)
        result = await db.execute(query.order_by(Ticker.ticker_id))
        return list(result.scalars().all())

    @staticmethod
    async def delete_ticker(db: AsyncSession, symbol: str) -> bool:
        """
        Delete every ticker with the given symbol.

        Returns:
            True if anything was deleted, False if the symbol is unknown

        Raises:
            ConflictError: If a watchlist entry or article sentiment still references it
        """
        symbol = normalize_symbol(symbol)
        try:
            result = await db.execute(delete(Ticker).where(Ticker.symbol == symbol))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(f"Refusing to delete ticker {symbol}: still referenced")
            raise ConflictError(f"Ticker {symbol} is in use and cannot be deleted")

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted ticker {symbol}")
        return deleted

    @staticmethod
    async def resolve_or_create(
        db: AsyncSession,
        symbol: str,
        ticker_type: Union[str, TickerType, None] = None
    ) -> Ticker:
        """
        Get a ticker for a watchlist or sentiment operation, creating it lazily.

        The new ticker is flushed, not committed, so it shares the caller's
        transaction.

        Raises:
            ValidationError: If the ticker is unknown and no valid type was supplied
        """
        symbol = normalize_symbol(symbol)
        parsed_type = parse_ticker_type(ticker_type) if ticker_type is not None else None

        ticker = await TickerService.get_ticker_by_symbol(db, symbol, parsed_type)
        if ticker:
            return ticker

        if parsed_type is None:
            raise ValidationError(
                "Ticker not found; provide type as 'stock' or 'crypto' to create it"
            )

        ticker = Ticker(symbol=symbol, type=parsed_type)
        db.add(ticker)
        await db.flush()
        logger.info(f"Lazily created ticker {symbol} ({parsed_type.value})")

        return ticker
