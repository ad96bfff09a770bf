"""Watchlist service for managing which tickers a user follows."""
from typing import List, Optional, Union
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.core.errors import ConflictError, NotFoundError
from sentiment_tracker.models import Ticker, TickerType, WatchlistEntry
from sentiment_tracker.services.ticker_service import TickerService, normalize_symbol
from sentiment_tracker.services.user_service import UserService

logger = logging.getLogger(__name__)


class WatchlistService:
    """Service for watchlist management.

    Every operation is scoped to one user and checks that the user exists
    before touching tickers or entries.
    """

    @staticmethod
    async def add_to_watchlist(
        db: AsyncSession,
        user_id: str,
        symbol: str,
        ticker_type: Union[str, TickerType, None] = None,
        notification_enabled: bool = True
    ) -> WatchlistEntry:
        """
        Add a ticker to user's watchlist, creating the ticker if missing.

        Args:
            db: Database session
            user_id: Owning user
            symbol: Ticker symbol (trimmed)
            ticker_type: Required only when the ticker does not exist yet
            notification_enabled: Per-entry notification flag

        Returns:
            The new WatchlistEntry

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If the ticker is unknown and no valid type was given
            ConflictError: If the ticker is already on the watchlist
        """
        await UserService.require_user(db, user_id)

        ticker = await TickerService.resolve_or_create(db, symbol, ticker_type)
        # Rollback expires the ticker, so keep plain values
        ticker_symbol = ticker.symbol

        entry = WatchlistEntry(
            user_id=user_id,
            ticker_id=ticker.ticker_id,
            notification_enabled=notification_enabled
        )
        db.add(entry)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info(f"User {user_id} already watches {ticker_symbol}")
            raise ConflictError("Ticker already in watchlist")

        await db.refresh(entry)
        logger.info(f"User {user_id} added {ticker_symbol} to watchlist")
        return entry

    @staticmethod
    async def set_watchlist_notification(
        db: AsyncSession,
        user_id: str,
        symbol: str,
        enabled: bool,
        ticker_type: Union[str, TickerType, None] = None
    ) -> WatchlistEntry:
        """
        Set the notification flag of a watchlist entry, creating the entry if needed.

        The entry is updated in place when it exists and inserted otherwise,
        within one transaction. If a concurrent request inserts the same entry
        (or the same new ticker) first, the whole attempt is retried once.
        """
        await UserService.require_user(db, user_id)

        for attempt in range(2):
            try:
                # A rollback discards a lazily created ticker, so resolve it on every attempt
                ticker = await TickerService.resolve_or_create(db, symbol, ticker_type)
                ticker_id = ticker.ticker_id
                ticker_symbol = ticker.symbol

                entry = await WatchlistService._get_entry(db, user_id, ticker_id)
                if entry is None:
                    entry = WatchlistEntry(
                        user_id=user_id,
                        ticker_id=ticker_id,
                        notification_enabled=enabled
                    )
                    db.add(entry)
                else:
                    entry.notification_enabled = enabled

                await db.commit()
            except IntegrityError:
                await db.rollback()
                if attempt:
                    raise ConflictError("Watchlist entry changed concurrently; retry")
                logger.info(f"Concurrent write of {symbol} for {user_id}, retrying")
                continue

            await db.refresh(entry)
            logger.info(f"User {user_id} set notifications for {ticker_symbol} to {enabled}")
            return entry

    @staticmethod
    async def remove_from_watchlist(
        db: AsyncSession,
        user_id: str,
        symbol: str
    ) -> bool:
        """
        Remove a ticker from user's watchlist.

        Raises:
            NotFoundError: If the user, the ticker or the entry does not exist
        """
        await UserService.require_user(db, user_id)

        symbol = normalize_symbol(symbol)
        ticker = await TickerService.get_ticker_by_symbol(db, symbol)
        if ticker is None:
            raise NotFoundError("Ticker not found")

        result = await db.execute(
            delete(WatchlistEntry).where(
                WatchlistEntry.user_id == user_id,
                WatchlistEntry.ticker_id == ticker.ticker_id
            )
        )
        if result.rowcount == 0:
            await db.rollback()
            raise NotFoundError("Watchlist entry not found")

        await db.commit()
        logger.info(f"User {user_id} removed {symbol} from watchlist")
        return True

    @staticmethod
    async def list_watchlist(db: AsyncSession, user_id: str) -> List[Ticker]:
        """Tickers on the user's watchlist, oldest entry first."""
        await UserService.require_user(db, user_id)

        result = await db.execute(
            select(Ticker)
            .join(WatchlistEntry, WatchlistEntry.ticker_id == Ticker.ticker_id)
            .where(WatchlistEntry.user_id == user_id)
            .order_by(WatchlistEntry.watchlist_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _get_entry(
        db: AsyncSession,
        user_id: str,
        ticker_id: int
    ) -> Optional[WatchlistEntry]:
        result = await db.execute(
            select(WatchlistEntry).where(
                WatchlistEntry.user_id == user_id,
                WatchlistEntry.ticker_id == ticker_id
            )
        )
        return result.scalar_one_or_none()
