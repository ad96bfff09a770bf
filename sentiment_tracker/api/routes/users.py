"""User registration, notification and watchlist API routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from sentiment_tracker.api.schemas import (
    CamelModel,
    SuccessResponse,
    TickerResponse,
    UserResponse,
    WatchlistEntryResponse,
    entry_to_dict,
    ticker_to_dict,
    user_to_dict,
)
from sentiment_tracker.core.auth import ensure_owner, get_current_user
from sentiment_tracker.core.database import get_db
from sentiment_tracker.models import TickerType, User
from sentiment_tracker.services.user_service import UserService
from sentiment_tracker.services.watchlist_service import WatchlistService

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


class RegisterRequest(CamelModel):
    """User registration request."""
    user_id: str
    email: EmailStr
    username: Optional[str] = None


class NotificationRequest(CamelModel):
    """Toggle request for a notification flag."""
    enabled: bool


class AddWatchlistRequest(CamelModel):
    """Request to add a ticker to the watchlist."""
    symbol: str
    type: Optional[TickerType] = None
    notification_enabled: bool = True


class WatchlistNotificationRequest(CamelModel):
    """Per-ticker notification toggle; type is needed only for unknown tickers."""
    enabled: bool
    type: Optional[TickerType] = None


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    register_request: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a user explicitly (outside the login flow)."""
    logger.info(f"Registration request received for user: {register_request.user_id}")

    user = await UserService.register_user(
        db,
        register_request.user_id,
        register_request.email,
        register_request.username
    )
    return user_to_dict(user)


@router.patch("/notifications", response_model=SuccessResponse)
async def set_my_notifications(
    request: NotificationRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Toggle global notifications for the authenticated user."""
    ok = await UserService.set_notifications(db, current_user.user_id, request.enabled)
    return {"success": ok}


@router.patch("/{user_id}/notifications", response_model=SuccessResponse)
async def set_notifications(
    user_id: str,
    request: NotificationRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Toggle global notifications for a user."""
    ensure_owner(user_id, current_user)
    ok = await UserService.set_notifications(db, user_id, request.enabled)
    return {"success": ok}


@router.post("/{user_id}/watchlist", response_model=WatchlistEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_to_watchlist(
    user_id: str,
    request: AddWatchlistRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Add a ticker to the user's watchlist.

    Unknown tickers are created when a type is supplied.
    """
    ensure_owner(user_id, current_user)
    entry = await WatchlistService.add_to_watchlist(
        db,
        user_id,
        request.symbol,
        request.type,
        request.notification_enabled
    )
    return entry_to_dict(entry)


@router.patch("/{user_id}/watchlist/{symbol}/notifications", response_model=WatchlistEntryResponse)
async def set_watchlist_notification(
    user_id: str,
    symbol: str,
    request: WatchlistNotificationRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set per-ticker notifications, creating the ticker and entry if missing."""
    ensure_owner(user_id, current_user)
    entry = await WatchlistService.set_watchlist_notification(
        db,
        user_id,
        symbol,
        request.enabled,
        request.type
    )
    return entry_to_dict(entry)


@router.delete("/{user_id}/watchlist/{symbol}", response_model=SuccessResponse)
async def remove_from_watchlist(
    user_id: str,
    symbol: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a ticker from the user's watchlist."""
    ensure_owner(user_id, current_user)
    await WatchlistService.remove_from_watchlist(db, user_id, symbol)
    return {"success": True}


@router.get("/{user_id}/watchlist", response_model=List[TickerResponse])
async def get_watchlist(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get all tickers on the user's watchlist."""
    ensure_owner(user_id, current_user)
    tickers = await WatchlistService.list_watchlist(db, user_id)
    return [ticker_to_dict(ticker) for ticker in tickers]
