"""Health check endpoints for API and database monitoring."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging

from sentiment_tracker.core.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "sentiment-tracker-api"}


@router.get("/health/db")
async def check_database_health(db: AsyncSession = Depends(get_db)):
    """
    Database connectivity check.

    Returns 503 with the error type when the database cannot be reached.
    """
    logger.debug("Starting database health check")

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e),
                "error_type": type(e).__name__
            }
        )

    dialect = db.get_bind().dialect.name
    logger.debug(f"✓ Database connection successful ({dialect})")
    return {"status": "healthy", "database": dialect}
