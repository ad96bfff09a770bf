#!/usr/bin/env python3
"""
Expired Session Cleanup Script

Deletes every session whose expiry is at or before now. Expired sessions
are already rejected at request time; this only reclaims the rows.

Usage:
    python scripts/cleanup_sessions.py

    Or to count without deleting:
    python scripts/cleanup_sessions.py --dry-run
"""
import asyncio
import sys
import argparse
from pathlib import Path

from sqlalchemy import func, select

# Add parent directory to path to import sentiment_tracker modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sentiment_tracker.core.database import get_async_session
from sentiment_tracker.models import Session
from sentiment_tracker.services.session_service import SessionService
from sentiment_tracker.utils.time import utcnow


async def cleanup_sessions(dry_run: bool = False) -> int:
    """Delete (or just count) expired sessions."""
    async with get_async_session() as db:
        if dry_run:
            result = await db.execute(
                select(func.count()).select_from(Session).where(Session.expires_at <= utcnow())
            )
            return result.scalar_one()
        return await SessionService.delete_expired_sessions(db)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Delete expired login sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Only count expired sessions'
    )
    args = parser.parse_args()

    print("🚀 Starting session cleanup...")
    print("="*60)
    count = asyncio.run(cleanup_sessions(args.dry_run))

    if args.dry_run:
        print(f"📊 Expired sessions: {count}")
    else:
        print(f"✅ Deleted: {count}")
    print("="*60)


if __name__ == "__main__":
    main()
