"""
Backfill genre names for watchlist rows saved before genres were stored.
Safe to re-run: only rows with no genres are touched.

    python -m bingebox.scripts.backfill_watchlist_genres
"""
import asyncio
import logging

from bingebox.core.database import SessionLocal
from bingebox.services import tmdb_client, watchlist_store

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DELAY_BETWEEN_ITEMS = 0.25  # TMDB rate limit


async def backfill_watchlist_genres(sleep=asyncio.sleep):
    """Fetch and store genres for every watchlist row missing them; returns (updated, failed)."""
    db = SessionLocal()
    updated = failed = 0
    try:
        rows = watchlist_store.rows_missing_genres(db)
        logger.info(f"Found {len(rows)} watchlist items without genres")
        if not rows:
            return updated, failed

        for row in rows:
            try:
                genres = await tmdb_client.fetch_genre_names(row.media_type, row.media_id)
                watchlist_store.set_genres(db, row.id, genres)
                updated += 1
                logger.info(f"✓ {row.media_type}/{row.media_id} ({row.title}): {', '.join(genres) or 'no genres'}")
            except Exception as e:
                db.rollback()
                failed += 1
                logger.error(f"✗ Failed to backfill genres for {row.media_type}/{row.media_id}: {e}")
            await sleep(DELAY_BETWEEN_ITEMS)

        logger.info(f"Backfill complete: {updated} updated, {failed} failed")
        return updated, failed
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(backfill_watchlist_genres())
