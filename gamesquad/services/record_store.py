"""
Record store for the shared watchlist.

Thin async wrapper around the video_records table. Every method opens its own
session so callers never hold one across awaits on other resources. Database
failures surface as RecordStoreError; a missing row on delete is not an error.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..models import VideoRecord, utcnow

logger = logging.getLogger(__name__)

DEFAULT_ADDED_BY = "Anonymous"


class RecordStoreError(Exception):
    """Raised when the underlying database rejects an operation."""


class RecordStore:
    """Append, list and remove shared video records."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def add(self, url: str, title: Optional[str], added_by: Optional[str] = None,
                  added_at: Optional[datetime] = None) -> dict:
        """Persist a new record and return it with its generated id."""
        record = VideoRecord(
            url=url,
            title=title,
            added_by=added_by or DEFAULT_ADDED_BY,
            added_at=added_at or utcnow(),
        )
        async with self._session_factory() as db:
            try:
                db.add(record)
                await db.commit()
                await db.refresh(record)
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"[Records] Failed to add {url!r}: {e}")
                raise RecordStoreError("Failed to add record") from e

        logger.info(f"[Records] Added record {record.id} by {record.added_by}")
        return record.to_dict()

    async def list(self, limit: int = 10) -> List[dict]:
        """Most recent records first."""
        async with self._session_factory() as db:
            try:
                result = await db.execute(
                    select(VideoRecord)
                    .order_by(VideoRecord.added_at.desc(), VideoRecord.id.desc())
                    .limit(limit)
                )
                return [r.to_dict() for r in result.scalars().all()]
            except SQLAlchemyError as e:
                logger.error(f"[Records] Failed to list records: {e}")
                raise RecordStoreError("Failed to list records") from e

    async def remove(self, record_id: int) -> bool:
        """Delete a record by id. Returns False if no such record exists."""
        async with self._session_factory() as db:
            try:
                result = await db.execute(
                    delete(VideoRecord).where(VideoRecord.id == record_id)
                )
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"[Records] Failed to remove record {record_id}: {e}")
                raise RecordStoreError("Failed to remove record") from e

        removed = result.rowcount > 0
        if removed:
            logger.info(f"[Records] Removed record {record_id}")
        return removed

    async def prune_older_than(self, days: int) -> List[int]:
        """Delete records added more than `days` days ago. Returns the removed ids."""
        cutoff = utcnow() - timedelta(days=days)
        async with self._session_factory() as db:
            try:
                result = await db.execute(
                    select(VideoRecord.id).where(VideoRecord.added_at < cutoff)
                )
                expired = list(result.scalars().all())
                if expired:
                    await db.execute(
                        delete(VideoRecord).where(VideoRecord.id.in_(expired))
                    )
                    await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"[Records] Failed to prune records: {e}")
                raise RecordStoreError("Failed to prune records") from e

        if expired:
            logger.info(f"[Records] Pruned {len(expired)} records older than {days} days")
        return expired
