"""
GameSquad database models
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime
from .database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite keeps no timezone so everything is stored as UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class VideoRecord(Base):
    """A video link shared with everyone in the session"""
    __tablename__ = "video_records"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(Text, nullable=False)
    title = Column(String(500), nullable=True)
    added_by = Column(String(255), nullable=False, default="Anonymous")
    added_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        added_at = self.added_at.replace(tzinfo=timezone.utc) if self.added_at else None
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "addedBy": self.added_by,
            "addedAt": added_at.isoformat() if added_at else None,
        }
