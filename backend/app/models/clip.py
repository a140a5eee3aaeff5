"""Rendered clip model."""
import enum
import json
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Enum, Float, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.db.database import Base
from app.models.video import new_id


class ClipStatus(str, enum.Enum):
    """Clip render status."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class Clip(Base):
    """A time window of a video rendered to a vertical output file."""

    __tablename__ = "clips"

    id = Column(String(36), primary_key=True, default=new_id)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(1024), nullable=True)
    start_time = Column(Float, nullable=False)
    end_time = Column(Float, nullable=False)
    file_path = Column(String(4096), nullable=True)
    status = Column(Enum(ClipStatus), default=ClipStatus.PROCESSING, nullable=False)
    error_message = Column(Text, nullable=True)

    # Subtitle cues used for the render, JSON array stored as text
    subtitles = Column(Text, nullable=False, default="[]")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    video = relationship("Video", back_populates="clips")

    def __repr__(self):
        return f"<Clip(id={self.id}, video_id={self.video_id}, status={self.status})>"

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def subtitle_list(self):
        """Decode the stored subtitle cues."""
        return json.loads(self.subtitles) if self.subtitles else []

    def to_dict(self):
        """Convert to dictionary."""
        return {
            "id": self.id,
            "video_id": self.video_id,
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "file_path": self.file_path,
            "status": self.status.value if self.status else None,
            "subtitles": self.subtitle_list(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
