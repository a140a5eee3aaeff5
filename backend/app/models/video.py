"""Video model."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship

from app.db.database import Base


def new_id() -> str:
    """Generate a fresh string identity."""
    return str(uuid.uuid4())


class VideoStatus(str, enum.Enum):
    """Video lifecycle status.

    Moves forward one phase at a time; ERROR ends the pipeline run.
    """
    PENDING = "pending"
    DOWNLOADING = "downloading"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    ERROR = "error"


class Video(Base):
    """Source video submitted for processing."""

    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=new_id)
    url = Column(String(2048), nullable=False)
    title = Column(String(1024), nullable=True)
    duration = Column(Integer, nullable=True)
    file_path = Column(String(4096), nullable=True)
    thumbnail_url = Column(String(2048), nullable=True)

    status = Column(Enum(VideoStatus), default=VideoStatus.PENDING, nullable=False, index=True)
    error_message = Column(String(4096), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    transcript = relationship(
        "Transcript", back_populates="video", uselist=False, cascade="all, delete-orphan"
    )
    suggested_clips = relationship(
        "SuggestedClip", back_populates="video", cascade="all, delete-orphan"
    )
    clips = relationship("Clip", back_populates="video", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Video(id={self.id}, title='{self.title}', status={self.status})>"

    def to_dict(self):
        """Convert to dictionary."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "duration": self.duration,
            "file_path": self.file_path,
            "thumbnail_url": self.thumbnail_url,
            "status": self.status.value if self.status else None,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
