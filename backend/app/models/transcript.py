"""Transcript and suggested clip models."""
import json
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.db.database import Base
from app.models.video import new_id


class Transcript(Base):
    """Timestamped transcript of a video's audio track (one per video)."""

    __tablename__ = "transcripts"

    id = Column(String(36), primary_key=True, default=new_id)
    video_id = Column(
        String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    language = Column(String(32), nullable=True)
    segments = Column(Text, nullable=False, default="[]")  # JSON array of {start, end, text}
    full_text = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    video = relationship("Video", back_populates="transcript")

    def __repr__(self):
        return f"<Transcript(video_id={self.video_id}, language='{self.language}')>"

    def segment_list(self):
        """Decode the stored segments."""
        return json.loads(self.segments) if self.segments else []

    def to_dict(self):
        """Convert to dictionary."""
        return {
            "id": self.id,
            "video_id": self.video_id,
            "language": self.language,
            "segments": self.segment_list(),
            "full_text": self.full_text,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SuggestedClip(Base):
    """Clip window proposed by the analysis backend."""

    __tablename__ = "suggested_clips"

    id = Column(String(36), primary_key=True, default=new_id)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(Float, nullable=False)
    end_time = Column(Float, nullable=False)
    title = Column(String(1024), nullable=True)
    description = Column(Text, nullable=True)
    score = Column(Float, nullable=True)  # viral potential, 0-100
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    video = relationship("Video", back_populates="suggested_clips")

    def __repr__(self):
        return f"<SuggestedClip(id={self.id}, {self.start_time:.2f}-{self.end_time:.2f}, score={self.score})>"
