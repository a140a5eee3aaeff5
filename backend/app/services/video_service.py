"""Video service layer: videos, transcripts and suggested clips."""
import json
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transcript import SuggestedClip, Transcript
from app.models.video import Video, VideoStatus
from app.pipeline.analysis import ClipSuggestion
from app.pipeline.transcription import TranscriptResult


class VideoService:
    """Service for video persistence operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_video(self, url: str) -> Video:
        """Create a pending video record for a source URL."""
        url = (url or "").strip()
        if not url:
            raise ValueError("A video URL is required")

        video = Video(url=url, status=VideoStatus.PENDING)
        self.db.add(video)
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def get_video(self, video_id: str) -> Optional[Video]:
        """Get a video by ID."""
        return await self.db.get(Video, video_id)

    async def list_videos(self) -> List[Video]:
        """List all videos, newest first."""
        result = await self.db.execute(
            select(Video).order_by(Video.created_at.desc())
        )
        return result.scalars().all()

    async def update_video(self, video_id: str, **fields) -> Video:
        """
        Update columns of a video and commit.

        Args:
            video_id: Video ID
            **fields: Column values to set

        Returns:
            Updated video
        """
        video = await self.db.get(Video, video_id)
        if not video:
            raise ValueError(f"Video {video_id} not found")

        for name, value in fields.items():
            setattr(video, name, value)

        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def delete_video(self, video_id: str) -> bool:
        """Delete a video together with its transcript, suggestions and clips."""
        video = await self.db.get(Video, video_id)
        if not video:
            return False

        await self.db.delete(video)
        await self.db.commit()
        return True

    async def save_transcript(self, video_id: str, transcript: TranscriptResult) -> Transcript:
        """Store a video's transcript, replacing any previous one."""
        await self.db.execute(delete(Transcript).where(Transcript.video_id == video_id))

        record = Transcript(
            video_id=video_id,
            language=transcript.language,
            segments=json.dumps([s.to_dict() for s in transcript.segments]),
            full_text=transcript.full_text,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def get_transcript(self, video_id: str) -> Optional[Transcript]:
        """Get the transcript for a video."""
        result = await self.db.execute(
            select(Transcript).where(Transcript.video_id == video_id)
        )
        return result.scalar_one_or_none()

    async def save_suggested_clips(self, suggestions: Iterable[ClipSuggestion]) -> int:
        """Store one batch of suggestions in a single transaction."""
        count = 0
        for suggestion in suggestions:
            self.db.add(SuggestedClip(**suggestion.to_dict()))
            count += 1
        await self.db.commit()
        return count

    async def get_suggested_clips(self, video_id: str) -> List[SuggestedClip]:
        """List suggestions for a video, highest score first."""
        result = await self.db.execute(
            select(SuggestedClip)
            .where(SuggestedClip.video_id == video_id)
            .order_by(SuggestedClip.score.desc())
        )
        return result.scalars().all()
