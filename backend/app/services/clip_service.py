"""Clip service layer."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.clip import Clip, ClipStatus
from app.models.video import Video
from app.pipeline.subtitles import SubtitleCue
from app.utils.ffmpeg import FFmpegError, render_clip

logger = logging.getLogger(__name__)


class ClipService:
    """Service for clip operations."""

    def __init__(self, db: AsyncSession, clips_dir: Optional[Path] = None):
        self.db = db
        self.clips_dir = Path(clips_dir or settings.clips_dir)

    async def create_clip(
        self,
        video_id: str,
        start_time: float,
        end_time: float,
        title: Optional[str] = None,
        subtitles: Optional[List[SubtitleCue]] = None
    ) -> Clip:
        """
        Create a clip record in the processing state.

        Args:
            video_id: Owning video
            start_time: Start time in seconds
            end_time: End time in seconds
            title: Optional clip title
            subtitles: Cues to burn in

        Returns:
            Created clip
        """
        if start_time < 0:
            raise ValueError("Start time cannot be negative")
        if end_time <= start_time:
            raise ValueError("End time must be after start time")

        clip = Clip(
            video_id=video_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            status=ClipStatus.PROCESSING,
            subtitles=json.dumps([cue.to_dict() for cue in subtitles or []]),
        )
        self.db.add(clip)
        await self.db.commit()
        await self.db.refresh(clip)
        return clip

    async def get_clip(self, clip_id: str) -> Optional[Clip]:
        """Get a clip by ID."""
        return await self.db.get(Clip, clip_id)

    async def list_clips(self, video_id: str) -> List[Clip]:
        """List all rendered clips for a video, newest first."""
        result = await self.db.execute(
            select(Clip)
            .where(Clip.video_id == video_id)
            .order_by(Clip.created_at.desc())
        )
        return result.scalars().all()

    async def update_clip(self, clip_id: str, **fields) -> Clip:
        """Update columns of a clip and commit."""
        clip = await self.db.get(Clip, clip_id)
        if not clip:
            raise ValueError(f"Clip {clip_id} not found")

        for name, value in fields.items():
            setattr(clip, name, value)

        await self.db.commit()
        await self.db.refresh(clip)
        return clip

    async def delete_clip(self, clip_id: str) -> bool:
        """Delete a clip and its output file."""
        clip = await self.db.get(Clip, clip_id)
        if not clip:
            return False

        if clip.file_path:
            Path(clip.file_path).unlink(missing_ok=True)

        await self.db.delete(clip)
        await self.db.commit()
        return True

    async def render(self, video: Video, clip: Clip) -> Clip:
        """
        Render a clip from its video and record the outcome.

        The clip ends `completed` with a file path and completion time, or
        `error`; render failures are re-raised to the caller.

        Raises:
            ClipValidationError: Invalid window or missing source file
            FFmpegError: Render process failed
        """
        cues = [SubtitleCue.from_dict(cue) for cue in clip.subtitle_list()]
        output_path = self.clips_dir / f"{clip.id}.mp4"

        try:
            await render_clip(video.file_path, output_path, clip.start_time, clip.end_time, cues)
        except (ValueError, FFmpegError) as e:
            logger.error(f"Failed to render clip {clip.id}: {e}")
            clip.status = ClipStatus.ERROR
            clip.error_message = str(e)
            await self.db.commit()
            raise

        clip.file_path = str(output_path)
        clip.status = ClipStatus.COMPLETED
        clip.completed_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(clip)

        logger.info(f"Clip created successfully: {output_path}")
        return clip
