"""Background processing pipeline: download, transcribe, analyze."""
import asyncio
import logging
from pathlib import Path
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings, settings as default_settings
from app.db.database import async_session_maker
from app.models.video import Video, VideoStatus
from app.pipeline.analysis import AnalysisStage, build_analysis_backend
from app.pipeline.transcription import TranscriptionStage, build_transcriber
from app.services.status_broker import StatusBroker
from app.services.video_service import VideoService
from app.utils.ytdlp import VideoMetadata, YtdlpDownloader
from app.workers.job_runner import TaskRunner

logger = logging.getLogger(__name__)


class Downloader(Protocol):
    """Download backend."""

    async def fetch_metadata(self, url: str) -> VideoMetadata:
        ...

    async def download(self, url: str, output_path: Path) -> Path:
        ...


class PipelineCoordinator:
    """
    Runs one background task per submitted video.

    Each phase sets the video status, persists it and notifies observers
    before doing its work. A failing phase marks the video as `error` and
    stops the run; saving a transcript or suggestions is best-effort.
    """

    def __init__(
        self,
        broker: StatusBroker,
        runner: TaskRunner,
        downloader: Downloader,
        transcription: TranscriptionStage,
        analysis: AnalysisStage,
        videos_dir: Path,
        session_maker: async_sessionmaker = async_session_maker,
        download_status_delay: float = 0.5,
        status_delay: float = 0.3,
    ):
        self.broker = broker
        self.runner = runner
        self.downloader = downloader
        self.transcription = transcription
        self.analysis = analysis
        self.videos_dir = Path(videos_dir)
        self.session_maker = session_maker
        self.download_status_delay = download_status_delay
        self.status_delay = status_delay

    @classmethod
    def from_settings(
        cls,
        broker: StatusBroker,
        runner: TaskRunner,
        config: Settings = default_settings,
        session_maker: async_sessionmaker = async_session_maker,
    ) -> "PipelineCoordinator":
        """Wire the production backends from configuration."""
        return cls(
            broker=broker,
            runner=runner,
            downloader=YtdlpDownloader(),
            transcription=TranscriptionStage(build_transcriber(config), config.transcripts_dir),
            analysis=AnalysisStage(build_analysis_backend(config), config.analysis_language),
            videos_dir=config.videos_dir,
            session_maker=session_maker,
            download_status_delay=config.download_status_delay_seconds,
            status_delay=config.status_delay_seconds,
        )

    async def submit(self, db: AsyncSession, url: str) -> Video:
        """Create a pending video for url and start processing it in the background."""
        video = await VideoService(db).create_video(url)
        self.start(video.id, video.url)
        return video

    def start(self, video_id: str, url: str) -> bool:
        """Start the pipeline task for an existing video."""
        return self.runner.start(video_id, self.run, video_id=video_id, url=url)

    async def _set_status(self, video_id: str, status: VideoStatus, delay: float = 0.0, **fields):
        async with self.session_maker() as session:
            await VideoService(session).update_video(video_id, status=status, **fields)
        await self.broker.publish(video_id, status.value)
        if delay > 0:
            await asyncio.sleep(delay)

    async def _fail(self, video_id: str, phase: str, error: Exception):
        logger.error(f"[{video_id}] {phase} failed: {error}")
        try:
            await self._set_status(video_id, VideoStatus.ERROR, error_message=f"{phase} failed: {error}"[:4096])
        except Exception:
            logger.exception(f"[{video_id}] Could not record error status")

    async def run(self, video_id: str, url: str) -> VideoStatus:
        """
        Run all phases for one video.

        Returns:
            Terminal status, COMPLETED or ERROR
        """
        # Download
        try:
            logger.info(f"[{video_id}] Starting download phase")
            await self._set_status(video_id, VideoStatus.DOWNLOADING, delay=self.download_status_delay)

            metadata = await self.downloader.fetch_metadata(url)
            file_path = await self.downloader.download(url, self.videos_dir / f"{video_id}.mp4")
            logger.info(f"[{video_id}] Video downloaded successfully: {metadata.title}")
        except Exception as e:
            await self._fail(video_id, "Download", e)
            return VideoStatus.ERROR

        # Transcription
        try:
            logger.info(f"[{video_id}] Starting transcription phase")
            await self._set_status(
                video_id,
                VideoStatus.TRANSCRIBING,
                delay=self.status_delay,
                title=metadata.title,
                duration=metadata.duration,
                thumbnail_url=metadata.thumbnail_url,
                file_path=str(file_path),
            )
            transcript = await self.transcription.run(file_path, video_id)
        except Exception as e:
            await self._fail(video_id, "Transcription", e)
            return VideoStatus.ERROR

        try:
            async with self.session_maker() as session:
                await VideoService(session).save_transcript(video_id, transcript)
        except Exception as e:
            logger.warning(f"[{video_id}] Failed to save transcript: {e}")

        # Analysis
        try:
            logger.info(f"[{video_id}] Starting analysis phase")
            await self._set_status(video_id, VideoStatus.ANALYZING, delay=self.status_delay)
            suggestions = await self.analysis.run(transcript, video_id)
        except Exception as e:
            await self._fail(video_id, "Analysis", e)
            return VideoStatus.ERROR

        try:
            async with self.session_maker() as session:
                await VideoService(session).save_suggested_clips(suggestions)
        except Exception as e:
            logger.warning(f"[{video_id}] Failed to save suggested clips: {e}")

        try:
            await self._set_status(video_id, VideoStatus.COMPLETED)
        except Exception as e:
            await self._fail(video_id, "Completion", e)
            return VideoStatus.ERROR

        logger.info(f"[{video_id}] Video ready: {metadata.title} ({len(suggestions)} clips suggested)")
        return VideoStatus.COMPLETED
