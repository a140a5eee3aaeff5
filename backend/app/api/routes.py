"""API routes."""
import logging
import uuid
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, WebSocket
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.background import BackgroundTask

from app.config import settings
from app.db.database import get_db
from app.models.clip import Clip, ClipStatus
from app.models.transcript import SuggestedClip, Transcript
from app.models.video import Video
from app.pipeline.analysis import AnalysisError
from app.pipeline.subtitles import SubtitleCue
from app.services.clip_service import ClipService
from app.services.seo_service import SEOService
from app.services.video_service import VideoService
from app.utils.ffmpeg import (
    ClipValidationError,
    FFmpegError,
    check_ffmpeg_available,
    check_ffprobe_available,
    convert_webm_to_mp4,
    extract_raw_clip,
)
from app.utils.ytdlp import check_ytdlp_available
from app.api.schemas import (
    VideoCreate,
    VideoResponse,
    TranscriptResponse,
    SuggestedClipResponse,
    ClipExportRequest,
    ClipExportResponse,
    ClipResponse,
    ExtractClipRequest,
    SEORequest,
    SEOResponse,
    HealthResponse,
    MessageResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


# =============================================================================
# Health & System
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check API health and dependencies."""
    ffmpeg_ok = check_ffmpeg_available()
    ffprobe_ok = check_ffprobe_available()
    ytdlp_ok = check_ytdlp_available()

    all_ok = ffmpeg_ok and ffprobe_ok and ytdlp_ok

    message = None
    if not all_ok:
        missing = []
        if not ffmpeg_ok:
            missing.append("ffmpeg")
        if not ffprobe_ok:
            missing.append("ffprobe")
        if not ytdlp_ok:
            missing.append("yt-dlp")
        message = f"Missing dependencies: {', '.join(missing)}"

    return HealthResponse(
        status="healthy" if all_ok else "degraded",
        ffmpeg_available=ffmpeg_ok,
        ffprobe_available=ffprobe_ok,
        ytdlp_available=ytdlp_ok,
        message=message
    )


# =============================================================================
# Videos
# =============================================================================

@router.post("/videos", response_model=VideoResponse)
async def process_video(
    data: VideoCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Submit a video URL; processing continues in the background."""
    coordinator = request.app.state.coordinator
    try:
        video = await coordinator.submit(db, data.url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Video {video.id} submitted for processing: {video.url}")
    return _video_to_response(video)


@router.get("/videos", response_model=List[VideoResponse])
async def list_videos(db: AsyncSession = Depends(get_db)):
    """List all videos."""
    videos = await VideoService(db).list_videos()
    return [_video_to_response(v) for v in videos]


@router.get("/videos/{video_id}", response_model=VideoResponse)
async def get_video(video_id: str, db: AsyncSession = Depends(get_db)):
    """Get a video by ID."""
    return _video_to_response(await _require_video(video_id, db))


@router.delete("/videos/{video_id}", response_model=MessageResponse)
async def delete_video(video_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a video with its transcript, suggestions and clips."""
    if not await VideoService(db).delete_video(video_id):
        raise HTTPException(status_code=404, detail="Video not found")
    return MessageResponse(message="Video deleted")


@router.get("/videos/{video_id}/stream")
async def stream_video(video_id: str, db: AsyncSession = Depends(get_db)):
    """Serve the downloaded source video."""
    video = await _require_video(video_id, db)

    if not video.file_path:
        raise HTTPException(status_code=404, detail="No video file available")

    video_path = Path(video.file_path)
    if not video_path.exists():
        raise HTTPException(status_code=404, detail="Video file not found")

    return FileResponse(video_path, media_type="video/mp4")


@router.get("/videos/{video_id}/transcript", response_model=TranscriptResponse)
async def get_transcript(video_id: str, db: AsyncSession = Depends(get_db)):
    """Get the transcript of a video."""
    transcript = await VideoService(db).get_transcript(video_id)
    if not transcript:
        raise HTTPException(status_code=404, detail="Transcript not found")
    return _transcript_to_response(transcript)


@router.get("/videos/{video_id}/clips", response_model=List[SuggestedClipResponse])
async def get_suggested_clips(video_id: str, db: AsyncSession = Depends(get_db)):
    """Get the clips suggested for a video, best first."""
    await _require_video(video_id, db)
    suggestions = await VideoService(db).get_suggested_clips(video_id)
    return [_suggestion_to_response(s) for s in suggestions]


@router.post("/videos/{video_id}/extract-clip")
async def extract_clip(
    video_id: str,
    data: ExtractClipRequest,
    db: AsyncSession = Depends(get_db)
):
    """Cut a vertical clip without subtitles and return the file."""
    if data.start_time < 0 or data.end_time <= data.start_time:
        raise HTTPException(status_code=400, detail="Invalid time range")

    video = await _require_video(video_id, db)
    if not video.file_path:
        raise HTTPException(status_code=400, detail="Video file not available")

    try:
        clip_path = await extract_raw_clip(
            video.file_path, settings.clips_dir, video.id, data.start_time, data.end_time
        )
    except ClipValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FFmpegError as e:
        logger.error(f"Failed to extract clip from {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to extract clip")

    return FileResponse(clip_path, media_type="video/mp4", headers={"Accept-Ranges": "bytes"})


@router.post("/videos/{video_id}/generate-seo", response_model=SEOResponse)
async def generate_seo(
    video_id: str,
    data: SEORequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Generate a title, description and tags for a clip of the video."""
    video = await _require_video(video_id, db)
    transcript = await VideoService(db).get_transcript(video_id)

    service = SEOService(request.app.state.analysis_backend, settings.analysis_language)
    try:
        seo = await service.generate(
            video.title, data.clip_title, transcript, data.clip_start_time, data.clip_end_time
        )
    except AnalysisError as e:
        logger.error(f"[{video_id}] Failed to generate SEO: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate SEO content")

    return SEOResponse(**seo.to_dict())


@router.websocket("/videos/{video_id}/ws")
async def video_status_ws(websocket: WebSocket, video_id: str):
    """Push `{"type": "status", "status": ...}` messages for one video."""
    broker = websocket.app.state.broker
    await websocket.accept()
    await broker.subscribe(video_id, websocket)
    try:
        while True:
            # Client frames (text or binary) are ignored; only the disconnect matters
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"Client disconnected from video {video_id}")
                break
    finally:
        await broker.unsubscribe(video_id, websocket)


# =============================================================================
# Clips
# =============================================================================

@router.post("/clips/{video_id}/export", response_model=ClipExportResponse)
async def export_clip(
    video_id: str,
    data: ClipExportRequest,
    db: AsyncSession = Depends(get_db)
):
    """Render a clip with burned-in subtitles and wait for the result."""
    video = await _require_video(video_id, db)
    if not video.file_path:
        raise HTTPException(status_code=400, detail="Video file not available")

    logger.info(
        f"Exporting clip from video {video_id}: {data.start_time:.2f}-{data.end_time:.2f}, "
        f"{len(data.subtitles)} subtitles"
    )

    service = ClipService(db)
    cues = [SubtitleCue.from_dict(cue.model_dump()) for cue in data.subtitles]
    try:
        clip = await service.create_clip(video_id, data.start_time, data.end_time, data.title, cues)
        clip = await service.render(video, clip)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FFmpegError:
        raise HTTPException(status_code=500, detail="Failed to process clip")

    return ClipExportResponse(
        id=clip.id,
        download_url=f"/api/clips/{clip.id}/download",
        status=clip.status.value
    )


@router.get("/clips/{clip_id}", response_model=ClipResponse)
async def get_clip(clip_id: str, db: AsyncSession = Depends(get_db)):
    """Get a clip by ID."""
    return _clip_to_response(await _require_clip(clip_id, db))


@router.get("/clips/{clip_id}/download")
async def download_clip(clip_id: str, db: AsyncSession = Depends(get_db)):
    """Download a rendered clip as an attachment."""
    clip = await _require_clip(clip_id, db)

    if clip.status != ClipStatus.COMPLETED or not clip.file_path:
        raise HTTPException(status_code=400, detail="Clip is not ready yet")

    clip_path = Path(clip.file_path)
    if not clip_path.exists():
        raise HTTPException(status_code=404, detail="Clip file not found")

    return FileResponse(
        clip_path,
        media_type="application/octet-stream",
        filename=f"clip_{clip.id}.mp4"
    )


@router.delete("/clips/{clip_id}", response_model=MessageResponse)
async def delete_clip(clip_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a clip and its file."""
    if not await ClipService(db).delete_clip(clip_id):
        raise HTTPException(status_code=404, detail="Clip not found")
    return MessageResponse(message="Clip deleted")


# =============================================================================
# Conversion
# =============================================================================

@router.post("/convert-webm-to-mp4")
async def convert_webm(video: UploadFile = File(...)):
    """Convert an uploaded WebM recording to MP4."""
    filename = video.filename or ""
    if video.content_type != "video/webm" and not filename.endswith(".webm"):
        raise HTTPException(status_code=400, detail="Only WebM files are supported")

    token = uuid.uuid4().hex
    temp_webm = settings.temp_dir / f"temp_{token}.webm"
    output_mp4 = settings.temp_dir / f"converted_{token}.mp4"

    try:
        with open(temp_webm, "wb") as f:
            content = await video.read()
            f.write(content)

        logger.info(f"Converting WebM upload {filename} ({len(content) / 1024 / 1024:.2f} MB)")
        await convert_webm_to_mp4(temp_webm, output_mp4)
    except FFmpegError as e:
        output_mp4.unlink(missing_ok=True)
        raise HTTPException(status_code=500, detail=f"Conversion failed: {e}")
    finally:
        temp_webm.unlink(missing_ok=True)

    return FileResponse(
        output_mp4,
        media_type="video/mp4",
        filename=output_mp4.name,
        background=BackgroundTask(output_mp4.unlink, missing_ok=True)
    )


# =============================================================================
# Helpers
# =============================================================================

async def _require_video(video_id: str, db: AsyncSession) -> Video:
    video = await VideoService(db).get_video(video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


async def _require_clip(clip_id: str, db: AsyncSession) -> Clip:
    clip = await ClipService(db).get_clip(clip_id)
    if not clip:
        raise HTTPException(status_code=404, detail="Clip not found")
    return clip


def _video_to_response(video: Video) -> VideoResponse:
    """Convert video model to response."""
    return VideoResponse(
        id=video.id,
        url=video.url,
        title=video.title,
        duration=video.duration,
        file_path=video.file_path,
        thumbnail_url=video.thumbnail_url,
        status=video.status.value,
        error_message=video.error_message,
        created_at=video.created_at,
        updated_at=video.updated_at
    )


def _transcript_to_response(transcript: Transcript) -> TranscriptResponse:
    return TranscriptResponse(
        id=transcript.id,
        video_id=transcript.video_id,
        language=transcript.language,
        segments=transcript.segment_list(),
        full_text=transcript.full_text,
        created_at=transcript.created_at
    )


def _suggestion_to_response(suggestion: SuggestedClip) -> SuggestedClipResponse:
    return SuggestedClipResponse.model_validate(suggestion)


def _clip_to_response(clip: Clip) -> ClipResponse:
    """Convert clip model to response."""
    return ClipResponse(
        id=clip.id,
        video_id=clip.video_id,
        title=clip.title,
        start_time=clip.start_time,
        end_time=clip.end_time,
        duration=clip.duration,
        file_path=clip.file_path,
        status=clip.status.value,
        error_message=clip.error_message,
        subtitles=clip.subtitle_list(),
        created_at=clip.created_at,
        completed_at=clip.completed_at
    )
