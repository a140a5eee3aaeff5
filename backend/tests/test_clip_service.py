"""Tests for clip persistence and rendering."""
import pytest

from app.models.clip import ClipStatus
from app.pipeline.subtitles import SubtitleCue
from app.services import clip_service
from app.services.clip_service import ClipService
from app.services.video_service import VideoService
from app.utils.ffmpeg import ClipValidationError, FFmpegError


@pytest.fixture
def source_video(tmp_path):
    path = tmp_path / "source.mp4"
    path.write_bytes(b"\x00")
    return path


async def _ready_video(db, file_path):
    service = VideoService(db)
    video = await service.create_video("https://www.youtube.com/watch?v=abc")
    return await service.update_video(video.id, file_path=str(file_path))


@pytest.mark.asyncio
async def test_create_clip_stores_cues(db, source_video, tmp_path):
    video = await _ready_video(db, source_video)
    cues = [SubtitleCue(text="Hi", start_time=0.0, end_time=2.0, color="#FFFF00")]

    clip = await ClipService(db, tmp_path).create_clip(video.id, 5.0, 20.0, "Intro", cues)

    assert clip.status == ClipStatus.PROCESSING
    assert clip.duration == 15.0
    assert clip.subtitle_list()[0]["color"] == "#FFFF00"


@pytest.mark.asyncio
async def test_create_clip_rejects_bad_window(db, source_video, tmp_path):
    video = await _ready_video(db, source_video)

    with pytest.raises(ValueError):
        await ClipService(db, tmp_path).create_clip(video.id, 10.0, 5.0)


@pytest.mark.asyncio
async def test_render_success(monkeypatch, session_maker, db, source_video, tmp_path):
    rendered = []

    async def fake_render(source_path, output_path, start_time, end_time, cues=None):
        rendered.append((source_path, output_path, start_time, end_time, cues))
        return output_path

    monkeypatch.setattr(clip_service, "render_clip", fake_render)

    video = await _ready_video(db, source_video)
    service = ClipService(db, tmp_path / "clips")
    cues = [SubtitleCue(text="Hi", start_time=0.0, end_time=2.0)]
    clip = await service.create_clip(video.id, 1.0, 3.0, "Hook", cues)

    clip = await service.render(video, clip)

    assert clip.status == ClipStatus.COMPLETED
    assert clip.file_path == str(tmp_path / "clips" / f"{clip.id}.mp4")
    assert clip.completed_at is not None
    source_path, _, start, end, render_cues = rendered[0]
    assert source_path == str(source_video)
    assert (start, end) == (1.0, 3.0)
    assert render_cues == cues

    async with session_maker() as session:
        stored = await ClipService(session, tmp_path / "clips").get_clip(clip.id)
    assert stored.status == ClipStatus.COMPLETED
    assert stored.file_path == clip.file_path
    assert stored.completed_at is not None


@pytest.mark.asyncio
async def test_render_failure_marks_error(monkeypatch, db, source_video, tmp_path):
    async def failing_render(*args, **kwargs):
        raise FFmpegError("Clip render failed: Invalid argument")

    monkeypatch.setattr(clip_service, "render_clip", failing_render)

    video = await _ready_video(db, source_video)
    service = ClipService(db, tmp_path)
    clip = await service.create_clip(video.id, 1.0, 3.0)

    with pytest.raises(FFmpegError):
        await service.render(video, clip)

    stored = await service.get_clip(clip.id)
    assert stored.status == ClipStatus.ERROR
    assert "Invalid argument" in stored.error_message
    assert stored.completed_at is None


@pytest.mark.asyncio
async def test_render_missing_source_marks_error(db, tmp_path):
    video = await _ready_video(db, tmp_path / "gone.mp4")
    service = ClipService(db, tmp_path)
    clip = await service.create_clip(video.id, 0.0, 3.0)

    with pytest.raises(ClipValidationError):
        await service.render(video, clip)

    assert (await service.get_clip(clip.id)).status == ClipStatus.ERROR


@pytest.mark.asyncio
async def test_update_unknown_clip(db, tmp_path):
    with pytest.raises(ValueError):
        await ClipService(db, tmp_path).update_clip("missing", title="x")


@pytest.mark.asyncio
async def test_delete_clip_removes_file(db, source_video, tmp_path):
    video = await _ready_video(db, source_video)
    service = ClipService(db, tmp_path)
    clip = await service.create_clip(video.id, 0.0, 3.0)
    output = tmp_path / "out.mp4"
    output.write_bytes(b"\x00")
    clip = await service.update_clip(clip.id, file_path=str(output))
    assert clip.file_path == str(output)

    assert await service.delete_clip(clip.id)
    assert not output.exists()
    assert await service.get_clip(clip.id) is None
    assert not await service.delete_clip(clip.id)


@pytest.mark.asyncio
async def test_deleting_video_cascades(db, source_video, tmp_path):
    video = await _ready_video(db, source_video)
    service = ClipService(db, tmp_path)
    await service.create_clip(video.id, 0.0, 3.0)

    assert await VideoService(db).delete_video(video.id)
    assert await service.list_clips(video.id) == []
