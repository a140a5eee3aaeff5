"""FFmpeg utilities: audio extraction and vertical clip rendering."""
import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from app.config import settings
from app.pipeline.subtitles import SubtitleCue, build_subtitles_filter

logger = logging.getLogger(__name__)

# Lines of captured output kept in error messages
DIAGNOSTIC_TAIL_LINES = 20


class FFmpegError(Exception):
    """FFmpeg related error."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class ClipValidationError(ValueError):
    """Render request rejected before FFmpeg is invoked."""
    pass


def check_ffmpeg_available() -> bool:
    """Check if ffmpeg is available."""
    return shutil.which(settings.ffmpeg_path) is not None


def check_ffprobe_available() -> bool:
    """Check if ffprobe is available."""
    return shutil.which(settings.ffprobe_path) is not None


def _tail(output: str, lines: int = DIAGNOSTIC_TAIL_LINES) -> str:
    return "\n".join(output.strip().splitlines()[-lines:])


async def run_ffmpeg(args: Sequence[str], action: str) -> str:
    """
    Run ffmpeg with the given arguments and wait for it to exit.

    Args:
        args: Arguments after the executable
        action: Human readable name of the operation, used in errors

    Returns:
        Combined stdout/stderr output

    Raises:
        FFmpegError: If ffmpeg cannot be started or exits non-zero
    """
    cmd = [settings.ffmpeg_path, *args]
    logger.debug(f"Running ffmpeg: {' '.join(cmd)}")

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT
        )
    except FileNotFoundError as e:
        raise FFmpegError(f"{action} failed: ffmpeg not found ({e})")

    stdout, _ = await proc.communicate()
    output = stdout.decode("utf-8", errors="ignore") if stdout else ""

    if proc.returncode != 0:
        logger.error(f"{action} failed with output:\n{_tail(output)}")
        raise FFmpegError(f"{action} failed: {_tail(output)}", output=output)

    return output


async def extract_audio(video_path: str | Path, audio_path: str | Path) -> Path:
    """
    Extract a mono 16kHz PCM WAV track for transcription.

    Args:
        video_path: Path to source video
        audio_path: Path for the WAV output

    Returns:
        Path to the extracted audio
    """
    audio_path = Path(audio_path)
    audio_path.parent.mkdir(parents=True, exist_ok=True)

    await run_ffmpeg(
        [
            "-y",
            "-i", str(video_path),
            "-vn",
            "-acodec", "pcm_s16le",
            "-ar", "16000",
            "-ac", "1",
            str(audio_path),
        ],
        "Audio extraction"
    )
    return audio_path


def build_vertical_filter(width: int = None, height: int = None) -> str:
    """Scale to fill the vertical frame, then center-crop to exact bounds."""
    width = width or settings.vertical_width
    height = height or settings.vertical_height
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=increase,"
        f"crop={width}:{height},setsar=1"
    )


def validate_render_window(
    source_path: Optional[str | Path],
    start_time: float,
    end_time: float
) -> Path:
    """
    Check a render request before any process is started.

    Returns:
        Absolute path of the source video

    Raises:
        ClipValidationError: On an invalid time range or missing source file
    """
    if start_time < 0:
        raise ClipValidationError("Start time cannot be negative")
    if end_time <= start_time:
        raise ClipValidationError(
            f"Invalid time range: end ({end_time:.2f}) must be after start ({start_time:.2f})"
        )
    if not source_path:
        raise ClipValidationError("Video file not available")

    source = Path(source_path).absolute()
    if not source.exists():
        raise ClipValidationError(f"Input video file does not exist: {source}")
    return source


def build_render_args(
    source_path: str | Path,
    output_path: str | Path,
    start_time: float,
    end_time: float,
    cues: Optional[List[SubtitleCue]] = None,
    preset: Optional[str] = None
) -> List[str]:
    """Build ffmpeg arguments for a vertical clip, with subtitles when cues are given."""
    video_filter = build_vertical_filter()
    subtitles_filter = build_subtitles_filter(cues or [])
    if subtitles_filter:
        video_filter = f"{video_filter},{subtitles_filter}"

    return [
        "-y",
        "-ss", f"{start_time:.2f}",
        "-i", str(source_path),
        "-t", f"{end_time - start_time:.2f}",
        "-vf", video_filter,
        "-c:v", settings.render_video_codec,
        "-preset", preset or settings.render_video_preset,
        "-crf", str(settings.render_video_crf),
        "-pix_fmt", settings.render_pixel_format,
        "-c:a", settings.render_audio_codec,
        "-b:a", settings.render_audio_bitrate,
        "-movflags", "+faststart",
        str(output_path),
    ]


async def render_clip(
    source_path: Optional[str | Path],
    output_path: str | Path,
    start_time: float,
    end_time: float,
    cues: Optional[List[SubtitleCue]] = None
) -> Path:
    """
    Render a vertical 1080x1920 clip, burning in subtitle cues if any.

    Args:
        source_path: Path to source video
        output_path: Path for output file
        start_time: Start time in seconds
        end_time: End time in seconds
        cues: Optional subtitle cues, timed relative to the clip

    Returns:
        Path to rendered clip
    """
    source = validate_render_window(source_path, start_time, end_time)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(
        f"Rendering clip from {source} ({start_time:.2f}-{end_time:.2f}, "
        f"{len(cues or [])} subtitles) -> {output_path}"
    )
    await run_ffmpeg(
        build_render_args(source, output_path, start_time, end_time, cues),
        "Clip render"
    )
    return output_path


async def extract_raw_clip(
    source_path: Optional[str | Path],
    output_dir: str | Path,
    video_id: str,
    start_time: float,
    end_time: float
) -> Path:
    """
    Cut and crop a vertical clip without subtitles.

    Subtitles are composited downstream, so a faster preset is used.

    Returns:
        Path to `<video_id>_raw_<start>-<end>.mp4` inside output_dir
    """
    source = validate_render_window(source_path, start_time, end_time)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{video_id}_raw_{start_time:.0f}-{end_time:.0f}.mp4"

    logger.info(f"Extracting raw clip {output_path} ({start_time:.2f}-{end_time:.2f})")
    await run_ffmpeg(
        build_render_args(
            source, output_path, start_time, end_time,
            preset=settings.extract_video_preset
        ),
        "Raw clip extraction"
    )
    return output_path


async def convert_webm_to_mp4(input_path: str | Path, output_path: str | Path) -> Path:
    """Re-encode a WebM recording as an H.264/AAC MP4."""
    input_path = Path(input_path)
    output_path = Path(output_path)
    if not input_path.exists():
        raise ClipValidationError(f"Input file does not exist: {input_path}")

    await run_ffmpeg(
        [
            "-y",
            "-i", str(input_path),
            "-c:v", settings.render_video_codec,
            "-preset", settings.extract_video_preset,
            "-crf", str(settings.render_video_crf),
            "-pix_fmt", settings.render_pixel_format,
            "-c:a", settings.render_audio_codec,
            "-b:a", settings.render_audio_bitrate,
            "-movflags", "+faststart",
            str(output_path),
        ],
        "WebM conversion"
    )

    if not output_path.exists():
        raise FFmpegError(f"WebM conversion produced no output: {output_path}")
    return output_path
