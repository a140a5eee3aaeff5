"""yt-dlp utilities for video download."""
import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from app.config import settings

logger = logging.getLogger(__name__)


class YtdlpError(Exception):
    """yt-dlp related error."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


@dataclass
class VideoMetadata:
    """Metadata reported by yt-dlp before download."""
    title: Optional[str]
    duration: Optional[int]
    thumbnail_url: Optional[str]


def check_ytdlp_available() -> bool:
    """Check if yt-dlp is available."""
    return shutil.which(settings.ytdlp_path) is not None


async def _run_ytdlp(args: List[str], action: str) -> str:
    """Run yt-dlp, returning combined output or raising YtdlpError."""
    cmd = [settings.ytdlp_path, *args]
    logger.info(f"Running yt-dlp command: {' '.join(cmd)}")

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT
        )
    except FileNotFoundError as e:
        raise YtdlpError(f"{action} failed: yt-dlp not found ({e})")

    stdout, _ = await proc.communicate()
    output = stdout.decode("utf-8", errors="ignore") if stdout else ""

    if proc.returncode != 0:
        tail = "\n".join(output.strip().splitlines()[-20:])
        logger.error(f"yt-dlp failed with output:\n{tail}")
        raise YtdlpError(f"{action} failed: {tail}", output=output)

    return output


def parse_metadata(output: str) -> VideoMetadata:
    """Parse the three `--print` lines (title, duration, thumbnail)."""
    lines = [line.strip() for line in output.strip().splitlines()]
    if len(lines) < 3:
        return VideoMetadata(title=None, duration=None, thumbnail_url=None)

    title, duration_str, thumbnail = lines[-3:]
    try:
        duration = int(float(duration_str))
    except ValueError:
        duration = None

    return VideoMetadata(
        title=title or None,
        duration=duration,
        thumbnail_url=thumbnail if thumbnail and thumbnail != "NA" else None
    )


class YtdlpDownloader:
    """Download backend built on the yt-dlp executable."""

    async def fetch_metadata(self, url: str) -> VideoMetadata:
        """Get title, duration and thumbnail without downloading."""
        output = await _run_ytdlp(
            [
                "--no-warnings",
                "--print", "title",
                "--print", "duration",
                "--print", "thumbnail",
                "--skip-download",
                url,
            ],
            "Metadata lookup"
        )
        return parse_metadata(output)

    async def download(self, url: str, output_path: str | Path) -> Path:
        """
        Download the best mp4 video and audio, merged into output_path.

        Args:
            url: Video URL
            output_path: Destination .mp4 file

        Returns:
            Path to the downloaded file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output = await _run_ytdlp(
            [
                "-f", "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best",
                "--merge-output-format", "mp4",
                "--no-playlist",
                "--no-warnings",
                "--no-progress",
                "--force-overwrites",
                "-o", str(output_path),
                url,
            ],
            "Download"
        )

        if not output_path.exists():
            raise YtdlpError(f"Download completed but video file not found: {output_path}", output=output)

        return output_path
