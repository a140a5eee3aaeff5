"""Tests for yt-dlp download helpers."""
import pytest

from app.utils import ytdlp
from app.utils.ytdlp import YtdlpDownloader, YtdlpError, parse_metadata


class _FakeProcess:
    def __init__(self, returncode: int = 0, output: bytes = b""):
        self.returncode = returncode
        self._output = output

    async def communicate(self):
        return self._output, None


def test_parse_metadata():
    meta = parse_metadata("My Talk\n754.3\nhttps://i.ytimg.com/vi/abc/maxresdefault.jpg\n")

    assert meta.title == "My Talk"
    assert meta.duration == 754
    assert meta.thumbnail_url == "https://i.ytimg.com/vi/abc/maxresdefault.jpg"


def test_parse_metadata_missing_values():
    meta = parse_metadata("Live stream\nNA\nNA")

    assert meta.title == "Live stream"
    assert meta.duration is None
    assert meta.thumbnail_url is None


def test_parse_metadata_short_output():
    meta = parse_metadata("oops")
    assert meta.title is None


@pytest.mark.asyncio
async def test_download_merges_mp4(monkeypatch, tmp_path):
    commands = []
    target = tmp_path / "videos" / "vid-1.mp4"

    async def fake_exec(*cmd, **kwargs):
        commands.append(list(cmd))
        target.write_bytes(b"\x00")
        return _FakeProcess()

    monkeypatch.setattr(ytdlp.asyncio, "create_subprocess_exec", fake_exec)

    result = await YtdlpDownloader().download("https://youtu.be/abc", target)

    assert result == target
    cmd = commands[0]
    assert cmd[cmd.index("-f") + 1] == "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"
    assert cmd[cmd.index("--merge-output-format") + 1] == "mp4"
    assert cmd[cmd.index("-o") + 1] == str(target)
    assert cmd[-1] == "https://youtu.be/abc"


@pytest.mark.asyncio
async def test_download_without_output_file(monkeypatch, tmp_path):
    async def fake_exec(*cmd, **kwargs):
        return _FakeProcess()

    monkeypatch.setattr(ytdlp.asyncio, "create_subprocess_exec", fake_exec)

    with pytest.raises(YtdlpError, match="not found"):
        await YtdlpDownloader().download("https://youtu.be/abc", tmp_path / "vid.mp4")


@pytest.mark.asyncio
async def test_failure_reports_output_tail(monkeypatch):
    async def fake_exec(*cmd, **kwargs):
        return _FakeProcess(returncode=1, output=b"ERROR: Video unavailable\n")

    monkeypatch.setattr(ytdlp.asyncio, "create_subprocess_exec", fake_exec)

    with pytest.raises(YtdlpError, match="Video unavailable"):
        await YtdlpDownloader().fetch_metadata("https://youtu.be/gone")
