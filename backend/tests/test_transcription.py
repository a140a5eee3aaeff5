"""Tests for the transcription stage and Whisper backend."""
import httpx
import pytest

from app.config import Settings
from app.pipeline import transcription
from app.pipeline.transcription import (
    Segment,
    TranscriptionError,
    TranscriptionStage,
    WhisperAPITranscriber,
    build_transcriber,
    parse_whisper_response,
    placeholder_transcript,
)
from app.utils.ffmpeg import FFmpegError


class _FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON payload")
        return self._payload


class _FakeClient:
    def __init__(self, post_response=None, error=None, **kwargs):
        self._post_response = post_response
        self._error = error
        self.requests = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self._error:
            raise self._error
        return self._post_response


class _RaisingTranscriber:
    async def transcribe(self, audio_path):
        raise TranscriptionError("backend down")


@pytest.fixture
def fake_audio(monkeypatch):
    extracted = []

    async def fake_extract_audio(video_path, audio_path):
        audio_path.parent.mkdir(parents=True, exist_ok=True)
        audio_path.write_bytes(b"RIFF")
        extracted.append((video_path, audio_path))
        return audio_path

    monkeypatch.setattr(transcription, "extract_audio", fake_extract_audio)
    return extracted


@pytest.fixture
def no_network(monkeypatch):
    def forbidden(**kwargs):
        raise AssertionError("No HTTP request expected")

    monkeypatch.setattr(transcription.httpx, "AsyncClient", forbidden)


def test_placeholder_transcript_content():
    result = placeholder_transcript()

    assert result.language == "en"
    assert [s.to_dict() for s in result.segments] == [
        {"start": 0.0, "end": 5.0, "text": "This is a sample transcript."},
        {"start": 5.0, "end": 10.0, "text": "Whisper integration needed."},
    ]
    assert result.full_text == "This is a sample transcript. Whisper integration needed."


def test_build_transcriber_requires_key():
    assert build_transcriber(Settings(openai_api_key=None)) is None
    assert isinstance(build_transcriber(Settings(openai_api_key="sk-test")), WhisperAPITranscriber)


@pytest.mark.asyncio
async def test_without_key_returns_placeholder(fake_audio, no_network, tmp_path):
    stage = TranscriptionStage(None, tmp_path / "transcripts")

    result = await stage.run(tmp_path / "video.mp4", "vid-1")

    assert result == placeholder_transcript()
    assert fake_audio[0][1] == tmp_path / "transcripts" / "vid-1.wav"


@pytest.mark.asyncio
async def test_backend_failure_falls_back_to_placeholder(fake_audio, tmp_path):
    stage = TranscriptionStage(_RaisingTranscriber(), tmp_path)

    result = await stage.run(tmp_path / "video.mp4", "vid-1")

    assert result == placeholder_transcript()


@pytest.mark.asyncio
async def test_audio_extraction_failure_propagates(monkeypatch, tmp_path):
    async def failing_extract(video_path, audio_path):
        raise FFmpegError("Audio extraction failed: no audio stream")

    monkeypatch.setattr(transcription, "extract_audio", failing_extract)
    stage = TranscriptionStage(None, tmp_path)

    with pytest.raises(FFmpegError):
        await stage.run(tmp_path / "video.mp4", "vid-1")


@pytest.mark.asyncio
async def test_whisper_success(monkeypatch, fake_audio, tmp_path):
    payload = {
        "language": "spanish",
        "text": "Hola mundo. Segunda frase.",
        "segments": [
            {"start": 2.5, "end": 4.0, "text": " Segunda frase."},
            {"start": 0.0, "end": 2.5, "text": " Hola mundo."},
        ],
    }
    client = _FakeClient(post_response=_FakeResponse(200, payload))
    monkeypatch.setattr(transcription.httpx, "AsyncClient", lambda **kwargs: client)

    stage = TranscriptionStage(WhisperAPITranscriber("sk-test", "https://api.example.com/v1/"), tmp_path)
    result = await stage.run(tmp_path / "video.mp4", "vid-1")

    assert result.language == "spanish"
    assert [s.text for s in result.segments] == ["Hola mundo.", "Segunda frase."]
    url, kwargs = client.requests[0]
    assert url == "https://api.example.com/v1/audio/transcriptions"
    assert kwargs["data"]["response_format"] == "verbose_json"
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_whisper_timeout_falls_back(monkeypatch, fake_audio, tmp_path):
    monkeypatch.setattr(
        transcription.httpx,
        "AsyncClient",
        lambda **kwargs: _FakeClient(error=httpx.ReadTimeout("timed out")),
    )

    stage = TranscriptionStage(WhisperAPITranscriber("sk-test", "https://api.example.com/v1"), tmp_path)
    result = await stage.run(tmp_path / "video.mp4", "vid-1")

    assert result == placeholder_transcript()


@pytest.mark.asyncio
async def test_whisper_non_200_raises(monkeypatch, tmp_path):
    audio = tmp_path / "a.wav"
    audio.write_bytes(b"RIFF")
    monkeypatch.setattr(
        transcription.httpx,
        "AsyncClient",
        lambda **kwargs: _FakeClient(post_response=_FakeResponse(401, text="bad key")),
    )

    with pytest.raises(TranscriptionError, match="401"):
        await WhisperAPITranscriber("sk-test", "https://api.example.com/v1").transcribe(audio)


class TestParseWhisperResponse:
    def test_inverted_segment_is_repaired(self):
        result = parse_whisper_response({"segments": [{"start": 3.0, "end": 1.0, "text": "x"}]})
        assert result.segments == [Segment(3.0, 3.0, "x")]

    def test_full_text_built_from_segments(self):
        result = parse_whisper_response({"segments": [
            {"start": 0, "end": 1, "text": "a"},
            {"start": 1, "end": 2, "text": "b"},
        ]})
        assert result.full_text == "a b"

    def test_malformed_segment(self):
        with pytest.raises(TranscriptionError):
            parse_whisper_response({"segments": [{"text": "no times"}]})

    def test_not_an_object(self):
        with pytest.raises(TranscriptionError):
            parse_whisper_response([])
