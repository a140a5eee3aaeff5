"""Transcription stage: audio extraction plus a pluggable speech-to-text backend."""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol

import httpx

from app.config import Settings, settings as default_settings
from app.utils.ffmpeg import extract_audio

logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    """Transcription backend failure."""
    pass


@dataclass(frozen=True)
class Segment:
    """A timed piece of transcript text."""
    start: float
    end: float
    text: str

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass
class TranscriptResult:
    """Transcript produced by the transcription stage."""
    language: Optional[str]
    segments: List[Segment] = field(default_factory=list)
    full_text: str = ""


def placeholder_transcript() -> TranscriptResult:
    """Fixed two-segment transcript used when no backend is usable."""
    return TranscriptResult(
        language="en",
        segments=[
            Segment(0.0, 5.0, "This is a sample transcript."),
            Segment(5.0, 10.0, "Whisper integration needed."),
        ],
        full_text="This is a sample transcript. Whisper integration needed.",
    )


def normalize_segments(segments: List[Segment]) -> List[Segment]:
    """Sort segments chronologically and repair inverted ranges."""
    ordered = sorted(segments, key=lambda s: s.start)
    return [
        s if s.end >= s.start else Segment(s.start, s.start, s.text)
        for s in ordered
    ]


class Transcriber(Protocol):
    """Speech-to-text backend."""

    async def transcribe(self, audio_path: Path) -> TranscriptResult:
        ...


class WhisperAPITranscriber:
    """OpenAI-compatible `/audio/transcriptions` backend with segment timestamps."""

    def __init__(self, api_key: str, api_url: str, model: str = "whisper-1", timeout: float = 120.0):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    async def transcribe(self, audio_path: Path) -> TranscriptResult:
        audio_path = Path(audio_path)
        logger.info(f"Calling Whisper API for {audio_path.name}")

        try:
            with open(audio_path, "rb") as audio:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        f"{self.api_url}/audio/transcriptions",
                        headers={"Authorization": f"Bearer {self.api_key}"},
                        data={"model": self.model, "response_format": "verbose_json"},
                        files={"file": (audio_path.name, audio, "audio/wav")},
                    )
        except httpx.TimeoutException as exc:
            raise TranscriptionError("Whisper API timed out") from exc
        except (httpx.RequestError, OSError) as exc:
            raise TranscriptionError(f"Whisper API request failed: {exc}") from exc

        if response.status_code != 200:
            raise TranscriptionError(
                f"Whisper API returned status {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise TranscriptionError(f"Failed to parse Whisper response: {exc}") from exc

        return parse_whisper_response(payload)


def parse_whisper_response(payload: dict) -> TranscriptResult:
    """Convert a verbose_json Whisper payload into a TranscriptResult."""
    if not isinstance(payload, dict):
        raise TranscriptionError("Whisper response is not a JSON object")

    try:
        segments = [
            Segment(float(seg["start"]), float(seg["end"]), str(seg.get("text", "")).strip())
            for seg in payload.get("segments") or []
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise TranscriptionError(f"Malformed Whisper segment: {exc}") from exc

    return TranscriptResult(
        language=payload.get("language"),
        segments=normalize_segments(segments),
        full_text=payload.get("text") or " ".join(s.text for s in segments),
    )


def build_transcriber(config: Settings = default_settings) -> Optional[Transcriber]:
    """Whisper backend when a key is configured, otherwise None."""
    if not config.openai_api_key:
        return None
    return WhisperAPITranscriber(
        api_key=config.openai_api_key,
        api_url=config.openai_api_url,
        model=config.whisper_model,
        timeout=config.http_timeout_seconds,
    )


class TranscriptionStage:
    """Demux audio from a video and transcribe it."""

    def __init__(self, transcriber: Optional[Transcriber], transcripts_dir: Path):
        self.transcriber = transcriber
        self.transcripts_dir = Path(transcripts_dir)

    async def run(self, video_path: str | Path, video_id: str) -> TranscriptResult:
        """
        Transcribe a local video file.

        A missing or failing backend yields the placeholder transcript;
        only audio extraction failures propagate.

        Args:
            video_path: Local media file
            video_id: Owning video, names the audio file

        Returns:
            TranscriptResult with chronologically ordered segments
        """
        audio_path = await extract_audio(video_path, self.transcripts_dir / f"{video_id}.wav")
        logger.info(f"[{video_id}] Audio extracted: {audio_path}")

        if self.transcriber is None:
            logger.warning(f"[{video_id}] No transcription API key set, using placeholder transcript")
            return placeholder_transcript()

        try:
            transcript = await self.transcriber.transcribe(audio_path)
        except TranscriptionError as e:
            logger.warning(f"[{video_id}] Transcription failed: {e}, using placeholder transcript")
            return placeholder_transcript()

        logger.info(f"[{video_id}] Transcription completed: {len(transcript.segments)} segments")
        return transcript
