"""Analysis stage: ask a language model for the best clip windows."""
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, List, Protocol

import httpx

from app.config import Settings, settings as default_settings
from app.pipeline.transcription import TranscriptResult

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Analysis backend or response failure."""
    pass


@dataclass
class ClipSuggestion:
    """A clip window proposed by the analysis backend."""
    id: str
    video_id: str
    start_time: float
    end_time: float
    title: str
    description: str
    score: float
    reason: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "video_id": self.video_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "title": self.title,
            "description": self.description,
            "score": self.score,
            "reason": self.reason,
        }


SYSTEM_PROMPT = (
    "You are a professional video editor with more than ten years of experience creating "
    "viral short-form content. You specialize in finding complete, coherent moments that "
    "work as standalone clips, and you always favor complete meaning over brevity. "
    "You answer only with valid JSON, writing all text in {language}."
)

CLIP_PROMPT = """You create viral clips for TikTok, YouTube Shorts and Instagram Reels.

Analyze this complete video transcript and identify the 5-8 best moments for short clips that make COMPLETE SENSE on their own.

VIDEO TRANSCRIPT:
{transcript}

CRITERIA FOR EVERY CLIP:

1. NARRATIVE COHERENCE (top priority):
   - The clip MUST have a beginning, development and a complete ending
   - Do NOT cut ideas in half or end on an unfinished sentence
   - The story or concept must be self-contained and understandable

2. DURATION:
   - Minimum 15 seconds (only for very concise, powerful ideas)
   - Ideal 30-45 seconds
   - Maximum 60 seconds, when needed to complete the idea
   - Prefer coherence over brevity

3. START AND END POINTS:
   - Start at the natural beginning of an idea, story or concept
   - End once the idea is fully expressed, respecting natural pauses

4. HIGH VALUE CONTENT:
   - Specific, useful lessons; complete stories with setup and punchline
   - Complete insights or revelations; emotional moments with enough context

5. VIRAL POTENTIAL:
   - Curiosity from the first second, surprising or counter-intuitive information
   - Content people want to share

RESPONSE FORMAT (JSON):
Return an array of 5-8 clips with exactly this structure:

[
  {{
    "start_time": 10.5,
    "end_time": 45.2,
    "title": "Catchy title reflecting the whole clip",
    "description": "Detailed description of what the clip covers from start to finish",
    "score": 85,
    "reason": "Why this clip works: what makes it interesting, why it is complete, and its viral potential"
  }}
]

IMPORTANT:
- Write all text in {language}
- Timestamps must be precise (decimals allowed)
- "score" is the viral potential from 0 to 100
- Order clips from highest score to lowest

Respond ONLY with the JSON array, no additional text."""


def build_clip_prompt(transcript_text: str, language: str = "Spanish") -> str:
    """Instruction asking for ranked, self-contained clip candidates."""
    return CLIP_PROMPT.format(transcript=transcript_text, language=language)


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence (```json or ```) if present."""
    content = content.strip()
    for marker in ("```json", "```"):
        if marker in content:
            start = content.index(marker) + len(marker)
            end = content.rfind("```")
            if end > start:
                return content[start:end].strip()
            break
    return content


def parse_json_content(content: str, backend_name: str) -> Any:
    """Strip fences and decode JSON, raising AnalysisError on failure."""
    cleaned = strip_code_fence(content or "")
    if not cleaned:
        raise AnalysisError(f"Empty content from {backend_name}")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error(f"JSON parse error from {backend_name}: {exc}; content: {cleaned[:300]}")
        raise AnalysisError(f"Failed to parse {backend_name} response: {exc}") from exc


def parse_clip_suggestions(content: str, video_id: str, backend_name: str = "analysis backend") -> List[ClipSuggestion]:
    """
    Parse a backend reply into suggestions with fresh ids.

    Raises:
        AnalysisError: On unparseable content, a non-array, or no usable
            clip window (negative start or end not after start)
    """
    data = parse_json_content(content, backend_name)
    if not isinstance(data, list):
        raise AnalysisError(f"{backend_name} did not return a JSON array")
    if not data:
        raise AnalysisError(f"{backend_name} returned empty clips array")

    suggestions = []
    for i, item in enumerate(data):
        try:
            start_time = float(item["start_time"])
            end_time = float(item["end_time"])
            suggestion = ClipSuggestion(
                id=str(uuid.uuid4()),
                video_id=video_id,
                start_time=start_time,
                end_time=end_time,
                title=str(item.get("title") or ""),
                description=str(item.get("description") or ""),
                score=float(item.get("score") or 0),
                reason=str(item.get("reason") or ""),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise AnalysisError(f"Malformed clip #{i + 1} from {backend_name}: {exc}") from exc

        if start_time < 0 or end_time <= start_time:
            logger.warning(f"Skipping clip #{i + 1} from {backend_name} with window {start_time}-{end_time}")
            continue
        suggestions.append(suggestion)

    if not suggestions:
        raise AnalysisError(f"{backend_name} returned no valid clip windows")

    return suggestions


class AnalysisBackend(Protocol):
    """Text generation backend used for transcript analysis."""

    name: str

    async def complete(self, prompt: str, system_prompt: str) -> str:
        """Return the raw text reply for a prompt."""
        ...


class DeepSeekBackend:
    """Cloud chat-completions backend (DeepSeek / OpenAI-compatible)."""

    name = "DeepSeek"

    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        model: str = "deepseek-chat",
        temperature: float = 0.7,
        max_tokens: int = 4000,
        timeout: float = 120.0,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def complete(self, prompt: str, system_prompt: str) -> str:
        if not self.api_key:
            raise AnalysisError("DEEPSEEK_API_KEY not set")

        logger.info(f"Sending request to DeepSeek (prompt length: {len(prompt)} chars)")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_url}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": prompt},
                        ],
                        "temperature": self.temperature,
                        "max_tokens": self.max_tokens,
                        "stream": False,
                    },
                )
        except httpx.TimeoutException as exc:
            raise AnalysisError("DeepSeek API timed out") from exc
        except httpx.RequestError as exc:
            raise AnalysisError(f"DeepSeek request failed: {exc}") from exc

        if response.status_code != 200:
            raise AnalysisError(f"DeepSeek API returned status {response.status_code}: {response.text}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise AnalysisError(f"Failed to parse DeepSeek response: {exc}") from exc

        if payload.get("error"):
            error = payload["error"]
            raise AnalysisError(f"DeepSeek API error: {error.get('message')} ({error.get('type')})")

        choices = payload.get("choices") or []
        if not choices:
            raise AnalysisError("No response from DeepSeek")

        content = (choices[0].get("message") or {}).get("content") or ""
        if not content:
            raise AnalysisError("Empty content from DeepSeek")
        return content


class OllamaBackend:
    """Local model served by Ollama's `/api/generate`."""

    name = "Ollama"

    def __init__(self, base_url: str, model: str, timeout: float = 120.0):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    async def complete(self, prompt: str, system_prompt: str) -> str:
        logger.info(f"Sending request to Ollama model {self.model}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/api/generate",
                    json={
                        "model": self.model,
                        "prompt": prompt,
                        "system": system_prompt,
                        "stream": False,
                    },
                )
        except httpx.TimeoutException as exc:
            raise AnalysisError("Ollama request timed out") from exc
        except httpx.RequestError as exc:
            raise AnalysisError(f"Ollama request failed: {exc}") from exc

        if response.status_code != 200:
            raise AnalysisError(f"Ollama returned status {response.status_code}: {response.text}")

        try:
            content = response.json().get("response") or ""
        except ValueError as exc:
            raise AnalysisError(f"Failed to parse Ollama response body: {exc}") from exc

        if not content:
            raise AnalysisError("Empty content from Ollama")
        return content


def build_analysis_backend(config: Settings = default_settings) -> AnalysisBackend:
    """Choose the local or cloud backend from configuration."""
    if config.use_ollama:
        return OllamaBackend(config.ollama_url, config.ollama_model, timeout=config.http_timeout_seconds)
    return DeepSeekBackend(
        api_key=config.deepseek_api_key,
        api_url=config.deepseek_api_url,
        model=config.deepseek_model,
        temperature=config.analysis_temperature,
        max_tokens=config.analysis_max_tokens,
        timeout=config.http_timeout_seconds,
    )


class AnalysisStage:
    """Turn a transcript into ranked clip suggestions."""

    def __init__(self, backend: AnalysisBackend, language: str = "Spanish"):
        self.backend = backend
        self.language = language

    async def run(self, transcript: TranscriptResult, video_id: str) -> List[ClipSuggestion]:
        """
        Analyze a transcript. There is no fallback: every failure raises.

        Raises:
            AnalysisError: Backend failure, unparseable or empty reply
        """
        logger.info(f"[{video_id}] Analyzing transcript ({len(transcript.full_text)} chars) with {self.backend.name}")
        content = await self.backend.complete(
            build_clip_prompt(transcript.full_text, self.language),
            SYSTEM_PROMPT.format(language=self.language),
        )
        suggestions = parse_clip_suggestions(content, video_id, self.backend.name)
        logger.info(f"[{video_id}] Parsed {len(suggestions)} clip suggestions")
        return suggestions
